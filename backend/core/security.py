import logging
from typing import Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

DEFAULT_JWT_KEY = "dev-secret-please-change"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Attach common security headers to every response."""

    def __init__(
        self,
        app,
        *,
        enable_hsts: bool = True,
        csp: Optional[str] = None,
    ) -> None:
        super().__init__(app)
        self.enable_hsts = enable_hsts
        self.csp = csp

    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        response = await call_next(request)
        headers = response.headers

        headers.setdefault("X-Content-Type-Options", "nosniff")
        headers.setdefault("X-Frame-Options", "DENY")
        headers.setdefault("Referrer-Policy", "same-origin")
        if self.enable_hsts and request.url.scheme == "https":
            headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
        if self.csp:
            headers.setdefault("Content-Security-Policy", self.csp)

        return response


def log_security_warnings(
    jwt_key: str,
    webhook_secret: Optional[str],
    messaging_backend: str,
    twilio_configured: bool,
) -> None:
    if jwt_key == DEFAULT_JWT_KEY:
        logger.warning("JWT key is using the insecure default; set JWT_KEY in the environment.")
    if not webhook_secret:
        logger.warning("CLERK_WEBHOOK_SECRET is not set; identity webhooks will be rejected.")
    backend_normalized = (messaging_backend or "local").lower().strip()
    if backend_normalized == "local":
        logger.warning("Messaging backend is set to local stub; WhatsApp messages will not be delivered.")
    elif not twilio_configured:
        logger.warning("Twilio credentials are missing; WhatsApp messages will fail.")
