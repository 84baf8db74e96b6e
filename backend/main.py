import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import messages, migrations, onboarding, owners, webhooks
from .config import Base, engine, settings
from .constants import APP_NAME, CORS_ALLOW_ORIGINS
from .core.errors import register_exception_handlers
from .core.logging import configure_logging
from .core.request_context import request_id_middleware
from .core.security import SecurityHeadersMiddleware, log_security_warnings
from .models import models  # noqa: F401  (registers tables on Base.metadata)

configure_logging(settings.log_level, settings.log_format)

logger = logging.getLogger(__name__)

app = FastAPI(title=f"{APP_NAME} API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[*settings.cors_origins, *CORS_ALLOW_ORIGINS],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(SecurityHeadersMiddleware)
app.middleware("http")(request_id_middleware)

register_exception_handlers(app)


@app.on_event("startup")
def startup() -> None:
    # In dev we make sure tables exist. Alembic migrations should be used for real schema evolution.
    Base.metadata.create_all(bind=engine)
    log_security_warnings(
        settings.jwt_key,
        settings.clerk_webhook_secret,
        settings.messaging_backend,
        settings.twilio_is_configured,
    )
    logger.info("%s API started (messaging backend=%s)", APP_NAME, settings.messaging_backend)


app.include_router(migrations.router, prefix="/api", tags=["migrations"])
app.include_router(webhooks.router, prefix="/api/webhooks", tags=["webhooks"])
app.include_router(onboarding.router, prefix="/onboarding", tags=["onboarding"])
app.include_router(messages.router, prefix="/messages", tags=["messages"])
app.include_router(owners.router, prefix="/owners", tags=["owners"])


@app.get("/health", tags=["system"])
def health() -> dict:
    return {"status": "ok"}
