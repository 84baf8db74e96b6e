from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from ..config import settings

logger = logging.getLogger(__name__)

WHATSAPP_PREFIX = "whatsapp:"


class TwilioError(RuntimeError):
    pass


@dataclass
class WhatsAppSendResult:
    success: bool
    message_sid: Optional[str] = None
    status: Optional[str] = None
    error: Optional[str] = None


def _whatsapp_address(number: str) -> str:
    return number if number.startswith(WHATSAPP_PREFIX) else f"{WHATSAPP_PREFIX}{number}"


class TwilioClient:
    """Minimal client for the Twilio Messages REST resource."""

    def __init__(self, transport: Optional[httpx.BaseTransport] = None) -> None:
        self._timeout = httpx.Timeout(20.0)
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return settings.twilio_is_configured

    def _http_client(self) -> httpx.Client:
        if not self.is_configured:
            raise TwilioError(
                "Twilio credentials are not configured. Set TWILIO_ACCOUNT_SID and TWILIO_AUTH_TOKEN."
            )
        return httpx.Client(
            base_url=settings.twilio_api_base_url,
            auth=(settings.twilio_account_sid, settings.twilio_auth_token),
            timeout=self._timeout,
            transport=self._transport,
        )

    def _create_message(self, data: dict) -> dict:
        path = f"/Accounts/{settings.twilio_account_sid}/Messages.json"
        with self._http_client() as client:
            response = client.post(path, data=data)
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            detail = _error_detail(exc.response)
            logger.error("Twilio API error (POST %s): status=%s %s", path, exc.response.status_code, detail)
            raise TwilioError(detail) from exc
        try:
            return response.json()
        except ValueError:
            raise TwilioError("Unexpected response from Twilio API (non-JSON).")

    def send_whatsapp_message(self, to: str, body: str) -> WhatsAppSendResult:
        """Send ``body`` to ``to`` over WhatsApp; failures are returned, not raised."""
        try:
            payload = self._create_message(
                {
                    "To": _whatsapp_address(to),
                    "From": _whatsapp_address(settings.twilio_whatsapp_from),
                    "Body": body,
                }
            )
        except (TwilioError, httpx.HTTPError) as exc:
            logger.warning("WhatsApp dispatch failed: %s", exc)
            return WhatsAppSendResult(success=False, error=str(exc) or "Unknown error occurred")

        sid = payload.get("sid")
        if not sid:
            return WhatsAppSendResult(success=False, error="Twilio did not return a message SID.")
        return WhatsAppSendResult(success=True, message_sid=sid, status=payload.get("status"))


def _error_detail(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text or f"Twilio API responded with {response.status_code}"
    message = data.get("message") if isinstance(data, dict) else None
    return message or f"Twilio API responded with {response.status_code}"


twilio_client = TwilioClient()
