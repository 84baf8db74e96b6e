"""WhatsApp messaging for tenants.

Every send goes through :func:`send_whatsapp_message`, which validates the input,
normalizes the destination number, optionally wraps the body in a localized
greeting, and hands it to the configured gateway. Results are always returned as
:class:`SendMessageResult`; nothing raises out of this module.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Protocol, Union

from pydantic import ValidationError

from ..config import settings
from ..constants import APP_NAME, DEFAULT_LOCALE
from ..schemas.schemas import SendMessageRequest, SendMessageResult
from .twilio import WhatsAppSendResult, twilio_client

logger = logging.getLogger(__name__)

PHONE_RE = re.compile(r"^\+[1-9]\d{10,14}$")
NON_PHONE_CHARS_RE = re.compile(r"[^\d+]")
DEFAULT_COUNTRY_CODE = "+1"

SUCCESS_MESSAGE = "Message sent successfully!"
INVALID_PHONE_ERROR = "Invalid phone number format. Please use format: +1234567890"
INVALID_INPUT_ERROR = "Invalid input data"
GATEWAY_FAILURE_ERROR = "Failed to send message"
UNEXPECTED_ERROR = "An unexpected error occurred while sending the message"

TEMPLATES: Dict[str, Dict[str, str]] = {
    "en": {
        "greeting": "Hello",
        "closing": f"Best regards,\n{APP_NAME} Team",
        "payment_reminder": (
            "This is a friendly reminder that your rent payment of {amount} is due on {due_date}. "
            "Please make your payment as soon as possible to avoid any late fees. Thank you!"
        ),
        "lease_renewal": (
            "Your lease is set to expire on {end_date}. Please contact us to discuss renewal options "
            "or schedule a move-out inspection. We'd love to have you stay!"
        ),
    },
    "es": {
        "greeting": "Hola",
        "closing": f"Saludos cordiales,\nEquipo {APP_NAME}",
        "payment_reminder": (
            "Este es un recordatorio amigable de que su pago de alquiler de {amount} vence el {due_date}. "
            "Por favor realice su pago lo antes posible para evitar cargos por demora. ¡Gracias!"
        ),
        "lease_renewal": (
            "Su contrato de arrendamiento está programado para expirar el {end_date}. Por favor contáctenos "
            "para discutir opciones de renovación o programar una inspección de salida. "
            "¡Nos encantaría que se quede!"
        ),
    },
    "fr": {
        "greeting": "Bonjour",
        "closing": f"Cordialement,\nÉquipe {APP_NAME}",
        "payment_reminder": (
            "Ceci est un rappel amical que votre paiement de loyer de {amount} est dû le {due_date}. "
            "Veuillez effectuer votre paiement dès que possible pour éviter des frais de retard. Merci !"
        ),
        "lease_renewal": (
            "Votre bail est prévu pour expirer le {end_date}. Veuillez nous contacter pour discuter des "
            "options de renouvellement ou planifier une inspection de sortie. Nous aimerions que vous restiez !"
        ),
    },
}


class MessageGateway(Protocol):
    def send_whatsapp_message(self, to: str, body: str) -> WhatsAppSendResult: ...


class LocalMessageGateway:
    """Writes outgoing messages to ``messages_output_dir`` instead of sending them."""

    def send_whatsapp_message(self, to: str, body: str) -> WhatsAppSendResult:
        timestamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S%f")
        digits = to.lstrip("+")
        output_dir = Path(settings.messages_output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        path = output_dir / f"{timestamp}_{digits}.txt"
        path.write_text("\n".join([f"To: whatsapp:{to}", "", body]), encoding="utf-8")
        logger.info("[LOCAL WHATSAPP] %s", path)
        return WhatsAppSendResult(success=True, message_sid=f"local-{timestamp}", status="queued")


def _templates(locale: Optional[str]) -> Dict[str, str]:
    return TEMPLATES.get(locale or DEFAULT_LOCALE, TEMPLATES[DEFAULT_LOCALE])


def _mask_phone(value: str) -> str:
    if len(value) <= 4:
        return "***"
    return f"***{value[-4:]}"


def _first_issue(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return INVALID_INPUT_ERROR
    error = errors[0]
    ctx = error.get("ctx") or {}
    if isinstance(ctx.get("error"), ValueError):
        return str(ctx["error"])
    return error.get("msg") or INVALID_INPUT_ERROR


def format_phone_number(phone_number: str) -> str:
    """Strip formatting; numbers without a country code are assumed North American."""
    cleaned = NON_PHONE_CHARS_RE.sub("", phone_number)
    if not cleaned.startswith("+"):
        return f"{DEFAULT_COUNTRY_CODE}{cleaned}"
    return cleaned


def is_valid_phone_number(phone_number: str) -> bool:
    return bool(PHONE_RE.match(NON_PHONE_CHARS_RE.sub("", phone_number)))


def compose_message(message: str, tenant_name: Optional[str], locale: Optional[str]) -> str:
    if not tenant_name:
        return message
    template = _templates(locale)
    return f"{template['greeting']} {tenant_name},\n\n{message}\n\n{template['closing']}"


def get_default_gateway() -> MessageGateway:
    backend = (settings.messaging_backend or "local").strip().lower()
    if backend == "twilio":
        return twilio_client
    return LocalMessageGateway()


def send_whatsapp_message(
    payload: Union[SendMessageRequest, Mapping[str, Any]],
    gateway: Optional[MessageGateway] = None,
) -> SendMessageResult:
    try:
        request = (
            payload if isinstance(payload, SendMessageRequest) else SendMessageRequest.model_validate(dict(payload))
        )
    except ValidationError as exc:
        error = _first_issue(exc)
        logger.info("Rejected WhatsApp message: %s", error)
        return SendMessageResult(success=False, error=error)
    except (TypeError, ValueError):
        logger.info("Rejected WhatsApp message: payload is not an object")
        return SendMessageResult(success=False, error=INVALID_INPUT_ERROR)

    try:
        phone = format_phone_number(request.to)
        if not is_valid_phone_number(phone):
            logger.info("Rejected WhatsApp message to %s: invalid phone number", _mask_phone(phone))
            return SendMessageResult(success=False, error=INVALID_PHONE_ERROR)

        body = compose_message(request.message, request.tenant_name, request.locale)
        gateway = gateway or get_default_gateway()
        logger.info(
            "Dispatching WhatsApp message to=%s locale=%s length=%d",
            _mask_phone(phone),
            request.locale,
            len(body),
        )
        result = gateway.send_whatsapp_message(phone, body)
        if result.success:
            logger.info("WhatsApp message to %s accepted (sid=%s)", _mask_phone(phone), result.message_sid)
            return SendMessageResult(success=True, message=SUCCESS_MESSAGE, message_sid=result.message_sid)
        logger.warning("WhatsApp message to %s failed: %s", _mask_phone(phone), result.error)
        return SendMessageResult(success=False, error=result.error or GATEWAY_FAILURE_ERROR)
    except Exception:
        logger.exception("Unexpected error sending WhatsApp message")
        return SendMessageResult(success=False, error=UNEXPECTED_ERROR)


def send_payment_reminder(
    tenant_phone: str,
    tenant_name: str,
    amount: float,
    due_date: str,
    locale: str = DEFAULT_LOCALE,
    currency_symbol: str = "$",
    gateway: Optional[MessageGateway] = None,
) -> SendMessageResult:
    try:
        message = _templates(locale)["payment_reminder"].format(
            amount=f"{currency_symbol}{float(amount):.2f}",
            due_date=due_date,
        )
    except (TypeError, ValueError):
        logger.info("Rejected payment reminder: invalid amount %r", amount)
        return SendMessageResult(success=False, error=INVALID_INPUT_ERROR)
    return send_whatsapp_message(
        {"to": tenant_phone, "message": message, "tenant_name": tenant_name, "locale": locale},
        gateway=gateway,
    )


def send_lease_renewal_reminder(
    tenant_phone: str,
    tenant_name: str,
    lease_end_date: str,
    locale: str = DEFAULT_LOCALE,
    gateway: Optional[MessageGateway] = None,
) -> SendMessageResult:
    try:
        message = _templates(locale)["lease_renewal"].format(end_date=lease_end_date)
    except (TypeError, ValueError):
        logger.info("Rejected lease renewal reminder: invalid end date")
        return SendMessageResult(success=False, error=INVALID_INPUT_ERROR)
    return send_whatsapp_message(
        {"to": tenant_phone, "message": message, "tenant_name": tenant_name, "locale": locale},
        gateway=gateway,
    )
