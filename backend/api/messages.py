import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends

from ..auth.jwt import get_current_user
from ..models.models import User
from ..schemas.schemas import LeaseRenewalReminderRequest, PaymentReminderRequest, SendMessageResult
from ..services import messaging

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/whatsapp", response_model=SendMessageResult)
def send_whatsapp(
    payload: Dict[str, Any] = Body(...),
    user: User = Depends(get_current_user),
) -> SendMessageResult:
    # Raw body so field errors come back as a result instead of a 422.
    logger.info("User %s sending WhatsApp message", user.id)
    return messaging.send_whatsapp_message(payload)


@router.post("/payment-reminder", response_model=SendMessageResult)
def send_payment_reminder(
    payload: PaymentReminderRequest,
    user: User = Depends(get_current_user),
) -> SendMessageResult:
    logger.info("User %s sending payment reminder", user.id)
    return messaging.send_payment_reminder(
        payload.tenant_phone,
        payload.tenant_name,
        payload.amount,
        payload.due_date,
        locale=payload.locale,
        currency_symbol=payload.currency_symbol,
    )


@router.post("/lease-renewal-reminder", response_model=SendMessageResult)
def send_lease_renewal_reminder(
    payload: LeaseRenewalReminderRequest,
    user: User = Depends(get_current_user),
) -> SendMessageResult:
    logger.info("User %s sending lease renewal reminder", user.id)
    return messaging.send_lease_renewal_reminder(
        payload.tenant_phone,
        payload.tenant_name,
        payload.lease_end_date,
        locale=payload.locale,
    )
