import json
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..api.dependencies import get_db
from ..config import settings
from ..schemas.schemas import ClerkUserData, ClerkWebhookEvent
from ..services import users as user_service
from ..services.webhooks import WebhookVerificationError, missing_headers, verify_webhook

logger = logging.getLogger(__name__)

router = APIRouter()


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.post("/clerk")
async def clerk_webhook(request: Request, db: Session = Depends(get_db)):
    secret = settings.clerk_webhook_secret
    if not secret:
        logger.error("CLERK_WEBHOOK_SECRET is not set")
        return _error(500, "Webhook secret not configured")

    headers = {name: request.headers.get(name) for name in ("svix-id", "svix-timestamp", "svix-signature")}
    if missing_headers(headers):
        return _error(400, "Missing svix headers")

    body = await request.body()
    try:
        verify_webhook(secret, body, headers, tolerance_seconds=settings.webhook_tolerance_seconds)
    except WebhookVerificationError as exc:
        logger.warning("Rejected identity webhook %s: %s", headers["svix-id"], exc)
        return _error(400, "Invalid signature")

    try:
        event = ClerkWebhookEvent.model_validate(json.loads(body))
    except (ValueError, ValidationError):
        logger.warning("Identity webhook %s has a malformed payload", headers["svix-id"])
        return _error(400, "Invalid payload")

    if event.type in ("user.created", "user.updated"):
        try:
            data = ClerkUserData.model_validate(event.data)
        except ValidationError:
            return _error(400, "Invalid payload")
        email = data.primary_email
        if not data.id or not email:
            logger.error("No primary email found for user %s", data.id)
            return _error(400, "No primary email found")

        try:
            if event.type == "user.created":
                user_service.create_user(db, user_id=data.id, email=email, name=data.full_name)
            else:
                updated = user_service.update_user(db, data.id, email=email, name=data.full_name)
                if updated is None:
                    # Update arrived before (or without) the create event.
                    user_service.create_user(db, user_id=data.id, email=email, name=data.full_name)
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Failed to sync user %s from %s", data.id, event.type)
            action = "create" if event.type == "user.created" else "update"
            return _error(500, f"Failed to {action} user")

    elif event.type == "user.deleted":
        user_id = event.data.get("id")
        if not user_id:
            logger.error("No user ID found in delete event")
            return _error(400, "No user ID found")
        try:
            user_service.delete_user(db, user_id)
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Failed to delete user %s", user_id)
            return _error(500, "Failed to delete user")

    else:
        logger.debug("Ignoring identity webhook event %s", event.type)

    return {"success": True}
