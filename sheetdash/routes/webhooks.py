"""Clerk webhook receiver"""
import json
import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse
from sqlalchemy.orm import Session

from ..auth import WebhookVerificationError, verify_webhook_signature
from ..config import settings
from ..db.session import get_db
from ..models import UserUpsert
from ..services import user_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Webhooks"])


def user_from_event(data: Dict[str, Any]) -> UserUpsert:
    """Map a Clerk user payload to a profile upsert"""
    first_name = data.get("first_name")
    last_name = data.get("last_name")
    name = f"{first_name or ''} {last_name or ''}".strip() or data.get("username") or "User"
    emails = data.get("email_addresses") or []
    email = (emails[0] or {}).get("email_address") or "" if emails else ""
    return UserUpsert(
        clerk_id=data["id"],
        name=name,
        email=email,
        image_url=data.get("image_url"),
        first_name=first_name,
        last_name=last_name
    )


async def handle_event(db: Session, event: Dict[str, Any]) -> None:
    event_type = event.get("type")
    data = event.get("data") or {}

    if event_type in ("user.created", "user.updated"):
        await user_service.create_or_update_user(db, user_from_event(data))
    elif event_type == "user.deleted":
        user_service.delete_user_by_clerk_id(db, data["id"])
    else:
        logger.info(f"Unhandled webhook event type: {event_type}")


@router.post("/clerk-webhook", response_class=PlainTextResponse)
async def clerk_webhook(request: Request, db: Session = Depends(get_db)):
    """Apply Clerk user events to the user table"""
    body = await request.body()

    if settings.CLERK_WEBHOOK_SECRET:
        try:
            verify_webhook_signature(
                body,
                request.headers,
                settings.CLERK_WEBHOOK_SECRET,
                tolerance=settings.CLERK_WEBHOOK_TOLERANCE
            )
        except WebhookVerificationError as e:
            logger.warning(f"Rejected webhook: {e}")
            return PlainTextResponse("Invalid signature", status_code=400)

    try:
        await handle_event(db, json.loads(body))
        return PlainTextResponse("OK", status_code=200)
    except Exception as e:
        logger.error(f"Webhook processing failed: {e}")
        return PlainTextResponse("Internal Server Error", status_code=500)
