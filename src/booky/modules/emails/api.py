from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from booky.api.deps import get_current_user, get_email_client
from booky.core.db import db_session
from booky.core.logging import get_logger, log_exception
from booky.modules.emails.schemas import (
    EmailOut,
    InitiateOfferRequest,
    InitiateOfferResponse,
    WebhookAck,
)
from booky.modules.emails.service import apply_webhook_event, initiate_offer, list_emails
from booky.modules.identity.models import User
from booky.modules.mail.client import EmailClient

router = APIRouter(tags=["emails"])
logger = get_logger(__name__)


@router.post("/agentmail/initiate", response_model=InitiateOfferResponse)
async def initiate_offer_endpoint(
    payload: InitiateOfferRequest,
    session: Session = Depends(db_session),
    client: EmailClient = Depends(get_email_client),
    _: User = Depends(get_current_user),
):
    if payload.missing_fields():
        return JSONResponse(status_code=400, content={"error": "missing_fields"})
    try:
        return await initiate_offer(session, client, payload)
    except HTTPException:
        raise
    except Exception:
        log_exception(logger, "mail.offer.error", booking_id=str(payload.booking_id))
        return JSONResponse(status_code=500, content={"error": "server_error"})


@router.post("/agentmail/webhook", response_model=WebhookAck)
async def agentmail_webhook(request: Request, session: Session = Depends(db_session)):
    try:
        payload = await request.json()
        if not isinstance(payload, dict):
            raise ValueError("Webhook payload must be an object")
        apply_webhook_event(session, payload)
    except ValueError:
        log_exception(logger, "mail.webhook.rejected")
        return JSONResponse(status_code=400, content={"ok": False})
    return WebhookAck(ok=True)


@router.get("/emails", response_model=list[EmailOut])
def list_emails_endpoint(
    booking_id: uuid.UUID | None = None,
    session: Session = Depends(db_session),
    _: User = Depends(get_current_user),
) -> list[EmailOut]:
    emails = list_emails(session, booking_id=booking_id)
    return [EmailOut.model_validate(e, from_attributes=True) for e in emails]
