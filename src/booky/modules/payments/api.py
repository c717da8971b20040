from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from booky.api.deps import get_current_user, get_email_client
from booky.core.db import db_session
from booky.core.logging import get_logger, log_exception
from booky.modules.emails.schemas import SendResultOut
from booky.modules.identity.models import User
from booky.modules.mail.client import EmailClient
from booky.modules.payments.schemas import (
    PaymentCreate,
    PaymentOut,
    PaymentSendRequest,
    PaymentUpdate,
)
from booky.modules.payments.service import (
    create_payment,
    get_payment,
    list_payments,
    send_payment_request,
    set_payment_status,
)

router = APIRouter(tags=["payments"])
logger = get_logger(__name__)


def _missing_fields() -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": "missing_fields"})


@router.get("/payments", response_model=list[PaymentOut])
def list_payments_endpoint(
    session: Session = Depends(db_session),
    _: User = Depends(get_current_user),
) -> list[PaymentOut]:
    return [PaymentOut.model_validate(p, from_attributes=True) for p in list_payments(session)]


@router.post("/payments", response_model=PaymentOut)
def create_payment_endpoint(
    payload: PaymentCreate,
    session: Session = Depends(db_session),
    _: User = Depends(get_current_user),
):
    if not payload.booking_id or not payload.amount:
        return _missing_fields()
    payment = create_payment(
        session, booking_id=payload.booking_id, amount=payload.amount, url=payload.url
    )
    return PaymentOut.model_validate(payment, from_attributes=True)


@router.patch("/payments", response_model=PaymentOut)
def update_payment_endpoint(
    payload: PaymentUpdate,
    session: Session = Depends(db_session),
    _: User = Depends(get_current_user),
):
    if not payload.id or not payload.status:
        return _missing_fields()
    payment = get_payment(session, payment_id=payload.id)
    payment = set_payment_status(session, payment=payment, new_status=payload.status)
    return PaymentOut.model_validate(payment, from_attributes=True)


@router.post("/payments/send", response_model=SendResultOut)
async def send_payment_endpoint(
    payload: PaymentSendRequest,
    session: Session = Depends(db_session),
    client: EmailClient = Depends(get_email_client),
    _: User = Depends(get_current_user),
):
    if not payload.payment_id or not payload.recipient_email:
        return _missing_fields()

    payment = get_payment(session, payment_id=payload.payment_id)
    try:
        _, result = await send_payment_request(
            session, client, payment=payment, recipient=payload.recipient_email
        )
    except HTTPException:
        raise
    except Exception:
        log_exception(logger, "payment.send.error", payment_id=str(payment.id))
        return JSONResponse(status_code=500, content={"error": "server_error"})
    return SendResultOut(provider_message_id=result.id, status=result.status)
