from __future__ import annotations

import html
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from booky.api.deps import get_current_user, get_email_client
from booky.core.db import db_session
from booky.core.logging import get_logger, log_exception
from booky.modules.bookings.schemas import (
    BookingCreate,
    BookingOut,
    RenegotiateRequest,
    RenegotiateResponse,
)
from booky.modules.bookings.service import (
    append_counter_offer,
    create_booking,
    get_booking,
    list_bookings,
)
from booky.modules.emails.models import EmailType
from booky.modules.emails.service import send_booking_email
from booky.modules.identity.models import User
from booky.modules.mail.client import EmailClient

router = APIRouter(tags=["bookings"])
logger = get_logger(__name__)


@router.post("/bookings", response_model=BookingOut)
def create_booking_endpoint(
    payload: BookingCreate,
    session: Session = Depends(db_session),
    user: User = Depends(get_current_user),
) -> BookingOut:
    booking = create_booking(session, owner_id=user.id, **payload.model_dump())
    return BookingOut.model_validate(booking, from_attributes=True)


@router.get("/bookings", response_model=list[BookingOut])
def list_bookings_endpoint(
    limit: int | None = Query(default=None, ge=1, le=500),
    session: Session = Depends(db_session),
    _: User = Depends(get_current_user),
) -> list[BookingOut]:
    return [
        BookingOut.model_validate(b, from_attributes=True)
        for b in list_bookings(session, limit=limit)
    ]


@router.get("/bookings/{booking_id}", response_model=BookingOut)
def get_booking_endpoint(
    booking_id: uuid.UUID,
    session: Session = Depends(db_session),
    _: User = Depends(get_current_user),
) -> BookingOut:
    booking = get_booking(session, booking_id=booking_id)
    return BookingOut.model_validate(booking, from_attributes=True)


def render_counter_offer_html(*, booking_id: uuid.UUID, message: str | None, amount) -> str:
    parts = [
        f"<p>Counter-offer for booking {booking_id}</p>",
        f"<p>{html.escape(message or '')}</p>",
    ]
    if amount is not None:
        parts.append(f"<p>Amount: ${amount}</p>")
    return "<div>" + "".join(parts) + "</div>"


@router.post("/bookings/reneg", response_model=RenegotiateResponse)
async def renegotiate_endpoint(
    payload: RenegotiateRequest,
    session: Session = Depends(db_session),
    client: EmailClient = Depends(get_email_client),
    _: User = Depends(get_current_user),
):
    if not payload.booking_id:
        return JSONResponse(status_code=400, content={"error": "missing_fields"})

    booking = get_booking(session, booking_id=payload.booking_id)
    booking = append_counter_offer(
        session, booking=booking, amount=payload.amount, message=payload.message
    )

    if payload.send_email and payload.recipient_email:
        try:
            await send_booking_email(
                session,
                client,
                booking_id=booking.id,
                email_type=EmailType.OFFER,
                subject="Counter-offer",
                body=render_counter_offer_html(
                    booking_id=booking.id, message=payload.message, amount=payload.amount
                ),
                recipient=str(payload.recipient_email),
                metadata={"reneg": True},
            )
        except HTTPException:
            raise
        except Exception:
            log_exception(logger, "booking.reneg.email_error", booking_id=str(booking.id))
            return JSONResponse(status_code=500, content={"error": "server_error"})

    return RenegotiateResponse(data=BookingOut.model_validate(booking, from_attributes=True))
