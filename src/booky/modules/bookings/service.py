from __future__ import annotations

import secrets
import uuid
from decimal import Decimal

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from booky.core.models import utcnow
from booky.modules.bookings.models import BookingQuery, BookingStatus


def _new_query_number() -> str:
    return f"BQ-{secrets.token_hex(4).upper()}"


def create_booking(
    session: Session,
    *,
    owner_id: uuid.UUID | None,
    venue_id: str,
    venue_name: str,
    **fields,
) -> BookingQuery:
    booking = BookingQuery(
        query_number=_new_query_number(),
        owner_id=owner_id,
        venue_id=venue_id.strip(),
        venue_name=venue_name.strip(),
        status=BookingStatus.NEW,
        negotiation_history=[],
        intro_email_sent=False,
        **fields,
    )
    session.add(booking)
    session.commit()
    session.refresh(booking)
    return booking


def list_bookings(session: Session, *, limit: int | None = None) -> list[BookingQuery]:
    stmt = select(BookingQuery).order_by(BookingQuery.updated_at.desc())
    if limit:
        stmt = stmt.limit(limit)
    return list(session.scalars(stmt))


def get_booking(session: Session, *, booking_id: uuid.UUID) -> BookingQuery:
    booking = session.scalar(select(BookingQuery).where(BookingQuery.id == booking_id))
    if not booking:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="not_found")
    return booking


def counter_offer_message(*, amount: Decimal | None, message: str | None) -> str:
    if message:
        return message
    if amount:
        return f"Counter-offer: ${amount}"
    return "Counter-offer"


def append_counter_offer(
    session: Session,
    *,
    booking: BookingQuery,
    amount: Decimal | None = None,
    message: str | None = None,
) -> BookingQuery:
    entry = {
        "date": utcnow().isoformat(),
        "message": counter_offer_message(amount=amount, message=message),
        "sender": "user",
        "type": "counter",
    }
    history = list(booking.negotiation_history or [])
    # JSON columns are only persisted on reassignment.
    booking.negotiation_history = [*history, entry]
    if amount is not None:
        booking.current_offer = amount
    session.add(booking)
    session.commit()
    session.refresh(booking)
    return booking


def mark_offer_sent(session: Session, *, booking: BookingQuery) -> BookingQuery:
    booking.status = BookingStatus.NEGOTIATING
    booking.intro_email_sent = True
    session.add(booking)
    session.commit()
    session.refresh(booking)
    return booking


def set_booking_status(
    session: Session, *, booking: BookingQuery, new_status: BookingStatus
) -> BookingQuery:
    booking.status = new_status
    session.add(booking)
    session.commit()
    session.refresh(booking)
    return booking
