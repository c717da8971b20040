from __future__ import annotations

import html
import logging
import re
import secrets
import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from fastapi import HTTPException, status
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from booky.core.config import settings
from booky.core.http import HttpRequestError
from booky.core.logging import get_logger, log_event
from booky.modules.bookings.service import get_booking, mark_offer_sent
from booky.modules.emails.models import Email, EmailStatus, EmailType, MailInbox
from booky.modules.emails.schemas import InitiateOfferRequest, InitiateOfferResponse
from booky.modules.mail.client import EmailClient
from booky.modules.mail.schemas import SendEmailInput, SendEmailResult

logger = get_logger(__name__)

_WEBHOOK_STATUS: dict[str, EmailStatus] = {
    "email.bounced": EmailStatus.FAILED,
    "email.delivered": EmailStatus.SENT,
}


@dataclass(frozen=True)
class BookingAddresses:
    booking: str
    venue: str


def slugify(value: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")


def build_addresses(
    *, booking_id: uuid.UUID, venue_name: str, venue_slug: str | None, domain: str
) -> BookingAddresses:
    slug = venue_slug if venue_slug else slugify(venue_name)
    return BookingAddresses(booking=f"bq-{booking_id}@{domain}", venue=f"{slug}@{domain}")


def format_sender(address: str, *, name: str | None = None) -> str:
    return f"{name or settings.agentmail_from_name} <{address}>"


async def provision_addresses(
    client: EmailClient,
    addresses: BookingAddresses,
    *,
    booking_id: uuid.UUID,
    venue_id: str,
) -> None:
    metadata = {"booking_id": str(booking_id), "venue_id": venue_id}
    try:
        await client.create_inbox(addresses.booking, metadata=metadata)
    except HttpRequestError as e:
        if e.status != 409:
            raise
        log_event(logger, "mail.inbox.exists", address=addresses.booking)

    alias = await client.get_alias(addresses.venue)
    if alias is None:
        await client.create_alias(addresses.venue, addresses.booking, metadata=metadata)


def get_inbox_for_booking(session: Session, *, booking_id: uuid.UUID) -> MailInbox | None:
    return session.scalar(
        select(MailInbox).where(MailInbox.booking_id == booking_id).limit(1)
    )


def upsert_inbox(
    session: Session,
    *,
    booking_id: uuid.UUID,
    venue_id: str,
    addresses: BookingAddresses,
    selected_from: str | None = None,
) -> MailInbox:
    inbox = session.scalar(
        select(MailInbox).where(
            MailInbox.booking_id == booking_id,
            MailInbox.venue_id == venue_id,
        )
    )
    if not inbox:
        inbox = MailInbox(booking_id=booking_id, venue_id=venue_id, provider="agentmail")
    inbox.address_booking = addresses.booking
    inbox.address_venue = addresses.venue
    if selected_from:
        inbox.selected_from = selected_from
    session.add(inbox)
    session.commit()
    session.refresh(inbox)
    return inbox


def resolve_sender_address(session: Session, *, booking_id: uuid.UUID) -> str:
    inbox = get_inbox_for_booking(session, booking_id=booking_id)
    if inbox and inbox.selected_from:
        return inbox.selected_from
    if inbox and inbox.address_booking:
        return inbox.address_booking
    return f"bq-{booking_id}@{settings.agentmail_domain}"


def _email_status(result: SendEmailResult | None) -> EmailStatus:
    if result is None:
        return EmailStatus.SENT
    try:
        return EmailStatus(result.status)
    except ValueError:
        return EmailStatus.QUEUED


def record_email(
    session: Session,
    *,
    booking_id: uuid.UUID,
    email_type: EmailType,
    subject: str,
    body: str,
    recipients: list[str],
    from_address: str,
    result: SendEmailResult | None = None,
    metadata: dict[str, Any] | None = None,
) -> Email:
    email = Email(
        booking_id=booking_id,
        type=email_type,
        subject=subject,
        body=body,
        recipients=list(recipients),
        metadata_json=metadata or {},
        from_address=from_address,
        provider_message_id=result.id if result else None,
        status=_email_status(result),
    )
    session.add(email)
    session.commit()
    session.refresh(email)
    return email


def list_emails(session: Session, *, booking_id: uuid.UUID | None = None) -> list[Email]:
    stmt = select(Email).order_by(Email.sent_at.desc())
    if booking_id:
        stmt = stmt.where(Email.booking_id == booking_id)
    return list(session.scalars(stmt))


async def send_booking_email(
    session: Session,
    client: EmailClient,
    *,
    booking_id: uuid.UUID,
    email_type: EmailType,
    subject: str,
    body: str,
    recipient: str,
    metadata: dict[str, Any] | None = None,
) -> tuple[Email, SendEmailResult]:
    from_address = resolve_sender_address(session, booking_id=booking_id)
    result = await client.send(
        SendEmailInput(
            from_address=format_sender(from_address),
            to=[recipient],
            subject=subject,
            html=body,
        )
    )
    email = record_email(
        session,
        booking_id=booking_id,
        email_type=email_type,
        subject=subject,
        body=body,
        recipients=[recipient],
        from_address=from_address,
        result=result,
        metadata=metadata,
    )
    log_event(
        logger,
        "mail.booking_email.sent",
        booking_id=str(booking_id),
        email_type=email_type.value,
        provider_message_id=result.id,
        status=result.status,
    )
    return email, result


def render_offer_html(*, venue_name: str, show_date, offer_amount: Decimal) -> str:
    when = show_date.strftime("%B %d, %Y %I:%M %p")
    return (
        "<div>"
        f"<p>Offer for {html.escape(venue_name)}</p>"
        f"<p>Date: {when}</p>"
        f"<p>Offer Amount: ${offer_amount:,}</p>"
        "</div>"
    )


async def initiate_offer(
    session: Session, client: EmailClient, payload: InitiateOfferRequest
) -> InitiateOfferResponse:
    if payload.missing_fields():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="missing_fields")

    booking = get_booking(session, booking_id=payload.booking_id)
    addresses = build_addresses(
        booking_id=booking.id,
        venue_name=payload.venue_name,
        venue_slug=payload.venue_slug,
        domain=settings.agentmail_domain,
    )
    await provision_addresses(client, addresses, booking_id=booking.id, venue_id=payload.venue_id)

    selected_from = addresses.venue if payload.strategy == "venue" else addresses.booking
    subject = f"Offer for {payload.venue_name}"
    body = render_offer_html(
        venue_name=payload.venue_name,
        show_date=payload.show_date,
        offer_amount=payload.offer_amount,
    )
    result = await client.send(
        SendEmailInput(
            from_address=format_sender(selected_from),
            to=[payload.recipient_email],
            subject=subject,
            html=body,
        )
    )

    upsert_inbox(
        session,
        booking_id=booking.id,
        venue_id=payload.venue_id,
        addresses=addresses,
        selected_from=selected_from,
    )
    record_email(
        session,
        booking_id=booking.id,
        email_type=EmailType.OFFER,
        subject=subject,
        body=body,
        recipients=[payload.recipient_email],
        from_address=selected_from,
        result=result,
        metadata={"venueId": payload.venue_id, "venueName": payload.venue_name},
    )
    mark_offer_sent(session, booking=booking)

    log_event(
        logger,
        "mail.offer.initiated",
        booking_id=str(booking.id),
        venue_id=payload.venue_id,
        provider_message_id=result.id,
        status=result.status,
    )
    return InitiateOfferResponse(
        bookingId=booking.id,
        venueId=payload.venue_id,
        address_booking=addresses.booking,
        address_venue=addresses.venue,
        provider_message_id=result.id,
        status=result.status,
        echoId=f"am_{secrets.token_hex(8)}",
    )


def apply_webhook_event(session: Session, payload: dict[str, Any]) -> int:
    event = payload.get("event")
    data = payload.get("data") or {}
    if not isinstance(data, dict):
        raise ValueError("Webhook data must be an object")

    new_status = _WEBHOOK_STATUS.get(str(event))
    message_id = data.get("message_id") or data.get("id")
    if new_status is None or not message_id:
        log_event(logger, "mail.webhook.ignored", level=logging.DEBUG, webhook_event=event)
        return 0

    result = session.execute(
        update(Email)
        .where(Email.provider_message_id == str(message_id))
        .values(status=new_status)
    )
    session.commit()
    log_event(
        logger,
        "mail.webhook.applied",
        webhook_event=event,
        provider_message_id=str(message_id),
        status=new_status.value,
        updated=result.rowcount,
    )
    return result.rowcount
