from __future__ import annotations

import html
import uuid
from decimal import Decimal

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from booky.core.config import settings
from booky.core.logging import get_logger, log_event
from booky.core.models import utcnow
from booky.modules.bookings.models import BookingStatus
from booky.modules.bookings.service import get_booking, set_booking_status
from booky.modules.emails.models import Email, EmailType
from booky.modules.emails.service import send_booking_email
from booky.modules.mail.client import EmailClient
from booky.modules.mail.schemas import SendEmailResult
from booky.modules.payments.models import PaymentLink, PaymentStatus

logger = get_logger(__name__)

PAYMENT_EMAIL_SUBJECT = "Payment Request"


def list_payments(session: Session) -> list[PaymentLink]:
    return list(session.scalars(select(PaymentLink).order_by(PaymentLink.created_at.desc())))


def get_payment(session: Session, *, payment_id: uuid.UUID) -> PaymentLink:
    payment = session.scalar(select(PaymentLink).where(PaymentLink.id == payment_id))
    if not payment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="not_found")
    return payment


def create_payment(
    session: Session, *, booking_id: uuid.UUID, amount: Decimal, url: str | None = None
) -> PaymentLink:
    booking = get_booking(session, booking_id=booking_id)
    payment = PaymentLink(
        booking_id=booking.id,
        amount=amount,
        url=(url or "").strip() or None,
        status=PaymentStatus.PENDING,
    )
    session.add(payment)
    session.commit()
    session.refresh(payment)
    log_event(logger, "payment.created", payment_id=str(payment.id), booking_id=str(booking.id))
    return payment


def set_payment_status(
    session: Session, *, payment: PaymentLink, new_status: PaymentStatus
) -> PaymentLink:
    payment.status = new_status
    if new_status == PaymentStatus.PAID:
        payment.paid_at = utcnow()
    session.add(payment)
    session.commit()
    session.refresh(payment)

    if new_status == PaymentStatus.PAID:
        booking = get_booking(session, booking_id=payment.booking_id)
        set_booking_status(session, booking=booking, new_status=BookingStatus.PAID)

    log_event(logger, "payment.updated", payment_id=str(payment.id), status=new_status.value)
    return payment


def payment_link_for(payment: PaymentLink) -> str:
    if payment.url:
        return payment.url
    return f"{settings.payment_link_base_url.rstrip('/')}/{payment.id}"


def render_payment_html(payment: PaymentLink) -> str:
    link = html.escape(payment_link_for(payment), quote=True)
    return (
        "<div>"
        f"<p>Payment Request for booking {payment.booking_id}</p>"
        f"<p>Amount: ${payment.amount}</p>"
        f'<p><a href="{link}">Pay Now</a></p>'
        "</div>"
    )


async def send_payment_request(
    session: Session, client: EmailClient, *, payment: PaymentLink, recipient: str
) -> tuple[Email, SendEmailResult]:
    email, result = await send_booking_email(
        session,
        client,
        booking_id=payment.booking_id,
        email_type=EmailType.INVOICE,
        subject=PAYMENT_EMAIL_SUBJECT,
        body=render_payment_html(payment),
        recipient=recipient,
        metadata={"paymentId": str(payment.id)},
    )
    log_event(
        logger,
        "payment.request_sent",
        payment_id=str(payment.id),
        provider_message_id=result.id,
        status=result.status,
    )
    return email, result
