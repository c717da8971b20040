from __future__ import annotations

import enum
import uuid
from datetime import datetime

from sqlalchemy import JSON, DateTime, Enum, ForeignKey, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from booky.core.models import Base, Timestamped, UUIDPrimaryKey, utcnow


class EmailType(str, enum.Enum):
    OFFER = "offer"
    CONFIRMATION = "confirmation"
    INVOICE = "invoice"


class EmailStatus(str, enum.Enum):
    QUEUED = "queued"
    SENT = "sent"
    FAILED = "failed"


class MailInbox(UUIDPrimaryKey, Timestamped, Base):
    __tablename__ = "emails_mail_inbox"
    __table_args__ = (
        UniqueConstraint("booking_id", "venue_id", name="uq_mail_inbox_booking_venue"),
    )

    booking_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("bookings_booking_query.id"), index=True
    )
    venue_id: Mapped[str] = mapped_column(String(100))
    address_booking: Mapped[str] = mapped_column(String(320))
    address_venue: Mapped[str] = mapped_column(String(320))
    selected_from: Mapped[str | None] = mapped_column(String(320), nullable=True)
    provider: Mapped[str] = mapped_column(String(50), default="agentmail")

    booking = relationship("BookingQuery")


class Email(UUIDPrimaryKey, Timestamped, Base):
    __tablename__ = "emails_email"

    booking_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("bookings_booking_query.id"), index=True
    )
    type: Mapped[EmailType] = mapped_column(Enum(EmailType, native_enum=False))
    subject: Mapped[str] = mapped_column(String(500))
    body: Mapped[str] = mapped_column(Text)
    recipients: Mapped[list] = mapped_column(JSON, default=list)
    sent_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    metadata_json: Mapped[dict] = mapped_column("metadata", JSON, default=dict)
    from_address: Mapped[str] = mapped_column(String(320))
    provider_message_id: Mapped[str | None] = mapped_column(
        String(200), nullable=True, index=True
    )
    status: Mapped[EmailStatus] = mapped_column(
        Enum(EmailStatus, native_enum=False), default=EmailStatus.SENT, index=True
    )

    booking = relationship("BookingQuery")
