from __future__ import annotations

import enum
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import JSON, Boolean, DateTime, Enum, ForeignKey, Integer, Numeric, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from booky.core.models import Base, Timestamped, UUIDPrimaryKey


class BookingStatus(str, enum.Enum):
    NEW = "new"
    NEGOTIATING = "negotiating"
    ACCEPTED = "accepted"
    CONTRACTED = "contracted"
    PAID = "paid"
    COMPLETED = "completed"
    DECLINED = "declined"


class BookingQuery(UUIDPrimaryKey, Timestamped, Base):
    __tablename__ = "bookings_booking_query"

    query_number: Mapped[str] = mapped_column(String(20), unique=True, index=True)
    owner_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("identity_user.id"), nullable=True, index=True
    )

    venue_id: Mapped[str] = mapped_column(String(100), index=True)
    venue_name: Mapped[str] = mapped_column(String(200))
    contact_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    contact_email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    event_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    show_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    guest_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    budget: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    current_offer: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)

    status: Mapped[BookingStatus] = mapped_column(
        Enum(BookingStatus, native_enum=False), default=BookingStatus.NEW, index=True
    )
    negotiation_history: Mapped[list] = mapped_column(JSON, default=list)
    intro_email_sent: Mapped[bool] = mapped_column(Boolean, default=False)

    owner = relationship("User")
