from __future__ import annotations

import enum
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Enum, ForeignKey, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from booky.core.models import Base, Timestamped, UUIDPrimaryKey


class ContractStatus(str, enum.Enum):
    DRAFT = "draft"
    SENT = "sent"
    SIGNED = "signed"
    CANCELED = "canceled"


class Contract(UUIDPrimaryKey, Timestamped, Base):
    __tablename__ = "contracts_contract"

    booking_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("bookings_booking_query.id"), index=True
    )
    performance_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    additional_terms: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[ContractStatus] = mapped_column(
        Enum(ContractStatus, native_enum=False), default=ContractStatus.DRAFT, index=True
    )
    docusign_envelope_id: Mapped[str | None] = mapped_column(String(200), nullable=True)

    booking = relationship("BookingQuery")
