from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from booky.modules.bookings.models import BookingStatus


class BookingCreate(BaseModel):
    venue_id: str = Field(min_length=1)
    venue_name: str = Field(min_length=1)
    contact_name: str | None = None
    contact_email: EmailStr | None = None
    event_type: str | None = None
    show_date: datetime | None = None
    guest_count: int | None = Field(default=None, ge=0)
    budget: Decimal | None = Field(default=None, ge=0)
    current_offer: Decimal | None = Field(default=None, ge=0)


class NegotiationEntry(BaseModel):
    date: datetime
    message: str
    sender: str
    type: str


class RenegotiateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    booking_id: uuid.UUID | None = Field(default=None, alias="bookingId")
    amount: Decimal | None = Field(default=None, ge=0)
    message: str | None = None
    send_email: bool = Field(default=False, alias="sendEmail")
    recipient_email: EmailStr | None = Field(default=None, alias="recipientEmail")


class BookingOut(BaseModel):
    id: uuid.UUID
    query_number: str
    owner_id: uuid.UUID | None
    venue_id: str
    venue_name: str
    contact_name: str | None
    contact_email: str | None
    event_type: str | None
    show_date: datetime | None
    guest_count: int | None
    budget: Decimal | None
    current_offer: Decimal | None
    status: BookingStatus
    negotiation_history: list[dict[str, Any]]
    intro_email_sent: bool
    created_at: datetime
    updated_at: datetime


class RenegotiateResponse(BaseModel):
    data: BookingOut
