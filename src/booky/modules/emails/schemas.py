from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from booky.modules.emails.models import EmailStatus, EmailType


class InitiateOfferRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    booking_id: uuid.UUID | None = Field(default=None, alias="bookingId")
    venue_id: str | None = Field(default=None, alias="venueId")
    venue_name: str | None = Field(default=None, alias="venueName")
    venue_slug: str | None = Field(default=None, alias="venueSlug")
    offer_amount: Decimal | None = Field(default=None, alias="offerAmount")
    show_date: datetime | None = Field(default=None, alias="showDate")
    recipient_email: str | None = Field(default=None, alias="recipientEmail")
    strategy: Literal["booking", "venue"] = "booking"

    def missing_fields(self) -> list[str]:
        required = {
            "bookingId": self.booking_id,
            "venueId": self.venue_id,
            "venueName": self.venue_name,
            "recipientEmail": self.recipient_email,
            "offerAmount": self.offer_amount,
            "showDate": self.show_date,
        }
        return [name for name, value in required.items() if not value]


class InitiateOfferResponse(BaseModel):
    bookingId: uuid.UUID
    venueId: str
    address_booking: str
    address_venue: str
    provider_message_id: str
    status: str
    echoId: str


class WebhookAck(BaseModel):
    ok: bool


class EmailOut(BaseModel):
    id: uuid.UUID
    booking_id: uuid.UUID
    type: EmailType
    subject: str
    body: str
    recipients: list[str]
    sent_at: datetime
    metadata: dict[str, Any] = Field(validation_alias="metadata_json")
    from_address: str
    provider_message_id: str | None
    status: EmailStatus
    created_at: datetime


class SendResultOut(BaseModel):
    ok: bool = True
    provider_message_id: str
    status: str
