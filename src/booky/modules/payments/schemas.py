from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from booky.modules.payments.models import PaymentStatus


class PaymentCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    booking_id: uuid.UUID | None = Field(default=None, alias="bookingId")
    amount: Decimal | None = Field(default=None, ge=0)
    url: str | None = None


class PaymentUpdate(BaseModel):
    id: uuid.UUID | None = None
    status: PaymentStatus | None = None


class PaymentSendRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    payment_id: uuid.UUID | None = Field(default=None, alias="paymentId")
    recipient_email: str | None = Field(default=None, alias="recipientEmail")


class PaymentOut(BaseModel):
    id: uuid.UUID
    booking_id: uuid.UUID
    amount: Decimal
    url: str | None
    status: PaymentStatus
    paid_at: datetime | None
    created_at: datetime
    updated_at: datetime
