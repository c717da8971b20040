from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from booky.modules.contracts.models import ContractStatus


class ContractCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    booking_id: uuid.UUID = Field(alias="bookingId")
    performance_date: datetime | None = Field(default=None, alias="performanceDate")
    amount: Decimal | None = Field(default=None, ge=0)
    additional_terms: str | None = Field(default=None, alias="additionalTerms")


class ContractUpdate(BaseModel):
    id: uuid.UUID
    status: ContractStatus | None = None
    docusign_envelope_id: str | None = None


class ContractSendRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    contract_id: uuid.UUID | None = Field(default=None, alias="contractId")
    recipient_email: str | None = Field(default=None, alias="recipientEmail")


class ContractOut(BaseModel):
    id: uuid.UUID
    booking_id: uuid.UUID
    performance_date: datetime | None
    amount: Decimal | None
    additional_terms: str | None
    status: ContractStatus
    docusign_envelope_id: str | None
    created_at: datetime
    updated_at: datetime
