from __future__ import annotations

import uuid
from decimal import Decimal

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from booky.core.logging import get_logger, log_event
from booky.modules.bookings.models import BookingStatus
from booky.modules.bookings.service import get_booking, set_booking_status
from booky.modules.contracts.models import Contract, ContractStatus
from booky.modules.emails.models import Email, EmailType
from booky.modules.emails.service import send_booking_email
from booky.modules.mail.client import EmailClient
from booky.modules.mail.schemas import SendEmailResult

logger = get_logger(__name__)

CONTRACT_EMAIL_SUBJECT = "Performance Contract"


def list_contracts(session: Session) -> list[Contract]:
    return list(session.scalars(select(Contract).order_by(Contract.created_at.desc())))


def get_contract(session: Session, *, contract_id: uuid.UUID) -> Contract:
    contract = session.scalar(select(Contract).where(Contract.id == contract_id))
    if not contract:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="not_found")
    return contract


def create_contract(
    session: Session,
    *,
    booking_id: uuid.UUID,
    performance_date=None,
    amount: Decimal | None = None,
    additional_terms: str | None = None,
) -> Contract:
    booking = get_booking(session, booking_id=booking_id)
    contract = Contract(
        booking_id=booking.id,
        performance_date=performance_date,
        amount=amount,
        additional_terms=(additional_terms or "").strip() or None,
        status=ContractStatus.DRAFT,
    )
    session.add(contract)
    session.commit()
    session.refresh(contract)
    log_event(logger, "contract.created", contract_id=str(contract.id), booking_id=str(booking.id))
    return contract


def update_contract(
    session: Session,
    *,
    contract: Contract,
    new_status: ContractStatus | None = None,
    docusign_envelope_id: str | None = None,
) -> Contract:
    if new_status is not None:
        contract.status = new_status
    if docusign_envelope_id:
        contract.docusign_envelope_id = docusign_envelope_id
    session.add(contract)
    session.commit()
    session.refresh(contract)

    if new_status == ContractStatus.SIGNED:
        booking = get_booking(session, booking_id=contract.booking_id)
        set_booking_status(session, booking=booking, new_status=BookingStatus.CONTRACTED)

    log_event(
        logger,
        "contract.updated",
        contract_id=str(contract.id),
        status=contract.status.value,
    )
    return contract


def render_contract_html(contract: Contract) -> str:
    amount = contract.amount if contract.amount is not None else ""
    return (
        "<div>"
        f"<p>Contract for booking {contract.booking_id}</p>"
        f"<p>Amount: ${amount}</p>"
        "</div>"
    )


async def send_contract(
    session: Session, client: EmailClient, *, contract: Contract, recipient: str
) -> tuple[Email, SendEmailResult]:
    email, result = await send_booking_email(
        session,
        client,
        booking_id=contract.booking_id,
        email_type=EmailType.CONFIRMATION,
        subject=CONTRACT_EMAIL_SUBJECT,
        body=render_contract_html(contract),
        recipient=recipient,
        metadata={"contractId": str(contract.id)},
    )
    contract.status = ContractStatus.SENT
    session.add(contract)
    session.commit()
    log_event(
        logger,
        "contract.sent",
        contract_id=str(contract.id),
        provider_message_id=result.id,
        status=result.status,
    )
    return email, result
