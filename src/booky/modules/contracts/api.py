from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from booky.api.deps import get_current_user, get_email_client
from booky.core.db import db_session
from booky.core.logging import get_logger, log_exception
from booky.modules.contracts.schemas import (
    ContractCreate,
    ContractOut,
    ContractSendRequest,
    ContractUpdate,
)
from booky.modules.contracts.service import (
    create_contract,
    get_contract,
    list_contracts,
    send_contract,
    update_contract,
)
from booky.modules.emails.schemas import SendResultOut
from booky.modules.identity.models import User
from booky.modules.mail.client import EmailClient

router = APIRouter(tags=["contracts"])
logger = get_logger(__name__)


@router.get("/contracts", response_model=list[ContractOut])
def list_contracts_endpoint(
    session: Session = Depends(db_session),
    _: User = Depends(get_current_user),
) -> list[ContractOut]:
    return [ContractOut.model_validate(c, from_attributes=True) for c in list_contracts(session)]


@router.post("/contracts", response_model=ContractOut)
def create_contract_endpoint(
    payload: ContractCreate,
    session: Session = Depends(db_session),
    _: User = Depends(get_current_user),
) -> ContractOut:
    contract = create_contract(
        session,
        booking_id=payload.booking_id,
        performance_date=payload.performance_date,
        amount=payload.amount,
        additional_terms=payload.additional_terms,
    )
    return ContractOut.model_validate(contract, from_attributes=True)


@router.patch("/contracts", response_model=ContractOut)
def update_contract_endpoint(
    payload: ContractUpdate,
    session: Session = Depends(db_session),
    _: User = Depends(get_current_user),
) -> ContractOut:
    contract = get_contract(session, contract_id=payload.id)
    contract = update_contract(
        session,
        contract=contract,
        new_status=payload.status,
        docusign_envelope_id=payload.docusign_envelope_id,
    )
    return ContractOut.model_validate(contract, from_attributes=True)


@router.post("/contracts/send", response_model=SendResultOut)
async def send_contract_endpoint(
    payload: ContractSendRequest,
    session: Session = Depends(db_session),
    client: EmailClient = Depends(get_email_client),
    _: User = Depends(get_current_user),
):
    if not payload.contract_id or not payload.recipient_email:
        return JSONResponse(status_code=400, content={"error": "missing_fields"})

    contract = get_contract(session, contract_id=payload.contract_id)
    try:
        _, result = await send_contract(
            session, client, contract=contract, recipient=payload.recipient_email
        )
    except HTTPException:
        raise
    except Exception:
        log_exception(logger, "contract.send.error", contract_id=str(contract.id))
        return JSONResponse(status_code=500, content={"error": "server_error"})
    return SendResultOut(provider_message_id=result.id, status=result.status)
