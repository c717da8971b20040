from __future__ import annotations

from fastapi import APIRouter

from booky.modules.bookings.api import router as bookings_router
from booky.modules.contracts.api import router as contracts_router
from booky.modules.emails.api import router as emails_router
from booky.modules.identity.api import router as identity_router
from booky.modules.payments.api import router as payments_router
from booky.modules.recommendations.api import router as recommendations_router

router = APIRouter()

router.include_router(identity_router, prefix="/api")
router.include_router(bookings_router, prefix="/api")
router.include_router(emails_router, prefix="/api")
router.include_router(contracts_router, prefix="/api")
router.include_router(payments_router, prefix="/api")
router.include_router(recommendations_router, prefix="/api")


@router.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}
