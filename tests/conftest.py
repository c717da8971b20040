from __future__ import annotations

import os
import uuid
from typing import Any

import pytest

# Set env before any booky imports (settings/engine are created at import time).
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite:///./.booky_test.db")
os.environ["AGENTMAIL_DEV_MODE"] = "true"
os.environ["GROQ_API_KEY"] = ""
os.environ["RECOMMENDATION_CACHE_BACKEND"] = "memory"


@pytest.fixture(autouse=True)
def _reset_db() -> None:
    from booky.core.db import create_schema

    create_schema(drop_first=True)
    yield


@pytest.fixture
def app():
    from booky.main import app as fastapi_app

    yield fastapi_app

    fastapi_app.dependency_overrides.clear()
    for attr in ("email_client", "recommendation_manager"):
        if hasattr(fastapi_app.state, attr):
            delattr(fastapi_app.state, attr)


@pytest.fixture
def booker() -> dict[str, Any]:
    from booky.core.db import SessionLocal
    from booky.core.security import create_access_token
    from booky.modules.identity.service import create_user

    with SessionLocal() as session:
        user = create_user(session, email="booker@example.com", password="pw", full_name="Booker")
        user_id = user.id

    token = create_access_token(subject=str(user_id))
    return {"id": user_id, "headers": {"Authorization": f"Bearer {token}"}}


@pytest.fixture
def booking_id(booker) -> uuid.UUID:
    from booky.core.db import SessionLocal
    from booky.modules.bookings.service import create_booking

    with SessionLocal() as session:
        booking = create_booking(
            session,
            owner_id=booker["id"],
            venue_id="venue-1",
            venue_name="The Warfield",
            contact_email="talent@warfield.example.com",
        )
        return booking.id


class RecordingEmailClient:
    def __init__(self) -> None:
        self.sent: list[Any] = []
        self.inboxes: list[str] = []
        self.aliases: list[tuple[str, str]] = []
        self.create_inbox_error: Exception | None = None
        self.send_status = "sent"

    async def send(self, message):
        from booky.modules.mail.schemas import SendEmailResult

        self.sent.append(message)
        return SendEmailResult(id=f"msg-{len(self.sent)}", status=self.send_status)

    async def create_inbox(self, address, metadata=None):
        from booky.modules.mail.schemas import InboxRecord

        if self.create_inbox_error is not None:
            raise self.create_inbox_error
        self.inboxes.append(address)
        return InboxRecord(id=f"inbox-{len(self.inboxes)}", address=address)

    async def get_alias(self, address):
        return None

    async def create_alias(self, address, target, metadata=None):
        from booky.modules.mail.schemas import AliasRecord

        self.aliases.append((address, target))
        return AliasRecord(id=f"alias-{len(self.aliases)}", address=address, target=target)


@pytest.fixture
def mail_client(app) -> RecordingEmailClient:
    from booky.api.deps import get_email_client

    client = RecordingEmailClient()
    app.dependency_overrides[get_email_client] = lambda: client
    return client
