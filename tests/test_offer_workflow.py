from __future__ import annotations

import asyncio
import uuid

import pytest
from sqlalchemy import select

from booky.core.http import HttpRequestError


def _initiate_payload(booking_id: uuid.UUID, **overrides) -> dict:
    payload = {
        "bookingId": str(booking_id),
        "venueId": "venue-1",
        "venueName": "The Warfield",
        "offerAmount": 2500,
        "showDate": "2026-12-05T20:00:00Z",
        "recipientEmail": "talent@warfield.example.com",
    }
    payload.update(overrides)
    return payload


def test_build_addresses_uses_slug_or_venue_name():
    from booky.modules.emails.service import build_addresses

    booking_id = uuid.uuid4()
    addresses = build_addresses(
        booking_id=booking_id, venue_name="Great American Music Hall", venue_slug=None, domain="5-dee.com"
    )
    assert addresses.booking == f"bq-{booking_id}@5-dee.com"
    assert addresses.venue == "great-american-music-hall@5-dee.com"

    custom = build_addresses(
        booking_id=booking_id, venue_name="Ignored", venue_slug="gamh", domain="5-dee.com"
    )
    assert custom.venue == "gamh@5-dee.com"


def test_provision_addresses_treats_inbox_conflict_as_existing(mail_client):
    from booky.modules.emails.service import BookingAddresses, provision_addresses

    mail_client.create_inbox_error = HttpRequestError(
        "exists", method="POST", path="/inboxes", status=409, attempts=3
    )
    addresses = BookingAddresses(booking="bq-1@5-dee.com", venue="warfield@5-dee.com")

    asyncio.run(provision_addresses(mail_client, addresses, booking_id=uuid.uuid4(), venue_id="v"))

    assert mail_client.aliases == [("warfield@5-dee.com", "bq-1@5-dee.com")]


def test_provision_addresses_propagates_other_failures(mail_client):
    from booky.modules.emails.service import BookingAddresses, provision_addresses

    mail_client.create_inbox_error = HttpRequestError(
        "down", method="POST", path="/inboxes", status=503, attempts=3
    )
    addresses = BookingAddresses(booking="bq-1@5-dee.com", venue="warfield@5-dee.com")

    with pytest.raises(HttpRequestError):
        asyncio.run(
            provision_addresses(mail_client, addresses, booking_id=uuid.uuid4(), venue_id="v")
        )
    assert mail_client.aliases == []


def test_initiate_offer_sends_records_and_advances_booking(app, booker, booking_id, mail_client):
    from fastapi.testclient import TestClient

    from booky.core.db import SessionLocal
    from booky.modules.bookings.models import BookingQuery, BookingStatus
    from booky.modules.emails.models import Email, EmailStatus, EmailType, MailInbox

    client = TestClient(app)
    resp = client.post(
        "/api/agentmail/initiate", json=_initiate_payload(booking_id), headers=booker["headers"]
    )
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["address_booking"] == f"bq-{booking_id}@5-dee.com"
    assert data["address_venue"] == "the-warfield@5-dee.com"
    assert data["provider_message_id"] == "msg-1"
    assert data["echoId"].startswith("am_")

    sent = mail_client.sent[0]
    assert sent.from_address == f"AgentMail <bq-{booking_id}@5-dee.com>"
    assert sent.to == ["talent@warfield.example.com"]
    assert sent.subject == "Offer for The Warfield"
    assert "$2,500" in sent.html

    with SessionLocal() as session:
        booking = session.get(BookingQuery, booking_id)
        assert booking.status == BookingStatus.NEGOTIATING
        assert booking.intro_email_sent is True

        inbox = session.scalar(select(MailInbox).where(MailInbox.booking_id == booking_id))
        assert inbox.selected_from == f"bq-{booking_id}@5-dee.com"

        email = session.scalar(select(Email).where(Email.booking_id == booking_id))
        assert email.type == EmailType.OFFER
        assert email.status == EmailStatus.SENT
        assert email.provider_message_id == "msg-1"
        assert email.metadata_json == {"venueId": "venue-1", "venueName": "The Warfield"}


def test_initiate_offer_venue_strategy_sends_from_alias(app, booker, booking_id, mail_client):
    from fastapi.testclient import TestClient

    client = TestClient(app)
    resp = client.post(
        "/api/agentmail/initiate",
        json=_initiate_payload(booking_id, strategy="venue", venueSlug="warfield"),
        headers=booker["headers"],
    )
    assert resp.status_code == 200, resp.text
    assert mail_client.sent[0].from_address == "AgentMail <warfield@5-dee.com>"


def test_initiate_offer_reuses_inbox_row_on_repeat(app, booker, booking_id, mail_client):
    from fastapi.testclient import TestClient

    from booky.core.db import SessionLocal
    from booky.modules.emails.models import Email, MailInbox

    client = TestClient(app)
    for _ in range(2):
        resp = client.post(
            "/api/agentmail/initiate", json=_initiate_payload(booking_id), headers=booker["headers"]
        )
        assert resp.status_code == 200

    with SessionLocal() as session:
        assert len(list(session.scalars(select(MailInbox)))) == 1
        assert len(list(session.scalars(select(Email)))) == 2


def test_initiate_offer_missing_fields(app, booker, booking_id, mail_client):
    from fastapi.testclient import TestClient

    client = TestClient(app)
    payload = _initiate_payload(booking_id)
    del payload["recipientEmail"]
    resp = client.post("/api/agentmail/initiate", json=payload, headers=booker["headers"])

    assert resp.status_code == 400
    assert resp.json() == {"error": "missing_fields"}
    assert mail_client.sent == []


def test_initiate_offer_unknown_booking_is_404(app, booker, mail_client):
    from fastapi.testclient import TestClient

    client = TestClient(app)
    resp = client.post(
        "/api/agentmail/initiate", json=_initiate_payload(uuid.uuid4()), headers=booker["headers"]
    )
    assert resp.status_code == 404


def test_initiate_offer_provider_failure_is_server_error(app, booker, booking_id, mail_client):
    from fastapi.testclient import TestClient

    mail_client.create_inbox_error = HttpRequestError(
        "down", method="POST", path="/inboxes", status=503, attempts=3
    )
    client = TestClient(app)
    resp = client.post(
        "/api/agentmail/initiate", json=_initiate_payload(booking_id), headers=booker["headers"]
    )

    assert resp.status_code == 500
    assert resp.json() == {"error": "server_error"}


def test_initiate_offer_requires_auth(app, booking_id, mail_client):
    from fastapi.testclient import TestClient

    client = TestClient(app)
    resp = client.post("/api/agentmail/initiate", json=_initiate_payload(booking_id))
    assert resp.status_code == 401


def _record_email(booking_id: uuid.UUID, provider_message_id: str):
    from booky.core.db import SessionLocal
    from booky.modules.emails.models import EmailType
    from booky.modules.emails.service import record_email
    from booky.modules.mail.schemas import SendEmailResult

    with SessionLocal() as session:
        email = record_email(
            session,
            booking_id=booking_id,
            email_type=EmailType.OFFER,
            subject="Offer",
            body="<p>offer</p>",
            recipients=["talent@warfield.example.com"],
            from_address="bq@5-dee.com",
            result=SendEmailResult(id=provider_message_id, status="queued"),
        )
        return email.id


def _email_status(email_id: uuid.UUID):
    from booky.core.db import SessionLocal
    from booky.modules.emails.models import Email

    with SessionLocal() as session:
        return session.get(Email, email_id).status


def test_webhook_updates_email_status(app, booking_id):
    from fastapi.testclient import TestClient

    from booky.modules.emails.models import EmailStatus

    email_id = _record_email(booking_id, "m_1")
    assert _email_status(email_id) == EmailStatus.QUEUED

    client = TestClient(app)
    resp = client.post(
        "/api/agentmail/webhook", json={"event": "email.bounced", "data": {"message_id": "m_1"}}
    )
    assert resp.status_code == 200
    assert resp.json() == {"ok": True}
    assert _email_status(email_id) == EmailStatus.FAILED

    resp = client.post("/api/agentmail/webhook", json={"event": "email.delivered", "data": {"id": "m_1"}})
    assert resp.status_code == 200
    assert _email_status(email_id) == EmailStatus.SENT


def test_webhook_acknowledges_unknown_events(app, booking_id):
    from fastapi.testclient import TestClient

    from booky.modules.emails.models import EmailStatus

    email_id = _record_email(booking_id, "m_2")
    client = TestClient(app)
    resp = client.post("/api/agentmail/webhook", json={"event": "email.opened", "data": {"id": "m_2"}})

    assert resp.status_code == 200
    assert _email_status(email_id) == EmailStatus.QUEUED


def test_webhook_rejects_malformed_body(app):
    from fastapi.testclient import TestClient

    client = TestClient(app)
    resp = client.post(
        "/api/agentmail/webhook",
        content=b"not json",
        headers={"Content-Type": "application/json"},
    )
    assert resp.status_code == 400
    assert resp.json() == {"ok": False}

    resp = client.post("/api/agentmail/webhook", json={"event": "email.bounced", "data": "x"})
    assert resp.status_code == 400


def test_list_emails_filters_by_booking(app, booker, booking_id):
    from fastapi.testclient import TestClient

    _record_email(booking_id, "m_3")
    client = TestClient(app)

    resp = client.get(f"/api/emails?booking_id={booking_id}", headers=booker["headers"])
    assert resp.status_code == 200
    emails = resp.json()
    assert len(emails) == 1
    assert emails[0]["provider_message_id"] == "m_3"
    assert emails[0]["metadata"] == {}

    resp = client.get(f"/api/emails?booking_id={uuid.uuid4()}", headers=booker["headers"])
    assert resp.json() == []
