from __future__ import annotations

import uuid
from decimal import Decimal

from sqlalchemy import select


def test_create_list_and_get_booking(app, booker):
    from fastapi.testclient import TestClient

    client = TestClient(app)
    resp = client.post(
        "/api/bookings",
        json={
            "venue_id": "fox-oakland",
            "venue_name": "Fox Theater Oakland",
            "event_type": "concert",
            "guest_count": 1500,
            "budget": "10000",
        },
        headers=booker["headers"],
    )
    assert resp.status_code == 200, resp.text
    created = resp.json()
    assert created["status"] == "new"
    assert created["query_number"].startswith("BQ-")
    assert created["negotiation_history"] == []
    assert created["intro_email_sent"] is False

    listed = client.get("/api/bookings", headers=booker["headers"]).json()
    assert [b["id"] for b in listed] == [created["id"]]

    fetched = client.get(f"/api/bookings/{created['id']}", headers=booker["headers"])
    assert fetched.status_code == 200
    assert fetched.json()["venue_name"] == "Fox Theater Oakland"

    missing = client.get(f"/api/bookings/{uuid.uuid4()}", headers=booker["headers"])
    assert missing.status_code == 404


def test_reneg_appends_counter_offer_without_email(app, booker, booking_id, mail_client):
    from fastapi.testclient import TestClient

    client = TestClient(app)
    resp = client.post(
        "/api/bookings/reneg",
        json={"bookingId": str(booking_id), "amount": 3200, "message": "Can we do 3200?"},
        headers=booker["headers"],
    )
    assert resp.status_code == 200, resp.text
    data = resp.json()["data"]
    assert Decimal(str(data["current_offer"])) == Decimal("3200")
    history = data["negotiation_history"]
    assert len(history) == 1
    assert history[0]["message"] == "Can we do 3200?"
    assert history[0]["sender"] == "user"
    assert history[0]["type"] == "counter"
    assert mail_client.sent == []

    resp = client.post(
        "/api/bookings/reneg",
        json={"bookingId": str(booking_id), "amount": 3000},
        headers=booker["headers"],
    )
    history = resp.json()["data"]["negotiation_history"]
    assert len(history) == 2
    assert history[1]["message"] == "Counter-offer: $3000"


def test_reneg_emails_counter_offer_from_selected_address(app, booker, booking_id, mail_client):
    from fastapi.testclient import TestClient

    from booky.core.db import SessionLocal
    from booky.modules.emails.models import Email, EmailType
    from booky.modules.emails.service import BookingAddresses, upsert_inbox

    with SessionLocal() as session:
        upsert_inbox(
            session,
            booking_id=booking_id,
            venue_id="venue-1",
            addresses=BookingAddresses(booking="bq@5-dee.com", venue="warfield@5-dee.com"),
            selected_from="warfield@5-dee.com",
        )

    client = TestClient(app)
    resp = client.post(
        "/api/bookings/reneg",
        json={
            "bookingId": str(booking_id),
            "amount": 2800,
            "message": "Final <offer>",
            "sendEmail": True,
            "recipientEmail": "talent@warfield.example.com",
        },
        headers=booker["headers"],
    )
    assert resp.status_code == 200, resp.text

    sent = mail_client.sent[0]
    assert sent.subject == "Counter-offer"
    assert sent.from_address == "AgentMail <warfield@5-dee.com>"
    assert "Final &lt;offer&gt;" in sent.html

    with SessionLocal() as session:
        email = session.scalar(select(Email).where(Email.booking_id == booking_id))
        assert email.type == EmailType.OFFER
        assert email.from_address == "warfield@5-dee.com"
        assert email.metadata_json == {"reneg": True}


def test_reneg_requires_booking_id(app, booker, mail_client):
    from fastapi.testclient import TestClient

    client = TestClient(app)
    resp = client.post("/api/bookings/reneg", json={"amount": 100}, headers=booker["headers"])
    assert resp.status_code == 400
    assert resp.json() == {"error": "missing_fields"}


def test_sender_defaults_to_booking_address_without_inbox(booking_id):
    from booky.core.db import SessionLocal
    from booky.modules.emails.service import resolve_sender_address

    with SessionLocal() as session:
        assert resolve_sender_address(session, booking_id=booking_id) == f"bq-{booking_id}@5-dee.com"


def test_admin_creates_users_and_bookers_cannot(app, booker):
    from fastapi.testclient import TestClient

    from booky.core.db import SessionLocal
    from booky.modules.identity.service import ensure_admin

    with SessionLocal() as session:
        ensure_admin(session, email="admin@example.com", password="secret")

    client = TestClient(app)
    token = client.post(
        "/api/auth/token", data={"username": "admin@example.com", "password": "secret"}
    ).json()["access_token"]
    admin_headers = {"Authorization": f"Bearer {token}"}

    me = client.get("/api/auth/me", headers=admin_headers).json()
    assert me["role"] == "ADMIN"

    payload = {"email": "new@example.com", "password": "pw"}
    assert client.post("/api/users", json=payload, headers=booker["headers"]).status_code == 403
    created = client.post("/api/users", json=payload, headers=admin_headers)
    assert created.status_code == 200
    assert created.json()["role"] == "BOOKER"
    assert client.post("/api/users", json=payload, headers=admin_headers).status_code == 409

    bad = client.post("/api/auth/token", data={"username": "admin@example.com", "password": "x"})
    assert bad.status_code == 401
