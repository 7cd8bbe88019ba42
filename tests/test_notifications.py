from conftest import make_user, make_org, make_event, make_booking, auth_headers
from app.models.rsvp import Rsvp


def _setup(db):
    owner = make_user(db)
    org = make_org(db, owner=owner)
    event = make_event(db, org)
    make_booking(db, event, booking_id="bk1", email="kofi@example.com", phone="0241234567")
    make_booking(db, event, booking_id="bk2", email="ama@example.com")
    db.add(Rsvp(event_id=event.id, email="KOFI@example.com", name="Kofi dup"))
    db.commit()
    return owner


def test_no_channel_selected(client, db, outbox):
    owner = _setup(db)
    response = client.post(
        "/notifications/event-update",
        json={"eventId": "evt1", "sendEmail": False, "sendSMS": False},
        headers=auth_headers(owner),
    )
    assert response.status_code == 200
    assert response.json()["message"] == "No notification channels selected"
    assert outbox.sent == []


def test_event_update_emails_each_attendee_once(client, db, outbox, sms_requests):
    owner = _setup(db)
    response = client.post(
        "/notifications/event-update",
        json={
            "eventId": "evt1",
            "eventName": "Afrobeats Night",
            "changes": [{"field": "Venue", "oldValue": "Accra", "newValue": "Osu Castle"}],
            "sendEmail": True,
            "sendSMS": True,
        },
        headers=auth_headers(owner),
    )

    data = response.json()
    assert response.status_code == 200
    assert data["totalAttendees"] == 2
    assert data["emailsSent"] == 2
    assert data["smsSent"] == 1
    assert "Osu Castle" in outbox.to("kofi@example.com")[0]["htmlContent"]
    assert sms_requests[0].url.params["to"] == "233241234567"


def test_event_update_with_custom_message(client, db, outbox):
    owner = _setup(db)
    response = client.post(
        "/notifications/event-update",
        json={"eventId": "evt1", "customTitle": "Doors moved", "customMessage": "Doors now open at 5pm"},
        headers=auth_headers(owner),
    )
    assert response.json()["emailsSent"] == 2
    assert outbox.sent[0]["subject"] == "Doors moved"


def test_event_cancellation_counts(client, db, outbox):
    owner = _setup(db)
    outbox.fail_for.add("ama@example.com")
    response = client.post(
        "/notifications/event-cancellation",
        json={"eventId": "evt1", "refundInfo": "Full refunds"},
        headers=auth_headers(owner),
    )
    data = response.json()
    assert data["emailsSent"] == 1
    assert data["emailsFailed"] == 1
    assert data["totalAttendees"] == 2


def test_notifications_require_event_editor(client, db):
    _setup(db)
    stranger = make_user(db, email="stranger@example.com")
    response = client.post("/notifications/event-cancellation", json={"eventId": "evt1"}, headers=auth_headers(stranger))
    assert response.status_code == 403
    missing = client.post("/notifications/event-cancellation", json={}, headers=auth_headers(stranger))
    assert missing.status_code == 400
