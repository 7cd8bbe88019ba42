import json
from conftest import make_user, make_org, make_event, make_booking, auth_headers
from app.models.booking import Booking
from app.models.event import Event
from app.models.organization_member import OrganizationMember


def _event(db, event_id="evt1"):
    db.expire_all()
    return db.query(Event).filter(Event.id == event_id).first()


def test_starter_org_limited_to_one_active_event(client, db):
    owner = make_user(db)
    make_org(db, owner=owner)
    headers = auth_headers(owner)

    first = client.post("/organizations/org1/events", json={"name": "Launch", "status": "published"}, headers=headers)
    assert first.status_code == 201
    assert first.json()["published_at"] is not None

    second = client.post("/organizations/org1/events", json={"name": "Encore"}, headers=headers)
    assert second.status_code == 403
    assert second.json()["detail"] == "Upgrade to Pro to unlock unlimited events"


def test_pro_org_creates_many_events(client, db):
    owner = make_user(db)
    make_org(db, owner=owner, plan="pro")
    for i in range(3):
        response = client.post("/organizations/org1/events", json={"name": f"Show {i}"}, headers=auth_headers(owner))
        assert response.status_code == 201
    assert len(client.get("/organizations/org1/events", headers=auth_headers(owner)).json()) == 3


def test_gate_staff_cannot_create_events(client, db):
    owner = make_user(db)
    org = make_org(db, owner=owner)
    staff = make_user(db, email="gate@example.com")
    db.add(OrganizationMember(org_id=org.id, user_id=staff.id, role="gate_staff"))
    db.commit()
    response = client.post("/organizations/org1/events", json={"name": "Nope"}, headers=auth_headers(staff))
    assert response.status_code == 403


def test_update_publish_and_archive(client, db):
    owner = make_user(db)
    org = make_org(db, owner=owner)
    make_event(db, org, status="draft")
    headers = auth_headers(owner)

    published = client.patch("/events/evt1", json={"status": "published", "location": "Osu"}, headers=headers)
    assert published.status_code == 200
    assert published.json()["location"] == "Osu"
    assert published.json()["published_at"] is not None

    assert client.get("/events/evt1").json()["status"] == "published"
    assert client.delete("/events/evt1", headers=headers).status_code == 204
    assert _event(db).status == "archived"


def test_booking_issues_ticket_and_email(client, db, outbox):
    owner = make_user(db)
    org = make_org(db, owner=owner)
    make_event(db, org, total_tickets=5)
    attendee = make_user(db, email="kofi@example.com", display_name="Kofi")

    response = client.post("/events/evt1/bookings", json={"quantity": 2}, headers=auth_headers(attendee))

    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "confirmed"
    assert data["ticket_id"].startswith("TK-")
    qr = json.loads(data["qr_data"])
    assert qr == {"bookingId": data["id"], "eventId": "evt1", "ticketId": data["ticket_id"]}
    assert data["qr_code_url"].startswith("https://api.qrserver.com/")
    assert _event(db).sold_tickets == 2
    assert len(outbox.to("kofi@example.com")) == 1


def test_booking_rejects_oversell_and_unpublished(client, db):
    owner = make_user(db)
    org = make_org(db, owner=owner, plan="pro")
    make_event(db, org, total_tickets=1)
    make_event(db, org, event_id="draft1", status="draft")
    attendee = make_user(db, email="kofi@example.com")
    headers = auth_headers(attendee)

    assert client.post("/events/evt1/bookings", json={"quantity": 0}, headers=headers).status_code == 400
    assert client.post("/events/evt1/bookings", json={"quantity": 2}, headers=headers).status_code == 400
    assert client.post("/events/draft1/bookings", json={"quantity": 1}, headers=headers).status_code == 400
    assert client.post("/events/evt1/bookings", json={"quantity": 1}, headers=headers).status_code == 201
    assert client.post("/events/evt1/bookings", json={"quantity": 1}, headers=headers).status_code == 400
    assert _event(db).sold_tickets == 1


def test_cancel_booking_releases_tickets(client, db):
    owner = make_user(db)
    org = make_org(db, owner=owner)
    make_event(db, org, total_tickets=5)
    attendee = make_user(db, email="kofi@example.com")
    other = make_user(db, email="ama@example.com")

    booking = client.post("/events/evt1/bookings", json={"quantity": 2}, headers=auth_headers(attendee)).json()
    assert client.post(f"/bookings/{booking['id']}/cancel", headers=auth_headers(other)).status_code == 404

    cancelled = client.post(f"/bookings/{booking['id']}/cancel", headers=auth_headers(attendee))
    assert cancelled.status_code == 200
    assert cancelled.json()["status"] == "cancelled"
    assert _event(db).sold_tickets == 0


def test_rsvp_duplicate_rejected(client, db):
    owner = make_user(db)
    org = make_org(db, owner=owner)
    make_event(db, org)

    first = client.post("/events/evt1/rsvps", json={"email": "esi@example.com", "name": "Esi"})
    assert first.status_code == 201
    duplicate = client.post("/events/evt1/rsvps", json={"email": "ESI@example.com", "name": "Esi"})
    assert duplicate.status_code == 400


def test_attendees_for_members_only(client, db):
    owner = make_user(db)
    org = make_org(db, owner=owner)
    event = make_event(db, org)
    make_booking(db, event)
    client.post("/events/evt1/rsvps", json={"email": "esi@example.com", "name": "Esi"})

    response = client.get("/events/evt1/attendees", headers=auth_headers(owner))
    assert response.status_code == 200
    assert response.json()["total"] == 2

    stranger = make_user(db, email="stranger@example.com")
    assert client.get("/events/evt1/attendees", headers=auth_headers(stranger)).status_code == 403


def test_cancel_event_notifies_attendees(client, db, outbox):
    owner = make_user(db)
    org = make_org(db, owner=owner)
    event = make_event(db, org)
    make_booking(db, event, booking_id="bk1", email="kofi@example.com")
    make_booking(db, event, booking_id="bk2", email="ama@example.com")

    response = client.post(
        "/events/evt1/cancel",
        json={"notify_attendees": True, "refund_info": "Refunds within 5 days"},
        headers=auth_headers(owner),
    )

    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"
    assert len(outbox.sent) == 2
    assert "Refunds within 5 days" in outbox.to("ama@example.com")[0]["htmlContent"]
    assert client.post("/events/evt1/cancel", json={}, headers=auth_headers(owner)).status_code == 400


def test_checked_in_booking_cannot_be_cancelled(client, db):
    owner = make_user(db)
    org = make_org(db, owner=owner)
    event = make_event(db, org)
    attendee = make_user(db, email="kofi@example.com")
    make_booking(db, event, user_id=attendee.id, checked_in=True)
    response = client.post("/bookings/bk1/cancel", headers=auth_headers(attendee))
    assert response.status_code == 400
    assert db.query(Booking).filter(Booking.id == "bk1").first().status == "confirmed"
