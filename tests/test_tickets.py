import json
import re
from conftest import make_user, make_org, make_event, make_booking, auth_headers
from app.models.booking import Booking
from app.services.tickets import (
    build_qr_payload,
    check_in_with_qr,
    generate_ticket_id,
    qr_code_url,
    ticket_pdf_url,
    validate_qr_code,
)


def _setup(db):
    owner = make_user(db)
    org = make_org(db, owner=owner)
    event = make_event(db, org)
    booking = make_booking(db, event)
    return owner, org, event, booking


def test_generate_ticket_id_format():
    ticket_id = generate_ticket_id()
    assert re.fullmatch(r"TK-[0-9A-Z]+-[0-9A-Z]{6}", ticket_id)
    assert generate_ticket_id() != ticket_id


def test_qr_payload_and_urls():
    payload = json.loads(build_qr_payload("bk1", "evt1", "TK-1-ABCDEF"))
    assert payload == {"bookingId": "bk1", "eventId": "evt1", "ticketId": "TK-1-ABCDEF"}
    assert json.loads(build_qr_payload("bk1", "evt1"))["ticketId"].startswith("TK-")
    assert qr_code_url('{"a":1}').startswith("https://api.qrserver.com/v1/create-qr-code/?size=200x200&data=%7B")
    url = ticket_pdf_url(
        ticket_id="TK-1", booking_id="bk1", event_id="evt1", event_name="Gala",
        event_date="2026-12-05", event_time="19:00", event_location="Accra", attendee_name="Kofi",
    )
    assert url.startswith("https://app.tikiti.test/ticket-pdf.html?data=")


def test_validate_failure_reasons_in_order(db):
    _, _, event, booking = _setup(db)
    assert validate_qr_code(db, "not json", "evt1").message == "Invalid QR code format"
    assert validate_qr_code(db, "[1, 2]", "evt1").message == "Invalid QR code format"
    assert validate_qr_code(db, json.dumps({"bookingId": "bk1", "eventId": "evt1"}), "evt1").message == "Invalid QR code format"
    assert validate_qr_code(db, build_qr_payload("bk1", "evt2", "TK-1"), "evt1").message == "This ticket is for a different event"
    assert validate_qr_code(db, build_qr_payload("missing", "evt1", "TK-1"), "evt1").message == "Ticket not found in system"

    booking.status = "cancelled"
    db.commit()
    assert validate_qr_code(db, build_qr_payload("bk1", "evt1", "TK-1"), "evt1").message == "This ticket has been cancelled"


def test_booking_from_other_event_is_not_found(db):
    _, org, _, _ = _setup(db)
    other = make_event(db, org, event_id="evt2")
    make_booking(db, other, booking_id="bk2")
    result = validate_qr_code(db, build_qr_payload("bk2", "evt1", "TK-1"), "evt1")
    assert not result.valid
    assert result.message == "Ticket not found in system"


def test_valid_ticket_then_check_in_once(db):
    _setup(db)
    qr = build_qr_payload("bk1", "evt1", "TK-1")

    result = validate_qr_code(db, qr, "evt1")
    assert result.valid
    assert result.message == "Valid ticket"
    assert result.attendee.name == "Kofi Mensah"

    checked = check_in_with_qr(db, qr, "evt1", "gate@example.com")
    assert checked.valid
    assert checked.message == "Check-in successful!"
    booking = db.query(Booking).filter(Booking.id == "bk1").first()
    assert booking.checked_in is True
    assert booking.checked_in_by == "gate@example.com"
    assert booking.check_in_method == "qr"

    again = check_in_with_qr(db, qr, "evt1", "gate@example.com")
    assert not again.valid
    assert again.already_checked_in
    assert again.message == "Already checked in"
    assert again.to_dict()["attendee"]["checkedInAt"]


def test_validate_endpoint_requires_fields_and_membership(client, db):
    owner, _, _, _ = _setup(db)
    stranger = make_user(db, email="stranger@example.com")

    missing = client.post("/tickets/validate", json={"eventId": "evt1"}, headers=auth_headers(owner))
    assert missing.status_code == 400

    qr = build_qr_payload("bk1", "evt1", "TK-1")
    forbidden = client.post("/tickets/validate", json={"qrData": qr, "eventId": "evt1"}, headers=auth_headers(stranger))
    assert forbidden.status_code == 403

    unknown = client.post("/tickets/validate", json={"qrData": qr, "eventId": "nope"}, headers=auth_headers(owner))
    assert unknown.status_code == 404


def test_validate_endpoint_checks_in_with_caller_email(client, db):
    owner, _, _, _ = _setup(db)
    qr = build_qr_payload("bk1", "evt1", "TK-1")

    response = client.post(
        "/tickets/validate",
        json={"qrData": qr, "eventId": "evt1", "checkIn": True, "checkedInBy": "Head of Security"},
        headers=auth_headers(owner),
    )
    assert response.status_code == 200
    assert response.json()["valid"] is True
    assert response.json()["attendee"]["checkedIn"] is True
    assert db.query(Booking).filter(Booking.id == "bk1").first().checked_in_by == owner.email

    rescan = client.post(
        "/tickets/validate",
        json={"qrData": qr, "eventId": "evt1", "checkIn": True},
        headers=auth_headers(owner),
    )
    assert rescan.json()["valid"] is False
    assert rescan.json()["alreadyCheckedIn"] is True


def test_send_ticket_email_stores_ticket_id(client, db, outbox):
    owner, _, _, _ = _setup(db)
    response = client.post(
        "/tickets/send-email",
        json={"email": "kofi@example.com", "bookingId": "bk1", "eventId": "evt1"},
        headers=auth_headers(owner),
    )
    assert response.status_code == 200
    ticket_id = response.json()["ticketId"]
    db.expire_all()
    assert db.query(Booking).filter(Booking.id == "bk1").first().ticket_id == ticket_id
    assert len(outbox.to("kofi@example.com")) == 1
    assert ticket_id in outbox.to("kofi@example.com")[0]["htmlContent"]


def test_send_ticket_email_failure_is_502(client, db, outbox):
    owner, _, _, _ = _setup(db)
    outbox.fail_for.add("kofi@example.com")
    response = client.post(
        "/tickets/send-email",
        json={"email": "kofi@example.com", "bookingId": "bk1", "eventId": "evt1"},
        headers=auth_headers(owner),
    )
    assert response.status_code == 502

    missing = client.post("/tickets/send-email", json={"email": "kofi@example.com"}, headers=auth_headers(owner))
    assert missing.status_code == 400


def test_send_ticket_email_requires_membership(client, db, outbox):
    _setup(db)
    stranger = make_user(db, email="stranger@example.com")

    response = client.post(
        "/tickets/send-email",
        json={"email": "stranger@example.com", "bookingId": "bk1", "eventId": "evt1"},
        headers=auth_headers(stranger),
    )

    assert response.status_code == 403
    assert outbox.sent == []
    db.expire_all()
    assert db.query(Booking).filter(Booking.id == "bk1").first().ticket_id is None

    unknown = client.post(
        "/tickets/send-email",
        json={"email": "stranger@example.com", "bookingId": "bk1", "eventId": "nope"},
        headers=auth_headers(stranger),
    )
    assert unknown.status_code == 404


def test_send_ticket_email_rejects_booking_from_other_event(client, db, outbox):
    owner, org, _, _ = _setup(db)
    other = make_event(db, org, event_id="evt2")
    make_booking(db, other, booking_id="bk2")

    response = client.post(
        "/tickets/send-email",
        json={"email": "kofi@example.com", "bookingId": "bk2", "eventId": "evt1"},
        headers=auth_headers(owner),
    )

    assert response.status_code == 400
    assert outbox.sent == []
