import json
import httpx
import pytest
from conftest import make_user, make_org, make_event, make_booking, auth_headers
from app.core.exceptions import ConfigurationError, UpstreamServiceError
from app.models.rsvp import Rsvp
from app.services import email_templates
from app.services.brevo import BrevoClient
from app.services.email_service import EmailService, Recipient, collect_event_attendees


def _brevo(handler, api_key="xkeysib-test"):
    return BrevoClient(api_key=api_key, http_client=httpx.Client(transport=httpx.MockTransport(handler)))


def test_brevo_send_email_payload():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["api_key"] = request.headers["api-key"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(201, json={"messageId": "<1@brevo>"})

    result = _brevo(handler).send_email("kofi@example.com", "Hi", "<p>Hi</p>", to_name="Kofi")

    assert result == {"messageId": "<1@brevo>"}
    assert seen["url"] == "https://api.brevo.com/v3/smtp/email"
    assert seen["api_key"] == "xkeysib-test"
    assert seen["body"]["sender"] == {"name": "Tikiti", "email": "noreply@tikiti.com"}
    assert seen["body"]["to"] == [{"email": "kofi@example.com", "name": "Kofi"}]


def test_brevo_errors():
    with pytest.raises(ConfigurationError):
        _brevo(lambda r: httpx.Response(201), api_key="").send_email("a@b.com", "s", "h")
    with pytest.raises(UpstreamServiceError) as exc:
        _brevo(lambda r: httpx.Response(401, json={"message": "Key not found"})).send_email("a@b.com", "s", "h")
    assert exc.value.message == "Key not found"


def test_templates_escape_dynamic_values():
    subject, html = email_templates.welcome_organization("<b>Ama</b>", "Acme & Co", "https://app/login")
    assert "&lt;b&gt;Ama&lt;/b&gt;" in html
    assert "<b>Ama</b>" not in html
    assert "Acme &amp; Co" in html

    body = email_templates.bulk_message("Kofi", "Doors", "Line one\nLine two", "Gala")
    assert "Line one<br>Line two" in body


def test_bulk_send_counts_every_recipient(outbox):
    service = EmailService(_brevo(outbox.handler))
    recipients = [Recipient(email=f"guest{i}@example.com", name=f"Guest {i}") for i in range(23)]
    outbox.fail_for.update({"guest3@example.com", "guest17@example.com"})

    result = service.send_bulk(recipients, "Doors open at 6", "See you soon", "Gala")

    assert result == {"success": True, "emailsSent": 21, "emailsFailed": 2, "totalRecipients": 23}
    assert len(outbox.sent) == 21


def test_dispatch_counts_exceptions_as_failures():
    service = EmailService(_brevo(lambda r: httpx.Response(201, json={})))
    recipients = [Recipient(email="a@x.com"), Recipient(email="b@x.com")]

    def send_one(recipient):
        if recipient.email == "a@x.com":
            raise RuntimeError("boom")
        return True

    assert service.dispatch(recipients, send_one) == (1, 1)


def test_collect_event_attendees_dedupes_by_email(db):
    org = make_org(db)
    event = make_event(db, org)
    make_booking(db, event, booking_id="bk1", email="Kofi@Example.com", name=None)
    make_booking(db, event, booking_id="bk2", email="cancelled@example.com", status="cancelled")
    db.add_all([
        Rsvp(event_id=event.id, email="kofi@example.com", name="Kofi Again"),
        Rsvp(event_id=event.id, email="esi@example.com", name="Esi", phone="0201234567"),
    ])
    db.commit()

    attendees = collect_event_attendees(db, event.id)

    assert [a.email for a in attendees] == ["Kofi@Example.com", "esi@example.com"]
    assert attendees[0].name == "Kofi"
    assert attendees[1].phone == "0201234567"


def test_invite_endpoint(client, db, outbox):
    user = make_user(db)
    response = client.post(
        "/email/invite",
        json={"email": "new@example.com", "orgName": "Acme", "inviterName": "Ama", "role": "admin", "inviteToken": "tok123"},
        headers=auth_headers(user),
    )
    assert response.status_code == 200
    assert "https://app.tikiti.test/invite/tok123" in outbox.to("new@example.com")[0]["htmlContent"]

    missing = client.post("/email/invite", json={"email": "new@example.com"}, headers=auth_headers(user))
    assert missing.status_code == 400


def test_welcome_endpoint_failure_is_502(client, db, outbox):
    user = make_user(db)
    outbox.fail_for.add("bad@example.com")
    response = client.post(
        "/email/welcome",
        json={"email": "bad@example.com", "name": "Bad", "orgName": "Acme"},
        headers=auth_headers(user),
    )
    assert response.status_code == 502


def test_bulk_endpoint_validation_and_result(client, db, outbox):
    user = make_user(db)
    headers = auth_headers(user)

    assert client.post("/email/bulk", json={"recipients": [], "subject": "s", "message": "m"}, headers=headers).status_code == 400
    no_subject = client.post("/email/bulk", json={"recipients": [{"email": "a@x.com"}], "message": "m"}, headers=headers)
    assert no_subject.status_code == 400

    response = client.post(
        "/email/bulk",
        json={
            "recipients": [{"email": "a@x.com", "name": "A"}, {"email": "b@x.com", "name": "B"}],
            "subject": "Reminder",
            "message": "Tomorrow!",
            "eventName": "Gala",
            "orgId": "does-not-matter",
        },
        headers=headers,
    )
    assert response.status_code == 200
    assert response.json() == {"success": True, "emailsSent": 2, "emailsFailed": 0, "totalRecipients": 2}


def test_bulk_endpoint_unconfigured_is_500(client, db):
    from app.main import app
    from app.api import deps

    user = make_user(db)
    app.dependency_overrides[deps.get_email_service] = lambda: EmailService(BrevoClient(api_key=""))
    response = client.post(
        "/email/bulk",
        json={"recipients": [{"email": "a@x.com"}], "subject": "s", "message": "m"},
        headers=auth_headers(user),
    )
    assert response.status_code == 500
    assert response.json()["detail"] == "Email service not configured"


def test_email_diagnostics_admin_only(client, db):
    user = make_user(db)
    admin = make_user(db, email="ops@tikiti.com", is_admin=True)

    assert client.get("/email/test", headers=auth_headers(user)).status_code == 403

    response = client.get("/email/test", headers=auth_headers(admin))
    assert response.status_code == 200
    assert response.json()["success"] is True
    assert response.json()["diagnostics"] == {
        "apiKeySet": True,
        "apiKeyType": "transactional",
        "senderEmail": "noreply@tikiti.com",
    }
