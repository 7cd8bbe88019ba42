import httpx
import pytest
from conftest import make_user, auth_headers
from app.core.exceptions import ConfigurationError
from app.services.arkesel import ArkeselClient, format_phone_number, parse_response


def _client(handler, api_key="ark-key"):
    return ArkeselClient(api_key=api_key, sender_id="Tikiti", http_client=httpx.Client(transport=httpx.MockTransport(handler)))


@pytest.mark.parametrize("raw, expected", [
    ("0241234567", "233241234567"),
    ("+233 24 123 4567", "233241234567"),
    ("241234567", "233241234567"),
    ("233241234567", "233241234567"),
])
def test_format_phone_number(raw, expected):
    assert format_phone_number(raw) == expected


def test_parse_response_variants():
    assert parse_response(200, '{"status": "success", "data": [{"recipient": "233241234567", "id": "m1"}]}', "233241234567").message_id == "m1"
    assert parse_response(200, '{"code": "ok"}', "x").success
    assert not parse_response(500, '{"status": "success"}', "x").success
    assert not parse_response(200, '{"status": "error", "message": "Insufficient balance"}', "x").success
    assert parse_response(200, "Message sent", "x").success
    html = parse_response(200, "<!DOCTYPE html><html>oops</html>", "x")
    assert not html.success
    assert "error page" in html.error


def test_send_sms_builds_query():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"status": "success"})

    result = _client(handler).send_sms("024 123 4567", "Hello")

    assert result.success
    params = seen[0].url.params
    assert params["action"] == "send-sms"
    assert params["api_key"] == "ark-key"
    assert params["to"] == "233241234567"
    assert params["from"] == "Tikiti"
    assert params["sms"] == "Hello"


def test_send_sms_requires_key():
    with pytest.raises(ConfigurationError):
        _client(lambda r: httpx.Response(200), api_key="").send_sms("0241234567", "Hi")


def test_masked_url_hides_key():
    url = _client(lambda r: httpx.Response(200)).masked_url("233241234567", "Hi")
    assert "ark-key" not in url
    assert "api_key=***" in url


def test_send_bulk_prefixes_and_truncates():
    bodies = []

    def handler(request):
        bodies.append(request.url.params["sms"])
        if request.url.params["to"] == "233200000000":
            return httpx.Response(200, json={"status": "error", "message": "Invalid number"})
        return httpx.Response(200, json={"status": "success"})

    result = _client(handler).send_bulk(
        [{"phone": "0241234567", "name": "Kofi"}, {"phone": "0200000000", "name": "Bad"}, {"name": "No Phone"}],
        "x" * 2000,
        "Gala",
    )

    assert result.sent == 1
    assert result.failed == 2
    assert bodies[0].startswith("Gala: ")
    assert len(bodies[0]) == 1600
    assert any("Missing phone number" in e for e in result.errors)


def test_bulk_endpoint(client, db, sms_requests):
    user = make_user(db)
    response = client.post(
        "/sms/bulk",
        json={"recipients": [{"phone": "0241234567", "name": "Kofi"}], "message": "Doors open", "eventName": "Gala"},
        headers=auth_headers(user),
    )
    assert response.status_code == 200
    assert response.json()["sent"] == 1
    assert sms_requests[0].url.params["sms"] == "Gala: Doors open"


def test_bulk_endpoint_unconfigured_is_503(client, db):
    from app.main import app
    from app.api import deps

    user = make_user(db)
    app.dependency_overrides[deps.get_sms_client] = lambda: ArkeselClient(api_key="")
    response = client.post(
        "/sms/bulk",
        json={"recipients": [{"phone": "0241234567"}], "message": "Hi"},
        headers=auth_headers(user),
    )
    assert response.status_code == 503


def test_bulk_endpoint_all_failed_is_500(client, db):
    from app.main import app
    from app.api import deps

    user = make_user(db)
    app.dependency_overrides[deps.get_sms_client] = lambda: _client(lambda r: httpx.Response(401, text="Unauthorized"))
    response = client.post(
        "/sms/bulk",
        json={"recipients": [{"phone": "0241234567"}], "message": "Hi"},
        headers=auth_headers(user),
    )
    assert response.status_code == 500


def test_diagnostic_send_masks_key(client, db):
    admin = make_user(db, email="ops@tikiti.com", is_admin=True)
    response = client.get("/sms/test", params={"phone": "0241234567"}, headers=auth_headers(admin))
    assert response.status_code == 200
    assert response.json()["success"] is True
    assert "ark-test" not in response.json()["url"]

    user = make_user(db, email="user@example.com")
    assert client.get("/sms/test", params={"phone": "0241234567"}, headers=auth_headers(user)).status_code == 403
