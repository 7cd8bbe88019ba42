import json
import httpx
import pytest
from app.core.exceptions import ConfigurationError, UpstreamServiceError
from app.services.paystack import PaystackClient


def _client(handler, secret_key="sk_test_abc"):
    return PaystackClient(
        secret_key=secret_key,
        base_url="https://api.paystack.co",
        http_client=httpx.Client(transport=httpx.MockTransport(handler)),
    )


def test_requests_carry_bearer_key_and_return_data():
    seen = {}

    def handler(request):
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"status": True, "data": {"reference": "r1", "authorization_url": "https://pay"}})

    data = _client(handler).initialize_transaction("a@b.com", 2900, currency="GHS", plan="PLN_x")

    assert data == {"reference": "r1", "authorization_url": "https://pay"}
    assert seen["auth"] == "Bearer sk_test_abc"
    assert seen["body"] == {"email": "a@b.com", "amount": 2900, "currency": "GHS", "plan": "PLN_x"}


def test_error_carries_gateway_message():
    client = _client(lambda r: httpx.Response(400, json={"status": False, "message": "Invalid key"}))
    with pytest.raises(UpstreamServiceError) as exc:
        client.verify_transaction("r1")
    assert exc.value.message == "Invalid key"
    assert exc.value.upstream_status == 400


def test_missing_key_is_configuration_error():
    client = _client(lambda r: httpx.Response(200, json={}), secret_key="")
    with pytest.raises(ConfigurationError) as exc:
        client.get_subscription("SUB_1")
    assert exc.value.message == "PAYSTACK_SECRET_KEY is not configured"


def test_disable_subscription_posts_code_and_token():
    seen = []

    def handler(request):
        seen.append((request.url.path, json.loads(request.content)))
        return httpx.Response(200, json={"status": True, "message": "Subscription disabled successfully"})

    _client(handler).disable_subscription("SUB_1", "tok")
    assert seen == [("/subscription/disable", {"code": "SUB_1", "token": "tok"})]
