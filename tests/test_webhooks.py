import json
from datetime import datetime
from conftest import make_org
from app.models.organization import Organization
from app.services.paystack import compute_signature, verify_webhook_signature

SECRET = "sk_test_secret"


def _post(client, payload, secret=SECRET, raw=None):
    body = raw if raw is not None else json.dumps(payload).encode()
    return client.post(
        "/webhooks/paystack",
        content=body,
        headers={"x-paystack-signature": compute_signature(body, secret), "content-type": "application/json"},
    )


def _org(db, org_id="org1"):
    db.expire_all()
    return db.query(Organization).filter(Organization.id == org_id).first()


def test_signature_helpers():
    body = b'{"event":"charge.success"}'
    assert verify_webhook_signature(body, compute_signature(body, SECRET), SECRET)
    assert not verify_webhook_signature(body, compute_signature(body, "other"), SECRET)
    assert not verify_webhook_signature(body, None, SECRET)


def test_bad_signature_is_rejected_without_processing(client, db):
    make_org(db, plan="pro")
    payload = {"event": "subscription.disable", "data": {"metadata": {"orgId": "org1"}}}
    response = _post(client, payload, secret="wrong")
    assert response.status_code == 401
    assert _org(db).subscription_plan == "pro"


def test_signed_non_json_body_is_acknowledged(client, db):
    response = _post(client, None, raw=b"not json at all")
    assert response.status_code == 200
    assert response.json()["received"] is True
    assert "error" in response.json()


def test_subscription_create_stores_codes(client, db):
    make_org(db, plan="pro", paystack_customer_code="CUS_1")
    payload = {
        "event": "subscription.create",
        "data": {
            "customer": {"customer_code": "CUS_1", "email": "someone@else.com"},
            "subscription_code": "SUB_1",
            "email_token": "tok_1",
            "next_payment_date": "2026-11-18T10:00:00.000Z",
            "plan": {"plan_code": "PLN_pro"},
        },
    }
    response = _post(client, payload)
    assert response.json() == {"received": True}
    org = _org(db)
    assert org.paystack_subscription_code == "SUB_1"
    assert org.paystack_email_token == "tok_1"
    assert org.paystack_plan_code == "PLN_pro"
    assert org.next_payment_date == datetime(2026, 11, 18, 10, 0)


def test_charge_success_records_payment(client, db):
    make_org(db, plan="pro", subscription_status="past_due")
    payload = {
        "event": "charge.success",
        "data": {"metadata": {"orgId": "org1"}, "plan": {"plan_code": "PLN_pro"}, "customer": {}},
    }
    _post(client, payload)
    org = _org(db)
    assert org.subscription_status == "active"
    assert org.last_payment_date is not None
    assert org.next_payment_date > org.last_payment_date


def test_one_off_charge_is_ignored(client, db):
    make_org(db, subscription_status="past_due")
    _post(client, {"event": "charge.success", "data": {"metadata": {"orgId": "org1"}}})
    assert _org(db).subscription_status == "past_due"


def test_not_renew_flags_cancel_at_period_end(client, db):
    make_org(db, plan="pro")
    _post(client, {"event": "subscription.not_renew", "data": {"customer": {"email": "a@b.com"}}})
    org = _org(db)
    assert org.cancel_at_period_end is True
    assert org.subscription_plan == "pro"


def test_disable_downgrades_to_starter(client, db):
    make_org(db, plan="pro", paystack_subscription_code="SUB_1", paystack_email_token="tok", paystack_customer_code="CUS_1", paystack_plan_code="PLN_pro")
    _post(client, {"event": "subscription.disable", "data": {"customer": {"customer_code": "CUS_1"}}})
    org = _org(db)
    assert org.subscription_plan == "starter"
    assert org.paystack_subscription_code is None
    assert org.paystack_email_token is None
    assert org.paystack_plan_code is None
    assert org.subscription_end_date is not None


def test_payment_failed_marks_past_due(client, db):
    make_org(db, plan="pro")
    _post(client, {"event": "invoice.payment_failed", "data": {"metadata": {"orgId": "org1"}}})
    assert _org(db).subscription_status == "past_due"


def test_unknown_org_and_unknown_event_are_acknowledged(client, db):
    make_org(db, plan="pro")
    missing = _post(client, {"event": "subscription.disable", "data": {"customer": {"email": "ghost@example.com"}}})
    assert missing.status_code == 200
    unknown = _post(client, {"event": "transfer.success", "data": {}})
    assert unknown.json() == {"received": True}
    assert _org(db).subscription_plan == "pro"
