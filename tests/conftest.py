"""
Shared fixtures: in-memory SQLite database, TestClient with remote services
pointed at httpx.MockTransport stubs, and helpers for users and organizations.
"""
import json
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["PAYSTACK_SECRET_KEY"] = "sk_test_secret"
os.environ["PAYSTACK_PRO_PLAN_CODE"] = "PLN_pro"
os.environ["APP_URL"] = "https://app.tikiti.test"

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.db.session import Base, get_db
from app.api import deps
from app.core.rate_limit import invite_limiter, ai_limiter, diagnostics_limiter
from app.core.security import create_access_token, get_password_hash
from app.models import User, Organization, OrganizationMember, Event, Booking
from app.services.arkesel import ArkeselClient
from app.services.brevo import BrevoClient
from app.services.email_service import EmailService
from app.services.paystack import PaystackClient

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class PaystackStub:
    """Canned Paystack answers keyed by (method, path); records every request."""

    def __init__(self):
        self.routes = {}
        self.requests = []

    def on(self, method, path, data=None, status_code=200, message="OK"):
        self.routes[(method, path)] = (status_code, {"status": status_code < 400, "message": message, "data": data})

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else None
        self.requests.append((request.method, request.url.path, body))
        status_code, payload = self.routes.get(
            (request.method, request.url.path),
            (404, {"status": False, "message": "Not found"}),
        )
        return httpx.Response(status_code, json=payload)

    def calls(self, method, path):
        return [body for m, p, body in self.requests if m == method and p == path]


class BrevoOutbox:
    """Accepts every email except those addressed to fail_for."""

    def __init__(self):
        self.sent = []
        self.fail_for = set()

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/account"):
            return httpx.Response(200, json={"email": "ops@tikiti.com"})
        payload = json.loads(request.content)
        to = payload["to"][0]["email"]
        if to in self.fail_for:
            return httpx.Response(400, json={"code": "invalid_parameter", "message": "email is not valid"})
        self.sent.append(payload)
        return httpx.Response(201, json={"messageId": f"<msg-{len(self.sent)}@brevo>"})

    def to(self, email):
        return [p for p in self.sent if p["to"][0]["email"] == email]


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def paystack():
    return PaystackStub()


@pytest.fixture
def outbox():
    return BrevoOutbox()


@pytest.fixture
def sms_requests():
    return []


@pytest.fixture
def client(db, paystack, outbox, sms_requests):
    def override_get_db():
        yield db

    def sms_handler(request: httpx.Request) -> httpx.Response:
        sms_requests.append(request)
        return httpx.Response(200, json={"status": "success", "data": [{"recipient": request.url.params["to"], "id": "sms-1"}]})

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[deps.get_paystack_client] = lambda: PaystackClient(
        secret_key="sk_test_secret",
        http_client=httpx.Client(transport=httpx.MockTransport(paystack.handler)),
    )
    app.dependency_overrides[deps.get_email_service] = lambda: EmailService(BrevoClient(
        api_key="xkeysib-test",
        http_client=httpx.Client(transport=httpx.MockTransport(outbox.handler)),
    ))
    app.dependency_overrides[deps.get_sms_client] = lambda: ArkeselClient(
        api_key="ark-test",
        http_client=httpx.Client(transport=httpx.MockTransport(sms_handler)),
    )
    for limiter in (invite_limiter, ai_limiter, diagnostics_limiter):
        limiter.reset()

    yield TestClient(app)
    app.dependency_overrides.clear()


def make_user(db, email="owner@example.com", password="password123", is_admin=False, display_name="Ama Owner", phone=None):
    user = User(
        email=email,
        hashed_password=get_password_hash(password),
        display_name=display_name,
        phone=phone,
        is_admin=is_admin,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def auth_headers(user):
    token = create_access_token(data={"sub": user.email, "user_id": user.id})
    return {"Authorization": f"Bearer {token}"}


def make_org(db, owner=None, org_id="org1", email="a@b.com", plan="starter", role="owner", **fields):
    org = Organization(
        id=org_id,
        name=fields.pop("name", "Accra Events"),
        slug=fields.pop("slug", org_id),
        email=email,
        subscription_plan=plan,
        subscription_status=fields.pop("subscription_status", "active"),
        **fields,
    )
    db.add(org)
    if owner is not None:
        db.add(OrganizationMember(org_id=org_id, user_id=owner.id, role=role))
    db.commit()
    db.refresh(org)
    return org


def make_event(db, org, event_id="evt1", status="published", **fields):
    event = Event(
        id=event_id,
        org_id=org.id,
        name=fields.pop("name", "Afrobeats Night"),
        date=fields.pop("date", "2026-12-05"),
        time=fields.pop("time", "19:00"),
        location=fields.pop("location", "Accra"),
        status=status,
        **fields,
    )
    db.add(event)
    db.commit()
    db.refresh(event)
    return event


def make_booking(db, event, booking_id="bk1", email="kofi@example.com", **fields):
    booking = Booking(
        id=booking_id,
        event_id=event.id,
        email=email,
        name=fields.pop("name", "Kofi Mensah"),
        quantity=fields.pop("quantity", 1),
        status=fields.pop("status", "confirmed"),
        **fields,
    )
    db.add(booking)
    db.commit()
    db.refresh(booking)
    return booking
