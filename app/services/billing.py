"""
Subscription billing lifecycle: checkout initialization, payment verification,
subscription details and cancellation.

Paystack creates the recurring subscription when a plan code is passed at checkout.
Verification activates the plan right away; the subscription code and email token
arrive later through the subscription.create webhook (see billing_webhook).
"""
import calendar
import logging
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import (
    ConfigurationError,
    InvalidRequestError,
    NotFoundError,
    UpstreamServiceError,
)
from app.models.organization import Organization
from app.services.paystack import PaystackClient
from app.services.plans import get_plan, is_known_plan, normalize_plan_id

logger = logging.getLogger(__name__)

CHECKOUT_CHANNELS = ["card", "mobile_money"]


def add_one_month(value: datetime) -> datetime:
    """Same day next month, clamped to the last day of that month."""
    year = value.year + (1 if value.month == 12 else 0)
    month = 1 if value.month == 12 else value.month + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def billing_callback_url() -> str:
    return f"{settings.APP_URL.rstrip('/')}/dashboard/settings?tab=subscription&billing=verify"


def _get_org(db: Session, org_id: str) -> Organization:
    org = db.query(Organization).filter(Organization.id == org_id).first()
    if not org:
        raise NotFoundError("Organization not found")
    return org


def initialize_checkout(db: Session, paystack: PaystackClient, plan_id: Optional[str], org_id: Optional[str]) -> dict:
    if not plan_id or not org_id:
        raise InvalidRequestError("planId and orgId are required")

    if not is_known_plan(plan_id):
        raise InvalidRequestError("Invalid plan selected")
    plan = get_plan(plan_id)
    if plan.price == 0:
        raise InvalidRequestError("Invalid plan selected")
    if not plan.paystack_plan_code:
        raise ConfigurationError("Plan not configured for billing. Please contact support.")

    org = _get_org(db, org_id)
    org_email = (org.email or "").strip()
    org_name = org.name or ""
    if not org_email:
        raise InvalidRequestError(
            "Organization email is required for billing. Please update your organization settings."
        )

    paystack.get_or_create_customer(org_email, org_name)

    transaction = paystack.initialize_transaction(
        email=org_email,
        amount=plan.price * 100,
        currency=plan.currency,
        callback_url=billing_callback_url(),
        plan=plan.paystack_plan_code,
        metadata={
            "orgId": org.id,
            "planId": plan.id,
            "orgName": org_name,
            "custom_fields": [
                {"display_name": "Organization", "variable_name": "organization", "value": org_name},
                {"display_name": "Plan", "variable_name": "plan", "value": plan.name},
            ],
        },
        channels=CHECKOUT_CHANNELS,
    )

    org.pending_reference = transaction["reference"]
    org.updated_at = datetime.utcnow()
    db.commit()

    logger.info(f"[BILLING] Checkout initialized for org {org.id} plan {plan.id} ref {transaction['reference']}")
    return {
        "success": True,
        "authorizationUrl": transaction["authorization_url"],
        "accessCode": transaction.get("access_code"),
        "reference": transaction["reference"],
    }


def verify_payment(
    db: Session,
    paystack: PaystackClient,
    reference: Optional[str],
    org_id: Optional[str] = None,
    authorize: Optional[Callable[[str], None]] = None,
) -> dict:
    """
    Activate the plan paid for by `reference`.

    The org is taken from the transaction metadata; a caller-supplied org_id must agree
    with it. `authorize` is called with the resolved org id before anything is written.
    Only the org's pending checkout reference is accepted, so a reference cannot be
    applied to another org or replayed to extend the billing period.
    """
    if not reference:
        raise InvalidRequestError("Transaction reference is required")

    transaction = paystack.verify_transaction(reference)
    tx_status = transaction.get("status")
    if tx_status != "success":
        raise InvalidRequestError(f"Payment was not successful. Status: {tx_status}")

    metadata = transaction.get("metadata") or {}
    if not isinstance(metadata, dict):
        metadata = {}
    metadata_org_id = metadata.get("orgId")
    if org_id and metadata_org_id and org_id != metadata_org_id:
        logger.warning(f"[BILLING] Reference {reference} belongs to org {metadata_org_id}, not {org_id}")
        raise InvalidRequestError("Transaction does not belong to this organization")
    resolved_org_id = metadata_org_id or org_id
    if not resolved_org_id:
        raise InvalidRequestError("Could not determine organization")

    if authorize is not None:
        authorize(resolved_org_id)

    plan_id = metadata.get("planId")
    if not is_known_plan(plan_id):
        raise InvalidRequestError("Invalid plan in transaction")
    plan = get_plan(plan_id)

    org = _get_org(db, resolved_org_id)
    if not org.pending_reference or org.pending_reference != reference:
        logger.warning(f"[BILLING] Reference {reference} is not the pending checkout for org {org.id}")
        raise InvalidRequestError("Transaction reference does not match a pending checkout")

    customer = transaction.get("customer") or {}
    authorization = transaction.get("authorization") or {}
    now = datetime.utcnow()
    next_month = add_one_month(now)

    org.subscription_plan = plan.id
    org.subscription_status = "active"
    org.subscription_start_date = now
    org.subscription_end_date = next_month
    org.paystack_customer_code = customer.get("customer_code")
    org.paystack_authorization_code = authorization.get("authorization_code")
    org.last_payment_date = now
    org.next_payment_date = next_month
    org.pending_reference = None
    org.updated_at = now

    plan_object = transaction.get("plan_object") or {}
    if plan_object.get("plan_code"):
        org.paystack_plan_code = plan_object["plan_code"]

    db.commit()
    logger.info(f"[BILLING] Org {org.id} upgraded to {plan.id} (ref {reference})")

    return {
        "success": True,
        "plan": plan.id,
        "planName": plan.name,
        "status": "active",
        "message": f"Successfully upgraded to {plan.name} plan!",
    }


def _serialize_gateway_subscription(data: Optional[dict]) -> Optional[dict]:
    if not data:
        return None
    authorization = data.get("authorization")
    return {
        "status": data.get("status"),
        "nextPaymentDate": data.get("next_payment_date"),
        "card": {
            "last4": authorization.get("last4"),
            "cardType": authorization.get("card_type"),
            "bank": authorization.get("bank"),
        } if authorization else None,
    }


def get_subscription_details(db: Session, paystack: PaystackClient, org_id: Optional[str]) -> dict:
    if not org_id:
        raise InvalidRequestError("orgId is required")
    org = _get_org(db, org_id)

    plan_id = normalize_plan_id(org.subscription_plan)
    plan = get_plan(plan_id)

    gateway = None
    if org.paystack_subscription_code:
        try:
            gateway = paystack.get_subscription(org.paystack_subscription_code)
        except (UpstreamServiceError, ConfigurationError) as e:
            logger.error(f"[BILLING] Failed to fetch Paystack subscription for org {org.id}: {e}")

    return {
        "success": True,
        "subscription": {
            "plan": plan_id,
            "planName": plan.name,
            "price": plan.price,
            "currency": plan.currency,
            "status": org.subscription_status or "active",
            "startDate": org.subscription_start_date,
            "endDate": org.subscription_end_date,
            "nextPaymentDate": org.next_payment_date,
            "lastPaymentDate": org.last_payment_date,
            "cancelAtPeriodEnd": bool(org.cancel_at_period_end),
            "features": plan.to_dict()["features"],
            "limits": plan.to_dict()["limits"],
        },
        "paystack": _serialize_gateway_subscription(gateway),
    }


def downgrade_to_starter(org: Organization, *, end_now: bool = False) -> None:
    """Drop the org back to the free tier and forget its gateway subscription."""
    now = datetime.utcnow()
    org.subscription_plan = "starter"
    org.subscription_status = "active"
    org.paystack_subscription_code = None
    org.paystack_email_token = None
    org.paystack_authorization_code = None
    org.paystack_plan_code = None
    org.cancel_at_period_end = False
    if end_now:
        org.subscription_end_date = now
    org.updated_at = now


def cancel_subscription(db: Session, paystack: PaystackClient, org_id: str) -> dict:
    org = _get_org(db, org_id)

    if not org.paystack_subscription_code or not org.paystack_email_token:
        downgrade_to_starter(org)
        db.commit()
        logger.info(f"[BILLING] Org {org.id} cancelled without gateway subscription, now on starter")
        return {
            "success": True,
            "message": "Subscription cancelled. You are now on the Starter plan.",
        }

    paystack.disable_subscription(org.paystack_subscription_code, org.paystack_email_token)
    org.cancel_at_period_end = True
    org.updated_at = datetime.utcnow()
    db.commit()
    logger.info(f"[BILLING] Org {org.id} subscription disabled, cancels at period end")
    return {
        "success": True,
        "message": (
            "Your subscription has been cancelled. You will continue to have access to your "
            "current plan until the end of your billing period."
        ),
    }


def manage_subscription(db: Session, paystack: PaystackClient, action: Optional[str], org_id: Optional[str]) -> dict:
    if not org_id or not action:
        raise InvalidRequestError("orgId and action are required")
    if action == "cancel":
        return cancel_subscription(db, paystack, org_id)
    _get_org(db, org_id)
    raise InvalidRequestError(f"Unknown action: {action}")
