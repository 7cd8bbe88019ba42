"""
Paystack webhook event processing.

Maps gateway events onto an organization's subscription columns:

    subscription.create     -> active, store subscription code, email token, next payment date
    charge.success          -> active, last payment now, next payment +1 month (subscription charges only)
    subscription.not_renew  -> stays active, cancel_at_period_end
    subscription.disable    -> starter, gateway identifiers cleared, end date now
    invoice.payment_failed  -> past_due

The organization is resolved from metadata.orgId, then the Paystack customer code,
then the customer email. Unresolved events are logged and dropped.
"""
import logging
from datetime import datetime, timezone
from typing import Callable, Dict, Optional

from sqlalchemy.orm import Session

from app.models.organization import Organization
from app.services.billing import add_one_month, downgrade_to_starter

logger = logging.getLogger(__name__)


def _parse_gateway_datetime(value) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        logger.warning(f"[WEBHOOK] Unparseable date from Paystack: {value!r}")
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def find_org(db: Session, data: dict) -> Optional[Organization]:
    metadata = data.get("metadata") if isinstance(data.get("metadata"), dict) else {}
    org_id = metadata.get("orgId")
    if org_id:
        org = db.query(Organization).filter(Organization.id == str(org_id)).first()
        if org:
            return org

    customer = data.get("customer") if isinstance(data.get("customer"), dict) else {}
    customer_code = customer.get("customer_code")
    if customer_code:
        org = db.query(Organization).filter(Organization.paystack_customer_code == customer_code).first()
        if org:
            return org

    email = customer.get("email")
    if email:
        org = db.query(Organization).filter(Organization.email == email).first()
        if org:
            return org

    return None


def _customer_code(data: dict) -> Optional[str]:
    customer = data.get("customer")
    return customer.get("customer_code") if isinstance(customer, dict) else None


def handle_subscription_create(db: Session, data: dict) -> None:
    org = find_org(db, data)
    if not org:
        logger.error(f"[WEBHOOK] subscription.create - could not find org for customer: {_customer_code(data)}")
        return

    org.subscription_status = "active"
    org.paystack_subscription_code = data.get("subscription_code") or None
    org.paystack_email_token = data.get("email_token") or None
    org.next_payment_date = _parse_gateway_datetime(data.get("next_payment_date"))
    plan = data.get("plan") if isinstance(data.get("plan"), dict) else {}
    if plan.get("plan_code"):
        org.paystack_plan_code = plan["plan_code"]
    org.updated_at = datetime.utcnow()
    db.commit()
    logger.info(f"[WEBHOOK] subscription.create - org {org.id} subscription activated")


def handle_charge_success(db: Session, data: dict) -> None:
    # One-off charges carry no plan
    if not data.get("plan_object") and not data.get("plan"):
        return

    org = find_org(db, data)
    if not org:
        logger.error(f"[WEBHOOK] charge.success - could not find org for customer: {_customer_code(data)}")
        return

    now = datetime.utcnow()
    org.subscription_status = "active"
    org.last_payment_date = now
    org.next_payment_date = add_one_month(now)
    org.updated_at = now
    db.commit()
    logger.info(f"[WEBHOOK] charge.success - org {org.id} payment recorded")


def handle_subscription_not_renew(db: Session, data: dict) -> None:
    org = find_org(db, data)
    if not org:
        logger.error("[WEBHOOK] subscription.not_renew - could not find org")
        return

    org.subscription_status = "active"
    org.cancel_at_period_end = True
    org.updated_at = datetime.utcnow()
    db.commit()
    logger.info(f"[WEBHOOK] subscription.not_renew - org {org.id} will cancel at period end")


def handle_subscription_disable(db: Session, data: dict) -> None:
    org = find_org(db, data)
    if not org:
        logger.error("[WEBHOOK] subscription.disable - could not find org")
        return

    downgrade_to_starter(org, end_now=True)
    db.commit()
    logger.info(f"[WEBHOOK] subscription.disable - org {org.id} downgraded to starter")


def handle_payment_failed(db: Session, data: dict) -> None:
    org = find_org(db, data)
    if not org:
        logger.error("[WEBHOOK] invoice.payment_failed - could not find org")
        return

    org.subscription_status = "past_due"
    org.updated_at = datetime.utcnow()
    db.commit()
    logger.info(f"[WEBHOOK] invoice.payment_failed - org {org.id} marked as past_due")


EVENT_HANDLERS: Dict[str, Callable[[Session, dict], None]] = {
    "subscription.create": handle_subscription_create,
    "charge.success": handle_charge_success,
    "subscription.not_renew": handle_subscription_not_renew,
    "subscription.disable": handle_subscription_disable,
    "invoice.payment_failed": handle_payment_failed,
}


def process_paystack_event(db: Session, event: dict) -> bool:
    """Dispatch one webhook event. Returns False for unhandled event types."""
    event_type = event.get("event")
    data = event.get("data") if isinstance(event.get("data"), dict) else {}
    logger.info(f"[WEBHOOK] Event: {event_type}")

    handler = EVENT_HANDLERS.get(event_type)
    if handler is None:
        logger.info(f"[WEBHOOK] Unhandled event type: {event_type}")
        return False
    handler(db, data)
    return True
