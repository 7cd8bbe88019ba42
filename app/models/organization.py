from sqlalchemy import Column, String, DateTime, Boolean
import uuid
from datetime import datetime
from app.db.session import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class Organization(Base):
    __tablename__ = "organizations"

    id = Column(String(64), primary_key=True, default=_new_id)
    name = Column(String, nullable=False)
    slug = Column(String, nullable=False, unique=True, index=True)
    email = Column(String, nullable=True, index=True)  # Billing contact; required by checkout
    phone = Column(String, nullable=True)

    # Subscription state. Written only by billing routes and the Paystack webhook.
    subscription_plan = Column(String, nullable=False, default="starter")
    subscription_status = Column(String, nullable=False, default="active")  # active | past_due | expired
    subscription_start_date = Column(DateTime, nullable=True)
    subscription_end_date = Column(DateTime, nullable=True)
    next_payment_date = Column(DateTime, nullable=True)
    last_payment_date = Column(DateTime, nullable=True)
    cancel_at_period_end = Column(Boolean, nullable=False, default=False)
    paystack_customer_code = Column(String, nullable=True, index=True)
    paystack_subscription_code = Column(String, nullable=True)
    paystack_email_token = Column(String, nullable=True)
    paystack_authorization_code = Column(String, nullable=True)
    paystack_plan_code = Column(String, nullable=True)
    pending_reference = Column(String, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
