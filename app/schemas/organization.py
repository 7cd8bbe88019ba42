from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class OrganizationCreate(BaseModel):
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None


class OrganizationUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class Subscription(BaseModel):
    """Subscription columns of an organization, in the dashboard's field names."""
    plan: str
    status: str
    startDate: Optional[datetime] = None
    endDate: Optional[datetime] = None
    nextPaymentDate: Optional[datetime] = None
    lastPaymentDate: Optional[datetime] = None
    cancelAtPeriodEnd: bool = False
    paystackCustomerCode: Optional[str] = None
    paystackSubscriptionCode: Optional[str] = None
    pendingReference: Optional[str] = None

    @classmethod
    def from_org(cls, org) -> "Subscription":
        return cls(
            plan=org.subscription_plan or "starter",
            status=org.subscription_status or "active",
            startDate=org.subscription_start_date,
            endDate=org.subscription_end_date,
            nextPaymentDate=org.next_payment_date,
            lastPaymentDate=org.last_payment_date,
            cancelAtPeriodEnd=bool(org.cancel_at_period_end),
            paystackCustomerCode=org.paystack_customer_code,
            paystackSubscriptionCode=org.paystack_subscription_code,
            pendingReference=org.pending_reference,
        )


class Organization(BaseModel):
    id: str
    name: str
    slug: str
    email: Optional[str] = None
    phone: Optional[str] = None
    subscription: Subscription
    created_at: datetime
    role: Optional[str] = None  # Caller's role, when listed for a member

    @classmethod
    def from_org(cls, org, role: Optional[str] = None) -> "Organization":
        return cls(
            id=org.id,
            name=org.name,
            slug=org.slug,
            email=org.email,
            phone=org.phone,
            subscription=Subscription.from_org(org),
            created_at=org.created_at,
            role=role,
        )


class Member(BaseModel):
    user_id: str
    email: str
    display_name: Optional[str] = None
    role: str
    joined_at: datetime
