"""
Subscription billing through Paystack: checkout, verification after redirect, and management.
Plan changes are written by these routes and by the Paystack webhook only.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional
from app.db.session import get_db
from app.api.deps import get_current_user, require_org_role, get_paystack_client
from app.models.user import User
from app.schemas.billing import (
    BillingInitializeRequest,
    BillingInitializeResponse,
    BillingVerifyRequest,
    BillingVerifyResponse,
    BillingManageRequest,
    BillingManageResponse,
    PlanOut,
    PlansResponse,
)
from app.services import billing as billing_service
from app.services.paystack import PaystackClient
from app.services.plans import get_all_plans, format_price

router = APIRouter()


def _authorize(db: Session, org_id: Optional[str], user: User) -> None:
    # Missing orgId is reported by the billing service as a 400
    if org_id:
        require_org_role(db, org_id, user)


@router.post("/initialize", response_model=BillingInitializeResponse)
def initialize(
    body: BillingInitializeRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    paystack: PaystackClient = Depends(get_paystack_client),
):
    _authorize(db, body.orgId, current_user)
    return billing_service.initialize_checkout(db, paystack, body.planId, body.orgId)


@router.post("/verify", response_model=BillingVerifyResponse)
def verify(
    body: BillingVerifyRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    paystack: PaystackClient = Depends(get_paystack_client),
):
    """Called by the dashboard after the Paystack redirect with the transaction reference."""
    return billing_service.verify_payment(
        db,
        paystack,
        body.reference,
        body.orgId,
        authorize=lambda org_id: require_org_role(db, org_id, current_user),
    )


@router.get("/manage")
def get_subscription(
    org_id: Optional[str] = Query(None, alias="orgId"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    paystack: PaystackClient = Depends(get_paystack_client),
):
    _authorize(db, org_id, current_user)
    return billing_service.get_subscription_details(db, paystack, org_id)


@router.post("/manage", response_model=BillingManageResponse)
def manage(
    body: BillingManageRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    paystack: PaystackClient = Depends(get_paystack_client),
):
    _authorize(db, body.orgId, current_user)
    return billing_service.manage_subscription(db, paystack, body.action, body.orgId)


@router.get("/plans", response_model=PlansResponse)
def list_plans():
    plans = []
    for plan in get_all_plans():
        data = plan.to_dict()
        plans.append(PlanOut(
            id=plan.id,
            name=plan.name,
            price=plan.price,
            currency=plan.currency,
            interval=plan.interval,
            description=plan.description,
            limits=data["limits"],
            features=data["features"],
            highlighted=plan.highlighted,
            priceLabel=format_price(plan),
        ))
    return PlansResponse(plans=plans)
