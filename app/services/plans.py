"""
Subscription plan catalog.

Two tiers:
- starter (Free): every feature, limited to 1 active event
- pro: everything unlimited + priority support

A limit of -1 means unlimited.
"""
from dataclasses import dataclass, asdict
from typing import Dict, List, Optional
from app.core.config import settings

UNLIMITED = -1
DEFAULT_PLAN_ID = "starter"


@dataclass(frozen=True)
class PlanLimits:
    max_active_events: int
    max_attendees_per_event: int
    max_team_members: int
    max_speakers_per_event: int


@dataclass(frozen=True)
class PlanFeatures:
    ai_description: bool
    custom_branding: bool
    analytics_export: bool
    priority_support: bool
    bulk_email: bool


@dataclass(frozen=True)
class Plan:
    id: str
    name: str
    price: int
    currency: str
    interval: str
    description: str
    limits: PlanLimits
    features: PlanFeatures
    paystack_plan_code: Optional[str] = None
    highlighted: bool = False

    @property
    def is_paid(self) -> bool:
        return self.price > 0

    def to_dict(self) -> dict:
        return asdict(self)


def _build_plans() -> Dict[str, Plan]:
    return {
        "starter": Plan(
            id="starter",
            name="Free",
            price=0,
            currency="GHS",
            interval="monthly",
            description="Everything you need for your first event",
            limits=PlanLimits(
                max_active_events=1,
                max_attendees_per_event=UNLIMITED,
                max_team_members=UNLIMITED,
                max_speakers_per_event=UNLIMITED,
            ),
            features=PlanFeatures(
                ai_description=True,
                custom_branding=True,
                analytics_export=True,
                priority_support=False,
                bulk_email=True,
            ),
        ),
        "pro": Plan(
            id="pro",
            name="Pro",
            price=29,
            currency="GHS",
            interval="monthly",
            description="Unlimited events for growing organisations",
            limits=PlanLimits(
                max_active_events=UNLIMITED,
                max_attendees_per_event=UNLIMITED,
                max_team_members=UNLIMITED,
                max_speakers_per_event=UNLIMITED,
            ),
            features=PlanFeatures(
                ai_description=True,
                custom_branding=True,
                analytics_export=True,
                priority_support=True,
                bulk_email=True,
            ),
            paystack_plan_code=settings.PAYSTACK_PRO_PLAN_CODE or "",
            highlighted=True,
        ),
    }


PLANS: Dict[str, Plan] = _build_plans()

# Legacy plan names still found on older organizations
LEGACY_PLAN_MAP = {
    "free": "starter",
    "starter": "starter",
    "pro": "pro",
    "enterprise": "pro",
    "business": "pro",
}

_PLAN_ORDER = {"starter": 0, "pro": 1}


def is_known_plan(plan_id: Optional[str]) -> bool:
    return bool(plan_id) and plan_id.lower() in LEGACY_PLAN_MAP


def normalize_plan_id(plan_id: Optional[str]) -> str:
    """Map a stored or legacy plan name to a catalog id; unknown names fall back to starter."""
    if not plan_id:
        return DEFAULT_PLAN_ID
    return LEGACY_PLAN_MAP.get(plan_id.lower(), DEFAULT_PLAN_ID)


def get_plan(plan_id: Optional[str]) -> Plan:
    return PLANS[normalize_plan_id(plan_id)]


def get_plan_limits(plan_id: Optional[str]) -> PlanLimits:
    return get_plan(plan_id).limits


def get_plan_features(plan_id: Optional[str]) -> PlanFeatures:
    return get_plan(plan_id).features


def get_all_plans() -> List[Plan]:
    return [PLANS["starter"], PLANS["pro"]]


def is_upgrade(from_plan: Optional[str], to_plan: Optional[str]) -> bool:
    return _PLAN_ORDER[normalize_plan_id(to_plan)] > _PLAN_ORDER[normalize_plan_id(from_plan)]


def format_price(plan: Plan) -> str:
    if plan.price == 0:
        return "Free"
    return f"{plan.currency} {plan.price}/mo"


def format_limit(value: int) -> str:
    return "Unlimited" if value == UNLIMITED else str(value)
