"""
Feature gating based on an organization's subscription.
The free plan is limited to one active event; everything else is open on every plan.
"""
from dataclasses import dataclass
from typing import Optional
from app.models.organization import Organization
from app.services.plans import get_plan_limits, normalize_plan_id, UNLIMITED

UPGRADE_MESSAGE = "Upgrade to Pro to unlock unlimited events"

# Subscription states that lose paid entitlements
_LAPSED_STATUSES = ("expired", "past_due")


@dataclass
class GateResult:
    allowed: bool
    limit: Optional[int] = None
    current: Optional[int] = None
    required_plan: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "allowed": self.allowed,
            "limit": self.limit,
            "current": self.current,
            "requiredPlan": self.required_plan,
        }


def get_effective_plan(org: Optional[Organization]) -> str:
    if org is None:
        return "starter"
    if org.subscription_status in _LAPSED_STATUSES:
        return "starter"
    return normalize_plan_id(org.subscription_plan)


def _check_limit(limit: int, current: int) -> GateResult:
    if limit == UNLIMITED:
        return GateResult(allowed=True, limit=UNLIMITED, current=current)
    if current >= limit:
        return GateResult(allowed=False, limit=limit, current=current, required_plan="pro")
    return GateResult(allowed=True, limit=limit, current=current)


def can_create_event(org: Optional[Organization], current_active_event_count: int) -> GateResult:
    limits = get_plan_limits(get_effective_plan(org))
    return _check_limit(limits.max_active_events, current_active_event_count)


def can_add_attendee(org: Optional[Organization], current_attendee_count: int) -> GateResult:
    limits = get_plan_limits(get_effective_plan(org))
    return _check_limit(limits.max_attendees_per_event, current_attendee_count)


def can_add_team_member(org: Optional[Organization], current_member_count: int) -> GateResult:
    limits = get_plan_limits(get_effective_plan(org))
    return _check_limit(limits.max_team_members, current_member_count)


def can_invite_speaker(org: Optional[Organization], current_speaker_count: int) -> GateResult:
    limits = get_plan_limits(get_effective_plan(org))
    return _check_limit(limits.max_speakers_per_event, current_speaker_count)


def can_send_bulk_email(org: Optional[Organization]) -> GateResult:
    return GateResult(allowed=True)


def can_use_ai(org: Optional[Organization]) -> GateResult:
    return GateResult(allowed=True)


def get_upgrade_message(required_plan: Optional[str]) -> str:
    return UPGRADE_MESSAGE
