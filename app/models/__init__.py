from app.models.user import User
from app.models.organization import Organization
from app.models.organization_member import OrganizationMember, MemberRole
from app.models.invitation import Invitation
from app.models.event import Event
from app.models.booking import Booking
from app.models.rsvp import Rsvp

__all__ = [
    "User", "Organization", "OrganizationMember", "MemberRole",
    "Invitation", "Event", "Booking", "Rsvp",
]
