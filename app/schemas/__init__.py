from app.schemas.user import User, UserCreate, UserLogin, Token
from app.schemas.organization import Organization, OrganizationCreate, OrganizationUpdate
from app.schemas.event import Event, EventCreate, Booking, Rsvp
from app.schemas.invitation import Invitation, InvitationCreate

__all__ = [
    "User", "UserCreate", "UserLogin", "Token",
    "Organization", "OrganizationCreate", "OrganizationUpdate",
    "Event", "EventCreate", "Booking", "Rsvp",
    "Invitation", "InvitationCreate",
]
