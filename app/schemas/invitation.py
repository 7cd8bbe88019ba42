from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class InvitationCreate(BaseModel):
    """Org owner/admin: invite someone to the team."""
    email: str
    role: Optional[str] = "gate_staff"  # admin | project_manager | gate_staff
    name: Optional[str] = None


class Invitation(BaseModel):
    id: str
    token: str
    email: str
    org_id: str
    role: str
    invited_by: Optional[str] = None
    inviter_name: Optional[str] = None
    status: str
    expires_at: datetime
    accepted_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class InviteValidateResponse(BaseModel):
    """Public: token validation response."""
    valid: bool
    org_name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None
    inviter_name: Optional[str] = None
    expires_at: Optional[datetime] = None
    message: Optional[str] = None


class InviteAcceptResponse(BaseModel):
    success: bool
    org_id: str
    role: str
