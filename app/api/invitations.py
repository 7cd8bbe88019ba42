"""
Team invitation links: public validation of a token and acceptance by a signed-in user.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from datetime import datetime
import logging
from app.db.session import get_db
from app.api.deps import get_current_user
from app.models.user import User
from app.models.organization import Organization
from app.models.organization_member import OrganizationMember
from app.models.invitation import Invitation
from app.schemas.invitation import InviteValidateResponse, InviteAcceptResponse

logger = logging.getLogger(__name__)

router = APIRouter()


def _check_usable(db: Session, invitation: Invitation) -> None:
    if invitation.status != "pending":
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invitation has already been {invitation.status}",
        )
    if invitation.expires_at < datetime.utcnow():
        invitation.status = "expired"
        db.commit()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invitation has expired")


def _get_by_token(db: Session, token: str) -> Invitation:
    invitation = db.query(Invitation).filter(Invitation.token == token).first()
    if not invitation:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invitation not found")
    return invitation


@router.get("/{token}", response_model=InviteValidateResponse)
def validate_invitation(token: str, db: Session = Depends(get_db)):
    invitation = _get_by_token(db, token)
    _check_usable(db, invitation)
    org = db.query(Organization).filter(Organization.id == invitation.org_id).first()
    return InviteValidateResponse(
        valid=True,
        org_name=org.name if org else None,
        email=invitation.email,
        role=invitation.role,
        inviter_name=invitation.inviter_name,
        expires_at=invitation.expires_at,
    )


@router.post("/{token}/accept", response_model=InviteAcceptResponse)
def accept_invitation(
    token: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Join the inviting organization with the invited role. Token is single use."""
    invitation = _get_by_token(db, token)
    _check_usable(db, invitation)

    member = db.query(OrganizationMember).filter(
        OrganizationMember.org_id == invitation.org_id,
        OrganizationMember.user_id == current_user.id,
    ).first()
    if member is None:
        member = OrganizationMember(
            org_id=invitation.org_id,
            user_id=current_user.id,
            role=invitation.role,
            invited_by=invitation.invited_by,
        )
        db.add(member)
    else:
        logger.info(f"User {current_user.id} already in org {invitation.org_id}, keeping role {member.role}")

    invitation.status = "accepted"
    invitation.accepted_at = datetime.utcnow()
    invitation.accepted_by = current_user.id
    db.commit()
    return InviteAcceptResponse(success=True, org_id=invitation.org_id, role=member.role)
