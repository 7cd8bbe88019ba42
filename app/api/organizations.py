"""
Organization (team) endpoints: create and manage organizations, list members, invite users.
Management actions require the caller to be owner or admin of the org.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from datetime import datetime, timedelta
from typing import List
import logging
import re
import secrets
import string
from app.db.session import get_db
from app.api.deps import get_current_user, get_membership, require_org_role, get_email_service
from app.models.user import User
from app.models.organization import Organization
from app.models.organization_member import OrganizationMember, MemberRole
from app.models.invitation import Invitation
from app.core.rate_limit import invite_limiter
from app.schemas.organization import (
    Organization as OrganizationSchema,
    OrganizationCreate,
    OrganizationUpdate,
    Member,
)
from app.schemas.invitation import Invitation as InvitationSchema, InvitationCreate
from app.services.email_service import EmailService
from app.services.email_templates import INVITATION_EXPIRES_DAYS
from app.services.feature_gate import can_add_team_member

logger = logging.getLogger(__name__)

router = APIRouter()

INVITABLE_ROLES = (
    MemberRole.ADMIN.value,
    MemberRole.PROJECT_MANAGER.value,
    MemberRole.GATE_STAFF.value,
)


def slugify(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", (name or "").lower()).strip("-")
    return slug or "org"


def _unique_slug(db: Session, name: str) -> str:
    base = slugify(name)
    slug = base
    while db.query(Organization).filter(Organization.slug == slug).first():
        suffix = "".join(secrets.choice(string.ascii_lowercase + string.digits) for _ in range(6))
        slug = f"{base}-{suffix}"
    return slug


def _normalize_role(role: str) -> str:
    r = (role or MemberRole.GATE_STAFF.value).strip().lower()
    if r not in INVITABLE_ROLES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Role must be one of: {', '.join(INVITABLE_ROLES)}",
        )
    return r


@router.post("", response_model=OrganizationSchema, status_code=status.HTTP_201_CREATED)
def create_organization(
    org_in: OrganizationCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    email_service: EmailService = Depends(get_email_service),
):
    """Create an organization on the starter plan with the caller as owner, then send the welcome email."""
    name = org_in.name.strip()
    if not name:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Organization name is required")

    org = Organization(
        name=name,
        slug=_unique_slug(db, name),
        email=(org_in.email or current_user.email).strip().lower(),
        phone=(org_in.phone or "").strip() or None,
        subscription_plan="starter",
        subscription_status="active",
    )
    db.add(org)
    db.flush()
    db.add(OrganizationMember(org_id=org.id, user_id=current_user.id, role=MemberRole.OWNER.value))
    db.commit()
    db.refresh(org)

    sent = email_service.send_welcome_email(
        email=current_user.email,
        name=current_user.display_name or current_user.email.split("@")[0],
        org_name=org.name,
    )
    if not sent:
        logger.warning(f"[EMAIL] Welcome email not sent for org {org.id}")
    return OrganizationSchema.from_org(org, role=MemberRole.OWNER.value)


@router.get("", response_model=List[OrganizationSchema])
def list_my_organizations(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    rows = (
        db.query(Organization, OrganizationMember.role)
        .join(OrganizationMember, OrganizationMember.org_id == Organization.id)
        .filter(OrganizationMember.user_id == current_user.id)
        .order_by(Organization.created_at)
        .all()
    )
    return [OrganizationSchema.from_org(org, role=role) for org, role in rows]


@router.get("/{org_id}", response_model=OrganizationSchema)
def get_organization(
    org_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    member = get_membership(db, org_id, current_user)
    org = db.query(Organization).filter(Organization.id == org_id).first()
    return OrganizationSchema.from_org(org, role=member.role)


@router.patch("/{org_id}", response_model=OrganizationSchema)
def update_organization(
    org_id: str,
    org_update: OrganizationUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    member = require_org_role(db, org_id, current_user)
    org = db.query(Organization).filter(Organization.id == org_id).first()
    if org_update.name is not None:
        if not org_update.name.strip():
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Organization name cannot be empty")
        org.name = org_update.name.strip()
    if org_update.email is not None:
        org.email = org_update.email.strip().lower() or None
    if org_update.phone is not None:
        org.phone = org_update.phone.strip() or None
    org.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(org)
    return OrganizationSchema.from_org(org, role=member.role)


@router.get("/{org_id}/members", response_model=List[Member])
def list_members(
    org_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    get_membership(db, org_id, current_user)
    rows = (
        db.query(OrganizationMember, User)
        .join(User, User.id == OrganizationMember.user_id)
        .filter(OrganizationMember.org_id == org_id)
        .order_by(OrganizationMember.joined_at)
        .all()
    )
    return [
        Member(
            user_id=user.id,
            email=user.email,
            display_name=user.display_name,
            role=member.role,
            joined_at=member.joined_at,
        )
        for member, user in rows
    ]


@router.post(
    "/{org_id}/invitations",
    response_model=InvitationSchema,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(invite_limiter)],
)
def invite_member(
    org_id: str,
    invite_in: InvitationCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    email_service: EmailService = Depends(get_email_service),
):
    """Invite someone to the team by email. Replaces any pending invitation for the same address."""
    require_org_role(db, org_id, current_user)
    org = db.query(Organization).filter(Organization.id == org_id).first()

    email = invite_in.email.strip().lower()
    if not email or "@" not in email:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="A valid email is required")
    role = _normalize_role(invite_in.role)

    existing_user = db.query(User).filter(User.email == email).first()
    if existing_user and db.query(OrganizationMember).filter(
        OrganizationMember.org_id == org_id,
        OrganizationMember.user_id == existing_user.id,
    ).first():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User is already a member of this organization")

    member_count = db.query(OrganizationMember).filter(OrganizationMember.org_id == org_id).count()
    gate = can_add_team_member(org, member_count)
    if not gate.allowed:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Upgrade to Pro to add more team members")

    db.query(Invitation).filter(
        Invitation.org_id == org_id,
        Invitation.email == email,
        Invitation.status == "pending",
    ).update({"status": "cancelled"}, synchronize_session=False)

    inviter_name = current_user.display_name or current_user.email
    invitation = Invitation(
        email=email,
        org_id=org_id,
        role=role,
        invited_by=current_user.id,
        inviter_name=inviter_name,
        status="pending",
        expires_at=datetime.utcnow() + timedelta(days=INVITATION_EXPIRES_DAYS),
    )
    db.add(invitation)
    db.commit()
    db.refresh(invitation)

    sent = email_service.send_invitation_email(
        email=email,
        org_name=org.name,
        inviter_name=inviter_name,
        role=role,
        invite_token=invitation.token,
        invitee_name=invite_in.name,
    )
    if not sent:
        logger.warning(f"[EMAIL] Invitation {invitation.id} created but email not sent to {email}")
    return invitation


@router.get("/{org_id}/invitations", response_model=List[InvitationSchema])
def list_invitations(
    org_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    require_org_role(db, org_id, current_user)
    return (
        db.query(Invitation)
        .filter(Invitation.org_id == org_id)
        .order_by(Invitation.created_at.desc())
        .all()
    )


def _get_pending_invitation(db: Session, org_id: str, invitation_id: str) -> Invitation:
    invitation = db.query(Invitation).filter(
        Invitation.id == invitation_id,
        Invitation.org_id == org_id,
    ).first()
    if not invitation:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invitation not found")
    if invitation.status != "pending":
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invitation has already been {invitation.status}",
        )
    return invitation


@router.post(
    "/{org_id}/invitations/{invitation_id}/resend",
    response_model=InvitationSchema,
    dependencies=[Depends(invite_limiter)],
)
def resend_invitation(
    org_id: str,
    invitation_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    email_service: EmailService = Depends(get_email_service),
):
    """Extend a pending invitation by another week and email the link again."""
    require_org_role(db, org_id, current_user)
    invitation = _get_pending_invitation(db, org_id, invitation_id)
    org = db.query(Organization).filter(Organization.id == org_id).first()

    invitation.expires_at = datetime.utcnow() + timedelta(days=INVITATION_EXPIRES_DAYS)
    db.commit()
    db.refresh(invitation)

    if not email_service.send_invitation_email(
        email=invitation.email,
        org_name=org.name,
        inviter_name=invitation.inviter_name or current_user.email,
        role=invitation.role,
        invite_token=invitation.token,
    ):
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to send invitation email")
    return invitation


@router.delete("/{org_id}/invitations/{invitation_id}", status_code=status.HTTP_204_NO_CONTENT)
def cancel_invitation(
    org_id: str,
    invitation_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    require_org_role(db, org_id, current_user)
    invitation = _get_pending_invitation(db, org_id, invitation_id)
    invitation.status = "cancelled"
    db.commit()
