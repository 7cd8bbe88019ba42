from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Sequence
from app.db.session import get_db
from app.models.user import User
from app.models.organization import Organization
from app.models.organization_member import OrganizationMember, MANAGER_ROLES
from app.core.security import decode_access_token
from app.services.paystack import PaystackClient
from app.services.email_service import EmailService
from app.services.arkesel import ArkeselClient
from app.services.ai_writer import AIWriter

security = HTTPBearer()


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """Resolve the bearer token to a user. Prefers user_id from the token, falls back to sub (email)."""
    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    email = payload.get("sub")
    if email is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
        )

    user = None
    user_id = payload.get("user_id")
    if user_id:
        user = db.query(User).filter(User.id == str(user_id)).first()
    if user is None:
        user = db.query(User).filter(User.email == email.lower()).first()
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    return user


def require_platform_admin(current_user: User = Depends(get_current_user)) -> User:
    """Tikiti staff only (admin dashboard, diagnostics)."""
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Platform admin access required",
        )
    return current_user


def get_membership(db: Session, org_id: str, user: User) -> OrganizationMember:
    """Membership of user in org; 404 if the org does not exist, 403 if the user is not a member."""
    org = db.query(Organization).filter(Organization.id == org_id).first()
    if not org:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Organization not found")
    member = db.query(OrganizationMember).filter(
        OrganizationMember.org_id == org_id,
        OrganizationMember.user_id == user.id,
    ).first()
    if not member:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You are not a member of this organization",
        )
    return member


def require_org_role(
    db: Session,
    org_id: str,
    user: User,
    roles: Sequence[str] = MANAGER_ROLES,
) -> OrganizationMember:
    member = get_membership(db, org_id, user)
    if member.role not in roles:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Your role does not allow this action",
        )
    return member


# Remote service clients. Tests swap these through app.dependency_overrides.

def get_paystack_client() -> PaystackClient:
    return PaystackClient()


def get_email_service() -> EmailService:
    return EmailService()


def get_sms_client() -> ArkeselClient:
    return ArkeselClient()


def get_ai_writer() -> AIWriter:
    return AIWriter()
