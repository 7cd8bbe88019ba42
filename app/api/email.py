"""
Transactional email endpoints used by the organizer dashboard (via Brevo).
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
import logging
from app.db.session import get_db
from app.api.deps import get_current_user, require_platform_admin, get_email_service
from app.core.config import settings
from app.core.exceptions import ConfigurationError
from app.core.rate_limit import diagnostics_limiter
from app.models.user import User
from app.models.organization import Organization
from app.schemas.notification import (
    InviteEmailRequest,
    WelcomeEmailRequest,
    SpeakerInviteEmailRequest,
    BulkEmailRequest,
    BulkEmailResponse,
    TestEmailRequest,
)
from app.services.email_service import EmailService, Recipient
from app.services.feature_gate import can_send_bulk_email, get_upgrade_message

logger = logging.getLogger(__name__)

router = APIRouter()


def _require(**fields) -> None:
    missing = [name for name, value in fields.items() if not value]
    if missing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Missing required fields: {', '.join(missing)}",
        )


def _sent_or_502(sent: bool, what: str) -> dict:
    if not sent:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Failed to send {what} email")
    return {"success": True, "message": f"{what.capitalize()} email sent successfully"}


@router.post("/invite")
def send_invite_email(
    body: InviteEmailRequest,
    current_user: User = Depends(get_current_user),
    email_service: EmailService = Depends(get_email_service),
):
    _require(email=body.email, orgName=body.orgName, inviteToken=body.inviteToken)
    sent = email_service.send_invitation_email(
        email=body.email,
        org_name=body.orgName,
        inviter_name=body.inviterName or current_user.display_name or current_user.email,
        role=body.role or "gate_staff",
        invite_token=body.inviteToken,
        invitee_name=body.inviteeName,
    )
    return _sent_or_502(sent, "invitation")


@router.post("/welcome")
def send_welcome_email(
    body: WelcomeEmailRequest,
    current_user: User = Depends(get_current_user),
    email_service: EmailService = Depends(get_email_service),
):
    _require(email=body.email, orgName=body.orgName)
    sent = email_service.send_welcome_email(
        email=body.email,
        name=body.name or body.email.split("@")[0],
        org_name=body.orgName,
    )
    return _sent_or_502(sent, "welcome")


@router.post("/speaker-invite")
def send_speaker_invite_email(
    body: SpeakerInviteEmailRequest,
    current_user: User = Depends(get_current_user),
    email_service: EmailService = Depends(get_email_service),
):
    _require(email=body.email, eventName=body.eventName, inviteToken=body.inviteToken)
    sent = email_service.send_speaker_invitation_email(
        email=body.email,
        event_name=body.eventName,
        organization_name=body.organizationName or "",
        inviter_name=body.inviterName or current_user.display_name or current_user.email,
        role=body.role or "speaker",
        invite_token=body.inviteToken,
        speaker_name=body.speakerName,
        session_title=body.sessionTitle,
        personal_message=body.personalMessage,
    )
    return _sent_or_502(sent, "speaker invitation")


@router.post("/bulk", response_model=BulkEmailResponse)
def send_bulk_email(
    body: BulkEmailRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    email_service: EmailService = Depends(get_email_service),
):
    """Send one message to a list of attendees, 10 at a time."""
    if body.orgId:
        try:
            org = db.query(Organization).filter(Organization.id == body.orgId).first()
            gate = can_send_bulk_email(org)
        except Exception:
            # Gate lookups never block a send
            logger.exception(f"[EMAIL] Feature gate check failed for org {body.orgId}")
        else:
            if not gate.allowed:
                raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=get_upgrade_message(gate.required_plan))

    if not body.recipients:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No recipients provided")
    if not body.subject or not body.message:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Subject and message are required")
    if not email_service.is_configured:
        raise ConfigurationError("Email service not configured")

    recipients = [Recipient(email=r.email, name=r.name or "") for r in body.recipients]
    return email_service.send_bulk(recipients, body.subject, body.message, body.eventName or "")


@router.get("/test", dependencies=[Depends(diagnostics_limiter)])
def email_diagnostics(
    admin: User = Depends(require_platform_admin),
    email_service: EmailService = Depends(get_email_service),
):
    api_key = email_service.client.api_key
    connected = email_service.test_connection() if email_service.is_configured else False
    return {
        "success": connected,
        "message": "Brevo connection successful" if connected else "Brevo connection failed",
        "diagnostics": {
            "apiKeySet": bool(api_key),
            "apiKeyType": "transactional" if api_key.startswith("xkeysib-") else ("unknown" if api_key else None),
            "senderEmail": email_service.client.sender_email,
        },
    }


@router.post("/test", dependencies=[Depends(diagnostics_limiter)])
def send_test_email(
    body: TestEmailRequest,
    admin: User = Depends(require_platform_admin),
    email_service: EmailService = Depends(get_email_service),
):
    _require(email=body.email)
    if body.type == "invite":
        sent = email_service.send_invitation_email(
            email=body.email,
            org_name="Test Organization",
            inviter_name=admin.display_name or admin.email,
            role="admin",
            invite_token="test-token",
        )
    elif body.type == "welcome":
        sent = email_service.send_welcome_email(email=body.email, name="Test User", org_name="Test Organization")
    else:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="type must be welcome or invite")
    if not sent:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to send test email")
    return {"success": True, "message": f"Test {body.type} email sent to {body.email}", "appUrl": settings.APP_URL}
