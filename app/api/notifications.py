"""
Attendee notifications for event changes and cancellations.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
import logging
from app.db.session import get_db
from app.api.deps import get_current_user, require_org_role, get_email_service, get_sms_client
from app.models.user import User
from app.models.organization import Organization
from app.models.organization_member import EVENT_EDITOR_ROLES
from app.models.event import Event
from app.schemas.notification import (
    EventUpdateNotificationRequest,
    EventCancellationNotificationRequest,
    NotificationResult,
)
from app.services.arkesel import ArkeselClient
from app.services.email_service import EmailService, collect_event_attendees

logger = logging.getLogger(__name__)

router = APIRouter()


def _load_event(db: Session, event_id: str, user: User):
    event = db.query(Event).filter(Event.id == event_id).first()
    if not event:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    require_org_role(db, event.org_id, user, roles=EVENT_EDITOR_ROLES)
    org = db.query(Organization).filter(Organization.id == event.org_id).first()
    return event, org


def _sms_text(body: EventUpdateNotificationRequest) -> str:
    if body.customMessage:
        return body.customMessage
    parts = [f"{c.field} changed to {c.newValue}" for c in body.changes]
    return "Event updated. " + "; ".join(parts) if parts else "Event details have been updated."


@router.post("/event-update", response_model=NotificationResult)
def notify_event_update(
    body: EventUpdateNotificationRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    email_service: EmailService = Depends(get_email_service),
    sms_client: ArkeselClient = Depends(get_sms_client),
):
    """Tell every registered attendee what changed, by email and/or SMS."""
    if not body.eventId:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="eventId is required")
    if not body.sendEmail and not body.sendSMS:
        return NotificationResult(success=True, message="No notification channels selected")

    event, org = _load_event(db, body.eventId, current_user)
    event_name = body.eventName or event.name
    recipients = collect_event_attendees(db, event.id)
    result = NotificationResult(success=True, message="", totalAttendees=len(recipients))
    if not recipients:
        result.message = "No attendees to notify"
        return result

    if body.sendEmail:
        if body.customTitle or body.customMessage:
            subject = body.customTitle or f"Update: {event_name}"
            summary = email_service.send_bulk(recipients, subject, body.customMessage or "", event_name)
            result.emailsSent, result.emailsFailed = summary["emailsSent"], summary["emailsFailed"]
        else:
            changes = [c.model_dump() for c in body.changes]
            result.emailsSent, result.emailsFailed = email_service.dispatch(
                recipients,
                lambda r: email_service.send_event_update_email(
                    email=r.email,
                    attendee_name=r.name,
                    event_id=event.id,
                    event_name=event_name,
                    organization_name=org.name if org else "",
                    changes=changes,
                    event_date=event.date or "",
                    event_time=event.time or "",
                    event_location=event.location or "",
                ),
            )

    if body.sendSMS:
        if sms_client.is_configured:
            with_phone = [{"phone": r.phone, "name": r.name} for r in recipients if r.phone]
            sms = sms_client.send_bulk(with_phone, _sms_text(body), event_name)
            result.smsSent, result.smsFailed = sms.sent, sms.failed
        else:
            logger.warning("[SMS] Event update SMS requested but Arkesel is not configured")

    logger.info(
        f"[EMAIL] Event update for {event.id}: {result.emailsSent} emails, {result.smsSent} SMS "
        f"to {len(recipients)} attendees"
    )
    result.success = (result.emailsSent + result.smsSent) > 0
    result.message = f"Notified {result.emailsSent + result.smsSent} of {len(recipients)} attendees"
    return result


@router.post("/event-cancellation", response_model=NotificationResult)
def notify_event_cancellation(
    body: EventCancellationNotificationRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    email_service: EmailService = Depends(get_email_service),
):
    if not body.eventId:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="eventId is required")
    event, org = _load_event(db, body.eventId, current_user)
    recipients = collect_event_attendees(db, event.id)
    if not recipients:
        return NotificationResult(success=True, message="No attendees to notify")

    sent, failed = email_service.dispatch(
        recipients,
        lambda r: email_service.send_event_cancellation_email(
            email=r.email,
            attendee_name=r.name,
            event_name=body.eventName or event.name,
            organization_name=body.organizationName or (org.name if org else ""),
            event_date=body.eventDate or event.date or "",
            event_location=body.eventLocation or event.location or "",
            refund_info=body.refundInfo,
            contact_email=body.contactEmail or (org.email if org else None),
        ),
    )
    logger.info(f"[EMAIL] Cancellation notice for {event.id}: {sent} sent, {failed} failed")
    return NotificationResult(
        success=sent > 0,
        message=f"Notified {sent} of {len(recipients)} attendees",
        emailsSent=sent,
        emailsFailed=failed,
        totalAttendees=len(recipients),
    )
