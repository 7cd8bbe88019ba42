"""
Tikiti email sending on top of BrevoClient.

Single sends return True/False and log failures; bulk sends fan out in bounded
batches and tally results.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import ServiceError
from app.models.booking import Booking
from app.models.rsvp import Rsvp
from app.services import email_templates
from app.services.brevo import BrevoClient
from app.services.tickets import build_qr_payload, ticket_pdf_url

logger = logging.getLogger(__name__)

BULK_BATCH_SIZE = 10


@dataclass
class Recipient:
    email: str
    name: str = ""
    phone: Optional[str] = None


def collect_event_attendees(db: Session, event_id: str) -> List[Recipient]:
    """Confirmed bookings, then confirmed RSVPs, de-duplicated by email (first wins)."""
    candidates: List[Recipient] = []

    bookings = (
        db.query(Booking)
        .filter(Booking.event_id == event_id, Booking.status == "confirmed")
        .order_by(Booking.created_at)
        .all()
    )
    for booking in bookings:
        if booking.email:
            candidates.append(Recipient(
                email=booking.email,
                name=booking.name or booking.email.split("@")[0],
                phone=booking.phone,
            ))

    rsvps = (
        db.query(Rsvp)
        .filter(Rsvp.event_id == event_id, Rsvp.status == "confirmed")
        .order_by(Rsvp.created_at)
        .all()
    )
    for rsvp in rsvps:
        if rsvp.email:
            candidates.append(Recipient(
                email=rsvp.email,
                name=rsvp.name or rsvp.email.split("@")[0],
                phone=rsvp.phone,
            ))

    seen = set()
    unique: List[Recipient] = []
    for recipient in candidates:
        key = recipient.email.strip().lower()
        if key in seen:
            continue
        seen.add(key)
        unique.append(recipient)
    return unique


def _app_url(path: str) -> str:
    return f"{settings.APP_URL.rstrip('/')}{path}"


class EmailService:
    def __init__(self, client: Optional[BrevoClient] = None):
        self.client = client or BrevoClient()

    @property
    def is_configured(self) -> bool:
        return self.client.is_configured

    def _deliver(self, kind: str, to_email: str, subject: str, html: str, to_name: Optional[str] = None) -> bool:
        try:
            self.client.send_email(to_email, subject, html, to_name=to_name)
        except ServiceError as e:
            logger.error(f"[EMAIL] Error sending {kind} email to {to_email}: {e.message}")
            return False
        logger.info(f"[EMAIL] {kind.capitalize()} email sent to {to_email}")
        return True

    def send_welcome_email(self, email: str, name: str, org_name: str) -> bool:
        subject, html = email_templates.welcome_organization(name, org_name, _app_url("/login"))
        return self._deliver("welcome", email, subject, html, to_name=name)

    def send_invitation_email(
        self,
        email: str,
        org_name: str,
        inviter_name: str,
        role: str,
        invite_token: str,
        invitee_name: Optional[str] = None,
    ) -> bool:
        subject, html = email_templates.team_invitation(
            org_name=org_name,
            inviter_name=inviter_name,
            role=role,
            invite_url=_app_url(f"/invite/{invite_token}"),
            invitee_name=invitee_name,
        )
        return self._deliver("invitation", email, subject, html, to_name=invitee_name or email)

    def send_ticket_email(
        self,
        email: str,
        attendee_name: str,
        event_name: str,
        ticket_id: str,
        booking_id: str,
        event_id: str,
        event_date: str = "TBD",
        event_time: str = "TBD",
        event_location: str = "TBD",
        ticket_type: str = "General Admission",
        quantity: int = 1,
    ) -> bool:
        qr_data = build_qr_payload(booking_id, event_id, ticket_id)
        pdf_url = ticket_pdf_url(
            ticket_id=ticket_id,
            booking_id=booking_id,
            event_id=event_id,
            event_name=event_name,
            event_date=event_date,
            event_time=event_time,
            event_location=event_location,
            attendee_name=attendee_name,
            quantity=quantity,
        )
        subject, html = email_templates.ticket_confirmation(
            attendee_name=attendee_name,
            event_name=event_name,
            event_date=event_date,
            event_time=event_time,
            event_location=event_location,
            ticket_type=ticket_type,
            quantity=quantity,
            ticket_id=ticket_id,
            qr_code_data=qr_data,
            ticket_url=pdf_url,
        )
        return self._deliver("ticket", email, subject, html, to_name=attendee_name)

    def send_speaker_invitation_email(
        self,
        email: str,
        event_name: str,
        organization_name: str,
        inviter_name: str,
        role: str,
        invite_token: str,
        speaker_name: Optional[str] = None,
        session_title: Optional[str] = None,
        personal_message: Optional[str] = None,
    ) -> bool:
        subject, html = email_templates.speaker_invitation(
            event_name=event_name,
            organization_name=organization_name,
            inviter_name=inviter_name,
            role=role,
            profile_url=_app_url(f"/speaker/{invite_token}"),
            speaker_name=speaker_name,
            session_title=session_title,
            personal_message=personal_message,
        )
        return self._deliver("speaker invitation", email, subject, html, to_name=speaker_name or email)

    def send_event_update_email(
        self,
        email: str,
        attendee_name: str,
        event_id: str,
        event_name: str,
        organization_name: str,
        changes: Sequence[dict],
        event_date: str = "",
        event_time: str = "",
        event_location: str = "",
    ) -> bool:
        subject, html = email_templates.event_update(
            attendee_name=attendee_name,
            event_name=event_name,
            organization_name=organization_name,
            changes=changes,
            event_date=event_date,
            event_time=event_time,
            event_location=event_location,
            event_url=f"{settings.WEB_URL.rstrip('/')}/events/{event_id}",
        )
        return self._deliver("event update", email, subject, html, to_name=attendee_name)

    def send_event_cancellation_email(
        self,
        email: str,
        attendee_name: str,
        event_name: str,
        organization_name: str,
        event_date: str = "",
        event_location: str = "",
        refund_info: Optional[str] = None,
        contact_email: Optional[str] = None,
    ) -> bool:
        subject, html = email_templates.event_cancellation(
            attendee_name=attendee_name,
            event_name=event_name,
            organization_name=organization_name,
            event_date=event_date,
            event_location=event_location,
            refund_info=refund_info,
            contact_email=contact_email,
        )
        return self._deliver("event cancellation", email, subject, html, to_name=attendee_name)

    def send_bulk_message(self, recipient: Recipient, subject: str, message: str, event_name: str) -> bool:
        html = email_templates.bulk_message(recipient.name or recipient.email, subject, message, event_name)
        return self._deliver("bulk", recipient.email, subject, html, to_name=recipient.name)

    def dispatch(self, recipients: Sequence[Recipient], send_one) -> tuple:
        """
        Call send_one(recipient) for every recipient, BULK_BATCH_SIZE at a time in parallel.
        A failure (False or an exception) counts against that recipient only.
        Returns (sent, failed).
        """
        sent = 0
        failed = 0
        with ThreadPoolExecutor(max_workers=BULK_BATCH_SIZE) as pool:
            for start in range(0, len(recipients), BULK_BATCH_SIZE):
                batch = recipients[start:start + BULK_BATCH_SIZE]
                futures = [pool.submit(send_one, r) for r in batch]
                for recipient, future in zip(batch, futures):
                    try:
                        ok = future.result()
                    except Exception:
                        logger.exception(f"[EMAIL] Unexpected error sending to {recipient.email}")
                        ok = False
                    if ok:
                        sent += 1
                    else:
                        failed += 1
        return sent, failed

    def send_bulk(self, recipients: Iterable[Recipient], subject: str, message: str, event_name: str) -> dict:
        recipients = list(recipients)
        sent, failed = self.dispatch(
            recipients,
            lambda r: self.send_bulk_message(r, subject, message, event_name),
        )
        logger.info(f"[EMAIL] Bulk email: {sent} sent, {failed} failed out of {len(recipients)}")
        return {
            "success": sent > 0,
            "emailsSent": sent,
            "emailsFailed": failed,
            "totalRecipients": len(recipients),
        }

    def test_connection(self) -> bool:
        try:
            self.client.get_account()
        except ServiceError as e:
            logger.error(f"[EMAIL] Brevo connection failed: {e.message}")
            return False
        logger.info("[EMAIL] Brevo connection successful")
        return True
