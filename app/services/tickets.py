"""
Ticket issuance and QR validation/check-in.

Tickets are not stored on their own: a ticket id is generated per booking and embedded,
together with the booking and event ids, in a JSON QR payload. Validation re-reads the
booking to decide whether the ticket is usable.
"""
import json
import logging
import secrets
import string
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from urllib.parse import quote

from sqlalchemy import update
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.booking import Booking

logger = logging.getLogger(__name__)

_BASE36 = string.digits + string.ascii_lowercase

INVALID_FORMAT = "Invalid QR code format"
WRONG_EVENT = "This ticket is for a different event"
NOT_FOUND = "Ticket not found in system"
CANCELLED = "This ticket has been cancelled"
ALREADY_CHECKED_IN = "Already checked in"
VALID = "Valid ticket"
CHECKED_IN = "Check-in successful!"


@dataclass
class Attendee:
    id: str
    name: str
    email: str
    quantity: int
    checked_in: bool
    checked_in_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "quantity": self.quantity,
            "checkedIn": self.checked_in,
        }
        if self.checked_in_at is not None:
            data["checkedInAt"] = self.checked_in_at.isoformat()
        return data


@dataclass
class ValidationResult:
    valid: bool
    message: str
    attendee: Optional[Attendee] = None
    already_checked_in: bool = False

    def to_dict(self) -> dict:
        data = {"valid": self.valid, "message": self.message}
        if self.attendee is not None:
            data["attendee"] = self.attendee.to_dict()
        if self.already_checked_in:
            data["alreadyCheckedIn"] = True
        return data


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_ticket_id() -> str:
    """TK-<base36 epoch millis>-<6 random base36 chars>, upper-cased."""
    timestamp = _to_base36(int(time.time() * 1000))
    random_part = "".join(secrets.choice(_BASE36) for _ in range(6))
    return f"TK-{timestamp}-{random_part}".upper()


def build_qr_payload(booking_id: str, event_id: str, ticket_id: Optional[str] = None) -> str:
    return json.dumps({
        "bookingId": booking_id,
        "eventId": event_id,
        "ticketId": ticket_id or generate_ticket_id(),
    })


def qr_code_url(data: str, size: int = 200) -> str:
    return f"https://api.qrserver.com/v1/create-qr-code/?size={size}x{size}&data={quote(data, safe='')}"


def ticket_pdf_url(
    *,
    ticket_id: str,
    booking_id: str,
    event_id: str,
    event_name: str,
    event_date: str,
    event_time: str,
    event_location: str,
    attendee_name: str,
    quantity: int = 1,
) -> str:
    data = {
        "event": {
            "name": event_name,
            "date": event_date,
            "time": event_time,
            "location": event_location,
        },
        "user": {"name": attendee_name},
        "ticket": {
            "ticketId": ticket_id,
            "bookingId": booking_id,
            "eventId": event_id,
            "quantity": quantity,
        },
    }
    return f"{settings.APP_URL.rstrip('/')}/ticket-pdf.html?data={quote(json.dumps(data), safe='')}"


def _attendee_from_booking(booking: Booking) -> Attendee:
    return Attendee(
        id=booking.id,
        name=booking.name or "",
        email=booking.email,
        quantity=booking.quantity or 1,
        checked_in=bool(booking.checked_in),
        checked_in_at=booking.checked_in_at,
    )


def _already_checked_in(booking: Booking) -> ValidationResult:
    return ValidationResult(
        valid=False,
        message=ALREADY_CHECKED_IN,
        already_checked_in=True,
        attendee=_attendee_from_booking(booking),
    )


def validate_qr_code(db: Session, qr_data: str, expected_event_id: str) -> ValidationResult:
    try:
        ticket_info = json.loads(qr_data)
    except (TypeError, ValueError):
        return ValidationResult(valid=False, message=INVALID_FORMAT)
    if not isinstance(ticket_info, dict) or not ticket_info.get("ticketId"):
        return ValidationResult(valid=False, message=INVALID_FORMAT)

    if ticket_info.get("eventId") != expected_event_id:
        return ValidationResult(valid=False, message=WRONG_EVENT)

    booking_id = ticket_info.get("bookingId")
    booking = None
    if booking_id:
        booking = db.query(Booking).filter(Booking.id == str(booking_id)).first()
    if booking is None or booking.event_id != expected_event_id:
        return ValidationResult(valid=False, message=NOT_FOUND)

    if booking.status == "cancelled":
        return ValidationResult(valid=False, message=CANCELLED)

    if booking.checked_in:
        return _already_checked_in(booking)

    return ValidationResult(valid=True, message=VALID, attendee=_attendee_from_booking(booking))


def check_in_with_qr(db: Session, qr_data: str, expected_event_id: str, checked_in_by: str) -> ValidationResult:
    """Validate the ticket, then mark the booking checked in. Only the first scan wins."""
    validation = validate_qr_code(db, qr_data, expected_event_id)
    if not validation.valid or validation.attendee is None:
        return validation

    now = datetime.utcnow()
    result = db.execute(
        update(Booking)
        .where(Booking.id == validation.attendee.id, Booking.checked_in.is_(False))
        .values(
            checked_in=True,
            checked_in_at=now,
            checked_in_by=checked_in_by,
            check_in_method="qr",
            updated_at=now,
        )
        .execution_options(synchronize_session=False)
    )
    db.commit()

    booking = db.query(Booking).filter(Booking.id == validation.attendee.id).first()
    db.refresh(booking)
    if result.rowcount == 0:
        logger.info(f"[TICKETS] Concurrent check-in lost for booking {booking.id}")
        return _already_checked_in(booking)

    logger.info(f"[TICKETS] Booking {booking.id} checked in by {checked_in_by}")
    return ValidationResult(valid=True, message=CHECKED_IN, attendee=_attendee_from_booking(booking))
