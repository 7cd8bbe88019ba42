from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
import logging
from app.db.session import get_db
from app.api.deps import get_current_user, get_membership, get_email_service
from app.models.user import User
from app.models.event import Event
from app.models.booking import Booking
from app.schemas.ticket import TicketValidateRequest, TicketEmailRequest, TicketEmailResponse
from app.services.email_service import EmailService
from app.services.tickets import generate_ticket_id, validate_qr_code, check_in_with_qr

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/validate")
def validate_ticket(
    body: TicketValidateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Gate scanner endpoint. Validates the scanned QR payload against the event and,
    when checkIn is set, checks the attendee in. Invalid tickets still return 200
    with valid=false so the scanner can show the reason.
    """
    if not body.qrData or not body.eventId:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="qrData and eventId are required")

    event = db.query(Event).filter(Event.id == body.eventId).first()
    if not event:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    get_membership(db, event.org_id, current_user)

    if body.checkIn:
        result = check_in_with_qr(db, body.qrData, body.eventId, current_user.email)
    else:
        result = validate_qr_code(db, body.qrData, body.eventId)
    if not result.valid:
        logger.info(f"[TICKETS] Rejected scan for event {body.eventId}: {result.message}")
    return result.to_dict()


@router.post("/send-email", response_model=TicketEmailResponse)
def send_ticket_email(
    body: TicketEmailRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    email_service: EmailService = Depends(get_email_service),
):
    if not body.email or not body.bookingId or not body.eventId:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="email, bookingId and eventId are required",
        )

    event = db.query(Event).filter(Event.id == body.eventId).first()
    if not event:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    get_membership(db, event.org_id, current_user)

    booking = db.query(Booking).filter(Booking.id == body.bookingId).first()
    if booking is not None and booking.event_id != event.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Booking does not belong to this event")

    ticket_id = generate_ticket_id()
    if booking is not None:
        booking.ticket_id = ticket_id
        db.commit()

    attendee_name = body.attendeeName or (booking.name if booking else None) or body.email.split("@")[0]
    sent = email_service.send_ticket_email(
        email=body.email,
        attendee_name=attendee_name,
        event_name=body.eventName or event.name,
        ticket_id=ticket_id,
        booking_id=body.bookingId,
        event_id=body.eventId,
        event_date=body.eventDate or event.date or "TBD",
        event_time=body.eventTime or event.time or "TBD",
        event_location=body.eventLocation or event.location or "TBD",
        ticket_type=body.ticketType or (booking.ticket_type if booking else "General Admission"),
        quantity=body.quantity or (booking.quantity if booking else 1),
    )
    if not sent:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to send ticket email")
    return TicketEmailResponse(success=True, message="Ticket email sent successfully", ticketId=ticket_id)
