"""
Events and registrations.

Organizers create and manage events under their organization. Attendees register either
through a booking (mobile app, signed in, carries a ticket) or an RSVP (public web page).
"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, update
from sqlalchemy.orm import Session
from datetime import datetime
from typing import List, Optional
import logging
from app.db.session import get_db
from app.api.deps import get_current_user, get_membership, require_org_role, get_email_service
from app.models.user import User
from app.models.organization import Organization
from app.models.organization_member import EVENT_EDITOR_ROLES
from app.models.event import Event, ACTIVE_EVENT_STATUSES
from app.models.booking import Booking
from app.models.rsvp import Rsvp
from app.schemas.event import (
    Event as EventSchema,
    EventCreate,
    EventUpdate,
    EventCancelRequest,
    Booking as BookingSchema,
    BookingCreate,
    BookingWithTicket,
    Rsvp as RsvpSchema,
    RsvpCreate,
    Attendees,
)
from app.services.email_service import EmailService, collect_event_attendees
from app.services.feature_gate import can_create_event, can_add_attendee, get_upgrade_message
from app.services.tickets import generate_ticket_id, build_qr_payload, qr_code_url

logger = logging.getLogger(__name__)

router = APIRouter()

EVENT_TYPES = ("free", "paid")
EDITABLE_STATUSES = ("draft", "published", "archived")


def _get_event(db: Session, event_id: str) -> Event:
    event = db.query(Event).filter(Event.id == event_id).first()
    if not event:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    return event


def _validate_event_fields(event_type: Optional[str], total_tickets: Optional[int], event_status: Optional[str]) -> None:
    if event_type is not None and event_type not in EVENT_TYPES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Event type must be free or paid")
    if total_tickets is not None and total_tickets < 0:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Total tickets cannot be negative")
    if event_status is not None and event_status not in EDITABLE_STATUSES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid event status: {event_status}")


def _active_event_count(db: Session, org_id: str, exclude_id: Optional[str] = None) -> int:
    query = db.query(Event).filter(Event.org_id == org_id, Event.status.in_(ACTIVE_EVENT_STATUSES))
    if exclude_id:
        query = query.filter(Event.id != exclude_id)
    return query.count()


def _attendee_count(db: Session, event_id: str) -> int:
    booked = db.query(func.coalesce(func.sum(Booking.quantity), 0)).filter(
        Booking.event_id == event_id,
        Booking.status == "confirmed",
    ).scalar()
    rsvped = db.query(Rsvp).filter(Rsvp.event_id == event_id, Rsvp.status == "confirmed").count()
    return int(booked or 0) + rsvped


def _check_attendee_limit(db: Session, event: Event, adding: int = 1) -> None:
    org = db.query(Organization).filter(Organization.id == event.org_id).first()
    gate = can_add_attendee(org, _attendee_count(db, event.id) + adding - 1)
    if not gate.allowed:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="This event has reached its attendee limit")


@router.post("/organizations/{org_id}/events", response_model=EventSchema, status_code=status.HTTP_201_CREATED)
def create_event(
    org_id: str,
    event_in: EventCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    require_org_role(db, org_id, current_user, roles=EVENT_EDITOR_ROLES)
    if not event_in.name.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Event name is required")
    _validate_event_fields(event_in.type, event_in.total_tickets, event_in.status)

    org = db.query(Organization).filter(Organization.id == org_id).first()
    if event_in.status in ACTIVE_EVENT_STATUSES:
        gate = can_create_event(org, _active_event_count(db, org_id))
        if not gate.allowed:
            logger.info(f"Event limit reached for org {org_id} ({gate.current}/{gate.limit})")
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=get_upgrade_message(gate.required_plan))

    event = Event(
        org_id=org_id,
        created_by=current_user.id,
        name=event_in.name.strip(),
        description=event_in.description,
        category=event_in.category,
        date=event_in.date,
        time=event_in.time,
        location=event_in.location,
        type=event_in.type,
        price=event_in.price if event_in.type == "paid" else None,
        total_tickets=event_in.total_tickets,
        status=event_in.status,
        published_at=datetime.utcnow() if event_in.status == "published" else None,
    )
    db.add(event)
    db.commit()
    db.refresh(event)
    return event


@router.get("/organizations/{org_id}/events", response_model=List[EventSchema])
def list_org_events(
    org_id: str,
    status_filter: Optional[str] = Query(None, alias="status"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    get_membership(db, org_id, current_user)
    query = db.query(Event).filter(Event.org_id == org_id)
    if status_filter:
        query = query.filter(Event.status == status_filter)
    return query.order_by(Event.created_at.desc()).all()


@router.get("/events/{event_id}", response_model=EventSchema)
def get_event(event_id: str, db: Session = Depends(get_db)):
    return _get_event(db, event_id)


@router.patch("/events/{event_id}", response_model=EventSchema)
def update_event(
    event_id: str,
    event_update: EventUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    event = _get_event(db, event_id)
    require_org_role(db, event.org_id, current_user, roles=EVENT_EDITOR_ROLES)
    if event.status == "cancelled":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cancelled events cannot be edited")

    update_data = event_update.model_dump(exclude_unset=True)
    _validate_event_fields(update_data.get("type"), update_data.get("total_tickets"), update_data.get("status"))
    if "name" in update_data and not (update_data["name"] or "").strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Event name cannot be empty")

    new_status = update_data.get("status")
    if new_status in ACTIVE_EVENT_STATUSES and event.status not in ACTIVE_EVENT_STATUSES:
        org = db.query(Organization).filter(Organization.id == event.org_id).first()
        gate = can_create_event(org, _active_event_count(db, event.org_id, exclude_id=event.id))
        if not gate.allowed:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=get_upgrade_message(gate.required_plan))

    for field, value in update_data.items():
        setattr(event, field, value)
    if new_status == "published" and event.published_at is None:
        event.published_at = datetime.utcnow()
    event.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(event)
    return event


@router.delete("/events/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
def archive_event(
    event_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    event = _get_event(db, event_id)
    require_org_role(db, event.org_id, current_user)
    event.status = "archived"
    event.updated_at = datetime.utcnow()
    db.commit()


@router.post("/events/{event_id}/cancel", response_model=EventSchema)
def cancel_event(
    event_id: str,
    cancel_in: EventCancelRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    email_service: EmailService = Depends(get_email_service),
):
    """Cancel an event and optionally email every registered attendee."""
    event = _get_event(db, event_id)
    require_org_role(db, event.org_id, current_user)
    if event.status == "cancelled":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Event is already cancelled")

    event.status = "cancelled"
    event.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(event)

    if cancel_in.notify_attendees:
        org = db.query(Organization).filter(Organization.id == event.org_id).first()
        recipients = collect_event_attendees(db, event.id)
        sent, failed = email_service.dispatch(
            recipients,
            lambda r: email_service.send_event_cancellation_email(
                email=r.email,
                attendee_name=r.name,
                event_name=event.name,
                organization_name=org.name if org else "",
                event_date=event.date or "",
                event_location=event.location or "",
                refund_info=cancel_in.refund_info,
                contact_email=cancel_in.contact_email or (org.email if org else None),
            ),
        )
        logger.info(f"[EMAIL] Cancellation of event {event.id}: {sent} notified, {failed} failed")
    return event


@router.post("/events/{event_id}/bookings", response_model=BookingWithTicket, status_code=status.HTTP_201_CREATED)
def create_booking(
    event_id: str,
    booking_in: BookingCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    email_service: EmailService = Depends(get_email_service),
):
    """Book tickets for a published event and email the ticket."""
    event = _get_event(db, event_id)
    if event.status != "published":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Event is not open for booking")
    quantity = booking_in.quantity
    if quantity is None or quantity < 1:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Quantity must be at least 1")
    _check_attendee_limit(db, event, adding=quantity)

    # Reserve seats atomically so two bookings cannot oversell the last tickets
    reserve = update(Event).where(Event.id == event.id)
    if event.total_tickets is not None:
        reserve = reserve.where(Event.sold_tickets + quantity <= Event.total_tickets)
    result = db.execute(
        reserve.values(sold_tickets=Event.sold_tickets + quantity).execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Not enough tickets remaining")

    booking = Booking(
        event_id=event.id,
        user_id=current_user.id,
        email=current_user.email,
        name=(booking_in.name or current_user.display_name or "").strip() or None,
        phone=(booking_in.phone or current_user.phone or "").strip() or None,
        quantity=quantity,
        ticket_type=booking_in.ticket_type or "General Admission",
        status="confirmed",
        ticket_id=generate_ticket_id(),
    )
    db.add(booking)
    db.commit()
    db.refresh(booking)

    attendee_name = booking.name or booking.email.split("@")[0]
    if not email_service.send_ticket_email(
        email=booking.email,
        attendee_name=attendee_name,
        event_name=event.name,
        ticket_id=booking.ticket_id,
        booking_id=booking.id,
        event_id=event.id,
        event_date=event.date or "TBD",
        event_time=event.time or "TBD",
        event_location=event.location or "TBD",
        ticket_type=booking.ticket_type,
        quantity=booking.quantity,
    ):
        logger.warning(f"[EMAIL] Ticket email not sent for booking {booking.id}")

    qr_data = build_qr_payload(booking.id, event.id, booking.ticket_id)
    return BookingWithTicket(
        **BookingSchema.model_validate(booking).model_dump(),
        qr_data=qr_data,
        qr_code_url=qr_code_url(qr_data),
    )


@router.post("/events/{event_id}/rsvps", response_model=RsvpSchema, status_code=status.HTTP_201_CREATED)
def create_rsvp(event_id: str, rsvp_in: RsvpCreate, db: Session = Depends(get_db)):
    event = _get_event(db, event_id)
    if event.status != "published":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Event is not open for registration")
    email = rsvp_in.email.strip().lower()
    if not email or "@" not in email:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="A valid email is required")
    if not rsvp_in.name.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Name is required")

    duplicate = db.query(Rsvp).filter(
        Rsvp.event_id == event_id,
        func.lower(Rsvp.email) == email,
        Rsvp.status == "confirmed",
    ).first()
    if duplicate:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You have already registered for this event")
    _check_attendee_limit(db, event)

    rsvp = Rsvp(
        event_id=event_id,
        email=email,
        name=rsvp_in.name.strip(),
        phone=(rsvp_in.phone or "").strip() or None,
        status="confirmed",
    )
    db.add(rsvp)
    db.commit()
    db.refresh(rsvp)
    return rsvp


@router.get("/events/{event_id}/attendees", response_model=Attendees)
def list_attendees(
    event_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    event = _get_event(db, event_id)
    get_membership(db, event.org_id, current_user)
    bookings = db.query(Booking).filter(Booking.event_id == event_id).order_by(Booking.created_at).all()
    rsvps = db.query(Rsvp).filter(Rsvp.event_id == event_id).order_by(Rsvp.created_at).all()
    return Attendees(
        bookings=[BookingSchema.model_validate(b) for b in bookings],
        rsvps=[RsvpSchema.model_validate(r) for r in rsvps],
        total=len(bookings) + len(rsvps),
    )


@router.post("/bookings/{booking_id}/cancel", response_model=BookingSchema)
def cancel_booking(
    booking_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    booking = db.query(Booking).filter(Booking.id == booking_id).first()
    if not booking or booking.user_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found")
    if booking.status == "cancelled":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Booking is already cancelled")
    if booking.checked_in:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Checked-in bookings cannot be cancelled")

    booking.status = "cancelled"
    booking.updated_at = datetime.utcnow()
    db.execute(
        update(Event)
        .where(Event.id == booking.event_id, Event.sold_tickets >= booking.quantity)
        .values(sold_tickets=Event.sold_tickets - booking.quantity)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    db.refresh(booking)
    return booking
