from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime
from decimal import Decimal


class EventCreate(BaseModel):
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    date: Optional[str] = None  # YYYY-MM-DD as entered by the organizer
    time: Optional[str] = None
    location: Optional[str] = None
    type: str = "free"  # free | paid
    price: Optional[Decimal] = None
    total_tickets: Optional[int] = None  # None means unlimited
    status: str = "draft"  # draft | published


class EventUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None
    location: Optional[str] = None
    type: Optional[str] = None
    price: Optional[Decimal] = None
    total_tickets: Optional[int] = None
    status: Optional[str] = None


class Event(BaseModel):
    id: str
    org_id: str
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None
    location: Optional[str] = None
    type: str
    price: Optional[Decimal] = None
    total_tickets: Optional[int] = None
    sold_tickets: int
    status: str
    published_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class EventCancelRequest(BaseModel):
    notify_attendees: bool = False
    refund_info: Optional[str] = None
    contact_email: Optional[str] = None


class BookingCreate(BaseModel):
    quantity: int = 1
    ticket_type: Optional[str] = None
    name: Optional[str] = None
    phone: Optional[str] = None


class Booking(BaseModel):
    id: str
    event_id: str
    email: str
    name: Optional[str] = None
    phone: Optional[str] = None
    quantity: int
    ticket_type: str
    status: str
    ticket_id: Optional[str] = None
    checked_in: bool
    checked_in_at: Optional[datetime] = None
    checked_in_by: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class BookingWithTicket(Booking):
    qr_data: str
    qr_code_url: str


class RsvpCreate(BaseModel):
    email: str
    name: str
    phone: Optional[str] = None


class Rsvp(BaseModel):
    id: str
    event_id: str
    email: str
    name: Optional[str] = None
    phone: Optional[str] = None
    status: str
    created_at: datetime

    class Config:
        from_attributes = True


class Attendees(BaseModel):
    bookings: List[Booking]
    rsvps: List[Rsvp]
    total: int
