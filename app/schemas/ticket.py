from pydantic import BaseModel
from typing import Optional


class TicketValidateRequest(BaseModel):
    qrData: Optional[str] = None
    eventId: Optional[str] = None
    checkIn: bool = False


class TicketEmailRequest(BaseModel):
    email: Optional[str] = None
    bookingId: Optional[str] = None
    eventId: Optional[str] = None
    eventName: Optional[str] = None
    attendeeName: Optional[str] = None
    eventDate: Optional[str] = None
    eventTime: Optional[str] = None
    eventLocation: Optional[str] = None
    ticketType: Optional[str] = None
    quantity: Optional[int] = None


class TicketEmailResponse(BaseModel):
    success: bool
    message: str
    ticketId: str
