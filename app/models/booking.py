from sqlalchemy import Column, String, DateTime, ForeignKey, Integer, Boolean
import uuid
from datetime import datetime
from app.db.session import Base


class Booking(Base):
    """
    Ticket-bearing registration made from the mobile app.
    The ticket itself is not stored separately: ticket_id is embedded in the QR payload
    and check-in state lives on the booking.
    """
    __tablename__ = "bookings"

    id = Column(String(64), primary_key=True, default=lambda: str(uuid.uuid4()))
    event_id = Column(String(64), ForeignKey("events.id"), nullable=False, index=True)
    user_id = Column(String(64), ForeignKey("users.id"), nullable=True, index=True)
    email = Column(String, nullable=False, index=True)
    name = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    quantity = Column(Integer, nullable=False, default=1)
    ticket_type = Column(String, nullable=False, default="General Admission")
    status = Column(String, nullable=False, default="confirmed", index=True)  # confirmed | cancelled
    ticket_id = Column(String, nullable=True, index=True)

    checked_in = Column(Boolean, nullable=False, default=False)
    checked_in_at = Column(DateTime, nullable=True)
    checked_in_by = Column(String, nullable=True)
    check_in_method = Column(String, nullable=True)  # qr | manual

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
