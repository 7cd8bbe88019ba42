from sqlalchemy import Column, String, DateTime, ForeignKey, Integer, Numeric, Text
import uuid
from datetime import datetime
from app.db.session import Base

# Events counted against the plan's active-event limit
ACTIVE_EVENT_STATUSES = ("draft", "published")


class Event(Base):
    __tablename__ = "events"

    id = Column(String(64), primary_key=True, default=lambda: str(uuid.uuid4()))
    org_id = Column(String(64), ForeignKey("organizations.id"), nullable=False, index=True)
    created_by = Column(String(64), ForeignKey("users.id"), nullable=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String, nullable=True)
    date = Column(String, nullable=True)  # As entered by the organizer, e.g. "2026-11-02"
    time = Column(String, nullable=True)  # e.g. "18:00"
    location = Column(String, nullable=True)
    type = Column(String, nullable=False, default="free")  # free | paid
    price = Column(Numeric(10, 2), nullable=True)
    total_tickets = Column(Integer, nullable=True)  # null = unlimited
    sold_tickets = Column(Integer, nullable=False, default=0)
    status = Column(String, nullable=False, default="draft", index=True)  # draft | published | archived | cancelled
    published_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
