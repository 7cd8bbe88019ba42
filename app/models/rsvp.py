from sqlalchemy import Column, String, DateTime, ForeignKey
import uuid
from datetime import datetime
from app.db.session import Base


class Rsvp(Base):
    """Registration made from the public web event page."""
    __tablename__ = "rsvps"

    id = Column(String(64), primary_key=True, default=lambda: str(uuid.uuid4()))
    event_id = Column(String(64), ForeignKey("events.id"), nullable=False, index=True)
    email = Column(String, nullable=False, index=True)
    name = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    status = Column(String, nullable=False, default="confirmed", index=True)  # confirmed | cancelled
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
