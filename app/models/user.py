from sqlalchemy import Column, String, Boolean, DateTime
import uuid
from datetime import datetime
from app.db.session import Base


class User(Base):
    __tablename__ = "users"

    id = Column(String(64), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String, nullable=False, unique=True, index=True)  # Stored lower-cased
    hashed_password = Column(String, nullable=False)
    display_name = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    is_admin = Column(Boolean, default=False, nullable=False)  # Platform admin (admin dashboard)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
