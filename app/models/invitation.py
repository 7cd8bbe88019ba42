from sqlalchemy import Column, String, DateTime, ForeignKey
import uuid
from datetime import datetime
from app.db.session import Base


class Invitation(Base):
    """
    Invitation to join an organization's team.
    Token is one-time use and expires after INVITATION_EXPIRES_DAYS.
    """
    __tablename__ = "invitations"

    id = Column(String(64), primary_key=True, default=lambda: str(uuid.uuid4()))
    token = Column(String(64), nullable=False, unique=True, index=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(255), nullable=False, index=True)
    org_id = Column(String(64), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(String(32), nullable=False)  # admin | project_manager | gate_staff
    invited_by = Column(String(64), nullable=False)
    inviter_name = Column(String, nullable=True)
    status = Column(String(32), nullable=False, default="pending")  # pending | accepted | expired | cancelled
    expires_at = Column(DateTime, nullable=False)
    accepted_at = Column(DateTime, nullable=True)
    accepted_by = Column(String(64), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
