from sqlalchemy import Column, String, ForeignKey, DateTime, UniqueConstraint
import enum
import uuid
from datetime import datetime
from app.db.session import Base


class MemberRole(str, enum.Enum):
    OWNER = "owner"
    ADMIN = "admin"
    PROJECT_MANAGER = "project_manager"
    GATE_STAFF = "gate_staff"


# Roles allowed to manage billing, team and event lifecycle
MANAGER_ROLES = (MemberRole.OWNER.value, MemberRole.ADMIN.value)
# Roles allowed to create and edit events
EVENT_EDITOR_ROLES = MANAGER_ROLES + (MemberRole.PROJECT_MANAGER.value,)


class OrganizationMember(Base):
    """
    Membership of a user in an organization (team).
    A user can belong to several organizations with a different role in each.
    """
    __tablename__ = "organization_members"

    id = Column(String(64), primary_key=True, default=lambda: str(uuid.uuid4()))
    org_id = Column(String(64), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(String(32), nullable=False, default=MemberRole.GATE_STAFF.value)
    invited_by = Column(String(64), nullable=True)
    joined_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("org_id", "user_id", name="uq_organization_members_org_user"),
    )
