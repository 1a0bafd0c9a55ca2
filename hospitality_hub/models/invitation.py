from sqlalchemy import Column, String, Integer, ForeignKey, DateTime, Enum, Text, func
from hospitality_hub.database import Base
from hospitality_hub.models.user import UserRole
from hospitality_hub.utils.dates import utcnow
from datetime import datetime, timedelta
import enum
import secrets

INVITATION_TTL_DAYS = 7

class InvitationStatus(str, enum.Enum):
    pending = "pending"
    accepted = "accepted"
    cancelled = "cancelled"
    expired = "expired"

class UserInvitation(Base):
    __tablename__ = "user_invitations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    email = Column(String, nullable=False, index=True)
    role = Column(Enum(UserRole, name="userrole"), nullable=False)
    invited_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    invitation_token = Column(String(64), unique=True, nullable=False, default=lambda: secrets.token_urlsafe(32))
    status = Column(Enum(InvitationStatus, name="invitationstatus"), nullable=False, default=InvitationStatus.pending)
    custom_message = Column(Text, nullable=True)
    expires_at = Column(DateTime, nullable=False, default=lambda: utcnow() + timedelta(days=INVITATION_TTL_DAYS))
    created_at = Column(DateTime, default=func.now())

    def is_expired(self, now: datetime = None) -> bool:
        return (now or utcnow()) >= self.expires_at
