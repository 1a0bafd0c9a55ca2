from sqlalchemy import Column, String, Integer, Boolean, ForeignKey, DateTime, Enum, func
from sqlalchemy.orm import relationship
from hospitality_hub.database import Base
import enum

class UserRole(str, enum.Enum):
    owner = "owner"
    manager = "manager"
    staff = "staff"
    viewer = "viewer"

class UserStatus(str, enum.Enum):
    active = "active"
    suspended = "suspended"

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    auth_id = Column(String, unique=True, nullable=False)
    email = Column(String, unique=True, nullable=False, index=True)
    full_name = Column(String)
    hashed_password = Column(String, nullable=True)  # PIN-only staff have no password
    pin_hash = Column(String, nullable=True)
    role = Column(Enum(UserRole, name="userrole"), nullable=False, default=UserRole.staff)
    status = Column(Enum(UserStatus, name="userstatus"), nullable=False, default=UserStatus.active)

    # Global override, independent of any organization
    is_platform_admin = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    # Nullable: cleared when the user is removed from the organization
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=True, index=True)

    organization = relationship("Organization", backref="users")

    def __repr__(self):
        return f"<User(id={self.id}, role={self.role}, org={self.organization_id})>"
