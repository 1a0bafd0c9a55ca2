from sqlalchemy import Column, String, Integer, ForeignKey, DateTime, JSON, func
from hospitality_hub.database import Base

DELETED_USER_NAME = "[Deleted User]"

class ActivityLog(Base):
    __tablename__ = "activity_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)  # NULL once the user is deleted
    user_name = Column(String, nullable=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    app_id = Column(String(50), nullable=True)
    action_type = Column(String(50), nullable=False)
    action_details = Column(JSON, default=dict)
    created_at = Column(DateTime, default=func.now())
