from sqlalchemy import Column, String, Integer, ForeignKey, DateTime, Enum, UniqueConstraint, func
from sqlalchemy.orm import relationship
from hospitality_hub.database import Base
from hospitality_hub.models.organization import SubscriptionStatus
import enum

class AppId(str, enum.Enum):
    liquor_inventory = "liquor-inventory"
    guest_manager = "guest-manager"
    consumption_tracker = "consumption-tracker"
    reservation_management = "reservation-management"

class AppPlan(str, enum.Enum):
    individual = "individual"
    bundle = "bundle"

class AppSubscription(Base):
    """Trial / subscription state of one application module for one organization."""
    __tablename__ = "app_subscriptions"
    __table_args__ = (
        UniqueConstraint("organization_id", "app_id", name="uq_app_subscription_org_app"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    app_id = Column(String(50), nullable=False)  # AppId value
    subscription_status = Column(Enum(SubscriptionStatus, name="subscriptionstatus"), nullable=False, default=SubscriptionStatus.trial)
    subscription_plan = Column(Enum(AppPlan, name="appplan"), nullable=False, default=AppPlan.individual)

    trial_started_at = Column(DateTime, nullable=True)
    trial_ends_at = Column(DateTime, nullable=True)
    subscription_ends_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    organization = relationship("Organization", back_populates="app_subscriptions")

    def __repr__(self):
        return f"<AppSubscription(org={self.organization_id}, app={self.app_id}, status={self.subscription_status})>"
