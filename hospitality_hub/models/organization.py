from sqlalchemy import Column, String, Integer, Boolean, DateTime, Enum, func
from sqlalchemy.orm import relationship
from hospitality_hub.database import Base
import enum

class SubscriptionPlan(str, enum.Enum):
    trial = "trial"
    free = "free"
    starter = "starter"
    professional = "professional"
    enterprise = "enterprise"

class SubscriptionStatus(str, enum.Enum):
    trial = "trial"
    active = "active"
    past_due = "past_due"
    cancelled = "cancelled"
    expired = "expired"
    cancelling = "cancelling"

UNLIMITED = -1

# Default resource limits per plan: (users, items, storage areas)
PLAN_LIMITS = {
    SubscriptionPlan.trial: {"user_limit": 10, "item_limit": 1000, "storage_area_limit": 10},
    SubscriptionPlan.free: {"user_limit": 2, "item_limit": 100, "storage_area_limit": 2},
    SubscriptionPlan.starter: {"user_limit": 5, "item_limit": 500, "storage_area_limit": 5},
    SubscriptionPlan.professional: {"user_limit": 25, "item_limit": 5000, "storage_area_limit": 25},
    SubscriptionPlan.enterprise: {"user_limit": UNLIMITED, "item_limit": UNLIMITED, "storage_area_limit": UNLIMITED},
}

class Organization(Base):
    __tablename__ = "organizations"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String, nullable=False)
    slug = Column(String, unique=True)

    subscription_plan = Column(Enum(SubscriptionPlan, name="subscriptionplan"), default=SubscriptionPlan.trial)
    subscription_status = Column(Enum(SubscriptionStatus, name="subscriptionstatus"), default=SubscriptionStatus.trial)
    trial_ends_at = Column(DateTime, nullable=True)
    subscription_period_end = Column(DateTime, nullable=True)

    # -1 means unlimited
    user_limit = Column(Integer, default=PLAN_LIMITS[SubscriptionPlan.trial]["user_limit"])
    item_limit = Column(Integer, default=PLAN_LIMITS[SubscriptionPlan.trial]["item_limit"])
    storage_area_limit = Column(Integer, default=PLAN_LIMITS[SubscriptionPlan.trial]["storage_area_limit"])

    # Legacy / goodwill accounts skip every subscription and limit check
    is_grandfathered = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    app_subscriptions = relationship("AppSubscription", back_populates="organization")

    def __repr__(self):
        return f"<Organization(id={self.id}, plan={self.subscription_plan}, status={self.subscription_status})>"

    def apply_plan_limits(self, plan: SubscriptionPlan):
        """Reset the resource limits to the defaults of the given plan."""
        for field, value in PLAN_LIMITS[plan].items():
            setattr(self, field, value)
