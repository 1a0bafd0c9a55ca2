from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import List, Optional
from datetime import datetime
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
import logging

from hospitality_hub.api.deps import get_db
from hospitality_hub.models.app_subscription import AppId, AppPlan, AppSubscription
from hospitality_hub.models.organization import Organization, SubscriptionPlan, SubscriptionStatus

logger = logging.getLogger(__name__)

router = APIRouter()

REQUIRED_ORGANIZATION_FIELDS = {
    "name",
    "subscription_plan",
    "subscription_status",
    "user_limit",
    "item_limit",
    "storage_area_limit",
    "is_grandfathered",
}

# ------------------- Pydantic Schemas -------------------

class OrganizationUpdate(BaseModel):
    name: Optional[str] = None
    subscription_plan: Optional[SubscriptionPlan] = None
    subscription_status: Optional[SubscriptionStatus] = None
    trial_ends_at: Optional[datetime] = None
    subscription_period_end: Optional[datetime] = None
    user_limit: Optional[int] = Field(default=None, ge=-1)
    item_limit: Optional[int] = Field(default=None, ge=-1)
    storage_area_limit: Optional[int] = Field(default=None, ge=-1)
    is_grandfathered: Optional[bool] = None

    @model_validator(mode="after")
    def reject_null_required_fields(self):
        # Omit a field to leave it unchanged, null is only valid for the date fields
        nulled = sorted(
            field for field in self.model_fields_set & REQUIRED_ORGANIZATION_FIELDS
            if getattr(self, field) is None
        )
        if nulled:
            raise ValueError(f"These fields cannot be null: {', '.join(nulled)}")
        return self


class AppSubscriptionUpdate(BaseModel):
    subscription_status: SubscriptionStatus
    subscription_plan: AppPlan = AppPlan.individual
    trial_ends_at: Optional[datetime] = None
    subscription_ends_at: Optional[datetime] = None


class AppSubscriptionOut(BaseModel):
    app_id: str
    subscription_status: SubscriptionStatus
    subscription_plan: AppPlan
    trial_ends_at: Optional[datetime]
    subscription_ends_at: Optional[datetime]

    model_config = ConfigDict(from_attributes=True)


class OrganizationOut(BaseModel):
    id: int
    name: str
    slug: Optional[str]
    subscription_plan: SubscriptionPlan
    subscription_status: SubscriptionStatus
    trial_ends_at: Optional[datetime]
    subscription_period_end: Optional[datetime]
    user_limit: int
    item_limit: int
    storage_area_limit: int
    is_grandfathered: bool

    model_config = ConfigDict(from_attributes=True)


async def _get_organization(db: AsyncSession, org_id: int) -> Organization:
    result = await db.execute(select(Organization).where(Organization.id == org_id))
    org = result.scalar_one_or_none()
    if not org:
        raise HTTPException(status_code=404, detail="Organization not found")
    return org

# ------------------- Endpoints -------------------

@router.get("/organizations", response_model=List[OrganizationOut])
async def get_all_organizations(db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(Organization).order_by(Organization.id))
    return result.scalars().all()


@router.get("/organizations/{org_id}", response_model=OrganizationOut)
async def get_organization_by_id(org_id: int, db: AsyncSession = Depends(get_db)):
    return await _get_organization(db, org_id)


@router.put("/organizations/{org_id}", response_model=OrganizationOut)
async def update_organization(org_id: int, payload: OrganizationUpdate, db: AsyncSession = Depends(get_db)):
    org = await _get_organization(db, org_id)
    changes = payload.model_dump(exclude_unset=True)

    # A plan change resets limits to the plan defaults unless limits are given explicitly
    if "subscription_plan" in changes and changes["subscription_plan"] is not None:
        org.apply_plan_limits(changes["subscription_plan"])

    for field, value in changes.items():
        setattr(org, field, value)

    await db.commit()
    await db.refresh(org)
    logger.info(f"Organization {org_id} updated by platform admin: {sorted(changes)}")
    return org


@router.get("/organizations/{org_id}/apps", response_model=List[AppSubscriptionOut])
async def list_app_subscriptions(org_id: int, db: AsyncSession = Depends(get_db)):
    await _get_organization(db, org_id)
    result = await db.execute(select(AppSubscription).where(AppSubscription.organization_id == org_id))
    return result.scalars().all()


@router.put("/organizations/{org_id}/apps/{app_id}", response_model=AppSubscriptionOut)
async def upsert_app_subscription(org_id: int, app_id: AppId, payload: AppSubscriptionUpdate, db: AsyncSession = Depends(get_db)):
    await _get_organization(db, org_id)
    result = await db.execute(
        select(AppSubscription).where(
            AppSubscription.organization_id == org_id,
            AppSubscription.app_id == app_id.value,
        )
    )
    subscription = result.scalar_one_or_none()
    if subscription is None:
        subscription = AppSubscription(organization_id=org_id, app_id=app_id.value)
        db.add(subscription)

    for field, value in payload.model_dump().items():
        setattr(subscription, field, value)

    await db.commit()
    await db.refresh(subscription)
    return subscription
