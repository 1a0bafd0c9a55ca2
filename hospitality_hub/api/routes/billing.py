from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from hospitality_hub.access.decisions import can_perform_feature
from hospitality_hub.access.errors import InsufficientRole, OrganizationNotFound
from hospitality_hub.access.limits import usage_summary
from hospitality_hub.access.service import load_organization
from hospitality_hub.models.user import User
from hospitality_hub.api.deps import get_db, get_current_user

router = APIRouter()

@router.get("/usage")
async def get_billing_usage(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    if not can_perform_feature(current_user.role, "organization-settings", "view-settings"):
        raise InsufficientRole("Only owners and managers can view billing usage")

    organization = await load_organization(db, current_user.organization_id)
    if not organization:
        raise OrganizationNotFound("Organization not found")

    return {
        "organization": {
            "id": organization.id,
            "name": organization.name,
            "plan": organization.subscription_plan,
            "status": organization.subscription_status,
            "trial_ends_at": organization.trial_ends_at.isoformat() if organization.trial_ends_at else None,
            "is_grandfathered": organization.is_grandfathered,
        },
        "usage": await usage_summary(db, organization),
    }
