from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from hospitality_hub.access.errors import OrganizationNotFound
from hospitality_hub.access.limits import ResourceKind, check_limit
from hospitality_hub.access.service import load_organization
from hospitality_hub.models.user import User
from hospitality_hub.api.deps import get_db, get_current_user

router = APIRouter()

@router.get("/")
async def get_org_limits(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    org = await load_organization(db, current_user.organization_id)
    if not org:
        raise OrganizationNotFound("Organization not found")

    return {
        "organization_id": org.id,
        "name": org.name,
        "subscription_plan": org.subscription_plan,
        "is_grandfathered": org.is_grandfathered,
        "user_limit": org.user_limit,
        "item_limit": org.item_limit,
        "storage_area_limit": org.storage_area_limit,
    }

@router.get("/{resource_kind}")
async def get_resource_limit(
    resource_kind: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    try:
        kind = ResourceKind(resource_kind)
    except ValueError:
        raise HTTPException(status_code=404, detail=f"Unknown resource kind: {resource_kind}")
    if current_user.organization_id is None:
        raise OrganizationNotFound("Organization not found")

    result = await check_limit(db, current_user.organization_id, kind)
    return result.model_dump()
