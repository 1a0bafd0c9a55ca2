from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from hospitality_hub.api.deps import get_db, get_current_user
from hospitality_hub.access import service
from hospitality_hub.access.errors import OrganizationNotFound, TrialUnavailable
from hospitality_hub.models.app_subscription import AppId
from hospitality_hub.models.user import User

router = APIRouter()

def _parse_app_id(app_id: str) -> AppId:
    try:
        return AppId(app_id)
    except ValueError:
        raise HTTPException(status_code=404, detail=f"Unknown application: {app_id}")

@router.get("/apps")
async def list_app_access(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    decisions = await service.accessible_apps(db, current_user)
    return {
        "apps": {app: decision.to_response() for app, decision in decisions.items()},
        "accessible_apps": [app for app, decision in decisions.items() if decision.has_access],
    }

@router.get("/apps/{app_id}")
async def get_app_access(
    app_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    decision = await service.evaluate_access(db, current_user, _parse_app_id(app_id))
    return decision.to_response()

@router.post("/apps/{app_id}/trial", status_code=201)
async def start_app_trial(
    app_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    app = _parse_app_id(app_id)
    if current_user.is_platform_admin:
        raise TrialUnavailable("Platform admins already have full access")
    if current_user.organization_id is None:
        raise OrganizationNotFound("Organization not found")

    subscription = await service.start_trial(db, current_user.organization_id, app)
    decision = await service.evaluate_access(db, current_user, app)
    return {
        "app_id": subscription.app_id,
        "trial_ends_at": subscription.trial_ends_at.isoformat(),
        "access": decision.to_response(),
    }
