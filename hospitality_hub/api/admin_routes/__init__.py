from fastapi import APIRouter, Depends
from .organization import router as organization_router
from hospitality_hub.api.deps import get_current_platform_admin

router = APIRouter()

# Protected admin router
protected_admin_api = APIRouter(dependencies=[Depends(get_current_platform_admin)])
protected_admin_api.include_router(organization_router, tags=["Admin Organizations"])

router.include_router(protected_admin_api, prefix="/admin")
