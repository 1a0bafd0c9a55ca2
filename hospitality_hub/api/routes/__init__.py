from fastapi import APIRouter, Depends
from .auth import router as auth_router
from .access import router as access_router
from .limits import router as limits_router
from .billing import router as billing_router
from .team import router as team_router
from .inventory import router as inventory_router
from hospitality_hub.api.deps import get_current_user

router = APIRouter()

# Public auth routes
router.include_router(auth_router, prefix="/auth", tags=["Authentication"])

# Protected user routes are protected at the router level
protected_user_api = APIRouter(dependencies=[Depends(get_current_user)])
protected_user_api.include_router(access_router, prefix="/access", tags=["Access"])
protected_user_api.include_router(limits_router, prefix="/limits", tags=["Limits"])
protected_user_api.include_router(billing_router, prefix="/billing", tags=["Billing"])
protected_user_api.include_router(inventory_router, prefix="/inventory", tags=["Inventory"])

router.include_router(protected_user_api)

# Team routes: invitation acceptance is public, everything else resolves the user itself
router.include_router(team_router, prefix="/team", tags=["Team"])
