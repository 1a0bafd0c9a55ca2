from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
import logging

from hospitality_hub.api.deps import get_db, get_current_user
from hospitality_hub.access.decisions import AccessOutcome, Permission
from hospitality_hub.access.errors import EvaluationFailed
from hospitality_hub.access.limits import ResourceKind, enforce_limit
from hospitality_hub.access.service import evaluate_access
from hospitality_hub.models.app_subscription import AppId
from hospitality_hub.models.inventory import InventoryItem, StorageArea
from hospitality_hub.models.user import User

logger = logging.getLogger(__name__)

router = APIRouter()

class StorageAreaCreate(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None

class StorageAreaOut(BaseModel):
    id: int
    name: str
    description: Optional[str]

    model_config = ConfigDict(from_attributes=True)

class ItemCreate(BaseModel):
    name: str = Field(min_length=1)
    brand: Optional[str] = None
    category: Optional[str] = None
    par_level: int = 0

class ItemOut(BaseModel):
    id: int
    name: str
    brand: Optional[str]
    category: Optional[str]
    par_level: int

    model_config = ConfigDict(from_attributes=True)

async def require_inventory_permission(db: AsyncSession, user: User, permission: Permission) -> int:
    """Gate on module access first, then on the role's permission inside the module."""
    decision = await evaluate_access(db, user, AppId.liquor_inventory)
    if decision.outcome == AccessOutcome.evaluation_failed:
        raise EvaluationFailed(decision.reason)
    if not decision.has_access:
        raise HTTPException(
            status_code=status.HTTP_402_PAYMENT_REQUIRED,
            detail={"outcome": decision.outcome.value, "reason": decision.reason},
        )
    if permission not in decision.permissions:
        raise HTTPException(status_code=403, detail=f"Your role does not allow '{permission.value}' in liquor inventory")
    if user.organization_id is None:
        raise HTTPException(status_code=400, detail="Platform admins must belong to an organization to manage inventory")
    return user.organization_id

@router.get("/items", response_model=List[ItemOut])
async def list_items(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    organization_id = await require_inventory_permission(db, current_user, Permission.view)
    result = await db.execute(
        select(InventoryItem).where(InventoryItem.organization_id == organization_id).order_by(InventoryItem.name)
    )
    return result.scalars().all()

@router.post("/items", response_model=ItemOut, status_code=status.HTTP_201_CREATED)
async def create_item(
    payload: ItemCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    organization_id = await require_inventory_permission(db, current_user, Permission.create)
    await enforce_limit(db, organization_id, ResourceKind.items)

    item = InventoryItem(organization_id=organization_id, **payload.model_dump())
    db.add(item)
    await db.commit()
    await db.refresh(item)
    return item

@router.get("/storage-areas", response_model=List[StorageAreaOut])
async def list_storage_areas(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    organization_id = await require_inventory_permission(db, current_user, Permission.view)
    result = await db.execute(
        select(StorageArea).where(StorageArea.organization_id == organization_id).order_by(StorageArea.name)
    )
    return result.scalars().all()

@router.post("/storage-areas", response_model=StorageAreaOut, status_code=status.HTTP_201_CREATED)
async def create_storage_area(
    payload: StorageAreaCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    organization_id = await require_inventory_permission(db, current_user, Permission.create)
    await enforce_limit(db, organization_id, ResourceKind.storage_areas)

    area = StorageArea(organization_id=organization_id, **payload.model_dump())
    db.add(area)
    await db.commit()
    await db.refresh(area)
    return area
