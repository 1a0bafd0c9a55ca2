"""Per-organization usage limits (users, inventory items, storage areas).

Limits are checked at the point of the mutating action. ``check_limit`` is a
read-only report; ``enforce_limit`` is the guard used right before an insert
and holds a row lock on the organization so concurrent inserts for the same
organization cannot both slip under the limit.
"""

import logging
from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from hospitality_hub.access.errors import EvaluationFailed, LimitReached, OrganizationNotFound
from hospitality_hub.models.inventory import InventoryItem, StorageArea
from hospitality_hub.models.organization import UNLIMITED, Organization
from hospitality_hub.models.user import User, UserStatus

logger = logging.getLogger(__name__)


class ResourceKind(str, Enum):
    users = "users"
    items = "items"
    storage_areas = "storage_areas"


_LIMIT_FIELDS = {
    ResourceKind.users: "user_limit",
    ResourceKind.items: "item_limit",
    ResourceKind.storage_areas: "storage_area_limit",
}

_LABELS = {
    ResourceKind.users: "user",
    ResourceKind.items: "item",
    ResourceKind.storage_areas: "storage area",
}


class LimitResult(BaseModel):
    allowed: bool
    current: int
    limit: int
    upgrade_required: bool = False
    error: Optional[str] = None


def evaluate_limit(limit: Optional[int], current: int, grandfathered: bool = False, kind: ResourceKind = ResourceKind.items) -> LimitResult:
    if grandfathered or limit == UNLIMITED:
        return LimitResult(allowed=True, current=current, limit=UNLIMITED)
    if limit is None:
        # Only -1 means unlimited, a missing limit blocks
        return LimitResult(
            allowed=False,
            current=current,
            limit=0,
            upgrade_required=True,
            error=f"No {_LABELS[kind]} limit is configured for this organization. Please contact support.",
        )

    allowed = current < limit
    return LimitResult(
        allowed=allowed,
        current=current,
        limit=limit,
        upgrade_required=not allowed,
        error=None if allowed else (
            f"You've reached your {_LABELS[kind]} limit ({limit}). Please upgrade your plan to add more."
        ),
    )


def _count_statement(organization_id: int, kind: ResourceKind):
    if kind == ResourceKind.users:
        return select(func.count(User.id)).where(
            User.organization_id == organization_id,
            User.status == UserStatus.active,
        )
    model = InventoryItem if kind == ResourceKind.items else StorageArea
    return select(func.count(model.id)).where(model.organization_id == organization_id)


async def count_resources(db: AsyncSession, organization_id: int, kind: ResourceKind) -> int:
    result = await db.execute(_count_statement(organization_id, kind))
    return result.scalar_one() or 0


async def _limit_for(db: AsyncSession, organization_id: int, kind: ResourceKind, lock: bool) -> LimitResult:
    kind = ResourceKind(kind)
    stmt = select(Organization).where(Organization.id == organization_id)
    if lock:
        stmt = stmt.with_for_update()

    try:
        result = await db.execute(stmt)
        org = result.scalar_one_or_none()
        if not org:
            raise OrganizationNotFound("Organization not found")

        limit = getattr(org, _LIMIT_FIELDS[kind])
        if org.is_grandfathered or limit == UNLIMITED:
            # No need to count when nothing can block the action
            return evaluate_limit(limit, 0, grandfathered=org.is_grandfathered, kind=kind)

        current = await count_resources(db, organization_id, kind)
    except SQLAlchemyError as e:
        logger.error(f"Failed to check {kind.value} limit for organization {organization_id}: {e}")
        raise EvaluationFailed(f"Failed to check {_LABELS[kind]} limit") from e

    return evaluate_limit(limit, current, kind=kind)


async def check_limit(db: AsyncSession, organization_id: int, kind: ResourceKind) -> LimitResult:
    return await _limit_for(db, organization_id, kind, lock=False)


async def enforce_limit(db: AsyncSession, organization_id: int, kind: ResourceKind) -> LimitResult:
    """Raise ``LimitReached`` if one more resource of ``kind`` would exceed the limit.

    Must run inside the transaction that performs the insert: the organization
    row stays locked until that transaction commits or rolls back.
    """
    result = await _limit_for(db, organization_id, kind, lock=True)
    if not result.allowed:
        logger.info(f"Organization {organization_id} reached its {ResourceKind(kind).value} limit ({result.limit})")
        raise LimitReached(result.error, result=result)
    return result


async def usage_summary(db: AsyncSession, organization: Organization) -> Dict[str, dict]:
    summary = {}
    for kind in ResourceKind:
        limit = getattr(organization, _LIMIT_FIELDS[kind])
        current = await count_resources(db, organization.id, kind)
        unlimited = organization.is_grandfathered or limit == UNLIMITED
        summary[kind.value] = {
            "current": current,
            "limit": UNLIMITED if unlimited else (limit or 0),
            "usage_percent": 0 if unlimited or not limit else round(current / limit * 100),
        }
    return summary
