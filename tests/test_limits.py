"""Usage limits for users, inventory items and storage areas."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from hospitality_hub.access.errors import EvaluationFailed, LimitReached, OrganizationNotFound
from hospitality_hub.access.limits import (
    ResourceKind,
    check_limit,
    enforce_limit,
    evaluate_limit,
    usage_summary,
)
from hospitality_hub.models.inventory import InventoryItem, StorageArea
from hospitality_hub.models.user import UserRole, UserStatus


class TestEvaluateLimit:
    @pytest.mark.parametrize("current", [0, 5, 10_000])
    def test_unlimited_always_allowed(self, current):
        result = evaluate_limit(-1, current)
        assert result.allowed is True
        assert result.limit == -1
        assert result.upgrade_required is False

    def test_at_limit_requires_upgrade(self):
        result = evaluate_limit(5, 5, kind=ResourceKind.users)
        assert result.allowed is False
        assert result.upgrade_required is True
        assert result.current == 5
        assert "user limit (5)" in result.error

    def test_below_limit(self):
        result = evaluate_limit(5, 4)
        assert result.allowed is True
        assert result.error is None

    def test_grandfathered_ignores_limit(self):
        result = evaluate_limit(1, 50, grandfathered=True)
        assert result.allowed is True
        assert result.limit == -1

    def test_missing_limit_blocks(self):
        result = evaluate_limit(None, 0, kind=ResourceKind.users)
        assert result.allowed is False
        assert result.upgrade_required is True
        assert result.limit == 0
        assert "No user limit" in result.error


async def test_check_limit_counts_only_active_users_of_the_organization(db, make_org, make_user):
    org = await make_org(user_limit=3)
    other_org = await make_org()
    await make_user(org, role=UserRole.owner)
    await make_user(org, status=UserStatus.suspended)
    await make_user(other_org)
    await make_user(other_org)

    result = await check_limit(db, org.id, ResourceKind.users)

    assert result.current == 1
    assert result.limit == 3
    assert result.allowed is True


async def test_check_limit_at_capacity(db, make_org):
    org = await make_org(item_limit=2)
    db.add_all([InventoryItem(organization_id=org.id, name=f"Item {i}") for i in range(2)])
    await db.commit()

    result = await check_limit(db, org.id, ResourceKind.items)

    assert result.allowed is False
    assert result.upgrade_required is True
    assert result.current == 2


async def test_grandfathered_organization_always_passes(db, make_org):
    org = await make_org(storage_area_limit=1, is_grandfathered=True)
    db.add_all([StorageArea(organization_id=org.id, name=f"Bar {i}") for i in range(3)])
    await db.commit()

    result = await enforce_limit(db, org.id, ResourceKind.storage_areas)
    assert result.allowed is True
    assert result.limit == -1


async def test_enforce_limit_raises_limit_reached(db, make_org):
    org = await make_org(storage_area_limit=1)
    db.add(StorageArea(organization_id=org.id, name="Main bar"))
    await db.commit()

    with pytest.raises(LimitReached) as exc_info:
        await enforce_limit(db, org.id, ResourceKind.storage_areas)

    payload = exc_info.value.to_dict()
    assert payload["error"] == "limit_reached"
    assert payload["upgrade_required"] is True
    assert payload["current"] == 1
    assert payload["limit"] == 1


async def test_missing_organization(db):
    with pytest.raises(OrganizationNotFound):
        await check_limit(db, 12345, ResourceKind.items)


async def test_query_failure_fails_closed():
    broken = MagicMock()
    broken.execute = AsyncMock(side_effect=OperationalError("SELECT", {}, Exception("connection lost")))

    with pytest.raises(EvaluationFailed):
        await enforce_limit(broken, 1, ResourceKind.users)


async def test_usage_summary_reports_percentages(db, make_org, make_user):
    org = await make_org(user_limit=4, item_limit=-1)
    await make_user(org)
    db.add(InventoryItem(organization_id=org.id, name="Gin"))
    await db.commit()

    summary = await usage_summary(db, org)

    assert summary["users"] == {"current": 1, "limit": 4, "usage_percent": 25}
    assert summary["items"] == {"current": 1, "limit": -1, "usage_percent": 0}
    assert summary["storage_areas"]["current"] == 0


async def test_organization_without_limit_is_blocked(db, make_org, make_user):
    org = await make_org(user_limit=None)
    await make_user(org)

    with pytest.raises(LimitReached):
        await enforce_limit(db, org.id, ResourceKind.users)

    summary = await usage_summary(db, org)
    assert summary["users"]["limit"] == 0
