from datetime import datetime, timedelta
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from hospitality_hub.access.decisions import AccessOutcome
from hospitality_hub.access.errors import OrganizationNotFound, TrialUnavailable
from hospitality_hub.access.service import (
    TRIAL_DAYS_MODULE,
    accessible_apps,
    evaluate_access,
    start_organization_trial,
    start_trial,
)
from hospitality_hub.models.app_subscription import AppId, AppPlan, AppSubscription
from hospitality_hub.models.organization import Organization, SubscriptionPlan, SubscriptionStatus
from hospitality_hub.models.user import UserRole


NOW = datetime(2026, 3, 1, 12, 0, 0)


def broken_session():
    session = MagicMock()
    session.execute = AsyncMock(side_effect=OperationalError("SELECT", {}, Exception("connection lost")))
    return session


class TestEvaluateAccess:
    async def test_query_failure_fails_closed(self):
        member = SimpleNamespace(id=1, organization_id=1, role=UserRole.owner, is_platform_admin=False)

        decision = await evaluate_access(broken_session(), member, AppId.liquor_inventory)

        assert decision.outcome == AccessOutcome.evaluation_failed
        assert decision.has_access is False
        assert decision.permissions == []

    async def test_accessible_apps_fail_closed_for_every_module(self):
        member = SimpleNamespace(id=1, organization_id=1, role=UserRole.owner, is_platform_admin=False)

        decisions = await accessible_apps(broken_session(), member)

        assert set(decisions) == {app.value for app in AppId}
        assert all(d.outcome == AccessOutcome.evaluation_failed for d in decisions.values())

    async def test_platform_admin_needs_no_database(self):
        admin = SimpleNamespace(id=1, organization_id=None, role=None, is_platform_admin=True)

        decision = await evaluate_access(broken_session(), admin, AppId.guest_manager)

        assert decision.outcome == AccessOutcome.granted

    async def test_user_without_organization_is_denied(self, db, make_user):
        member = await make_user(None)

        decision = await evaluate_access(db, member, AppId.liquor_inventory)

        assert decision.outcome == AccessOutcome.denied

    async def test_reads_fresh_subscription_state(self, db, make_org, make_user):
        org = await make_org(
            subscription_status=SubscriptionStatus.expired,
            trial_ends_at=NOW - timedelta(days=1),
        )
        member = await make_user(org, role=UserRole.manager)
        db.add(AppSubscription(
            organization_id=org.id,
            app_id=AppId.guest_manager.value,
            subscription_status=SubscriptionStatus.active,
            subscription_plan=AppPlan.individual,
        ))
        await db.commit()

        decisions = await accessible_apps(db, member, now=NOW)

        assert decisions[AppId.guest_manager.value].outcome == AccessOutcome.granted
        assert decisions[AppId.liquor_inventory.value].outcome == AccessOutcome.trial_available


class TestStartTrial:
    async def test_creates_fourteen_day_trial(self, db, make_org, make_user):
        org = await make_org(subscription_status=SubscriptionStatus.expired)
        member = await make_user(org, role=UserRole.viewer)

        subscription = await start_trial(db, org.id, AppId.consumption_tracker, now=NOW)

        assert subscription.subscription_status == SubscriptionStatus.trial
        assert subscription.trial_started_at == NOW
        assert subscription.trial_ends_at == NOW + timedelta(days=TRIAL_DAYS_MODULE)

        decision = await evaluate_access(db, member, AppId.consumption_tracker, now=NOW + timedelta(days=1))
        assert decision.outcome == AccessOutcome.granted
        assert decision.trial_days_remaining == 13

    async def test_only_one_trial_per_module(self, db, make_org):
        org = await make_org()
        await start_trial(db, org.id, AppId.liquor_inventory, now=NOW)

        with pytest.raises(TrialUnavailable):
            await start_trial(db, org.id, AppId.liquor_inventory, now=NOW + timedelta(days=20))

    async def test_other_modules_still_get_a_trial(self, db, make_org):
        org = await make_org()
        await start_trial(db, org.id, AppId.liquor_inventory, now=NOW)

        subscription = await start_trial(db, org.id, AppId.guest_manager, now=NOW)
        assert subscription.app_id == AppId.guest_manager.value

    async def test_grandfathered_organization_cannot_start_trial(self, db, make_org):
        org = await make_org(is_grandfathered=True)

        with pytest.raises(TrialUnavailable):
            await start_trial(db, org.id, AppId.liquor_inventory, now=NOW)

    async def test_starts_trial_row_created_without_dates(self, db, make_org):
        org = await make_org(subscription_status=SubscriptionStatus.expired)
        db.add(AppSubscription(
            organization_id=org.id,
            app_id=AppId.guest_manager.value,
            subscription_status=SubscriptionStatus.trial,
        ))
        await db.commit()

        subscription = await start_trial(db, org.id, AppId.guest_manager, now=NOW)

        assert subscription.trial_ends_at == NOW + timedelta(days=TRIAL_DAYS_MODULE)
        rows = (await db.execute(select(AppSubscription).where(AppSubscription.organization_id == org.id))).scalars().all()
        assert len(rows) == 1

        with pytest.raises(TrialUnavailable):
            await start_trial(db, org.id, AppId.guest_manager, now=NOW)

    async def test_paid_row_blocks_trial(self, db, make_org):
        org = await make_org()
        db.add(AppSubscription(
            organization_id=org.id,
            app_id=AppId.guest_manager.value,
            subscription_status=SubscriptionStatus.cancelled,
        ))
        await db.commit()

        with pytest.raises(TrialUnavailable):
            await start_trial(db, org.id, AppId.guest_manager, now=NOW)

    async def test_missing_organization(self, db):
        with pytest.raises(OrganizationNotFound):
            await start_trial(db, 4242, AppId.liquor_inventory, now=NOW)


def test_organization_trial_lasts_thirty_days():
    org = Organization(name="New Bar", slug="new-bar")

    start_organization_trial(org, now=NOW)

    assert org.subscription_plan == SubscriptionPlan.trial
    assert org.subscription_status == SubscriptionStatus.trial
    assert org.trial_ends_at == NOW + timedelta(days=30)
    assert org.user_limit == 10
    assert org.item_limit == 1000
    assert org.storage_area_limit == 10
