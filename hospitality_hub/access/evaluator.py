"""Decides whether a user may enter an application module.

The evaluator is a pure function over rows that were already loaded: the
user, their organization and the organization's module subscription rows.
Checks run in a fixed order and the first match wins. Platform admins and
grandfathered organizations short-circuit before any date arithmetic, so a
missing organization or trial date can never break those paths.
"""

import math
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from hospitality_hub.access.decisions import (
    ALL_PERMISSIONS,
    AccessDecision,
    AccessOutcome,
    Permission,
    role_permissions,
)
from hospitality_hub.models.app_subscription import AppId, AppPlan
from hospitality_hub.models.organization import SubscriptionStatus
from hospitality_hub.utils.dates import utcnow

SECONDS_PER_DAY = 24 * 60 * 60


def _as_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def compute_trial_days_remaining(trial_ends_at: datetime, now: datetime) -> int:
    """Whole days left in a trial, rounded up and never negative."""
    remaining = (_as_naive_utc(trial_ends_at) - _as_naive_utc(now)).total_seconds()
    return max(0, math.ceil(remaining / SECONDS_PER_DAY))


def _granted(app_id: AppId, reason: str, permissions: List[Permission], **extra) -> AccessDecision:
    return AccessDecision(
        app_id=app_id,
        outcome=AccessOutcome.granted,
        reason=reason,
        permissions=permissions,
        **extra,
    )


def _organization_plan_decision(organization, app_id: AppId, permissions, now: datetime) -> Optional[AccessDecision]:
    """The organization-wide plan behaves like a bundle row. Returns None unless it grants access."""
    status = organization.subscription_status
    if status is None:
        return None
    status = SubscriptionStatus(status)

    if status == SubscriptionStatus.active:
        return _granted(app_id, "Organization subscription is active", permissions, subscription_type=AppPlan.bundle.value)

    if status == SubscriptionStatus.cancelling:
        period_end = _as_naive_utc(organization.subscription_period_end)
        if period_end is not None and now < period_end:
            return _granted(
                app_id,
                "Organization subscription is cancelling but still within the paid period",
                permissions,
                subscription_type=AppPlan.bundle.value,
            )
        return None

    if status == SubscriptionStatus.trial:
        trial_end = _as_naive_utc(organization.trial_ends_at)
        if trial_end is not None and now < trial_end:
            return _granted(
                app_id,
                "Organization trial is active",
                permissions,
                subscription_type="trial",
                trial_days_remaining=compute_trial_days_remaining(trial_end, now),
                trial_ends_at=trial_end,
            )
    return None


def _subscription_row_decision(row, app_id: AppId, permissions, now: datetime) -> AccessDecision:
    status = SubscriptionStatus(row.subscription_status)
    plan = AppPlan(row.subscription_plan or AppPlan.individual).value

    if status == SubscriptionStatus.trial:
        trial_end = _as_naive_utc(row.trial_ends_at)
        if trial_end is None:
            # A trial row without an end date means no trial was ever started
            return AccessDecision(
                app_id=app_id,
                outcome=AccessOutcome.trial_available,
                reason="No trial has been started for this module",
            )
        if now < trial_end:
            return _granted(
                app_id,
                "Trial is active",
                permissions,
                subscription_type="trial",
                trial_days_remaining=compute_trial_days_remaining(trial_end, now),
                trial_ends_at=trial_end,
            )
        return AccessDecision(
            app_id=app_id,
            outcome=AccessOutcome.trial_expired,
            reason="Trial has expired, a subscription is required",
            trial_ends_at=trial_end,
        )

    ends_at = _as_naive_utc(row.subscription_ends_at)

    if status == SubscriptionStatus.active:
        if ends_at is None or now < ends_at:
            return _granted(app_id, "Subscription is active", permissions, subscription_type=plan)
        return AccessDecision(
            app_id=app_id,
            outcome=AccessOutcome.subscription_required,
            reason="Subscription period has ended",
        )

    if status == SubscriptionStatus.cancelling and ends_at is not None and now < ends_at:
        return _granted(
            app_id,
            "Subscription is cancelling but still within the paid period",
            permissions,
            subscription_type=plan,
        )

    return AccessDecision(
        app_id=app_id,
        outcome=AccessOutcome.subscription_required,
        reason=f"Subscription is {status.value.replace('_', ' ')}",
    )


def evaluate(user, organization, app_id, subscriptions: Iterable = (), now: Optional[datetime] = None) -> AccessDecision:
    """Decide whether ``user`` may enter ``app_id``.

    ``subscriptions`` are the organization's module subscription rows. The
    user's role never changes the outcome, it only selects the permission set
    attached to a granted decision.
    """
    app_id = AppId(app_id)
    now = _as_naive_utc(now) or utcnow()

    if getattr(user, "is_platform_admin", False):
        return _granted(
            app_id,
            "Platform admin",
            list(ALL_PERMISSIONS),
            subscription_type=AppPlan.bundle.value,
        )

    if organization is None:
        return AccessDecision(
            app_id=app_id,
            outcome=AccessOutcome.denied,
            reason="Organization not found",
        )

    permissions = role_permissions(getattr(user, "role", None), app_id)

    if organization.is_grandfathered:
        return _granted(app_id, "Grandfathered organization", permissions, subscription_type="grandfathered")

    module_row = None
    bundle_rows = []
    for row in subscriptions:
        if row.organization_id != organization.id:
            continue
        if row.app_id == app_id.value:
            module_row = row
        elif row.subscription_plan == AppPlan.bundle:
            bundle_rows.append(row)

    candidates = [_organization_plan_decision(organization, app_id, permissions, now)]
    candidates += [_subscription_row_decision(row, app_id, permissions, now) for row in bundle_rows]
    module_decision = None
    if module_row is not None:
        module_decision = _subscription_row_decision(module_row, app_id, permissions, now)
        candidates.append(module_decision)

    granted = [d for d in candidates if d is not None and d.has_access]
    if granted:
        # Paid access wins over a running trial
        granted.sort(key=lambda d: d.subscription_type == "trial")
        return granted[0]

    if module_decision is None:
        return AccessDecision(
            app_id=app_id,
            outcome=AccessOutcome.trial_available,
            reason="No subscription for this module, a free trial can be started",
        )
    return module_decision
