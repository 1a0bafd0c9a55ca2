import logging
from datetime import datetime, timedelta
from typing import Dict, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from hospitality_hub.access.decisions import AccessDecision, AccessOutcome
from hospitality_hub.access.errors import OrganizationNotFound, TrialUnavailable
from hospitality_hub.access.evaluator import evaluate
from hospitality_hub.utils.dates import utcnow
from hospitality_hub.models.app_subscription import AppId, AppPlan, AppSubscription
from hospitality_hub.models.organization import (
    Organization,
    SubscriptionPlan,
    SubscriptionStatus,
)
from hospitality_hub.models.user import User

logger = logging.getLogger(__name__)

TRIAL_DAYS_MODULE = 14
TRIAL_DAYS_ORGANIZATION = 30


async def load_organization(db: AsyncSession, organization_id: Optional[int]) -> Optional[Organization]:
    if organization_id is None:
        return None
    result = await db.execute(select(Organization).where(Organization.id == organization_id))
    return result.scalar_one_or_none()


async def load_app_subscriptions(db: AsyncSession, organization_id: int):
    result = await db.execute(
        select(AppSubscription).where(AppSubscription.organization_id == organization_id)
    )
    return result.scalars().all()


def _failed(app_id: AppId) -> AccessDecision:
    return AccessDecision(
        app_id=app_id,
        outcome=AccessOutcome.evaluation_failed,
        reason="Access could not be verified, please try again",
    )


async def evaluate_access(db: AsyncSession, user: User, app_id: AppId, now: Optional[datetime] = None) -> AccessDecision:
    """Evaluate access with a fresh read of the organization state.

    Query errors fail closed: the caller gets an ``evaluation-failed``
    decision, which never grants access.
    """
    app_id = AppId(app_id)
    if user.is_platform_admin:
        return evaluate(user, None, app_id, now=now)

    try:
        organization = await load_organization(db, user.organization_id)
        subscriptions = await load_app_subscriptions(db, organization.id) if organization else []
    except SQLAlchemyError as e:
        logger.error(f"Error checking access for user {user.id} to {app_id.value}: {e}")
        return _failed(app_id)

    decision = evaluate(user, organization, app_id, subscriptions, now=now)
    logger.info(f"Access for user {user.id} to {app_id.value}: {decision.outcome.value} ({decision.reason})")
    return decision


async def accessible_apps(db: AsyncSession, user: User, now: Optional[datetime] = None) -> Dict[str, AccessDecision]:
    """Decisions for every module, from a single read of the organization state."""
    if user.is_platform_admin:
        return {app.value: evaluate(user, None, app, now=now) for app in AppId}

    try:
        organization = await load_organization(db, user.organization_id)
        subscriptions = await load_app_subscriptions(db, organization.id) if organization else []
    except SQLAlchemyError as e:
        logger.error(f"Error fetching accessible apps for user {user.id}: {e}")
        return {app.value: _failed(app) for app in AppId}

    return {app.value: evaluate(user, organization, app, subscriptions, now=now) for app in AppId}


def _is_unstarted_trial(subscription: AppSubscription) -> bool:
    # Trial rows written without dates, e.g. by a platform admin
    return subscription.subscription_status == SubscriptionStatus.trial and subscription.trial_ends_at is None


async def start_trial(db: AsyncSession, organization_id: int, app_id: AppId, now: Optional[datetime] = None) -> AppSubscription:
    """Start the one free module trial an organization gets per module."""
    app_id = AppId(app_id)
    now = now or utcnow()

    organization = await load_organization(db, organization_id)
    if not organization:
        raise OrganizationNotFound("Organization not found")
    if organization.is_grandfathered:
        raise TrialUnavailable("Grandfathered organizations already have full access")

    result = await db.execute(
        select(AppSubscription)
        .where(
            AppSubscription.organization_id == organization_id,
            AppSubscription.app_id == app_id.value,
        )
        .with_for_update()
    )
    subscription = result.scalar_one_or_none()
    if subscription is None:
        subscription = AppSubscription(
            organization_id=organization_id,
            app_id=app_id.value,
            subscription_status=SubscriptionStatus.trial,
            subscription_plan=AppPlan.individual,
        )
        db.add(subscription)
    elif not _is_unstarted_trial(subscription):
        raise TrialUnavailable(f"A trial or subscription already exists for {app_id.value}")

    subscription.trial_started_at = now
    subscription.trial_ends_at = now + timedelta(days=TRIAL_DAYS_MODULE)
    try:
        await db.commit()
    except IntegrityError as e:
        # Lost a race against a concurrent trial start for the same module
        await db.rollback()
        raise TrialUnavailable(f"A trial or subscription already exists for {app_id.value}") from e

    await db.refresh(subscription)
    logger.info(f"Started {TRIAL_DAYS_MODULE}-day trial of {app_id.value} for organization {organization_id}")
    return subscription


def start_organization_trial(organization: Organization, now: Optional[datetime] = None) -> Organization:
    """Stamp the organization-wide trial given at signup."""
    now = now or utcnow()
    organization.subscription_plan = SubscriptionPlan.trial
    organization.subscription_status = SubscriptionStatus.trial
    organization.trial_ends_at = now + timedelta(days=TRIAL_DAYS_ORGANIZATION)
    organization.apply_plan_limits(SubscriptionPlan.trial)
    return organization
