"""Subscription lifecycle management.

The expiry sweep flips elapsed active subscriptions to "expired". The
remaining helpers answer entitlement questions (may this user post a job,
contact a professional?) and create grants.

Like the listing lifecycle, nothing here raises past the module boundary:
failures come back as structured results or safe defaults.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any, Literal

from sqlalchemy.ext.asyncio import AsyncSession

from jobmarket.core.results import BackendError, NotFound, Ok, run_backend_call
from jobmarket.models.subscription import Subscription, SubscriptionPlan
from jobmarket.repositories.subscription_repository import (
    SubscriptionRepository,
    UsageType,
)

logger = logging.getLogger(__name__)

PermissionReason = Literal[
    "ok",
    "subscriptions_disabled",
    "no_subscription",
    "limit_reached",
    "error",
]


@dataclass(frozen=True)
class SubscriptionExpiryResult:
    """Outcome of one subscription sweep.

    Attributes:
        success: False if the backend call failed.
        expired_count: Subscriptions expired by this sweep (success only).
        error: Failure description (failure only).
    """

    success: bool
    expired_count: int | None = None
    error: str | None = None


@dataclass(frozen=True)
class PermissionCheck:
    """Answer to an entitlement question.

    Attributes:
        allowed: Whether the action may proceed.
        reason: Why (see PermissionReason).
        remaining: Actions left under the plan limit. None = unlimited or
            not applicable.
    """

    allowed: bool
    reason: PermissionReason
    remaining: int | None = None


@dataclass(frozen=True)
class SubscriptionCreateResult:
    """Outcome of creating a subscription.

    Attributes:
        success: False if the plan is unknown or the backend failed.
        subscription: The created subscription (success only).
        error: Failure description (failure only).
    """

    success: bool
    subscription: Subscription | None = None
    error: str | None = None


async def expire_old_subscriptions(
    db: AsyncSession,
    *,
    now: datetime | None = None,
) -> SubscriptionExpiryResult:
    """Expire every active subscription whose end_date has passed.

    Touches user_subscriptions only. Safe to call repeatedly: expired rows
    no longer match the ``status = 'active'`` precondition.

    Args:
        db: Async database session.
        now: Sweep reference time. Defaults to the current UTC time.

    Returns:
        SubscriptionExpiryResult; never raises for backend failures.
    """
    now = now or datetime.now(UTC)

    async def _sweep() -> list[uuid.UUID]:
        async with db.begin_nested():
            return await SubscriptionRepository.expire_elapsed(db, now=now)

    outcome = await run_backend_call(_sweep, context="Subscription expiry sweep")
    if isinstance(outcome, BackendError):
        return SubscriptionExpiryResult(success=False, error=outcome.message)
    if isinstance(outcome, NotFound):
        return SubscriptionExpiryResult(
            success=False, error="Subscription sweep returned no data"
        )

    expired_count = len(outcome.value)
    logger.info("Successfully expired %d subscriptions", expired_count)
    return SubscriptionExpiryResult(success=True, expired_count=expired_count)


async def get_user_active_subscription(
    db: AsyncSession,
    user_id: uuid.UUID,
    *,
    now: datetime | None = None,
) -> Subscription | None:
    """Return the user's current subscription.

    Args:
        db: Async database session.
        user_id: Subscriber.
        now: Reference time. Defaults to the current UTC time.

    Returns:
        Subscription (with plan loaded), or None when the user has none or
        the backend failed.
    """
    now = now or datetime.now(UTC)
    outcome = await run_backend_call(
        lambda: SubscriptionRepository.get_active_for_user(db, user_id, now=now),
        context="Active subscription lookup",
    )
    if isinstance(outcome, Ok):
        return outcome.value
    return None


async def are_subscriptions_enabled(db: AsyncSession) -> bool:
    """Whether paid subscriptions are switched on in admin settings.

    Returns:
        False when the settings row is missing or the backend failed.
    """
    outcome = await run_backend_call(
        lambda: SubscriptionRepository.get_admin_settings(db),
        context="Admin settings lookup",
    )
    if isinstance(outcome, Ok):
        return outcome.value.subscriptions_enabled
    return False


def _plan_limit(plan: SubscriptionPlan, usage_type: UsageType) -> int | None:
    return plan.job_post_limit if usage_type == "job" else plan.contact_limit


def _used(subscription: Subscription, usage_type: UsageType) -> int:
    if usage_type == "job":
        return subscription.jobs_posted
    return subscription.contacts_used


async def _check_permission(
    db: AsyncSession,
    user_id: uuid.UUID,
    usage_type: UsageType,
    now: datetime | None,
) -> PermissionCheck:
    now = now or datetime.now(UTC)

    async def _load() -> tuple[bool, Subscription | None]:
        admin = await SubscriptionRepository.get_admin_settings(db)
        enabled = admin is not None and admin.subscriptions_enabled
        if not enabled:
            return False, None
        subscription = await SubscriptionRepository.get_active_for_user(
            db, user_id, now=now
        )
        return True, subscription

    outcome = await run_backend_call(_load, context="Entitlement check")
    if not isinstance(outcome, Ok):
        return PermissionCheck(allowed=False, reason="error")

    enabled, subscription = outcome.value
    if not enabled:
        return PermissionCheck(allowed=True, reason="subscriptions_disabled")
    if subscription is None:
        return PermissionCheck(allowed=False, reason="no_subscription")

    limit = _plan_limit(subscription.plan, usage_type)
    if limit is None:
        return PermissionCheck(allowed=True, reason="ok")
    remaining = max(limit - _used(subscription, usage_type), 0)
    if remaining == 0:
        return PermissionCheck(allowed=False, reason="limit_reached", remaining=0)
    return PermissionCheck(allowed=True, reason="ok", remaining=remaining)


async def check_user_can_post_job(
    db: AsyncSession,
    user_id: uuid.UUID,
    *,
    now: datetime | None = None,
) -> PermissionCheck:
    """Whether the user may post another listing.

    Posting is free while subscriptions are disabled. Otherwise the user
    needs a current subscription with job posts left on its plan.
    """
    return await _check_permission(db, user_id, "job", now)


async def check_user_can_contact_professional(
    db: AsyncSession,
    user_id: uuid.UUID,
    *,
    now: datetime | None = None,
) -> PermissionCheck:
    """Whether the user may contact another professional.

    Same rules as check_user_can_post_job, against the contact allowance.
    """
    return await _check_permission(db, user_id, "contact", now)


async def increment_subscription_usage(
    db: AsyncSession,
    user_id: uuid.UUID,
    usage_type: UsageType,
    *,
    now: datetime | None = None,
) -> bool:
    """Count one posted job or contacted professional against the plan.

    The increment is guarded by the plan limit in the UPDATE itself, so
    concurrent requests cannot overdraw the allowance.

    Args:
        db: Async database session.
        user_id: Subscriber.
        usage_type: "job" or "contact".
        now: Reference time. Defaults to the current UTC time.

    Returns:
        True if counted. False when the user has no current subscription,
        the limit is reached, or the backend failed.
    """
    now = now or datetime.now(UTC)

    async def _increment() -> bool | None:
        async with db.begin_nested():
            subscription = await SubscriptionRepository.get_active_for_user(
                db, user_id, now=now
            )
            if subscription is None:
                return None
            return await SubscriptionRepository.increment_usage(
                db,
                subscription_id=subscription.id,
                usage_type=usage_type,
                limit=_plan_limit(subscription.plan, usage_type),
            )

    outcome = await run_backend_call(_increment, context="Subscription usage increment")
    if isinstance(outcome, Ok):
        return outcome.value
    return False


async def get_subscription_plans(
    db: AsyncSession,
    user_type: str,
) -> list[SubscriptionPlan]:
    """List offered plans for "company" or "professional" users, cheapest first.

    Returns:
        Plans, or an empty list on backend failure.
    """
    outcome = await run_backend_call(
        lambda: SubscriptionRepository.list_plans(db, user_type),
        context="Subscription plan listing",
    )
    if isinstance(outcome, Ok):
        return outcome.value
    return []


async def create_user_subscription(
    db: AsyncSession,
    user_id: uuid.UUID,
    plan_id: uuid.UUID,
    payment_data: dict[str, Any] | None = None,
    *,
    now: datetime | None = None,
) -> SubscriptionCreateResult:
    """Grant a subscription on a plan, starting now.

    end_date = start_date + plan.duration_days.

    Args:
        db: Async database session.
        user_id: Subscriber.
        plan_id: Offered plan to grant.
        payment_data: Opaque payment provider payload to keep with the grant.
        now: Start time. Defaults to the current UTC time.

    Returns:
        SubscriptionCreateResult; "Plan not found" for unknown or withdrawn
        plans.
    """
    now = now or datetime.now(UTC)

    async def _create() -> Subscription | None:
        async with db.begin_nested():
            plan = await SubscriptionRepository.get_plan(db, plan_id)
            if plan is None:
                return None
            return await SubscriptionRepository.create(
                db,
                user_id=user_id,
                plan_id=plan.id,
                start_date=now,
                end_date=now + timedelta(days=plan.duration_days),
                payment_data=payment_data or {},
            )

    outcome = await run_backend_call(_create, context="Subscription creation")
    if isinstance(outcome, NotFound):
        return SubscriptionCreateResult(success=False, error="Plan not found")
    if isinstance(outcome, BackendError):
        return SubscriptionCreateResult(success=False, error=outcome.message)

    logger.info("Created subscription %s for user %s", outcome.value.id, user_id)
    return SubscriptionCreateResult(success=True, subscription=outcome.value)
