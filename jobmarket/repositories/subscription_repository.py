"""Repository for subscription lifecycle operations.

Provides database access for user_subscriptions, subscription_plans and
admin_settings, including the expiry sweep and guarded usage counters.
"""

import uuid
from datetime import datetime
from typing import Any, Literal, cast

from sqlalchemy import select, update
from sqlalchemy.engine import CursorResult
from sqlalchemy.ext.asyncio import AsyncSession

from jobmarket.models.subscription import AdminSettings, Subscription, SubscriptionPlan

UsageType = Literal["job", "contact"]


class SubscriptionRepository:
    """Stateless repository for Subscription, SubscriptionPlan and AdminSettings.

    All methods are static; no instance state. Pass an AsyncSession
    for every call so the caller controls transaction boundaries.
    """

    @staticmethod
    async def expire_elapsed(
        db: AsyncSession,
        *,
        now: datetime,
    ) -> list[uuid.UUID]:
        """Flip every elapsed active subscription to expired in one statement.

        The ``status = 'active'`` precondition lives in the WHERE clause, so
        repeated or overlapping sweeps flip each row exactly once.

        Args:
            db: Async database session.
            now: Sweep reference time.

        Returns:
            IDs of the subscriptions expired by this call.
        """
        stmt = (
            update(Subscription)
            .where(Subscription.status == "active", Subscription.end_date <= now)
            .values(status="expired", updated_at=now)
            .returning(Subscription.id)
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def get_active_for_user(
        db: AsyncSession,
        user_id: uuid.UUID,
        *,
        now: datetime,
    ) -> Subscription | None:
        """Return the user's current subscription, if any.

        A row still flagged active but past its end_date is not current,
        even before the sweep has flipped it.

        Args:
            db: Async database session.
            user_id: Subscriber.
            now: Reference time.

        Returns:
            The active subscription ending last, or None.
        """
        stmt = (
            select(Subscription)
            .where(
                Subscription.user_id == user_id,
                Subscription.status == "active",
                Subscription.end_date > now,
            )
            .order_by(Subscription.end_date.desc())
            .limit(1)
            .execution_options(populate_existing=True)
        )
        result = await db.execute(stmt)
        return result.scalars().first()

    @staticmethod
    async def get_plan(
        db: AsyncSession,
        plan_id: uuid.UUID,
    ) -> SubscriptionPlan | None:
        """Fetch an offered plan by ID (inactive plans are not found)."""
        result = await db.execute(
            select(SubscriptionPlan).where(
                SubscriptionPlan.id == plan_id,
                SubscriptionPlan.active.is_(True),
            )
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def list_plans(
        db: AsyncSession,
        user_type: str,
    ) -> list[SubscriptionPlan]:
        """List offered plans for an audience, cheapest first."""
        result = await db.execute(
            select(SubscriptionPlan)
            .where(
                SubscriptionPlan.user_type == user_type,
                SubscriptionPlan.active.is_(True),
            )
            .order_by(SubscriptionPlan.price.asc(), SubscriptionPlan.name.asc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        user_id: uuid.UUID,
        plan_id: uuid.UUID,
        start_date: datetime,
        end_date: datetime,
        payment_data: dict[str, Any],
    ) -> Subscription:
        """Create an active subscription.

        Returns:
            Created Subscription with database-generated fields and its plan.
        """
        subscription = Subscription(
            user_id=user_id,
            plan_id=plan_id,
            status="active",
            start_date=start_date,
            end_date=end_date,
            payment_data=payment_data,
        )
        db.add(subscription)
        await db.flush()
        await db.refresh(subscription)
        await db.refresh(subscription, ["plan"])
        return subscription

    @staticmethod
    async def increment_usage(
        db: AsyncSession,
        *,
        subscription_id: uuid.UUID,
        usage_type: UsageType,
        limit: int | None,
    ) -> bool:
        """Atomically count one posted job or contacted professional.

        Uses WHERE counter < limit to prevent exceeding the plan allowance
        under concurrent requests. A NULL limit means unlimited.

        Args:
            db: Async database session.
            subscription_id: Subscription to charge.
            usage_type: "job" or "contact".
            limit: Plan allowance for the counter, or None.

        Returns:
            True if the counter was incremented, False if the limit was reached.
        """
        column = (
            Subscription.jobs_posted
            if usage_type == "job"
            else Subscription.contacts_used
        )
        stmt = update(Subscription).where(Subscription.id == subscription_id)
        if limit is not None:
            stmt = stmt.where(column < limit)
        stmt = stmt.values({column: column + 1}).execution_options(
            synchronize_session=False
        )
        result = cast(CursorResult[Any], await db.execute(stmt))
        rows_updated: int = result.rowcount
        return rows_updated > 0

    @staticmethod
    async def get_admin_settings(db: AsyncSession) -> AdminSettings | None:
        """Fetch the single admin settings row."""
        result = await db.execute(
            select(AdminSettings).order_by(AdminSettings.id.asc()).limit(1)
        )
        return result.scalars().first()
