"""Shared fixtures for lifecycle unit tests.

Builders return async callables so each test can create exactly the rows
it needs. Rows are flushed, not committed; the db_session fixture rolls
them back.
"""

from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from jobmarket.models import (
    AdminSettings,
    Listing,
    NotificationQueueItem,
    Subscription,
    SubscriptionPlan,
    User,
)
from tests.conftest import NOW


@pytest.fixture
async def owner(db_session: AsyncSession) -> User:
    """Company user owning listings."""
    user = User(email="owner@test.com", full_name="Owner Co", user_type="company")
    db_session.add(user)
    await db_session.flush()
    return user


@pytest.fixture
async def other_owner(db_session: AsyncSession) -> User:
    """Second company user for cross-owner tests."""
    user = User(email="other@test.com", full_name="Other Co", user_type="company")
    db_session.add(user)
    await db_session.flush()
    return user


@pytest.fixture
def make_listing(db_session: AsyncSession, owner: User):
    """Create a listing expiring at ``NOW + expires_in``."""

    async def _make(
        expires_in: timedelta,
        *,
        is_active: bool = True,
        title: str = "Backend Engineer",
        listing_owner: User | None = None,
    ) -> Listing:
        listing = Listing(
            owner_id=(listing_owner or owner).id,
            title=title,
            company_name="Owner Co",
            is_active=is_active,
            expires_at=NOW + expires_in,
            recruitment_timeline="7_days",
            last_charged_amount=Decimal("0"),
        )
        db_session.add(listing)
        await db_session.flush()
        return listing

    return _make


@pytest.fixture
def make_plan(db_session: AsyncSession):
    """Create a subscription plan."""

    async def _make(
        *,
        name: str = "Starter",
        user_type: str = "company",
        price: Decimal = Decimal("29.00"),
        duration_days: int = 30,
        job_post_limit: int | None = 2,
        contact_limit: int | None = None,
        active: bool = True,
    ) -> SubscriptionPlan:
        plan = SubscriptionPlan(
            name=name,
            user_type=user_type,
            price=price,
            duration_days=duration_days,
            job_post_limit=job_post_limit,
            contact_limit=contact_limit,
            active=active,
        )
        db_session.add(plan)
        await db_session.flush()
        return plan

    return _make


@pytest.fixture
def make_subscription(db_session: AsyncSession, owner: User):
    """Create a subscription ending at ``NOW + ends_in``."""

    async def _make(
        plan: SubscriptionPlan,
        ends_in: timedelta,
        *,
        status: str = "active",
        jobs_posted: int = 0,
        contacts_used: int = 0,
        user: User | None = None,
    ) -> Subscription:
        subscription = Subscription(
            user_id=(user or owner).id,
            plan_id=plan.id,
            status=status,
            start_date=NOW - timedelta(days=30),
            end_date=NOW + ends_in,
            jobs_posted=jobs_posted,
            contacts_used=contacts_used,
            payment_data={},
        )
        db_session.add(subscription)
        await db_session.flush()
        return subscription

    return _make


@pytest.fixture
def enable_subscriptions(db_session: AsyncSession):
    """Create the admin settings row with the given switch."""

    async def _enable(enabled: bool = True) -> AdminSettings:
        row = AdminSettings(id=1, subscriptions_enabled=enabled)
        db_session.add(row)
        await db_session.flush()
        return row

    return _enable


@pytest.fixture
def make_notification(db_session: AsyncSession, owner: User):
    """Create a pending queue item scheduled ``scheduled_in`` from NOW."""

    async def _make(
        *,
        notification_type: str = "job_expiration",
        channel: str = "email",
        subject: str = "Reminder",
        template_data: dict | None = None,
        scheduled_in: timedelta = timedelta(minutes=-5),
        created_offset: timedelta = timedelta(0),
        status: str = "pending",
        user: User | None = None,
    ) -> NotificationQueueItem:
        item = NotificationQueueItem(
            user_id=(user or owner).id,
            notification_type=notification_type,
            channel=channel,
            subject=subject,
            template_data=template_data
            or {
                "job_title": "Backend Engineer",
                "company_name": "Owner Co",
                "expires_at": (NOW + timedelta(days=2)).isoformat(),
                "days_until_expiration": 2,
                "extend_url": "/jobs/1/extend",
            },
            status=status,
            scheduled_for=NOW + scheduled_in,
            created_at=NOW - timedelta(hours=1) + created_offset,
            updated_at=NOW - timedelta(hours=1) + created_offset,
        )
        db_session.add(item)
        await db_session.flush()
        return item

    return _make
