"""Tests for the subscription endpoints."""

import uuid
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest

from jobmarket.models import AdminSettings, Subscription, SubscriptionPlan
from jobmarket.services.subscription_lifecycle import SubscriptionCreateResult
from tests.conftest import TEST_USER_ID

_BASE = "/api/v1/subscriptions"


@pytest.fixture
def add_plan(db_session):
    async def _add(
        name: str = "Starter",
        *,
        user_type: str = "company",
        price: str = "29.00",
        job_post_limit: int | None = 3,
        active: bool = True,
    ) -> SubscriptionPlan:
        plan = SubscriptionPlan(
            name=name,
            user_type=user_type,
            price=Decimal(price),
            duration_days=30,
            job_post_limit=job_post_limit,
            contact_limit=None,
            active=active,
        )
        db_session.add(plan)
        await db_session.flush()
        return plan

    return _add


@pytest.fixture
async def subscription(db_session, test_user, add_plan):  # noqa: ARG001
    """Current subscription for the authenticated user with one job posted."""
    now = datetime.now(UTC)
    plan = await add_plan()
    row = Subscription(
        user_id=TEST_USER_ID,
        plan_id=plan.id,
        status="active",
        start_date=now - timedelta(days=1),
        end_date=now + timedelta(days=29),
        jobs_posted=1,
        payment_data={},
    )
    db_session.add(row)
    await db_session.flush()
    return row


class TestGetMySubscription:
    """GET /subscriptions/me"""

    async def test_returns_current_subscription(self, client, subscription):
        response = await client.get(f"{_BASE}/me")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["id"] == str(subscription.id)
        assert data["status"] == "active"
        assert data["plan"]["name"] == "Starter"
        assert data["plan"]["price"] == "29.00"

    async def test_null_without_subscription(self, client):
        """Users without a grant get data: null, not a 404."""
        response = await client.get(f"{_BASE}/me")

        assert response.status_code == 200
        assert response.json() == {"data": None}

    async def test_requires_authentication(self, unauthenticated_client):
        response = await unauthenticated_client.get(f"{_BASE}/me")

        assert response.status_code == 401


class TestGetMyPermissions:
    """GET /subscriptions/me/permissions"""

    async def test_free_while_disabled(self, client):
        """Without the admin switch everything is allowed."""
        response = await client.get(f"{_BASE}/me/permissions")

        data = response.json()["data"]
        assert data["subscriptions_enabled"] is False
        assert data["can_post_job"]["allowed"] is True
        assert data["can_post_job"]["reason"] == "subscriptions_disabled"

    async def test_reports_remaining_allowance(
        self, client, db_session, subscription  # noqa: ARG002
    ):
        """With subscriptions on, limits come from the plan."""
        db_session.add(AdminSettings(id=1, subscriptions_enabled=True))
        await db_session.flush()

        data = (await client.get(f"{_BASE}/me/permissions")).json()["data"]

        assert data["subscriptions_enabled"] is True
        assert data["can_post_job"] == {
            "allowed": True,
            "reason": "ok",
            "remaining": 2,
        }
        assert data["can_contact_professional"]["remaining"] is None


class TestListPlans:
    """GET /subscriptions/plans"""

    async def test_lists_active_plans_cheapest_first(self, client, add_plan):
        await add_plan("Business", price="99.00")
        await add_plan("Starter", price="29.00")
        await add_plan("Retired", price="5.00", active=False)
        await add_plan("Solo", user_type="professional")

        response = await client.get(f"{_BASE}/plans", params={"user_type": "company"})

        assert response.status_code == 200
        names = [plan["name"] for plan in response.json()["data"]]
        assert names == ["Starter", "Business"]

    async def test_user_type_is_required(self, client):
        response = await client.get(f"{_BASE}/plans")

        assert response.status_code == 400

    async def test_unknown_user_type_is_rejected(self, client):
        response = await client.get(f"{_BASE}/plans", params={"user_type": "admin"})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"


class TestCreateSubscription:
    """POST /subscriptions"""

    async def test_creates_subscription(self, client, add_plan):
        plan = await add_plan("Pro", price="49.00")

        response = await client.post(
            _BASE,
            json={"plan_id": str(plan.id), "payment_data": {"provider": "card"}},
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["user_id"] == str(TEST_USER_ID)
        assert data["status"] == "active"
        assert data["plan"]["id"] == str(plan.id)
        assert data["jobs_posted"] == 0

    async def test_created_subscription_is_current(self, client, add_plan):
        plan = await add_plan()

        created = await client.post(_BASE, json={"plan_id": str(plan.id)})
        current = await client.get(f"{_BASE}/me")

        assert current.json()["data"]["id"] == created.json()["data"]["id"]

    async def test_unknown_plan_is_not_found(self, client):
        response = await client.post(_BASE, json={"plan_id": str(uuid.uuid4())})

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    async def test_backend_failure_returns_500(self, client, add_plan):
        plan = await add_plan()
        failure = SubscriptionCreateResult(
            success=False, error="Subscription creation failed"
        )

        with patch(
            "jobmarket.api.v1.subscriptions.create_user_subscription",
            AsyncMock(return_value=failure),
        ):
            response = await client.post(_BASE, json={"plan_id": str(plan.id)})

        assert response.status_code == 500
        assert response.json()["error"]["message"] == "Failed to create subscription"
