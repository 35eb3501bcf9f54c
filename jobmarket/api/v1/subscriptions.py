"""Subscription API router.

Endpoints for the current user's subscription, the offered plans, creating
a subscription, and entitlement checks.
"""

from typing import Annotated

from fastapi import APIRouter, Query

from jobmarket.api.deps import CurrentUserId, DbSession
from jobmarket.core.errors import InternalError, NotFoundError
from jobmarket.core.responses import DataResponse
from jobmarket.models.subscription import Subscription, SubscriptionPlan
from jobmarket.schemas.subscription import (
    CreateSubscriptionRequest,
    PermissionResponse,
    PermissionsResponse,
    SubscriptionPlanResponse,
    SubscriptionResponse,
    UserType,
)
from jobmarket.services.subscription_lifecycle import (
    PermissionCheck,
    are_subscriptions_enabled,
    check_user_can_contact_professional,
    check_user_can_post_job,
    create_user_subscription,
    get_subscription_plans,
    get_user_active_subscription,
)

router = APIRouter()


def _plan_response(plan: SubscriptionPlan) -> SubscriptionPlanResponse:
    return SubscriptionPlanResponse(
        id=plan.id,
        name=plan.name,
        user_type=plan.user_type,
        price=f"{plan.price:.2f}",
        duration_days=plan.duration_days,
        job_post_limit=plan.job_post_limit,
        contact_limit=plan.contact_limit,
    )


def _subscription_response(subscription: Subscription) -> SubscriptionResponse:
    return SubscriptionResponse(
        id=subscription.id,
        user_id=subscription.user_id,
        status=subscription.status,
        start_date=subscription.start_date,
        end_date=subscription.end_date,
        jobs_posted=subscription.jobs_posted,
        contacts_used=subscription.contacts_used,
        plan=_plan_response(subscription.plan),
    )


def _permission_response(check: PermissionCheck) -> PermissionResponse:
    return PermissionResponse(
        allowed=check.allowed,
        reason=check.reason,
        remaining=check.remaining,
    )


@router.get("/me")
async def get_my_subscription(
    user_id: CurrentUserId,
    db: DbSession,
) -> DataResponse[SubscriptionResponse | None]:
    """Return the current subscription, or null when there is none."""
    subscription = await get_user_active_subscription(db, user_id)
    if subscription is None:
        return DataResponse(data=None)
    return DataResponse(data=_subscription_response(subscription))


@router.get("/me/permissions")
async def get_my_permissions(
    user_id: CurrentUserId,
    db: DbSession,
) -> DataResponse[PermissionsResponse]:
    """Return whether the user may post a job and contact a professional."""
    enabled = await are_subscriptions_enabled(db)
    can_post = await check_user_can_post_job(db, user_id)
    can_contact = await check_user_can_contact_professional(db, user_id)
    return DataResponse(
        data=PermissionsResponse(
            subscriptions_enabled=enabled,
            can_post_job=_permission_response(can_post),
            can_contact_professional=_permission_response(can_contact),
        )
    )


@router.get("/plans")
async def list_plans(
    _user_id: CurrentUserId,
    db: DbSession,
    user_type: Annotated[UserType, Query(description="company or professional")],
) -> DataResponse[list[SubscriptionPlanResponse]]:
    """List offered plans for a user type, cheapest first."""
    plans = await get_subscription_plans(db, user_type)
    return DataResponse(data=[_plan_response(plan) for plan in plans])


@router.post("", status_code=201)
async def create_subscription(
    body: CreateSubscriptionRequest,
    user_id: CurrentUserId,
    db: DbSession,
) -> DataResponse[SubscriptionResponse]:
    """Subscribe the current user to a plan, starting now.

    Raises:
        NotFoundError: Unknown or withdrawn plan.
        InternalError: Backend failure.
    """
    result = await create_user_subscription(
        db, user_id, body.plan_id, body.payment_data
    )
    if not result.success or result.subscription is None:
        if result.error == "Plan not found":
            raise NotFoundError("SubscriptionPlan", str(body.plan_id))
        raise InternalError(message="Failed to create subscription")
    return DataResponse(data=_subscription_response(result.subscription))
