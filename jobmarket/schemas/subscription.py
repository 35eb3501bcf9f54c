"""Subscription request/response schemas."""

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

UserType = Literal["company", "professional"]


class SubscriptionPlanResponse(BaseModel):
    """An offered plan. Limits of None mean unlimited."""

    model_config = ConfigDict(extra="forbid")

    id: UUID
    name: str
    user_type: str
    price: str
    duration_days: int
    job_post_limit: int | None
    contact_limit: int | None


class SubscriptionResponse(BaseModel):
    """A user's subscription with its plan."""

    model_config = ConfigDict(extra="forbid")

    id: UUID
    user_id: UUID
    status: str
    start_date: datetime
    end_date: datetime
    jobs_posted: int
    contacts_used: int
    plan: SubscriptionPlanResponse


class CreateSubscriptionRequest(BaseModel):
    """Request body for POST /subscriptions.

    Attributes:
        plan_id: Plan to subscribe to.
        payment_data: Opaque payment provider payload.
    """

    plan_id: UUID
    payment_data: dict[str, Any] = Field(default_factory=dict)


class PermissionResponse(BaseModel):
    """Answer to one entitlement question."""

    model_config = ConfigDict(extra="forbid")

    allowed: bool
    reason: str
    remaining: int | None = None


class PermissionsResponse(BaseModel):
    """Response for GET /subscriptions/me/permissions."""

    model_config = ConfigDict(extra="forbid")

    subscriptions_enabled: bool
    can_post_job: PermissionResponse
    can_contact_professional: PermissionResponse
