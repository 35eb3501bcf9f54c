"""Scheduled trigger request/response schemas.

Trigger responses are flat (no data envelope) so cron callers can check
``success`` directly.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict

from jobmarket.schemas.listing import ExpiringListingResponse


class ExpireJobsResponse(BaseModel):
    """Response for /cron/expire-jobs."""

    model_config = ConfigDict(extra="forbid")

    success: Literal[True] = True
    expired_count: int
    expiring_jobs: list[ExpiringListingResponse]
    processed_at: datetime


class ExpireSubscriptionsResponse(BaseModel):
    """Response for POST /cron/expire-subscriptions."""

    model_config = ConfigDict(extra="forbid")

    success: Literal[True] = True
    message: str
    expired_count: int


class TriggerDescription(BaseModel):
    """Response for GET /cron/expire-subscriptions."""

    model_config = ConfigDict(extra="forbid")

    message: str
    method: str
    auth: str


class NotificationActionRequest(BaseModel):
    """Request body for POST /cron/notifications.

    Attributes:
        action: Only "queue_expiration_notifications" is supported.
    """

    action: str


class ProcessNotificationsResponse(BaseModel):
    """Response for GET /cron/notifications."""

    model_config = ConfigDict(extra="forbid")

    success: Literal[True] = True
    processed: int
    failed: int
    total: int


class QueueNotificationsResponse(BaseModel):
    """Response for POST /cron/notifications."""

    model_config = ConfigDict(extra="forbid")

    success: Literal[True] = True
    queued_notifications: int
