"""Pydantic request/response schemas for API endpoints."""

from jobmarket.schemas.cron import (
    ExpireJobsResponse,
    ExpireSubscriptionsResponse,
    NotificationActionRequest,
    ProcessNotificationsResponse,
    QueueNotificationsResponse,
    TriggerDescription,
)
from jobmarket.schemas.listing import (
    BulkExtendRequest,
    BulkExtendResponse,
    ExpiringListingResponse,
    ExtendListingRequest,
    ListingStatusResponse,
)
from jobmarket.schemas.subscription import (
    CreateSubscriptionRequest,
    PermissionResponse,
    PermissionsResponse,
    SubscriptionPlanResponse,
    SubscriptionResponse,
)

__all__ = [
    # Scheduled triggers
    "ExpireJobsResponse",
    "ExpireSubscriptionsResponse",
    "NotificationActionRequest",
    "ProcessNotificationsResponse",
    "QueueNotificationsResponse",
    "TriggerDescription",
    # Listings
    "BulkExtendRequest",
    "BulkExtendResponse",
    "ExpiringListingResponse",
    "ExtendListingRequest",
    "ListingStatusResponse",
    # Subscriptions
    "CreateSubscriptionRequest",
    "PermissionResponse",
    "PermissionsResponse",
    "SubscriptionPlanResponse",
    "SubscriptionResponse",
]
