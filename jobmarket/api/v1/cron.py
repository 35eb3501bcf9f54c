"""Scheduled trigger endpoints.

Called by an external scheduler with "Authorization: Bearer
<CRON_SECRET_TOKEN>". Each endpoint runs one lifecycle sweep against the
request-scoped session and reports counts. Responses are flat (no data
envelope); failures use the standard error envelope.
"""

import structlog
from fastapi import APIRouter, Depends, Request

from jobmarket.api.deps import DbSession, Mailer, verify_cron_token
from jobmarket.core.config import settings
from jobmarket.core.errors import InternalError, ValidationError
from jobmarket.core.rate_limiting import limiter
from jobmarket.schemas.cron import (
    ExpireJobsResponse,
    ExpireSubscriptionsResponse,
    NotificationActionRequest,
    ProcessNotificationsResponse,
    QueueNotificationsResponse,
    TriggerDescription,
)
from jobmarket.schemas.listing import ExpiringListingResponse
from jobmarket.services.job_expiration import process_expirations
from jobmarket.services.notification_queue import (
    process_notification_queue,
    queue_job_expiration_notifications,
)
from jobmarket.services.subscription_lifecycle import expire_old_subscriptions

logger = structlog.get_logger()

router = APIRouter()

_QUEUE_EXPIRATION_ACTION = "queue_expiration_notifications"

# Decorator-level dependencies resolve before endpoint parameters, so the
# secret is checked before any other dependency (e.g. email config) runs.
_CRON_AUTH = [Depends(verify_cron_token)]


# =============================================================================
# Listing expiration
# =============================================================================


@router.api_route(
    "/expire-jobs", methods=["GET", "POST"], dependencies=_CRON_AUTH
)
@limiter.limit(lambda: settings.rate_limit_cron)
async def expire_jobs(
    request: Request,  # noqa: ARG001 - required by @limiter.limit()
    db: DbSession,
) -> ExpireJobsResponse:
    """Close out elapsed listings and report those expiring soon.

    Does not send notifications; POST /notifications queues reminders.

    Raises:
        InternalError: EXPIRATION_FAILED when the sweep could not run.
    """
    result = await process_expirations(db)
    if result is None:
        raise InternalError(
            message="Failed to process job expirations",
            code="EXPIRATION_FAILED",
        )

    logger.info(
        "Job expiration sweep complete",
        expired_count=result.expired_count,
        expiring_count=len(result.expiring_jobs),
    )
    return ExpireJobsResponse(
        expired_count=result.expired_count,
        expiring_jobs=[
            ExpiringListingResponse(
                job_id=job.job_id,
                title=job.title,
                company_name=job.company_name,
                user_id=job.user_id,
                expires_at=job.expires_at,
                days_until_expiration=job.days_until_expiration,
            )
            for job in result.expiring_jobs
        ],
        processed_at=result.processed_at,
    )


# =============================================================================
# Subscription expiration
# =============================================================================


@router.post("/expire-subscriptions", dependencies=_CRON_AUTH)
@limiter.limit(lambda: settings.rate_limit_cron)
async def expire_subscriptions(
    request: Request,  # noqa: ARG001 - required by @limiter.limit()
    db: DbSession,
) -> ExpireSubscriptionsResponse:
    """Expire every active subscription whose end date has passed.

    Raises:
        InternalError: SUBSCRIPTION_EXPIRY_FAILED with the sweep's error.
    """
    result = await expire_old_subscriptions(db)
    if not result.success:
        raise InternalError(
            message=result.error or "Failed to expire subscriptions",
            code="SUBSCRIPTION_EXPIRY_FAILED",
        )

    expired_count = result.expired_count or 0
    logger.info("Subscription expiry sweep complete", expired_count=expired_count)
    return ExpireSubscriptionsResponse(
        message=f"Successfully expired {expired_count} subscriptions",
        expired_count=expired_count,
    )


@router.get("/expire-subscriptions")
async def describe_expire_subscriptions() -> TriggerDescription:
    """Readiness probe for the scheduler. Runs nothing."""
    return TriggerDescription(
        message="Subscription expiration endpoint is ready",
        method="POST",
        auth="Bearer token required",
    )


# =============================================================================
# Notifications
# =============================================================================


@router.get("/notifications", dependencies=_CRON_AUTH)
@limiter.limit(lambda: settings.rate_limit_cron)
async def process_notifications(
    request: Request,  # noqa: ARG001 - required by @limiter.limit()
    db: DbSession,
    sender: Mailer,
) -> ProcessNotificationsResponse:
    """Deliver one batch of due notifications.

    Raises:
        ConfigurationError: 503 when RESEND_API_KEY is missing (from Mailer).
        InternalError: NOTIFICATION_PROCESSING_FAILED if the batch could
            not be loaded.
    """
    result = await process_notification_queue(db, sender)
    if result.error is not None:
        raise InternalError(
            message=result.error,
            code="NOTIFICATION_PROCESSING_FAILED",
        )

    logger.info(
        "Notification queue processed",
        processed=result.processed,
        failed=result.failed,
        total=result.total,
    )
    return ProcessNotificationsResponse(
        processed=result.processed,
        failed=result.failed,
        total=result.total,
    )


@router.post("/notifications", dependencies=_CRON_AUTH)
@limiter.limit(lambda: settings.rate_limit_cron)
async def notification_action(
    request: Request,  # noqa: ARG001 - required by @limiter.limit()
    body: NotificationActionRequest,
    db: DbSession,
) -> QueueNotificationsResponse:
    """Run a queue action. Only queue_expiration_notifications is supported.

    Raises:
        ValidationError: 400 for any other action.
    """
    if body.action != _QUEUE_EXPIRATION_ACTION:
        logger.warning("Invalid notification action", action=body.action[:50])
        raise ValidationError(message="Invalid action")

    queued = await queue_job_expiration_notifications(db)
    logger.info("Expiration reminders queued", queued=queued)
    return QueueNotificationsResponse(queued_notifications=queued)
