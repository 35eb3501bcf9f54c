"""Notification queue: enqueue expiry reminders and deliver pending items.

Queue rows are written by the listing lifecycle (job_expiration) and by
other parts of the marketplace (new_applications, messages). Delivery runs
from a scheduled trigger: each due item is rendered, sent, and marked
sent or failed individually, so one bad item never blocks the batch.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from jobmarket.core.config import settings
from jobmarket.core.email import EmailDeliveryError, EmailSender
from jobmarket.core.results import Ok, run_backend_call
from jobmarket.models.notification import NotificationQueueItem
from jobmarket.repositories.listing_repository import ListingRepository
from jobmarket.repositories.notification_repository import NotificationRepository
from jobmarket.services.email_templates import UnknownTemplateError, render_email
from jobmarket.services.job_expiration import days_until

logger = logging.getLogger(__name__)

JOB_EXPIRATION = "job_expiration"


class RecipientNotFoundError(LookupError):
    """Raised when a queued notification's user no longer exists."""


@dataclass(frozen=True)
class QueueProcessResult:
    """Outcome of one delivery run.

    Attributes:
        processed: Items delivered and marked sent.
        failed: Items marked failed.
        total: Items loaded for this run.
        error: Set when the batch could not be loaded.
    """

    processed: int
    failed: int
    total: int
    error: str | None = None


def expiration_dedupe_key(listing_id: uuid.UUID, expires_at: datetime) -> str:
    """Key that allows one reminder per listing per expiry date."""
    return f"{JOB_EXPIRATION}:{listing_id}:{expires_at.date().isoformat()}"


async def queue_job_expiration_notifications(
    db: AsyncSession,
    *,
    now: datetime | None = None,
    days_ahead: int | None = None,
) -> int:
    """Queue a reminder email for every listing expiring soon.

    A listing is reminded once per expiry date: extending it moves the
    date and makes it eligible again.

    Args:
        db: Async database session.
        now: Reference time. Defaults to the current UTC time.
        days_ahead: Reminder window. Defaults to settings.expiring_soon_days.

    Returns:
        Number of reminders queued, or 0 on backend failure.
    """
    now = now or datetime.now(UTC)
    window = settings.expiring_soon_days if days_ahead is None else days_ahead

    async def _queue() -> int:
        async with db.begin_nested():
            listings = await ListingRepository.list_expiring(
                db, now=now, days_ahead=window
            )
            keys = {
                listing.id: expiration_dedupe_key(listing.id, listing.expires_at)
                for listing in listings
            }
            already_queued = await NotificationRepository.existing_dedupe_keys(
                db, keys.values()
            )
            queued = 0
            for listing in listings:
                key = keys[listing.id]
                if key in already_queued:
                    continue
                await NotificationRepository.enqueue(
                    db,
                    user_id=listing.owner_id,
                    notification_type=JOB_EXPIRATION,
                    subject=f'Your job "{listing.title}" is expiring soon',
                    template_data={
                        "job_id": str(listing.id),
                        "job_title": listing.title,
                        "company_name": listing.company_name,
                        "expires_at": listing.expires_at.isoformat(),
                        "days_until_expiration": days_until(
                            listing.expires_at, now
                        ),
                        "extend_url": f"/jobs/{listing.id}/extend",
                    },
                    scheduled_for=now,
                    dedupe_key=key,
                )
                queued += 1
        return queued

    outcome = await run_backend_call(_queue, context="Expiration reminder queueing")
    if not isinstance(outcome, Ok):
        logger.error("Failed to queue expiration reminders: %s", outcome.message)
        return 0

    logger.info("Queued %d job expiration reminders", outcome.value)
    return outcome.value


async def _deliver(
    db: AsyncSession,
    item: NotificationQueueItem,
    sender: EmailSender,
) -> None:
    """Deliver one item. Raises on any delivery problem."""
    if item.channel == "push":
        # No push provider yet; the item is recorded as delivered.
        logger.info(
            "Push notification %s for user %s: %s",
            item.id,
            item.user_id,
            item.subject,
        )
        return

    async with db.begin_nested():
        recipient = await NotificationRepository.get_recipient(db, item.user_id)
    if recipient is None:
        msg = f"User {item.user_id} not found"
        raise RecipientNotFoundError(msg)
    email, full_name = recipient

    template_data = dict(item.template_data or {})
    if not template_data.get("company_name"):
        template_data["company_name"] = full_name
    if item.notification_type == "messages":
        template_data.setdefault("subject", item.subject)

    rendered = render_email(
        item.notification_type, template_data, app_url=settings.app_url
    )
    await sender.send(
        to_email=email,
        subject=rendered.subject,
        html=rendered.html,
        text=rendered.text,
    )


async def _record_sent(
    db: AsyncSession,
    item: NotificationQueueItem,
    now: datetime,
) -> bool:
    async with db.begin_nested():
        await NotificationRepository.mark_sent(db, item.id, now=now)
        await NotificationRepository.add_history(db, item=item, now=now)
    return True


async def _record_failed(
    db: AsyncSession,
    item_id: uuid.UUID,
    error_message: str,
    now: datetime,
) -> bool:
    async with db.begin_nested():
        await NotificationRepository.mark_failed(
            db, item_id, error_message=error_message, now=now
        )
    return True


async def process_notification_queue(
    db: AsyncSession,
    sender: EmailSender,
    *,
    now: datetime | None = None,
    batch_size: int | None = None,
) -> QueueProcessResult:
    """Deliver due pending notifications, oldest first.

    Each item is settled on its own: delivered items are marked sent and
    copied to the history log, items that fail are marked failed with the
    error. Neither outcome stops the rest of the batch.

    Args:
        db: Async database session.
        sender: Email provider client.
        now: Reference time. Defaults to the current UTC time.
        batch_size: Maximum items per run. Defaults to
            settings.notification_batch_size.

    Returns:
        QueueProcessResult; ``error`` is set if the batch could not be loaded.
    """
    now = now or datetime.now(UTC)
    limit = settings.notification_batch_size if batch_size is None else batch_size

    loaded = await run_backend_call(
        lambda: NotificationRepository.list_pending(db, now=now, limit=limit),
        context="Notification queue fetch",
    )
    if not isinstance(loaded, Ok):
        logger.error("Error fetching notifications: %s", loaded.message)
        return QueueProcessResult(
            processed=0, failed=0, total=0, error="Failed to fetch notifications"
        )

    items = loaded.value
    processed = 0
    failed = 0

    for item in items:
        item_id = item.id
        try:
            await _deliver(db, item, sender)
        except (
            EmailDeliveryError,
            UnknownTemplateError,
            RecipientNotFoundError,
        ) as exc:
            error_message = str(exc)
        except SQLAlchemyError:
            logger.exception("Database error delivering notification %s", item_id)
            error_message = "Database error during delivery"
        else:
            error_message = None

        if error_message is not None:
            logger.warning("Notification %s failed: %s", item_id, error_message)
            await run_backend_call(
                lambda: _record_failed(db, item_id, error_message, now),
                context="Notification failure mark",
            )
            failed += 1
            continue

        marked = await run_backend_call(
            lambda: _record_sent(db, item, now),
            context="Notification sent mark",
        )
        if isinstance(marked, Ok):
            processed += 1
        else:
            # Delivered but not recorded.
            failed += 1

    logger.info(
        "Notification run: %d sent, %d failed of %d", processed, failed, len(items)
    )
    return QueueProcessResult(processed=processed, failed=failed, total=len(items))
