"""Repository for the notification queue and delivery history.

Provides database access for notification_queue and notification_history,
plus the recipient lookup used when rendering emails.
"""

import uuid
from collections.abc import Iterable
from datetime import datetime
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from jobmarket.models.notification import NotificationHistory, NotificationQueueItem
from jobmarket.models.user import User


class NotificationRepository:
    """Stateless repository for notification queue operations.

    All methods are static; no instance state. Pass an AsyncSession
    for every call so the caller controls transaction boundaries.
    """

    @staticmethod
    async def list_pending(
        db: AsyncSession,
        *,
        now: datetime,
        limit: int,
    ) -> list[NotificationQueueItem]:
        """List pending items that are due, oldest first.

        Args:
            db: Async database session.
            now: Items scheduled after this time are not due.
            limit: Maximum items to return.

        Returns:
            Due pending items ordered by created_at ascending.
        """
        result = await db.execute(
            select(NotificationQueueItem)
            .where(
                NotificationQueueItem.status == "pending",
                NotificationQueueItem.scheduled_for <= now,
            )
            .order_by(
                NotificationQueueItem.created_at.asc(),
                NotificationQueueItem.id.asc(),
            )
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    @staticmethod
    async def existing_dedupe_keys(
        db: AsyncSession,
        keys: Iterable[str],
    ) -> set[str]:
        """Return which of the given dedupe keys are already queued."""
        key_list = list(keys)
        if not key_list:
            return set()
        result = await db.execute(
            select(NotificationQueueItem.dedupe_key).where(
                NotificationQueueItem.dedupe_key.in_(key_list)
            )
        )
        return {key for key in result.scalars().all() if key is not None}

    @staticmethod
    async def enqueue(
        db: AsyncSession,
        *,
        user_id: uuid.UUID,
        notification_type: str,
        subject: str,
        template_data: dict[str, Any],
        scheduled_for: datetime,
        channel: str = "email",
        dedupe_key: str | None = None,
    ) -> NotificationQueueItem:
        """Add a pending notification to the queue.

        Returns:
            Created NotificationQueueItem.
        """
        item = NotificationQueueItem(
            user_id=user_id,
            notification_type=notification_type,
            channel=channel,
            subject=subject,
            template_data=template_data,
            status="pending",
            scheduled_for=scheduled_for,
            dedupe_key=dedupe_key,
        )
        db.add(item)
        await db.flush()
        await db.refresh(item)
        return item

    @staticmethod
    async def mark_sent(
        db: AsyncSession,
        item_id: uuid.UUID,
        *,
        now: datetime,
    ) -> None:
        """Mark a queue item as delivered."""
        await db.execute(
            update(NotificationQueueItem)
            .where(NotificationQueueItem.id == item_id)
            .values(status="sent", sent_at=now, updated_at=now)
            .execution_options(synchronize_session=False)
        )

    @staticmethod
    async def mark_failed(
        db: AsyncSession,
        item_id: uuid.UUID,
        *,
        error_message: str,
        now: datetime,
    ) -> None:
        """Mark a queue item as failed with the delivery error."""
        await db.execute(
            update(NotificationQueueItem)
            .where(NotificationQueueItem.id == item_id)
            .values(status="failed", error_message=error_message, updated_at=now)
            .execution_options(synchronize_session=False)
        )

    @staticmethod
    async def add_history(
        db: AsyncSession,
        *,
        item: NotificationQueueItem,
        now: datetime,
    ) -> NotificationHistory:
        """Append a delivered queue item to the history log."""
        entry = NotificationHistory(
            user_id=item.user_id,
            notification_type=item.notification_type,
            channel=item.channel,
            subject=item.subject,
            details=dict(item.template_data or {}),
            created_at=now,
        )
        db.add(entry)
        await db.flush()
        return entry

    @staticmethod
    async def get_recipient(
        db: AsyncSession,
        user_id: uuid.UUID,
    ) -> tuple[str, str | None] | None:
        """Look up a recipient's email and display name.

        Returns:
            (email, full_name) or None if the user does not exist.
        """
        result = await db.execute(
            select(User.email, User.full_name).where(User.id == user_id)
        )
        row = result.one_or_none()
        if row is None:
            return None
        return row.email, row.full_name
