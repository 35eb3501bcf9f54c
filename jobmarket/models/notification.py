"""Notification models - outbound queue and delivery history.

NotificationQueueItem (Tier 1) is the work queue drained by the scheduled
notification trigger. NotificationHistory (Tier 1) is append-only.
"""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    CheckConstraint,
    ForeignKey,
    Index,
    String,
    Text,
    Uuid,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from jobmarket.models.base import Base, TimestampMixin, UTCDateTime

_JSON_TYPE = JSON().with_variant(JSONB(), "postgresql")


class NotificationQueueItem(Base, TimestampMixin):
    """A notification waiting to be delivered.

    Attributes:
        id: UUID primary key.
        user_id: FK to the recipient.
        notification_type: Template key ("job_expiration", "new_applications",
            "messages").
        channel: "email" or "push".
        subject: Subject line recorded in history.
        template_data: Values rendered into the template.
        status: "pending", "sent", or "failed".
        scheduled_for: Earliest delivery time.
        sent_at: Delivery time once sent.
        error_message: Failure reason once failed.
        dedupe_key: Unique key preventing duplicate reminders. NULL for
            notifications that may repeat.
    """

    __tablename__ = "notification_queue"
    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'sent', 'failed')",
            name="ck_notification_queue_status",
        ),
        CheckConstraint(
            "channel IN ('email', 'push')",
            name="ck_notification_queue_channel",
        ),
        Index(
            "ix_notification_queue_status_scheduled_for",
            "status",
            "scheduled_for",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    notification_type: Mapped[str] = mapped_column(String(50), nullable=False)
    channel: Mapped[str] = mapped_column(
        String(10), nullable=False, default="email", server_default="email"
    )
    subject: Mapped[str | None] = mapped_column(String(255), nullable=True)
    template_data: Mapped[dict[str, Any]] = mapped_column(
        _JSON_TYPE, nullable=False, default=dict
    )
    status: Mapped[str] = mapped_column(
        String(10), nullable=False, default="pending", server_default="pending"
    )
    scheduled_for: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        server_default=func.now(),
    )
    sent_at: Mapped[datetime | None] = mapped_column(nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text(), nullable=True)
    dedupe_key: Mapped[str | None] = mapped_column(
        String(255), nullable=True, unique=True
    )


class NotificationHistory(Base):
    """Record of a delivered notification. Immutable.

    Attributes:
        id: UUID primary key.
        user_id: FK to the recipient.
        notification_type: Template key of the delivered notification.
        channel: Delivery channel.
        subject: Subject line at delivery time.
        details: Template data at delivery time.
        created_at: Delivery timestamp.
    """

    __tablename__ = "notification_history"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    notification_type: Mapped[str] = mapped_column(String(50), nullable=False)
    channel: Mapped[str] = mapped_column(String(10), nullable=False)
    subject: Mapped[str | None] = mapped_column(String(255), nullable=True)
    # "metadata" is reserved on declarative classes
    details: Mapped[dict[str, Any]] = mapped_column(
        "metadata", _JSON_TYPE, nullable=False, default=dict
    )
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        server_default=func.now(),
    )
