"""Subscription models - paid access plans and user grants.

SubscriptionPlan (Tier 0), AdminSettings (Tier 0), Subscription (Tier 1).
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Uuid,
    false,
    true,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from jobmarket.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from jobmarket.models.user import User

# JSONB on PostgreSQL, plain JSON elsewhere
_JSON_TYPE = JSON().with_variant(JSONB(), "postgresql")

SUBSCRIPTION_STATUSES = ("active", "expired", "cancelled")


class SubscriptionPlan(Base, TimestampMixin):
    """Purchasable plan.

    Attributes:
        id: UUID primary key.
        name: Display name.
        user_type: Audience of the plan ("company" or "professional").
        price: Plan price.
        duration_days: Length of a grant in days.
        job_post_limit: Listings a subscriber may post. NULL = unlimited.
        contact_limit: Professionals a subscriber may contact. NULL = unlimited.
        active: Whether the plan is offered.
    """

    __tablename__ = "subscription_plans"
    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_plans_price_nonneg"),
        CheckConstraint("duration_days > 0", name="ck_plans_duration_positive"),
        CheckConstraint(
            "user_type IN ('company', 'professional')",
            name="ck_plans_user_type",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    user_type: Mapped[str] = mapped_column(String(20), nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    duration_days: Mapped[int] = mapped_column(Integer, nullable=False)
    job_post_limit: Mapped[int | None] = mapped_column(Integer, nullable=True)
    contact_limit: Mapped[int | None] = mapped_column(Integer, nullable=True)
    active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default=true(),
    )


class Subscription(Base, TimestampMixin):
    """A user's paid access grant.

    ``status`` is "active" only while ``end_date`` is in the future; the
    subscription sweep flips elapsed active rows to "expired".

    Attributes:
        id: UUID primary key.
        user_id: FK to the subscriber.
        plan_id: FK to the purchased plan.
        status: One of "active", "expired", "cancelled".
        start_date: Start of the grant.
        end_date: End of the grant.
        jobs_posted: Listings posted under this grant.
        contacts_used: Professionals contacted under this grant.
        payment_data: Opaque payment provider payload.
    """

    __tablename__ = "user_subscriptions"
    __table_args__ = (
        CheckConstraint(
            "status IN ('active', 'expired', 'cancelled')",
            name="ck_subscriptions_status",
        ),
        CheckConstraint("jobs_posted >= 0", name="ck_subscriptions_jobs_nonneg"),
        CheckConstraint(
            "contacts_used >= 0", name="ck_subscriptions_contacts_nonneg"
        ),
        Index("ix_user_subscriptions_status_end_date", "status", "end_date"),
        Index("ix_user_subscriptions_user_id", "user_id"),
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
    plan_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("subscription_plans.id", ondelete="RESTRICT"),
        nullable=False,
    )
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="active",
        server_default="active",
    )
    start_date: Mapped[datetime] = mapped_column(nullable=False)
    end_date: Mapped[datetime] = mapped_column(nullable=False)
    jobs_posted: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0"
    )
    contacts_used: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0"
    )
    payment_data: Mapped[dict[str, Any]] = mapped_column(
        _JSON_TYPE,
        nullable=False,
        default=dict,
    )

    user: Mapped["User"] = relationship(back_populates="subscriptions")
    plan: Mapped[SubscriptionPlan] = relationship(lazy="joined")


class AdminSettings(Base, TimestampMixin):
    """Site-wide switches managed from the admin panel.

    Single-row table.

    Attributes:
        id: Integer primary key (always 1).
        subscriptions_enabled: When False, posting and contacting are free.
    """

    __tablename__ = "admin_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    subscriptions_enabled: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=false(),
    )
