"""Listing model - job and task postings with a visibility window.

Tier 1 - references User (owner).

A listing is visible while ``is_active`` is true AND ``expires_at`` is in
the future. Rows whose window has elapsed but are still flagged active are
a transient state resolved by the expiration sweep.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    Numeric,
    String,
    Uuid,
    true,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from jobmarket.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from jobmarket.models.user import User


class Listing(Base, TimestampMixin):
    """Job posting owned by a company user.

    Attributes:
        id: UUID primary key.
        owner_id: FK to the owning user.
        title: Posting title.
        company_name: Display name of the posting company.
        is_active: False once swept as expired (or closed by the owner).
        expires_at: End of the visibility window.
        recruitment_timeline: Window label of the last posting/extension
            (e.g., "7_days", "2_weeks").
        last_charged_amount: Amount charged for the last extension.
    """

    __tablename__ = "listings"
    __table_args__ = (
        CheckConstraint(
            "last_charged_amount >= 0",
            name="ck_listings_charged_nonneg",
        ),
        # Sweep and expiring-soon queries filter on (is_active, expires_at)
        Index("ix_listings_active_expires_at", "is_active", "expires_at"),
        Index("ix_listings_owner_id", "owner_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=uuid.uuid4,
    )
    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    company_name: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default=true(),
    )
    expires_at: Mapped[datetime] = mapped_column(
        nullable=False,
    )
    recruitment_timeline: Mapped[str | None] = mapped_column(
        String(20),
        nullable=True,
    )
    last_charged_amount: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        default=Decimal("0"),
        server_default="0",
    )

    owner: Mapped["User"] = relationship(back_populates="listings")
