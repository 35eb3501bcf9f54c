"""User model - listing owners and subscribers.

Tier 0, no FK dependencies. Authentication itself is handled by the hosted
identity provider; this table only carries what the lifecycle core needs
(contact email and display name for notifications, user type for plans).
"""

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from jobmarket.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from jobmarket.models.listing import Listing
    from jobmarket.models.subscription import Subscription

_CASCADE_ALL_DELETE_ORPHAN = "all, delete-orphan"


class User(Base, TimestampMixin):
    """Marketplace account.

    Attributes:
        id: UUID primary key.
        email: Unique email address.
        full_name: Display name used in notification greetings.
        user_type: "company" (posts listings) or "professional".
        created_at: Account creation timestamp (from TimestampMixin).
        updated_at: Last modification timestamp (from TimestampMixin).
    """

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            "user_type IN ('company', 'professional')",
            name="ck_users_user_type",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=uuid.uuid4,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
    )
    full_name: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )
    user_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="company",
        server_default="company",
    )

    listings: Mapped[list["Listing"]] = relationship(
        back_populates="owner",
        cascade=_CASCADE_ALL_DELETE_ORPHAN,
    )
    subscriptions: Mapped[list["Subscription"]] = relationship(
        back_populates="user",
        cascade=_CASCADE_ALL_DELETE_ORPHAN,
    )
