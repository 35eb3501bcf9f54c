"""Initial lifecycle schema.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-17

Creates users, listings, subscription_plans, user_subscriptions,
admin_settings, notification_queue and notification_history, and seeds the
single admin_settings row with subscriptions disabled.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001_initial_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

# Shared column types
_PG_UUID = postgresql.UUID(as_uuid=True)
_UUID_DEFAULT = sa.text("gen_random_uuid()")
_TIMESTAMPTZ = sa.DateTime(timezone=True)
_NOW = sa.text("now()")
_NUMERIC_10_2 = sa.Numeric(precision=10, scale=2)
_USERS_FK = "users.id"


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", _TIMESTAMPTZ, server_default=_NOW, nullable=False),
        sa.Column("updated_at", _TIMESTAMPTZ, server_default=_NOW, nullable=False),
    ]


def upgrade() -> None:
    """Create lifecycle tables and seed admin settings."""
    # 1. Users
    op.create_table(
        "users",
        sa.Column("id", _PG_UUID, server_default=_UUID_DEFAULT, primary_key=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("full_name", sa.String(255), nullable=True),
        sa.Column(
            "user_type", sa.String(20), server_default="company", nullable=False
        ),
        *_timestamps(),
        sa.CheckConstraint(
            "user_type IN ('company', 'professional')",
            name="ck_users_user_type",
        ),
    )

    # 2. Listings
    op.create_table(
        "listings",
        sa.Column("id", _PG_UUID, server_default=_UUID_DEFAULT, primary_key=True),
        sa.Column(
            "owner_id",
            _PG_UUID,
            sa.ForeignKey(_USERS_FK, ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("company_name", sa.String(255), nullable=True),
        sa.Column(
            "is_active", sa.Boolean, server_default=sa.true(), nullable=False
        ),
        sa.Column("expires_at", _TIMESTAMPTZ, nullable=False),
        sa.Column("recruitment_timeline", sa.String(20), nullable=True),
        sa.Column(
            "last_charged_amount",
            _NUMERIC_10_2,
            server_default="0",
            nullable=False,
        ),
        *_timestamps(),
        sa.CheckConstraint(
            "last_charged_amount >= 0", name="ck_listings_charged_nonneg"
        ),
    )
    op.create_index(
        "ix_listings_active_expires_at", "listings", ["is_active", "expires_at"]
    )
    op.create_index("ix_listings_owner_id", "listings", ["owner_id"])

    # 3. Subscription plans and grants
    op.create_table(
        "subscription_plans",
        sa.Column("id", _PG_UUID, server_default=_UUID_DEFAULT, primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("user_type", sa.String(20), nullable=False),
        sa.Column("price", _NUMERIC_10_2, nullable=False),
        sa.Column("duration_days", sa.Integer, nullable=False),
        sa.Column("job_post_limit", sa.Integer, nullable=True),
        sa.Column("contact_limit", sa.Integer, nullable=True),
        sa.Column("active", sa.Boolean, server_default=sa.true(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("price >= 0", name="ck_plans_price_nonneg"),
        sa.CheckConstraint("duration_days > 0", name="ck_plans_duration_positive"),
        sa.CheckConstraint(
            "user_type IN ('company', 'professional')",
            name="ck_plans_user_type",
        ),
    )

    op.create_table(
        "user_subscriptions",
        sa.Column("id", _PG_UUID, server_default=_UUID_DEFAULT, primary_key=True),
        sa.Column(
            "user_id",
            _PG_UUID,
            sa.ForeignKey(_USERS_FK, ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "plan_id",
            _PG_UUID,
            sa.ForeignKey("subscription_plans.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("status", sa.String(20), server_default="active", nullable=False),
        sa.Column("start_date", _TIMESTAMPTZ, nullable=False),
        sa.Column("end_date", _TIMESTAMPTZ, nullable=False),
        sa.Column("jobs_posted", sa.Integer, server_default="0", nullable=False),
        sa.Column("contacts_used", sa.Integer, server_default="0", nullable=False),
        sa.Column(
            "payment_data",
            postgresql.JSONB,
            server_default=sa.text("'{}'::jsonb"),
            nullable=False,
        ),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('active', 'expired', 'cancelled')",
            name="ck_subscriptions_status",
        ),
        sa.CheckConstraint("jobs_posted >= 0", name="ck_subscriptions_jobs_nonneg"),
        sa.CheckConstraint(
            "contacts_used >= 0", name="ck_subscriptions_contacts_nonneg"
        ),
    )
    op.create_index(
        "ix_user_subscriptions_status_end_date",
        "user_subscriptions",
        ["status", "end_date"],
    )
    op.create_index(
        "ix_user_subscriptions_user_id", "user_subscriptions", ["user_id"]
    )

    # 4. Admin settings (single row)
    op.create_table(
        "admin_settings",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column(
            "subscriptions_enabled",
            sa.Boolean,
            server_default=sa.false(),
            nullable=False,
        ),
        *_timestamps(),
    )
    op.execute(
        "INSERT INTO admin_settings (id, subscriptions_enabled) VALUES (1, false)"
    )

    # 5. Notification queue and history
    op.create_table(
        "notification_queue",
        sa.Column("id", _PG_UUID, server_default=_UUID_DEFAULT, primary_key=True),
        sa.Column(
            "user_id",
            _PG_UUID,
            sa.ForeignKey(_USERS_FK, ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("notification_type", sa.String(50), nullable=False),
        sa.Column("channel", sa.String(10), server_default="email", nullable=False),
        sa.Column("subject", sa.String(255), nullable=True),
        sa.Column(
            "template_data",
            postgresql.JSONB,
            server_default=sa.text("'{}'::jsonb"),
            nullable=False,
        ),
        sa.Column("status", sa.String(10), server_default="pending", nullable=False),
        sa.Column("scheduled_for", _TIMESTAMPTZ, server_default=_NOW, nullable=False),
        sa.Column("sent_at", _TIMESTAMPTZ, nullable=True),
        sa.Column("error_message", sa.Text, nullable=True),
        sa.Column("dedupe_key", sa.String(255), nullable=True, unique=True),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('pending', 'sent', 'failed')",
            name="ck_notification_queue_status",
        ),
        sa.CheckConstraint(
            "channel IN ('email', 'push')",
            name="ck_notification_queue_channel",
        ),
    )
    op.create_index(
        "ix_notification_queue_status_scheduled_for",
        "notification_queue",
        ["status", "scheduled_for"],
    )

    op.create_table(
        "notification_history",
        sa.Column("id", _PG_UUID, server_default=_UUID_DEFAULT, primary_key=True),
        sa.Column(
            "user_id",
            _PG_UUID,
            sa.ForeignKey(_USERS_FK, ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("notification_type", sa.String(50), nullable=False),
        sa.Column("channel", sa.String(10), nullable=False),
        sa.Column("subject", sa.String(255), nullable=True),
        sa.Column(
            "metadata",
            postgresql.JSONB,
            server_default=sa.text("'{}'::jsonb"),
            nullable=False,
        ),
        sa.Column("created_at", _TIMESTAMPTZ, server_default=_NOW, nullable=False),
    )


def downgrade() -> None:
    """Drop lifecycle tables in reverse dependency order."""
    op.drop_table("notification_history")
    op.drop_index(
        "ix_notification_queue_status_scheduled_for", table_name="notification_queue"
    )
    op.drop_table("notification_queue")
    op.drop_table("admin_settings")
    op.drop_index("ix_user_subscriptions_user_id", table_name="user_subscriptions")
    op.drop_index(
        "ix_user_subscriptions_status_end_date", table_name="user_subscriptions"
    )
    op.drop_table("user_subscriptions")
    op.drop_table("subscription_plans")
    op.drop_index("ix_listings_owner_id", table_name="listings")
    op.drop_index("ix_listings_active_expires_at", table_name="listings")
    op.drop_table("listings")
    op.drop_table("users")
