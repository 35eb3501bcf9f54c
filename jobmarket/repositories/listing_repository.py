"""Repository for listing lifecycle operations.

Provides database access for the listings table: the expiration sweep,
expiring-soon lookups, and compare-and-set expiry extension.
"""

import uuid
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, cast

from sqlalchemy import select, update
from sqlalchemy.engine import CursorResult
from sqlalchemy.ext.asyncio import AsyncSession

from jobmarket.models.listing import Listing


class ListingRepository:
    """Stateless repository for Listing lifecycle operations.

    All methods are static; no instance state. Pass an AsyncSession
    for every call so the caller controls transaction boundaries.
    """

    @staticmethod
    async def get_by_id(
        db: AsyncSession,
        listing_id: uuid.UUID,
        *,
        owner_id: uuid.UUID | None = None,
    ) -> Listing | None:
        """Fetch a listing, optionally scoped to its owner.

        Always refreshes identity-mapped instances, since lifecycle writes
        are bulk UPDATE statements that bypass the session.

        Args:
            db: Async database session.
            listing_id: Listing to fetch.
            owner_id: When given, listings owned by anyone else are not found.

        Returns:
            Listing or None.
        """
        stmt = (
            select(Listing)
            .where(Listing.id == listing_id)
            .execution_options(populate_existing=True)
        )
        if owner_id is not None:
            stmt = stmt.where(Listing.owner_id == owner_id)
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def deactivate_expired(
        db: AsyncSession,
        *,
        now: datetime,
    ) -> list[uuid.UUID]:
        """Flip every elapsed active listing to inactive in one statement.

        The ``is_active`` precondition lives in the WHERE clause, so a row
        is flipped (and returned) by exactly one sweep even when sweeps
        overlap. The boundary is inclusive: ``expires_at == now`` expires.

        Args:
            db: Async database session.
            now: Sweep reference time.

        Returns:
            IDs of the listings flipped by this call.
        """
        stmt = (
            update(Listing)
            .where(Listing.is_active.is_(True), Listing.expires_at <= now)
            .values(is_active=False, updated_at=now)
            .returning(Listing.id)
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_expiring(
        db: AsyncSession,
        *,
        now: datetime,
        days_ahead: int,
        owner_id: uuid.UUID | None = None,
    ) -> list[Listing]:
        """List active listings whose window ends within ``days_ahead`` days.

        Args:
            db: Async database session.
            now: Reference time.
            days_ahead: Forward window in days.
            owner_id: Optional owner filter.

        Returns:
            Listings ordered by ascending expires_at.
        """
        horizon = now + timedelta(days=days_ahead)
        stmt = select(Listing).where(
            Listing.is_active.is_(True),
            Listing.expires_at > now,
            Listing.expires_at <= horizon,
        )
        if owner_id is not None:
            stmt = stmt.where(Listing.owner_id == owner_id)
        stmt = stmt.order_by(
            Listing.expires_at.asc(), Listing.id.asc()
        ).execution_options(populate_existing=True)
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def compare_and_set_expiry(
        db: AsyncSession,
        *,
        listing_id: uuid.UUID,
        expected_expires_at: datetime,
        new_expires_at: datetime,
        recruitment_timeline: str,
        charged_amount: Decimal,
        now: datetime,
    ) -> bool:
        """Write a new expiry only if the listing still has the expected one.

        Reactivates the listing and records the window label and charge in
        the same statement. A concurrent extension that landed first makes
        the WHERE clause miss, and this call reports False.

        Args:
            db: Async database session.
            listing_id: Listing to extend.
            expected_expires_at: Expiry read before computing the new one.
            new_expires_at: Expiry to persist.
            recruitment_timeline: Window label to record.
            charged_amount: Charge to record.
            now: Update timestamp.

        Returns:
            True if exactly one row was updated.
        """
        result = cast(
            CursorResult[Any],
            await db.execute(
                update(Listing)
                .where(
                    Listing.id == listing_id,
                    Listing.expires_at == expected_expires_at,
                )
                .values(
                    expires_at=new_expires_at,
                    is_active=True,
                    recruitment_timeline=recruitment_timeline,
                    last_charged_amount=charged_amount,
                    updated_at=now,
                )
                .execution_options(synchronize_session=False)
            ),
        )
        rows_updated: int = result.rowcount
        return rows_updated == 1
