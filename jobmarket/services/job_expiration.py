"""Listing expiration sweep and extension.

Three operations over the listings table:
- process_expirations: close out elapsed listings and report those
  expiring soon (called by the scheduled trigger).
- get_expiring_listings_for_owner / get_listing_expiration_status:
  read-only views for the owner dashboard.
- extend_listing / extend_listings: push a listing's expiry forward.

Every operation swallows backend errors at this boundary and returns a
sentinel (None, False, or an empty list). Route handlers turn sentinels
into HTTP errors.
"""

import logging
import math
import uuid
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Literal

from sqlalchemy.ext.asyncio import AsyncSession

from jobmarket.core.config import settings
from jobmarket.core.results import BackendError, NotFound, Ok, run_backend_call
from jobmarket.models.listing import Listing
from jobmarket.repositories.listing_repository import ListingRepository

logger = logging.getLogger(__name__)

TimelineLabel = Literal["3_days", "7_days", "2_weeks", "3_weeks", "4_weeks"]

TIMELINE_DURATIONS: dict[str, int] = {
    "3_days": 3,
    "7_days": 7,
    "2_weeks": 14,
    "3_weeks": 21,
    "4_weeks": 28,
}
"""Extension window label → duration in days."""

ExpirationStatus = Literal["active", "expiring_soon", "expired"]

_SECONDS_PER_DAY = 86400

# A concurrent extension can move expires_at between our read and our
# compare-and-set write; re-read and retry a bounded number of times.
_MAX_EXTEND_ATTEMPTS = 3


@dataclass(frozen=True)
class ExpiringListing:
    """A listing approaching the end of its visibility window.

    Attributes:
        job_id: Listing ID.
        title: Listing title.
        company_name: Posting company display name.
        user_id: Owner to notify.
        expires_at: End of the visibility window.
        days_until_expiration: Whole days left, rounded up.
    """

    job_id: uuid.UUID
    title: str
    company_name: str | None
    user_id: uuid.UUID
    expires_at: datetime
    days_until_expiration: int


@dataclass(frozen=True)
class ExpirationResult:
    """Outcome of one expiration sweep.

    Attributes:
        expired_count: Listings flipped to inactive by this sweep.
        expiring_jobs: Active listings expiring soon, soonest first.
        processed_at: Sweep reference time.
    """

    expired_count: int
    expiring_jobs: list[ExpiringListing]
    processed_at: datetime


@dataclass(frozen=True)
class ListingExpirationStatus:
    """A listing with its derived expiration state.

    Attributes:
        listing_id: Listing ID.
        owner_id: Owner user ID.
        title: Listing title.
        company_name: Posting company display name.
        is_active: Stored active flag.
        expires_at: End of the visibility window.
        recruitment_timeline: Label of the last window.
        last_charged_amount: Charge recorded by the last extension.
        expiration_status: "active", "expiring_soon", or "expired".
        days_until_expiration: Whole days left, rounded up (0 once expired).
    """

    listing_id: uuid.UUID
    owner_id: uuid.UUID
    title: str
    company_name: str | None
    is_active: bool
    expires_at: datetime
    recruitment_timeline: str | None
    last_charged_amount: Decimal
    expiration_status: ExpirationStatus
    days_until_expiration: int


@dataclass(frozen=True)
class BulkExtensionResult:
    """Outcome of extending several listings.

    Attributes:
        requested: Number of listings the caller asked to extend.
        succeeded: Number extended.
        failed_ids: Listings that could not be extended.
    """

    requested: int
    succeeded: int
    failed_ids: tuple[uuid.UUID, ...]

    @property
    def failed_count(self) -> int:
        """Number of listings that could not be extended."""
        return len(self.failed_ids)

    @property
    def message(self) -> str | None:
        """User-facing failure summary, or None when all succeeded."""
        if not self.failed_ids:
            return None
        return f"Failed to extend {self.failed_count} job(s). Please try again."


def days_until(expires_at: datetime, now: datetime) -> int:
    """Whole days from now until expires_at, rounded up, never negative.

    Args:
        expires_at: End of the window.
        now: Reference time.

    Returns:
        0 if the window has elapsed, otherwise ceil(remaining / 1 day).
    """
    remaining = (expires_at - now).total_seconds()
    if remaining <= 0:
        return 0
    return math.ceil(remaining / _SECONDS_PER_DAY)


def classify_expiration(
    listing: Listing,
    *,
    now: datetime,
    days_ahead: int,
) -> ExpirationStatus:
    """Derive a listing's expiration state at ``now``.

    Inactive listings and listings at or past their expiry are "expired",
    listings ending within ``days_ahead`` days are "expiring_soon".
    """
    if not listing.is_active or listing.expires_at <= now:
        return "expired"
    if listing.expires_at <= now + timedelta(days=days_ahead):
        return "expiring_soon"
    return "active"


def _to_expiring(listing: Listing, now: datetime) -> ExpiringListing:
    return ExpiringListing(
        job_id=listing.id,
        title=listing.title,
        company_name=listing.company_name,
        user_id=listing.owner_id,
        expires_at=listing.expires_at,
        days_until_expiration=days_until(listing.expires_at, now),
    )


async def process_expirations(
    db: AsyncSession,
    *,
    now: datetime | None = None,
    days_ahead: int | None = None,
) -> ExpirationResult | None:
    """Close out elapsed listings and collect those expiring soon.

    In one savepoint:
    1. Flip every active listing with expires_at <= now to inactive.
    2. List active listings expiring within days_ahead days.

    Safe to call repeatedly: an already-inactive listing no longer matches
    the sweep, so a second call at the same time reports expired_count=0.
    Does not send notifications.

    Args:
        db: Async database session.
        now: Sweep reference time. Defaults to the current UTC time.
        days_ahead: Expiring-soon window. Defaults to settings.expiring_soon_days.

    Returns:
        ExpirationResult, or None if the backend call failed.
    """
    now = now or datetime.now(UTC)
    window = settings.expiring_soon_days if days_ahead is None else days_ahead

    async def _sweep() -> tuple[list[uuid.UUID], list[Listing]]:
        async with db.begin_nested():
            expired_ids = await ListingRepository.deactivate_expired(db, now=now)
            expiring = await ListingRepository.list_expiring(
                db, now=now, days_ahead=window
            )
        return expired_ids, expiring

    outcome = await run_backend_call(_sweep, context="Job expiration sweep")
    if not isinstance(outcome, Ok):
        logger.error("Failed to process job expirations: %s", outcome.message)
        return None

    expired_ids, expiring = outcome.value
    result = ExpirationResult(
        expired_count=len(expired_ids),
        expiring_jobs=[_to_expiring(listing, now) for listing in expiring],
        processed_at=now,
    )
    logger.info(
        "Job expiration sweep: %d expired, %d expiring within %d days",
        result.expired_count,
        len(result.expiring_jobs),
        window,
    )
    return result


async def get_expiring_listings_for_owner(
    db: AsyncSession,
    owner_id: uuid.UUID,
    *,
    days_ahead: int = 3,
    now: datetime | None = None,
) -> list[ExpiringListing]:
    """Return an owner's active listings expiring within days_ahead days.

    Read-only. Returns an empty list on backend failure so dashboards keep
    rendering.

    Args:
        db: Async database session.
        owner_id: Listing owner.
        days_ahead: Forward window in days.
        now: Reference time. Defaults to the current UTC time.

    Returns:
        Expiring listings, soonest first.
    """
    now = now or datetime.now(UTC)

    outcome = await run_backend_call(
        lambda: ListingRepository.list_expiring(
            db, now=now, days_ahead=days_ahead, owner_id=owner_id
        ),
        context="Expiring listings lookup",
    )
    if not isinstance(outcome, Ok):
        return []
    return [_to_expiring(listing, now) for listing in outcome.value]


async def get_listing_expiration_status(
    db: AsyncSession,
    listing_id: uuid.UUID,
    *,
    owner_id: uuid.UUID | None = None,
    now: datetime | None = None,
    days_ahead: int | None = None,
) -> ListingExpirationStatus | None:
    """Return a listing with its derived expiration state.

    Args:
        db: Async database session.
        listing_id: Listing to inspect.
        owner_id: When given, other owners' listings are not found.
        now: Reference time. Defaults to the current UTC time.
        days_ahead: Expiring-soon window. Defaults to settings.expiring_soon_days.

    Returns:
        ListingExpirationStatus, or None if missing or the backend failed.
    """
    now = now or datetime.now(UTC)
    window = settings.expiring_soon_days if days_ahead is None else days_ahead

    outcome = await run_backend_call(
        lambda: ListingRepository.get_by_id(db, listing_id, owner_id=owner_id),
        context="Listing status lookup",
    )
    if not isinstance(outcome, Ok):
        return None

    listing = outcome.value
    return ListingExpirationStatus(
        listing_id=listing.id,
        owner_id=listing.owner_id,
        title=listing.title,
        company_name=listing.company_name,
        is_active=listing.is_active,
        expires_at=listing.expires_at,
        recruitment_timeline=listing.recruitment_timeline,
        last_charged_amount=listing.last_charged_amount,
        expiration_status=classify_expiration(listing, now=now, days_ahead=window),
        days_until_expiration=days_until(listing.expires_at, now),
    )


def _parse_amount(value: Decimal | float | int | str) -> Decimal | None:
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite() or amount < 0:
        return None
    return amount


async def extend_listing(
    db: AsyncSession,
    listing_id: uuid.UUID,
    new_timeline: str,
    new_amount: Decimal | float | int = 0,
    *,
    owner_id: uuid.UUID | None = None,
    now: datetime | None = None,
) -> bool:
    """Push a listing's expiry forward by the requested window.

    The new expiry is ``max(current expiry, now) + duration``: a listing
    extended before it expires keeps its remaining time, an expired
    listing restarts from now. Either way the new expiry is strictly later
    than the old one. The listing is reactivated and the window label and
    charge are recorded in the same write.

    Args:
        db: Async database session.
        listing_id: Listing to extend.
        new_timeline: Window label (see TIMELINE_DURATIONS).
        new_amount: Non-negative charge to record. 0 is allowed.
        owner_id: When given, other owners' listings are not found.
        now: Reference time. Defaults to the current UTC time.

    Returns:
        True on success. False for an unknown window, a negative amount,
        a missing listing, or a backend failure.
    """
    duration_days = TIMELINE_DURATIONS.get(new_timeline)
    if duration_days is None:
        logger.warning(
            "Rejected extension of listing %s: unknown timeline %r",
            listing_id,
            new_timeline,
        )
        return False

    amount = _parse_amount(new_amount)
    if amount is None:
        logger.warning(
            "Rejected extension of listing %s: invalid amount %r",
            listing_id,
            new_amount,
        )
        return False

    now = now or datetime.now(UTC)
    duration = timedelta(days=duration_days)

    async def _extend() -> bool | None:
        async with db.begin_nested():
            for _ in range(_MAX_EXTEND_ATTEMPTS):
                listing = await ListingRepository.get_by_id(
                    db, listing_id, owner_id=owner_id
                )
                if listing is None:
                    return None
                current = listing.expires_at
                new_expires_at = max(current, now) + duration
                updated = await ListingRepository.compare_and_set_expiry(
                    db,
                    listing_id=listing_id,
                    expected_expires_at=current,
                    new_expires_at=new_expires_at,
                    recruitment_timeline=new_timeline,
                    charged_amount=amount,
                    now=now,
                )
                if updated:
                    return True
        return False

    outcome = await run_backend_call(_extend, context="Listing extension")
    if isinstance(outcome, NotFound):
        logger.warning("Cannot extend listing %s: not found", listing_id)
        return False
    if isinstance(outcome, BackendError):
        logger.error("Error extending listing %s: %s", listing_id, outcome.message)
        return False
    if not outcome.value:
        logger.warning(
            "Listing %s changed concurrently %d times; extension abandoned",
            listing_id,
            _MAX_EXTEND_ATTEMPTS,
        )
        return False

    logger.info("Extended listing %s by %s", listing_id, new_timeline)
    return True


async def extend_listings(
    db: AsyncSession,
    listing_ids: Sequence[uuid.UUID],
    new_timeline: str,
    new_amount: Decimal | float | int = 0,
    *,
    owner_id: uuid.UUID | None = None,
    now: datetime | None = None,
) -> BulkExtensionResult:
    """Extend several listings, settling every one before reporting.

    Each listing is extended independently (own savepoint); one failure
    never cancels the rest. Duplicate IDs are extended once.

    Args:
        db: Async database session.
        listing_ids: Listings to extend.
        new_timeline: Window label (see TIMELINE_DURATIONS).
        new_amount: Charge recorded per listing.
        owner_id: When given, other owners' listings count as failures.
        now: Reference time shared by the whole batch.

    Returns:
        BulkExtensionResult with the failed listing IDs.
    """
    now = now or datetime.now(UTC)
    unique_ids = list(dict.fromkeys(listing_ids))

    failed: list[uuid.UUID] = []
    for listing_id in unique_ids:
        ok = await extend_listing(
            db,
            listing_id,
            new_timeline,
            new_amount,
            owner_id=owner_id,
            now=now,
        )
        if not ok:
            failed.append(listing_id)

    if failed:
        logger.warning(
            "Bulk extension: %d of %d listings failed", len(failed), len(unique_ids)
        )

    return BulkExtensionResult(
        requested=len(unique_ids),
        succeeded=len(unique_ids) - len(failed),
        failed_ids=tuple(failed),
    )
