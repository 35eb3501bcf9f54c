"""Listing lifecycle API router.

Owner-facing endpoints: expiring-soon dashboard, per-listing expiration
status, and extension (single and bulk). Listings owned by other users
behave as missing.
"""

import uuid
from typing import Annotated

from fastapi import APIRouter, Query, Request

from jobmarket.api.deps import CurrentUserId, DbSession
from jobmarket.core.config import settings
from jobmarket.core.errors import InvalidStateError, NotFoundError
from jobmarket.core.rate_limiting import limiter
from jobmarket.core.responses import DataResponse
from jobmarket.schemas.listing import (
    BulkExtendRequest,
    BulkExtendResponse,
    ExpiringListingResponse,
    ExtendListingRequest,
    ListingStatusResponse,
)
from jobmarket.services.job_expiration import (
    ListingExpirationStatus,
    extend_listing,
    extend_listings,
    get_expiring_listings_for_owner,
    get_listing_expiration_status,
)

router = APIRouter()

_EXTENSION_FAILED_MSG = "Failed to extend job. Please try again."

DaysAhead = Annotated[
    int,
    Query(ge=1, le=30, description="Forward window in days"),
]


def _status_response(status: ListingExpirationStatus) -> ListingStatusResponse:
    return ListingStatusResponse(
        listing_id=status.listing_id,
        owner_id=status.owner_id,
        title=status.title,
        company_name=status.company_name,
        is_active=status.is_active,
        expires_at=status.expires_at,
        recruitment_timeline=status.recruitment_timeline,
        last_charged_amount=f"{status.last_charged_amount:.2f}",
        expiration_status=status.expiration_status,
        days_until_expiration=status.days_until_expiration,
    )


# =============================================================================
# Read endpoints
# =============================================================================


@router.get("/expiring")
async def list_expiring_listings(
    user_id: CurrentUserId,
    db: DbSession,
    days_ahead: DaysAhead = 3,
) -> DataResponse[list[ExpiringListingResponse]]:
    """Return the current user's active listings expiring soon, soonest first."""
    expiring = await get_expiring_listings_for_owner(
        db, user_id, days_ahead=days_ahead
    )
    return DataResponse(
        data=[
            ExpiringListingResponse(
                job_id=job.job_id,
                title=job.title,
                company_name=job.company_name,
                user_id=job.user_id,
                expires_at=job.expires_at,
                days_until_expiration=job.days_until_expiration,
            )
            for job in expiring
        ]
    )


@router.get("/{listing_id}/status")
async def get_listing_status(
    listing_id: uuid.UUID,
    user_id: CurrentUserId,
    db: DbSession,
) -> DataResponse[ListingStatusResponse]:
    """Return one of the user's listings with its expiration state.

    Raises:
        NotFoundError: Missing, owned by someone else, or unreadable.
    """
    status = await get_listing_expiration_status(db, listing_id, owner_id=user_id)
    if status is None:
        raise NotFoundError("Listing", str(listing_id))
    return DataResponse(data=_status_response(status))


# =============================================================================
# Extension
# =============================================================================


@router.post("/extend")
@limiter.limit(lambda: settings.rate_limit_extend)
async def bulk_extend_listings(
    request: Request,  # noqa: ARG001 - required by @limiter.limit()
    body: BulkExtendRequest,
    user_id: CurrentUserId,
    db: DbSession,
) -> DataResponse[BulkExtendResponse]:
    """Extend several of the user's listings by the same window.

    Partial success is allowed: listings that could not be extended
    (including ones the user does not own) are reported in failed_ids.
    """
    result = await extend_listings(
        db,
        body.listing_ids,
        body.timeline,
        body.amount,
        owner_id=user_id,
    )
    return DataResponse(
        data=BulkExtendResponse(
            requested=result.requested,
            succeeded=result.succeeded,
            failed_ids=list(result.failed_ids),
            message=result.message,
        )
    )


@router.post("/{listing_id}/extend")
@limiter.limit(lambda: settings.rate_limit_extend)
async def extend_single_listing(
    request: Request,  # noqa: ARG001 - required by @limiter.limit()
    listing_id: uuid.UUID,
    body: ExtendListingRequest,
    user_id: CurrentUserId,
    db: DbSession,
) -> DataResponse[ListingStatusResponse]:
    """Extend one of the user's listings and return its refreshed status.

    Raises:
        InvalidStateError: EXTENSION_FAILED for an unknown window, a
            listing the user does not own, or a backend failure.
    """
    extended = await extend_listing(
        db,
        listing_id,
        body.timeline,
        body.amount,
        owner_id=user_id,
    )
    if not extended:
        raise InvalidStateError(_EXTENSION_FAILED_MSG, code="EXTENSION_FAILED")

    status = await get_listing_expiration_status(db, listing_id, owner_id=user_id)
    if status is None:
        raise NotFoundError("Listing", str(listing_id))
    return DataResponse(data=_status_response(status))
