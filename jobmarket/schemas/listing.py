"""Listing lifecycle request/response schemas.

Monetary values are strings with 2 decimal places.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

_MAX_BULK_EXTEND = 100


class ExpiringListingResponse(BaseModel):
    """A listing approaching the end of its visibility window.

    Attributes:
        job_id: Listing ID.
        title: Listing title.
        company_name: Posting company display name.
        user_id: Owner.
        expires_at: End of the visibility window.
        days_until_expiration: Whole days left, rounded up.
    """

    model_config = ConfigDict(extra="forbid")

    job_id: UUID
    title: str
    company_name: str | None
    user_id: UUID
    expires_at: datetime
    days_until_expiration: int


class ListingStatusResponse(BaseModel):
    """Listing with its derived expiration state."""

    model_config = ConfigDict(extra="forbid")

    listing_id: UUID
    owner_id: UUID
    title: str
    company_name: str | None
    is_active: bool
    expires_at: datetime
    recruitment_timeline: str | None
    last_charged_amount: str
    expiration_status: str
    days_until_expiration: int


class ExtendListingRequest(BaseModel):
    """Request body for POST /listings/{id}/extend.

    Attributes:
        timeline: Window label (3_days, 7_days, 2_weeks, 3_weeks, 4_weeks).
        amount: Charge to record for the extension. 0 for free extensions.
    """

    timeline: str = Field(..., min_length=1, max_length=20)
    amount: Decimal = Field(
        default=Decimal("0"), ge=0, max_digits=10, decimal_places=2
    )


class BulkExtendRequest(ExtendListingRequest):
    """Request body for POST /listings/extend.

    Attributes:
        listing_ids: Listings to extend with the same window and charge.
    """

    listing_ids: list[UUID] = Field(..., min_length=1, max_length=_MAX_BULK_EXTEND)


class BulkExtendResponse(BaseModel):
    """Result of a bulk extension; partial success is allowed."""

    model_config = ConfigDict(extra="forbid")

    requested: int
    succeeded: int
    failed_ids: list[UUID]
    message: str | None = None
