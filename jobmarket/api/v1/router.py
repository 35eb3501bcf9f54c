"""API v1 router aggregator.

All v1 endpoint routers are included here and mounted at /api/v1.
"""

from fastapi import APIRouter

from jobmarket.api.v1 import cron, listings, subscriptions

router = APIRouter()

# =============================================================================
# Scheduled triggers (bearer secret)
# =============================================================================

router.include_router(cron.router, prefix="/cron", tags=["cron"])

# =============================================================================
# Owner-facing resources
# =============================================================================

router.include_router(listings.router, prefix="/listings", tags=["listings"])
router.include_router(
    subscriptions.router, prefix="/subscriptions", tags=["subscriptions"]
)
