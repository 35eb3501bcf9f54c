"""SQLAlchemy ORM models for the job market lifecycle service.

All models are exported from this module for convenient imports:
    from jobmarket.models import User, Listing, Subscription, ...

Models are organized by domain:
- user.py: User (Tier 0)
- subscription.py: SubscriptionPlan, AdminSettings (Tier 0), Subscription (Tier 1)
- listing.py: Listing (Tier 1)
- notification.py: NotificationQueueItem, NotificationHistory (Tier 1)
"""

from jobmarket.models.base import Base, TimestampMixin, UTCDateTime
from jobmarket.models.listing import Listing
from jobmarket.models.notification import NotificationHistory, NotificationQueueItem
from jobmarket.models.subscription import AdminSettings, Subscription, SubscriptionPlan
from jobmarket.models.user import User

__all__ = [
    # Base classes
    "Base",
    "TimestampMixin",
    "UTCDateTime",
    # Tier 0
    "User",
    "SubscriptionPlan",
    "AdminSettings",
    # Tier 1
    "Listing",
    "Subscription",
    "NotificationQueueItem",
    "NotificationHistory",
]
