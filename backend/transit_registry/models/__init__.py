"""Registry models; imported together so relationship names resolve"""

from transit_registry.models.agency import Agency, AgencySource, ReviewType
from transit_registry.models.feed import Feed, FeedParseStatus, DefaultBikesAllowed
from transit_registry.models.region import Region

__all__ = [
    "Agency",
    "AgencySource",
    "ReviewType",
    "Feed",
    "FeedParseStatus",
    "DefaultBikesAllowed",
    "Region",
]
