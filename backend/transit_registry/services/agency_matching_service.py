"""Service for linking feeds to the agencies that publish them"""

import enum
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from transit_registry.db.store import EntityStore
from transit_registry.models.agency import Agency, ReviewType
from transit_registry.models.feed import Feed
from transit_registry.services.relation_manager import RelationManager
from transit_registry.utils.urls import canonicalize_url

logger = logging.getLogger(__name__)


class MatchStatus(str, enum.Enum):
    """Outcome of matching a feed"""

    MATCHED = "matched"
    NO_MATCH_FOUND = "no_match_found"  # Valid outcome; the feed waits for manual review
    CREATED = "created"  # No match, so an agency was built from the feed


@dataclass
class MatchResult:
    """Agencies a feed was linked to, and how"""

    feed: Feed
    status: MatchStatus
    agencies: List[Agency] = field(default_factory=list)

    @property
    def matched(self) -> bool:
        return bool(self.agencies)


class AgencyMatchingService:
    """
    Links feeds to agencies by comparing canonical URL hosts.

    There is no fuzzy matching: a feed whose self-reported agency URL is a
    marketing domain rather than the agency's own will not match and is
    flagged for review instead.
    """

    def __init__(self, store: EntityStore, relations: Optional[RelationManager] = None):
        self.store = store
        self.relations = relations or RelationManager(store)

    async def find_candidates(self, feed: Feed) -> List[Agency]:
        """All agencies whose canonical URL host equals the feed's"""
        host = canonicalize_url(feed.agency_url)
        if host is None:
            return []
        return await self.store.find(Agency, canonical_host=host)

    async def match(self, feed: Feed) -> MatchResult:
        """
        Link a feed to every agency sharing its canonical URL host.

        Each matched agency gets the feed added to its feeds and is saved.
        When nothing matches, the feed is flagged NO_AGENCY for review and
        the result status is NO_MATCH_FOUND.
        """
        agencies = await self.find_candidates(feed)

        if not agencies:
            logger.warning(
                f"No agency matches feed {feed.id} ({feed.agency_url}); flagged for review"
            )
            feed.review = ReviewType.NO_AGENCY
            await self.store.save(feed)
            return MatchResult(feed=feed, status=MatchStatus.NO_MATCH_FOUND)

        for agency in agencies:
            await self.relations.link_feed(agency, feed)

        if feed.review == ReviewType.NO_AGENCY:
            feed.review = None
            await self.store.save(feed)

        logger.info(
            f"Matched feed {feed.id} to {len(agencies)} agencies: {[a.id for a in agencies]}"
        )
        return MatchResult(feed=feed, status=MatchStatus.MATCHED, agencies=agencies)

    async def match_or_create(self, feed: Feed) -> MatchResult:
        """Match a feed, creating an agency from its self-reported details if nothing matches"""
        result = await self.match(feed)
        if result.matched:
            return result

        agency = Agency.from_feed(feed)
        await self.store.save(agency)
        await self.relations.link_feed(agency, feed)

        feed.review = None
        await self.store.save(feed)

        logger.info(f"Created agency {agency.id} ({agency}) from feed {feed.id}")
        return MatchResult(feed=feed, status=MatchStatus.CREATED, agencies=[agency])

    async def match_unlinked(self, create_missing: bool = False) -> List[MatchResult]:
        """Match every enabled feed that is not linked to any agency yet"""
        feeds = [
            feed for feed in await self.store.find(Feed, disabled=False)
            if not feed.agencies
        ]
        logger.info(f"Matching {len(feeds)} unlinked feeds")

        results = []
        for feed in feeds:
            if create_missing:
                results.append(await self.match_or_create(feed))
            else:
                results.append(await self.match(feed))
        return results
