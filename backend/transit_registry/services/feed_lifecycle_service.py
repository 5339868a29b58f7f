"""Service for cloning feeds and tracking which feed supersedes which"""

import logging
from typing import Optional, Set

from transit_registry.core.exceptions import SupersessionCycle, UnsavedEntityError
from transit_registry.db.store import EntityStore
from transit_registry.models.feed import Feed
from transit_registry.services.relation_manager import RelationManager

logger = logging.getLogger(__name__)


class FeedLifecycleService:
    """Service for feed cloning and supersession"""

    def __init__(self, store: EntityStore, relations: Optional[RelationManager] = None):
        self.store = store
        self.relations = relations or RelationManager(store)

    async def clone(self, feed: Feed) -> Feed:
        """
        Clone a feed and link the clone to the same agencies.

        The clone is saved before it is linked anywhere, and both steps run
        in one transaction, so agencies never end up pointing at a feed
        that does not exist.

        Returns:
            The saved clone
        """
        clone = feed.copy()
        agencies = sorted(feed.agencies, key=lambda agency: agency.id)

        async with self.store.transaction():
            await self.store.save(clone)
            for agency in agencies:
                await self.relations.link_feed(agency, clone)

        logger.info(
            f"Cloned feed {feed.id} as feed {clone.id}, linked to agencies {[a.id for a in agencies]}"
        )
        return clone

    async def supersede(self, feed: Feed, replacement: Feed) -> Feed:
        """
        Record that replacement supersedes feed.

        Raises:
            SupersessionCycle: If the supersession chain starting at
                replacement leads back to feed, or already loops
        """
        if feed.id is None or replacement.id is None:
            raise UnsavedEntityError("Feeds must be saved before recording supersession")

        seen: Set[int] = set()
        current: Optional[Feed] = replacement
        while current is not None:
            if current.id == feed.id or current.id in seen:
                raise SupersessionCycle(feed.id, replacement.id)
            seen.add(current.id)
            current = await self._successor(current)

        feed.superseded_by_id = replacement.id
        await self.store.save(feed)

        logger.info(f"Feed {feed.id} superseded by feed {replacement.id}")
        return feed

    async def latest_version(self, feed: Feed) -> Feed:
        """Follow the supersession chain from feed to its most recent feed"""
        seen = {feed.id}
        current = feed
        while True:
            successor = await self._successor(current)
            if successor is None or successor.id in seen:
                return current
            seen.add(successor.id)
            current = successor

    async def _successor(self, feed: Feed) -> Optional[Feed]:
        if feed.superseded_by_id is None:
            return None
        return await self.store.get(Feed, feed.superseded_by_id)
