"""
Relation management for agency/feed links and region membership

Agency.feeds and Region.agencies are shared sets that several operations
update (matching, cloning, region split and merge). All such updates go
through RelationManager so each one runs under a per-aggregate lock: an
in-process asyncio lock keyed by (kind, id) plus the store's row lock.
"""

import asyncio
import logging
import weakref
from contextlib import asynccontextmanager
from typing import AsyncIterator, Tuple

from transit_registry.core.exceptions import UnsavedEntityError
from transit_registry.db.base_class import Base
from transit_registry.db.store import EntityStore
from transit_registry.models.agency import Agency
from transit_registry.models.feed import Feed
from transit_registry.models.region import Region

logger = logging.getLogger(__name__)

# Locks live only while someone holds or waits on them
_aggregate_locks: "weakref.WeakValueDictionary[Tuple[str, int], asyncio.Lock]" = (
    weakref.WeakValueDictionary()
)


def _require_saved(entity: Base) -> None:
    if entity.id is None:
        raise UnsavedEntityError(
            f"{type(entity).__name__} must be saved before it can be linked"
        )


class RelationManager:
    """Serializes updates to the agency/feed and region/agency relations"""

    def __init__(self, store: EntityStore):
        self.store = store

    @asynccontextmanager
    async def _locked(self, entity: Base) -> AsyncIterator[None]:
        _require_saved(entity)
        key = (type(entity).__name__, entity.id)
        lock = _aggregate_locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            _aggregate_locks[key] = lock

        async with lock:
            await self.store.lock(entity)
            yield

    async def link_feed(self, agency: Agency, feed: Feed) -> bool:
        """
        Add feed to agency.feeds and persist the agency.

        Returns:
            False if the feed was already linked
        """
        _require_saved(feed)
        async with self._locked(agency):
            if feed in agency.feeds:
                return False
            agency.feeds.add(feed)
            await self.store.save(agency)

        logger.info(f"Linked feed {feed.id} to agency {agency.id} ({agency})")
        return True

    async def add_region_member(self, region: Region, agency: Agency) -> bool:
        """
        Add agency to region.agencies and persist the region.

        Returns:
            False if the agency was already a member
        """
        _require_saved(agency)
        async with self._locked(region):
            if agency in region.agencies:
                return False
            region.agencies.add(agency)
            await self.store.save(region)

        logger.info(f"Added agency {agency.id} to region {region.id}")
        return True

    async def absorb_region(self, base: Region, absorbed: Region) -> None:
        """
        Merge absorbed's boundary and members into base.

        Absorbed's own membership is emptied afterwards so it can be deleted
        without leaving agencies pointing at it.
        """
        async with self._locked(base):
            async with self._locked(absorbed):
                member_ids = sorted(agency.id for agency in absorbed.agencies)
                base.merge(absorbed)
                absorbed.agencies.clear()
                await self.store.save(base)

        logger.info(
            f"Region {absorbed.id} absorbed into region {base.id} "
            f"(moved agencies: {member_ids})"
        )
