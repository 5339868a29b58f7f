"""Service for placing agencies into metro regions"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from geoalchemy2.elements import WKBElement

from transit_registry.core.config import settings
from transit_registry.core.exceptions import NoRegionFound
from transit_registry.db.spatial_index import SpatialIndex
from transit_registry.db.store import EntityStore
from transit_registry.models.agency import Agency, ReviewType
from transit_registry.models.region import Region
from transit_registry.services.agency_geometry_service import AgencyGeometryService
from transit_registry.services.relation_manager import RelationManager

logger = logging.getLogger(__name__)

# Review flags owned by region assignment; other review types are left alone
_REGION_REVIEWS = (ReviewType.AGENCY_MULTIPLE_AREAS, ReviewType.NO_METRO)


@dataclass
class RegionMergeResult:
    """Outcome of a destructive region merge"""

    base: Region
    absorbed_region_ids: List[int] = field(default_factory=list)


class RegionAssignmentService:
    """
    Service for assigning agencies to the regions near their geometry

    - split: make the agency a member of every nearby region, changing nothing else
    - merge: collapse every nearby region into one and make the agency a member
    """

    def __init__(
        self,
        store: EntityStore,
        spatial_index: SpatialIndex,
        relations: Optional[RelationManager] = None,
        geometry_service: Optional[AgencyGeometryService] = None,
        proximity_threshold: Optional[float] = None,
    ):
        self.store = store
        self.spatial_index = spatial_index
        self.relations = relations or RelationManager(store)
        self.geometry_service = geometry_service or AgencyGeometryService()
        if proximity_threshold is None:
            proximity_threshold = settings.REGION_PROXIMITY_THRESHOLD
        self.proximity_threshold = proximity_threshold

    async def find_candidate_regions(self, agency: Agency) -> List[Region]:
        """Regions within the proximity threshold of the agency, lowest id first"""
        geometry = self.geometry_service.derive_geometry(agency)
        if geometry is None:
            return []
        return await self._regions_near(geometry)

    async def _regions_near(self, geometry: WKBElement) -> List[Region]:
        regions = await self.spatial_index.regions_near(geometry, self.proximity_threshold)
        return sorted(regions, key=lambda region: region.id)

    async def assign_to_overlapping_regions(self, agency: Agency) -> List[Region]:
        """
        Make the agency a member of every region it is near, without merging anything.

        An agency with no successfully parsed feed has no geometry and is
        left alone. Region boundaries are never modified here.

        Returns:
            The regions the agency now belongs to through this call
        """
        geometry = self.geometry_service.derive_geometry(agency)
        if geometry is None:
            logger.info(f"Agency {agency.id} has no geometry yet; not assigning regions")
            return []

        regions = await self._regions_near(geometry)
        for region in regions:
            await self.relations.add_region_member(region, agency)

        await self._update_review(agency, regions)
        return regions

    async def merge_overlapping_regions(self, agency: Agency) -> RegionMergeResult:
        """
        Merge every region near the agency into one and add the agency to it.

        The lowest-id candidate is kept as the base; every other candidate
        is merged into it (convex hull of the boundaries, union of members)
        and then deleted. Absorbed boundaries are lost for good, so this is
        meant for agencies known not to span separate metros. Beware
        nationwide operators or agencies with a few stray stops: their hulls
        cross many regions.

        Raises:
            NoRegionFound: If no region is near the agency; nothing is modified
        """
        async with self.store.transaction():
            candidates = await self.find_candidate_regions(agency)
            if not candidates:
                raise NoRegionFound(agency.id)

            base, absorbed = candidates[0], candidates[1:]
            logger.info(
                f"Merging regions {[r.id for r in absorbed]} into region {base.id} "
                f"for agency {agency.id}"
            )

            absorbed_ids = []
            for region in absorbed:
                await self.relations.absorb_region(base, region)
                absorbed_ids.append(region.id)
                await self.store.delete(region)
                logger.info(f"Deleted region {absorbed_ids[-1]} after merge")

            await self.relations.add_region_member(base, agency)
            await self._update_review(agency, [base])

        return RegionMergeResult(base=base, absorbed_region_ids=absorbed_ids)

    async def _update_review(self, agency: Agency, regions: List[Region]) -> None:
        if len(regions) > 1:
            review = ReviewType.AGENCY_MULTIPLE_AREAS
            logger.warning(f"Agency {agency.id} falls in {len(regions)} regions; flagged for review")
        elif not regions:
            review = ReviewType.NO_METRO
            logger.warning(f"Agency {agency.id} is not near any region; flagged for review")
        else:
            review = None

        if agency.review is not None and agency.review not in _REGION_REVIEWS:
            return
        if agency.review != review:
            agency.review = review
            await self.store.save(agency)
