"""Spatial index abstraction and its PostGIS implementation"""

from typing import List, Protocol, runtime_checkable
from geoalchemy2.elements import WKBElement
from geoalchemy2.functions import ST_DWithin, ST_GeomFromText, ST_SRID, ST_Transform
from geoalchemy2.shape import to_shape
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from transit_registry.core.config import settings
from transit_registry.models.region import Region
from transit_registry.utils.geometry import element_srid


@runtime_checkable
class SpatialIndex(Protocol):
    """Proximity lookup of regions"""

    async def regions_near(self, geometry: WKBElement, distance: float) -> List[Region]:
        """
        Regions whose boundary lies within distance of geometry.

        The geometry is reprojected into each region's own SRID first, and
        distance is expressed in that SRID's units. Results are ordered by
        region id.
        """
        ...


class PostGISSpatialIndex:
    """Region proximity queries executed by PostGIS"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def regions_near(self, geometry: WKBElement, distance: float) -> List[Region]:
        srid = element_srid(geometry) or settings.DEFAULT_SRID
        query_geom = ST_Transform(
            ST_GeomFromText(to_shape(geometry).wkt, srid),
            ST_SRID(Region.geom),
        )
        result = await self.db.execute(
            select(Region)
            .where(ST_DWithin(Region.geom, query_geom, distance))
            .order_by(Region.id)
        )
        return list(result.scalars().all())
