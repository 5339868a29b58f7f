"""Derivation of an agency's service area from its feeds"""

import logging
from typing import Optional

from geoalchemy2.elements import WKBElement
from shapely.geometry.base import BaseGeometry

from transit_registry.core.config import settings
from transit_registry.core.exceptions import AmbiguousGeometry
from transit_registry.models.agency import Agency
from transit_registry.models.feed import FeedParseStatus
from transit_registry.utils.geometry import force_multipolygon, reproject, to_element, to_geometry, union

logger = logging.getLogger(__name__)


class AgencyGeometryService:
    """Computes agency geometry as the union of its successfully parsed feeds"""

    def __init__(self, reproject_mixed_srid: Optional[bool] = None):
        if reproject_mixed_srid is None:
            reproject_mixed_srid = settings.REPROJECT_MIXED_SRID
        self.reproject_mixed_srid = reproject_mixed_srid

    def derive_geometry(self, agency: Agency) -> Optional[WKBElement]:
        """
        Union the geometries of the agency's successfully parsed feeds.

        Feeds that did not parse are skipped as their geometry means nothing.
        The SRID of the first contributing feed is used for the result.

        Returns:
            The unioned geometry tagged with its SRID, or None when no feed
            contributes

        Raises:
            AmbiguousGeometry: If contributing feeds use different SRIDs and
                reprojection is not enabled
        """
        out: Optional[BaseGeometry] = None
        srid: Optional[int] = None

        for feed in sorted(agency.feeds, key=lambda f: f.id or 0):
            if feed.status != FeedParseStatus.SUCCESSFUL:
                continue
            if feed.geom is None:
                logger.warning(f"Feed {feed.id} parsed successfully but has no geometry; skipping")
                continue

            shape, feed_srid = to_geometry(feed.geom, settings.DEFAULT_SRID)
            if srid is None:
                srid = feed_srid
            elif feed_srid != srid:
                if not self.reproject_mixed_srid:
                    raise AmbiguousGeometry(agency.id, {srid, feed_srid})
                logger.debug(f"Reprojecting feed {feed.id} from SRID {feed_srid} to {srid}")
                shape = reproject(shape, feed_srid, srid)

            out = shape if out is None else union(out, shape)

        if out is None:
            return None

        # union results carry no SRID of their own
        return to_element(force_multipolygon(out), srid)
