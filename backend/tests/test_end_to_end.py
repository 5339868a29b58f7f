"""A feed is matched to its agency, the agency gains a geometry, and a region gains the agency"""

import pytest
from geoalchemy2.shape import to_shape

from transit_registry.models.region import Region
from transit_registry.services.agency_geometry_service import AgencyGeometryService
from transit_registry.services.agency_matching_service import AgencyMatchingService, MatchStatus
from transit_registry.services.region_assignment_service import RegionAssignmentService


@pytest.mark.asyncio
async def test_feed_to_region_flow(store, spatial_index, make_agency, make_feed, make_region, square):
    """A matched feed gives its agency a geometry and a region membership."""
    g1 = square(-122.5, 37.5, 0.3)
    feed = make_feed("City Transit", "http://transit.city.gov/info", geom=g1)
    agency = make_agency("City Transit", "https://www.transit.city.gov")
    region = make_region(square(-122.6, 37.4, 0.5), name="Bay Area")
    make_region(square(-118.5, 33.8, 0.5), name="Los Angeles")
    region_before = bytes(region.geom.data)

    match = await AgencyMatchingService(store).match(feed)
    assert match.status == MatchStatus.MATCHED
    assert match.agencies == [agency]

    geometry = AgencyGeometryService().derive_geometry(agency)
    assert to_shape(geometry).equals(to_shape(g1))

    regions = await RegionAssignmentService(store, spatial_index).assign_to_overlapping_regions(agency)

    assert regions == [region]
    assert region.agencies == {agency}
    assert bytes(region.geom.data) == region_before
    assert store.count(Region) == 2
    assert agency.review is None
