"""Shared fixtures: in-memory store, spatial index and geometry builders"""

import pytest
from geoalchemy2.shape import from_shape
from shapely.geometry import MultiPolygon, box

from transit_registry.db.memory_store import MemorySpatialIndex, MemoryStore
from transit_registry.models.agency import Agency
from transit_registry.models.feed import Feed, FeedParseStatus
from transit_registry.models.region import Region


def square(x: float, y: float, size: float = 1.0, srid: int = 4326):
    """Axis-aligned square multipolygon with its lower-left corner at (x, y)"""
    return from_shape(MultiPolygon([box(x, y, x + size, y + size)]), srid=srid)


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def spatial_index(store):
    return MemorySpatialIndex(store)


@pytest.fixture
def make_agency(store):
    """Create and store an agency"""

    def _make(name="Agency", url=None, **kwargs):
        agency = Agency(name=name, url=url, **kwargs)
        store.add(agency)
        return agency

    return _make


@pytest.fixture
def make_feed(store):
    """Create and store a feed, successfully parsed by default"""

    def _make(agency_name="Agency", agency_url=None, geom=None, status=FeedParseStatus.SUCCESSFUL, **kwargs):
        feed = Feed(agency_name=agency_name, agency_url=agency_url, geom=geom, status=status, **kwargs)
        store.add(feed)
        return feed

    return _make


@pytest.fixture
def make_region(store):
    """Create and store a region"""

    def _make(geom, name=None):
        region = Region(name=name, geom=geom)
        store.add(region)
        return region

    return _make


@pytest.fixture(name="square")
def square_fixture():
    return square
