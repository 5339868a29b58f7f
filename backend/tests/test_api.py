import pytest
from fastapi.testclient import TestClient

from transit_registry.api.deps import get_spatial_index, get_store
from transit_registry.core.config import settings
from transit_registry.core.exceptions import UnsavedEntityError
from transit_registry.main import app
from transit_registry.models.agency import ReviewType
from transit_registry.models.feed import FeedParseStatus
from transit_registry.models.region import Region
from transit_registry.services.feed_lifecycle_service import FeedLifecycleService


@pytest.fixture
def client(store, spatial_index):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_spatial_index] = lambda: spatial_index
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def linked_agency(make_agency, make_feed, square):
    agency = make_agency("City Transit", "https://transit.city.gov")
    agency.feeds.add(make_feed("City Transit", "http://transit.city.gov", geom=square(0.9, 0.2, 0.2)))
    return agency


def test_health_check(client):
    """Test the health endpoint."""
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_get_agency(client, linked_agency):
    """Test agency retrieval with linked feeds."""
    response = client.get(f"/api/v1/agencies/{linked_agency.id}")

    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "City Transit"
    assert data["canonical_host"] == "transit.city.gov"
    assert data["source"] == "imported_registry"
    assert data["feed_ids"] == [feed.id for feed in linked_agency.feeds]
    assert data["region_ids"] == []


def test_unknown_ids_return_404(client):
    """Test that unknown ids return 404."""
    assert client.get("/api/v1/agencies/999").status_code == 404
    assert client.get("/api/v1/feeds/999").status_code == 404
    assert client.get("/api/v1/regions/999").status_code == 404
    assert client.post("/api/v1/feeds/999/match").status_code == 404
    assert client.post("/api/v1/agencies/999/regions/merge").status_code == 404


def test_get_agency_geometry(client, linked_agency):
    """Test the agency service area as WKT."""
    response = client.get(f"/api/v1/agencies/{linked_agency.id}/geometry")

    assert response.status_code == 200
    data = response.json()
    assert data["agency_id"] == linked_agency.id
    assert data["srid"] == 4326
    assert data["geometry"].startswith("MULTIPOLYGON")


def test_agency_geometry_is_null_without_parsed_feeds(client, make_agency, make_feed, square):
    """Test that agencies without parsed feeds have no geometry."""
    agency = make_agency()
    agency.feeds.add(make_feed(geom=square(0, 0), status=FeedParseStatus.FAILED))

    data = client.get(f"/api/v1/agencies/{agency.id}/geometry").json()

    assert data["geometry"] is None
    assert data["srid"] is None


def test_agency_geometry_with_mixed_srids_returns_422(client, make_agency, make_feed, square):
    """Test that mixed SRIDs are reported as 422."""
    agency = make_agency()
    agency.feeds.update({make_feed(geom=square(0, 0)), make_feed(geom=square(0, 0, 1000, srid=3857))})

    response = client.get(f"/api/v1/agencies/{agency.id}/geometry")

    assert response.status_code == 422
    assert "mixed SRIDs" in response.json()["detail"]


def test_split_endpoint(client, store, linked_agency, make_region, square):
    """Test region split through the API."""
    west = make_region(square(0, 0))
    east = make_region(square(1.02, 0))

    response = client.post(f"/api/v1/agencies/{linked_agency.id}/regions/split")

    assert response.status_code == 200
    data = response.json()
    assert [region["id"] for region in data["regions"]] == [west.id, east.id]
    assert all(region["agency_ids"] == [linked_agency.id] for region in data["regions"])
    assert store.count(Region) == 2
    assert linked_agency.review == ReviewType.AGENCY_MULTIPLE_AREAS


def test_merge_endpoint(client, store, linked_agency, make_region, square):
    """Test region merge through the API."""
    west = make_region(square(0, 0))
    east = make_region(square(1.02, 0))

    response = client.post(f"/api/v1/agencies/{linked_agency.id}/regions/merge")

    assert response.status_code == 200
    data = response.json()
    assert data["region"]["id"] == west.id
    assert data["region"]["agency_ids"] == [linked_agency.id]
    assert data["absorbed_region_ids"] == [east.id]
    assert store.count(Region) == 1


def test_merge_endpoint_without_region_returns_404(client, linked_agency, make_region, square):
    """Test that merging with no nearby region returns 404."""
    make_region(square(40, 40))

    response = client.post(f"/api/v1/agencies/{linked_agency.id}/regions/merge")

    assert response.status_code == 404
    assert "No region found" in response.json()["detail"]


def test_get_feed(client, linked_agency):
    """Test feed retrieval."""
    [feed] = linked_agency.feeds

    response = client.get(f"/api/v1/feeds/{feed.id}")

    assert response.status_code == 200
    data = response.json()
    assert data["agency_ids"] == [linked_agency.id]
    assert data["status"] == "successful"
    assert data["srid"] == 4326
    assert data["geom"].startswith("MULTIPOLYGON")


def test_match_endpoint(client, make_agency, make_feed):
    """Test matching a feed to its agency."""
    agency = make_agency("Foo Transit", "https://foo.org")
    feed = make_feed("Foo", "http://www.foo.org/gtfs")

    response = client.post(f"/api/v1/feeds/{feed.id}/match")

    assert response.status_code == 200
    assert response.json() == {"feed_id": feed.id, "status": "matched", "agency_ids": [agency.id]}


def test_match_endpoint_without_match(client, make_feed):
    """Test that an unmatched feed is flagged, not rejected."""
    feed = make_feed("Foo", "http://www.foo.org/gtfs")

    response = client.post(f"/api/v1/feeds/{feed.id}/match")

    assert response.status_code == 200
    assert response.json()["status"] == "no_match_found"
    assert feed.review == ReviewType.NO_AGENCY


def test_match_endpoint_can_create_agency(client, make_feed):
    """Test agency creation for an unmatched feed."""
    feed = make_feed("Foo", "http://www.foo.org/gtfs")

    response = client.post(f"/api/v1/feeds/{feed.id}/match", json={"create_missing": True})

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "created"
    assert data["agency_ids"] == [agency.id for agency in feed.agencies]


def test_clone_endpoint(client, linked_agency):
    """Test feed cloning through the API."""
    [feed] = linked_agency.feeds

    response = client.post(f"/api/v1/feeds/{feed.id}/clone")

    assert response.status_code == 201
    data = response.json()
    assert data["source_feed_id"] == feed.id
    assert data["feed"]["id"] != feed.id
    assert data["feed"]["agency_ids"] == [linked_agency.id]
    assert len(linked_agency.feeds) == 2


def test_supersede_endpoints(client, make_feed):
    """Test supersession, latest version and cycle rejection."""
    old, new = make_feed("v1"), make_feed("v2")

    response = client.put(f"/api/v1/feeds/{old.id}/superseded-by/{new.id}")
    assert response.status_code == 200
    assert response.json()["superseded_by_id"] == new.id

    response = client.get(f"/api/v1/feeds/{old.id}/latest")
    assert response.json()["id"] == new.id

    response = client.put(f"/api/v1/feeds/{new.id}/superseded-by/{old.id}")
    assert response.status_code == 409
    assert new.superseded_by_id is None

    assert client.put(f"/api/v1/feeds/{old.id}/superseded-by/999").status_code == 404


def test_get_region(client, linked_agency, make_region, square):
    """Test region retrieval."""
    region = make_region(square(0, 0), name="Metro")
    region.agencies.add(linked_agency)

    response = client.get(f"/api/v1/regions/{region.id}")

    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Metro"
    assert data["agency_ids"] == [linked_agency.id]
    assert data["geom"].startswith("MULTIPOLYGON")


def test_get_feed_lists_enabled_agencies(client, linked_agency, make_agency):
    """Disabled agencies are linked but not listed as enabled."""
    [feed] = linked_agency.feeds
    retired = make_agency("Retired", disabled=True)
    retired.feeds.add(feed)

    data = client.get(f"/api/v1/feeds/{feed.id}").json()

    assert data["agency_ids"] == [linked_agency.id, retired.id]
    assert data["enabled_agency_ids"] == [linked_agency.id]


def test_unmapped_registry_errors_become_client_errors(client, make_feed, monkeypatch):
    """Registry errors an endpoint does not map are still reported with their message."""
    feed = make_feed()

    async def refuse(self, feed):
        raise UnsavedEntityError("Feed must be saved before it can be linked")

    monkeypatch.setattr(FeedLifecycleService, "clone", refuse)

    response = client.post(f"/api/v1/feeds/{feed.id}/clone")

    assert response.status_code == 409
    assert response.json()["detail"] == "Feed must be saved before it can be linked"


def test_health_check_reports_environment(client):
    """Test that the health endpoint names the environment."""
    assert client.get("/api/health").json()["environment"] == settings.ENVIRONMENT
