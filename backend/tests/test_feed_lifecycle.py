from datetime import date

import pytest

from transit_registry.core.exceptions import SupersessionCycle, UnsavedEntityError
from transit_registry.models.agency import ReviewType
from transit_registry.models.feed import DESCRIPTIVE_FIELDS, DefaultBikesAllowed, Feed, FeedParseStatus
from transit_registry.services.feed_lifecycle_service import FeedLifecycleService


@pytest.fixture
def service(store):
    return FeedLifecycleService(store)


@pytest.fixture
def detailed_feed(make_feed, square):
    return make_feed(
        "City Transit",
        "http://transit.city.gov",
        geom=square(0, 0),
        area_description="Greater City",
        country="US",
        state="CA",
        timezone="America/Los_Angeles",
        review=ReviewType.NO_AGENCY,
        realtime_urls=["http://transit.city.gov/rt/trips", "http://transit.city.gov/rt/alerts"],
        official=True,
        default_bikes_allowed=DefaultBikesAllowed.ALLOW,
        trips=1200,
        trips_per_calendar=400,
        stops=350,
        start_date=date(2026, 1, 1),
        expiration_date=date(2026, 12, 31),
        note="check realtime urls",
    )


def test_copy_carries_every_descriptive_field(detailed_feed):
    """A copy repeats every descriptive field."""
    copy = detailed_feed.copy()

    for field in DESCRIPTIVE_FIELDS:
        assert getattr(copy, field) == getattr(detailed_feed, field), field
    assert copy.realtime_urls == detailed_feed.realtime_urls
    assert copy.status == FeedParseStatus.SUCCESSFUL


def test_copy_has_no_identity_or_links(store, make_agency, detailed_feed):
    """A copy is unsaved and unlinked."""
    make_agency().feeds.add(detailed_feed)

    copy = detailed_feed.copy()

    assert copy.id is None
    assert copy.agencies == set()
    assert store.count(Feed) == 1


def test_copy_realtime_urls_are_independent(detailed_feed):
    """Changing the copy's realtime urls leaves the source alone."""
    copy = detailed_feed.copy()

    copy.realtime_urls.append("http://transit.city.gov/rt/vehicles")

    assert len(detailed_feed.realtime_urls) == 2
    assert len(copy.realtime_urls) == 3


@pytest.mark.asyncio
async def test_clone_is_saved_and_linked_to_source_agencies(store, service, make_agency, detailed_feed):
    """A clone is saved and linked to the source's agencies."""
    first, second = make_agency("Bus"), make_agency("Rail")
    first.feeds.add(detailed_feed)
    second.feeds.add(detailed_feed)
    make_agency("Unrelated")

    clone = await service.clone(detailed_feed)

    assert clone.id is not None
    assert clone.id != detailed_feed.id
    assert await store.get(Feed, clone.id) is clone
    assert clone.agencies == {first, second}
    assert first.feeds == {detailed_feed, clone}
    assert clone.agency_name == detailed_feed.agency_name


@pytest.mark.asyncio
async def test_clone_of_unlinked_feed(store, service, detailed_feed):
    """Cloning an unlinked feed links nothing."""
    clone = await service.clone(detailed_feed)

    assert clone.agencies == set()
    assert store.count(Feed) == 2


@pytest.mark.asyncio
async def test_supersede_and_follow_chain(service, make_feed):
    """Supersession chains lead to the latest version."""
    old, middle, newest = make_feed("v1"), make_feed("v2"), make_feed("v3")

    await service.supersede(old, middle)
    await service.supersede(middle, newest)

    assert old.superseded_by_id == middle.id
    assert await service.latest_version(old) is newest
    assert await service.latest_version(newest) is newest


@pytest.mark.asyncio
async def test_self_supersession_is_rejected(service, make_feed):
    """A feed cannot supersede itself."""
    feed = make_feed()

    with pytest.raises(SupersessionCycle):
        await service.supersede(feed, feed)
    assert feed.superseded_by_id is None


@pytest.mark.asyncio
async def test_supersession_cycle_is_rejected(service, make_feed):
    """Closing a supersession loop is refused."""
    a, b, c = make_feed("a"), make_feed("b"), make_feed("c")
    await service.supersede(a, b)
    await service.supersede(b, c)

    with pytest.raises(SupersessionCycle) as exc_info:
        await service.supersede(c, a)

    assert exc_info.value.feed_id == c.id
    assert exc_info.value.replacement_id == a.id
    assert c.superseded_by_id is None


@pytest.mark.asyncio
async def test_supersede_requires_saved_feeds(service, make_feed):
    """Unsaved feeds cannot take part in supersession."""
    with pytest.raises(UnsavedEntityError):
        await service.supersede(make_feed(), Feed(agency_name="Unsaved"))


def test_enabled_agencies_skips_disabled_and_orders_by_id(make_agency, make_feed):
    """Only agencies that are not disabled are listed, lowest id first."""
    feed = make_feed("City Transit")
    rail = make_agency("Rail")
    make_agency("Retired", disabled=True).feeds.add(feed)
    bus = make_agency("Bus")
    bus.feeds.add(feed)
    rail.feeds.add(feed)

    assert feed.enabled_agencies == [rail, bus]


def test_feed_str_names_its_publisher(make_feed):
    """A feed reads as the GTFS of the agency it reports."""
    assert str(make_feed("City Transit")) == "GTFS for City Transit"
