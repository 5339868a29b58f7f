import asyncio

import pytest

from transit_registry.core.exceptions import UnsavedEntityError
from transit_registry.models.agency import Agency
from transit_registry.models.feed import Feed
from transit_registry.services.relation_manager import RelationManager


@pytest.mark.asyncio
async def test_link_feed_is_visible_from_both_sides(store, make_agency, make_feed):
    """Linking shows up on the agency and on the feed."""
    agency = make_agency()
    feed = make_feed()

    assert await RelationManager(store).link_feed(agency, feed) is True
    assert agency.feeds == {feed}
    assert feed.agencies == {agency}


@pytest.mark.asyncio
async def test_linking_twice_reports_no_change(store, make_agency, make_feed):
    """A second link of the same feed is a no-op."""
    agency = make_agency()
    feed = make_feed()
    relations = RelationManager(store)

    await relations.link_feed(agency, feed)
    assert await relations.link_feed(agency, feed) is False
    assert len(agency.feeds) == 1


@pytest.mark.asyncio
async def test_concurrent_links_on_one_agency_are_all_kept(store, make_agency, make_feed):
    """Concurrent links to one agency are not lost."""
    agency = make_agency()
    feeds = [make_feed(f"Feed {i}") for i in range(10)]
    relations = RelationManager(store)

    results = await asyncio.gather(*(relations.link_feed(agency, feed) for feed in feeds))

    assert all(results)
    assert agency.feeds == set(feeds)


@pytest.mark.asyncio
async def test_unsaved_entities_cannot_be_linked(store, make_agency, make_feed):
    """Unsaved agencies and feeds cannot be linked."""
    relations = RelationManager(store)

    with pytest.raises(UnsavedEntityError):
        await relations.link_feed(make_agency(), Feed(agency_name="Unsaved"))
    with pytest.raises(UnsavedEntityError):
        await relations.link_feed(Agency(name="Unsaved"), make_feed())
