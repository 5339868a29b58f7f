"""Feed endpoints"""

from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status

from transit_registry.api.deps import get_store
from transit_registry.core.exceptions import SupersessionCycle
from transit_registry.db.store import EntityStore
from transit_registry.models.feed import Feed
from transit_registry.schemas.association import FeedCloneResponse, MatchRequest, MatchResponse
from transit_registry.schemas.feed import FeedResponse
from transit_registry.services.agency_matching_service import AgencyMatchingService
from transit_registry.services.feed_lifecycle_service import FeedLifecycleService

router = APIRouter()


async def _get_feed_or_404(store: EntityStore, feed_id: int) -> Feed:
    feed = await store.get(Feed, feed_id)
    if not feed:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Feed {feed_id} not found",
        )
    return feed


@router.get("/{feed_id}", response_model=FeedResponse)
async def get_feed(
    feed_id: int,
    store: EntityStore = Depends(get_store),
) -> FeedResponse:
    """Get a feed's metadata and linked agencies"""
    feed = await _get_feed_or_404(store, feed_id)
    return FeedResponse.model_validate(feed)


@router.get("/{feed_id}/latest", response_model=FeedResponse)
async def get_latest_version(
    feed_id: int,
    store: EntityStore = Depends(get_store),
) -> FeedResponse:
    """Follow the supersession chain to the most recent version of a feed"""
    feed = await _get_feed_or_404(store, feed_id)
    latest = await FeedLifecycleService(store).latest_version(feed)
    return FeedResponse.model_validate(latest)


@router.post("/{feed_id}/match", response_model=MatchResponse)
async def match_feed(
    feed_id: int,
    match_in: Optional[MatchRequest] = None,
    store: EntityStore = Depends(get_store),
) -> MatchResponse:
    """
    Link the feed to every agency sharing its canonical URL host.

    Finding no agency is not an error: the feed is flagged for review and
    the response status is no_match_found, unless create_missing is set.
    """
    feed = await _get_feed_or_404(store, feed_id)
    service = AgencyMatchingService(store)

    if match_in and match_in.create_missing:
        result = await service.match_or_create(feed)
    else:
        result = await service.match(feed)

    return MatchResponse(
        feed_id=feed.id,
        status=result.status,
        agency_ids=sorted(agency.id for agency in result.agencies),
    )


@router.post("/{feed_id}/clone", response_model=FeedCloneResponse, status_code=status.HTTP_201_CREATED)
async def clone_feed(
    feed_id: int,
    store: EntityStore = Depends(get_store),
) -> FeedCloneResponse:
    """Clone a feed and link the clone to the same agencies"""
    feed = await _get_feed_or_404(store, feed_id)
    clone = await FeedLifecycleService(store).clone(feed)
    return FeedCloneResponse(source_feed_id=feed.id, feed=FeedResponse.model_validate(clone))


@router.put("/{feed_id}/superseded-by/{replacement_id}", response_model=FeedResponse)
async def supersede_feed(
    feed_id: int,
    replacement_id: int,
    store: EntityStore = Depends(get_store),
) -> FeedResponse:
    """Record that another feed replaces this one"""
    feed = await _get_feed_or_404(store, feed_id)
    replacement = await _get_feed_or_404(store, replacement_id)

    try:
        feed = await FeedLifecycleService(store).supersede(feed, replacement)
    except SupersessionCycle as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    return FeedResponse.model_validate(feed)
