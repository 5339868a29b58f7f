"""Schemas for matching, cloning and region assignment results"""

from typing import List
from pydantic import BaseModel, Field

from transit_registry.schemas.feed import FeedResponse
from transit_registry.schemas.region import RegionResponse
from transit_registry.services.agency_matching_service import MatchStatus


# ============================================================================
# Feed matching
# ============================================================================

class MatchRequest(BaseModel):
    """Request schema for matching a feed to agencies"""

    create_missing: bool = Field(
        default=False,
        description="Create an agency from the feed's own details when nothing matches",
    )


class MatchResponse(BaseModel):
    """Outcome of matching a feed"""

    feed_id: int = Field(..., description="Feed ID")
    status: MatchStatus = Field(..., description="matched, no_match_found or created")
    agency_ids: List[int] = Field(default_factory=list, description="Agencies the feed is linked to")


# ============================================================================
# Region assignment
# ============================================================================

class RegionAssignmentResponse(BaseModel):
    """Regions an agency was added to without merging"""

    agency_id: int = Field(..., description="Agency ID")
    regions: List[RegionResponse] = Field(default_factory=list, description="Regions near the agency")


class RegionMergeResponse(BaseModel):
    """Outcome of merging the regions near an agency"""

    agency_id: int = Field(..., description="Agency ID")
    region: RegionResponse = Field(..., description="Surviving region")
    absorbed_region_ids: List[int] = Field(
        default_factory=list, description="Regions merged into the survivor and deleted"
    )


# ============================================================================
# Feed lifecycle
# ============================================================================

class FeedCloneResponse(BaseModel):
    """A freshly cloned feed"""

    source_feed_id: int = Field(..., description="Feed that was cloned")
    feed: FeedResponse = Field(..., description="The clone")
