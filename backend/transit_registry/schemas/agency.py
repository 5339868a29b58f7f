"""Agency schemas for API responses"""

from typing import Any, List, Optional
from datetime import datetime
from pydantic import BaseModel, Field, field_validator

from transit_registry.models.agency import AgencySource, ReviewType


class AgencyResponse(BaseModel):
    """Schema for agency response"""

    id: int
    name: str = Field(..., description="Agency name")
    url: Optional[str] = Field(None, description="Agency's primary location on the web")
    canonical_host: Optional[str] = Field(None, description="Canonicalized url used for feed matching")
    external_id: Optional[str] = Field(None, description="Registry identifier")
    uza_names: List[str] = Field(default_factory=list, description="Urbanized area names")
    population: int = 0
    ridership: int = Field(default=0, description="Annual unlinked passenger trips")
    passenger_miles: int = 0
    source: AgencySource
    review: Optional[ReviewType] = Field(None, description="Problem flagged for human review")
    google_gtfs: bool = False
    note: Optional[str] = None
    disabled: bool = False

    feed_ids: List[int] = Field(default_factory=list, validation_alias="feeds", description="Linked feed IDs")
    region_ids: List[int] = Field(default_factory=list, validation_alias="regions", description="Member region IDs")

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("feed_ids", "region_ids", mode="before")
    @classmethod
    def collect_ids(cls, v: Any) -> List[int]:
        """Reduce related entities to their sorted IDs"""
        return sorted(item if isinstance(item, int) else item.id for item in v or [])

    class Config:
        from_attributes = True
        populate_by_name = True


class AgencyGeometryResponse(BaseModel):
    """Derived service area of an agency"""

    agency_id: int = Field(..., description="Agency ID")
    srid: Optional[int] = Field(None, description="SRID of the geometry, null when there is none")
    geometry: Optional[str] = Field(
        None, description="Union of the agency's successfully parsed feeds, as WKT"
    )
