"""
Feed metadata schemas
"""

from typing import Any, List, Optional
from datetime import date, datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator

from transit_registry.models.agency import ReviewType
from transit_registry.models.feed import DefaultBikesAllowed, FeedParseStatus
from transit_registry.utils.geometry import to_wkt


class FeedResponse(BaseModel):
    """Schema for feed response"""
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    agency_name: str = Field(..., description="Publisher name as reported by the feed")
    agency_url: Optional[str] = Field(None, description="Publisher URL as reported by the feed")
    area_description: Optional[str] = None
    country: Optional[str] = None
    state: Optional[str] = None
    catalog_id: Optional[str] = None
    catalog_url: Optional[str] = None
    timezone: Optional[str] = None
    date_added: Optional[datetime] = None
    date_updated: Optional[datetime] = None
    disabled: bool = False
    review: Optional[ReviewType] = None
    feed_base_url: Optional[str] = None
    download_url: Optional[str] = None
    realtime_urls: List[str] = Field(default_factory=list, description="GTFS-RT feed URLs")
    license_url: Optional[str] = None
    official: bool = False
    default_bikes_allowed: DefaultBikesAllowed = DefaultBikesAllowed.WARN
    status: Optional[FeedParseStatus] = Field(None, description="Parse status, null until attempted")
    trips: int = 0
    trips_per_calendar: int = 0
    stops: Optional[int] = None
    start_date: Optional[date] = None
    expiration_date: Optional[date] = None
    srid: Optional[int] = Field(None, description="SRID of the service area geometry")
    geom: Optional[str] = Field(None, description="Service area as WKT")
    superseded_by_id: Optional[int] = Field(None, description="Feed that replaces this one")
    stored_id: Optional[str] = None
    note: Optional[str] = None

    agency_ids: List[int] = Field(default_factory=list, validation_alias="agencies", description="Linked agency IDs")
    enabled_agency_ids: List[int] = Field(
        default_factory=list, validation_alias="enabled_agencies", description="Linked agency IDs that are not disabled"
    )

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("geom", mode="before")
    @classmethod
    def geometry_to_wkt(cls, v: Any) -> Optional[str]:
        """Render stored geometries as WKT"""
        if v is None or isinstance(v, str):
            return v
        return to_wkt(v)

    @field_validator("agency_ids", "enabled_agency_ids", mode="before")
    @classmethod
    def collect_ids(cls, v: Any) -> List[int]:
        """Reduce linked agencies to their sorted IDs"""
        return sorted(item if isinstance(item, int) else item.id for item in v or [])
