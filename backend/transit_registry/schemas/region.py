"""Region schemas"""

from typing import Any, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from transit_registry.utils.geometry import to_wkt


class RegionResponse(BaseModel):
    """Schema for region response"""
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    name: Optional[str] = None
    srid: Optional[int] = Field(None, description="SRID of the boundary")
    geom: Optional[str] = Field(None, description="Metro boundary as WKT")
    agency_ids: List[int] = Field(default_factory=list, validation_alias="agencies", description="Member agency IDs")

    @field_validator("geom", mode="before")
    @classmethod
    def geometry_to_wkt(cls, v: Any) -> Optional[str]:
        """Render stored geometries as WKT"""
        if v is None or isinstance(v, str):
            return v
        return to_wkt(v)

    @field_validator("agency_ids", mode="before")
    @classmethod
    def collect_ids(cls, v: Any) -> List[int]:
        """Reduce member agencies to their sorted IDs"""
        return sorted(item if isinstance(item, int) else item.id for item in v or [])
