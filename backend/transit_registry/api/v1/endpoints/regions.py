"""Region endpoints"""

from fastapi import APIRouter, Depends, HTTPException, status

from transit_registry.api.deps import get_store
from transit_registry.db.store import EntityStore
from transit_registry.models.region import Region
from transit_registry.schemas.region import RegionResponse

router = APIRouter()


@router.get("/{region_id}", response_model=RegionResponse)
async def get_region(
    region_id: int,
    store: EntityStore = Depends(get_store),
) -> RegionResponse:
    """Get a region's boundary and member agencies"""
    region = await store.get(Region, region_id)
    if not region:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Region {region_id} not found",
        )
    return RegionResponse.model_validate(region)
