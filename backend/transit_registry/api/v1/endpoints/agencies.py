"""Agency endpoints"""

import logging
from fastapi import APIRouter, Depends, HTTPException, status

from transit_registry.api.deps import get_spatial_index, get_store
from transit_registry.core.exceptions import AmbiguousGeometry, NoRegionFound
from transit_registry.db.spatial_index import SpatialIndex
from transit_registry.db.store import EntityStore
from transit_registry.models.agency import Agency
from transit_registry.schemas.agency import AgencyGeometryResponse, AgencyResponse
from transit_registry.schemas.association import RegionAssignmentResponse, RegionMergeResponse
from transit_registry.schemas.region import RegionResponse
from transit_registry.services.agency_geometry_service import AgencyGeometryService
from transit_registry.services.region_assignment_service import RegionAssignmentService
from transit_registry.utils.geometry import element_srid, to_wkt

logger = logging.getLogger(__name__)

router = APIRouter()


async def _get_agency_or_404(store: EntityStore, agency_id: int) -> Agency:
    agency = await store.get(Agency, agency_id)
    if not agency:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Agency {agency_id} not found",
        )
    return agency


def _ambiguous_geometry(e: AmbiguousGeometry) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail=str(e),
    )


@router.get("/{agency_id}", response_model=AgencyResponse)
async def get_agency(
    agency_id: int,
    store: EntityStore = Depends(get_store),
) -> AgencyResponse:
    """Get an agency with its linked feeds and regions"""
    agency = await _get_agency_or_404(store, agency_id)
    return AgencyResponse.model_validate(agency)


@router.get("/{agency_id}/geometry", response_model=AgencyGeometryResponse)
async def get_agency_geometry(
    agency_id: int,
    store: EntityStore = Depends(get_store),
) -> AgencyGeometryResponse:
    """
    Get the agency's service area.

    The service area is the union of its successfully parsed feeds; it is
    null when no such feed exists.
    """
    agency = await _get_agency_or_404(store, agency_id)
    try:
        geometry = AgencyGeometryService().derive_geometry(agency)
    except AmbiguousGeometry as e:
        raise _ambiguous_geometry(e)

    return AgencyGeometryResponse(
        agency_id=agency.id,
        srid=element_srid(geometry) if geometry is not None else None,
        geometry=to_wkt(geometry),
    )


@router.post("/{agency_id}/regions/split", response_model=RegionAssignmentResponse)
async def split_into_regions(
    agency_id: int,
    store: EntityStore = Depends(get_store),
    spatial_index: SpatialIndex = Depends(get_spatial_index),
) -> RegionAssignmentResponse:
    """
    Add the agency to every region near it.

    No region is modified other than gaining the agency as a member.
    """
    agency = await _get_agency_or_404(store, agency_id)
    service = RegionAssignmentService(store, spatial_index)
    try:
        regions = await service.assign_to_overlapping_regions(agency)
    except AmbiguousGeometry as e:
        raise _ambiguous_geometry(e)

    return RegionAssignmentResponse(
        agency_id=agency.id,
        regions=[RegionResponse.model_validate(region) for region in regions],
    )


@router.post("/{agency_id}/regions/merge", response_model=RegionMergeResponse)
async def merge_regions(
    agency_id: int,
    store: EntityStore = Depends(get_store),
    spatial_index: SpatialIndex = Depends(get_spatial_index),
) -> RegionMergeResponse:
    """
    Merge every region near the agency into one and add the agency to it.

    This is destructive: absorbed regions are deleted.
    """
    agency = await _get_agency_or_404(store, agency_id)
    service = RegionAssignmentService(store, spatial_index)
    try:
        result = await service.merge_overlapping_regions(agency)
    except NoRegionFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except AmbiguousGeometry as e:
        raise _ambiguous_geometry(e)

    logger.info(f"Merged regions {result.absorbed_region_ids} into {result.base.id} via API")
    return RegionMergeResponse(
        agency_id=agency.id,
        region=RegionResponse.model_validate(result.base),
        absorbed_region_ids=result.absorbed_region_ids,
    )
