"""API v1 router"""

from fastapi import APIRouter

from transit_registry.api.v1.endpoints import agencies, feeds, regions

api_router = APIRouter()

# Include agency endpoints (geometry and region assignment)
api_router.include_router(agencies.router, prefix="/agencies", tags=["agencies"])

# Include feed endpoints (matching, cloning, supersession)
api_router.include_router(feeds.router, prefix="/feeds", tags=["feeds"])

# Include region endpoints
api_router.include_router(regions.router, prefix="/regions", tags=["regions"])
