"""FastAPI application entry point"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from transit_registry.core.config import settings
from transit_registry.core.exceptions import RegistryError, UnsavedEntityError
from transit_registry.api.v1.api import api_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        f"Starting registry ({settings.ENVIRONMENT}): proximity threshold "
        f"{settings.REGION_PROXIMITY_THRESHOLD}, default SRID {settings.DEFAULT_SRID}, "
        f"reproject mixed SRIDs: {settings.REPROJECT_MIXED_SRID}"
    )
    yield


app = FastAPI(
    title="Transit Registry API",
    description=(
        "Links GTFS feeds to the agencies that publish them, derives agency service "
        "areas and groups agencies into metro regions"
    ),
    version="0.1.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan,
)

# CORS configuration from settings
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RegistryError)
async def registry_error_handler(request: Request, exc: RegistryError) -> JSONResponse:
    """Errors the endpoints do not map themselves"""
    if isinstance(exc, UnsavedEntityError):
        code = status.HTTP_409_CONFLICT
    else:
        code = status.HTTP_400_BAD_REQUEST
    logger.warning(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=code, content={"detail": str(exc)})


# Include API v1 router
app.include_router(api_router, prefix="/api/v1")


@app.get("/api/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint"""
    return {"status": "healthy", "environment": settings.ENVIRONMENT, "version": "0.1.0"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint"""
    return {"message": "Transit Registry API - Visit /api/docs for documentation"}
