"""API dependencies for persistence and the association services"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from transit_registry.db.session import get_db
from transit_registry.db.spatial_index import PostGISSpatialIndex, SpatialIndex
from transit_registry.db.store import EntityStore, SqlAlchemyStore


async def get_store(db: AsyncSession = Depends(get_db)) -> EntityStore:
    """
    Dependency to get the entity store for the current request

    The store shares the request's session, so everything an endpoint does
    commits or rolls back together.
    """
    return SqlAlchemyStore(db)


async def get_spatial_index(db: AsyncSession = Depends(get_db)) -> SpatialIndex:
    """Dependency to get the PostGIS region index for the current request"""
    return PostGISSpatialIndex(db)
