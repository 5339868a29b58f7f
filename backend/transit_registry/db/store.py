"""
Entity store abstraction.

The association engine never talks to the database directly; it goes through
this narrow find/save/delete interface, implemented here on top of an
AsyncSession and in memory_store.py for tests and tooling.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, List, Optional, Protocol, Type, TypeVar, runtime_checkable
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from transit_registry.db.base_class import Base

E = TypeVar("E", bound=Base)


@runtime_checkable
class EntityStore(Protocol):
    """Persistence capability used by the association engine.

    Implementations handle:
    - identity assignment on first save
    - row locking for relation updates
    - atomicity of multi-step operations via transaction()
    """

    async def get(self, kind: Type[E], entity_id: int) -> Optional[E]:
        """Fetch an entity by primary key, None if it does not exist"""
        ...

    async def find(self, kind: Type[E], **criteria: Any) -> List[E]:
        """Fetch all entities whose columns equal the given values, ordered by id"""
        ...

    async def save(self, entity: Base) -> None:
        """Persist an entity, assigning its id if it has none yet"""
        ...

    async def delete(self, entity: Base) -> None:
        """Delete an entity together with its relation rows"""
        ...

    async def lock(self, entity: Base) -> None:
        """Take a write lock on the entity's row for the rest of the transaction"""
        ...

    def transaction(self):
        """Async context manager; everything inside commits or rolls back together"""
        ...


class SqlAlchemyStore:
    """Entity store backed by an AsyncSession (PostgreSQL/PostGIS in production)"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, kind: Type[E], entity_id: int) -> Optional[E]:
        return await self.db.get(kind, entity_id)

    async def find(self, kind: Type[E], **criteria: Any) -> List[E]:
        result = await self.db.execute(
            select(kind).filter_by(**criteria).order_by(kind.id)
        )
        return list(result.scalars().all())

    async def save(self, entity: Base) -> None:
        self.db.add(entity)
        await self.db.flush()  # Flush to get the ID without committing

    async def delete(self, entity: Base) -> None:
        await self.db.delete(entity)
        await self.db.flush()

    async def lock(self, entity: Base) -> None:
        if entity.id is None:
            return
        kind = type(entity)
        await self.db.execute(
            select(kind.id).where(kind.id == entity.id).with_for_update()
        )

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        # Savepoint, so the surrounding request transaction stays usable after a rollback
        async with self.db.begin_nested():
            yield
