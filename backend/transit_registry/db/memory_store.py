"""In-memory implementations of the entity store and spatial index.

Used for testing and offline tooling without a PostGIS database. Entities are
kept as live model instances, much like a session identity map.
"""

import itertools
import logging
from collections import defaultdict
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple, Type

from geoalchemy2.elements import WKBElement
from sqlalchemy import inspect

from transit_registry.core.config import settings
from transit_registry.db.base_class import Base
from transit_registry.db.store import E
from transit_registry.models.region import Region
from transit_registry.utils.geometry import reproject, to_geometry, within_distance

logger = logging.getLogger(__name__)


def _copy_value(value: Any) -> Any:
    # Collections are mutated in place by relation updates; scalars are replaced wholesale
    if isinstance(value, set):
        return set(value)
    if isinstance(value, list):
        return list(value)
    return value


class MemoryStore:
    """In-memory entity store.

    Ids are assigned per entity kind on first save. transaction() snapshots
    every stored entity and restores the snapshot if the block raises.
    """

    def __init__(self):
        self._entities: Dict[type, Dict[int, Base]] = defaultdict(dict)
        self._id_sequences: Dict[type, itertools.count] = defaultdict(lambda: itertools.count(1))

    def add(self, *entities: Base) -> None:
        """Store entities synchronously (seeding helper; save() uses it too)"""
        for entity in entities:
            kind = type(entity)
            if entity.id is None:
                entity.id = next(self._id_sequences[kind])
            self._entities[kind][entity.id] = entity

    def count(self, kind: type) -> int:
        return len(self._entities[kind])

    async def get(self, kind: Type[E], entity_id: int) -> Optional[E]:
        return self._entities[kind].get(entity_id)

    async def find(self, kind: Type[E], **criteria: Any) -> List[E]:
        matches = [
            entity
            for entity in self._entities[kind].values()
            if all(getattr(entity, key) == value for key, value in criteria.items())
        ]
        return sorted(matches, key=lambda entity: entity.id)

    async def save(self, entity: Base) -> None:
        self.add(entity)

    async def delete(self, entity: Base) -> None:
        # Mirror ON DELETE CASCADE on the association tables
        for relationship in inspect(type(entity)).relationships:
            if relationship.uselist:
                getattr(entity, relationship.key).clear()
        self._entities[type(entity)].pop(entity.id, None)

    async def lock(self, entity: Base) -> None:
        return None

    def _snapshot(self) -> Tuple[Dict[type, Dict[int, Base]], List[Tuple[Base, Dict[str, Any]]]]:
        entities = {kind: dict(by_id) for kind, by_id in self._entities.items()}
        values = []
        for by_id in entities.values():
            for entity in by_id.values():
                keys = inspect(type(entity)).attrs.keys()
                values.append((entity, {key: _copy_value(getattr(entity, key)) for key in keys}))
        return entities, values

    def _restore(self, snapshot: Tuple[Dict[type, Dict[int, Base]], List[Tuple[Base, Dict[str, Any]]]]) -> None:
        entities, values = snapshot
        self._entities = defaultdict(dict, {kind: dict(by_id) for kind, by_id in entities.items()})
        for entity, attributes in values:
            for key, value in attributes.items():
                setattr(entity, key, _copy_value(value))

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        snapshot = self._snapshot()
        try:
            yield
        except BaseException:
            logger.debug("Rolling back in-memory transaction")
            self._restore(snapshot)
            raise


class MemorySpatialIndex:
    """Region proximity computed with shapely over the regions of a MemoryStore"""

    def __init__(self, store: MemoryStore):
        self.store = store

    async def regions_near(self, geometry: WKBElement, distance: float) -> List[Region]:
        shape, srid = to_geometry(geometry, settings.DEFAULT_SRID)

        near = []
        for region in await self.store.find(Region):
            if region.geom is None:
                continue
            region_shape, region_srid = to_geometry(region.geom, settings.DEFAULT_SRID)
            if within_distance(region_shape, reproject(shape, srid, region_srid), distance):
                near.append(region)
        return near
