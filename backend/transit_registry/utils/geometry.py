"""
Geometry helpers shared by the association engine

Stored geometries are GeoAlchemy2 elements carrying their SRID; computations
happen on shapely geometries. Everything here is pure and does not touch the
database.
"""

from functools import lru_cache
from typing import Tuple

from geoalchemy2.elements import WKBElement
from geoalchemy2.shape import from_shape, to_shape
from pyproj import Transformer
from shapely.geometry import GeometryCollection, MultiPolygon, Polygon
from shapely.geometry.base import BaseGeometry
from shapely.ops import transform


def element_srid(element: WKBElement) -> int | None:
    """SRID of a stored geometry, or None when it carries none (-1/0)"""
    srid = getattr(element, "srid", None)
    if srid is None or srid <= 0:
        return None
    return srid


def to_geometry(element: WKBElement, default_srid: int) -> Tuple[BaseGeometry, int]:
    """Convert a stored geometry into (shapely geometry, srid)"""
    return to_shape(element), element_srid(element) or default_srid


def to_element(geometry: BaseGeometry, srid: int) -> WKBElement:
    """Convert a shapely geometry into a WKB element tagged with srid"""
    return from_shape(geometry, srid=srid)


def force_multipolygon(geometry: BaseGeometry) -> MultiPolygon:
    """Coerce polygonal results of overlay operations back to a MultiPolygon"""
    if isinstance(geometry, MultiPolygon):
        return geometry
    if isinstance(geometry, Polygon):
        return MultiPolygon([geometry])
    if isinstance(geometry, GeometryCollection):
        polygons = []
        for part in geometry.geoms:
            if isinstance(part, Polygon):
                polygons.append(part)
            elif isinstance(part, MultiPolygon):
                polygons.extend(part.geoms)
        return MultiPolygon(polygons)
    raise ValueError(f"Cannot represent {geometry.geom_type} as a MultiPolygon")


@lru_cache(maxsize=64)
def _transformer(from_srid: int, to_srid: int) -> Transformer:
    return Transformer.from_crs(f"EPSG:{from_srid}", f"EPSG:{to_srid}", always_xy=True)


def reproject(geometry: BaseGeometry, from_srid: int, to_srid: int) -> BaseGeometry:
    """Reproject a geometry between two EPSG coordinate systems"""
    if from_srid == to_srid:
        return geometry
    return transform(_transformer(from_srid, to_srid).transform, geometry)


def within_distance(a: BaseGeometry, b: BaseGeometry, distance: float) -> bool:
    """True when the two geometries are no further apart than distance (same SRID assumed)"""
    return a.distance(b) <= distance


def union(a: BaseGeometry, b: BaseGeometry) -> BaseGeometry:
    """Overlay union of two geometries"""
    return a.union(b)


def convex_hull_merge(a: BaseGeometry, b: BaseGeometry) -> MultiPolygon:
    """Convex hull of both geometries, as a MultiPolygon"""
    return force_multipolygon(a.union(b).convex_hull)


def to_wkt(element: WKBElement | None) -> str | None:
    """Well-known text of a stored geometry, for API responses"""
    if element is None:
        return None
    return to_shape(element).wkt
