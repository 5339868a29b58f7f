"""Metro region models"""

from typing import Set, TYPE_CHECKING
from sqlalchemy import String, Integer, Table, Column, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from geoalchemy2 import Geometry
from geoalchemy2.elements import WKBElement

from transit_registry.core.config import settings
from transit_registry.db.base_class import Base, TimestampMixin
from transit_registry.utils.geometry import (
    convex_hull_merge,
    element_srid,
    force_multipolygon,
    reproject,
    to_element,
    to_geometry,
)

if TYPE_CHECKING:
    from transit_registry.models.agency import Agency


# Association table for region membership
region_agencies = Table(
    "region_agencies",
    Base.metadata,
    Column("region_id", Integer, ForeignKey("regions.id", ondelete="CASCADE"), primary_key=True),
    Column("agency_id", Integer, ForeignKey("agencies.id", ondelete="CASCADE"), primary_key=True),
)


class Region(Base, TimestampMixin):
    """Region model - a metro area boundary used to group agencies"""

    __tablename__ = "regions"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    geom: Mapped[WKBElement | None] = mapped_column(
        Geometry("MULTIPOLYGON"), nullable=True, comment="Metro boundary; SRID stored per row"
    )

    # Relationships
    agencies: Mapped[Set["Agency"]] = relationship(
        "Agency", secondary=region_agencies, back_populates="regions", lazy="selectin"
    )

    @property
    def srid(self) -> int | None:
        """SRID of the stored geometry, if any"""
        return element_srid(self.geom) if self.geom is not None else None

    def merge(self, other: "Region") -> None:
        """
        Absorb another region's boundary and members into this one.

        The boundary becomes the convex hull of both boundaries, expressed in
        this region's SRID. Members of the other region are added here; the
        other region itself is left untouched and is the caller's to delete.
        """
        if other.geom is not None:
            other_shape, other_srid = to_geometry(other.geom, settings.DEFAULT_SRID)
            if self.geom is None:
                self.geom = to_element(force_multipolygon(other_shape), other_srid)
            else:
                shape, srid = to_geometry(self.geom, settings.DEFAULT_SRID)
                merged = convex_hull_merge(shape, reproject(other_shape, other_srid, srid))
                self.geom = to_element(merged, srid)

        for agency in list(other.agencies):
            self.agencies.add(agency)

        if not self.name:
            self.name = other.name

    def __str__(self) -> str:
        return self.name or f"Region {self.id}"

    def __repr__(self) -> str:
        return f"<Region {self.id} {self.name}>"
