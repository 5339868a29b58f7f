"""Agency registry models"""

from typing import List, Set, TYPE_CHECKING
from sqlalchemy import String, Integer, Boolean, Text, JSON, Table, Column, ForeignKey, Enum as SQLEnum
from sqlalchemy.ext.mutable import MutableList
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates
import enum

from transit_registry.db.base_class import Base, TimestampMixin
from transit_registry.utils.urls import canonicalize_url

if TYPE_CHECKING:
    from transit_registry.models.feed import Feed
    from transit_registry.models.region import Region


class AgencySource(str, enum.Enum):
    """Where the data for an agency came from"""

    IMPORTED_REGISTRY = "imported_registry"  # Bulk import from an agency registry (e.g. NTD)
    DERIVED_FROM_FEED = "derived_from_feed"  # Created from a feed's self-reported name/URL


class ReviewType(str, enum.Enum):
    """Machine readable problem types that need a human to look at them"""

    NO_AGENCY = "no_agency"  # Feed could not be matched to any agency
    AGENCY_MULTIPLE_AREAS = "agency_multiple_areas"  # Agency sits in more than one region
    NO_METRO = "no_metro"  # Agency has a geometry but no region is near it


# Association table for the many-to-many relationship between agencies and feeds
agency_feeds = Table(
    "agency_feeds",
    Base.metadata,
    Column("agency_id", Integer, ForeignKey("agencies.id", ondelete="CASCADE"), primary_key=True),
    Column("feed_id", Integer, ForeignKey("feeds.id", ondelete="CASCADE"), primary_key=True),
)


class Agency(Base, TimestampMixin):
    """Agency model - a transit operator tracked by the registry"""

    __tablename__ = "agencies"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    url: Mapped[str | None] = mapped_column(
        String(500), nullable=True, comment="Agency's primary location on the web"
    )
    canonical_host: Mapped[str | None] = mapped_column(
        String(255), nullable=True, index=True, comment="Canonicalized url, used for feed matching"
    )
    external_id: Mapped[str | None] = mapped_column(
        String(50), nullable=True, comment="Registry identifier, stored as string to keep leading zeros"
    )
    uza_names: Mapped[List[str]] = mapped_column(
        MutableList.as_mutable(JSON), nullable=False, default=list, comment="Urbanized area names"
    )

    # Registry statistics
    population: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    ridership: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, comment="Annual unlinked passenger trips"
    )
    passenger_miles: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    source: Mapped[AgencySource] = mapped_column(
        SQLEnum(
            AgencySource,
            name="agencysource",
            create_constraint=True,
            native_enum=True,
            values_callable=lambda obj: [e.value for e in obj]
        ),
        nullable=False,
        default=AgencySource.IMPORTED_REGISTRY,
    )
    review: Mapped[ReviewType | None] = mapped_column(
        SQLEnum(
            ReviewType,
            name="reviewtype",
            create_constraint=True,
            native_enum=True,
            values_callable=lambda obj: [e.value for e in obj]
        ),
        nullable=True,
        index=True,
    )
    google_gtfs: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, comment="Whether the agency provides GTFS to Google"
    )
    note: Mapped[str | None] = mapped_column(Text, nullable=True, comment="Note for human review")
    disabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Relationships
    feeds: Mapped[Set["Feed"]] = relationship(
        "Feed", secondary=agency_feeds, back_populates="agencies", lazy="selectin"
    )
    regions: Mapped[Set["Region"]] = relationship(
        "Region", secondary="region_agencies", back_populates="agencies", lazy="selectin"
    )

    def __init__(self, **kwargs):
        # Column defaults only apply on INSERT; agencies must be usable before that
        kwargs.setdefault("uza_names", [])
        kwargs.setdefault("population", 0)
        kwargs.setdefault("ridership", 0)
        kwargs.setdefault("passenger_miles", 0)
        kwargs.setdefault("source", AgencySource.IMPORTED_REGISTRY)
        kwargs.setdefault("google_gtfs", False)
        kwargs.setdefault("disabled", False)
        super().__init__(**kwargs)

    @validates("url")
    def _update_canonical_host(self, key: str, value: str | None) -> str | None:
        self.canonical_host = canonicalize_url(value)
        return value

    @classmethod
    def from_feed(cls, feed: "Feed") -> "Agency":
        """Build an agency from the name and URL a feed reports for its publisher"""
        return cls(
            name=feed.agency_name,
            url=feed.agency_url,
            source=AgencySource.DERIVED_FROM_FEED,
            disabled=feed.disabled,
        )

    def __str__(self) -> str:
        return self.name if self.name else (self.url or "")

    def __repr__(self) -> str:
        return f"<Agency {self.name}>"
