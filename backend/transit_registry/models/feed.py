"""GTFS feed metadata models"""

from datetime import date, datetime
from typing import List, Set, TYPE_CHECKING
from sqlalchemy import (
    String,
    Integer,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Text,
    JSON,
    Enum as SQLEnum,
)
from sqlalchemy.ext.mutable import MutableList
from sqlalchemy.orm import Mapped, mapped_column, relationship
from geoalchemy2 import Geometry
from geoalchemy2.elements import WKBElement
import enum

from transit_registry.db.base_class import Base, TimestampMixin
from transit_registry.models.agency import ReviewType, agency_feeds
from transit_registry.utils.geometry import element_srid

if TYPE_CHECKING:
    from transit_registry.models.agency import Agency


class FeedParseStatus(str, enum.Enum):
    """Outcome of parsing a feed's schedule data"""

    UNPARSED = "unparsed"
    SUCCESSFUL = "successful"
    FAILED = "failed"


class DefaultBikesAllowed(str, enum.Enum):
    """Bike policy to assume when GTFS leaves it unspecified"""

    ALLOW = "allow"
    DISALLOW = "disallow"
    WARN = "warn"


# Fields copied by Feed.copy(); everything except identity, relations and timestamps
DESCRIPTIVE_FIELDS = (
    "agency_name",
    "agency_url",
    "area_description",
    "country",
    "catalog_id",
    "catalog_url",
    "timezone",
    "date_added",
    "date_updated",
    "disabled",
    "review",
    "feed_base_url",
    "download_url",
    "default_bikes_allowed",
    "status",
    "official",
    "license_url",
    "state",
    "trips",
    "trips_per_calendar",
    "expiration_date",
    "start_date",
    "geom",
    "superseded_by_id",
    "stored_id",
    "stops",
    "note",
)


class Feed(Base, TimestampMixin):
    """GTFS feed - metadata record of a published schedule, not its parsed contents"""

    __tablename__ = "feeds"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)

    # Publisher as self-reported by the feed; only used for matching
    agency_name: Mapped[str] = mapped_column(String(255), nullable=False)
    agency_url: Mapped[str | None] = mapped_column(
        String(500), nullable=True, comment="Stable agency URL, not a marketing URL"
    )
    area_description: Mapped[str | None] = mapped_column(String(255), nullable=True)
    country: Mapped[str | None] = mapped_column(String(100), nullable=True)
    state: Mapped[str | None] = mapped_column(String(100), nullable=True)

    # External catalog (e.g. GTFS Data Exchange)
    catalog_id: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    catalog_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    timezone: Mapped[str | None] = mapped_column(
        String(100), nullable=True, comment="IANA timezone (e.g., America/New_York)"
    )
    date_added: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    date_updated: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    disabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
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

    # Where to find the feed
    feed_base_url: Mapped[str | None] = mapped_column(
        String(500), nullable=True, comment="Feed itself or a developer site"
    )
    download_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    realtime_urls: Mapped[List[str]] = mapped_column(
        MutableList.as_mutable(JSON), nullable=False, default=list, comment="GTFS-RT feed URLs, ordered"
    )
    license_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    official: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, comment="Provided by the transit agency itself"
    )

    default_bikes_allowed: Mapped[DefaultBikesAllowed] = mapped_column(
        SQLEnum(
            DefaultBikesAllowed,
            name="defaultbikesallowed",
            create_constraint=True,
            native_enum=True,
            values_callable=lambda obj: [e.value for e in obj]
        ),
        nullable=False,
        default=DefaultBikesAllowed.WARN,
    )
    status: Mapped[FeedParseStatus | None] = mapped_column(
        SQLEnum(
            FeedParseStatus,
            name="feedparsestatus",
            create_constraint=True,
            native_enum=True,
            values_callable=lambda obj: [e.value for e in obj]
        ),
        nullable=True,
        comment="NULL until parsing has been attempted",
    )

    # Statistics
    trips: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    trips_per_calendar: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, comment="Average trips per schedule calendar"
    )
    stops: Mapped[int | None] = mapped_column(Integer, nullable=True)
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    expiration_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    # Service area, only meaningful when status is SUCCESSFUL
    geom: Mapped[WKBElement | None] = mapped_column(
        Geometry("MULTIPOLYGON"), nullable=True, comment="Service area; SRID stored per row"
    )

    superseded_by_id: Mapped[int | None] = mapped_column(
        ForeignKey("feeds.id", ondelete="SET NULL"), nullable=True, index=True
    )
    stored_id: Mapped[str | None] = mapped_column(
        String(500), nullable=True, comment="Storage-backend identifier of the raw feed file"
    )
    note: Mapped[str | None] = mapped_column(Text, nullable=True, comment="Note for human review")

    # Relationships
    agencies: Mapped[Set["Agency"]] = relationship(
        "Agency", secondary=agency_feeds, back_populates="feeds", lazy="selectin"
    )

    def __init__(self, **kwargs):
        kwargs.setdefault("realtime_urls", [])
        kwargs.setdefault("disabled", False)
        kwargs.setdefault("official", False)
        kwargs.setdefault("default_bikes_allowed", DefaultBikesAllowed.WARN)
        kwargs.setdefault("trips", 0)
        kwargs.setdefault("trips_per_calendar", 0)
        super().__init__(**kwargs)

    @property
    def srid(self) -> int | None:
        """SRID of the stored geometry, if any"""
        return element_srid(self.geom) if self.geom is not None else None

    @property
    def enabled_agencies(self) -> List["Agency"]:
        """Linked agencies that are not disabled"""
        return sorted(
            (agency for agency in self.agencies if not agency.disabled),
            key=lambda agency: agency.id or 0,
        )

    def copy(self) -> "Feed":
        """
        Copy every descriptive field into a new, unsaved feed.

        The copy has no identity and no agency links, and its realtime URL
        list is independent of this feed's. Status is carried over as-is and
        is expected to be overwritten once the copy is re-processed.
        """
        values = {field: getattr(self, field) for field in DESCRIPTIVE_FIELDS}
        values["realtime_urls"] = list(self.realtime_urls or [])
        return Feed(**values)

    def __str__(self) -> str:
        return f"GTFS for {self.agency_name}"

    def __repr__(self) -> str:
        return f"<Feed {self.id} {self.agency_name}>"
