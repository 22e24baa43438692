"""
Core domain models for the share card pipeline.
These are framework-agnostic and can be used across all services.
"""
from dataclasses import dataclass, field
from enum import Enum
import math
from typing import Any, Dict, List, Optional, Tuple


class TextDirection(str, Enum):
    LTR = "ltr"
    RTL = "rtl"


class MapStyle(str, Enum):
    """Static map styles a shared trip can be previewed with."""
    MINIMAL = "minimal"
    STANDARD = "standard"
    DARK = "dark"
    SATELLITE = "satellite"
    CLEAN = "clean"


class RouteMode(str, Enum):
    """
    How legs between stops are drawn.

    - SIMPLE: straight segments between consecutive stops
    - REALISTIC: routed polylines from the directions API, straight fallback
    """
    SIMPLE = "simple"
    REALISTIC = "realistic"


class MapColorMode(str, Enum):
    BRAND = "brand"  # one accent color for every leg
    TRIP = "trip"  # per-leg colors from the trip's own styling


class TargetScope(str, Enum):
    """Which static routes a batch build precomputes."""
    PRIORITY = "priority"
    FULL = "full"


def _finite(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return float(value)


@dataclass(frozen=True)
class AlternateLink:
    hreflang: str
    href: str


@dataclass(frozen=True)
class SiteCardParams:
    """
    Query parameters of the on-demand site card renderer.

    Empty optional values are omitted from the query string.
    """
    title: str
    description: str
    path: str
    pill: str = ""
    lang: str = ""
    dir: str = ""
    blog_image: str = ""
    blog_rev: str = ""
    blog_tint: str = ""
    blog_tint_intensity: str = ""

    def to_query(self) -> Dict[str, str]:
        pairs = [
            ("title", self.title),
            ("description", self.description),
            ("path", self.path),
            ("pill", self.pill),
            ("lang", self.lang),
            ("dir", self.dir),
            ("blog_image", self.blog_image),
            ("blog_rev", self.blog_rev),
            ("blog_tint", self.blog_tint),
            ("blog_tint_intensity", self.blog_tint_intensity),
        ]
        return {key: value for key, value in pairs if value}

    @classmethod
    def from_query(cls, query: Dict[str, str]) -> "SiteCardParams":
        def value(key: str) -> str:
            return (query.get(key) or "").strip()

        return cls(
            title=value("title"),
            description=value("description"),
            path=value("path"),
            pill=value("pill"),
            lang=value("lang"),
            dir=value("dir"),
            blog_image=value("blog_image"),
            blog_rev=value("blog_rev"),
            blog_tint=value("blog_tint"),
            blog_tint_intensity=value("blog_tint_intensity"),
        )


@dataclass(frozen=True)
class CanonicalMetadata:
    """
    Everything a page needs for its head tags and share card.

    Produced once per (path, locale) by the metadata resolver.
    """
    route_key: str
    canonical_path: str
    canonical_search: str
    page_title: str
    description: str
    og_title: str
    og_description: str
    canonical_url: str
    og_image_url: str
    image_params: SiteCardParams
    og_logo_url: str
    robots: str
    alternate_links: Tuple[AlternateLink, ...] = ()
    html_lang: str = "en"
    html_dir: TextDirection = TextDirection.LTR

    @property
    def locale(self) -> str:
        return self.html_lang

    @property
    def text_direction(self) -> TextDirection:
        return self.html_dir


@dataclass(frozen=True)
class RenderPayload:
    """
    The subset of metadata that affects pixels.

    Field order is part of the cache contract: the digest is computed over
    `hash_items()`, never over attribute iteration.
    """
    route_key: str
    title: str
    description: str
    path: str
    pill: str = ""
    blog_image: str = ""
    blog_revision: str = ""
    blog_tint: str = ""
    blog_tint_intensity: str = ""

    def hash_items(self) -> List[Tuple[str, str]]:
        return [
            ("routeKey", self.route_key),
            ("title", self.title),
            ("description", self.description),
            ("path", self.path),
            ("pill", self.pill),
            ("blogImage", self.blog_image),
            ("blogRevision", self.blog_revision),
            ("blogTint", self.blog_tint),
            ("blogTintIntensity", self.blog_tint_intensity),
        ]

    def to_params(self) -> SiteCardParams:
        return SiteCardParams(
            title=self.title,
            description=self.description,
            path=self.path,
            pill=self.pill,
            blog_image=self.blog_image,
            blog_rev=self.blog_revision,
            blog_tint=self.blog_tint,
            blog_tint_intensity=self.blog_tint_intensity,
        )

    def to_query(self) -> Dict[str, str]:
        """Minimal site card query that reproduces this payload."""
        return self.to_params().to_query()


@dataclass(frozen=True)
class ManifestEntry:
    route_key: str
    asset_path: str
    content_hash: str


@dataclass
class ManifestFile:
    """
    Persisted map of route key -> cached asset.

    On disk: {"generatedAt", "revision", "entries": {routeKey: {"path", "hash"}}}.
    """
    generated_at: str
    revision: str
    entries: Dict[str, ManifestEntry] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "generatedAt": self.generated_at,
            "revision": self.revision,
            "entries": {
                key: {"path": self.entries[key].asset_path, "hash": self.entries[key].content_hash}
                for key in sorted(self.entries)
            },
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ManifestFile":
        entries = {
            key: ManifestEntry(route_key=key, asset_path=value["path"], content_hash=value["hash"])
            for key, value in data.get("entries", {}).items()
        }
        return cls(
            generated_at=data["generatedAt"],
            revision=data["revision"],
            entries=entries,
        )


@dataclass(frozen=True)
class Coordinates:
    lat: float
    lng: float

    @classmethod
    def from_dict(cls, data: Any) -> Optional["Coordinates"]:
        if not isinstance(data, dict):
            return None
        lat = _finite(data.get("lat"))
        lng = _finite(data.get("lng"))
        if lat is None or lng is None:
            return None
        return cls(lat=lat, lng=lng)


@dataclass
class TimelineItem:
    """One entry of a trip timeline (a city stop, a travel leg, an activity)."""
    id: Optional[str] = None
    type: Optional[str] = None
    title: Optional[str] = None
    location: Optional[str] = None
    start_offset: Optional[float] = None  # days from trip start
    duration: Optional[float] = None  # days
    coordinates: Optional[Coordinates] = None
    transport_mode: Optional[str] = None
    route_distance_km: Optional[float] = None
    color: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TimelineItem":
        def _str(key: str) -> Optional[str]:
            value = data.get(key)
            return value if isinstance(value, str) else None

        return cls(
            id=_str("id"),
            type=_str("type"),
            title=_str("title"),
            location=_str("location"),
            start_offset=_finite(data.get("startDateOffset")),
            duration=_finite(data.get("duration")),
            coordinates=Coordinates.from_dict(data.get("coordinates")),
            transport_mode=_str("transportMode"),
            route_distance_km=_finite(data.get("routeDistanceKm")),
            color=_str("color"),
        )


@dataclass
class TripSnapshot:
    """A read-only copy of a shared trip as stored by the document store."""
    id: Optional[str] = None
    title: str = ""
    start_date: Optional[str] = None
    items: List[TimelineItem] = field(default_factory=list)
    updated_at: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Any) -> "TripSnapshot":
        if not isinstance(data, dict):
            return cls()
        raw_items = data.get("items")
        items = [
            TimelineItem.from_dict(item)
            for item in (raw_items if isinstance(raw_items, list) else [])
            if isinstance(item, dict)
        ]
        title = data.get("title")
        start_date = data.get("startDate")
        trip_id = data.get("id")
        return cls(
            id=trip_id if isinstance(trip_id, str) else None,
            title=title if isinstance(title, str) else "",
            start_date=start_date if isinstance(start_date, str) else None,
            items=items,
            updated_at=_finite(data.get("updatedAt")),
        )


@dataclass(frozen=True)
class MapViewport:
    center: Coordinates
    zoom: int


@dataclass(frozen=True)
class MapLabel:
    text: str
    x: float  # fraction of the map panel width
    y: float  # fraction of the map panel height
    sub_label: Optional[str] = None


@dataclass
class MapPreferences:
    """Per-trip view settings that influence the map preview."""
    map_style: MapStyle = MapStyle.CLEAN
    route_mode: RouteMode = RouteMode.SIMPLE
    color_mode: MapColorMode = MapColorMode.TRIP
    show_stops: bool = True
    show_cities: bool = True


@dataclass
class TripSummary:
    title: str
    duration_label: str
    months_label: str
    distance_label: Optional[str] = None
    description: str = ""
    updated_at: Optional[float] = None
    map_image_url: Optional[str] = None
    map_labels: List[MapLabel] = field(default_factory=list)


@dataclass(frozen=True)
class RouteTarget:
    """A shared trip addressed by share token or trip id."""
    token: Optional[str] = None
    trip_id: Optional[str] = None
    version_id: Optional[str] = None


@dataclass
class SharedTripLookup:
    trip: TripSnapshot
    view_settings: Optional[Dict[str, Any]] = None  # stored view settings, unparsed
    latest_version_id: Optional[str] = None
    resolved_version_id: Optional[str] = None
