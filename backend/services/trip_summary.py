"""
Trip summary for shared trip cards.

Derives duration, travel months, distance and an optional static map preview
from a trip snapshot. Everything here is pure except realistic route mode,
which asks the directions API for at most MAX_REALISTIC_LEGS polylines.
"""
import calendar
import logging
import math
import re
from datetime import date, timedelta
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple
from urllib.parse import quote, unquote, urlencode

from domain.models import (
    Coordinates,
    MapColorMode,
    MapLabel,
    MapPreferences,
    MapStyle,
    RouteMode,
    RouteTarget,
    TimelineItem,
    TripSnapshot,
    TripSummary,
)
from services import directions
from services.leg_colors import BRAND_COLOR, resolve_leg_color, static_map_color
from services.map_viewport import (
    OG_MAP_HEIGHT,
    OG_MAP_WIDTH,
    build_map_labels,
    compute_map_viewport,
    haversine_km,
)
from settings import settings

logger = logging.getLogger(__name__)

TRIP_VERSION_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)
DEFAULT_SUMMARY_TITLE = "Shared Trip"
DEFAULT_DESCRIPTION = "Plan and share travel routes with TravelFlow."
MAX_REALISTIC_LEGS = 8
MAX_ROUTE_CITIES = 30
# Half-day slack around the gap between two stops when matching travel items.
TRAVEL_WINDOW_DAYS = 0.6
STATIC_MAP_URL = "https://maps.googleapis.com/maps/api/staticmap"
START_MARKER_COLOR = "4f46e5"
END_MARKER_COLOR = "a5b4fc"
PATH_WEIGHT = 4

CLEAN_MAP_STYLE = "&".join([
    "style=element:geometry|color:0xf9f9f9",
    "style=element:labels.icon|visibility:off",
    "style=element:labels.text.fill|color:0x757575",
    "style=element:labels.text.stroke|color:0xf9f9f9|weight:2",
    "style=feature:administrative|element:geometry|visibility:off",
    "style=feature:administrative.country|element:geometry.stroke|color:0xa8a8a8|weight:1.6|visibility:on",
    "style=feature:administrative.province|element:geometry|visibility:off",
    "style=feature:administrative.province|element:labels|visibility:off",
    "style=feature:administrative.land_parcel|element:labels.text.fill|color:0xbdbdbd",
    "style=feature:poi|visibility:off",
    "style=feature:road|visibility:off",
    "style=feature:transit|visibility:off",
    "style=feature:water|element:geometry|color:0xdcefff",
    "style=feature:water|element:geometry.stroke|color:0x8fb6d9|weight:2.2|visibility:on",
    "style=feature:landscape.natural|element:geometry.stroke|color:0xa7c9e6|weight:1.4|visibility:on",
    "style=feature:water|element:labels.text.fill|color:0x9e9e9e",
])

MINIMAL_MAP_STYLE = "&".join([
    "style=element:geometry|color:0xf5f5f5",
    "style=element:labels.icon|visibility:off",
    "style=element:labels.text.fill|color:0x616161",
    "style=element:labels.text.stroke|color:0xf5f5f5",
    "style=feature:administrative.country|element:geometry.stroke|color:0x9aa6b2|weight:1.4|visibility:on",
    "style=feature:administrative.province|element:geometry.stroke|color:0xd5dce3|weight:0.5",
    "style=feature:administrative.land_parcel|element:labels.text.fill|color:0xbdbdbd",
    "style=feature:poi|element:geometry|color:0xeeeeee",
    "style=feature:poi|element:labels.text.fill|color:0x757575",
    "style=feature:poi.park|element:geometry|color:0xe5e5e5",
    "style=feature:poi.park|element:labels.text.fill|color:0x9e9e9e",
    "style=feature:road|element:geometry|color:0xffffff",
    "style=feature:road.arterial|element:labels.text.fill|color:0x757575",
    "style=feature:road.highway|element:geometry|color:0xdadada",
    "style=feature:road.highway|element:labels.text.fill|color:0x616161",
    "style=feature:road.local|element:labels.text.fill|color:0x9e9e9e",
    "style=feature:transit.line|element:geometry|color:0xe5e5e5",
    "style=feature:transit.station|element:geometry|color:0xeeeeee",
    "style=feature:water|element:geometry|color:0xc9c9c9",
    "style=feature:water|element:labels.text.fill|color:0x9e9e9e",
])

DARK_MAP_STYLE = "&".join([
    "style=element:geometry|color:0x242f3e",
    "style=element:labels.text.stroke|color:0x242f3e",
    "style=element:labels.text.fill|color:0x746855",
    "style=feature:administrative.locality|element:labels.text.fill|color:0xd59563",
    "style=feature:poi|element:labels.text.fill|color:0xd59563",
    "style=feature:poi.park|element:geometry|color:0x263c3f",
    "style=feature:poi.park|element:labels.text.fill|color:0x6b9a76",
    "style=feature:road|element:geometry|color:0x38414e",
    "style=feature:road|element:geometry.stroke|color:0x212a37",
    "style=feature:road|element:labels.text.fill|color:0x9ca5b3",
    "style=feature:road.highway|element:geometry|color:0x746855",
    "style=feature:road.highway|element:geometry.stroke|color:0x1f2835",
    "style=feature:road.highway|element:labels.text.fill|color:0xf3d19c",
    "style=feature:transit|element:geometry|color:0x2f3948",
    "style=feature:transit.station|element:labels.text.fill|color:0xd59563",
    "style=feature:water|element:geometry|color:0x17263c",
    "style=feature:water|element:labels.text.fill|color:0x515c6d",
    "style=feature:water|element:labels.text.stroke|color:0x17263c",
])

_STYLE_QUERIES = {
    MapStyle.CLEAN: CLEAN_MAP_STYLE,
    MapStyle.MINIMAL: MINIMAL_MAP_STYLE,
    MapStyle.DARK: DARK_MAP_STYLE,
}


def is_valid_version_id(value: Optional[str]) -> bool:
    return bool(value) and TRIP_VERSION_RE.match(value) is not None


def _js_round(value: float) -> int:
    return math.floor(value + 0.5)


# --- itinerary math ---

def city_items(trip: TripSnapshot) -> List[TimelineItem]:
    cities = [item for item in trip.items if item.type == "city"]
    return sorted(cities, key=lambda item: item.start_offset or 0.0)


def trip_range_offsets(trip: TripSnapshot) -> Tuple[float, float]:
    source = city_items(trip) or trip.items
    starts, ends = [], []
    for item in source:
        if item.start_offset is None or item.duration is None:
            continue
        starts.append(item.start_offset)
        ends.append(item.start_offset + item.duration)
    if not starts:
        return 0.0, 1.0
    min_start, max_end = min(starts), max(ends)
    if max_end <= min_start:
        return 0.0, 1.0
    return min_start, max_end


def trip_duration_days(trip: TripSnapshot) -> int:
    start, end = trip_range_offsets(trip)
    return max(1, math.ceil(end - start))


def format_weeks(days: int) -> str:
    weeks = max(1.0, _js_round(days / 7 * 2) / 2)
    text = str(int(weeks)) if weeks.is_integer() else f"{weeks:.1f}"
    return f"{text} {'week' if weeks == 1 else 'weeks'}"


def _parse_start_date(value: Optional[str]) -> date:
    if value:
        parts = value.split("-")
        if len(parts) == 3:
            try:
                return date(int(parts[0]), int(parts[1]), int(parts[2]))
            except ValueError:
                pass
        try:
            return date.fromisoformat(value[:10])
        except ValueError:
            pass
    return date.today()


def format_months(trip: TripSnapshot) -> str:
    base = _parse_start_date(trip.start_date)
    start_offset, end_offset = trip_range_offsets(trip)
    start = base + timedelta(days=math.floor(start_offset))
    end = base + timedelta(days=math.ceil(end_offset) - 1)
    start_label = calendar.month_name[start.month]
    end_label = calendar.month_name[end.month]
    same_year = start.year == end.year
    if same_year and start_label == end_label:
        return start_label
    if same_year:
        return f"{start_label} - {end_label}"
    return f"{start_label} {start.year} - {end_label} {end.year}"


def find_travel_between(
    items: Sequence[TimelineItem],
    from_city: TimelineItem,
    to_city: TimelineItem,
) -> Optional[TimelineItem]:
    """The travel item closest to the end of `from_city`, within the gap to `to_city`."""
    from_end = (from_city.start_offset or 0.0) + (from_city.duration or 0.0)
    to_start = to_city.start_offset if to_city.start_offset is not None else from_end
    window_start = min(from_end, to_start) - TRAVEL_WINDOW_DAYS
    window_end = max(from_end, to_start) + TRAVEL_WINDOW_DAYS

    candidates = [
        item
        for item in items
        if item.type in ("travel", "travel-empty")
        and item.start_offset is not None
        and window_start <= item.start_offset <= window_end
    ]
    if not candidates:
        return None
    return min(candidates, key=lambda item: abs(item.start_offset - from_end))


def trip_distance_km(trip: TripSnapshot) -> Optional[float]:
    cities = city_items(trip)
    if len(cities) < 2:
        return None

    total = 0.0
    counted = False
    for from_city, to_city in zip(cities, cities[1:]):
        if from_city.coordinates is None or to_city.coordinates is None:
            continue
        air = haversine_km(from_city.coordinates, to_city.coordinates)
        travel = find_travel_between(trip.items, from_city, to_city)
        if travel is not None and travel.transport_mode == "plane":
            total += air
        elif travel is not None and travel.route_distance_km is not None:
            total += travel.route_distance_km
        else:
            total += air
        counted = True
    return total if counted else None


def format_distance(distance_km: Optional[float]) -> Optional[str]:
    if distance_km is None or not math.isfinite(distance_km) or distance_km <= 0:
        return None
    return f"{_js_round(distance_km):,} km"


def route_cities(trip: TripSnapshot) -> List[TimelineItem]:
    return [item for item in city_items(trip) if item.coordinates is not None][:MAX_ROUTE_CITIES]


# --- static map ---

def _marker_param(coord: Coordinates, color: str, label: Optional[str] = None) -> str:
    segments = ["size:mid", f"color:0x{color}"]
    if label:
        segments.append(f"label:{label}")
    segments.append(directions.format_coord(coord))
    return "markers=" + quote("|".join(segments), safe="")


def _path_param(coords: Sequence[Coordinates], color: str = START_MARKER_COLOR) -> Optional[str]:
    if len(coords) < 2:
        return None
    points = "|".join(directions.format_coord(c) for c in coords)
    return "path=" + quote(f"color:0x{color}|weight:{PATH_WEIGHT}|{points}", safe="")


def _encoded_path_param(polyline: str, color: str) -> str:
    return "path=" + quote(f"color:0x{color}|weight:{PATH_WEIGHT}|enc:{polyline}", safe="")


def _leg_colors(cities: Sequence[TimelineItem], mode: MapColorMode) -> List[str]:
    """One static-map colour per leg, taken from the leg's departure city."""
    return [static_map_color(resolve_leg_color(city.color, mode)) for city in cities[:-1]]


def _simple_path_params(cities: Sequence[TimelineItem], mode: MapColorMode) -> List[str]:
    coords = [city.coordinates for city in cities]
    if mode == MapColorMode.BRAND:
        single = _path_param(coords, static_map_color(BRAND_COLOR))
        return [single] if single else []

    # Consecutive legs of the same colour share one polyline.
    params: List[str] = []
    colors = _leg_colors(cities, mode)
    run_start = 0
    for index in range(1, len(colors) + 1):
        if index < len(colors) and colors[index] == colors[run_start]:
            continue
        param = _path_param(coords[run_start:index + 1], colors[run_start])
        if param:
            params.append(param)
        run_start = index
    return params


def _realistic_path_params(
    trip: TripSnapshot,
    cities: Sequence[TimelineItem],
    api_key: str,
    mode: MapColorMode,
) -> List[str]:
    params: List[str] = []
    colors = _leg_colors(cities, mode)
    lookups = 0
    for index, (from_city, to_city) in enumerate(zip(cities, cities[1:])):
        color = colors[index]
        polyline = None
        if lookups < MAX_REALISTIC_LEGS:
            travel = find_travel_between(trip.items, from_city, to_city)
            polyline = directions.fetch_directions_polyline(
                from_city.coordinates,
                to_city.coordinates,
                api_key,
                travel.transport_mode if travel else None,
            )
            lookups += 1
        if polyline:
            params.append(_encoded_path_param(polyline, color))
            continue
        straight = _path_param([from_city.coordinates, to_city.coordinates], color)
        if straight:
            params.append(straight)
    return params


def build_map_preview(
    trip: TripSnapshot,
    api_key: Optional[str],
    language: Optional[str] = None,
    preferences: Optional[MapPreferences] = None,
) -> Tuple[Optional[str], List[MapLabel]]:
    """Static map URL and label overlays; (None, []) without a key or any located stop."""
    if not api_key:
        return None, []
    cities = route_cities(trip)
    if not cities:
        return None, []

    prefs = preferences or MapPreferences()
    coords = [city.coordinates for city in cities]
    viewport = compute_map_viewport(coords)

    markers: List[str] = []
    if prefs.show_stops:
        markers.append(_marker_param(coords[0], START_MARKER_COLOR, "S" if len(coords) > 1 else None))
        if len(coords) > 1:
            markers.append(_marker_param(coords[-1], END_MARKER_COLOR, "E"))

    paths: List[str] = []
    if prefs.route_mode == RouteMode.REALISTIC:
        paths = _realistic_path_params(trip, cities, api_key, prefs.color_mode)
    if not paths:
        paths = _simple_path_params(cities, prefs.color_mode)

    parts = [
        f"{STATIC_MAP_URL}?size={OG_MAP_WIDTH}x{OG_MAP_HEIGHT}&scale=2",
        f"maptype={'satellite' if prefs.map_style == MapStyle.SATELLITE else 'roadmap'}",
        "center=" + quote(directions.format_coord(viewport.center), safe=""),
        f"zoom={viewport.zoom}",
    ]
    style_query = _STYLE_QUERIES.get(prefs.map_style)
    if style_query:
        parts.append(style_query)
    parts.append("language=" + quote(language or settings.MAP_LANGUAGE, safe=""))
    parts.extend(markers)
    parts.extend(paths)
    parts.append("key=" + quote(api_key, safe=""))

    labels = build_map_labels(cities, viewport) if prefs.show_cities else []
    return "&".join(parts), labels


def summarize_trip(
    trip: TripSnapshot,
    preferences: Optional[MapPreferences] = None,
    api_key: Optional[str] = None,
    language: Optional[str] = None,
    include_map: bool = True,
) -> TripSummary:
    title = trip.title.strip() or DEFAULT_SUMMARY_TITLE
    weeks_label = format_weeks(trip_duration_days(trip))
    months_label = format_months(trip)
    distance_label = format_distance(trip_distance_km(trip))
    parts = [weeks_label, months_label] + ([distance_label] if distance_label else [])

    map_url, labels = None, []
    if include_map:
        map_url, labels = build_map_preview(trip, api_key, language, preferences)

    return TripSummary(
        title=title,
        duration_label=weeks_label,
        months_label=months_label,
        distance_label=distance_label,
        description=" • ".join(parts),
        updated_at=trip.updated_at,
        map_image_url=map_url,
        map_labels=labels,
    )


def fallback_summary() -> TripSummary:
    return TripSummary(
        title=DEFAULT_SUMMARY_TITLE,
        duration_label="1 week",
        months_label="Any month",
        distance_label=None,
        description=DEFAULT_DESCRIPTION,
    )


# --- view settings ---

def _first_string(raw: Mapping[str, Any], keys: Sequence[str]) -> Optional[str]:
    for key in keys:
        if isinstance(raw.get(key), str):
            return raw[key]
    return None


def _first_bool(raw: Mapping[str, Any], keys: Sequence[str]) -> Optional[bool]:
    for key in keys:
        if isinstance(raw.get(key), bool):
            return raw[key]
    return None


def parse_map_style(value: Optional[str]) -> Optional[MapStyle]:
    try:
        return MapStyle(value) if value else None
    except ValueError:
        return None


def parse_route_mode(value: Optional[str]) -> Optional[RouteMode]:
    try:
        return RouteMode(value) if value else None
    except ValueError:
        return None


def parse_color_mode(value: Optional[str]) -> Optional[MapColorMode]:
    try:
        return MapColorMode(value) if value else None
    except ValueError:
        return None


def has_preference_values(raw: Any) -> bool:
    """True if stored view settings carry at least one recognised map preference."""
    if not isinstance(raw, dict):
        return False
    if parse_map_style(_first_string(raw, ["mapStyle", "map_style"])):
        return True
    if parse_route_mode(_first_string(raw, ["routeMode", "route_mode"])):
        return True
    if parse_color_mode(_first_string(raw, ["mapColorMode", "map_color_mode"])):
        return True
    if _first_bool(raw, ["showStops", "show_stops"]) is not None:
        return True
    return _first_bool(raw, ["showCities", "show_cities", "showCityNames", "show_city_names"]) is not None


def parse_view_settings(raw: Any) -> Optional[MapPreferences]:
    """Stored view settings to preferences; unknown values fall back to defaults."""
    if not isinstance(raw, dict):
        return None
    defaults = MapPreferences()
    show_city_names = _first_bool(raw, ["showCityNames", "show_city_names"])
    show_cities = _first_bool(raw, ["showCities", "show_cities"])
    if show_cities is None:
        show_cities = show_city_names
    show_stops = _first_bool(raw, ["showStops", "show_stops"])
    return MapPreferences(
        map_style=parse_map_style(_first_string(raw, ["mapStyle", "map_style"])) or defaults.map_style,
        route_mode=parse_route_mode(_first_string(raw, ["routeMode", "route_mode"])) or defaults.route_mode,
        color_mode=parse_color_mode(_first_string(raw, ["mapColorMode", "map_color_mode"])) or defaults.color_mode,
        show_stops=defaults.show_stops if show_stops is None else show_stops,
        show_cities=defaults.show_cities if show_cities is None else show_cities,
    )


# --- route targets and URLs ---

def parse_route_target(path: str, query: Optional[Mapping[str, str]] = None) -> Optional[RouteTarget]:
    """`/s/<token>` or `/trip/<id>`; `v` is kept only when it is a valid version id."""
    segments = [segment for segment in (path or "").split("/") if segment]
    if len(segments) < 2:
        return None
    version = (query or {}).get("v")
    version_id = version if is_valid_version_id(version) else None
    value = unquote(segments[1])
    if not value:
        return None
    if segments[0] == "s":
        return RouteTarget(token=value, version_id=version_id)
    if segments[0] == "trip":
        return RouteTarget(trip_id=value, version_id=version_id)
    return None


def build_trip_card_url(
    origin: str,
    target: RouteTarget,
    updated_at: Optional[float] = None,
    preferences: Optional[MapPreferences] = None,
) -> str:
    query: List[Tuple[str, str]] = []
    if target.token:
        query.append(("s", target.token))
    if target.trip_id:
        query.append(("trip", target.trip_id))
    if is_valid_version_id(target.version_id):
        query.append(("v", target.version_id))
    if updated_at is not None and math.isfinite(updated_at):
        query.append(("u", str(math.floor(updated_at))))
    if preferences is not None:
        query.append(("mapStyle", preferences.map_style.value))
        query.append(("routeMode", preferences.route_mode.value))
        query.append(("mapColorMode", preferences.color_mode.value))
        query.append(("showStops", "1" if preferences.show_stops else "0"))
        query.append(("showCities", "1" if preferences.show_cities else "0"))
    return f"{origin.rstrip('/')}/api/og/trip?{urlencode(query)}"


def build_display_path(target: RouteTarget) -> str:
    if target.token:
        base = f"/s/{target.token}"
    elif target.trip_id:
        base = f"/trip/{target.trip_id}"
    else:
        return "/"
    if is_valid_version_id(target.version_id):
        return f"{base}?v={target.version_id}"
    return base


def build_canonical_url(origin: str, target: RouteTarget) -> str:
    origin = origin.rstrip("/")
    if target.token:
        base = f"{origin}/s/{quote(target.token, safe='')}"
    elif target.trip_id:
        base = f"{origin}/trip/{quote(target.trip_id, safe='')}"
    else:
        return f"{origin}/"
    if is_valid_version_id(target.version_id):
        return f"{base}?{urlencode({'v': target.version_id})}"
    return base


def summary_to_dict(summary: TripSummary) -> Dict[str, Any]:
    return {
        "title": summary.title,
        "weeksLabel": summary.duration_label,
        "monthsLabel": summary.months_label,
        "distanceLabel": summary.distance_label,
        "description": summary.description,
        "updatedAt": summary.updated_at,
        "mapImageUrl": summary.map_image_url,
        "mapLabels": [
            {"text": label.text, "subLabel": label.sub_label, "x": label.x, "y": label.y}
            for label in summary.map_labels
        ],
    }
