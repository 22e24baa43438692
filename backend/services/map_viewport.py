"""
Web Mercator helpers for the trip card map panel.

The panel is OG_MAP_WIDTH x OG_MAP_HEIGHT logical pixels; viewports are
fitted so every stop lands inside it with a fixed inset.
"""
import math
from typing import List, Sequence, Tuple

from domain.models import Coordinates, MapLabel, MapViewport, TimelineItem

OG_MAP_WIDTH = 426
OG_MAP_HEIGHT = 574
TILE_SIZE = 256
MIN_ZOOM = 2
MAX_ZOOM = 18
SINGLE_POINT_ZOOM = 9
# Inset kept free around the route when fitting.
FIT_WIDTH = max(1, OG_MAP_WIDTH - 72)
FIT_HEIGHT = max(1, OG_MAP_HEIGHT - 96)
LABEL_X_RANGE = (0.06, 0.88)
LABEL_Y_RANGE = (0.06, 0.94)
ROUND_TRIP_TAG = "START • END"


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def haversine_km(a: Coordinates, b: Coordinates) -> float:
    """Great-circle distance in kilometers."""
    R = 6371.0
    dlat = math.radians(b.lat - a.lat)
    dlon = math.radians(b.lng - a.lng)
    h = (
        math.sin(dlat / 2) ** 2
        + math.cos(math.radians(a.lat))
        * math.cos(math.radians(b.lat))
        * math.sin(dlon / 2) ** 2
    )
    return R * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def lat_to_mercator(lat: float) -> float:
    sin = math.sin(math.radians(lat))
    if sin >= 1.0:
        return 0.0
    if sin <= -1.0:
        return 1.0
    y = 0.5 - math.log((1 + sin) / (1 - sin)) / (4 * math.pi)
    return clamp(y, 0.0, 1.0)


def lng_to_mercator(lng: float) -> float:
    return ((lng + 180.0) / 360.0 + 1.0) % 1.0


def world_pixel(coord: Coordinates, zoom: int) -> Tuple[float, float]:
    scale = TILE_SIZE * 2 ** zoom
    return lng_to_mercator(coord.lng) * scale, lat_to_mercator(coord.lat) * scale


def zoom_for_fraction(map_px: float, world_fraction: float) -> int:
    """Largest integer zoom at which `world_fraction` of the world fits in `map_px`."""
    if not math.isfinite(world_fraction) or world_fraction <= 0:
        return MAX_ZOOM
    value = math.log2(map_px / TILE_SIZE / world_fraction)
    if not math.isfinite(value):
        return MAX_ZOOM
    return math.floor(value)


def compute_map_viewport(coords: Sequence[Coordinates]) -> MapViewport:
    if not coords:
        return MapViewport(center=Coordinates(0.0, 0.0), zoom=MIN_ZOOM)
    if len(coords) == 1:
        return MapViewport(center=coords[0], zoom=SINGLE_POINT_ZOOM)

    lats = [c.lat for c in coords]
    lngs = [c.lng for c in coords]
    min_lat, max_lat = min(lats), max(lats)
    min_lng, max_lng = min(lngs), max(lngs)

    lat_fraction = abs(lat_to_mercator(max_lat) - lat_to_mercator(min_lat))
    lng_fraction = abs((max_lng - min_lng) / 360.0)
    zoom = min(zoom_for_fraction(FIT_HEIGHT, lat_fraction), zoom_for_fraction(FIT_WIDTH, lng_fraction))
    return MapViewport(
        center=Coordinates((min_lat + max_lat) / 2, (min_lng + max_lng) / 2),
        zoom=int(clamp(zoom, MIN_ZOOM, MAX_ZOOM)),
    )


def normalize_city_name(value: str) -> str:
    return " ".join((value or "").strip().lower().split())


def _city_name(item: TimelineItem) -> str:
    return (item.title or item.location or "").strip()


def build_map_labels(route_cities: Sequence[TimelineItem], viewport: MapViewport) -> List[MapLabel]:
    """
    Position a label per stop as a fraction of the map panel.

    A trip that starts and ends in the same city gets one combined label.
    """
    if not route_cities:
        return []

    start_city = route_cities[0]
    end_city = route_cities[-1]
    start_key = normalize_city_name(_city_name(start_city))
    end_key = normalize_city_name(_city_name(end_city))
    round_trip = bool(start_key) and start_key == end_key
    shown_round_trip = False

    center_x, center_y = world_pixel(viewport.center, viewport.zoom)
    world_width = TILE_SIZE * 2 ** viewport.zoom
    labels: List[MapLabel] = []

    for city in route_cities:
        if city.coordinates is None:
            continue
        name = _city_name(city)
        if not name:
            continue

        key = normalize_city_name(name)
        sub_label = None
        if round_trip and key == start_key:
            if shown_round_trip:
                continue
            shown_round_trip = True
            sub_label = ROUND_TRIP_TAG
        elif city is start_city or (city.id is not None and city.id == start_city.id):
            sub_label = "START"
        elif city is end_city or (city.id is not None and city.id == end_city.id):
            sub_label = "END"

        px, py = world_pixel(city.coordinates, viewport.zoom)
        dx = px - center_x
        if dx > world_width / 2:
            dx -= world_width
        if dx < -world_width / 2:
            dx += world_width
        dy = py - center_y

        labels.append(
            MapLabel(
                text=name,
                sub_label=sub_label,
                x=clamp((OG_MAP_WIDTH / 2 + dx + 12) / OG_MAP_WIDTH, *LABEL_X_RANGE),
                y=clamp((OG_MAP_HEIGHT / 2 + dy - 4) / OG_MAP_HEIGHT, *LABEL_Y_RANGE),
            )
        )
    return labels
