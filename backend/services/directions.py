"""Routed polyline lookups for realistic trip card legs."""
import logging
from typing import Optional

import requests

from domain.models import Coordinates
from settings import settings

DIRECTIONS_URL = "https://maps.googleapis.com/maps/api/directions/json"
logger = logging.getLogger(__name__)
_session = requests.Session()


def format_coord(coord: Coordinates) -> str:
    return f"{coord.lat:.6f},{coord.lng:.6f}"


def directions_mode_for_transport(transport_mode: Optional[str]) -> Optional[str]:
    """Directions travel mode for a leg, or None when the leg is not routable by road."""
    if not transport_mode:
        return "driving"
    if transport_mode == "walk":
        return "walking"
    if transport_mode == "bicycle":
        return "bicycling"
    if transport_mode in ("plane", "boat", "na"):
        return None
    return "driving"


def fetch_directions_polyline(
    origin: Coordinates,
    destination: Coordinates,
    api_key: str,
    transport_mode: Optional[str] = None,
) -> Optional[str]:
    """
    Encoded overview polyline between two stops.

    Returns None for unroutable modes and on any HTTP or decode failure;
    the caller draws a straight leg instead. No retries.
    """
    mode = directions_mode_for_transport(transport_mode)
    if not mode or not api_key:
        return None

    params = {
        "origin": format_coord(origin),
        "destination": format_coord(destination),
        "mode": mode,
        "alternatives": "false",
        "key": api_key,
    }
    try:
        resp = _session.get(DIRECTIONS_URL, params=params, timeout=settings.DIRECTIONS_TIMEOUT)
        if resp.status_code != 200:
            logger.debug("[directions] status %s for %s -> %s", resp.status_code, params["origin"], params["destination"])
            return None
        data = resp.json()
    except (requests.RequestException, ValueError) as exc:
        logger.debug("[directions] lookup failed: %s", exc)
        return None

    try:
        encoded = data["routes"][0]["overview_polyline"]["points"]
    except (KeyError, IndexError, TypeError):
        return None
    return encoded if isinstance(encoded, str) and encoded else None
