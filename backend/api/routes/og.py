"""
Share card image routes.
"""
import logging
import math
from dataclasses import replace
from typing import Any, Dict, Mapping, Optional, Tuple

from fastapi import APIRouter, Depends, Request, Response

from domain.models import RouteTarget, SharedTripLookup, SiteCardParams, TripSummary
from repositories import get_shared_trip_store
from services.share_card_renderer import render_site_card, render_trip_card
from services.share_card_text import parse_boolean_override, sanitize_map_url, sanitize_text
from services.trip_summary import (
    build_display_path,
    fallback_summary,
    is_valid_version_id,
    parse_color_mode,
    parse_map_style,
    parse_route_mode,
    parse_view_settings,
    summarize_trip,
)
from settings import settings

logger = logging.getLogger(__name__)
router = APIRouter()

SITE_CACHE_CONTROL = "public, max-age=0, s-maxage=43200, stale-while-revalidate=604800"
TRIP_CACHE_LONG = "public, max-age=0, s-maxage=31536000, stale-while-revalidate=31536000"
TRIP_CACHE_MEDIUM = "public, max-age=0, s-maxage=86400, stale-while-revalidate=604800"
TRIP_CACHE_SHORT = "public, max-age=0, s-maxage=1800, stale-while-revalidate=86400"

TEXT_OVERRIDE_CAPS = {"title": 120, "weeks": 40, "months": 60, "distance": 40, "path": 120}


def _asset_origin(request: Request) -> str:
    return f"{str(request.base_url).rstrip('/')}/static-public"


def _png(data: bytes, cache_control: str) -> Response:
    return Response(content=data, media_type="image/png", headers={"Cache-Control": cache_control})


def _render_error(prefix: str, exc: Exception) -> Response:
    return Response(
        content=f"{prefix}\n{exc.__class__.__name__}: {exc}",
        status_code=500,
        media_type="text/plain; charset=utf-8",
        headers={"Cache-Control": "no-store"},
    )


def trip_cache_control(version_id: Optional[str], update_stamp: Optional[str]) -> str:
    """Cache tier by identifier stability: pinned version, update stamp, or neither."""
    if is_valid_version_id(version_id):
        return TRIP_CACHE_LONG
    try:
        if update_stamp and math.isfinite(float(update_stamp)):
            return TRIP_CACHE_MEDIUM
    except ValueError:
        pass
    return TRIP_CACHE_SHORT


def preference_overrides(query: Mapping[str, str]) -> Dict[str, Any]:
    """Map settings passed on the query string, in stored view-settings form."""
    overrides: Dict[str, Any] = {}
    map_style = parse_map_style((query.get("mapStyle") or "").strip())
    if map_style:
        overrides["mapStyle"] = map_style.value
    route_mode = parse_route_mode((query.get("routeMode") or "").strip())
    if route_mode:
        overrides["routeMode"] = route_mode.value
    color_mode = parse_color_mode((query.get("mapColorMode") or "").strip())
    if color_mode:
        overrides["mapColorMode"] = color_mode.value
    show_stops = parse_boolean_override(query.get("showStops"))
    if show_stops is not None:
        overrides["showStops"] = show_stops
    show_cities = parse_boolean_override(query.get("showCities"))
    if show_cities is None:
        show_cities = parse_boolean_override(query.get("cityNames"))
    if show_cities is not None:
        overrides["showCities"] = show_cities
    return overrides


def _summarize(lookup: SharedTripLookup, overrides: Dict[str, Any]) -> TripSummary:
    preferences = parse_view_settings({**(lookup.view_settings or {}), **overrides})
    return summarize_trip(
        lookup.trip,
        preferences,
        api_key=settings.GOOGLE_MAPS_API_KEY,
        language=settings.MAP_LANGUAGE,
    )


def _apply_text_overrides(summary: TripSummary, query: Mapping[str, str]) -> TripSummary:
    values = {key: sanitize_text(query.get(key), cap) for key, cap in TEXT_OVERRIDE_CAPS.items()}
    changes: Dict[str, Any] = {}
    if values["title"]:
        changes["title"] = values["title"]
    if values["weeks"]:
        changes["duration_label"] = values["weeks"]
    if values["months"]:
        changes["months_label"] = values["months"]
    if values["distance"]:
        changes["distance_label"] = values["distance"]
    map_url = sanitize_map_url(query.get("map"))
    if map_url:
        changes["map_image_url"] = map_url
        changes["map_labels"] = []
    return replace(summary, **changes) if changes else summary


def build_trip_card_summary(query: Mapping[str, str], store) -> Tuple[TripSummary, str]:
    """Summary and display path for a trip card request; unknown trips get the generic card."""
    token = (query.get("s") or "").strip()
    trip_id = (query.get("trip") or "").strip()
    requested_version = query.get("v")
    version_id = requested_version if is_valid_version_id(requested_version) else None
    overrides = preference_overrides(query)

    summary = fallback_summary()
    route_path = "/"
    if token:
        lookup = store.get_by_token(token, version_id)
        if lookup is not None:
            summary = _summarize(lookup, overrides)
            route_path = build_display_path(
                RouteTarget(token=token, version_id=version_id or lookup.resolved_version_id)
            )
        else:
            logger.info("[og-trip] no shared trip for token %s", token)
            route_path = f"/s/{token}"
    elif trip_id:
        route_path = build_display_path(RouteTarget(trip_id=trip_id, version_id=version_id))
        lookup = store.get_by_trip_id(trip_id, version_id)
        if lookup is not None:
            summary = _summarize(lookup, overrides)
        else:
            logger.info("[og-trip] no shared trip for trip id %s", trip_id)

    summary = _apply_text_overrides(summary, query)
    path_override = sanitize_text(query.get("path"), TEXT_OVERRIDE_CAPS["path"])
    return summary, path_override or route_path


@router.get("/site")
def site_card(request: Request):
    """Render a site share card from its query parameters."""
    try:
        params = SiteCardParams.from_query(dict(request.query_params))
        data = render_site_card(params, _asset_origin(request), request.url.netloc)
    except Exception as exc:  # rendered as a diagnostic response
        logger.exception("[og-site] render failed")
        return _render_error("Site OG render error", exc)
    return _png(data, SITE_CACHE_CONTROL)


@router.get("/trip")
def trip_card(request: Request, store=Depends(get_shared_trip_store)):
    """Render a shared trip card addressed by share token or trip id."""
    query = dict(request.query_params)
    try:
        summary, route_path = build_trip_card_summary(query, store)
        data = render_trip_card(summary, route_path, _asset_origin(request), request.url.netloc)
    except Exception as exc:  # rendered as a diagnostic response
        logger.exception("[og-trip] render failed")
        return _render_error("OG render error", exc)
    return _png(data, trip_cache_control(query.get("v"), query.get("u")))
