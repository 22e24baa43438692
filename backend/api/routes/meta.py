"""
Page metadata routes: resolved metadata as JSON and head injection for HTML shells.
"""
import logging
import threading
import time
from dataclasses import replace
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import HTMLResponse
from pydantic import BaseModel

from domain.models import CanonicalMetadata, ManifestFile
from repositories import get_shared_trip_store
from services.meta_tags import build_meta_tags, inject_meta_tags, resolve_og_image_url
from services.share_card_cache import manifest_path, read_manifest
from services.site_metadata import QueryInput, resolve_site_metadata
from services.trip_summary import (
    build_canonical_url,
    build_display_path,
    build_trip_card_url,
    parse_route_target,
    parse_view_settings,
    summarize_trip,
    summary_to_dict,
)
from settings import settings

logger = logging.getLogger(__name__)
router = APIRouter()

MANIFEST_TTL_SECONDS = 60.0
_manifest_lock = threading.Lock()
_manifest_state: Dict[str, Any] = {"loaded_at": None, "manifest": None}


class InjectRequest(BaseModel):
    html: str
    path: str
    search: str = ""


class AlternateLinkResponse(BaseModel):
    hreflang: str
    href: str


class MetadataResponse(BaseModel):
    route_key: str
    canonical_path: str
    canonical_url: str
    page_title: str
    description: str
    og_title: str
    og_description: str
    og_image_url: str
    og_image_source: str
    og_logo_url: str
    robots: str
    html_lang: str
    html_dir: str
    alternate_links: list[AlternateLinkResponse]


def get_manifest(now: Optional[float] = None) -> Optional[ManifestFile]:
    """The published manifest, re-read at most once per MANIFEST_TTL_SECONDS."""
    now = time.monotonic() if now is None else now
    with _manifest_lock:
        loaded_at = _manifest_state["loaded_at"]
        if loaded_at is not None and now - loaded_at < MANIFEST_TTL_SECONDS:
            return _manifest_state["manifest"]
        _manifest_state["manifest"] = read_manifest(manifest_path())
        _manifest_state["loaded_at"] = now
        return _manifest_state["manifest"]


def reset_manifest_cache() -> None:
    with _manifest_lock:
        _manifest_state["loaded_at"] = None
        _manifest_state["manifest"] = None


def _resolve(path: str, query: QueryInput) -> tuple[CanonicalMetadata, str]:
    if not path.startswith("/"):
        raise HTTPException(status_code=400, detail="path must start with '/'")
    meta = resolve_site_metadata(path, query, settings.SHARE_CARD_BUILD_ORIGIN)
    image_url, source = resolve_og_image_url(meta, get_manifest(), settings.SHARE_CARD_BUILD_ORIGIN)
    return replace(meta, og_image_url=image_url), source


def metadata_to_response(meta: CanonicalMetadata, source: str) -> MetadataResponse:
    return MetadataResponse(
        route_key=meta.route_key,
        canonical_path=meta.canonical_path,
        canonical_url=meta.canonical_url,
        page_title=meta.page_title,
        description=meta.description,
        og_title=meta.og_title,
        og_description=meta.og_description,
        og_image_url=meta.og_image_url,
        og_image_source=source,
        og_logo_url=meta.og_logo_url,
        robots=meta.robots,
        html_lang=meta.html_lang,
        html_dir=meta.html_dir.value,
        alternate_links=[
            AlternateLinkResponse(hreflang=link.hreflang, href=link.href) for link in meta.alternate_links
        ],
    )


@router.get("", response_model=MetadataResponse)
def get_metadata(path: str, request: Request):
    """Resolved metadata for a page path; remaining query parameters form its search string."""
    query = [(key, value) for key, value in request.query_params.multi_items() if key != "path"]
    meta, source = _resolve(path, query)
    return metadata_to_response(meta, source)


@router.get("/tags", response_class=HTMLResponse)
def get_meta_tags(path: str, request: Request):
    query = [(key, value) for key, value in request.query_params.multi_items() if key != "path"]
    meta, _ = _resolve(path, query)
    return HTMLResponse(build_meta_tags(meta))


@router.post("/inject", response_class=HTMLResponse)
def inject(payload: InjectRequest):
    """Return the HTML shell with its SEO tags replaced for `path`."""
    meta, source = _resolve(payload.path, payload.search)
    logger.debug("[og-site] inject %s image=%s", meta.route_key, source)
    return HTMLResponse(inject_meta_tags(payload.html, meta))


@router.get("/trip")
def get_trip_metadata(path: str, request: Request, store=Depends(get_shared_trip_store)):
    """Canonical URL, card image URL and summary for a shared trip page (`/s/<token>` or `/trip/<id>`)."""
    target = parse_route_target(path, dict(request.query_params))
    if target is None:
        raise HTTPException(status_code=400, detail="path must be /s/<token> or /trip/<id>")
    if target.token:
        lookup = store.get_by_token(target.token, target.version_id)
    else:
        lookup = store.get_by_trip_id(target.trip_id, target.version_id)
    if lookup is None:
        raise HTTPException(status_code=404, detail="shared trip not found")

    origin = settings.SHARE_CARD_BUILD_ORIGIN
    preferences = parse_view_settings(lookup.view_settings)
    summary = summarize_trip(lookup.trip, preferences, include_map=False)
    return {
        "canonicalUrl": build_canonical_url(origin, target),
        "displayPath": build_display_path(target),
        "ogImageUrl": build_trip_card_url(origin, target, lookup.trip.updated_at, preferences),
        "summary": summary_to_dict(summary),
    }
