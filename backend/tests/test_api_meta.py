import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from api.routes import meta as meta_router
from domain.models import ManifestEntry, SharedTripLookup, TripSnapshot
from repositories import get_shared_trip_store
from services.share_card_cache import build_manifest, manifest_path, write_manifest
from settings import settings

ORIGIN = "https://example.test"
ROOT_CARD = "/images/og/site/generated/root-0123456789abcdef.png"


class FakeStore:
    def get_by_token(self, token, version_id=None):
        if token != "tok":
            return None
        trip = TripSnapshot.from_dict({
            "title": "Coast Road",
            "startDate": "2024-06-01",
            "updatedAt": 1717000000000.7,
            "items": [
                {"type": "city", "title": "Porto", "startDateOffset": 0, "duration": 5},
                {"type": "city", "title": "Lisbon", "startDateOffset": 5, "duration": 5},
            ],
        })
        return SharedTripLookup(trip=trip, view_settings={"mapStyle": "clean"})

    def get_by_trip_id(self, trip_id, version_id=None):
        return None


@pytest.fixture
def public_root(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "SHARE_CARD_PUBLIC_ROOT", tmp_path)
    monkeypatch.setattr(settings, "SHARE_CARD_BUILD_ORIGIN", ORIGIN)
    meta_router.reset_manifest_cache()
    yield tmp_path
    meta_router.reset_manifest_cache()


@pytest.fixture
def client(public_root):
    app = FastAPI()
    app.include_router(meta_router.router, prefix="/api/meta")
    app.dependency_overrides[get_shared_trip_store] = lambda: FakeStore()
    return TestClient(app)


def _publish(root, *entries):
    write_manifest(manifest_path(root), build_manifest({entry.route_key: entry for entry in entries}))
    meta_router.reset_manifest_cache()


def test_metadata_uses_dynamic_card_without_manifest(client):
    resp = client.get("/api/meta", params={"path": "/"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["route_key"] == "root"
    assert data["canonical_url"] == f"{ORIGIN}/"
    assert data["og_image_source"] == "dynamic"
    assert data["og_image_url"].startswith(f"{ORIGIN}/api/og/site?")
    assert data["html_dir"] == "ltr"
    assert any(link["hreflang"] == "x-default" for link in data["alternate_links"])


def test_metadata_prefers_published_card(client, public_root):
    _publish(public_root, ManifestEntry("root", ROOT_CARD, "0123456789abcdef"))

    data = client.get("/api/meta", params={"path": "/"}).json()
    assert data["og_image_source"] == "static"
    assert data["og_image_url"] == f"{ORIGIN}{ROOT_CARD}"


def test_remaining_query_parameters_form_the_search(client):
    data = client.get("/api/meta", params=[("path", "/blog"), ("page", "2"), ("utm_source", "x")]).json()
    assert data["canonical_url"] == f"{ORIGIN}/blog?page=2"


def test_relative_path_is_rejected(client):
    resp = client.get("/api/meta", params={"path": "blog"})
    assert resp.status_code == 400


def test_tags_and_inject(client, public_root):
    _publish(public_root, ManifestEntry("root", ROOT_CARD, "0123456789abcdef"))

    tags = client.get("/api/meta/tags", params={"path": "/"})
    assert tags.status_code == 200
    assert tags.text.startswith("<title>")
    assert f'<meta property="og:image" content="{ORIGIN}{ROOT_CARD}" />' in tags.text

    shell = '<html lang="en"><head><title>Old</title></head><body></body></html>'
    injected = client.post("/api/meta/inject", json={"html": shell, "path": "/de/features", "search": "?utm_source=x"})
    assert injected.status_code == 200
    assert "<title>Old</title>" not in injected.text
    assert '<html lang="de" dir="ltr">' in injected.text
    assert f'<link rel="canonical" href="{ORIGIN}/de/features" />' in injected.text


def test_trip_metadata(client):
    resp = client.get("/api/meta/trip", params={"path": "/s/tok"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["canonicalUrl"] == f"{ORIGIN}/s/tok"
    assert data["displayPath"] == "/s/tok"
    assert data["ogImageUrl"].startswith(f"{ORIGIN}/api/og/trip?s=tok&u=1717000000000&mapStyle=clean")
    assert data["summary"]["title"] == "Coast Road"
    assert data["summary"]["monthsLabel"] == "June"


def test_trip_metadata_errors(client):
    assert client.get("/api/meta/trip", params={"path": "/s/unknown"}).status_code == 404
    assert client.get("/api/meta/trip", params={"path": "/trip/t1"}).status_code == 404
    assert client.get("/api/meta/trip", params={"path": "/blog"}).status_code == 400


def test_manifest_is_cached_between_reads(public_root):
    _publish(public_root, ManifestEntry("root", ROOT_CARD, "0123456789abcdef"))
    first = meta_router.get_manifest(now=1000.0)
    assert set(first.entries) == {"root"}

    manifest_path(public_root).unlink()
    assert meta_router.get_manifest(now=1000.0 + meta_router.MANIFEST_TTL_SECONDS - 1) is first
    assert meta_router.get_manifest(now=1000.0 + meta_router.MANIFEST_TTL_SECONDS) is None
