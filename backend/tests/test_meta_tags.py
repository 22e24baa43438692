from dataclasses import replace

from domain.models import ManifestEntry, ManifestFile
from services.meta_tags import build_meta_tags, escape_html, inject_meta_tags, resolve_og_image_url
from services.site_metadata import resolve_site_metadata

ORIGIN = "https://example.test"

SHELL = """<!doctype html>
<html lang="en" dir="ltr">
<head>
<meta charset="utf-8" />
<title>Old title</title>
<meta name="description" content="old" />
<meta property="og:title" content="old" />
<meta name="twitter:card" content="summary" />
<link rel="canonical" href="https://old.test/" />
</head>
<body><div id="root"></div></body>
</html>
"""


def _manifest(*entries):
    return ManifestFile(
        generated_at="2026-01-01T00:00:00.000Z",
        revision="abc",
        entries={entry.route_key: entry for entry in entries},
    )


def test_build_meta_tags_escapes_values():
    meta = replace(resolve_site_metadata("/", None, ORIGIN), page_title='Trips & "Routes"')
    tags = build_meta_tags(meta)
    assert "<title>Trips &amp; &quot;Routes&quot;</title>" in tags
    assert '<meta name="twitter:card" content="summary_large_image" />' in tags
    assert '<meta property="og:image:width" content="1200" />' in tags
    assert escape_html("<a href='x'>") == "&lt;a href=&#x27;x&#x27;&gt;"


def test_inject_replaces_seo_tags_and_html_attributes():
    meta = resolve_site_metadata("/fa/features", None, ORIGIN)
    html = inject_meta_tags(SHELL, meta)
    assert html.count("<title>") == 1
    assert "Old title" not in html
    assert "https://old.test/" not in html
    assert 'content="summary"' not in html
    assert '<html lang="fa" dir="rtl">' in html
    assert '<meta charset="utf-8" />' in html
    assert html.index("<title>") > html.index("<head>")


def test_inject_adds_missing_html_attributes():
    meta = resolve_site_metadata("/de/features", None, ORIGIN)
    html = inject_meta_tags("<html><head></head><body></body></html>", meta)
    assert '<html lang="de" dir="ltr">' in html


def test_inject_without_head_returns_input():
    meta = resolve_site_metadata("/", None, ORIGIN)
    assert inject_meta_tags("<p>fragment</p>", meta) == "<p>fragment</p>"


def test_static_asset_used_when_manifest_has_entry():
    meta = resolve_site_metadata("/features", None, ORIGIN)
    manifest = _manifest(ManifestEntry("features", "/images/og/site/generated/features-0123.png", "0123"))
    url, source = resolve_og_image_url(meta, manifest, ORIGIN)
    assert source == "static"
    assert url == f"{ORIGIN}/images/og/site/generated/features-0123.png"


def test_dynamic_fallbacks():
    manifest = _manifest(
        ManifestEntry("features", "/images/og/site/generated/features-0123.jpg", "0123"),
        ManifestEntry("fa-features", "/images/og/site/generated/fa-features-0123.png", "0123"),
    )
    features = resolve_site_metadata("/features", None, ORIGIN)
    assert resolve_og_image_url(features, manifest, ORIGIN) == (features.og_image_url, "dynamic")

    rtl = resolve_site_metadata("/fa/features", None, ORIGIN)
    assert resolve_og_image_url(rtl, manifest, ORIGIN)[1] == "dynamic"

    missing = resolve_site_metadata("/pricing", None, ORIGIN)
    assert resolve_og_image_url(missing, manifest, ORIGIN)[1] == "dynamic"
    assert resolve_og_image_url(missing, None, ORIGIN)[1] == "dynamic"
