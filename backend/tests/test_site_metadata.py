from services.content_catalog import ContentCatalog, ExampleTripCard
from services.page_copy import ADMIN_ROBOTS, DEFAULT_DESCRIPTION, DEFAULT_ROBOTS
from services.site_metadata import (
    SiteMetadataResolver,
    build_canonical_search,
    build_route_key,
    parse_path_info,
    resolve_site_metadata,
)
from domain.models import TextDirection
from settings import settings

ORIGIN = "https://example.test"


def test_root_resolves_to_root_key():
    meta = resolve_site_metadata("/", None, ORIGIN)
    assert meta.route_key == "root"
    assert meta.canonical_path == "/"
    assert meta.canonical_url == f"{ORIGIN}/"
    assert meta.page_title == settings.SITE_NAME
    assert meta.og_image_url.startswith(f"{ORIGIN}/api/og/site?")
    assert meta.og_logo_url == f"{ORIGIN}/favicon.svg"
    assert meta.robots == DEFAULT_ROBOTS


def test_localized_marketing_page():
    meta = resolve_site_metadata("/de/features", None, ORIGIN)
    assert meta.canonical_path == "/de/features"
    assert meta.html_lang == "de"
    assert meta.html_dir == TextDirection.LTR
    assert meta.page_title == f"Funktionen | {settings.SITE_NAME}"
    hreflangs = {link.hreflang: link.href for link in meta.alternate_links}
    assert hreflangs["de"] == f"{ORIGIN}/de/features"
    assert hreflangs["en"] == f"{ORIGIN}/features"
    assert hreflangs["x-default"] == f"{ORIGIN}/features"
    assert meta.image_params.lang == "de"


def test_rtl_locale_sets_direction():
    meta = resolve_site_metadata("/fa/features", None, ORIGIN)
    assert meta.html_lang == "fa"
    assert meta.html_dir == TextDirection.RTL
    assert meta.image_params.dir == "rtl"


def test_unknown_locale_falls_back_to_default():
    meta = resolve_site_metadata("/xx/features", None, ORIGIN)
    assert meta.html_lang == "en"
    assert meta.canonical_path == "/xx/features"
    assert meta.page_title == f"Features | {settings.SITE_NAME}"


def test_unknown_path_gets_humanized_title():
    meta = resolve_site_metadata("/some-random_page/", None, ORIGIN)
    assert meta.canonical_path == "/some-random_page"
    assert meta.og_title == f"Some Random Page | {settings.SITE_NAME}"
    assert meta.description == DEFAULT_DESCRIPTION
    assert meta.route_key == "some-random-page"


def test_untranslated_blog_post_canonicalizes_to_source_locale():
    meta = resolve_site_metadata("/de/blog/best-time-visit-japan", None, ORIGIN)
    assert meta.canonical_path == "/blog/best-time-visit-japan"
    assert [link.hreflang for link in meta.alternate_links] == ["en", "x-default"]
    params = meta.image_params
    assert params.pill == "BLOG"
    assert params.title == "Best Time to Visit Japan, Month by Month"
    assert params.blog_image == "/images/blog/best-time-visit-japan-og-vertical.jpg"
    assert params.blog_tint == "#6366f1"
    assert params.blog_tint_intensity == "60"
    assert params.blog_rev


def test_country_page_is_title_cased_and_localized():
    meta = resolve_site_metadata("/inspirations/country/new%20zealand", None, ORIGIN)
    assert meta.og_title == f"Travel to New Zealand | {settings.SITE_NAME}"
    assert meta.image_params.pill == "TRIP INSPIRATIONS"

    german = resolve_site_metadata("/de/inspirations/country/japan", None, ORIGIN)
    assert german.image_params.title == "Reise nach Japan"


def test_example_page_uses_trip_card_url():
    catalog = ContentCatalog(
        example_cards=[
            ExampleTripCard(
                template_id="portugal-coast",
                title="Atlantic Coast Road Trip",
                countries=["Portugal"],
                duration_days=10,
                city_count=4,
                map_image_path="/images/trip-maps/portugal-coast.png",
            )
        ]
    )
    meta = SiteMetadataResolver(catalog=catalog).resolve("/example/portugal-coast", origin=ORIGIN)
    assert meta.route_key == "example-portugal-coast"
    assert meta.image_params.pill == "EXAMPLE TRIP"
    assert meta.og_image_url.startswith(f"{ORIGIN}/api/og/trip?")
    assert "title=10D+Atlantic+Coast+Road+Trip" in meta.og_image_url
    assert "distance=4+cities" in meta.og_image_url
    assert "map=https%3A%2F%2Fexample.test%2Fimages%2Ftrip-maps%2Fportugal-coast.png" in meta.og_image_url
    assert "Portugal" in meta.description


def test_tool_routes_drop_locale_unless_localized():
    trip = resolve_site_metadata("/de/trip/abc", None, ORIGIN)
    assert trip.canonical_path == "/trip/abc"
    assert trip.html_lang == "en"
    assert trip.alternate_links == ()

    create = resolve_site_metadata("/de/create-trip", None, ORIGIN)
    assert create.canonical_path == "/de/create-trip"
    assert create.html_lang == "de"
    assert create.image_params.pill == "REISEPLANER"


def test_admin_pages_are_noindex():
    meta = resolve_site_metadata("/admin/users", None, ORIGIN)
    assert meta.robots == ADMIN_ROBOTS


def test_canonical_search_drops_tracking_keys():
    assert build_canonical_search("?page=2&utm_source=x&gclid=1&prefill=abc&debug=1") == "?page=2"
    assert build_canonical_search([("q", "a b"), ("fbclid", "z")]) == "?q=a+b"
    assert build_canonical_search({"utm_medium": "mail"}) == ""
    assert build_canonical_search(None) == ""

    meta = resolve_site_metadata("/blog", "page=2&utm_campaign=x", ORIGIN)
    assert meta.route_key == "blog-page-2"
    assert meta.canonical_url == f"{ORIGIN}/blog?page=2"


def test_route_key_slug_rules():
    assert build_route_key("/") == "root"
    assert build_route_key("/de/Blog/Äpfel") == "de-blog-pfel"
    assert build_route_key("/---") == "root"


def test_parse_path_info_splits_locale():
    assert parse_path_info("/de/features/") == ("/de/features", "de", "/features")
    assert parse_path_info("/de") == ("/de", "de", "/")
    assert parse_path_info("features") == ("/features", None, "/features")
