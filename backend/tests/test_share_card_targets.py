import json

import pytest

from domain.models import TargetScope
from services.content_catalog import ContentCatalog, ExampleTripCard, load_content_catalog
from services.share_card_targets import (
    FilterOptions,
    STATIC_LOCALES,
    collect_pathnames,
    collect_targets,
    enumerate_pathnames,
    matches_filter_prefix,
    resolve_filter_options,
    resolve_scope,
)
from settings import settings

ORIGIN = "https://example.test"

CATALOG = ContentCatalog(
    blog_slugs=["budget-travel-europe"],
    country_names=["Japan"],
    example_cards=[ExampleTripCard(template_id="italy-classic", title="Italian Grand Tour")],
)


def _filters(**kwargs):
    kwargs.setdefault("target_scope", "priority")
    return resolve_filter_options(FilterOptions(**kwargs))


def test_filter_values_are_normalized():
    filters = _filters(
        locales=["DE, xx", "de"],
        include_paths=["blog, /features/"],
        include_prefixes=["/blog/", "/"],
        exclude_paths=[" , "],
    )
    assert filters.locales == ["de"]
    assert filters.include_paths == ["/blog", "/features/"]
    assert filters.include_prefixes == ["/", "/blog"]
    assert filters.exclude_paths == []
    assert filters.has_filters
    assert not _filters().has_filters


def test_scope_resolution(monkeypatch):
    monkeypatch.setattr(settings, "SHARE_CARD_TARGET_SCOPE", "full")
    assert resolve_scope() == TargetScope.FULL
    assert resolve_scope("priority") == TargetScope.PRIORITY
    monkeypatch.setattr(settings, "SHARE_CARD_TARGET_SCOPE", "bogus")
    assert resolve_scope() == TargetScope.PRIORITY


def test_priority_scope_excludes_rtl_locales():
    paths = enumerate_pathnames([], [], ["italy-classic"], TargetScope.PRIORITY)
    assert len(paths) == 3 * len(STATIC_LOCALES) + 1
    assert "/" in paths and "/de" in paths and "/de/blog" in paths
    assert not any(p.startswith(("/fa", "/ur")) for p in paths)
    # Example templates are default locale only.
    assert "/example/italy-classic" in paths
    assert "/de/example/italy-classic" not in paths


def test_full_scope_adds_content_routes():
    paths = enumerate_pathnames(["budget-travel-europe"], ["New Zealand"], [], TargetScope.FULL)
    assert "/pricing" in paths
    assert "/de/create-trip" in paths
    assert "/pl/blog/budget-travel-europe" in paths
    assert "/inspirations/country/New%20Zealand" in paths


def test_locale_filter_only_yields_that_locale():
    targets = collect_targets(_filters(locales=["de"]), origin=ORIGIN, catalog=CATALOG)
    assert [t.route_key for t in targets] == ["de", "de-blog", "de-inspirations"]
    assert all(t.metadata.html_lang == "de" for t in targets)


def test_exclude_prefix_drops_blog_paths():
    filters = _filters(target_scope="full", exclude_prefixes=["/blog"])
    paths = collect_pathnames(filters, CATALOG)
    assert paths
    assert not any(matches_filter_prefix(p, "/blog") for p in paths)


def test_path_filters_match_base_path_under_locale_filter():
    filters = _filters(locales=["fr"], include_paths=["/blog"])
    assert collect_pathnames(filters, CATALOG) == ["/fr/blog"]
    # Without a locale filter only the literal path matches.
    assert collect_pathnames(_filters(include_paths=["/blog"]), CATALOG) == ["/blog"]


def test_root_prefix_matches_everything():
    assert matches_filter_prefix("/de/blog", "/")
    assert matches_filter_prefix("/blog", "/blog")
    assert not matches_filter_prefix("/blogger", "/blog")


def test_targets_are_deduplicated_and_sorted():
    targets = collect_targets(_filters(), origin=ORIGIN, catalog=CATALOG)
    keys = [t.route_key for t in targets]
    assert keys == sorted(set(keys))
    assert "root" in keys and "example-italy-classic" in keys


def test_load_content_catalog(tmp_path):
    (tmp_path / "blog").mkdir()
    (tmp_path / "blog" / "first-post.md").write_text("# First", encoding="utf-8")
    (tmp_path / "countries.json").write_text(json.dumps(["Peru", " ", "Japan", 3]), encoding="utf-8")
    (tmp_path / "example_trips.json").write_text(
        json.dumps([{"templateId": "peru", "title": "Andes", "countries": [{"name": "Peru"}], "durationDays": 9}, {"title": "no id"}]),
        encoding="utf-8",
    )
    catalog = load_content_catalog(tmp_path)
    assert catalog.blog_slugs == ["first-post"]
    assert catalog.country_names == ["Japan", "Peru"]
    assert catalog.example_template_ids == ["peru"]
    assert catalog.example_card("peru").countries == ["Peru"]
    assert catalog.example_card("missing") is None


@pytest.mark.parametrize("name", ["countries.json", "example_trips.json"])
def test_load_content_catalog_tolerates_bad_json(tmp_path, name):
    (tmp_path / name).write_text("{broken", encoding="utf-8")
    catalog = load_content_catalog(tmp_path)
    assert catalog.country_names == []
    assert catalog.example_cards == []
