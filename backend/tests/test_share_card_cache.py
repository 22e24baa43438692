import json
from dataclasses import replace

import pytest

from domain.models import ManifestEntry, RenderPayload
from services.share_card_cache import (
    build_file_name,
    build_manifest,
    build_manifest_revision,
    compute_payload_hash,
    entry_path_to_file_name,
    entry_public_path,
    is_manifest_shape,
    merge_entries,
    read_manifest,
    remove_orphans,
    remove_stale_entries,
    to_slug,
    write_manifest,
)

PAYLOAD = RenderPayload(
    route_key="de-blog",
    title="Blog",
    description="Guides and tips",
    path="/de/blog",
    pill="BLOG",
)


def _entry(key, digest):
    return ManifestEntry(key, entry_public_path(build_file_name(key, digest)), digest)


def test_hash_is_deterministic():
    digest = compute_payload_hash(PAYLOAD, "rev-1")
    assert digest == compute_payload_hash(PAYLOAD, "rev-1")
    assert len(digest) == 16
    assert all(ch in "0123456789abcdef" for ch in digest)


@pytest.mark.parametrize(
    "field,value",
    [
        ("route_key", "de-blog-2"),
        ("title", "Blog!"),
        ("description", "Other"),
        ("path", "/de/blog?page=2"),
        ("pill", "NEWS"),
        ("blog_image", "/images/blog/x.jpg"),
        ("blog_revision", "2"),
        ("blog_tint", "#000000"),
        ("blog_tint_intensity", "10"),
    ],
)
def test_hash_changes_with_any_field(field, value):
    assert compute_payload_hash(replace(PAYLOAD, **{field: value}), "rev-1") != compute_payload_hash(PAYLOAD, "rev-1")


def test_hash_changes_with_template_revision():
    assert compute_payload_hash(PAYLOAD, "rev-1") != compute_payload_hash(PAYLOAD, "rev-2")


def test_hash_ignores_construction_order():
    fields = {
        "pill": "BLOG",
        "path": "/de/blog",
        "description": "Guides and tips",
        "title": "Blog",
        "route_key": "de-blog",
    }
    assert compute_payload_hash(RenderPayload(**fields), "rev-1") == compute_payload_hash(PAYLOAD, "rev-1")


def test_file_names_and_public_paths():
    assert build_file_name("de-blog", "abc") == "de-blog-abc.png"
    assert to_slug("!!!") == "route"
    assert entry_public_path("x.png") == "/images/og/site/generated/x.png"
    assert entry_path_to_file_name("/images/og/site/generated/x.png") == "x.png"
    assert entry_path_to_file_name("/images/og/site/generated/../x.png") is None
    assert entry_path_to_file_name("/elsewhere/x.png") is None


def test_revision_is_stable_under_insertion_order():
    a, b = _entry("a", "1111"), _entry("b", "2222")
    assert build_manifest_revision({"a": a, "b": b}) == build_manifest_revision({"b": b, "a": a})
    assert len(build_manifest_revision({"a": a})) == 12
    assert build_manifest_revision({"a": a}) != build_manifest_revision({"a": _entry("a", "3333")})


def test_manifest_shape():
    good = {"generatedAt": "x", "revision": "y", "entries": {"root": {"path": "/p.png", "hash": "h"}}}
    assert is_manifest_shape(good)
    assert not is_manifest_shape([])
    assert not is_manifest_shape({**good, "revision": 3})
    assert not is_manifest_shape({**good, "entries": []})
    assert not is_manifest_shape({**good, "entries": {"root": {"path": "/p.png"}}})


def test_write_then_read_manifest(tmp_path):
    path = tmp_path / "manifest.json"
    manifest = build_manifest({"b": _entry("b", "2222"), "a": _entry("a", "1111")}, generated_at="2026-01-01T00:00:00.000Z")
    write_manifest(path, manifest)

    text = path.read_text(encoding="utf-8")
    assert text.endswith("}\n")
    assert text.startswith('{\n  "generatedAt"')
    assert list(json.loads(text)["entries"]) == ["a", "b"]

    loaded = read_manifest(path)
    assert loaded.revision == manifest.revision
    assert loaded.entries["a"].content_hash == "1111"


def test_unreadable_manifest_reads_as_absent(tmp_path):
    path = tmp_path / "manifest.json"
    assert read_manifest(path) is None
    path.write_text("{not json", encoding="utf-8")
    assert read_manifest(path) is None
    path.write_text('{"entries": {}}', encoding="utf-8")
    assert read_manifest(path) is None


def test_merge_keeps_entries_outside_filter():
    existing = {"a": _entry("a", "1111"), "b": _entry("b", "2222")}
    merged = merge_entries(existing, {"b": _entry("b", "9999"), "c": _entry("c", "3333")})
    assert list(merged) == ["a", "b", "c"]
    assert merged["a"] == existing["a"]
    assert merged["b"].content_hash == "9999"


def test_remove_stale_entries_deletes_superseded_files(tmp_path):
    old_a, old_b = _entry("a", "1111"), _entry("b", "2222")
    for entry in (old_a, old_b):
        (tmp_path / entry_path_to_file_name(entry.asset_path)).write_bytes(b"png")
    existing = build_manifest({"a": old_a, "b": old_b})
    merged = merge_entries(existing.entries, {"a": _entry("a", "9999")})

    removed = remove_stale_entries(tmp_path, existing, merged, ["a"])
    assert removed == 1
    assert not (tmp_path / "a-1111.png").exists()
    assert (tmp_path / "b-2222.png").exists()
    assert remove_stale_entries(tmp_path, None, merged, ["a"]) == 0


def test_remove_orphans(tmp_path):
    for name in ("keep-1.png", "old-1.png", "old-2.png"):
        (tmp_path / name).write_bytes(b"png")
    (tmp_path / "manifest.json").write_text("{}", encoding="utf-8")

    assert remove_orphans(tmp_path, ["keep-1.png"]) == 2
    assert sorted(p.name for p in tmp_path.iterdir()) == ["keep-1.png", "manifest.json"]


def test_remove_orphans_clears_leftover_temp_files(tmp_path):
    (tmp_path / "keep-1.png").write_bytes(b"png")
    (tmp_path / "keep-1.png.tmp").write_bytes(b"partial")
    (tmp_path / "old-1.png.tmp").write_bytes(b"partial")

    assert remove_orphans(tmp_path, ["keep-1.png"]) == 2
    assert sorted(p.name for p in tmp_path.iterdir()) == ["keep-1.png"]
