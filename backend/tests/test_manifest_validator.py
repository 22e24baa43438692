import json

import pytest

from services.batch_build import ShareCardBuild
from services.content_catalog import ContentCatalog
from services.manifest_validator import ManifestValidationError, validate_manifest
from services.share_card_cache import manifest_path
from services.share_card_targets import FilterOptions, STATIC_LOCALES, resolve_filter_options

REVISION = "rev-1"


@pytest.fixture
def built_root(tmp_path, empty_catalog, priority_filters):
    ShareCardBuild(
        priority_filters,
        public_root=tmp_path,
        origin="https://example.test",
        catalog=empty_catalog,
        template_revision=REVISION,
        render=lambda task: b"png",
    ).run()
    return tmp_path


def _filters():
    return resolve_filter_options(FilterOptions(target_scope="priority"))


def _validate(root, revision=REVISION):
    return validate_manifest(root, filters=_filters(), catalog=ContentCatalog(), template_revision=revision)


def _rewrite(root, mutate):
    path = manifest_path(root)
    data = json.loads(path.read_text(encoding="utf-8"))
    mutate(data)
    path.write_text(json.dumps(data), encoding="utf-8")


def test_fresh_build_validates(built_root):
    assert _validate(built_root) == 3 * len(STATIC_LOCALES)


def test_missing_manifest(tmp_path):
    with pytest.raises(ManifestValidationError, match="Missing manifest: images/og/site/generated/manifest.json"):
        _validate(tmp_path)


def test_invalid_json(built_root):
    manifest_path(built_root).write_text("{not json", encoding="utf-8")
    with pytest.raises(ManifestValidationError, match="not valid JSON"):
        _validate(built_root)


def test_invalid_shape(built_root):
    _rewrite(built_root, lambda data: data.pop("revision"))
    with pytest.raises(ManifestValidationError, match="shape is invalid"):
        _validate(built_root)


def test_unexpected_route_key(built_root):
    _rewrite(built_root, lambda data: data["entries"].update(zz={"path": "/images/og/site/generated/zz.png", "hash": "0"}))
    with pytest.raises(ManifestValidationError, match="unexpected route keys: zz$"):
        _validate(built_root)


def test_missing_route_keys_are_truncated(built_root):
    def drop(data):
        for key in [key for key in data["entries"] if key.startswith(("de", "es", "fr"))]:
            del data["entries"][key]

    _rewrite(built_root, drop)
    with pytest.raises(ManifestValidationError) as excinfo:
        _validate(built_root)
    message = str(excinfo.value)
    assert message.startswith("Manifest is missing route keys: de, de-blog, de-inspirations, es,")
    assert message.endswith("...")
    assert message.count(",") == 7


def test_path_prefix(built_root):
    _rewrite(built_root, lambda data: data["entries"]["root"].update(path="/images/root.png"))
    with pytest.raises(ManifestValidationError, match="invalid path prefix: /images/root.png"):
        _validate(built_root)


def test_template_revision_change_is_a_hash_mismatch(built_root):
    with pytest.raises(ManifestValidationError, match="hash mismatch for "):
        _validate(built_root, revision="rev-2")


def test_asset_missing_on_disk(built_root):
    entry = json.loads(manifest_path(built_root).read_text(encoding="utf-8"))["entries"]["blog"]
    (built_root / entry["path"].lstrip("/")).unlink()
    with pytest.raises(ManifestValidationError, match="missing on disk for blog"):
        _validate(built_root)
