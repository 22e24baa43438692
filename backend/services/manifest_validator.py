"""
Read-only check that the committed manifest matches the current targets.

Targets and digests are recomputed from scratch; any difference means the
share cards need a rebuild.
"""
import json
import logging
from pathlib import Path
from typing import Iterable, Optional

from services.content_catalog import ContentCatalog
from services.share_card_cache import (
    MANIFEST_FILE_NAME,
    PUBLIC_PREFIX,
    STATIC_DIR_RELATIVE,
    build_file_name,
    build_render_payload,
    compute_payload_hash,
    entry_public_path,
    is_manifest_shape,
    manifest_path,
)
from services.share_card_targets import ResolvedFilters, collect_targets, resolve_filter_options
from settings import settings

logger = logging.getLogger(__name__)

MAX_LISTED_KEYS = 8


class ManifestValidationError(Exception):
    """The manifest is missing, malformed or out of date."""


def _list_keys(keys: Iterable[str]) -> str:
    keys = sorted(keys)
    listed = ", ".join(keys[:MAX_LISTED_KEYS])
    return f"{listed}..." if len(keys) > MAX_LISTED_KEYS else listed


def validate_manifest(
    public_root: Optional[Path] = None,
    filters: Optional[ResolvedFilters] = None,
    catalog: Optional[ContentCatalog] = None,
    template_revision: Optional[str] = None,
) -> int:
    """
    Validate the manifest under `public_root` and return the number of entries checked.

    Raises ManifestValidationError on the first problem found.
    """
    root = Path(public_root) if public_root is not None else settings.SHARE_CARD_PUBLIC_ROOT
    path = manifest_path(root)
    relative = f"{STATIC_DIR_RELATIVE}/{MANIFEST_FILE_NAME}"

    if not path.exists():
        raise ManifestValidationError(f"Missing manifest: {relative}. Run the share card build first.")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise ManifestValidationError(f"Manifest is not valid JSON: {exc}") from exc
    if not is_manifest_shape(data):
        raise ManifestValidationError("Manifest shape is invalid.")

    entries = data["entries"]
    targets = collect_targets(filters or resolve_filter_options(), catalog=catalog)
    expected_keys = {target.route_key for target in targets}

    missing = expected_keys - set(entries)
    if missing:
        raise ManifestValidationError(f"Manifest is missing route keys: {_list_keys(missing)}")
    unexpected = set(entries) - expected_keys
    if unexpected:
        raise ManifestValidationError(f"Manifest contains unexpected route keys: {_list_keys(unexpected)}")

    for target in targets:
        entry = entries[target.route_key]
        if not entry["path"].startswith(f"{PUBLIC_PREFIX}/"):
            raise ManifestValidationError(
                f"Manifest entry for {target.route_key} has invalid path prefix: {entry['path']}"
            )

        digest = compute_payload_hash(build_render_payload(target.metadata), template_revision)
        expected_path = entry_public_path(build_file_name(target.route_key, digest))
        if entry["hash"] != digest:
            raise ManifestValidationError(
                f"Manifest hash mismatch for {target.route_key}: expected {digest}, got {entry['hash']}"
            )
        if entry["path"] != expected_path:
            raise ManifestValidationError(
                f"Manifest path mismatch for {target.route_key}: expected {expected_path}, got {entry['path']}"
            )
        if not (root / entry["path"].lstrip("/")).is_file():
            raise ManifestValidationError(
                f"Manifest asset is missing on disk for {target.route_key}: {entry['path']}"
            )

    logger.info("[share-cards:validate] validated %s route entries", len(targets))
    return len(targets)
