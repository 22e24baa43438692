"""
Content-addressed storage for precomputed share cards.

A card is stored as `<slug(routeKey)>-<digest>.png` where the digest covers
the render payload and the template revision, so an existing file with the
expected name is always a valid cache hit. `manifest.json` maps route keys
to their current asset.
"""
import hashlib
import json
import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional

from domain.models import CanonicalMetadata, ManifestEntry, ManifestFile, RenderPayload
from settings import settings

logger = logging.getLogger(__name__)

STATIC_DIR_RELATIVE = "images/og/site/generated"
PUBLIC_PREFIX = f"/{STATIC_DIR_RELATIVE}"
MANIFEST_FILE_NAME = "manifest.json"
IMAGE_WIDTH = 1200
IMAGE_HEIGHT = 630


def output_dir(public_root: Optional[Path] = None) -> Path:
    root = Path(public_root) if public_root is not None else settings.SHARE_CARD_PUBLIC_ROOT
    return root / STATIC_DIR_RELATIVE


def manifest_path(public_root: Optional[Path] = None) -> Path:
    return output_dir(public_root) / MANIFEST_FILE_NAME


def to_slug(value: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-") or "route"


def build_render_payload(meta: CanonicalMetadata) -> RenderPayload:
    params = meta.image_params
    return RenderPayload(
        route_key=meta.route_key,
        title=params.title,
        description=params.description,
        path=params.path,
        pill=params.pill,
        blog_image=params.blog_image,
        blog_revision=params.blog_rev,
        blog_tint=params.blog_tint,
        blog_tint_intensity=params.blog_tint_intensity,
    )


def _canonical_json(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def compute_payload_hash(payload: RenderPayload, template_revision: Optional[str] = None) -> str:
    """16 hex chars of sha256 over the ordered payload fields and the template revision."""
    revision = template_revision if template_revision is not None else settings.SHARE_CARD_TEMPLATE_REVISION
    document = {"templateRevision": revision, "payload": dict(payload.hash_items())}
    return hashlib.sha256(_canonical_json(document).encode("utf-8")).hexdigest()[:16]


def build_file_name(route_key: str, digest: str) -> str:
    return f"{to_slug(route_key)}-{digest}.png"


def entry_public_path(file_name: str) -> str:
    return f"{PUBLIC_PREFIX}/{file_name}"


def entry_path_to_file_name(entry_path: str) -> Optional[str]:
    """File name inside the output directory, or None for paths outside the public prefix."""
    prefix = f"{PUBLIC_PREFIX}/"
    if not entry_path.startswith(prefix):
        return None
    name = entry_path[len(prefix):]
    if not name or "/" in name or name in (".", ".."):
        return None
    return name


def build_manifest_revision(entries: Mapping[str, ManifestEntry]) -> str:
    rows = [[key, entries[key].asset_path, entries[key].content_hash] for key in sorted(entries)]
    return hashlib.sha256(_canonical_json(rows).encode("utf-8")).hexdigest()[:12]


def is_manifest_shape(data: Any) -> bool:
    if not isinstance(data, dict):
        return False
    if not isinstance(data.get("generatedAt"), str) or not isinstance(data.get("revision"), str):
        return False
    entries = data.get("entries")
    if not isinstance(entries, dict):
        return False
    for value in entries.values():
        if not isinstance(value, dict):
            return False
        if not isinstance(value.get("path"), str) or not isinstance(value.get("hash"), str):
            return False
    return True


def read_manifest(path: Path) -> Optional[ManifestFile]:
    """Load a manifest; missing, unreadable or malformed files read as None."""
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.warning("[share-cards] ignoring unreadable manifest %s: %s", path, exc)
        return None
    if not is_manifest_shape(data):
        logger.warning("[share-cards] ignoring manifest with invalid shape: %s", path)
        return None
    return ManifestFile.from_dict(data)


def build_manifest(entries: Mapping[str, ManifestEntry], generated_at: Optional[str] = None) -> ManifestFile:
    ordered = {key: entries[key] for key in sorted(entries)}
    return ManifestFile(
        generated_at=generated_at or _utc_timestamp(),
        revision=build_manifest_revision(ordered),
        entries=ordered,
    )


def write_manifest(path: Path, manifest: ManifestFile) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    text = json.dumps(manifest.to_dict(), indent=2, ensure_ascii=False)
    path.write_text(f"{text}\n", encoding="utf-8")


def merge_entries(
    existing: Optional[Mapping[str, ManifestEntry]],
    selected: Mapping[str, ManifestEntry],
) -> Dict[str, ManifestEntry]:
    """Filtered-build merge: keep existing entries, overwrite the selected ones."""
    merged: Dict[str, ManifestEntry] = dict(existing or {})
    merged.update(selected)
    return {key: merged[key] for key in sorted(merged)}


def remove_stale_entries(
    directory: Path,
    existing: Optional[ManifestFile],
    merged: Mapping[str, ManifestEntry],
    route_keys: Iterable[str],
) -> int:
    """Delete superseded files of in-filter routes whose asset path changed."""
    if existing is None:
        return 0
    removed = 0
    for route_key in route_keys:
        previous = existing.entries.get(route_key)
        current = merged.get(route_key)
        if previous is None or (current is not None and previous.asset_path == current.asset_path):
            continue
        file_name = entry_path_to_file_name(previous.asset_path)
        if not file_name:
            continue
        target = directory / file_name
        if target.exists():
            target.unlink()
            removed += 1
    return removed


def remove_orphans(directory: Path, expected_files: Iterable[str]) -> int:
    """Full-build sweep: delete every png the new entry set does not reference, and leftover temp files."""
    expected = set(expected_files)
    removed = 0
    for path in sorted([*directory.glob("*.png"), *directory.glob("*.png.tmp")]):
        if path.name in expected:
            continue
        path.unlink(missing_ok=True)
        removed += 1
    return removed


def _utc_timestamp() -> str:
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"
