"""
File-backed asset source for the compositor.

Precompute builds render from the public root directly; the asset server uses
the same path resolution to serve files over loopback HTTP.
"""
import logging
from pathlib import Path
from typing import List, Optional
from urllib.parse import urlsplit

logger = logging.getLogger(__name__)


class LocalAssetSource:
    """Reads fonts and images from files under a public root."""

    def __init__(self, root: Path):
        self.root = Path(root).resolve()

    @property
    def cache_key(self) -> str:
        return f"file://{self.root}"

    def resolve(self, path: str) -> Optional[Path]:
        """File for a public path, or None when it would escape the root."""
        request_path = urlsplit(path).path
        if not request_path.startswith("/") or ".." in request_path.split("/"):
            return None
        candidate = (self.root / request_path.lstrip("/")).resolve()
        if candidate != self.root and self.root not in candidate.parents:
            return None
        return candidate

    def fetch(self, path: str) -> Optional[bytes]:
        file_path = self.resolve(path)
        if file_path is None or not file_path.is_file():
            logger.debug("[share-cards] local asset missing: %s", path)
            return None
        try:
            return file_path.read_bytes()
        except OSError as exc:
            logger.debug("[share-cards] could not read %s: %s", file_path, exc)
            return None

    def fallback_font_urls(self) -> List[str]:
        return []

