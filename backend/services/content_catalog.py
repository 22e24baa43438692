"""
Read-only listing of the site's content: blog slugs, country names and
example trip templates.

Backed by files under the content root:
    content/blog/<slug>.md
    content/countries.json        ["Japan", "Portugal", ...]
    content/example_trips.json    [{"templateId": ..., "title": ..., ...}, ...]
"""
import json
import logging
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

from settings import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExampleTripCard:
    template_id: str
    title: str
    countries: List[str] = field(default_factory=list)
    duration_days: int = 0
    city_count: int = 0
    map_image_path: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExampleTripCard":
        countries = []
        for country in data.get("countries") or []:
            name = country.get("name") if isinstance(country, dict) else country
            if isinstance(name, str) and name.strip():
                countries.append(name.strip())
        return cls(
            template_id=str(data.get("templateId") or "").strip(),
            title=str(data.get("title") or "").strip(),
            countries=countries,
            duration_days=int(data.get("durationDays") or 0),
            city_count=int(data.get("cityCount") or 0),
            map_image_path=data.get("mapImagePath") or None,
        )


@dataclass
class ContentCatalog:
    blog_slugs: List[str] = field(default_factory=list)
    country_names: List[str] = field(default_factory=list)
    example_cards: List[ExampleTripCard] = field(default_factory=list)

    @property
    def example_template_ids(self) -> List[str]:
        return sorted({card.template_id for card in self.example_cards if card.template_id})

    def example_card(self, template_id: str) -> Optional[ExampleTripCard]:
        for card in self.example_cards:
            if card.template_id == template_id:
                return card
        return None


def _read_json_list(path: Path) -> List[Any]:
    if not path.exists():
        logger.warning("[content] %s not found; treating as empty", path)
        return []
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.warning("[content] failed to read %s: %s", path, exc)
        return []
    return data if isinstance(data, list) else []


def load_content_catalog(root: Path) -> ContentCatalog:
    """Build a catalog from a content directory. Missing files yield empty lists."""
    blog_dir = root / "blog"
    slugs = []
    if blog_dir.is_dir():
        slugs = sorted(
            {p.stem.strip() for p in blog_dir.glob("*.md") if p.stem.strip()}
        )

    countries = sorted(
        {name.strip() for name in _read_json_list(root / "countries.json") if isinstance(name, str) and name.strip()}
    )

    cards = [
        ExampleTripCard.from_dict(item)
        for item in _read_json_list(root / "example_trips.json")
        if isinstance(item, dict)
    ]
    return ContentCatalog(
        blog_slugs=slugs,
        country_names=countries,
        example_cards=[card for card in cards if card.template_id],
    )


@lru_cache(maxsize=4)
def _cached_catalog(root: str) -> ContentCatalog:
    return load_content_catalog(Path(root))


def get_content_catalog() -> ContentCatalog:
    """Catalog for the configured content root, loaded once per process."""
    return _cached_catalog(str(settings.SHARE_CARD_CONTENT_ROOT))
