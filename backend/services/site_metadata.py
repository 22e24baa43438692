"""
Canonical page metadata for share cards and head tags.

`resolve_site_metadata(path, query)` is total and does no I/O beyond the
content catalog it is handed: unknown locales fall back to the default
locale and unknown paths get a humanized title with the site description.

Page definitions are looked up through an ordered list of
(matcher, resolver) rules over the injectable copy tables in `page_copy`.
"""
import re
from dataclasses import replace
from typing import Callable, Iterable, List, Mapping, Optional, Sequence, Tuple, Union
from urllib.parse import parse_qsl, quote, unquote, urlencode

from domain.models import AlternateLink, CanonicalMetadata, SiteCardParams, TextDirection
from services.content_catalog import ContentCatalog, get_content_catalog
from services.page_copy import (
    ADMIN_ROBOTS,
    BLOG_IMAGE_REVISION,
    DEFAULT_BLOG_TINT,
    DEFAULT_BLOG_TINT_INTENSITY,
    DEFAULT_COPY,
    DEFAULT_ROBOTS,
    PageDefinition,
    SiteCopy,
    apply_app_name,
    blog_image_path,
)
from settings import settings

SUPPORTED_LOCALES: Tuple[str, ...] = ("en", "es", "de", "fr", "pt", "ru", "it", "pl", "ko", "fa", "ur")
DEFAULT_LOCALE = "en"
RTL_LOCALES = frozenset({"fa", "ur"})

MARKETING_PATH_PATTERNS = [
    re.compile(pattern)
    for pattern in (
        r"^/$",
        r"^/features$",
        r"^/inspirations$",
        r"^/inspirations/themes$",
        r"^/inspirations/best-time-to-travel$",
        r"^/inspirations/countries$",
        r"^/inspirations/events-and-festivals$",
        r"^/inspirations/weekend-getaways$",
        r"^/inspirations/country/[^/]+$",
        r"^/updates$",
        r"^/blog$",
        r"^/blog/[^/]+$",
        r"^/pricing$",
        r"^/faq$",
        r"^/share-unavailable$",
        r"^/login$",
        r"^/contact$",
        r"^/imprint$",
        r"^/privacy$",
        r"^/terms$",
        r"^/cookies$",
    )
]
TOOL_PATH_PREFIXES = ("/create-trip", "/trip", "/s", "/example", "/admin", "/api")
# Tool routes that keep a per-locale canonical.
LOCALIZED_TOOL_PATHS = frozenset({"/create-trip"})

_BLOG_RE = re.compile(r"^/blog/([^/]+)$")
_COUNTRY_RE = re.compile(r"^/inspirations/country/([^/]+)$")
_EXAMPLE_RE = re.compile(r"^/example/([^/]+)$")
_DROPPED_QUERY_KEYS = frozenset({"prefill", "debug", "gclid", "fbclid"})

QueryInput = Union[None, str, Mapping[str, str], Iterable[Tuple[str, str]]]


def text_direction(locale: str) -> TextDirection:
    return TextDirection.RTL if locale in RTL_LOCALES else TextDirection.LTR


def is_supported_locale(value: Optional[str]) -> bool:
    return bool(value) and value in SUPPORTED_LOCALES


def matches_prefix(path: str, prefix: str) -> bool:
    return path == prefix or path.startswith(f"{prefix}/")


def is_tool_path(base_path: str) -> bool:
    return any(matches_prefix(base_path, prefix) for prefix in TOOL_PATH_PREFIXES)


def is_marketing_path(base_path: str) -> bool:
    if is_tool_path(base_path):
        return False
    return any(pattern.match(base_path) for pattern in MARKETING_PATH_PATTERNS)


def normalize_path(path: str) -> str:
    raw = path or "/"
    if not raw.startswith("/"):
        raw = f"/{raw}"
    if len(raw) > 1 and raw.endswith("/"):
        raw = raw[:-1]
    return raw


def parse_path_info(path: str) -> Tuple[str, Optional[str], str]:
    """Split a request path into (normalized path, locale from path, base path)."""
    normalized = normalize_path(path)
    segments = [segment for segment in normalized.split("/") if segment]
    maybe_locale = segments[0] if segments else None
    if is_supported_locale(maybe_locale):
        return normalized, maybe_locale, normalize_path("/" + "/".join(segments[1:]))
    return normalized, None, normalized


def build_localized_path(base_path: str, locale: str) -> str:
    if locale == DEFAULT_LOCALE:
        return base_path
    if base_path == "/":
        return f"/{locale}"
    return f"/{locale}{base_path}"


def locale_for_path(path: str) -> str:
    _, locale, _ = parse_path_info(path)
    return locale or DEFAULT_LOCALE


def humanize_path(path: str) -> str:
    if path == "/":
        return settings.SITE_NAME
    segments = [segment for segment in path.split("/") if segment]
    leaf = segments[-1] if segments else "Page"
    words = [word[:1].upper() + word[1:].lower() for word in re.split(r"[-_]+", leaf) if word]
    return " ".join(words) if words else "Page"


def _absolute(origin: str, path: str) -> str:
    return origin.rstrip("/") + path


def build_canonical_search(query: QueryInput) -> str:
    """Keep the query string minus tracking and debug parameters."""
    if query is None:
        return ""
    if isinstance(query, str):
        pairs = parse_qsl(query.lstrip("?"), keep_blank_values=True)
    elif isinstance(query, Mapping):
        pairs = list(query.items())
    else:
        pairs = list(query)
    kept = [
        (key, value)
        for key, value in pairs
        if key not in _DROPPED_QUERY_KEYS and not key.startswith("utm_")
    ]
    return f"?{urlencode(kept)}" if kept else ""


def build_route_key(canonical_path: str, canonical_search: str = "") -> str:
    joined = f"{canonical_path}{canonical_search}"
    if joined in ("", "/"):
        return "root"
    if joined.startswith("/"):
        joined = joined[1:]
    slug = re.sub(r"[^a-z0-9]+", "-", joined.lower()).strip("-")
    return slug or "root"


def build_alternate_links(origin: str, base_path: str, locales: Sequence[str]) -> List[AlternateLink]:
    links = [
        AlternateLink(hreflang=locale, href=_absolute(origin, build_localized_path(base_path, locale)))
        for locale in locales
    ]
    if DEFAULT_LOCALE in locales or not locales:
        x_default = DEFAULT_LOCALE
    else:
        x_default = locales[0]
    links.append(
        AlternateLink(hreflang="x-default", href=_absolute(origin, build_localized_path(base_path, x_default)))
    )
    return links


def build_site_card_url(origin: str, params: SiteCardParams) -> str:
    return f"{_absolute(origin, '/api/og/site')}?{urlencode(params.to_query())}"


def build_example_card_url(origin: str, route_path: str, page: PageDefinition) -> Optional[str]:
    """Trip card URL for example templates; they preview as a trip, not a site card."""
    if not page.example_template_id:
        return None
    days = page.example_duration_days
    cities = page.example_city_count
    query = [
        ("title", f"{days}D {page.title}" if days > 0 else page.title),
        ("weeks", f"{days} days" if days > 0 else "Sample itinerary"),
        ("months", "Example template"),
        ("distance", f"{cities} cities" if cities > 0 else "Template route"),
        ("path", route_path),
    ]
    if page.example_map_image:
        query.append(("map", _absolute(origin, page.example_map_image)))
    return f"{_absolute(origin, '/api/og/trip')}?{urlencode(query)}"


def _finalize(page: PageDefinition) -> PageDefinition:
    return replace(
        page,
        title=apply_app_name(page.title),
        description=apply_app_name(page.description),
        og_title=apply_app_name(page.og_title) if page.og_title else None,
        og_description=apply_app_name(page.og_description) if page.og_description else None,
        pill=apply_app_name(page.pill) if page.pill else None,
    )


def _title_case(value: str) -> str:
    words = [word for word in re.split(r"[-_\s]+", value) if word]
    return " ".join(word[:1].upper() + word[1:].lower() for word in words)


Matcher = Callable[[str], Optional[re.Match]]
PageResolver = Callable[[str, "re.Match", str], PageDefinition]


class SiteMetadataResolver:
    """Resolve a request path to `CanonicalMetadata` from copy tables."""

    def __init__(
        self,
        copy: SiteCopy = DEFAULT_COPY,
        catalog: Optional[ContentCatalog] = None,
    ) -> None:
        self.copy = copy
        self._catalog = catalog
        # Order matters: first matching rule wins.
        self._rules: List[Tuple[Matcher, PageResolver]] = [
            (self._match_exact, self._exact_page),
            (re.compile(r"^/admin(?:/.*)?$").match, self._admin_page),
            (_BLOG_RE.match, self._blog_page),
            (_COUNTRY_RE.match, self._country_page),
            (_EXAMPLE_RE.match, self._example_page),
            (re.compile(r"^/inspirations(?:/.*)?$").match, self._inspirations_page),
        ]

    @property
    def catalog(self) -> ContentCatalog:
        if self._catalog is None:
            self._catalog = get_content_catalog()
        return self._catalog

    # --- rules ---

    def _match_exact(self, base_path: str) -> Optional[re.Match]:
        if base_path in self.copy.pages:
            return re.match(r".*", base_path)
        return None

    def _exact_page(self, base_path: str, match: re.Match, locale: str) -> PageDefinition:
        page = self.copy.pages[base_path]
        override = self.copy.localized_pages.get(base_path, {}).get(locale)
        if override:
            page = replace(page, **override)
        return page

    def _admin_page(self, base_path: str, match: re.Match, locale: str) -> PageDefinition:
        return PageDefinition(
            title="Admin Dashboard",
            description="Internal {{appName}} admin workspace.",
            robots=ADMIN_ROBOTS,
        )

    def _blog_page(self, base_path: str, match: re.Match, locale: str) -> PageDefinition:
        slug = unquote(match.group(1))
        blog = self.copy.blogs.get(slug)
        return PageDefinition(
            title=blog.title if blog else humanize_path(base_path),
            description=blog.description if blog else "Read this article on the {{appName}} blog.",
            og_title=blog.og_title if blog else None,
            og_description=blog.og_description if blog else None,
            pill="BLOG",
            blog_image=blog_image_path(slug),
            blog_tint=DEFAULT_BLOG_TINT,
            blog_tint_intensity=DEFAULT_BLOG_TINT_INTENSITY,
        )

    def _country_page(self, base_path: str, match: re.Match, locale: str) -> PageDefinition:
        country = _title_case(unquote(match.group(1)))
        templates = self.copy.country_pages
        title, description, pill = templates.get(locale) or templates[DEFAULT_LOCALE]
        return PageDefinition(
            title=title.format(country=country),
            description=description.format(country=country),
            pill=pill,
        )

    def _example_page(self, base_path: str, match: re.Match, locale: str) -> Optional[PageDefinition]:
        template_id = unquote(match.group(1))
        card = self.catalog.example_card(template_id)
        if card is None:
            return None
        country_label = ", ".join(card.countries[:3])
        if country_label:
            description = f"Preview this sample itinerary across {country_label} and personalize it in {{{{appName}}}}."
        else:
            description = "Preview this sample itinerary and personalize it in {{appName}}."
        return PageDefinition(
            title=card.title,
            description=description,
            og_description=f"Open the {card.title} example trip template and customize your own itinerary in {{{{appName}}}}.",
            pill="EXAMPLE TRIP",
            robots=DEFAULT_ROBOTS,
            example_template_id=template_id,
            example_duration_days=card.duration_days,
            example_city_count=card.city_count,
            example_map_image=card.map_image_path,
        )

    def _inspirations_page(self, base_path: str, match: re.Match, locale: str) -> PageDefinition:
        return PageDefinition(
            title=humanize_path(base_path),
            description="Explore curated trip ideas and travel inspiration on {{appName}}.",
            pill="TRIP INSPIRATIONS",
        )

    def page_definition(self, base_path: str, locale: str) -> PageDefinition:
        for matcher, resolver in self._rules:
            match = matcher(base_path)
            if match is None:
                continue
            page = resolver(base_path, match, locale)
            if page is not None:
                return _finalize(page)
        return _finalize(
            PageDefinition(title=humanize_path(base_path), description=self.copy.default_description)
        )

    def blog_locales(self, base_path: str) -> Optional[List[str]]:
        match = _BLOG_RE.match(base_path)
        if not match:
            return None
        return list(self.copy.blog_locales.get(unquote(match.group(1)), [DEFAULT_LOCALE]))

    # --- entry point ---

    def resolve(
        self,
        path: str,
        query: QueryInput = None,
        origin: Optional[str] = None,
    ) -> CanonicalMetadata:
        origin = (origin or settings.SHARE_CARD_BUILD_ORIGIN).rstrip("/")
        normalized, path_locale, base_path = parse_path_info(path)
        canonical_search = build_canonical_search(query)
        blog_locales = self.blog_locales(base_path)

        locale = DEFAULT_LOCALE
        canonical_path = normalized
        alternates: List[AlternateLink] = []

        if is_marketing_path(base_path):
            locale = path_locale or DEFAULT_LOCALE
            if blog_locales and locale not in blog_locales:
                # Untranslated article: canonicalize to the source locale.
                canonical_path = build_localized_path(base_path, DEFAULT_LOCALE)
                alternates = build_alternate_links(origin, base_path, blog_locales)
            else:
                canonical_path = build_localized_path(base_path, locale)
                alternates = build_alternate_links(
                    origin, base_path, blog_locales or list(SUPPORTED_LOCALES)
                )
        elif path_locale and is_tool_path(base_path):
            if base_path in LOCALIZED_TOOL_PATHS:
                locale = path_locale
                canonical_path = build_localized_path(base_path, locale)
                alternates = build_alternate_links(origin, base_path, list(SUPPORTED_LOCALES))
            else:
                canonical_path = base_path

        page = self.page_definition(base_path, locale)
        site_name = settings.SITE_NAME
        page_title = site_name if page.title == site_name else f"{page.title} | {site_name}"
        og_title_raw = page.og_title or page.title
        og_description = page.og_description or page.description
        og_title = site_name if og_title_raw == site_name else f"{og_title_raw} | {site_name}"
        direction = text_direction(locale)
        route_path = canonical_path + canonical_search

        params = SiteCardParams(
            title=og_title_raw,
            description=og_description,
            path=route_path,
            pill=page.pill or "",
            lang=locale,
            dir=direction.value,
        )
        if page.blog_image:
            intensity = page.blog_tint_intensity
            params = replace(
                params,
                blog_image=page.blog_image,
                blog_rev=BLOG_IMAGE_REVISION,
                blog_tint=page.blog_tint or DEFAULT_BLOG_TINT,
                blog_tint_intensity=str(DEFAULT_BLOG_TINT_INTENSITY if intensity is None else intensity),
            )

        og_image_url = build_example_card_url(origin, route_path, page) or build_site_card_url(origin, params)

        return CanonicalMetadata(
            route_key=build_route_key(canonical_path, canonical_search),
            canonical_path=canonical_path,
            canonical_search=canonical_search,
            page_title=page_title,
            description=page.description,
            og_title=og_title,
            og_description=og_description,
            canonical_url=_absolute(origin, route_path),
            og_image_url=og_image_url,
            image_params=params,
            og_logo_url=_absolute(origin, "/favicon.svg"),
            robots=page.robots or DEFAULT_ROBOTS,
            alternate_links=tuple(alternates),
            html_lang=locale,
            html_dir=direction,
        )


_default_resolver: Optional[SiteMetadataResolver] = None


def get_resolver() -> SiteMetadataResolver:
    global _default_resolver
    if _default_resolver is None:
        _default_resolver = SiteMetadataResolver()
    return _default_resolver


def resolve_site_metadata(path: str, query: QueryInput = None, origin: Optional[str] = None) -> CanonicalMetadata:
    return get_resolver().resolve(path, query, origin)


def localized_paths(base_path: str, locales: Iterable[str] = SUPPORTED_LOCALES) -> List[str]:
    return [build_localized_path(base_path, locale) for locale in locales]


def encode_segment(value: str) -> str:
    return quote(value.strip(), safe="")
