"""
Enumerate the static routes a batch build precomputes.

Targets are base paths (marketing pages, blog posts, country pages, example
templates) expanded across the supported left-to-right locales, filtered by
the build options and deduplicated by route key.
"""
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

from domain.models import CanonicalMetadata, TargetScope
from services.content_catalog import ContentCatalog, get_content_catalog
from services.site_metadata import (
    DEFAULT_LOCALE,
    RTL_LOCALES,
    SUPPORTED_LOCALES,
    SiteMetadataResolver,
    build_localized_path,
    encode_segment,
    get_resolver,
    parse_path_info,
)
from settings import settings

FULL_STATIC_BASE_PATHS = (
    "/",
    "/features",
    "/inspirations",
    "/inspirations/themes",
    "/inspirations/best-time-to-travel",
    "/inspirations/countries",
    "/inspirations/events-and-festivals",
    "/inspirations/weekend-getaways",
    "/updates",
    "/blog",
    "/pricing",
    "/faq",
    "/share-unavailable",
    "/login",
    "/contact",
    "/imprint",
    "/privacy",
    "/terms",
    "/cookies",
)
PRIORITY_STATIC_BASE_PATHS = ("/", "/blog", "/inspirations")
DEFAULT_SCOPE = TargetScope.PRIORITY
# RTL cards are always rendered on demand.
STATIC_LOCALES = tuple(locale for locale in SUPPORTED_LOCALES if locale not in RTL_LOCALES)


class ShareCardConfigError(ValueError):
    """Invalid build flags or filter values."""


@dataclass
class FilterOptions:
    """Raw build options, as parsed from the command line."""
    target_scope: Optional[str] = None
    locales: List[str] = field(default_factory=list)
    include_paths: List[str] = field(default_factory=list)
    include_prefixes: List[str] = field(default_factory=list)
    exclude_paths: List[str] = field(default_factory=list)
    exclude_prefixes: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class ResolvedFilters:
    target_scope: TargetScope
    locales: List[str]
    include_paths: List[str]
    include_prefixes: List[str]
    exclude_paths: List[str]
    exclude_prefixes: List[str]

    @property
    def has_filters(self) -> bool:
        return bool(
            self.locales
            or self.include_paths
            or self.include_prefixes
            or self.exclude_paths
            or self.exclude_prefixes
        )

    def summary(self) -> str:
        return (
            f"locales={','.join(self.locales) or '-'} "
            f"includePaths={len(self.include_paths)} "
            f"includePrefixes={len(self.include_prefixes)} "
            f"excludePaths={len(self.exclude_paths)} "
            f"excludePrefixes={len(self.exclude_prefixes)}"
        )


@dataclass(frozen=True)
class ShareCardTarget:
    pathname: str
    route_key: str
    metadata: CanonicalMetadata


def _scope_value(value: Optional[str]) -> Optional[TargetScope]:
    normalized = (value or "").strip().lower()
    if not normalized:
        return None
    try:
        return TargetScope(normalized)
    except ValueError:
        return None


def resolve_scope(explicit: Optional[str] = None) -> TargetScope:
    """Explicit option, then SHARE_CARD_TARGET_SCOPE, then the priority scope."""
    return _scope_value(explicit) or _scope_value(settings.SHARE_CARD_TARGET_SCOPE) or DEFAULT_SCOPE


def _split_values(values: Optional[Iterable[str]]) -> List[str]:
    tokens: List[str] = []
    for value in values or []:
        tokens.extend(token.strip() for token in value.split(","))
    return [token for token in tokens if token]


def normalize_path_value(value: str) -> str:
    trimmed = value.strip()
    if not trimmed:
        return ""
    return trimmed if trimmed.startswith("/") else f"/{trimmed}"


def normalize_prefix_value(value: str) -> str:
    normalized = normalize_path_value(value)
    if len(normalized) > 1 and normalized.endswith("/"):
        return normalized[:-1]
    return normalized


def _normalize(values: Optional[Iterable[str]], normalizer) -> List[str]:
    return sorted({normalizer(token) for token in _split_values(values)} - {""})


def resolve_filter_options(options: Optional[FilterOptions] = None) -> ResolvedFilters:
    options = options or FilterOptions()
    locales = [
        locale
        for locale in _normalize(options.locales, str.lower)
        if locale in SUPPORTED_LOCALES
    ]
    return ResolvedFilters(
        target_scope=resolve_scope(options.target_scope),
        locales=locales,
        include_paths=_normalize(options.include_paths, normalize_path_value),
        include_prefixes=_normalize(options.include_prefixes, normalize_prefix_value),
        exclude_paths=_normalize(options.exclude_paths, normalize_path_value),
        exclude_prefixes=_normalize(options.exclude_prefixes, normalize_prefix_value),
    )


def enumerate_pathnames(
    blog_slugs: Sequence[str],
    country_names: Sequence[str],
    example_template_ids: Sequence[str],
    scope: TargetScope = DEFAULT_SCOPE,
) -> List[str]:
    paths: List[str] = []
    seen = set()

    def add(path: str) -> None:
        if path not in seen:
            seen.add(path)
            paths.append(path)

    def add_localized(base_path: str) -> None:
        for locale in STATIC_LOCALES:
            add(build_localized_path(base_path, locale))

    base_paths = FULL_STATIC_BASE_PATHS if scope == TargetScope.FULL else PRIORITY_STATIC_BASE_PATHS
    for base_path in base_paths:
        add_localized(base_path)

    if scope == TargetScope.FULL:
        add_localized("/create-trip")
        for slug in blog_slugs:
            if slug.strip():
                add_localized(f"/blog/{encode_segment(slug)}")
        for country in country_names:
            if country.strip():
                add_localized(f"/inspirations/country/{encode_segment(country)}")

    for template_id in example_template_ids:
        if template_id.strip():
            add(build_localized_path(f"/example/{encode_segment(template_id)}", DEFAULT_LOCALE))

    return paths


def matches_filter_prefix(pathname: str, prefix: str) -> bool:
    if not prefix or prefix == "/":
        return True
    return pathname == prefix or pathname.startswith(f"{prefix}/")


def should_include(pathname: str, filters: ResolvedFilters) -> bool:
    _, path_locale, base_path = parse_path_info(pathname)
    candidates = [pathname]
    if filters.locales:
        if (path_locale or DEFAULT_LOCALE) not in filters.locales:
            return False
        # With a locale filter, path filters may name the unlocalized route.
        if base_path != pathname:
            candidates.append(base_path)

    if filters.include_paths and not any(c in filters.include_paths for c in candidates):
        return False
    if filters.include_prefixes and not any(
        matches_filter_prefix(c, prefix) for c in candidates for prefix in filters.include_prefixes
    ):
        return False
    if any(c in filters.exclude_paths for c in candidates):
        return False
    if any(matches_filter_prefix(c, prefix) for c in candidates for prefix in filters.exclude_prefixes):
        return False
    return True


def collect_pathnames(filters: ResolvedFilters, catalog: Optional[ContentCatalog] = None) -> List[str]:
    catalog = catalog or get_content_catalog()
    pathnames = enumerate_pathnames(
        blog_slugs=catalog.blog_slugs,
        country_names=catalog.country_names,
        example_template_ids=catalog.example_template_ids,
        scope=filters.target_scope,
    )
    return sorted(path for path in pathnames if should_include(path, filters))


def collect_targets(
    filters: ResolvedFilters,
    origin: Optional[str] = None,
    catalog: Optional[ContentCatalog] = None,
    resolver: Optional[SiteMetadataResolver] = None,
) -> List[ShareCardTarget]:
    """Resolve every selected path; the first path to claim a route key wins."""
    if resolver is None:
        resolver = SiteMetadataResolver(catalog=catalog) if catalog is not None else get_resolver()
    origin = origin or settings.SHARE_CARD_BUILD_ORIGIN
    by_route_key = {}
    for pathname in collect_pathnames(filters, catalog):
        meta = resolver.resolve(pathname, origin=origin)
        if meta.route_key not in by_route_key:
            by_route_key[meta.route_key] = ShareCardTarget(pathname, meta.route_key, meta)
    return [by_route_key[key] for key in sorted(by_route_key)]
