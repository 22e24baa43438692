"""
Head tag rendering for resolved page metadata.
"""
import re
from html import escape
from typing import Optional, Tuple

from domain.models import CanonicalMetadata, ManifestFile, TextDirection
from services.share_card_cache import PUBLIC_PREFIX
from settings import settings

_SEO_TAG_PATTERNS = [
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"<title>[\s\S]*?</title>",
        r"<meta[^>]+name=[\"']description[\"'][^>]*>",
        r"<meta[^>]+name=[\"']robots[\"'][^>]*>",
        r"<meta[^>]+property=[\"']og:[^\"']+[\"'][^>]*>",
        r"<meta[^>]+name=[\"']twitter:[^\"']+[\"'][^>]*>",
        r"<meta[^>]+http-equiv=[\"']content-language[\"'][^>]*>",
        r"<link[^>]+rel=[\"']canonical[\"'][^>]*>",
        r"<link[^>]+rel=[\"']alternate[\"'][^>]+hreflang=[\"'][^\"']+[\"'][^>]*>",
    )
]
_HEAD_OPEN_RE = re.compile(r"(<head[^>]*>)", re.IGNORECASE)
_HEAD_CLOSE_RE = re.compile(r"</head>", re.IGNORECASE)
_HTML_TAG_RE = re.compile(r"<html\b([^>]*)>", re.IGNORECASE)
_LANG_ATTR_RE = re.compile(r"(\slang\s*=\s*[\"'])[^\"']*([\"'])", re.IGNORECASE)
_DIR_ATTR_RE = re.compile(r"(\sdir\s*=\s*[\"'])[^\"']*([\"'])", re.IGNORECASE)
_BLANK_RUN_RE = re.compile(r"(\n\s*){3,}")


def escape_html(value: str) -> str:
    return escape(value, quote=True)


def build_meta_tags(meta: CanonicalMetadata) -> str:
    e = escape_html
    og_title = e(meta.og_title)
    og_description = e(meta.og_description)
    canonical_url = e(meta.canonical_url)
    og_image_url = e(meta.og_image_url)

    lines = [
        f"<title>{e(meta.page_title)}</title>",
        f'<meta name="description" content="{e(meta.description)}" />',
        f'<link rel="canonical" href="{canonical_url}" />',
    ]
    lines.extend(
        f'<link rel="alternate" hreflang="{e(link.hreflang)}" href="{e(link.href)}" />'
        for link in meta.alternate_links
    )
    lines.extend([
        f'<meta http-equiv="content-language" content="{e(meta.html_lang)}" />',
        f'<meta name="robots" content="{e(meta.robots)}" />',
        '<meta property="og:type" content="website" />',
        f'<meta property="og:site_name" content="{e(settings.SITE_NAME)}" />',
        f'<meta property="og:title" content="{og_title}" />',
        f'<meta property="og:description" content="{og_description}" />',
        f'<meta property="og:url" content="{canonical_url}" />',
        f'<meta property="og:image" content="{og_image_url}" />',
        '<meta property="og:image:width" content="1200" />',
        '<meta property="og:image:height" content="630" />',
        f'<meta property="og:image:alt" content="{og_title}" />',
        f'<meta property="og:logo" content="{e(meta.og_logo_url)}" />',
        '<meta name="twitter:card" content="summary_large_image" />',
        f'<meta name="twitter:title" content="{og_title}" />',
        f'<meta name="twitter:description" content="{og_description}" />',
        f'<meta name="twitter:image" content="{og_image_url}" />',
    ])
    return "\n".join(lines)


def _strip_seo_tags(html: str) -> str:
    for pattern in _SEO_TAG_PATTERNS:
        html = pattern.sub("", html)
    return html


def _set_html_lang(html: str, lang: str, direction: str) -> str:
    safe_lang = escape_html(lang)
    safe_dir = escape_html(direction)

    def _rewrite(match: re.Match) -> str:
        attrs = match.group(1)
        if _LANG_ATTR_RE.search(attrs):
            attrs = _LANG_ATTR_RE.sub(lambda m: f"{m.group(1)}{safe_lang}{m.group(2)}", attrs, count=1)
        else:
            attrs += f' lang="{safe_lang}"'
        if _DIR_ATTR_RE.search(attrs):
            attrs = _DIR_ATTR_RE.sub(lambda m: f"{m.group(1)}{safe_dir}{m.group(2)}", attrs, count=1)
        else:
            attrs += f' dir="{safe_dir}"'
        return f"<html{attrs}>"

    return _HTML_TAG_RE.sub(_rewrite, html, count=1)


def inject_meta_tags(html: str, meta: CanonicalMetadata) -> str:
    """Replace SEO tags in an HTML document. Documents without a head are returned unchanged."""
    if not _HEAD_OPEN_RE.search(html) or not _HEAD_CLOSE_RE.search(html):
        return html
    cleaned = _BLANK_RUN_RE.sub("\n\n", _strip_seo_tags(html))
    tagged = _set_html_lang(cleaned, meta.html_lang, meta.html_dir.value)
    tags = build_meta_tags(meta)
    return _HEAD_OPEN_RE.sub(lambda m: f"{m.group(1)}\n{tags}", tagged, count=1)


def _static_asset_url(origin: str, path: str) -> Optional[str]:
    if not path.startswith(f"{PUBLIC_PREFIX}/") or not path.endswith(".png"):
        return None
    return origin.rstrip("/") + path


def resolve_og_image_url(
    meta: CanonicalMetadata,
    manifest: Optional[ManifestFile],
    origin: str,
) -> Tuple[str, str]:
    """
    Pick the share image for a page.

    Returns (url, source) where source is "static" for a precomputed asset
    and "dynamic" for the on-demand renderer.
    """
    if meta.canonical_path.startswith("/example/") or meta.html_dir == TextDirection.RTL:
        return meta.og_image_url, "dynamic"
    entry = manifest.entries.get(meta.route_key) if manifest else None
    if entry:
        static_url = _static_asset_url(origin, entry.asset_path)
        if static_url:
            return static_url, "static"
    return meta.og_image_url, "dynamic"
