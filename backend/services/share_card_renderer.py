"""
Share card compositor using Pillow.

Draws the 1200x630 site and trip cards: a text card on the left (pill,
title, body, footer) and a side panel on the right (map, blog photo or a
decorative pattern). Fonts and images come from an asset source; the
on-demand path fetches them over HTTP from the render origin.
"""
import logging
import math
import threading
from io import BytesIO
from typing import Dict, List, Optional, Sequence, Tuple
from urllib.parse import urlencode, urljoin

import numpy as np
import requests
from PIL import Image, ImageColor, ImageDraw, ImageFont, ImageOps

from domain.models import MapLabel, SiteCardParams, TripSummary
from services.share_card_cache import IMAGE_HEIGHT, IMAGE_WIDTH
from services.share_card_text import (
    display_url,
    normalize_display_path,
    sanitize_text,
    title_spec,
    wrap_title,
)
from settings import settings

logger = logging.getLogger(__name__)
_session = requests.Session()

ACCENT_200 = "#c7d2fe"
ACCENT_500 = "#6366f1"
ACCENT_600 = "#4f46e5"
ACCENT_700 = "#4338ca"
INK = "#0f172a"
BODY_INK = "#1f2937"
MUTED_INK = "#475569"
BACKDROP_STOPS = ((0.0, "#f8fafc"), (0.62, "#eef2ff"), (1.0, "#e0e7ff"))

DEFAULT_SUBLINE = "Plan and share travel routes with timeline and map previews."
TRIP_PILL = "View my trip"
NO_DISTANCE_LABEL = "Distance not available"
MAP_PLACEHOLDER = "Map preview unavailable"
SITE_TITLE_CAP = 110
SITE_DESCRIPTION_CAP = 160
SITE_URL_CAP = 62
TRIP_URL_CAP = 56
DEFAULT_TINT_INTENSITY = 60
MAX_TINT_ALPHA = 0.72

OUTER_PADDING = 28
PANEL_GAP = 20
CARD_FRACTION = 0.61
CARD_RADIUS = 28
CARD_PADDING = (38, 42, 34)  # top, sides, bottom
FOOTER_HEIGHT = 36
FOOTER_RULE_GAP = 20


class HttpAssetSource:
    """Fetches fonts and images relative to a render origin."""

    def __init__(self, origin: str, timeout: Optional[float] = None):
        self.origin = origin.rstrip("/")
        self.timeout = timeout if timeout is not None else settings.ASSET_FETCH_TIMEOUT

    @property
    def cache_key(self) -> str:
        return self.origin

    def fetch(self, path: str) -> Optional[bytes]:
        url = path if path.startswith(("http://", "https://")) else urljoin(f"{self.origin}/", path.lstrip("/"))
        return fetch_bytes(url, self.timeout)

    def fallback_font_urls(self) -> List[str]:
        return [settings.SHARE_CARD_FONT_URL] if settings.SHARE_CARD_FONT_URL else []


def fetch_bytes(url: str, timeout: float) -> Optional[bytes]:
    try:
        resp = _session.get(url, timeout=timeout)
        if resp.status_code != 200:
            logger.debug("[og-render] %s returned %s", url, resp.status_code)
            return None
        return resp.content
    except requests.RequestException as exc:
        logger.debug("[og-render] fetch failed for %s: %s", url, exc)
        return None


# --- fonts ---

_FONT_LOCK = threading.Lock()
_FONT_DATA: Dict[str, Optional[bytes]] = {}
_FONTS: Dict[Tuple[str, int], ImageFont.ImageFont] = {}


def _is_supported_font(data: Optional[bytes]) -> bool:
    """TrueType, OpenType, collections and WOFF; FreeType cannot read WOFF2 here."""
    if not data or len(data) < 4:
        return False
    signature = data[:4]
    if signature == b"wOF2":
        return False
    return signature in (b"wOFF", b"OTTO", b"ttcf", b"\x00\x01\x00\x00", b"true")


def load_heading_font_data(source) -> Optional[bytes]:
    """
    Heading font bytes for an asset source, memoized per source.

    A failed lookup is cached too; every render from that origin then uses
    Pillow's default font.
    """
    key = source.cache_key
    with _FONT_LOCK:
        if key in _FONT_DATA:
            return _FONT_DATA[key]

    data = source.fetch(settings.SHARE_CARD_FONT_PATH)
    if not _is_supported_font(data):
        data = None
        for url in source.fallback_font_urls():
            candidate = fetch_bytes(url, settings.ASSET_FETCH_TIMEOUT)
            if _is_supported_font(candidate):
                data = candidate
                break
    if data is None:
        logger.warning("[og-render] heading font unavailable for %s; using default font", key)

    with _FONT_LOCK:
        return _FONT_DATA.setdefault(key, data)


def heading_font(source, size: int) -> ImageFont.ImageFont:
    data = load_heading_font_data(source)
    key = (source.cache_key, size)
    with _FONT_LOCK:
        cached = _FONTS.get(key)
    if cached is not None:
        return cached

    font = None
    if data:
        try:
            font = ImageFont.truetype(BytesIO(data), size)
        except OSError:
            logger.debug("[og-render] could not load heading font at size %s", size)
    if font is None:
        font = ImageFont.load_default(size=size)

    with _FONT_LOCK:
        return _FONTS.setdefault(key, font)


def clear_font_cache() -> None:
    with _FONT_LOCK:
        _FONT_DATA.clear()
        _FONTS.clear()


def _measure_text(font: ImageFont.ImageFont, text: str) -> Tuple[int, int]:
    bbox = font.getbbox(text)
    return bbox[2] - bbox[0], bbox[3] - bbox[1]


def fit_text(font: ImageFont.ImageFont, text: str, max_width: int) -> str:
    """Shorten `text` with an ellipsis until it fits `max_width` pixels."""
    if _measure_text(font, text)[0] <= max_width:
        return text
    trimmed = text
    while trimmed and _measure_text(font, f"{trimmed}...")[0] > max_width:
        trimmed = trimmed[:-1]
    return f"{trimmed}..."


def _draw_text_centered_y(draw: ImageDraw.ImageDraw, x: int, center_y: int, text: str, font, fill) -> None:
    """Draw `text` so its ink box is vertically centred on `center_y`."""
    bbox = font.getbbox(text)
    draw.text((x, center_y - (bbox[3] - bbox[1]) // 2 - bbox[1]), text, font=font, fill=fill)


# --- backdrops ---

def _rgb(color: str) -> Tuple[int, int, int]:
    return ImageColor.getrgb(color)[:3]


def linear_gradient(
    size: Tuple[int, int],
    stops: Sequence[Tuple[float, str]],
    angle_deg: float = 180.0,
) -> Image.Image:
    """CSS-style linear gradient; 0deg points up, 90deg points right."""
    width, height = size
    rad = math.radians(angle_deg)
    dx, dy = math.sin(rad), -math.cos(rad)
    xs = np.arange(width, dtype=np.float32) - (width - 1) / 2
    ys = np.arange(height, dtype=np.float32)[:, None] - (height - 1) / 2
    projection = xs * dx + ys * dy
    half = max(1e-6, abs(width / 2 * dx) + abs(height / 2 * dy))
    t = np.clip((projection + half) / (2 * half), 0.0, 1.0)

    positions = [position for position, _ in stops]
    colors = [_rgb(color) for _, color in stops]
    channels = [np.interp(t, positions, [color[i] for color in colors]) for i in range(3)]
    arr = np.stack(channels, axis=-1).round().astype(np.uint8)
    return Image.fromarray(arr).convert("RGBA")


def _rounded_mask(size: Tuple[int, int], radius: int) -> Image.Image:
    mask = Image.new("L", size, 0)
    ImageDraw.Draw(mask).rounded_rectangle((0, 0, size[0] - 1, size[1] - 1), radius=radius, fill=255)
    return mask


def _paste_rounded(canvas: Image.Image, panel: Image.Image, origin: Tuple[int, int], radius: int) -> None:
    canvas.paste(panel, origin, _rounded_mask(panel.size, radius))


def _open_image(data: Optional[bytes]) -> Optional[Image.Image]:
    if not data:
        return None
    try:
        img = Image.open(BytesIO(data))
        img.load()
        return img.convert("RGBA")
    except (OSError, ValueError) as exc:
        logger.debug("[og-render] image decode failed: %s", exc)
        return None


def _cover(img: Image.Image, size: Tuple[int, int]) -> Image.Image:
    return ImageOps.fit(img, size, method=Image.Resampling.LANCZOS)


# --- layout ---

class _Layout:
    def __init__(self):
        inner_width = IMAGE_WIDTH - 2 * OUTER_PADDING
        self.card_box = (
            OUTER_PADDING,
            OUTER_PADDING,
            OUTER_PADDING + round(inner_width * CARD_FRACTION),
            IMAGE_HEIGHT - OUTER_PADDING,
        )
        self.panel_box = (
            self.card_box[2] + PANEL_GAP,
            OUTER_PADDING,
            IMAGE_WIDTH - OUTER_PADDING,
            IMAGE_HEIGHT - OUTER_PADDING,
        )
        top, sides, bottom = CARD_PADDING
        self.content_left = self.card_box[0] + sides
        self.content_right = self.card_box[2] - sides
        self.content_top = self.card_box[1] + top
        self.content_bottom = self.card_box[3] - bottom

    @property
    def content_width(self) -> int:
        return self.content_right - self.content_left

    @property
    def panel_size(self) -> Tuple[int, int]:
        return self.panel_box[2] - self.panel_box[0], self.panel_box[3] - self.panel_box[1]


LAYOUT = _Layout()


class ShareCardCompositor:
    """Draws share cards with fonts and images from one asset source."""

    def __init__(self, assets, display_host: str):
        self.assets = assets
        self.display_host = display_host

    def font(self, size: int) -> ImageFont.ImageFont:
        return heading_font(self.assets, size)

    # shared pieces

    def _base(self) -> Image.Image:
        canvas = linear_gradient((IMAGE_WIDTH, IMAGE_HEIGHT), BACKDROP_STOPS, 165)
        overlay = Image.new("RGBA", canvas.size, (0, 0, 0, 0))
        ImageDraw.Draw(overlay).rounded_rectangle(
            LAYOUT.card_box,
            radius=CARD_RADIUS,
            fill=(255, 255, 255, 220),
            outline=(148, 163, 184, 72),
            width=1,
        )
        return Image.alpha_composite(canvas, overlay)

    def _draw_pill(self, draw: ImageDraw.ImageDraw, text: str, y: int) -> int:
        font = self.font(21)
        text = fit_text(font, text, LAYOUT.content_width - 36)
        text_w, text_h = _measure_text(font, text)
        x0 = LAYOUT.content_left
        box = (x0, y, x0 + text_w + 36 + 22, y + text_h + 22)
        draw.rounded_rectangle(box, radius=(box[3] - box[1]) // 2, fill=ACCENT_600)
        self._draw_plane(draw, (x0 + 18, y + (box[3] - box[1]) // 2), 8, "#ffffff")
        draw.text((x0 + 36, y + 11 - font.getbbox(text)[1]), text, font=font, fill="#ffffff")
        return box[3]

    @staticmethod
    def _draw_plane(draw: ImageDraw.ImageDraw, center: Tuple[int, int], radius: int, fill: str) -> None:
        cx, cy = center
        r = radius
        draw.polygon([(cx + r, cy - r), (cx - r, cy), (cx - r // 4, cy + r // 4), (cx, cy + r)], fill=fill)

    def _draw_title(self, draw: ImageDraw.ImageDraw, title: str, y: int, fallback: str) -> int:
        spec = title_spec(title, fallback)
        font = self.font(spec.font_size)
        line_height = round(spec.font_size * 1.08) + 6
        for line in spec.lines:
            draw.text((LAYOUT.content_left, y), fit_text(font, line, LAYOUT.content_width), font=font, fill=INK)
            y += line_height
        return y

    def _draw_footer(self, draw: ImageDraw.ImageDraw, path: str, max_chars: int) -> None:
        rule_y = LAYOUT.content_bottom - FOOTER_HEIGHT - FOOTER_RULE_GAP
        draw.line(
            [(LAYOUT.content_left, rule_y), (LAYOUT.content_right, rule_y)],
            fill=(148, 163, 184, 92),
            width=1,
        )
        mark_top = LAYOUT.content_bottom - FOOTER_HEIGHT
        mark = (LAYOUT.content_left, mark_top, LAYOUT.content_left + FOOTER_HEIGHT, mark_top + FOOTER_HEIGHT)
        draw.rounded_rectangle(mark, radius=10, fill=ACCENT_600)
        self._draw_plane(draw, (mark[0] + FOOTER_HEIGHT // 2, mark_top + FOOTER_HEIGHT // 2), 10, "#ffffff")

        name_font = self.font(28)
        name_x = mark[2] + 12
        name_w, _ = _measure_text(name_font, settings.SITE_NAME)
        _draw_text_centered_y(draw, name_x, mark_top + FOOTER_HEIGHT // 2, settings.SITE_NAME, name_font, "#111827")

        url_font = self.font(20)
        available = LAYOUT.content_right - (name_x + name_w + 20)
        url = fit_text(url_font, display_url(self.display_host, path, max_chars), max(0, available))
        url_w, _ = _measure_text(url_font, url)
        _draw_text_centered_y(draw, LAYOUT.content_right - url_w, mark_top + FOOTER_HEIGHT // 2, url, url_font, MUTED_INK)

    @staticmethod
    def _encode(canvas: Image.Image) -> bytes:
        buf = BytesIO()
        canvas.convert("RGB").save(buf, format="PNG", optimize=True)
        return buf.getvalue()

    # site card

    def _pattern_panel(self) -> Image.Image:
        size = LAYOUT.panel_size
        panel = linear_gradient(size, ((0.0, ACCENT_500), (1.0, ACCENT_700)), 160)
        overlay = Image.new("RGBA", size, (0, 0, 0, 0))
        draw = ImageDraw.Draw(overlay)
        step = 28
        for y in range(step // 2, size[1], step):
            for x in range(step // 2, size[0], step):
                draw.ellipse((x - 1.5, y - 1.5, x + 1.5, y + 1.5), fill=_rgb(ACCENT_200) + (70,))
        cx, cy = size[0] // 2, size[1] // 2
        for radius, alpha in ((124, 41), (96, 26)):
            draw.ellipse((cx - radius, cy - radius, cx + radius, cy + radius), fill=(255, 255, 255, alpha))
        self._draw_plane(draw, (cx, cy), 42, "#ffffff")
        return Image.alpha_composite(panel, overlay)

    def _blog_panel(self, params: SiteCardParams) -> Optional[Image.Image]:
        if not params.blog_image:
            return None
        path = params.blog_image
        if params.blog_rev:
            path = f"{path}?{urlencode({'v': params.blog_rev})}"
        img = _open_image(self.assets.fetch(path))
        if img is None:
            return None
        panel = _cover(img, LAYOUT.panel_size)
        tint = _parse_tint(params.blog_tint)
        if tint is not None:
            alpha = round(255 * MAX_TINT_ALPHA * _tint_intensity(params.blog_tint_intensity) / 100)
            panel = Image.alpha_composite(panel, Image.new("RGBA", panel.size, tint + (alpha,)))
        return panel

    def render_site_card(self, params: SiteCardParams) -> bytes:
        canvas = self._base()
        draw = ImageDraw.Draw(canvas, "RGBA")

        title = sanitize_text(params.title, SITE_TITLE_CAP) or settings.SITE_NAME
        subline = sanitize_text(params.description, SITE_DESCRIPTION_CAP) or DEFAULT_SUBLINE
        pill = (params.pill or "").strip() or settings.SITE_NAME

        y = self._draw_pill(draw, pill, LAYOUT.content_top)
        y = self._draw_title(draw, title, y + 18, settings.SITE_NAME)

        body_font = self.font(26)
        for line in wrap_title(subline, 44, 3):
            draw.text((LAYOUT.content_left, y + 14), fit_text(body_font, line, LAYOUT.content_width), font=body_font, fill=MUTED_INK)
            y += 34

        self._draw_footer(draw, normalize_display_path(params.path), SITE_URL_CAP)
        panel = self._blog_panel(params) or self._pattern_panel()
        _paste_rounded(canvas, panel, LAYOUT.panel_box[:2], CARD_RADIUS)
        return self._encode(canvas)

    # trip card

    def _draw_metric(self, draw: ImageDraw.ImageDraw, y: int, text: str, icon: str) -> int:
        x = LAYOUT.content_left
        draw.ellipse((x, y, x + 36, y + 36), fill=(79, 70, 229, 41))
        if icon == "calendar":
            draw.rounded_rectangle((x + 10, y + 11, x + 26, y + 26), radius=2, outline="#312e81", width=2)
            draw.line([(x + 10, y + 16), (x + 26, y + 16)], fill="#312e81", width=2)
        else:
            draw.ellipse((x + 8, y + 20, x + 14, y + 26), outline="#312e81", width=2)
            draw.ellipse((x + 22, y + 9, x + 28, y + 15), outline="#312e81", width=2)
            draw.line([(x + 13, y + 21), (x + 23, y + 14)], fill="#312e81", width=2)
        font = self.font(29)
        text = fit_text(font, text, LAYOUT.content_width - 48)
        _draw_text_centered_y(draw, x + 48, y + 18, text, font, BODY_INK)
        return y + 36

    def _map_panel(self, summary: TripSummary) -> Image.Image:
        size = LAYOUT.panel_size
        img = None
        if summary.map_image_url and settings.MAP_IMAGES_ENABLED:
            img = _open_image(fetch_bytes(summary.map_image_url, settings.MAP_IMAGE_TIMEOUT))
        if img is None:
            return self._map_placeholder(size)
        panel = _cover(img, size)
        self._draw_labels(panel, summary.map_labels)
        return panel

    def _map_placeholder(self, size: Tuple[int, int]) -> Image.Image:
        panel = Image.new("RGBA", size, _rgb("#e2e8f0") + (255,))
        wash = linear_gradient(size, ((0.0, "#c5ced9"), (1.0, "#d3d9e1")), 135)
        panel = Image.blend(panel, wash, 0.5)
        draw = ImageDraw.Draw(panel)
        font = self.font(28)
        lines = wrap_title(MAP_PLACEHOLDER, 16, 2)
        y = size[1] // 2 - len(lines) * 18
        for line in lines:
            width, _ = _measure_text(font, line)
            draw.text(((size[0] - width) // 2, y), line, font=font, fill=MUTED_INK)
            y += 36
        return panel

    def _draw_labels(self, panel: Image.Image, labels: Sequence[MapLabel]) -> None:
        draw = ImageDraw.Draw(panel, "RGBA")
        font = self.font(15)
        sub_font = self.font(10)
        width, height = panel.size
        for label in labels:
            x = round(label.x * width) + 2
            y = round(label.y * height)
            text = fit_text(font, label.text, int(width * 0.56))
            text_w, text_h = _measure_text(font, text)
            box = (x, y - text_h // 2 - 4, x + text_w + 12, y + text_h // 2 + 4)
            draw.rounded_rectangle(box, radius=8, fill=(255, 255, 255, 143))
            draw.text((x + 6, box[1] + 4 - font.getbbox(text)[1]), text, font=font, fill="#111827")
            if label.sub_label:
                draw.text((x + 6, box[3] + 1), label.sub_label.upper(), font=sub_font, fill=ACCENT_600)

    def render_trip_card(self, summary: TripSummary, route_path: str) -> bytes:
        canvas = self._base()
        draw = ImageDraw.Draw(canvas, "RGBA")

        y = self._draw_pill(draw, TRIP_PILL, LAYOUT.content_top)
        y = self._draw_title(draw, summary.title, y + 18, "Shared Trip")

        duration = summary.duration_label
        if summary.months_label:
            duration = f"{duration} ({summary.months_label})"
        y = self._draw_metric(draw, y + 26, duration, "calendar")
        self._draw_metric(draw, y + 14, summary.distance_label or NO_DISTANCE_LABEL, "route")

        self._draw_footer(draw, route_path, TRIP_URL_CAP)
        _paste_rounded(canvas, self._map_panel(summary), LAYOUT.panel_box[:2], CARD_RADIUS)
        return self._encode(canvas)


def _parse_tint(value: Optional[str]) -> Optional[Tuple[int, int, int]]:
    if not value or not value.strip():
        return None
    try:
        return _rgb(value.strip())
    except ValueError:
        return None


def _tint_intensity(value: Optional[str]) -> int:
    try:
        number = float(value) if value else float(DEFAULT_TINT_INTENSITY)
    except ValueError:
        return DEFAULT_TINT_INTENSITY
    if not math.isfinite(number):
        return DEFAULT_TINT_INTENSITY
    return max(0, min(100, int(number)))


def render_site_card(params: SiteCardParams, asset_origin: str, display_host: str) -> bytes:
    """PNG bytes of a site card; fonts and blog photos are fetched from `asset_origin`."""
    return ShareCardCompositor(HttpAssetSource(asset_origin), display_host).render_site_card(params)


def render_trip_card(summary: TripSummary, route_path: str, asset_origin: str, display_host: str) -> bytes:
    return ShareCardCompositor(HttpAssetSource(asset_origin), display_host).render_trip_card(summary, route_path)
