"""
Resolve the colour a route leg is drawn with.

City colours are stored the way the planner UI saves them: a hex string,
`rgb(r, g, b)`, a bare "r,g,b" triple, or a utility-class string such as
"bg-rose-200 border-rose-300 text-rose-900".
"""
import re
from typing import Optional

from domain.models import MapColorMode

BRAND_COLOR = "#4f46e5"

# Full class strings of the planner's preset palette.
PRESET_COLORS = {
    "bg-rose-200 border-rose-300 text-rose-900": "#f43f5e",
    "bg-orange-200 border-orange-300 text-orange-900": "#f97316",
    "bg-amber-200 border-amber-300 text-amber-900": "#d97706",
    "bg-emerald-200 border-emerald-300 text-emerald-900": "#059669",
    "bg-teal-200 border-teal-300 text-teal-900": "#0d9488",
    "bg-cyan-200 border-cyan-300 text-cyan-900": "#0891b2",
    "bg-sky-200 border-sky-300 text-sky-900": "#0284c7",
    "bg-indigo-200 border-indigo-300 text-indigo-900": "#4f46e5",
    "bg-violet-200 border-violet-300 text-violet-900": "#7c3aed",
    "bg-fuchsia-200 border-fuchsia-300 text-fuchsia-900": "#c026d3",
    "bg-slate-200 border-slate-300 text-slate-900": "#475569",
    "bg-lime-200 border-lime-300 text-lime-900": "#65a30d",
}

BG_TOKEN_COLORS = {
    "bg-rose-100": "#ffe4e6",
    "bg-rose-200": "#fecdd3",
    "bg-rose-300": "#fda4af",
    "bg-rose-400": "#fb7185",
    "bg-rose-500": "#f43f5e",
    "bg-pink-100": "#fce7f3",
    "bg-pink-200": "#fbcfe8",
    "bg-pink-300": "#f9a8d4",
    "bg-pink-400": "#f472b6",
    "bg-red-100": "#fee2e2",
    "bg-red-200": "#fecaca",
    "bg-red-300": "#fca5a5",
    "bg-orange-100": "#ffedd5",
    "bg-orange-200": "#fed7aa",
    "bg-orange-300": "#fdba74",
    "bg-amber-100": "#fef3c7",
    "bg-amber-200": "#fde68a",
    "bg-amber-300": "#fcd34d",
    "bg-yellow-100": "#fef9c3",
    "bg-yellow-200": "#fef08a",
    "bg-yellow-300": "#fde047",
    "bg-lime-100": "#ecfccb",
    "bg-lime-200": "#d9f99d",
    "bg-emerald-100": "#d1fae5",
    "bg-emerald-200": "#a7f3d0",
    "bg-green-100": "#dcfce7",
    "bg-green-200": "#bbf7d0",
    "bg-teal-100": "#ccfbf1",
    "bg-teal-200": "#99f6e4",
    "bg-cyan-100": "#cffafe",
    "bg-cyan-200": "#a5f3fc",
    "bg-sky-100": "#e0f2fe",
    "bg-sky-200": "#bae6fd",
    "bg-blue-100": "#dbeafe",
    "bg-blue-200": "#bfdbfe",
    "bg-indigo-100": "#e0e7ff",
    "bg-indigo-200": "#c7d2fe",
    "bg-violet-100": "#ede9fe",
    "bg-violet-200": "#ddd6fe",
    "bg-fuchsia-200": "#f5d0fe",
    "bg-slate-100": "#f1f5f9",
    "bg-slate-200": "#e2e8f0",
    "bg-stone-200": "#e7e5e4",
    "bg-white": "#ffffff",
}

_HEX_RE = re.compile(r"^#([0-9a-f]{3}|[0-9a-f]{6})$", re.IGNORECASE)
_CHANNEL = r"([01]?\d?\d|2[0-4]\d|25[0-5])"
_RGB_RE = re.compile(rf"^rgb\(\s*{_CHANNEL}\s*,\s*{_CHANNEL}\s*,\s*{_CHANNEL}\s*\)$", re.IGNORECASE)
_RGB_CSV_RE = re.compile(rf"^{_CHANNEL}\s*,\s*{_CHANNEL}\s*,\s*{_CHANNEL}$")


def normalize_hex(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    match = _HEX_RE.match(value.strip())
    if not match:
        return None
    raw = match.group(1).lower()
    if len(raw) == 3:
        raw = "".join(ch * 2 for ch in raw)
    return f"#{raw}"


def normalize_rgb(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    trimmed = value.strip()
    match = _RGB_RE.match(trimmed) or _RGB_CSV_RE.match(trimmed)
    if not match:
        return None
    r, g, b = (int(channel) for channel in match.groups())
    return f"#{r:02x}{g:02x}{b:02x}"


def _bg_token_color(value: str) -> Optional[str]:
    for token in value.split():
        if token.startswith("bg-"):
            return BG_TOKEN_COLORS.get(token)
    return None


def color_to_hex(value: Optional[str]) -> Optional[str]:
    """Hex for a stored city colour, or None if it cannot be resolved."""
    if not value:
        return None
    return (
        normalize_hex(value)
        or normalize_rgb(value)
        or PRESET_COLORS.get(value.strip())
        or _bg_token_color(value)
    )


def resolve_leg_color(value: Optional[str], mode: MapColorMode = MapColorMode.TRIP) -> str:
    if mode == MapColorMode.BRAND:
        return BRAND_COLOR
    return color_to_hex(value) or BRAND_COLOR


def static_map_color(hex_color: str) -> str:
    """'#4f46e5' -> '4f46e5' as used by static map path params."""
    return hex_color.lstrip("#")
