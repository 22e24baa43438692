from domain.models import MapColorMode
from services.leg_colors import BRAND_COLOR, color_to_hex, resolve_leg_color, static_map_color


def test_color_formats():
    assert color_to_hex("#ABC") == "#aabbcc"
    assert color_to_hex(" #4F46E5 ") == "#4f46e5"
    assert color_to_hex("rgb(255, 0, 10)") == "#ff000a"
    assert color_to_hex("255,0,10") == "#ff000a"
    assert color_to_hex("bg-rose-200 border-rose-300 text-rose-900") == "#f43f5e"
    assert color_to_hex("text-slate-900 bg-sky-100") == "#e0f2fe"


def test_unresolvable_colors():
    assert color_to_hex(None) is None
    assert color_to_hex("rgb(300, 0, 0)") is None
    assert color_to_hex("bg-unknown-500") is None
    assert resolve_leg_color("chartreuse") == BRAND_COLOR


def test_brand_mode_ignores_trip_color():
    assert resolve_leg_color("#ff0000", MapColorMode.BRAND) == BRAND_COLOR
    assert resolve_leg_color("#ff0000", MapColorMode.TRIP) == "#ff0000"
    assert static_map_color("#4f46e5") == "4f46e5"
