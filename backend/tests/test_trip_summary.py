from unittest.mock import patch

from domain.models import (
    MapColorMode,
    MapPreferences,
    MapStyle,
    RouteMode,
    RouteTarget,
    TripSnapshot,
)
from services import trip_summary as ts

VERSION_ID = "123e4567-e89b-12d3-a456-426614174000"

TOKYO = {"lat": 35.6762, "lng": 139.6503}
OSAKA = {"lat": 34.6937, "lng": 135.5023}


def _city(cid, title, offset, duration, coords, color=None):
    item = {
        "id": cid,
        "type": "city",
        "title": title,
        "startDateOffset": offset,
        "duration": duration,
        "coordinates": coords,
    }
    if color:
        item["color"] = color
    return item


def _travel(offset, mode, distance=None):
    item = {"id": f"t{offset}", "type": "travel", "startDateOffset": offset, "duration": 0.2, "transportMode": mode}
    if distance is not None:
        item["routeDistanceKm"] = distance
    return item


def _tokyo_osaka(travel=None, start="2026-04-10"):
    items = [_city("c1", "Tokyo", 0, 3, TOKYO), _city("c2", "Osaka", 3, 2, OSAKA)]
    if travel:
        items.append(travel)
    return TripSnapshot.from_dict({"id": "trip-1", "title": "Japan Spring", "startDate": start, "items": items})


def _many_cities(count):
    items = [
        _city(f"c{i}", f"City {i}", i * 2, 2, {"lat": 40.0 + i * 0.3, "lng": -3.0 + i * 0.4})
        for i in range(count)
    ]
    return TripSnapshot.from_dict({"title": "Long trip", "startDate": "2026-05-01", "items": items})


def test_tokyo_osaka_uses_haversine_distance():
    trip = _tokyo_osaka(_travel(3, "train"))
    summary = ts.summarize_trip(trip)

    distance = ts.trip_distance_km(trip)
    assert 390 < distance < 405
    assert summary.distance_label == f"{round(distance)} km"
    assert ts.trip_duration_days(trip) >= 1
    assert summary.duration_label == "1 week"
    assert summary.months_label == "April"
    assert summary.description == f"1 week • April • {summary.distance_label}"
    assert summary.map_image_url is None


def test_declared_route_distance_wins_except_for_flights():
    assert ts.trip_distance_km(_tokyo_osaka(_travel(3, "train", 512.4))) == 512.4
    flight = ts.trip_distance_km(_tokyo_osaka(_travel(3, "plane", 999)))
    assert 390 < flight < 405


def test_travel_outside_window_is_ignored():
    trip = _tokyo_osaka(_travel(10, "train", 512.4))
    assert ts.find_travel_between(trip.items, trip.items[0], trip.items[1]) is None


def test_single_stop_has_no_distance():
    trip = TripSnapshot.from_dict({"title": "Stay", "items": [_city("c1", "Tokyo", 0, 0.5, TOKYO)]})
    assert ts.trip_distance_km(trip) is None
    assert ts.trip_duration_days(trip) == 1


def test_labels_and_formats():
    assert ts.format_weeks(1) == "1 week"
    assert ts.format_weeks(10) == "1.5 weeks"
    assert ts.format_weeks(14) == "2 weeks"
    assert ts.format_distance(1234.4) == "1,234 km"
    assert ts.format_distance(0) is None
    assert ts.format_distance(None) is None


def test_months_across_years():
    trip = TripSnapshot.from_dict(
        {"startDate": "2026-12-20", "items": [_city("c1", "Oslo", 0, 20, {"lat": 59.9, "lng": 10.7})]}
    )
    assert ts.format_months(trip) == "December 2026 - January 2027"

    spring = TripSnapshot.from_dict(
        {"startDate": "2026-03-25", "items": [_city("c1", "Oslo", 0, 10, {"lat": 59.9, "lng": 10.7})]}
    )
    assert ts.format_months(spring) == "March - April"


def test_empty_title_uses_default():
    summary = ts.summarize_trip(TripSnapshot.from_dict({"title": "  ", "items": []}))
    assert summary.title == ts.DEFAULT_SUMMARY_TITLE
    assert summary.distance_label is None


def test_map_preview_simple_mode():
    url, labels = ts.build_map_preview(_tokyo_osaka(), "secret", "de")
    assert url.startswith(f"{ts.STATIC_MAP_URL}?size=426x574&scale=2&maptype=roadmap")
    assert "language=de" in url
    assert url.endswith("key=secret")
    assert url.count("markers=") == 2
    assert url.count("path=") == 1
    assert "0xf9f9f9" in url  # clean style
    assert [label.sub_label for label in labels] == ["START", "END"]


def test_map_preview_respects_preferences():
    prefs = MapPreferences(map_style=MapStyle.SATELLITE, show_stops=False, show_cities=False)
    url, labels = ts.build_map_preview(_tokyo_osaka(), "secret", preferences=prefs)
    assert "maptype=satellite" in url
    assert "style=" not in url
    assert "markers=" not in url
    assert labels == []


def test_map_preview_without_key_or_stops():
    assert ts.build_map_preview(_tokyo_osaka(), "") == (None, [])
    assert ts.build_map_preview(TripSnapshot(), "secret") == (None, [])


def test_trip_colors_group_consecutive_legs():
    items = [
        _city("c1", "A", 0, 1, {"lat": 40.0, "lng": 1.0}, "#ff0000"),
        _city("c2", "B", 1, 1, {"lat": 41.0, "lng": 2.0}, "#ff0000"),
        _city("c3", "C", 2, 1, {"lat": 42.0, "lng": 3.0}, "bg-sky-200 border-sky-300 text-sky-900"),
        _city("c4", "D", 3, 1, {"lat": 43.0, "lng": 4.0}),
    ]
    trip = TripSnapshot.from_dict({"items": items})

    url, _ = ts.build_map_preview(trip, "secret", preferences=MapPreferences(color_mode=MapColorMode.TRIP))
    assert url.count("path=") == 2
    assert "color%3A0xff0000" in url
    assert "color%3A0x0284c7" in url

    brand, _ = ts.build_map_preview(trip, "secret", preferences=MapPreferences(color_mode=MapColorMode.BRAND))
    assert brand.count("path=") == 1
    assert "color%3A0x4f46e5" in brand


def test_realistic_mode_caps_directions_lookups():
    trip = _many_cities(13)
    prefs = MapPreferences(route_mode=RouteMode.REALISTIC)
    with patch("services.directions.fetch_directions_polyline", return_value="abc") as mock_fetch:
        url, _ = ts.build_map_preview(trip, "secret", preferences=prefs)

    assert mock_fetch.call_count == ts.MAX_REALISTIC_LEGS
    assert url.count("enc%3Aabc") == 8
    assert url.count("path=") == 12


def test_realistic_mode_falls_back_to_straight_legs():
    prefs = MapPreferences(route_mode=RouteMode.REALISTIC)
    with patch("services.directions.fetch_directions_polyline", return_value=None):
        url, _ = ts.build_map_preview(_tokyo_osaka(), "secret", preferences=prefs)
    assert url.count("path=") == 1
    assert "enc%3A" not in url


def test_parse_view_settings():
    prefs = ts.parse_view_settings({"map_style": "dark", "routeMode": "realistic", "showCityNames": False})
    assert prefs.map_style == MapStyle.DARK
    assert prefs.route_mode == RouteMode.REALISTIC
    assert prefs.show_cities is False
    assert prefs.show_stops is True

    defaults = ts.parse_view_settings({"mapStyle": "neon", "mapColorMode": 3, "showStops": "no"})
    assert defaults == MapPreferences()
    assert ts.parse_view_settings(None) is None


def test_has_preference_values():
    assert not ts.has_preference_values({})
    assert not ts.has_preference_values({"mapStyle": "neon"})
    assert ts.has_preference_values({"showStops": False})
    assert ts.has_preference_values({"map_color_mode": "brand"})


def test_route_targets():
    assert ts.parse_route_target("/s/abc", {"v": "nope"}) == RouteTarget(token="abc")
    assert ts.parse_route_target("/trip/t1", {"v": VERSION_ID}) == RouteTarget(trip_id="t1", version_id=VERSION_ID)
    assert ts.parse_route_target("/s") is None
    assert ts.parse_route_target("/other/x") is None


def test_trip_urls():
    target = RouteTarget(token="a b", version_id=VERSION_ID)
    assert ts.build_display_path(target) == f"/s/a b?v={VERSION_ID}"
    assert ts.build_canonical_url("https://example.test/", target) == f"https://example.test/s/a%20b?v={VERSION_ID}"
    assert ts.build_display_path(RouteTarget()) == "/"

    url = ts.build_trip_card_url("https://example.test", RouteTarget(trip_id="t1"), 1700000000.7, MapPreferences())
    assert url == (
        "https://example.test/api/og/trip?trip=t1&u=1700000000"
        "&mapStyle=clean&routeMode=simple&mapColorMode=trip&showStops=1&showCities=1"
    )


def test_fallback_summary_and_dict():
    summary = ts.fallback_summary()
    assert (summary.title, summary.duration_label, summary.months_label) == ("Shared Trip", "1 week", "Any month")
    data = ts.summary_to_dict(summary)
    assert data["weeksLabel"] == "1 week"
    assert data["mapLabels"] == []


def test_version_id_validation():
    assert ts.is_valid_version_id(VERSION_ID)
    assert not ts.is_valid_version_id("123e4567-e89b-62d3-a456-426614174000")
    assert not ts.is_valid_version_id(None)
