from domain.models import Coordinates, MapViewport, TimelineItem
from services.map_viewport import (
    LABEL_X_RANGE,
    LABEL_Y_RANGE,
    MAX_ZOOM,
    MIN_ZOOM,
    ROUND_TRIP_TAG,
    SINGLE_POINT_ZOOM,
    build_map_labels,
    compute_map_viewport,
    haversine_km,
)

TOKYO = Coordinates(35.6762, 139.6503)
OSAKA = Coordinates(34.6937, 135.5023)
KYOTO = Coordinates(35.0116, 135.7681)


def _city(cid, name, coords):
    return TimelineItem(id=cid, type="city", title=name, coordinates=coords)


def test_haversine_tokyo_osaka():
    assert 390 < haversine_km(TOKYO, OSAKA) < 405
    assert haversine_km(TOKYO, TOKYO) == 0


def test_empty_and_single_point_viewports():
    empty = compute_map_viewport([])
    assert empty == MapViewport(center=Coordinates(0.0, 0.0), zoom=MIN_ZOOM)
    single = compute_map_viewport([TOKYO])
    assert single.zoom == SINGLE_POINT_ZOOM
    assert single.center == TOKYO


def test_zoom_is_clamped():
    world = compute_map_viewport([Coordinates(-80, -179), Coordinates(80, 179)])
    assert world.zoom == MIN_ZOOM
    tiny = compute_map_viewport([Coordinates(35.0, 135.0), Coordinates(35.0, 135.0)])
    assert tiny.zoom == MAX_ZOOM
    regional = compute_map_viewport([TOKYO, OSAKA, KYOTO])
    assert MIN_ZOOM <= regional.zoom <= MAX_ZOOM
    assert 5 <= regional.zoom <= 8


def test_labels_tag_start_and_end():
    cities = [_city("1", "Tokyo", TOKYO), _city("2", "Kyoto", KYOTO), _city("3", "Osaka", OSAKA)]
    labels = build_map_labels(cities, compute_map_viewport([TOKYO, KYOTO, OSAKA]))
    assert [(label.text, label.sub_label) for label in labels] == [
        ("Tokyo", "START"),
        ("Kyoto", None),
        ("Osaka", "END"),
    ]
    for label in labels:
        assert LABEL_X_RANGE[0] <= label.x <= LABEL_X_RANGE[1]
        assert LABEL_Y_RANGE[0] <= label.y <= LABEL_Y_RANGE[1]


def test_round_trip_collapses_to_one_label():
    cities = [_city("1", "Tokyo", TOKYO), _city("2", "Osaka", OSAKA), _city("3", " tokyo ", TOKYO)]
    labels = build_map_labels(cities, compute_map_viewport([TOKYO, OSAKA]))
    assert [(label.text, label.sub_label) for label in labels] == [
        ("Tokyo", ROUND_TRIP_TAG),
        ("Osaka", None),
    ]


def test_labels_wrap_across_antimeridian():
    fiji = Coordinates(-17.7, 178.0)
    samoa = Coordinates(-13.8, -172.0)
    viewport = MapViewport(center=Coordinates(-15.0, 179.0), zoom=5)
    labels = build_map_labels([_city("1", "Suva", fiji), _city("2", "Apia", samoa)], viewport)
    # Apia sits just east of the centre, not a world away on the left edge.
    assert labels[1].x > labels[0].x


def test_labels_skip_unnamed_or_unlocated_stops():
    cities = [_city("1", "", TOKYO), _city("2", "Osaka", None)]
    assert build_map_labels(cities, compute_map_viewport([TOKYO])) == []
    assert build_map_labels([], compute_map_viewport([])) == []
