from unittest.mock import MagicMock, patch

import requests

from domain.models import Coordinates
from services.directions import (
    DIRECTIONS_URL,
    directions_mode_for_transport,
    fetch_directions_polyline,
    format_coord,
)

A = Coordinates(35.6762, 139.6503)
B = Coordinates(34.6937, 135.5023)


def _response(status=200, payload=None):
    resp = MagicMock()
    resp.status_code = status
    resp.json.return_value = payload
    return resp


def test_transport_modes():
    assert directions_mode_for_transport(None) == "driving"
    assert directions_mode_for_transport("walk") == "walking"
    assert directions_mode_for_transport("bicycle") == "bicycling"
    assert directions_mode_for_transport("train") == "driving"
    for mode in ("plane", "boat", "na"):
        assert directions_mode_for_transport(mode) is None


def test_format_coord():
    assert format_coord(A) == "35.676200,139.650300"


@patch("services.directions._session.get")
def test_fetch_returns_overview_polyline(mock_get):
    mock_get.return_value = _response(payload={"routes": [{"overview_polyline": {"points": "a~l~Fjk~uOwHJy@P"}}]})

    assert fetch_directions_polyline(A, B, "key", "walk") == "a~l~Fjk~uOwHJy@P"
    args, kwargs = mock_get.call_args
    assert args[0] == DIRECTIONS_URL
    assert kwargs["params"]["mode"] == "walking"
    assert kwargs["params"]["origin"] == format_coord(A)
    assert kwargs["params"]["key"] == "key"


@patch("services.directions._session.get")
def test_unroutable_or_unkeyed_legs_skip_lookup(mock_get):
    assert fetch_directions_polyline(A, B, "key", "plane") is None
    assert fetch_directions_polyline(A, B, "", "train") is None
    mock_get.assert_not_called()


@patch("services.directions._session.get")
def test_failures_return_none(mock_get):
    mock_get.return_value = _response(status=500)
    assert fetch_directions_polyline(A, B, "key") is None

    mock_get.return_value = _response(payload={"routes": []})
    assert fetch_directions_polyline(A, B, "key") is None

    mock_get.side_effect = requests.ConnectionError("offline")
    assert fetch_directions_polyline(A, B, "key") is None
