"""
Unit tests for the geospatial utilities.
"""

import math
from decimal import Decimal

import pytest

from app.core.exceptions import InvalidCoordinatesError, InvalidRadiusError
from app.schemas.geo import BoundingBox
from app.utils import geospatial
from tests.helpers import BOSTON, NYC


@pytest.mark.parametrize(
    "latitude, longitude",
    [
        (0, 0),
        (90, 180),
        (-90, -180),
        (40.7128, -74.0060),
        ("45.5", "-122.6"),
        (" 12.5 ", "7"),
        (Decimal("51.5074"), Decimal("-0.1278")),
    ],
)
def test_validate_coordinates_accepts_valid_pairs(latitude, longitude):
    assert geospatial.validate_coordinates(latitude, longitude) is True


@pytest.mark.parametrize(
    "latitude, longitude",
    [
        (90.0001, 0),
        (-90.0001, 0),
        (0, 180.0001),
        (0, -180.0001),
        ("invalid", 0),
        ("", 0),
        (None, 0),
        (0, None),
        (True, 0),
        (float("nan"), 0),
        (0, float("inf")),
        ("NaN", "0"),
        ([40.7], -74.0),
    ],
)
def test_validate_coordinates_rejects_invalid_pairs(latitude, longitude):
    assert geospatial.validate_coordinates(latitude, longitude) is False


def test_normalize_coordinates_rounds_to_six_decimals():
    """Test normalization rounds both components to 6 decimal places."""
    normalized = geospatial.normalize_coordinates(40.712812345678901, -74.006012345678901)

    assert normalized.latitude == 40.712812
    assert normalized.longitude == -74.006012


def test_normalize_coordinates_is_idempotent():
    once = geospatial.normalize_coordinates(40.712812345678901, -74.006012345678901)
    twice = geospatial.normalize_coordinates(once.latitude, once.longitude)

    assert twice == once


def test_normalize_coordinates_parses_strings():
    normalized = geospatial.normalize_coordinates("40.7128", " -74.0060 ")

    assert normalized.latitude == 40.7128
    assert normalized.longitude == -74.006


def test_round_coordinate_rounds_half_away_from_zero():
    assert geospatial.round_coordinate(0.0000005, 6) == 0.000001
    assert geospatial.round_coordinate(-0.0000005, 6) == -0.000001
    assert geospatial.round_coordinate(1.2345674, 6) == 1.234567


def test_round_coordinate_drops_negative_zero():
    rounded = geospatial.round_coordinate(-0.0000001, 6)

    assert rounded == 0.0
    assert math.copysign(1.0, rounded) == 1.0


def test_normalize_coordinates_rejects_invalid_input():
    with pytest.raises(InvalidCoordinatesError) as exc_info:
        geospatial.normalize_coordinates(91, 0)

    assert exc_info.value.code == "INVALID_COORDINATES"


def test_bounding_box_city_scale():
    """Test bounding box deltas for a 5km radius around New York."""
    lat, lng = NYC
    bbox = geospatial.get_bounding_box(lat, lng, 5)

    expected_delta_lat = math.degrees(5 / 6371)
    assert bbox.north - lat == pytest.approx(expected_delta_lat, abs=1e-9)
    assert lat - bbox.south == pytest.approx(expected_delta_lat, abs=1e-9)
    assert bbox.north - lat == pytest.approx(0.045, abs=1e-3)

    # Longitude delta is widened by 1/cos(latitude)
    delta_lng = bbox.east - lng
    assert delta_lng > bbox.north - lat
    assert delta_lng == pytest.approx(expected_delta_lat / math.cos(math.radians(lat)), abs=1e-9)

    assert bbox.south < lat < bbox.north
    assert bbox.west < lng < bbox.east
    assert bbox.crosses_antimeridian is False


def test_bounding_box_near_pole_stays_finite():
    """Test a center at 89.9 degrees produces finite, in-range bounds."""
    bbox = geospatial.get_bounding_box(89.9, 10.0, 5)

    for bound in (bbox.north, bbox.south, bbox.east, bbox.west):
        assert math.isfinite(bound)
    assert bbox.north < 90
    assert -180 <= bbox.west < 10.0 < bbox.east <= 180
    assert bbox.east - 10.0 > 20


@pytest.mark.parametrize("latitude", [89.99, 90.0, -89.99, -90.0])
def test_bounding_box_touching_pole_spans_all_longitudes(latitude):
    bbox = geospatial.get_bounding_box(latitude, 45.0, 5)

    assert bbox.west == -180.0
    assert bbox.east == 180.0
    assert -90.0 <= bbox.south <= bbox.north <= 90.0
    if latitude > 0:
        assert bbox.north == 90.0
    else:
        assert bbox.south == -90.0


def test_bounding_box_wraps_across_antimeridian():
    """Test east/west wrap into [-180, 180] when the box crosses 180 degrees."""
    bbox = geospatial.get_bounding_box(0.0, 179.99, 5)
    delta = math.degrees(5 / 6371)

    assert bbox.crosses_antimeridian is True
    assert bbox.west == pytest.approx(179.99 - delta)
    assert bbox.east == pytest.approx(179.99 + delta - 360)
    assert bbox.west > bbox.east

    assert geospatial.is_within_bounding_box(0.0, -179.99, bbox)
    assert geospatial.is_within_bounding_box(0.0, 179.97, bbox)
    assert not geospatial.is_within_bounding_box(0.0, 0.0, bbox)


def test_bounding_box_wraps_on_western_side():
    bbox = geospatial.get_bounding_box(-17.7, -179.98, 3)

    assert bbox.crosses_antimeridian is True
    assert bbox.west > 179
    assert bbox.east > -180
    assert geospatial.is_within_bounding_box(-17.7, 179.995, bbox)


@pytest.mark.parametrize("radius", [0, -1, "abc", None, float("nan")])
def test_bounding_box_rejects_invalid_radius(radius):
    with pytest.raises(InvalidRadiusError):
        geospatial.get_bounding_box(40.0, -74.0, radius)


def test_bounding_box_rejects_invalid_center():
    with pytest.raises(InvalidCoordinatesError):
        geospatial.get_bounding_box(95.0, -74.0, 1)


def test_bounding_box_accepts_string_center():
    from_strings = geospatial.get_bounding_box(" 40.7128 ", "-74.006", "2")

    assert from_strings == geospatial.get_bounding_box(40.7128, -74.006, 2)


def test_bounding_box_model_rejects_inverted_latitudes():
    with pytest.raises(ValueError):
        BoundingBox(north=10.0, south=20.0, east=5.0, west=-5.0)


@pytest.mark.parametrize(
    "longitude, expected",
    [(0.0, 0.0), (180.0, 180.0), (-180.0, -180.0), (190.0, -170.0), (-190.0, 170.0), (540.0, -180.0)],
)
def test_normalize_longitude(longitude, expected):
    assert geospatial.normalize_longitude(longitude) == pytest.approx(expected)


def test_calculate_bearing_new_york_to_boston():
    """Test the bearing from New York to Boston points north-east."""
    bearing = geospatial.calculate_bearing(*NYC, *BOSTON)

    assert 0 <= bearing < 360
    assert 45 < bearing < 55


@pytest.mark.parametrize(
    "destination, expected",
    [((1.0, 0.0), 0.0), ((0.0, 1.0), 90.0), ((-1.0, 0.0), 180.0), ((0.0, -1.0), 270.0)],
)
def test_calculate_bearing_cardinal_directions(destination, expected):
    assert geospatial.calculate_bearing(0.0, 0.0, *destination) == pytest.approx(expected)


def test_calculate_bearing_same_point_is_zero():
    assert geospatial.calculate_bearing(*NYC, *NYC) == 0.0


def test_calculate_distance_new_york_to_boston():
    distance = geospatial.calculate_distance(*NYC, *BOSTON)

    assert 300 < distance < 312


def test_calculate_distance_across_antimeridian():
    distance = geospatial.calculate_distance(0.0, 179.99, 0.0, -179.99)

    assert distance == pytest.approx(math.radians(0.02) * 6371, rel=1e-6)


def test_is_within_radius():
    assert geospatial.is_within_radius(0.0, 0.0, 0.0, 0.01, 2)
    assert not geospatial.is_within_radius(0.0, 0.0, 0.0, 0.1, 2)


def test_unit_conversions():
    assert geospatial.meters_to_km(5500) == 5.5
    assert geospatial.km_to_meters(3.2) == 3200
    assert geospatial.meters_to_km(0) == 0
