"""
Geospatial Utilities

Pure, stateless helpers for validating and normalizing coordinates and for
deriving search areas around a point. All calculations use a spherical earth
(mean radius 6371 km), which is accurate enough for city-scale filtering.

Invalid geographic input is an expected outcome: the validators return
``False`` / ``None`` rather than raising. Only the functions that must hand
back a typed value (``normalize_coordinates``, ``get_bounding_box``) raise,
and they raise the same errors the location middleware reports to clients.
"""

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional

from app.core.config import settings
from app.core.exceptions import InvalidCoordinatesError, InvalidRadiusError
from app.schemas.geo import BoundingBox, Coordinates

EARTH_RADIUS_KM = 6371.0

MIN_LATITUDE = -90.0
MAX_LATITUDE = 90.0
MIN_LONGITUDE = -180.0
MAX_LONGITUDE = 180.0


def parse_number(value: Any) -> Optional[float]:
    """
    Leniently parse a numeric request value.

    Numbers are accepted as-is and numeric-looking strings are parsed after
    stripping surrounding whitespace. Booleans, empty or non-numeric strings,
    other types and non-finite values yield None.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal, str)):
        return None
    if isinstance(value, str):
        value = value.strip()
    try:
        number = float(value)
    except (ValueError, OverflowError):
        return None
    if not math.isfinite(number):
        return None
    return number


def validate_coordinates(latitude: Any, longitude: Any) -> bool:
    """
    Check that a latitude/longitude pair is numeric, finite and in range.

    Args:
        latitude: Candidate latitude (number or numeric string)
        longitude: Candidate longitude (number or numeric string)

    Returns:
        True if -90 <= latitude <= 90 and -180 <= longitude <= 180
    """
    lat = parse_number(latitude)
    lng = parse_number(longitude)
    if lat is None or lng is None:
        return False
    return MIN_LATITUDE <= lat <= MAX_LATITUDE and MIN_LONGITUDE <= lng <= MAX_LONGITUDE


def round_coordinate(value: float, precision: int) -> float:
    """
    Round half away from zero on the shortest decimal representation.

    Working from ``repr`` keeps 0.0000005 rounding up the way it reads,
    instead of depending on its binary expansion.
    """
    quantum = Decimal(1).scaleb(-precision)
    rounded = float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))
    # Collapse -0.0 into 0.0
    return rounded + 0.0


def normalize_coordinates(
    latitude: Any, longitude: Any, precision: Optional[int] = None
) -> Coordinates:
    """
    Validate and round a coordinate pair to a fixed decimal precision.

    Args:
        latitude: Latitude to normalize
        longitude: Longitude to normalize
        precision: Decimal places (defaults to settings.COORDINATE_PRECISION)

    Returns:
        Coordinates with rounded latitude/longitude

    Raises:
        InvalidCoordinatesError: If the pair does not validate
    """
    if not validate_coordinates(latitude, longitude):
        raise InvalidCoordinatesError("Invalid coordinates provided for normalization")

    places = settings.COORDINATE_PRECISION if precision is None else precision
    lat = parse_number(latitude)
    lng = parse_number(longitude)
    return Coordinates(
        latitude=round_coordinate(lat, places),  # type: ignore[arg-type]
        longitude=round_coordinate(lng, places),  # type: ignore[arg-type]
    )


def normalize_longitude(longitude: float) -> float:
    """Wrap a finite longitude into [-180, 180]."""
    if MIN_LONGITUDE <= longitude <= MAX_LONGITUDE:
        return longitude
    return ((longitude + 180.0) % 360.0) - 180.0


def get_bounding_box(center_lat: Any, center_lng: Any, radius_km: Any) -> BoundingBox:
    """
    Derive the lat/lng rectangle enclosing a radius around a center point.

    The latitude delta is the radius as an angle on the mean-radius sphere.
    The longitude delta is scaled by 1/cos(latitude) for meridian convergence.

    Edge handling:
        - north/south are clamped to [-90, 90].
        - If the box reaches a pole, or the longitude delta spans the whole
          globe, east/west become the full [-180, 180] range.
        - Otherwise east/west are wrapped into [-180, 180]. A box that
          crosses the antimeridian comes back with west > east; query
          builders must OR the two longitude halves in that case.

    Raises:
        InvalidCoordinatesError: If the center is not a valid coordinate
        InvalidRadiusError: If the radius is not a positive finite number
    """
    if not validate_coordinates(center_lat, center_lng):
        raise InvalidCoordinatesError("Invalid center coordinates for bounding box")
    radius = parse_number(radius_km)
    if radius is None or radius <= 0:
        raise InvalidRadiusError("Radius must be a positive number of kilometers")

    lat, lng = float(center_lat), float(center_lng)

    angular_distance = radius / EARTH_RADIUS_KM
    delta_lat = math.degrees(angular_distance)

    north = min(lat + delta_lat, MAX_LATITUDE)
    south = max(lat - delta_lat, MIN_LATITUDE)

    cos_lat = math.cos(math.radians(lat))
    reaches_pole = north >= MAX_LATITUDE or south <= MIN_LATITUDE
    if reaches_pole or cos_lat <= 0.0:
        return BoundingBox(north=north, south=south, east=MAX_LONGITUDE, west=MIN_LONGITUDE)

    delta_lng = math.degrees(angular_distance / cos_lat)
    if delta_lng >= 180.0:
        return BoundingBox(north=north, south=south, east=MAX_LONGITUDE, west=MIN_LONGITUDE)

    return BoundingBox(
        north=north,
        south=south,
        east=normalize_longitude(lng + delta_lng),
        west=normalize_longitude(lng - delta_lng),
    )


def is_within_bounding_box(latitude: float, longitude: float, bbox: BoundingBox) -> bool:
    """Check whether a point falls inside a (possibly antimeridian-crossing) box."""
    return bbox.contains(latitude, longitude)


def calculate_bearing(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """
    Initial great-circle bearing (forward azimuth) from point 1 to point 2.

    Returns:
        Bearing in degrees clockwise from north, in [0, 360)
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_lng = math.radians(lng2 - lng1)

    y = math.sin(d_lng) * math.cos(phi2)
    x = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(d_lng)
    bearing = math.degrees(math.atan2(y, x))
    return (bearing + 360.0) % 360.0


def calculate_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance between two points in kilometers (haversine)."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lng / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(a)))


def is_within_radius(
    center_lat: float, center_lng: float, latitude: float, longitude: float, radius_km: float
) -> bool:
    return calculate_distance(center_lat, center_lng, latitude, longitude) <= radius_km


def meters_to_km(meters: float) -> float:
    return meters / 1000


def km_to_meters(km: float) -> float:
    return km * 1000
