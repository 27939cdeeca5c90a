"""
Location Middleware

FastAPI dependencies that gate every geolocation-bearing request before it
reaches business logic or a storage query.

Each dependency either returns the validated value (the request continues)
or raises a ``CivicTrackError`` (the request stops and the application's
exception handler renders the ``{"error": {...}}`` body). Validated values
are also stored on ``request.state`` for handlers that read them there.

The ``resolve_*`` functions are the pure validation steps; the async
dependencies only gather raw input from the request and delegate to them.
"""

import json
import logging
from typing import Any, Awaitable, Callable, Mapping, Optional, Tuple

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import (
    InvalidCoordinatesError,
    InvalidIssueLocationError,
    InvalidRadiusError,
    InvalidUserLocationError,
    IssueNotFoundError,
    IssueTooFarError,
    LocationAccessDeniedError,
    UserLocationRequiredError,
)
from app.db.database import get_db
from app.schemas.geo import Coordinates
from app.services.geolocation_service import GeolocationServiceError, geolocation_service
from app.utils import geospatial

logger = logging.getLogger(__name__)

COORDINATE_ERROR_DETAILS = {
    "latitude": "Must be between -90 and 90",
    "longitude": "Must be between -180 and 180",
}


async def read_json_body(request: Request) -> Mapping[str, Any]:
    """
    Return the request's JSON object body, or an empty mapping.

    GET requests, empty bodies and bodies that are not a JSON object all
    count as "no body" so that lookups fall through to the next source.
    """
    raw = await request.body()
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except ValueError:
        logger.debug("Ignoring non-JSON request body on %s", request.url.path)
        return {}
    return data if isinstance(data, dict) else {}


def _has_pair(params: Mapping[str, Any], lat_key: str, lng_key: str) -> bool:
    return params.get(lat_key) is not None and params.get(lng_key) is not None


def resolve_coordinates(
    body: Mapping[str, Any], query: Mapping[str, Any], path: Mapping[str, Any]
) -> Coordinates:
    """
    Pick, validate and normalize the request coordinates.

    Precedence: body ``latitude``/``longitude``, then query ``lat``/``lng``,
    then path ``lat``/``lng``. The first source carrying both values wins.

    Raises:
        InvalidCoordinatesError: If no source carries a pair, or the chosen
            pair is malformed or out of range
    """
    sources: Tuple[Tuple[Mapping[str, Any], str, str], ...] = (
        (body, "latitude", "longitude"),
        (query, "lat", "lng"),
        (path, "lat", "lng"),
    )
    for params, lat_key, lng_key in sources:
        if _has_pair(params, lat_key, lng_key):
            latitude, longitude = params[lat_key], params[lng_key]
            break
    else:
        raise InvalidCoordinatesError(
            "Latitude and longitude are required", details=COORDINATE_ERROR_DETAILS
        )

    if not geospatial.validate_coordinates(latitude, longitude):
        raise InvalidCoordinatesError(details=COORDINATE_ERROR_DETAILS)

    return geospatial.normalize_coordinates(latitude, longitude)


def resolve_radius(
    raw: Any,
    min_km: Optional[float] = None,
    max_km: Optional[float] = None,
    default_km: Optional[float] = None,
) -> float:
    """
    Parse and bounds-check a radius in kilometers.

    An absent or blank value falls back to the default radius. The accepted
    range is inclusive on both ends: the lower bound (0.1 km by default) is
    itself accepted and only smaller values are rejected.

    Raises:
        InvalidRadiusError: If the value is not numeric or outside the range
    """
    minimum = settings.RADIUS_MIN_KM if min_km is None else min_km
    maximum = settings.RADIUS_MAX_KM if max_km is None else max_km
    default = settings.RADIUS_DEFAULT_KM if default_km is None else default_km

    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return default

    radius = geospatial.parse_number(raw)
    if radius is None or not minimum <= radius <= maximum:
        raise InvalidRadiusError(
            f"Radius must be between {minimum:g}km and {maximum:g}km",
            details={"provided": raw, "min": minimum, "max": maximum, "default": default},
        )
    return radius


async def validate_coordinates(request: Request) -> Coordinates:
    """Dependency: validated, normalized request coordinates."""
    body = await read_json_body(request)
    coordinates = resolve_coordinates(body, request.query_params, request.path_params)
    request.state.coordinates = coordinates
    return coordinates


def validate_radius(request: Request) -> float:
    """Dependency: validated search radius in kilometers (query ``radius``)."""
    radius = resolve_radius(request.query_params.get("radius"))
    request.state.radius = radius
    return radius


def _user_location_params(
    query: Mapping[str, Any], body: Mapping[str, Any]
) -> Tuple[Any, Any]:
    if _has_pair(query, "userLat", "userLng"):
        return query["userLat"], query["userLng"]
    return body.get("userLat"), body.get("userLng")


def enforce_radius_access(
    max_radius: Optional[float] = None,
) -> Callable[..., Awaitable[Coordinates]]:
    """
    Build a dependency restricting access to the user's neighborhood zone.

    The user's location (``userLat``/``userLng``, query first, then body) is
    required. When the route has an ``issue_id`` path parameter, the issue
    must exist and lie within ``max_radius`` km of the user.

    Args:
        max_radius: Maximum allowed distance in km (defaults to settings.RADIUS_MAX_KM)
    """

    async def dependency(request: Request, db: Session = Depends(get_db)) -> Coordinates:
        limit = settings.RADIUS_MAX_KM if max_radius is None else max_radius
        body = await read_json_body(request)
        user_lat, user_lng = _user_location_params(request.query_params, body)

        if not geospatial.validate_coordinates(user_lat, user_lng):
            raise UserLocationRequiredError()
        user_location = geospatial.normalize_coordinates(user_lat, user_lng)

        issue_id = request.path_params.get("issue_id")
        if issue_id is not None:
            try:
                access = geolocation_service.check_issue_access(
                    db, int(issue_id), user_location, limit
                )
            except ValueError as e:
                raise IssueNotFoundError() from e
            except GeolocationServiceError as e:
                raise HTTPException(
                    status_code=500, detail=f"Geolocation service error: {str(e)}"
                ) from e

            if access.distance is None:
                raise IssueNotFoundError()
            if not access.has_access:
                logger.info(
                    "Denied access to issue %s: %.2fkm away (max %skm)",
                    issue_id,
                    access.distance,
                    limit,
                )
                raise LocationAccessDeniedError(
                    f"Issue is outside your neighborhood zone "
                    f"({access.distance:.2f}km away, max {limit:g}km allowed)",
                    details={"distance_km": access.distance, "max_radius_km": limit},
                )

        request.state.user_location = user_location
        return user_location

    return dependency


def resolve_issue_location(body: Mapping[str, Any]) -> Coordinates:
    """
    Validate the location of an issue being reported.

    The reporter's own location (``userLat``/``userLng``) is optional; when
    either value is present both must be valid and the reporter must be
    within MAX_REPORT_DISTANCE_KM of the issue.

    Raises:
        InvalidIssueLocationError: Bad issue coordinates
        InvalidUserLocationError: Bad reporter coordinates
        IssueTooFarError: Reporter too far from the issue
    """
    latitude, longitude = body.get("latitude"), body.get("longitude")
    if not geospatial.validate_coordinates(latitude, longitude):
        raise InvalidIssueLocationError(details=COORDINATE_ERROR_DETAILS)
    location = geospatial.normalize_coordinates(latitude, longitude)

    user_lat, user_lng = body.get("userLat"), body.get("userLng")
    if user_lat is not None or user_lng is not None:
        if not geospatial.validate_coordinates(user_lat, user_lng):
            raise InvalidUserLocationError(details=COORDINATE_ERROR_DETAILS)
        reporter = geospatial.normalize_coordinates(user_lat, user_lng)

        limit = settings.MAX_REPORT_DISTANCE_KM
        distance = geospatial.calculate_distance(
            reporter.latitude, reporter.longitude, location.latitude, location.longitude
        )
        if distance > limit:
            raise IssueTooFarError(
                f"Issue location is too far from your current location "
                f"({distance:.2f}km away, max {limit:g}km allowed)",
                details={"distance_km": round(distance, 2), "max_distance_km": limit},
            )

    return location


async def validate_issue_location(request: Request) -> Coordinates:
    """Dependency: validated, normalized location of a new issue."""
    body = await read_json_body(request)
    location = resolve_issue_location(body)
    request.state.issue_location = location
    return location
