"""
Geo API Endpoint

Exposes the geospatial helpers the map view needs to draw and query the
neighborhood search area.
"""

from fastapi import APIRouter, Depends, Query

from app.core.exceptions import InvalidCoordinatesError
from app.middleware.location import validate_coordinates, validate_radius
from app.schemas.geo import BearingResponse, BoundingBoxResponse, Coordinates
from app.utils import geospatial

router = APIRouter()


@router.get("/bounding-box", response_model=BoundingBoxResponse)
async def get_bounding_box(
    coordinates: Coordinates = Depends(validate_coordinates),
    radius: float = Depends(validate_radius),
) -> BoundingBoxResponse:
    """
    Bounding box of the search area around ``lat``/``lng``.

    When ``crosses_antimeridian`` is true, ``west > east`` and the box covers
    ``[west, 180]`` plus ``[-180, east]``.
    """
    bbox = geospatial.get_bounding_box(coordinates.latitude, coordinates.longitude, radius)
    return BoundingBoxResponse(
        center=coordinates,
        radius_km=radius,
        bounding_box=bbox,
        crosses_antimeridian=bbox.crosses_antimeridian,
    )


@router.get("/bearing", response_model=BearingResponse)
async def get_bearing(
    from_lat: str = Query(...),
    from_lng: str = Query(...),
    to_lat: str = Query(...),
    to_lng: str = Query(...),
) -> BearingResponse:
    """Initial bearing and distance from one point to another."""
    if not geospatial.validate_coordinates(from_lat, from_lng):
        raise InvalidCoordinatesError("Invalid origin coordinates")
    if not geospatial.validate_coordinates(to_lat, to_lng):
        raise InvalidCoordinatesError("Invalid destination coordinates")

    origin = geospatial.normalize_coordinates(from_lat, from_lng)
    destination = geospatial.normalize_coordinates(to_lat, to_lng)
    return BearingResponse(
        origin=origin,
        destination=destination,
        bearing=geospatial.calculate_bearing(
            origin.latitude, origin.longitude, destination.latitude, destination.longitude
        ),
        distance_km=round(
            geospatial.calculate_distance(
                origin.latitude, origin.longitude, destination.latitude, destination.longitude
            ),
            3,
        ),
    )
