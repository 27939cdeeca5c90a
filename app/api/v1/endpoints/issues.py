"""
Issues API Endpoint

Location-gated issue queries plus issue creation and status updates.
Coordinates, radius and user location are validated by the location
middleware dependencies before any handler runs.
"""

import logging
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.db.database import get_db
from app.middleware.location import (
    enforce_radius_access,
    validate_coordinates,
    validate_issue_location,
    validate_radius,
)
from app.schemas.geo import Coordinates
from app.schemas.issue import (
    ClosestIssuesResponse,
    GroupedIssuesResponse,
    IssueCategory,
    IssueCreate,
    IssueFilters,
    IssueResponse,
    IssueStatus,
    IssueStatusUpdate,
    IssueWithDistance,
    LocationStatisticsResponse,
    NearbyIssuesResponse,
)
from app.services.geolocation_service import (
    GeolocationServiceError,
    geolocation_service,
    to_issue_with_distance,
)
from app.services.issue_service import issue_service
from app.utils import geospatial

logger = logging.getLogger(__name__)

router = APIRouter()


def _service_error(e: GeolocationServiceError) -> HTTPException:
    logger.error("Geolocation service error: %s", str(e))
    return HTTPException(status_code=500, detail=f"Geolocation service error: {str(e)}")


@router.get("/nearby", response_model=NearbyIssuesResponse)
async def get_nearby_issues(
    coordinates: Coordinates = Depends(validate_coordinates),
    radius: float = Depends(validate_radius),
    status: List[IssueStatus] = Query(default=[]),
    category: List[IssueCategory] = Query(default=[]),
    limit: Optional[int] = Query(default=None, ge=1),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
) -> Any:
    """
    Issues within ``radius`` km of ``lat``/``lng``, nearest first.
    """
    filters = IssueFilters(status=status, category=category, limit=limit, offset=offset)
    try:
        return geolocation_service.get_issues_within_radius(db, coordinates, radius, filters)
    except GeolocationServiceError as e:
        raise _service_error(e) from e


@router.get("/nearby/closest", response_model=ClosestIssuesResponse)
async def get_closest_issues(
    coordinates: Coordinates = Depends(validate_coordinates),
    count: int = Query(default=5, ge=1, le=50),
    db: Session = Depends(get_db),
) -> Any:
    """
    The ``count`` issues closest to ``lat``/``lng`` within the maximum radius.
    """
    try:
        return geolocation_service.get_closest_issues(db, coordinates, count)
    except GeolocationServiceError as e:
        raise _service_error(e) from e


@router.get("/nearby/grouped", response_model=GroupedIssuesResponse)
async def get_grouped_issues(
    coordinates: Coordinates = Depends(validate_coordinates),
    radius: float = Depends(validate_radius),
    db: Session = Depends(get_db),
) -> Any:
    """
    Nearby issues grouped into distance bands.
    """
    try:
        return geolocation_service.get_issues_by_distance_ranges(db, coordinates, radius)
    except GeolocationServiceError as e:
        raise _service_error(e) from e


@router.get("/nearby/stats", response_model=LocationStatisticsResponse)
async def get_location_statistics(
    coordinates: Coordinates = Depends(validate_coordinates),
    db: Session = Depends(get_db),
) -> Any:
    """
    Issue counts around ``lat``/``lng`` by distance, category and status.
    """
    try:
        return geolocation_service.get_location_statistics(db, coordinates)
    except GeolocationServiceError as e:
        raise _service_error(e) from e


@router.get("/{issue_id}", response_model=IssueWithDistance)
async def get_issue(
    issue_id: int,
    user_location: Coordinates = Depends(enforce_radius_access()),
    db: Session = Depends(get_db),
) -> Any:
    """
    A single issue, only when it lies within the user's neighborhood zone.
    """
    issue = issue_service.get_issue(db, issue_id)
    distance = geospatial.calculate_distance(
        user_location.latitude,
        user_location.longitude,
        float(issue.latitude),  # type: ignore[union-attr, arg-type]
        float(issue.longitude),  # type: ignore[union-attr, arg-type]
    )
    return to_issue_with_distance(issue, distance)  # type: ignore[arg-type]


@router.post("", response_model=IssueResponse, status_code=201)
async def create_issue(
    issue_in: IssueCreate,
    location: Coordinates = Depends(validate_issue_location),
    db: Session = Depends(get_db),
) -> Any:
    """
    Report a new issue at ``latitude``/``longitude``.

    Optional ``userLat``/``userLng`` must lie within reporting distance.
    """
    return await issue_service.create_issue(db, issue_in, location)


@router.patch("/{issue_id}/status", response_model=IssueResponse)
async def update_issue_status(
    issue_id: int,
    status_in: IssueStatusUpdate,
    user_location: Coordinates = Depends(enforce_radius_access()),
    db: Session = Depends(get_db),
) -> Any:
    """
    Change an issue's status and notify its reporter in real time.

    Only users within the issue's neighborhood zone (``userLat``/``userLng``)
    may change it.
    """
    return await issue_service.update_status(db, issue_id, status_in)
