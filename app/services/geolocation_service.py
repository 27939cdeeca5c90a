"""
Geolocation Service

Proximity-based issue queries for the neighborhood view.

Candidates are pre-filtered in SQL with the bounding box around the search
center, then filtered exactly by great-circle distance and sorted nearest
first. Hidden issues are never returned.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy import and_, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.issue import Issue
from app.schemas.geo import BoundingBox, Coordinates
from app.schemas.issue import (
    ClosestIssuesResponse,
    DistanceGroup,
    DistanceRange,
    GroupedIssuesResponse,
    IssueAccessResult,
    IssueFilters,
    IssueResponse,
    IssueWithDistance,
    LocationStatistics,
    LocationStatisticsResponse,
    NearbyIssuesMetadata,
    NearbyIssuesResponse,
    RadiusCount,
    ReportingLocationResult,
)
from app.utils import geospatial

logger = logging.getLogger(__name__)

DEFAULT_DISTANCE_RANGES = (
    DistanceRange(label="Very Close", min=0, max=1),
    DistanceRange(label="Close", min=1, max=3),
    DistanceRange(label="Nearby", min=3, max=5),
)

STATISTICS_RADII_KM = (1.0, 2.0, 3.0, 5.0)


class GeolocationServiceError(Exception):
    """Raised when a location query cannot be executed."""


def bounding_box_condition(bbox: BoundingBox):
    """SQL predicate for issues inside a bounding box, antimeridian aware."""
    latitude_condition = Issue.latitude.between(bbox.south, bbox.north)
    if bbox.crosses_antimeridian:
        longitude_condition = or_(Issue.longitude >= bbox.west, Issue.longitude <= bbox.east)
    else:
        longitude_condition = Issue.longitude.between(bbox.west, bbox.east)
    return and_(latitude_condition, longitude_condition)


def service_area() -> Optional[BoundingBox]:
    bounds = (
        settings.SERVICE_AREA_NORTH,
        settings.SERVICE_AREA_SOUTH,
        settings.SERVICE_AREA_EAST,
        settings.SERVICE_AREA_WEST,
    )
    if any(bound is None for bound in bounds):
        return None
    north, south, east, west = bounds
    return BoundingBox(north=north, south=south, east=east, west=west)


def to_issue_with_distance(issue: Issue, distance_km: float) -> IssueWithDistance:
    base = IssueResponse.model_validate(issue)
    return IssueWithDistance(
        **base.model_dump(),
        distance_km=round(distance_km, 2),
        distance_meters=round(geospatial.km_to_meters(distance_km)),
    )


class GeolocationService:
    """Service for location-based issue queries."""

    @staticmethod
    def clamp_radius(radius_km: Optional[float]) -> float:
        radius = settings.RADIUS_DEFAULT_KM if radius_km is None else radius_km
        return min(max(radius, settings.RADIUS_MIN_KM), settings.RADIUS_MAX_KM)

    @staticmethod
    def find_issues_within_radius(
        db: Session,
        center: Coordinates,
        radius_km: float,
        filters: Optional[IssueFilters] = None,
    ) -> List[Tuple[Issue, float]]:
        """
        Find visible issues within a radius, nearest first.

        Args:
            db: Database session
            center: Normalized search center
            radius_km: Search radius in kilometers
            filters: Optional status/category filters (pagination is ignored)

        Returns:
            List of (issue, distance_km) tuples sorted by distance

        Raises:
            GeolocationServiceError: If the database query fails
        """
        filters = filters or IssueFilters()
        bbox = geospatial.get_bounding_box(center.latitude, center.longitude, radius_km)

        query = db.query(Issue).filter(Issue.is_hidden.is_(False), bounding_box_condition(bbox))
        if filters.status:
            query = query.filter(Issue.status.in_([s.value for s in filters.status]))
        if filters.category:
            query = query.filter(Issue.category.in_([c.value for c in filters.category]))

        try:
            candidates = query.all()
        except SQLAlchemyError as e:
            logger.error("Nearby issue query failed: %s", str(e))
            raise GeolocationServiceError(f"Failed to retrieve nearby issues: {str(e)}") from e

        matches: List[Tuple[Issue, float]] = []
        for issue in candidates:
            distance = geospatial.calculate_distance(
                center.latitude,
                center.longitude,
                float(issue.latitude),  # type: ignore[arg-type]
                float(issue.longitude),  # type: ignore[arg-type]
            )
            if distance <= radius_km:
                matches.append((issue, distance))

        matches.sort(key=lambda match: (match[1], match[0].id))
        logger.debug(
            "Radius query at %s (%skm): %d candidates, %d matches",
            center,
            radius_km,
            len(candidates),
            len(matches),
        )
        return matches

    @classmethod
    def get_issues_within_radius(
        cls,
        db: Session,
        center: Coordinates,
        radius_km: Optional[float] = None,
        filters: Optional[IssueFilters] = None,
    ) -> NearbyIssuesResponse:
        """
        Get a page of issues within the user's neighborhood radius.

        The radius is clamped to the configured bounds, the page size is capped
        at NEARBY_MAX_LIMIT and negative offsets are treated as zero.
        """
        filters = filters or IssueFilters()
        radius = cls.clamp_radius(radius_km)
        limit = min(filters.limit or settings.NEARBY_DEFAULT_LIMIT, settings.NEARBY_MAX_LIMIT)
        offset = max(filters.offset, 0)

        matches = cls.find_issues_within_radius(db, center, radius, filters)
        page = matches[offset : offset + limit]

        logger.info(
            "Found %d issues within %skm of %s (returning %d)",
            len(matches),
            radius,
            center,
            len(page),
        )

        return NearbyIssuesResponse(
            issues=[to_issue_with_distance(issue, distance) for issue, distance in page],
            metadata=NearbyIssuesMetadata(
                total=len(matches),
                count=len(page),
                limit=limit,
                offset=offset,
                radius=radius,
                user_location=center,
                filters=IssueFilters(
                    status=filters.status,
                    category=filters.category,
                    limit=limit,
                    offset=offset,
                ),
            ),
        )

    @staticmethod
    def check_issue_access(
        db: Session,
        issue_id: int,
        user_location: Coordinates,
        max_radius: Optional[float] = None,
    ) -> IssueAccessResult:
        """
        Check whether an issue lies within the user's allowed radius.

        A missing or hidden issue comes back with ``distance`` unset.

        Raises:
            GeolocationServiceError: If the database query fails
        """
        limit = settings.RADIUS_MAX_KM if max_radius is None else max_radius
        try:
            issue = (
                db.query(Issue)
                .filter(Issue.id == issue_id, Issue.is_hidden.is_(False))
                .first()
            )
        except SQLAlchemyError as e:
            logger.error("Error checking issue access: %s", str(e))
            raise GeolocationServiceError(f"Failed to check issue access: {str(e)}") from e

        if not issue:
            return IssueAccessResult(
                has_access=False, max_radius=limit, error="Issue not found or is hidden"
            )

        distance = geospatial.calculate_distance(
            user_location.latitude,
            user_location.longitude,
            float(issue.latitude),  # type: ignore[arg-type]
            float(issue.longitude),  # type: ignore[arg-type]
        )
        has_access = distance <= limit

        return IssueAccessResult(
            has_access=has_access,
            issue=IssueResponse.model_validate(issue) if has_access else None,
            distance=round(distance, 2),
            max_radius=limit,
            error=None if has_access else f"Issue is {distance:.2f}km away (max {limit:g}km allowed)",
        )

    @classmethod
    def get_issues_by_distance_ranges(
        cls,
        db: Session,
        center: Coordinates,
        max_radius: Optional[float] = None,
        ranges: Optional[Sequence[DistanceRange]] = None,
    ) -> GroupedIssuesResponse:
        """
        Group nearby issues into labelled distance bands.

        A band includes issues with ``min <= distance < max``.
        """
        radius = cls.clamp_radius(max_radius if max_radius is not None else settings.RADIUS_MAX_KM)
        bands = ranges or DEFAULT_DISTANCE_RANGES
        matches = cls.find_issues_within_radius(db, center, radius)

        grouped: Dict[str, DistanceGroup] = {}
        for band in bands:
            issues = [
                to_issue_with_distance(issue, distance)
                for issue, distance in matches
                if band.min <= distance < band.max
            ]
            grouped[band.label] = DistanceGroup(range=band, issues=issues, count=len(issues))

        return GroupedIssuesResponse(
            grouped_issues=grouped,
            total_issues=len(matches),
            user_location=center,
            max_radius=radius,
        )

    @classmethod
    def get_closest_issues(
        cls,
        db: Session,
        center: Coordinates,
        count: int = 5,
        filters: Optional[IssueFilters] = None,
    ) -> ClosestIssuesResponse:
        """Return up to ``count`` nearest issues within the maximum radius."""
        matches = cls.find_issues_within_radius(db, center, settings.RADIUS_MAX_KM, filters)
        closest = [to_issue_with_distance(issue, distance) for issue, distance in matches[:count]]
        return ClosestIssuesResponse(issues=closest, count=len(closest), user_location=center)

    @staticmethod
    def validate_reporting_location(latitude, longitude) -> ReportingLocationResult:
        """
        Validate that a location is acceptable for reporting an issue.

        When the SERVICE_AREA_* settings are all set, the location must also
        fall inside that box.
        """
        if not geospatial.validate_coordinates(latitude, longitude):
            return ReportingLocationResult(is_valid=False, error="Invalid coordinates")
        location = geospatial.normalize_coordinates(latitude, longitude)

        area = service_area()
        if area is not None and not area.contains(location.latitude, location.longitude):
            logger.info("Rejected report location %s outside the service area", location)
            return ReportingLocationResult(
                is_valid=False, error="Location is outside the service area"
            )
        return ReportingLocationResult(is_valid=True, location=location)

    @classmethod
    def get_location_statistics(
        cls, db: Session, center: Coordinates
    ) -> LocationStatisticsResponse:
        """
        Count issues around a location by distance, category and status.

        Category and status counts cover the largest radius.
        """
        max_radius = max(STATISTICS_RADII_KM)
        matches = cls.find_issues_within_radius(db, center, max_radius)

        by_distance = {
            f"within_{radius:g}km": RadiusCount(
                count=sum(1 for _, distance in matches if distance <= radius), radius=radius
            )
            for radius in STATISTICS_RADII_KM
        }
        by_category: Dict[str, int] = {}
        by_status: Dict[str, int] = {}
        for issue, _ in matches:
            by_category[str(issue.category)] = by_category.get(str(issue.category), 0) + 1
            by_status[str(issue.status)] = by_status.get(str(issue.status), 0) + 1

        return LocationStatisticsResponse(
            statistics=LocationStatistics(
                by_distance=by_distance,
                by_category=by_category,
                by_status=by_status,
                total=len(matches),
            ),
            user_location=center,
            generated_at=datetime.now(timezone.utc),
        )


# Singleton instance for dependency injection
geolocation_service = GeolocationService()
