"""
Issue Schemas

Pydantic models for issue creation, status updates and the location-based
issue queries.
"""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.geo import Coordinates


class IssueCategory(str, Enum):
    """Issue categories."""

    ROADS = "roads"
    LIGHTING = "lighting"
    WATER = "water"
    CLEANLINESS = "cleanliness"
    SAFETY = "safety"
    OBSTRUCTIONS = "obstructions"


class IssueStatus(str, Enum):
    """Issue lifecycle states."""

    REPORTED = "reported"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"


class IssueCreate(BaseModel):
    """
    Request schema for issue creation.

    Coordinates are read and validated by the location middleware, so they
    are not part of this model.
    """

    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    category: IssueCategory
    address: Optional[str] = None
    reporter_id: Optional[str] = None
    is_anonymous: bool = False


class IssueStatusUpdate(BaseModel):
    status: IssueStatus
    comment: str = Field(..., min_length=1, description="Reason for the status change")


class IssueResponse(BaseModel):
    id: int
    title: str
    description: str
    category: IssueCategory
    status: IssueStatus
    latitude: float
    longitude: float
    address: Optional[str] = None
    is_anonymous: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class IssueWithDistance(IssueResponse):
    distance_km: float = Field(..., description="Distance from the search center, 2 decimals")
    distance_meters: int = Field(..., description="Distance from the search center, rounded")


class IssueFilters(BaseModel):
    """Optional filters for nearby-issue queries."""

    status: List[IssueStatus] = Field(default_factory=list)
    category: List[IssueCategory] = Field(default_factory=list)
    limit: Optional[int] = None
    offset: int = 0


class NearbyIssuesMetadata(BaseModel):
    total: int
    count: int
    limit: int
    offset: int
    radius: float
    user_location: Coordinates
    filters: IssueFilters


class NearbyIssuesResponse(BaseModel):
    issues: List[IssueWithDistance]
    metadata: NearbyIssuesMetadata


class ClosestIssuesResponse(BaseModel):
    issues: List[IssueWithDistance]
    count: int
    user_location: Coordinates


class DistanceRange(BaseModel):
    label: str
    min: float = Field(..., ge=0)
    max: float = Field(..., gt=0)


class DistanceGroup(BaseModel):
    range: DistanceRange
    issues: List[IssueWithDistance]
    count: int


class GroupedIssuesResponse(BaseModel):
    grouped_issues: Dict[str, DistanceGroup]
    total_issues: int
    user_location: Coordinates
    max_radius: float


class RadiusCount(BaseModel):
    count: int
    radius: float


class LocationStatistics(BaseModel):
    by_distance: Dict[str, RadiusCount]
    by_category: Dict[str, int]
    by_status: Dict[str, int]
    total: int


class LocationStatisticsResponse(BaseModel):
    statistics: LocationStatistics
    user_location: Coordinates
    generated_at: datetime


class IssueAccessResult(BaseModel):
    has_access: bool
    issue: Optional[IssueResponse] = None
    distance: Optional[float] = None
    max_radius: float
    error: Optional[str] = None


class ReportingLocationResult(BaseModel):
    is_valid: bool
    location: Optional[Coordinates] = None
    error: Optional[str] = None
