"""
Location and Coordinate Type Definitions

Pydantic models for representing geographic coordinates and the derived
search areas used by the location middleware and the issue store.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Coordinates(BaseModel):
    """
    Geographic coordinates (latitude and longitude).

    Instances produced by ``normalize_coordinates`` are rounded to the
    configured precision and never mutated afterwards.
    """

    model_config = ConfigDict(frozen=True)

    latitude: float = Field(..., ge=-90.0, le=90.0, description="Latitude in decimal degrees")
    longitude: float = Field(..., ge=-180.0, le=180.0, description="Longitude in decimal degrees")

    @field_validator("latitude")
    @classmethod
    def validate_latitude(cls, v: float) -> float:
        """Ensure latitude is within valid range."""
        if not -90.0 <= v <= 90.0:
            raise ValueError("Latitude must be between -90 and 90 degrees")
        return v

    @field_validator("longitude")
    @classmethod
    def validate_longitude(cls, v: float) -> float:
        """Ensure longitude is within valid range."""
        if not -180.0 <= v <= 180.0:
            raise ValueError("Longitude must be between -180 and 180 degrees")
        return v

    def __str__(self) -> str:
        return f"({self.latitude}, {self.longitude})"


class BoundingBox(BaseModel):
    """
    Axis-aligned latitude/longitude rectangle around a center point.

    ``west > east`` means the box crosses the antimeridian and covers
    ``[west, 180]`` plus ``[-180, east]``.
    """

    model_config = ConfigDict(frozen=True)

    north: float = Field(..., ge=-90.0, le=90.0)
    south: float = Field(..., ge=-90.0, le=90.0)
    east: float = Field(..., ge=-180.0, le=180.0)
    west: float = Field(..., ge=-180.0, le=180.0)

    @model_validator(mode="after")
    def check_latitude_order(self) -> "BoundingBox":
        if self.south > self.north:
            raise ValueError("South bound must not exceed north bound")
        return self

    @property
    def crosses_antimeridian(self) -> bool:
        return self.west > self.east

    def contains(self, latitude: float, longitude: float) -> bool:
        if not self.south <= latitude <= self.north:
            return False
        if self.crosses_antimeridian:
            return longitude >= self.west or longitude <= self.east
        return self.west <= longitude <= self.east


class BearingResponse(BaseModel):
    """Initial great-circle bearing between two points."""

    origin: Coordinates
    destination: Coordinates
    bearing: float = Field(..., ge=0.0, lt=360.0, description="Degrees clockwise from north")
    distance_km: float


class BoundingBoxResponse(BaseModel):
    center: Coordinates
    radius_km: float
    bounding_box: BoundingBox
    crosses_antimeridian: bool
