"""
Application Errors

Every request-level failure that should reach the client as a structured
``{"error": {...}}`` body derives from ``CivicTrackError``.
"""

from typing import Any, Dict, Optional


class CivicTrackError(Exception):
    """Base exception carrying a machine-readable code and an HTTP status."""

    code = "INTERNAL_ERROR"
    status_code = 500
    default_message = "An unexpected error occurred"

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class InvalidCoordinatesError(CivicTrackError):
    """Raised when latitude/longitude are missing, malformed or out of range."""

    code = "INVALID_COORDINATES"
    status_code = 400
    default_message = "Invalid latitude or longitude coordinates"


class InvalidRadiusError(CivicTrackError):
    """Raised when a search radius falls outside the accepted range."""

    code = "INVALID_RADIUS"
    status_code = 400
    default_message = "Invalid search radius"


class UserLocationRequiredError(CivicTrackError):
    code = "USER_LOCATION_REQUIRED"
    status_code = 400
    default_message = "Valid user location (userLat, userLng) is required for location-based access"


class InvalidIssueLocationError(CivicTrackError):
    code = "INVALID_ISSUE_LOCATION"
    status_code = 400
    default_message = "Invalid issue location coordinates"


class InvalidUserLocationError(CivicTrackError):
    code = "INVALID_USER_LOCATION"
    status_code = 400
    default_message = "Invalid user location coordinates"


class IssueTooFarError(CivicTrackError):
    code = "ISSUE_TOO_FAR"
    status_code = 400
    default_message = "Issue location is too far from your current location"


class IssueNotFoundError(CivicTrackError):
    code = "ISSUE_NOT_FOUND"
    status_code = 404
    default_message = "Issue not found"


class LocationAccessDeniedError(CivicTrackError):
    code = "LOCATION_ACCESS_DENIED"
    status_code = 403
    default_message = "Issue is outside your neighborhood zone"


class InvalidLocationError(CivicTrackError):
    code = "INVALID_LOCATION"
    status_code = 400
    default_message = "Location is not valid for reporting"
