"""Shared geometry helpers for tests."""

# Kilometers per degree of latitude on the 6371 km sphere
KM_PER_DEGREE = 111.19492664455873

NYC = (40.7128, -74.0060)
BOSTON = (42.3601, -71.0589)


def north_of(latitude: float, km: float) -> float:
    """Latitude ``km`` kilometers due north of ``latitude``."""
    return latitude + km / KM_PER_DEGREE
