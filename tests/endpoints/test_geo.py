import math

import pytest
from fastapi.testclient import TestClient

from tests.helpers import BOSTON, NYC


def test_bounding_box(client: TestClient):
    """Test the search area around New York with the default radius."""
    lat, lng = NYC
    response = client.get("/api/v1/geo/bounding-box", params={"lat": lat, "lng": lng})

    assert response.status_code == 200
    data = response.json()
    assert data["radius_km"] == 3.0
    assert data["crosses_antimeridian"] is False
    assert data["center"] == {"latitude": lat, "longitude": lng}

    bbox = data["bounding_box"]
    assert bbox["north"] - lat == pytest.approx(math.degrees(3 / 6371), abs=1e-9)
    assert bbox["west"] < lng < bbox["east"]


def test_bounding_box_across_antimeridian(client: TestClient):
    response = client.get(
        "/api/v1/geo/bounding-box", params={"lat": 0, "lng": 179.99, "radius": 5}
    )

    assert response.status_code == 200
    data = response.json()
    assert data["crosses_antimeridian"] is True
    assert data["bounding_box"]["west"] > data["bounding_box"]["east"]


def test_bounding_box_invalid_radius(client: TestClient):
    response = client.get(
        "/api/v1/geo/bounding-box", params={"lat": 0, "lng": 0, "radius": "0.05"}
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_RADIUS"


def test_bounding_box_invalid_coordinates(client: TestClient):
    response = client.get("/api/v1/geo/bounding-box", params={"lat": "abc", "lng": 0})

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_COORDINATES"


def test_bearing(client: TestClient):
    response = client.get(
        "/api/v1/geo/bearing",
        params={
            "from_lat": NYC[0],
            "from_lng": NYC[1],
            "to_lat": BOSTON[0],
            "to_lng": BOSTON[1],
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert 45 < data["bearing"] < 55
    assert 300 < data["distance_km"] < 312
    assert data["destination"] == {"latitude": BOSTON[0], "longitude": BOSTON[1]}


def test_bearing_invalid_destination(client: TestClient):
    response = client.get(
        "/api/v1/geo/bearing",
        params={"from_lat": 0, "from_lng": 0, "to_lat": 0, "to_lng": 200},
    )

    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "INVALID_COORDINATES"
    assert error["message"] == "Invalid destination coordinates"
