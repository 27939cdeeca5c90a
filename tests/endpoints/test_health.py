from unittest.mock import patch

from fastapi.testclient import TestClient

from app.schemas.health import ServiceHealth


def test_health_check_all_services_healthy(client: TestClient):
    """Test health check when all services are healthy."""
    response = client.get("/api/v1/health")

    assert response.status_code == 200
    data = response.json()

    assert data["service"] == "civictrack-backend"
    assert data["healthy"] is True
    assert "timestamp" in data

    # Check all dependencies are healthy
    assert data["database"]["healthy"] is True
    assert data["notification_service"]["healthy"] is True


def test_health_check_database_unhealthy(client: TestClient):
    """Test health check when database is unhealthy."""

    with patch("app.db.database.health_check") as mock_db:
        mock_db.return_value = ServiceHealth(
            healthy=False, message="Database connection failed: Connection refused"
        )

        response = client.get("/api/v1/health")

        assert response.status_code == 503
        data = response.json()["detail"]

        assert data["healthy"] is False
        assert data["database"]["healthy"] is False
        assert data["notification_service"]["healthy"] is True


def test_health_check_notification_service_unhealthy(client: TestClient):
    """Test health check when the notification hub is unavailable."""

    with patch(
        "app.services.notification_service.notification_service.health_check"
    ) as mock_notifications:
        mock_notifications.return_value = ServiceHealth(
            healthy=False, message="Notification hub is not running"
        )

        response = client.get("/api/v1/health")

        assert response.status_code == 503
        data = response.json()["detail"]

        assert data["healthy"] is False
        assert data["database"]["healthy"] is True
        assert data["notification_service"]["healthy"] is False


def test_health_check_response_structure(client: TestClient):
    """Test that the health check response has the correct structure."""
    response = client.get("/api/v1/health")

    assert response.status_code == 200
    data = response.json()

    # Check top-level structure
    required_fields = [
        "service",
        "version",
        "timestamp",
        "healthy",
        "database",
        "notification_service",
    ]
    for field in required_fields:
        assert field in data

    # Check service health structure
    for service in ["database", "notification_service"]:
        service_data = data[service]
        assert "healthy" in service_data
        assert "message" in service_data
        assert isinstance(service_data["healthy"], bool)
        assert isinstance(service_data["message"], str)
