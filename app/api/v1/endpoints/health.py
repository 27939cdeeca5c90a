from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.core.config import settings
from app.db import database
from app.db.database import get_db
from app.schemas.health import HealthCheckResponse
from app.services.notification_service import notification_service

router = APIRouter()


@router.get("/health")
async def health_check(db: Session = Depends(get_db)) -> HealthCheckResponse:
    """
    Health check endpoint that verifies:
    - Database connectivity
    - Notification hub availability

    Returns 200 if all services are healthy, 503 if any service is down.
    """
    database_health = database.health_check(db)
    notification_health = notification_service.health_check()

    overall_healthy = all([database_health.healthy, notification_health.healthy])

    response = HealthCheckResponse(
        service="civictrack-backend",
        version=settings.VERSION,
        timestamp=datetime.now(timezone.utc).isoformat(),
        healthy=overall_healthy,
        database=database_health,
        notification_service=notification_health,
    )

    if overall_healthy:
        return response
    raise HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=response.model_dump()
    )
