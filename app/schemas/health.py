from pydantic import BaseModel


class ServiceHealth(BaseModel):
    healthy: bool
    message: str


class HealthCheckResponse(BaseModel):
    service: str
    version: str
    timestamp: str
    healthy: bool
    database: ServiceHealth
    notification_service: ServiceHealth
