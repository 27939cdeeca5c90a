from fastapi import APIRouter

from app.api.v1.endpoints import geo, health, issues, notifications

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(geo.router, prefix="/geo", tags=["geo"])
api_router.include_router(issues.router, prefix="/issues", tags=["issues"])
api_router.include_router(notifications.router, tags=["notifications"])
