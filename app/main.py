import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.v1.api import api_router
from app.core.config import settings
from app.core.exceptions import CivicTrackError
from app.db.database import init_db
from app.schemas.error import ErrorDetail, ErrorResponse
from app.services.notification_service import notification_service
from app.utils import logger as _  # noqa: F401 - Import to configure logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    if settings.AUTO_CREATE_TABLES:
        init_db()
    yield
    await notification_service.broadcast_system_notification(
        f"{settings.PROJECT_NAME} is shutting down"
    )


app = FastAPI(
    title=settings.PROJECT_NAME,
    description=settings.PROJECT_DESCRIPTION,
    version=settings.VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Change this to specific origins in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(CivicTrackError)
async def civictrack_error_handler(request: Request, exc: CivicTrackError) -> JSONResponse:
    """Render application errors as {"error": {"code", "message", ...}}."""
    logger.warning(
        "%s %s rejected: %s - %s", request.method, request.url.path, exc.code, exc.message
    )
    body = ErrorResponse(
        error=ErrorDetail(
            code=exc.code,
            message=exc.message,
            details=exc.details,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )
    )
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(exclude_none=True))


logger.info("Starting %s version v%s", settings.PROJECT_NAME, settings.VERSION)

# Include API v1 router
app.include_router(api_router, prefix=settings.API_V1_STR)


@app.get("/")
def read_root():
    return {"message": "Welcome to CivicTrack API"}
