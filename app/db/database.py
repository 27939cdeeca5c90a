import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.sql import text

from app.core.config import settings
from app.schemas.health import ServiceHealth

logger = logging.getLogger(__name__)

SQLALCHEMY_DATABASE_URL = settings.DATABASE_URL


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


engine = create_engine(SQLALCHEMY_DATABASE_URL, **_engine_options(SQLALCHEMY_DATABASE_URL))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """Create missing tables. Production schemas are managed by Alembic."""
    from app.models import issue  # noqa: F401 - register models on Base.metadata

    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ensured")


def health_check(db: Session) -> ServiceHealth:
    """Check database health."""
    try:
        result = db.execute(text("SELECT 1")).scalar()
        if result == 1:
            return ServiceHealth(
                healthy=True,
                message="Database connection successful",
            )
        return ServiceHealth(
            healthy=False, message="Database query returned unexpected result"
        )
    except Exception as e:  # pylint: disable=broad-except
        return ServiceHealth(
            healthy=False, message=f"Database connection failed: {str(e)}"
        )
