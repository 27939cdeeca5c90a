"""
Logging configuration.

Imported once by ``app.main`` so every module-level ``logging.getLogger``
shares the same handler and format.
"""

import logging
import sys

from app.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format=LOG_FORMAT,
    stream=sys.stdout,
)

# Keep SQL echo and access logs at a sane level
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
