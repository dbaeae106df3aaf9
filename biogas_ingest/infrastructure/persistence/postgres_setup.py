"""PostgreSQL database setup and connection management.

The bridge keeps running when PostgreSQL is unreachable at boot: MQTT
reception and calibration stay up, and every write is logged and abandoned
by ReactorStorage until the database comes back.
"""

from __future__ import annotations

import logging

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from common.config import Settings
from common.db import get_engine

from .tables import metadata

logger = logging.getLogger(__name__)


def create_storage_engine(settings: Settings) -> Engine:
    """Create the engine and, if enabled, the reactor tables."""
    engine = get_engine(settings)
    if settings.db_create_schema:
        ensure_schema(engine)
    return engine


def ensure_schema(engine: Engine) -> bool:
    """Ensure reactor tables exist.

    Creates tables if they don't exist. Safe to call multiple times.
    Returns False if the database could not be reached.
    """
    logger.info("[PostgreSQL] Ensuring schema exists")
    try:
        metadata.create_all(engine, checkfirst=True)
    except SQLAlchemyError as e:
        logger.error(
            "[PostgreSQL] Schema creation failed, continuing without it: %s (%s)",
            type(e).__name__,
            e,
        )
        return False
    logger.info("[PostgreSQL] Schema creation completed successfully")
    return True
