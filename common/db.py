from __future__ import annotations

import logging

from sqlalchemy import create_engine, text
from sqlalchemy.engine import URL, Engine, make_url

from .config import Settings


logger = logging.getLogger(__name__)


def build_sqlalchemy_url(settings: Settings) -> URL:
    # DATABASE_URL wins; DB_PASSWORD acts as the access key when the URL carries none.
    if settings.database_url:
        url = make_url(settings.database_url)
        if url.drivername in ("postgres", "postgresql"):
            url = url.set(drivername="postgresql+psycopg2")
        if not url.password and settings.db_password:
            url = url.set(password=settings.db_password)
        return url

    return URL.create(
        "postgresql+psycopg2",
        username=settings.db_user,
        password=settings.db_password or None,
        host=settings.db_host,
        port=settings.db_port,
        database=settings.db_name,
    )


def get_engine(settings: Settings) -> Engine:
    url = build_sqlalchemy_url(settings)

    # Log básico de parámetros de conexión (sin contraseña)
    logger.info(
        "[DB] Crear engine host=%s port=%s db=%s user=%s driver=%s",
        url.host,
        url.port,
        url.database,
        url.username,
        url.drivername,
    )

    connect_args = {"connect_timeout": 10} if url.drivername.startswith("postgresql") else {}
    engine = create_engine(
        url,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
        pool_recycle=300,
        connect_args=connect_args,
    )

    # Test de conexión: ayuda a ver en logs si el servicio realmente llega a la BD
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("[DB] Test de conexión OK")
    except Exception:
        logger.exception("[DB] Test de conexión FALLÓ")

    return engine
