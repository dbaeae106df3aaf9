from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


class ConfigurationError(RuntimeError):
    """Configuración obligatoria ausente o inválida al arrancar."""


def _default_env_file() -> str:
    repo_root = Path(__file__).resolve().parents[1]
    return str(repo_root / ".env")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    mqtt_broker: str
    mqtt_client_id: str
    mqtt_tls_insecure: bool
    mqtt_publish_timeout: float

    database_url: Optional[str]
    db_host: str
    db_port: int
    db_user: str
    db_password: str
    db_name: str
    db_create_schema: bool

    port: int
    heartbeat_interval: float
    calibration_timeout: float
    ingest_queue_size: int
    log_level: str


def get_settings() -> Settings:
    # Load env file (if present) but still allow overriding via real environment variables.
    env_file = os.getenv("BIOGAS_ENV_FILE", _default_env_file())
    if env_file and Path(env_file).exists():
        load_dotenv(env_file, override=False)

    mqtt_broker = os.getenv("MQTT_BROKER", "").strip()
    if not mqtt_broker:
        raise ConfigurationError("MQTT_BROKER is not set")

    try:
        return Settings(
            mqtt_broker=mqtt_broker,
            mqtt_client_id=os.getenv("MQTT_CLIENT_ID", "biogas-ingest"),
            mqtt_tls_insecure=_env_bool("MQTT_TLS_INSECURE", True),
            mqtt_publish_timeout=float(os.getenv("MQTT_PUBLISH_TIMEOUT_SECONDS", "10")),
            database_url=os.getenv("DATABASE_URL") or None,
            db_host=os.getenv("DB_HOST", "localhost"),
            db_port=int(os.getenv("DB_PORT", "5432")),
            db_user=os.getenv("DB_USER", "postgres"),
            db_password=os.getenv("DB_PASSWORD", ""),
            db_name=os.getenv("DB_NAME", "postgres"),
            db_create_schema=_env_bool("DB_CREATE_SCHEMA", True),
            port=int(os.getenv("PORT", "3000")),
            heartbeat_interval=float(os.getenv("HEARTBEAT_INTERVAL_SECONDS", "30")),
            calibration_timeout=float(os.getenv("CALIBRATION_TIMEOUT_SECONDS", "30")),
            ingest_queue_size=int(os.getenv("INGEST_QUEUE_SIZE", "1000")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
    except ValueError as e:
        raise ConfigurationError(f"Invalid numeric setting: {e}") from e
