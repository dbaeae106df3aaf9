"""Fixtures compartidas por los tests del bridge."""

from unittest.mock import MagicMock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from biogas_ingest.infrastructure.persistence import ReactorStorage, ensure_schema
from biogas_ingest.mqtt.connections import ConnectionState, PublishResult
from biogas_ingest.state import CorrelationState


@pytest.fixture
def state() -> CorrelationState:
    return CorrelationState()


@pytest.fixture
def mock_storage():
    """Mock del storage: inserts exitosos, sin lecturas previas en BD."""
    storage = MagicMock()
    storage.insert_sensor_reading = MagicMock(return_value=1)
    storage.insert_sensor_errors = MagicMock(return_value=True)
    storage.insert_actuator_state = MagicMock(return_value=True)
    storage.get_latest_sensor_id = MagicMock(return_value=None)
    storage.insert_calibration_log = MagicMock(return_value=True)
    return storage


@pytest.fixture
def mock_connection():
    """Mock de MQTTConnection conectada que confirma toda publicación."""
    connection = MagicMock()
    connection.is_connected = True
    connection.is_reconnecting = False
    connection.state = ConnectionState.CONNECTED
    connection.stats = {"state": "connected", "connected": True, "reconnect_count": 0}
    connection.publish = MagicMock(return_value=PublishResult(ok=True, mid=1))
    return connection


@pytest.fixture
def sqlite_engine():
    """SQLite en memoria compartida entre threads, con el esquema creado."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    ensure_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def storage(sqlite_engine) -> ReactorStorage:
    return ReactorStorage(sqlite_engine)
