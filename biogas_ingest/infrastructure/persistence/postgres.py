"""Storage del reactor: lecturas, márgenes de error, actuadores y calibraciones.

Cada operación abre su propia transacción y nunca propaga errores de BD:
registra el fallo y retorna None/False para que el pipeline abandone la
operación y las escrituras dependientes.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import insert, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from ...models import ActuatorState, CalibrationLog, SensorErrorMargin, SensorReading
from .tables import actuators, calibration_logs, sensor_errors, sensors

logger = logging.getLogger(__name__)


class ReactorStorage:
    """Gateway de persistencia sobre SQLAlchemy."""

    def __init__(self, engine: Engine):
        self._engine = engine

    @property
    def engine(self) -> Engine:
        return self._engine

    def insert_sensor_reading(self, reading: SensorReading) -> Optional[int]:
        """Inserta una lectura y retorna el id generado (None si falló)."""
        try:
            with self._engine.begin() as conn:
                result = conn.execute(insert(sensors).values(**reading.to_row()))
                sensor_id = int(result.inserted_primary_key[0])
            logger.info("[DB] Inserted sensor data with id=%d", sensor_id)
            return sensor_id
        except SQLAlchemyError:
            logger.exception("[DB] Error inserting sensor data")
            return None

    def insert_sensor_errors(self, sensor_id: int, errors: SensorErrorMargin) -> bool:
        try:
            with self._engine.begin() as conn:
                conn.execute(insert(sensor_errors).values(**errors.to_row(sensor_id)))
            logger.info("[DB] Inserted sensor errors for sensor_id=%d", sensor_id)
            return True
        except SQLAlchemyError:
            logger.exception("[DB] Error inserting sensor errors sensor_id=%d", sensor_id)
            return False

    def insert_actuator_state(self, sensor_id: int, state: ActuatorState) -> bool:
        try:
            with self._engine.begin() as conn:
                conn.execute(insert(actuators).values(**state.to_row(sensor_id)))
            logger.info("[DB] Inserted actuator data for sensor_id=%d", sensor_id)
            return True
        except SQLAlchemyError:
            logger.exception("[DB] Error inserting actuator data sensor_id=%d", sensor_id)
            return False

    def get_latest_sensor_id(self) -> Optional[int]:
        """Id de la lectura más reciente por created_at (None si no hay)."""
        query = (
            select(sensors.c.id)
            .order_by(sensors.c.created_at.desc(), sensors.c.id.desc())
            .limit(1)
        )
        try:
            with self._engine.connect() as conn:
                row = conn.execute(query).first()
        except SQLAlchemyError:
            logger.exception("[DB] Error getting latest sensor_id")
            return None

        if row is None:
            logger.warning("[DB] Cannot find latest sensor_id: table is empty")
            return None
        return int(row[0])

    def insert_calibration_log(self, log: CalibrationLog) -> bool:
        try:
            with self._engine.begin() as conn:
                conn.execute(insert(calibration_logs).values(**log.to_row()))
            logger.info("[DB] Stored calibration log status=%s", log.status.value)
            return True
        except SQLAlchemyError:
            logger.exception("[DB] Error storing calibration log")
            return False

    def ping(self) -> bool:
        try:
            with self._engine.connect() as conn:
                conn.execute(select(1))
            return True
        except SQLAlchemyError:
            return False
