"""Validadores de payloads MQTT del reactor.

Sanitiza campos numéricos arbitrarios a floats finitos redondeados a 6
decimales. Un campo ausente o no numérico nunca rechaza el mensaje: se
reemplaza por 0 y se emite un warning. Solo la forma del contenedor
(dict) es obligatoria.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, ValidationInfo, field_validator

from ..models import ActuatorState, SensorErrorMargin, SensorReading

logger = logging.getLogger(__name__)

PRECISION = 1_000_000

# Por encima de este valor un float ya no tiene 6 decimales significativos.
_ROUNDING_LIMIT = 1e15


class PayloadStructureError(ValueError):
    """El bloque del payload no es un objeto JSON."""


def _round6(value: float) -> float:
    if abs(value) >= _ROUNDING_LIMIT:
        return value
    # Redondeo half-up (igual que el firmware), no el redondeo bancario de round().
    return math.floor(value * PRECISION + 0.5) / PRECISION


def sanitize(value: Any, field_name: str = "value") -> float:
    """Convierte un valor arbitrario a float finito con 6 decimales.

    None, booleanos, strings no numéricos, NaN e infinitos → 0.0.
    Nunca lanza excepción.
    """
    if value is None:
        logger.warning("[VALIDATOR] %s is null/undefined, setting to 0", field_name)
        return 0.0

    if isinstance(value, bool):
        logger.warning("[VALIDATOR] %s is not a valid number: %r, setting to 0", field_name, value)
        return 0.0

    try:
        parsed = float(value)
    except (TypeError, ValueError, OverflowError):
        logger.warning("[VALIDATOR] %s is not a valid number: %r, setting to 0", field_name, value)
        return 0.0

    if not math.isfinite(parsed):
        logger.warning("[VALIDATOR] %s is not finite: %r, setting to 0", field_name, value)
        return 0.0

    result = _round6(parsed)
    # -0.0 se normaliza para que la BD y los logs no muestren "-0"
    return result + 0.0


def _field():
    # Campo ausente: pasa por sanitize igual que un null (→ 0.0 con warning)
    return Field(default=None, validate_default=True)


class _ReactorBlock(BaseModel):
    """Bloque numérico del payload: campos conocidos, extras descartados."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    @field_validator("*", mode="before")
    @classmethod
    def sanitize_fields(cls, v: Any, info: ValidationInfo) -> float:
        return sanitize(v, info.field_name)


class SensorPayload(_ReactorBlock):
    ph: float = _field()
    temp: float = _field()
    ch4: float = _field()
    pressure: float = _field()


class SensorErrorsPayload(_ReactorBlock):
    ph_error: float = _field()
    ph_delta_error: float = _field()
    temp_error: float = _field()
    temp_delta_error: float = _field()


class ActuatorPayload(_ReactorBlock):
    pump_base: float = _field()
    pump_acid: float = _field()
    heater: float = _field()
    solenoid: float = _field()
    stirrer: float = _field()


def _validate_block(model: type[_ReactorBlock], data: Any, block: str) -> _ReactorBlock:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        # sanitize nunca falla: un ValidationError solo puede venir de la forma del bloque
        raise PayloadStructureError(f"Invalid {block} data structure") from e


def validate_sensor_data(data: Any) -> SensorReading:
    """Valida el bloque `sensors`."""
    return SensorReading(**_validate_block(SensorPayload, data, "sensors").model_dump())


def validate_sensor_errors(data: Any) -> SensorErrorMargin:
    """Valida el bloque `sensor_errors`."""
    payload = _validate_block(SensorErrorsPayload, data, "sensor_errors")
    return SensorErrorMargin(**payload.model_dump())


def validate_actuator_data(data: Any) -> ActuatorState:
    """Valida el bloque `actuators`."""
    return ActuatorState(**_validate_block(ActuatorPayload, data, "actuators").model_dump())


def parse_warmup_flag(value: Any) -> bool:
    """Solo el número literal 1 activa el warmup."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return value == 1


def is_success_response(payload: Mapping) -> bool:
    return bool(payload.get("success")) or payload.get("status") == "success"


def parse_finite_number(value: Any) -> float | None:
    """Parsea un número finito (o string numérico). None si no es válido."""
    if value is None or isinstance(value, bool):
        return None
    try:
        parsed = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(parsed):
        return None
    return parsed
