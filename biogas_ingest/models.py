"""Modelos de dominio del reactor de biogás."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class CalibrationStatus(str, Enum):
    """Resultado final de una calibración de pH."""
    SUCCESS = "success"
    FAILED = "failed"
    TIMEOUT = "timeout"


@dataclass(frozen=True)
class SensorReading:
    """Lectura de sensores del reactor (fila de `sensors`)."""
    ph: float = 0.0
    temp: float = 0.0
    ch4: float = 0.0
    pressure: float = 0.0

    def to_row(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class SensorErrorMargin:
    """Márgenes de error reportados junto a una lectura (fila de `sensor_errors`)."""
    ph_error: float = 0.0
    ph_delta_error: float = 0.0
    temp_error: float = 0.0
    temp_delta_error: float = 0.0

    def to_row(self, sensor_id: int) -> dict:
        return {"sensor_id": sensor_id, **asdict(self)}


@dataclass(frozen=True)
class ActuatorState:
    """Estado de actuadores (fila de `actuators`)."""
    pump_base: float = 0.0
    pump_acid: float = 0.0
    heater: float = 0.0
    solenoid: float = 0.0
    stirrer: float = 0.0

    def to_row(self, sensor_id: int) -> dict:
        return {"sensor_id": sensor_id, **asdict(self)}


@dataclass(frozen=True)
class CalibrationRequest:
    """Calibración en vuelo: publicada, esperando respuesta del dispositivo."""
    reference_ph: float
    current_ph: float
    offset: float
    timestamp: datetime

    def to_dict(self) -> dict:
        return {
            "referencePh": self.reference_ph,
            "currentPh": self.current_ph,
            "offset": self.offset,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class CalibrationLog:
    """Registro de una calibración terminada (respuesta recibida o timeout).

    Los campos de la petición son None cuando llega una respuesta sin
    calibración pendiente (p.ej. tras reiniciar el proceso).
    """
    status: CalibrationStatus
    success: bool
    completed_at: datetime
    reference_ph: Optional[float] = None
    current_ph: Optional[float] = None
    offset: Optional[float] = None
    requested_at: Optional[datetime] = None
    response: dict[str, Any] = field(default_factory=dict)

    def to_row(self) -> dict:
        return {
            "status": self.status.value,
            "success": self.success,
            "reference_ph": self.reference_ph,
            "current_ph": self.current_ph,
            "ph_offset": self.offset,
            "requested_at": self.requested_at,
            "completed_at": self.completed_at,
            "response": self.response,
        }

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "success": self.success,
            "referencePh": self.reference_ph,
            "currentPh": self.current_ph,
            "offset": self.offset,
            "requestedAt": self.requested_at.isoformat() if self.requested_at else None,
            "timestamp": self.completed_at.isoformat(),
            "response": self.response,
        }
