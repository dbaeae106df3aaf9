"""Calibración del sensor de pH.

Calcula offset = pH de referencia - pH medido, lo publica en
biogas/ph_offset y deja la calibración "en vuelo" hasta que el dispositivo
responda en biogas/ph_calibration/response (o venza el timeout).

Solo una calibración en vuelo a la vez. calibrate() retorna apenas el
broker confirma la publicación; no espera la respuesta del dispositivo.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

import orjson
from prometheus_client import Counter

from .infrastructure.persistence import ReactorStorage
from .models import CalibrationLog, CalibrationRequest
from .mqtt.connections import MQTTConnection
from .mqtt.topics import TOPIC_PH_OFFSET
from .mqtt.validators import parse_finite_number, sanitize
from .state import CorrelationState, utcnow

logger = logging.getLogger(__name__)

CALIBRATION_REQUESTS = Counter(
    "biogas_calibration_requests_total",
    "pH calibration requests by outcome",
    ["outcome"],  # published, invalid, conflict, unavailable, publish_error
)

DEFAULT_TIMEOUT_SECONDS = 30.0


class CalibrationError(Exception):
    """Error de calibración con su código HTTP equivalente."""

    status_code = 500
    error = "Calibration failed"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class CalibrationValidationError(CalibrationError):
    status_code = 400
    error = "Invalid input"


class CalibrationConflictError(CalibrationError):
    status_code = 409
    error = "Calibration in progress"


class CalibrationPublishError(CalibrationError):
    status_code = 500
    error = "Failed to publish offset"


class BrokerUnavailableError(CalibrationError):
    status_code = 503
    error = "MQTT not connected"


@dataclass(frozen=True)
class CalibrationResult:
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


def build_offset_message(request: CalibrationRequest) -> bytes:
    """Envelope JSON publicado en biogas/ph_offset."""
    return orjson.dumps(
        {
            "offset": request.offset,
            "reference_ph": request.reference_ph,
            "current_ph": request.current_ph,
            "timestamp": request.timestamp.isoformat(),
        }
    )


class CalibrationService:
    def __init__(
        self,
        state: CorrelationState,
        connection: MQTTConnection,
        storage: Optional[ReactorStorage] = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        self._state = state
        self._connection = connection
        self._storage = storage
        self._timeout_seconds = timeout_seconds

    def calibrate(self, reference_ph: Any, current_ph: Any) -> CalibrationResult:
        """Valida, calcula y publica el offset.

        Raises:
            CalibrationValidationError: entradas ausentes o no numéricas (400)
            CalibrationConflictError: ya hay una calibración en vuelo (409)
            BrokerUnavailableError: MQTT desconectado (503)
            CalibrationPublishError: el broker no confirmó la publicación (500)
        """
        self.expire_stale()

        reference = parse_finite_number(reference_ph)
        current = parse_finite_number(current_ph)
        if reference is None or current is None:
            CALIBRATION_REQUESTS.labels(outcome="invalid").inc()
            raise CalibrationValidationError(
                "referencePh and currentPh are required and must be valid numbers"
            )

        request = CalibrationRequest(
            reference_ph=sanitize(reference, "referencePh"),
            current_ph=sanitize(current, "currentPh"),
            offset=sanitize(reference - current, "offset"),
            timestamp=utcnow(),
        )

        if not self._state.begin_calibration(request):
            CALIBRATION_REQUESTS.labels(outcome="conflict").inc()
            raise CalibrationConflictError(
                "A pH calibration is already in progress, wait for the device response"
            )

        if not self._connection.is_connected:
            self._state.rollback_calibration(request)
            CALIBRATION_REQUESTS.labels(outcome="unavailable").inc()
            raise BrokerUnavailableError("MQTT broker is not connected, try again later")

        result = self._connection.publish(TOPIC_PH_OFFSET, build_offset_message(request), qos=1)
        if not result.ok:
            self._state.rollback_calibration(request)
            CALIBRATION_REQUESTS.labels(outcome="publish_error").inc()
            logger.error("[CALIBRATION] Failed to publish pH offset: %s", result.error)
            raise CalibrationPublishError(f"Failed to publish pH offset: {result.error}")

        CALIBRATION_REQUESTS.labels(outcome="published").inc()
        logger.info(
            "[CALIBRATION] Published pH offset %.6f (reference=%.6f current=%.6f) to %s",
            request.offset,
            request.reference_ph,
            request.current_ph,
            TOPIC_PH_OFFSET,
        )
        return CalibrationResult(
            reference_ph=request.reference_ph,
            current_ph=request.current_ph,
            offset=request.offset,
            timestamp=request.timestamp,
        )

    def expire_stale(self) -> Optional[CalibrationLog]:
        """Abandona la calibración en vuelo si venció el timeout."""
        log = self._state.expire_calibration(self._timeout_seconds)
        if log is None:
            return None

        logger.warning(
            "[CALIBRATION] No device response after %.0fs, calibration abandoned (offset=%s)",
            self._timeout_seconds,
            log.offset,
        )
        if self._storage is not None:
            try:
                self._storage.insert_calibration_log(log)
            except Exception as e:
                logger.warning("[CALIBRATION] Timeout log not persisted: %s", e)
        return log

    def get_status(self) -> dict:
        pending = self._state.pending_calibration
        last = self._state.last_calibration
        return {
            "in_progress": pending is not None,
            "last_calibration": last.to_dict() if last else None,
            "pending": pending.to_dict() if pending else None,
            "bus_connected": self._connection.is_connected,
        }
