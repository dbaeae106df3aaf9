"""Estado de correlación compartido entre ingesta MQTT y API HTTP.

Una sola instancia por proceso, protegida por un único lock. La escriben el
worker de mensajes (latest_sensor_id, warmup, respuesta de calibración), el
heartbeat (timeout de calibración) y los endpoints HTTP (inicio de
calibración).
"""

from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from .models import CalibrationLog, CalibrationRequest, CalibrationStatus


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CorrelationState:
    """Estado mutable del proceso: correlación, warmup y calibración en vuelo."""

    def __init__(self):
        self._lock = threading.Lock()
        self._latest_sensor_id: Optional[int] = None
        self._warmup_active = False
        self._pending: Optional[CalibrationRequest] = None
        self._last_calibration: Optional[CalibrationLog] = None

    @property
    def latest_sensor_id(self) -> Optional[int]:
        with self._lock:
            return self._latest_sensor_id

    def set_latest_sensor_id(self, sensor_id: int) -> None:
        with self._lock:
            self._latest_sensor_id = sensor_id

    @property
    def warmup_active(self) -> bool:
        with self._lock:
            return self._warmup_active

    def set_warmup(self, active: bool) -> bool:
        """Actualiza el warmup. Retorna True si el valor cambió."""
        with self._lock:
            changed = self._warmup_active != active
            self._warmup_active = active
            return changed

    @property
    def calibration_in_progress(self) -> bool:
        with self._lock:
            return self._pending is not None

    @property
    def pending_calibration(self) -> Optional[CalibrationRequest]:
        with self._lock:
            return self._pending

    @property
    def last_calibration(self) -> Optional[CalibrationLog]:
        with self._lock:
            return self._last_calibration

    def begin_calibration(self, request: CalibrationRequest) -> bool:
        """Registra la calibración en vuelo. False si ya había una."""
        with self._lock:
            if self._pending is not None:
                return False
            self._pending = request
            return True

    def rollback_calibration(self, request: CalibrationRequest) -> None:
        """Deshace begin_calibration (solo si sigue siendo la misma petición)."""
        with self._lock:
            if self._pending is request:
                self._pending = None

    def complete_calibration(
        self,
        response: dict[str, Any],
        success: bool,
        completed_at: Optional[datetime] = None,
    ) -> CalibrationLog:
        """Cierra la calibración en vuelo con la respuesta del dispositivo."""
        completed_at = completed_at or utcnow()
        with self._lock:
            pending = self._pending
            log = CalibrationLog(
                status=CalibrationStatus.SUCCESS if success else CalibrationStatus.FAILED,
                success=success,
                completed_at=completed_at,
                reference_ph=pending.reference_ph if pending else None,
                current_ph=pending.current_ph if pending else None,
                offset=pending.offset if pending else None,
                requested_at=pending.timestamp if pending else None,
                response=dict(response),
            )
            self._pending = None
            self._last_calibration = log
            return log

    def expire_calibration(
        self,
        timeout_seconds: float,
        now: Optional[datetime] = None,
    ) -> Optional[CalibrationLog]:
        """Abandona la calibración en vuelo si superó el timeout."""
        now = now or utcnow()
        with self._lock:
            pending = self._pending
            if pending is None or now - pending.timestamp < timedelta(seconds=timeout_seconds):
                return None
            log = CalibrationLog(
                status=CalibrationStatus.TIMEOUT,
                success=False,
                completed_at=now,
                reference_ph=pending.reference_ph,
                current_ph=pending.current_ph,
                offset=pending.offset,
                requested_at=pending.timestamp,
            )
            self._pending = None
            self._last_calibration = log
            return log

    def snapshot(self) -> dict:
        with self._lock:
            return {
                "latest_sensor_id": self._latest_sensor_id,
                "warmup_active": self._warmup_active,
                "calibration_in_progress": self._pending is not None,
                "pending_calibration": self._pending.to_dict() if self._pending else None,
                "last_calibration": (
                    self._last_calibration.to_dict() if self._last_calibration else None
                ),
            }
