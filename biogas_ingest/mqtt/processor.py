"""Pipeline de ingesta de mensajes MQTT del reactor.

Flujo por mensaje:
  recibido → JSON parseado (o descartado) → despacho por topic → persistido

- biogas/data/sensors: lectura + márgenes de error opcionales. Los márgenes
  se insertan solo si la lectura obtuvo id.
- biogas/data/control: actualiza warmup y persiste actuadores enlazados a la
  última lectura.
- biogas/ph_calibration/response: cierra la calibración en vuelo.

Sin reintentos ni DLQ: un fallo se registra y el mensaje se descarta.
handle() nunca lanza excepciones hacia el thread de paho.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from typing import Any, Optional

import orjson
from prometheus_client import Counter

from ..infrastructure.persistence import ReactorStorage
from ..state import CorrelationState
from .receiver_stats import ReceiverStats
from .topics import TOPIC_CALIBRATION_RESPONSE, TOPIC_CONTROL, TOPIC_SENSORS
from .validators import (
    PayloadStructureError,
    is_success_response,
    parse_warmup_flag,
    validate_actuator_data,
    validate_sensor_data,
    validate_sensor_errors,
)

logger = logging.getLogger(__name__)

MQTT_MESSAGES = Counter(
    "biogas_mqtt_messages_total",
    "MQTT messages handled by the ingestion pipeline",
    ["topic", "status"],  # processed, failed, dropped, skipped
)

PROCESSED = "processed"
FAILED = "failed"
DROPPED = "dropped"
SKIPPED = "skipped"

_RAW_LOG_LIMIT = 1000


class TelemetryProcessor:
    """Procesa mensajes MQTT y los persiste vía ReactorStorage."""

    def __init__(self, storage: ReactorStorage, state: CorrelationState):
        self._storage = storage
        self._state = state
        self._stats = ReceiverStats()
        self._handlers = {
            TOPIC_SENSORS: self._process_sensor_data,
            TOPIC_CONTROL: self._process_control_data,
            TOPIC_CALIBRATION_RESPONSE: self._process_calibration_response,
        }

    def handle(self, topic: str, payload: bytes) -> None:
        """Procesa un mensaje MQTT."""
        self._stats.record_received(topic, time.time())
        known_topic = topic if topic in self._handlers else "unknown"

        try:
            outcome = self._dispatch(topic, payload)
        except Exception as e:
            logger.exception("[PROCESSOR] Failed to handle MQTT message: %s (topic=%s)", e, topic)
            logger.error("[PROCESSOR] Raw message: %s", _raw(payload))
            outcome = FAILED

        self._stats.record(outcome)
        MQTT_MESSAGES.labels(topic=known_topic, status=outcome).inc()

        if self._stats.received % 100 == 0:
            logger.info("[PROCESSOR] %s", self._stats)

    def _dispatch(self, topic: str, payload: bytes) -> str:
        data = self._parse_json(payload, topic)
        if data is None:
            return DROPPED

        handler = self._handlers.get(topic)
        if handler is None:
            logger.warning("[PROCESSOR] Unknown topic: %s", topic)
            return DROPPED

        if not isinstance(data, Mapping):
            logger.warning(
                "[PROCESSOR] Payload is not a JSON object (topic=%s): %s",
                topic,
                _raw(payload),
            )
            return DROPPED

        logger.debug("[PROCESSOR] Parsed payload from %s: %s", topic, data)
        return handler(data)

    def _parse_json(self, payload: bytes, topic: str) -> Optional[Any]:
        try:
            return orjson.loads(payload)
        except orjson.JSONDecodeError as e:
            logger.error("[PROCESSOR] Invalid JSON format: %s (topic=%s)", e, topic)
            logger.error("[PROCESSOR] Raw message: %s", _raw(payload))
            return None

    # ------------------------------------------------------------------
    # Handlers por topic
    # ------------------------------------------------------------------

    def _process_sensor_data(self, data: Mapping) -> str:
        if self._state.warmup_active:
            logger.info("[PROCESSOR] Warmup active - skipping sensor data storage")
            return SKIPPED

        sensors = data.get("sensors")
        if sensors is None:
            logger.warning("[PROCESSOR] No sensor data found in payload")
            return DROPPED

        try:
            reading = validate_sensor_data(sensors)
        except PayloadStructureError as e:
            logger.error("[PROCESSOR] Rejected sensor data: %s", e)
            return FAILED

        sensor_id = self._storage.insert_sensor_reading(reading)
        if sensor_id is None:
            # Sin id no hay a qué enlazar los márgenes de error
            return FAILED
        self._state.set_latest_sensor_id(sensor_id)

        raw_errors = data.get("sensor_errors")
        if raw_errors is None:
            return PROCESSED

        try:
            errors = validate_sensor_errors(raw_errors)
        except PayloadStructureError as e:
            logger.error("[PROCESSOR] Rejected sensor_errors for sensor_id=%d: %s", sensor_id, e)
            return FAILED

        if not self._storage.insert_sensor_errors(sensor_id, errors):
            return FAILED
        return PROCESSED

    def _process_control_data(self, data: Mapping) -> str:
        system = data.get("system")
        if isinstance(system, Mapping) and "warmup_active" in system:
            warmup = parse_warmup_flag(system["warmup_active"])
            if self._state.set_warmup(warmup):
                logger.info(
                    "[PROCESSOR] Warmup status changed to: %s",
                    "ACTIVE" if warmup else "INACTIVE",
                )

        if self._state.warmup_active:
            logger.info("[PROCESSOR] Warmup active - skipping actuator data storage")
            return SKIPPED

        raw_actuators = data.get("actuators")
        if raw_actuators is None:
            logger.debug("[PROCESSOR] No actuator data found in payload")
            return PROCESSED

        try:
            actuator_state = validate_actuator_data(raw_actuators)
        except PayloadStructureError as e:
            logger.error("[PROCESSOR] Rejected actuator data: %s", e)
            return FAILED

        sensor_id = self._state.latest_sensor_id
        if sensor_id is None:
            logger.info("[PROCESSOR] No correlation id in memory, querying latest sensor_id")
            sensor_id = self._storage.get_latest_sensor_id()
        if sensor_id is None:
            logger.warning("[PROCESSOR] No sensor_id available for actuator data")
            return SKIPPED

        if not self._storage.insert_actuator_state(sensor_id, actuator_state):
            return FAILED
        return PROCESSED

    def _process_calibration_response(self, data: Mapping) -> str:
        success = is_success_response(data)
        log = self._state.complete_calibration(dict(data), success)
        logger.info(
            "[PROCESSOR] Calibration response received: success=%s offset=%s",
            success,
            log.offset,
        )

        try:
            self._storage.insert_calibration_log(log)
        except Exception as e:
            logger.warning("[PROCESSOR] Calibration log not persisted: %s", e)
        return PROCESSED

    @property
    def stats(self) -> ReceiverStats:
        return self._stats


def _raw(payload: bytes) -> str:
    return payload[:_RAW_LOG_LIMIT].decode("utf-8", errors="replace")
