"""Ensamblado de componentes del bridge.

Un BridgeRuntime por proceso: estado de correlación, storage, pipeline,
worker, conexión MQTT, heartbeat y servicio de calibración. Se inyecta en
la app FastAPI vía app.state.
"""

from __future__ import annotations

import logging
import time
from typing import Optional

from common.config import Settings

from .calibration import CalibrationService
from .infrastructure.persistence import ReactorStorage, create_storage_engine
from .mqtt.async_processor import MessageWorker
from .mqtt.connections import MQTTConnection, parse_broker_url
from .mqtt.heartbeat import Heartbeat
from .mqtt.processor import TelemetryProcessor
from .mqtt.topics import INBOUND_TOPICS
from .state import CorrelationState

logger = logging.getLogger(__name__)


class BridgeRuntime:
    def __init__(
        self,
        settings: Settings,
        state: CorrelationState,
        storage: ReactorStorage,
        processor: TelemetryProcessor,
        worker: MessageWorker,
        connection: MQTTConnection,
        calibration: CalibrationService,
        heartbeat: Optional[Heartbeat] = None,
    ):
        self.settings = settings
        self.state = state
        self.storage = storage
        self.processor = processor
        self.worker = worker
        self.connection = connection
        self.calibration = calibration
        self.heartbeat = heartbeat
        self.started_at = time.time()
        self._running = False

    def start(self) -> None:
        logger.info("[RUNTIME] Starting biogas ingest bridge")
        self.worker.start()
        self.connection.start()
        if self.heartbeat is not None:
            self.heartbeat.start()
        self._running = True

    def stop(self) -> None:
        """Cierra la conexión MQTT antes de drenar el worker."""
        if not self._running:
            return
        logger.info("[RUNTIME] Shutting down MQTT client...")
        if self.heartbeat is not None:
            self.heartbeat.stop()
        self.connection.stop()
        self.worker.stop(drain=True)
        self.storage.engine.dispose()
        self._running = False
        logger.info("[RUNTIME] Stopped. %s", self.processor.stats)

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def uptime_seconds(self) -> float:
        return time.time() - self.started_at


def build_runtime(settings: Settings) -> BridgeRuntime:
    """Construye el runtime desde Settings (falla rápido si falta config)."""
    broker = parse_broker_url(settings.mqtt_broker)

    state = CorrelationState()
    storage = ReactorStorage(create_storage_engine(settings))
    processor = TelemetryProcessor(storage, state)
    worker = MessageWorker(processor.handle, max_queue_size=settings.ingest_queue_size)
    connection = MQTTConnection(
        broker=broker,
        topics=INBOUND_TOPICS,
        message_sink=worker.enqueue,
        client_id=settings.mqtt_client_id,
        tls_insecure=settings.mqtt_tls_insecure,
        publish_timeout=settings.mqtt_publish_timeout,
    )
    calibration = CalibrationService(
        state,
        connection,
        storage=storage,
        timeout_seconds=settings.calibration_timeout,
    )
    heartbeat = Heartbeat(lambda: connection.is_connected, interval=settings.heartbeat_interval)
    heartbeat.add_callback(calibration.expire_stale)

    return BridgeRuntime(
        settings=settings,
        state=state,
        storage=storage,
        processor=processor,
        worker=worker,
        connection=connection,
        calibration=calibration,
        heartbeat=heartbeat,
    )
