"""Heartbeat periódico: registra el estado de la conexión MQTT.

Solo observabilidad. Además ejecuta callbacks de mantenimiento (p.ej. el
timeout de calibración) en cada tick.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 30.0


class Heartbeat:
    def __init__(
        self,
        is_connected: Callable[[], bool],
        interval: float = DEFAULT_INTERVAL_SECONDS,
    ):
        self._is_connected = is_connected
        self._interval = interval
        self._callbacks: list[Callable[[], object]] = []
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def add_callback(self, callback: Callable[[], object]) -> None:
        self._callbacks.append(callback)

    def start(self) -> None:
        if self._thread is not None:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, daemon=True, name="mqtt-heartbeat")
        self._thread.start()

    def stop(self) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=2.0)
            self._thread = None

    def _run(self) -> None:
        while not self._stop_event.wait(self._interval):
            self.tick()

    def tick(self) -> None:
        if self._is_connected():
            logger.info("[HEARTBEAT] MQTT heartbeat - connected")
        else:
            logger.warning("[HEARTBEAT] MQTT heartbeat - disconnected")

        for callback in self._callbacks:
            try:
                callback()
            except Exception as e:
                logger.exception("[HEARTBEAT] Tick callback failed: %s", e)
