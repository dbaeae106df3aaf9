"""Worker secuencial: desacopla el callback de paho de la escritura en BD.

El thread de red de paho solo encola (topic, payload) y retorna; un único
worker consume la cola en orden de llegada. Un solo worker conserva el orden
del que depende la correlación lectura → actuadores.
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 1000
_DRAIN_POLL_SECONDS = 0.05

MessageHandler = Callable[[str, bytes], None]


class MessageWorker:
    """Cola acotada + un thread consumidor.

    - paho callback → enqueue() retorna en <0.1ms
    - cola llena → el mensaje se descarta (at-most-once)
    """

    def __init__(self, handler: MessageHandler, max_queue_size: int = DEFAULT_QUEUE_SIZE):
        self._handler = handler
        self._queue: queue.Queue = queue.Queue(maxsize=max_queue_size)
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

        # Metrics
        self._enqueued = 0
        self._dropped = 0
        self._handled = 0
        self._errors = 0
        self._lock = threading.Lock()

    def start(self) -> None:
        if self._thread is not None:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._worker_loop,
            daemon=True,
            name="mqtt-ingest-worker",
        )
        self._thread.start()
        logger.info("[WORKER] Started queue_max=%d", self._queue.maxsize)

    def stop(self, drain: bool = True, timeout: float = 5.0) -> None:
        """Detiene el worker. Con drain=True procesa antes lo pendiente.

        `timeout` acota la parada completa (drenado + join): lo que quede en
        la cola al vencer se descarta.
        """
        deadline = time.monotonic() + timeout
        if drain and self._thread is not None:
            while self._queue.unfinished_tasks and time.monotonic() < deadline:
                time.sleep(_DRAIN_POLL_SECONDS)
            if self._queue.unfinished_tasks:
                logger.warning(
                    "[WORKER] Drain timed out after %.1fs, abandoning %d messages",
                    timeout,
                    self._queue.unfinished_tasks,
                )
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=max(deadline - time.monotonic(), 0.1))
            self._thread = None
        logger.info("[WORKER] Stopped. %s", self.metrics)

    def enqueue(self, topic: str, payload: bytes) -> bool:
        """Encola un mensaje. False si la cola está llena."""
        try:
            self._queue.put_nowait((topic, payload))
            with self._lock:
                self._enqueued += 1
            return True
        except queue.Full:
            with self._lock:
                self._dropped += 1
            logger.warning("[WORKER] Queue full, dropped message topic=%s", topic)
            return False

    def _worker_loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                topic, payload = self._queue.get(timeout=1.0)
            except queue.Empty:
                continue

            try:
                self._handler(topic, payload)
                with self._lock:
                    self._handled += 1
            except Exception as e:
                with self._lock:
                    self._errors += 1
                logger.exception("[WORKER] Handler error: %s", e)
            finally:
                self._queue.task_done()

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def metrics(self) -> dict:
        with self._lock:
            return {
                "queue_depth": self._queue.qsize(),
                "queue_max": self._queue.maxsize,
                "enqueued": self._enqueued,
                "dropped": self._dropped,
                "handled": self._handled,
                "errors": self._errors,
            }
