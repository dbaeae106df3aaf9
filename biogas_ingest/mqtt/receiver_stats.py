"""Statistics for the MQTT ingestion pipeline."""

from __future__ import annotations

import threading
from collections import Counter


class ReceiverStats:
    """Estadísticas del pipeline de ingesta."""

    def __init__(self):
        self._lock = threading.Lock()
        self.received = 0
        self.processed = 0
        self.failed = 0
        self.dropped = 0
        self.skipped = 0
        self.last_message_at: float = 0
        self.by_topic: Counter = Counter()

    def record_received(self, topic: str, at: float) -> None:
        with self._lock:
            self.received += 1
            self.last_message_at = at
            self.by_topic[topic] += 1

    def record(self, outcome: str) -> None:
        """outcome: processed | failed | dropped | skipped."""
        with self._lock:
            setattr(self, outcome, getattr(self, outcome) + 1)

    def __str__(self) -> str:
        return (
            f"Stats: received={self.received} processed={self.processed} "
            f"failed={self.failed} dropped={self.dropped} skipped={self.skipped}"
        )

    def to_dict(self) -> dict:
        """Convert stats to dictionary."""
        with self._lock:
            return {
                "received": self.received,
                "processed": self.processed,
                "failed": self.failed,
                "dropped": self.dropped,
                "skipped": self.skipped,
                "last_message_at": self.last_message_at,
                "by_topic": dict(self.by_topic),
            }
