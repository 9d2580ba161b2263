from __future__ import annotations

import threading
import time
from typing import Dict


class HeartbeatManager:
    """
    Tracks rolling routing metrics for the /health endpoint.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._status = {
            "requests": 0,
            "errors": 0,
            "generation_failures": 0,
            "last_latency_ms": 0.0,
            "sources": {},
            "updated_at": time.time(),
        }

    def record(self, source: str, latency_ms: float, generation_failed: bool = False):
        with self._lock:
            self._status["requests"] += 1
            sources = self._status["sources"]
            sources[source] = sources.get(source, 0) + 1
            if generation_failed:
                self._status["generation_failures"] += 1
            self._status["last_latency_ms"] = round(latency_ms, 2)
            self._status["updated_at"] = time.time()

    def record_error(self):
        with self._lock:
            self._status["errors"] += 1
            self._status["updated_at"] = time.time()

    def snapshot(self) -> Dict[str, object]:
        with self._lock:
            snapshot = dict(self._status)
            snapshot["sources"] = dict(self._status["sources"])
            return snapshot
