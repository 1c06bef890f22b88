"""
In-process metrics for outbound SAP calls.

Tracks, per SOAP service and in total:
- call counts (started, completed, failed) and calls in flight
- failures by error kind (timeout, transport, http_status, soap_fault, ...)
- latency over a sliding window of recent samples (average, p95)

Exposed through GET /api/metrics. Nothing is persisted; a restart starts
from zero.
"""

import statistics
from collections import Counter, deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from threading import Lock
from typing import Any, Deque, Dict, Optional


SAMPLE_WINDOW = 1000


def _window() -> Deque[float]:
    return deque(maxlen=SAMPLE_WINDOW)


def _average(samples) -> float:
    return statistics.mean(samples) if samples else 0.0


def _p95(samples) -> float:
    if not samples:
        return 0.0
    ordered = sorted(samples)
    return ordered[min(int(len(ordered) * 0.95), len(ordered) - 1)]


@dataclass
class ServiceStats:
    """Counters and recent latencies of one SOAP service."""
    started: int = 0
    completed: int = 0
    failed: int = 0
    durations_ms: Deque[float] = field(default_factory=_window)

    def counts(self) -> Dict[str, int]:
        return {"started": self.started, "completed": self.completed, "failed": self.failed}

    def timing(self) -> Dict[str, float]:
        return {"average_ms": _average(self.durations_ms), "p95_ms": _p95(self.durations_ms)}


class MetricsCollector:
    """
    Thread-safe counters for SAP calls.

    The transports report every call they make:

        metrics = get_metrics()
        metrics.record_call_started("ZRFC_SALEORDERS_863")
        metrics.record_call_completed("ZRFC_SALEORDERS_863", duration_ms=412.7)
    """

    _instance: Optional["MetricsCollector"] = None
    _instance_lock = Lock()

    def __init__(self):
        self._lock = Lock()
        self.reset()

    @classmethod
    def instance(cls) -> "MetricsCollector":
        """Process-wide collector."""
        with cls._instance_lock:
            if cls._instance is None:
                cls._instance = cls()
        return cls._instance

    def reset(self):
        with self._lock:
            self._services: Dict[str, ServiceStats] = {}
            self._errors_by_kind: Counter = Counter()
            self._durations_ms: Deque[float] = _window()
            self._in_flight = 0
            self._last_error_at: Optional[datetime] = None

    def _service(self, name: str) -> ServiceStats:
        if name not in self._services:
            self._services[name] = ServiceStats()
        return self._services[name]

    def _finish(self, stats: ServiceStats, duration_ms: Optional[float]):
        self._in_flight = max(0, self._in_flight - 1)
        if duration_ms is not None:
            stats.durations_ms.append(duration_ms)
            self._durations_ms.append(duration_ms)

    def record_call_started(self, service_name: str):
        with self._lock:
            self._service(service_name).started += 1
            self._in_flight += 1

    def record_call_completed(self, service_name: str, duration_ms: float = None):
        """A call that got a 2xx answer, fault bodies included."""
        with self._lock:
            stats = self._service(service_name)
            stats.completed += 1
            self._finish(stats, duration_ms)

    def record_call_failed(self, service_name: str, error_kind: str, duration_ms: float = None):
        with self._lock:
            stats = self._service(service_name)
            stats.failed += 1
            self._errors_by_kind[error_kind] += 1
            self._last_error_at = datetime.now(timezone.utc)
            self._finish(stats, duration_ms)

    def get_timing_stats(self, service: str = None) -> Dict[str, float]:
        """Latency of one service, or of all calls when service is None."""
        with self._lock:
            if service is None:
                samples = self._durations_ms
            else:
                samples = self._services[service].durations_ms if service in self._services else ()
            return {"average_ms": _average(samples), "p95_ms": _p95(samples), "sample_count": len(samples)}

    def get_summary(self) -> Dict[str, Any]:
        with self._lock:
            services = self._services.items()
            return {
                "calls": {
                    "started": sum(s.started for _, s in services),
                    "completed": sum(s.completed for _, s in services),
                    "failed": sum(s.failed for _, s in services),
                    "in_flight": self._in_flight,
                    "by_service": {name: s.counts() for name, s in services},
                    "errors_by_kind": dict(self._errors_by_kind),
                    "last_error_at": self._last_error_at.isoformat() if self._last_error_at else None,
                },
                "timings": {
                    "overall": {"average_ms": _average(self._durations_ms), "p95_ms": _p95(self._durations_ms)},
                    "by_service": {name: s.timing() for name, s in services if s.durations_ms},
                },
            }


def get_metrics() -> MetricsCollector:
    return MetricsCollector.instance()
