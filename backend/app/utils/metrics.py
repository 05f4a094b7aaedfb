"""
Palette extraction metrics.

One ``ExtractionRecord`` is recorded per request. Totals are kept for the
life of the process; stage timings and palette sizes are summarized over a
sliding window of the most recent records so memory stays bounded.
"""
import time
from collections import Counter, deque
from dataclasses import dataclass, field
from threading import Lock
from typing import Any, Dict, Optional

import numpy as np

from app.config import config


@dataclass
class ExtractionRecord:
    """Outcome of one extraction request."""
    request_id: str
    error_kind: Optional[str] = None
    stage_timings_ms: Dict[str, float] = field(default_factory=dict)
    palette_size: int = 0
    timestamp: float = field(default_factory=time.time)

    @property
    def ok(self) -> bool:
        return self.error_kind is None


class MetricsCollector:
    """Thread-safe collector of extraction outcomes."""

    def __init__(self, window: Optional[int] = None):
        self.window = config.METRICS_WINDOW if window is None else window
        if self.window < 1:
            raise ValueError(f"window must be at least 1, got {self.window}")
        self._lock = Lock()
        self._history: deque = deque(maxlen=self.window)
        self._requests_total = 0
        self._failures_by_kind: Counter = Counter()
        self._start_time = time.time()

    def record(self, record: ExtractionRecord) -> None:
        with self._lock:
            self._requests_total += 1
            if not record.ok:
                self._failures_by_kind[record.error_kind] += 1
            self._history.append(record)

    def get_summary(self) -> Dict[str, Any]:
        """Totals since start plus windowed stage and palette statistics."""
        with self._lock:
            history = list(self._history)
            requests_total = self._requests_total
            failures_by_kind = dict(self._failures_by_kind)
            uptime = time.time() - self._start_time

        failed_total = sum(failures_by_kind.values())
        succeeded = [r for r in history if r.ok]

        stage_samples: Dict[str, list] = {}
        for r in history:
            for stage, duration_ms in r.stage_timings_ms.items():
                stage_samples.setdefault(stage, []).append(duration_ms)

        return {
            "uptime_seconds": uptime,
            "requests_total": requests_total,
            "succeeded_total": requests_total - failed_total,
            "failed_total": failed_total,
            "failures_by_kind": failures_by_kind,
            "window": {"size": self.window, "records": len(history)},
            "stage_timings_ms": {
                stage: _distribution(values) for stage, values in stage_samples.items()
            },
            "palette_size": _distribution([r.palette_size for r in succeeded]) if succeeded else {},
        }

    def reset(self) -> None:
        """Clear all state (for testing)."""
        with self._lock:
            self._history.clear()
            self._requests_total = 0
            self._failures_by_kind.clear()
            self._start_time = time.time()


def _distribution(values) -> Dict[str, float]:
    data = np.asarray(values, dtype=np.float64)
    return {
        "count": int(data.size),
        "mean": float(np.mean(data)),
        "min": float(np.min(data)),
        "max": float(np.max(data)),
        "p50": float(np.percentile(data, 50)),
        "p95": float(np.percentile(data, 95)),
    }


# Global metrics instance
_metrics: Optional[MetricsCollector] = None


def get_metrics() -> MetricsCollector:
    """Get or create the process-wide collector."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics


def reset_metrics():
    """Reset global metrics (for testing)."""
    global _metrics
    if _metrics is not None:
        _metrics.reset()
