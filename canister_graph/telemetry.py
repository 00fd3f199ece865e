"""
File: telemetry.py
Purpose: Structured logging + lightweight metrics for the graph engine.
Dependencies: Standard library only (logging, time, json, threading)
Performance: <0.1ms overhead per measurement

Provides correlation-ID-aware JSON logging and Prometheus-compatible
counters and latency histograms for every analysis phase.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Generator


# ═══════════════════════════════════════════════════════════════
#  STRUCTURED JSON LOGGER
# ═══════════════════════════════════════════════════════════════


class _JSONFormatter(logging.Formatter):
    """Emit log records as single-line JSON."""

    def format(self, record: logging.LogRecord) -> str:
        log_obj: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in ("correlation_id", "layer", "context"):
            val = getattr(record, key, None)
            if val is not None:
                log_obj[key] = val
        if record.exc_info and record.exc_info[1]:
            log_obj["exception"] = str(record.exc_info[1])
        return json.dumps(log_obj, default=str)


def get_logger(name: str = "canister_graph") -> logging.Logger:
    """Return a JSON-formatted logger.

    Args:
        name: Logger name (dot-separated hierarchy).

    Returns:
        Configured logging.Logger with JSON formatter.

    Example::

        log = get_logger("canister_graph.graph_builder")
        log.info("Graph built", extra={"correlation_id": cid})
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(_JSONFormatter())
        logger.addHandler(handler)
        logger.setLevel(logging.DEBUG)
    return logger


# ═══════════════════════════════════════════════════════════════
#  METRICS COUNTERS (Prometheus-compatible)
# ═══════════════════════════════════════════════════════════════


@dataclass
class _Counter:
    """Thread-safe monotonic counter."""
    _value: float = 0.0
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def inc(self, amount: float = 1.0) -> None:
        with self._lock:
            self._value += amount

    @property
    def value(self) -> float:
        return self._value

    def reset(self) -> None:
        with self._lock:
            self._value = 0.0


@dataclass
class _Histogram:
    """Simple histogram that tracks count, sum, min, max."""
    _count: int = 0
    _sum: float = 0.0
    _min: float = float("inf")
    _max: float = 0.0
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def observe(self, value: float) -> None:
        with self._lock:
            self._count += 1
            self._sum += value
            self._min = min(self._min, value)
            self._max = max(self._max, value)

    @property
    def count(self) -> int:
        return self._count

    def snapshot(self) -> Dict[str, float]:
        with self._lock:
            avg = self._sum / self._count if self._count else 0.0
            return {
                "count": self._count,
                "sum": round(self._sum, 4),
                "min": (
                    round(self._min, 4) if self._count else 0.0
                ),
                "max": round(self._max, 4),
                "avg": round(avg, 4),
            }

    def reset(self) -> None:
        with self._lock:
            self._count = 0
            self._sum = 0.0
            self._min = float("inf")
            self._max = 0.0


# ═══════════════════════════════════════════════════════════════
#  TELEMETRY COLLECTOR
# ═══════════════════════════════════════════════════════════════


class TelemetryCollector:
    """Collects metrics for every phase of a dependency analysis.

    Thread-safe.  One instance per analyzer.

    Example::

        tel = TelemetryCollector()
        with tel.measure("graph_build"):
            graph = await builder.build(snapshot)
        print(tel.snapshot())
    """

    def __init__(self) -> None:
        self._log = get_logger("canister_graph.telemetry")

        self.latency: Dict[str, _Histogram] = {
            "extraction": _Histogram(),
            "graph_build": _Histogram(),
            "cycle_detection": _Histogram(),
            "build_order": _Histogram(),
            "validation": _Histogram(),
            "pipeline_total": _Histogram(),
        }

        self.analyses_total = _Counter()
        self.analyses_succeeded = _Counter()
        self.analyses_failed = _Counter()
        self.extraction_failures = _Counter()
        self.cycles_detected = _Counter()
        self.validation_failures = _Counter()

    @contextmanager
    def measure(
        self,
        layer: str,
        correlation_id: str = "",
    ) -> Generator[None, None, None]:
        """Context manager to measure and log latency for a layer.

        Args:
            layer: One of the keys of :attr:`latency`.
            correlation_id: Request correlation ID for structured logging.
        """
        start = time.perf_counter()
        try:
            yield
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            self.measure_value(layer, elapsed_ms)
            self._log.debug(
                f"{layer} completed in {elapsed_ms:.2f}ms",
                extra={
                    "correlation_id": correlation_id,
                    "layer": layer,
                    "context": {"latency_ms": round(elapsed_ms, 2)},
                },
            )

    def measure_value(self, layer: str, latency_ms: float) -> None:
        """Record a pre-computed latency value."""
        hist = self.latency.get(layer)
        if hist:
            hist.observe(latency_ms)

    def record_extraction_failure(
        self, path: str, correlation_id: str = ""
    ) -> None:
        self.extraction_failures.inc()
        self._log.debug(
            f"Extraction failure recorded for {path}",
            extra={"correlation_id": correlation_id, "layer": "extraction"},
        )

    def record_validation_failure(self, correlation_id: str = "") -> None:
        self.validation_failures.inc()
        self._log.warning(
            "Validation failed on analysis output",
            extra={"correlation_id": correlation_id, "layer": "validation"},
        )

    def snapshot(self) -> Dict[str, Any]:
        """Return a full metrics snapshot (Prometheus-export-ready)."""
        return {
            "latency": {k: v.snapshot() for k, v in self.latency.items()},
            "counters": {
                name: counter.value
                for name, counter in self._counters().items()
            },
        }

    def _counters(self) -> Dict[str, _Counter]:
        return {
            "analyses_total": self.analyses_total,
            "analyses_succeeded": self.analyses_succeeded,
            "analyses_failed": self.analyses_failed,
            "extraction_failures": self.extraction_failures,
            "cycles_detected": self.cycles_detected,
            "validation_failures": self.validation_failures,
        }

    def reset(self) -> None:
        """Reset all counters and histograms (for testing)."""
        for h in self.latency.values():
            h.reset()
        for counter in self._counters().values():
            counter.reset()
