"""
monitoring/logger.py
structlog configuration, pipeline metrics and the stage timing decorator.
"""
import functools
import logging
import time
from typing import Any, Callable

import structlog

from config.settings import settings


def get_logger(name: str):
    return structlog.get_logger(name)


def _configure_logging() -> None:
    if structlog.is_configured():
        return
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(message)s",
    )


_configure_logging()


# ── Prometheus metrics (registered on first use) ─────────────────────────────

class _LazyMetric:
    """Defers Prometheus registration until a stage first records a value."""
    def __init__(self, factory, *args, **kwargs):
        self._factory = factory
        self._args = args
        self._kwargs = kwargs
        self._metric = None

    def _get(self):
        if self._metric is None:
            self._metric = self._factory(*self._args, **self._kwargs)
        return self._metric

    def labels(self, **kw):
        return self._get().labels(**kw)

    def inc(self, amount: float = 1):
        self._get().inc(amount)

    def set(self, v):
        self._get().set(v)


def _counter(name, desc, labels=()):
    from prometheus_client import Counter
    return _LazyMetric(Counter, name, desc, list(labels))


ANALYSIS_RUNS      = _counter("sof_analysis_runs_total", "Total analysis runs", ["status"])
EVENTS_DROPPED     = _counter("sof_events_dropped_total", "Events dropped for missing start time")
GUARDRAIL_FAILURES = _counter("sof_guardrail_failures_total", "Guardrail failures", ["check_type"])


def _stage_latency():
    from prometheus_client import Histogram
    return Histogram(
        "sof_stage_duration_seconds", "Pipeline stage latency", ["stage"],
        buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5],
    )


def _overrun_gauge():
    from prometheus_client import Gauge
    return Gauge("sof_last_overrun_minutes", "Laytime overrun of the last analysed batch")


STAGE_LATENCY = _LazyMetric(_stage_latency)
OVERRUN_GAUGE = _LazyMetric(_overrun_gauge)


def timed(stage: str) -> Callable:
    """Record the wrapped pipeline stage's wall time under ``stage``."""
    def decorator(fn: Callable) -> Callable:
        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            t0 = time.perf_counter()
            try:
                return fn(*args, **kwargs)
            finally:
                STAGE_LATENCY.labels(stage=stage).observe(time.perf_counter() - t0)
        return wrapper
    return decorator
