"""monitoring package"""
from .logger import (
    timed,
    get_logger,
    ANALYSIS_RUNS,
    STAGE_LATENCY,
    EVENTS_DROPPED,
    OVERRUN_GAUGE,
    GUARDRAIL_FAILURES,
)

__all__ = [
    "timed", "get_logger",
    "ANALYSIS_RUNS", "STAGE_LATENCY", "EVENTS_DROPPED",
    "OVERRUN_GAUGE", "GUARDRAIL_FAILURES",
]
