"""
events/normalizer.py
Stage 1 — Event Normaliser

Turns a raw, arbitrarily ordered event list into a complete chronological
sequence:
  1. events without a start time are dropped (they cannot be placed)
  2. stable sort by start time (same-instant events keep source order)
  3. a missing end becomes the next event's start; the last event's
     becomes its own start (zero-duration milestone, e.g. NOR Tendered)
  4. any end still before its start is clamped to the start
"""
from dataclasses import dataclass, replace
from typing import Iterable

from events.models import Event
from monitoring import EVENTS_DROPPED, get_logger, timed

log = get_logger(__name__)


@dataclass(frozen=True)
class NormalizedBatch:
    events: tuple[Event, ...]
    dropped: int = 0
    inferred_ends: int = 0
    clamped: int = 0

    def __len__(self) -> int:
        return len(self.events)


class EventNormalizer:
    """Stateless; one instance can normalise any number of batches."""

    @timed("normalize")
    def normalize(self, raw_events: Iterable[Event]) -> NormalizedBatch:
        raw = list(raw_events)
        anchored = [e for e in raw if e.start is not None]
        dropped = len(raw) - len(anchored)
        if dropped:
            EVENTS_DROPPED.inc(dropped)
            log.debug("Dropped events without start time", dropped=dropped)

        # sorted() is stable, so ties keep input order
        ordered = sorted(anchored, key=lambda e: e.start)

        normalized: list[Event] = []
        inferred = 0
        clamped = 0
        for idx, event in enumerate(ordered):
            end = event.end
            if end is None:
                inferred += 1
                end = ordered[idx + 1].start if idx + 1 < len(ordered) else event.start
            if end < event.start:
                clamped += 1
                end = event.start
            normalized.append(event if end is event.end else replace(event, end=end))

        log.debug(
            "Events normalised",
            received=len(raw),
            kept=len(normalized),
            inferred_ends=inferred,
            clamped=clamped,
        )
        return NormalizedBatch(
            events=tuple(normalized),
            dropped=dropped,
            inferred_ends=inferred,
            clamped=clamped,
        )


def normalize_events(raw_events: Iterable[Event]) -> tuple[Event, ...]:
    """Convenience wrapper returning only the normalised events."""
    return EventNormalizer().normalize(raw_events).events
