"""
laytime/allocator.py
Stage 3 — Laytime Allocator

Classifies every normalised event as counted / not counted against the
allowed laytime, then measures the counted total against the charter party
terms to give time saved (despatch) or overrun (demurrage) and its cost.

Counted durations are summed per event.  Concurrent counted events are not
de-duplicated here, unlike the timeline merger which measures block spans;
two cranes working the same six hours count twelve hours of laytime.
"""
from typing import Optional, Sequence

from events.models import (
    Event,
    EventCategory,
    LaytimeAllocation,
    LaytimeEvent,
    LaytimeSummary,
    LaytimeTerms,
)
from formatting.durations import MINUTES_PER_DAY
from monitoring import OVERRUN_GAUGE, get_logger, timed

log = get_logger(__name__)

REASON_CARGO   = "Cargo operations count towards laytime."
REASON_DELAYS  = "Delays and stoppages do not count towards laytime."
REASON_DEFAULT = "Not counted towards laytime."

# Every EventCategory must appear here
CLASSIFICATION: dict[EventCategory, tuple[bool, str]] = {
    EventCategory.CARGO_OPERATIONS: (True,  REASON_CARGO),
    EventCategory.DELAYS:           (False, REASON_DELAYS),
    EventCategory.STOPPAGES:        (False, REASON_DELAYS),
    EventCategory.ARRIVAL:          (False, REASON_DEFAULT),
    EventCategory.DEPARTURE:        (False, REASON_DEFAULT),
    EventCategory.BUNKERING:        (False, REASON_DEFAULT),
    EventCategory.ANCHORAGE:        (False, REASON_DEFAULT),
    EventCategory.OTHER:            (False, REASON_DEFAULT),
}


def classify(event: Event) -> tuple[bool, str]:
    return CLASSIFICATION[event.category]


class LaytimeAllocator:

    def __init__(self, terms: Optional[LaytimeTerms] = None) -> None:
        self.terms = terms or LaytimeTerms.from_settings()

    @timed("allocate")
    def allocate(self, events: Sequence[Event]) -> LaytimeAllocation:
        laytime_events = []
        for event in events:
            counted, reason = classify(event)
            laytime_events.append(LaytimeEvent(
                event=event,
                counted=counted,
                reason=reason,
                duration_minutes=event.duration_minutes,
            ))

        counted_total = sum(le.duration_minutes for le in laytime_events if le.counted)
        summary = self.summarise(counted_total)

        OVERRUN_GAUGE.set(summary.overrun_minutes)
        log.info(
            "Laytime allocated",
            events=len(laytime_events),
            counted=summary.total_counted_duration,
            allowed=summary.allowed_duration,
            overrun=summary.overrun,
            overrun_cost=summary.overrun_cost,
        )
        return LaytimeAllocation(events=tuple(laytime_events), summary=summary)

    def summarise(self, counted_minutes: int) -> LaytimeSummary:
        allowed = self.terms.allowed_minutes
        saved   = max(0, allowed - counted_minutes)
        overrun = max(0, counted_minutes - allowed)
        cost    = self.overrun_cost(overrun) if overrun > 0 else None
        return LaytimeSummary(
            total_counted_minutes=counted_minutes,
            allowed_minutes=allowed,
            time_saved_minutes=saved,
            overrun_minutes=overrun,
            overrun_cost=cost,
            currency_symbol=self.terms.currency_symbol,
        )

    def overrun_cost(self, overrun_minutes: int) -> float:
        """Overrun prorated at the daily rate: minutes / 1440 × rate."""
        return round(overrun_minutes / MINUTES_PER_DAY * self.terms.daily_rate, 2)
