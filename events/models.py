"""
events/models.py
Shared event types used by the normaliser, timeline merger, laytime allocator
and guardrails.  Kept in a separate module to avoid circular imports.
"""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from config.settings import settings
from formatting.durations import (
    format_allowance,
    format_currency,
    format_duration,
    minutes_between,
)


class EventCategory(str, Enum):
    """Closed set of SoF event categories."""
    ARRIVAL          = "Arrival"
    CARGO_OPERATIONS = "Cargo Operations"
    DEPARTURE        = "Departure"
    DELAYS           = "Delays"
    STOPPAGES        = "Stoppages"
    BUNKERING        = "Bunkering"
    ANCHORAGE        = "Anchorage"
    OTHER            = "Other"

    @classmethod
    def parse(cls, value: object) -> "EventCategory":
        """
        Resolve a free-text category to a member.

        Case, spaces, hyphens and underscores are ignored, so
        "Cargo Operations", "cargo_operations" and "CargoOperations" all
        resolve to CARGO_OPERATIONS.  Anything unrecognised is OTHER.
        """
        if isinstance(value, cls):
            return value
        key = _category_key(str(value or ""))
        return _CATEGORY_ALIASES.get(key, cls.OTHER)

    @property
    def chart_color(self) -> str:
        return _CHART_COLORS[self]


def _category_key(text: str) -> str:
    return "".join(ch for ch in text.lower() if ch.isalnum())


_CATEGORY_ALIASES: dict[str, EventCategory] = {
    _category_key(c.value): c for c in EventCategory
}
_CATEGORY_ALIASES.update({
    "cargo":     EventCategory.CARGO_OPERATIONS,
    "delay":     EventCategory.DELAYS,
    "stoppage":  EventCategory.STOPPAGES,
    "anchor":    EventCategory.ANCHORAGE,
})

# Delays and stoppages share a chart colour; so do Bunkering, Anchorage, Other
_CHART_COLORS: dict[EventCategory, str] = {
    EventCategory.ARRIVAL:          "chart-1",
    EventCategory.CARGO_OPERATIONS: "chart-2",
    EventCategory.DELAYS:           "chart-3",
    EventCategory.STOPPAGES:        "chart-3",
    EventCategory.DEPARTURE:        "chart-4",
    EventCategory.BUNKERING:        "chart-5",
    EventCategory.ANCHORAGE:        "chart-5",
    EventCategory.OTHER:            "chart-5",
}


@dataclass(frozen=True)
class Event:
    """
    One port-operation event.  ``end`` may be None on input; every Event
    produced by the normaliser has a concrete ``end >= start``.
    """
    label: str
    category: EventCategory = EventCategory.OTHER
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    status: str = "Completed"
    remark: Optional[str] = None

    @property
    def duration_minutes(self) -> int:
        if self.start is None or self.end is None:
            return 0
        return minutes_between(self.start, self.end)


@dataclass(frozen=True)
class Block:
    """A maximal run of overlapping events collapsed into one timeline unit."""
    start: datetime
    end: datetime
    members: tuple[Event, ...]
    representative_category: EventCategory
    display_name: str
    duration: str
    offset_hours: tuple[float, float] = (0.0, 0.0)

    @property
    def span(self) -> tuple[datetime, datetime]:
        return (self.start, self.end)

    @property
    def duration_minutes(self) -> int:
        return minutes_between(self.start, self.end)

    @property
    def start_label(self) -> str:
        return f"{self.start:%b} {self.start.day}, {self.start:%H:%M}"

    @property
    def end_label(self) -> str:
        return f"{self.end:%H:%M}"


@dataclass(frozen=True)
class LaytimeEvent:
    event: Event
    counted: bool
    reason: str
    duration_minutes: int

    @property
    def duration(self) -> str:
        return format_duration(self.duration_minutes)


@dataclass(frozen=True)
class LaytimeTerms:
    """Charter party terms the allocator measures against."""
    allowed_minutes: int = 4320
    daily_rate: float = 20_000.0
    currency_symbol: str = "$"

    @classmethod
    def from_settings(cls) -> "LaytimeTerms":
        return cls(
            allowed_minutes=settings.laytime_allowed_minutes,
            daily_rate=settings.demurrage_daily_rate,
            currency_symbol=settings.currency_symbol,
        )


@dataclass(frozen=True)
class LaytimeSummary:
    total_counted_minutes: int
    allowed_minutes: int
    time_saved_minutes: int
    overrun_minutes: int
    overrun_cost: Optional[float] = None
    currency_symbol: str = "$"

    @property
    def total_counted_duration(self) -> str:
        return format_duration(self.total_counted_minutes)

    @property
    def allowed_duration(self) -> str:
        return format_allowance(self.allowed_minutes)

    @property
    def time_saved(self) -> str:
        return format_duration(self.time_saved_minutes)

    @property
    def overrun(self) -> str:
        return format_duration(self.overrun_minutes)

    @property
    def overrun_cost_display(self) -> Optional[str]:
        if self.overrun_cost is None:
            return None
        return format_currency(self.overrun_cost, self.currency_symbol)


@dataclass(frozen=True)
class LaytimeAllocation:
    events: tuple[LaytimeEvent, ...]
    summary: LaytimeSummary
