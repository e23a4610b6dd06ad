"""
formatting/durations.py
Duration, allowance and currency formatting shared by the timeline merger
and the laytime allocator.

  format_duration(240)    -> "4h"
  format_duration(150)    -> "2h 30m"
  format_duration(5760)   -> "1d 0h 0m"
  format_allowance(4320)  -> "3 days"
  format_currency(15500)  -> "$15,500.00"
"""
from datetime import datetime

MINUTES_PER_HOUR = 60
MINUTES_PER_DAY  = 24 * MINUTES_PER_HOUR


def minutes_between(start: datetime, end: datetime) -> int:
    """Whole minutes from start to end (floored; negative if end < start)."""
    return int((end - start).total_seconds() // 60)


def format_duration(minutes: int) -> str:
    """
    Render a signed span of minutes with the largest applicable units.

    Zero-valued leading units are omitted and at least one unit is always
    shown.  Spans of a day or more always carry all three units so that
    day-level figures line up ("1d 0h 0m"); shorter spans drop a zero
    minute component ("4h").
    """
    sign = "-" if minutes < 0 else ""
    days, rem = divmod(abs(int(minutes)), MINUTES_PER_DAY)
    hours, mins = divmod(rem, MINUTES_PER_HOUR)

    if days:
        return f"{sign}{days}d {hours}h {mins}m"
    if hours:
        return f"{sign}{hours}h {mins}m" if mins else f"{sign}{hours}h"
    return f"{sign}{mins}m"


def format_allowance(minutes: int) -> str:
    """Whole-day budgets read as "3 days"; anything else as a duration."""
    if minutes > 0 and minutes % MINUTES_PER_DAY == 0:
        days = minutes // MINUTES_PER_DAY
        return f"{days} day" if days == 1 else f"{days} days"
    return format_duration(minutes)


def format_currency(amount: float, symbol: str = "$") -> str:
    return f"{symbol}{amount:,.2f}"


def hours_between(start: datetime, end: datetime) -> float:
    return round((end - start).total_seconds() / 3600, 2)
