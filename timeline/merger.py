"""
timeline/merger.py
Stage 2 — Timeline Merger

Collapses normalised events into disjoint timeline blocks with a single
left-to-right interval-merge sweep.

Overlap test is strict: an event joins the open block only when it starts
before the block's current end.  Events that merely touch (end == next
start) stay in separate blocks, as do zero-duration milestones sitting
exactly on a block boundary.
"""
from datetime import datetime
from typing import Optional, Sequence

from events.models import Block, Event, EventCategory
from formatting.durations import format_duration, hours_between, minutes_between
from monitoring import get_logger, timed

log = get_logger(__name__)


class TimelineMerger:

    @timed("merge")
    def merge(self, events: Sequence[Event]) -> list[Block]:
        """
        Args:
            events: Normaliser output (sorted by start, every end set).

        Returns:
            Blocks in ascending start order.  Block duration is the span of
            the block, not the sum of its members.
        """
        if not events:
            return []

        origin = events[0].start
        groups: list[list[Event]] = []
        current: Optional[list[Event]] = None
        block_end: Optional[datetime] = None

        for event in events:
            if current is not None and event.start < block_end:
                current.append(event)
                block_end = max(block_end, event.end)
                continue
            if current is not None:
                groups.append(current)
            current = [event]
            block_end = event.end

        groups.append(current)

        blocks = [self._close(members, origin) for members in groups]
        log.debug("Timeline merged", events=len(events), blocks=len(blocks))
        return blocks

    # ── Private ───────────────────────────────────────────────────────────────

    def _close(self, members: list[Event], origin: datetime) -> Block:
        start = min(e.start for e in members)
        end   = max(e.end for e in members)
        return Block(
            start=start,
            end=end,
            members=tuple(members),
            representative_category=self._representative_category(members),
            display_name=self._display_name(members),
            duration=format_duration(minutes_between(start, end)),
            offset_hours=(hours_between(origin, start), hours_between(origin, end)),
        )

    @staticmethod
    def _representative_category(members: list[Event]) -> EventCategory:
        # Strict > keeps the first member on ties
        longest = members[0]
        for event in members[1:]:
            if event.end - event.start > longest.end - longest.start:
                longest = event
        return longest.category

    @staticmethod
    def _display_name(members: list[Event]) -> str:
        if len(members) == 1:
            return members[0].label
        return f"{len(members)} Overlapping Events"


def merge_timeline(events: Sequence[Event]) -> list[Block]:
    return TimelineMerger().merge(events)
