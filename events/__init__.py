"""events package"""
from .models import (
    Block, Event, EventCategory, LaytimeAllocation,
    LaytimeEvent, LaytimeSummary, LaytimeTerms,
)
from .normalizer import EventNormalizer, NormalizedBatch, normalize_events

__all__ = [
    "Block", "Event", "EventCategory", "LaytimeAllocation",
    "LaytimeEvent", "LaytimeSummary", "LaytimeTerms",
    "EventNormalizer", "NormalizedBatch", "normalize_events",
]
