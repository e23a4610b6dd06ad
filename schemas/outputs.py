"""
schemas/outputs.py
Pydantic response models — the contract handed to the presentation layer.
Serialise with ``model_dump(by_alias=True, exclude_none=True)`` for camelCase.
"""
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from events.models import Block, Event, LaytimeAllocation, LaytimeEvent


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class EventOut(_CamelModel):
    event:      str
    category:   str
    start_time: datetime
    end_time:   datetime
    status:     str
    remark:     Optional[str] = None

    @classmethod
    def from_event(cls, e: Event) -> "EventOut":
        return cls(
            event=e.label,
            category=e.category.value,
            start_time=e.start,
            end_time=e.end,
            status=e.status,
            remark=e.remark,
        )


class BlockOut(_CamelModel):
    span:                    tuple[datetime, datetime]
    members:                 list[EventOut]
    representative_category: str
    display_name:            str
    duration:                str
    offset_hours:            tuple[float, float]
    start_label:             str
    end_label:               str
    color:                   str

    @classmethod
    def from_block(cls, b: Block) -> "BlockOut":
        return cls(
            span=b.span,
            members=[EventOut.from_event(e) for e in b.members],
            representative_category=b.representative_category.value,
            display_name=b.display_name,
            duration=b.duration,
            offset_hours=b.offset_hours,
            start_label=b.start_label,
            end_label=b.end_label,
            color=b.representative_category.chart_color,
        )


class LaytimeEventOut(EventOut):
    counted:  bool
    reason:   str
    duration: str

    @classmethod
    def from_laytime_event(cls, le: LaytimeEvent) -> "LaytimeEventOut":
        base = EventOut.from_event(le.event).model_dump()
        return cls(**base, counted=le.counted, reason=le.reason, duration=le.duration)


class LaytimeAllocationOut(_CamelModel):
    events:                 list[LaytimeEventOut]
    total_counted_duration: str
    allowed_duration:       str
    time_saved:             str
    overrun:                str
    overrun_cost:           Optional[str] = None

    @classmethod
    def from_allocation(cls, allocation: LaytimeAllocation) -> "LaytimeAllocationOut":
        s = allocation.summary
        return cls(
            events=[LaytimeEventOut.from_laytime_event(le) for le in allocation.events],
            total_counted_duration=s.total_counted_duration,
            allowed_duration=s.allowed_duration,
            time_saved=s.time_saved,
            overrun=s.overrun,
            overrun_cost=s.overrun_cost_display,
        )


class GuardrailReportOut(_CamelModel):
    passed:           bool
    confidence_score: float
    warnings:         list[str] = []
    violations:       list[str] = []


class AnalysisResponse(_CamelModel):
    metadata:     dict[str, Any]     = Field(default_factory=dict)
    event_count:  int
    dropped:      int
    blocks:       list[BlockOut]
    laytime:      LaytimeAllocationOut
    guardrails:   GuardrailReportOut
    warnings:     list[str]          = []
