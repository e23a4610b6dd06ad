"""
analysis_engine/engine.py
Coordinates the normaliser, timeline merger and laytime allocator and
produces one aggregated result per Statement of Facts batch.
"""
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional, Union

from events.models import Block, Event, LaytimeAllocation, LaytimeTerms
from events.normalizer import EventNormalizer, NormalizedBatch
from guardrails.guardrail_layer import GuardrailLayer
from laytime.allocator import LaytimeAllocator
from monitoring import ANALYSIS_RUNS, get_logger, timed
from schemas.inputs import RawEvent, StatementOfFacts, load_raw_events
from schemas.outputs import (
    AnalysisResponse,
    BlockOut,
    GuardrailReportOut,
    LaytimeAllocationOut,
)
from timeline.merger import TimelineMerger

log = get_logger(__name__)


@dataclass(frozen=True)
class AnalysisResult:
    """Everything derived from one event batch."""
    batch: NormalizedBatch
    blocks: tuple[Block, ...]
    laytime: LaytimeAllocation
    metadata: dict = field(default_factory=dict)
    guardrail_report: dict = field(default_factory=dict)

    @property
    def events(self) -> tuple[Event, ...]:
        return self.batch.events

    def to_response(self) -> AnalysisResponse:
        return AnalysisResponse(
            metadata=self.metadata,
            event_count=len(self.batch.events),
            dropped=self.batch.dropped,
            blocks=[BlockOut.from_block(b) for b in self.blocks],
            laytime=LaytimeAllocationOut.from_allocation(self.laytime),
            guardrails=GuardrailReportOut(**self.guardrail_report),
            warnings=list(self.guardrail_report.get("warnings", [])),
        )

    def to_dict(self) -> dict[str, Any]:
        return self.to_response().model_dump(mode="json", by_alias=True, exclude_none=True)


class SoFAnalysisEngine:
    """
    Orchestrates the three pipeline stages.
    Merger and allocator each consume the normaliser output independently;
    they run sequentially here.  Every stage is stateless, so one engine can
    analyse any number of batches and gives identical output for identical
    input.
    """

    def __init__(
        self,
        terms: Optional[LaytimeTerms] = None,
        guardrail: Optional[GuardrailLayer] = None,
    ) -> None:
        self.terms      = terms or LaytimeTerms.from_settings()
        self._normalizer = EventNormalizer()
        self._merger     = TimelineMerger()
        self._allocator  = LaytimeAllocator(self.terms)
        self._guardrail  = guardrail or GuardrailLayer()

    @timed("analyze")
    def analyze(
        self,
        source: Union[StatementOfFacts, Iterable[Union[Event, RawEvent, dict]]],
    ) -> AnalysisResult:
        """
        Run the full pipeline.

        Args:
            source: A validated StatementOfFacts, or any iterable of Event,
                RawEvent or raw dict records.

        Returns:
            AnalysisResult with normalised events, timeline blocks, laytime
            allocation and the guardrail report.
        """
        sof, raw_events, events = self._coerce(source)
        log.info(
            "Starting analysis",
            vessel=sof.vessel_name if sof else None,
            events=len(events),
            allowed_minutes=self.terms.allowed_minutes,
            daily_rate=self.terms.daily_rate,
        )

        batch   = self._normalizer.normalize(events)
        blocks  = tuple(self._merger.merge(batch.events))
        laytime = self._allocator.allocate(batch.events)

        report = self._guardrail.validate_output(
            batch,
            blocks,
            laytime,
            raw_events=raw_events,
            extraction_confidence=sof.extraction_confidence if sof else None,
        )
        ANALYSIS_RUNS.labels(status="ok" if report["passed"] else "flagged").inc()

        log.info(
            "Analysis complete",
            events=len(batch.events),
            dropped=batch.dropped,
            blocks=len(blocks),
            counted=laytime.summary.total_counted_duration,
            overrun=laytime.summary.overrun,
        )
        return AnalysisResult(
            batch=batch,
            blocks=blocks,
            laytime=laytime,
            metadata=sof.header() if sof else {},
            guardrail_report=report,
        )

    # ── Private ───────────────────────────────────────────────────────────────

    @staticmethod
    def _coerce(source) -> tuple[Optional[StatementOfFacts], list[RawEvent], list[Event]]:
        if isinstance(source, StatementOfFacts):
            return source, list(source.events), [r.to_event() for r in source.events]

        # Convert in place so same-instant events keep their source order
        raw_events: list[RawEvent] = []
        events: list[Event] = []
        for item in source:
            if isinstance(item, Event):
                events.append(item)
                continue
            for raw in load_raw_events([item]):
                raw_events.append(raw)
                events.append(raw.to_event())
        return None, raw_events, events
