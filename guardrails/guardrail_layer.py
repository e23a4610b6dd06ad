"""
guardrails/guardrail_layer.py
Guardrail Layer
Quality checks around the analysis pipeline.  Nothing here raises; every
finding is reported and logged so the presentation layer can surface it.
  1. InputValidator     — data-quality findings from loading and normalising
  2. TimelineValidator  — block ordering, disjointness and coverage
  3. LaytimeValidator   — despatch/demurrage exclusivity and conservation
  4. ConfidenceScorer   — blends extractor confidence with data quality
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional, Sequence

from events.models import Block, Event, LaytimeAllocation
from events.normalizer import NormalizedBatch
from monitoring import GUARDRAIL_FAILURES, get_logger
from schemas.inputs import RawEvent

log = get_logger(__name__)


@dataclass
class ValidationReport:
    passed: bool
    confidence_score: float = 1.0
    issues: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def covered_spans(spans: Sequence[tuple[datetime, datetime]]) -> list[tuple[datetime, datetime]]:
    """Union of closed intervals; touching intervals join."""
    union: list[list[datetime]] = []
    for start, end in sorted(spans):
        if union and start <= union[-1][1]:
            union[-1][1] = max(union[-1][1], end)
        else:
            union.append([start, end])
    return [(s, e) for s, e in union]


# ── 1. Input Validator ────────────────────────────────────────────────────────

class InputValidator:

    def validate(
        self,
        batch: NormalizedBatch,
        raw_events: Optional[Sequence[RawEvent]] = None,
    ) -> ValidationReport:
        warnings: list[str] = []
        score = 1.0

        if batch.dropped:
            warnings.append(f"{batch.dropped} event(s) had no start time and were dropped")
            score -= min(0.3, 0.05 * batch.dropped)
        if batch.clamped:
            warnings.append(f"{batch.clamped} event(s) ended before they started; end clamped to start")
            score -= min(0.2, 0.05 * batch.clamped)
        if batch.inferred_ends:
            warnings.append(f"{batch.inferred_ends} end time(s) inferred from the following event")

        for raw in raw_events or []:
            if not raw.category_recognised:
                warnings.append(f"Unknown category '{raw.source_category}' for '{raw.label}' treated as Other")
                score -= 0.02

        if not batch.events:
            warnings.append("No usable events in batch")

        return ValidationReport(
            passed=True,
            confidence_score=max(0.0, score),
            warnings=warnings,
        )


# ── 2. Timeline Validator ─────────────────────────────────────────────────────

class TimelineValidator:

    def validate(self, events: Sequence[Event], blocks: Sequence[Block]) -> ValidationReport:
        issues: list[str] = []

        for prev, nxt in zip(blocks, blocks[1:]):
            if prev.end > nxt.start:
                issues.append(f"Blocks '{prev.display_name}' and '{nxt.display_name}' overlap")
            if prev.start > nxt.start:
                issues.append("Blocks are not in ascending start order")

        for block in blocks:
            starts = [m.start for m in block.members]
            if starts != sorted(starts):
                issues.append(f"Members of '{block.display_name}' are out of order")

        event_union = covered_spans([(e.start, e.end) for e in events])
        block_union = covered_spans([b.span for b in blocks])
        if event_union != block_union:
            issues.append("Timeline blocks do not cover exactly the event spans")

        if sum(len(b.members) for b in blocks) != len(events):
            issues.append("Timeline blocks lost or duplicated events")

        return ValidationReport(passed=not issues, confidence_score=1.0 if not issues else 0.5, issues=issues)


# ── 3. Laytime Validator ──────────────────────────────────────────────────────

class LaytimeValidator:

    def validate(self, events: Sequence[Event], allocation: LaytimeAllocation) -> ValidationReport:
        issues: list[str] = []
        s = allocation.summary

        if s.time_saved_minutes > 0 and s.overrun_minutes > 0:
            issues.append("Time saved and overrun are both positive")
        if (s.overrun_cost is not None) != (s.overrun_minutes > 0):
            issues.append("Overrun cost must be present exactly when there is an overrun")

        non_counted = sum(le.duration_minutes for le in allocation.events if not le.counted)
        total = sum(e.duration_minutes for e in events)
        if s.total_counted_minutes + non_counted != total:
            issues.append(
                f"Counted ({s.total_counted_minutes}m) + non-counted ({non_counted}m) "
                f"!= total event time ({total}m)"
            )

        return ValidationReport(passed=not issues, confidence_score=1.0 if not issues else 0.5, issues=issues)


# ── 4. Confidence Scorer ──────────────────────────────────────────────────────

class ConfidenceScorer:

    def score(self, input_report: ValidationReport, extraction_confidence: Optional[float]) -> float:
        if extraction_confidence is None:
            return round(input_report.confidence_score, 3)
        combined = input_report.confidence_score * 0.5 + (extraction_confidence / 100) * 0.5
        return round(max(0.0, min(1.0, combined)), 3)


# ── Guardrail Orchestrator ────────────────────────────────────────────────────

class GuardrailLayer:
    """
    Runs all guardrail components and returns a serialisable summary dict.
    """

    def __init__(self) -> None:
        self._input_validator    = InputValidator()
        self._timeline_validator = TimelineValidator()
        self._laytime_validator  = LaytimeValidator()
        self._confidence_scorer  = ConfidenceScorer()

    def validate_input(
        self,
        batch: NormalizedBatch,
        raw_events: Optional[Sequence[RawEvent]] = None,
    ) -> ValidationReport:
        report = self._input_validator.validate(batch, raw_events)
        if report.warnings:
            log.info("Input data-quality findings", warnings=len(report.warnings))
        return report

    def validate_output(
        self,
        batch: NormalizedBatch,
        blocks: Sequence[Block],
        allocation: LaytimeAllocation,
        raw_events: Optional[Sequence[RawEvent]] = None,
        extraction_confidence: Optional[float] = None,
    ) -> dict[str, Any]:
        input_report    = self.validate_input(batch, raw_events)
        timeline_report = self._timeline_validator.validate(batch.events, blocks)
        laytime_report  = self._laytime_validator.validate(batch.events, allocation)
        confidence      = self._confidence_scorer.score(input_report, extraction_confidence)

        violations = timeline_report.issues + laytime_report.issues
        passed = timeline_report.passed and laytime_report.passed

        log.info(
            "Guardrail output check",
            passed=passed,
            confidence=confidence,
            warnings=len(input_report.warnings),
            violations=len(violations),
        )

        if not timeline_report.passed:
            GUARDRAIL_FAILURES.labels(check_type="timeline").inc()
        if not laytime_report.passed:
            GUARDRAIL_FAILURES.labels(check_type="laytime").inc()

        return {
            "passed": passed,
            "confidence_score": confidence,
            "warnings": input_report.warnings,
            "violations": violations,
        }
