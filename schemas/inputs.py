"""
schemas/inputs.py
Pydantic models for incoming Statement of Facts data.

Records arrive from an extractor (LLM, parser or a person) and are imperfect:
category spelling varies, timestamps may be placeholders like "Not Mentioned",
and field names follow either the extractor's camelCase or snake_case.
Records that still fail validation are skipped by ``load_raw_events``.
"""
from datetime import datetime
from typing import Any, Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from config.settings import settings
from events.models import Event, EventCategory
from monitoring import get_logger

log = get_logger(__name__)

_TIME_FORMATS = ("%Y-%m-%d %H:%M", "%Y-%m-%d %H:%M:%S", "%d/%m/%Y %H:%M", "%Y-%m-%d")


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.lower() in settings.missing_time_markers:
            return None
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            parsed = None
            for fmt in _TIME_FORMATS:
                try:
                    parsed = datetime.strptime(text, fmt)
                    break
                except ValueError:
                    continue
        if parsed is None:
            raise ValueError(f"unrecognised timestamp '{text}'")
    # All instants share one implicit timezone
    return parsed.replace(tzinfo=None)


class RawEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    label:           str                = Field(..., min_length=1, validation_alias="event")
    category:        EventCategory      = EventCategory.OTHER
    source_category: str                = ""
    start:           Optional[datetime] = Field(default=None, validation_alias="startTime")
    end:             Optional[datetime] = Field(default=None, validation_alias="endTime")
    status:          str                = "Completed"
    remark:          Optional[str]      = None

    @model_validator(mode="before")
    @classmethod
    def _keep_source_category(cls, data: Any) -> Any:
        if isinstance(data, dict) and "source_category" not in data:
            data = {**data, "source_category": str(data.get("category") or "")}
        return data

    @field_validator("label", mode="before")
    @classmethod
    def _strip_label(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("category", mode="before")
    @classmethod
    def _resolve_category(cls, v: Any) -> EventCategory:
        return EventCategory.parse(v)

    @field_validator("start", "end", mode="before")
    @classmethod
    def _lenient_timestamp(cls, v: Any) -> Optional[datetime]:
        return _parse_timestamp(v)

    @field_validator("status", mode="before")
    @classmethod
    def _default_status(cls, v: Any) -> str:
        return str(v).strip() if v else "Completed"

    @property
    def category_recognised(self) -> bool:
        """False when a non-empty source category fell back to Other."""
        if self.category is not EventCategory.OTHER:
            return True
        source = self.source_category.strip().lower()
        return source in ("", "other")

    def to_event(self) -> Event:
        return Event(
            label=self.label,
            category=self.category,
            start=self.start,
            end=self.end,
            status=self.status,
            remark=self.remark,
        )


class StatementOfFacts(BaseModel):
    """Header fields plus the event log of one Statement of Facts."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    vessel_name:           Optional[str]   = Field(default=None, validation_alias="vesselName")
    port_of_call:          Optional[str]   = Field(default=None, validation_alias="portOfCall")
    berth:                 Optional[str]   = None
    cargo_description:     Optional[str]   = Field(default=None, validation_alias="cargoDescription")
    cargo_quantity:        Optional[str]   = Field(default=None, validation_alias="cargoQuantity")
    voyage_number:         Optional[str]   = Field(default=None, validation_alias="voyageNumber")
    nor_tendered:          Optional[str]   = Field(default=None, validation_alias="noticeOfReadinessTendered")
    extraction_confidence: Optional[float] = Field(default=None, ge=0, le=100, validation_alias="extractionConfidence")
    events:                list[RawEvent]  = Field(default_factory=list)

    @field_validator("events", mode="before")
    @classmethod
    def _skip_bad_events(cls, v: Any) -> list[RawEvent]:
        if v is None:
            return []
        if not isinstance(v, (list, tuple)):
            log.warning("Ignoring non-list events field", got=type(v).__name__)
            return []
        return load_raw_events(v)

    @classmethod
    def from_payload(cls, payload: Any) -> "StatementOfFacts":
        """Accept either a full SoF object or a bare list of event records."""
        if isinstance(payload, list):
            return cls(events=payload)
        return cls.model_validate(payload)

    def header(self) -> dict[str, Any]:
        return self.model_dump(exclude={"events"}, exclude_none=True)


def load_raw_events(records: Iterable[Any]) -> list[RawEvent]:
    """Validate records one by one, skipping (and logging) malformed ones."""
    loaded: list[RawEvent] = []
    for idx, record in enumerate(records):
        if isinstance(record, RawEvent):
            loaded.append(record)
            continue
        try:
            loaded.append(RawEvent.model_validate(record))
        except ValidationError as exc:
            log.warning(
                "Skipping malformed event record",
                index=idx,
                errors=[e.get("msg", "") for e in exc.errors()],
            )
    return loaded
