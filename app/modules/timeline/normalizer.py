"""
Projection of raw clinical-event documents onto the common timeline shape.

Records arrive as loosely shaped documents. Each kind is wrapped in its own
variant class and projected by exactly one ``normalize_event`` overload.
Missing or malformed fields degrade to fixed fallbacks; nothing here raises
for bad data.
"""
from dataclasses import dataclass
from datetime import date, datetime, timezone
from functools import singledispatch
from typing import Any, ClassVar, Iterable, Mapping

from app.modules.records.schemas import EventKind
from app.modules.timeline.schemas import TimelineEvent

# most specific first; createdAt is the last resort for every kind
DATE_FALLBACKS: dict[EventKind, tuple[str, ...]] = {
    EventKind.ENCOUNTER: ("period.start", "createdAt"),
    EventKind.CONDITION: ("onsetDateTime", "createdAt"),
    EventKind.MEDICATION: ("effectivePeriod.start", "authoredOn", "createdAt"),
    EventKind.ALLERGY: ("onsetDateTime", "recordedDate", "createdAt"),
    EventKind.OBSERVATION: ("effectiveDateTime", "createdAt"),
    EventKind.PROCEDURE: ("performedDateTime", "createdAt"),
}

PRESENTATION: dict[EventKind, tuple[str, str]] = {
    EventKind.ENCOUNTER: ("🏥", "#f59e0b"),
    EventKind.CONDITION: ("🩺", "#ef4444"),
    EventKind.MEDICATION: ("💊", "#10b981"),
    EventKind.ALLERGY: ("🚨", "#f97316"),
    EventKind.OBSERVATION: ("📊", "#06b6d4"),
    EventKind.PROCEDURE: ("⚕️", "#8b5cf6"),
}

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


# ---- field helpers ----

def dig(record: Any, path: str) -> Any:
    """Dotted lookup that returns None as soon as a hop is not a mapping."""
    cur = record
    for part in path.split("."):
        if not isinstance(cur, Mapping):
            return None
        cur = cur.get(part)
    return cur

def text_of(value: Any) -> str:
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, Mapping):
        return text_of(value.get("text") or value.get("display"))
    if isinstance(value, (list, tuple)):
        return ", ".join(t for t in (text_of(v) for v in value) if t)
    return ""

def resolve_date(kind: EventKind, record: Mapping[str, Any]) -> Any:
    for path in DATE_FALLBACKS[kind]:
        value = dig(record, path)
        if value:
            return value
    return None

def parse_datetime(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value.strip():
        raw = value.strip()
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(raw)
        except ValueError:
            return None
    else:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt

def sort_key(value: Any) -> datetime:
    # unparseable and missing dates sort as the oldest possible instant
    return parse_datetime(value) or _OLDEST

def format_date(value: Any, fallback: str = "Unknown date") -> str:
    dt = parse_datetime(value)
    return dt.strftime("%Y-%m-%d") if dt else fallback

def as_date_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)

def newest_first(kind: EventKind, records: Iterable[Mapping[str, Any]]) -> list[Mapping[str, Any]]:
    return sorted(records, key=lambda r: sort_key(resolve_date(kind, r)), reverse=True)


# ---- variants ----

@dataclass(frozen=True)
class EncounterEvent:
    record: Mapping[str, Any]
    kind: ClassVar[EventKind] = EventKind.ENCOUNTER

@dataclass(frozen=True)
class ConditionEvent:
    record: Mapping[str, Any]
    kind: ClassVar[EventKind] = EventKind.CONDITION

@dataclass(frozen=True)
class MedicationEvent:
    record: Mapping[str, Any]
    kind: ClassVar[EventKind] = EventKind.MEDICATION

@dataclass(frozen=True)
class AllergyEvent:
    record: Mapping[str, Any]
    kind: ClassVar[EventKind] = EventKind.ALLERGY

@dataclass(frozen=True)
class ObservationEvent:
    record: Mapping[str, Any]
    kind: ClassVar[EventKind] = EventKind.OBSERVATION

@dataclass(frozen=True)
class ProcedureEvent:
    record: Mapping[str, Any]
    kind: ClassVar[EventKind] = EventKind.PROCEDURE

ClinicalEvent = EncounterEvent | ConditionEvent | MedicationEvent | AllergyEvent | ObservationEvent | ProcedureEvent

VARIANTS: dict[EventKind, type] = {
    cls.kind: cls
    for cls in (EncounterEvent, ConditionEvent, MedicationEvent, AllergyEvent, ObservationEvent, ProcedureEvent)
}

def as_event(kind: EventKind | str, record: Mapping[str, Any] | None) -> ClinicalEvent:
    return VARIANTS[EventKind(kind)](record if isinstance(record, Mapping) else {})


# ---- projections ----

def _project(event: ClinicalEvent, title: str, description: str) -> TimelineEvent:
    icon, color = PRESENTATION[event.kind]
    return TimelineEvent(
        type=event.kind,
        date=as_date_text(resolve_date(event.kind, event.record)),
        title=title,
        description=description,
        icon=icon,
        color=color,
        record=dict(event.record),
    )

@singledispatch
def normalize_event(event: Any) -> TimelineEvent:
    raise TypeError(f"no timeline projection for {type(event).__name__}")

@normalize_event.register
def _(event: EncounterEvent) -> TimelineEvent:
    r = event.record
    return _project(
        event,
        title=text_of(r.get("type")) or "Medical Encounter",
        description=text_of(r.get("reasonCode")) or "Medical encounter",
    )

@normalize_event.register
def _(event: ConditionEvent) -> TimelineEvent:
    r = event.record
    return _project(
        event,
        title=text_of(r.get("display")) or text_of(r.get("code")) or "Medical Condition",
        description=f"Status: {text_of(r.get('clinicalStatus')) or 'Active'}",
    )

@normalize_event.register
def _(event: MedicationEvent) -> TimelineEvent:
    r = event.record
    parts = [text_of(r.get("dosage")), text_of(r.get("reasonCode"))]
    return _project(
        event,
        title=text_of(r.get("display")) or text_of(r.get("medicationCodeableConcept")) or "Medication",
        description=" - ".join(p for p in parts if p) or "As prescribed",
    )

@normalize_event.register
def _(event: AllergyEvent) -> TimelineEvent:
    r = event.record
    criticality = text_of(r.get("criticality"))
    parts = [text_of(r.get("type")), f"{criticality} criticality" if criticality else ""]
    return _project(
        event,
        title=text_of(r.get("display")) or "Allergy",
        description=" - ".join(p for p in parts if p) or "Allergy record",
    )

@normalize_event.register
def _(event: ObservationEvent) -> TimelineEvent:
    return _project(
        event,
        title=text_of(event.record.get("display")) or "Observation",
        description=observation_value(event.record) or "Test result",
    )

@normalize_event.register
def _(event: ProcedureEvent) -> TimelineEvent:
    r = event.record
    return _project(
        event,
        title=text_of(r.get("display")) or "Procedure",
        description=text_of(r.get("reasonCode")) or "Medical procedure",
    )

def observation_value(record: Mapping[str, Any]) -> str:
    qty = record.get("valueQuantity")
    if isinstance(qty, Mapping) and qty.get("value") is not None:
        return " ".join(p for p in (text_of(qty.get("value")), text_of(qty.get("unit"))) if p)
    return text_of(record.get("valueString"))

def normalize(kind: EventKind | str, record: Mapping[str, Any] | None) -> TimelineEvent:
    return normalize_event(as_event(kind, record))


_unprojected = [k for k, cls in VARIANTS.items() if normalize_event.dispatch(cls) is normalize_event.dispatch(object)]
if _unprojected or set(VARIANTS) != set(EventKind):
    raise RuntimeError(f"timeline projection missing for {_unprojected or set(EventKind) - set(VARIANTS)}")
