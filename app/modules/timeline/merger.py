from typing import Any, Mapping, Sequence
from app.core.errors import ValidationError
from app.modules.records.schemas import EventKind, PatientRecords
from app.modules.timeline.normalizer import normalize, sort_key
from app.modules.timeline.schemas import TimelineEvent

TIMELINE_FILTERS: tuple[str, ...] = ("all",) + tuple(k.value for k in EventKind)

RecordSource = PatientRecords | Mapping[str, Sequence[Mapping[str, Any]] | None]

def selected_kinds(filter: str) -> list[EventKind]:
    if filter == "all":
        return list(EventKind)
    try:
        return [EventKind(filter)]
    except ValueError:
        raise ValidationError(f"Unknown timeline filter '{filter}', expected one of: {', '.join(TIMELINE_FILTERS)}")

def _collection(records: RecordSource | None, kind: EventKind) -> Sequence[Mapping[str, Any]]:
    if records is None:
        return []
    if isinstance(records, PatientRecords):
        return records.for_kind(kind)
    return records.get(kind.collection) or records.get(kind.value) or []

def merge_timeline(records: RecordSource | None, filter: str = "all") -> list[TimelineEvent]:
    """
    Normalize the selected categories and return one list, most recent first.

    Categories outside the filter are never normalized. Ties keep the
    per-category input order (the sort is stable) and undated events sink to
    the end. An empty list is a valid result.
    """
    events = [
        normalize(kind, record)
        for kind in selected_kinds(filter)
        for record in _collection(records, kind)
    ]
    events.sort(key=lambda e: sort_key(e.date), reverse=True)
    return events
