"""
Plain-text patient context for prompts.

Each category contributes its N most recent records, ordered by the same
date fallback chains the timeline uses, one numbered line per record.
"""
from typing import Any, Callable, Mapping

from app.modules.patients.naming import calculate_age, format_name
from app.modules.records.schemas import EventKind, PatientRecords
from app.modules.timeline.normalizer import format_date, newest_first, observation_value, resolve_date, text_of

DEFAULT_LIMIT = 5
CHAT_LIMITS = (5, 10, 15, 20, 50)

def _when(kind: EventKind, r: Mapping[str, Any], fallback: str = "Unknown date") -> str:
    return format_date(resolve_date(kind, r), fallback)

def _status(r: Mapping[str, Any]) -> str:
    return text_of(r.get("status")) or text_of(r.get("clinicalStatus")) or "unknown"

def encounter_line(r: Mapping[str, Any]) -> str:
    kind = text_of(r.get("type")) or "Medical Encounter"
    reason = text_of(r.get("reasonCode")) or "General care"
    return f"{kind} on {_when(EventKind.ENCOUNTER, r)} - {reason} (Status: {_status(r)})"

def condition_line(r: Mapping[str, Any]) -> str:
    name = text_of(r.get("display")) or text_of(r.get("code")) or "Medical Condition"
    status = text_of(r.get("clinicalStatus")) or "unknown"
    return f"{name} - Status: {status} (Since: {_when(EventKind.CONDITION, r, 'Unknown')})"

def medication_line(r: Mapping[str, Any]) -> str:
    name = text_of(r.get("display")) or text_of(r.get("medicationCodeableConcept")) or "Medication"
    dosage = text_of(r.get("dosage")) or "As prescribed"
    reason = text_of(r.get("reasonCode")) or "Not specified"
    return f"{name} - {dosage} (Status: {_status(r)}) - Reason: {reason}"

def observation_line(r: Mapping[str, Any]) -> str:
    name = text_of(r.get("display")) or text_of(r.get("code")) or "Observation"
    value = observation_value(r) or "Result pending"
    return f"{name}: {value} on {_when(EventKind.OBSERVATION, r)}"

def procedure_line(r: Mapping[str, Any]) -> str:
    name = text_of(r.get("display")) or text_of(r.get("code")) or "Procedure"
    return f"{name} on {_when(EventKind.PROCEDURE, r)} - Status: {_status(r)}"

def allergy_line(r: Mapping[str, Any]) -> str:
    name = text_of(r.get("display")) or "Allergy"
    criticality = text_of(r.get("criticality")) or "unknown"
    return f"{name} - {text_of(r.get('type')) or 'allergy'} ({criticality} criticality)"

# (kind, heading, line renderer); allergies are only part of the full history
SECTIONS: tuple[tuple[EventKind, str, Callable[[Mapping[str, Any]], str]], ...] = (
    (EventKind.ENCOUNTER, "Recent Medical Encounters", encounter_line),
    (EventKind.CONDITION, "Active Medical Conditions", condition_line),
    (EventKind.MEDICATION, "Current Medications", medication_line),
    (EventKind.OBSERVATION, "Recent Lab/Vital Signs", observation_line),
    (EventKind.PROCEDURE, "Recent Procedures", procedure_line),
)
ALLERGY_SECTION = (EventKind.ALLERGY, "Known Allergies", allergy_line)

def top_records(kind: EventKind, records: list[Mapping[str, Any]], limit: int) -> list[Mapping[str, Any]]:
    return newest_first(kind, records)[:limit]

def patient_header(patient: Mapping[str, Any]) -> str:
    race = text_of(patient.get("race")) or "Unknown"
    ethnicity = text_of(patient.get("ethnicity")) or "Unknown"
    return "\n".join([
        "Patient Information:",
        f"- Name: {format_name(patient.get('name'))}",
        f"- Age: {calculate_age(patient.get('birthDate'))}",
        f"- Gender: {patient.get('gender') or 'Unknown'}",
        f"- Demographics: {race}, {ethnicity}",
    ])

def render_section(heading: str, kind: EventKind, records: list[Mapping[str, Any]], line, limit: int) -> str:
    picked = top_records(kind, records, limit)
    lines = [f"{i}. {line(r)}" for i, r in enumerate(picked, start=1)] or ["None recorded"]
    return f"{heading} (Last {limit}, {len(records)} total):\n" + "\n".join(lines)

def symptom_section(patient: Mapping[str, Any]) -> str:
    symptoms = patient.get("initialSymptoms") or []
    if not patient.get("hasSymptomAssessment") or not symptoms:
        return "Initial Symptom Assessment:\nNo initial symptom assessment on file"
    lines = [
        f"- {s.get('symptom')} ({s.get('severity') or 'unknown'}, {s.get('duration') or 'Unknown duration'})"
        for s in symptoms if isinstance(s, Mapping)
    ]
    return "Initial Symptom Assessment:\n" + "\n".join(lines)

def build_context(
    patient: Mapping[str, Any],
    records: PatientRecords,
    limit: int = DEFAULT_LIMIT,
    full_history: bool = False,
) -> str:
    sections = list(SECTIONS)
    if full_history:
        sections.append(ALLERGY_SECTION)
    blocks = [patient_header(patient)]
    for kind, heading, line in sections:
        blocks.append(render_section(heading, kind, records.for_kind(kind), line, limit))
    if full_history:
        blocks.append(symptom_section(patient))
    return "\n\n".join(blocks)
