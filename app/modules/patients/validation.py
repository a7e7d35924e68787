from typing import Any, Mapping
from app.core.errors import ValidationError
from app.modules.patients.naming import pick_name, given_names

def telecom_value(patient: Mapping[str, Any], system: str) -> str | None:
    for point in patient.get("telecom") or []:
        if isinstance(point, Mapping) and point.get("system") == system and point.get("value"):
            return str(point["value"])
    return None

def validate_registration(data: Mapping[str, Any]) -> None:
    """Raise one ValidationError listing every missing required field."""
    errors = []
    entry = pick_name(data.get("name"))
    if entry is None or not given_names(entry) or not str(entry.get("family") or "").strip():
        errors.append("First and last name required")
    if not data.get("gender"):
        errors.append("Gender required")
    if not data.get("birthDate"):
        errors.append("Birth date required")
    if not telecom_value(data, "phone"):
        errors.append("Phone number required")
    if errors:
        raise ValidationError(errors)
