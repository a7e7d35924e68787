import re
from datetime import date, datetime
from typing import Any, Mapping

UNKNOWN_PATIENT = "Unknown Patient"
UNKNOWN_AGE = "Unknown"

AGE_GROUPS = ("0-18", "19-35", "36-50", "51-65", "65+")

def pick_name(name: Any) -> Mapping | None:
    """The `official` entry of a name list, else its first entry."""
    if isinstance(name, Mapping):
        return name
    if isinstance(name, (list, tuple)):
        entries = [n for n in name if isinstance(n, Mapping)]
        if not entries:
            return None
        return next((n for n in entries if n.get("use") == "official"), entries[0])
    return None

def given_names(entry: Mapping) -> list[str]:
    given = entry.get("given") or []
    if isinstance(given, str):
        given = [given]
    return [str(g).strip() for g in given if g is not None and str(g).strip()]

def format_name(name: Any) -> str:
    if isinstance(name, str):
        return " ".join(name.split()) or UNKNOWN_PATIENT
    entry = pick_name(name)
    if entry is None:
        return UNKNOWN_PATIENT
    family = str(entry.get("family") or "").strip()
    full = " ".join(p for p in (" ".join(given_names(entry)), family) if p)
    return full or UNKNOWN_PATIENT

def clean_name(name: Any) -> str:
    # imported records sometimes carry numeric suffixes in name parts
    cleaned = re.sub(r"\s+", " ", re.sub(r"\d+", "", format_name(name))).strip()
    return cleaned or UNKNOWN_PATIENT

def parse_birth_date(value: Any) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            return None
    return None

def calculate_age(birth_date: Any, today: date | None = None) -> int | str:
    born = parse_birth_date(birth_date)
    if born is None:
        return UNKNOWN_AGE
    today = today or date.today()
    age = today.year - born.year
    if (today.month, today.day) < (born.month, born.day):
        age -= 1
    return age

def age_group(age: int | str) -> str | None:
    if not isinstance(age, int):
        return None
    if age <= 18:
        return "0-18"
    if age <= 35:
        return "19-35"
    if age <= 50:
        return "36-50"
    if age <= 65:
        return "51-65"
    return "65+"
