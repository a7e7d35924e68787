from typing import Literal
from pydantic import BaseModel
from app.modules.records.schemas import EventKind

TimelineFilter = Literal["all", "encounter", "condition", "medication", "allergy", "observation", "procedure"]

class TimelineEvent(BaseModel):
    type: EventKind
    date: str | None = None
    title: str
    description: str
    icon: str
    color: str
    # the source document, for kind-specific detail rendering
    record: dict = {}

class TimelineOut(BaseModel):
    patient_id: str
    filter: TimelineFilter
    events: list[TimelineEvent]
    empty: bool
