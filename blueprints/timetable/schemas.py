from __future__ import annotations
from datetime import time
from typing import List, Optional

from pydantic import Field

from blueprints.core.schemas import ApiModel, HHMM

# ---------- Subjects ----------
class SubjectIn(ApiModel):
    name: str = Field(min_length=1, max_length=255)
    color: str = Field("", max_length=32)

class SubjectPatch(ApiModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    color: Optional[str] = Field(None, max_length=32)

class SubjectOut(ApiModel):
    id: str
    name: str
    color: str = ""

class SubjectDeletionPlanOut(ApiModel):
    subject_id: str
    day_slot_ids: List[str]
    combined_slot_ids: List[str]

# ---------- Time Slots ----------
class TimeSlotIn(ApiModel):
    start_time: time
    end_time: time

class TimeSlotOut(ApiModel):
    id: str
    start_time: HHMM
    end_time: HHMM

# ---------- Day Slots ----------
class DaySlotOut(ApiModel):
    id: str
    time_slot_id: str
    day: str
    subject_id: Optional[str] = None

class AssignIn(ApiModel):
    subject_id: Optional[str] = None

# ---------- Combined Slots ----------
class CellRef(ApiModel):
    time_slot_id: str
    day: str

class CombineIn(ApiModel):
    cells: List[CellRef]

class CombinedSlotOut(ApiModel):
    id: str
    day_slot_ids: List[str]
    subject_id: str
    day: str

class GridOut(ApiModel):
    subjects: List[SubjectOut]
    time_slots: List[TimeSlotOut]
    day_slots: List[DaySlotOut]
    combined_slots: List[CombinedSlotOut]
