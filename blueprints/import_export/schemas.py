from __future__ import annotations
import datetime as dt
from typing import List

from pydantic import Field, model_validator

from blueprints.attendance.schemas import AttendanceRecordOut
from blueprints.core.schemas import ApiModel
from blueprints.term.schemas import ExtraClassOut, SpecialDateOut, TermOut
from blueprints.timetable.schemas import CombinedSlotOut, DaySlotOut, SubjectOut, TimeSlotOut

# ---------- Baseline import ----------
class ImportAttendanceIn(ApiModel):
    subject_id: str = ""
    import_date: dt.date
    total_lectures: int
    attended_lectures: int
    missed_lectures: int
    cancelled_lectures: int = 0

class ImportedAttendanceOut(ApiModel):
    id: str
    subject_id: str
    import_date: dt.date
    total_lectures: int
    attended_lectures: int
    missed_lectures: int
    cancelled_lectures: int

# ---------- Archive ----------
class TermSettingsRec(TermOut):
    is_active: bool = True

class Archive(ApiModel):
    """Full export: one array per table, camelCase records. Missing tables import as empty."""
    subjects: List[SubjectOut] = Field(default_factory=list)
    time_slots: List[TimeSlotOut] = Field(default_factory=list)
    day_slots: List[DaySlotOut] = Field(default_factory=list)
    combined_slots: List[CombinedSlotOut] = Field(default_factory=list)
    attendance_records: List[AttendanceRecordOut] = Field(default_factory=list)
    special_dates: List[SpecialDateOut] = Field(default_factory=list)
    extra_classes: List[ExtraClassOut] = Field(default_factory=list)
    term_settings: List[TermSettingsRec] = Field(default_factory=list)
    imported_attendance: List[ImportedAttendanceOut] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_invariants(self):
        if sum(1 for t in self.term_settings if t.is_active) > 1:
            raise ValueError("at most one term may be active")
        for b in self.imported_attendance:
            if b.attended_lectures + b.missed_lectures + b.cancelled_lectures != b.total_lectures:
                raise ValueError(f"imported attendance {b.id}: attended + missed + cancelled must equal total")
        return self
