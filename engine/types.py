# engine/types.py
from __future__ import annotations
from dataclasses import dataclass, field, replace
from datetime import date, time
from enum import Enum as PyEnum
from typing import Optional, Tuple

EXTRA_SLOT_PREFIX = "extra-"

# Sunday=0 .. Saturday=6, the same numbering the day-slot names are keyed by
WEEKDAYS = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")
# grid order (Mon..Sun)
WEEK_ORDER = WEEKDAYS[1:] + WEEKDAYS[:1]


class AttendanceStatus(str, PyEnum):
    ATTENDED = "attended"
    MISSED = "missed"
    CANCELLED = "cancelled"


class SpecialDateType(str, PyEnum):
    HOLIDAY = "holiday"
    EXAM = "exam"


# ---------- timetable template ----------
@dataclass(frozen=True)
class SubjectData:
    id: str
    name: str
    color: str = ""


@dataclass(frozen=True)
class TimeSlotData:
    id: str
    start_time: time
    end_time: time

    @property
    def is_extra(self) -> bool:
        return self.id.startswith(EXTRA_SLOT_PREFIX)


@dataclass(frozen=True)
class DaySlotData:
    id: str
    time_slot_id: str
    day: str
    subject_id: Optional[str] = None


@dataclass(frozen=True)
class CombinedSlotData:
    id: str
    day_slot_ids: Tuple[str, ...]
    subject_id: str
    day: str


# ---------- records & exceptions ----------
@dataclass(frozen=True)
class AttendanceRecordData:
    id: str
    date: date
    time_slot_id: str
    status: AttendanceStatus
    original_subject_id: Optional[str] = None
    actual_subject_id: Optional[str] = None
    is_verified: bool = False

    @property
    def counted_subject_id(self) -> Optional[str]:
        return self.actual_subject_id or self.original_subject_id


@dataclass(frozen=True)
class SpecialDateData:
    id: str
    date: date
    type: SpecialDateType
    description: Optional[str] = None


@dataclass(frozen=True)
class ExtraClassData:
    id: str
    date: date
    time_slot_id: str
    subject_id: str
    description: Optional[str] = None


@dataclass(frozen=True)
class TermData:
    id: str
    start_date: date
    end_date: date
    is_active: bool = True

    def contains(self, d: date) -> bool:
        return self.start_date <= d <= self.end_date


@dataclass(frozen=True)
class BaselineData:
    """Imported counts for one subject, valid as of import_date (inclusive)."""
    id: str
    subject_id: str
    import_date: date
    total_lectures: int = 0
    attended_lectures: int = 0
    missed_lectures: int = 0
    cancelled_lectures: int = 0


# ---------- derived ----------
@dataclass(frozen=True)
class Occurrence:
    """One concrete lecture instance. date is None while it is still a weekday pattern."""
    time_slot: TimeSlotData
    subject_id: str
    date: Optional[date] = None
    representative_day_slot_id: Optional[str] = None
    is_combined: bool = False
    member_day_slot_ids: Tuple[str, ...] = field(default_factory=tuple)
    extra_class_id: Optional[str] = None

    @property
    def is_extra(self) -> bool:
        return self.extra_class_id is not None

    @property
    def key(self) -> Tuple[Optional[date], str]:
        return (self.date, self.time_slot.id)

    def on(self, d: date) -> "Occurrence":
        return replace(self, date=d)
