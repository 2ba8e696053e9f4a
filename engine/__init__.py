# engine/__init__.py
"""Attendance reconciliation and simulation. Pure functions over a Snapshot; no I/O."""
from .aggregation import SubjectStats, aggregate, attendance_stats, overall, percentage, stats_range
from .attendance import Verdict, resolve
from .calendar import CalendarDay, current_range, future_range, is_date_in_term, walk_dates, weekday_name
from .errors import Conflict, EngineError, InvalidInput, InvariantViolation, NotFound, TermNotConfigured
from .filters import extra_occurrences, is_date_locked_for_subject, occurrences_for_date, special_date_for
from .simulation import SimulationResult, count_future_occurrences, simulate, simulate_subject
from .slots import combined_members, first_member, resolve_occurrences_for_date, weekly_pattern
from .snapshot import Snapshot
from .types import (
    EXTRA_SLOT_PREFIX, WEEK_ORDER, WEEKDAYS,
    AttendanceRecordData, AttendanceStatus, BaselineData, CombinedSlotData, DaySlotData,
    ExtraClassData, Occurrence, SpecialDateData, SpecialDateType, SubjectData, TermData, TimeSlotData,
)

__all__ = [
    "SubjectStats", "aggregate", "attendance_stats", "overall", "percentage", "stats_range",
    "Verdict", "resolve",
    "CalendarDay", "current_range", "future_range", "is_date_in_term", "walk_dates", "weekday_name",
    "Conflict", "EngineError", "InvalidInput", "InvariantViolation", "NotFound", "TermNotConfigured",
    "extra_occurrences", "is_date_locked_for_subject", "occurrences_for_date", "special_date_for",
    "SimulationResult", "count_future_occurrences", "simulate", "simulate_subject",
    "combined_members", "first_member", "resolve_occurrences_for_date", "weekly_pattern",
    "Snapshot",
    "EXTRA_SLOT_PREFIX", "WEEK_ORDER", "WEEKDAYS",
    "AttendanceRecordData", "AttendanceStatus", "BaselineData", "CombinedSlotData", "DaySlotData",
    "ExtraClassData", "Occurrence", "SpecialDateData", "SpecialDateType", "SubjectData", "TermData",
    "TimeSlotData",
]
