# engine/snapshot.py
from __future__ import annotations
from dataclasses import dataclass
from datetime import date
from functools import cached_property
from typing import Dict, List, Optional, Tuple

from .types import (
    AttendanceRecordData, BaselineData, CombinedSlotData, DaySlotData,
    ExtraClassData, SpecialDateData, SubjectData, TermData, TimeSlotData,
)


@dataclass(frozen=True, eq=False)
class Snapshot:
    """
    Immutable copy of every table the engine reads.
    Built once per computation by the repository; indexes are computed lazily.
    """
    subjects: Tuple[SubjectData, ...] = ()
    time_slots: Tuple[TimeSlotData, ...] = ()
    day_slots: Tuple[DaySlotData, ...] = ()
    combined_slots: Tuple[CombinedSlotData, ...] = ()
    attendance_records: Tuple[AttendanceRecordData, ...] = ()
    special_dates: Tuple[SpecialDateData, ...] = ()
    extra_classes: Tuple[ExtraClassData, ...] = ()
    term: Optional[TermData] = None
    baselines: Tuple[BaselineData, ...] = ()

    # ---------- indexes ----------
    @cached_property
    def subjects_by_id(self) -> Dict[str, SubjectData]:
        return {s.id: s for s in self.subjects}

    @cached_property
    def time_slots_by_id(self) -> Dict[str, TimeSlotData]:
        return {ts.id: ts for ts in self.time_slots}

    @cached_property
    def template_slots(self) -> List[TimeSlotData]:
        # stable: equal start times keep id order
        slots = [ts for ts in self.time_slots if not ts.is_extra]
        return sorted(slots, key=lambda ts: (ts.start_time, ts.id))

    @cached_property
    def day_slots_by_id(self) -> Dict[str, DaySlotData]:
        return {ds.id: ds for ds in self.day_slots}

    @cached_property
    def day_slot_cells(self) -> Dict[Tuple[str, str], DaySlotData]:
        cells: Dict[Tuple[str, str], DaySlotData] = {}
        for ds in self.day_slots:
            cells.setdefault((ds.time_slot_id, ds.day), ds)
        return cells

    @cached_property
    def combined_by_member(self) -> Dict[Tuple[str, str], CombinedSlotData]:
        """(day, day_slot_id) -> combined slot containing it."""
        out: Dict[Tuple[str, str], CombinedSlotData] = {}
        for cs in self.combined_slots:
            for ds_id in cs.day_slot_ids:
                out.setdefault((cs.day, ds_id), cs)
        return out

    @cached_property
    def special_dates_by_date(self) -> Dict[date, SpecialDateData]:
        out: Dict[date, SpecialDateData] = {}
        for sd in self.special_dates:
            out.setdefault(sd.date, sd)
        return out

    @cached_property
    def extra_classes_by_date(self) -> Dict[date, List[ExtraClassData]]:
        out: Dict[date, List[ExtraClassData]] = {}
        for ec in self.extra_classes:
            out.setdefault(ec.date, []).append(ec)
        return out

    @cached_property
    def records_by_key(self) -> Dict[Tuple[date, str], AttendanceRecordData]:
        out: Dict[Tuple[date, str], AttendanceRecordData] = {}
        for r in self.attendance_records:
            out.setdefault((r.date, r.time_slot_id), r)
        return out

    @cached_property
    def baselines_by_subject(self) -> Dict[str, BaselineData]:
        return {b.subject_id: b for b in self.baselines}
