# engine/filters.py
from __future__ import annotations
import logging
from datetime import date, time
from typing import Dict, List, Optional

from .calendar import CalendarDay, is_date_in_term
from .slots import resolve_occurrences_for_date
from .snapshot import Snapshot
from .types import ExtraClassData, Occurrence, SpecialDateData, TimeSlotData

log = logging.getLogger(__name__)


def special_date_for(d: date, snapshot: Snapshot) -> Optional[SpecialDateData]:
    return snapshot.special_dates_by_date.get(d)


def is_date_locked_for_subject(d: date, subject_id: Optional[str], snapshot: Snapshot) -> bool:
    """True iff the subject has an imported baseline and d <= its import date."""
    if not subject_id:
        return False
    baseline = snapshot.baselines_by_subject.get(subject_id)
    if baseline is None:
        return False
    return d <= baseline.import_date


def _extra_slot(ec: ExtraClassData, snapshot: Snapshot) -> TimeSlotData:
    ts = snapshot.time_slots_by_id.get(ec.time_slot_id)
    if ts is None:
        # still a lecture that happened; only its time range is unknown
        log.warning("extra class references unknown time slot",
                    extra={"event": "extra_class_dangling_slot", "extra_class_id": ec.id})
        ts = TimeSlotData(id=ec.time_slot_id, start_time=time(0, 0), end_time=time(0, 0))
    return ts


def extra_occurrences(d: date, snapshot: Snapshot) -> List[Occurrence]:
    out = [
        Occurrence(time_slot=_extra_slot(ec, snapshot), subject_id=ec.subject_id, date=d, extra_class_id=ec.id)
        for ec in snapshot.extra_classes_by_date.get(d, [])
    ]
    out.sort(key=lambda o: (o.time_slot.start_time, o.extra_class_id))
    return out


def occurrences_for_date(
    day: CalendarDay,
    snapshot: Snapshot,
    *,
    pattern: Optional[Dict[str, List[Occurrence]]] = None,
    apply_locks: bool = True,
    include_extras: bool = True,
) -> List[Occurrence]:
    """
    Effective occurrences of one date: template lectures first, then extra classes.
    Order of rules: special date (whole day), term window, per-subject import lock.
    """
    if special_date_for(day.date, snapshot) is not None:
        return []
    if not is_date_in_term(day.date, snapshot.term):
        return []

    if pattern is not None:
        template = pattern.get(day.weekday, [])
    else:
        template = resolve_occurrences_for_date(day.weekday, snapshot)
    out = [occ.on(day.date) for occ in template]
    if include_extras:
        out.extend(extra_occurrences(day.date, snapshot))

    if apply_locks:
        out = [occ for occ in out if not is_date_locked_for_subject(day.date, occ.subject_id, snapshot)]
    return out
