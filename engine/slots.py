# engine/slots.py
from __future__ import annotations
import logging
from typing import Dict, List, Optional

from .snapshot import Snapshot
from .types import WEEKDAYS, CombinedSlotData, DaySlotData, Occurrence

log = logging.getLogger(__name__)


def combined_members(cs: CombinedSlotData, snapshot: Snapshot) -> List[DaySlotData]:
    """Member day slots that still exist, ordered by their time slot start."""
    members: List[DaySlotData] = []
    for ds_id in cs.day_slot_ids:
        ds = snapshot.day_slots_by_id.get(ds_id)
        if ds is None or ds.time_slot_id not in snapshot.time_slots_by_id:
            continue
        members.append(ds)
    members.sort(key=lambda ds: (snapshot.time_slots_by_id[ds.time_slot_id].start_time, ds.id))
    return members


def first_member(cs: CombinedSlotData, snapshot: Snapshot) -> Optional[DaySlotData]:
    members = combined_members(cs, snapshot)
    return members[0] if members else None


def resolve_occurrences_for_date(weekday: str, snapshot: Snapshot) -> List[Occurrence]:
    """
    Template lectures for one weekday, ordered by start time.
    A combined block yields a single occurrence on its earliest member;
    the other members are suppressed.
    """
    out: List[Occurrence] = []
    for ts in snapshot.template_slots:
        ds = snapshot.day_slot_cells.get((ts.id, weekday))
        if ds is None or not ds.subject_id:
            continue

        cs = snapshot.combined_by_member.get((weekday, ds.id))
        if cs is None:
            out.append(Occurrence(
                time_slot=ts,
                subject_id=ds.subject_id,
                representative_day_slot_id=ds.id,
            ))
            continue

        members = combined_members(cs, snapshot)
        if not members:
            log.warning("combined slot has no resolvable first member",
                        extra={"event": "combined_slot_inconsistent", "combined_slot_id": cs.id})
            continue
        if members[0].id != ds.id:
            continue
        out.append(Occurrence(
            time_slot=ts,
            subject_id=cs.subject_id,
            representative_day_slot_id=ds.id,
            is_combined=True,
            member_day_slot_ids=tuple(m.id for m in members),
        ))
    return out


def weekly_pattern(snapshot: Snapshot) -> Dict[str, List[Occurrence]]:
    # the template repeats every week, so resolve each weekday once per computation
    return {day: resolve_occurrences_for_date(day, snapshot) for day in WEEKDAYS}
