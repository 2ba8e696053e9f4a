# engine/attendance.py
from __future__ import annotations
from typing import NamedTuple, Optional

from .snapshot import Snapshot
from .types import AttendanceRecordData, AttendanceStatus, Occurrence


class Verdict(NamedTuple):
    subject_id: str
    # None: lecture is due but nothing was recorded yet
    status: Optional[AttendanceStatus]
    record: Optional[AttendanceRecordData] = None


def find_record(occ: Occurrence, snapshot: Snapshot) -> Optional[AttendanceRecordData]:
    if occ.date is None:
        return None
    return snapshot.records_by_key.get((occ.date, occ.time_slot.id))


def resolve(occ: Occurrence, snapshot: Snapshot) -> Verdict:
    """
    Recorded status wins; the lecture is counted for actual ?? original ?? scheduled subject.
    Unmarked template lectures stay neutral, unmarked extra classes count as attended.
    """
    record = find_record(occ, snapshot)
    if record is not None:
        subject_id = record.actual_subject_id or record.original_subject_id or occ.subject_id
        return Verdict(subject_id, AttendanceStatus(record.status), record)
    if occ.is_extra:
        return Verdict(occ.subject_id, AttendanceStatus.ATTENDED)
    return Verdict(occ.subject_id, None)
