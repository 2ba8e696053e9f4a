# blueprints/attendance/services.py
from __future__ import annotations
import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Optional

import engine
from engine import AttendanceStatus, Occurrence, Snapshot, SubjectStats
from engine.attendance import find_record
from engine.errors import Conflict, InvalidInput, NotFound
from engine.simulation import bounds
from models import AttendanceRecord
from repository import Repository
from blueprints.timetable.services import require

log = logging.getLogger(__name__)


# ---------- DTO ----------
@dataclass
class StatsReport:
    subjects: List[SubjectStats]
    overall: SubjectStats
    start: date
    end: date

@dataclass
class SubjectSimulation:
    subject_id: str
    current: SubjectStats
    result: engine.SimulationResult


# ===== Records =====
def _check_status(status) -> AttendanceStatus:
    try:
        return AttendanceStatus(status)
    except ValueError:
        raise InvalidInput("Unknown attendance status", code="BAD_STATUS",
                           details={"status": str(status), "allowed": [s.value for s in AttendanceStatus]})

def _check_unlocked(snapshot: Snapshot, d: date, subject_id: Optional[str]) -> None:
    if engine.is_date_locked_for_subject(d, subject_id, snapshot):
        raise Conflict("Attendance up to this date was imported for the subject", code="DATE_LOCKED",
                       details={"date": d.isoformat(), "subjectId": subject_id})

def mark_attendance(
    repo: Repository,
    d: date,
    time_slot_id: str,
    status,
    original_subject_id: Optional[str] = None,
    actual_subject_id: Optional[str] = None,
    is_verified: Optional[bool] = None,
) -> AttendanceRecord:
    """Upsert of the single record of the (date, time slot) occurrence."""
    status = _check_status(status)
    if not time_slot_id:
        raise InvalidInput("Time slot is required", code="MISSING_FIELD", details={"field": "timeSlotId"})
    require(repo.time_slots, time_slot_id, "time slot")
    original_subject_id = original_subject_id or None
    actual_subject_id = actual_subject_id or None
    _check_unlocked(repo.snapshot(), d, actual_subject_id or original_subject_id)
    if is_verified is None:
        is_verified = actual_subject_id is not None and actual_subject_id != original_subject_id

    with repo.atomic():
        rec = repo.attendance_records.find(date=d, time_slot_id=time_slot_id)
        if rec is None:
            rec = repo.attendance_records.add(AttendanceRecord(
                date=d, time_slot_id=time_slot_id, status=status,
                original_subject_id=original_subject_id, actual_subject_id=actual_subject_id,
                is_verified=is_verified,
            ))
        else:
            rec.status = status
            rec.original_subject_id = original_subject_id or rec.original_subject_id
            rec.actual_subject_id = actual_subject_id
            rec.is_verified = is_verified
    return rec

def update_attendance(repo: Repository, record_id: str, **changes) -> AttendanceRecord:
    rec = require(repo.attendance_records, record_id, "attendance record")
    status = _check_status(changes["status"]) if changes.get("status") is not None else None
    original = changes.get("original_subject_id") or rec.original_subject_id
    actual = (changes["actual_subject_id"] or None) if "actual_subject_id" in changes else rec.actual_subject_id
    _check_unlocked(repo.snapshot(), rec.date, actual or original)
    with repo.atomic():
        if status is not None:
            rec.status = status
        if changes.get("original_subject_id"):
            rec.original_subject_id = changes["original_subject_id"]
        if "actual_subject_id" in changes:
            rec.actual_subject_id = changes["actual_subject_id"] or None
        if changes.get("is_verified") is not None:
            rec.is_verified = changes["is_verified"]
        elif "actual_subject_id" in changes:
            rec.is_verified = rec.actual_subject_id is not None and rec.actual_subject_id != rec.original_subject_id
    return rec

def attendance_for_date(repo: Repository, d: date) -> List[AttendanceRecord]:
    return repo.attendance_records.all(AttendanceRecord.date == d, order_by=AttendanceRecord.time_slot_id)

def ensure_default_records(repo: Repository, d: date) -> List[AttendanceRecord]:
    """
    Creates an 'attended' record for every unlocked weekly lecture of `d` that has
    none yet. Idempotent; extra classes are never materialised.
    """
    snapshot = repo.snapshot()
    day = engine.CalendarDay(d, engine.weekday_name(d))
    missing = [
        occ for occ in engine.occurrences_for_date(day, snapshot, include_extras=False)
        if find_record(occ, snapshot) is None
    ]
    if not missing:
        return []
    with repo.atomic():
        created = [
            repo.attendance_records.add(AttendanceRecord(
                date=d, time_slot_id=occ.time_slot.id, status=AttendanceStatus.ATTENDED,
                original_subject_id=occ.subject_id, actual_subject_id=occ.subject_id,
                is_verified=False,
            ))
            for occ in missing
        ]
    log.info("default attendance materialised for %s", d.isoformat(), extra={"event": "attendance_defaults"})
    return created


# ===== Scheduled view =====
def _occurrence_view(occ: Occurrence, snapshot: Snapshot) -> Dict[str, Any]:
    start, end = occ.time_slot.start_time, occ.time_slot.end_time
    member_slot_ids: List[str] = []
    if occ.is_combined:
        for ds_id in occ.member_day_slot_ids:
            ds = snapshot.day_slots_by_id[ds_id]
            ts = snapshot.time_slots_by_id[ds.time_slot_id]
            member_slot_ids.append(ts.id)
            end = max(end, ts.end_time)
    verdict = engine.resolve(occ, snapshot)
    subject = snapshot.subjects_by_id.get(occ.subject_id)
    ec = next((e for e in snapshot.extra_classes if e.id == occ.extra_class_id), None) if occ.is_extra else None
    return {
        "timeSlotId": occ.time_slot.id,
        "startTime": start.strftime("%H:%M"),
        "endTime": end.strftime("%H:%M"),
        "subjectId": occ.subject_id,
        "subject": {"id": subject.id, "name": subject.name, "color": subject.color} if subject else None,
        "isCombined": occ.is_combined,
        "combinedMemberSlots": list(occ.member_day_slot_ids),
        "combinedMemberTimeSlotIds": member_slot_ids,
        "isExtra": occ.is_extra,
        "extraClassId": occ.extra_class_id,
        "description": ec.description if ec else None,
        "isLocked": engine.is_date_locked_for_subject(occ.date, occ.subject_id, snapshot),
        "effectiveSubjectId": verdict.subject_id,
        "status": verdict.status.value if verdict.status else None,
        "recordId": verdict.record.id if verdict.record else None,
        "isVerified": verdict.record.is_verified if verdict.record else False,
    }

def scheduled_occurrences(repo: Repository, d: date) -> Dict[str, Any]:
    snapshot = repo.snapshot()
    day = engine.CalendarDay(d, engine.weekday_name(d))
    special = engine.special_date_for(d, snapshot)
    # locked lectures stay visible, flagged, so the day reads like the timetable
    occs = engine.occurrences_for_date(day, snapshot, apply_locks=False)
    return {
        "date": d.isoformat(),
        "weekday": day.weekday,
        "inTerm": engine.is_date_in_term(d, snapshot.term),
        "specialDate": {"id": special.id, "type": special.type.value, "description": special.description} if special else None,
        "occurrences": [_occurrence_view(o, snapshot) for o in occs],
    }


# ===== Stats =====
def attendance_stats(
    repo: Repository,
    today: date,
    start: Optional[date] = None,
    end: Optional[date] = None,
    subject_id: Optional[str] = None,
    include_empty: bool = False,
) -> StatsReport:
    snapshot = repo.snapshot()
    start, end = engine.stats_range(snapshot.term, today, start, end)
    per_subject = engine.aggregate(snapshot, start, end, subject_id=subject_id, include_empty=include_empty)
    rows = list(per_subject.values())
    return StatsReport(subjects=rows, overall=engine.overall(rows), start=start, end=end)


# ===== Simulation =====
def simulate_target(repo: Repository, subject_id: str, target, today: date) -> SubjectSimulation:
    snapshot = repo.snapshot()
    if subject_id not in snapshot.subjects_by_id:
        raise NotFound("subject", subject_id)
    current, result = engine.simulate_subject(snapshot, subject_id, target, today)
    log.info("simulation computed", extra={"event": "simulation", "subject_id": subject_id})
    return SubjectSimulation(subject_id=subject_id, current=current, result=result)

def simulation_overview(repo: Repository, today: date) -> List[Dict[str, Any]]:
    """Every subject's current standing and the bounds reachable by term end."""
    snapshot = repo.snapshot()
    stats = engine.attendance_stats(snapshot, today, include_empty=True)
    out: List[Dict[str, Any]] = []
    for subject in sorted(snapshot.subjects, key=lambda s: (s.name, s.id)):
        current = stats.get(subject.id) or SubjectStats(subject.id)
        future = engine.count_future_occurrences(snapshot, subject.id, today)
        max_pct, min_pct = bounds(current, future)
        out.append({
            "subjectId": subject.id,
            "subjectName": subject.name,
            "currentStats": current.to_dict(),
            "futureLectures": future,
            "maxPossiblePct": max_pct,
            "minPossiblePct": min_pct,
        })
    return out


# ===== Term / lock queries =====
def is_date_in_term(repo: Repository, d: date) -> bool:
    return engine.is_date_in_term(d, repo.active_term())

def is_date_locked_for_subject(repo: Repository, d: date, subject_id: str) -> bool:
    return engine.is_date_locked_for_subject(d, subject_id, repo.snapshot())
