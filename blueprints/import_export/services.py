# blueprints/import_export/services.py
from __future__ import annotations
import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List

from sqlalchemy import func

from engine.errors import InvalidInput
from engine.types import EXTRA_SLOT_PREFIX
from models import (
    AttendanceRecord, CombinedSlot, DaySlot, ExtraClass, ImportedAttendance,
    SpecialDate, Subject, TermSettings, TimeSlot,
)
from repository import Repository
from blueprints.attendance.schemas import AttendanceRecordOut
from blueprints.term.schemas import ExtraClassOut, SpecialDateOut
from blueprints.timetable.schemas import CombinedSlotOut, DaySlotOut, SubjectOut, TimeSlotOut
from .schemas import Archive, ImportedAttendanceOut, TermSettingsRec

log = logging.getLogger(__name__)

# ---------- contracts ----------
@dataclass
class ImportResult:
    baseline: ImportedAttendance
    replaced_baseline: bool
    deleted_records: int
    deleted_extra_classes: int


# ===== Baseline import =====
def validate_import(
    repo: Repository,
    subject_id: str,
    import_date: date,
    total: int,
    attended: int,
    missed: int,
    cancelled: int,
    today: date,
) -> None:
    if not subject_id:
        raise InvalidInput("Subject is required", code="MISSING_FIELD", details={"field": "subjectId"})
    if repo.subjects.get(subject_id) is None:
        raise InvalidInput("Unknown subject", code="UNKNOWN_SUBJECT", details={"subjectId": subject_id})
    counts = {"totalLectures": total, "attendedLectures": attended,
              "missedLectures": missed, "cancelledLectures": cancelled}
    negative = [k for k, v in counts.items() if v < 0]
    if negative:
        raise InvalidInput("Lecture counts cannot be negative", code="NEGATIVE_COUNT", details={"fields": negative})
    if attended + missed + cancelled != total:
        raise InvalidInput("Attended + missed + cancelled must equal total lectures", code="SUM_MISMATCH",
                           details=counts)
    if import_date > today:
        raise InvalidInput("Import date cannot be in the future", code="FUTURE_DATE",
                           details={"importDate": import_date.isoformat(), "today": today.isoformat()})
    term = repo.active_term()
    if term is not None and not term.contains(import_date):
        raise InvalidInput("Import date must be within the term", code="OUTSIDE_TERM",
                           details={"importDate": import_date.isoformat(),
                                    "termStart": term.start_date.isoformat(),
                                    "termEnd": term.end_date.isoformat()})

def import_attendance(
    repo: Repository,
    subject_id: str,
    import_date: date,
    total: int,
    attended: int,
    missed: int,
    cancelled: int,
    *,
    today: date,
) -> ImportResult:
    """
    Replaces everything known about the subject up to import_date with a baseline:
    drops its records (counted subject) and extra classes dated on or before it,
    replaces any previous baseline. One transaction.
    """
    validate_import(repo, subject_id, import_date, total, attended, missed, cancelled, today)

    counted_subject = func.coalesce(AttendanceRecord.actual_subject_id, AttendanceRecord.original_subject_id)
    with repo.atomic():
        replaced = repo.imported_attendance.delete_where(ImportedAttendance.subject_id == subject_id)
        deleted_records = repo.attendance_records.delete_where(
            counted_subject == subject_id, AttendanceRecord.date <= import_date,
        )
        stale = repo.extra_classes.all(ExtraClass.subject_id == subject_id, ExtraClass.date <= import_date)
        stale_slots = {ec.time_slot_id for ec in stale if ec.time_slot_id.startswith(EXTRA_SLOT_PREFIX)}
        deleted_extras = repo.extra_classes.delete_where(ExtraClass.id.in_([ec.id for ec in stale])) if stale else 0
        for slot_id in stale_slots:
            if repo.extra_classes.find(time_slot_id=slot_id) is None:
                repo.time_slots.delete_where(TimeSlot.id == slot_id)
        baseline = repo.imported_attendance.add(ImportedAttendance(
            subject_id=subject_id,
            import_date=import_date,
            total_lectures=total,
            attended_lectures=attended,
            missed_lectures=missed,
            cancelled_lectures=cancelled,
        ))
    log.info("attendance baseline imported", extra={
        "event": "attendance_imported", "subject_id": subject_id,
    })
    return ImportResult(
        baseline=baseline,
        replaced_baseline=bool(replaced),
        deleted_records=deleted_records,
        deleted_extra_classes=deleted_extras,
    )

def list_imported(repo: Repository) -> List[ImportedAttendance]:
    return repo.imported_attendance.all(order_by=ImportedAttendance.import_date)


# ===== Archive =====
def export_archive(repo: Repository) -> Dict[str, Any]:
    """Every table as an array of camelCase records, readable back by import_archive."""
    def dump(schema, rows):
        return [schema.model_validate(r).dump() for r in rows]

    return {
        "subjects": dump(SubjectOut, repo.subjects.all(order_by=Subject.name)),
        "timeSlots": dump(TimeSlotOut, repo.time_slots.all(order_by=TimeSlot.start_time)),
        "daySlots": dump(DaySlotOut, repo.day_slots.all(order_by=DaySlot.time_slot_id)),
        "combinedSlots": dump(CombinedSlotOut, repo.combined_slots.all(order_by=CombinedSlot.day)),
        "attendanceRecords": dump(AttendanceRecordOut, repo.attendance_records.all(order_by=AttendanceRecord.date)),
        "specialDates": dump(SpecialDateOut, repo.special_dates.all(order_by=SpecialDate.date)),
        "extraClasses": dump(ExtraClassOut, repo.extra_classes.all(order_by=ExtraClass.date)),
        "termSettings": dump(TermSettingsRec, repo.term_settings.all(order_by=TermSettings.start_date)),
        "importedAttendance": dump(ImportedAttendanceOut, repo.imported_attendance.all(order_by=ImportedAttendance.subject_id)),
    }

def import_archive(repo: Repository, payload: Dict[str, Any]) -> Dict[str, int]:
    """
    Replaces all data with the archive. The payload is validated in full before
    anything is touched; any failure while writing leaves the previous data.
    """
    archive = Archive.model_validate(payload)
    with repo.atomic():
        for table in repo.tables:
            table.delete_where()
        repo.subjects.add_all([Subject(id=s.id, name=s.name, color=s.color) for s in archive.subjects])
        repo.time_slots.add_all([
            TimeSlot(id=ts.id, start_time=ts.start_time, end_time=ts.end_time) for ts in archive.time_slots
        ])
        repo.day_slots.add_all([
            DaySlot(id=ds.id, time_slot_id=ds.time_slot_id, day=ds.day, subject_id=ds.subject_id or None)
            for ds in archive.day_slots
        ])
        repo.combined_slots.add_all([
            CombinedSlot(id=cs.id, day_slot_ids=list(cs.day_slot_ids), subject_id=cs.subject_id, day=cs.day)
            for cs in archive.combined_slots
        ])
        repo.attendance_records.add_all([
            AttendanceRecord(
                id=r.id, date=r.date, time_slot_id=r.time_slot_id, status=r.status,
                original_subject_id=r.original_subject_id or None,
                actual_subject_id=r.actual_subject_id or None,
                is_verified=r.is_verified,
            )
            for r in archive.attendance_records
        ])
        repo.special_dates.add_all([
            SpecialDate(id=sd.id, date=sd.date, type=sd.type, description=sd.description)
            for sd in archive.special_dates
        ])
        repo.extra_classes.add_all([
            ExtraClass(id=ec.id, date=ec.date, time_slot_id=ec.time_slot_id,
                       subject_id=ec.subject_id, description=ec.description)
            for ec in archive.extra_classes
        ])
        repo.term_settings.add_all([
            TermSettings(id=t.id, start_date=t.start_date, end_date=t.end_date, is_active=t.is_active)
            for t in archive.term_settings
        ])
        repo.imported_attendance.add_all([
            ImportedAttendance(
                id=b.id, subject_id=b.subject_id, import_date=b.import_date,
                total_lectures=b.total_lectures, attended_lectures=b.attended_lectures,
                missed_lectures=b.missed_lectures, cancelled_lectures=b.cancelled_lectures,
            )
            for b in archive.imported_attendance
        ])
    counts = {
        "subjects": len(archive.subjects),
        "timeSlots": len(archive.time_slots),
        "daySlots": len(archive.day_slots),
        "combinedSlots": len(archive.combined_slots),
        "attendanceRecords": len(archive.attendance_records),
        "specialDates": len(archive.special_dates),
        "extraClasses": len(archive.extra_classes),
        "termSettings": len(archive.term_settings),
        "importedAttendance": len(archive.imported_attendance),
    }
    log.info("archive imported", extra={"event": "archive_imported"})
    return counts

def clear_all_data(repo: Repository) -> None:
    repo.clear_all()
    log.info("all data cleared", extra={"event": "data_cleared"})
