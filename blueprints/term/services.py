# blueprints/term/services.py
from __future__ import annotations
import logging
import uuid
from datetime import date, time
from typing import List, Optional

import engine
from blueprints.timetable.services import check_time_range, require
from engine.errors import Conflict, InvalidInput
from engine.types import EXTRA_SLOT_PREFIX, SpecialDateType
from models import ExtraClass, SpecialDate, TermSettings, TimeSlot
from repository import Repository

log = logging.getLogger(__name__)


# ===== Term =====
def set_term_settings(repo: Repository, start: date, end: date) -> TermSettings:
    """Deactivates every other term and makes [start, end] the active one."""
    if start >= end:
        raise InvalidInput("Term start date must be before its end date", code="BAD_DATE_RANGE",
                           details={"startDate": start.isoformat(), "endDate": end.isoformat()})
    with repo.atomic():
        for row in repo.term_settings.all(TermSettings.is_active.is_(True)):
            row.is_active = False
        term = repo.term_settings.add(TermSettings(start_date=start, end_date=end, is_active=True))
    log.info("term configured %s..%s", start.isoformat(), end.isoformat(), extra={"event": "term_set"})
    return term

def active_term(repo: Repository) -> Optional[TermSettings]:
    rows = repo.term_settings.all(TermSettings.is_active.is_(True), order_by=TermSettings.start_date.desc())
    return rows[0] if rows else None


# ===== Special dates =====
def list_special_dates(repo: Repository, start: Optional[date] = None, end: Optional[date] = None) -> List[SpecialDate]:
    criteria = []
    if start is not None:
        criteria.append(SpecialDate.date >= start)
    if end is not None:
        criteria.append(SpecialDate.date <= end)
    return repo.special_dates.all(*criteria, order_by=SpecialDate.date)

def add_special_date(repo: Repository, d: date, type: SpecialDateType, description: Optional[str] = None) -> SpecialDate:
    existing = repo.special_dates.find(date=d)
    if existing is not None:
        raise Conflict("Date is already marked as a special date", code="SPECIAL_DATE_EXISTS",
                       details={"id": existing.id, "date": d.isoformat()})
    with repo.atomic():
        sd = repo.special_dates.add(SpecialDate(date=d, type=SpecialDateType(type), description=description))
    return sd

def remove_special_date(repo: Repository, special_date_id: str) -> None:
    sd = require(repo.special_dates, special_date_id, "special date")
    with repo.atomic():
        repo.special_dates.delete(sd)

def toggle_special_date(repo: Repository, d: date, type: SpecialDateType,
                        description: Optional[str] = None) -> Optional[SpecialDate]:
    """Unmarks the date when it is already special, marks it otherwise. Returns the new row or None."""
    existing = repo.special_dates.find(date=d)
    if existing is not None:
        with repo.atomic():
            repo.special_dates.delete(existing)
        return None
    return add_special_date(repo, d, type, description)


# ===== Extra classes =====
def _mint_extra_slot(repo: Repository, start: time, end: time) -> TimeSlot:
    check_time_range(start, end)
    return repo.time_slots.add(TimeSlot(id=f"{EXTRA_SLOT_PREFIX}{uuid.uuid4().hex}", start_time=start, end_time=end))

def _drop_extra_slot_if_unused(repo: Repository, time_slot_id: str) -> None:
    if not time_slot_id.startswith(EXTRA_SLOT_PREFIX):
        return
    if repo.extra_classes.find(time_slot_id=time_slot_id) is None:
        repo.time_slots.delete_where(TimeSlot.id == time_slot_id)

def _check_subject(repo: Repository, subject_id: Optional[str]) -> str:
    if not subject_id:
        raise InvalidInput("Subject is required", code="MISSING_FIELD", details={"field": "subjectId"})
    if repo.subjects.get(subject_id) is None:
        raise InvalidInput("Unknown subject", code="UNKNOWN_SUBJECT", details={"subjectId": subject_id})
    return subject_id

def _check_slot_free(repo: Repository, d: date, time_slot_id: str, extra_class_id: Optional[str] = None) -> None:
    """A weekly slot hosts an extra class only on dates it has no lecture; one record per (date, slot)."""
    if time_slot_id.startswith(EXTRA_SLOT_PREFIX):
        return
    snapshot = repo.snapshot()
    taken = set()
    for occ in engine.resolve_occurrences_for_date(engine.weekday_name(d), snapshot):
        taken.add(occ.time_slot.id)
        taken.update(snapshot.day_slots_by_id[ds_id].time_slot_id for ds_id in occ.member_day_slot_ids)
    taken.update(ec.time_slot_id for ec in snapshot.extra_classes_by_date.get(d, []) if ec.id != extra_class_id)
    if time_slot_id in taken:
        raise Conflict("Time slot already has a lecture on this date", code="SLOT_OCCUPIED",
                       details={"date": d.isoformat(), "timeSlotId": time_slot_id})

def add_extra_class(
    repo: Repository,
    d: date,
    subject_id: Optional[str],
    time_slot_id: Optional[str] = None,
    start: Optional[time] = None,
    end: Optional[time] = None,
    description: Optional[str] = None,
) -> ExtraClass:
    """One-off lecture on `d`, in an existing weekly slot or in a freshly minted extra- slot."""
    _check_subject(repo, subject_id)
    if time_slot_id is None and (start is None or end is None):
        raise InvalidInput("Time slot or start/end time is required", code="MISSING_FIELD",
                           details={"field": "timeSlotId"})
    with repo.atomic():
        if time_slot_id is not None:
            slot = require(repo.time_slots, time_slot_id, "time slot")
            _check_slot_free(repo, d, slot.id)
        else:
            slot = _mint_extra_slot(repo, start, end)
        ec = repo.extra_classes.add(ExtraClass(
            date=d, time_slot_id=slot.id, subject_id=subject_id, description=description,
        ))
    return ec

def update_extra_class(repo: Repository, extra_class_id: str, **changes) -> ExtraClass:
    ec = require(repo.extra_classes, extra_class_id, "extra class")
    if "subject_id" in changes:
        _check_subject(repo, changes["subject_id"])
    start, end = changes.get("start_time"), changes.get("end_time")
    if changes.get("time_slot_id"):
        target_slot = changes["time_slot_id"]
    elif start is not None and end is not None:
        target_slot = None
    else:
        target_slot = ec.time_slot_id
    if target_slot is not None:
        _check_slot_free(repo, changes.get("date") or ec.date, target_slot, extra_class_id=ec.id)
    with repo.atomic():
        old_slot = ec.time_slot_id
        if changes.get("time_slot_id"):
            ec.time_slot_id = require(repo.time_slots, changes["time_slot_id"], "time slot").id
        elif start is not None and end is not None:
            current = repo.time_slots.get(ec.time_slot_id)
            if current is not None and current.id.startswith(EXTRA_SLOT_PREFIX):
                check_time_range(start, end)
                current.start_time, current.end_time = start, end
            else:
                ec.time_slot_id = _mint_extra_slot(repo, start, end).id
        for key in ("date", "subject_id", "description"):
            if key in changes:
                setattr(ec, key, changes[key])
        repo.db.session.flush()
        if ec.time_slot_id != old_slot:
            _drop_extra_slot_if_unused(repo, old_slot)
    return ec

def remove_extra_class(repo: Repository, extra_class_id: str) -> None:
    ec = require(repo.extra_classes, extra_class_id, "extra class")
    with repo.atomic():
        slot_id = ec.time_slot_id
        repo.extra_classes.delete(ec)
        _drop_extra_slot_if_unused(repo, slot_id)

def extra_classes_for_date(repo: Repository, d: date) -> List[ExtraClass]:
    rows = repo.extra_classes.all(ExtraClass.date == d)
    slots = {ts.id: ts for ts in repo.time_slots.all(TimeSlot.id.in_([r.time_slot_id for r in rows]))} if rows else {}
    return sorted(rows, key=lambda r: (slots[r.time_slot_id].start_time if r.time_slot_id in slots else time(0), r.id))
