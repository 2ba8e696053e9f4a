# blueprints/timetable/services.py
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from datetime import time
from typing import Dict, List, Optional, Sequence, Tuple

from engine.errors import InvalidInput, InvariantViolation, NotFound
from engine.types import EXTRA_SLOT_PREFIX, WEEK_ORDER, WEEKDAYS
from models import CombinedSlot, DaySlot, Subject, TimeSlot
from repository import Repository

log = logging.getLogger(__name__)


# ---------- helpers ----------
def require(table, entity_id: str, entity: str):
    row = table.get(entity_id)
    if row is None:
        raise NotFound(entity, entity_id)
    return row

def check_day(day: str) -> str:
    if day not in WEEKDAYS:
        raise InvalidInput(f"Unknown weekday {day!r}", code="BAD_DAY", details={"day": day, "allowed": list(WEEK_ORDER)})
    return day

def check_time_range(start: time, end: time) -> None:
    if end <= start:
        raise InvalidInput("End time must be after start time", code="BAD_TIME_RANGE",
                           details={"startTime": start.strftime("%H:%M"), "endTime": end.strftime("%H:%M")})

def template_slots(repo: Repository) -> List[TimeSlot]:
    rows = repo.time_slots.all(~TimeSlot.id.startswith(EXTRA_SLOT_PREFIX))
    return sorted(rows, key=lambda ts: (ts.start_time, ts.id))

def combined_containing(repo: Repository, day_slot_ids: Sequence[str]) -> List[CombinedSlot]:
    wanted = set(day_slot_ids)
    return [cs for cs in repo.combined_slots.all() if wanted.intersection(cs.day_slot_ids or ())]


# ===== Subjects =====
def list_subjects(repo: Repository) -> List[Subject]:
    return repo.subjects.all(order_by=Subject.name)

def create_subject(repo: Repository, name: str, color: str = "") -> Subject:
    name = (name or "").strip()
    if not name:
        raise InvalidInput("Subject name is required", code="MISSING_FIELD", details={"field": "name"})
    with repo.atomic():
        subject = repo.subjects.add(Subject(name=name, color=color or ""))
    log.info("subject created", extra={"event": "subject_created", "subject_id": subject.id})
    return subject

def update_subject(repo: Repository, subject_id: str, name: Optional[str] = None, color: Optional[str] = None) -> Subject:
    subject = require(repo.subjects, subject_id, "subject")
    if name is not None:
        name = name.strip()
        if not name:
            raise InvalidInput("Subject name is required", code="MISSING_FIELD", details={"field": "name"})
    with repo.atomic():
        if name is not None:
            subject.name = name
        if color is not None:
            subject.color = color
    return subject


@dataclass
class SubjectDeletionPlan:
    """Dependent mutations of a subject delete: clear these cells, drop these blocks."""
    subject_id: str
    day_slot_ids: List[str] = field(default_factory=list)
    combined_slot_ids: List[str] = field(default_factory=list)

def plan_subject_deletion(repo: Repository, subject_id: str) -> SubjectDeletionPlan:
    require(repo.subjects, subject_id, "subject")
    cells = repo.day_slots.all(DaySlot.subject_id == subject_id)
    blocks = {cs.id for cs in repo.combined_slots.all(CombinedSlot.subject_id == subject_id)}
    blocks.update(cs.id for cs in combined_containing(repo, [ds.id for ds in cells]))
    return SubjectDeletionPlan(
        subject_id=subject_id,
        day_slot_ids=sorted(ds.id for ds in cells),
        combined_slot_ids=sorted(blocks),
    )

def delete_subject(repo: Repository, subject_id: str) -> SubjectDeletionPlan:
    """
    Removes the subject from the timetable. Attendance records and imported
    baselines that mention it are kept, so past statistics do not change.
    """
    plan = plan_subject_deletion(repo, subject_id)
    with repo.atomic():
        for ds_id in plan.day_slot_ids:
            ds = repo.day_slots.get(ds_id)
            if ds is not None:
                ds.subject_id = None
        if plan.combined_slot_ids:
            repo.combined_slots.delete_where(CombinedSlot.id.in_(plan.combined_slot_ids))
        repo.subjects.delete(repo.subjects.get(subject_id))
    log.info("subject deleted", extra={
        "event": "subject_deleted", "subject_id": subject_id,
    })
    return plan


# ===== Time slots =====
def add_time_slot(repo: Repository, start: time, end: time) -> TimeSlot:
    check_time_range(start, end)
    for ts in template_slots(repo):
        # touching ranges (10:00-11:00 after 09:00-10:00) do not overlap
        if not (start >= ts.end_time or end <= ts.start_time):
            raise InvalidInput("Time slot overlaps with an existing time slot", code="TIME_SLOT_OVERLAP",
                               details={"conflictsWith": ts.id,
                                        "startTime": ts.start_time.strftime("%H:%M"),
                                        "endTime": ts.end_time.strftime("%H:%M")})
    with repo.atomic():
        ts = repo.time_slots.add(TimeSlot(start_time=start, end_time=end))
        repo.day_slots.add_all([DaySlot(time_slot_id=ts.id, day=day) for day in WEEK_ORDER])
    return ts

def delete_time_slot(repo: Repository, time_slot_id: str) -> None:
    ts = require(repo.time_slots, time_slot_id, "time slot")
    cells = repo.day_slots.all(DaySlot.time_slot_id == ts.id)
    blocks = combined_containing(repo, [ds.id for ds in cells])
    with repo.atomic():
        if blocks:
            repo.combined_slots.delete_where(CombinedSlot.id.in_([cs.id for cs in blocks]))
        repo.day_slots.delete_where(DaySlot.time_slot_id == ts.id)
        repo.time_slots.delete_where(TimeSlot.id == ts.id)


# ===== Day slots =====
def assign_subject(repo: Repository, time_slot_id: str, day: str, subject_id: Optional[str]) -> DaySlot:
    check_day(day)
    ts = require(repo.time_slots, time_slot_id, "time slot")
    if ts.id.startswith(EXTRA_SLOT_PREFIX):
        raise InvalidInput("Extra-class time slots are not part of the weekly grid", code="EXTRA_SLOT")
    subject_id = subject_id or None
    if subject_id is not None:
        require(repo.subjects, subject_id, "subject")

    with repo.atomic():
        ds = repo.day_slots.find(time_slot_id=ts.id, day=day)
        if ds is None:
            ds = repo.day_slots.add(DaySlot(time_slot_id=ts.id, day=day))
        if ds.subject_id != subject_id:
            # a block always carries one subject; changing a member dissolves it
            for cs in combined_containing(repo, [ds.id]):
                log.info("combined slot dissolved", extra={"event": "combined_slot_dissolved", "combined_slot_id": cs.id})
                repo.combined_slots.delete(cs)
        ds.subject_id = subject_id
    return ds


# ===== Combined slots =====
def combine_slots(repo: Repository, cells: Sequence[Tuple[str, str]]) -> CombinedSlot:
    """
    Groups adjacent cells of one weekday that carry the same subject into a single
    lecture block. Either the whole block is created or nothing is.
    """
    unique = list(dict.fromkeys(cells))
    if len(unique) < 2:
        raise InvariantViolation("At least two slots are required to combine", code="TOO_FEW_SLOTS")
    days = {day for _, day in unique}
    if len(days) > 1:
        raise InvariantViolation("Cannot combine slots from different days", code="DIFFERENT_DAYS",
                                 details={"days": sorted(days)})
    day = check_day(days.pop())

    members: List[DaySlot] = []
    for time_slot_id, _ in unique:
        ds = repo.day_slots.find(time_slot_id=time_slot_id, day=day)
        if ds is None:
            raise NotFound("day slot", f"{time_slot_id}/{day}")
        members.append(ds)

    if any(not ds.subject_id for ds in members):
        raise InvariantViolation("Cannot combine empty slots", code="EMPTY_SLOT")
    subjects = {ds.subject_id for ds in members}
    if len(subjects) > 1:
        raise InvariantViolation("All slots must have the same subject to combine", code="DIFFERENT_SUBJECTS")
    taken = combined_containing(repo, [ds.id for ds in members])
    if taken:
        raise InvariantViolation("Slot is already part of a combined slot", code="ALREADY_COMBINED",
                                 details={"combinedSlotId": taken[0].id})

    order: Dict[str, int] = {ts.id: i for i, ts in enumerate(template_slots(repo))}
    if any(ds.time_slot_id not in order for ds in members):
        raise InvariantViolation("Only weekly time slots can be combined", code="EXTRA_SLOT")
    members.sort(key=lambda ds: order[ds.time_slot_id])
    positions = [order[ds.time_slot_id] for ds in members]
    if positions != list(range(positions[0], positions[0] + len(positions))):
        raise InvariantViolation("Only adjacent slots can be combined", code="NOT_ADJACENT")

    with repo.atomic():
        cs = repo.combined_slots.add(CombinedSlot(
            day_slot_ids=[ds.id for ds in members],
            subject_id=subjects.pop(),
            day=day,
        ))
    return cs

def uncombine_slot(repo: Repository, combined_slot_id: str) -> None:
    cs = require(repo.combined_slots, combined_slot_id, "combined slot")
    with repo.atomic():
        repo.combined_slots.delete(cs)


# ===== Grid =====
@dataclass
class TimetableGrid:
    subjects: List[Subject]
    time_slots: List[TimeSlot]
    day_slots: List[DaySlot]
    combined_slots: List[CombinedSlot]

def timetable_grid(repo: Repository) -> TimetableGrid:
    slots = template_slots(repo)
    slot_rank = {ts.id: i for i, ts in enumerate(slots)}
    day_rank = {day: i for i, day in enumerate(WEEK_ORDER)}
    cells = [ds for ds in repo.day_slots.all() if ds.time_slot_id in slot_rank]
    cells.sort(key=lambda ds: (slot_rank[ds.time_slot_id], day_rank.get(ds.day, len(day_rank))))
    return TimetableGrid(
        subjects=list_subjects(repo),
        time_slots=slots,
        day_slots=cells,
        combined_slots=repo.combined_slots.all(),
    )
