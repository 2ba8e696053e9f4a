# blueprints/timetable/routes.py
from __future__ import annotations

from flask import url_for

from blueprints.core.helpers import created, ok, parse_body, repo
from . import api_bp
from . import services as svc
from .schemas import (
    AssignIn, CombineIn, CombinedSlotOut, DaySlotOut, GridOut,
    SubjectDeletionPlanOut, SubjectIn, SubjectOut, SubjectPatch,
    TimeSlotIn, TimeSlotOut,
)

# ---------- Subjects ----------
@api_bp.get("/subjects")
def subjects_list():
    return ok([SubjectOut.model_validate(s).dump() for s in svc.list_subjects(repo())])

@api_bp.post("/subjects")
def subjects_create():
    parsed = parse_body(SubjectIn)
    s = svc.create_subject(repo(), parsed.name, parsed.color)
    return created(SubjectOut.model_validate(s).dump(), url_for("timetable_api.subjects_get", subject_id=s.id))

@api_bp.get("/subjects/<subject_id>")
def subjects_get(subject_id: str):
    s = svc.require(repo().subjects, subject_id, "subject")
    return ok(SubjectOut.model_validate(s).dump())

@api_bp.patch("/subjects/<subject_id>")
def subjects_update(subject_id: str):
    parsed = parse_body(SubjectPatch)
    s = svc.update_subject(repo(), subject_id, name=parsed.name, color=parsed.color)
    return ok(SubjectOut.model_validate(s).dump())

@api_bp.get("/subjects/<subject_id>/deletion-plan")
def subjects_deletion_plan(subject_id: str):
    plan = svc.plan_subject_deletion(repo(), subject_id)
    return ok(SubjectDeletionPlanOut.model_validate(plan).dump())

@api_bp.delete("/subjects/<subject_id>")
def subjects_delete(subject_id: str):
    plan = svc.delete_subject(repo(), subject_id)
    return ok(SubjectDeletionPlanOut.model_validate(plan).dump())

# ---------- Time slots ----------
@api_bp.get("/time-slots")
def time_slots_list():
    return ok([TimeSlotOut.model_validate(ts).dump() for ts in svc.template_slots(repo())])

@api_bp.post("/time-slots")
def time_slots_create():
    parsed = parse_body(TimeSlotIn)
    ts = svc.add_time_slot(repo(), parsed.start_time, parsed.end_time)
    return created(TimeSlotOut.model_validate(ts).dump())

@api_bp.delete("/time-slots/<time_slot_id>")
def time_slots_delete(time_slot_id: str):
    svc.delete_time_slot(repo(), time_slot_id)
    return "", 204

# ---------- Day slots ----------
@api_bp.put("/day-slots/<time_slot_id>/<day>")
def day_slots_assign(time_slot_id: str, day: str):
    parsed = parse_body(AssignIn)
    ds = svc.assign_subject(repo(), time_slot_id, day, parsed.subject_id)
    return ok(DaySlotOut.model_validate(ds).dump())

# ---------- Combined slots ----------
@api_bp.post("/combined-slots")
def combined_create():
    parsed = parse_body(CombineIn)
    cs = svc.combine_slots(repo(), [(c.time_slot_id, c.day) for c in parsed.cells])
    return created(CombinedSlotOut.model_validate(cs).dump())

@api_bp.delete("/combined-slots/<combined_slot_id>")
def combined_delete(combined_slot_id: str):
    svc.uncombine_slot(repo(), combined_slot_id)
    return "", 204

# ---------- Grid ----------
@api_bp.get("/timetable")
def timetable():
    grid = svc.timetable_grid(repo())
    return ok(GridOut.model_validate(grid).dump())
