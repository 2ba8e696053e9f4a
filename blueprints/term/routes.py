# blueprints/term/routes.py
from __future__ import annotations

from flask import request

from blueprints.core.helpers import created, ok, parse_body, parse_date, repo
from models import TimeSlot
from . import api_bp
from . import services as svc
from .schemas import (
    ExtraClassDetailOut, ExtraClassIn, ExtraClassOut, ExtraClassPatch,
    SpecialDateIn, SpecialDateOut, TermIn, TermOut,
)

# ---------- Term ----------
@api_bp.get("/term")
def term_get():
    term = svc.active_term(repo())
    return ok({"term": TermOut.model_validate(term).dump() if term else None})

@api_bp.put("/term")
def term_set():
    parsed = parse_body(TermIn)
    term = svc.set_term_settings(repo(), parsed.start_date, parsed.end_date)
    return ok({"term": TermOut.model_validate(term).dump()})

# ---------- Special dates ----------
@api_bp.get("/special-dates")
def special_dates_list():
    start = parse_date(request.args.get("from"), "from", required=False)
    end = parse_date(request.args.get("to"), "to", required=False)
    return ok([SpecialDateOut.model_validate(sd).dump() for sd in svc.list_special_dates(repo(), start, end)])

@api_bp.post("/special-dates")
def special_dates_create():
    parsed = parse_body(SpecialDateIn)
    sd = svc.add_special_date(repo(), parsed.date, parsed.type, parsed.description)
    return created(SpecialDateOut.model_validate(sd).dump())

@api_bp.post("/special-dates/toggle")
def special_dates_toggle():
    parsed = parse_body(SpecialDateIn)
    sd = svc.toggle_special_date(repo(), parsed.date, parsed.type, parsed.description)
    return ok({"specialDate": SpecialDateOut.model_validate(sd).dump() if sd else None})

@api_bp.delete("/special-dates/<special_date_id>")
def special_dates_delete(special_date_id: str):
    svc.remove_special_date(repo(), special_date_id)
    return "", 204

# ---------- Extra classes ----------
def _detail(ec, slots: dict) -> dict:
    ts = slots.get(ec.time_slot_id)
    return ExtraClassDetailOut(
        id=ec.id, date=ec.date, time_slot_id=ec.time_slot_id, subject_id=ec.subject_id,
        description=ec.description,
        start_time=ts.start_time if ts else None, end_time=ts.end_time if ts else None,
    ).dump()

@api_bp.get("/extra-classes")
def extra_classes_list():
    r = repo()
    d = parse_date(request.args.get("date"), "date")
    rows = svc.extra_classes_for_date(r, d)
    slots = {ts.id: ts for ts in r.time_slots.all(TimeSlot.id.in_([ec.time_slot_id for ec in rows]))}
    return ok([_detail(ec, slots) for ec in rows])

@api_bp.post("/extra-classes")
def extra_classes_create():
    parsed = parse_body(ExtraClassIn)
    ec = svc.add_extra_class(
        repo(), parsed.date, parsed.subject_id,
        time_slot_id=parsed.time_slot_id, start=parsed.start_time, end=parsed.end_time,
        description=parsed.description,
    )
    return created(ExtraClassOut.model_validate(ec).dump())

@api_bp.patch("/extra-classes/<extra_class_id>")
def extra_classes_update(extra_class_id: str):
    parsed = parse_body(ExtraClassPatch)
    ec = svc.update_extra_class(repo(), extra_class_id, **parsed.model_dump(exclude_unset=True))
    return ok(ExtraClassOut.model_validate(ec).dump())

@api_bp.delete("/extra-classes/<extra_class_id>")
def extra_classes_delete(extra_class_id: str):
    svc.remove_extra_class(repo(), extra_class_id)
    return "", 204
