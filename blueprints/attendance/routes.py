# blueprints/attendance/routes.py
from __future__ import annotations

from flask import request

from blueprints.core.helpers import bool_arg, created, ok, parse_body, parse_date, repo, today_arg
from engine.errors import InvalidInput
from . import api_bp
from . import services as svc
from .schemas import AttendanceIn, AttendancePatch, AttendanceRecordOut, SimulateIn

def _record(rec) -> dict:
    return AttendanceRecordOut.model_validate(rec).dump()

# ---------- Records ----------
@api_bp.get("/attendance")
def attendance_list():
    d = parse_date(request.args.get("date"), "date")
    return ok([_record(r) for r in svc.attendance_for_date(repo(), d)])

@api_bp.post("/attendance")
def attendance_mark():
    parsed = parse_body(AttendanceIn)
    rec = svc.mark_attendance(
        repo(), parsed.date, parsed.time_slot_id, parsed.status,
        original_subject_id=parsed.original_subject_id,
        actual_subject_id=parsed.actual_subject_id,
        is_verified=parsed.is_verified,
    )
    return ok(_record(rec))

@api_bp.patch("/attendance/<record_id>")
def attendance_update(record_id: str):
    parsed = parse_body(AttendancePatch)
    rec = svc.update_attendance(repo(), record_id, **parsed.model_dump(exclude_unset=True))
    return ok(_record(rec))

@api_bp.post("/attendance/defaults")
def attendance_defaults():
    payload = request.get_json(silent=True) or {}
    d = parse_date(payload.get("date") or request.args.get("date"), "date")
    rows = svc.ensure_default_records(repo(), d)
    body = {"created": [_record(r) for r in rows]}
    # nothing new: every lecture of the day already has its record
    return created(body) if rows else ok(body)

# ---------- Scheduled view ----------
@api_bp.get("/schedule")
def schedule_for_date():
    d = parse_date(request.args.get("date"), "date", required=False) or today_arg()
    return ok(svc.scheduled_occurrences(repo(), d))

# ---------- Stats ----------
@api_bp.get("/stats")
def stats():
    r = repo()
    report = svc.attendance_stats(
        r, today_arg(),
        start=parse_date(request.args.get("from"), "from", required=False),
        end=parse_date(request.args.get("to"), "to", required=False),
        subject_id=request.args.get("subjectId") or None,
        include_empty=bool_arg("includeEmpty"),
    )
    names = {s.id: s.name for s in r.subjects.all()}
    return ok({
        "from": report.start.isoformat(),
        "to": report.end.isoformat(),
        "subjects": [dict(st.to_dict(), subjectName=names.get(st.subject_id)) for st in report.subjects],
        "overall": report.overall.to_dict(),
    })

# ---------- Simulation ----------
@api_bp.post("/simulate")
def simulate():
    parsed = parse_body(SimulateIn)
    sim = svc.simulate_target(repo(), parsed.subject_id, parsed.target_percentage, today_arg())
    return ok({
        "subjectId": sim.subject_id,
        "currentStats": sim.current.to_dict(),
        **sim.result.to_dict(),
    })

@api_bp.get("/simulation")
def simulation_overview():
    return ok(svc.simulation_overview(repo(), today_arg()))

# ---------- Term / locks ----------
@api_bp.get("/calendar/in-term")
def in_term():
    d = parse_date(request.args.get("date"), "date")
    return ok({"date": d.isoformat(), "inTerm": svc.is_date_in_term(repo(), d)})

@api_bp.get("/calendar/locked")
def locked():
    d = parse_date(request.args.get("date"), "date")
    subject_id = request.args.get("subjectId")
    if not subject_id:
        raise InvalidInput("subjectId is required", code="MISSING_FIELD", details={"field": "subjectId"})
    return ok({"date": d.isoformat(), "subjectId": subject_id,
               "locked": svc.is_date_locked_for_subject(repo(), d, subject_id)})
