# blueprints/import_export/routes.py
from __future__ import annotations
import json
from datetime import date

from flask import Response, request

from blueprints.core.helpers import created, ok, parse_body, repo, today_arg
from engine.errors import InvalidInput
from . import api_bp
from . import services as svc
from .schemas import ImportAttendanceIn, ImportedAttendanceOut

# ---------- Baseline import ----------
@api_bp.get("/imported-attendance")
def imported_list():
    return ok([ImportedAttendanceOut.model_validate(b).dump() for b in svc.list_imported(repo())])

@api_bp.post("/imported-attendance")
def imported_create():
    parsed = parse_body(ImportAttendanceIn)
    res = svc.import_attendance(
        repo(), parsed.subject_id, parsed.import_date,
        parsed.total_lectures, parsed.attended_lectures, parsed.missed_lectures, parsed.cancelled_lectures,
        today=today_arg(),
    )
    return created({
        "importedAttendance": ImportedAttendanceOut.model_validate(res.baseline).dump(),
        "replacedBaseline": res.replaced_baseline,
        "deletedRecords": res.deleted_records,
        "deletedExtraClasses": res.deleted_extra_classes,
    })

# ---------- Archive ----------
@api_bp.get("/export")
def export_archive():
    data = svc.export_archive(repo())
    if request.args.get("download"):
        filename = f"attendance-data-{date.today().isoformat()}.json"
        return Response(
            json.dumps(data, indent=2, ensure_ascii=False),
            mimetype="application/json",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )
    return ok(data)

@api_bp.post("/import")
def import_archive():
    f = request.files.get("file")
    if f is not None:
        # uploaded file: UTF-8 with or without BOM
        try:
            payload = json.loads(f.read().decode("utf-8-sig"))
        except ValueError:
            raise InvalidInput("Archive is not valid JSON", code="BAD_ARCHIVE")
    else:
        payload = request.get_json(silent=True) or {}
    counts = svc.import_archive(repo(), payload)
    return ok({"imported": counts})

@api_bp.post("/clear")
def clear_all():
    svc.clear_all_data(repo())
    return ok({"ok": True})
