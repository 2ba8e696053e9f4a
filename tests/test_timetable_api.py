# tests/test_timetable_api.py
import pytest

from app import create_app
from extensions import db
from models import CombinedSlot, DaySlot

API = "/api/v1"

@pytest.fixture()
def client():
    app = create_app("test")
    with app.app_context():
        db.create_all()
        yield app.test_client()

def _subject(client, name="Math", color="#3b82f6"):
    rv = client.post(f"{API}/subjects", json={"name": name, "color": color})
    assert rv.status_code == 201, rv.get_json()
    return rv.get_json()["id"]

def _slot(client, start, end):
    rv = client.post(f"{API}/time-slots", json={"startTime": start, "endTime": end})
    assert rv.status_code == 201, rv.get_json()
    return rv.get_json()["id"]

def _assign(client, slot_id, day, subject_id):
    return client.put(f"{API}/day-slots/{slot_id}/{day}", json={"subjectId": subject_id})

def _combine(client, *cells):
    return client.post(f"{API}/combined-slots",
                       json={"cells": [{"timeSlotId": ts, "day": day} for ts, day in cells]})


# ---------- subjects ----------
def test_subject_crud(client):
    sid = _subject(client)
    rv = client.get(f"{API}/subjects/{sid}")
    assert rv.get_json() == {"id": sid, "name": "Math", "color": "#3b82f6"}

    rv = client.patch(f"{API}/subjects/{sid}", json={"name": "Mathematics"})
    assert rv.status_code == 200
    assert rv.get_json()["name"] == "Mathematics"
    assert rv.get_json()["color"] == "#3b82f6"

    _subject(client, "Algebra")
    names = [s["name"] for s in client.get(f"{API}/subjects").get_json()]
    assert names == ["Algebra", "Mathematics"]

def test_subject_requires_name(client):
    rv = client.post(f"{API}/subjects", json={"name": ""})
    assert rv.status_code == 422
    rv = client.post(f"{API}/subjects", json={"name": "   "})
    assert rv.status_code == 422
    assert rv.get_json()["code"] == "MISSING_FIELD"

def test_delete_subject_clears_cells_and_blocks_but_keeps_history(client):
    sid = _subject(client)
    other = _subject(client, "Physics")
    t1, t2 = _slot(client, "09:00", "10:00"), _slot(client, "10:00", "11:00")
    _assign(client, t1, "Monday", sid)
    _assign(client, t2, "Monday", sid)
    _assign(client, t1, "Tuesday", other)
    assert _combine(client, (t1, "Monday"), (t2, "Monday")).status_code == 201
    client.put(f"{API}/term", json={"startDate": "2024-01-01", "endDate": "2024-01-31"})
    # Tuesday's physics lecture was taught as math
    client.post(f"{API}/attendance", json={
        "date": "2024-01-09", "timeSlotId": t1, "status": "attended",
        "originalSubjectId": other, "actualSubjectId": sid,
    })

    plan = client.get(f"{API}/subjects/{sid}/deletion-plan").get_json()
    assert len(plan["daySlotIds"]) == 2
    assert len(plan["combinedSlotIds"]) == 1

    rv = client.delete(f"{API}/subjects/{sid}")
    assert rv.status_code == 200
    assert rv.get_json() == plan
    assert client.get(f"{API}/subjects/{sid}").status_code == 404
    assert CombinedSlot.query.count() == 0
    assert DaySlot.query.filter_by(subject_id=sid).count() == 0
    assert DaySlot.query.filter_by(subject_id=other).count() == 1

    # the substituted lecture stays in the statistics under the deleted id
    stats = client.get(f"{API}/stats?today=2024-01-09").get_json()
    by_id = {s["subjectId"]: s for s in stats["subjects"]}
    assert by_id[sid]["attendedLectures"] == 1
    assert by_id[sid]["subjectName"] is None
    assert by_id[other]["totalLectures"] == 1


# ---------- time slots ----------
def test_time_slot_creates_a_cell_per_weekday(client):
    ts = _slot(client, "09:00", "10:30")
    grid = client.get(f"{API}/timetable").get_json()
    assert grid["timeSlots"] == [{"id": ts, "startTime": "09:00", "endTime": "10:30"}]
    days = [c["day"] for c in grid["daySlots"]]
    assert days == ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
    assert all(c["subjectId"] is None for c in grid["daySlots"])

def test_time_slot_validation(client):
    rv = client.post(f"{API}/time-slots", json={"startTime": "10:00", "endTime": "10:00"})
    assert rv.status_code == 422
    assert rv.get_json()["code"] == "BAD_TIME_RANGE"

    _slot(client, "09:00", "10:00")
    rv = client.post(f"{API}/time-slots", json={"startTime": "09:30", "endTime": "10:30"})
    assert rv.status_code == 422
    assert rv.get_json()["code"] == "TIME_SLOT_OVERLAP"
    # touching is fine
    _slot(client, "10:00", "11:00")
    starts = [ts["startTime"] for ts in client.get(f"{API}/time-slots").get_json()]
    assert starts == ["09:00", "10:00"]

def test_delete_time_slot_removes_cells_and_blocks(client):
    sid = _subject(client)
    t1, t2 = _slot(client, "09:00", "10:00"), _slot(client, "10:00", "11:00")
    _assign(client, t1, "Monday", sid)
    _assign(client, t2, "Monday", sid)
    _combine(client, (t1, "Monday"), (t2, "Monday"))
    assert client.delete(f"{API}/time-slots/{t2}").status_code == 204
    assert DaySlot.query.filter_by(time_slot_id=t2).count() == 0
    assert CombinedSlot.query.count() == 0
    assert client.delete(f"{API}/time-slots/{t2}").status_code == 404


# ---------- day slots ----------
def test_assign_and_clear_cell(client):
    sid = _subject(client)
    ts = _slot(client, "09:00", "10:00")
    rv = _assign(client, ts, "Wednesday", sid)
    assert rv.status_code == 200
    assert rv.get_json()["subjectId"] == sid
    rv = _assign(client, ts, "Wednesday", None)
    assert rv.get_json()["subjectId"] is None

def test_assign_validation(client):
    ts = _slot(client, "09:00", "10:00")
    assert _assign(client, ts, "Funday", None).get_json()["code"] == "BAD_DAY"
    assert _assign(client, ts, "Monday", "missing").status_code == 404
    assert _assign(client, "missing", "Monday", None).status_code == 404

def test_reassigning_a_member_dissolves_the_block(client):
    math, phys = _subject(client), _subject(client, "Physics")
    t1, t2 = _slot(client, "09:00", "10:00"), _slot(client, "10:00", "11:00")
    _assign(client, t1, "Monday", math)
    _assign(client, t2, "Monday", math)
    _combine(client, (t1, "Monday"), (t2, "Monday"))
    # same subject again keeps the block
    _assign(client, t1, "Monday", math)
    assert CombinedSlot.query.count() == 1
    _assign(client, t2, "Monday", phys)
    assert CombinedSlot.query.count() == 0


# ---------- combined slots ----------
def test_combine_adjacent_slots(client):
    sid = _subject(client)
    t1, t2 = _slot(client, "09:00", "10:00"), _slot(client, "10:00", "11:00")
    _assign(client, t1, "Monday", sid)
    _assign(client, t2, "Monday", sid)
    rv = _combine(client, (t2, "Monday"), (t1, "Monday"))
    assert rv.status_code == 201
    js = rv.get_json()
    assert js["day"] == "Monday"
    assert js["subjectId"] == sid
    first = DaySlot.query.filter_by(time_slot_id=t1, day="Monday").one()
    assert js["daySlotIds"][0] == first.id

    grid = client.get(f"{API}/timetable").get_json()
    assert len(grid["combinedSlots"]) == 1

    assert client.delete(f"{API}/combined-slots/{js['id']}").status_code == 204
    assert CombinedSlot.query.count() == 0

@pytest.mark.parametrize("case,code", [
    ("single", "TOO_FEW_SLOTS"),
    ("days", "DIFFERENT_DAYS"),
    ("empty", "EMPTY_SLOT"),
    ("subjects", "DIFFERENT_SUBJECTS"),
    ("gap", "NOT_ADJACENT"),
])
def test_combine_rejections(client, case, code):
    math, phys = _subject(client), _subject(client, "Physics")
    t1, t2, t3 = _slot(client, "09:00", "10:00"), _slot(client, "10:00", "11:00"), _slot(client, "11:00", "12:00")
    for ts in (t1, t2, t3):
        _assign(client, ts, "Monday", math)
        _assign(client, ts, "Tuesday", math)
    if case == "empty":
        _assign(client, t2, "Monday", None)
    if case == "subjects":
        _assign(client, t2, "Monday", phys)
    cells = {
        "single": [(t1, "Monday")],
        "days": [(t1, "Monday"), (t2, "Tuesday")],
        "empty": [(t1, "Monday"), (t2, "Monday")],
        "subjects": [(t1, "Monday"), (t2, "Monday")],
        "gap": [(t1, "Monday"), (t3, "Monday")],
    }[case]
    rv = _combine(client, *cells)
    assert rv.status_code == 409
    assert rv.get_json()["code"] == code
    assert CombinedSlot.query.count() == 0

def test_combine_rejects_cells_already_in_a_block(client):
    sid = _subject(client)
    t1, t2, t3 = _slot(client, "09:00", "10:00"), _slot(client, "10:00", "11:00"), _slot(client, "11:00", "12:00")
    for ts in (t1, t2, t3):
        _assign(client, ts, "Monday", sid)
    assert _combine(client, (t1, "Monday"), (t2, "Monday")).status_code == 201
    rv = _combine(client, (t2, "Monday"), (t3, "Monday"))
    assert rv.status_code == 409
    assert rv.get_json()["code"] == "ALREADY_COMBINED"
    assert CombinedSlot.query.count() == 1

def test_combine_error_messages(client):
    sid = _subject(client)
    t1, t2 = _slot(client, "09:00", "10:00"), _slot(client, "10:00", "11:00")
    rv = _combine(client, (t1, "Monday"), (t2, "Monday"))
    assert rv.get_json()["error"] == "Cannot combine empty slots"
    _assign(client, t1, "Monday", sid)
    _assign(client, t2, "Monday", _subject(client, "Physics"))
    rv = _combine(client, (t1, "Monday"), (t2, "Monday"))
    assert rv.get_json()["error"] == "All slots must have the same subject to combine"
