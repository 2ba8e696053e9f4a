# tests/test_attendance_api.py
import pytest

from app import create_app
from extensions import db
from models import AttendanceRecord

API = "/api/v1"

@pytest.fixture()
def client():
    app = create_app("test")
    with app.app_context():
        db.create_all()
        yield app.test_client()

@pytest.fixture()
def timetable(client):
    """Math on Mondays 09:00-10:00, Physics on Mondays 10:00-11:00, term = January 2024."""
    math = client.post(f"{API}/subjects", json={"name": "Math"}).get_json()["id"]
    phys = client.post(f"{API}/subjects", json={"name": "Physics"}).get_json()["id"]
    t1 = client.post(f"{API}/time-slots", json={"startTime": "09:00", "endTime": "10:00"}).get_json()["id"]
    t2 = client.post(f"{API}/time-slots", json={"startTime": "10:00", "endTime": "11:00"}).get_json()["id"]
    client.put(f"{API}/day-slots/{t1}/Monday", json={"subjectId": math})
    client.put(f"{API}/day-slots/{t2}/Monday", json={"subjectId": phys})
    client.put(f"{API}/term", json={"startDate": "2024-01-01", "endDate": "2024-01-31"})
    return {"math": math, "phys": phys, "t1": t1, "t2": t2}

def _mark(client, d, slot, status, subject, actual=None):
    body = {"date": d, "timeSlotId": slot, "status": status, "originalSubjectId": subject}
    if actual:
        body["actualSubjectId"] = actual
    return client.post(f"{API}/attendance", json=body)

def _stats(client, query="today=2024-01-31"):
    rv = client.get(f"{API}/stats?{query}")
    assert rv.status_code == 200, rv.get_json()
    js = rv.get_json()
    return js, {s["subjectId"]: s for s in js["subjects"]}


# ---------- records ----------
def test_mark_attendance_is_an_upsert(client, timetable):
    first = _mark(client, "2024-01-08", timetable["t1"], "missed", timetable["math"]).get_json()
    second = _mark(client, "2024-01-08", timetable["t1"], "attended", timetable["math"]).get_json()
    assert first["id"] == second["id"]
    assert second["status"] == "attended"
    assert second["isVerified"] is False
    listed = client.get(f"{API}/attendance?date=2024-01-08").get_json()
    assert [r["status"] for r in listed] == ["attended"]

def test_substitution_is_verified_by_default(client, timetable):
    rec = _mark(client, "2024-01-08", timetable["t1"], "attended", timetable["math"], timetable["phys"]).get_json()
    assert rec["actualSubjectId"] == timetable["phys"]
    assert rec["isVerified"] is True

def test_patch_attendance(client, timetable):
    rec = _mark(client, "2024-01-08", timetable["t1"], "attended", timetable["math"]).get_json()
    rv = client.patch(f"{API}/attendance/{rec['id']}", json={"status": "cancelled", "actualSubjectId": timetable["phys"]})
    assert rv.status_code == 200
    out = rv.get_json()
    assert out["status"] == "cancelled"
    assert out["isVerified"] is True
    assert client.patch(f"{API}/attendance/missing", json={"status": "missed"}).status_code == 404

def test_mark_attendance_validation(client, timetable):
    rv = _mark(client, "2024-01-08", timetable["t1"], "late", timetable["math"])
    assert rv.status_code == 422
    rv = _mark(client, "2024-01-08", "missing", "attended", timetable["math"])
    assert rv.status_code == 404

def test_locked_dates_reject_marks(client, timetable):
    rv = client.post(f"{API}/imported-attendance?today=2024-01-31", json={
        "subjectId": timetable["math"], "importDate": "2024-01-15",
        "totalLectures": 3, "attendedLectures": 2, "missedLectures": 1, "cancelledLectures": 0,
    })
    assert rv.status_code == 201
    rv = _mark(client, "2024-01-08", timetable["t1"], "attended", timetable["math"])
    assert rv.status_code == 409
    assert rv.get_json()["code"] == "DATE_LOCKED"
    assert _mark(client, "2024-01-22", timetable["t1"], "attended", timetable["math"]).status_code == 200
    # other subjects on the same date are unaffected
    assert _mark(client, "2024-01-08", timetable["t2"], "attended", timetable["phys"]).status_code == 200

    locked = client.get(f"{API}/calendar/locked?date=2024-01-15&subjectId={timetable['math']}").get_json()
    assert locked["locked"] is True
    unlocked = client.get(f"{API}/calendar/locked?date=2024-01-16&subjectId={timetable['math']}").get_json()
    assert unlocked["locked"] is False
    assert client.get(f"{API}/calendar/locked?date=2024-01-16").status_code == 422

def test_patch_cannot_move_a_lecture_onto_a_locked_subject(client, timetable):
    rec = _mark(client, "2024-01-08", timetable["t1"], "attended", timetable["math"]).get_json()
    client.post(f"{API}/imported-attendance?today=2024-01-31", json={
        "subjectId": timetable["phys"], "importDate": "2024-01-15",
        "totalLectures": 3, "attendedLectures": 2, "missedLectures": 1, "cancelledLectures": 0,
    })
    rv = client.patch(f"{API}/attendance/{rec['id']}", json={"actualSubjectId": timetable["phys"]})
    assert rv.status_code == 409
    assert rv.get_json()["code"] == "DATE_LOCKED"
    assert db.session.get(AttendanceRecord, rec["id"]).actual_subject_id is None
    # the same move after the import date is fine
    later = _mark(client, "2024-01-22", timetable["t1"], "attended", timetable["math"]).get_json()
    rv = client.patch(f"{API}/attendance/{later['id']}", json={"actualSubjectId": timetable["phys"]})
    assert rv.status_code == 200


# ---------- default records ----------
def test_default_records_are_idempotent(client, timetable):
    rv = client.post(f"{API}/attendance/defaults", json={"date": "2024-01-08"})
    assert rv.status_code == 201
    created = rv.get_json()["created"]
    assert len(created) == 2
    assert all(r["status"] == "attended" for r in created)
    assert all(r["originalSubjectId"] == r["actualSubjectId"] for r in created)

    again = client.post(f"{API}/attendance/defaults", json={"date": "2024-01-08"})
    assert again.status_code == 200
    assert again.get_json()["created"] == []
    assert AttendanceRecord.query.count() == 2

def test_default_records_skip_marked_and_off_days(client, timetable):
    _mark(client, "2024-01-08", timetable["t1"], "missed", timetable["math"])
    created = client.post(f"{API}/attendance/defaults", json={"date": "2024-01-08"}).get_json()["created"]
    assert [r["timeSlotId"] for r in created] == [timetable["t2"]]
    # Tuesday has no lectures; February is outside the term
    assert client.post(f"{API}/attendance/defaults", json={"date": "2024-01-09"}).get_json()["created"] == []
    assert client.post(f"{API}/attendance/defaults", json={"date": "2024-02-05"}).get_json()["created"] == []
    missed = AttendanceRecord.query.filter_by(time_slot_id=timetable["t1"]).one()
    assert missed.status == "missed"


# ---------- scheduled view ----------
def test_schedule_for_date(client, timetable):
    _mark(client, "2024-01-08", timetable["t1"], "missed", timetable["math"])
    day = client.get(f"{API}/schedule?date=2024-01-08").get_json()
    assert day["weekday"] == "Monday"
    assert day["inTerm"] is True
    assert day["specialDate"] is None
    occs = day["occurrences"]
    assert [o["subject"]["name"] for o in occs] == ["Math", "Physics"]
    assert occs[0]["status"] == "missed"
    assert occs[1]["status"] is None
    assert occs[0]["startTime"] == "09:00"

def test_schedule_shows_combined_block_once(client, timetable):
    client.put(f"{API}/day-slots/{timetable['t2']}/Monday", json={"subjectId": timetable["math"]})
    client.post(f"{API}/combined-slots", json={"cells": [
        {"timeSlotId": timetable["t1"], "day": "Monday"}, {"timeSlotId": timetable["t2"], "day": "Monday"},
    ]})
    occs = client.get(f"{API}/schedule?date=2024-01-08").get_json()["occurrences"]
    assert len(occs) == 1
    assert occs[0]["isCombined"] is True
    assert (occs[0]["startTime"], occs[0]["endTime"]) == ("09:00", "11:00")
    assert occs[0]["combinedMemberTimeSlotIds"] == [timetable["t1"], timetable["t2"]]

def test_schedule_on_holiday_and_extra_class(client, timetable):
    client.post(f"{API}/special-dates", json={"date": "2024-01-08", "type": "holiday"})
    day = client.get(f"{API}/schedule?date=2024-01-08").get_json()
    assert day["specialDate"]["type"] == "holiday"
    assert day["occurrences"] == []

    client.post(f"{API}/extra-classes", json={
        "date": "2024-01-10", "subjectId": timetable["phys"], "startTime": "15:00", "endTime": "16:00",
    })
    occs = client.get(f"{API}/schedule?date=2024-01-10").get_json()["occurrences"]
    assert len(occs) == 1
    assert occs[0]["isExtra"] is True
    assert occs[0]["status"] == "attended"


# ---------- stats ----------
def test_stats_without_term(client):
    rv = client.get(f"{API}/stats?today=2024-01-31")
    assert rv.status_code == 409
    assert rv.get_json()["code"] == "TERM_NOT_CONFIGURED"

def test_stats_for_the_month(client, timetable):
    _mark(client, "2024-01-01", timetable["t1"], "attended", timetable["math"])
    _mark(client, "2024-01-08", timetable["t1"], "missed", timetable["math"])
    _mark(client, "2024-01-15", timetable["t1"], "cancelled", timetable["math"])
    js, by_id = _stats(client)
    assert (js["from"], js["to"]) == ("2024-01-01", "2024-01-31")
    math = by_id[timetable["math"]]
    assert math["subjectName"] == "Math"
    assert (math["totalLectures"], math["attendedLectures"], math["missedLectures"],
            math["cancelledLectures"], math["percentage"]) == (4, 1, 1, 1, 25)
    assert by_id[timetable["phys"]]["totalLectures"] == 5
    assert js["overall"]["totalLectures"] == 9

def test_stats_today_bounds_the_default_range(client, timetable):
    js, by_id = _stats(client, "today=2024-01-10")
    assert js["to"] == "2024-01-10"
    assert by_id[timetable["math"]]["totalLectures"] == 2

def test_stats_filters(client, timetable):
    client.put(f"{API}/day-slots/{timetable['t2']}/Monday", json={"subjectId": None})
    js, by_id = _stats(client)
    assert set(by_id) == {timetable["math"]}
    js, by_id = _stats(client, "today=2024-01-31&includeEmpty=1")
    assert set(by_id) == {timetable["math"], timetable["phys"]}
    js, by_id = _stats(client, f"today=2024-01-31&subjectId={timetable['math']}&from=2024-01-08&to=2024-01-15")
    assert by_id[timetable["math"]]["totalLectures"] == 2

    rv = client.get(f"{API}/stats?today=2024-01-31&from=2024-01-20&to=2024-01-10")
    assert rv.status_code == 422
    assert rv.get_json()["code"] == "BAD_RANGE"

def test_stats_with_holiday_and_import(client, timetable):
    client.post(f"{API}/special-dates", json={"date": "2024-01-29", "type": "exam"})
    client.post(f"{API}/imported-attendance?today=2024-01-31", json={
        "subjectId": timetable["math"], "importDate": "2024-01-15",
        "totalLectures": 3, "attendedLectures": 2, "missedLectures": 1, "cancelledLectures": 0,
    })
    _, by_id = _stats(client)
    math = by_id[timetable["math"]]
    # baseline + the 22nd (29th is an exam day)
    assert (math["totalLectures"], math["attendedLectures"], math["missedLectures"]) == (4, 2, 1)
    assert by_id[timetable["phys"]]["totalLectures"] == 4


# ---------- simulation ----------
def test_simulate_target(client, timetable):
    for d in ("2024-01-01", "2024-01-08", "2024-01-15"):
        _mark(client, d, timetable["t1"], "attended", timetable["math"])
    rv = client.post(f"{API}/simulate?today=2024-01-22",
                     json={"subjectId": timetable["math"], "targetPercentage": 80})
    assert rv.status_code == 200
    js = rv.get_json()
    assert js["subjectId"] == timetable["math"]
    assert js["currentStats"]["totalLectures"] == 4
    assert js["futureLectures"] == 2
    assert js["lecturesToAttend"] == 2
    assert js["isAchievable"] is True
    assert js["targetPercentage"] == 80.0

def test_simulate_errors(client, timetable):
    rv = client.post(f"{API}/simulate?today=2024-01-22", json={"subjectId": "missing", "targetPercentage": 80})
    assert rv.status_code == 404
    rv = client.post(f"{API}/simulate?today=2024-01-22",
                     json={"subjectId": timetable["math"], "targetPercentage": 120})
    assert rv.status_code == 422
    assert rv.get_json()["code"] == "BAD_TARGET"
    rv = client.post(f"{API}/simulate", json={"subjectId": timetable["math"]})
    assert rv.status_code == 422

def test_simulate_without_term(client):
    sid = client.post(f"{API}/subjects", json={"name": "Math"}).get_json()["id"]
    rv = client.post(f"{API}/simulate?today=2024-01-22", json={"subjectId": sid, "targetPercentage": 75})
    assert rv.status_code == 409
    assert rv.get_json()["code"] == "TERM_NOT_CONFIGURED"

def test_simulation_overview(client, timetable):
    rows = client.get(f"{API}/simulation?today=2024-01-22").get_json()
    assert [r["subjectName"] for r in rows] == ["Math", "Physics"]
    math = rows[0]
    assert math["futureLectures"] == 2
    assert math["currentStats"]["totalLectures"] == 4
    # nothing marked yet: 0 of 6 at worst, 2 of 6 at best
    assert (math["maxPossiblePct"], math["minPossiblePct"]) == (33, 0)
