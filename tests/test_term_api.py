# tests/test_term_api.py
import pytest

from app import create_app
from extensions import db
from models import TermSettings, TimeSlot

API = "/api/v1"

@pytest.fixture()
def client():
    app = create_app("test")
    with app.app_context():
        db.create_all()
        yield app.test_client()

def _subject(client, name="Math"):
    return client.post(f"{API}/subjects", json={"name": name}).get_json()["id"]

def _term(client, start="2024-01-01", end="2024-01-31"):
    return client.put(f"{API}/term", json={"startDate": start, "endDate": end})


# ---------- term ----------
def test_term_unset_then_set(client):
    assert client.get(f"{API}/term").get_json() == {"term": None}
    rv = _term(client)
    assert rv.status_code == 200
    term = rv.get_json()["term"]
    assert term["startDate"] == "2024-01-01"
    assert term["endDate"] == "2024-01-31"
    assert term["isActive"] is True

def test_new_term_deactivates_previous(client):
    _term(client)
    _term(client, "2024-02-01", "2024-05-31")
    assert TermSettings.query.count() == 2
    assert TermSettings.query.filter_by(is_active=True).count() == 1
    assert client.get(f"{API}/term").get_json()["term"]["startDate"] == "2024-02-01"

def test_term_range_must_be_ordered(client):
    rv = _term(client, "2024-01-31", "2024-01-31")
    assert rv.status_code == 422
    assert rv.get_json()["code"] == "BAD_DATE_RANGE"

def test_in_term_query(client):
    rv = client.get(f"{API}/calendar/in-term?date=2024-01-10")
    assert rv.get_json()["inTerm"] is False
    _term(client)
    assert client.get(f"{API}/calendar/in-term?date=2024-01-10").get_json()["inTerm"] is True
    assert client.get(f"{API}/calendar/in-term?date=2024-02-01").get_json()["inTerm"] is False


# ---------- special dates ----------
def test_special_dates_crud(client):
    rv = client.post(f"{API}/special-dates", json={"date": "2024-01-08", "type": "holiday", "description": "Winter"})
    assert rv.status_code == 201
    sd = rv.get_json()
    assert sd["type"] == "holiday"

    rv = client.post(f"{API}/special-dates", json={"date": "2024-01-08", "type": "exam"})
    assert rv.status_code == 409
    assert rv.get_json()["code"] == "SPECIAL_DATE_EXISTS"

    client.post(f"{API}/special-dates", json={"date": "2024-02-08", "type": "exam"})
    listed = client.get(f"{API}/special-dates?from=2024-01-01&to=2024-01-31").get_json()
    assert [x["date"] for x in listed] == ["2024-01-08"]

    assert client.delete(f"{API}/special-dates/{sd['id']}").status_code == 204
    assert client.delete(f"{API}/special-dates/{sd['id']}").status_code == 404

def test_special_date_type_is_validated(client):
    rv = client.post(f"{API}/special-dates", json={"date": "2024-01-08", "type": "party"})
    assert rv.status_code == 422

def test_toggle_special_date(client):
    rv = client.post(f"{API}/special-dates/toggle", json={"date": "2024-01-08", "type": "holiday"})
    assert rv.get_json()["specialDate"]["date"] == "2024-01-08"
    rv = client.post(f"{API}/special-dates/toggle", json={"date": "2024-01-08", "type": "holiday"})
    assert rv.get_json() == {"specialDate": None}
    assert client.get(f"{API}/special-dates").get_json() == []


# ---------- extra classes ----------
def test_extra_class_with_own_time(client):
    sid = _subject(client)
    rv = client.post(f"{API}/extra-classes", json={
        "date": "2024-01-10", "subjectId": sid, "startTime": "15:00", "endTime": "16:30", "description": "Makeup",
    })
    assert rv.status_code == 201
    ec = rv.get_json()
    assert ec["timeSlotId"].startswith("extra-")

    listed = client.get(f"{API}/extra-classes?date=2024-01-10").get_json()
    assert len(listed) == 1
    assert (listed[0]["startTime"], listed[0]["endTime"]) == ("15:00", "16:30")
    assert listed[0]["description"] == "Makeup"

    # extra slots stay out of the weekly grid
    assert client.get(f"{API}/time-slots").get_json() == []

    assert client.delete(f"{API}/extra-classes/{ec['id']}").status_code == 204
    assert db.session.get(TimeSlot, ec["timeSlotId"]) is None

def test_extra_class_in_weekly_slot(client):
    sid = _subject(client)
    ts = client.post(f"{API}/time-slots", json={"startTime": "09:00", "endTime": "10:00"}).get_json()["id"]
    rv = client.post(f"{API}/extra-classes", json={"date": "2024-01-13", "subjectId": sid, "timeSlotId": ts})
    assert rv.status_code == 201
    client.delete(f"{API}/extra-classes/{rv.get_json()['id']}")
    # weekly slots are never removed with their extra classes
    assert db.session.get(TimeSlot, ts) is not None

def test_extra_class_validation(client):
    sid = _subject(client)
    rv = client.post(f"{API}/extra-classes", json={"date": "2024-01-10", "startTime": "15:00", "endTime": "16:00"})
    assert rv.get_json()["code"] == "MISSING_FIELD"
    rv = client.post(f"{API}/extra-classes", json={"date": "2024-01-10", "subjectId": "nope",
                                                    "startTime": "15:00", "endTime": "16:00"})
    assert rv.get_json()["code"] == "UNKNOWN_SUBJECT"
    rv = client.post(f"{API}/extra-classes", json={"date": "2024-01-10", "subjectId": sid})
    assert rv.status_code == 422
    rv = client.post(f"{API}/extra-classes", json={"date": "2024-01-10", "subjectId": sid, "startTime": "15:00"})
    assert rv.status_code == 422
    assert rv.get_json()["code"] == "VALIDATION_ERROR"
    rv = client.post(f"{API}/extra-classes", json={"date": "2024-01-10", "subjectId": sid,
                                                    "startTime": "16:00", "endTime": "15:00"})
    assert rv.get_json()["code"] == "BAD_TIME_RANGE"

def test_update_extra_class(client):
    math, phys = _subject(client), _subject(client, "Physics")
    ec = client.post(f"{API}/extra-classes", json={
        "date": "2024-01-10", "subjectId": math, "startTime": "15:00", "endTime": "16:00",
    }).get_json()
    rv = client.patch(f"{API}/extra-classes/{ec['id']}", json={
        "date": "2024-01-11", "subjectId": phys, "startTime": "17:00", "endTime": "18:00",
    })
    assert rv.status_code == 200
    out = rv.get_json()
    assert out["date"] == "2024-01-11"
    assert out["subjectId"] == phys
    # the extra slot is edited in place
    assert out["timeSlotId"] == ec["timeSlotId"]
    listed = client.get(f"{API}/extra-classes?date=2024-01-11").get_json()
    assert listed[0]["startTime"] == "17:00"

    ts = client.post(f"{API}/time-slots", json={"startTime": "09:00", "endTime": "10:00"}).get_json()["id"]
    client.patch(f"{API}/extra-classes/{ec['id']}", json={"timeSlotId": ts})
    # the minted slot is gone once nothing uses it
    assert db.session.get(TimeSlot, ec["timeSlotId"]) is None

def test_extra_class_cannot_share_an_occupied_weekly_slot(client):
    math, phys = _subject(client), _subject(client, "Physics")
    t1 = client.post(f"{API}/time-slots", json={"startTime": "09:00", "endTime": "10:00"}).get_json()["id"]
    client.put(f"{API}/day-slots/{t1}/Monday", json={"subjectId": math})

    # 2024-01-08 is a Monday: Math already has t1
    rv = client.post(f"{API}/extra-classes", json={"date": "2024-01-08", "subjectId": phys, "timeSlotId": t1})
    assert rv.status_code == 409
    assert rv.get_json()["code"] == "SLOT_OCCUPIED"

    # Tuesday is free, but only once
    rv = client.post(f"{API}/extra-classes", json={"date": "2024-01-09", "subjectId": phys, "timeSlotId": t1})
    assert rv.status_code == 201
    ec = rv.get_json()
    rv = client.post(f"{API}/extra-classes", json={"date": "2024-01-09", "subjectId": math, "timeSlotId": t1})
    assert rv.get_json()["code"] == "SLOT_OCCUPIED"

    # moving it onto the Monday is refused as well; editing it in place is not
    rv = client.patch(f"{API}/extra-classes/{ec['id']}", json={"date": "2024-01-15"})
    assert rv.status_code == 409
    rv = client.patch(f"{API}/extra-classes/{ec['id']}", json={"description": "Makeup"})
    assert rv.status_code == 200

    client.put(f"{API}/term", json={"startDate": "2024-01-01", "endDate": "2024-01-31"})
    client.post(f"{API}/attendance", json={"date": "2024-01-09", "timeSlotId": t1, "status": "missed",
                                          "originalSubjectId": phys})
    stats = client.get(f"{API}/stats?today=2024-01-09").get_json()
    phys_stats = next(s for s in stats["subjects"] if s["subjectId"] == phys)
    assert (phys_stats["totalLectures"], phys_stats["missedLectures"]) == (1, 1)
