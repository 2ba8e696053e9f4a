"""
Idempotent demo seed.
Usage:
  python seed.py --reset   # drop and recreate the schema, then seed the demo timetable
  python seed.py           # seed only when the database has no subjects yet
"""
from datetime import date, time, timedelta
import argparse

from app import create_app
from extensions import db
from repository import Repository, get_repository
from blueprints.term import services as term_svc
from blueprints.timetable import services as timetable_svc

DEMO_SUBJECTS = [
    ("Mathematics", "#3b82f6"),
    ("Physics", "#ef4444"),
    ("Chemistry", "#10b981"),
    ("Literature", "#f59e0b"),
]

DEMO_SLOTS = [
    (time(9, 0), time(10, 0)),
    (time(10, 0), time(11, 0)),
    (time(11, 15), time(12, 15)),
    (time(13, 0), time(14, 0)),
]

# (slot index, weekday, subject index)
DEMO_GRID = [
    (0, "Monday", 0), (1, "Monday", 0), (2, "Monday", 1),
    (0, "Tuesday", 2), (3, "Tuesday", 3),
    (1, "Wednesday", 1), (2, "Wednesday", 0),
    (0, "Thursday", 3), (1, "Thursday", 2),
    (2, "Friday", 0), (3, "Friday", 1),
]


def seed_demo(repo: Repository, today: date | None = None) -> bool:
    """Demo timetable with a current term. Returns False when data already exists."""
    if repo.subjects.all():
        return False
    today = today or date.today()

    subjects = [timetable_svc.create_subject(repo, name, color) for name, color in DEMO_SUBJECTS]
    slots = [timetable_svc.add_time_slot(repo, start, end) for start, end in DEMO_SLOTS]
    for slot_idx, day, subj_idx in DEMO_GRID:
        timetable_svc.assign_subject(repo, slots[slot_idx].id, day, subjects[subj_idx].id)
    # Monday double period of Mathematics counts as one lecture
    timetable_svc.combine_slots(repo, [(slots[0].id, "Monday"), (slots[1].id, "Monday")])

    term_svc.set_term_settings(repo, today - timedelta(days=60), today + timedelta(days=60))
    term_svc.add_special_date(repo, today - timedelta(days=14), "holiday", "Demo holiday")
    return True


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--reset", action="store_true", help="drop + create + demo seed")
    args = parser.parse_args()

    app = create_app()
    with app.app_context():
        if args.reset:
            db.drop_all()
        db.create_all()
        created = seed_demo(get_repository())
        print("[seed] demo data created" if created else "[seed] database already has data")

if __name__ == "__main__":
    main()
