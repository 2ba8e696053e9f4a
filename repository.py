# repository.py
from __future__ import annotations
import logging
from contextlib import contextmanager
from typing import Any, Generic, Iterator, List, Optional, Type, TypeVar

from flask import current_app
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import delete, select

from engine.snapshot import Snapshot
from engine.types import TermData
from models import (
    AttendanceRecord, CombinedSlot, DaySlot, ExtraClass, ImportedAttendance,
    SpecialDate, Subject, TermSettings, TimeSlot,
)

log = logging.getLogger(__name__)

M = TypeVar("M")

EXTENSION_KEY = "attendance_repository"


class Table(Generic[M]):
    """CRUD over one model, always through the Flask-SQLAlchemy scoped session."""

    def __init__(self, db: SQLAlchemy, model: Type[M]):
        self.db = db
        self.model = model

    @property
    def session(self):
        return self.db.session

    def all(self, *criteria, order_by=None) -> List[M]:
        stmt = select(self.model)
        if criteria:
            stmt = stmt.where(*criteria)
        if order_by is not None:
            stmt = stmt.order_by(order_by)
        return list(self.session.scalars(stmt))

    def get(self, id: Any) -> Optional[M]:
        return self.session.get(self.model, id)

    def find(self, **filters) -> Optional[M]:
        return self.session.scalars(select(self.model).filter_by(**filters).limit(1)).first()

    def add(self, obj: M) -> M:
        self.session.add(obj)
        self.session.flush()
        return obj

    def add_all(self, objs: List[M]) -> None:
        self.session.add_all(objs)
        self.session.flush()

    def delete(self, obj: M) -> None:
        self.session.delete(obj)
        self.session.flush()

    def delete_where(self, *criteria) -> int:
        stmt = delete(self.model)
        if criteria:
            stmt = stmt.where(*criteria)
        res = self.session.execute(stmt.execution_options(synchronize_session="fetch"))
        return res.rowcount or 0


class Repository:
    """
    Storage collaborator of the attendance engine. Services receive it explicitly;
    the engine itself only ever sees the immutable Snapshot built here.
    """

    def __init__(self, db: SQLAlchemy):
        self.db = db
        self.subjects = Table(db, Subject)
        self.time_slots = Table(db, TimeSlot)
        self.day_slots = Table(db, DaySlot)
        self.combined_slots = Table(db, CombinedSlot)
        self.attendance_records = Table(db, AttendanceRecord)
        self.special_dates = Table(db, SpecialDate)
        self.extra_classes = Table(db, ExtraClass)
        self.term_settings = Table(db, TermSettings)
        self.imported_attendance = Table(db, ImportedAttendance)

    @property
    def tables(self) -> List[Table]:
        # children first: deleting in this order never trips the day_slots FK
        return [
            self.combined_slots, self.day_slots, self.attendance_records, self.special_dates,
            self.extra_classes, self.imported_attendance, self.term_settings,
            self.time_slots, self.subjects,
        ]

    # ---------- reads ----------
    def active_term(self) -> Optional[TermData]:
        row = self.db.session.scalars(
            select(TermSettings).where(TermSettings.is_active.is_(True)).order_by(TermSettings.start_date.desc()).limit(1)
        ).first()
        return row.to_data() if row else None

    def snapshot(self) -> Snapshot:
        return Snapshot(
            subjects=tuple(r.to_data() for r in self.subjects.all()),
            time_slots=tuple(r.to_data() for r in self.time_slots.all()),
            day_slots=tuple(r.to_data() for r in self.day_slots.all()),
            combined_slots=tuple(r.to_data() for r in self.combined_slots.all()),
            attendance_records=tuple(r.to_data() for r in self.attendance_records.all()),
            special_dates=tuple(r.to_data() for r in self.special_dates.all()),
            extra_classes=tuple(r.to_data() for r in self.extra_classes.all()),
            term=self.active_term(),
            baselines=tuple(r.to_data() for r in self.imported_attendance.all()),
        )

    # ---------- writes ----------
    @contextmanager
    def atomic(self) -> Iterator[Any]:
        """
        All-or-nothing unit of work. Commits on success; on any exception rolls
        the whole session back and re-raises. Nested calls join the outer unit.
        """
        session = self.db.session
        depth = session.info.get("atomic_depth", 0)
        session.info["atomic_depth"] = depth + 1
        try:
            yield session
            if depth == 0:
                session.commit()
        except Exception:
            if depth == 0:
                session.rollback()
                log.warning("transaction rolled back", extra={"event": "transaction_rollback"})
            raise
        finally:
            session.info["atomic_depth"] = depth

    def clear_all(self) -> None:
        with self.atomic():
            for table in self.tables:
                table.delete_where()


def init_repository(app, db: SQLAlchemy) -> Repository:
    repo = Repository(db)
    app.extensions[EXTENSION_KEY] = repo
    return repo


def get_repository() -> Repository:
    return current_app.extensions[EXTENSION_KEY]
