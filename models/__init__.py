import datetime as dt
import uuid
from datetime import datetime, time, date

from sqlalchemy import (
    Enum, ForeignKey, UniqueConstraint, Index, Boolean, Date, DateTime, Time,
    Integer, String, Text, JSON
)
from sqlalchemy.orm import relationship, Mapped, mapped_column

from engine.types import (
    AttendanceStatus, SpecialDateType,
    SubjectData, TimeSlotData, DaySlotData, CombinedSlotData, AttendanceRecordData,
    SpecialDateData, ExtraClassData, TermData, BaselineData,
)
from extensions import db


def new_id() -> str:
    return uuid.uuid4().hex


def _enum(enum_cls):
    # store the lowercase value ("attended"), not the member name
    return Enum(enum_cls, values_callable=lambda e: [m.value for m in e], native_enum=False, length=20)


# ---------- Timetable template ----------
class Subject(db.Model):
    __tablename__ = "subjects"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    color: Mapped[str] = mapped_column(String(32), nullable=False, default="")

    def to_data(self) -> SubjectData:
        return SubjectData(id=self.id, name=self.name, color=self.color or "")

    def __repr__(self):
        return f"<Subject {self.name}>"


class TimeSlot(db.Model):
    __tablename__ = "time_slots"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)

    day_slots = relationship("DaySlot", back_populates="time_slot", cascade="all, delete-orphan")

    __table_args__ = (
        Index("ix_time_slots_start", "start_time"),
    )

    def to_data(self) -> TimeSlotData:
        return TimeSlotData(id=self.id, start_time=self.start_time, end_time=self.end_time)

    def __repr__(self):
        return f"<TimeSlot {self.start_time:%H:%M}-{self.end_time:%H:%M}>"


class DaySlot(db.Model):
    __tablename__ = "day_slots"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    time_slot_id: Mapped[str] = mapped_column(ForeignKey("time_slots.id", ondelete="CASCADE"), nullable=False)
    day: Mapped[str] = mapped_column(String(16), nullable=False)  # Monday..Sunday
    subject_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    time_slot = relationship("TimeSlot", back_populates="day_slots")

    __table_args__ = (
        UniqueConstraint("time_slot_id", "day", name="uq_day_slot_cell"),
        Index("ix_day_slots_day", "day"),
    )

    def to_data(self) -> DaySlotData:
        return DaySlotData(id=self.id, time_slot_id=self.time_slot_id, day=self.day, subject_id=self.subject_id or None)


class CombinedSlot(db.Model):
    __tablename__ = "combined_slots"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    day_slot_ids: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    subject_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    day: Mapped[str] = mapped_column(String(16), nullable=False)

    def to_data(self) -> CombinedSlotData:
        return CombinedSlotData(
            id=self.id, day_slot_ids=tuple(self.day_slot_ids or ()), subject_id=self.subject_id, day=self.day,
        )


# ---------- Attendance & exceptions ----------
class AttendanceRecord(db.Model):
    __tablename__ = "attendance_records"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    # no FK: extra-class slots and deleted slots keep their history
    time_slot_id: Mapped[str] = mapped_column(String(64), nullable=False)
    original_subject_id: Mapped[str | None] = mapped_column(String(64))
    actual_subject_id: Mapped[str | None] = mapped_column(String(64))
    status: Mapped[AttendanceStatus] = mapped_column(_enum(AttendanceStatus), nullable=False)
    is_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("date", "time_slot_id", name="uq_attendance_occurrence"),
    )

    def to_data(self) -> AttendanceRecordData:
        return AttendanceRecordData(
            id=self.id,
            date=self.date,
            time_slot_id=self.time_slot_id,
            status=AttendanceStatus(self.status),
            original_subject_id=self.original_subject_id or None,
            actual_subject_id=self.actual_subject_id or None,
            is_verified=bool(self.is_verified),
        )


class SpecialDate(db.Model):
    __tablename__ = "special_dates"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, unique=True, index=True)
    type: Mapped[SpecialDateType] = mapped_column(_enum(SpecialDateType), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)

    def to_data(self) -> SpecialDateData:
        return SpecialDateData(id=self.id, date=self.date, type=SpecialDateType(self.type), description=self.description)


class ExtraClass(db.Model):
    __tablename__ = "extra_classes"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    time_slot_id: Mapped[str] = mapped_column(String(64), nullable=False)
    subject_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text)

    def to_data(self) -> ExtraClassData:
        return ExtraClassData(
            id=self.id, date=self.date, time_slot_id=self.time_slot_id,
            subject_id=self.subject_id, description=self.description,
        )


class TermSettings(db.Model):
    __tablename__ = "term_settings"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)

    def to_data(self) -> TermData:
        return TermData(id=self.id, start_date=self.start_date, end_date=self.end_date, is_active=bool(self.is_active))


class ImportedAttendance(db.Model):
    __tablename__ = "imported_attendance"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    # no FK: a baseline outlives its subject
    subject_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    import_date: Mapped[date] = mapped_column(Date, nullable=False)
    total_lectures: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    attended_lectures: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    missed_lectures: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    cancelled_lectures: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def to_data(self) -> BaselineData:
        return BaselineData(
            id=self.id,
            subject_id=self.subject_id,
            import_date=self.import_date,
            total_lectures=self.total_lectures,
            attended_lectures=self.attended_lectures,
            missed_lectures=self.missed_lectures,
            cancelled_lectures=self.cancelled_lectures,
        )
