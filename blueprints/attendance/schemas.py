from __future__ import annotations
import datetime as dt
from typing import Optional

from blueprints.core.schemas import ApiModel
from engine.types import AttendanceStatus

# ---------- Records ----------
class AttendanceIn(ApiModel):
    date: dt.date
    time_slot_id: str
    status: AttendanceStatus
    original_subject_id: Optional[str] = None
    actual_subject_id: Optional[str] = None
    is_verified: Optional[bool] = None

class AttendancePatch(ApiModel):
    status: Optional[AttendanceStatus] = None
    original_subject_id: Optional[str] = None
    actual_subject_id: Optional[str] = None
    is_verified: Optional[bool] = None

class AttendanceRecordOut(ApiModel):
    id: str
    date: dt.date
    time_slot_id: str
    original_subject_id: Optional[str] = None
    actual_subject_id: Optional[str] = None
    status: AttendanceStatus
    is_verified: bool = False

# ---------- Simulation ----------
class SimulateIn(ApiModel):
    subject_id: str
    target_percentage: float
