from __future__ import annotations
import datetime as dt
from typing import Optional

from pydantic import Field, model_validator

from blueprints.core.schemas import ApiModel, HHMM
from engine.types import SpecialDateType

# ---------- Term ----------
class TermIn(ApiModel):
    start_date: dt.date
    end_date: dt.date

class TermOut(ApiModel):
    id: str
    start_date: dt.date
    end_date: dt.date
    is_active: bool

# ---------- Special dates ----------
class SpecialDateIn(ApiModel):
    date: dt.date
    type: SpecialDateType
    description: Optional[str] = Field(None, max_length=500)

class SpecialDateOut(ApiModel):
    id: str
    date: dt.date
    type: SpecialDateType
    description: Optional[str] = None

# ---------- Extra classes ----------
class ExtraClassIn(ApiModel):
    date: dt.date
    subject_id: Optional[str] = None
    time_slot_id: Optional[str] = None
    start_time: Optional[dt.time] = None
    end_time: Optional[dt.time] = None
    description: Optional[str] = Field(None, max_length=500)

    @model_validator(mode="after")
    def check_times(self):
        if (self.start_time is None) != (self.end_time is None):
            raise ValueError("start_time and end_time must be given together")
        return self

class ExtraClassPatch(ApiModel):
    date: Optional[dt.date] = None
    subject_id: Optional[str] = None
    time_slot_id: Optional[str] = None
    start_time: Optional[dt.time] = None
    end_time: Optional[dt.time] = None
    description: Optional[str] = Field(None, max_length=500)

    @model_validator(mode="after")
    def check_times(self):
        if (self.start_time is None) != (self.end_time is None):
            raise ValueError("start_time and end_time must be given together")
        return self

class ExtraClassOut(ApiModel):
    id: str
    date: dt.date
    time_slot_id: str
    subject_id: str
    description: Optional[str] = None

class ExtraClassDetailOut(ExtraClassOut):
    start_time: Optional[HHMM] = None
    end_time: Optional[HHMM] = None
