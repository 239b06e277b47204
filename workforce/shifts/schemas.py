"""Scheduling Pydantic schemas: shifts, swaps, templates."""

import datetime as dt
import re
import uuid
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from workforce.common.constants import ApprovalStatus, ShiftStatus, ShiftType
from workforce.common.dates import as_utc
from workforce.employees.schemas import EmployeeBrief, LocationBrief

_HHMM = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def _check_hhmm(value: Optional[str]) -> Optional[str]:
    if value is not None and not _HHMM.match(value):
        raise ValueError("must be in HH:mm format")
    return value


# ═════════════════════════════════════════════════════════════════════
# Templates
# ═════════════════════════════════════════════════════════════════════


class ShiftTemplateCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    shift_type: ShiftType
    start_time: str
    end_time: str
    break_minutes: int = Field(60, ge=0, le=480)
    color: str = Field("#3B82F6", pattern=r"^#[0-9A-Fa-f]{6}$")

    _hhmm = field_validator("start_time", "end_time")(_check_hhmm)


class ShiftTemplateUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    shift_type: Optional[ShiftType] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    break_minutes: Optional[int] = Field(None, ge=0, le=480)
    color: Optional[str] = Field(None, pattern=r"^#[0-9A-Fa-f]{6}$")
    is_active: Optional[bool] = None

    _hhmm = field_validator("start_time", "end_time")(_check_hhmm)


class ShiftTemplateOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    shift_type: ShiftType
    start_time: str
    end_time: str
    break_minutes: int
    color: str
    is_active: bool


class TemplateBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    shift_type: ShiftType
    color: str


# ═════════════════════════════════════════════════════════════════════
# Shifts
# ═════════════════════════════════════════════════════════════════════


class ShiftCreate(BaseModel):
    employee_id: Optional[uuid.UUID] = None
    template_id: Optional[uuid.UUID] = None
    location_id: Optional[uuid.UUID] = None
    date: dt.date
    start_time: dt.datetime
    end_time: dt.datetime
    is_open_shift: Optional[bool] = None
    notes: Optional[str] = Field(None, max_length=2000)

    @model_validator(mode="after")
    def _end_after_start(self) -> "ShiftCreate":
        if as_utc(self.end_time) <= as_utc(self.start_time):
            raise ValueError("end_time must be after start_time")
        return self


class ShiftUpdate(BaseModel):
    employee_id: Optional[uuid.UUID] = None
    template_id: Optional[uuid.UUID] = None
    location_id: Optional[uuid.UUID] = None
    date: Optional[dt.date] = None
    start_time: Optional[dt.datetime] = None
    end_time: Optional[dt.datetime] = None
    status: Optional[ShiftStatus] = None
    is_open_shift: Optional[bool] = None
    notes: Optional[str] = Field(None, max_length=2000)


class ShiftOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: Optional[uuid.UUID] = None
    template_id: Optional[uuid.UUID] = None
    location_id: Optional[uuid.UUID] = None
    date: dt.date
    start_time: dt.datetime
    end_time: dt.datetime
    status: ShiftStatus
    is_open_shift: bool
    notes: Optional[str] = None
    employee: Optional[EmployeeBrief] = None
    template: Optional[TemplateBrief] = None
    location: Optional[LocationBrief] = None
    created_at: Optional[dt.datetime] = None


# ═════════════════════════════════════════════════════════════════════
# Swaps
# ═════════════════════════════════════════════════════════════════════


class SwapCreate(BaseModel):
    original_shift_id: uuid.UUID
    target_shift_id: Optional[uuid.UUID] = None
    target_employee_id: Optional[uuid.UUID] = None
    reason: Optional[str] = Field(None, max_length=1000)


class SwapResolve(BaseModel):
    decision: Literal["APPROVED", "REJECTED"]


class SwapOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    original_shift_id: uuid.UUID
    target_shift_id: Optional[uuid.UUID] = None
    requester_id: uuid.UUID
    target_employee_id: Optional[uuid.UUID] = None
    reason: Optional[str] = None
    status: ApprovalStatus
    approver_id: Optional[uuid.UUID] = None
    approved_at: Optional[dt.datetime] = None
    created_at: Optional[dt.datetime] = None
