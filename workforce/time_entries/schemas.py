"""Time-entry Pydantic schemas."""

import datetime as dt
import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from workforce.common.constants import ApprovalStatus, TimeEntryType


class ClockRequest(BaseModel):
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    notes: Optional[str] = Field(None, max_length=500)


class CorrectionCreate(BaseModel):
    type: TimeEntryType
    timestamp: dt.datetime
    notes: Optional[str] = Field(None, max_length=500)


class TimeEntryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: uuid.UUID
    type: TimeEntryType
    timestamp: dt.datetime
    is_manual: bool
    correction_status: Optional[ApprovalStatus] = None
    approved_by: Optional[uuid.UUID] = None
    approved_at: Optional[dt.datetime] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    notes: Optional[str] = None


class TimesheetDay(BaseModel):
    date: dt.date
    total_hours: float
    overtime: float
    entries: list[TimeEntryOut] = []


class TimesheetSummary(BaseModel):
    total_hours: float
    total_overtime: float
    standard_hours: int
    working_days: int


class Timesheet(BaseModel):
    employee_id: uuid.UUID
    year: int
    month: int
    summary: TimesheetSummary
    days: list[TimesheetDay]
