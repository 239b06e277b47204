"""Break Pydantic schemas."""

import datetime as dt
import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from workforce.common.constants import BreakCategory, BreakStatus
from workforce.employees.schemas import EmployeeBrief


class BreakStart(BaseModel):
    category: BreakCategory = BreakCategory.PERSONAL
    notes: Optional[str] = Field(None, max_length=500)


class BreakOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: uuid.UUID
    category: BreakCategory
    start_time: dt.datetime
    end_time: Optional[dt.datetime] = None
    duration_minutes: Optional[int] = None
    status: BreakStatus
    exceeded_at: Optional[dt.datetime] = None
    notes: Optional[str] = None
    employee: Optional[EmployeeBrief] = None


class BreakEndResponse(BaseModel):
    break_: BreakOut = Field(..., alias="break")
    exceeded: bool
    duration_minutes: int

    model_config = ConfigDict(populate_by_name=True)


class BreakPolicyIn(BaseModel):
    name: str = Field("Default", min_length=1, max_length=100)
    max_breaks_per_day: int = Field(5, ge=1, le=50)
    max_minutes_per_break: int = Field(30, ge=1, le=480)
    max_total_minutes: int = Field(45, ge=1, le=1440)
    alert_on_exceed: bool = True


class BreakPolicyOut(BreakPolicyIn):
    model_config = ConfigDict(from_attributes=True)

    id: Optional[uuid.UUID] = None


# ── Summary / limits ────────────────────────────────────────────────

class CategorySummary(BaseModel):
    category: BreakCategory
    count: int
    total_minutes: int
    average_minutes: float
    max_minutes: int


class BreakSummary(BaseModel):
    employee_id: uuid.UUID
    date_from: Optional[dt.date] = None
    date_to: Optional[dt.date] = None
    total_breaks: int
    total_minutes: int
    exceeded_count: int
    by_category: list[CategorySummary]


class BreakUsage(BaseModel):
    breaks_taken: int
    breaks_remaining: int
    total_minutes_used: int
    total_minutes_remaining: int
    exceeded_count: int
    has_active_break: bool
    active_break_duration: int


class BreakLimitFlags(BaseModel):
    breaks_exceeded: bool
    total_time_exceeded: bool
    current_break_exceeded: bool


class BreakLimits(BaseModel):
    employee_id: uuid.UUID
    date: dt.date
    policy: BreakPolicyOut
    usage: BreakUsage
    limits: BreakLimitFlags
