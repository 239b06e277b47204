"""Leave Pydantic schemas: requests, approvals, balances, policies, calendar."""

import datetime as dt
import uuid
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from workforce.common.constants import (
    ApprovalStatus,
    ContractType,
    LeaveStatus,
    LeaveType,
    UserRole,
)
from workforce.employees.schemas import EmployeeBrief


# ═════════════════════════════════════════════════════════════════════
# Requests
# ═════════════════════════════════════════════════════════════════════


class LeaveRequestCreate(BaseModel):
    leave_type: LeaveType
    start_date: dt.date
    end_date: dt.date
    reason: Optional[str] = Field(None, max_length=2000)
    attachment_url: Optional[str] = None

    @model_validator(mode="after")
    def _check_range(self) -> "LeaveRequestCreate":
        if self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        return self


class LeaveDecision(BaseModel):
    comment: Optional[str] = Field(None, max_length=2000)


class ApprovalOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    step: int
    approver_role: UserRole
    approver_id: Optional[uuid.UUID] = None
    status: ApprovalStatus
    comment: Optional[str] = None
    decided_at: Optional[dt.datetime] = None
    sla_hours: int


class LeaveRequestOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: uuid.UUID
    leave_type: LeaveType
    start_date: dt.date
    end_date: dt.date
    days: Decimal
    reason: Optional[str] = None
    attachment_url: Optional[str] = None
    status: LeaveStatus
    created_at: Optional[dt.datetime] = None
    employee: Optional[EmployeeBrief] = None
    approvals: list[ApprovalOut] = []


class LeaveCreateResponse(BaseModel):
    leave_request: LeaveRequestOut
    warnings: list[str] = []
    conflicting_shift_ids: list[uuid.UUID] = []


# ═════════════════════════════════════════════════════════════════════
# Balances / policies
# ═════════════════════════════════════════════════════════════════════


class LeaveBalanceOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: uuid.UUID
    leave_type: LeaveType
    year: int
    total_days: Decimal
    carried_over: Decimal
    used_days: Decimal
    pending_days: Decimal
    available_days: Decimal


class LeavePolicyIn(BaseModel):
    leave_type: LeaveType
    contract_type: Optional[ContractType] = None
    days_per_year: Decimal = Field(..., ge=0, le=366)
    max_carry_over: Decimal = Field(Decimal("0"), ge=0, le=366)
    requires_approval: bool = True
    min_notice_days: int = Field(0, ge=0, le=365)
    is_active: bool = True


class LeavePolicyOut(LeavePolicyIn):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID


# ═════════════════════════════════════════════════════════════════════
# Calendar
# ═════════════════════════════════════════════════════════════════════


class CalendarEntry(BaseModel):
    employee_id: uuid.UUID
    employee_name: str
    department: Optional[str] = None
    leave_type: LeaveType
    status: LeaveStatus
    leave_request_id: uuid.UUID


class AbsenceCalendar(BaseModel):
    date_from: dt.date
    date_to: dt.date
    total_absences: int
    calendar: dict[str, list[CalendarEntry]]
