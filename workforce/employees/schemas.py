"""Employee Pydantic schemas: request/response models."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

from workforce.common.constants import ContractType, EmploymentStatus


# ═════════════════════════════════════════════════════════════════════
# Brief / nested
# ═════════════════════════════════════════════════════════════════════


class DepartmentBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    code: Optional[str] = None


class LocationBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    city: Optional[str] = None


class EmployeeBrief(BaseModel):
    """Compact employee for embedding in other responses."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_number: str
    first_name: str
    last_name: str
    job_title: Optional[str] = None
    photo_url: Optional[str] = None


# ═════════════════════════════════════════════════════════════════════
# Employee
# ═════════════════════════════════════════════════════════════════════


class EmployeeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: Optional[uuid.UUID] = None
    employee_number: str
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    date_of_birth: Optional[date] = None
    address: Optional[str] = None
    emergency_contact_name: Optional[str] = None
    emergency_contact_phone: Optional[str] = None
    department_id: Optional[uuid.UUID] = None
    location_id: Optional[uuid.UUID] = None
    manager_id: Optional[uuid.UUID] = None
    job_title: Optional[str] = None
    employment_status: EmploymentStatus
    contract_type: ContractType
    hire_date: Optional[date] = None
    termination_date: Optional[date] = None
    weekly_hours: Decimal
    photo_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    department: Optional[DepartmentBrief] = None
    location: Optional[LocationBrief] = None


class EmployeeSelfUpdate(BaseModel):
    """Fields an employee may change on their own record."""

    phone: Optional[str] = Field(None, max_length=30)
    address: Optional[str] = None
    emergency_contact_name: Optional[str] = Field(None, max_length=200)
    emergency_contact_phone: Optional[str] = Field(None, max_length=30)


class EmployeeUpdate(EmployeeSelfUpdate):
    """Full update used by HR / managers."""

    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    date_of_birth: Optional[date] = None
    department_id: Optional[uuid.UUID] = None
    location_id: Optional[uuid.UUID] = None
    manager_id: Optional[uuid.UUID] = None
    job_title: Optional[str] = Field(None, max_length=200)
    employment_status: Optional[EmploymentStatus] = None
    contract_type: Optional[ContractType] = None
    hire_date: Optional[date] = None
    termination_date: Optional[date] = None
    weekly_hours: Optional[Decimal] = Field(None, ge=0, le=80)

    @model_validator(mode="after")
    def termination_after_hire(self) -> "EmployeeUpdate":
        if self.hire_date and self.termination_date and self.termination_date < self.hire_date:
            raise ValueError("termination_date cannot be before hire_date")
        return self


SELF_EDITABLE_FIELDS = frozenset(EmployeeSelfUpdate.model_fields)


# ═════════════════════════════════════════════════════════════════════
# Org chart / timeline
# ═════════════════════════════════════════════════════════════════════


class OrgChartNode(BaseModel):
    id: uuid.UUID
    employee_number: str
    name: str
    job_title: Optional[str] = None
    photo_url: Optional[str] = None
    department: Optional[str] = None
    reports: list[OrgChartNode] = Field(default_factory=list)


class TimelineEntry(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    action: str
    object_type: str
    actor_id: Optional[uuid.UUID] = None
    before: Optional[dict] = None
    after: Optional[dict] = None
    created_at: datetime
