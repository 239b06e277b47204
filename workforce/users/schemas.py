"""User-management schemas."""

import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from workforce.common.constants import ContractType, UserRole, UserStatus
from workforce.employees.schemas import EmployeeBrief


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)
    role: UserRole = UserRole.EMPLOYEE
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    phone: Optional[str] = Field(None, max_length=30)
    job_title: Optional[str] = Field(None, max_length=200)
    department_id: Optional[uuid.UUID] = None
    location_id: Optional[uuid.UUID] = None
    manager_id: Optional[uuid.UUID] = None
    contract_type: ContractType = ContractType.FULL_TIME
    hire_date: Optional[date] = None


class UserUpdate(BaseModel):
    email: Optional[EmailStr] = None
    role: Optional[UserRole] = None
    status: Optional[UserStatus] = None


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: str
    role: UserRole
    status: UserStatus
    must_change_password: bool
    failed_login_attempts: int
    locked_until: Optional[datetime] = None
    last_login_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    employee: Optional[EmployeeBrief] = None


class SessionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: datetime
    expires_at: datetime


class LicenseStatus(BaseModel):
    max_users: int
    active_users: int
    remaining: int
    max_admins: int
    active_admins: int
    max_super_admins: int
    active_super_admins: int
