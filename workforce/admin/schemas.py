"""Admin Pydantic schemas: reference data, system settings, audit log."""

import uuid
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


# ═══════════════════════════════════════════════════════════════════
# DEPARTMENTS / LOCATIONS
# ═══════════════════════════════════════════════════════════════════


class DepartmentCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    code: Optional[str] = Field(None, max_length=20)
    description: Optional[str] = None
    head_employee_id: Optional[uuid.UUID] = None


class DepartmentUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=150)
    code: Optional[str] = Field(None, max_length=20)
    description: Optional[str] = None
    head_employee_id: Optional[uuid.UUID] = None
    is_active: Optional[bool] = None


class DepartmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    code: Optional[str] = None
    description: Optional[str] = None
    head_employee_id: Optional[uuid.UUID] = None
    is_active: bool
    employee_count: int = 0


class LocationCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    address: Optional[str] = None
    city: Optional[str] = Field(None, max_length=100)
    country: Optional[str] = Field(None, max_length=100)
    timezone: str = Field("UTC", max_length=50)


class LocationUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    address: Optional[str] = None
    city: Optional[str] = Field(None, max_length=100)
    country: Optional[str] = Field(None, max_length=100)
    timezone: Optional[str] = Field(None, max_length=50)
    is_active: Optional[bool] = None


class LocationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    address: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    timezone: str
    is_active: bool
    employee_count: int = 0


# ═══════════════════════════════════════════════════════════════════
# SETTINGS / LICENSE
# ═══════════════════════════════════════════════════════════════════


class SettingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    key: str
    value: Any
    description: Optional[str] = None
    updated_at: Optional[datetime] = None


class SettingsUpdate(BaseModel):
    settings: dict[str, Any] = Field(..., min_length=1)


class LicenseUpdate(BaseModel):
    max_users: Optional[int] = Field(None, ge=1)
    max_admins: Optional[int] = Field(None, ge=1)
    max_super_admins: Optional[int] = Field(None, ge=1)


# ═══════════════════════════════════════════════════════════════════
# AUDIT LOG
# ═══════════════════════════════════════════════════════════════════


class AuditLogOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    actor_id: Optional[uuid.UUID] = None
    action: str
    object_type: str
    object_id: Optional[str] = None
    before: Optional[dict[str, Any]] = None
    after: Optional[dict[str, Any]] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    metadata: Optional[dict[str, Any]] = Field(None, validation_alias="metadata_")
    created_at: datetime
