"""Auth Pydantic schemas for request / response validation."""


import uuid
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from workforce.common.constants import UserRole, UserStatus


# ── Requests ────────────────────────────────────────────────────────

class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class RefreshRequest(BaseModel):
    refresh_token: str


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=1)


# ── Embedded / Shared ──────────────────────────────────────────────

class DeptBrief(BaseModel):
    id: uuid.UUID
    name: str


class LocationBrief(BaseModel):
    id: uuid.UUID
    name: str


class UserInfo(BaseModel):
    id: uuid.UUID
    email: str
    role: UserRole
    status: UserStatus
    must_change_password: bool
    employee_id: Optional[uuid.UUID] = None
    employee_number: Optional[str] = None
    display_name: str
    photo_url: Optional[str] = None


# ── Responses ───────────────────────────────────────────────────────

class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserInfo


class RefreshResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int


class MeResponse(UserInfo):
    permissions: list[str]
    department: Optional[DeptBrief] = None
    location: Optional[LocationBrief] = None
    manager_id: Optional[uuid.UUID] = None
    direct_reports_count: int = 0


class MessageResponse(BaseModel):
    message: str
