"""Permission Pydantic schemas."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from workforce.common.constants import UserRole


class PermissionOverrideIn(BaseModel):
    permission: str = Field(..., min_length=3, max_length=64)
    granted: bool


class PermissionOverridesReplace(BaseModel):
    overrides: list[PermissionOverrideIn] = Field(default_factory=list)


class PermissionOverrideOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    permission: str
    granted: bool
    granted_by: Optional[uuid.UUID] = None
    created_at: Optional[datetime] = None


class UserPermissionsOut(BaseModel):
    user_id: uuid.UUID
    role: UserRole
    role_permissions: list[str]
    overrides: list[PermissionOverrideOut]
    effective: list[str]


class PermissionCatalogOut(BaseModel):
    permissions: list[str]
    roles: dict[str, list[str]]
