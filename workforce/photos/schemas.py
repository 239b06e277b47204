"""Profile photo Pydantic schemas."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from workforce.common.constants import PhotoStatus
from workforce.employees.schemas import EmployeeBrief


class PhotoOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: uuid.UUID
    file_url: str
    file_name: str
    file_size: Optional[int] = None
    mime_type: Optional[str] = None
    status: PhotoStatus
    reviewed_by: Optional[uuid.UUID] = None
    reviewed_at: Optional[datetime] = None
    review_comment: Optional[str] = None
    is_active: bool
    uploaded_by: Optional[uuid.UUID] = None
    created_at: Optional[datetime] = None


class PendingPhotoOut(PhotoOut):
    employee: Optional[EmployeeBrief] = None


class PhotoReject(BaseModel):
    comment: Optional[str] = Field(None, max_length=1000)
