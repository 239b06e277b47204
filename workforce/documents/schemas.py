"""Document Pydantic schemas."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from workforce.common.constants import DocumentCategory
from workforce.employees.schemas import EmployeeBrief


class DocumentMeta(BaseModel):
    """Metadata accompanying an upload (sent as multipart form fields)."""

    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    category: DocumentCategory = DocumentCategory.OTHER
    employee_id: Optional[uuid.UUID] = None
    assigned_to_id: Optional[uuid.UUID] = None
    template_id: Optional[uuid.UUID] = None
    expires_at: Optional[datetime] = None
    is_confidential: bool = False


class DocumentUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[DocumentCategory] = None
    employee_id: Optional[uuid.UUID] = None
    assigned_to_id: Optional[uuid.UUID] = None
    expires_at: Optional[datetime] = None
    is_confidential: Optional[bool] = None


class DocumentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    description: Optional[str] = None
    category: DocumentCategory
    file_url: str
    file_name: str
    file_size: Optional[int] = None
    mime_type: Optional[str] = None
    version: int
    employee_id: Optional[uuid.UUID] = None
    assigned_to_id: Optional[uuid.UUID] = None
    template_id: Optional[uuid.UUID] = None
    expires_at: Optional[datetime] = None
    is_confidential: bool
    created_by: Optional[uuid.UUID] = None
    created_at: Optional[datetime] = None
    employee: Optional[EmployeeBrief] = None
    assigned_to: Optional[EmployeeBrief] = None


class TemplateCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    category: DocumentCategory
    content: str = Field(..., min_length=1)
    is_active: bool = True


class TemplateUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    category: Optional[DocumentCategory] = None
    content: Optional[str] = Field(None, min_length=1)
    is_active: Optional[bool] = None


class TemplateOut(TemplateCreate):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    created_at: Optional[datetime] = None
