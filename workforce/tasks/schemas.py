"""Task Pydantic schemas."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from workforce.common.constants import TaskPriority, TaskStatus
from workforce.employees.schemas import EmployeeBrief


class TaskCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: Optional[datetime] = None
    assignee_id: uuid.UUID


class TaskUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[datetime] = None
    assignee_id: Optional[uuid.UUID] = None


class TaskStatusChange(BaseModel):
    status: TaskStatus


class TaskReview(BaseModel):
    status: TaskStatus
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=5000)


class TaskProofOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    file_url: str
    file_name: str
    file_size: int
    mime_type: str
    uploaded_at: datetime


class TaskOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    description: Optional[str] = None
    priority: TaskPriority
    status: TaskStatus
    due_date: Optional[datetime] = None
    assignee_id: uuid.UUID
    created_by: Optional[uuid.UUID] = None
    rating: Optional[int] = None
    review_comment: Optional[str] = None
    reviewed_by: Optional[uuid.UUID] = None
    reviewed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    assignee: Optional[EmployeeBrief] = None
    proofs: list[TaskProofOut] = []


class TaskStats(BaseModel):
    total: int
    by_status: dict[str, int]
