"""Training Pydantic schemas."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from workforce.common.constants import TrainingStatus


class TrainingCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    content: Optional[str] = None
    is_mandatory: bool = False
    duration_minutes: Optional[int] = Field(None, ge=1)
    passing_score: Optional[float] = Field(None, ge=0, le=100)
    expiry_months: Optional[int] = Field(None, ge=1)


class TrainingUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    content: Optional[str] = None
    is_mandatory: Optional[bool] = None
    duration_minutes: Optional[int] = Field(None, ge=1)
    passing_score: Optional[float] = Field(None, ge=0, le=100)
    expiry_months: Optional[int] = Field(None, ge=1)
    is_active: Optional[bool] = None


class TrainingOut(TrainingCreate):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    is_active: bool
    created_at: Optional[datetime] = None


class EnrollRequest(BaseModel):
    employee_ids: list[uuid.UUID] = Field(..., min_length=1)
    due_date: Optional[datetime] = None


class EnrollResult(BaseModel):
    enrolled: int
    skipped: int


class EnrollmentUpdate(BaseModel):
    status: Optional[TrainingStatus] = None
    score: Optional[float] = Field(None, ge=0, le=100)


class EnrollmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: uuid.UUID
    training_id: uuid.UUID
    status: TrainingStatus
    score: Optional[float] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    certificate_url: Optional[str] = None
    expires_at: Optional[datetime] = None
    due_date: Optional[datetime] = None
    training: Optional[TrainingOut] = None


class TrainingReportRow(BaseModel):
    id: uuid.UUID
    title: str
    is_mandatory: bool
    total_enrolled: int
    completed: int
    in_progress: int
    overdue: int
    average_score: float
