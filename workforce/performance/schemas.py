"""Performance Pydantic schemas."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from workforce.common.constants import DisciplinaryType, ReviewPeriod, ReviewStatus
from workforce.employees.schemas import EmployeeBrief


# ── Competencies ────────────────────────────────────────────────────

class CompetencyCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    description: Optional[str] = None
    category: Optional[str] = Field(None, max_length=100)
    max_score: float = Field(5.0, gt=0, le=100)


class CompetencyOut(CompetencyCreate):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    is_active: bool


class CompetencyScoreIn(BaseModel):
    competency_id: uuid.UUID
    score: float = Field(..., ge=0)
    comment: Optional[str] = None


class CompetencyScoreOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    competency_id: uuid.UUID
    score: float
    comment: Optional[str] = None
    competency: Optional[CompetencyOut] = None


# ── Reviews ─────────────────────────────────────────────────────────

class ReviewCreate(BaseModel):
    employee_id: uuid.UUID
    period: ReviewPeriod
    year: int = Field(..., ge=2000, le=2100)
    quarter: Optional[int] = Field(None, ge=1, le=4)

    @model_validator(mode="after")
    def _quarter_for_quarterly(self) -> "ReviewCreate":
        if self.period == ReviewPeriod.QUARTERLY and self.quarter is None:
            raise ValueError("quarter is required for quarterly reviews")
        return self


class ReviewUpdate(BaseModel):
    overall_score: Optional[float] = Field(None, ge=0, le=100)
    strengths: Optional[str] = None
    improvements: Optional[str] = None
    comments: Optional[str] = None
    status: Optional[ReviewStatus] = None
    competency_scores: Optional[list[CompetencyScoreIn]] = None


class ReviewAcknowledge(BaseModel):
    employee_comments: Optional[str] = Field(None, max_length=5000)


class ReviewOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: uuid.UUID
    reviewer_id: uuid.UUID
    period: ReviewPeriod
    year: int
    quarter: Optional[int] = None
    status: ReviewStatus
    overall_score: Optional[float] = None
    strengths: Optional[str] = None
    improvements: Optional[str] = None
    comments: Optional[str] = None
    employee_comments: Optional[str] = None
    acknowledged_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    employee: Optional[EmployeeBrief] = None
    reviewer: Optional[EmployeeBrief] = None
    competency_scores: list[CompetencyScoreOut] = []


# ── Disciplinary ────────────────────────────────────────────────────

class DisciplinaryCreate(BaseModel):
    employee_id: uuid.UUID
    type: DisciplinaryType
    reason: str = Field(..., min_length=1, max_length=5000)
    details: Optional[str] = None
    expires_at: Optional[datetime] = None
    document_id: Optional[uuid.UUID] = None


class DisciplinaryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: uuid.UUID
    type: DisciplinaryType
    reason: str
    details: Optional[str] = None
    issued_by: Optional[uuid.UUID] = None
    issued_at: datetime
    expires_at: Optional[datetime] = None
    document_id: Optional[uuid.UUID] = None
    is_active: bool = True
