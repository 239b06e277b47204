"""Score Pydantic schemas."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from workforce.employees.schemas import EmployeeBrief


class ScoreBreakdown(BaseModel):
    """Computed score components; also the body of a live preview."""

    total_score: float
    grade: str
    task_rating_score: float
    task_completion_score: float
    consistency_score: float
    disciplinary_score: float
    total_tasks: int
    approved_tasks: int
    rejected_tasks: int
    avg_rating: float
    on_time_rate: float
    warning_count: int


class ScoreOut(ScoreBreakdown):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: uuid.UUID
    period_start: datetime
    period_end: datetime
    calculated_at: datetime
    calculated_by: Optional[uuid.UUID] = None
    is_latest: bool


class LeaderboardEntry(ScoreOut):
    employee: Optional[EmployeeBrief] = None


class CalculateAllResult(BaseModel):
    calculated: int
