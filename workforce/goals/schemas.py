"""Goal Pydantic schemas."""

import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from workforce.common.constants import GoalStatus
from workforce.employees.schemas import EmployeeBrief


class GoalCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    employee_id: Optional[uuid.UUID] = None
    start_date: Optional[date] = None
    due_date: Optional[date] = None
    parent_goal_id: Optional[uuid.UUID] = None
    is_company_goal: bool = False
    is_team_goal: bool = False


class GoalUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    status: Optional[GoalStatus] = None
    progress: Optional[float] = Field(None, ge=0, le=100)
    due_date: Optional[date] = None


class CheckInCreate(BaseModel):
    progress: float = Field(..., ge=0, le=100)
    comment: Optional[str] = Field(None, max_length=5000)


class CheckInOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    goal_id: uuid.UUID
    progress: float
    comment: Optional[str] = None
    created_by: Optional[uuid.UUID] = None
    created_at: datetime


class GoalOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: Optional[uuid.UUID] = None
    title: str
    description: Optional[str] = None
    status: GoalStatus
    progress: float
    start_date: Optional[date] = None
    due_date: Optional[date] = None
    completed_at: Optional[datetime] = None
    parent_goal_id: Optional[uuid.UUID] = None
    is_company_goal: bool
    is_team_goal: bool
    created_by: Optional[uuid.UUID] = None
    created_at: Optional[datetime] = None
    employee: Optional[EmployeeBrief] = None
    check_ins: list[CheckInOut] = []
