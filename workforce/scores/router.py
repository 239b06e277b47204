"""Score router: latest, history, live preview, recalculation and leaderboard."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from workforce.auth.dependencies import get_current_user, require_any_permission, require_permission
from workforce.auth.models import User
from workforce.database import get_db
from workforce.scores.schemas import (
    CalculateAllResult,
    LeaderboardEntry,
    ScoreBreakdown,
    ScoreOut,
)
from workforce.scores.service import ScoreService

router = APIRouter(prefix="", tags=["scores"])


@router.get("/my", response_model=Optional[ScoreOut])
async def my_score(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await ScoreService.my_score(db, user)


@router.get("/leaderboard", response_model=list[LeaderboardEntry])
async def leaderboard(
    limit: int = Query(20, ge=1, le=50),
    department_id: Optional[uuid.UUID] = Query(None),
    user: User = Depends(require_any_permission("employees:read_all", "employees:read_team")),
    db: AsyncSession = Depends(get_db),
):
    return await ScoreService.leaderboard(db, limit, department_id)


@router.get("/employee/{employee_id}", response_model=Optional[ScoreOut])
async def employee_score(
    employee_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await ScoreService.employee_score(db, user, employee_id)


@router.get("/employee/{employee_id}/history", response_model=list[ScoreOut])
async def score_history(
    employee_id: uuid.UUID,
    limit: int = Query(20, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await ScoreService.history(db, user, employee_id, limit)


@router.get("/employee/{employee_id}/live", response_model=ScoreBreakdown)
async def live_score(
    employee_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await ScoreService.live(db, user, employee_id)


@router.post("/calculate/{employee_id}", response_model=ScoreOut)
async def calculate_score(
    employee_id: uuid.UUID,
    request: Request,
    user: User = Depends(require_any_permission("employees:write", "employees:write_all")),
    db: AsyncSession = Depends(get_db),
):
    return await ScoreService.calculate_one(db, user, employee_id, request)


@router.post("/calculate-all", response_model=CalculateAllResult)
async def calculate_all_scores(
    request: Request,
    user: User = Depends(require_permission("employees:write_all")),
    db: AsyncSession = Depends(get_db),
):
    count = await ScoreService.calculate_all(db, user, request)
    return CalculateAllResult(calculated=count)
