"""Reports router: aggregated read-only views and XLSX export."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from workforce.auth.dependencies import (
    get_current_user,
    require_any_permission,
    require_permission,
)
from workforce.auth.models import User
from workforce.database import get_db
from workforce.reports.schemas import (
    AbsenceReport,
    BreakReport,
    DashboardSummary,
    ExportRequest,
    HeadcountReport,
    TrainingCompletionReport,
)
from workforce.reports.service import ReportService

router = APIRouter(prefix="", tags=["reports"])

XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@router.get("/headcount", response_model=HeadcountReport)
async def headcount(
    user: User = Depends(require_any_permission("reports:read_all", "reports:read")),
    db: AsyncSession = Depends(get_db),
):
    return await ReportService.headcount(db)


@router.get("/absence", response_model=AbsenceReport)
async def absence(
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    user: User = Depends(require_permission("reports:read_all")),
    db: AsyncSession = Depends(get_db),
):
    return await ReportService.absence(db, date_from, date_to)


@router.get("/breaks", response_model=BreakReport)
async def breaks(
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    user: User = Depends(require_permission("reports:read_all")),
    db: AsyncSession = Depends(get_db),
):
    return await ReportService.breaks(db, date_from, date_to)


@router.get("/training-completion", response_model=TrainingCompletionReport)
async def training_completion(
    user: User = Depends(require_permission("reports:read_all")),
    db: AsyncSession = Depends(get_db),
):
    return await ReportService.training_completion(db)


@router.get("/dashboard", response_model=DashboardSummary)
async def dashboard(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Headline counters shown on the home screen."""
    return await ReportService.dashboard(db, user)


@router.post("/export")
async def export_report(
    body: ExportRequest,
    request: Request,
    user: User = Depends(require_permission("reports:export")),
    db: AsyncSession = Depends(get_db),
):
    filename, content = await ReportService.export(
        db, user, body.report_type, body.date_from, body.date_to, request,
    )
    return StreamingResponse(
        iter([content]),
        media_type=XLSX_MIME,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
