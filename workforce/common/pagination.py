"""Generic pagination utilities for SQLAlchemy async queries."""


import math
from typing import Any, Callable, Generic, Optional, Sequence, TypeVar

from fastapi import Query
from pydantic import BaseModel
from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from workforce.common.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE

T = TypeVar("T")


# ── FastAPI dependency ──────────────────────────────────────────────

class PaginationParams:
    """Inject via ``Depends(PaginationParams)`` on any list endpoint."""

    def __init__(
        self,
        page: int = Query(default=1, ge=1, description="Page number (1-indexed)"),
        limit: int = Query(
            default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE,
            description=f"Items per page (max {MAX_PAGE_SIZE})",
        ),
        sort_by: Optional[str] = Query(default=None, description="Column to sort on"),
        sort_order: str = Query(default="desc", pattern="^(asc|desc)$"),
    ) -> None:
        self.page = page
        self.limit = limit
        self.sort_by = sort_by
        self.sort_order = sort_order

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


# ── Pydantic response models ───────────────────────────────────────

class PaginationMeta(BaseModel):
    """Metadata block embedded in every paginated response."""

    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool


class PaginatedResponse(BaseModel, Generic[T]):
    """Standard envelope: ``{"data": [...], "meta": {...}}``."""

    data: Sequence[T]
    meta: PaginationMeta


def build_meta(params: PaginationParams, total: int) -> PaginationMeta:
    total_pages = math.ceil(total / params.limit) if total else 0
    return PaginationMeta(
        page=params.page,
        limit=params.limit,
        total=total,
        total_pages=total_pages,
        has_next=params.page < total_pages,
        has_prev=params.page > 1,
    )


# ── SQLAlchemy helper ───────────────────────────────────────────────

async def paginate(
    session: AsyncSession,
    query: Select,
    params: PaginationParams,
    *,
    model: Any = None,
    options: Sequence[Any] = (),
    transform: Optional[Callable[[Any], Any]] = None,
) -> PaginatedResponse:
    """
    Execute *query* with LIMIT/OFFSET derived from *params* and return
    a ``PaginatedResponse`` with data + meta.

    ``sort_by`` is honoured only when it names a column attribute of
    *model*; unknown names are ignored. Loader *options* (``selectinload``
    etc.) apply to the row query only, never to the count. *transform*
    maps each ORM row to its response schema.
    """
    # ── total count (strip ORDER BY for efficiency) ─────────────────
    count_q = select(func.count()).select_from(query.order_by(None).subquery())
    total: int = (await session.execute(count_q)).scalar_one()

    # ── sorting ─────────────────────────────────────────────────────
    if params.sort_by and model is not None and hasattr(model, params.sort_by):
        col = getattr(model, params.sort_by)
        query = query.order_by(None).order_by(
            col.desc() if params.sort_order == "desc" else col.asc()
        )

    # ── paginated rows ──────────────────────────────────────────────
    if options:
        query = query.options(*options)
    rows = (
        await session.execute(query.offset(params.offset).limit(params.limit))
    ).scalars().unique().all()

    if transform is not None:
        rows = [transform(row) for row in rows]

    return PaginatedResponse(data=rows, meta=build_meta(params, total))
