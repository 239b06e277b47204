"""Tests for common utilities: filters, search, pagination and date helpers."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from workforce.common.audit import _jsonable
from workforce.common.constants import UserRole
from workforce.common.dates import as_utc, hours_between
from workforce.common.filters import apply_filters, apply_search
from workforce.common.pagination import PaginationParams, build_meta, paginate
from workforce.employees.models import Employee
from tests.conftest import make_department, make_user


def _params(page: int = 1, limit: int = 2, sort_by=None, sort_order: str = "asc") -> PaginationParams:
    return PaginationParams(page=page, limit=limit, sort_by=sort_by, sort_order=sort_order)


async def _names(db: AsyncSession, query) -> list[str]:
    rows = (await db.execute(query)).scalars().all()
    return sorted(e.first_name for e in rows)


# ═════════════════════════════════════════════════════════════════════
# FILTER TESTS
# ═════════════════════════════════════════════════════════════════════


class TestApplyFilters:

    async def test_equality(self, db: AsyncSession):
        await make_user(db, first_name="Alice")
        await make_user(db, first_name="Bob")

        query = apply_filters(select(Employee), Employee, {"first_name": "Alice"})

        assert await _names(db, query) == ["Alice"]

    async def test_none_values_skipped(self, db: AsyncSession):
        await make_user(db, first_name="Alice")

        query = apply_filters(select(Employee), Employee, {"first_name": None})

        assert await _names(db, query) == ["Alice"]

    async def test_ilike(self, db: AsyncSession):
        await make_user(db, first_name="Alexander")
        await make_user(db, first_name="Bobby")

        query = apply_filters(select(Employee), Employee, {"first_name__ilike": "alex"})

        assert await _names(db, query) == ["Alexander"]

    async def test_date_range(self, db: AsyncSession):
        for name, hired in (("Early", date(2024, 1, 1)), ("Mid", date(2025, 6, 1)), ("Late", date(2026, 1, 1))):
            user = await make_user(db, first_name=name)
            user.employee.hire_date = hired
        await db.commit()

        query = apply_filters(select(Employee), Employee, {
            "hire_date__from": date(2025, 1, 1),
            "hire_date__to": date(2025, 12, 31),
        })

        assert await _names(db, query) == ["Mid"]

    async def test_in(self, db: AsyncSession):
        for name in ("Alice", "Bob", "Charlie"):
            await make_user(db, first_name=name)

        query = apply_filters(select(Employee), Employee, {"first_name__in": ["Alice", "Charlie"]})

        assert await _names(db, query) == ["Alice", "Charlie"]

    async def test_unknown_column_ignored(self, db: AsyncSession):
        await make_user(db, first_name="Alice")

        query = apply_filters(select(Employee), Employee, {"no_such_column": "x"})

        assert await _names(db, query) == ["Alice"]

    async def test_filter_by_department(self, db: AsyncSession):
        dept = await make_department(db)
        await make_user(db, first_name="Inside", department_id=dept.id)
        await make_user(db, first_name="Outside")

        query = apply_filters(select(Employee), Employee, {"department_id": dept.id})

        assert await _names(db, query) == ["Inside"]


class TestApplySearch:

    async def test_matches_any_column(self, db: AsyncSession):
        await make_user(db, first_name="Ivan", last_name="Dimitrov")
        await make_user(db, first_name="Dimitar", last_name="Kolev")
        await make_user(db, first_name="Petya", last_name="Stoyanova")

        query = apply_search(select(Employee), Employee, "dimit", ["first_name", "last_name"])

        assert await _names(db, query) == ["Dimitar", "Ivan"]

    async def test_blank_search_is_noop(self, db: AsyncSession):
        await make_user(db, first_name="Ivan")

        query = apply_search(select(Employee), Employee, "   ", ["first_name"])

        assert await _names(db, query) == ["Ivan"]


# ═════════════════════════════════════════════════════════════════════
# PAGINATION TESTS
# ═════════════════════════════════════════════════════════════════════


class TestPagination:

    async def test_first_page(self, db: AsyncSession):
        for name in ("Ana", "Boris", "Cvetan"):
            await make_user(db, first_name=name)

        page = await paginate(db, select(Employee), _params(sort_by="first_name"), model=Employee)

        assert [e.first_name for e in page.data] == ["Ana", "Boris"]
        assert page.meta.total == 3
        assert page.meta.total_pages == 2
        assert page.meta.has_next is True
        assert page.meta.has_prev is False

    async def test_last_page_descending(self, db: AsyncSession):
        for name in ("Ana", "Boris", "Cvetan"):
            await make_user(db, first_name=name)

        page = await paginate(
            db, select(Employee), _params(page=2, sort_by="first_name", sort_order="desc"),
            model=Employee,
        )

        assert [e.first_name for e in page.data] == ["Ana"]
        assert page.meta.has_next is False
        assert page.meta.has_prev is True

    async def test_unknown_sort_column_ignored(self, db: AsyncSession):
        await make_user(db, first_name="Ana")

        page = await paginate(db, select(Employee), _params(sort_by="not_a_column"), model=Employee)

        assert page.meta.total == 1

    async def test_transform_applied(self, db: AsyncSession):
        await make_user(db, first_name="Ana")

        page = await paginate(
            db, select(Employee), _params(), model=Employee,
            transform=lambda e: e.first_name.upper(),
        )

        assert page.data == ["ANA"]

    def test_empty_meta(self):
        meta = build_meta(_params(), 0)

        assert meta.total_pages == 0
        assert meta.has_next is False
        assert meta.has_prev is False


# ═════════════════════════════════════════════════════════════════════
# DATES / AUDIT SERIALIZATION
# ═════════════════════════════════════════════════════════════════════


def test_as_utc_attaches_timezone_to_naive():
    naive = datetime(2026, 3, 1, 8, 30)

    assert as_utc(naive) == datetime(2026, 3, 1, 8, 30, tzinfo=timezone.utc)
    assert as_utc(None) is None


def test_as_utc_converts_offsets():
    sofia = timezone(timedelta(hours=2))

    assert as_utc(datetime(2026, 3, 1, 10, 0, tzinfo=sofia)).hour == 8


def test_hours_between_mixed_naive_and_aware():
    start = datetime(2026, 3, 1, 8, 0)
    end = datetime(2026, 3, 1, 16, 30, tzinfo=timezone.utc)

    assert hours_between(start, end) == 8.5


def test_audit_values_made_json_safe():
    out = _jsonable({"role": UserRole.HR, "day": date(2026, 5, 4), "n": 3})

    assert out == {"role": "HR", "day": "2026-05-04", "n": 3}
