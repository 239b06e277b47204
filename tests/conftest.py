"""Shared test fixtures: async DB, client, auth helpers, factories.

Uses SQLite + aiosqlite for fast isolated tests without PostgreSQL.
"""

from __future__ import annotations

import os
import tempfile

# Set test settings before any other import touches pydantic-settings
os.environ.setdefault("JWT_SECRET", "test-secret-for-ci-do-not-use-in-production")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="workforce-uploads-"))
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import uuid
from datetime import date, datetime, timezone
from typing import AsyncGenerator, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.dialects.postgresql import JSONB, UUID as PG_UUID
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.pool import StaticPool

from workforce.auth.models import User
from workforce.auth.passwords import hash_password
from workforce.auth.service import create_session
from workforce.common.constants import (
    ContractType,
    EmploymentStatus,
    UserRole,
    UserStatus,
)
from workforce.database import Base, get_db
from workforce.employees.models import Department, Employee, Location
from workforce.main import create_app

# Import ALL model modules so SQLAlchemy can resolve cross-module relationships
import workforce.announcements.models  # noqa: F401
import workforce.breaks.models  # noqa: F401
import workforce.common.audit  # noqa: F401
import workforce.common.models  # noqa: F401
import workforce.documents.models  # noqa: F401
import workforce.goals.models  # noqa: F401
import workforce.leaves.models  # noqa: F401
import workforce.messages.models  # noqa: F401
import workforce.notifications.models  # noqa: F401
import workforce.performance.models  # noqa: F401
import workforce.permissions.models  # noqa: F401
import workforce.photos.models  # noqa: F401
import workforce.scores.models  # noqa: F401
import workforce.shifts.models  # noqa: F401
import workforce.tasks.models  # noqa: F401
import workforce.time_entries.models  # noqa: F401
import workforce.training.models  # noqa: F401

DEFAULT_PASSWORD = "Correct#Horse42"


# ── SQLite compat: compile PG-specific types ────────────────────────

@compiles(JSONB, "sqlite")
def _jsonb_sqlite(element, compiler, **kw):
    return "TEXT"


@compiles(PG_UUID, "sqlite")
def _uuid_sqlite(element, compiler, **kw):
    return "CHAR(36)"


# ── Test database (SQLite in-memory) ────────────────────────────────

TEST_DATABASE_URL = "sqlite+aiosqlite://"

engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


TestSessionFactory = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False,
)


@pytest.fixture(autouse=True)
async def _setup_db():
    """Create all tables before each test, drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(autouse=True)
def _reset_rate_limiter():
    """Reset slowapi storage so login limits don't leak between tests."""
    from workforce.common.rate_limit import limiter

    limiter.reset()
    yield


async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── FastAPI test client ─────────────────────────────────────────────

@pytest.fixture
async def app():
    """Create a fresh app instance with DB dependency overridden."""
    application = create_app()
    application.dependency_overrides[get_db] = _override_get_db
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client wired to the test app."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# ── Database session (for direct DB operations in tests) ────────────

@pytest.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        yield session
        await session.commit()


# ── Model factories ─────────────────────────────────────────────────

async def make_department(db: AsyncSession, name: str = "Operations", code: str = "OPS") -> Department:
    dept = Department(id=uuid.uuid4(), name=name, code=code)
    db.add(dept)
    await db.commit()
    return dept


async def make_location(db: AsyncSession, name: str = "Headquarters") -> Location:
    loc = Location(id=uuid.uuid4(), name=name, city="Sofia", timezone="Europe/Sofia")
    db.add(loc)
    await db.commit()
    return loc


async def make_user(
    db: AsyncSession,
    *,
    role: UserRole = UserRole.EMPLOYEE,
    email: Optional[str] = None,
    first_name: str = "Test",
    last_name: str = "User",
    password: str = DEFAULT_PASSWORD,
    status: UserStatus = UserStatus.ACTIVE,
    with_employee: bool = True,
    department_id: Optional[uuid.UUID] = None,
    manager_id: Optional[uuid.UUID] = None,
    contract_type: ContractType = ContractType.FULL_TIME,
) -> User:
    """Insert a user (and by default its employee profile) and commit.

    The returned ``User`` has ``.employee`` populated in memory.
    """
    email = email or f"{first_name.lower()}.{uuid.uuid4().hex[:8]}@example.com"
    user = User(
        id=uuid.uuid4(),
        email=email,
        password_hash=hash_password(password),
        role=role,
        status=status,
        failed_login_attempts=0,
        must_change_password=False,
    )
    db.add(user)
    employee = None
    if with_employee:
        employee = Employee(
            id=uuid.uuid4(),
            user_id=user.id,
            employee_number=f"EMP{uuid.uuid4().int % 100000:05d}",
            first_name=first_name,
            last_name=last_name,
            email=email,
            department_id=department_id,
            manager_id=manager_id,
            contract_type=contract_type,
            employment_status=EmploymentStatus.ACTIVE,
            hire_date=date(2024, 1, 15),
        )
        db.add(employee)
    user.employee = employee
    await db.commit()
    return user


async def auth_headers_for(db: AsyncSession, user: User) -> dict[str, str]:
    """Persist a session for *user* and return Bearer headers."""
    access_token, _, _ = await create_session(db, user)
    await db.commit()
    return {"Authorization": f"Bearer {access_token}"}


@pytest.fixture
async def employee_user(db) -> User:
    return await make_user(db, role=UserRole.EMPLOYEE, first_name="Elena", last_name="Ivanova")


@pytest.fixture
async def lead_user(db) -> User:
    return await make_user(db, role=UserRole.TEAM_LEAD, first_name="Georgi", last_name="Petrov")


@pytest.fixture
async def hr_user(db) -> User:
    return await make_user(db, role=UserRole.HR, first_name="Maria", last_name="Hristova")


@pytest.fixture
async def admin_user(db) -> User:
    return await make_user(db, role=UserRole.SUPER_ADMIN, first_name="Denis", last_name="Adminov")


@pytest.fixture
async def employee_headers(db, employee_user) -> dict[str, str]:
    return await auth_headers_for(db, employee_user)


@pytest.fixture
async def lead_headers(db, lead_user) -> dict[str, str]:
    return await auth_headers_for(db, lead_user)


@pytest.fixture
async def hr_headers(db, hr_user) -> dict[str, str]:
    return await auth_headers_for(db, hr_user)


@pytest.fixture
async def admin_headers(db, admin_user) -> dict[str, str]:
    return await auth_headers_for(db, admin_user)


def utc(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> datetime:
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)
