"""001 – Initial schema: enum types and every table.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000+00:00
"""

from alembic import op

from workforce.common.constants import (
    ApprovalStatus,
    BreakCategory,
    BreakStatus,
    ContractType,
    DisciplinaryType,
    DocumentCategory,
    EmploymentStatus,
    GoalStatus,
    LeaveStatus,
    LeaveType,
    NotificationType,
    PhotoStatus,
    ReviewPeriod,
    ReviewStatus,
    ShiftStatus,
    ShiftType,
    TaskPriority,
    TaskStatus,
    TimeEntryType,
    TrainingStatus,
    UserRole,
    UserStatus,
)
from workforce.database import Base

# Every model module, so Base.metadata holds the full schema
import workforce.announcements.models  # noqa: F401
import workforce.auth.models  # noqa: F401
import workforce.breaks.models  # noqa: F401
import workforce.common.audit  # noqa: F401
import workforce.common.models  # noqa: F401
import workforce.documents.models  # noqa: F401
import workforce.employees.models  # noqa: F401
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

# Revision identifiers
revision = "001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

# Models declare their enums with create_type=False; the types live here.
# SQLAlchemy persists enum member names, so the labels are the names.
ENUM_TYPES = [
    ("user_role", UserRole),
    ("user_status", UserStatus),
    ("employment_status", EmploymentStatus),
    ("contract_type", ContractType),
    ("shift_type", ShiftType),
    ("shift_status", ShiftStatus),
    ("approval_status", ApprovalStatus),
    ("time_entry_type", TimeEntryType),
    ("break_category", BreakCategory),
    ("break_status", BreakStatus),
    ("leave_type", LeaveType),
    ("leave_status", LeaveStatus),
    ("document_category", DocumentCategory),
    ("review_period", ReviewPeriod),
    ("review_status", ReviewStatus),
    ("disciplinary_type", DisciplinaryType),
    ("goal_status", GoalStatus),
    ("training_status", TrainingStatus),
    ("task_status", TaskStatus),
    ("task_priority", TaskPriority),
    ("photo_status", PhotoStatus),
    ("notification_type", NotificationType),
]


def _create_enum(name: str, enum_cls) -> None:
    vals = ", ".join(f"'{member.name}'" for member in enum_cls)
    op.execute(f"CREATE TYPE {name} AS ENUM ({vals})")


def _drop_enum(name: str) -> None:
    op.execute(f"DROP TYPE IF EXISTS {name}")


# ---------------------------------------------------------------------------
# UPGRADE
# ---------------------------------------------------------------------------


def upgrade() -> None:
    # ── Enum types ────────────────────────────────────────────────────────
    for name, enum_cls in ENUM_TYPES:
        _create_enum(name, enum_cls)

    # ── Tables, indexes, constraints ──────────────────────────────────────
    Base.metadata.create_all(bind=op.get_bind())


# ---------------------------------------------------------------------------
# DOWNGRADE
# ---------------------------------------------------------------------------


def downgrade() -> None:
    Base.metadata.drop_all(bind=op.get_bind())
    for name, _ in reversed(ENUM_TYPES):
        _drop_enum(name)
