"""Enums and constants for the workforce platform, matching PostgreSQL ENUM types."""

from __future__ import annotations

import enum


# ── Auth / Roles ────────────────────────────────────────────────────

class UserRole(str, enum.Enum):
    EMPLOYEE = "EMPLOYEE"
    TEAM_LEAD = "TEAM_LEAD"
    HR = "HR"
    PAYROLL_ADMIN = "PAYROLL_ADMIN"
    ADMIN = "ADMIN"
    SUPER_ADMIN = "SUPER_ADMIN"


class UserStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    SUSPENDED = "SUSPENDED"
    PENDING_ACTIVATION = "PENDING_ACTIVATION"


# ── Employee ────────────────────────────────────────────────────────

class EmploymentStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    ON_PROBATION = "ON_PROBATION"
    ON_LEAVE = "ON_LEAVE"
    TERMINATED = "TERMINATED"
    RESIGNED = "RESIGNED"


class ContractType(str, enum.Enum):
    FULL_TIME = "FULL_TIME"
    PART_TIME = "PART_TIME"
    CONTRACT = "CONTRACT"
    INTERN = "INTERN"
    TEMPORARY = "TEMPORARY"


# ── Scheduling ──────────────────────────────────────────────────────

class ShiftType(str, enum.Enum):
    MORNING = "MORNING"
    AFTERNOON = "AFTERNOON"
    EVENING = "EVENING"
    NIGHT = "NIGHT"
    FLEXIBLE = "FLEXIBLE"
    CUSTOM = "CUSTOM"


class ShiftStatus(str, enum.Enum):
    SCHEDULED = "SCHEDULED"
    OPEN = "OPEN"
    SWAP_PENDING = "SWAP_PENDING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class ApprovalStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    ESCALATED = "ESCALATED"


# ── Time / Breaks ───────────────────────────────────────────────────

class TimeEntryType(str, enum.Enum):
    CLOCK_IN = "CLOCK_IN"
    CLOCK_OUT = "CLOCK_OUT"
    BREAK_START = "BREAK_START"
    BREAK_END = "BREAK_END"


class BreakCategory(str, enum.Enum):
    LUNCH = "LUNCH"
    SMOKING = "SMOKING"
    PERSONAL = "PERSONAL"
    DELIVERY = "DELIVERY"
    OTHER = "OTHER"


class BreakStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    EXCEEDED = "EXCEEDED"


# ── Leave ───────────────────────────────────────────────────────────

class LeaveType(str, enum.Enum):
    PAID = "PAID"
    UNPAID = "UNPAID"
    SICK = "SICK"
    MATERNITY = "MATERNITY"
    PATERNITY = "PATERNITY"
    BEREAVEMENT = "BEREAVEMENT"
    OFFICIAL = "OFFICIAL"
    STUDY = "STUDY"
    OTHER = "OTHER"


class LeaveStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED_BY_LEAD = "APPROVED_BY_LEAD"
    APPROVED_BY_HR = "APPROVED_BY_HR"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


# Requests in these states still hold days in LeaveBalance.pending_days
LEAVE_IN_FLIGHT_STATUSES = (
    LeaveStatus.PENDING,
    LeaveStatus.APPROVED_BY_LEAD,
    LeaveStatus.APPROVED_BY_HR,
)


# ── Documents ───────────────────────────────────────────────────────

class DocumentCategory(str, enum.Enum):
    CONTRACT = "CONTRACT"
    WARNING = "WARNING"
    REQUEST = "REQUEST"
    DECLARATION = "DECLARATION"
    CERTIFICATE = "CERTIFICATE"
    POLICY = "POLICY"
    ID_DOCUMENT = "ID_DOCUMENT"
    OTHER = "OTHER"


# ── Performance / Goals / Training ──────────────────────────────────

class ReviewPeriod(str, enum.Enum):
    QUARTERLY = "QUARTERLY"
    SEMI_ANNUAL = "SEMI_ANNUAL"
    ANNUAL = "ANNUAL"


class ReviewStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    ACKNOWLEDGED = "ACKNOWLEDGED"


class DisciplinaryType(str, enum.Enum):
    VERBAL = "VERBAL"
    WRITTEN = "WRITTEN"
    FINAL = "FINAL"


class GoalStatus(str, enum.Enum):
    NOT_STARTED = "NOT_STARTED"
    ON_TRACK = "ON_TRACK"
    AT_RISK = "AT_RISK"
    OFF_TRACK = "OFF_TRACK"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class TrainingStatus(str, enum.Enum):
    NOT_STARTED = "NOT_STARTED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    OVERDUE = "OVERDUE"
    FAILED = "FAILED"


# ── Tasks / Photos ──────────────────────────────────────────────────

class TaskStatus(str, enum.Enum):
    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    WAITING_FOR_REVIEW = "WAITING_FOR_REVIEW"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class TaskPriority(str, enum.Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class PhotoStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


# ── Notifications ───────────────────────────────────────────────────

class NotificationType(str, enum.Enum):
    SHIFT_CHANGE = "SHIFT_CHANGE"
    LEAVE_REQUEST = "LEAVE_REQUEST"
    LEAVE_APPROVED = "LEAVE_APPROVED"
    LEAVE_REJECTED = "LEAVE_REJECTED"
    BREAK_EXCEEDED = "BREAK_EXCEEDED"
    DOCUMENT_EXPIRING = "DOCUMENT_EXPIRING"
    APPROVAL_NEEDED = "APPROVAL_NEEDED"
    ANNOUNCEMENT = "ANNOUNCEMENT"
    PERFORMANCE_REVIEW = "PERFORMANCE_REVIEW"
    TRAINING_DUE = "TRAINING_DUE"
    NEW_MESSAGE = "NEW_MESSAGE"
    TASK_ASSIGNED = "TASK_ASSIGNED"
    TASK_REVIEWED = "TASK_REVIEWED"
    PHOTO_REVIEWED = "PHOTO_REVIEWED"
    SYSTEM_ALERT = "SYSTEM_ALERT"
    GENERAL = "GENERAL"


# ── Role-based permissions ──────────────────────────────────────────

ROLE_HIERARCHY: dict[UserRole, int] = {
    UserRole.EMPLOYEE: 0,
    UserRole.TEAM_LEAD: 1,
    UserRole.HR: 2,
    UserRole.PAYROLL_ADMIN: 3,
    UserRole.ADMIN: 4,
    UserRole.SUPER_ADMIN: 5,
}

ALL_PERMISSIONS: tuple[str, ...] = (
    "employees:read",
    "employees:read_team",
    "employees:read_all",
    "employees:write",
    "employees:write_all",
    "employees:delete",
    "salary:read",
    "salary:write",
    "shifts:read",
    "shifts:read_all",
    "shifts:write",
    "shifts:write_all",
    "time:read",
    "time:read_all",
    "time:write",
    "breaks:read",
    "breaks:read_all",
    "breaks:write",
    "leaves:read",
    "leaves:read_all",
    "leaves:approve_lead",
    "leaves:approve_hr",
    "leaves:approve_final",
    "documents:read",
    "documents:read_all",
    "documents:write",
    "documents:delete",
    "performance:read",
    "performance:read_all",
    "performance:write",
    "goals:read",
    "goals:read_all",
    "goals:write",
    "training:read",
    "training:read_all",
    "training:write",
    "announcements:read",
    "announcements:write",
    "reports:read",
    "reports:read_all",
    "reports:export",
    "messages:read",
    "messages:send",
    "users:read",
    "users:write",
    "users:delete",
    "admin:settings",
    "admin:audit_logs",
    "admin:backup",
    "admin:license",
)

_EMPLOYEE_PERMISSIONS = [
    "employees:read",
    "shifts:read",
    "time:read",
    "time:write",
    "breaks:read",
    "breaks:write",
    "leaves:read",
    "documents:read",
    "performance:read",
    "goals:read",
    "training:read",
    "announcements:read",
    "reports:read",
    "messages:read",
    "messages:send",
]

_HR_PERMISSIONS = [
    "employees:read",
    "employees:read_all",
    "employees:write",
    "employees:write_all",
    "shifts:read",
    "shifts:read_all",
    "shifts:write",
    "shifts:write_all",
    "time:read",
    "time:read_all",
    "time:write",
    "breaks:read",
    "breaks:read_all",
    "breaks:write",
    "leaves:read",
    "leaves:read_all",
    "leaves:approve_lead",
    "leaves:approve_hr",
    "documents:read",
    "documents:read_all",
    "documents:write",
    "documents:delete",
    "performance:read",
    "performance:read_all",
    "performance:write",
    "goals:read",
    "goals:read_all",
    "goals:write",
    "training:read",
    "training:read_all",
    "training:write",
    "announcements:read",
    "announcements:write",
    "reports:read",
    "reports:read_all",
    "reports:export",
    "messages:read",
    "messages:send",
]

PERMISSIONS: dict[UserRole, frozenset[str]] = {
    UserRole.EMPLOYEE: frozenset(_EMPLOYEE_PERMISSIONS),
    UserRole.TEAM_LEAD: frozenset([
        "employees:read",
        "employees:read_team",
        "shifts:read",
        "shifts:read_all",
        "shifts:write",
        "time:read",
        "time:read_all",
        "time:write",
        "breaks:read",
        "breaks:read_all",
        "breaks:write",
        "leaves:read",
        "leaves:read_all",
        "leaves:approve_lead",
        "documents:read",
        "documents:write",
        "performance:read",
        "performance:write",
        "goals:read",
        "goals:read_all",
        "goals:write",
        "training:read",
        "training:read_all",
        "announcements:read",
        "reports:read",
        "reports:read_all",
        "messages:read",
        "messages:send",
    ]),
    UserRole.HR: frozenset(_HR_PERMISSIONS),
    UserRole.PAYROLL_ADMIN: frozenset([
        "employees:read",
        "employees:read_all",
        "salary:read",
        "salary:write",
        "time:read",
        "time:read_all",
        "breaks:read",
        "breaks:read_all",
        "leaves:read",
        "leaves:read_all",
        "leaves:approve_final",
        "reports:read",
        "reports:read_all",
        "reports:export",
        "announcements:read",
        "messages:read",
        "messages:send",
    ]),
    UserRole.ADMIN: frozenset(_HR_PERMISSIONS + [
        "employees:delete",
        "leaves:approve_final",
        "users:read",
        "users:write",
        "users:delete",
        "admin:settings",
        "admin:audit_logs",
    ]),
    UserRole.SUPER_ADMIN: frozenset(ALL_PERMISSIONS),
}

# ── Leave approval chain ────────────────────────────────────────────

# (step, approver role, roles allowed to decide the step)
LEAVE_APPROVAL_STEPS: tuple[tuple[int, UserRole, frozenset[UserRole]], ...] = (
    (1, UserRole.TEAM_LEAD, frozenset({
        UserRole.TEAM_LEAD, UserRole.HR, UserRole.ADMIN, UserRole.SUPER_ADMIN,
    })),
    (2, UserRole.HR, frozenset({
        UserRole.HR, UserRole.ADMIN, UserRole.SUPER_ADMIN,
    })),
)

# ── Tasks ───────────────────────────────────────────────────────────

TASK_TRANSITIONS: dict[TaskStatus, frozenset[TaskStatus]] = {
    TaskStatus.OPEN: frozenset({TaskStatus.IN_PROGRESS}),
    TaskStatus.IN_PROGRESS: frozenset({TaskStatus.COMPLETED, TaskStatus.WAITING_FOR_REVIEW}),
    TaskStatus.COMPLETED: frozenset({TaskStatus.WAITING_FOR_REVIEW}),
    TaskStatus.WAITING_FOR_REVIEW: frozenset({TaskStatus.APPROVED, TaskStatus.REJECTED}),
    TaskStatus.REJECTED: frozenset({TaskStatus.IN_PROGRESS}),
    TaskStatus.APPROVED: frozenset(),
}

TASK_MANAGER_ROLES = frozenset({
    UserRole.TEAM_LEAD,
    UserRole.HR,
    UserRole.PAYROLL_ADMIN,
    UserRole.ADMIN,
    UserRole.SUPER_ADMIN,
})

MIN_TASK_PROOFS = 3
MAX_PROOFS_PER_UPLOAD = 10

# ── Misc constants ──────────────────────────────────────────────────

COMMON_PASSWORDS = frozenset({
    "password", "123456", "12345678", "qwerty", "abc123", "monkey",
    "master", "dragon", "111111", "baseball", "iloveyou", "trustno1",
    "sunshine", "letmein", "welcome", "shadow", "superman", "michael",
    "password1",
})
MIN_PASSWORD_LENGTH = 12

STANDARD_DAILY_HOURS = 8
STANDARD_MONTHLY_HOURS = 160
DOCUMENT_EXPIRY_WINDOW_DAYS = 30
MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 20
