"""Pure business rules: no database, no HTTP."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from workforce.common.constants import (
    LeaveStatus,
    ReviewStatus,
    TaskStatus,
    TimeEntryType,
    TrainingStatus,
    UserRole,
)
from workforce.common.exceptions import ValidationException
from workforce.documents.service import can_view_document
from workforce.leaves.service import business_days, status_after_step
from workforce.messages.service import is_unread
from workforce.performance.service import can_move_review
from workforce.permissions.service import merge_permissions, unknown_permissions
from workforce.scores.service import compute_score, grade_for, months_ago
from workforce.shifts.service import describe_rest_conflict
from workforce.tasks.service import check_transition
from workforce.time_entries.service import build_timesheet_days, month_bounds
from workforce.training.service import summarize_enrollments
from tests.conftest import utc


# ── Permissions ─────────────────────────────────────────────────────


def test_merge_permissions_grant_and_deny():
    effective = merge_permissions(
        UserRole.EMPLOYEE,
        [("reports:export", True), ("messages:send", False)],
    )
    assert "reports:export" in effective
    assert "messages:send" not in effective
    assert "time:write" in effective


def test_merge_permissions_deny_wins_over_grant():
    effective = merge_permissions(
        UserRole.EMPLOYEE,
        [("reports:export", True), ("reports:export", False)],
    )
    assert "reports:export" not in effective


def test_super_admin_holds_everything():
    effective = merge_permissions(UserRole.SUPER_ADMIN, [])
    assert {"admin:settings", "users:delete", "reports:export"} <= effective


def test_unknown_permissions_sorted_unique():
    assert unknown_permissions(["foo:bar", "time:read", "foo:bar", "a:b"]) == ["a:b", "foo:bar"]


# ── Leaves ──────────────────────────────────────────────────────────


def test_business_days_skips_weekend():
    # Monday to Sunday
    assert business_days(date(2026, 10, 19), date(2026, 10, 25)) == 5


def test_business_days_weekend_only_and_reversed():
    assert business_days(date(2026, 10, 24), date(2026, 10, 25)) == 0
    assert business_days(date(2026, 10, 25), date(2026, 10, 19)) == 0


def test_status_after_step():
    assert status_after_step(1, UserRole.TEAM_LEAD, 2) == LeaveStatus.APPROVED_BY_LEAD
    assert status_after_step(2, UserRole.HR, 2) == LeaveStatus.APPROVED


# ── Shifts ──────────────────────────────────────────────────────────


def test_rest_conflict_message_before():
    msg = describe_rest_conflict(
        utc(2026, 10, 20, 10), utc(2026, 10, 20, 18),
        utc(2026, 10, 19, 20), utc(2026, 10, 20, 4),
    )
    assert msg.startswith("Only 6.0h rest before shift")


def test_rest_conflict_message_after_and_overlap():
    after = describe_rest_conflict(
        utc(2026, 10, 20, 6), utc(2026, 10, 20, 14),
        utc(2026, 10, 20, 19, 30), utc(2026, 10, 21, 3),
    )
    assert after.startswith("Only 5.5h rest after shift")
    overlap = describe_rest_conflict(
        utc(2026, 10, 20, 6), utc(2026, 10, 20, 14),
        utc(2026, 10, 20, 12), utc(2026, 10, 20, 20),
    )
    assert overlap.startswith("Overlaps an existing shift")


# ── Tasks ───────────────────────────────────────────────────────────


def test_task_transition_allowed():
    check_transition(TaskStatus.OPEN, TaskStatus.IN_PROGRESS, 0)
    check_transition(TaskStatus.IN_PROGRESS, TaskStatus.WAITING_FOR_REVIEW, 3)
    check_transition(TaskStatus.REJECTED, TaskStatus.IN_PROGRESS, 0)


def test_task_transition_needs_three_proofs():
    with pytest.raises(ValidationException) as exc:
        check_transition(TaskStatus.IN_PROGRESS, TaskStatus.COMPLETED, 2)
    assert "Currently: 2" in exc.value.detail


@pytest.mark.parametrize("target", [TaskStatus.APPROVED, TaskStatus.REJECTED])
def test_task_review_outcomes_not_reachable_by_status_change(target):
    with pytest.raises(ValidationException):
        check_transition(TaskStatus.WAITING_FOR_REVIEW, target, 5)


def test_task_transition_illegal_jump():
    with pytest.raises(ValidationException) as exc:
        check_transition(TaskStatus.OPEN, TaskStatus.WAITING_FOR_REVIEW, 5)
    assert "Cannot transition from OPEN" in exc.value.detail


# ── Scores ──────────────────────────────────────────────────────────


def _task(status, rating, due, completed):
    return SimpleNamespace(status=status, rating=rating, due_date=due, completed_at=completed)


def test_compute_score_mixed_tasks():
    tasks = [
        _task(TaskStatus.APPROVED, 5, utc(2026, 5, 10), utc(2026, 5, 9)),
        _task(TaskStatus.REJECTED, 1, utc(2026, 5, 10), utc(2026, 5, 12)),
    ]
    score = compute_score(tasks, active_warnings=1)
    assert score.task_rating_score == 20.0
    assert score.task_completion_score == 12.5
    assert score.consistency_score == 10.0
    assert score.disciplinary_score == 10.0
    assert score.total_score == 52.5
    assert score.grade == "D"
    assert score.approved_tasks == 1
    assert score.rejected_tasks == 1


def test_compute_score_no_tasks_only_discipline():
    score = compute_score([], active_warnings=0)
    assert score.total_score == 15.0
    assert score.grade == "F"
    assert score.on_time_rate == 0.0


def test_compute_score_undated_tasks_are_neutral():
    score = compute_score([_task(TaskStatus.APPROVED, 5, None, None)], active_warnings=0)
    assert score.on_time_rate == 0.5
    assert score.total_score == 40 + 25 + 10 + 15


def test_compute_score_sums_rounded_components():
    due = utc(2026, 5, 10)
    tasks = [
        _task(TaskStatus.APPROVED, 5, due, utc(2026, 5, 9)),
        _task(TaskStatus.APPROVED, 5, due, utc(2026, 5, 11)),
        _task(TaskStatus.REJECTED, 4, due, utc(2026, 5, 12)),
    ]
    score = compute_score(tasks, active_warnings=0)
    assert score.task_rating_score == 36.67
    assert score.task_completion_score == 16.67
    assert score.consistency_score == 6.67
    # 75.0 before per-component rounding
    assert score.total_score == 75.01
    assert score.grade == "B"


def test_compute_score_warnings_floor_at_zero():
    score = compute_score([], active_warnings=4)
    assert score.disciplinary_score == 0


@pytest.mark.parametrize(
    "total,grade",
    [(95, "A"), (90, "A"), (75, "B"), (60, "C"), (40, "D"), (39.99, "F")],
)
def test_grade_boundaries(total, grade):
    assert grade_for(total) == grade


def test_months_ago_clamps_to_month_end():
    assert months_ago(utc(2026, 3, 31, 12), 1) == utc(2026, 2, 28, 12)
    assert months_ago(utc(2026, 1, 15), 6) == utc(2025, 7, 15)


# ── Performance ─────────────────────────────────────────────────────


def test_review_moves_forward_only():
    assert can_move_review(ReviewStatus.DRAFT, ReviewStatus.COMPLETED)
    assert can_move_review(ReviewStatus.IN_PROGRESS, ReviewStatus.IN_PROGRESS)
    assert not can_move_review(ReviewStatus.COMPLETED, ReviewStatus.DRAFT)
    assert not can_move_review(ReviewStatus.COMPLETED, ReviewStatus.ACKNOWLEDGED)


# ── Documents ───────────────────────────────────────────────────────


def test_document_visibility():
    me = uuid.uuid4()
    mine = SimpleNamespace(employee_id=me, assigned_to_id=None, is_confidential=True)
    assigned = SimpleNamespace(employee_id=uuid.uuid4(), assigned_to_id=me, is_confidential=True)
    shared = SimpleNamespace(employee_id=None, assigned_to_id=None, is_confidential=False)
    secret = SimpleNamespace(employee_id=None, assigned_to_id=None, is_confidential=True)

    assert can_view_document(mine, me, read_all=False)
    assert can_view_document(assigned, me, read_all=False)
    assert can_view_document(shared, None, read_all=False)
    assert not can_view_document(secret, None, read_all=False)
    assert not can_view_document(secret, me, read_all=False)
    assert can_view_document(secret, None, read_all=True)


# ── Messages ────────────────────────────────────────────────────────


def test_is_unread():
    now = datetime.now(timezone.utc)
    assert not is_unread(None, None)
    assert is_unread(now, None)
    assert is_unread(now, now - timedelta(minutes=1))
    assert not is_unread(now - timedelta(minutes=1), now)


# ── Training ────────────────────────────────────────────────────────


def test_summarize_enrollments():
    training = SimpleNamespace(id=uuid.uuid4(), title="Safety", is_mandatory=True)
    enrollments = [
        SimpleNamespace(status=TrainingStatus.COMPLETED, score=80.0),
        SimpleNamespace(status=TrainingStatus.COMPLETED, score=90.0),
        SimpleNamespace(status=TrainingStatus.IN_PROGRESS, score=None),
        SimpleNamespace(status=TrainingStatus.OVERDUE, score=None),
    ]
    row = summarize_enrollments(training, enrollments)
    assert row.total_enrolled == 4
    assert row.completed == 2
    assert row.in_progress == 1
    assert row.overdue == 1
    assert row.average_score == 85.0


# ── Time entries ────────────────────────────────────────────────────


def test_month_bounds_december_rolls_year():
    start, end = month_bounds(2026, 12)
    assert start == utc(2026, 12, 1)
    assert end == utc(2027, 1, 1)


def test_timesheet_pairs_and_overtime():
    def punch(kind, ts):
        return SimpleNamespace(
            id=uuid.uuid4(), employee_id=uuid.uuid4(), type=kind, timestamp=ts,
            is_manual=False, correction_status=None, notes=None,
            ip_address=None, latitude=None, longitude=None,
            approved_by=None, approved_at=None, created_at=ts,
        )

    entries = [
        punch(TimeEntryType.CLOCK_IN, utc(2026, 10, 19, 8)),
        punch(TimeEntryType.CLOCK_OUT, utc(2026, 10, 19, 18)),
        punch(TimeEntryType.CLOCK_IN, utc(2026, 10, 20, 9)),
    ]
    days = build_timesheet_days(entries)
    assert [d.date for d in days] == [date(2026, 10, 19), date(2026, 10, 20)]
    assert days[0].total_hours == 10.0
    assert days[0].overtime == 2.0
    # Unmatched clock-in contributes nothing
    assert days[1].total_hours == 0.0
