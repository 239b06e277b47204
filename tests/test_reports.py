"""Reporting API: headcount, absence, dashboard, XLSX export."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from io import BytesIO

from openpyxl import load_workbook

from workforce.common.constants import EmploymentStatus, LeaveStatus, LeaveType
from workforce.leaves.models import LeaveRequest
from workforce.reports.router import XLSX_MIME
from tests.conftest import make_department, make_user


async def _approved_leave(db, employee_id, start, end, days, leave_type=LeaveType.PAID):
    leave = LeaveRequest(
        employee_id=employee_id,
        leave_type=leave_type,
        start_date=start,
        end_date=end,
        days=Decimal(days),
        status=LeaveStatus.APPROVED,
    )
    db.add(leave)
    await db.commit()
    return leave


# ── Headcount ───────────────────────────────────────────────────────


async def test_headcount_groups_by_department(client, db, hr_headers):
    ops = await make_department(db, "Operations", "OPS")
    await make_user(db, department_id=ops.id)
    await make_user(db, department_id=ops.id)

    resp = await client.get("/api/v1/reports/headcount", headers=hr_headers)

    assert resp.status_code == 200
    data = resp.json()
    # HR user plus the two operators
    assert data["total"] == 3
    by_dept = {row["name"]: row["count"] for row in data["by_department"]}
    assert by_dept == {"Operations": 2, "Unassigned": 1}


async def test_headcount_excludes_terminated(client, db, hr_headers):
    leaver = await make_user(db)
    leaver.employee.employment_status = EmploymentStatus.TERMINATED
    await db.commit()

    data = (await client.get("/api/v1/reports/headcount", headers=hr_headers)).json()

    assert data["total"] == 1
    statuses = {row["status"]: row["count"] for row in data["by_status"]}
    assert statuses["TERMINATED"] == 1


# ── Absence ─────────────────────────────────────────────────────────


async def test_absence_report_totals(client, db, hr_headers, employee_user):
    emp_id = employee_user.employee.id
    await _approved_leave(db, emp_id, date(2026, 3, 2), date(2026, 3, 6), 5)
    await _approved_leave(db, emp_id, date(2026, 4, 13), date(2026, 4, 14), 2, LeaveType.SICK)
    # Outside the window
    await _approved_leave(db, emp_id, date(2025, 12, 1), date(2025, 12, 2), 2)

    resp = await client.get(
        "/api/v1/reports/absence?date_from=2026-01-01&date_to=2026-06-30",
        headers=hr_headers,
    )

    assert resp.status_code == 200
    data = resp.json()
    assert data["total_leaves"] == 2
    assert data["total_days_off"] == 7.0
    assert data["by_type"] == {"PAID": 5.0, "SICK": 2.0}


async def test_absence_report_needs_read_all(client, employee_headers):
    resp = await client.get("/api/v1/reports/absence", headers=employee_headers)
    assert resp.status_code == 403


# ── Dashboard ───────────────────────────────────────────────────────


async def test_dashboard_for_any_user(client, employee_headers):
    resp = await client.get("/api/v1/reports/dashboard", headers=employee_headers)

    assert resp.status_code == 200
    assert resp.json()["total_employees"] == 1


# ── Export ──────────────────────────────────────────────────────────


async def test_hr_exports_headcount_workbook(client, db, hr_headers):
    ops = await make_department(db, "Operations", "OPS")
    await make_user(db, department_id=ops.id)

    resp = await client.post(
        "/api/v1/reports/export",
        headers=hr_headers,
        json={"report_type": "headcount"},
    )

    assert resp.status_code == 200
    assert resp.headers["content-type"] == XLSX_MIME
    assert 'filename="headcount-' in resp.headers["content-disposition"]
    workbook = load_workbook(BytesIO(resp.content))
    rows = list(workbook.active.iter_rows(values_only=True))
    assert rows[0] == ("Group", "Name", "Count")
    assert len(rows) > 1


async def test_absence_export(client, db, hr_headers, employee_user):
    await _approved_leave(db, employee_user.employee.id, date(2026, 3, 2), date(2026, 3, 6), 5)

    resp = await client.post(
        "/api/v1/reports/export",
        headers=hr_headers,
        json={"report_type": "absence", "date_from": "2026-01-01", "date_to": "2026-12-31"},
    )

    assert resp.status_code == 200
    rows = list(load_workbook(BytesIO(resp.content)).active.iter_rows(values_only=True))
    assert len(rows) == 2


async def test_lead_cannot_export(client, lead_headers):
    resp = await client.post(
        "/api/v1/reports/export",
        headers=lead_headers,
        json={"report_type": "headcount"},
    )
    assert resp.status_code == 403


async def test_unknown_report_type(client, hr_headers):
    resp = await client.post(
        "/api/v1/reports/export",
        headers=hr_headers,
        json={"report_type": "salaries"},
    )
    assert resp.status_code == 400
