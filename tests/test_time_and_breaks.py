"""Time tracking and break API: punches, corrections, timesheets, break limits."""

from __future__ import annotations

from datetime import timedelta

from sqlalchemy import select

from workforce.breaks.models import Break
from workforce.common.constants import BreakCategory, BreakStatus, UserRole
from workforce.common.dates import utcnow
from workforce.notifications.models import Notification
from tests.conftest import auth_headers_for, make_user


# ── Clock in / out ──────────────────────────────────────────────────


async def test_clock_in_then_out(client, employee_headers, employee_user):
    clock_in = await client.post("/api/v1/time/clock-in", headers=employee_headers, json={})
    assert clock_in.status_code == 201
    assert clock_in.json()["type"] == "CLOCK_IN"
    assert clock_in.json()["employee_id"] == str(employee_user.employee.id)

    clock_out = await client.post(
        "/api/v1/time/clock-out",
        headers=employee_headers,
        json={"notes": "Closing shift"},
    )
    assert clock_out.status_code == 201
    assert clock_out.json()["type"] == "CLOCK_OUT"


async def test_double_clock_in_rejected(client, employee_headers):
    await client.post("/api/v1/time/clock-in", headers=employee_headers, json={})

    resp = await client.post("/api/v1/time/clock-in", headers=employee_headers, json={})

    assert resp.status_code == 400
    assert "Already clocked in" in resp.json()["detail"]


async def test_clock_out_without_clock_in(client, employee_headers):
    resp = await client.post("/api/v1/time/clock-out", headers=employee_headers, json={})

    assert resp.status_code == 400
    assert "No active clock-in" in resp.json()["detail"]


async def test_user_without_profile_cannot_punch(client, db):
    bare = await make_user(db, with_employee=False)

    resp = await client.post(
        "/api/v1/time/clock-in",
        headers=await auth_headers_for(db, bare),
        json={},
    )

    assert resp.status_code == 403


async def test_entries_are_private(client, db, employee_user, employee_headers):
    await client.post("/api/v1/time/clock-in", headers=employee_headers, json={})
    colleague = await make_user(db)

    resp = await client.get(
        f"/api/v1/time?employee_id={employee_user.employee.id}",
        headers=await auth_headers_for(db, colleague),
    )

    assert resp.status_code == 403


# ── Corrections ─────────────────────────────────────────────────────


async def test_correction_needs_approval(client, employee_headers, lead_headers):
    yesterday = (utcnow() - timedelta(days=1)).replace(hour=8, minute=0, second=0, microsecond=0)

    filed = await client.post(
        "/api/v1/time/corrections",
        headers=employee_headers,
        json={"type": "CLOCK_IN", "timestamp": yesterday.isoformat(), "notes": "Forgot to punch"},
    )
    assert filed.status_code == 201
    assert filed.json()["is_manual"] is True
    assert filed.json()["correction_status"] == "PENDING"

    denied = await client.post(
        f"/api/v1/time/corrections/{filed.json()['id']}/approve",
        headers=employee_headers,
    )
    assert denied.status_code == 403

    approved = await client.post(
        f"/api/v1/time/corrections/{filed.json()['id']}/approve",
        headers=lead_headers,
    )
    assert approved.status_code == 200
    assert approved.json()["correction_status"] == "APPROVED"

    again = await client.post(
        f"/api/v1/time/corrections/{filed.json()['id']}/approve",
        headers=lead_headers,
    )
    assert again.status_code == 400


async def test_future_correction_rejected(client, employee_headers):
    tomorrow = utcnow() + timedelta(days=1)

    resp = await client.post(
        "/api/v1/time/corrections",
        headers=employee_headers,
        json={"type": "CLOCK_OUT", "timestamp": tomorrow.isoformat()},
    )

    assert resp.status_code == 400


async def test_punch_cannot_be_approved_as_correction(client, employee_headers, lead_headers):
    punch = (await client.post("/api/v1/time/clock-in", headers=employee_headers, json={})).json()

    resp = await client.post(f"/api/v1/time/corrections/{punch['id']}/approve", headers=lead_headers)

    assert resp.status_code == 400


async def test_timesheet_for_current_month(client, employee_headers, employee_user):
    await client.post("/api/v1/time/clock-in", headers=employee_headers, json={})
    await client.post("/api/v1/time/clock-out", headers=employee_headers, json={})
    now = utcnow()

    resp = await client.get(
        f"/api/v1/time/timesheet?year={now.year}&month={now.month}",
        headers=employee_headers,
    )

    assert resp.status_code == 200
    data = resp.json()
    assert data["employee_id"] == str(employee_user.employee.id)
    assert len(data["days"]) == 1
    assert len(data["days"][0]["entries"]) == 2


# ── Breaks ──────────────────────────────────────────────────────────


async def test_break_start_and_end(client, employee_headers):
    started = await client.post(
        "/api/v1/breaks/start",
        headers=employee_headers,
        json={"category": "LUNCH"},
    )
    assert started.status_code == 201
    assert started.json()["status"] == "ACTIVE"

    active = await client.get("/api/v1/breaks/active", headers=employee_headers)
    assert active.json()["id"] == started.json()["id"]

    ended = await client.post("/api/v1/breaks/end", headers=employee_headers)
    assert ended.status_code == 200
    body = ended.json()
    assert body["exceeded"] is False
    assert body["break"]["status"] == "COMPLETED"
    assert (await client.get("/api/v1/breaks/active", headers=employee_headers)).json() is None


async def test_one_active_break_at_a_time(client, employee_headers):
    await client.post("/api/v1/breaks/start", headers=employee_headers, json={})

    resp = await client.post("/api/v1/breaks/start", headers=employee_headers, json={})

    assert resp.status_code == 400


async def test_end_without_active_break(client, employee_headers):
    resp = await client.post("/api/v1/breaks/end", headers=employee_headers)
    assert resp.status_code == 404


async def test_long_break_is_exceeded_and_manager_alerted(client, db):
    lead = await make_user(db, role=UserRole.TEAM_LEAD)
    worker = await make_user(db, manager_id=lead.employee.id)
    db.add(Break(
        employee_id=worker.employee.id,
        category=BreakCategory.SMOKING,
        start_time=utcnow() - timedelta(minutes=45),
        status=BreakStatus.ACTIVE,
    ))
    await db.commit()

    resp = await client.post("/api/v1/breaks/end", headers=await auth_headers_for(db, worker))

    assert resp.status_code == 200
    body = resp.json()
    assert body["exceeded"] is True
    assert body["duration_minutes"] >= 45
    assert body["break"]["status"] == "EXCEEDED"
    alerts = await db.execute(select(Notification).where(Notification.recipient_id == lead.id))
    assert len(alerts.scalars().all()) == 1


async def test_daily_break_cap(client, db, employee_headers, admin_headers):
    policy = await client.put(
        "/api/v1/admin/policies/break",
        headers=admin_headers,
        json={"max_breaks_per_day": 1, "max_minutes_per_break": 15, "max_total_minutes": 30},
    )
    assert policy.status_code == 200

    await client.post("/api/v1/breaks/start", headers=employee_headers, json={})
    await client.post("/api/v1/breaks/end", headers=employee_headers)
    resp = await client.post("/api/v1/breaks/start", headers=employee_headers, json={})

    assert resp.status_code == 400
    assert "Maximum breaks per day (1)" in resp.json()["detail"]


async def test_limits_report_usage(client, employee_headers):
    await client.post("/api/v1/breaks/start", headers=employee_headers, json={})

    resp = await client.get("/api/v1/breaks/limits", headers=employee_headers)

    assert resp.status_code == 200
    data = resp.json()
    assert data["usage"]["breaks_taken"] == 1
    assert data["usage"]["has_active_break"] is True
    assert data["usage"]["breaks_remaining"] == 4
    assert data["limits"]["breaks_exceeded"] is False
