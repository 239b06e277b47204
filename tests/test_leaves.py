"""Leave API: filing, two-step approval, balance bookkeeping, cancellation."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy import select

from workforce.common.constants import LeaveType, UserRole
from workforce.leaves.models import LeaveBalance, LeavePolicy
from workforce.notifications.models import Notification
from tests.conftest import auth_headers_for, make_user

# Mon 2 Nov to Fri 6 Nov 2026: five business days
WEEK = {"start_date": "2026-11-02", "end_date": "2026-11-06"}


async def _give_balance(db, employee_id, total=20, leave_type=LeaveType.PAID):
    balance = LeaveBalance(
        employee_id=employee_id,
        leave_type=leave_type,
        year=2026,
        total_days=Decimal(total),
        carried_over=Decimal("0"),
        used_days=Decimal("0"),
        pending_days=Decimal("0"),
    )
    db.add(balance)
    await db.commit()
    return balance


async def _file(client, headers, leave_type="PAID", **dates):
    return await client.post(
        "/api/v1/leaves",
        headers=headers,
        json={"leave_type": leave_type, **(dates or WEEK)},
    )


async def _balance(client, headers, leave_type="PAID"):
    resp = await client.get("/api/v1/leaves/balances?year=2026", headers=headers)
    assert resp.status_code == 200
    return next(b for b in resp.json() if b["leave_type"] == leave_type)


# ── Filing ──────────────────────────────────────────────────────────


async def test_file_leave_reserves_pending_days(client, db, employee_user, employee_headers):
    await _give_balance(db, employee_user.employee.id)

    resp = await _file(client, employee_headers)

    assert resp.status_code == 201
    leave = resp.json()["leave_request"]
    assert leave["status"] == "PENDING"
    assert float(leave["days"]) == 5
    assert [a["step"] for a in leave["approvals"]] == [1, 2]

    balance = await _balance(client, employee_headers)
    assert float(balance["pending_days"]) == 5
    assert float(balance["available_days"]) == 15


async def test_weekend_only_leave_rejected(client, db, employee_user, employee_headers):
    await _give_balance(db, employee_user.employee.id)

    resp = await _file(client, employee_headers, start_date="2026-11-07", end_date="2026-11-08")

    assert resp.status_code == 400
    assert "business day" in resp.json()["detail"]


async def test_insufficient_balance(client, db, employee_user, employee_headers):
    await _give_balance(db, employee_user.employee.id, total=3)

    resp = await _file(client, employee_headers)

    assert resp.status_code == 400
    assert "Insufficient leave balance" in resp.json()["detail"]


async def test_overlapping_request_rejected(client, db, employee_user, employee_headers):
    await _give_balance(db, employee_user.employee.id)
    assert (await _file(client, employee_headers)).status_code == 201

    resp = await _file(client, employee_headers, start_date="2026-11-05", end_date="2026-11-10")

    assert resp.status_code == 400
    assert "Overlapping" in resp.json()["detail"]


async def test_balance_created_from_policy(client, db, employee_user, employee_headers):
    db.add(LeavePolicy(
        leave_type=LeaveType.SICK,
        contract_type=None,
        days_per_year=Decimal("30"),
        max_carry_over=Decimal("0"),
    ))
    await db.commit()

    resp = await _file(client, employee_headers, leave_type="SICK")

    assert resp.status_code == 201
    balance = await _balance(client, employee_headers, "SICK")
    assert float(balance["total_days"]) == 30


async def test_no_policy_and_no_balance(client, employee_headers):
    resp = await _file(client, employee_headers, leave_type="SICK")

    assert resp.status_code == 400
    assert "No leave policy" in resp.json()["detail"]


async def test_unpaid_leave_needs_no_balance(client, employee_headers):
    resp = await _file(client, employee_headers, leave_type="UNPAID")
    assert resp.status_code == 201


async def test_manager_notified_on_submission(client, db):
    lead = await make_user(db, role=UserRole.TEAM_LEAD)
    worker = await make_user(db, manager_id=lead.employee.id)
    await _give_balance(db, worker.employee.id)

    resp = await _file(client, await auth_headers_for(db, worker))

    assert resp.status_code == 201
    result = await db.execute(select(Notification).where(Notification.recipient_id == lead.id))
    assert len(result.scalars().all()) == 1


# ── Approval chain ──────────────────────────────────────────────────


async def test_two_step_approval_moves_days_to_used(
    client, db, employee_user, employee_headers, lead_headers, hr_headers,
):
    await _give_balance(db, employee_user.employee.id)
    leave_id = (await _file(client, employee_headers)).json()["leave_request"]["id"]

    first = await client.post(f"/api/v1/leaves/{leave_id}/approve", headers=lead_headers, json={})
    assert first.status_code == 200
    assert first.json()["status"] == "APPROVED_BY_LEAD"

    second = await client.post(
        f"/api/v1/leaves/{leave_id}/approve",
        headers=hr_headers,
        json={"comment": "Enjoy"},
    )
    assert second.status_code == 200
    assert second.json()["status"] == "APPROVED"

    balance = await _balance(client, employee_headers)
    assert float(balance["pending_days"]) == 0
    assert float(balance["used_days"]) == 5
    assert float(balance["available_days"]) == 15

    again = await client.post(f"/api/v1/leaves/{leave_id}/approve", headers=hr_headers, json={})
    assert again.status_code == 400
    assert "already fully approved" in again.json()["detail"]
    assert await _balance(client, employee_headers) == balance


async def test_lead_cannot_decide_hr_step(
    client, db, employee_user, employee_headers, lead_headers,
):
    await _give_balance(db, employee_user.employee.id)
    leave_id = (await _file(client, employee_headers)).json()["leave_request"]["id"]
    await client.post(f"/api/v1/leaves/{leave_id}/approve", headers=lead_headers, json={})

    resp = await client.post(f"/api/v1/leaves/{leave_id}/approve", headers=lead_headers, json={})

    assert resp.status_code == 403


async def test_employee_cannot_approve(client, db, employee_user, employee_headers):
    await _give_balance(db, employee_user.employee.id)
    leave_id = (await _file(client, employee_headers)).json()["leave_request"]["id"]

    resp = await client.post(f"/api/v1/leaves/{leave_id}/approve", headers=employee_headers, json={})

    assert resp.status_code == 403


async def test_reject_releases_pending_days(
    client, db, employee_user, employee_headers, lead_headers,
):
    await _give_balance(db, employee_user.employee.id)
    leave_id = (await _file(client, employee_headers)).json()["leave_request"]["id"]

    resp = await client.post(
        f"/api/v1/leaves/{leave_id}/reject",
        headers=lead_headers,
        json={"comment": "Busy week"},
    )

    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "REJECTED"
    assert all(a["status"] == "REJECTED" for a in data["approvals"])
    balance = await _balance(client, employee_headers)
    assert float(balance["pending_days"]) == 0


async def test_rejected_leave_cannot_be_approved(
    client, db, employee_user, employee_headers, lead_headers, hr_headers,
):
    await _give_balance(db, employee_user.employee.id)
    leave_id = (await _file(client, employee_headers)).json()["leave_request"]["id"]
    await client.post(f"/api/v1/leaves/{leave_id}/reject", headers=lead_headers, json={})

    resp = await client.post(f"/api/v1/leaves/{leave_id}/approve", headers=hr_headers, json={})

    assert resp.status_code == 400


# ── Cancellation ────────────────────────────────────────────────────


async def test_cancel_approved_leave_returns_used_days(
    client, db, employee_user, employee_headers, lead_headers, hr_headers,
):
    await _give_balance(db, employee_user.employee.id)
    leave_id = (await _file(client, employee_headers)).json()["leave_request"]["id"]
    await client.post(f"/api/v1/leaves/{leave_id}/approve", headers=lead_headers, json={})
    await client.post(f"/api/v1/leaves/{leave_id}/approve", headers=hr_headers, json={})

    resp = await client.post(f"/api/v1/leaves/{leave_id}/cancel", headers=employee_headers)

    assert resp.status_code == 200
    assert resp.json()["status"] == "CANCELLED"
    balance = await _balance(client, employee_headers)
    assert float(balance["used_days"]) == 0
    assert float(balance["available_days"]) == 20


async def test_only_owner_can_cancel(client, db, employee_user, employee_headers, hr_headers):
    await _give_balance(db, employee_user.employee.id)
    leave_id = (await _file(client, employee_headers)).json()["leave_request"]["id"]

    resp = await client.post(f"/api/v1/leaves/{leave_id}/cancel", headers=hr_headers)

    assert resp.status_code == 403


# ── Visibility ──────────────────────────────────────────────────────


async def test_colleague_cannot_view_request(client, db, employee_user, employee_headers):
    await _give_balance(db, employee_user.employee.id)
    leave_id = (await _file(client, employee_headers)).json()["leave_request"]["id"]
    colleague = await make_user(db)

    resp = await client.get(
        f"/api/v1/leaves/{leave_id}",
        headers=await auth_headers_for(db, colleague),
    )

    assert resp.status_code == 403


async def test_absence_calendar_lists_each_day(
    client, db, employee_user, employee_headers, hr_headers,
):
    await _give_balance(db, employee_user.employee.id)
    leave_id = (await _file(client, employee_headers)).json()["leave_request"]["id"]
    await client.post(f"/api/v1/leaves/{leave_id}/approve", headers=hr_headers, json={})

    resp = await client.get(
        "/api/v1/leaves/calendar?date_from=2026-11-01&date_to=2026-11-30",
        headers=hr_headers,
    )

    assert resp.status_code == 200
    calendar = resp.json()["calendar"]
    assert str(date(2026, 11, 2)) in calendar
    assert str(date(2026, 11, 6)) in calendar
