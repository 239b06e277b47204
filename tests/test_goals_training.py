"""Goals with check-ins, and training catalog with enrollments."""

from __future__ import annotations

from sqlalchemy import select

from workforce.notifications.models import Notification
from tests.conftest import auth_headers_for, make_user


# ── Goals ───────────────────────────────────────────────────────────


async def test_employee_creates_own_goal(client, employee_user, employee_headers):
    resp = await client.post(
        "/api/v1/goals",
        headers=employee_headers,
        json={"title": "Forklift licence", "due_date": "2026-12-31"},
    )

    assert resp.status_code == 201
    data = resp.json()
    assert data["employee_id"] == str(employee_user.employee.id)
    assert data["status"] == "NOT_STARTED"
    assert data["progress"] == 0


async def test_employee_cannot_set_goal_for_others(client, db, employee_headers):
    other = await make_user(db)

    resp = await client.post(
        "/api/v1/goals",
        headers=employee_headers,
        json={"title": "Your goal", "employee_id": str(other.employee.id)},
    )

    assert resp.status_code == 403


async def test_personal_goal_needs_profile(client, db):
    bare = await make_user(db, with_employee=False)

    resp = await client.post(
        "/api/v1/goals",
        headers=await auth_headers_for(db, bare),
        json={"title": "Orphan"},
    )

    assert resp.status_code == 400


async def test_check_ins_drive_status(client, employee_headers):
    goal = (await client.post("/api/v1/goals", headers=employee_headers, json={"title": "Cut errors"})).json()

    first = await client.post(
        f"/api/v1/goals/{goal['id']}/check-in",
        headers=employee_headers,
        json={"progress": 40, "comment": "Halfway-ish"},
    )
    assert first.status_code == 201

    listing = await client.get("/api/v1/goals", headers=employee_headers)
    assert listing.json()["data"][0]["status"] == "ON_TRACK"

    await client.post(
        f"/api/v1/goals/{goal['id']}/check-in",
        headers=employee_headers,
        json={"progress": 100},
    )
    done = (await client.get("/api/v1/goals", headers=employee_headers)).json()["data"][0]
    assert done["status"] == "COMPLETED"
    assert done["completed_at"] is not None
    assert len(done["check_ins"]) == 2


async def test_company_goals_visible_to_all(client, db, hr_headers, employee_headers):
    await client.post(
        "/api/v1/goals",
        headers=hr_headers,
        json={"title": "Zero accidents", "is_company_goal": True},
    )
    await client.post("/api/v1/goals", headers=hr_headers, json={"title": "HR private"})

    listing = await client.get("/api/v1/goals", headers=employee_headers)

    assert [g["title"] for g in listing.json()["data"]] == ["Zero accidents"]


async def test_colleague_cannot_edit_goal(client, db, employee_headers):
    goal = (await client.post("/api/v1/goals", headers=employee_headers, json={"title": "Mine"})).json()
    colleague = await make_user(db)

    resp = await client.patch(
        f"/api/v1/goals/{goal['id']}",
        headers=await auth_headers_for(db, colleague),
        json={"progress": 90},
    )

    assert resp.status_code == 403


# ── Training ────────────────────────────────────────────────────────


async def _training(client, headers, **extra):
    body = {"title": "Forklift safety", "is_mandatory": True, "expiry_months": 12}
    body.update(extra)
    return await client.post("/api/v1/training", headers=headers, json=body)


async def test_enroll_skips_duplicates_and_unknown(client, db, hr_headers, employee_user):
    training = (await _training(client, hr_headers)).json()
    emp_id = str(employee_user.employee.id)

    first = await client.post(
        f"/api/v1/training/{training['id']}/enroll",
        headers=hr_headers,
        json={"employee_ids": [emp_id, "00000000-0000-0000-0000-000000000000"]},
    )
    again = await client.post(
        f"/api/v1/training/{training['id']}/enroll",
        headers=hr_headers,
        json={"employee_ids": [emp_id]},
    )

    assert first.json() == {"enrolled": 1, "skipped": 1}
    assert again.json() == {"enrolled": 0, "skipped": 1}
    notes = await db.execute(select(Notification).where(Notification.recipient_id == employee_user.id))
    assert len(notes.scalars().all()) == 1


async def test_employee_completes_enrollment(client, hr_headers, employee_user, employee_headers):
    training = (await _training(client, hr_headers)).json()
    await client.post(
        f"/api/v1/training/{training['id']}/enroll",
        headers=hr_headers,
        json={"employee_ids": [str(employee_user.employee.id)]},
    )

    mine = (await client.get("/api/v1/training/my-enrollments", headers=employee_headers)).json()
    assert mine[0]["status"] == "NOT_STARTED"
    assert mine[0]["expires_at"] is not None
    assert mine[0]["training"]["title"] == "Forklift safety"

    resp = await client.patch(
        f"/api/v1/training/enrollments/{mine[0]['id']}",
        headers=employee_headers,
        json={"status": "COMPLETED", "score": 92},
    )

    assert resp.status_code == 200
    assert resp.json()["status"] == "COMPLETED"
    assert resp.json()["started_at"] is not None
    report = (await client.get("/api/v1/training/report", headers=hr_headers)).json()
    assert report[0]["completed"] == 1
    assert report[0]["average_score"] == 92.0


async def test_colleague_cannot_update_enrollment(client, db, hr_headers, employee_user, employee_headers):
    training = (await _training(client, hr_headers)).json()
    await client.post(
        f"/api/v1/training/{training['id']}/enroll",
        headers=hr_headers,
        json={"employee_ids": [str(employee_user.employee.id)]},
    )
    enrollment = (await client.get("/api/v1/training/my-enrollments", headers=employee_headers)).json()[0]
    colleague = await make_user(db)

    resp = await client.patch(
        f"/api/v1/training/enrollments/{enrollment['id']}",
        headers=await auth_headers_for(db, colleague),
        json={"status": "COMPLETED"},
    )

    assert resp.status_code == 403


async def test_employee_cannot_create_training(client, employee_headers):
    resp = await _training(client, employee_headers)
    assert resp.status_code == 403


async def test_list_filters_mandatory(client, hr_headers, employee_headers):
    await _training(client, hr_headers)
    await _training(client, hr_headers, title="Excel basics", is_mandatory=False)

    resp = await client.get("/api/v1/training?mandatory=true", headers=employee_headers)

    assert [t["title"] for t in resp.json()["data"]] == ["Forklift safety"]
