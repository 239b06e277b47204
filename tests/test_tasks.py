"""Task API: lifecycle, the proof gate, review and score recalculation."""

from __future__ import annotations

from tests.conftest import auth_headers_for, make_user

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def _pngs(count):
    return [("files", (f"proof-{i}.png", PNG, "image/png")) for i in range(count)]


async def _create_task(client, headers, assignee_id, **extra):
    resp = await client.post(
        "/api/v1/tasks",
        headers=headers,
        json={"title": "Restock the warehouse", "assignee_id": str(assignee_id), **extra},
    )
    assert resp.status_code == 201
    return resp.json()


async def _move(client, headers, task_id, status):
    return await client.post(
        f"/api/v1/tasks/{task_id}/status",
        headers=headers,
        json={"status": status},
    )


# ── Create / view ───────────────────────────────────────────────────


async def test_lead_creates_task(client, lead_headers, employee_user):
    task = await _create_task(client, lead_headers, employee_user.employee.id, priority="HIGH")

    assert task["status"] == "OPEN"
    assert task["priority"] == "HIGH"
    assert task["proofs"] == []


async def test_employee_cannot_create_task(client, employee_headers, employee_user):
    resp = await client.post(
        "/api/v1/tasks",
        headers=employee_headers,
        json={"title": "Self-assigned", "assignee_id": str(employee_user.employee.id)},
    )
    assert resp.status_code == 403


async def test_only_assignee_sees_task(client, db, lead_headers, employee_user, employee_headers):
    task = await _create_task(client, lead_headers, employee_user.employee.id)
    outsider = await make_user(db)

    mine = await client.get(f"/api/v1/tasks/{task['id']}", headers=employee_headers)
    theirs = await client.get(
        f"/api/v1/tasks/{task['id']}",
        headers=await auth_headers_for(db, outsider),
    )

    assert mine.status_code == 200
    assert theirs.status_code == 403


# ── Status and proofs ───────────────────────────────────────────────


async def test_submit_without_proofs_rejected(client, lead_headers, employee_user, employee_headers):
    task = await _create_task(client, lead_headers, employee_user.employee.id)
    assert (await _move(client, employee_headers, task["id"], "IN_PROGRESS")).status_code == 200

    resp = await _move(client, employee_headers, task["id"], "WAITING_FOR_REVIEW")

    assert resp.status_code == 400
    assert "Currently: 0" in resp.json()["detail"]


async def test_three_proofs_unlock_submission(client, lead_headers, employee_user, employee_headers):
    task = await _create_task(client, lead_headers, employee_user.employee.id)
    await _move(client, employee_headers, task["id"], "IN_PROGRESS")

    upload = await client.post(
        f"/api/v1/tasks/{task['id']}/proofs",
        headers=employee_headers,
        files=_pngs(3),
    )
    assert upload.status_code == 201
    assert len(upload.json()["proofs"]) == 3
    assert upload.json()["proofs"][0]["mime_type"] == "image/png"

    resp = await _move(client, employee_headers, task["id"], "WAITING_FOR_REVIEW")

    assert resp.status_code == 200
    assert resp.json()["status"] == "WAITING_FOR_REVIEW"
    assert resp.json()["completed_at"] is not None


async def test_proof_type_enforced(client, lead_headers, employee_user, employee_headers):
    task = await _create_task(client, lead_headers, employee_user.employee.id)

    resp = await client.post(
        f"/api/v1/tasks/{task['id']}/proofs",
        headers=employee_headers,
        files=[("files", ("notes.exe", b"MZ\x90\x00", "application/x-msdownload"))],
    )

    assert resp.status_code == 400


async def test_only_assignee_uploads_proofs(client, lead_headers, employee_user):
    task = await _create_task(client, lead_headers, employee_user.employee.id)

    resp = await client.post(
        f"/api/v1/tasks/{task['id']}/proofs",
        headers=lead_headers,
        files=_pngs(1),
    )

    assert resp.status_code == 403


async def test_status_change_cannot_approve(client, lead_headers, employee_user, employee_headers):
    task = await _create_task(client, lead_headers, employee_user.employee.id)

    resp = await _move(client, lead_headers, task["id"], "APPROVED")

    assert resp.status_code == 400
    assert "review" in resp.json()["detail"]


# ── Review ──────────────────────────────────────────────────────────


async def _submitted_task(client, lead_headers, employee_user, employee_headers):
    task = await _create_task(client, lead_headers, employee_user.employee.id)
    await _move(client, employee_headers, task["id"], "IN_PROGRESS")
    await client.post(f"/api/v1/tasks/{task['id']}/proofs", headers=employee_headers, files=_pngs(3))
    await _move(client, employee_headers, task["id"], "WAITING_FOR_REVIEW")
    return task


async def test_review_approves_and_recalculates_score(
    client, lead_headers, employee_user, employee_headers,
):
    task = await _submitted_task(client, lead_headers, employee_user, employee_headers)

    resp = await client.post(
        f"/api/v1/tasks/{task['id']}/review",
        headers=lead_headers,
        json={"status": "APPROVED", "rating": 5, "comment": "Spotless"},
    )

    assert resp.status_code == 200
    assert resp.json()["status"] == "APPROVED"
    assert resp.json()["rating"] == 5

    score = await client.get("/api/v1/scores/my", headers=employee_headers)
    assert score.status_code == 200
    data = score.json()
    assert data["approved_tasks"] == 1
    assert data["total_score"] == 90.0
    assert data["grade"] == "A"
    assert data["is_latest"] is True


async def test_rejected_task_can_be_reworked(client, lead_headers, employee_user, employee_headers):
    task = await _submitted_task(client, lead_headers, employee_user, employee_headers)

    rejected = await client.post(
        f"/api/v1/tasks/{task['id']}/review",
        headers=lead_headers,
        json={"status": "REJECTED", "rating": 2},
    )
    assert rejected.json()["status"] == "REJECTED"

    resp = await _move(client, employee_headers, task["id"], "IN_PROGRESS")
    assert resp.status_code == 200


async def test_review_requires_waiting_status(client, lead_headers, employee_user):
    task = await _create_task(client, lead_headers, employee_user.employee.id)

    resp = await client.post(
        f"/api/v1/tasks/{task['id']}/review",
        headers=lead_headers,
        json={"status": "APPROVED", "rating": 4},
    )

    assert resp.status_code == 400


async def test_approved_task_is_frozen(client, lead_headers, employee_user, employee_headers):
    task = await _submitted_task(client, lead_headers, employee_user, employee_headers)
    await client.post(
        f"/api/v1/tasks/{task['id']}/review",
        headers=lead_headers,
        json={"status": "APPROVED", "rating": 4},
    )

    edit = await client.patch(
        f"/api/v1/tasks/{task['id']}",
        headers=lead_headers,
        json={"title": "Renamed"},
    )
    more = await client.post(
        f"/api/v1/tasks/{task['id']}/proofs",
        headers=employee_headers,
        files=_pngs(1),
    )

    assert edit.status_code == 400
    assert more.status_code == 400


async def test_stats_counts_by_status(client, lead_headers, employee_user):
    await _create_task(client, lead_headers, employee_user.employee.id)
    await _create_task(client, lead_headers, employee_user.employee.id)

    resp = await client.get("/api/v1/tasks/stats", headers=lead_headers)

    assert resp.status_code == 200
    assert resp.json()["total"] == 2
    assert resp.json()["by_status"]["OPEN"] == 2
