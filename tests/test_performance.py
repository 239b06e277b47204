"""Performance reviews, competencies and disciplinary records."""

from __future__ import annotations

from tests.conftest import auth_headers_for, make_user


async def _review(client, headers, employee_id, **extra):
    body = {"employee_id": str(employee_id), "period": "ANNUAL", "year": 2026}
    body.update(extra)
    return await client.post("/api/v1/performance/reviews", headers=headers, json=body)


# ── Reviews ─────────────────────────────────────────────────────────


async def test_lead_opens_review(client, lead_user, lead_headers, employee_user, employee_headers):
    resp = await _review(client, lead_headers, employee_user.employee.id)

    assert resp.status_code == 201
    data = resp.json()
    assert data["status"] == "DRAFT"
    assert data["reviewer_id"] == str(lead_user.employee.id)

    mine = await client.get("/api/v1/performance/reviews", headers=employee_headers)
    assert [r["id"] for r in mine.json()["data"]] == [data["id"]]


async def test_quarterly_needs_quarter(client, lead_headers, employee_user):
    resp = await _review(client, lead_headers, employee_user.employee.id, period="QUARTERLY")
    assert resp.status_code == 400


async def test_employee_cannot_open_review(client, employee_user, employee_headers):
    resp = await _review(client, employee_headers, employee_user.employee.id)
    assert resp.status_code == 403


async def test_review_hidden_from_colleagues(client, db, lead_headers, employee_user):
    review = (await _review(client, lead_headers, employee_user.employee.id)).json()
    colleague = await make_user(db)

    resp = await client.get(
        f"/api/v1/performance/reviews/{review['id']}",
        headers=await auth_headers_for(db, colleague),
    )

    assert resp.status_code == 403


async def test_complete_and_acknowledge(client, lead_headers, employee_user, employee_headers):
    review = (await _review(client, lead_headers, employee_user.employee.id)).json()
    competency = (await client.post(
        "/api/v1/performance/competencies",
        headers=lead_headers,
        json={"name": "Teamwork", "max_score": 5},
    )).json()

    early = await client.post(
        f"/api/v1/performance/reviews/{review['id']}/acknowledge",
        headers=employee_headers,
        json={},
    )
    assert early.status_code == 400

    completed = await client.patch(
        f"/api/v1/performance/reviews/{review['id']}",
        headers=lead_headers,
        json={
            "status": "COMPLETED",
            "overall_score": 82,
            "competency_scores": [{"competency_id": competency["id"], "score": 4}],
        },
    )
    assert completed.status_code == 200
    assert completed.json()["competency_scores"][0]["competency"]["name"] == "Teamwork"

    ack = await client.post(
        f"/api/v1/performance/reviews/{review['id']}/acknowledge",
        headers=employee_headers,
        json={"employee_comments": "Agreed."},
    )
    assert ack.status_code == 200
    assert ack.json()["status"] == "ACKNOWLEDGED"
    assert ack.json()["acknowledged_at"] is not None

    frozen = await client.patch(
        f"/api/v1/performance/reviews/{review['id']}",
        headers=lead_headers,
        json={"overall_score": 90},
    )
    assert frozen.status_code == 400


async def test_review_cannot_move_backwards(client, lead_headers, employee_user):
    review = (await _review(client, lead_headers, employee_user.employee.id)).json()
    await client.patch(
        f"/api/v1/performance/reviews/{review['id']}",
        headers=lead_headers,
        json={"status": "IN_PROGRESS"},
    )

    resp = await client.patch(
        f"/api/v1/performance/reviews/{review['id']}",
        headers=lead_headers,
        json={"status": "DRAFT"},
    )

    assert resp.status_code == 400


async def test_competency_score_capped(client, lead_headers, employee_user):
    review = (await _review(client, lead_headers, employee_user.employee.id)).json()
    competency = (await client.post(
        "/api/v1/performance/competencies",
        headers=lead_headers,
        json={"name": "Punctuality", "max_score": 5},
    )).json()

    resp = await client.patch(
        f"/api/v1/performance/reviews/{review['id']}",
        headers=lead_headers,
        json={"competency_scores": [{"competency_id": competency["id"], "score": 7}]},
    )

    assert resp.status_code == 400


async def test_duplicate_competency(client, lead_headers):
    body = {"name": "Safety"}
    await client.post("/api/v1/performance/competencies", headers=lead_headers, json=body)

    resp = await client.post("/api/v1/performance/competencies", headers=lead_headers, json=body)

    assert resp.status_code == 409


# ── Disciplinary ────────────────────────────────────────────────────


async def test_disciplinary_record(client, hr_headers, lead_headers, employee_user, employee_headers):
    emp_id = str(employee_user.employee.id)

    created = await client.post(
        "/api/v1/performance/disciplinary",
        headers=hr_headers,
        json={"employee_id": emp_id, "type": "WRITTEN", "reason": "Repeated late arrival"},
    )
    assert created.status_code == 201
    assert created.json()["is_active"] is True

    listed = await client.get(f"/api/v1/performance/disciplinary/{emp_id}", headers=lead_headers)
    assert [r["type"] for r in listed.json()] == ["WRITTEN"]

    hidden = await client.get(f"/api/v1/performance/disciplinary/{emp_id}", headers=employee_headers)
    assert hidden.status_code == 403
