"""Profile photo API: upload, moderation, history."""

from __future__ import annotations

from tests.conftest import auth_headers_for, make_user

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


async def _upload(client, headers, employee_id, content=PNG, mime="image/png"):
    return await client.post(
        f"/api/v1/photos/upload/{employee_id}",
        headers=headers,
        files={"photo": ("me.png", content, mime)},
    )


async def test_upload_own_photo_is_pending(client, employee_user, employee_headers):
    resp = await _upload(client, employee_headers, employee_user.employee.id)

    assert resp.status_code == 201
    data = resp.json()
    assert data["status"] == "PENDING"
    assert data["is_active"] is False
    assert data["file_url"].startswith("/uploads/photos/")


async def test_cannot_upload_for_someone_else(client, db, employee_headers):
    other = await make_user(db)

    resp = await _upload(client, employee_headers, other.employee.id)

    assert resp.status_code == 403


async def test_photo_must_be_an_image(client, employee_user, employee_headers):
    resp = await _upload(client, employee_headers, employee_user.employee.id, b"%PDF-1.4", "application/pdf")
    assert resp.status_code == 400


async def test_approve_sets_profile_photo(client, employee_user, employee_headers, hr_headers):
    photo = (await _upload(client, employee_headers, employee_user.employee.id)).json()

    pending = await client.get("/api/v1/photos/pending", headers=hr_headers)
    assert [p["id"] for p in pending.json()] == [photo["id"]]

    resp = await client.post(f"/api/v1/photos/{photo['id']}/approve", headers=hr_headers)

    assert resp.status_code == 200
    assert resp.json()["status"] == "APPROVED"
    assert resp.json()["is_active"] is True
    me = await client.get("/api/v1/auth/me", headers=employee_headers)
    assert me.json()["photo_url"] == photo["file_url"]
    assert (await client.get("/api/v1/photos/pending", headers=hr_headers)).json() == []


async def test_second_approval_replaces_active_photo(
    client, employee_user, employee_headers, hr_headers,
):
    emp_id = employee_user.employee.id
    first = (await _upload(client, employee_headers, emp_id)).json()
    await client.post(f"/api/v1/photos/{first['id']}/approve", headers=hr_headers)
    second = (await _upload(client, employee_headers, emp_id)).json()
    await client.post(f"/api/v1/photos/{second['id']}/approve", headers=hr_headers)

    history = await client.get(f"/api/v1/photos/history/{emp_id}", headers=employee_headers)

    active = [p["id"] for p in history.json() if p["is_active"]]
    assert active == [second["id"]]


async def test_reject_keeps_previous_photo(client, employee_user, employee_headers, hr_headers):
    photo = (await _upload(client, employee_headers, employee_user.employee.id)).json()

    resp = await client.post(
        f"/api/v1/photos/{photo['id']}/reject",
        headers=hr_headers,
        json={"comment": "Face not visible"},
    )

    assert resp.status_code == 200
    assert resp.json()["status"] == "REJECTED"
    assert resp.json()["review_comment"] == "Face not visible"
    me = await client.get("/api/v1/auth/me", headers=employee_headers)
    assert me.json()["photo_url"] is None

    again = await client.post(f"/api/v1/photos/{photo['id']}/approve", headers=hr_headers)
    assert again.status_code == 400


async def test_employee_cannot_moderate(client, employee_user, employee_headers):
    photo = (await _upload(client, employee_headers, employee_user.employee.id)).json()

    resp = await client.post(f"/api/v1/photos/{photo['id']}/approve", headers=employee_headers)

    assert resp.status_code == 403


async def test_history_hidden_from_colleagues(client, db, employee_user, employee_headers):
    await _upload(client, employee_headers, employee_user.employee.id)
    colleague = await make_user(db)

    resp = await client.get(
        f"/api/v1/photos/history/{employee_user.employee.id}",
        headers=await auth_headers_for(db, colleague),
    )

    assert resp.status_code == 403
