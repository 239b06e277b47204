"""Document API: upload, visibility rules, soft delete."""

from __future__ import annotations

from datetime import timedelta

from workforce.common.dates import utcnow
from tests.conftest import auth_headers_for, make_user

PDF = b"%PDF-1.4\n% minimal\n"


async def _upload(client, headers, title="Employment contract", **form):
    data = {"title": title, "category": "CONTRACT"}
    data.update({k: str(v) for k, v in form.items()})
    return await client.post(
        "/api/v1/documents",
        headers=headers,
        data=data,
        files={"file": ("contract.pdf", PDF, "application/pdf")},
    )


# ── Upload ──────────────────────────────────────────────────────────


async def test_hr_uploads_document(client, hr_headers, employee_user):
    resp = await _upload(client, hr_headers, employee_id=employee_user.employee.id)

    assert resp.status_code == 201
    data = resp.json()
    assert data["title"] == "Employment contract"
    assert data["file_name"] == "contract.pdf"
    assert data["mime_type"] == "application/pdf"
    assert data["file_url"].startswith("/uploads/documents/")
    assert data["version"] == 1


async def test_employee_cannot_upload(client, employee_headers):
    resp = await _upload(client, employee_headers)
    assert resp.status_code == 403


async def test_disallowed_type_rejected(client, hr_headers):
    resp = await client.post(
        "/api/v1/documents",
        headers=hr_headers,
        data={"title": "Script"},
        files={"file": ("run.sh", b"#!/bin/sh\n", "application/x-sh")},
    )
    assert resp.status_code == 400


# ── Visibility ──────────────────────────────────────────────────────


async def test_owner_sees_own_confidential_document(
    client, hr_headers, employee_user, employee_headers,
):
    doc = (await _upload(
        client, hr_headers, employee_id=employee_user.employee.id, is_confidential="true",
    )).json()

    resp = await client.get(f"/api/v1/documents/{doc['id']}", headers=employee_headers)

    assert resp.status_code == 200


async def test_assignee_sees_document(client, db, hr_headers, employee_user, employee_headers):
    other = await make_user(db)
    doc = (await _upload(
        client, hr_headers,
        employee_id=other.employee.id,
        assigned_to_id=employee_user.employee.id,
        is_confidential="true",
    )).json()

    resp = await client.get(f"/api/v1/documents/{doc['id']}", headers=employee_headers)

    assert resp.status_code == 200


async def test_colleague_cannot_see_personal_document(client, db, hr_headers, employee_headers):
    other = await make_user(db)
    doc = (await _upload(client, hr_headers, employee_id=other.employee.id)).json()

    resp = await client.get(f"/api/v1/documents/{doc['id']}", headers=employee_headers)

    assert resp.status_code == 403


async def test_shared_documents_visible_confidential_hidden(client, hr_headers, employee_headers):
    shared = (await _upload(client, hr_headers, title="Handbook")).json()
    secret = (await _upload(client, hr_headers, title="Board minutes", is_confidential="true")).json()

    listing = await client.get("/api/v1/documents", headers=employee_headers)

    assert listing.status_code == 200
    ids = {d["id"] for d in listing.json()["data"]}
    assert shared["id"] in ids
    assert secret["id"] not in ids
    direct = await client.get(f"/api/v1/documents/{secret['id']}", headers=employee_headers)
    assert direct.status_code == 403


async def test_user_without_profile_cannot_see_confidential(client, db, hr_headers):
    secret = (await _upload(client, hr_headers, title="Board minutes", is_confidential="true")).json()
    shared = (await _upload(client, hr_headers, title="Handbook")).json()
    bare = await make_user(db, with_employee=False)
    headers = await auth_headers_for(db, bare)

    listing = await client.get("/api/v1/documents", headers=headers)

    ids = {d["id"] for d in listing.json()["data"]}
    assert ids == {shared["id"]}
    assert (await client.get(f"/api/v1/documents/{secret['id']}", headers=headers)).status_code == 403


async def test_hr_sees_everything(client, db, hr_headers):
    other = await make_user(db)
    await _upload(client, hr_headers, employee_id=other.employee.id, is_confidential="true")
    await _upload(client, hr_headers, title="Handbook")

    listing = await client.get("/api/v1/documents", headers=hr_headers)

    assert listing.json()["meta"]["total"] == 2


# ── Update / delete ─────────────────────────────────────────────────


async def test_update_metadata(client, hr_headers):
    doc = (await _upload(client, hr_headers)).json()

    resp = await client.patch(
        f"/api/v1/documents/{doc['id']}",
        headers=hr_headers,
        json={"title": "Signed contract", "category": "DECLARATION"},
    )

    assert resp.status_code == 200
    assert resp.json()["title"] == "Signed contract"
    assert resp.json()["category"] == "DECLARATION"


async def test_delete_requires_permission_and_hides_document(client, hr_headers, lead_headers):
    doc = (await _upload(client, hr_headers)).json()

    denied = await client.delete(f"/api/v1/documents/{doc['id']}", headers=lead_headers)
    assert denied.status_code == 403

    deleted = await client.delete(f"/api/v1/documents/{doc['id']}", headers=hr_headers)
    assert deleted.status_code == 204
    assert (await client.get(f"/api/v1/documents/{doc['id']}", headers=hr_headers)).status_code == 404


async def test_expiring_window(client, hr_headers):
    soon = (utcnow() + timedelta(days=10)).isoformat()
    later = (utcnow() + timedelta(days=200)).isoformat()
    near = (await _upload(client, hr_headers, title="Visa", expires_at=soon)).json()
    await _upload(client, hr_headers, title="Passport", expires_at=later)

    resp = await client.get("/api/v1/documents/expiring?days=30", headers=hr_headers)

    assert resp.status_code == 200
    assert [d["id"] for d in resp.json()] == [near["id"]]
