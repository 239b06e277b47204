"""Employee directory API: scoping, profile edits, org chart, timeline."""

from __future__ import annotations

from workforce.common.constants import UserRole
from tests.conftest import auth_headers_for, make_department, make_user


# ── Listing scope ───────────────────────────────────────────────────


async def test_hr_lists_everyone(client, db, hr_headers, employee_user, lead_user):
    resp = await client.get("/api/v1/employees", headers=hr_headers)

    assert resp.status_code == 200
    body = resp.json()
    assert body["meta"]["total"] == 3
    assert body["meta"]["page"] == 1
    assert body["meta"]["has_prev"] is False


async def test_employee_sees_only_self(client, db, employee_user, employee_headers):
    await make_user(db)

    resp = await client.get("/api/v1/employees", headers=employee_headers)

    ids = [e["id"] for e in resp.json()["data"]]
    assert ids == [str(employee_user.employee.id)]


async def test_lead_sees_direct_reports(client, db, lead_user, lead_headers):
    report = await make_user(db, manager_id=lead_user.employee.id)
    await make_user(db)

    resp = await client.get("/api/v1/employees", headers=lead_headers)

    ids = {e["id"] for e in resp.json()["data"]}
    assert ids == {str(lead_user.employee.id), str(report.employee.id)}


async def test_search_and_department_filter(client, db, hr_headers):
    ops = await make_department(db, "Operations", "OPS")
    await make_user(db, first_name="Stoyan", last_name="Kolev", department_id=ops.id)
    await make_user(db, first_name="Iva", last_name="Dimova")

    by_name = await client.get("/api/v1/employees?search=kolev", headers=hr_headers)
    by_dept = await client.get(f"/api/v1/employees?department_id={ops.id}", headers=hr_headers)

    assert [e["last_name"] for e in by_name.json()["data"]] == ["Kolev"]
    assert by_dept.json()["meta"]["total"] == 1
    assert by_dept.json()["data"][0]["department"]["name"] == "Operations"


# ── Get ─────────────────────────────────────────────────────────────


async def test_colleague_profile_forbidden(client, db, employee_headers):
    other = await make_user(db)

    resp = await client.get(f"/api/v1/employees/{other.employee.id}", headers=employee_headers)

    assert resp.status_code == 403


async def test_lead_views_report(client, db, lead_user, lead_headers):
    report = await make_user(db, manager_id=lead_user.employee.id, first_name="Nikola")

    resp = await client.get(f"/api/v1/employees/{report.employee.id}", headers=lead_headers)

    assert resp.status_code == 200
    assert resp.json()["first_name"] == "Nikola"
    assert resp.json()["manager_id"] == str(lead_user.employee.id)


async def test_unknown_employee_404(client, hr_headers):
    resp = await client.get(
        "/api/v1/employees/00000000-0000-0000-0000-000000000000",
        headers=hr_headers,
    )
    assert resp.status_code == 404


# ── Update ──────────────────────────────────────────────────────────


async def test_employee_edits_own_contact_fields(client, employee_user, employee_headers):
    resp = await client.patch(
        f"/api/v1/employees/{employee_user.employee.id}",
        headers=employee_headers,
        json={"phone": "+359 888 123 456", "emergency_contact_name": "Petar Ivanov"},
    )

    assert resp.status_code == 200
    assert resp.json()["phone"] == "+359 888 123 456"
    assert resp.json()["emergency_contact_name"] == "Petar Ivanov"


async def test_employee_cannot_change_own_job_title(client, employee_user, employee_headers):
    resp = await client.patch(
        f"/api/v1/employees/{employee_user.employee.id}",
        headers=employee_headers,
        json={"job_title": "Director"},
    )
    assert resp.status_code == 403


async def test_lead_edits_report_but_not_stranger(client, db, lead_user, lead_headers):
    report = await make_user(db, manager_id=lead_user.employee.id)
    stranger = await make_user(db)

    ok = await client.patch(
        f"/api/v1/employees/{report.employee.id}",
        headers=lead_headers,
        json={"job_title": "Senior Operator"},
    )
    denied = await client.patch(
        f"/api/v1/employees/{stranger.employee.id}",
        headers=lead_headers,
        json={"job_title": "Senior Operator"},
    )

    assert ok.status_code == 200
    assert ok.json()["job_title"] == "Senior Operator"
    assert denied.status_code == 403


async def test_empty_update_rejected(client, employee_user, hr_headers):
    resp = await client.patch(
        f"/api/v1/employees/{employee_user.employee.id}",
        headers=hr_headers,
        json={},
    )
    assert resp.status_code == 400


async def test_cannot_manage_self(client, employee_user, hr_headers):
    emp_id = str(employee_user.employee.id)

    resp = await client.patch(
        f"/api/v1/employees/{emp_id}",
        headers=hr_headers,
        json={"manager_id": emp_id},
    )

    assert resp.status_code == 400


async def test_duplicate_email_conflict(client, db, employee_user, hr_headers):
    other = await make_user(db, email="taken@example.com")

    resp = await client.patch(
        f"/api/v1/employees/{employee_user.employee.id}",
        headers=hr_headers,
        json={"email": other.email},
    )

    assert resp.status_code == 409


# ── Delete ──────────────────────────────────────────────────────────


async def test_admin_soft_deletes_employee(client, db, admin_headers, hr_headers):
    leaver = await make_user(db)

    resp = await client.delete(f"/api/v1/employees/{leaver.employee.id}", headers=admin_headers)

    assert resp.status_code == 204
    gone = await client.get(f"/api/v1/employees/{leaver.employee.id}", headers=hr_headers)
    assert gone.status_code == 404


async def test_hr_cannot_delete(client, employee_user, hr_headers):
    resp = await client.delete(f"/api/v1/employees/{employee_user.employee.id}", headers=hr_headers)
    assert resp.status_code == 403


async def test_cannot_delete_self(client, admin_user, admin_headers):
    resp = await client.delete(f"/api/v1/employees/{admin_user.employee.id}", headers=admin_headers)
    assert resp.status_code == 400


# ── Org chart / timeline ────────────────────────────────────────────


async def test_org_chart_nests_reports(client, db, employee_headers):
    boss = await make_user(db, role=UserRole.TEAM_LEAD, first_name="Boss", last_name="Aleksiev")
    await make_user(db, first_name="Report", last_name="Borisov", manager_id=boss.employee.id)

    resp = await client.get("/api/v1/employees/org-chart", headers=employee_headers)

    assert resp.status_code == 200
    roots = {node["name"]: node for node in resp.json()}
    assert "Report Borisov" not in roots
    assert [r["name"] for r in roots["Boss Aleksiev"]["reports"]] == ["Report Borisov"]


async def test_timeline_records_updates(client, employee_user, hr_headers):
    emp_id = employee_user.employee.id
    await client.patch(
        f"/api/v1/employees/{emp_id}",
        headers=hr_headers,
        json={"job_title": "Shift Supervisor"},
    )

    resp = await client.get(f"/api/v1/employees/{emp_id}/timeline", headers=hr_headers)

    assert resp.status_code == 200
    entry = resp.json()[0]
    assert entry["action"] == "UPDATE"
    assert entry["object_type"] == "employee"
    assert entry["after"] == {"job_title": "Shift Supervisor"}


async def test_timeline_needs_read_all(client, db, employee_user):
    lead = await make_user(db, role=UserRole.TEAM_LEAD)

    resp = await client.get(
        f"/api/v1/employees/{employee_user.employee.id}/timeline",
        headers=await auth_headers_for(db, lead),
    )

    assert resp.status_code == 403
