"""User management, permission overrides and admin reference data."""

from __future__ import annotations

from tests.conftest import DEFAULT_PASSWORD, auth_headers_for, make_user
from workforce.common.constants import UserRole


def _new_user(email="new.hire@example.com", role="EMPLOYEE", **extra):
    body = {
        "email": email,
        "password": DEFAULT_PASSWORD,
        "role": role,
        "first_name": "Nadia",
        "last_name": "Stoeva",
    }
    body.update(extra)
    return body


# ── Users ───────────────────────────────────────────────────────────


async def test_admin_creates_user_with_profile(client, admin_headers):
    resp = await client.post("/api/v1/users", headers=admin_headers, json=_new_user())

    assert resp.status_code == 201
    data = resp.json()
    assert data["email"] == "new.hire@example.com"
    assert data["must_change_password"] is True
    assert data["employee"]["first_name"] == "Nadia"

    login = await client.post(
        "/api/v1/auth/login",
        json={"email": "new.hire@example.com", "password": DEFAULT_PASSWORD},
    )
    assert login.status_code == 200


async def test_hr_cannot_manage_users(client, hr_headers):
    resp = await client.post("/api/v1/users", headers=hr_headers, json=_new_user())
    assert resp.status_code == 403


async def test_duplicate_email_conflict(client, admin_headers, employee_user):
    resp = await client.post(
        "/api/v1/users",
        headers=admin_headers,
        json=_new_user(email=employee_user.email.upper()),
    )
    assert resp.status_code == 409


async def test_weak_password_rejected(client, admin_headers):
    resp = await client.post(
        "/api/v1/users",
        headers=admin_headers,
        json=_new_user(password="short"),
    )
    assert resp.status_code == 400
    assert "password" in resp.json()["errors"]


async def test_seat_limit_blocks_new_accounts(client, admin_headers, employee_user):
    limited = await client.put("/api/v1/admin/license", headers=admin_headers, json={"max_users": 2})
    assert limited.json()["remaining"] == 0

    resp = await client.post("/api/v1/users", headers=admin_headers, json=_new_user())

    assert resp.status_code == 403
    assert "User limit reached (2)" in resp.json()["detail"]


async def test_deactivation_frees_a_seat(client, admin_headers, employee_user):
    await client.put("/api/v1/admin/license", headers=admin_headers, json={"max_users": 2})

    off = await client.post(f"/api/v1/users/{employee_user.id}/deactivate", headers=admin_headers)
    assert off.status_code == 200
    assert off.json()["status"] == "INACTIVE"

    created = await client.post("/api/v1/users", headers=admin_headers, json=_new_user())
    assert created.status_code == 201

    # Re-activating would exceed the limit again
    back = await client.post(f"/api/v1/users/{employee_user.id}/activate", headers=admin_headers)
    assert back.status_code == 403


async def test_deactivation_revokes_sessions(client, db, admin_headers, employee_user, employee_headers):
    await client.post(f"/api/v1/users/{employee_user.id}/deactivate", headers=admin_headers)

    me = await client.get("/api/v1/auth/me", headers=employee_headers)

    assert me.status_code == 401


async def test_cannot_deactivate_self(client, admin_user, admin_headers):
    resp = await client.post(f"/api/v1/users/{admin_user.id}/deactivate", headers=admin_headers)
    assert resp.status_code == 400


async def test_only_super_admin_grants_super_admin(client, db, employee_user):
    admin = await make_user(db, role=UserRole.ADMIN)
    headers = await auth_headers_for(db, admin)

    resp = await client.patch(
        f"/api/v1/users/{employee_user.id}",
        headers=headers,
        json={"role": "SUPER_ADMIN"},
    )

    assert resp.status_code == 403


async def test_role_change(client, admin_headers, employee_user):
    resp = await client.patch(
        f"/api/v1/users/{employee_user.id}",
        headers=admin_headers,
        json={"role": "TEAM_LEAD"},
    )

    assert resp.status_code == 200
    assert resp.json()["role"] == "TEAM_LEAD"
    audit = await client.get(
        "/api/v1/admin/audit-logs?action=USER_ROLE_CHANGED",
        headers=admin_headers,
    )
    assert audit.json()["meta"]["total"] == 1


async def test_list_users_filtered_by_role(client, admin_headers, employee_user, lead_user):
    resp = await client.get("/api/v1/users?role=TEAM_LEAD", headers=admin_headers)

    assert resp.status_code == 200
    assert [u["id"] for u in resp.json()["data"]] == [str(lead_user.id)]


# ── Permission overrides ────────────────────────────────────────────


async def test_override_grants_extra_permission(client, admin_headers, employee_user, employee_headers):
    before = await client.post(
        "/api/v1/reports/export", headers=employee_headers, json={"report_type": "headcount"},
    )
    assert before.status_code == 403

    resp = await client.put(
        f"/api/v1/permissions/users/{employee_user.id}",
        headers=admin_headers,
        json={"overrides": [{"permission": "reports:export", "granted": True}]},
    )
    assert resp.status_code == 200
    assert "reports:export" in resp.json()["effective"]

    after = await client.post(
        "/api/v1/reports/export", headers=employee_headers, json={"report_type": "headcount"},
    )
    assert after.status_code == 200


async def test_override_revokes_role_permission(client, admin_headers, employee_user, employee_headers):
    await client.put(
        f"/api/v1/permissions/users/{employee_user.id}",
        headers=admin_headers,
        json={"overrides": [{"permission": "messages:send", "granted": False}]},
    )

    mine = await client.get("/api/v1/permissions/me", headers=employee_headers)

    assert "messages:send" not in mine.json()
    assert "messages:read" in mine.json()


async def test_unknown_permission_rejects_whole_batch(client, admin_headers, employee_user):
    resp = await client.put(
        f"/api/v1/permissions/users/{employee_user.id}",
        headers=admin_headers,
        json={"overrides": [
            {"permission": "reports:export", "granted": True},
            {"permission": "rockets:launch", "granted": True},
        ]},
    )

    assert resp.status_code == 400
    current = await client.get(f"/api/v1/permissions/users/{employee_user.id}", headers=admin_headers)
    assert current.json()["overrides"] == []


async def test_catalog_lists_roles(client, admin_headers):
    resp = await client.get("/api/v1/permissions/catalog", headers=admin_headers)

    assert resp.status_code == 200
    assert "admin:license" in resp.json()["permissions"]
    assert "documents:delete" not in resp.json()["roles"]["TEAM_LEAD"]


# ── Departments / locations ─────────────────────────────────────────


async def test_department_crud(client, admin_headers, employee_headers):
    created = await client.post(
        "/api/v1/admin/departments",
        headers=admin_headers,
        json={"name": "Logistics", "code": "LOG"},
    )
    assert created.status_code == 201
    dept_id = created.json()["id"]

    dup = await client.post(
        "/api/v1/admin/departments",
        headers=admin_headers,
        json={"name": "Logistics"},
    )
    assert dup.status_code == 409

    renamed = await client.patch(
        f"/api/v1/admin/departments/{dept_id}",
        headers=admin_headers,
        json={"name": "Logistics & Supply"},
    )
    assert renamed.json()["name"] == "Logistics & Supply"

    listing = await client.get("/api/v1/admin/departments", headers=employee_headers)
    assert [d["name"] for d in listing.json()] == ["Logistics & Supply"]


async def test_employee_cannot_create_department(client, employee_headers):
    resp = await client.post(
        "/api/v1/admin/departments",
        headers=employee_headers,
        json={"name": "Shadow IT"},
    )
    assert resp.status_code == 403


async def test_location_create_and_update(client, admin_headers):
    created = await client.post(
        "/api/v1/admin/locations",
        headers=admin_headers,
        json={"name": "Plovdiv Warehouse", "city": "Plovdiv", "timezone": "Europe/Sofia"},
    )
    assert created.status_code == 201
    assert created.json()["employee_count"] == 0

    resp = await client.patch(
        f"/api/v1/admin/locations/{created.json()['id']}",
        headers=admin_headers,
        json={"is_active": False},
    )
    assert resp.json()["is_active"] is False


async def test_missing_location_404(client, admin_headers):
    resp = await client.patch(
        "/api/v1/admin/locations/00000000-0000-0000-0000-000000000000",
        headers=admin_headers,
        json={"name": "Nowhere"},
    )
    assert resp.status_code == 404


# ── Settings / license / policies ───────────────────────────────────


async def test_settings_upsert(client, admin_headers):
    resp = await client.put(
        "/api/v1/admin/settings",
        headers=admin_headers,
        json={"settings": {"company_name": "Acme Logistics"}},
    )

    assert resp.status_code == 200
    values = {s["key"]: s["value"] for s in resp.json()}
    assert values["company_name"] == "Acme Logistics"
    audit = await client.get(
        "/api/v1/admin/audit-logs?action=SETTINGS_CHANGED",
        headers=admin_headers,
    )
    assert audit.json()["data"][0]["after"] == {"company_name": "Acme Logistics"}


async def test_license_requires_super_admin(client, db):
    admin = await make_user(db, role=UserRole.ADMIN)

    resp = await client.put(
        "/api/v1/admin/license",
        headers=await auth_headers_for(db, admin),
        json={"max_users": 100},
    )

    assert resp.status_code == 403


async def test_license_status_counts(client, admin_headers, employee_user):
    resp = await client.get("/api/v1/admin/license", headers=admin_headers)

    data = resp.json()
    assert data["active_users"] == 2
    assert data["active_super_admins"] == 1
    assert data["remaining"] == data["max_users"] - 2


async def test_leave_policy_upsert(client, admin_headers):
    body = {"leave_type": "PAID", "days_per_year": "20", "min_notice_days": 3}
    first = await client.put("/api/v1/admin/policies/leave", headers=admin_headers, json=body)
    second = await client.put(
        "/api/v1/admin/policies/leave",
        headers=admin_headers,
        json={**body, "days_per_year": "22"},
    )

    assert first.status_code == 200
    assert second.json()["id"] == first.json()["id"]
    policies = await client.get("/api/v1/admin/policies/leave", headers=admin_headers)
    assert len(policies.json()) == 1
    assert float(policies.json()[0]["days_per_year"]) == 22.0


async def test_break_policy_defaults(client, admin_headers):
    resp = await client.get("/api/v1/admin/policies/break", headers=admin_headers)

    assert resp.status_code == 200
    assert resp.json()["max_breaks_per_day"] == 5
    assert resp.json()["max_minutes_per_break"] == 30
    assert resp.json()["max_total_minutes"] == 45


async def test_audit_log_needs_permission(client, hr_headers):
    resp = await client.get("/api/v1/admin/audit-logs", headers=hr_headers)
    assert resp.status_code == 403
