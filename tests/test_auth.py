"""Auth API: login, lockout, sessions, refresh rotation, password change."""

from __future__ import annotations

from sqlalchemy import select

from workforce.auth.models import User, UserSession
from workforce.common.constants import UserRole, UserStatus
from tests.conftest import DEFAULT_PASSWORD, auth_headers_for, make_user


async def _login(client, email, password=DEFAULT_PASSWORD):
    return await client.post(
        "/api/v1/auth/login",
        json={"email": email, "password": password},
    )


# ── Login ───────────────────────────────────────────────────────────


async def test_login_returns_token_pair_and_user(client, db):
    user = await make_user(db, role=UserRole.HR, first_name="Maria", last_name="Hristova")

    resp = await _login(client, user.email)

    assert resp.status_code == 200
    data = resp.json()
    assert data["access_token"]
    assert data["refresh_token"]
    assert data["token_type"] == "bearer"
    assert data["expires_in"] > 0
    assert data["user"]["email"] == user.email
    assert data["user"]["role"] == "HR"
    assert data["user"]["display_name"] == "Maria Hristova"


async def test_login_wrong_password(client, db):
    user = await make_user(db)

    resp = await _login(client, user.email, "Wrong#Password1")

    assert resp.status_code == 401
    assert resp.json()["detail"] == "Invalid email or password"


async def test_login_unknown_email_same_message(client):
    resp = await _login(client, "nobody@example.com")

    assert resp.status_code == 401
    assert resp.json()["detail"] == "Invalid email or password"


async def test_login_inactive_user_rejected(client, db):
    user = await make_user(db, status=UserStatus.INACTIVE)

    resp = await _login(client, user.email)

    assert resp.status_code == 401


async def test_account_locks_after_repeated_failures(client, db):
    user = await make_user(db)

    for _ in range(5):
        resp = await _login(client, user.email, "Wrong#Password1")
        assert resp.status_code == 401

    await db.refresh(user)
    assert user.locked_until is not None
    assert user.failed_login_attempts == 0


async def test_failed_attempts_reset_on_success(client, db):
    user = await make_user(db)

    await _login(client, user.email, "Wrong#Password1")
    await _login(client, user.email, "Wrong#Password1")
    resp = await _login(client, user.email)

    assert resp.status_code == 200
    await db.refresh(user)
    assert user.failed_login_attempts == 0


# ── Current user ────────────────────────────────────────────────────


async def test_me_includes_permissions(client, employee_headers, employee_user):
    resp = await client.get("/api/v1/auth/me", headers=employee_headers)

    assert resp.status_code == 200
    data = resp.json()
    assert data["id"] == str(employee_user.id)
    assert "time:write" in data["permissions"]
    assert "employees:write" not in data["permissions"]
    assert data["direct_reports_count"] == 0


async def test_me_counts_direct_reports(client, db):
    lead = await make_user(db, role=UserRole.TEAM_LEAD)
    await make_user(db, manager_id=lead.employee.id)
    await make_user(db, manager_id=lead.employee.id)
    headers = await auth_headers_for(db, lead)

    resp = await client.get("/api/v1/auth/me", headers=headers)

    assert resp.json()["direct_reports_count"] == 2


async def test_me_requires_token(client):
    resp = await client.get("/api/v1/auth/me")
    assert resp.status_code == 401


async def test_me_rejects_garbage_token(client):
    resp = await client.get(
        "/api/v1/auth/me",
        headers={"Authorization": "Bearer not-a-jwt"},
    )
    assert resp.status_code == 401


# ── Refresh ─────────────────────────────────────────────────────────


async def test_refresh_rotates_token_pair(client, db):
    user = await make_user(db)
    tokens = (await _login(client, user.email)).json()

    resp = await client.post(
        "/api/v1/auth/refresh",
        json={"refresh_token": tokens["refresh_token"]},
    )

    assert resp.status_code == 200
    new_tokens = resp.json()
    assert new_tokens["refresh_token"] != tokens["refresh_token"]
    me = await client.get(
        "/api/v1/auth/me",
        headers={"Authorization": f"Bearer {new_tokens['access_token']}"},
    )
    assert me.status_code == 200


async def test_refresh_token_reuse_revokes_everything(client, db):
    user = await make_user(db)
    tokens = (await _login(client, user.email)).json()
    rotated = (await client.post(
        "/api/v1/auth/refresh",
        json={"refresh_token": tokens["refresh_token"]},
    )).json()

    replay = await client.post(
        "/api/v1/auth/refresh",
        json={"refresh_token": tokens["refresh_token"]},
    )

    assert replay.status_code == 401
    me = await client.get(
        "/api/v1/auth/me",
        headers={"Authorization": f"Bearer {rotated['access_token']}"},
    )
    assert me.status_code == 401


async def test_refresh_rejects_access_token(client, db):
    user = await make_user(db)
    tokens = (await _login(client, user.email)).json()

    resp = await client.post(
        "/api/v1/auth/refresh",
        json={"refresh_token": tokens["access_token"]},
    )

    assert resp.status_code == 401


# ── Logout ──────────────────────────────────────────────────────────


async def test_logout_revokes_session(client, employee_headers):
    resp = await client.post("/api/v1/auth/logout", headers=employee_headers)
    assert resp.status_code == 200

    me = await client.get("/api/v1/auth/me", headers=employee_headers)
    assert me.status_code == 401


async def test_logout_all_revokes_other_sessions(client, db, employee_user):
    first = await auth_headers_for(db, employee_user)
    second = await auth_headers_for(db, employee_user)

    resp = await client.post("/api/v1/auth/logout-all", headers=first)

    assert resp.status_code == 200
    assert (await client.get("/api/v1/auth/me", headers=second)).status_code == 401

    result = await db.execute(
        select(UserSession).where(
            UserSession.user_id == employee_user.id,
            UserSession.is_revoked.is_(False),
        ),
    )
    assert result.scalars().all() == []


# ── Password change ─────────────────────────────────────────────────


async def test_change_password_keeps_current_session(client, db, employee_user):
    current = await auth_headers_for(db, employee_user)
    other = await auth_headers_for(db, employee_user)

    resp = await client.post(
        "/api/v1/auth/change-password",
        headers=current,
        json={"current_password": DEFAULT_PASSWORD, "new_password": "Brand#NewPass77"},
    )

    assert resp.status_code == 200
    assert (await client.get("/api/v1/auth/me", headers=current)).status_code == 200
    assert (await client.get("/api/v1/auth/me", headers=other)).status_code == 401
    assert (await _login(client, employee_user.email, "Brand#NewPass77")).status_code == 200


async def test_change_password_wrong_current(client, employee_headers):
    resp = await client.post(
        "/api/v1/auth/change-password",
        headers=employee_headers,
        json={"current_password": "Nope#Nope123", "new_password": "Brand#NewPass77"},
    )

    assert resp.status_code == 400
    assert "current_password" in resp.json()["errors"]


async def test_change_password_weak_rejected(client, employee_headers):
    resp = await client.post(
        "/api/v1/auth/change-password",
        headers=employee_headers,
        json={"current_password": DEFAULT_PASSWORD, "new_password": "short"},
    )

    assert resp.status_code == 400


async def test_user_row_tracks_last_login(client, db):
    user = await make_user(db)

    await _login(client, user.email)

    row = (await db.execute(select(User).where(User.id == user.id))).scalars().first()
    await db.refresh(row)
    assert row.last_login_at is not None
