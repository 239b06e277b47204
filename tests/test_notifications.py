"""Notification inbox: listing, filters, single and bulk mark-as-read."""

from __future__ import annotations

import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from workforce.common.constants import NotificationType
from workforce.notifications.models import Notification
from workforce.notifications.service import NotificationService
from tests.conftest import auth_headers_for, make_user


# ── Helpers ─────────────────────────────────────────────────────────


async def _notify(
    db: AsyncSession,
    recipient_id: uuid.UUID,
    title: str = "Shift published",
    type: NotificationType = NotificationType.GENERAL,
) -> Notification:
    notification = await NotificationService.create_notification(
        db,
        recipient_id=recipient_id,
        type=type,
        title=title,
        message=f"{title} (details)",
    )
    await db.commit()
    return notification


# ── Listing ─────────────────────────────────────────────────────────


async def test_list_own_notifications(client, db, employee_user, employee_headers, lead_user):
    await _notify(db, employee_user.id, "One")
    await _notify(db, employee_user.id, "Two")
    await _notify(db, lead_user.id, "Not mine")

    resp = await client.get("/api/v1/notifications", headers=employee_headers)

    assert resp.status_code == 200
    body = resp.json()
    assert body["meta"]["total"] == 2
    assert body["meta"]["unread"] == 2
    assert {n["title"] for n in body["data"]} == {"One", "Two"}


async def test_filter_by_type(client, db, employee_user, employee_headers):
    await _notify(db, employee_user.id, "Leave", NotificationType.LEAVE_APPROVED)
    await _notify(db, employee_user.id, "Other")

    resp = await client.get(
        "/api/v1/notifications?type=LEAVE_APPROVED",
        headers=employee_headers,
    )

    assert [n["title"] for n in resp.json()["data"]] == ["Leave"]


async def test_empty_inbox(client, employee_headers):
    resp = await client.get("/api/v1/notifications", headers=employee_headers)

    assert resp.json()["data"] == []
    assert resp.json()["meta"]["unread"] == 0


# ── Mark read ───────────────────────────────────────────────────────


async def test_mark_single_read(client, db, employee_user, employee_headers):
    notification = await _notify(db, employee_user.id)

    resp = await client.put(
        f"/api/v1/notifications/{notification.id}/read",
        headers=employee_headers,
    )

    assert resp.status_code == 200
    assert resp.json()["is_read"] is True
    count = await client.get("/api/v1/notifications/unread-count", headers=employee_headers)
    assert count.json() == {"count": 0, "by_type": {}}


async def test_cannot_mark_someone_elses(client, db, employee_user):
    notification = await _notify(db, employee_user.id)
    other = await make_user(db)

    resp = await client.put(
        f"/api/v1/notifications/{notification.id}/read",
        headers=await auth_headers_for(db, other),
    )

    assert resp.status_code == 403


async def test_mark_unknown_404(client, employee_headers):
    resp = await client.put(f"/api/v1/notifications/{uuid.uuid4()}/read", headers=employee_headers)
    assert resp.status_code == 404


async def test_mark_all_read(client, db, employee_user, employee_headers):
    for i in range(3):
        await _notify(db, employee_user.id, f"N{i}")

    resp = await client.put("/api/v1/notifications/read-all", headers=employee_headers)

    assert resp.status_code == 200
    assert resp.json()["marked"] == 3
    unread = await client.get("/api/v1/notifications?is_read=false", headers=employee_headers)
    assert unread.json()["data"] == []


async def test_unauthenticated(client):
    resp = await client.get("/api/v1/notifications")
    assert resp.status_code == 401


# ── Badge counts per type ───────────────────────────────────────────


async def test_unread_count_by_type(client, db, employee_user, employee_headers):
    await _notify(db, employee_user.id, "Swap approved", NotificationType.SHIFT_CHANGE)
    await _notify(db, employee_user.id, "Hi", NotificationType.NEW_MESSAGE)
    await _notify(db, employee_user.id, "Hi again", NotificationType.NEW_MESSAGE)

    resp = await client.get("/api/v1/notifications/unread-count", headers=employee_headers)

    assert resp.json() == {
        "count": 3,
        "by_type": {"SHIFT_CHANGE": 1, "NEW_MESSAGE": 2},
    }


async def test_read_all_of_one_type(client, db, employee_user, employee_headers):
    await _notify(db, employee_user.id, "Swap approved", NotificationType.SHIFT_CHANGE)
    await _notify(db, employee_user.id, "Hi", NotificationType.NEW_MESSAGE)
    await _notify(db, employee_user.id, "Hi again", NotificationType.NEW_MESSAGE)

    resp = await client.put(
        "/api/v1/notifications/read-all?type=NEW_MESSAGE",
        headers=employee_headers,
    )

    assert resp.json() == {"marked": 2, "type": "NEW_MESSAGE"}
    listing = await client.get("/api/v1/notifications", headers=employee_headers)
    assert listing.json()["meta"]["unread"] == 1
    remaining = await client.get("/api/v1/notifications?is_read=false", headers=employee_headers)
    assert [n["title"] for n in remaining.json()["data"]] == ["Swap approved"]
