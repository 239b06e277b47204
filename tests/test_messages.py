"""Messaging API: direct and group conversations, sending, unread tracking."""

from __future__ import annotations

from sqlalchemy import select

from workforce.notifications.models import Notification
from tests.conftest import auth_headers_for, make_user


async def _open(client, headers, *user_ids, title=None):
    body = {"participant_ids": [str(u) for u in user_ids]}
    if title:
        body["title"] = title
    return await client.post("/api/v1/messages/conversations", headers=headers, json=body)


async def _send(client, headers, conversation_id, content):
    return await client.post(
        f"/api/v1/messages/conversations/{conversation_id}/messages",
        headers=headers,
        data={"content": content},
    )


# ── Conversations ───────────────────────────────────────────────────


async def test_direct_conversation_is_reused(client, employee_headers, lead_user, lead_headers, employee_user):
    first = await _open(client, employee_headers, lead_user.id)
    assert first.status_code == 201
    assert first.json()["existing"] is False
    assert first.json()["is_group"] is False

    again = await _open(client, lead_headers, employee_user.id)

    assert again.json()["existing"] is True
    assert again.json()["id"] == first.json()["id"]


async def test_group_conversation(client, db, employee_headers, lead_user, hr_user):
    resp = await _open(client, employee_headers, lead_user.id, hr_user.id, title="Night shift")

    assert resp.status_code == 201
    assert resp.json()["is_group"] is True

    listing = await client.get("/api/v1/messages/conversations", headers=employee_headers)
    conv = listing.json()[0]
    assert conv["title"] == "Night shift"
    assert len(conv["participants"]) == 3


async def test_conversation_with_self_only_rejected(client, employee_headers, employee_user):
    resp = await _open(client, employee_headers, employee_user.id)
    assert resp.status_code == 400


# ── Sending ─────────────────────────────────────────────────────────


async def test_send_and_read_messages(client, employee_headers, lead_user, lead_headers):
    conv_id = (await _open(client, employee_headers, lead_user.id)).json()["id"]

    sent = await _send(client, employee_headers, conv_id, "Can I swap Friday?")
    assert sent.status_code == 201
    assert sent.json()["content"] == "Can I swap Friday?"
    assert sent.json()["attachments"] == []

    resp = await client.get(
        f"/api/v1/messages/conversations/{conv_id}/messages",
        headers=lead_headers,
    )
    assert resp.status_code == 200
    assert [m["content"] for m in resp.json()] == ["Can I swap Friday?"]


async def test_empty_message_rejected(client, employee_headers, lead_user):
    conv_id = (await _open(client, employee_headers, lead_user.id)).json()["id"]

    resp = await _send(client, employee_headers, conv_id, "   ")

    assert resp.status_code == 400


async def test_attachment_only_message(client, employee_headers, lead_user):
    conv_id = (await _open(client, employee_headers, lead_user.id)).json()["id"]

    resp = await client.post(
        f"/api/v1/messages/conversations/{conv_id}/messages",
        headers=employee_headers,
        files=[("attachments", ("roster.pdf", b"%PDF-1.4\n", "application/pdf"))],
    )

    assert resp.status_code == 201
    assert resp.json()["content"] is None
    assert resp.json()["attachments"][0]["file_name"] == "roster.pdf"


async def test_outsider_cannot_read_or_send(client, db, employee_headers, lead_user):
    conv_id = (await _open(client, employee_headers, lead_user.id)).json()["id"]
    outsider = await auth_headers_for(db, await make_user(db))

    read = await client.get(f"/api/v1/messages/conversations/{conv_id}/messages", headers=outsider)
    send = await _send(client, outsider, conv_id, "hello")

    assert read.status_code == 403
    assert send.status_code == 403


# ── Unread / mute ───────────────────────────────────────────────────


async def test_unread_until_marked_read(client, employee_headers, lead_user, lead_headers):
    conv_id = (await _open(client, employee_headers, lead_user.id)).json()["id"]
    await _send(client, employee_headers, conv_id, "Ping")

    count = await client.get("/api/v1/messages/unread-count", headers=lead_headers)
    assert count.json()["unread_count"] == 1
    sender_count = await client.get("/api/v1/messages/unread-count", headers=employee_headers)
    assert sender_count.json()["unread_count"] == 0

    marked = await client.post(f"/api/v1/messages/conversations/{conv_id}/read", headers=lead_headers)
    assert marked.status_code == 204

    count = await client.get("/api/v1/messages/unread-count", headers=lead_headers)
    assert count.json()["unread_count"] == 0


async def test_recipient_notified_unless_muted(client, db, employee_headers, lead_user, lead_headers):
    conv_id = (await _open(client, employee_headers, lead_user.id)).json()["id"]
    await _send(client, employee_headers, conv_id, "First")

    await client.patch(
        f"/api/v1/messages/conversations/{conv_id}/mute",
        headers=lead_headers,
        json={"muted": True},
    )
    await _send(client, employee_headers, conv_id, "Second")

    result = await db.execute(select(Notification).where(Notification.recipient_id == lead_user.id))
    assert len(result.scalars().all()) == 1


async def test_directory_excludes_self(client, employee_headers, employee_user, lead_user):
    resp = await client.get("/api/v1/messages/directory", headers=employee_headers)

    assert resp.status_code == 200
    user_ids = {entry["user_id"] for entry in resp.json()}
    assert str(lead_user.id) in user_ids
    assert str(employee_user.id) not in user_ids
