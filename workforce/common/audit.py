"""Audit-log model and async helper for recording entity changes."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

import sqlalchemy as sa
from fastapi import Request
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Mapped, mapped_column

from workforce.common.dates import utcnow
from workforce.database import Base

logger = logging.getLogger(__name__)


# ── Append-only audit table ─────────────────────────────────────────

class AuditLog(Base):
    """Immutable log of every significant data change."""

    __tablename__ = "audit_logs"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    actor_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    action: Mapped[str] = mapped_column(sa.String(50), nullable=False)
    object_type: Mapped[str] = mapped_column(sa.String(50), nullable=False)
    object_id: Mapped[Optional[str]] = mapped_column(sa.String(64))
    before = mapped_column(JSONB, nullable=True)
    after = mapped_column(JSONB, nullable=True)
    ip_address: Mapped[Optional[str]] = mapped_column(sa.String(64))
    user_agent: Mapped[Optional[str]] = mapped_column(sa.Text)
    metadata_ = mapped_column("metadata", JSONB, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        default=utcnow,
        server_default=sa.func.now(),
    )

    __table_args__ = (
        sa.Index("ix_audit_logs_actor_id", "actor_id"),
        sa.Index("ix_audit_logs_object", "object_type", "object_id"),
        sa.Index("ix_audit_logs_created_at", "created_at"),
        sa.Index("ix_audit_logs_action", "action"),
    )

    def __repr__(self) -> str:
        return (
            f"<AuditLog {self.action} {self.object_type}"
            f"/{self.object_id} by {self.actor_id}>"
        )


# ── Request helpers ─────────────────────────────────────────────────

def client_ip(request: Optional[Request]) -> Optional[str]:
    """Client address, preferring the first hop of X-Forwarded-For."""
    if request is None:
        return None
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


def client_user_agent(request: Optional[Request]) -> Optional[str]:
    if request is None:
        return None
    return request.headers.get("user-agent")


# ── Helper to create an entry ───────────────────────────────────────

async def create_audit_entry(
    session: AsyncSession,
    *,
    action: str,
    object_type: str,
    object_id: Any = None,
    actor_id: Optional[uuid.UUID] = None,
    before: Optional[dict[str, Any]] = None,
    after: Optional[dict[str, Any]] = None,
    request: Optional[Request] = None,
    metadata: Optional[dict[str, Any]] = None,
) -> Optional[AuditLog]:
    """
    Add and flush an audit-log entry inside a SAVEPOINT.

    A failed audit write never fails the calling operation: the savepoint
    is rolled back, the error is logged and ``None`` is returned.

    Args:
        session: Async SQLAlchemy session.
        action: e.g. LOGIN, CREATE, UPDATE, LEAVE_APPROVED.
        object_type: e.g. "user", "leave_request".
        object_id: Primary key of the affected object.
        actor_id: User performing the action.
        before: Previous state (for updates/deletes).
        after: New state (for creates/updates).
        request: Incoming request, used for IP / user-agent.
        metadata: Free-form extra context.
    """
    entry = AuditLog(
        actor_id=actor_id,
        action=action,
        object_type=object_type,
        object_id=str(object_id) if object_id is not None else None,
        before=_jsonable(before),
        after=_jsonable(after),
        ip_address=client_ip(request),
        user_agent=client_user_agent(request),
        metadata_=_jsonable(metadata),
    )
    # Caller's pending changes must fail loudly, outside the savepoint
    await session.flush()
    try:
        async with session.begin_nested():
            session.add(entry)
    except SQLAlchemyError:
        logger.exception("Audit write failed: %s %s/%s", action, object_type, object_id)
        return None
    return entry


def _jsonable(values: Optional[dict[str, Any]]) -> Optional[dict[str, Any]]:
    """Coerce UUIDs, dates and enums so the dict can go into a JSON column."""
    if values is None:
        return None
    out: dict[str, Any] = {}
    for key, value in values.items():
        if isinstance(value, uuid.UUID):
            out[key] = str(value)
        elif isinstance(value, Decimal):
            out[key] = float(value)
        elif hasattr(value, "isoformat"):
            out[key] = value.isoformat()
        elif hasattr(value, "value") and isinstance(getattr(value, "value"), str):
            out[key] = value.value
        elif isinstance(value, (list, tuple, set)):
            out[key] = [str(v) if isinstance(v, uuid.UUID) else v for v in value]
        else:
            out[key] = value
    return out
