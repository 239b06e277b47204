"""Effective-permission resolver: role defaults merged with per-user overrides.

    effective = (role defaults ∪ granted overrides) − denied overrides

Overrides are unique per (user, permission) so application order never
matters. Route guards and service-level scoping both resolve through
``PermissionService.resolve``.
"""

from __future__ import annotations

import logging
import uuid
from typing import Iterable, Optional

from fastapi import Request
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from workforce.auth.models import User
from workforce.common.audit import create_audit_entry
from workforce.common.constants import ALL_PERMISSIONS, PERMISSIONS, UserRole
from workforce.common.exceptions import (
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from workforce.permissions.models import UserPermission
from workforce.permissions.schemas import (
    PermissionCatalogOut,
    PermissionOverrideIn,
    PermissionOverrideOut,
    UserPermissionsOut,
)

logger = logging.getLogger(__name__)


def role_permissions(role: UserRole) -> frozenset[str]:
    return PERMISSIONS.get(role, frozenset())


def merge_permissions(
    role: UserRole,
    overrides: Iterable[tuple[str, bool]],
) -> set[str]:
    """Apply ``(permission, granted)`` overrides on top of the role defaults."""
    effective = set(role_permissions(role))
    granted: set[str] = set()
    denied: set[str] = set()
    for permission, is_granted in overrides:
        (granted if is_granted else denied).add(permission)
    return (effective | granted) - denied


def unknown_permissions(permissions: Iterable[str]) -> list[str]:
    known = set(ALL_PERMISSIONS)
    return sorted({p for p in permissions if p not in known})


class PermissionService:
    """Async permission operations."""

    @staticmethod
    async def get_overrides(
        db: AsyncSession,
        user_id: uuid.UUID,
    ) -> list[UserPermission]:
        result = await db.execute(
            select(UserPermission)
            .where(UserPermission.user_id == user_id)
            .order_by(UserPermission.permission)
        )
        return list(result.scalars().all())

    @staticmethod
    async def resolve(db: AsyncSession, user: User) -> set[str]:
        """Effective permission set for *user*."""
        overrides = await PermissionService.get_overrides(db, user.id)
        return merge_permissions(
            user.role, ((o.permission, o.granted) for o in overrides),
        )

    @staticmethod
    def catalog() -> PermissionCatalogOut:
        return PermissionCatalogOut(
            permissions=list(ALL_PERMISSIONS),
            roles={
                role.value: sorted(perms) for role, perms in PERMISSIONS.items()
            },
        )

    @staticmethod
    async def get_user_permissions(
        db: AsyncSession,
        user_id: uuid.UUID,
    ) -> UserPermissionsOut:
        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundException("User", user_id)
        overrides = await PermissionService.get_overrides(db, user.id)
        effective = merge_permissions(
            user.role, ((o.permission, o.granted) for o in overrides),
        )
        return UserPermissionsOut(
            user_id=user.id,
            role=user.role,
            role_permissions=sorted(role_permissions(user.role)),
            overrides=[PermissionOverrideOut.model_validate(o) for o in overrides],
            effective=sorted(effective),
        )

    @staticmethod
    async def replace_overrides(
        db: AsyncSession,
        *,
        actor: User,
        user_id: uuid.UUID,
        overrides: list[PermissionOverrideIn],
        request: Optional[Request] = None,
    ) -> UserPermissionsOut:
        """Replace every override row of *user_id* with *overrides*.

        The whole batch is validated before any row is touched; the delete,
        inserts and audit entry share the request transaction.
        """
        target = await db.get(User, user_id)
        if target is None:
            raise NotFoundException("User", user_id)
        if target.role == UserRole.SUPER_ADMIN and actor.role != UserRole.SUPER_ADMIN:
            raise ForbiddenException("Only a super admin can change a super admin's permissions.")

        unknown = unknown_permissions(o.permission for o in overrides)
        if unknown:
            raise ValidationException(
                f"Unknown permission(s): {', '.join(unknown)}",
                errors={"overrides": [f"Unknown permission '{p}'" for p in unknown]},
            )

        # Last entry wins when the same key is sent twice
        deduped: dict[str, bool] = {}
        for o in overrides:
            deduped[o.permission] = o.granted

        previous = await PermissionService.get_overrides(db, user_id)
        before = {o.permission: o.granted for o in previous}

        await db.execute(delete(UserPermission).where(UserPermission.user_id == user_id))

        for permission, granted in deduped.items():
            db.add(UserPermission(
                user_id=user_id,
                permission=permission,
                granted=granted,
                granted_by=actor.id,
            ))
        await db.flush()

        await create_audit_entry(
            db,
            action="PERMISSION_CHANGED",
            object_type="user",
            object_id=user_id,
            actor_id=actor.id,
            before=before,
            after=deduped,
            request=request,
        )
        logger.info(
            "Permission overrides for user %s replaced by %s (%d rows)",
            user_id, actor.id, len(deduped),
        )
        return await PermissionService.get_user_permissions(db, user_id)
