"""Auth dependencies: JWT validation, role and permission enforcement."""

from __future__ import annotations

import hashlib
import uuid
from typing import Callable

from fastapi import Depends, Request
from jose import ExpiredSignatureError, JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from workforce.auth.models import User, UserSession
from workforce.common.constants import UserRole, UserStatus
from workforce.common.dates import utcnow
from workforce.common.exceptions import ForbiddenException, UnauthorizedException
from workforce.config import settings
from workforce.database import get_db
from workforce.employees.models import Employee
from workforce.permissions.service import PermissionService


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


def extract_bearer(request: Request) -> str:
    """Extract Bearer token from Authorization header."""
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise UnauthorizedException("Missing or invalid Authorization header.")
    return auth_header[7:]


# ── Core dependency ─────────────────────────────────────────────────

async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> User:
    """Validate JWT, verify session, return the authenticated User.

    The linked Employee (with department/location) is eager-loaded.
    """
    token = extract_bearer(request)

    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
        )
    except ExpiredSignatureError:
        raise UnauthorizedException("Token has expired.")
    except JWTError:
        raise UnauthorizedException("Invalid token.")

    if payload.get("type") != "access":
        raise UnauthorizedException("Invalid token type.")

    # Session must exist, not be revoked, not be expired
    result = await db.execute(
        select(UserSession).where(
            UserSession.token_hash == hash_token(token),
            UserSession.is_revoked.is_(False),
            UserSession.expires_at > utcnow(),
        ),
    )
    session = result.scalars().first()
    if session is None:
        raise UnauthorizedException("Session invalid or expired.")

    try:
        user_id = uuid.UUID(payload["sub"])
    except (KeyError, ValueError):
        raise UnauthorizedException("Invalid token subject.")

    user_result = await db.execute(
        select(User)
        .where(User.id == user_id)
        .options(
            selectinload(User.employee).selectinload(Employee.department),
            selectinload(User.employee).selectinload(Employee.location),
        ),
    )
    user = user_result.scalars().first()
    if user is None or user.status != UserStatus.ACTIVE:
        raise UnauthorizedException("User account is inactive or not found.")

    # Role comes from the DB so role changes apply to live tokens
    request.state.user_role = user.role
    request.state.session_id = session.id
    return user


async def get_current_permissions(
    request: Request,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> set[str]:
    """Effective permissions of the caller, cached on ``request.state``."""
    cached = getattr(request.state, "permissions", None)
    if cached is None:
        cached = await PermissionService.resolve(db, user)
        request.state.permissions = cached
    return cached


def require_employee(user: User) -> Employee:
    """Return the caller's Employee record or refuse the action."""
    if user.employee is None or user.employee.deleted_at is not None:
        raise ForbiddenException("No employee profile is linked to this account.")
    return user.employee


# ── Role-based dependency ───────────────────────────────────────────

def require_role(*allowed_roles: UserRole) -> Callable:
    """Return a FastAPI dependency that enforces role membership."""

    async def _check(user: User = Depends(get_current_user)) -> User:
        if user.role not in allowed_roles:
            raise ForbiddenException(
                detail=f"Role '{user.role.value}' is not permitted. Required: {[r.value for r in allowed_roles]}.",
            )
        return user

    return _check


# ── Permission-based dependencies ───────────────────────────────────

def require_permission(permission: str) -> Callable:
    """Return a dependency that enforces one effective permission."""

    async def _check(
        user: User = Depends(get_current_user),
        permissions: set[str] = Depends(get_current_permissions),
    ) -> User:
        if permission not in permissions:
            raise ForbiddenException(
                detail=f"Permission '{permission}' is required.",
            )
        return user

    return _check


def require_any_permission(*candidates: str) -> Callable:
    """Return a dependency that passes when the caller holds any of *candidates*."""

    async def _check(
        user: User = Depends(get_current_user),
        permissions: set[str] = Depends(get_current_permissions),
    ) -> User:
        if not permissions.intersection(candidates):
            raise ForbiddenException(
                detail=f"One of {list(candidates)} is required.",
            )
        return user

    return _check
