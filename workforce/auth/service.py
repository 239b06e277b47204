"""Auth service: password login with lockout, JWT management, session lifecycle."""

from __future__ import annotations

import logging
import math
import uuid
from datetime import timedelta
from typing import Optional

from fastapi import Request
from jose import JWTError, jwt
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from workforce.auth.dependencies import hash_token
from workforce.auth.models import User, UserSession
from workforce.auth.passwords import (
    hash_password,
    validate_password_strength,
    verify_password,
)
from workforce.auth.schemas import (
    DeptBrief,
    LocationBrief,
    MeResponse,
    RefreshResponse,
    TokenResponse,
    UserInfo,
)
from workforce.common.audit import client_ip, client_user_agent, create_audit_entry
from workforce.common.constants import UserStatus
from workforce.common.dates import as_utc, utcnow
from workforce.common.exceptions import UnauthorizedException, ValidationException
from workforce.config import settings
from workforce.employees.models import Employee
from workforce.permissions.service import PermissionService

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"


# ── JWT helpers ─────────────────────────────────────────────────────

def _create_access_token(user: User) -> tuple[str, int]:
    """Return (encoded_jwt, expires_in_seconds)."""
    expires_in = settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
    payload = {
        "sub": str(user.id),
        "role": user.role.value,
        "type": "access",
        "jti": uuid.uuid4().hex,
        "exp": utcnow() + timedelta(seconds=expires_in),
    }
    token = jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
    return token, expires_in


def _create_refresh_token(user_id: uuid.UUID) -> str:
    payload = {
        "sub": str(user_id),
        "type": "refresh",
        "jti": uuid.uuid4().hex,  # each refresh token is distinct
        "exp": utcnow() + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


async def create_session(
    db: AsyncSession,
    user: User,
    request: Optional[Request] = None,
) -> tuple[str, str, int]:
    """Issue a token pair and persist the session. Returns (access, refresh, expires_in)."""
    access_token, expires_in = _create_access_token(user)
    refresh_token = _create_refresh_token(user.id)
    now = utcnow()

    db.add(UserSession(
        user_id=user.id,
        token_hash=hash_token(access_token),
        refresh_token_hash=hash_token(refresh_token),
        ip_address=client_ip(request),
        user_agent=client_user_agent(request),
        expires_at=now + timedelta(seconds=expires_in),
        refresh_expires_at=now + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
    ))
    await db.flush()
    return access_token, refresh_token, expires_in


def build_user_info(user: User) -> UserInfo:
    employee = user.employee
    return UserInfo(
        id=user.id,
        email=user.email,
        role=user.role,
        status=user.status,
        must_change_password=user.must_change_password,
        employee_id=employee.id if employee else None,
        employee_number=employee.employee_number if employee else None,
        display_name=employee.full_name if employee else user.email,
        photo_url=employee.photo_url if employee else None,
    )


async def _load_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    result = await db.execute(
        select(User)
        .where(func.lower(User.email) == email.lower())
        .options(selectinload(User.employee)),
    )
    return result.scalars().first()


# ── Login ───────────────────────────────────────────────────────────

async def login(
    db: AsyncSession,
    email: str,
    password: str,
    request: Optional[Request] = None,
) -> TokenResponse:
    """Authenticate with email + password.

    Failed attempts are counted per user; reaching LOGIN_MAX_ATTEMPTS
    locks the account for LOGIN_LOCKOUT_MINUTES and resets the counter.
    Failed attempts commit their counter and audit writes before raising,
    since the error rolls back the request transaction.
    """
    user = await _load_user_by_email(db, email)
    now = utcnow()

    if user is None:
        await create_audit_entry(
            db,
            action="LOGIN_FAILED",
            object_type="user",
            request=request,
            metadata={"email": email, "reason": "unknown_email"},
        )
        await db.commit()
        logger.info("Login failed for unknown email %s", email)
        raise UnauthorizedException(INVALID_CREDENTIALS)

    locked_until = as_utc(user.locked_until)
    if locked_until is not None and locked_until > now:
        minutes = math.ceil((locked_until - now).total_seconds() / 60)
        raise UnauthorizedException(f"Account locked. Try again in {minutes} minutes")

    if user.status != UserStatus.ACTIVE:
        raise UnauthorizedException("Account is not active")

    if not verify_password(password, user.password_hash):
        attempts = (user.failed_login_attempts or 0) + 1
        if attempts >= settings.LOGIN_MAX_ATTEMPTS:
            user.locked_until = now + timedelta(minutes=settings.LOGIN_LOCKOUT_MINUTES)
            user.failed_login_attempts = 0
            logger.warning("User %s locked after %d failed logins", user.id, attempts)
        else:
            user.failed_login_attempts = attempts
        await db.flush()
        await create_audit_entry(
            db,
            action="LOGIN_FAILED",
            object_type="user",
            object_id=user.id,
            actor_id=user.id,
            request=request,
            metadata={"attempts": attempts},
        )
        await db.commit()
        raise UnauthorizedException(INVALID_CREDENTIALS)

    user.failed_login_attempts = 0
    user.locked_until = None
    user.last_login_at = now
    user.last_login_ip = client_ip(request)
    await db.flush()

    access_token, refresh_token, expires_in = await create_session(db, user, request)

    await create_audit_entry(
        db,
        action="LOGIN",
        object_type="user",
        object_id=user.id,
        actor_id=user.id,
        request=request,
    )

    return TokenResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_in=expires_in,
        user=build_user_info(user),
    )


# ── Refresh (with token rotation + reuse detection) ─────────────────

async def refresh_access_token(
    db: AsyncSession,
    refresh_token_str: str,
    request: Optional[Request] = None,
) -> RefreshResponse:
    """Validate a refresh token, rotate it and issue a new token pair.

    Each refresh token is single-use. Presenting an already consumed one
    revokes every session of that user.
    """
    try:
        payload = jwt.decode(
            refresh_token_str,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
        )
    except JWTError:
        raise UnauthorizedException("Invalid or expired refresh token.")

    if payload.get("type") != "refresh":
        raise UnauthorizedException("Invalid token type.")

    result = await db.execute(
        select(UserSession).where(
            UserSession.refresh_token_hash == hash_token(refresh_token_str),
        ),
    )
    session = result.scalars().first()
    if session is None:
        raise UnauthorizedException("Invalid refresh token.")

    if session.is_revoked:
        await revoke_all_sessions(db, session.user_id)
        # Persist revocations before the error rolls the request back
        await db.commit()
        logger.warning("Refresh token reuse detected for user %s", session.user_id)
        raise UnauthorizedException(
            "Refresh token reuse detected. All sessions revoked for security.",
        )

    session.is_revoked = True
    await db.flush()

    user = await db.get(User, session.user_id)
    if user is None or user.status != UserStatus.ACTIVE:
        raise UnauthorizedException("User account is inactive or not found.")

    access_token, new_refresh, expires_in = await create_session(db, user, request)
    return RefreshResponse(
        access_token=access_token,
        refresh_token=new_refresh,
        expires_in=expires_in,
    )


# ── Revoke ──────────────────────────────────────────────────────────

async def revoke_all_sessions(
    db: AsyncSession,
    user_id: uuid.UUID,
    *,
    keep_session_id: Optional[uuid.UUID] = None,
) -> int:
    """Revoke every active session of a user, optionally sparing one."""
    stmt = update(UserSession).where(
        UserSession.user_id == user_id,
        UserSession.is_revoked.is_(False),
    )
    if keep_session_id is not None:
        stmt = stmt.where(UserSession.id != keep_session_id)
    result = await db.execute(stmt.values(is_revoked=True))
    await db.flush()
    return result.rowcount or 0


async def revoke_session(db: AsyncSession, token_hash: str) -> None:
    """Mark a session as revoked by its access-token hash."""
    result = await db.execute(
        select(UserSession).where(UserSession.token_hash == token_hash),
    )
    session = result.scalars().first()
    if session:
        session.is_revoked = True
        await db.flush()


# ── Password change ─────────────────────────────────────────────────

async def change_password(
    db: AsyncSession,
    user: User,
    current_password: str,
    new_password: str,
    *,
    current_session_id: Optional[uuid.UUID] = None,
    request: Optional[Request] = None,
) -> None:
    if not verify_password(current_password, user.password_hash):
        raise ValidationException(
            "Current password is incorrect",
            errors={"current_password": ["Incorrect password"]},
        )
    if current_password == new_password:
        raise ValidationException(
            "New password must differ from the current password",
            errors={"new_password": ["Must differ from the current password"]},
        )
    validate_password_strength(new_password)

    user.password_hash = hash_password(new_password)
    user.must_change_password = False
    user.password_changed_at = utcnow()
    await db.flush()

    await revoke_all_sessions(db, user.id, keep_session_id=current_session_id)
    await create_audit_entry(
        db,
        action="PASSWORD_CHANGED",
        object_type="user",
        object_id=user.id,
        actor_id=user.id,
        request=request,
    )


# ── Profile ─────────────────────────────────────────────────────────

async def build_me(db: AsyncSession, user: User) -> MeResponse:
    permissions = await PermissionService.resolve(db, user)
    info = build_user_info(user)
    employee = user.employee

    direct_reports = 0
    dept = loc = None
    if employee is not None:
        result = await db.execute(
            select(func.count()).select_from(Employee).where(
                Employee.manager_id == employee.id,
                Employee.deleted_at.is_(None),
            ),
        )
        direct_reports = result.scalar() or 0
        if employee.department:
            dept = DeptBrief(id=employee.department.id, name=employee.department.name)
        if employee.location:
            loc = LocationBrief(id=employee.location.id, name=employee.location.name)

    return MeResponse(
        **info.model_dump(),
        permissions=sorted(permissions),
        department=dept,
        location=loc,
        manager_id=employee.manager_id if employee else None,
        direct_reports_count=direct_reports,
    )
