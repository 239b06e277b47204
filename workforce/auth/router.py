"""Auth router: password login, token refresh, logout, password change, current user."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from workforce.auth import service as auth_service
from workforce.auth.dependencies import extract_bearer, get_current_user, hash_token
from workforce.auth.models import User
from workforce.auth.schemas import (
    ChangePasswordRequest,
    LoginRequest,
    MeResponse,
    MessageResponse,
    RefreshRequest,
    RefreshResponse,
    TokenResponse,
)
from workforce.common.audit import create_audit_entry
from workforce.common.rate_limit import limiter
from workforce.database import get_db

router = APIRouter(prefix="", tags=["auth"])


# ── POST /login ─────────────────────────────────────────────────────

@router.post("/login", response_model=TokenResponse)
@limiter.limit("5/minute")
async def login(
    request: Request,
    body: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    return await auth_service.login(db, body.email, body.password, request)


# ── POST /refresh: rotate the token pair ───────────────────────────

@router.post("/refresh", response_model=RefreshResponse)
@limiter.limit("10/minute")
async def refresh_token(
    request: Request,
    body: RefreshRequest,
    db: AsyncSession = Depends(get_db),
):
    return await auth_service.refresh_access_token(db, body.refresh_token, request)


# ── POST /logout: revoke current session ───────────────────────────

@router.post("/logout", response_model=MessageResponse)
async def logout(
    request: Request,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await auth_service.revoke_session(db, hash_token(extract_bearer(request)))
    await create_audit_entry(
        db,
        action="LOGOUT",
        object_type="user",
        object_id=user.id,
        actor_id=user.id,
        request=request,
    )
    return MessageResponse(message="Logged out successfully")


# ── POST /logout-all: revoke every session ─────────────────────────

@router.post("/logout-all", response_model=MessageResponse)
async def logout_all(
    request: Request,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    count = await auth_service.revoke_all_sessions(db, user.id)
    await create_audit_entry(
        db,
        action="LOGOUT_ALL",
        object_type="user",
        object_id=user.id,
        actor_id=user.id,
        request=request,
        metadata={"revoked": count},
    )
    return MessageResponse(message=f"Revoked {count} session(s)")


# ── POST /change-password ───────────────────────────────────────────

@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    request: Request,
    body: ChangePasswordRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await auth_service.change_password(
        db,
        user,
        body.current_password,
        body.new_password,
        current_session_id=getattr(request.state, "session_id", None),
        request=request,
    )
    return MessageResponse(message="Password changed successfully")


# ── GET /me: current user profile ──────────────────────────────────

@router.get("/me", response_model=MeResponse)
async def me(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await auth_service.build_me(db, user)
