"""User management: account creation with seat limits, role/status changes, sessions."""

from __future__ import annotations

import logging
import re
import uuid
from typing import Optional

from fastapi import Request
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from workforce.admin.service import AdminService
from workforce.auth.models import User, UserSession
from workforce.auth.passwords import hash_password, validate_password_strength
from workforce.auth.service import revoke_all_sessions
from workforce.common.audit import create_audit_entry
from workforce.common.constants import UserRole, UserStatus
from workforce.common.dates import utcnow
from workforce.common.exceptions import (
    ConflictError,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from workforce.common.filters import apply_filters, apply_search
from workforce.common.pagination import PaginatedResponse, PaginationParams, paginate
from workforce.config import settings
from workforce.employees.models import Employee
from workforce.users.schemas import (
    LicenseStatus,
    SessionOut,
    UserCreate,
    UserOut,
    UserUpdate,
)

logger = logging.getLogger(__name__)

_EMP_NUMBER = re.compile(r"^EMP(\d+)$")


async def next_employee_number(db: AsyncSession) -> str:
    """``EMP00001``-style number one above the highest in use."""
    result = await db.execute(
        select(Employee.employee_number).where(Employee.employee_number.like("EMP%"))
    )
    highest = 0
    for number in result.scalars().all():
        match = _EMP_NUMBER.match(number)
        if match:
            highest = max(highest, int(match.group(1)))
    return f"EMP{highest + 1:05d}"


class UserService:
    """Async user-management operations."""

    @staticmethod
    async def _get_user(db: AsyncSession, user_id: uuid.UUID) -> User:
        result = await db.execute(
            select(User).where(User.id == user_id).options(selectinload(User.employee))
        )
        user = result.scalars().first()
        if user is None:
            raise NotFoundException("User", user_id)
        return user

    # ── Seat limits ─────────────────────────────────────────────────

    @staticmethod
    async def _count_active(db: AsyncSession, role: Optional[UserRole] = None) -> int:
        query = select(func.count()).select_from(User).where(User.status == UserStatus.ACTIVE)
        if role is not None:
            query = query.where(User.role == role)
        return (await db.execute(query)).scalar_one()

    @staticmethod
    async def license_status(db: AsyncSession) -> LicenseStatus:
        max_users = await AdminService.get_setting_value(db, "max_users", settings.MAX_USERS)
        max_admins = await AdminService.get_setting_value(db, "max_admins", settings.MAX_ADMINS)
        max_supers = await AdminService.get_setting_value(
            db, "max_super_admins", settings.MAX_SUPER_ADMINS,
        )
        active = await UserService._count_active(db)
        return LicenseStatus(
            max_users=int(max_users),
            active_users=active,
            remaining=max(0, int(max_users) - active),
            max_admins=int(max_admins),
            active_admins=await UserService._count_active(db, UserRole.ADMIN),
            max_super_admins=int(max_supers),
            active_super_admins=await UserService._count_active(db, UserRole.SUPER_ADMIN),
        )

    @staticmethod
    async def _check_seats(db: AsyncSession, role: UserRole, *, new_account: bool) -> None:
        status = await UserService.license_status(db)
        if new_account and status.active_users >= status.max_users:
            raise ForbiddenException(
                f"User limit reached ({status.max_users}). Deactivate a user or raise the limit.",
            )
        if role == UserRole.ADMIN and status.active_admins >= status.max_admins:
            raise ForbiddenException(f"Admin limit reached ({status.max_admins}).")
        if role == UserRole.SUPER_ADMIN and status.active_super_admins >= status.max_super_admins:
            raise ForbiddenException(f"Super admin limit reached ({status.max_super_admins}).")

    # ── List / Get ──────────────────────────────────────────────────

    @staticmethod
    async def list_users(
        db: AsyncSession,
        pagination: PaginationParams,
        *,
        search: Optional[str] = None,
        role: Optional[UserRole] = None,
        status: Optional[UserStatus] = None,
    ) -> PaginatedResponse:
        query = (
            select(User).order_by(User.created_at.desc())
        )
        query = apply_filters(query, User, {"role": role, "status": status})
        query = apply_search(query, User, search, ["email"])
        return await paginate(
            db, query, pagination,
            model=User,
            options=[selectinload(User.employee)],
            transform=UserOut.model_validate,
        )

    @staticmethod
    async def get_user(db: AsyncSession, user_id: uuid.UUID) -> UserOut:
        return UserOut.model_validate(await UserService._get_user(db, user_id))

    # ── Create ──────────────────────────────────────────────────────

    @staticmethod
    async def create_user(
        db: AsyncSession,
        actor: User,
        data: UserCreate,
        request: Optional[Request] = None,
    ) -> UserOut:
        """Create a login account plus its Employee record."""
        validate_password_strength(data.password)
        if data.role == UserRole.SUPER_ADMIN and actor.role != UserRole.SUPER_ADMIN:
            raise ForbiddenException("Only a super admin can create another super admin.")

        email = data.email.lower()
        dup = await db.execute(
            select(User.id).where(func.lower(User.email) == email)
        )
        if dup.scalar() is not None:
            raise ConflictError("email", email)
        dup_emp = await db.execute(select(Employee.id).where(func.lower(Employee.email) == email))
        if dup_emp.scalar() is not None:
            raise ConflictError("email", email)

        await UserService._check_seats(db, data.role, new_account=True)

        if data.manager_id is not None:
            manager = await db.get(Employee, data.manager_id)
            if manager is None or manager.deleted_at is not None:
                raise NotFoundException("Employee", data.manager_id)

        user = User(
            email=email,
            password_hash=hash_password(data.password),
            role=data.role,
            status=UserStatus.ACTIVE,
            must_change_password=True,
        )
        db.add(user)
        await db.flush()

        employee = Employee(
            user_id=user.id,
            employee_number=await next_employee_number(db),
            first_name=data.first_name,
            last_name=data.last_name,
            email=email,
            phone=data.phone,
            job_title=data.job_title,
            department_id=data.department_id,
            location_id=data.location_id,
            manager_id=data.manager_id,
            contract_type=data.contract_type,
            hire_date=data.hire_date or utcnow().date(),
        )
        db.add(employee)
        await db.flush()

        await create_audit_entry(
            db,
            action="CREATE",
            object_type="user",
            object_id=user.id,
            actor_id=actor.id,
            after={"email": email, "role": data.role, "employee_number": employee.employee_number},
            request=request,
        )
        return UserOut.model_validate(await UserService._get_user(db, user.id))

    # ── Update ──────────────────────────────────────────────────────

    @staticmethod
    async def update_user(
        db: AsyncSession,
        actor: User,
        user_id: uuid.UUID,
        data: UserUpdate,
        request: Optional[Request] = None,
    ) -> UserOut:
        user = await UserService._get_user(db, user_id)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        if not changes:
            raise ValidationException("No fields to update.")

        if "role" in changes and changes["role"] != user.role:
            if user.id == actor.id:
                raise ForbiddenException("You cannot change your own role.")
            if UserRole.SUPER_ADMIN in (changes["role"], user.role) and actor.role != UserRole.SUPER_ADMIN:
                raise ForbiddenException("Only a super admin can grant or revoke super admin.")
            await UserService._check_seats(db, changes["role"], new_account=False)

        if "email" in changes:
            changes["email"] = changes["email"].lower()
            if changes["email"] != user.email:
                dup = await db.execute(select(User.id).where(User.email == changes["email"]))
                if dup.scalar() is not None:
                    raise ConflictError("email", changes["email"])

        before = {field: getattr(user, field) for field in changes}
        for field, value in changes.items():
            setattr(user, field, value)
        if "email" in changes and user.employee is not None:
            user.employee.email = changes["email"]
        await db.flush()

        action = "USER_ROLE_CHANGED" if "role" in changes and before["role"] != changes["role"] else "UPDATE"
        await create_audit_entry(
            db,
            action=action,
            object_type="user",
            object_id=user.id,
            actor_id=actor.id,
            before=before,
            after=changes,
            request=request,
        )
        return UserOut.model_validate(user)

    @staticmethod
    async def set_status(
        db: AsyncSession,
        actor: User,
        user_id: uuid.UUID,
        status: UserStatus,
        request: Optional[Request] = None,
    ) -> UserOut:
        """Activate or deactivate an account. Deactivation revokes all sessions."""
        user = await UserService._get_user(db, user_id)
        if status != UserStatus.ACTIVE and user.id == actor.id:
            raise ValidationException("You cannot deactivate your own account.")
        if user.role == UserRole.SUPER_ADMIN and actor.role != UserRole.SUPER_ADMIN:
            raise ForbiddenException("Only a super admin can change a super admin's status.")
        if status == UserStatus.ACTIVE and user.status != UserStatus.ACTIVE:
            await UserService._check_seats(db, user.role, new_account=True)

        before = user.status
        user.status = status
        if status == UserStatus.ACTIVE:
            user.failed_login_attempts = 0
            user.locked_until = None
        await db.flush()
        if status != UserStatus.ACTIVE:
            await revoke_all_sessions(db, user.id)

        await create_audit_entry(
            db,
            action="USER_ACTIVATED" if status == UserStatus.ACTIVE else "USER_DEACTIVATED",
            object_type="user",
            object_id=user.id,
            actor_id=actor.id,
            before={"status": before},
            after={"status": status},
            request=request,
        )
        logger.info("User %s status %s -> %s by %s", user.id, before.value, status.value, actor.id)
        return UserOut.model_validate(user)

    @staticmethod
    async def list_sessions(db: AsyncSession, user_id: uuid.UUID) -> list[SessionOut]:
        await UserService._get_user(db, user_id)
        result = await db.execute(
            select(UserSession)
            .where(
                UserSession.user_id == user_id,
                UserSession.is_revoked.is_(False),
                UserSession.expires_at > utcnow(),
            )
            .order_by(UserSession.created_at.desc())
        )
        return [SessionOut.model_validate(s) for s in result.scalars().all()]
