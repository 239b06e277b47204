"""Admin service: departments, locations, system settings and the audit log."""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Optional

from fastapi import Request
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from workforce.admin.schemas import (
    AuditLogOut,
    DepartmentCreate,
    DepartmentOut,
    DepartmentUpdate,
    LocationCreate,
    LocationOut,
    LocationUpdate,
    SettingOut,
)
from workforce.auth.models import User
from workforce.common.audit import AuditLog, create_audit_entry
from workforce.common.exceptions import ConflictError, NotFoundException
from workforce.common.models import AppSetting
from workforce.common.pagination import PaginatedResponse, PaginationParams, paginate
from workforce.employees.models import Department, Employee, Location

logger = logging.getLogger(__name__)


class AdminService:
    """Static service class for admin operations."""

    # ── Departments ─────────────────────────────────────────────────

    @staticmethod
    async def _headcounts(db: AsyncSession, column) -> dict[uuid.UUID, int]:
        rows = await db.execute(
            select(column, func.count(Employee.id))
            .where(Employee.deleted_at.is_(None), column.is_not(None))
            .group_by(column)
        )
        return {key: count for key, count in rows.all()}

    @staticmethod
    async def list_departments(db: AsyncSession) -> list[DepartmentOut]:
        result = await db.execute(select(Department).order_by(Department.name))
        counts = await AdminService._headcounts(db, Employee.department_id)
        return [
            DepartmentOut.model_validate(d).model_copy(update={"employee_count": counts.get(d.id, 0)})
            for d in result.scalars().all()
        ]

    @staticmethod
    async def _ensure_unique(db: AsyncSession, model, field: str, value, exclude_id=None) -> None:
        if value is None:
            return
        query = select(model.id).where(getattr(model, field) == value)
        if exclude_id is not None:
            query = query.where(model.id != exclude_id)
        if (await db.execute(query)).first() is not None:
            raise ConflictError(field, value)

    @staticmethod
    async def create_department(
        db: AsyncSession,
        actor: User,
        data: DepartmentCreate,
        request: Optional[Request] = None,
    ) -> DepartmentOut:
        await AdminService._ensure_unique(db, Department, "name", data.name)
        await AdminService._ensure_unique(db, Department, "code", data.code)
        dept = Department(**data.model_dump())
        db.add(dept)
        await db.flush()
        await create_audit_entry(
            db,
            action="CREATE",
            object_type="department",
            object_id=dept.id,
            actor_id=actor.id,
            after=data.model_dump(),
            request=request,
        )
        return DepartmentOut.model_validate(dept)

    @staticmethod
    async def update_department(
        db: AsyncSession,
        actor: User,
        department_id: uuid.UUID,
        data: DepartmentUpdate,
        request: Optional[Request] = None,
    ) -> DepartmentOut:
        dept = await db.get(Department, department_id)
        if dept is None:
            raise NotFoundException("Department", department_id)
        changes = data.model_dump(exclude_unset=True)
        await AdminService._ensure_unique(db, Department, "name", changes.get("name"), dept.id)
        await AdminService._ensure_unique(db, Department, "code", changes.get("code"), dept.id)

        before = {field: getattr(dept, field) for field in changes}
        for field, value in changes.items():
            setattr(dept, field, value)
        await db.flush()
        await create_audit_entry(
            db,
            action="UPDATE",
            object_type="department",
            object_id=dept.id,
            actor_id=actor.id,
            before=before,
            after=changes,
            request=request,
        )
        return DepartmentOut.model_validate(dept)

    # ── Locations ───────────────────────────────────────────────────

    @staticmethod
    async def list_locations(db: AsyncSession) -> list[LocationOut]:
        result = await db.execute(select(Location).order_by(Location.name))
        counts = await AdminService._headcounts(db, Employee.location_id)
        return [
            LocationOut.model_validate(loc).model_copy(update={"employee_count": counts.get(loc.id, 0)})
            for loc in result.scalars().all()
        ]

    @staticmethod
    async def create_location(
        db: AsyncSession,
        actor: User,
        data: LocationCreate,
        request: Optional[Request] = None,
    ) -> LocationOut:
        await AdminService._ensure_unique(db, Location, "name", data.name)
        location = Location(**data.model_dump())
        db.add(location)
        await db.flush()
        await create_audit_entry(
            db,
            action="CREATE",
            object_type="location",
            object_id=location.id,
            actor_id=actor.id,
            after=data.model_dump(),
            request=request,
        )
        return LocationOut.model_validate(location)

    @staticmethod
    async def update_location(
        db: AsyncSession,
        actor: User,
        location_id: uuid.UUID,
        data: LocationUpdate,
        request: Optional[Request] = None,
    ) -> LocationOut:
        location = await db.get(Location, location_id)
        if location is None:
            raise NotFoundException("Location", location_id)
        changes = data.model_dump(exclude_unset=True)
        await AdminService._ensure_unique(db, Location, "name", changes.get("name"), location.id)

        before = {field: getattr(location, field) for field in changes}
        for field, value in changes.items():
            setattr(location, field, value)
        await db.flush()
        await create_audit_entry(
            db,
            action="UPDATE",
            object_type="location",
            object_id=location.id,
            actor_id=actor.id,
            before=before,
            after=changes,
            request=request,
        )
        return LocationOut.model_validate(location)

    # ── Settings ────────────────────────────────────────────────────

    @staticmethod
    async def get_setting_value(db: AsyncSession, key: str, default: Any = None) -> Any:
        """Stored value for *key*, or *default* when the key was never set."""
        setting = await db.get(AppSetting, key)
        if setting is None or setting.value is None:
            return default
        return setting.value

    @staticmethod
    async def list_settings(db: AsyncSession) -> list[SettingOut]:
        result = await db.execute(select(AppSetting).order_by(AppSetting.key))
        return [SettingOut.model_validate(s) for s in result.scalars().all()]

    @staticmethod
    async def update_settings(
        db: AsyncSession,
        actor: User,
        values: dict[str, Any],
        request: Optional[Request] = None,
    ) -> list[SettingOut]:
        """Upsert every key in *values*; one SETTINGS_CHANGED entry for the batch."""
        before: dict[str, Any] = {}
        for key, value in values.items():
            setting = await db.get(AppSetting, key)
            if setting is None:
                before[key] = None
                db.add(AppSetting(key=key, value=value, updated_by=actor.id))
            else:
                before[key] = setting.value
                setting.value = value
                setting.updated_by = actor.id
        await db.flush()

        await create_audit_entry(
            db,
            action="SETTINGS_CHANGED",
            object_type="app_settings",
            actor_id=actor.id,
            before=before,
            after=dict(values),
            request=request,
        )
        logger.info("Settings %s changed by %s", sorted(values), actor.id)
        return await AdminService.list_settings(db)

    # ── Audit log ───────────────────────────────────────────────────

    @staticmethod
    async def list_audit_logs(
        db: AsyncSession,
        pagination: PaginationParams,
        *,
        action: Optional[str] = None,
        actor_id: Optional[uuid.UUID] = None,
        object_type: Optional[str] = None,
        object_id: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> PaginatedResponse:
        query = select(AuditLog).order_by(AuditLog.created_at.desc())
        if action:
            query = query.where(AuditLog.action == action)
        if actor_id is not None:
            query = query.where(AuditLog.actor_id == actor_id)
        if object_type:
            query = query.where(AuditLog.object_type == object_type)
        if object_id:
            query = query.where(AuditLog.object_id == object_id)
        if date_from is not None:
            query = query.where(
                AuditLog.created_at >= datetime.combine(date_from, time.min, tzinfo=timezone.utc)
            )
        if date_to is not None:
            query = query.where(
                AuditLog.created_at < datetime.combine(
                    date_to + timedelta(days=1), time.min, tzinfo=timezone.utc,
                )
            )
        return await paginate(
            db, query, pagination, model=AuditLog, transform=AuditLogOut.model_validate,
        )
