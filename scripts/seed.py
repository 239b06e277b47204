#!/usr/bin/env python3
"""Seed a fresh database with reference data and demo accounts.

Creates departments, locations, one user per role, shift templates,
leave policies, the break policy, competencies, seat-limit settings and
this year's leave balances. Every step is idempotent: rows that already
exist (matched on their natural key) are left alone.

Usage:
    python scripts/seed.py
    python scripts/seed.py --password 'Another#Passw0rd'
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from datetime import date
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from workforce.auth.models import User
from workforce.auth.passwords import hash_password
from workforce.breaks.models import BreakPolicy
from workforce.common.constants import (
    ContractType,
    EmploymentStatus,
    LeaveType,
    ShiftType,
    UserRole,
    UserStatus,
)
from workforce.common.models import AppSetting
from workforce.config import settings
from workforce.database import async_session_factory, engine
from workforce.employees.models import Department, Employee, Location
from workforce.leaves.models import LeaveBalance, LeavePolicy
from workforce.performance.models import Competency
from workforce.shifts.models import ShiftTemplate

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("seed")

DEFAULT_PASSWORD = "Admin123!@#$"

DEPARTMENTS = [
    ("MGMT", "Management", "Executive management"),
    ("HR", "Human Resources", "HR department"),
    ("IT", "IT & Technology", "Technology department"),
    ("OPS", "Operations", "Operations department"),
    ("FIN", "Finance", "Finance and accounting"),
    ("MKT", "Marketing", "Marketing department"),
]

LOCATIONS = [
    ("Headquarters", "Sofia"),
    ("Branch Office 1", "Plovdiv"),
    ("Branch Office 2", "Varna"),
]

# email, first, last, title, role, department code, location index, manager email
PEOPLE = [
    ("admin@workforce-demo.com", "Denis", "Adminov", "System Administrator", UserRole.SUPER_ADMIN, "MGMT", 0, None),
    ("hr@workforce-demo.com", "Maria", "Hristova", "HR Manager", UserRole.HR, "HR", 0, None),
    ("lead@workforce-demo.com", "Georgi", "Petrov", "Team Lead - Operations", UserRole.TEAM_LEAD, "OPS", 0, None),
    ("ivan@workforce-demo.com", "Ivan", "Dimitrov", "Software Developer", UserRole.EMPLOYEE, "IT", 0, None),
    ("elena@workforce-demo.com", "Elena", "Ivanova", "Operations Specialist", UserRole.EMPLOYEE, "OPS", 0, "lead@workforce-demo.com"),
    ("anna@workforce-demo.com", "Anna", "Georgieva", "Accountant", UserRole.EMPLOYEE, "FIN", 0, None),
    ("dimitar@workforce-demo.com", "Dimitar", "Nikolov", "Operations Assistant", UserRole.EMPLOYEE, "OPS", 1, "lead@workforce-demo.com"),
]

SHIFT_TEMPLATES = [
    ("Morning Shift", ShiftType.MORNING, "06:00", "14:00", 30, "#22C55E"),
    ("Day Shift", ShiftType.MORNING, "09:00", "17:00", 60, "#3B82F6"),
    ("Evening Shift", ShiftType.EVENING, "14:00", "22:00", 30, "#F59E0B"),
    ("Night Shift", ShiftType.NIGHT, "22:00", "06:00", 30, "#6366F1"),
]

LEAVE_POLICIES = [
    (LeaveType.PAID, ContractType.FULL_TIME, 20, 5),
    (LeaveType.PAID, ContractType.PART_TIME, 10, 2),
    (LeaveType.SICK, None, 30, 0),
    (LeaveType.UNPAID, None, 30, 0),
    (LeaveType.MATERNITY, None, 410, 0),
]

COMPETENCIES = [
    ("Communication", "Verbal and written communication skills", "Soft Skills"),
    ("Teamwork", "Ability to work effectively in a team", "Soft Skills"),
    ("Technical Skills", "Domain-specific technical proficiency", "Hard Skills"),
    ("Problem Solving", "Analytical and problem-solving abilities", "Hard Skills"),
    ("Leadership", "Leadership and initiative", "Management"),
    ("Time Management", "Efficiency and deadline management", "Soft Skills"),
]


async def _exists(db: AsyncSession, model, **filters) -> bool:
    result = await db.execute(select(model).filter_by(**filters).limit(1))
    return result.scalars().first() is not None


async def seed_settings(db: AsyncSession) -> None:
    values = {
        "max_users": (settings.MAX_USERS, "Maximum active users allowed"),
        "max_admins": (settings.MAX_ADMINS, "Maximum admin users allowed"),
        "max_super_admins": (settings.MAX_SUPER_ADMINS, "Maximum super admin users"),
    }
    for key, (value, description) in values.items():
        if await db.get(AppSetting, key) is None:
            db.add(AppSetting(key=key, value=value, description=description))
    await db.flush()
    logger.info("Settings ready")


async def seed_org(db: AsyncSession) -> tuple[dict[str, Department], list[Location]]:
    departments: dict[str, Department] = {}
    for code, name, description in DEPARTMENTS:
        dept = (await db.execute(select(Department).where(Department.code == code))).scalars().first()
        if dept is None:
            dept = Department(code=code, name=name, description=description)
            db.add(dept)
        departments[code] = dept

    locations: list[Location] = []
    for name, city in LOCATIONS:
        loc = (await db.execute(select(Location).where(Location.name == name))).scalars().first()
        if loc is None:
            loc = Location(name=name, city=city, country="Bulgaria", timezone="Europe/Sofia")
            db.add(loc)
        locations.append(loc)
    await db.flush()
    logger.info("%d departments, %d locations", len(departments), len(locations))
    return departments, locations


async def seed_people(
    db: AsyncSession,
    departments: dict[str, Department],
    locations: list[Location],
    password: str,
) -> None:
    password_hash = hash_password(password)
    by_email: dict[str, Employee] = {}
    created = 0
    for index, (email, first, last, title, role, dept, loc, manager) in enumerate(PEOPLE, start=1):
        existing = (await db.execute(select(Employee).where(Employee.email == email))).scalars().first()
        if existing is not None:
            by_email[email] = existing
            continue

        user = User(email=email, password_hash=password_hash, role=role, status=UserStatus.ACTIVE)
        db.add(user)
        await db.flush()
        employee = Employee(
            user_id=user.id,
            employee_number=f"EMP{index:05d}",
            first_name=first,
            last_name=last,
            email=email,
            job_title=title,
            department_id=departments[dept].id,
            location_id=locations[loc].id,
            manager_id=by_email[manager].id if manager else None,
            hire_date=date(2024, min(index, 9), 1),
            contract_type=ContractType.FULL_TIME,
            employment_status=EmploymentStatus.ACTIVE,
        )
        db.add(employee)
        await db.flush()
        by_email[email] = employee
        created += 1
        logger.info("Created %s (%s)", email, role.value)
    logger.info("%d accounts created", created)


async def seed_policies(db: AsyncSession) -> None:
    if not (await db.execute(select(func.count(ShiftTemplate.id)))).scalar():
        for name, shift_type, start, end, break_minutes, color in SHIFT_TEMPLATES:
            db.add(ShiftTemplate(
                name=name, shift_type=shift_type, start_time=start, end_time=end,
                break_minutes=break_minutes, color=color,
            ))
        logger.info("Shift templates created")

    for leave_type, contract_type, days, carry in LEAVE_POLICIES:
        if not await _exists(db, LeavePolicy, leave_type=leave_type, contract_type=contract_type):
            db.add(LeavePolicy(
                leave_type=leave_type,
                contract_type=contract_type,
                days_per_year=Decimal(days),
                max_carry_over=Decimal(carry),
            ))

    if not (await db.execute(select(func.count(BreakPolicy.id)))).scalar():
        db.add(BreakPolicy(
            name="Standard Break Policy",
            max_breaks_per_day=4,
            max_minutes_per_break=30,
            max_total_minutes=60,
            alert_on_exceed=True,
        ))

    for name, description, category in COMPETENCIES:
        if not await _exists(db, Competency, name=name):
            db.add(Competency(name=name, description=description, category=category))
    await db.flush()
    logger.info("Policies and competencies ready")


async def seed_balances(db: AsyncSession) -> None:
    year = date.today().year
    employees = (await db.execute(select(Employee.id).where(Employee.deleted_at.is_(None)))).scalars().all()
    for employee_id in employees:
        for leave_type, total in ((LeaveType.PAID, 20), (LeaveType.SICK, 30)):
            if not await _exists(db, LeaveBalance, employee_id=employee_id, leave_type=leave_type, year=year):
                db.add(LeaveBalance(
                    employee_id=employee_id, leave_type=leave_type, year=year, total_days=Decimal(total),
                ))
    await db.flush()
    logger.info("Leave balances for %d ready", year)


async def main(password: str) -> None:
    async with async_session_factory() as db:
        await seed_settings(db)
        departments, locations = await seed_org(db)
        await seed_people(db, departments, locations, password)
        await seed_policies(db)
        await seed_balances(db)
        await db.commit()
    await engine.dispose()
    logger.info("Seed complete")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the workforce database")
    parser.add_argument("--password", default=DEFAULT_PASSWORD, help="Password for every demo account")
    args = parser.parse_args()
    asyncio.run(main(args.password))
