"""Seed script for development data.

Run with:  python -m leave_tracker.seed

Writes through the service layer rather than the HTTP API because the API
needs an existing general manager to authenticate the first call. Re-running
is safe: records that already exist are skipped.
"""

from __future__ import annotations

import asyncio
from datetime import date, timedelta
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlmodel import SQLModel, col

from leave_tracker.db import dispose_engine, get_engine, get_session_factory
from leave_tracker.exceptions import AppError, DuplicateRecord
from leave_tracker.models.department import Department
from leave_tracker.models.employee import Employee
from leave_tracker.models.enums import EmployeeRole, LeaveType
from leave_tracker.schemas.auth import AuthContext
from leave_tracker.schemas.department import CreateDepartmentRequest, UpdateDepartmentRequest
from leave_tracker.schemas.employee import BalancesPayload, CreateEmployeeRequest
from leave_tracker.schemas.policy import CreatePolicyRequest
from leave_tracker.schemas.request import CreateLeaveRequestPayload
from leave_tracker.services import department as department_service
from leave_tracker.services import employee as employee_service
from leave_tracker.services import policy as policy_service
from leave_tracker.services import request as request_service

if TYPE_CHECKING:
    import uuid

    from sqlalchemy.ext.asyncio import AsyncSession

DEPARTMENTS = [
    ("Engineering", "ENG", "Software Engineering Department"),
    ("Human Resources", "HR", "Human Resources Department"),
    ("Sales", "SALES", "Sales and Marketing Department"),
    ("Finance", "FIN", "Finance and Accounting Department"),
]

# (code, first, last, email, role, department code, manager code, casual/medical/earned)
EMPLOYEES = [
    ("EMP001", "Admin", "User", "admin@company.com", EmployeeRole.GENERAL_MANAGER, "ENG", None, None),
    ("EMP002", "Manager", "Smith", "manager@company.com", EmployeeRole.TEAM_MANAGER, "ENG", None, None),
    ("EMP003", "Team", "Leader", "leader@company.com", EmployeeRole.TEAM_LEADER, "ENG", "EMP002", None),
    ("EMP004", "John", "Doe", "employee@company.com", EmployeeRole.TEAM_MEMBER, "ENG", "EMP003", (10, 11, 13)),
    ("EMP005", "Jane", "Smith", "jane@company.com", EmployeeRole.TEAM_MEMBER, "HR", "EMP003", (12, 10, 14)),
    ("EMP006", "Bob", "Johnson", "bob@company.com", EmployeeRole.TEAM_MEMBER, "SALES", "EMP002", (11, 12, 15)),
]

POLICIES = [
    CreatePolicyRequest(
        name="Casual Leave Policy",
        leave_type=LeaveType.CASUAL,
        annual_quota=12,
        max_consecutive_days=5,
        carry_forward_allowed=True,
        carry_forward_max_days=5,
        minimum_notice_days=1,
        description="Casual leave can be taken for personal reasons with prior notice.",
    ),
    CreatePolicyRequest(
        name="Medical Leave Policy",
        leave_type=LeaveType.MEDICAL,
        annual_quota=12,
        max_consecutive_days=10,
        description="Medical leave for health-related issues.",
    ),
    CreatePolicyRequest(
        name="Earned Leave Policy",
        leave_type=LeaveType.EARNED,
        annual_quota=15,
        max_consecutive_days=15,
        carry_forward_allowed=True,
        carry_forward_max_days=10,
        minimum_notice_days=7,
        description="Earned leave for planned vacations and personal time off.",
    ),
    CreatePolicyRequest(
        name="Unpaid Leave Policy",
        leave_type=LeaveType.UNPAID,
        annual_quota=0,
        minimum_notice_days=7,
        description="Unpaid leave for extended absences without pay.",
    ),
]


def _auth_for(employee: Employee) -> AuthContext:
    return AuthContext(
        user_id=employee.id,
        role=EmployeeRole(employee.role),
        department_id=employee.department_id,
        manager_id=employee.manager_id,
    )


async def _find_employee(session: AsyncSession, code: str) -> Employee | None:
    result = await session.execute(select(Employee).where(col(Employee.employee_code) == code))
    return result.scalar_one_or_none()


async def seed_departments(session: AsyncSession) -> dict[str, uuid.UUID]:
    """Seed departments and return a code->id mapping."""
    print("\n--- Seeding departments ---")
    for name, code, description in DEPARTMENTS:
        try:
            await department_service.create_department(
                session, None, CreateDepartmentRequest(name=name, code=code, description=description)
            )
            print(f"  [OK] {name}")
        except DuplicateRecord:
            print(f"  [SKIP] {name} (already exists)")

    result = await session.execute(select(Department))
    return {d.code: d.id for d in result.scalars().all()}


async def seed_employees(session: AsyncSession, departments: dict[str, uuid.UUID]) -> None:
    print("\n--- Seeding employees ---")
    for code, first, last, email, role, dept_code, manager_code, balances in EMPLOYEES:
        if await _find_employee(session, code) is not None:
            print(f"  [SKIP] {first} {last} (already exists)")
            continue
        manager = await _find_employee(session, manager_code) if manager_code else None
        payload = CreateEmployeeRequest(
            employee_code=code,
            email=email,
            first_name=first,
            last_name=last,
            role=role,
            department_id=departments.get(dept_code),
            manager_id=manager.id if manager is not None else None,
            balances=BalancesPayload(casual=balances[0], medical=balances[1], earned=balances[2])
            if balances
            else None,
        )
        await employee_service.create_employee(session, None, payload)
        print(f"  [OK] {first} {last} ({role.value})")


async def assign_department_managers(session: AsyncSession, departments: dict[str, uuid.UUID]) -> None:
    print("\n--- Assigning department managers ---")
    admin = await _find_employee(session, "EMP001")
    manager = await _find_employee(session, "EMP002")
    if admin is None or manager is None:
        print("  [SKIP] managers missing")
        return
    for dept_code in ("ENG", "HR"):
        await department_service.update_department(
            session, _auth_for(admin), departments[dept_code], UpdateDepartmentRequest(manager_id=manager.id)
        )
        print(f"  [OK] {dept_code} -> {manager.full_name}")


async def seed_policies(session: AsyncSession) -> None:
    print("\n--- Seeding policies ---")
    existing = {p.name for p in (await policy_service.list_policies(session)).items}
    for policy in POLICIES:
        if policy.name in existing:
            print(f"  [SKIP] {policy.name} (already exists)")
            continue
        await policy_service.create_policy(session, None, policy)
        print(f"  [OK] {policy.name}")


async def seed_requests(session: AsyncSession) -> None:
    """Seed one pending and one approved request."""
    print("\n--- Seeding requests ---")
    john = await _find_employee(session, "EMP004")
    bob = await _find_employee(session, "EMP006")
    manager = await _find_employee(session, "EMP002")
    admin = await _find_employee(session, "EMP001")
    if john is None or bob is None or manager is None or admin is None:
        print("  [SKIP] employees missing")
        return

    today = date.today()
    try:
        await request_service.create_leave_request(
            session,
            _auth_for(john),
            CreateLeaveRequestPayload(
                leave_type=LeaveType.CASUAL,
                start_date=today + timedelta(days=5),
                end_date=today + timedelta(days=7),
                reason="Family function to attend",
            ),
        )
        print("  [OK] John 3-day casual leave (pending)")
    except AppError as exc:
        print(f"  [SKIP] John's request: {exc.message}")

    try:
        leave = await request_service.create_leave_request(
            session,
            _auth_for(bob),
            CreateLeaveRequestPayload(
                leave_type=LeaveType.EARNED,
                start_date=today + timedelta(days=20),
                end_date=today + timedelta(days=25),
                reason="Vacation with family",
            ),
        )
        await request_service.approve_leave_request(session, _auth_for(admin), leave.id)
        print("  [OK] Bob 6-day earned leave (approved)")
    except AppError as exc:
        print(f"  [SKIP] Bob's request: {exc.message}")


async def main() -> None:
    print("=" * 60)
    print("  Leave Tracker - Development Seed Script")
    print("=" * 60)

    async with get_engine().begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    async with get_session_factory()() as session:
        departments = await seed_departments(session)
        await seed_employees(session, departments)
        await assign_department_managers(session, departments)
        await seed_policies(session)
        await seed_requests(session)

    await dispose_engine()

    print("\n" + "=" * 60)
    print("  Seeding complete!")
    print("=" * 60)


if __name__ == "__main__":
    asyncio.run(main())
