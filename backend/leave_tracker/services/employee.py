# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from leave_tracker.db import commit, storage_guard
from leave_tracker.exceptions import DuplicateRecord, NotFoundError, ValidationError
from leave_tracker.models.department import Department
from leave_tracker.models.employee import Employee
from leave_tracker.models.enums import (
    LIMITED_LEAVE_TYPES,
    AuditAction,
    AuditEntityType,
    BalanceSourceType,
    EmployeeRole,
    LeaveType,
)
from leave_tracker.schemas.employee import EmployeeListResponse, EmployeeResponse
from leave_tracker.services.audit import record_audit, snapshot
from leave_tracker.services.authorization import ensure_can_act
from leave_tracker.services.balance import default_balances, open_balances, set_balance

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_tracker.schemas.auth import AuthContext
    from leave_tracker.schemas.employee import (
        BalancesPayload,
        CreateEmployeeRequest,
        UpdateEmployeeRequest,
        UpdateProfileRequest,
    )

logger = logging.getLogger(__name__)


def build_employee_response(employee: Employee) -> EmployeeResponse:
    """Map an employee model to its response schema."""
    return EmployeeResponse(
        id=employee.id,
        employee_code=employee.employee_code,
        email=employee.email,
        first_name=employee.first_name,
        last_name=employee.last_name,
        role=EmployeeRole(employee.role),
        department_id=employee.department_id,
        manager_id=employee.manager_id,
        joining_date=employee.joining_date,
        is_active=employee.is_active,
        created_at=employee.created_at,
    )


async def get_employee_or_404(session: AsyncSession, employee_id: uuid.UUID) -> Employee:
    """Fetch an employee by ID. Raises 404 if not found."""
    result = await session.execute(select(Employee).where(col(Employee.id) == employee_id))
    employee = result.scalar_one_or_none()
    if employee is None:
        raise NotFoundError("Employee not found")
    return employee


async def _ensure_unique(
    session: AsyncSession,
    *,
    email: str | None = None,
    employee_code: str | None = None,
    exclude_id: uuid.UUID | None = None,
) -> None:
    if email is not None:
        query = select(col(Employee.id)).where(col(Employee.email) == email)
        if exclude_id is not None:
            query = query.where(col(Employee.id) != exclude_id)
        if (await session.execute(query)).first() is not None:
            raise DuplicateRecord("An employee with this email already exists")
    if employee_code is not None:
        query = select(col(Employee.id)).where(col(Employee.employee_code) == employee_code)
        if (await session.execute(query)).first() is not None:
            raise DuplicateRecord("Employee code already exists")


async def _verify_references(
    session: AsyncSession,
    department_id: uuid.UUID | None,
    manager_id: uuid.UUID | None,
) -> None:
    if department_id is not None:
        result = await session.execute(select(col(Department.id)).where(col(Department.id) == department_id))
        if result.first() is None:
            raise NotFoundError("Department not found")
    if manager_id is not None:
        result = await session.execute(select(col(Employee.id)).where(col(Employee.id) == manager_id))
        if result.first() is None:
            raise NotFoundError("Manager not found")


async def _ensure_no_reporting_cycle(
    session: AsyncSession,
    employee_id: uuid.UUID,
    manager_id: uuid.UUID,
) -> None:
    """Walk up from the proposed manager; reaching the employee would close a loop."""
    seen: set[uuid.UUID] = set()
    current: uuid.UUID | None = manager_id
    while current is not None and current not in seen:
        if current == employee_id:
            raise ValidationError("This manager assignment would create a reporting cycle")
        seen.add(current)
        result = await session.execute(select(col(Employee.manager_id)).where(col(Employee.id) == current))
        current = result.scalar_one_or_none()


def _balances_from_payload(payload: BalancesPayload | None) -> dict[LeaveType, int]:
    balances = default_balances()
    if payload is not None:
        for leave_type in LIMITED_LEAVE_TYPES:
            value = getattr(payload, leave_type.value)
            if value is not None:
                balances[leave_type] = value
    return balances


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------


@storage_guard
async def list_employees(
    session: AsyncSession,
    *,
    include_inactive: bool = True,
    department_id: uuid.UUID | None = None,
    role: EmployeeRole | None = None,
) -> EmployeeListResponse:
    """List employees, newest first."""
    filters = []
    if not include_inactive:
        filters.append(col(Employee.is_active).is_(True))
    if department_id is not None:
        filters.append(col(Employee.department_id) == department_id)
    if role is not None:
        filters.append(col(Employee.role) == role.value)

    result = await session.execute(select(Employee).where(*filters).order_by(col(Employee.created_at).desc()))
    employees = list(result.scalars().all())
    return EmployeeListResponse(items=[build_employee_response(e) for e in employees], total=len(employees))


@storage_guard
async def get_employee(session: AsyncSession, employee_id: uuid.UUID) -> EmployeeResponse:
    return build_employee_response(await get_employee_or_404(session, employee_id))


@storage_guard
async def create_employee(
    session: AsyncSession,
    auth: AuthContext | None,
    payload: CreateEmployeeRequest,
) -> EmployeeResponse:
    """Create an employee together with opening balances for every limited leave type."""
    email = payload.email.lower()
    await _ensure_unique(session, email=email, employee_code=payload.employee_code)
    await _verify_references(session, payload.department_id, payload.manager_id)

    actor_id = auth.user_id if auth is not None else None
    employee = Employee(
        employee_code=payload.employee_code,
        email=email,
        first_name=payload.first_name,
        last_name=payload.last_name,
        role=payload.role.value,
        department_id=payload.department_id,
        manager_id=payload.manager_id,
        joining_date=payload.joining_date,
    )
    session.add(employee)
    try:
        await session.flush()
    except IntegrityError:
        await session.rollback()
        raise DuplicateRecord("An employee with this email or code already exists") from None

    await open_balances(session, employee.id, _balances_from_payload(payload.balances), actor_id)

    await record_audit(
        session,
        actor_id=actor_id,
        entity_type=AuditEntityType.EMPLOYEE,
        entity_id=employee.id,
        action=AuditAction.CREATE,
        after_json=snapshot(employee),
    )
    await commit(session)
    await session.refresh(employee)
    logger.info("Employee %s created (%s, %s)", employee.id, employee.employee_code, employee.role)
    return build_employee_response(employee)


@storage_guard
async def update_employee(
    session: AsyncSession,
    auth: AuthContext,
    employee_id: uuid.UUID,
    payload: UpdateEmployeeRequest,
) -> EmployeeResponse:
    """Apply an admin edit. Only fields present in the payload change."""
    result = await session.execute(select(Employee).where(col(Employee.id) == employee_id).with_for_update())
    employee = result.scalar_one_or_none()
    if employee is None:
        raise NotFoundError("Employee not found")

    before_dict = snapshot(employee)
    fields = payload.model_fields_set

    if payload.email is not None:
        email = payload.email.lower()
        await _ensure_unique(session, email=email, exclude_id=employee.id)
        employee.email = email
    if payload.first_name is not None:
        employee.first_name = payload.first_name
    if payload.last_name is not None:
        employee.last_name = payload.last_name
    if payload.role is not None:
        employee.role = payload.role.value
    if "department_id" in fields:
        await _verify_references(session, payload.department_id, None)
        employee.department_id = payload.department_id
    if "manager_id" in fields:
        if payload.manager_id == employee.id:
            raise ValidationError("An employee cannot be their own manager")
        await _verify_references(session, None, payload.manager_id)
        if payload.manager_id is not None:
            await _ensure_no_reporting_cycle(session, employee.id, payload.manager_id)
        employee.manager_id = payload.manager_id
    if payload.is_active is not None:
        employee.is_active = payload.is_active

    if payload.balances is not None:
        for leave_type in LIMITED_LEAVE_TYPES:
            value = getattr(payload.balances, leave_type.value)
            if value is not None:
                await set_balance(
                    session,
                    employee.id,
                    leave_type,
                    value,
                    actor_id=auth.user_id,
                    source_type=BalanceSourceType.ADMIN,
                )

    await session.flush()
    await record_audit(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.EMPLOYEE,
        entity_id=employee.id,
        action=AuditAction.UPDATE,
        before_json=before_dict,
        after_json=snapshot(employee),
    )
    await commit(session)
    await session.refresh(employee)
    return build_employee_response(employee)


@storage_guard
async def deactivate_employee(
    session: AsyncSession,
    auth: AuthContext,
    employee_id: uuid.UUID,
) -> EmployeeResponse:
    """Soft delete: employees are never removed, only marked inactive."""
    employee = await get_employee_or_404(session, employee_id)
    before_dict = snapshot(employee)
    employee.is_active = False
    await session.flush()

    await record_audit(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.EMPLOYEE,
        entity_id=employee.id,
        action=AuditAction.DEACTIVATE,
        before_json=before_dict,
        after_json=snapshot(employee),
    )
    await commit(session)
    await session.refresh(employee)
    logger.info("Employee %s deactivated by %s", employee.id, auth.user_id)
    return build_employee_response(employee)


# ---------------------------------------------------------------------------
# Self-service profile and record access
# ---------------------------------------------------------------------------


@storage_guard
async def get_profile(session: AsyncSession, auth: AuthContext) -> EmployeeResponse:
    return build_employee_response(await get_employee_or_404(session, auth.user_id))


@storage_guard
async def update_profile(
    session: AsyncSession,
    auth: AuthContext,
    payload: UpdateProfileRequest,
) -> EmployeeResponse:
    """Let an employee edit their own name and email."""
    employee = await get_employee_or_404(session, auth.user_id)
    before_dict = snapshot(employee)

    if payload.email is not None:
        email = payload.email.lower()
        await _ensure_unique(session, email=email, exclude_id=employee.id)
        employee.email = email
    if payload.first_name is not None:
        employee.first_name = payload.first_name
    if payload.last_name is not None:
        employee.last_name = payload.last_name
    await session.flush()

    await record_audit(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.EMPLOYEE,
        entity_id=employee.id,
        action=AuditAction.UPDATE,
        before_json=before_dict,
        after_json=snapshot(employee),
    )
    await commit(session)
    await session.refresh(employee)
    return build_employee_response(employee)


@storage_guard
async def ensure_can_view_employee(session: AsyncSession, auth: AuthContext, employee_id: uuid.UUID) -> Employee:
    """Allow an employee to read their own records and an authorized manager to read theirs."""
    employee = await get_employee_or_404(session, employee_id)
    if employee.id != auth.user_id:
        ensure_can_act(auth, employee, "view leave balances")
    return employee
