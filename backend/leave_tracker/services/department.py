# ruff: noqa: TC003
from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import or_, select
from sqlmodel import col

from leave_tracker.db import commit, storage_guard
from leave_tracker.exceptions import DuplicateRecord, NotFoundError
from leave_tracker.models.department import Department
from leave_tracker.models.employee import Employee
from leave_tracker.models.enums import AuditAction, AuditEntityType
from leave_tracker.schemas.department import DepartmentListResponse, DepartmentResponse
from leave_tracker.services.audit import record_audit, snapshot

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_tracker.schemas.auth import AuthContext
    from leave_tracker.schemas.department import CreateDepartmentRequest, UpdateDepartmentRequest


def _build_department_response(department: Department) -> DepartmentResponse:
    return DepartmentResponse(
        id=department.id,
        name=department.name,
        code=department.code,
        manager_id=department.manager_id,
        description=department.description,
        is_active=department.is_active,
        created_at=department.created_at,
    )


async def _ensure_unique(
    session: AsyncSession,
    name: str | None,
    code: str | None,
    exclude_id: uuid.UUID | None = None,
) -> None:
    clauses = []
    if name is not None:
        clauses.append(col(Department.name) == name)
    if code is not None:
        clauses.append(col(Department.code) == code)
    if not clauses:
        return
    query = select(col(Department.id)).where(or_(*clauses))
    if exclude_id is not None:
        query = query.where(col(Department.id) != exclude_id)
    if (await session.execute(query)).first() is not None:
        raise DuplicateRecord("Department name or code already exists")


async def _verify_manager(session: AsyncSession, manager_id: uuid.UUID | None) -> None:
    if manager_id is None:
        return
    result = await session.execute(select(col(Employee.id)).where(col(Employee.id) == manager_id))
    if result.first() is None:
        raise NotFoundError("Manager not found")


@storage_guard
async def list_departments(session: AsyncSession) -> DepartmentListResponse:
    """List departments by name."""
    result = await session.execute(select(Department).order_by(col(Department.name)))
    departments = list(result.scalars().all())
    return DepartmentListResponse(
        items=[_build_department_response(d) for d in departments],
        total=len(departments),
    )


@storage_guard
async def create_department(
    session: AsyncSession,
    auth: AuthContext | None,
    payload: CreateDepartmentRequest,
) -> DepartmentResponse:
    """Create a department. Codes are stored upper-case."""
    code = payload.code.upper()
    await _ensure_unique(session, payload.name, code)
    await _verify_manager(session, payload.manager_id)

    department = Department(
        name=payload.name,
        code=code,
        manager_id=payload.manager_id,
        description=payload.description,
    )
    session.add(department)
    await session.flush()

    await record_audit(
        session,
        actor_id=auth.user_id if auth is not None else None,
        entity_type=AuditEntityType.DEPARTMENT,
        entity_id=department.id,
        action=AuditAction.CREATE,
        after_json=snapshot(department),
    )
    await commit(session)
    await session.refresh(department)
    return _build_department_response(department)


@storage_guard
async def update_department(
    session: AsyncSession,
    auth: AuthContext,
    department_id: uuid.UUID,
    payload: UpdateDepartmentRequest,
) -> DepartmentResponse:
    result = await session.execute(select(Department).where(col(Department.id) == department_id))
    department = result.scalar_one_or_none()
    if department is None:
        raise NotFoundError("Department not found")

    before_dict = snapshot(department)
    code = payload.code.upper() if payload.code is not None else None
    await _ensure_unique(session, payload.name, code, exclude_id=department.id)

    if payload.name is not None:
        department.name = payload.name
    if code is not None:
        department.code = code
    if "manager_id" in payload.model_fields_set:
        await _verify_manager(session, payload.manager_id)
        department.manager_id = payload.manager_id
    if payload.description is not None:
        department.description = payload.description
    if payload.is_active is not None:
        department.is_active = payload.is_active
    await session.flush()

    await record_audit(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.DEPARTMENT,
        entity_id=department.id,
        action=AuditAction.UPDATE,
        before_json=before_dict,
        after_json=snapshot(department),
    )
    await commit(session)
    await session.refresh(department)
    return _build_department_response(department)
