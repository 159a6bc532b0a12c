"""Visibility scoping: which employees a manager can see.

team_leader sees direct reports, team_manager sees the department,
general_manager sees everyone except other general managers. Team members
have no managerial scope.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import false, select
from sqlmodel import col

from leave_tracker.db import storage_guard
from leave_tracker.models.employee import Employee
from leave_tracker.models.enums import EmployeeRole
from leave_tracker.schemas.employee import EmployeeListResponse
from leave_tracker.services.employee import build_employee_response

if TYPE_CHECKING:
    from sqlalchemy import ColumnElement, Select
    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_tracker.schemas.auth import AuthContext


def scope_predicate(auth: AuthContext) -> ColumnElement[bool]:
    """Build the WHERE clause selecting the employees visible to the actor."""
    role = EmployeeRole(auth.role)
    if role is EmployeeRole.TEAM_LEADER:
        return col(Employee.manager_id) == auth.user_id
    if role is EmployeeRole.TEAM_MANAGER:
        if auth.department_id is None:
            return false()
        return col(Employee.department_id) == auth.department_id
    if role is EmployeeRole.GENERAL_MANAGER:
        return col(Employee.role) != EmployeeRole.GENERAL_MANAGER.value
    return false()


def scoped_employee_ids(auth: AuthContext) -> Select[tuple]:
    """Subquery of employee ids in the actor's scope, for IN filters."""
    return select(col(Employee.id)).where(scope_predicate(auth))


@storage_guard
async def list_team_members(session: AsyncSession, auth: AuthContext) -> EmployeeListResponse:
    """List the employees in the actor's scope, ordered by name."""
    result = await session.execute(
        select(Employee)
        .where(scope_predicate(auth))
        .order_by(col(Employee.first_name), col(Employee.last_name))
    )
    employees = list(result.scalars().all())
    return EmployeeListResponse(
        items=[build_employee_response(e) for e in employees],
        total=len(employees),
    )
