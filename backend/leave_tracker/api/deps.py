# ruff: noqa: B008, TC003
from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import Depends, Header
from sqlalchemy import select
from sqlmodel import col

from leave_tracker.db import SessionDep
from leave_tracker.exceptions import AuthorizationError, NotAuthenticated
from leave_tracker.models.employee import Employee
from leave_tracker.models.enums import EmployeeRole
from leave_tracker.schemas.auth import AuthContext


async def get_auth_context(
    session: SessionDep,
    x_user_id: uuid.UUID = Header(),
) -> AuthContext:
    """Resolve the acting employee from the X-User-Id header.

    Authentication itself happens upstream; this only loads the employee the
    caller claims to be and rejects unknown or deactivated accounts.
    """
    result = await session.execute(
        select(Employee).where(col(Employee.id) == x_user_id, col(Employee.is_active).is_(True))
    )
    employee = result.scalar_one_or_none()
    if employee is None:
        raise NotAuthenticated("Unknown or inactive user")
    return AuthContext(
        user_id=employee.id,
        role=EmployeeRole(employee.role),
        department_id=employee.department_id,
        manager_id=employee.manager_id,
    )


AuthDep = Annotated[AuthContext, Depends(get_auth_context)]


async def require_manager(auth: AuthDep) -> AuthContext:
    """Require a manager-tier role (team leader and above)."""
    if not EmployeeRole(auth.role).is_manager:
        raise AuthorizationError("Manager access required")
    return auth


ManagerDep = Annotated[AuthContext, Depends(require_manager)]


async def require_admin(auth: AuthDep) -> AuthContext:
    """Require admin role for the request."""
    if auth.role != EmployeeRole.GENERAL_MANAGER:
        raise AuthorizationError("Admin access required")
    return auth


AdminDep = Annotated[AuthContext, Depends(require_admin)]
