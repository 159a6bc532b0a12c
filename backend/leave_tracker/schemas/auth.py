# ruff: noqa: TC003
from __future__ import annotations

import uuid

from pydantic import BaseModel

from leave_tracker.models.enums import EmployeeRole


class AuthContext(BaseModel):
    """The authenticated actor, resolved from the employee record."""

    user_id: uuid.UUID
    role: EmployeeRole = EmployeeRole.TEAM_MEMBER
    department_id: uuid.UUID | None = None
    manager_id: uuid.UUID | None = None
