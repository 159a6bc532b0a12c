"""Decides whether a manager may act on another employee's leave.

Authorization looks one level up the reporting tree (direct manager) or at
department membership; it never walks the full chain.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from leave_tracker.exceptions import NotAuthorized
from leave_tracker.models.enums import EmployeeRole

if TYPE_CHECKING:
    from leave_tracker.models.employee import Employee
    from leave_tracker.schemas.auth import AuthContext


def can_act(actor: AuthContext, subject: Employee) -> bool:
    """Return True if the actor may approve, reject or adjust the subject's leave."""
    role = EmployeeRole(actor.role)
    if role is EmployeeRole.GENERAL_MANAGER:
        return True
    if role is EmployeeRole.TEAM_MANAGER:
        return (
            actor.department_id is not None
            and subject.department_id is not None
            and subject.department_id == actor.department_id
        )
    if role is EmployeeRole.TEAM_LEADER:
        return subject.manager_id is not None and subject.manager_id == actor.user_id
    return False


def ensure_can_act(actor: AuthContext, subject: Employee, action: str) -> None:
    """Raise NotAuthorized unless can_act allows the actor to touch the subject."""
    if not can_act(actor, subject):
        raise NotAuthorized(f"Not authorized to {action} for this employee")
