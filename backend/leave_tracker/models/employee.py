# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date

import sqlalchemy as sa
from sqlmodel import Field

from leave_tracker.models.base import TimestampMixin, UUIDBase
from leave_tracker.models.enums import EmployeeRole


class Employee(UUIDBase, TimestampMixin, table=True):
    """A person who applies for leave and, depending on role, reviews others'."""

    __tablename__ = "employee"

    employee_code: str = Field(max_length=50, unique=True)
    email: str = Field(max_length=255, unique=True)
    first_name: str = Field(max_length=100)
    last_name: str = Field(max_length=100)
    role: str = Field(
        default=EmployeeRole.TEAM_MEMBER, max_length=50, sa_column_kwargs={"server_default": "team_member"}
    )
    department_id: uuid.UUID | None = Field(
        default=None,
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("department.id", ondelete="SET NULL"), index=True),
    )
    # Parent pointer of the reporting tree; indexed for direct-report lookups.
    manager_id: uuid.UUID | None = Field(
        default=None,
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("employee.id", ondelete="SET NULL"), index=True),
    )
    joining_date: date | None = None
    is_active: bool = Field(default=True, index=True)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
