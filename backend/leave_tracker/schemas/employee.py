# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import BaseModel, Field

from leave_tracker.models.enums import EmployeeRole


class BalancesPayload(BaseModel):
    """Opening or replacement balances for the limited leave types."""

    casual: int | None = Field(default=None, ge=0)
    medical: int | None = Field(default=None, ge=0)
    earned: int | None = Field(default=None, ge=0)


class CreateEmployeeRequest(BaseModel):
    """Request body for creating an employee (admin only)."""

    employee_code: str = Field(min_length=1, max_length=50)
    email: str = Field(min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    role: EmployeeRole = EmployeeRole.TEAM_MEMBER
    department_id: uuid.UUID | None = None
    manager_id: uuid.UUID | None = None
    joining_date: date | None = None
    balances: BalancesPayload | None = None


class UpdateEmployeeRequest(BaseModel):
    """Partial update of an employee (admin only). Omitted fields are left unchanged."""

    email: str | None = Field(default=None, min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, min_length=1, max_length=100)
    role: EmployeeRole | None = None
    department_id: uuid.UUID | None = None
    manager_id: uuid.UUID | None = None
    is_active: bool | None = None
    balances: BalancesPayload | None = None


class UpdateProfileRequest(BaseModel):
    """Self-service profile edit."""

    email: str | None = Field(default=None, min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, min_length=1, max_length=100)


class EmployeeResponse(BaseModel):
    """Response schema for an employee."""

    id: uuid.UUID
    employee_code: str
    email: str
    first_name: str
    last_name: str
    role: EmployeeRole
    department_id: uuid.UUID | None
    manager_id: uuid.UUID | None
    joining_date: date | None
    is_active: bool
    created_at: datetime


class EmployeeListResponse(BaseModel):
    """List of employees."""

    items: list[EmployeeResponse]
    total: int
