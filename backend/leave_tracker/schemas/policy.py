# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from leave_tracker.models.enums import LeaveType


class CreatePolicyRequest(BaseModel):
    """Request body for creating a leave policy."""

    name: str = Field(min_length=1, max_length=255)
    leave_type: LeaveType
    annual_quota: int = Field(ge=0)
    max_consecutive_days: int | None = Field(default=None, ge=1)
    carry_forward_allowed: bool = False
    carry_forward_max_days: int = Field(default=0, ge=0)
    requires_approval: bool = True
    minimum_notice_days: int = Field(default=0, ge=0)
    description: str | None = Field(default=None, max_length=1000)


class UpdatePolicyRequest(BaseModel):
    """Partial update of a leave policy."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    leave_type: LeaveType | None = None
    annual_quota: int | None = Field(default=None, ge=0)
    max_consecutive_days: int | None = Field(default=None, ge=1)
    carry_forward_allowed: bool | None = None
    carry_forward_max_days: int | None = Field(default=None, ge=0)
    requires_approval: bool | None = None
    minimum_notice_days: int | None = Field(default=None, ge=0)
    description: str | None = Field(default=None, max_length=1000)
    is_active: bool | None = None


class PolicyResponse(BaseModel):
    """Response schema for a leave policy."""

    id: uuid.UUID
    name: str
    leave_type: LeaveType
    annual_quota: int
    max_consecutive_days: int | None
    carry_forward_allowed: bool
    carry_forward_max_days: int
    requires_approval: bool
    minimum_notice_days: int
    description: str | None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class PolicyListResponse(BaseModel):
    items: list[PolicyResponse]
    total: int
