# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel

from leave_tracker.schemas.request import LeaveRequestResponse


class DaysByType(BaseModel):
    """Approved days summed per leave type."""

    casual: int = 0
    medical: int = 0
    earned: int = 0
    unpaid: int = 0


class LeaveStats(BaseModel):
    """Counts by status and approved days by type for a set of requests."""

    total: int = 0
    pending: int = 0
    approved: int = 0
    rejected: int = 0
    cancelled: int = 0
    by_type: DaysByType = DaysByType()


class MyStatsResponse(BaseModel):
    year: int
    stats: LeaveStats
    balances: dict[str, int | None]


class TeamReportResponse(BaseModel):
    year: int
    team_size: int
    stats: LeaveStats
    items: list[LeaveRequestResponse]


class OrganizationReportResponse(BaseModel):
    year: int
    total_employees: int
    total_departments: int
    stats: LeaveStats
    recent_leaves: list[LeaveRequestResponse]


class AuditLogEntryResponse(BaseModel):
    """Response schema for a single audit log entry."""

    id: uuid.UUID
    actor_id: uuid.UUID | None
    entity_type: str
    entity_id: uuid.UUID
    action: str
    before_json: dict[str, Any] | None
    after_json: dict[str, Any] | None
    created_at: datetime


class AuditLogListResponse(BaseModel):
    """Paginated list of audit log entries."""

    items: list[AuditLogEntryResponse]
    total: int
