"""Reporting service: leave statistics per scope and audit log queries."""

from __future__ import annotations

from datetime import UTC, date, datetime, time
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlmodel import col

from leave_tracker.config import get_settings
from leave_tracker.db import storage_guard
from leave_tracker.models.audit import AuditLog
from leave_tracker.models.department import Department
from leave_tracker.models.employee import Employee
from leave_tracker.models.enums import LeaveStatus, LeaveType
from leave_tracker.models.request import LeaveRequest
from leave_tracker.schemas.report import (
    AuditLogEntryResponse,
    AuditLogListResponse,
    DaysByType,
    LeaveStats,
    MyStatsResponse,
    OrganizationReportResponse,
    TeamReportResponse,
)
from leave_tracker.services.balance import get_employee_balances
from leave_tracker.services.duration import year_bounds
from leave_tracker.services.request import build_request_response
from leave_tracker.services.scope import scope_predicate, scoped_employee_ids

if TYPE_CHECKING:
    import uuid
    from collections.abc import Iterable

    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_tracker.schemas.auth import AuthContext


def summarize_requests(requests: Iterable[LeaveRequest]) -> LeaveStats:
    """Count requests by status and sum approved days by leave type."""
    counts = dict.fromkeys(LeaveStatus, 0)
    days = dict.fromkeys(LeaveType, 0)
    total = 0
    for leave in requests:
        total += 1
        status = LeaveStatus(leave.status)
        counts[status] += 1
        if status is LeaveStatus.APPROVED:
            days[LeaveType(leave.leave_type)] += leave.number_of_days

    return LeaveStats(
        total=total,
        pending=counts[LeaveStatus.PENDING],
        approved=counts[LeaveStatus.APPROVED],
        rejected=counts[LeaveStatus.REJECTED],
        cancelled=counts[LeaveStatus.CANCELLED],
        by_type=DaysByType(**{leave_type.value: n for leave_type, n in days.items()}),
    )


def _year_filters(year: int) -> list:
    first, last = year_bounds(year)
    return [col(LeaveRequest.start_date) >= first, col(LeaveRequest.start_date) <= last]


@storage_guard
async def my_stats(session: AsyncSession, auth: AuthContext, *, today: date | None = None) -> MyStatsResponse:
    """Current-year stats for the actor's own requests, with current balances."""
    year = (today or date.today()).year
    result = await session.execute(
        select(LeaveRequest).where(col(LeaveRequest.employee_id) == auth.user_id, *_year_filters(year))
    )
    balances = await get_employee_balances(session, auth.user_id)
    return MyStatsResponse(
        year=year,
        stats=summarize_requests(result.scalars().all()),
        balances=balances.as_mapping(),
    )


@storage_guard
async def team_report(session: AsyncSession, auth: AuthContext, year: int) -> TeamReportResponse:
    team_size_result = await session.execute(select(func.count()).select_from(Employee).where(scope_predicate(auth)))
    result = await session.execute(
        select(LeaveRequest)
        .where(col(LeaveRequest.employee_id).in_(scoped_employee_ids(auth)), *_year_filters(year))
        .order_by(col(LeaveRequest.created_at).desc())
    )
    requests = list(result.scalars().all())
    return TeamReportResponse(
        year=year,
        team_size=team_size_result.scalar_one(),
        stats=summarize_requests(requests),
        items=[build_request_response(r) for r in requests],
    )


@storage_guard
async def organization_report(session: AsyncSession, year: int) -> OrganizationReportResponse:
    """Organisation-wide figures for the administrator dashboard."""
    employees = await session.execute(
        select(func.count()).select_from(Employee).where(col(Employee.is_active).is_(True))
    )
    departments = await session.execute(
        select(func.count()).select_from(Department).where(col(Department.is_active).is_(True))
    )
    result = await session.execute(select(LeaveRequest).where(*_year_filters(year)))
    recent = await session.execute(
        select(LeaveRequest)
        .order_by(col(LeaveRequest.created_at).desc())
        .limit(get_settings().recent_leaves_limit)
    )
    return OrganizationReportResponse(
        year=year,
        total_employees=employees.scalar_one(),
        total_departments=departments.scalar_one(),
        stats=summarize_requests(result.scalars().all()),
        recent_leaves=[build_request_response(r) for r in recent.scalars().all()],
    )


@storage_guard
async def query_audit_log(
    session: AsyncSession,
    *,
    entity_type: str | None = None,
    action: str | None = None,
    actor_id: uuid.UUID | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    offset: int = 0,
    limit: int = 50,
) -> AuditLogListResponse:
    """Query audit log entries with optional filters."""
    filters = []

    if entity_type is not None:
        filters.append(col(AuditLog.entity_type) == entity_type)
    if action is not None:
        filters.append(col(AuditLog.action) == action)
    if actor_id is not None:
        filters.append(col(AuditLog.actor_id) == actor_id)
    if start_date is not None:
        filters.append(col(AuditLog.created_at) >= datetime.combine(start_date, time.min, tzinfo=UTC))
    if end_date is not None:
        filters.append(col(AuditLog.created_at) <= datetime.combine(end_date, time.max, tzinfo=UTC))

    count_result = await session.execute(select(func.count()).select_from(AuditLog).where(*filters))
    total = count_result.scalar_one()

    result = await session.execute(
        select(AuditLog).where(*filters).order_by(col(AuditLog.created_at).desc()).offset(offset).limit(limit)
    )
    entries = list(result.scalars().all())

    return AuditLogListResponse(
        items=[
            AuditLogEntryResponse(
                id=e.id,
                actor_id=e.actor_id,
                entity_type=e.entity_type,
                entity_id=e.entity_id,
                action=e.action,
                before_json=e.before_json,
                after_json=e.after_json,
                created_at=e.created_at,
            )
            for e in entries
        ],
        total=total,
    )
