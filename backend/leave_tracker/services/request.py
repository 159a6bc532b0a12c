# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from datetime import UTC, date, datetime
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlmodel import col

from leave_tracker.config import get_settings
from leave_tracker.db import commit, storage_guard
from leave_tracker.exceptions import (
    InsufficientBalance,
    InvalidStateTransition,
    NotAuthorized,
    NotFoundError,
    NotOwner,
    OverlappingRequest,
)
from leave_tracker.models.employee import Employee
from leave_tracker.models.enums import (
    ACTIVE_LEAVE_STATUSES,
    AuditAction,
    AuditEntityType,
    EmployeeRole,
    LeaveStatus,
    LeaveType,
)
from leave_tracker.models.request import LeaveRequest
from leave_tracker.schemas.request import LeaveRequestListResponse, LeaveRequestResponse
from leave_tracker.services import balance as balance_service
from leave_tracker.services.audit import record_audit, snapshot
from leave_tracker.services.authorization import ensure_can_act
from leave_tracker.services.duration import month_bounds, validate_leave_dates, year_bounds
from leave_tracker.services.scope import scoped_employee_ids

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_tracker.schemas.auth import AuthContext
    from leave_tracker.schemas.request import CreateLeaveRequestPayload, RejectPayload

logger = logging.getLogger(__name__)

# pending -> approved | rejected | cancelled; approved -> cancelled.
_TRANSITIONS: dict[LeaveStatus, frozenset[LeaveStatus]] = {
    LeaveStatus.PENDING: frozenset({LeaveStatus.APPROVED, LeaveStatus.REJECTED, LeaveStatus.CANCELLED}),
    LeaveStatus.APPROVED: frozenset({LeaveStatus.CANCELLED}),
    LeaveStatus.REJECTED: frozenset(),
    LeaveStatus.CANCELLED: frozenset(),
}


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def build_request_response(leave: LeaveRequest) -> LeaveRequestResponse:
    """Map a request model to its response schema."""
    return LeaveRequestResponse(
        id=leave.id,
        employee_id=leave.employee_id,
        leave_type=LeaveType(leave.leave_type),
        start_date=leave.start_date,
        end_date=leave.end_date,
        number_of_days=leave.number_of_days,
        reason=leave.reason,
        status=LeaveStatus(leave.status),
        approved_by=leave.approved_by,
        approved_at=leave.approved_at,
        rejection_reason=leave.rejection_reason,
        created_at=leave.created_at,
    )


def can_transition(current: LeaveStatus, target: LeaveStatus) -> bool:
    return target in _TRANSITIONS[current]


def _ensure_transition(leave: LeaveRequest, target: LeaveStatus) -> None:
    current = LeaveStatus(leave.status)
    if not can_transition(current, target):
        raise InvalidStateTransition(f"Cannot move a {current.value} leave request to {target.value}")


async def _get_request_or_404(
    session: AsyncSession,
    request_id: uuid.UUID,
    *,
    for_update: bool = False,
) -> LeaveRequest:
    """Fetch a request by ID. Raises 404 if not found."""
    query = select(LeaveRequest).where(col(LeaveRequest.id) == request_id)
    if for_update:
        query = query.with_for_update().execution_options(populate_existing=True)
    result = await session.execute(query)
    leave = result.scalar_one_or_none()
    if leave is None:
        raise NotFoundError("Leave request not found")
    return leave


async def _lock_employee(session: AsyncSession, employee_id: uuid.UUID) -> Employee:
    """Load an employee with a row lock.

    Every mutation of one employee's requests or balances takes this lock
    first, so overlap and balance checks never race within an employee.
    """
    result = await session.execute(
        select(Employee)
        .where(col(Employee.id) == employee_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    employee = result.scalar_one_or_none()
    if employee is None:
        raise NotFoundError("Employee not found")
    return employee


async def _check_overlap(
    session: AsyncSession,
    employee_id: uuid.UUID,
    start_date: date,
    end_date: date,
) -> None:
    """Raise OverlappingRequest if a pending or approved request shares a day with the range.

    Bounds are inclusive: a request ending on the day another starts overlaps.
    """
    result = await session.execute(
        select(col(LeaveRequest.id))
        .where(
            col(LeaveRequest.employee_id) == employee_id,
            col(LeaveRequest.status).in_([s.value for s in ACTIVE_LEAVE_STATUSES]),
            col(LeaveRequest.start_date) <= end_date,
            col(LeaveRequest.end_date) >= start_date,
        )
        .limit(1)
    )
    if result.scalar_one_or_none() is not None:
        raise OverlappingRequest("You have an overlapping leave request")


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


@storage_guard
async def create_leave_request(
    session: AsyncSession,
    auth: AuthContext,
    payload: CreateLeaveRequestPayload,
    *,
    today: date | None = None,
) -> LeaveRequestResponse:
    """Apply for leave. The request starts pending; nothing is debited yet.

    Flow:
    1. Validate dates (order, then not in the past) and count days
    2. Lock the employee row
    3. Balance check for limited types (check only, no reservation)
    4. Overlap check against pending/approved requests
    5. Insert, audit, commit
    """
    number_of_days = validate_leave_dates(payload.start_date, payload.end_date, today)

    employee = await _lock_employee(session, auth.user_id)

    if payload.leave_type.is_limited:
        available = await balance_service.get_available_days(session, employee.id, payload.leave_type)
        if available < number_of_days:
            raise InsufficientBalance(
                f"Insufficient {payload.leave_type.value} leave balance. Available: {available} days"
            )

    await _check_overlap(session, employee.id, payload.start_date, payload.end_date)

    leave = LeaveRequest(
        employee_id=employee.id,
        leave_type=payload.leave_type.value,
        start_date=payload.start_date,
        end_date=payload.end_date,
        number_of_days=number_of_days,
        reason=payload.reason,
        status=LeaveStatus.PENDING.value,
    )
    session.add(leave)
    await session.flush()

    await record_audit(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.REQUEST,
        entity_id=leave.id,
        action=AuditAction.CREATE,
        after_json=snapshot(leave),
    )

    await commit(session)
    await session.refresh(leave)
    logger.info(
        "Leave request %s created: employee=%s type=%s days=%d",
        leave.id,
        leave.employee_id,
        leave.leave_type,
        leave.number_of_days,
    )
    return build_request_response(leave)


@storage_guard
async def approve_leave_request(
    session: AsyncSession,
    auth: AuthContext,
    request_id: uuid.UUID,
) -> LeaveRequestResponse:
    """Approve a pending request and debit the balance.

    The balance is re-checked here because creation never reserved it; the
    debit itself is guarded so a concurrent approval cannot overdraw.
    """
    leave = await _get_request_or_404(session, request_id, for_update=True)
    _ensure_transition(leave, LeaveStatus.APPROVED)

    employee = await _lock_employee(session, leave.employee_id)
    ensure_can_act(auth, employee, "approve leave")

    before_dict = snapshot(leave)
    leave_type = LeaveType(leave.leave_type)
    if leave_type.is_limited:
        await balance_service.debit(
            session,
            employee.id,
            leave_type,
            leave.number_of_days,
            request_id=leave.id,
            actor_id=auth.user_id,
        )

    leave.status = LeaveStatus.APPROVED.value
    leave.approved_by = auth.user_id
    leave.approved_at = datetime.now(UTC)
    await session.flush()

    await record_audit(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.REQUEST,
        entity_id=leave.id,
        action=AuditAction.APPROVE,
        before_json=before_dict,
        after_json=snapshot(leave),
    )

    await commit(session)
    await session.refresh(leave)
    logger.info("Leave request %s approved by %s", leave.id, auth.user_id)
    return build_request_response(leave)


@storage_guard
async def reject_leave_request(
    session: AsyncSession,
    auth: AuthContext,
    request_id: uuid.UUID,
    payload: RejectPayload | None = None,
) -> LeaveRequestResponse:
    """Reject a pending request. Balances are untouched."""
    leave = await _get_request_or_404(session, request_id, for_update=True)
    _ensure_transition(leave, LeaveStatus.REJECTED)

    employee = await _lock_employee(session, leave.employee_id)
    ensure_can_act(auth, employee, "reject leave")

    before_dict = snapshot(leave)
    reason = payload.reason if payload is not None and payload.reason else None

    leave.status = LeaveStatus.REJECTED.value
    leave.approved_by = auth.user_id
    leave.approved_at = datetime.now(UTC)
    leave.rejection_reason = reason or get_settings().rejection_placeholder
    await session.flush()

    await record_audit(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.REQUEST,
        entity_id=leave.id,
        action=AuditAction.REJECT,
        before_json=before_dict,
        after_json=snapshot(leave),
    )

    await commit(session)
    await session.refresh(leave)
    logger.info("Leave request %s rejected by %s", leave.id, auth.user_id)
    return build_request_response(leave)


@storage_guard
async def cancel_leave_request(
    session: AsyncSession,
    auth: AuthContext,
    request_id: uuid.UUID,
) -> LeaveRequestResponse:
    """Cancel one's own pending or approved request.

    Cancelling an approved request of a limited type credits the days back
    before the status changes; a pending request was never debited.
    """
    leave = await _get_request_or_404(session, request_id, for_update=True)
    if leave.employee_id != auth.user_id:
        raise NotOwner("Not authorized to cancel this leave request")
    _ensure_transition(leave, LeaveStatus.CANCELLED)

    await _lock_employee(session, leave.employee_id)

    before_dict = snapshot(leave)
    leave_type = LeaveType(leave.leave_type)
    if leave.status == LeaveStatus.APPROVED.value and leave_type.is_limited:
        await balance_service.credit(
            session,
            leave.employee_id,
            leave_type,
            leave.number_of_days,
            request_id=leave.id,
            actor_id=auth.user_id,
        )

    leave.status = LeaveStatus.CANCELLED.value
    await session.flush()

    await record_audit(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.REQUEST,
        entity_id=leave.id,
        action=AuditAction.CANCEL,
        before_json=before_dict,
        after_json=snapshot(leave),
    )

    await commit(session)
    await session.refresh(leave)
    logger.info("Leave request %s cancelled by its owner", leave.id)
    return build_request_response(leave)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


@storage_guard
async def get_leave_request(
    session: AsyncSession,
    auth: AuthContext,
    request_id: uuid.UUID,
) -> LeaveRequestResponse:
    """Get a single request. Owners and manager-tier actors may read it."""
    leave = await _get_request_or_404(session, request_id)
    if leave.employee_id != auth.user_id and not EmployeeRole(auth.role).is_manager:
        raise NotAuthorized("Not authorized to view this leave request")
    return build_request_response(leave)


async def _run_request_query(
    session: AsyncSession,
    filters: list,
    order_by: list,
    offset: int,
    limit: int | None,
) -> LeaveRequestListResponse:
    count_result = await session.execute(select(func.count()).select_from(LeaveRequest).where(*filters))
    total = count_result.scalar_one()

    query = select(LeaveRequest).where(*filters).order_by(*order_by).offset(offset)
    if limit is not None:
        query = query.limit(limit)
    result = await session.execute(query)
    requests = list(result.scalars().all())

    return LeaveRequestListResponse(
        items=[build_request_response(r) for r in requests],
        total=total,
    )


def _common_filters(
    status_filter: LeaveStatus | None,
    year: int | None,
    leave_type: LeaveType | None,
    start_date: date | None,
    end_date: date | None,
) -> list:
    filters: list = []
    if status_filter is not None:
        filters.append(col(LeaveRequest.status) == status_filter.value)
    if leave_type is not None:
        filters.append(col(LeaveRequest.leave_type) == leave_type.value)
    if year is not None:
        first, last = year_bounds(year)
        filters.append(col(LeaveRequest.start_date) >= first)
        filters.append(col(LeaveRequest.start_date) <= last)
    # Date window: keep requests that intersect [start_date, end_date].
    if start_date is not None:
        filters.append(col(LeaveRequest.end_date) >= start_date)
    if end_date is not None:
        filters.append(col(LeaveRequest.start_date) <= end_date)
    return filters


@storage_guard
async def list_my_requests(
    session: AsyncSession,
    auth: AuthContext,
    status_filter: LeaveStatus | None = None,
    year: int | None = None,
    offset: int = 0,
    limit: int | None = None,
) -> LeaveRequestListResponse:
    """List the actor's own requests, newest applied first."""
    filters = [col(LeaveRequest.employee_id) == auth.user_id]
    filters.extend(_common_filters(status_filter, year, None, None, None))
    return await _run_request_query(session, filters, [col(LeaveRequest.created_at).desc()], offset, limit)


@storage_guard
async def list_visible_requests(
    session: AsyncSession,
    auth: AuthContext,
    *,
    status_filter: LeaveStatus | None = None,
    year: int | None = None,
    leave_type: LeaveType | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    employee_id: uuid.UUID | None = None,
    oldest_first: bool = False,
    offset: int = 0,
    limit: int | None = None,
) -> LeaveRequestListResponse:
    """List requests of the employees in the actor's scope.

    Pending queues read oldest applied first; history reads newest first.
    """
    filters = [col(LeaveRequest.employee_id).in_(scoped_employee_ids(auth))]
    if employee_id is not None:
        filters.append(col(LeaveRequest.employee_id) == employee_id)
    filters.extend(_common_filters(status_filter, year, leave_type, start_date, end_date))
    created = col(LeaveRequest.created_at)
    order_by = [created.asc() if oldest_first else created.desc()]
    return await _run_request_query(session, filters, order_by, offset, limit)


async def list_pending_for_manager(session: AsyncSession, auth: AuthContext) -> LeaveRequestListResponse:
    """The approval queue: pending requests in scope, oldest applied first."""
    return await list_visible_requests(session, auth, status_filter=LeaveStatus.PENDING, oldest_first=True)


@storage_guard
async def team_calendar(
    session: AsyncSession,
    auth: AuthContext,
    month: int,
    year: int,
) -> LeaveRequestListResponse:
    """Approved leave in scope that touches the given month, ordered by start date."""
    first, last = month_bounds(year, month)
    filters = [col(LeaveRequest.employee_id).in_(scoped_employee_ids(auth))]
    filters.extend(_common_filters(LeaveStatus.APPROVED, None, None, first, last))
    return await _run_request_query(session, filters, [col(LeaveRequest.start_date).asc()], 0, None)
