# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Query

from leave_tracker.api.deps import ManagerDep
from leave_tracker.db import SessionDep
from leave_tracker.models.enums import LeaveStatus, LeaveType
from leave_tracker.schemas.balance import BalanceListResponse, OverrideBalanceRequest
from leave_tracker.schemas.employee import EmployeeListResponse
from leave_tracker.schemas.report import TeamReportResponse
from leave_tracker.schemas.request import LeaveRequestListResponse, LeaveRequestResponse, RejectPayload
from leave_tracker.services import balance as balance_service
from leave_tracker.services import report as report_service
from leave_tracker.services import request as request_service
from leave_tracker.services.scope import list_team_members

manager_router = APIRouter(prefix="/manager", tags=["manager"])


@manager_router.get("/pending", response_model=LeaveRequestListResponse)
async def list_pending(session: SessionDep, auth: ManagerDep) -> LeaveRequestListResponse:
    """Pending requests awaiting this manager, oldest first."""
    return await request_service.list_pending_for_manager(session, auth)


@manager_router.get("/requests", response_model=LeaveRequestListResponse)
async def list_team_requests(
    session: SessionDep,
    auth: ManagerDep,
    status_filter: LeaveStatus | None = Query(default=None, alias="status"),
    leave_type: LeaveType | None = None,
    employee_id: uuid.UUID | None = None,
    year: int | None = Query(default=None, ge=1900, le=9999),
    start_date: date | None = None,
    end_date: date | None = None,
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> LeaveRequestListResponse:
    """Leave history of the manager's scope, newest first."""
    return await request_service.list_visible_requests(
        session,
        auth,
        status_filter=status_filter,
        year=year,
        leave_type=leave_type,
        start_date=start_date,
        end_date=end_date,
        employee_id=employee_id,
        offset=offset,
        limit=limit,
    )


@manager_router.post("/requests/{request_id}/approve", response_model=LeaveRequestResponse)
async def approve_request(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: ManagerDep,
) -> LeaveRequestResponse:
    return await request_service.approve_leave_request(session, auth, request_id)


@manager_router.post("/requests/{request_id}/reject", response_model=LeaveRequestResponse)
async def reject_request(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: ManagerDep,
    payload: RejectPayload | None = None,
) -> LeaveRequestResponse:
    return await request_service.reject_leave_request(session, auth, request_id, payload)


@manager_router.get("/team-calendar", response_model=LeaveRequestListResponse)
async def team_calendar(
    session: SessionDep,
    auth: ManagerDep,
    month: int | None = Query(default=None, ge=1, le=12),
    year: int | None = Query(default=None, ge=1900, le=9999),
) -> LeaveRequestListResponse:
    """Approved leave in the manager's scope for a month (defaults to the current one)."""
    today = date.today()
    return await request_service.team_calendar(session, auth, month or today.month, year or today.year)


@manager_router.get("/team-members", response_model=EmployeeListResponse)
async def team_members(session: SessionDep, auth: ManagerDep) -> EmployeeListResponse:
    return await list_team_members(session, auth)


@manager_router.put("/balances/{employee_id}", response_model=BalanceListResponse)
async def override_balance(
    employee_id: uuid.UUID,
    payload: OverrideBalanceRequest,
    session: SessionDep,
    auth: ManagerDep,
) -> BalanceListResponse:
    """Set one leave balance of an employee the manager may act on."""
    return await balance_service.override_balance(session, auth, employee_id, payload)


@manager_router.get("/report", response_model=TeamReportResponse)
async def team_report(
    session: SessionDep,
    auth: ManagerDep,
    year: int | None = Query(default=None, ge=1900, le=9999),
) -> TeamReportResponse:
    return await report_service.team_report(session, auth, year or date.today().year)
