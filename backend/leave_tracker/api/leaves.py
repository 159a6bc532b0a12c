# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query, status

from leave_tracker.api.deps import AuthDep
from leave_tracker.db import SessionDep
from leave_tracker.models.enums import LeaveStatus
from leave_tracker.schemas.report import MyStatsResponse
from leave_tracker.schemas.request import (
    CreateLeaveRequestPayload,
    LeaveRequestListResponse,
    LeaveRequestResponse,
)
from leave_tracker.services import report as report_service
from leave_tracker.services import request as request_service

leaves_router = APIRouter(prefix="/leaves", tags=["leaves"])


@leaves_router.post("", response_model=LeaveRequestResponse, status_code=status.HTTP_201_CREATED)
async def apply_for_leave(
    payload: CreateLeaveRequestPayload,
    session: SessionDep,
    auth: AuthDep,
) -> LeaveRequestResponse:
    """Apply for leave. The request starts pending."""
    return await request_service.create_leave_request(session, auth, payload)


@leaves_router.get("", response_model=LeaveRequestListResponse)
async def list_my_leaves(
    session: SessionDep,
    auth: AuthDep,
    status_filter: LeaveStatus | None = Query(default=None, alias="status"),
    year: int | None = Query(default=None, ge=1900, le=9999),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> LeaveRequestListResponse:
    """List the caller's own leave requests, newest first."""
    return await request_service.list_my_requests(session, auth, status_filter, year, offset, limit)


@leaves_router.get("/stats", response_model=MyStatsResponse)
async def my_stats(session: SessionDep, auth: AuthDep) -> MyStatsResponse:
    return await report_service.my_stats(session, auth)


@leaves_router.get("/{request_id}", response_model=LeaveRequestResponse)
async def get_leave(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> LeaveRequestResponse:
    return await request_service.get_leave_request(session, auth, request_id)


@leaves_router.post("/{request_id}/cancel", response_model=LeaveRequestResponse)
async def cancel_leave(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> LeaveRequestResponse:
    """Cancel one of the caller's own pending or approved requests."""
    return await request_service.cancel_leave_request(session, auth, request_id)
