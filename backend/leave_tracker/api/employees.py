# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query

from leave_tracker.api.deps import AuthDep
from leave_tracker.db import SessionDep
from leave_tracker.models.enums import LeaveType
from leave_tracker.schemas.balance import BalanceListResponse, LedgerListResponse
from leave_tracker.services import balance as balance_service
from leave_tracker.services.employee import ensure_can_view_employee

employees_router = APIRouter(prefix="/employees/{employee_id}", tags=["balances"])


@employees_router.get("/balances", response_model=BalanceListResponse)
async def get_employee_balances(
    employee_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> BalanceListResponse:
    """Get every leave balance for an employee."""
    await ensure_can_view_employee(session, auth, employee_id)
    return await balance_service.get_employee_balances(session, employee_id)


@employees_router.get("/ledger", response_model=LedgerListResponse)
async def get_employee_ledger(
    employee_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    leave_type: LeaveType | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> LedgerListResponse:
    """Get paginated balance ledger entries for an employee."""
    await ensure_can_view_employee(session, auth, employee_id)
    return await balance_service.get_employee_ledger(session, employee_id, leave_type, offset, limit)
