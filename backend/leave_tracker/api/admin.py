# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Query, status

from leave_tracker.api.deps import AdminDep
from leave_tracker.db import SessionDep
from leave_tracker.models.enums import EmployeeRole
from leave_tracker.schemas.balance import ResetBalancesRequest, ResetBalancesResponse
from leave_tracker.schemas.department import (
    CreateDepartmentRequest,
    DepartmentListResponse,
    DepartmentResponse,
    UpdateDepartmentRequest,
)
from leave_tracker.schemas.employee import (
    CreateEmployeeRequest,
    EmployeeListResponse,
    EmployeeResponse,
    UpdateEmployeeRequest,
)
from leave_tracker.schemas.policy import (
    CreatePolicyRequest,
    PolicyListResponse,
    PolicyResponse,
    UpdatePolicyRequest,
)
from leave_tracker.schemas.report import AuditLogListResponse, OrganizationReportResponse
from leave_tracker.services import balance as balance_service
from leave_tracker.services import department as department_service
from leave_tracker.services import employee as employee_service
from leave_tracker.services import policy as policy_service
from leave_tracker.services import report as report_service

admin_router = APIRouter(prefix="/admin", tags=["admin"])


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


@admin_router.get("/users", response_model=EmployeeListResponse)
async def list_users(
    session: SessionDep,
    auth: AdminDep,
    include_inactive: bool = Query(default=True),
    department_id: uuid.UUID | None = Query(default=None),
    role: EmployeeRole | None = Query(default=None),
) -> EmployeeListResponse:
    return await employee_service.list_employees(
        session,
        include_inactive=include_inactive,
        department_id=department_id,
        role=role,
    )


@admin_router.post("/users", response_model=EmployeeResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: CreateEmployeeRequest,
    session: SessionDep,
    auth: AdminDep,
) -> EmployeeResponse:
    """Create an employee with opening leave balances."""
    return await employee_service.create_employee(session, auth, payload)


@admin_router.get("/users/{employee_id}", response_model=EmployeeResponse)
async def get_user(employee_id: uuid.UUID, session: SessionDep, auth: AdminDep) -> EmployeeResponse:
    return await employee_service.get_employee(session, employee_id)


@admin_router.patch("/users/{employee_id}", response_model=EmployeeResponse)
async def update_user(
    employee_id: uuid.UUID,
    payload: UpdateEmployeeRequest,
    session: SessionDep,
    auth: AdminDep,
) -> EmployeeResponse:
    return await employee_service.update_employee(session, auth, employee_id, payload)


@admin_router.delete("/users/{employee_id}", response_model=EmployeeResponse)
async def deactivate_user(employee_id: uuid.UUID, session: SessionDep, auth: AdminDep) -> EmployeeResponse:
    """Deactivate an employee. Records are kept."""
    return await employee_service.deactivate_employee(session, auth, employee_id)


# ---------------------------------------------------------------------------
# Departments
# ---------------------------------------------------------------------------


@admin_router.get("/departments", response_model=DepartmentListResponse)
async def list_departments(session: SessionDep, auth: AdminDep) -> DepartmentListResponse:
    return await department_service.list_departments(session)


@admin_router.post("/departments", response_model=DepartmentResponse, status_code=status.HTTP_201_CREATED)
async def create_department(
    payload: CreateDepartmentRequest,
    session: SessionDep,
    auth: AdminDep,
) -> DepartmentResponse:
    return await department_service.create_department(session, auth, payload)


@admin_router.patch("/departments/{department_id}", response_model=DepartmentResponse)
async def update_department(
    department_id: uuid.UUID,
    payload: UpdateDepartmentRequest,
    session: SessionDep,
    auth: AdminDep,
) -> DepartmentResponse:
    return await department_service.update_department(session, auth, department_id, payload)


# ---------------------------------------------------------------------------
# Leave policies
# ---------------------------------------------------------------------------


@admin_router.get("/policies", response_model=PolicyListResponse)
async def list_policies(session: SessionDep, auth: AdminDep) -> PolicyListResponse:
    return await policy_service.list_policies(session)


@admin_router.post("/policies", response_model=PolicyResponse, status_code=status.HTTP_201_CREATED)
async def create_policy(
    payload: CreatePolicyRequest,
    session: SessionDep,
    auth: AdminDep,
) -> PolicyResponse:
    return await policy_service.create_policy(session, auth, payload)


@admin_router.patch("/policies/{policy_id}", response_model=PolicyResponse)
async def update_policy(
    policy_id: uuid.UUID,
    payload: UpdatePolicyRequest,
    session: SessionDep,
    auth: AdminDep,
) -> PolicyResponse:
    return await policy_service.update_policy(session, auth, policy_id, payload)


@admin_router.delete("/policies/{policy_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_policy(policy_id: uuid.UUID, session: SessionDep, auth: AdminDep) -> None:
    await policy_service.delete_policy(session, auth, policy_id)


# ---------------------------------------------------------------------------
# Reports and balance reset
# ---------------------------------------------------------------------------


@admin_router.get("/reports", response_model=OrganizationReportResponse)
async def organization_report(
    session: SessionDep,
    auth: AdminDep,
    year: int | None = Query(default=None, ge=1900, le=9999),
) -> OrganizationReportResponse:
    """Organisation-wide leave figures for a year (defaults to the current one)."""
    return await report_service.organization_report(session, year or date.today().year)


@admin_router.get("/audit-log", response_model=AuditLogListResponse)
async def query_audit_log(
    session: SessionDep,
    auth: AdminDep,
    entity_type: str | None = Query(default=None),
    action: str | None = Query(default=None),
    actor_id: uuid.UUID | None = Query(default=None),
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> AuditLogListResponse:
    return await report_service.query_audit_log(
        session,
        entity_type=entity_type,
        action=action,
        actor_id=actor_id,
        start_date=start_date,
        end_date=end_date,
        offset=offset,
        limit=limit,
    )


@admin_router.post("/reset-balances", response_model=ResetBalancesResponse)
async def reset_balances(
    session: SessionDep,
    auth: AdminDep,
    payload: ResetBalancesRequest | None = None,
) -> ResetBalancesResponse:
    """Overwrite casual, medical and earned balances of every active employee."""
    return await balance_service.reset_all_balances(session, auth, payload or ResetBalancesRequest())
