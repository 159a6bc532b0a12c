# ruff: noqa: TC001
from __future__ import annotations

from fastapi import APIRouter

from leave_tracker.api.deps import AuthDep
from leave_tracker.db import SessionDep
from leave_tracker.schemas.employee import EmployeeResponse, UpdateProfileRequest
from leave_tracker.services import employee as employee_service

profile_router = APIRouter(prefix="/profile", tags=["profile"])


@profile_router.get("", response_model=EmployeeResponse)
async def get_profile(session: SessionDep, auth: AuthDep) -> EmployeeResponse:
    return await employee_service.get_profile(session, auth)


@profile_router.patch("", response_model=EmployeeResponse)
async def update_profile(
    payload: UpdateProfileRequest,
    session: SessionDep,
    auth: AuthDep,
) -> EmployeeResponse:
    """Update the caller's own name or email."""
    return await employee_service.update_profile(session, auth, payload)
