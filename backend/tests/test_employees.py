"""Tests for employee administration and the self-service profile."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

import pytest

from conftest import auth_for, headers_for
from leave_tracker.exceptions import DuplicateRecord, NotFoundError, ValidationError
from leave_tracker.models.enums import EmployeeRole, LeaveType
from leave_tracker.schemas.employee import BalancesPayload, CreateEmployeeRequest, UpdateEmployeeRequest
from leave_tracker.services.balance import get_available_days
from leave_tracker.services.employee import create_employee, list_employees, update_employee

if TYPE_CHECKING:
    from httpx import AsyncClient
    from sqlalchemy.ext.asyncio import AsyncSession


@pytest.fixture
async def gm(make_employee):
    return await make_employee(EmployeeRole.GENERAL_MANAGER)


def _create_payload(**overrides: object) -> dict:
    suffix = uuid.uuid4().hex[:6]
    body = {
        "employee_code": f"E{suffix}",
        "email": f"New.Hire.{suffix}@Example.com",
        "first_name": "New",
        "last_name": "Hire",
    }
    body.update(overrides)
    return body


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


async def test_create_lowercases_email(db_session: AsyncSession) -> None:
    employee = await create_employee(db_session, None, CreateEmployeeRequest(**_create_payload()))
    assert employee.email == employee.email.lower()
    assert employee.role == EmployeeRole.TEAM_MEMBER
    assert employee.is_active is True


async def test_duplicate_email_rejected(db_session: AsyncSession) -> None:
    body = _create_payload()
    await create_employee(db_session, None, CreateEmployeeRequest(**body))
    clash = _create_payload(email=body["email"].upper())
    with pytest.raises(DuplicateRecord):
        await create_employee(db_session, None, CreateEmployeeRequest(**clash))


async def test_duplicate_code_rejected(db_session: AsyncSession) -> None:
    body = _create_payload()
    await create_employee(db_session, None, CreateEmployeeRequest(**body))
    with pytest.raises(DuplicateRecord):
        clash = _create_payload(employee_code=body["employee_code"])
        await create_employee(db_session, None, CreateEmployeeRequest(**clash))


async def test_unknown_manager_rejected(db_session: AsyncSession) -> None:
    with pytest.raises(NotFoundError):
        payload = CreateEmployeeRequest(**_create_payload(manager_id=str(uuid.uuid4())))
        await create_employee(db_session, None, payload)


async def test_update_changes_only_given_fields(db_session: AsyncSession, gm, make_department, make_employee) -> None:
    dept = await make_department()
    leader = await make_employee(EmployeeRole.TEAM_LEADER)
    employee = await make_employee(department_id=dept.id, manager_id=leader.id)

    updated = await update_employee(
        db_session, auth_for(gm), employee.id, UpdateEmployeeRequest(role=EmployeeRole.TEAM_LEADER)
    )
    assert updated.role == EmployeeRole.TEAM_LEADER
    assert updated.department_id == dept.id
    assert updated.manager_id == leader.id

    cleared = await update_employee(db_session, auth_for(gm), employee.id, UpdateEmployeeRequest(manager_id=None))
    assert cleared.manager_id is None
    assert cleared.department_id == dept.id


async def test_update_balances_writes_through(db_session: AsyncSession, gm, make_employee) -> None:
    employee = await make_employee()
    await update_employee(
        db_session,
        auth_for(gm),
        employee.id,
        UpdateEmployeeRequest(balances=BalancesPayload(earned=30)),
    )
    assert await get_available_days(db_session, employee.id, LeaveType.EARNED) == 30
    assert await get_available_days(db_session, employee.id, LeaveType.CASUAL) == 12


async def test_employee_cannot_manage_themselves(db_session: AsyncSession, gm, make_employee) -> None:
    employee = await make_employee()
    with pytest.raises(ValidationError):
        await update_employee(db_session, auth_for(gm), employee.id, UpdateEmployeeRequest(manager_id=employee.id))


async def test_manager_assignment_cannot_close_a_reporting_loop(db_session: AsyncSession, gm, make_employee) -> None:
    top = await make_employee(EmployeeRole.TEAM_MANAGER)
    lead = await make_employee(EmployeeRole.TEAM_LEADER, manager_id=top.id)
    member = await make_employee(manager_id=lead.id)

    with pytest.raises(ValidationError, match="reporting cycle"):
        await update_employee(db_session, auth_for(gm), top.id, UpdateEmployeeRequest(manager_id=lead.id))
    with pytest.raises(ValidationError, match="reporting cycle"):
        await update_employee(db_session, auth_for(gm), top.id, UpdateEmployeeRequest(manager_id=member.id))

    moved = await update_employee(db_session, auth_for(gm), member.id, UpdateEmployeeRequest(manager_id=top.id))
    assert moved.manager_id == top.id


async def test_list_filters(db_session: AsyncSession, gm, make_department, make_employee) -> None:
    dept = await make_department()
    in_dept = await make_employee(department_id=dept.id)
    await make_employee(EmployeeRole.TEAM_LEADER)

    by_dept = await list_employees(db_session, department_id=dept.id)
    assert [e.id for e in by_dept.items] == [in_dept.id]

    leaders = await list_employees(db_session, role=EmployeeRole.TEAM_LEADER)
    assert leaders.total == 1


# ---------------------------------------------------------------------------
# Admin HTTP surface
# ---------------------------------------------------------------------------


async def test_api_admin_user_crud(async_client: AsyncClient, gm) -> None:
    admin = headers_for(gm)
    resp = await async_client.post("/admin/users", json=_create_payload(balances={"casual": 2}), headers=admin)
    assert resp.status_code == 201
    user_id = resp.json()["id"]

    resp = await async_client.get(f"/employees/{user_id}/balances", headers=admin)
    assert {i["leave_type"]: i["days"] for i in resp.json()["items"]}["casual"] == 2

    resp = await async_client.patch(f"/admin/users/{user_id}", json={"first_name": "Renamed"}, headers=admin)
    assert resp.status_code == 200
    assert resp.json()["first_name"] == "Renamed"

    resp = await async_client.delete(f"/admin/users/{user_id}", headers=admin)
    assert resp.status_code == 200
    assert resp.json()["is_active"] is False

    resp = await async_client.get("/admin/users", headers=admin, params={"include_inactive": False})
    assert user_id not in {u["id"] for u in resp.json()["items"]}

    resp = await async_client.get(f"/admin/users/{user_id}", headers=admin)
    assert resp.status_code == 200


async def test_api_duplicate_user_is_409(async_client: AsyncClient, gm) -> None:
    body = _create_payload()
    assert (await async_client.post("/admin/users", json=body, headers=headers_for(gm))).status_code == 201
    resp = await async_client.post("/admin/users", json=body, headers=headers_for(gm))
    assert resp.status_code == 409
    assert resp.json()["error"] == "DuplicateRecord"


async def test_api_invalid_email_is_422(async_client: AsyncClient, gm) -> None:
    resp = await async_client.post("/admin/users", json=_create_payload(email="not-an-email"), headers=headers_for(gm))
    assert resp.status_code == 422


async def test_api_non_admin_cannot_create_users(async_client: AsyncClient, make_employee) -> None:
    manager = await make_employee(EmployeeRole.TEAM_MANAGER)
    resp = await async_client.post("/admin/users", json=_create_payload(), headers=headers_for(manager))
    assert resp.status_code == 403


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------


async def test_api_profile_read_and_update(async_client: AsyncClient, make_employee) -> None:
    employee = await make_employee()
    own = headers_for(employee)

    resp = await async_client.get("/profile", headers=own)
    assert resp.status_code == 200
    assert resp.json()["id"] == str(employee.id)

    resp = await async_client.patch("/profile", json={"last_name": "Updated", "email": "ME@example.com"}, headers=own)
    assert resp.status_code == 200
    assert resp.json()["last_name"] == "Updated"
    assert resp.json()["email"] == "me@example.com"


async def test_api_profile_email_clash(async_client: AsyncClient, make_employee) -> None:
    first = await make_employee()
    second = await make_employee()
    resp = await async_client.patch("/profile", json={"email": first.email}, headers=headers_for(second))
    assert resp.status_code == 409
