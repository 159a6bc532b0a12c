"""Tests for manager visibility: team members, pending queues and the team calendar."""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

import pytest

from conftest import auth_for, headers_for
from leave_tracker.models.enums import EmployeeRole, LeaveStatus, LeaveType
from leave_tracker.schemas.request import CreateLeaveRequestPayload
from leave_tracker.services.request import (
    approve_leave_request,
    create_leave_request,
    list_my_requests,
    list_pending_for_manager,
    list_visible_requests,
    team_calendar,
)
from leave_tracker.services.scope import list_team_members

if TYPE_CHECKING:
    from httpx import AsyncClient
    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_tracker.schemas.employee import EmployeeResponse
    from leave_tracker.schemas.request import LeaveRequestResponse

TODAY = date(2024, 1, 1)


@pytest.fixture
async def org(make_department, make_employee) -> dict:
    """Two departments; engineering has a manager, a leader and two reports."""
    eng = await make_department(name="Engineering", code="ENG")
    sales = await make_department(name="Sales", code="SALES")
    gm = await make_employee(EmployeeRole.GENERAL_MANAGER)
    other_gm = await make_employee(EmployeeRole.GENERAL_MANAGER)
    manager = await make_employee(EmployeeRole.TEAM_MANAGER, department_id=eng.id)
    leader = await make_employee(EmployeeRole.TEAM_LEADER, department_id=eng.id, manager_id=manager.id)
    alice = await make_employee(department_id=eng.id, manager_id=leader.id)
    bob = await make_employee(department_id=sales.id, manager_id=leader.id)
    carol = await make_employee(department_id=eng.id, manager_id=manager.id)
    dave = await make_employee(department_id=sales.id)
    return {
        "gm": gm,
        "other_gm": other_gm,
        "manager": manager,
        "leader": leader,
        "alice": alice,
        "bob": bob,
        "carol": carol,
        "dave": dave,
    }


async def _apply(
    session: AsyncSession, employee: EmployeeResponse, start: date, end: date
) -> LeaveRequestResponse:
    payload = CreateLeaveRequestPayload(leave_type=LeaveType.CASUAL, start_date=start, end_date=end, reason="Off")
    return await create_leave_request(session, auth_for(employee), payload, today=TODAY)


# ---------------------------------------------------------------------------
# Team members
# ---------------------------------------------------------------------------


async def test_leader_sees_direct_reports_only(db_session: AsyncSession, org: dict) -> None:
    members = await list_team_members(db_session, auth_for(org["leader"]))
    assert {m.id for m in members.items} == {org["alice"].id, org["bob"].id}


async def test_manager_sees_department(db_session: AsyncSession, org: dict) -> None:
    members = await list_team_members(db_session, auth_for(org["manager"]))
    assert {m.id for m in members.items} == {
        org["manager"].id,
        org["leader"].id,
        org["alice"].id,
        org["carol"].id,
    }


async def test_general_manager_sees_everyone_but_general_managers(db_session: AsyncSession, org: dict) -> None:
    members = await list_team_members(db_session, auth_for(org["gm"]))
    ids = {m.id for m in members.items}
    assert org["other_gm"].id not in ids
    assert org["gm"].id not in ids
    assert ids == {org[k].id for k in ("manager", "leader", "alice", "bob", "carol", "dave")}


async def test_team_member_sees_nobody(db_session: AsyncSession, org: dict) -> None:
    members = await list_team_members(db_session, auth_for(org["alice"]))
    assert members.total == 0


async def test_manager_without_department_sees_nobody(db_session: AsyncSession, make_employee) -> None:
    floating = await make_employee(EmployeeRole.TEAM_MANAGER)
    members = await list_team_members(db_session, auth_for(floating))
    assert members.total == 0


# ---------------------------------------------------------------------------
# Request queries
# ---------------------------------------------------------------------------


async def test_pending_queue_is_scoped_and_oldest_first(db_session: AsyncSession, org: dict) -> None:
    first = await _apply(db_session, org["bob"], date(2024, 5, 1), date(2024, 5, 1))
    second = await _apply(db_session, org["alice"], date(2024, 4, 1), date(2024, 4, 1))
    await _apply(db_session, org["carol"], date(2024, 4, 1), date(2024, 4, 1))

    queue = await list_pending_for_manager(db_session, auth_for(org["leader"]))
    assert [r.id for r in queue.items] == [first.id, second.id]


async def test_pending_queue_excludes_decided(db_session: AsyncSession, org: dict) -> None:
    leave = await _apply(db_session, org["alice"], date(2024, 4, 1), date(2024, 4, 1))
    await approve_leave_request(db_session, auth_for(org["leader"]), leave.id)
    queue = await list_pending_for_manager(db_session, auth_for(org["leader"]))
    assert queue.total == 0


async def test_history_is_newest_first_with_filters(db_session: AsyncSession, org: dict) -> None:
    older = await _apply(db_session, org["alice"], date(2024, 4, 1), date(2024, 4, 1))
    newer = await _apply(db_session, org["carol"], date(2025, 4, 1), date(2025, 4, 1))

    auth = auth_for(org["manager"])
    history = await list_visible_requests(db_session, auth)
    assert [r.id for r in history.items] == [newer.id, older.id]

    only_2024 = await list_visible_requests(db_session, auth, year=2024)
    assert [r.id for r in only_2024.items] == [older.id]

    only_carol = await list_visible_requests(db_session, auth, employee_id=org["carol"].id)
    assert [r.id for r in only_carol.items] == [newer.id]

    window = await list_visible_requests(db_session, auth, start_date=date(2024, 3, 1), end_date=date(2024, 4, 1))
    assert [r.id for r in window.items] == [older.id]


async def test_my_requests_filter_by_status(db_session: AsyncSession, org: dict) -> None:
    approved = await _apply(db_session, org["alice"], date(2024, 4, 1), date(2024, 4, 1))
    await _apply(db_session, org["alice"], date(2024, 5, 1), date(2024, 5, 1))
    await approve_leave_request(db_session, auth_for(org["leader"]), approved.id)

    mine = await list_my_requests(db_session, auth_for(org["alice"]), status_filter=LeaveStatus.APPROVED)
    assert [r.id for r in mine.items] == [approved.id]


async def test_team_calendar_shows_approved_leave_touching_month(db_session: AsyncSession, org: dict) -> None:
    spanning = await _apply(db_session, org["alice"], date(2024, 2, 27), date(2024, 3, 2))
    inside = await _apply(db_session, org["carol"], date(2024, 3, 10), date(2024, 3, 11))
    await _apply(db_session, org["alice"], date(2024, 3, 20), date(2024, 3, 21))  # stays pending
    april = await _apply(db_session, org["carol"], date(2024, 4, 1), date(2024, 4, 1))

    manager = auth_for(org["manager"])
    for leave in (spanning, inside, april):
        await approve_leave_request(db_session, manager, leave.id)

    calendar = await team_calendar(db_session, manager, month=3, year=2024)
    assert [r.id for r in calendar.items] == [spanning.id, inside.id]


async def test_api_team_members_and_calendar(async_client: AsyncClient, org: dict) -> None:
    leader = headers_for(org["leader"])
    resp = await async_client.get("/manager/team-members", headers=leader)
    assert resp.status_code == 200
    assert resp.json()["total"] == 2

    resp = await async_client.get("/manager/team-calendar", headers=leader, params={"month": 2, "year": 2024})
    assert resp.status_code == 200
    assert resp.json()["items"] == []

    resp = await async_client.get("/manager/team-calendar", headers=leader, params={"month": 13, "year": 2024})
    assert resp.status_code == 422


async def test_api_team_history_is_scoped(async_client: AsyncClient, db_session: AsyncSession, org: dict) -> None:
    mine = await _apply(db_session, org["alice"], date(2024, 5, 6), date(2024, 5, 7))
    await _apply(db_session, org["dave"], date(2024, 5, 6), date(2024, 5, 7))

    resp = await async_client.get("/manager/requests", headers=headers_for(org["leader"]), params={"year": 2024})
    assert resp.status_code == 200
    body = resp.json()
    assert body["total"] == 1
    assert body["items"][0]["id"] == str(mine.id)

    resp = await async_client.get("/manager/requests", headers=headers_for(org["alice"]))
    assert resp.status_code == 403
