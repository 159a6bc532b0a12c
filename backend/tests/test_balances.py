"""Tests for the balance ledger: opening balances, atomic debit/credit,
manager overrides, the yearly reset and the read endpoints.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import delete, select
from sqlmodel import col

from conftest import auth_for, headers_for
from leave_tracker.exceptions import InsufficientBalance, InvalidLeaveType, NotAuthorized, NotFoundError
from leave_tracker.models.audit import AuditLog
from leave_tracker.models.balance import LeaveBalance
from leave_tracker.models.enums import AuditAction, BalanceEntryType, EmployeeRole, LeaveType
from leave_tracker.models.ledger import LeaveBalanceEntry
from leave_tracker.schemas.balance import OverrideBalanceRequest, ResetBalancesRequest
from leave_tracker.services.balance import (
    credit,
    debit,
    get_available_days,
    get_employee_balances,
    get_employee_ledger,
    override_balance,
    reset_all_balances,
)
from leave_tracker.services.employee import deactivate_employee

if TYPE_CHECKING:
    from httpx import AsyncClient
    from sqlalchemy.ext.asyncio import AsyncSession


@pytest.fixture
async def gm(make_employee):
    return await make_employee(EmployeeRole.GENERAL_MANAGER)


# ---------------------------------------------------------------------------
# Opening balances
# ---------------------------------------------------------------------------


async def test_new_employee_gets_default_balances(db_session: AsyncSession, make_employee) -> None:
    employee = await make_employee()
    balances = (await get_employee_balances(db_session, employee.id)).as_mapping()
    assert balances == {"casual": 12, "medical": 12, "earned": 15, "unpaid": None}


async def test_opening_balances_from_payload(db_session: AsyncSession, make_employee) -> None:
    employee = await make_employee(casual=3)
    balances = (await get_employee_balances(db_session, employee.id)).as_mapping()
    assert balances["casual"] == 3
    assert balances["medical"] == 12


async def test_unpaid_is_reported_unlimited(db_session: AsyncSession, make_employee) -> None:
    employee = await make_employee()
    items = {item.leave_type: item for item in (await get_employee_balances(db_session, employee.id)).items}
    assert items[LeaveType.UNPAID].is_unlimited is True
    assert items[LeaveType.UNPAID].days is None
    assert items[LeaveType.CASUAL].is_unlimited is False


async def test_opening_entries_written(db_session: AsyncSession, make_employee) -> None:
    employee = await make_employee()
    ledger = await get_employee_ledger(db_session, employee.id)
    assert ledger.total == 3
    assert {e.entry_type for e in ledger.items} == {BalanceEntryType.OPENING}


# ---------------------------------------------------------------------------
# Debit / credit
# ---------------------------------------------------------------------------


async def test_debit_is_guarded(db_session: AsyncSession, make_employee) -> None:
    employee = await make_employee(casual=2)
    with pytest.raises(InsufficientBalance, match="Available: 2"):
        await debit(db_session, employee.id, LeaveType.CASUAL, 3, request_id=uuid.uuid4(), actor_id=employee.id)
    assert await get_available_days(db_session, employee.id, LeaveType.CASUAL) == 2


async def test_debit_exact_balance_reaches_zero(db_session: AsyncSession, make_employee) -> None:
    employee = await make_employee(casual=2)
    after = await debit(db_session, employee.id, LeaveType.CASUAL, 2, request_id=uuid.uuid4(), actor_id=employee.id)
    assert after == 0


async def test_debit_unpaid_is_rejected(db_session: AsyncSession, make_employee) -> None:
    employee = await make_employee()
    with pytest.raises(InvalidLeaveType):
        await debit(db_session, employee.id, LeaveType.UNPAID, 1, request_id=uuid.uuid4(), actor_id=employee.id)


async def test_credit_bumps_version(db_session: AsyncSession, make_employee) -> None:
    employee = await make_employee(earned=4)
    after = await credit(db_session, employee.id, LeaveType.EARNED, 3, request_id=uuid.uuid4(), actor_id=employee.id)
    assert after == 7

    result = await db_session.execute(
        select(col(LeaveBalance.version)).where(
            col(LeaveBalance.employee_id) == employee.id,
            col(LeaveBalance.leave_type) == LeaveType.EARNED.value,
        )
    )
    assert result.scalar_one() == 2


async def test_credit_recreates_missing_row(db_session: AsyncSession, make_employee) -> None:
    employee = await make_employee()
    await db_session.execute(
        delete(LeaveBalance).where(
            col(LeaveBalance.employee_id) == employee.id,
            col(LeaveBalance.leave_type) == LeaveType.MEDICAL.value,
        )
    )
    assert await get_available_days(db_session, employee.id, LeaveType.MEDICAL) == 0

    after = await credit(db_session, employee.id, LeaveType.MEDICAL, 2, request_id=uuid.uuid4(), actor_id=employee.id)
    assert after == 2
    assert await get_available_days(db_session, employee.id, LeaveType.MEDICAL) == 2


# ---------------------------------------------------------------------------
# Override
# ---------------------------------------------------------------------------


async def test_override_sets_balance_and_records_entry(
    db_session: AsyncSession,
    make_department,
    make_employee,
) -> None:
    dept = await make_department()
    manager = await make_employee(EmployeeRole.TEAM_MANAGER, department_id=dept.id)
    member = await make_employee(department_id=dept.id)

    result = await override_balance(
        db_session, auth_for(manager), member.id, OverrideBalanceRequest(leave_type=LeaveType.CASUAL, days=20)
    )
    assert result.as_mapping()["casual"] == 20

    ledger = await get_employee_ledger(db_session, member.id, LeaveType.CASUAL)
    latest = ledger.items[0]
    assert latest.entry_type == BalanceEntryType.OVERRIDE
    assert latest.amount_days == 8
    assert latest.balance_after == 20
    assert latest.actor_id == manager.id

    audit = await db_session.execute(
        select(AuditLog).where(col(AuditLog.entity_id) == member.id, col(AuditLog.action) == AuditAction.OVERRIDE)
    )
    entry = audit.scalar_one()
    assert entry.before_json == {"casual": 12}
    assert entry.after_json == {"casual": 20}


async def test_override_requires_authority(db_session: AsyncSession, make_employee) -> None:
    leader = await make_employee(EmployeeRole.TEAM_LEADER)
    stranger = await make_employee()
    with pytest.raises(NotAuthorized):
        await override_balance(
            db_session, auth_for(leader), stranger.id, OverrideBalanceRequest(leave_type=LeaveType.CASUAL, days=1)
        )
    assert await get_available_days(db_session, stranger.id, LeaveType.CASUAL) == 12


async def test_override_unpaid_is_rejected(db_session: AsyncSession, gm, make_employee) -> None:
    member = await make_employee()
    with pytest.raises(InvalidLeaveType):
        await override_balance(
            db_session, auth_for(gm), member.id, OverrideBalanceRequest(leave_type=LeaveType.UNPAID, days=5)
        )


async def test_override_unknown_employee(db_session: AsyncSession, gm) -> None:
    with pytest.raises(NotFoundError):
        await override_balance(
            db_session, auth_for(gm), uuid.uuid4(), OverrideBalanceRequest(leave_type=LeaveType.CASUAL, days=5)
        )


# ---------------------------------------------------------------------------
# Reset
# ---------------------------------------------------------------------------


async def test_reset_overwrites_active_employees(db_session: AsyncSession, gm, make_employee) -> None:
    a = await make_employee(casual=1, medical=2, earned=3)
    b = await make_employee(casual=30)
    inactive = await make_employee(casual=7)
    await deactivate_employee(db_session, auth_for(gm), inactive.id)

    result = await reset_all_balances(db_session, auth_for(gm), ResetBalancesRequest(casual=10, medical=8, earned=20))

    # gm, a and b are active
    assert result.employees_reset == 3
    for employee in (a, b):
        balances = (await get_employee_balances(db_session, employee.id)).as_mapping()
        assert balances == {"casual": 10, "medical": 8, "earned": 20, "unpaid": None}
    assert await get_available_days(db_session, inactive.id, LeaveType.CASUAL) == 7


async def test_reset_falls_back_to_defaults(db_session: AsyncSession, gm, make_employee) -> None:
    employee = await make_employee(casual=1, medical=1, earned=1)
    result = await reset_all_balances(db_session, auth_for(gm), ResetBalancesRequest(casual=0, earned=9))

    assert (result.casual, result.medical, result.earned) == (12, 12, 9)
    balances = (await get_employee_balances(db_session, employee.id)).as_mapping()
    assert balances["casual"] == 12
    assert balances["medical"] == 12
    assert balances["earned"] == 9


async def test_reset_writes_ledger_entries(db_session: AsyncSession, gm, make_employee) -> None:
    employee = await make_employee(casual=5)
    await reset_all_balances(db_session, auth_for(gm), ResetBalancesRequest())

    result = await db_session.execute(
        select(LeaveBalanceEntry).where(
            col(LeaveBalanceEntry.employee_id) == employee.id,
            col(LeaveBalanceEntry.entry_type) == BalanceEntryType.RESET,
        )
    )
    entries = {e.leave_type: e for e in result.scalars().all()}
    assert set(entries) == {"casual", "medical", "earned"}
    assert entries["casual"].amount_days == 7
    assert entries["casual"].balance_after == 12


# ---------------------------------------------------------------------------
# HTTP surface
# ---------------------------------------------------------------------------


async def test_api_employee_reads_own_balances(async_client: AsyncClient, make_employee) -> None:
    employee = await make_employee(casual=4)
    resp = await async_client.get(f"/employees/{employee.id}/balances", headers=headers_for(employee))
    assert resp.status_code == 200
    by_type = {item["leave_type"]: item for item in resp.json()["items"]}
    assert by_type["casual"]["days"] == 4
    assert by_type["unpaid"]["is_unlimited"] is True


async def test_api_peer_cannot_read_balances(async_client: AsyncClient, make_employee) -> None:
    employee = await make_employee()
    peer = await make_employee()
    resp = await async_client.get(f"/employees/{employee.id}/balances", headers=headers_for(peer))
    assert resp.status_code == 403


async def test_api_leader_reads_report_ledger(async_client: AsyncClient, make_employee) -> None:
    leader = await make_employee(EmployeeRole.TEAM_LEADER)
    report = await make_employee(manager_id=leader.id)
    resp = await async_client.get(
        f"/employees/{report.id}/ledger", headers=headers_for(leader), params={"leave_type": "earned"}
    )
    assert resp.status_code == 200
    assert resp.json()["total"] == 1
    assert resp.json()["items"][0]["entry_type"] == "OPENING"


async def test_api_manager_override(async_client: AsyncClient, make_employee) -> None:
    leader = await make_employee(EmployeeRole.TEAM_LEADER)
    report = await make_employee(manager_id=leader.id)
    resp = await async_client.put(
        f"/manager/balances/{report.id}",
        json={"leave_type": "medical", "days": 3},
        headers=headers_for(leader),
    )
    assert resp.status_code == 200
    assert {i["leave_type"]: i["days"] for i in resp.json()["items"]}["medical"] == 3

    resp = await async_client.put(
        f"/manager/balances/{report.id}",
        json={"leave_type": "unpaid", "days": 3},
        headers=headers_for(leader),
    )
    assert resp.status_code == 400
    assert resp.json()["error"] == "InvalidLeaveType"


async def test_api_override_rejects_negative_days(async_client: AsyncClient, gm, make_employee) -> None:
    member = await make_employee()
    resp = await async_client.put(
        f"/manager/balances/{member.id}",
        json={"leave_type": "casual", "days": -1},
        headers=headers_for(gm),
    )
    assert resp.status_code == 422


async def test_api_reset_is_admin_only(async_client: AsyncClient, gm, make_employee) -> None:
    manager = await make_employee(EmployeeRole.TEAM_MANAGER)
    resp = await async_client.post("/admin/reset-balances", headers=headers_for(manager))
    assert resp.status_code == 403

    resp = await async_client.post("/admin/reset-balances", headers=headers_for(gm))
    assert resp.status_code == 200
    assert resp.json() == {"employees_reset": 2, "casual": 12, "medical": 12, "earned": 15}
