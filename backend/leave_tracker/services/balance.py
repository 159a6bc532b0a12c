from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from sqlalchemy import case, func, select, update
from sqlmodel import col

from leave_tracker.config import get_settings
from leave_tracker.db import commit, storage_guard
from leave_tracker.exceptions import InsufficientBalance, InvalidLeaveType, NotFoundError
from leave_tracker.models.balance import LeaveBalance
from leave_tracker.models.employee import Employee
from leave_tracker.models.enums import (
    LIMITED_LEAVE_TYPES,
    AuditAction,
    AuditEntityType,
    BalanceEntryType,
    BalanceSourceType,
    LeaveType,
)
from leave_tracker.models.ledger import LeaveBalanceEntry
from leave_tracker.schemas.balance import (
    BalanceListResponse,
    BalanceResponse,
    LedgerEntryResponse,
    LedgerListResponse,
    ResetBalancesResponse,
)
from leave_tracker.services.audit import record_audit
from leave_tracker.services.authorization import ensure_can_act

if TYPE_CHECKING:
    from collections.abc import Mapping

    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_tracker.schemas.auth import AuthContext
    from leave_tracker.schemas.balance import OverrideBalanceRequest, ResetBalancesRequest

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _build_ledger_entry_response(entry: LeaveBalanceEntry) -> LedgerEntryResponse:
    """Map a ledger entry model to its response schema."""
    return LedgerEntryResponse(
        id=entry.id,
        leave_type=LeaveType(entry.leave_type),
        entry_type=BalanceEntryType(entry.entry_type),
        amount_days=entry.amount_days,
        balance_after=entry.balance_after,
        source_type=BalanceSourceType(entry.source_type),
        source_id=entry.source_id,
        actor_id=entry.actor_id,
        created_at=entry.created_at,
    )


def _record_entry(
    session: AsyncSession,
    *,
    employee_id: uuid.UUID,
    leave_type: LeaveType,
    entry_type: BalanceEntryType,
    amount_days: int,
    balance_after: int,
    source_type: BalanceSourceType,
    source_id: uuid.UUID | None = None,
    actor_id: uuid.UUID | None = None,
) -> LeaveBalanceEntry:
    entry = LeaveBalanceEntry(
        employee_id=employee_id,
        leave_type=leave_type.value,
        entry_type=entry_type.value,
        amount_days=amount_days,
        balance_after=balance_after,
        source_type=source_type.value,
        source_id=source_id,
        actor_id=actor_id,
    )
    session.add(entry)
    return entry


def _require_limited(leave_type: LeaveType) -> None:
    if not leave_type.is_limited:
        raise InvalidLeaveType(f"{leave_type.value} leave is unlimited and has no balance")


def default_balances() -> dict[LeaveType, int]:
    """Opening balances from settings."""
    settings = get_settings()
    return {
        LeaveType.CASUAL: settings.default_casual_days,
        LeaveType.MEDICAL: settings.default_medical_days,
        LeaveType.EARNED: settings.default_earned_days,
    }


async def get_available_days(session: AsyncSession, employee_id: uuid.UUID, leave_type: LeaveType) -> int:
    """Read the current stored balance straight from the database (0 if no row)."""
    result = await session.execute(
        select(col(LeaveBalance.days)).where(
            col(LeaveBalance.employee_id) == employee_id,
            col(LeaveBalance.leave_type) == leave_type.value,
        )
    )
    days = result.scalar_one_or_none()
    return days if days is not None else 0


async def _increment(
    session: AsyncSession,
    employee_id: uuid.UUID,
    leave_type: LeaveType,
    delta: int,
) -> int | None:
    """Atomically add delta to a balance and return the new value.

    A negative delta only applies when the balance covers it; otherwise no row
    matches and None is returned.
    """
    stmt = (
        update(LeaveBalance)
        .where(
            col(LeaveBalance.employee_id) == employee_id,
            col(LeaveBalance.leave_type) == leave_type.value,
        )
        .values(
            days=col(LeaveBalance.days) + delta,
            version=col(LeaveBalance.version) + 1,
            updated_at=func.now(),
        )
        .returning(col(LeaveBalance.days))
        .execution_options(synchronize_session=False)
    )
    if delta < 0:
        stmt = stmt.where(col(LeaveBalance.days) >= -delta)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


# ---------------------------------------------------------------------------
# Ledger mutations used by the request lifecycle
# ---------------------------------------------------------------------------


async def debit(
    session: AsyncSession,
    employee_id: uuid.UUID,
    leave_type: LeaveType,
    days: int,
    *,
    request_id: uuid.UUID,
    actor_id: uuid.UUID,
) -> int:
    """Deduct approved days. The balance check and the write are one statement."""
    _require_limited(leave_type)
    balance_after = await _increment(session, employee_id, leave_type, -days)
    if balance_after is None:
        available = await get_available_days(session, employee_id, leave_type)
        raise InsufficientBalance(
            f"Insufficient {leave_type.value} leave balance. Available: {available} days, requested: {days}"
        )
    _record_entry(
        session,
        employee_id=employee_id,
        leave_type=leave_type,
        entry_type=BalanceEntryType.DEBIT,
        amount_days=-days,
        balance_after=balance_after,
        source_type=BalanceSourceType.REQUEST,
        source_id=request_id,
        actor_id=actor_id,
    )
    return balance_after


async def credit(
    session: AsyncSession,
    employee_id: uuid.UUID,
    leave_type: LeaveType,
    days: int,
    *,
    request_id: uuid.UUID,
    actor_id: uuid.UUID,
) -> int:
    """Give back days of a cancelled approval."""
    _require_limited(leave_type)
    balance_after = await _increment(session, employee_id, leave_type, days)
    if balance_after is None:
        # Employee predates balance rows; start the row at the credited amount.
        session.add(LeaveBalance(employee_id=employee_id, leave_type=leave_type.value, days=days))
        await session.flush()
        balance_after = days
    _record_entry(
        session,
        employee_id=employee_id,
        leave_type=leave_type,
        entry_type=BalanceEntryType.CREDIT,
        amount_days=days,
        balance_after=balance_after,
        source_type=BalanceSourceType.REQUEST,
        source_id=request_id,
        actor_id=actor_id,
    )
    return balance_after


async def open_balances(
    session: AsyncSession,
    employee_id: uuid.UUID,
    balances: Mapping[LeaveType, int],
    actor_id: uuid.UUID | None,
) -> None:
    """Create the balance rows of a new employee."""
    for leave_type in LIMITED_LEAVE_TYPES:
        days = balances[leave_type]
        session.add(LeaveBalance(employee_id=employee_id, leave_type=leave_type.value, days=days))
        _record_entry(
            session,
            employee_id=employee_id,
            leave_type=leave_type,
            entry_type=BalanceEntryType.OPENING,
            amount_days=days,
            balance_after=days,
            source_type=BalanceSourceType.ADMIN,
            actor_id=actor_id,
        )


async def set_balance(
    session: AsyncSession,
    employee_id: uuid.UUID,
    leave_type: LeaveType,
    days: int,
    *,
    actor_id: uuid.UUID | None,
    source_type: BalanceSourceType,
) -> tuple[int, int]:
    """Overwrite one balance. Returns (previous, new). Caller holds the employee lock."""
    _require_limited(leave_type)
    previous = await get_available_days(session, employee_id, leave_type)
    result = await session.execute(
        update(LeaveBalance)
        .where(
            col(LeaveBalance.employee_id) == employee_id,
            col(LeaveBalance.leave_type) == leave_type.value,
        )
        .values(days=days, version=col(LeaveBalance.version) + 1, updated_at=func.now())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        session.add(LeaveBalance(employee_id=employee_id, leave_type=leave_type.value, days=days))
        await session.flush()
    _record_entry(
        session,
        employee_id=employee_id,
        leave_type=leave_type,
        entry_type=BalanceEntryType.OVERRIDE,
        amount_days=days - previous,
        balance_after=days,
        source_type=source_type,
        actor_id=actor_id,
    )
    return previous, days


# ---------------------------------------------------------------------------
# Read path
# ---------------------------------------------------------------------------


@storage_guard
async def get_employee_balances(session: AsyncSession, employee_id: uuid.UUID) -> BalanceListResponse:
    """Get every leave-type balance for an employee; unpaid is reported as unlimited."""
    result = await session.execute(
        select(col(LeaveBalance.leave_type), col(LeaveBalance.days), col(LeaveBalance.updated_at)).where(
            col(LeaveBalance.employee_id) == employee_id
        )
    )
    stored = {row.leave_type: row for row in result.all()}

    items: list[BalanceResponse] = []
    for leave_type in LeaveType:
        if not leave_type.is_limited:
            items.append(BalanceResponse(leave_type=leave_type, days=None, is_unlimited=True, updated_at=None))
            continue
        row = stored.get(leave_type.value)
        items.append(
            BalanceResponse(
                leave_type=leave_type,
                days=row.days if row is not None else 0,
                is_unlimited=False,
                updated_at=row.updated_at if row is not None else None,
            )
        )
    return BalanceListResponse(employee_id=employee_id, items=items)


@storage_guard
async def get_employee_ledger(
    session: AsyncSession,
    employee_id: uuid.UUID,
    leave_type: LeaveType | None = None,
    offset: int = 0,
    limit: int = 50,
) -> LedgerListResponse:
    """Get paginated ledger entries for an employee, newest first."""
    base_filter = [col(LeaveBalanceEntry.employee_id) == employee_id]
    if leave_type is not None:
        base_filter.append(col(LeaveBalanceEntry.leave_type) == leave_type.value)

    count_result = await session.execute(select(func.count()).select_from(LeaveBalanceEntry).where(*base_filter))
    total = count_result.scalar_one()

    entries_result = await session.execute(
        select(LeaveBalanceEntry)
        .where(*base_filter)
        .order_by(col(LeaveBalanceEntry.created_at).desc())
        .offset(offset)
        .limit(limit)
    )
    entries = list(entries_result.scalars().all())

    return LedgerListResponse(
        items=[_build_ledger_entry_response(e) for e in entries],
        total=total,
    )


# ---------------------------------------------------------------------------
# Write path - manager override and yearly reset
# ---------------------------------------------------------------------------


@storage_guard
async def override_balance(
    session: AsyncSession,
    auth: AuthContext,
    employee_id: uuid.UUID,
    payload: OverrideBalanceRequest,
) -> BalanceListResponse:
    """Set one of an employee's balances outright.

    Flow:
    1. Lock the employee row
    2. Authorize the actor against the employee
    3. Reject unpaid (no stored balance)
    4. Overwrite the balance and record an OVERRIDE entry
    5. Audit and commit
    """
    result = await session.execute(select(Employee).where(col(Employee.id) == employee_id).with_for_update())
    employee = result.scalar_one_or_none()
    if employee is None:
        raise NotFoundError("Employee not found")

    ensure_can_act(auth, employee, "update leave balances")
    _require_limited(payload.leave_type)

    previous, new = await set_balance(
        session,
        employee_id,
        payload.leave_type,
        payload.days,
        actor_id=auth.user_id,
        source_type=BalanceSourceType.MANAGER,
    )
    await record_audit(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.BALANCE,
        entity_id=employee_id,
        action=AuditAction.OVERRIDE,
        before_json={payload.leave_type.value: previous},
        after_json={payload.leave_type.value: new},
    )
    await commit(session)
    logger.info(
        "Balance override: employee=%s type=%s %d -> %d by %s",
        employee_id,
        payload.leave_type.value,
        previous,
        new,
        auth.user_id,
    )
    return await get_employee_balances(session, employee_id)


@storage_guard
async def reset_all_balances(
    session: AsyncSession,
    auth: AuthContext,
    payload: ResetBalancesRequest,
) -> ResetBalancesResponse:
    """Overwrite casual/medical/earned for every active employee in one statement.

    Missing or zero values fall back to the configured defaults. The previous
    values are read under lock first so every change lands in the ledger within
    the same transaction as the update.
    """
    defaults = default_balances()
    targets = {
        LeaveType.CASUAL: payload.casual or defaults[LeaveType.CASUAL],
        LeaveType.MEDICAL: payload.medical or defaults[LeaveType.MEDICAL],
        LeaveType.EARNED: payload.earned or defaults[LeaveType.EARNED],
    }
    limited_values = [t.value for t in LIMITED_LEAVE_TYPES]
    active_ids = select(col(Employee.id)).where(col(Employee.is_active).is_(True))

    previous_result = await session.execute(
        select(LeaveBalance)
        .where(
            col(LeaveBalance.employee_id).in_(active_ids),
            col(LeaveBalance.leave_type).in_(limited_values),
        )
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    previous_rows = [(row.employee_id, LeaveType(row.leave_type), row.days) for row in previous_result.scalars()]

    await session.execute(
        update(LeaveBalance)
        .where(
            col(LeaveBalance.employee_id).in_(active_ids),
            col(LeaveBalance.leave_type).in_(limited_values),
        )
        .values(
            days=case(
                {t.value: days for t, days in targets.items()},
                value=col(LeaveBalance.leave_type),
            ),
            version=col(LeaveBalance.version) + 1,
            updated_at=func.now(),
        )
        .execution_options(synchronize_session=False)
    )

    for employee_id, leave_type, old_days in previous_rows:
        _record_entry(
            session,
            employee_id=employee_id,
            leave_type=leave_type,
            entry_type=BalanceEntryType.RESET,
            amount_days=targets[leave_type] - old_days,
            balance_after=targets[leave_type],
            source_type=BalanceSourceType.ADMIN,
            actor_id=auth.user_id,
        )

    employees_reset = len({employee_id for employee_id, _, _ in previous_rows})
    await record_audit(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.BALANCE,
        entity_id=auth.user_id,
        action=AuditAction.RESET,
        after_json={**{t.value: d for t, d in targets.items()}, "employees_reset": employees_reset},
    )
    await commit(session)
    logger.info("Reset leave balances for %d active employees to %s", employees_reset, targets)

    return ResetBalancesResponse(
        employees_reset=employees_reset,
        casual=targets[LeaveType.CASUAL],
        medical=targets[LeaveType.MEDICAL],
        earned=targets[LeaveType.EARNED],
    )
