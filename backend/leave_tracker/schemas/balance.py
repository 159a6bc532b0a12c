# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from leave_tracker.models.enums import BalanceEntryType, BalanceSourceType, LeaveType

# ---------------------------------------------------------------------------
# Balance response schemas
# ---------------------------------------------------------------------------


class BalanceResponse(BaseModel):
    """Remaining days for one leave type."""

    leave_type: LeaveType
    days: int | None  # None for unpaid leave
    is_unlimited: bool
    updated_at: datetime | None


class BalanceListResponse(BaseModel):
    """All leave-type balances for an employee."""

    employee_id: uuid.UUID
    items: list[BalanceResponse]

    def as_mapping(self) -> dict[str, int | None]:
        return {item.leave_type.value: item.days for item in self.items}


# ---------------------------------------------------------------------------
# Ledger response schemas
# ---------------------------------------------------------------------------


class LedgerEntryResponse(BaseModel):
    """A single ledger entry."""

    id: uuid.UUID
    leave_type: LeaveType
    entry_type: BalanceEntryType
    amount_days: int
    balance_after: int
    source_type: BalanceSourceType
    source_id: uuid.UUID | None
    actor_id: uuid.UUID | None
    created_at: datetime


class LedgerListResponse(BaseModel):
    """Paginated ledger entries."""

    items: list[LedgerEntryResponse]
    total: int


# ---------------------------------------------------------------------------
# Write payloads
# ---------------------------------------------------------------------------


class OverrideBalanceRequest(BaseModel):
    """Request body for a manager setting an employee's balance outright."""

    leave_type: LeaveType
    days: int = Field(ge=0)


class ResetBalancesRequest(BaseModel):
    """Yearly reset values. Missing or zero values fall back to the configured defaults."""

    casual: int | None = Field(default=None, ge=0)
    medical: int | None = Field(default=None, ge=0)
    earned: int | None = Field(default=None, ge=0)


class ResetBalancesResponse(BaseModel):
    employees_reset: int
    casual: int
    medical: int
    earned: int
