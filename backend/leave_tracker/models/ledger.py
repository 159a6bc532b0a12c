# ruff: noqa: TC003
from __future__ import annotations

import uuid

import sqlalchemy as sa
from sqlmodel import Field

from leave_tracker.models.base import TimestampMixin, UUIDBase


class LeaveBalanceEntry(UUIDBase, TimestampMixin, table=True):
    """Append-only ledger entry that records every balance-affecting event."""

    __tablename__ = "leave_balance_entry"
    __table_args__ = (sa.Index("ix_balance_entry_employee_type", "employee_id", "leave_type"),)

    employee_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("employee.id", ondelete="CASCADE"), nullable=False),
    )
    leave_type: str = Field(max_length=50)
    entry_type: str = Field(max_length=50)
    amount_days: int
    balance_after: int
    source_type: str = Field(max_length=50)
    source_id: uuid.UUID | None = None
    actor_id: uuid.UUID | None = None
