# ruff: noqa: TC003
from __future__ import annotations

import uuid

import sqlalchemy as sa
from sqlmodel import Field

from leave_tracker.models.base import UpdatedAtMixin


class LeaveBalance(UpdatedAtMixin, table=True):
    """Remaining days of one limited leave type for one employee.

    Only mutated through single-statement increments so concurrent writers
    never act on a stale read.
    """

    __tablename__ = "leave_balance"
    __table_args__ = (
        sa.PrimaryKeyConstraint("employee_id", "leave_type"),
        sa.CheckConstraint("days >= 0", name="ck_leave_balance_non_negative"),
    )

    employee_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("employee.id", ondelete="CASCADE"), nullable=False),
    )
    leave_type: str = Field(max_length=50)
    days: int = Field(default=0, sa_column_kwargs={"server_default": "0"})
    version: int = Field(default=1, sa_column_kwargs={"server_default": "1"})
