from __future__ import annotations

from sqlmodel import Field

from leave_tracker.models.base import TimestampMixin, UpdatedAtMixin, UUIDBase


class LeavePolicy(UUIDBase, TimestampMixin, UpdatedAtMixin, table=True):
    """Per leave-type configuration. Stored for administrators; not enforced on requests."""

    __tablename__ = "leave_policy"

    name: str = Field(max_length=255)
    leave_type: str = Field(max_length=50, index=True)
    annual_quota: int
    max_consecutive_days: int | None = None
    carry_forward_allowed: bool = False
    carry_forward_max_days: int = 0
    requires_approval: bool = True
    minimum_notice_days: int = 0
    description: str | None = Field(default=None, max_length=1000)
    is_active: bool = Field(default=True)
