# ruff: noqa: TC003
from __future__ import annotations

import uuid

import sqlalchemy as sa
from sqlmodel import Field

from leave_tracker.models.base import TimestampMixin, UUIDBase


class Department(UUIDBase, TimestampMixin, table=True):
    __tablename__ = "department"

    name: str = Field(max_length=255, unique=True)
    code: str = Field(max_length=50, unique=True)
    manager_id: uuid.UUID | None = Field(default=None, sa_type=sa.Uuid)
    description: str | None = Field(default=None, max_length=500)
    is_active: bool = Field(default=True)
