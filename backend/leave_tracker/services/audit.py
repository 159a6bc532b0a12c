"""Audit trail writes.

Every mutating service call adds exactly one AuditLog row to its own unit of
work, so the entry commits or rolls back together with the change it describes.
"""

from __future__ import annotations

import enum
import logging
import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING, Any

from leave_tracker.models.audit import AuditLog

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession
    from sqlmodel import SQLModel

    from leave_tracker.models.enums import AuditAction, AuditEntityType

logger = logging.getLogger(__name__)


def _json_value(value: Any) -> Any:
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, enum.Enum):
        return value.value
    return value


def snapshot(record: SQLModel) -> dict[str, Any]:
    """Capture the column values of a record as a JSON-safe dict."""
    return {key: _json_value(value) for key, value in record.model_dump().items()}


async def record_audit(
    session: AsyncSession,
    *,
    actor_id: uuid.UUID | None,
    entity_type: AuditEntityType,
    entity_id: uuid.UUID,
    action: AuditAction,
    before_json: dict[str, Any] | None = None,
    after_json: dict[str, Any] | None = None,
) -> AuditLog:
    entry = AuditLog(
        actor_id=actor_id,
        entity_type=entity_type.value,
        entity_id=entity_id,
        action=action.value,
        before_json=before_json,
        after_json=after_json,
    )
    session.add(entry)
    logger.debug("audit %s %s %s by %s", action.value, entity_type.value, entity_id, actor_id or "system")
    return entry
