# ruff: noqa: TC003
from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlmodel import col

from leave_tracker.db import commit, storage_guard
from leave_tracker.exceptions import NotFoundError
from leave_tracker.models.enums import AuditAction, AuditEntityType, LeaveType
from leave_tracker.models.policy import LeavePolicy
from leave_tracker.schemas.policy import PolicyListResponse, PolicyResponse
from leave_tracker.services.audit import record_audit, snapshot

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_tracker.schemas.auth import AuthContext
    from leave_tracker.schemas.policy import CreatePolicyRequest, UpdatePolicyRequest


def _build_policy_response(policy: LeavePolicy) -> PolicyResponse:
    """Build a PolicyResponse from a DB model."""
    return PolicyResponse(
        id=policy.id,
        name=policy.name,
        leave_type=LeaveType(policy.leave_type),
        annual_quota=policy.annual_quota,
        max_consecutive_days=policy.max_consecutive_days,
        carry_forward_allowed=policy.carry_forward_allowed,
        carry_forward_max_days=policy.carry_forward_max_days,
        requires_approval=policy.requires_approval,
        minimum_notice_days=policy.minimum_notice_days,
        description=policy.description,
        is_active=policy.is_active,
        created_at=policy.created_at,
        updated_at=policy.updated_at,
    )


async def _get_policy_or_404(session: AsyncSession, policy_id: uuid.UUID) -> LeavePolicy:
    result = await session.execute(select(LeavePolicy).where(col(LeavePolicy.id) == policy_id))
    policy = result.scalar_one_or_none()
    if policy is None:
        raise NotFoundError("Policy not found")
    return policy


@storage_guard
async def list_policies(session: AsyncSession) -> PolicyListResponse:
    """List policies ordered by leave type."""
    result = await session.execute(select(LeavePolicy).order_by(col(LeavePolicy.leave_type), col(LeavePolicy.name)))
    policies = list(result.scalars().all())
    return PolicyListResponse(items=[_build_policy_response(p) for p in policies], total=len(policies))


@storage_guard
async def create_policy(
    session: AsyncSession,
    auth: AuthContext | None,
    payload: CreatePolicyRequest,
) -> PolicyResponse:
    policy = LeavePolicy(**payload.model_dump(exclude={"leave_type"}), leave_type=payload.leave_type.value)
    session.add(policy)
    await session.flush()

    await record_audit(
        session,
        actor_id=auth.user_id if auth is not None else None,
        entity_type=AuditEntityType.POLICY,
        entity_id=policy.id,
        action=AuditAction.CREATE,
        after_json=snapshot(policy),
    )
    await commit(session)
    await session.refresh(policy)
    return _build_policy_response(policy)


@storage_guard
async def update_policy(
    session: AsyncSession,
    auth: AuthContext,
    policy_id: uuid.UUID,
    payload: UpdatePolicyRequest,
) -> PolicyResponse:
    """Apply the fields present in the payload."""
    policy = await _get_policy_or_404(session, policy_id)
    before_dict = snapshot(policy)

    for field, value in payload.model_dump(exclude_unset=True).items():
        if field == "leave_type" and value is not None:
            value = LeaveType(value).value
        setattr(policy, field, value)
    await session.flush()

    await record_audit(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.POLICY,
        entity_id=policy.id,
        action=AuditAction.UPDATE,
        before_json=before_dict,
        after_json=snapshot(policy),
    )
    await commit(session)
    await session.refresh(policy)
    return _build_policy_response(policy)


@storage_guard
async def delete_policy(session: AsyncSession, auth: AuthContext, policy_id: uuid.UUID) -> None:
    policy = await _get_policy_or_404(session, policy_id)
    before_dict = snapshot(policy)
    await session.delete(policy)

    await record_audit(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.POLICY,
        entity_id=policy_id,
        action=AuditAction.DELETE,
        before_json=before_dict,
    )
    await commit(session)
