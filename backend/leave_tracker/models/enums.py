from __future__ import annotations

import enum


class EmployeeRole(enum.StrEnum):
    """Closed set of organisational tiers, lowest first."""

    TEAM_MEMBER = "team_member"
    TEAM_LEADER = "team_leader"
    TEAM_MANAGER = "team_manager"
    GENERAL_MANAGER = "general_manager"

    @property
    def is_manager(self) -> bool:
        return self is not EmployeeRole.TEAM_MEMBER


class LeaveType(enum.StrEnum):
    """Kind of leave. UNPAID has no balance and is never debited."""

    CASUAL = "casual"
    MEDICAL = "medical"
    EARNED = "earned"
    UNPAID = "unpaid"

    @property
    def is_limited(self) -> bool:
        return self is not LeaveType.UNPAID


# Leave types that carry a stored balance.
LIMITED_LEAVE_TYPES: tuple[LeaveType, ...] = (LeaveType.CASUAL, LeaveType.MEDICAL, LeaveType.EARNED)


class LeaveStatus(enum.StrEnum):
    """State machine for leave requests."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


# Statuses that hold calendar days and block overlapping requests.
ACTIVE_LEAVE_STATUSES: tuple[LeaveStatus, ...] = (LeaveStatus.PENDING, LeaveStatus.APPROVED)


class BalanceEntryType(enum.StrEnum):
    """Type of ledger entry affecting a balance."""

    DEBIT = "DEBIT"
    CREDIT = "CREDIT"
    RESET = "RESET"
    OVERRIDE = "OVERRIDE"
    OPENING = "OPENING"


class BalanceSourceType(enum.StrEnum):
    """Origin of a ledger entry."""

    REQUEST = "REQUEST"
    MANAGER = "MANAGER"
    ADMIN = "ADMIN"


class AuditEntityType(enum.StrEnum):
    """Entity type recorded in the audit log."""

    EMPLOYEE = "EMPLOYEE"
    DEPARTMENT = "DEPARTMENT"
    POLICY = "POLICY"
    REQUEST = "REQUEST"
    BALANCE = "BALANCE"


class AuditAction(enum.StrEnum):
    """Action recorded in the audit log."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    DEACTIVATE = "DEACTIVATE"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    CANCEL = "CANCEL"
    OVERRIDE = "OVERRIDE"
    RESET = "RESET"
