from sqlmodel import SQLModel

from leave_tracker.models.audit import AuditLog
from leave_tracker.models.balance import LeaveBalance
from leave_tracker.models.base import TimestampMixin, UUIDBase
from leave_tracker.models.department import Department
from leave_tracker.models.employee import Employee
from leave_tracker.models.enums import (
    ACTIVE_LEAVE_STATUSES,
    LIMITED_LEAVE_TYPES,
    AuditAction,
    AuditEntityType,
    BalanceEntryType,
    BalanceSourceType,
    EmployeeRole,
    LeaveStatus,
    LeaveType,
)
from leave_tracker.models.ledger import LeaveBalanceEntry
from leave_tracker.models.policy import LeavePolicy
from leave_tracker.models.request import LeaveRequest

__all__ = [
    "ACTIVE_LEAVE_STATUSES",
    "LIMITED_LEAVE_TYPES",
    "AuditAction",
    "AuditEntityType",
    "AuditLog",
    "BalanceEntryType",
    "BalanceSourceType",
    "Department",
    "Employee",
    "EmployeeRole",
    "LeaveBalance",
    "LeaveBalanceEntry",
    "LeavePolicy",
    "LeaveRequest",
    "LeaveStatus",
    "LeaveType",
    "SQLModel",
    "TimestampMixin",
    "UUIDBase",
]
