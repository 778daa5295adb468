"""Persistence helpers shared by the household services."""

from .accounts import AccountRepository, accounts
from .audit_log import AuditLogRepository, audit_log
from .point_ledger import PointLedgerRepository, point_ledger

__all__ = [
    "AccountRepository",
    "AuditLogRepository",
    "PointLedgerRepository",
    "accounts",
    "audit_log",
    "point_ledger",
]
