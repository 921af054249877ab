"""
Data Models Package

This package contains all Pydantic models used by the BudgetPulse ledger.
All data flowing through the ledger must conform to these schemas.
"""

from budgetpulse.models.transaction import (
    MAX_AMOUNT_DIGITS,
    MIN_AMOUNT_EXPONENT,
    BudgetStatus,
    MonthSummary,
    SelectedMonth,
    Transaction,
    TransactionType,
    ValidationIssue,
    ValidationResult,
    is_representable_amount,
)
from budgetpulse.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "MAX_AMOUNT_DIGITS",
    "MIN_AMOUNT_EXPONENT",
    "BudgetStatus",
    "MonthSummary",
    "SelectedMonth",
    "Transaction",
    "TransactionType",
    "ValidationIssue",
    "ValidationResult",
    "is_representable_amount",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
