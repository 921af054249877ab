"""
Audit Models for the BudgetPulse Ledger

Every mutation of the ledger and every storage problem is recorded as an
audit event. This provides:
1. Traceability of what changed the user's money records
2. The diagnostic side channel for corrupted stored data
3. Debugging information when a durable write fails

DESIGN DECISION: Audit events are emitted, never returned.
Callers get plain results; the audit trail goes to the structured log.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Lifecycle
    LEDGER_INITIALIZED = "ledger_initialized"

    # Mutations
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_DELETED = "transaction_deleted"
    TRANSACTION_REJECTED = "transaction_rejected"
    BUDGET_LIMIT_SET = "budget_limit_set"

    # Storage problems
    STORAGE_CORRUPTED = "storage_corrupted"
    STORAGE_FAULT = "storage_fault"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'budget', 'storage_key')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_added(transaction_id, "expense", "12.50")
        event = AuditEventBuilder.storage_corrupted("budgetpulse_budgets", reason)
    """

    @staticmethod
    def ledger_initialized(
        transaction_count: int,
        budget_month_count: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_INITIALIZED,
            severity=AuditSeverity.DEBUG,
            description=f"Ledger loaded with {transaction_count} transactions",
            details={
                "transaction_count": transaction_count,
                "budget_month_count": budget_month_count,
            },
        )

    @staticmethod
    def transaction_added(
        transaction_id: str,
        transaction_type: str,
        amount: Decimal,
        month_key: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_ADDED,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"Transaction added: {transaction_type} of {amount}",
            details={
                "type": transaction_type,
                "amount": str(amount),
                "month_key": month_key,
            },
        )

    @staticmethod
    def transaction_deleted(transaction_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            entity_type="transaction",
            entity_id=transaction_id,
            description="Transaction deleted",
        )

    @staticmethod
    def transaction_rejected(issues: list[dict]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="transaction",
            description=f"Transaction input rejected with {len(issues)} issues",
            details={
                "issues": issues,
            },
        )

    @staticmethod
    def budget_limit_set(
        month_key: str,
        limit: Decimal,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_LIMIT_SET,
            entity_type="budget",
            entity_id=month_key,
            description=f"Budget limit for {month_key} set to {limit}",
            details={
                "limit": str(limit),
            },
        )

    @staticmethod
    def storage_corrupted(
        storage_key: str,
        reason: str,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_CORRUPTED,
            severity=AuditSeverity.WARNING,
            entity_type="storage_key",
            entity_id=storage_key,
            description=f"Stored data under '{storage_key}' is corrupted; treating as empty",
            error_message=reason,
            details=details or {},
        )

    @staticmethod
    def storage_fault(
        storage_key: str,
        operation: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_FAULT,
            severity=AuditSeverity.ERROR,
            entity_type="storage_key",
            entity_id=storage_key,
            description=f"Storage {operation} failed for '{storage_key}'",
            error_message=error_message,
            details={
                "operation": operation,
            },
        )
