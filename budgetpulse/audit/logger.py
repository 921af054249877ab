"""
Audit Logger

DESIGN DECISION: Every mutation of the ledger is logged, and so is every
storage problem. This provides:
1. Traceability of changes to the user's financial records
2. A diagnostic channel for corrupted stored data (loads still return
   empty/zero, the log says why)
3. Debugging capability when a durable write fails

The audit logger:
- Is synchronous, like the rest of the ledger core
- Never raises: a logging failure must not turn into a lost transaction
"""

import logging
import sys
from decimal import Decimal
from typing import Optional

import structlog

from budgetpulse.models.audit import AuditEvent, AuditEventBuilder


LOGGER_NAME = "budgetpulse.audit"

# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_log_level(level: str = "info") -> None:
    """
    Set the minimum level for the package's structured output.

    Attaches one stderr handler to the package logger the first time it is
    called; later calls only change the level.
    """
    package_logger = logging.getLogger("budgetpulse")
    if not package_logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(message)s"))
        package_logger.addHandler(handler)
    package_logger.setLevel(getattr(logging, level.upper(), logging.INFO))


class AuditLogger:
    """
    Central audit logging service.

    Renders AuditEvents through structlog at the event's severity.
    """

    def __init__(self, logger_name: str = LOGGER_NAME):
        self._logger = structlog.get_logger(logger_name)

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns False if the event could not be written.
        """
        log_dict = event.to_log_dict()
        level = event.severity.value

        try:
            if level == "error":
                self._logger.error("audit_event", **log_dict)
            elif level == "warning":
                self._logger.warning("audit_event", **log_dict)
            elif level == "debug":
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception as e:
            # Last resort: the structured pipeline itself failed
            print(f"WARNING: Failed to write audit event {event.event_id}: {e}", file=sys.stderr)
            return False

        return True

    def log_ledger_initialized(
        self,
        transaction_count: int,
        budget_month_count: int,
    ) -> None:
        """Log ledger hydration from storage."""
        self.log(AuditEventBuilder.ledger_initialized(
            transaction_count=transaction_count,
            budget_month_count=budget_month_count,
        ))

    def log_transaction_added(
        self,
        transaction_id: str,
        transaction_type: str,
        amount: Decimal,
        month_key: str,
    ) -> None:
        """Log a new transaction."""
        self.log(AuditEventBuilder.transaction_added(
            transaction_id=transaction_id,
            transaction_type=transaction_type,
            amount=amount,
            month_key=month_key,
        ))

    def log_transaction_deleted(self, transaction_id: str) -> None:
        """Log a deletion."""
        self.log(AuditEventBuilder.transaction_deleted(transaction_id))

    def log_transaction_rejected(self, issues: list[dict]) -> None:
        """Log input that bypassed validation and was refused."""
        self.log(AuditEventBuilder.transaction_rejected(issues))

    def log_budget_limit_set(
        self,
        month_key: str,
        limit: Decimal,
    ) -> None:
        """Log a budget limit change."""
        self.log(AuditEventBuilder.budget_limit_set(
            month_key=month_key,
            limit=limit,
        ))

    def log_storage_corrupted(
        self,
        storage_key: str,
        reason: str,
        details: Optional[dict] = None,
    ) -> None:
        """Log unreadable data found under a storage key."""
        self.log(AuditEventBuilder.storage_corrupted(
            storage_key=storage_key,
            reason=reason,
            details=details,
        ))

    def log_storage_fault(
        self,
        storage_key: str,
        operation: str,
        error_message: str,
    ) -> None:
        """Log a failed durable write."""
        self.log(AuditEventBuilder.storage_fault(
            storage_key=storage_key,
            operation=operation,
            error_message=error_message,
        ))
