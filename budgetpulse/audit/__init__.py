"""Audit logging package."""

from budgetpulse.audit.logger import AuditLogger, configure_log_level

__all__ = ["AuditLogger", "configure_log_level"]
