"""Shared fixtures for the ledger tests."""

from unittest.mock import MagicMock

import pytest

from budgetpulse.audit import AuditLogger
from budgetpulse.ledger import LedgerEngine
from budgetpulse.services.storage import InMemoryKeyValueStore, LedgerStorage


@pytest.fixture
def store():
    """Empty in-memory key-value store."""
    return InMemoryKeyValueStore()


@pytest.fixture
def audit_logger():
    """Audit logger double, so tests can assert on reported events."""
    return MagicMock(spec=AuditLogger)


@pytest.fixture
def storage(store, audit_logger):
    return LedgerStorage(store, audit_logger=audit_logger)


@pytest.fixture
def engine(storage, audit_logger):
    """Initialized engine over an empty store."""
    ledger = LedgerEngine(storage, audit_logger=audit_logger)
    ledger.init()
    return ledger


@pytest.fixture
def paycheck():
    return {
        "date": "2025-03-05",
        "description": "Paycheck",
        "amount": 2000,
        "type": "income",
    }


@pytest.fixture
def rent():
    return {
        "date": "2025-03-10",
        "description": "Rent",
        "amount": 1200,
        "type": "expense",
    }
