"""
Storage Services Package

Provides the key-value store interface, two implementations (files and
memory), and the adapter that maps the ledger onto a store.
"""

from budgetpulse.services.storage.interface import (
    KeyValueStore,
    QuotaExceededError,
    SerializationError,
    StorageError,
    StoreUnavailableError,
)
from budgetpulse.services.storage.file_store import FileKeyValueStore
from budgetpulse.services.storage.memory import InMemoryKeyValueStore
from budgetpulse.services.storage.ledger_storage import (
    DEFAULT_BUDGETS_KEY,
    DEFAULT_TRANSACTIONS_KEY,
    LedgerStorage,
    make_month_key,
)

__all__ = [
    # Interface
    "KeyValueStore",
    # Exceptions
    "QuotaExceededError",
    "SerializationError",
    "StorageError",
    "StoreUnavailableError",
    # Implementations
    "FileKeyValueStore",
    "InMemoryKeyValueStore",
    # Ledger adapter
    "DEFAULT_BUDGETS_KEY",
    "DEFAULT_TRANSACTIONS_KEY",
    "LedgerStorage",
    "make_month_key",
]
