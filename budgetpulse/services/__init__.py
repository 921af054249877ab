"""Services package."""

from budgetpulse.services.storage import (
    FileKeyValueStore,
    InMemoryKeyValueStore,
    KeyValueStore,
    LedgerStorage,
    QuotaExceededError,
    StorageError,
    StoreUnavailableError,
    make_month_key,
)

__all__ = [
    "FileKeyValueStore",
    "InMemoryKeyValueStore",
    "KeyValueStore",
    "LedgerStorage",
    "QuotaExceededError",
    "StorageError",
    "StoreUnavailableError",
    "make_month_key",
]
