"""
Abstract Storage Interface

DESIGN DECISION: The ledger persists through a plain textual key-value store,
the same shape as a browser's localStorage. This allows us to:
1. Keep the on-disk format identical to what the web client writes
2. Use in-memory storage for testing
3. Swap the medium (files, a database table) without touching the ledger

The interface is intentionally tiny. Serialization lives one level up, in
the ledger storage adapter; stores only move text.
"""

from abc import ABC, abstractmethod
from typing import Optional


class KeyValueStore(ABC):
    """
    Abstract interface for a durable textual key-value store.

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        """
        Read the text stored under a key.

        Args:
            key: Storage key

        Returns:
            The stored text, or None if the key is absent
        """
        pass

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """
        Overwrite the text stored under a key.

        The write is atomic from the caller's point of view: a later
        get_item returns either the old text or the new text, never a mix.

        Args:
            key: Storage key
            value: Text to store

        Raises:
            QuotaExceededError: If the store has no room for the value
            StoreUnavailableError: If the store cannot be written
        """
        pass

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """
        Delete a key. Removing an absent key is a no-op.

        Raises:
            StoreUnavailableError: If the store cannot be written
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class QuotaExceededError(StorageError):
    """The store is full; the write did not happen."""
    pass


class StoreUnavailableError(StorageError):
    """The store could not be reached or written."""
    pass


class SerializationError(StorageError):
    """A value could not be encoded for storage; nothing was written."""
    pass
