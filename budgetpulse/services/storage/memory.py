"""
In-Memory Key-Value Store

Dict-backed store for tests and throwaway sessions. An optional byte quota
reproduces the browser's quota-exceeded fault so callers can exercise the
storage-fault path without filling a disk.
"""

from typing import Optional

from budgetpulse.services.storage.interface import (
    KeyValueStore,
    QuotaExceededError,
)


class InMemoryKeyValueStore(KeyValueStore):
    """
    Key-value store that lives as long as the object does.

    Size is measured as UTF-8 bytes of keys plus values.
    """

    def __init__(self, quota_bytes: Optional[int] = None):
        self._items: dict[str, str] = {}
        self._quota_bytes = quota_bytes

    def _size_with(self, key: str, value: str) -> int:
        total = 0
        for existing_key, existing_value in self._items.items():
            if existing_key == key:
                continue
            total += len(existing_key.encode("utf-8")) + len(existing_value.encode("utf-8"))
        return total + len(key.encode("utf-8")) + len(value.encode("utf-8"))

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        if self._quota_bytes is not None:
            needed = self._size_with(key, value)
            if needed > self._quota_bytes:
                raise QuotaExceededError(
                    f"Writing '{key}' needs {needed} bytes, quota is {self._quota_bytes}"
                )
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)
