"""
Ledger Storage Adapter

Translates the ledger's two collections to and from JSON text in a
KeyValueStore:

- transactions key -> array of {id, date, description, amount, type},
  insertion order preserved
- budgets key -> object mapping "YYYY-MM" month keys to numeric limits

DESIGN DECISION: Corrupted data never crashes a load.
Unparseable text under a known key is treated as absent (empty list / zero
limit) and reported through the audit logger. Write failures are the
opposite: they are reported AND re-raised, because a silently lost financial
record is worse than an error message.

Numbers are written as JSON numbers and read back as Decimal
(parse_float/parse_int). A Decimal that a JSON number cannot hold exactly is
refused with SerializationError instead of being rounded, so what is stored
always equals what is in memory.
"""

import json
from decimal import Decimal
from typing import Any, Iterable, Optional, Union

from pydantic import ValidationError

from budgetpulse.audit import AuditLogger
from budgetpulse.models.transaction import Transaction, is_representable_amount
from budgetpulse.services.storage.interface import (
    KeyValueStore,
    SerializationError,
    StorageError,
)


DEFAULT_TRANSACTIONS_KEY = "budgetpulse_transactions"
DEFAULT_BUDGETS_KEY = "budgetpulse_budgets"

ZERO = Decimal("0")


def make_month_key(year: int, month: int) -> str:
    """
    Build the canonical month key, e.g. (2025, 3) -> "2025-03".

    Injective over year >= 0 and month in 1..12: the month part is always
    exactly two digits after the last hyphen.
    """
    if isinstance(year, bool) or not isinstance(year, int) or year < 0:
        raise ValueError(f"Year must be a non-negative integer, got {year!r}")
    if isinstance(month, bool) or not isinstance(month, int) or not 1 <= month <= 12:
        raise ValueError(f"Month must be an integer in 1..12, got {month!r}")
    return f"{year:04d}-{month:02d}"


def _to_json_number(value: Decimal) -> Union[int, float]:
    if not is_representable_amount(value):
        raise ValueError(f"{value} cannot be stored exactly as a JSON number")
    if value == value.to_integral_value():
        return int(value)
    return float(value)


class _LedgerJSONEncoder(json.JSONEncoder):
    """Writes Decimals as plain JSON numbers."""

    def default(self, o: Any) -> Any:
        if isinstance(o, Decimal):
            return _to_json_number(o)
        return super().default(o)


class LedgerStorage:
    """
    Persistent store adapter for the ledger.

    Owns the two storage keys and the serialization format. No business
    logic: validation and derived values live in the ledger engine.
    """

    make_month_key = staticmethod(make_month_key)

    def __init__(
        self,
        store: KeyValueStore,
        transactions_key: str = DEFAULT_TRANSACTIONS_KEY,
        budgets_key: str = DEFAULT_BUDGETS_KEY,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._transactions_key = transactions_key
        self._budgets_key = budgets_key
        self._audit_logger = audit_logger or AuditLogger()

    @property
    def transactions_key(self) -> str:
        return self._transactions_key

    @property
    def budgets_key(self) -> str:
        return self._budgets_key

    # =========================================================================
    # Serialization helpers
    # =========================================================================

    def _transaction_to_record(self, transaction: Transaction) -> dict:
        """Convert a Transaction to its stored JSON object."""
        return {
            "id": transaction.id,
            "date": transaction.date.isoformat(),
            "description": transaction.description,
            "amount": transaction.amount,
            "type": transaction.type.value,
        }

    def _record_to_transaction(self, record: Any) -> Transaction:
        """Convert a stored JSON object to a Transaction."""
        if not isinstance(record, dict):
            raise TypeError(f"Expected an object, got {type(record).__name__}")
        return Transaction.model_validate(record)

    def _read_json(self, key: str) -> tuple[bool, Any]:
        """
        Read and parse the JSON under a key.

        Returns (found, payload). Corrupt text is reported and returned as
        not found.
        """
        raw = self._store.get_item(key)
        if raw is None:
            return False, None

        try:
            return True, json.loads(raw, parse_float=Decimal, parse_int=Decimal)
        except ValueError as e:
            self._audit_logger.log_storage_corrupted(
                storage_key=key,
                reason=f"Invalid JSON: {e}",
            )
            return False, None

    def _write_json(self, key: str, payload: Any, operation: str) -> None:
        """
        Encode payload and overwrite the key with it.

        Raises:
            SerializationError: If payload cannot be encoded exactly; the
                                key is left untouched
            StorageError: If the store rejects the write
        """
        try:
            data = json.dumps(
                payload,
                cls=_LedgerJSONEncoder,
                ensure_ascii=False,
                allow_nan=False,
            )
        except (TypeError, ValueError) as e:
            fault = SerializationError(f"Failed to encode '{key}': {e}")
            self._audit_logger.log_storage_fault(
                storage_key=key,
                operation=operation,
                error_message=str(fault),
            )
            raise fault from e

        try:
            self._store.set_item(key, data)
        except StorageError as e:
            self._audit_logger.log_storage_fault(
                storage_key=key,
                operation=operation,
                error_message=str(e),
            )
            raise

    # =========================================================================
    # Transactions
    # =========================================================================

    def load_transactions(self) -> list[Transaction]:
        """
        Load all stored transactions in insertion order.

        Absent key -> []. Corrupt payload -> [] (reported). Records that are
        malformed or repeat an earlier id are skipped (reported); the rest
        are returned.
        """
        found, payload = self._read_json(self._transactions_key)
        if not found:
            return []

        if not isinstance(payload, list):
            self._audit_logger.log_storage_corrupted(
                storage_key=self._transactions_key,
                reason=f"Expected a JSON array, got {type(payload).__name__}",
            )
            return []

        transactions: list[Transaction] = []
        seen_ids: set[str] = set()
        for index, record in enumerate(payload):
            try:
                transaction = self._record_to_transaction(record)
            except (ValidationError, TypeError, ValueError) as e:
                self._audit_logger.log_storage_corrupted(
                    storage_key=self._transactions_key,
                    reason=f"Skipping malformed transaction: {e}",
                    details={"index": index},
                )
                continue

            if transaction.id in seen_ids:
                self._audit_logger.log_storage_corrupted(
                    storage_key=self._transactions_key,
                    reason=f"Skipping duplicate transaction id: {transaction.id}",
                    details={"index": index},
                )
                continue

            seen_ids.add(transaction.id)
            transactions.append(transaction)

        return transactions

    def save_transactions(self, transactions: Iterable[Transaction]) -> bool:
        """
        Overwrite the stored transaction list.

        Returns:
            True once the list is durably stored

        Raises:
            StorageError: If a value cannot be encoded exactly
                          (SerializationError) or the store rejects the write
        """
        records = [self._transaction_to_record(t) for t in transactions]
        self._write_json(self._transactions_key, records, "save_transactions")
        return True

    # =========================================================================
    # Budget limits
    # =========================================================================

    def load_budget_limits(self) -> dict[str, Decimal]:
        """
        Load the whole month key -> limit mapping.

        Absent or corrupt mapping -> {}. Entries that are not numbers, or that
        a JSON number cannot hold exactly, are skipped (reported).
        """
        found, payload = self._read_json(self._budgets_key)
        if not found:
            return {}

        if not isinstance(payload, dict):
            self._audit_logger.log_storage_corrupted(
                storage_key=self._budgets_key,
                reason=f"Expected a JSON object, got {type(payload).__name__}",
            )
            return {}

        limits: dict[str, Decimal] = {}
        for month_key, value in payload.items():
            if not isinstance(value, Decimal) or not is_representable_amount(value):
                self._audit_logger.log_storage_corrupted(
                    storage_key=self._budgets_key,
                    reason=f"Skipping unusable limit for {month_key}",
                    details={"month_key": month_key},
                )
                continue
            limits[month_key] = value

        return limits

    def load_budget_limit(self, month_key: str) -> Decimal:
        """Limit stored for one month, or 0 if none is set."""
        return self.load_budget_limits().get(month_key, ZERO)

    def save_budget_limit(self, month_key: str, value: Decimal) -> None:
        """
        Store one month's limit, keeping every other month's entry.

        Raises:
            StorageError: If a value cannot be encoded exactly
                          (SerializationError) or the store rejects the write
        """
        limits = self.load_budget_limits()
        limits[month_key] = value
        self._write_json(self._budgets_key, limits, "save_budget_limit")
