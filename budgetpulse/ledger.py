"""
Ledger Engine for BudgetPulse

This module holds the authoritative in-memory ledger and ties it to storage:
1. Mutations (add/delete transaction, set budget limit) update memory and
   then persist through the storage adapter before returning
2. Queries (month filter, totals, remaining budget, status) read memory only
3. Validation of raw input, for callers to run before add_transaction

DESIGN DECISION: The engine enforces the boundaries:
- Memory always mirrors the durable store. If a write fails, the in-memory
  change is rolled back and the StorageError propagates to the caller.
- Expected outcomes are data: invalid input -> ValidationResult,
  unknown id on delete -> False.
- Every mutation is audited.

There is exactly one engine per process; build it with create_ledger() and
pass it to whoever needs it.
"""

from decimal import Decimal
from typing import Any, Iterable, Mapping, Optional, Union
from uuid import uuid4

from budgetpulse.audit import AuditLogger, configure_log_level
from budgetpulse.config import StorageSettings, get_settings
from budgetpulse.models.transaction import (
    MAX_AMOUNT_DIGITS,
    BudgetStatus,
    MonthSummary,
    SelectedMonth,
    Transaction,
    TransactionType,
    ValidationIssue,
    ValidationResult,
    is_representable_amount,
)
from budgetpulse.services.storage import (
    FileKeyValueStore,
    InMemoryKeyValueStore,
    KeyValueStore,
    LedgerStorage,
    StorageError,
    make_month_key,
)
from budgetpulse.validation import TransactionValidator, parse_amount, parse_date


Number = Union[Decimal, int, float]

ZERO = Decimal("0")


class InvalidInputError(ValueError):
    """Input that cannot become part of the ledger."""

    def __init__(self, message: str, issues: Optional[list[ValidationIssue]] = None):
        super().__init__(message)
        self.issues = issues or []


def _as_decimal(value: Number) -> Decimal:
    amount = value if isinstance(value, Decimal) else parse_amount(value)
    if amount is None:
        raise InvalidInputError(f"Expected a number, got {value!r}")
    if not amount.is_finite():
        raise InvalidInputError(f"Expected a finite number, got {value!r}")
    return amount


class LedgerEngine:
    """
    Authoritative ledger state and business logic.

    State:
    - transactions, in insertion order
    - month key -> budget limit cache
    - the selected month (session only, never persisted)
    """

    def __init__(
        self,
        storage: LedgerStorage,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[TransactionValidator] = None,
    ):
        self._storage = storage
        self._audit_logger = audit_logger or AuditLogger()
        self._validator = validator or TransactionValidator()

        self._transactions: list[Transaction] = []
        self._budget_limits: dict[str, Decimal] = {}
        self._selected_month = SelectedMonth.current()

    # =========================================================================
    # INITIALIZATION
    # =========================================================================

    def init(self) -> None:
        """
        Hydrate the ledger from storage.

        Both collections are loaded eagerly. Calling init() again discards
        the in-memory copy (including cached limits) and re-reads storage.
        Corrupt stored data loads as empty and never makes this fail.
        """
        self._transactions = self._storage.load_transactions()
        self._budget_limits = self._storage.load_budget_limits()

        self._audit_logger.log_ledger_initialized(
            transaction_count=len(self._transactions),
            budget_month_count=len(self._budget_limits),
        )

    # =========================================================================
    # STATE ACCESSORS
    # =========================================================================

    @property
    def transactions(self) -> list[Transaction]:
        return list(self._transactions)

    @property
    def budget_limits(self) -> dict[str, Decimal]:
        return dict(self._budget_limits)

    @property
    def selected_month(self) -> SelectedMonth:
        return self._selected_month

    # =========================================================================
    # TRANSACTION OPERATIONS
    # =========================================================================

    def _generate_id(self) -> str:
        existing = {t.id for t in self._transactions}
        new_id = str(uuid4())
        while new_id in existing:
            new_id = str(uuid4())
        return new_id

    def add_transaction(self, data: Mapping[str, Any]) -> Transaction:
        """
        Create a transaction, append it, and persist the full list.

        Args:
            data: date, description, amount and type. Any id in it is
                  ignored; the engine assigns one.

        Returns:
            The created Transaction

        Raises:
            InvalidInputError: If the data cannot form a valid transaction
                               (callers should run validate_transaction first)
            StorageError: If the list could not be persisted; the
                          transaction is not kept in memory either
        """
        result = self._validator.validate(data)
        if not result.is_valid:
            self._audit_logger.log_transaction_rejected(
                [issue.model_dump() for issue in result.errors]
            )
            raise InvalidInputError(
                "Invalid transaction: " + ", ".join(result.error_fields),
                result.errors,
            )

        transaction = Transaction(
            id=self._generate_id(),
            date=parse_date(data["date"]),
            description=data["description"],
            amount=parse_amount(data["amount"]),
            type=TransactionType(data["type"]),
        )

        self._transactions.append(transaction)
        try:
            self._storage.save_transactions(self._transactions)
        except StorageError:
            self._transactions.pop()
            raise

        self._audit_logger.log_transaction_added(
            transaction_id=transaction.id,
            transaction_type=transaction.type.value,
            amount=transaction.amount,
            month_key=transaction.month_key,
        )
        return transaction

    def delete_transaction(self, transaction_id: str) -> bool:
        """
        Delete a transaction by ID.

        Returns:
            True if it was found and the shortened list persisted,
            False if no transaction has that id (nothing changes)

        Raises:
            StorageError: If the shortened list could not be persisted;
                          the transaction stays in memory
        """
        for index, transaction in enumerate(self._transactions):
            if transaction.id == transaction_id:
                break
        else:
            return False

        removed = self._transactions.pop(index)
        try:
            self._storage.save_transactions(self._transactions)
        except StorageError:
            self._transactions.insert(index, removed)
            raise

        self._audit_logger.log_transaction_deleted(transaction_id)
        return True

    def get_transactions_for_month(self, year: int, month: int) -> list[Transaction]:
        """
        Every transaction dated in the given month and year, in insertion order.
        """
        return [t for t in self._transactions if t.occurs_in(year, month)]

    def get_all_transactions(self) -> list[Transaction]:
        return list(self._transactions)

    # =========================================================================
    # BUDGET OPERATIONS
    # =========================================================================

    def set_budget_limit(self, year: int, month: int, value: Number) -> None:
        """
        Set the spending limit for a month, in memory and in storage.

        Zero and negative values are stored as given: rejecting a
        non-positive limit (and keeping the old one) is the caller's check.

        Raises:
            ValueError: If year/month do not form a month key
            InvalidInputError: If value is not a finite number, or has more
                               precision or magnitude than storage holds
            StorageError: If the mapping could not be persisted; the cached
                          limit is restored
        """
        month_key = make_month_key(year, month)
        limit = parse_amount(value)
        if limit is None or not is_representable_amount(limit):
            raise InvalidInputError(
                f"Budget limit must be a storable number, got {value!r}",
                [ValidationIssue(
                    field="limit",
                    issue_type="invalid_value",
                    message=(
                        f"Budget limit must be a number with at most "
                        f"{MAX_AMOUNT_DIGITS} significant digits"
                    ),
                )],
            )

        had_previous = month_key in self._budget_limits
        previous = self._budget_limits.get(month_key)

        self._budget_limits[month_key] = limit
        try:
            self._storage.save_budget_limit(month_key, limit)
        except StorageError:
            if had_previous:
                self._budget_limits[month_key] = previous
            else:
                del self._budget_limits[month_key]
            raise

        self._audit_logger.log_budget_limit_set(month_key=month_key, limit=limit)

    def get_budget_limit(self, year: int, month: int) -> Decimal:
        """
        Limit for a month; 0 means no limit has been set.

        Served from the cache; a month missing from it is read from storage
        and cached.
        """
        month_key = make_month_key(year, month)
        if month_key in self._budget_limits:
            return self._budget_limits[month_key]

        stored = self._storage.load_budget_limit(month_key)
        self._budget_limits[month_key] = stored
        return stored

    # =========================================================================
    # SELECTED MONTH OPERATIONS
    # =========================================================================

    def set_selected_month(self, year: int, month: int) -> None:
        """Change the month being viewed. Not persisted."""
        self._selected_month = SelectedMonth(year=year, month=month)

    def get_selected_month(self) -> SelectedMonth:
        return self._selected_month

    # =========================================================================
    # CALCULATIONS
    # =========================================================================

    @staticmethod
    def calculate_total_income(transactions: Iterable[Transaction]) -> Decimal:
        """Sum of amounts over income transactions; 0 for none."""
        return sum(
            (t.amount for t in transactions if t.type == TransactionType.INCOME),
            ZERO,
        )

    @staticmethod
    def calculate_total_expenses(transactions: Iterable[Transaction]) -> Decimal:
        """Sum of amounts over expense transactions; 0 for none."""
        return sum(
            (t.amount for t in transactions if t.type == TransactionType.EXPENSE),
            ZERO,
        )

    @staticmethod
    def calculate_remaining_budget(limit: Number, total_expenses: Number) -> Decimal:
        """limit - total_expenses. Negative when over budget; never clamped."""
        return _as_decimal(limit) - _as_decimal(total_expenses)

    @staticmethod
    def get_budget_status(limit: Number, total_expenses: Number) -> BudgetStatus:
        """WITHIN iff total_expenses <= limit (spending exactly the limit is within)."""
        if _as_decimal(total_expenses) <= _as_decimal(limit):
            return BudgetStatus.WITHIN
        return BudgetStatus.OVER

    def get_month_summary(self, year: int, month: int) -> MonthSummary:
        """All derived values for one month."""
        transactions = self.get_transactions_for_month(year, month)
        total_income = self.calculate_total_income(transactions)
        total_expenses = self.calculate_total_expenses(transactions)
        limit = self.get_budget_limit(year, month)

        return MonthSummary(
            year=year,
            month=month,
            month_key=make_month_key(year, month),
            transactions=transactions,
            total_income=total_income,
            total_expenses=total_expenses,
            budget_limit=limit,
            remaining_budget=self.calculate_remaining_budget(limit, total_expenses),
            status=self.get_budget_status(limit, total_expenses),
        )

    def get_selected_month_summary(self) -> MonthSummary:
        selected = self._selected_month
        return self.get_month_summary(selected.year, selected.month)

    # =========================================================================
    # VALIDATION
    # =========================================================================

    def validate_transaction(self, data: Optional[Mapping[str, Any]]) -> ValidationResult:
        """Check raw input field by field; never raises."""
        return self._validator.validate(data)


def create_ledger(
    storage_settings: Optional[StorageSettings] = None,
    store: Optional[KeyValueStore] = None,
    audit_logger: Optional[AuditLogger] = None,
) -> LedgerEngine:
    """
    Factory function to build and initialize the ledger.

    Args:
        storage_settings: Storage configuration; read from the environment
                          when omitted
        store: Pre-built key-value store; overrides the configured backend

    Returns:
        An initialized LedgerEngine
    """
    settings = get_settings()
    storage_settings = storage_settings or settings.storage
    configure_log_level(settings.app.log_level)

    if store is None:
        if storage_settings.backend == "memory":
            store = InMemoryKeyValueStore(quota_bytes=storage_settings.quota_bytes)
        else:
            store = FileKeyValueStore(
                storage_settings.data_dir,
                write_attempts=storage_settings.write_attempts,
            )

    audit_logger = audit_logger or AuditLogger()
    storage = LedgerStorage(
        store,
        transactions_key=storage_settings.transactions_key,
        budgets_key=storage_settings.budgets_key,
        audit_logger=audit_logger,
    )

    engine = LedgerEngine(storage, audit_logger=audit_logger)
    engine.init()
    return engine
