"""
Core Data Models for the BudgetPulse Ledger

These models define the strict schemas for all data flowing through the ledger.
They are designed to:
1. Enforce the ledger invariants at runtime (positive amount, non-blank text)
2. Provide clear validation error messages
3. Be serializable for storage and logging

DESIGN DECISION: Money is held as Decimal, never float.
Totals and remaining budget are computed exactly; floats only appear at the
JSON boundary inside the storage adapter.

Amounts are stored as JSON numbers, which hold about 15 significant digits
exactly. Only values that survive that trip are accepted: at most
MAX_AMOUNT_DIGITS significant digits, below 10**MAX_AMOUNT_DIGITS, with no
unit smaller than 10**MIN_AMOUNT_EXPONENT.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


MAX_AMOUNT_DIGITS = 15
MIN_AMOUNT_EXPONENT = -15


def is_representable_amount(value: Decimal) -> bool:
    """
    True if value round-trips exactly through a JSON number.

    Zero and negative values qualify (budget limits may be either); NaN and
    infinities never do.
    """
    if not value.is_finite():
        return False

    _, digits, exponent = value.as_tuple()
    if digits == (0,):
        return True

    # Trailing zeros are not significant: 12.50 has the same digits as 12.5
    significant = list(digits)
    while len(significant) > 1 and significant[-1] == 0:
        significant.pop()
        exponent += 1

    if len(significant) > MAX_AMOUNT_DIGITS or exponent < MIN_AMOUNT_EXPONENT:
        return False
    return len(significant) + exponent <= MAX_AMOUNT_DIGITS


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """
    Direction of a transaction.

    The amount is always stored as a positive magnitude; the sign is implied
    by the type.
    """
    INCOME = "income"
    EXPENSE = "expense"


class BudgetStatus(str, Enum):
    """Whether a month's expenses stay within its limit."""
    WITHIN = "within"
    OVER = "over"


# =============================================================================
# CORE TRANSACTION MODEL
# =============================================================================

class Transaction(BaseModel):
    """
    A single income or expense record.

    Immutable once created. The id is assigned by the ledger engine and is
    never supplied by callers; ids loaded from storage are kept as-is, so
    records written by older versions keep their original ids.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: str = Field(
        ...,
        min_length=1,
        description="Opaque unique identifier"
    )
    date: dt.date = Field(
        ...,
        description="Calendar date of the transaction (no time component)"
    )
    description: str = Field(
        ...,
        min_length=1,
        description="What the money was for"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Monetary magnitude, strictly positive"
    )
    type: TransactionType = Field(
        ...,
        description="income or expense"
    )

    @field_validator('amount', mode='before')
    @classmethod
    def reject_boolean_amount(cls, v):
        """bool is an int subclass; True must not become an amount of 1."""
        if isinstance(v, bool):
            raise ValueError("Amount must be a number")
        return v

    @field_validator('amount')
    @classmethod
    def amount_fits_storage(cls, v: Decimal) -> Decimal:
        if not is_representable_amount(v):
            raise ValueError(
                f"Amount must have at most {MAX_AMOUNT_DIGITS} significant digits "
                f"and be below 10^{MAX_AMOUNT_DIGITS}"
            )
        return v

    @property
    def month_key(self) -> str:
        """The YYYY-MM period this transaction belongs to."""
        return f"{self.date.year:04d}-{self.date.month:02d}"

    def occurs_in(self, year: int, month: int) -> bool:
        """True if the transaction date falls in the given calendar month."""
        return self.date.year == year and self.date.month == month


# =============================================================================
# SESSION / SUMMARY MODELS
# =============================================================================

class SelectedMonth(BaseModel):
    """
    The month the caller is currently viewing.

    Session-only: never persisted.
    """
    model_config = ConfigDict(frozen=True)

    year: int = Field(..., ge=0, le=9999)
    month: int = Field(..., ge=1, le=12)

    @classmethod
    def current(cls) -> "SelectedMonth":
        today = dt.date.today()
        return cls(year=today.year, month=today.month)


class MonthSummary(BaseModel):
    """
    Everything the presentation layer shows for one month.

    A pure aggregate: building one has no side effects on the ledger.
    """
    model_config = ConfigDict(frozen=True)

    year: int
    month: int
    month_key: str
    transactions: list[Transaction] = Field(default_factory=list)
    total_income: Decimal
    total_expenses: Decimal
    # 0 when no limit has been set for the month
    budget_limit: Decimal
    remaining_budget: Decimal
    status: BudgetStatus


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single problem found in transaction input."""

    field: str = Field(
        ...,
        description="Input field with the issue (date, description, amount, type)"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_format', 'invalid_value')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        default="error",
        pattern="^(error|warning)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """
    Result of validating transaction input.

    All applicable issues are reported together; validation never stops at
    the first failure.
    """

    is_valid: bool = Field(
        ...,
        description="True iff no error-level issues were found"
    )
    errors: list[ValidationIssue] = Field(
        default_factory=list,
        description="All issues found"
    )

    @property
    def error_fields(self) -> list[str]:
        """Fields that have at least one issue, in report order."""
        fields: list[str] = []
        for issue in self.errors:
            if issue.field not in fields:
                fields.append(issue.field)
        return fields

    def messages_for(self, field: str) -> list[str]:
        """Messages for one field, for showing next to a form input."""
        return [issue.message for issue in self.errors if issue.field == field]
