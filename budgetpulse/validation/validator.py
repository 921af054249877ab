"""
Transaction Input Validation

DESIGN DECISION: Validation is a separate, caller-invoked step.
The presentation layer validates raw form input first and shows the errors
next to the fields; only valid input is handed to add_transaction.

Every field is checked independently. A form with a blank description AND a
negative amount gets both errors back in one pass, never just the first.

IMPORTANT: Validation NEVER raises and NEVER fixes input.
It reports what is wrong; correcting it is the user's job.
"""

import datetime as dt
import re
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional

from budgetpulse.models.transaction import (
    MAX_AMOUNT_DIGITS,
    TransactionType,
    ValidationIssue,
    ValidationResult,
    is_representable_amount,
)


DATE_REQUIRED = "Date is required"
DATE_INVALID = "Date must be a valid date in YYYY-MM-DD format"
DESCRIPTION_REQUIRED = "Description is required"
AMOUNT_INVALID = "Amount must be a positive number"
AMOUNT_OUT_OF_RANGE = (
    f"Amount must have at most {MAX_AMOUNT_DIGITS} significant digits "
    f"and be below 10^{MAX_AMOUNT_DIGITS}"
)
TYPE_INVALID = "Please select income or expense"

_VALID_TYPES = {t.value for t in TransactionType}

_ISO_DATE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def parse_amount(value: Any) -> Optional[Decimal]:
    """
    Parse user input into a Decimal.

    Accepts Decimal, int, float and numeric strings. Returns None for
    anything that is not a number (booleans included). The result may still
    be zero, negative or non-finite; callers check that.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, float)):
        # str() keeps the float's shortest repr, so 0.1 stays 0.1
        return Decimal(str(value))
    if isinstance(value, str):
        try:
            return Decimal(value.strip())
        except InvalidOperation:
            return None
    return None


def parse_date(value: Any) -> Optional[dt.date]:
    """
    Parse a date object or a YYYY-MM-DD string; None if neither.

    Only the extended calendar form is accepted. Basic ("20250305") and
    week ("2025-W10-3") ISO forms are rejected on every Python version.
    """
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not _ISO_DATE.fullmatch(text):
            return None
        try:
            return dt.datetime.strptime(text, "%Y-%m-%d").date()
        except ValueError:
            return None
    return None


class TransactionValidator:
    """
    Validates raw transaction input (date, description, amount, type).

    Input is a mapping such as a submitted form; unknown keys are ignored.
    """

    def _check_date(self, value: Any) -> list[ValidationIssue]:
        if _is_blank(value):
            return [ValidationIssue(
                field="date",
                issue_type="missing",
                message=DATE_REQUIRED,
            )]
        if parse_date(value) is None:
            return [ValidationIssue(
                field="date",
                issue_type="invalid_format",
                message=DATE_INVALID,
            )]
        return []

    def _check_description(self, value: Any) -> list[ValidationIssue]:
        if _is_blank(value):
            return [ValidationIssue(
                field="description",
                issue_type="missing",
                message=DESCRIPTION_REQUIRED,
            )]
        if not isinstance(value, str):
            return [ValidationIssue(
                field="description",
                issue_type="invalid_value",
                message=DESCRIPTION_REQUIRED,
            )]
        return []

    def _check_amount(self, value: Any) -> list[ValidationIssue]:
        message = AMOUNT_INVALID
        if _is_blank(value):
            issue_type = "missing"
        else:
            amount = parse_amount(value)
            if amount is None:
                issue_type = "invalid_format"
            elif not amount.is_finite() or amount <= 0:
                issue_type = "invalid_value"
            elif not is_representable_amount(amount):
                # 1e-400 or 1.000000000000000001 would not survive storage
                issue_type = "out_of_range"
                message = AMOUNT_OUT_OF_RANGE
            else:
                return []

        return [ValidationIssue(
            field="amount",
            issue_type=issue_type,
            message=message,
        )]

    def _check_type(self, value: Any) -> list[ValidationIssue]:
        if isinstance(value, TransactionType):
            return []
        if isinstance(value, str) and value in _VALID_TYPES:
            return []
        return [ValidationIssue(
            field="type",
            issue_type="missing" if _is_blank(value) else "invalid_value",
            message=TYPE_INVALID,
        )]

    def validate(self, data: Optional[Mapping[str, Any]]) -> ValidationResult:
        """
        Check every field and collect all issues.

        Args:
            data: Raw input; None is treated as an empty form

        Returns:
            ValidationResult; is_valid is True iff there are no issues
        """
        data = data or {}

        issues: list[ValidationIssue] = []
        issues.extend(self._check_date(data.get("date")))
        issues.extend(self._check_description(data.get("description")))
        issues.extend(self._check_amount(data.get("amount")))
        issues.extend(self._check_type(data.get("type")))

        return ValidationResult(
            is_valid=not issues,
            errors=issues,
        )
