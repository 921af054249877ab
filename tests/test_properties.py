"""Property-based tests using Hypothesis for the ledger invariants.

Covers serialization round trips, count changes on add/delete, totals,
remaining budget, the within/over boundary, month filtering and field-level
validation over generated inputs.
"""

from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock

from hypothesis import HealthCheck, assume, given, settings
from hypothesis import strategies as st
import pytest

from budgetpulse.audit import AuditLogger
from budgetpulse.ledger import InvalidInputError, LedgerEngine
from budgetpulse.models.transaction import BudgetStatus, Transaction, TransactionType
from budgetpulse.services.storage import InMemoryKeyValueStore, LedgerStorage, make_month_key
from budgetpulse.validation import TransactionValidator


DESCRIPTION_ALPHABET = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789 .,-'&éü€"

# Every amount storage can hold exactly: up to 15 significant digits, from
# 1e-15 up to just below 1e15
amounts = st.builds(
    lambda coefficient, exponent: Decimal(coefficient).scaleb(exponent),
    st.integers(min_value=1, max_value=10**15 - 1),
    st.integers(min_value=-15, max_value=0),
)
# Whole cents, for sums that must stay exact under the default context
cents = st.decimals(
    min_value=Decimal("0.01"),
    max_value=Decimal("10000000"),
    places=2,
    allow_nan=False,
    allow_infinity=False,
)
descriptions = st.text(alphabet=DESCRIPTION_ALPHABET, min_size=1, max_size=60).filter(
    lambda s: s.strip() != ""
)
dates = st.dates(min_value=date(2023, 1, 1), max_value=date(2026, 12, 31))

transactions = st.builds(
    Transaction,
    id=st.uuids().map(str),
    date=dates,
    description=descriptions,
    amount=amounts,
    type=st.sampled_from(TransactionType),
)
transaction_lists = st.lists(transactions, max_size=20, unique_by=lambda t: t.id)
cent_transaction_lists = st.lists(
    st.builds(
        Transaction,
        id=st.uuids().map(str),
        date=dates,
        description=descriptions,
        amount=cents,
        type=st.sampled_from(TransactionType),
    ),
    max_size=20,
    unique_by=lambda t: t.id,
)

transaction_inputs = st.fixed_dictionaries({
    "date": dates.map(lambda d: d.isoformat()),
    "description": descriptions,
    "amount": amounts,
    "type": st.sampled_from(["income", "expense"]),
})

month_keys = st.builds(
    make_month_key,
    st.integers(min_value=0, max_value=9999),
    st.integers(min_value=1, max_value=12),
)
decimals = st.decimals(
    min_value=Decimal("-1e12"),
    max_value=Decimal("1e12"),
    allow_nan=False,
    allow_infinity=False,
)


def make_storage() -> LedgerStorage:
    return LedgerStorage(InMemoryKeyValueStore(), audit_logger=MagicMock(spec=AuditLogger))


def make_engine(initial: list[Transaction]) -> LedgerEngine:
    storage = make_storage()
    storage.save_transactions(initial)
    engine = LedgerEngine(storage, audit_logger=MagicMock(spec=AuditLogger))
    engine.init()
    return engine


class TestSerializationProperties:
    """Round trips through the storage adapter."""

    @given(items=transaction_lists)
    @settings(max_examples=50, deadline=None, suppress_health_check=[HealthCheck.too_slow])
    def test_transaction_round_trip(self, items):
        storage = make_storage()
        storage.save_transactions(items)
        loaded = storage.load_transactions()

        assert len(loaded) == len(items)
        for original, restored in zip(items, loaded):
            assert restored.id == original.id
            assert restored.date.isoformat() == original.date.isoformat()
            assert restored.description == original.description
            assert restored.amount == original.amount
            assert restored.type == original.type

    @given(entries=st.dictionaries(month_keys, amounts, min_size=1, max_size=12))
    @settings(max_examples=50)
    def test_budget_round_trip(self, entries):
        storage = make_storage()
        for month_key, limit in entries.items():
            storage.save_budget_limit(month_key, limit)

        for month_key, limit in entries.items():
            assert storage.load_budget_limit(month_key) == limit

    @given(
        data=transaction_inputs,
        amount=st.decimals(allow_nan=False, allow_infinity=False).filter(lambda d: d > 0),
    )
    @settings(max_examples=100, deadline=None, suppress_health_check=[HealthCheck.too_slow])
    def test_any_positive_amount_is_rejected_or_survives_restart(self, data, amount):
        storage = make_storage()
        engine = LedgerEngine(storage, audit_logger=MagicMock(spec=AuditLogger))
        engine.init()
        data = {**data, "amount": amount}

        if not engine.validate_transaction(data).is_valid:
            with pytest.raises(InvalidInputError):
                engine.add_transaction(data)
            assert engine.transactions == []
            assert storage.load_transactions() == []
            return

        created = engine.add_transaction(data)
        restarted = LedgerEngine(storage, audit_logger=MagicMock(spec=AuditLogger))
        restarted.init()

        assert restarted.transactions == [created]
        assert restarted.transactions[0].amount == amount

    @given(
        year_a=st.integers(0, 9999), month_a=st.integers(1, 12),
        year_b=st.integers(0, 9999), month_b=st.integers(1, 12),
    )
    def test_month_key_injective(self, year_a, month_a, year_b, month_b):
        assume((year_a, month_a) != (year_b, month_b))
        assert make_month_key(year_a, month_a) != make_month_key(year_b, month_b)


class TestMutationProperties:
    """Count changes for add and delete."""

    @given(initial=transaction_lists, data=transaction_inputs)
    @settings(max_examples=30, deadline=None, suppress_health_check=[HealthCheck.too_slow])
    def test_add_increases_count_by_one(self, initial, data):
        engine = make_engine(initial)
        before = len(engine.transactions)

        created = engine.add_transaction(data)

        assert len(engine.transactions) == before + 1
        assert engine.transactions[-1] == created
        assert created.id not in {t.id for t in initial}

    @given(initial=transaction_lists.filter(bool), pick=st.integers(min_value=0))
    @settings(max_examples=30, deadline=None, suppress_health_check=[HealthCheck.too_slow])
    def test_delete_existing_decreases_count_by_one(self, initial, pick):
        engine = make_engine(initial)
        target = initial[pick % len(initial)].id

        assert engine.delete_transaction(target) is True

        remaining = engine.transactions
        assert len(remaining) == len(initial) - 1
        assert target not in {t.id for t in remaining}

    @given(initial=transaction_lists, missing=st.uuids().map(str))
    @settings(max_examples=30, deadline=None, suppress_health_check=[HealthCheck.too_slow])
    def test_delete_unknown_leaves_count(self, initial, missing):
        assume(missing not in {t.id for t in initial})
        engine = make_engine(initial)

        assert engine.delete_transaction(missing) is False
        assert len(engine.transactions) == len(initial)


class TestCalculationProperties:
    """Totals, remaining budget and status."""

    @given(items=cent_transaction_lists)
    def test_income_and_expense_totals(self, items):
        income = sum((t.amount for t in items if t.type == TransactionType.INCOME), Decimal("0"))
        expenses = sum((t.amount for t in items if t.type == TransactionType.EXPENSE), Decimal("0"))

        assert LedgerEngine.calculate_total_income(items) == income
        assert LedgerEngine.calculate_total_expenses(items) == expenses
        assert (
            LedgerEngine.calculate_total_income(items) + LedgerEngine.calculate_total_expenses(items)
            == sum((t.amount for t in items), Decimal("0"))
        )

    @given(limit=decimals, expenses=decimals)
    def test_remaining_budget_is_difference(self, limit, expenses):
        assert LedgerEngine.calculate_remaining_budget(limit, expenses) == limit - expenses

    @given(limit=decimals, expenses=decimals)
    def test_status_boundary(self, limit, expenses):
        status = LedgerEngine.get_budget_status(limit, expenses)
        expected = BudgetStatus.WITHIN if expenses <= limit else BudgetStatus.OVER
        assert status == expected

    @given(limit=decimals)
    def test_spending_exactly_the_limit_is_within(self, limit):
        assert LedgerEngine.get_budget_status(limit, limit) == BudgetStatus.WITHIN


class TestFilterProperties:
    """Month filtering is an exact partition."""

    @given(
        items=transaction_lists,
        year=st.integers(min_value=2023, max_value=2026),
        month=st.integers(min_value=1, max_value=12),
    )
    @settings(max_examples=50, deadline=None, suppress_health_check=[HealthCheck.too_slow])
    def test_month_filter_exact(self, items, year, month):
        engine = make_engine(items)

        result = engine.get_transactions_for_month(year, month)

        expected = [t for t in items if t.date.year == year and t.date.month == month]
        assert [t.id for t in result] == [t.id for t in expected]
        excluded = {t.id for t in items} - {t.id for t in result}
        for t in items:
            if t.id in excluded:
                assert (t.date.year, t.date.month) != (year, month)


class TestValidationProperties:
    """Each invalid field is rejected on its own."""

    validator = TransactionValidator()

    @given(data=transaction_inputs)
    def test_valid_input_accepted(self, data):
        assert self.validator.validate(data).is_valid

    @given(
        data=transaction_inputs,
        description=st.sampled_from(["", " ", "   ", "\t", "\n \t", None]),
    )
    def test_blank_description_rejected(self, data, description):
        result = self.validator.validate({**data, "description": description})
        assert not result.is_valid
        assert result.error_fields == ["description"]

    @given(
        data=transaction_inputs,
        amount=st.one_of(
            st.decimals(max_value=Decimal("0"), allow_nan=False, allow_infinity=False),
            st.integers(max_value=0),
            st.floats(max_value=0, allow_nan=False),
            st.sampled_from(["", "abc", "NaN", "nan", "-1", "0", "0.00", None, True]),
            st.text(alphabet="abcxyz!?", min_size=1),
        ),
    )
    def test_bad_amount_rejected(self, data, amount):
        result = self.validator.validate({**data, "amount": amount})
        assert not result.is_valid
        assert result.error_fields == ["amount"]

    @given(
        data=transaction_inputs,
        type_=st.one_of(
            st.none(),
            st.text(max_size=10).filter(lambda s: s not in ("income", "expense")),
        ),
    )
    def test_bad_type_rejected(self, data, type_):
        result = self.validator.validate({**data, "type": type_})
        assert not result.is_valid
        assert result.error_fields == ["type"]

    @given(data=transaction_inputs, value=st.sampled_from([None, "", "  "]))
    def test_missing_date_rejected(self, data, value):
        result = self.validator.validate({**data, "date": value})
        assert not result.is_valid
        assert result.error_fields == ["date"]
