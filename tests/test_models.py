"""
Tests for BudgetBuddy

Test strategy:
1. Unit tests for individual components (models, validators, managers)
2. Integration tests for the session (with fake storage and feeds)
3. No real API calls in tests (use fake transports)
"""

import pytest
from datetime import date, datetime, timezone
from decimal import Decimal

from pydantic import ValidationError

from budgetbuddy.models.ledger import (
    Expense,
    ExpenseCategory,
    LedgerDocument,
    LedgerSettings,
    RateCache,
    Theme,
)
from budgetbuddy.models.results import BudgetSnapshot, ConversionResult
from budgetbuddy.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


NOW = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


def make_expense(**overrides) -> Expense:
    fields = {
        "id": "exp-1",
        "amount": Decimal("12.50"),
        "category": ExpenseCategory.FOOD,
        "description": "Lunch",
        "date": date(2024, 3, 10),
        "created_at": NOW,
    }
    fields.update(overrides)
    return Expense(**fields)


class TestExpenseModel:
    """Tests for the Expense model."""

    def test_expense_creation(self):
        """Test Expense model creation."""
        expense = make_expense()
        assert expense.amount == Decimal("12.50")
        assert expense.category == ExpenseCategory.FOOD
        assert expense.date == date(2024, 3, 10)

    def test_amount_is_rounded_half_up(self):
        """Test that amounts are rounded to cents, half up."""
        assert make_expense(amount="10.005").amount == Decimal("10.01")

    def test_rejects_zero_amount(self):
        """Test that zero amounts are rejected."""
        with pytest.raises(ValidationError):
            make_expense(amount=0)

    def test_rejects_non_numeric_amount(self):
        """Test that garbage amounts are rejected."""
        with pytest.raises(ValidationError):
            make_expense(amount="abc")

    def test_description_is_trimmed_and_capped(self):
        """Test that descriptions are trimmed and truncated to 80 chars."""
        expense = make_expense(description="  " + "x" * 100 + "  ")
        assert expense.description == "x" * 80

    def test_expense_is_immutable(self):
        """Test that expenses can't be edited in place."""
        expense = make_expense()
        with pytest.raises(ValidationError):
            expense.amount = Decimal("1.00")

    def test_storage_dict_uses_camel_case(self):
        """Test the persisted layout."""
        stored = make_expense().to_storage_dict()
        assert stored["createdAt"].startswith("2024-03-15T12:00:00")
        assert stored["date"] == "2024-03-10"
        assert stored["amount"] == 12.5
        assert stored["category"] == "Food"

    def test_round_trip_from_storage_dict(self):
        """Test that a stored expense reads back equal."""
        expense = make_expense()
        assert Expense.model_validate(expense.to_storage_dict()) == expense


class TestLedgerSettingsModel:
    """Tests for LedgerSettings."""

    def test_defaults(self):
        """Test default preferences."""
        settings = LedgerSettings()
        assert settings.monthly_budget == Decimal("0.00")
        assert settings.theme == Theme.LIGHT
        assert settings.preferred_currency == "USD"

    def test_rejects_negative_budget(self):
        """Test that a stored budget can't be negative."""
        with pytest.raises(ValidationError):
            LedgerSettings(monthly_budget="-5")

    def test_currency_code_normalized(self):
        """Test that currency codes are upper-cased."""
        assert LedgerSettings(preferred_currency=" eur ").preferred_currency == "EUR"

    def test_rejects_bad_currency_code(self):
        """Test that only three-letter codes are accepted."""
        with pytest.raises(ValidationError):
            LedgerSettings(preferred_currency="EURO")


class TestRateCacheModel:
    """Tests for the all-or-nothing rate cache."""

    def test_empty_cache(self):
        """Test the default empty cache."""
        cache = RateCache()
        assert cache.rates is None
        assert not cache.has_rates

    def test_full_cache(self):
        """Test a fully populated cache."""
        cache = RateCache(rates={"EUR": 0.9}, rates_base="USD", rates_fetched_at=NOW)
        assert cache.has_rates

    def test_rejects_partial_cache(self):
        """Test that a half-populated cache is rejected."""
        with pytest.raises(ValidationError):
            RateCache(rates={"EUR": 0.9})

    def test_reads_legacy_epoch_millis(self):
        """Test that fetchedAt stored as epoch milliseconds still loads."""
        cache = RateCache.model_validate({
            "rates": {"EUR": 0.9},
            "ratesBase": "USD",
            "ratesFetchedAt": 1710504000000,
        })
        assert cache.rates_fetched_at.year == 2024


class TestLedgerDocumentModel:
    """Tests for the aggregate document."""

    def test_default_document(self):
        """Test the default document layout."""
        stored = LedgerDocument().to_storage_dict()
        assert stored == {
            "expenses": [],
            "settings": {"monthlyBudget": 0.0, "theme": "light", "preferredCurrency": "USD"},
            "cache": {"rates": None, "ratesBase": None, "ratesFetchedAt": None},
        }

    def test_round_trip(self):
        """Test that a populated document reads back equal."""
        doc = LedgerDocument(
            expenses=(make_expense(),),
            settings=LedgerSettings(monthly_budget="250"),
            cache=RateCache(rates={"EUR": 0.9}, rates_base="USD", rates_fetched_at=NOW),
        )
        assert LedgerDocument.model_validate(doc.to_storage_dict()) == doc


class TestResultModels:
    """Tests for derived and outcome models."""

    def test_snapshot_has_budget(self):
        """Test has_budget reflects a positive budget."""
        snapshot = BudgetSnapshot(month_key="2024-03", budget=Decimal("0"), spent=Decimal("5"))
        assert not snapshot.has_budget
        assert snapshot.remaining is None

    def test_conversion_summary(self):
        """Test the display line of a successful conversion."""
        result = ConversionResult(
            success=True,
            amount=Decimal("100"),
            from_currency="USD",
            to_currency="EUR",
            converted=Decimal("90"),
        )
        assert result.summary == "$100.00 → €90.00"

    def test_failed_conversion_has_no_summary(self):
        """Test that failures render nothing."""
        result = ConversionResult(success=False, from_currency="USD", to_currency="JPY")
        assert result.summary == ""


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent creation."""
        event = AuditEvent(
            event_type=AuditEventType.EXPENSE_ADDED,
            description="Test event",
        )
        assert event.event_id is not None
        assert event.timestamp is not None
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.LEDGER_RESET,
            description="Ledger reset",
        )
        log_dict = event.to_log_dict()

        assert "event_id" in log_dict
        assert log_dict["event_type"] == "ledger_reset"
        assert log_dict["description"] == "Ledger reset"

    def test_audit_event_builder_expense_added(self):
        """Test AuditEventBuilder for expense_added."""
        event = AuditEventBuilder.expense_added("exp-1", "Food", Decimal("12.50"))

        assert event.event_type == AuditEventType.EXPENSE_ADDED
        assert event.entity_id == "exp-1"
        assert event.details["amount"] == "12.50"

    def test_audit_event_builder_rates_fetch_failed(self):
        """Test AuditEventBuilder for a failed rate fetch."""
        event = AuditEventBuilder.rates_fetch_failed("USD", "ExchangeRate API error: 500")

        assert event.event_type == AuditEventType.RATES_FETCH_FAILED
        assert event.severity in (AuditSeverity.WARNING, AuditSeverity.ERROR)
        assert event.error_message == "ExchangeRate API error: 500"
