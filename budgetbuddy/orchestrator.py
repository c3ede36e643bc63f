"""
Main Orchestrator for BudgetBuddy

This module ties together all the components and defines the
user-facing flows:
1. Expense entry (payload -> validate -> build -> insert -> save)
2. Budget and preference updates
3. Currency conversion (refresh rates if stale -> convert)
4. Tip of the day and the feed reachability check

DESIGN DECISION: The session enforces the boundaries:
- It owns the only live ledger document; every change replaces it
- Every mutation is saved immediately
- Every mutation and feed call is audited
- Nothing raises to the UI; failures come back as result objects

A failed save keeps the new document in memory. The user keeps working
and the next successful save persists everything.
"""

from collections.abc import Callable, Mapping
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from budgetbuddy import preferences
from budgetbuddy.audit import AuditLogger, configure_logging, get_logger
from budgetbuddy.budget import BudgetManager
from budgetbuddy.config import Settings, get_settings
from budgetbuddy.expenses import ExpenseManager, utc_now
from budgetbuddy.models.audit import AuditEventBuilder
from budgetbuddy.models.ledger import Expense, ExpenseCategory, LedgerDocument, Theme
from budgetbuddy.models.results import (
    Advice,
    AdviceResult,
    BudgetSnapshot,
    ConversionResult,
    ServiceCheckResult,
    ValidationResult,
)
from budgetbuddy.services.advice import AdviceClient, AdviceFetchError
from budgetbuddy.services.rates import (
    ExchangeRateClient,
    RateCacheService,
    RatesFetchError,
    convert,
    currency_codes,
)
from budgetbuddy.services.storage import JsonFileStorage, KeyValueStorageInterface, LedgerStore
from budgetbuddy.utils import month_key, to_decimal
from budgetbuddy.validation import ExpenseValidator

logger = get_logger(__name__)

CONVERSION_FAILED_MESSAGE = "Conversion failed. Try different currencies."
SERVICES_READY_MESSAGE = "APIs reachable. Converter and tips ready."


class LedgerSession:
    """
    One user's working session over the persisted ledger.

    Flow for an expense:
    1. Validate the raw form payload (first failure is reported)
    2. Build the expense (id, rounding, timestamp)
    3. Insert it into a new document
    4. Save the new document

    Read-side helpers (snapshot, recent, history, totals) always work
    on the current in-memory document.
    """

    def __init__(
        self,
        store: LedgerStore,
        rate_cache: RateCacheService,
        advice_client: AdviceClient,
        expense_manager: Optional[ExpenseManager] = None,
        budget_manager: Optional[BudgetManager] = None,
        validator: Optional[ExpenseValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        clock: Callable[[], datetime] = utc_now,
        recent_limit: int = 5,
    ):
        self._store = store
        self._rate_cache = rate_cache
        self._advice_client = advice_client
        self._clock = clock
        self._expenses = expense_manager or ExpenseManager(clock=clock)
        self._budget = budget_manager or BudgetManager(self._expenses, clock=clock)
        self._validator = validator or ExpenseValidator()
        self._audit = audit_logger or AuditLogger()
        self.recent_limit = recent_limit

        self.last_save_ok = True
        self.advice: Optional[Advice] = None
        self._document = store.load()

    @property
    def document(self) -> LedgerDocument:
        return self._document

    def _commit(self, document: LedgerDocument) -> bool:
        """Adopt a new document and persist it."""
        self._document = document
        self.last_save_ok = self._store.save(document)
        if not self.last_save_ok:
            self._audit.log(AuditEventBuilder.save_failed("storage write failed"))
        return self.last_save_ok

    def _adopt_refresh(self, document: LedgerDocument) -> None:
        """Commit a document returned by the rate cache if it changed."""
        if document is not self._document:
            self._commit(document)

    # === Expenses ===

    def add_expense(self, payload: Mapping[str, Any]) -> ValidationResult:
        """
        Validate and record an expense from raw form values.

        Returns the validation result; the ledger only changes when it
        is valid.
        """
        result = self._validator.validate(payload)
        if not result.valid:
            self._audit.log(AuditEventBuilder.expense_rejected(result.field, result.message))
            return result

        expense = self._expenses.build(payload)
        self._commit(self._expenses.insert(self._document, expense))
        self._audit.log(
            AuditEventBuilder.expense_added(expense.id, expense.category.value, expense.amount)
        )
        return result

    def delete_expense(self, expense_id: str) -> bool:
        """Remove an expense. False if no expense has that id."""
        if self._expenses.get(self._document, expense_id) is None:
            return False
        self._commit(self._expenses.delete(self._document, expense_id))
        self._audit.log(AuditEventBuilder.expense_deleted(expense_id))
        return True

    def recent(self, limit: Optional[int] = None) -> list[Expense]:
        limit = self.recent_limit if limit is None else limit
        return self._expenses.recent(self._document.expenses, limit)

    def history(self) -> list[Expense]:
        """Every expense, newest date first."""
        return self._expenses.recent(self._document.expenses, None)

    def category_totals(self, month: Optional[str] = None) -> dict[ExpenseCategory, Decimal]:
        key = month or month_key(self._clock())
        return self._expenses.totals_by_category(self._document.expenses, key)

    # === Budget & preferences ===

    def snapshot(self, now: Optional[datetime | date] = None) -> BudgetSnapshot:
        return self._budget.snapshot(self._document, now)

    def set_budget(self, amount: Any) -> BudgetSnapshot:
        """Store a new monthly budget and return the updated snapshot."""
        previous = self._document.settings.monthly_budget
        self._commit(self._budget.set_budget(self._document, amount))
        current = self._document.settings.monthly_budget
        self._audit.log(AuditEventBuilder.budget_updated(previous, current))
        return self.snapshot()

    def set_theme(self, theme: Theme | str) -> Theme:
        """
        Raises:
            ValueError: If theme is not "light" or "dark"
        """
        self._commit(preferences.set_theme(self._document, theme))
        current = self._document.settings.theme
        self._audit.log(AuditEventBuilder.settings_updated("theme", current.value))
        return current

    def toggle_theme(self) -> Theme:
        self._commit(preferences.toggle_theme(self._document))
        current = self._document.settings.theme
        self._audit.log(AuditEventBuilder.settings_updated("theme", current.value))
        return current

    def set_preferred_currency(self, code: Any) -> bool:
        """Store a preferred currency. False (and no change) for an invalid code."""
        updated = preferences.set_preferred_currency(self._document, code)
        if updated is self._document:
            return False
        self._commit(updated)
        self._audit.log(
            AuditEventBuilder.settings_updated("preferredCurrency", updated.settings.preferred_currency)
        )
        return True

    def reset(self) -> LedgerDocument:
        """Wipe the ledger back to the default document."""
        self._commit(self._store.default_document())
        self._audit.log(AuditEventBuilder.ledger_reset())
        return self._document

    # === Currency conversion ===

    def is_rates_fresh(self) -> bool:
        return self._rate_cache.is_fresh(self._document.cache, self._clock())

    def currency_codes(self) -> list[str]:
        return currency_codes(self._document.cache)

    async def convert(self, amount: Any, from_currency: str, to_currency: str) -> ConversionResult:
        """
        Convert an amount, refreshing the rate cache first if it is stale.

        The refresh uses `from_currency` as the base, and conversion only
        starts once the refresh has finished.
        """
        from_code = (from_currency or "").strip().upper()
        to_code = (to_currency or "").strip().upper()
        used_cached = self.is_rates_fresh()

        try:
            document, cache = await self._rate_cache.ensure_fresh(
                self._document,
                preferred_base=from_code or None,
                now=self._clock(),
            )
        except RatesFetchError as e:
            return ConversionResult(
                success=False,
                amount=to_decimal(amount),
                from_currency=from_code,
                to_currency=to_code,
                rates_base=self._document.cache.rates_base,
                error_message=str(e),
            )
        self._adopt_refresh(document)

        converted = convert(amount, from_code, to_code, cache)
        if converted is None:
            return ConversionResult(
                success=False,
                amount=to_decimal(amount),
                from_currency=from_code,
                to_currency=to_code,
                rates_base=cache.rates_base,
                used_cached_rates=used_cached,
                error_message=CONVERSION_FAILED_MESSAGE,
            )

        return ConversionResult(
            success=True,
            amount=to_decimal(amount),
            from_currency=from_code,
            to_currency=to_code,
            converted=converted,
            rates_base=cache.rates_base,
            used_cached_rates=used_cached,
            message=f"Rates updated for {cache.rates_base}.",
        )

    # === External feeds ===

    async def refresh_advice(self) -> AdviceResult:
        """Fetch a new tip of the day; the previous tip survives a failure."""
        try:
            advice = await self._advice_client.fetch_advice()
        except AdviceFetchError as e:
            self._audit.log(AuditEventBuilder.advice_fetch_failed(str(e)))
            return AdviceResult(
                success=False,
                advice=self.advice,
                error_message=f"Advice unavailable: {e}",
            )

        self.advice = advice
        self._audit.log(AuditEventBuilder.advice_fetched(advice.id))
        return AdviceResult(success=True, advice=advice)

    async def check_services(self) -> ServiceCheckResult:
        """
        Check both feeds: rates first, then advice.

        Both are always checked; the message names the first failure.
        """
        failures: list[str] = []
        base = self._document.cache.rates_base or self._rate_cache.settings.default_base

        try:
            document, _ = await self._rate_cache.ensure_fresh(self._document, base, self._clock())
            self._adopt_refresh(document)
            rates_ok = True
        except RatesFetchError as e:
            failures.append(str(e))
            rates_ok = False

        try:
            await self._advice_client.fetch_advice()
            advice_ok = True
        except AdviceFetchError as e:
            failures.append(str(e))
            advice_ok = False

        message = f"API check failed: {failures[0]}" if failures else SERVICES_READY_MESSAGE
        logger.info("services_checked", rates_ok=rates_ok, advice_ok=advice_ok)
        return ServiceCheckResult(rates_ok=rates_ok, advice_ok=advice_ok, message=message)


def create_app_components(
    settings: Optional[Settings] = None,
    storage: Optional[KeyValueStorageInterface] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> LedgerSession:
    """
    Factory function to create a ready session.

    Args:
        settings: Configuration (defaults to get_settings())
        storage: Key-value adapter (defaults to JSON files in the data dir)
        clock: Source of "now" (defaults to UTC wall clock)

    Returns:
        A LedgerSession with the persisted document loaded
    """
    settings = settings or get_settings()
    clock = clock or utc_now
    configure_logging(settings.app.log_level)

    storage = storage or JsonFileStorage(settings.storage.data_dir)
    store = LedgerStore(storage, settings.storage.storage_key)
    audit_logger = AuditLogger()

    # The session persists refreshed rates itself
    rates_settings = settings.rates
    rate_cache = RateCacheService(
        ExchangeRateClient(rates_settings, clock=clock),
        settings=rates_settings,
        clock=clock,
        audit_logger=audit_logger,
    )

    return LedgerSession(
        store,
        rate_cache,
        AdviceClient(settings.advice),
        audit_logger=audit_logger,
        clock=clock,
        recent_limit=settings.app.recent_limit,
    )
