"""
Derived and Outcome Models

Values the ledger core hands back to the rendering layer: validation
outcomes, budget snapshots, fetched payloads, and the result objects
the session uses instead of raising.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional, Union

from pydantic import Field

from budgetbuddy.models.ledger import CurrencyCode, LedgerModel, Money
from budgetbuddy.utils import format_currency


class ValidationResult(LedgerModel):
    """
    Outcome of validating an expense form payload.

    Only the first failing rule is reported.
    """

    valid: bool
    message: str = ""
    field: Optional[str] = Field(
        default=None,
        description="Form field that failed, if any"
    )


class BudgetSnapshot(LedgerModel):
    """Spending position for one calendar month."""

    month_key: str
    budget: Money
    spent: Money
    remaining: Optional[Money] = Field(
        default=None,
        description="budget - spent; None while no budget is set"
    )
    over_budget: bool = False
    progress_percent: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        le=100,
        description="Share of the budget used, capped at 100"
    )

    @property
    def has_budget(self) -> bool:
        return self.budget > 0


class RatesPayload(LedgerModel):
    """A successful response from the exchange-rate feed."""

    base: CurrencyCode
    rates: dict[str, float]
    fetched_at: datetime


class Advice(LedgerModel):
    """Tip of the day."""

    id: Optional[Union[int, str]] = None
    text: str


class ConversionResult(LedgerModel):
    """
    Outcome of a currency conversion request from the UI.

    success is False when rates couldn't be fetched or a rate was missing;
    error_message then says which.
    """

    success: bool
    amount: Optional[Decimal] = None
    from_currency: str
    to_currency: str
    converted: Optional[Decimal] = None
    rates_base: Optional[str] = None
    used_cached_rates: bool = False
    message: str = ""
    error_message: Optional[str] = None

    @property
    def summary(self) -> str:
        """Display line such as "$100.00 → €90.00"; empty on failure."""
        if not self.success or self.amount is None or self.converted is None:
            return ""
        return f"{format_currency(self.amount, self.from_currency)} → {format_currency(self.converted, self.to_currency)}"


class AdviceResult(LedgerModel):
    """Outcome of refreshing the tip of the day."""

    success: bool
    advice: Optional[Advice] = None
    error_message: Optional[str] = None


class ServiceCheckResult(LedgerModel):
    """Reachability of both external feeds."""

    rates_ok: bool
    advice_ok: bool
    message: str

    @property
    def all_ok(self) -> bool:
        return self.rates_ok and self.advice_ok
