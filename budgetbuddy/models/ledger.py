"""
Core Ledger Models for BudgetBuddy

These models define the persisted ledger document and everything in it.
They are designed to:
1. Enforce the ledger invariants at construction time
2. Be immutable - every change produces a new value
3. Round-trip through JSON in the camelCase layout older
   documents were written in

DESIGN DECISION: Money is Decimal in memory and a plain JSON number on
disk. Older documents stored numbers, and they must stay readable.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Optional

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    PlainSerializer,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from budgetbuddy.utils import DESCRIPTION_MAX_LENGTH, parse_date, round_money, sanitize_text, to_decimal


# =============================================================================
# FIELD TYPES
# =============================================================================

def _coerce_money(value: Any) -> Decimal:
    parsed = to_decimal(value)
    if parsed is None:
        raise ValueError(f"Not a finite amount: {value!r}")
    return round_money(parsed)


def _coerce_calendar_date(value: Any) -> date:
    parsed = parse_date(value)
    if parsed is None:
        raise ValueError(f"Not a valid calendar date: {value!r}")
    return parsed


def _coerce_currency_code(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip().upper()
    return value


Money = Annotated[
    Decimal,
    BeforeValidator(_coerce_money),
    PlainSerializer(float, return_type=float, when_used="json"),
]
CalendarDate = Annotated[date, BeforeValidator(_coerce_calendar_date)]
CurrencyCode = Annotated[
    str,
    BeforeValidator(_coerce_currency_code),
    Field(pattern=r"^[A-Z]{3}$"),
]


class LedgerModel(BaseModel):
    """Base for everything stored in (or derived from) the ledger document."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    def to_storage_dict(self) -> dict:
        """JSON-ready dict using the persisted camelCase field names."""
        return self.model_dump(mode="json", by_alias=True)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class ExpenseCategory(str, Enum):
    """
    Supported expense categories.

    DESIGN DECISION: A fixed set keeps monthly breakdowns stable.
    The values are the labels shown to the user.
    """
    FOOD = "Food"
    TRANSPORT = "Transport"
    SHOPPING = "Shopping"
    BILLS = "Bills"
    OTHERS = "Others"


class Theme(str, Enum):
    """Colour theme preference."""
    LIGHT = "light"
    DARK = "dark"


# =============================================================================
# LEDGER DOCUMENT
# =============================================================================

class Expense(LedgerModel):
    """
    A single logged expense.

    CRITICAL: Expenses are never edited. Only build() creates them
    and only delete-by-id removes them.
    """

    id: str = Field(
        ...,
        min_length=1,
        description="Unique expense token"
    )
    amount: Money = Field(
        ...,
        gt=0,
        description="Amount spent, 2 decimal places"
    )
    category: ExpenseCategory
    description: str = Field(
        default="",
        max_length=DESCRIPTION_MAX_LENGTH,
        description="Free text note, trimmed"
    )
    date: CalendarDate
    created_at: datetime = Field(
        ...,
        description="When the expense was logged"
    )

    @field_validator('description', mode='before')
    @classmethod
    def clean_description(cls, v: Any) -> str:
        return sanitize_text(v)


class LedgerSettings(LedgerModel):
    """User preferences persisted with the ledger."""

    monthly_budget: Money = Field(
        default=Decimal("0.00"),
        ge=0,
        description="Monthly budget; 0 means no budget set"
    )
    theme: Theme = Theme.LIGHT
    preferred_currency: CurrencyCode = "USD"


class RateCache(LedgerModel):
    """
    The single latest exchange-rate snapshot.

    Rates are "units of target per 1 unit of base".
    Either every field is set (after a successful fetch) or none is.
    """

    rates: Optional[dict[str, float]] = None
    rates_base: Optional[CurrencyCode] = None
    rates_fetched_at: Optional[datetime] = None

    @model_validator(mode='after')
    def validate_all_or_nothing(self) -> 'RateCache':
        populated = [
            self.rates is not None,
            self.rates_base is not None,
            self.rates_fetched_at is not None,
        ]
        if any(populated) and not all(populated):
            raise ValueError("Rate cache must be fully populated or completely empty")
        return self

    @property
    def has_rates(self) -> bool:
        return bool(self.rates) and self.rates_base is not None


class LedgerDocument(LedgerModel):
    """
    The aggregate root: everything the widget persists.

    Owned by the ledger store; callers keep a reference obtained
    from load() and replace it after every mutation.
    """

    expenses: tuple[Expense, ...] = ()
    settings: LedgerSettings = Field(default_factory=LedgerSettings)
    cache: RateCache = Field(default_factory=RateCache)
