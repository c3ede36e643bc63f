"""
Currency conversion against the cached rate table.

Pure functions; nothing here touches the network or the store.
"""

from collections.abc import Sequence
from decimal import Decimal
from typing import Any, Optional

from budgetbuddy.models.ledger import RateCache
from budgetbuddy.utils import to_decimal

FALLBACK_CURRENCIES = ("USD", "EUR", "GBP", "CAD", "NGN", "JPY", "AUD", "CHF", "CNY", "INR")


def _rate(cache: RateCache, code: str) -> Optional[Decimal]:
    value = to_decimal((cache.rates or {}).get(code))
    if value is None or value == 0:
        return None
    return value


def convert(amount: Any, from_currency: str, to_currency: str, cache: RateCache) -> Optional[Decimal]:
    """
    Convert `amount` between two currencies using the cached table.

    Cross rates go through the cache base. Returns None when the cache is
    empty, the amount isn't a finite number, or a needed rate is missing.
    The result is not rounded.
    """
    if not cache.rates:
        return None

    value = to_decimal(amount)
    if value is None:
        return None
    if from_currency == to_currency:
        return value

    to_rate = _rate(cache, to_currency)
    if to_rate is None:
        return None
    if from_currency == cache.rates_base:
        return value * to_rate

    from_rate = _rate(cache, from_currency)
    if from_rate is None:
        return None
    return value / from_rate * to_rate


def currency_codes(cache: RateCache) -> list[str]:
    """Sorted codes available for conversion, or the fallback list without a cache."""
    codes = set((cache.rates or {}).keys())
    if cache.rates_base:
        codes.add(cache.rates_base)
    if not codes:
        return list(FALLBACK_CURRENCIES)
    return sorted(codes)


def choose_conversion_pair(
    codes: Sequence[str],
    previous_from: Optional[str] = None,
    previous_to: Optional[str] = None,
    prefer_from: Optional[str] = None,
) -> tuple[str, str]:
    """
    Pick the from/to selection after the code list changes.

    The previous "from" survives if still offered, else `prefer_from`,
    else the first code. The previous "to" survives if still offered and
    distinct from "from"; otherwise the first other code is used.
    """
    usable = [code for code in codes if code] or list(FALLBACK_CURRENCIES)

    if previous_from in usable:
        from_code = previous_from
    elif prefer_from in usable:
        from_code = prefer_from
    else:
        from_code = usable[0]

    if previous_to in usable and previous_to != from_code:
        to_code = previous_to
    else:
        to_code = next((code for code in usable if code != from_code), from_code)

    return from_code, to_code
