"""
Exchange Rate Services Package

Feed client, rate snapshot cache and the pure conversion helpers.
"""

from budgetbuddy.services.rates.cache import RateCacheService
from budgetbuddy.services.rates.converter import (
    FALLBACK_CURRENCIES,
    choose_conversion_pair,
    convert,
    currency_codes,
)
from budgetbuddy.services.rates.exchange_rates import ExchangeRateClient, RatesFetchError

__all__ = [
    # Client
    "ExchangeRateClient",
    "RatesFetchError",
    # Cache
    "RateCacheService",
    # Conversion
    "FALLBACK_CURRENCIES",
    "choose_conversion_pair",
    "convert",
    "currency_codes",
]
