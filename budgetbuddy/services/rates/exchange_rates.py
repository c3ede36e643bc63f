"""
Exchange-rate feed client.

Fetches the latest rates for one base currency. Rates are "units of
target per 1 unit of base".
"""

from collections.abc import Callable, Mapping
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import quote

from budgetbuddy.audit.logger import get_logger
from budgetbuddy.config.settings import RatesSettings
from budgetbuddy.models.results import RatesPayload
from budgetbuddy.services.http import ExternalServiceError, JsonHttpClient, Transport

logger = get_logger(__name__)


class RatesFetchError(ExternalServiceError):
    """Raised when the exchange-rate feed can't deliver a rate table."""

    service = "exchange_rates"
    display_name = "ExchangeRate API"


class ExchangeRateClient:
    """
    Client for the latest-rates-by-base resource.

    Usage:
        client = ExchangeRateClient()
        payload = await client.fetch_rates("EUR")
    """

    def __init__(
        self,
        settings: Optional[RatesSettings] = None,
        transport: Optional[Transport] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.settings = settings or RatesSettings()
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._http = JsonHttpClient(
            RatesFetchError,
            timeout_seconds=self.settings.timeout_seconds,
            retry_attempts=self.settings.retry_attempts,
            retry_backoff_seconds=self.settings.retry_backoff_seconds,
            transport=transport,
        )

    def url_for(self, base: str) -> str:
        return f"{self.settings.endpoint}{quote(base)}"

    async def fetch_rates(self, base: Optional[str] = None) -> RatesPayload:
        """
        Fetch the rate table for `base` (the configured default if omitted).

        The response's own base wins over the requested one; a response
        without rates yields an empty table.

        Raises:
            RatesFetchError: Network failure, error status or unusable body
        """
        requested = (base or self.settings.default_base).strip().upper()
        body = await self._http.get_json(self.url_for(requested))

        if not isinstance(body, Mapping):
            raise RatesFetchError("ExchangeRate API returned an unexpected payload")

        rates = body.get("rates") or {}
        if not isinstance(rates, Mapping):
            raise RatesFetchError("ExchangeRate API returned an unexpected payload")

        try:
            payload = RatesPayload(
                base=body.get("base") or requested,
                rates={str(code): float(value) for code, value in rates.items()},
                fetched_at=self._clock(),
            )
        except (TypeError, ValueError) as e:
            raise RatesFetchError(f"ExchangeRate API returned invalid rates: {e}") from e

        logger.debug("rates_fetched", base=payload.base, currency_count=len(payload.rates))
        return payload
