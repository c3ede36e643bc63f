"""
Rate Cache Service

Keeps the ledger's single exchange-rate snapshot fresh.

DESIGN DECISION: One snapshot, one base. A refresh replaces the cache
wholesale; rates are never merged across bases. A snapshot younger than
the TTL is served as-is, whatever base it was fetched for.

CRITICAL: A failed fetch leaves the document and the persisted cache
untouched and propagates RatesFetchError to the caller.
"""

from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Optional

from budgetbuddy.audit.logger import AuditLogger, get_logger
from budgetbuddy.config.settings import RatesSettings
from budgetbuddy.models.audit import AuditEventBuilder
from budgetbuddy.models.ledger import LedgerDocument, RateCache
from budgetbuddy.services.rates.exchange_rates import ExchangeRateClient, RatesFetchError
from budgetbuddy.services.storage.ledger_store import LedgerStore

logger = get_logger(__name__)


def _aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class RateCacheService:
    """
    Freshness checks and refreshes for the rate snapshot.

    Usage:
        service = RateCacheService(ExchangeRateClient(), store)
        document, cache = await service.ensure_fresh(document, "EUR")
    """

    def __init__(
        self,
        client: ExchangeRateClient,
        store: Optional[LedgerStore] = None,
        settings: Optional[RatesSettings] = None,
        clock: Optional[Callable[[], datetime]] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self.client = client
        self.store = store
        self.settings = settings or client.settings
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._audit = audit_logger or AuditLogger()

    @property
    def ttl(self) -> timedelta:
        return timedelta(hours=self.settings.ttl_hours)

    def is_fresh(self, cache: RateCache, now: Optional[datetime] = None) -> bool:
        """True when the cache holds rates fetched less than one TTL ago."""
        if cache.rates is None or cache.rates_fetched_at is None:
            return False
        current = _aware(now if now is not None else self._clock())
        return current - _aware(cache.rates_fetched_at) < self.ttl

    async def ensure_fresh(
        self,
        document: LedgerDocument,
        preferred_base: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> tuple[LedgerDocument, RateCache]:
        """
        Return a document whose cache is fresh, fetching if necessary.

        Args:
            document: Current ledger document
            preferred_base: Base to fetch when a refresh is needed
            now: Reference time for freshness and the new fetchedAt

        Returns:
            (document, cache) - the same document when no fetch happened

        Raises:
            RatesFetchError: The cache was stale and the fetch failed
        """
        current = now if now is not None else self._clock()
        if self.is_fresh(document.cache, current):
            logger.debug("rates_cache_hit", base=document.cache.rates_base)
            return document, document.cache

        base = (preferred_base or self.settings.default_base).strip().upper()
        try:
            payload = await self.client.fetch_rates(base)
        except RatesFetchError as e:
            self._audit.log(AuditEventBuilder.rates_fetch_failed(base, str(e)))
            raise

        cache = RateCache(
            rates=payload.rates,
            rates_base=payload.base,
            rates_fetched_at=current,
        )
        refreshed = document.model_copy(update={"cache": cache})
        if self.store is not None:
            self.store.save(refreshed)

        self._audit.log(AuditEventBuilder.rates_refreshed(cache.rates_base, len(payload.rates)))
        return refreshed, cache
