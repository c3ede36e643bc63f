"""Tests for the exchange-rate client and the rate snapshot cache."""

import asyncio
import json
from datetime import datetime, timedelta

import pytest
from http.client import IncompleteRead
from urllib.error import URLError

from budgetbuddy.models.ledger import LedgerDocument, RateCache
from budgetbuddy.services.http import HttpResponse
from budgetbuddy.services.rates import ExchangeRateClient, RateCacheService, RatesFetchError

from conftest import FIXED_NOW, FakeClock, FakeTransport, json_response, rates_response


def make_service(transport, store=None, settings=None, clock=None):
    clock = clock or FakeClock()
    client = ExchangeRateClient(settings, transport=transport, clock=clock)
    return RateCacheService(client, store, clock=clock)


class TestExchangeRateClient:
    """Tests for ExchangeRateClient.fetch_rates."""

    def test_fetch_rates(self, rates_settings):
        transport = FakeTransport(rates_response("EUR", USD=1.1, GBP=0.85))
        client = ExchangeRateClient(rates_settings, transport=transport, clock=FakeClock())

        payload = asyncio.run(client.fetch_rates("eur"))

        assert payload.base == "EUR"
        assert payload.rates == {"USD": 1.1, "GBP": 0.85}
        assert payload.fetched_at == FIXED_NOW
        assert transport.calls[0][0] == "https://api.exchangerate-api.com/v4/latest/EUR"

    def test_defaults_to_configured_base(self, rates_settings):
        transport = FakeTransport(rates_response())
        client = ExchangeRateClient(rates_settings, transport=transport)
        asyncio.run(client.fetch_rates())
        assert transport.calls[0][0].endswith("/USD")

    def test_response_without_base_or_rates(self, rates_settings):
        """Test that the requested base and an empty table fill the gaps."""
        client = ExchangeRateClient(rates_settings, transport=FakeTransport(json_response({})))
        payload = asyncio.run(client.fetch_rates("GBP"))
        assert payload.base == "GBP"
        assert payload.rates == {}

    def test_error_status_is_not_retried(self, rates_settings):
        """Test that an HTTP error fails immediately with its status."""
        transport = FakeTransport(HttpResponse(status=503, body=b""))
        client = ExchangeRateClient(rates_settings, transport=transport)

        with pytest.raises(RatesFetchError) as exc_info:
            asyncio.run(client.fetch_rates("USD"))

        assert exc_info.value.status == 503
        assert exc_info.value.service == "exchange_rates"
        assert str(exc_info.value) == "ExchangeRate API error: 503"
        assert len(transport.calls) == 1

    def test_network_failure_is_retried(self, rates_settings):
        transport = FakeTransport(URLError("connection refused"), rates_response())
        client = ExchangeRateClient(rates_settings, transport=transport)

        payload = asyncio.run(client.fetch_rates("USD"))

        assert payload.rates == {"EUR": 0.9, "GBP": 0.8}
        assert len(transport.calls) == 2

    def test_retries_exhausted(self, rates_settings):
        transport = FakeTransport(URLError("connection refused"))
        client = ExchangeRateClient(rates_settings, transport=transport)

        with pytest.raises(RatesFetchError) as exc_info:
            asyncio.run(client.fetch_rates("USD"))

        assert exc_info.value.status is None
        assert len(transport.calls) == rates_settings.retry_attempts

    def test_truncated_body_is_retried_then_wrapped(self, rates_settings):
        """Test that http.client errors are treated like network failures."""
        transport = FakeTransport(IncompleteRead(b""))
        client = ExchangeRateClient(rates_settings, transport=transport)

        with pytest.raises(RatesFetchError) as exc_info:
            asyncio.run(client.fetch_rates("USD"))

        assert str(exc_info.value).startswith("ExchangeRate API unreachable")
        assert len(transport.calls) == rates_settings.retry_attempts

    def test_malformed_url_is_wrapped(self, rates_settings):
        transport = FakeTransport(ValueError("unknown url type: 'not-a-url/USD'"))
        client = ExchangeRateClient(rates_settings, transport=transport)

        with pytest.raises(RatesFetchError) as exc_info:
            asyncio.run(client.fetch_rates("USD"))

        assert str(exc_info.value).startswith("ExchangeRate API request failed")
        assert len(transport.calls) == 1

    def test_invalid_json(self, rates_settings):
        transport = FakeTransport(HttpResponse(status=200, body=b"<html>oops</html>"))
        client = ExchangeRateClient(rates_settings, transport=transport)
        with pytest.raises(RatesFetchError):
            asyncio.run(client.fetch_rates("USD"))

    def test_non_numeric_rates(self, rates_settings):
        transport = FakeTransport(json_response({"base": "USD", "rates": {"EUR": "lots"}}))
        client = ExchangeRateClient(rates_settings, transport=transport)
        with pytest.raises(RatesFetchError):
            asyncio.run(client.fetch_rates("USD"))


class TestIsFresh:
    """Tests for RateCacheService.is_fresh."""

    def test_empty_cache_is_stale(self, rate_cache):
        assert not rate_cache.is_fresh(RateCache(), FIXED_NOW)

    def test_age_under_ttl_is_fresh(self, rate_cache):
        cache = RateCache(rates={"EUR": 0.9}, rates_base="USD", rates_fetched_at=FIXED_NOW)
        assert rate_cache.is_fresh(cache, FIXED_NOW + timedelta(hours=11, minutes=59))

    def test_age_at_ttl_is_stale(self, rate_cache):
        cache = RateCache(rates={"EUR": 0.9}, rates_base="USD", rates_fetched_at=FIXED_NOW)
        assert not rate_cache.is_fresh(cache, FIXED_NOW + timedelta(hours=12))

    def test_naive_timestamps_are_utc(self, rate_cache):
        cache = RateCache(rates={"EUR": 0.9}, rates_base="USD", rates_fetched_at=datetime(2024, 3, 15, 12, 0))
        assert rate_cache.is_fresh(cache, FIXED_NOW + timedelta(hours=1))


class TestEnsureFresh:
    """Tests for RateCacheService.ensure_fresh."""

    def test_fetches_once_within_ttl(self, rate_cache, rates_transport):
        """Test that a fresh cache is served without another fetch."""
        document, cache = asyncio.run(rate_cache.ensure_fresh(LedgerDocument(), "USD", FIXED_NOW))
        again, same_cache = asyncio.run(
            rate_cache.ensure_fresh(document, "USD", FIXED_NOW + timedelta(hours=11))
        )

        assert len(rates_transport.calls) == 1
        assert again is document
        assert same_cache == cache

    def test_refetches_after_ttl(self, rate_cache, rates_transport):
        document, _ = asyncio.run(rate_cache.ensure_fresh(LedgerDocument(), "USD", FIXED_NOW))
        _, cache = asyncio.run(rate_cache.ensure_fresh(document, "USD", FIXED_NOW + timedelta(hours=12)))

        assert len(rates_transport.calls) == 2
        assert cache.rates_fetched_at == FIXED_NOW + timedelta(hours=12)

    def test_replaces_cache_and_persists(self, rate_cache, storage, store):
        """Test that a refresh replaces the whole cache and saves the document."""
        old = RateCache(rates={"JPY": 150.0}, rates_base="USD", rates_fetched_at=FIXED_NOW - timedelta(days=1))
        document = LedgerDocument(cache=old)

        refreshed, cache = asyncio.run(rate_cache.ensure_fresh(document, "USD", FIXED_NOW))

        assert cache.rates == {"EUR": 0.9, "GBP": 0.8}
        assert cache.rates_base == "USD"
        assert cache.rates_fetched_at == FIXED_NOW
        assert refreshed.cache == cache
        assert document.cache == old
        stored = json.loads(storage.get_item(store.storage_key))
        assert stored["cache"]["ratesBase"] == "USD"

    def test_default_base_from_settings(self, rate_cache, rates_transport):
        asyncio.run(rate_cache.ensure_fresh(LedgerDocument(), now=FIXED_NOW))
        assert rates_transport.calls[0][0].endswith("/USD")

    def test_failure_leaves_document_untouched(self, rates_settings, store, storage):
        """Test that a failed refresh raises and persists nothing."""
        service = make_service(FakeTransport(HttpResponse(500, b"")), store, rates_settings)
        document = LedgerDocument()

        with pytest.raises(RatesFetchError):
            asyncio.run(service.ensure_fresh(document, "USD", FIXED_NOW))

        assert document.cache == RateCache()
        assert storage.get_item(store.storage_key) is None
