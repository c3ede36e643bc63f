"""
Shared fixtures for the BudgetBuddy tests.

No test touches the network or the real data directory: storage is
in memory and the feeds are answered by FakeTransport.
"""

import json
from datetime import datetime, timedelta, timezone

import pytest

from budgetbuddy.config import AdviceSettings, RatesSettings
from budgetbuddy.orchestrator import LedgerSession
from budgetbuddy.services.advice import AdviceClient
from budgetbuddy.services.http import HttpResponse
from budgetbuddy.services.rates import ExchangeRateClient, RateCacheService
from budgetbuddy.services.storage import InMemoryStorage, LedgerStore


FIXED_NOW = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Settable clock; call it to read the time."""

    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class FakeTransport:
    """
    Scripted stand-in for the urllib transport.

    Each call pops the next scripted item: an HttpResponse is returned,
    an exception is raised. The last item repeats once the script runs out.
    """

    def __init__(self, *script):
        self.script = list(script)
        self.calls: list[tuple[str, dict]] = []

    def __call__(self, url, headers, timeout):
        self.calls.append((url, dict(headers)))
        item = self.script.pop(0) if len(self.script) > 1 else self.script[0]
        if isinstance(item, Exception):
            raise item
        return item


def json_response(body, status: int = 200) -> HttpResponse:
    return HttpResponse(status=status, body=json.dumps(body).encode("utf-8"))


def rates_response(base: str = "USD", **rates) -> HttpResponse:
    return json_response({"base": base, "rates": rates or {"EUR": 0.9, "GBP": 0.8}})


def advice_response(slip_id: int = 42, text: str = "Spend less than you earn.") -> HttpResponse:
    return json_response({"slip": {"id": slip_id, "advice": text}})


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def store(storage):
    return LedgerStore(storage)


@pytest.fixture
def rates_settings():
    return RatesSettings(retry_attempts=2, retry_backoff_seconds=0)


@pytest.fixture
def advice_settings():
    return AdviceSettings(retry_attempts=1)


@pytest.fixture
def rates_transport():
    return FakeTransport(rates_response())


@pytest.fixture
def advice_transport():
    return FakeTransport(advice_response())


@pytest.fixture
def rate_cache(rates_settings, rates_transport, store, clock):
    client = ExchangeRateClient(rates_settings, transport=rates_transport, clock=clock)
    return RateCacheService(client, store, clock=clock)


@pytest.fixture
def session(store, rate_cache, advice_settings, advice_transport, clock):
    return LedgerSession(
        store,
        rate_cache,
        AdviceClient(advice_settings, transport=advice_transport),
        clock=clock,
    )


def expense_payload(**overrides) -> dict:
    payload = {
        "amount": "12.50",
        "category": "Food",
        "description": "Lunch",
        "date": "2024-03-10",
    }
    payload.update(overrides)
    return payload
