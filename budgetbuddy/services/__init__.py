"""
Services Package

Storage adapters and the ledger store, plus the clients for the
external exchange-rate and advice feeds.
"""

from budgetbuddy.services.http import ExternalServiceError, HttpResponse, JsonHttpClient

__all__ = ["ExternalServiceError", "HttpResponse", "JsonHttpClient"]
