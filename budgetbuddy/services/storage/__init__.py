"""
Storage Services Package

Provides the key-value storage interface, its local implementations,
and the ledger store that persists the ledger document through them.
"""

from budgetbuddy.services.storage.interface import (
    KeyValueStorageInterface,
    StorageError,
    StorageQuotaExceededError,
    StorageReadError,
    StorageWriteError,
)
from budgetbuddy.services.storage.json_file import InMemoryStorage, JsonFileStorage
from budgetbuddy.services.storage.ledger_store import LedgerStore

__all__ = [
    # Interface
    "KeyValueStorageInterface",
    # Exceptions
    "StorageError",
    "StorageQuotaExceededError",
    "StorageReadError",
    "StorageWriteError",
    # Implementations
    "InMemoryStorage",
    "JsonFileStorage",
    "LedgerStore",
]
