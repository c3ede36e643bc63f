"""
Abstract Storage Interface

DESIGN DECISION: The ledger core never talks to a storage backend directly.
It goes through a small key-value interface shaped like browser local
storage. This allows us to:
1. Keep the ledger logic free of file-system details
2. Use in-memory storage for testing
3. Swap in another backend later without touching the managers

The interface is intentionally tiny - one document, one key.
"""

from abc import ABC, abstractmethod
from typing import Optional


class KeyValueStorageInterface(ABC):
    """
    Abstract interface for string blobs stored under a key.

    Any storage implementation (JSON files, memory, ...)
    must implement these methods.
    """

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        """
        Read the blob stored under a key.

        Returns:
            The stored text, or None if nothing is stored

        Raises:
            StorageReadError: If the backend can't be read
        """
        pass

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """
        Store a blob under a key, replacing any previous value.

        Raises:
            StorageWriteError: If the write fails
            StorageQuotaExceededError: If the backend is full
        """
        pass

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """
        Remove a key. Removing a missing key is not an error.

        Raises:
            StorageWriteError: If the removal fails
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class StorageReadError(StorageError):
    """Stored data could not be read."""
    pass


class StorageWriteError(StorageError):
    """Data could not be written."""
    pass


class StorageQuotaExceededError(StorageWriteError):
    """The backend has no room for the value."""
    pass
