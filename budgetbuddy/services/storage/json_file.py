"""
Local Storage Implementations

JsonFileStorage keeps each key in its own JSON file under a data directory,
the desktop stand-in for browser local storage. InMemoryStorage is the
dict-backed twin used by tests and throwaway sessions.
"""

import errno
import re
from pathlib import Path
from typing import Optional

from budgetbuddy.audit.logger import get_logger
from budgetbuddy.services.storage.interface import (
    KeyValueStorageInterface,
    StorageQuotaExceededError,
    StorageReadError,
    StorageWriteError,
)

logger = get_logger(__name__)

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9._-]")
_QUOTA_ERRNOS = {errno.ENOSPC, getattr(errno, "EDQUOT", errno.ENOSPC)}


class JsonFileStorage(KeyValueStorageInterface):
    """
    One file per key: <data_dir>/<key>.json

    Writes are atomic (temp file, then rename) so a crash mid-save
    never leaves a truncated document behind.
    """

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)

    def path_for(self, key: str) -> Path:
        """File backing a key; unsafe characters are replaced."""
        return self.data_dir / f"{_UNSAFE_KEY_CHARS.sub('_', key)}.json"

    def get_item(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise StorageReadError(f"Could not read {path}: {e}")

    def set_item(self, key: str, value: str) -> None:
        path = self.path_for(key)
        temp_path = path.with_suffix(".tmp")
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            temp_path.write_text(value, encoding="utf-8")
            temp_path.replace(path)
        except OSError as e:
            if e.errno in _QUOTA_ERRNOS:
                raise StorageQuotaExceededError(f"No space left to write {path}: {e}")
            raise StorageWriteError(f"Could not write {path}: {e}")
        logger.debug("storage_item_written", key=key, path=str(path), size=len(value))

    def remove_item(self, key: str) -> None:
        path = self.path_for(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageWriteError(f"Could not remove {path}: {e}")


class InMemoryStorage(KeyValueStorageInterface):
    """
    Dict-backed storage.

    quota_bytes mimics a browser storage quota: a write that would push
    the total stored size over it raises StorageQuotaExceededError.
    """

    def __init__(self, quota_bytes: Optional[int] = None):
        self._items: dict[str, str] = {}
        self.quota_bytes = quota_bytes

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        if self.quota_bytes is not None:
            others = sum(
                len(v.encode("utf-8"))
                for k, v in self._items.items()
                if k != key
            )
            if others + len(value.encode("utf-8")) > self.quota_bytes:
                raise StorageQuotaExceededError(
                    f"Storing {key!r} would exceed the {self.quota_bytes} byte quota"
                )
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._items)
