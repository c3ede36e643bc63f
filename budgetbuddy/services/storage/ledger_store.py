"""
Ledger Store

Loads, saves and resets the single persisted ledger document.

DESIGN DECISION: The store holds no live document. Callers load once,
derive new document values, and hand each one back to save(). That keeps
exactly one source of truth in memory - the caller's reference.

IMPORTANT: Nothing here raises to the caller. A document that can't be
read becomes the default document; a document that can't be written is
reported in the log and the in-memory value stays authoritative.
"""

import json
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from budgetbuddy.audit.logger import get_logger
from budgetbuddy.models.ledger import Expense, LedgerDocument, LedgerSettings, RateCache
from budgetbuddy.services.storage.interface import KeyValueStorageInterface, StorageError

logger = get_logger(__name__)


class LedgerStore:
    """
    Persistence for the ledger document behind a key-value adapter.

    Storage format is the camelCase JSON layout of LedgerDocument.
    """

    DEFAULT_STORAGE_KEY = "budgetbuddy-state-v1"

    def __init__(
        self,
        storage: KeyValueStorageInterface,
        storage_key: str = DEFAULT_STORAGE_KEY,
    ):
        self._storage = storage
        self.storage_key = storage_key

    @staticmethod
    def default_document() -> LedgerDocument:
        """A fresh default document: no expenses, no budget, empty rate cache."""
        return LedgerDocument()

    @classmethod
    def merge(cls, raw: Any) -> LedgerDocument:
        """
        Merge a partially populated raw document onto the defaults.

        Top level, settings and cache are merged independently, so a
        document written before a field existed still loads. Present
        fields always win; absent fields take the default.

        Bad parts are dropped rather than failing the whole document:
        each invalid expense and each invalid settings field is logged
        and skipped, and an incomplete rate cache becomes the empty cache.

        Raises:
            ValidationError: If the merged document still fails validation
        """
        defaults = cls.default_document().to_storage_dict()
        raw = raw if isinstance(raw, Mapping) else {}
        raw_settings = raw.get("settings")
        raw_cache = raw.get("cache")

        merged = {
            **defaults,
            **raw,
            "expenses": cls._valid_expenses(raw.get("expenses")),
            "settings": cls._valid_settings(
                defaults["settings"],
                raw_settings if isinstance(raw_settings, Mapping) else {},
            ),
            "cache": {
                **defaults["cache"],
                **(raw_cache if isinstance(raw_cache, Mapping) else {}),
            },
        }

        try:
            RateCache.model_validate(merged["cache"])
        except ValidationError as e:
            # Cache is all-or-nothing; a partial one falls back to empty.
            logger.warning("rate_cache_discarded", reason=str(e))
            merged["cache"] = defaults["cache"]

        return LedgerDocument.model_validate(merged)

    @staticmethod
    def _valid_expenses(raw_expenses: Any) -> list[Expense]:
        if not isinstance(raw_expenses, list):
            return []
        expenses = []
        for index, item in enumerate(raw_expenses):
            try:
                expenses.append(Expense.model_validate(item))
            except ValidationError as e:
                logger.warning("expense_discarded", index=index, reason=str(e))
        return expenses

    @staticmethod
    def _valid_settings(
        defaults: dict[str, Any], raw_settings: Mapping[str, Any]
    ) -> dict[str, Any]:
        settings = dict(defaults)
        for field, value in raw_settings.items():
            try:
                LedgerSettings.model_validate({**defaults, field: value})
            except ValidationError as e:
                logger.warning("setting_discarded", field=field, reason=str(e))
                continue
            settings[field] = value
        return settings

    def load(self) -> LedgerDocument:
        """
        Read the persisted document.

        Returns the default document when nothing is stored, or when the
        stored blob is unreadable, corrupt, or fails validation.
        """
        try:
            stored = self._storage.get_item(self.storage_key)
        except StorageError as e:
            logger.warning("ledger_load_failed", key=self.storage_key, reason=str(e))
            return self.default_document()

        if not stored:
            logger.debug("ledger_not_found", key=self.storage_key)
            return self.default_document()

        try:
            raw = json.loads(stored)
        except json.JSONDecodeError as e:
            logger.warning("ledger_load_failed", key=self.storage_key, reason=f"corrupt JSON: {e}")
            return self.default_document()

        try:
            document = self.merge(raw)
        except ValidationError as e:
            logger.warning("ledger_load_failed", key=self.storage_key, reason=f"invalid document: {e}")
            return self.default_document()

        logger.debug("ledger_loaded", key=self.storage_key, expenses=len(document.expenses))
        return document

    def save(self, document: LedgerDocument) -> bool:
        """
        Serialize and persist the whole document.

        Returns False (after logging) if the write failed.
        """
        try:
            payload = json.dumps(document.to_storage_dict())
            self._storage.set_item(self.storage_key, payload)
        except StorageError as e:
            logger.error("ledger_save_failed", key=self.storage_key, reason=str(e))
            return False

        logger.debug("ledger_saved", key=self.storage_key, expenses=len(document.expenses))
        return True

    def reset(self) -> LedgerDocument:
        """Overwrite persisted state with a fresh default document and return it."""
        fresh = self.default_document()
        self.save(fresh)
        return fresh

