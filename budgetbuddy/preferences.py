"""Setters for the non-budget user preferences stored in the ledger."""

import re
from typing import Any

from budgetbuddy.models.ledger import LedgerDocument, Theme

_CURRENCY_CODE = re.compile(r"^[A-Z]{3}$")


def _with_settings(document: LedgerDocument, **changes: Any) -> LedgerDocument:
    settings = document.settings.model_copy(update=changes)
    return document.model_copy(update={"settings": settings})


def set_theme(document: LedgerDocument, theme: Theme | str) -> LedgerDocument:
    """
    New document with the theme replaced.

    Raises:
        ValueError: If theme is not "light" or "dark"
    """
    return _with_settings(document, theme=Theme(theme))


def toggle_theme(document: LedgerDocument) -> LedgerDocument:
    next_theme = Theme.LIGHT if document.settings.theme == Theme.DARK else Theme.DARK
    return _with_settings(document, theme=next_theme)


def set_preferred_currency(document: LedgerDocument, code: Any) -> LedgerDocument:
    """
    New document with the preferred currency replaced.

    Anything that isn't a three-letter code leaves the document unchanged.
    """
    normalized = str(code or "").strip().upper()
    if not _CURRENCY_CODE.match(normalized):
        return document
    return _with_settings(document, preferred_currency=normalized)
