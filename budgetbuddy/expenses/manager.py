"""
Expense Manager

Builds expenses from validated form payloads, adds and removes them from
the ledger document, and answers the questions the dashboard asks:
recent expenses, a month's total, and a month's per-category breakdown.

DESIGN DECISION: Every operation is a pure function of its inputs.
Documents go in, new documents come out; the input is never modified.
The clock and the id generator are injected so tests can pin them.
"""

import random
from collections.abc import Callable, Iterable, Mapping
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional
from uuid import uuid4

from budgetbuddy.models.ledger import Expense, ExpenseCategory, LedgerDocument
from budgetbuddy.utils import month_key as month_key_for
from budgetbuddy.utils import parse_date, round_money, sanitize_text


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_expense_id(now: datetime) -> str:
    """
    Collision-resistant expense id.

    A random UUID normally; a timestamp plus random suffix when the OS
    has no randomness source for uuid4.
    """
    try:
        return str(uuid4())
    except NotImplementedError:
        millis = int(now.timestamp() * 1000)
        return f"exp-{millis}-{random.getrandbits(52):x}"


class ExpenseManager:
    """
    Expense construction, insertion, deletion and queries.

    Queries take any iterable of expenses so they work on a document's
    collection or on a filtered subset.
    """

    def __init__(
        self,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[datetime], str] = new_expense_id,
    ):
        self._clock = clock
        self._id_factory = id_factory

    # === Construction ===

    def build(self, payload: Mapping[str, Any]) -> Expense:
        """
        Build an Expense from a payload that already passed validation.

        Amount is rounded to cents, the description trimmed and capped,
        and the creation time stamped from the clock.
        """
        now = self._clock()
        return Expense(
            id=self._id_factory(now),
            amount=round_money(payload.get("amount")),
            category=ExpenseCategory(payload.get("category")),
            description=sanitize_text(payload.get("description")),
            date=parse_date(payload.get("date")),
            created_at=now,
        )

    # === Mutations (return new documents) ===

    def insert(self, document: LedgerDocument, expense: Expense) -> LedgerDocument:
        """New document with the expense prepended."""
        return document.model_copy(update={"expenses": (expense, *document.expenses)})

    def delete(self, document: LedgerDocument, expense_id: str) -> LedgerDocument:
        """New document without the expense; the same document if the id is unknown."""
        remaining = tuple(e for e in document.expenses if e.id != expense_id)
        if len(remaining) == len(document.expenses):
            return document
        return document.model_copy(update={"expenses": remaining})

    def get(self, document: LedgerDocument, expense_id: str) -> Optional[Expense]:
        return next((e for e in document.expenses if e.id == expense_id), None)

    # === Queries ===

    def recent(self, expenses: Iterable[Expense], limit: Optional[int] = 5) -> list[Expense]:
        """
        Most recent expenses first, by expense date.

        Expenses sharing a date keep their original relative order.
        limit=None returns the whole history.
        """
        ordered = sorted(expenses, key=lambda e: e.date, reverse=True)
        if limit is None:
            return ordered
        return ordered[:max(limit, 0)]

    def _in_month(self, expenses: Iterable[Expense], month_key: str) -> Iterable[Expense]:
        return (e for e in expenses if month_key_for(e.date) == month_key)

    def sum_by_month(self, expenses: Iterable[Expense], month_key: str) -> Decimal:
        """Total spent in a "YYYY-MM" month; 0 when nothing matches."""
        return sum(
            (e.amount for e in self._in_month(expenses, month_key)),
            Decimal("0"),
        )

    def totals_by_category(
        self,
        expenses: Iterable[Expense],
        month_key: str,
    ) -> dict[ExpenseCategory, Decimal]:
        """
        Per-category totals for a month.

        Categories without expenses that month are absent, not zero.
        """
        totals: dict[ExpenseCategory, Decimal] = {}
        for expense in self._in_month(expenses, month_key):
            totals[expense.category] = totals.get(expense.category, Decimal("0")) + expense.amount
        return totals
