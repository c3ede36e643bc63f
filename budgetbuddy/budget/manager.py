"""
Budget Manager

Derives the current month's spending position from the ledger and
updates the stored monthly budget.
"""

from collections.abc import Callable
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional

from budgetbuddy.expenses.manager import ExpenseManager, utc_now
from budgetbuddy.models.ledger import LedgerDocument
from budgetbuddy.models.results import BudgetSnapshot
from budgetbuddy.utils import CENT, month_key, round_money, to_decimal


class BudgetManager:
    """
    Monthly budget snapshots and the budget setter.

    A budget of 0 means "no budget": there is nothing remaining and
    nothing to be over.
    """

    def __init__(
        self,
        expense_manager: Optional[ExpenseManager] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._expenses = expense_manager or ExpenseManager(clock=clock)
        self._clock = clock

    def snapshot(
        self,
        document: LedgerDocument,
        now: Optional[datetime | date] = None,
    ) -> BudgetSnapshot:
        """
        Spending position for the calendar month containing `now`.

        Args:
            document: The ledger document
            now: Point in time whose month is summarized (defaults to the clock)
        """
        current_month = month_key(now if now is not None else self._clock())
        spent = self._expenses.sum_by_month(document.expenses, current_month)
        budget = document.settings.monthly_budget

        if budget > 0:
            progress = min(spent / budget * 100, Decimal("100"))
            return BudgetSnapshot(
                month_key=current_month,
                budget=budget,
                spent=spent,
                remaining=budget - spent,
                over_budget=spent > budget,
                progress_percent=progress.quantize(CENT, rounding=ROUND_HALF_UP),
            )

        return BudgetSnapshot(
            month_key=current_month,
            budget=budget,
            spent=spent,
        )

    def set_budget(self, document: LedgerDocument, amount: Any) -> LedgerDocument:
        """
        New document with the monthly budget replaced.

        Negative or non-numeric input clamps to 0; the value is rounded to cents.
        """
        parsed = to_decimal(amount)
        budget = round_money(parsed) if parsed is not None and parsed > 0 else Decimal("0.00")
        settings = document.settings.model_copy(update={"monthly_budget": budget})
        return document.model_copy(update={"settings": settings})
