"""Expense management package."""

from budgetbuddy.expenses.manager import ExpenseManager, new_expense_id, utc_now

__all__ = ["ExpenseManager", "new_expense_id", "utc_now"]
