"""Budget package."""

from budgetbuddy.budget.manager import BudgetManager

__all__ = ["BudgetManager"]
