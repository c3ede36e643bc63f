"""Expense validation package."""

from budgetbuddy.validation.validator import ExpenseValidator

__all__ = ["ExpenseValidator"]
