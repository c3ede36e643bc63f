"""
Expense Form Validation

Checks a raw expense form payload before anything is built from it.

Rules are checked in order and the first failure wins:
1. Amount must be a finite number that is still greater than zero
   once rounded to cents (0.004 fails, 0.005 passes)
2. Category must be one of the fixed categories
3. Date must be present and a real calendar date

IMPORTANT: Validation NEVER raises and NEVER fixes input.
It reports the first problem so the user can correct it.
"""

from collections.abc import Mapping
from typing import Any

from budgetbuddy.models.ledger import ExpenseCategory
from budgetbuddy.models.results import ValidationResult
from budgetbuddy.utils import parse_date, round_money, to_decimal


# Also used for amounts that round to 0.00 and for magnitudes of MAX_AMOUNT or more
AMOUNT_MESSAGE = "Amount must be greater than 0."
CATEGORY_MESSAGE = "Select a valid category."
DATE_MESSAGE = "Enter a valid date."

_CATEGORY_VALUES = {category.value for category in ExpenseCategory}


class ExpenseValidator:
    """Validates expense form payloads (raw strings and numbers)."""

    def _check_amount(self, value: Any) -> bool:
        amount = to_decimal(value)
        return amount is not None and round_money(amount) > 0

    def _check_category(self, value: Any) -> bool:
        if isinstance(value, ExpenseCategory):
            return True
        return isinstance(value, str) and value in _CATEGORY_VALUES

    def _check_date(self, value: Any) -> bool:
        return parse_date(value) is not None

    def validate(self, payload: Mapping[str, Any]) -> ValidationResult:
        """
        Validate a form payload with keys amount, category, date
        (description is free text and always accepted).

        Returns:
            ValidationResult; message is empty when valid
        """
        if not self._check_amount(payload.get("amount")):
            return ValidationResult(valid=False, message=AMOUNT_MESSAGE, field="amount")

        if not self._check_category(payload.get("category")):
            return ValidationResult(valid=False, message=CATEGORY_MESSAGE, field="category")

        if not self._check_date(payload.get("date")):
            return ValidationResult(valid=False, message=DATE_MESSAGE, field="date")

        return ValidationResult(valid=True)
