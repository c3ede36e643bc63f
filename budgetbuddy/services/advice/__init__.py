"""Advice feed package."""

from budgetbuddy.services.advice.advice_slip import AdviceClient, AdviceFetchError

__all__ = ["AdviceClient", "AdviceFetchError"]
