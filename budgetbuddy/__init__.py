"""
BudgetBuddy - Ledger Core Package

The expense/budget ledger and currency-conversion core behind the
BudgetBuddy expense widget. Rendering lives elsewhere; it calls into
this package and renders what comes back.

DESIGN PRINCIPLES:
1. Documents are immutable values - derive a new one, then save it
2. Validation problems are returned, never raised
3. Storage is swappable (file, memory, anything key-value)
4. Network failures never leave the ledger half-updated
5. "Now" is always passed in, so every calculation is reproducible
"""

__version__ = "1.0.0"
__author__ = "BudgetBuddy Team"
