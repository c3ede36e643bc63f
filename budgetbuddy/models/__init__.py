"""
Data Models Package

This package contains all Pydantic models used by the BudgetBuddy ledger core.
Everything persisted or handed to the rendering layer conforms to these schemas.
"""

from budgetbuddy.models.ledger import (
    CurrencyCode,
    Expense,
    ExpenseCategory,
    LedgerDocument,
    LedgerModel,
    LedgerSettings,
    Money,
    RateCache,
    Theme,
)
from budgetbuddy.models.results import (
    Advice,
    AdviceResult,
    BudgetSnapshot,
    ConversionResult,
    RatesPayload,
    ServiceCheckResult,
    ValidationResult,
)
from budgetbuddy.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "CurrencyCode",
    "Expense",
    "ExpenseCategory",
    "LedgerDocument",
    "LedgerModel",
    "LedgerSettings",
    "Money",
    "RateCache",
    "Theme",
    # Derived / outcome models
    "Advice",
    "AdviceResult",
    "BudgetSnapshot",
    "ConversionResult",
    "RatesPayload",
    "ServiceCheckResult",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
