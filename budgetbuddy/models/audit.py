"""
Audit Models for BudgetBuddy

Every ledger mutation and every call to an external feed is recorded
as an audit event in the structured log. This provides:
1. A trail of what changed the ledger and when
2. Debugging information when a feed misbehaves
3. A way to reconstruct a session from the logs

DESIGN DECISION: Audit events are log records only. The ledger document
itself never carries history.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Ledger mutations
    EXPENSE_ADDED = "expense_added"
    EXPENSE_REJECTED = "expense_rejected"
    EXPENSE_DELETED = "expense_deleted"
    BUDGET_UPDATED = "budget_updated"
    SETTINGS_UPDATED = "settings_updated"
    LEDGER_RESET = "ledger_reset"

    # Persistence
    SAVE_FAILED = "save_failed"

    # External feeds
    RATES_REFRESHED = "rates_refreshed"
    RATES_FETCH_FAILED = "rates_fetch_failed"
    ADVICE_FETCHED = "advice_fetched"
    ADVICE_FETCH_FAILED = "advice_fetch_failed"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every significant action creates one of these.
    """

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'expense', 'settings', 'rates')"
    )
    entity_id: Optional[str] = None

    description: str = Field(
        ...,
        max_length=500,
    )
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.expense_added(expense_id, "Food", "12.50")
        event = AuditEventBuilder.rates_fetch_failed("USD", "timed out")
    """

    @staticmethod
    def expense_added(expense_id: str, category: str, amount: Decimal) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_ADDED,
            entity_type="expense",
            entity_id=expense_id,
            description=f"Expense added: {category} {amount}",
            details={"category": category, "amount": str(amount)},
        )

    @staticmethod
    def expense_rejected(field: Optional[str], message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="expense",
            description=f"Expense rejected: {message}",
            details={"field": field},
        )

    @staticmethod
    def expense_deleted(expense_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_DELETED,
            entity_type="expense",
            entity_id=expense_id,
            description="Expense deleted",
        )

    @staticmethod
    def budget_updated(previous: Decimal, current: Decimal) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_UPDATED,
            entity_type="settings",
            description=f"Monthly budget changed from {previous} to {current}",
            details={"previous": str(previous), "current": str(current)},
        )

    @staticmethod
    def settings_updated(field: str, value: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTINGS_UPDATED,
            entity_type="settings",
            description=f"Setting {field} set to {value}",
            details={"field": field, "value": value},
        )

    @staticmethod
    def ledger_reset() -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_RESET,
            severity=AuditSeverity.WARNING,
            entity_type="ledger",
            description="Ledger reset to defaults",
        )

    @staticmethod
    def save_failed(reason: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="ledger",
            description="Ledger could not be persisted; keeping in-memory state",
            error_message=reason,
        )

    @staticmethod
    def rates_refreshed(base: str, currency_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RATES_REFRESHED,
            entity_type="rates",
            entity_id=base,
            description=f"Exchange rates refreshed for {base} ({currency_count} currencies)",
            details={"base": base, "currency_count": currency_count},
        )

    @staticmethod
    def rates_fetch_failed(base: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RATES_FETCH_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="rates",
            entity_id=base,
            description=f"Exchange rate fetch failed for {base}",
            error_message=error_message,
        )

    @staticmethod
    def advice_fetched(advice_id: Optional[Any]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ADVICE_FETCHED,
            entity_type="advice",
            entity_id=str(advice_id) if advice_id is not None else None,
            description="Tip of the day fetched",
        )

    @staticmethod
    def advice_fetch_failed(error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ADVICE_FETCH_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="advice",
            description="Tip of the day unavailable",
            error_message=error_message,
        )
