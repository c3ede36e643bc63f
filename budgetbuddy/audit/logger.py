"""
Audit Logger

DESIGN DECISION: Every ledger mutation and every feed call is logged.
This provides:
1. Traceability of what changed the ledger
2. Debugging capability when a feed misbehaves
3. A record of save failures the user never saw

The audit logger:
- Is synchronous, like every ledger mutation
- Gracefully handles failures (a broken log never breaks the ledger)
"""

import logging

import structlog

from budgetbuddy.models.audit import AuditEvent, AuditSeverity


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=False,
)


def configure_logging(level: str = "INFO") -> None:
    """Route the structured log through stdlib logging at the given level."""
    logging.basicConfig(format="%(message)s", level=level)
    logging.getLogger("budgetbuddy").setLevel(level)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Structured logger for a module; pass __name__."""
    return structlog.get_logger(name)


class AuditLogger:
    """
    Central audit logging service.

    Writes AuditEvents to the structured log at a level matching
    their severity.
    """

    def __init__(self, logger_name: str = "budgetbuddy.audit"):
        self._logger = structlog.get_logger(logger_name)

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns False if the event couldn't be written.
        """
        log_dict = event.to_log_dict()

        try:
            if event.severity == AuditSeverity.ERROR:
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            elif event.severity == AuditSeverity.DEBUG:
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception as e:
            # Log failure but don't raise
            logging.getLogger(__name__).error("audit logging failed: %s", e)
            return False

        return True
