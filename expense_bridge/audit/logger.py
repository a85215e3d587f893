"""
Audit Logger

Every significant step of handling a message is logged as a structured
event. This provides:
1. Traceability from chat message to ledger call
2. Debugging capability
3. Operator visibility into failures the room never sees

The audit logger:
- Writes to the structured log only (no persistence)
- Never raises into the message pipeline
- Supports correlation IDs to tie together the events of one message
"""

import logging
import sys
from uuid import UUID, uuid4

import structlog

from expense_bridge.models.audit import AuditEvent, AuditSeverity


def configure_logging(level: str = "INFO", json_output: bool = True) -> None:
    """
    Configure structlog (and the stdlib root logger it writes through).

    Call once at startup, before anything logs.
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper(), logging.INFO),
        force=True,
    )
    # matrix-nio is chatty at INFO
    logging.getLogger("nio").setLevel(logging.WARNING)

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )
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
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


class AuditLogger:
    """
    Central audit logging service.

    Each AuditEvent is emitted at the level matching its severity.
    """

    def __init__(self, logger=None):
        self._logger = logger or structlog.get_logger("expense_bridge.audit")

    def log(self, event: AuditEvent) -> None:
        """Log an audit event."""
        log_dict = event.to_log_dict()

        if event.severity == AuditSeverity.CRITICAL:
            self._logger.critical("audit_event", **log_dict)
        elif event.severity == AuditSeverity.ERROR:
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    One per inbound chat message; pass it through every step.
    """
    return uuid4()
