"""
Audit Logger

DESIGN DECISION: Every ledger mutation, refused mutation and persistence
outcome is logged. This provides:
1. Complete traceability
2. Debugging capability
3. A visible record when the stored copy falls behind memory

The audit logger:
- Is synchronous, like the rest of the engine
- Gracefully handles sink failures (never breaks a mutation because auditing failed)
- Supports correlation IDs to tie the events of one session together
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from cashi.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from cashi.services.storage import AuditStorageInterface


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
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An optional audit sink (for inspection and tests)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
        correlation_id: Optional[UUID] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Sink that keeps emitted events.
                    If None, only logs locally.
            correlation_id: Attached to every event this logger builds.
        """
        self._storage = storage
        self._correlation_id = correlation_id
        self._logger = structlog.get_logger("cashi.audit")

    @property
    def correlation_id(self) -> Optional[UUID]:
        return self._correlation_id

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Hands the event to the sink if available.

        Returns True if the sink accepted it (or no sink is configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def log_mutation(
        self,
        entity_type: str,
        action: str,
        entity_id: int,
        record: Optional[dict] = None,
    ) -> None:
        """Log a successful add/update/delete."""
        self.log(AuditEventBuilder.mutation(
            entity_type=entity_type,
            action=action,
            entity_id=entity_id,
            record=record,
            correlation_id=self._correlation_id,
        ))

    def log_validation_failed(
        self,
        entity_type: str,
        operation: str,
        issues: list[dict],
        entity_id: Optional[int] = None,
    ) -> None:
        """Log a mutation refused because of invalid input."""
        self.log(AuditEventBuilder.validation_failed(
            entity_type=entity_type,
            operation=operation,
            issues=issues,
            entity_id=entity_id,
            correlation_id=self._correlation_id,
        ))

    def log_lookup_missed(
        self,
        entity_type: str,
        operation: str,
        entity_id: int,
    ) -> None:
        """Log an update/delete addressed to an unknown id."""
        self.log(AuditEventBuilder.lookup_missed(
            entity_type=entity_type,
            operation=operation,
            entity_id=entity_id,
            correlation_id=self._correlation_id,
        ))

    def log_state_loaded(self, entry_count: int, goal_count: int) -> None:
        self.log(AuditEventBuilder.state_loaded(
            entry_count=entry_count,
            goal_count=goal_count,
            correlation_id=self._correlation_id,
        ))

    def log_state_saved(self, entry_count: int, goal_count: int) -> None:
        self.log(AuditEventBuilder.state_saved(
            entry_count=entry_count,
            goal_count=goal_count,
            correlation_id=self._correlation_id,
        ))

    def log_load_failed(self, error: Exception) -> None:
        self.log(AuditEventBuilder.load_failed(
            error=error,
            correlation_id=self._correlation_id,
        ))

    def log_save_failed(self, error: Exception, operation: str) -> None:
        """Log a write-through that did not reach the medium."""
        self.log(AuditEventBuilder.save_failed(
            error=error,
            operation=operation,
            correlation_id=self._correlation_id,
        ))

    def log_filters_changed(self, filters: dict) -> None:
        self.log(AuditEventBuilder.filters_changed(
            filters=filters,
            correlation_id=self._correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this when a session starts and pass it to the session's logger.
    """
    return uuid4()
