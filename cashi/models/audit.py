"""
Audit Models for the Cashi ledger

Every mutation of the ledger, and every attempt that was refused, is logged.
This provides:
1. Traceability of how the current state came to be
2. Debugging information when a persistence sync fails
3. A record of the window in which the durable copy may be stale

DESIGN DECISION: Audit events are only ever emitted, never edited.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """
    Types of events we audit.
    """
    # Entries
    ENTRY_ADDED = "entry_added"
    ENTRY_UPDATED = "entry_updated"
    ENTRY_DELETED = "entry_deleted"

    # Goals
    GOAL_ADDED = "goal_added"
    GOAL_UPDATED = "goal_updated"
    GOAL_DELETED = "goal_deleted"

    # Refused mutations
    VALIDATION_FAILED = "validation_failed"
    LOOKUP_MISSED = "lookup_missed"

    # Persistence
    STATE_LOADED = "state_loaded"
    STATE_SAVED = "state_saved"
    LOAD_FAILED = "load_failed"
    SAVE_FAILED = "save_failed"

    # Session
    FILTERS_CHANGED = "filters_changed"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity ('entry', 'goal', 'ledger')"
    )
    entity_id: Optional[int] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - all events of one session share this
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )

    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_code: Optional[str] = None
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
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }


_MUTATION_TYPES = {
    ("entry", "added"): AuditEventType.ENTRY_ADDED,
    ("entry", "updated"): AuditEventType.ENTRY_UPDATED,
    ("entry", "deleted"): AuditEventType.ENTRY_DELETED,
    ("goal", "added"): AuditEventType.GOAL_ADDED,
    ("goal", "updated"): AuditEventType.GOAL_UPDATED,
    ("goal", "deleted"): AuditEventType.GOAL_DELETED,
}


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.mutation("entry", "added", entry.id, entry.to_record())
        event = AuditEventBuilder.save_failed(error, correlation_id)
    """

    @staticmethod
    def mutation(
        entity_type: str,
        action: str,
        entity_id: int,
        record: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=_MUTATION_TYPES[(entity_type, action)],
            entity_type=entity_type,
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=f"{entity_type.capitalize()} {entity_id} {action}",
            details={"record": record} if record is not None else {},
        )

    @staticmethod
    def validation_failed(
        entity_type: str,
        operation: str,
        issues: list[dict],
        entity_id: Optional[int] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type=entity_type,
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=f"{operation} refused with {len(issues)} issues",
            details={
                "operation": operation,
                "issues": issues,
            },
        )

    @staticmethod
    def lookup_missed(
        entity_type: str,
        operation: str,
        entity_id: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOOKUP_MISSED,
            severity=AuditSeverity.DEBUG,
            entity_type=entity_type,
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=f"{operation}: no {entity_type} with id {entity_id}",
            details={"operation": operation},
        )

    @staticmethod
    def state_loaded(
        entry_count: int,
        goal_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATE_LOADED,
            entity_type="ledger",
            correlation_id=correlation_id,
            description=f"Loaded {entry_count} entries and {goal_count} goals",
            details={
                "entry_count": entry_count,
                "goal_count": goal_count,
            },
        )

    @staticmethod
    def state_saved(
        entry_count: int,
        goal_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATE_SAVED,
            severity=AuditSeverity.DEBUG,
            entity_type="ledger",
            correlation_id=correlation_id,
            description=f"Saved {entry_count} entries and {goal_count} goals",
            details={
                "entry_count": entry_count,
                "goal_count": goal_count,
            },
        )

    @staticmethod
    def load_failed(
        error: Exception,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOAD_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="ledger",
            correlation_id=correlation_id,
            description="Persisted ledger could not be loaded",
            error_code=type(error).__name__,
            error_message=str(error),
        )

    @staticmethod
    def save_failed(
        error: Exception,
        operation: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="ledger",
            correlation_id=correlation_id,
            description=(
                f"Sync after {operation} failed; in-memory state is ahead "
                "of the stored copy"
            ),
            details={"operation": operation},
            error_code=type(error).__name__,
            error_message=str(error),
        )

    @staticmethod
    def filters_changed(
        filters: dict,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FILTERS_CHANGED,
            severity=AuditSeverity.DEBUG,
            correlation_id=correlation_id,
            description="Filter specification changed",
            details={"filters": filters},
        )
