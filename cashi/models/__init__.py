"""
Data Models Package

This package contains all Pydantic models used in the Cashi ledger engine.
All data flowing through the engine must conform to these schemas.
"""

from cashi.models.ledger import (
    EXPENSE_CATEGORIES,
    INCOME_CATEGORIES,
    CategoryShare,
    Entry,
    EntryKind,
    FilterSpec,
    Goal,
    GoalProgress,
    Granularity,
    LedgerState,
    LedgerSummary,
    SeriesBucket,
    Totals,
    ValidationIssue,
    ValidationResult,
    categories_for,
    default_category,
)
from cashi.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "EXPENSE_CATEGORIES",
    "INCOME_CATEGORIES",
    "CategoryShare",
    "Entry",
    "EntryKind",
    "FilterSpec",
    "Goal",
    "GoalProgress",
    "Granularity",
    "LedgerState",
    "LedgerSummary",
    "SeriesBucket",
    "Totals",
    "ValidationIssue",
    "ValidationResult",
    "categories_for",
    "default_category",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
