"""
Core Data Models for the Cashi ledger

These models define the strict schemas for all data flowing through the engine.
They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Serialize to exactly the persisted record layout
4. Stay immutable once built, so snapshots handed to callers never change

DESIGN DECISION: Dates are kept as ISO-8601 `YYYY-MM-DD` strings rather than
`datetime.date` objects. The format is fixed-width and zero-padded, so plain
string comparison orders dates correctly and prefix matching selects
time buckets; it is also what the persisted records contain.
"""

import datetime as dt
from enum import Enum
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


ISO_DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class EntryKind(str, Enum):
    """Polarity of an entry."""
    INCOME = "income"
    EXPENSE = "expense"


class Granularity(str, Enum):
    """Bucketing resolution for time series."""
    DAILY = "daily"
    MONTHLY = "monthly"
    YEARLY = "yearly"


# =============================================================================
# CATEGORY VOCABULARIES
# =============================================================================

# Order matters: the first member is what entry forms reset to
EXPENSE_CATEGORIES: tuple[str, ...] = (
    "Food",
    "Transportation",
    "Entertainment",
    "Utilities",
    "Housing",
    "Healthcare",
    "Education",
    "Personal",
    "Debt",
    "Savings",
    "Other",
)

INCOME_CATEGORIES: tuple[str, ...] = (
    "Salary",
    "Freelance",
    "Investments",
    "Rental",
    "Business",
    "Gifts",
    "Other",
)


def categories_for(kind: EntryKind) -> tuple[str, ...]:
    """Return the closed category vocabulary for a kind."""
    if EntryKind(kind) == EntryKind.INCOME:
        return INCOME_CATEGORIES
    return EXPENSE_CATEGORIES


def default_category(kind: EntryKind) -> str:
    """First category offered for a kind."""
    return categories_for(kind)[0]


def _check_calendar_date(value: str) -> str:
    try:
        dt.date.fromisoformat(value)
    except ValueError:
        raise ValueError(f"Not a calendar date: {value}")
    return value


# =============================================================================
# CORE ENTITIES
# =============================================================================

class Entry(BaseModel):
    """
    A single income or expense transaction.

    Serialized with `by_alias=True` the kind is written under `type`,
    which is the layout of the persisted `budgetEntries` record.
    """
    model_config = ConfigDict(
        str_strip_whitespace=True,
        populate_by_name=True,
        frozen=True,
    )

    id: int = Field(
        ...,
        description="Unique identity, increasing with creation time"
    )
    kind: EntryKind = Field(
        ...,
        alias="type",
        description="income or expense"
    )
    description: str = Field(
        ...,
        min_length=1,
        description="Free text describing the transaction"
    )
    amount: float = Field(
        ...,
        gt=0,
        allow_inf_nan=False,
        description="Positive, currency-agnostic amount"
    )
    category: str = Field(
        ...,
        description="Category from the kind's vocabulary"
    )
    date: str = Field(
        ...,
        pattern=ISO_DATE_PATTERN,
        description="Transaction date as YYYY-MM-DD"
    )

    @field_validator('date')
    @classmethod
    def validate_date(cls, v: str) -> str:
        """Reject well-formed strings that are not real days (e.g. 2024-02-30)."""
        return _check_calendar_date(v)

    def to_record(self) -> dict:
        """Convert to the persisted JSON object."""
        return self.model_dump(mode="json", by_alias=True)


class Goal(BaseModel):
    """
    A spending ceiling for one expense category.

    Goals never reference entries; progress is derived by matching category.
    """
    model_config = ConfigDict(
        str_strip_whitespace=True,
        frozen=True,
    )

    id: int
    category: str
    amount: float = Field(
        ...,
        ge=0,
        allow_inf_nan=False,
        description="Target ceiling"
    )

    def to_record(self) -> dict:
        """Convert to the persisted JSON object."""
        return self.model_dump(mode="json")


class LedgerState(BaseModel):
    """Everything the persistence adapter reads and writes."""

    entries: list[Entry] = Field(default_factory=list)
    goals: list[Goal] = Field(default_factory=list)


# =============================================================================
# FILTER SPECIFICATION
# =============================================================================

class FilterSpec(BaseModel):
    """
    Transient inclusion criteria applied before any aggregation.

    An empty set means "no restriction" for that criterion; date bounds
    are inclusive and a missing bound leaves that side open.
    Never persisted.
    """
    model_config = ConfigDict(frozen=True)

    kinds: frozenset[EntryKind] = Field(default_factory=frozenset)
    categories: frozenset[str] = Field(default_factory=frozenset)
    date_from: Optional[str] = Field(default=None, pattern=ISO_DATE_PATTERN)
    date_to: Optional[str] = Field(default=None, pattern=ISO_DATE_PATTERN)

    @field_validator('date_from', 'date_to', mode='before')
    @classmethod
    def blank_bound_is_open(cls, v):
        """Date inputs left empty arrive as ''."""
        if isinstance(v, str) and not v.strip():
            return None
        if isinstance(v, dt.date):
            return v.isoformat()
        return v

    @property
    def is_empty(self) -> bool:
        return (
            not self.kinds
            and not self.categories
            and self.date_from is None
            and self.date_to is None
        )

    def toggle_kind(self, kind: EntryKind) -> "FilterSpec":
        """Add the kind if absent, remove it if present."""
        kind = EntryKind(kind)
        return self.model_copy(update={"kinds": self.kinds ^ {kind}})

    def toggle_category(self, category: str) -> "FilterSpec":
        """Add the category if absent, remove it if present."""
        return self.model_copy(update={"categories": self.categories ^ {category}})

    def with_date_range(
        self,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
    ) -> "FilterSpec":
        # model_copy skips validation, so rebuild to normalize the bounds
        return FilterSpec(
            kinds=self.kinds,
            categories=self.categories,
            date_from=date_from,
            date_to=date_to,
        )


# =============================================================================
# DERIVED RESULTS
# =============================================================================

class Totals(BaseModel):
    """Income, expense and their difference over a filtered set."""

    income: float = 0.0
    expense: float = 0.0
    balance: float = 0.0


class SeriesBucket(BaseModel):
    """One point of an income/expense time series."""

    label: str = Field(
        ...,
        description="YYYY-MM-DD, YYYY-MM or YYYY depending on granularity"
    )
    income: float = 0.0
    expense: float = 0.0

    def to_chart_row(self) -> dict:
        """Row shape consumed by the bar chart."""
        return {
            "name": self.label,
            "Income": self.income,
            "Expenses": self.expense,
        }


class CategoryShare(BaseModel):
    """One slice of a per-category breakdown."""

    name: str
    value: float


class GoalProgress(BaseModel):
    """
    Spending against a goal, derived at read time.

    A goal with a zero target has no meaningful ratio; it reports
    ratio 0.0 with `has_target` False instead of dividing by zero.
    """

    goal_id: int
    category: str
    target: float
    spent: float
    ratio: float
    has_target: bool

    @property
    def percent(self) -> float:
        """Ratio as a percentage, unclamped."""
        return self.ratio * 100

    @property
    def remaining(self) -> float:
        return self.target - self.spent

    @property
    def is_over_budget(self) -> bool:
        return self.has_target and self.spent > self.target


class LedgerSummary(BaseModel):
    """Every derived view of a session, computed from one filtered set."""

    filters: FilterSpec
    entry_count: int = Field(ge=0)
    totals: Totals
    expense_by_category: dict[str, float] = Field(default_factory=dict)
    income_by_category: dict[str, float] = Field(default_factory=dict)
    granularity: Granularity
    series: list[SeriesBucket] = Field(default_factory=list)
    goals: list[GoalProgress] = Field(default_factory=list)


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_format', 'unknown_category')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """
    Result of the two-stage validation of raw add/update input.

    Stage 1: Schema validation (presence, parseability)
    Stage 2: Semantic validation (vocabulary, plausibility)

    When valid, `cleaned` holds the parsed field values ready to
    build the entity from.
    """

    entity_type: str = Field(
        ...,
        pattern="^(entry|goal)$",
    )
    validated_at: dt.datetime = Field(
        default_factory=lambda: dt.datetime.now(dt.timezone.utc)
    )

    # Stage results
    schema_valid: bool
    semantic_valid: bool

    # Overall result
    is_valid: bool

    issues: list[ValidationIssue] = Field(default_factory=list)

    # Warnings don't block but should be shown
    warnings: list[str] = Field(default_factory=list)

    cleaned: dict = Field(default_factory=dict)

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")
