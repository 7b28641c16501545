"""
Two-Stage Validation of raw ledger input

Add and update operations receive whatever the form fields held: amounts
as strings, dates as strings or date objects, possibly empty. Validation
decides whether the mutation may happen at all.

STAGE 1 - SCHEMA VALIDATION:
- Required field presence (description, amount, date for entries;
  amount for goals)
- Parseability (amount is a finite number, date is a real YYYY-MM-DD day)
- Range (entry amounts positive, goal targets non-negative)

STAGE 2 - SEMANTIC VALIDATION:
- Category belongs to the kind's vocabulary
- Dates far in the future
These are warnings unless category enforcement is switched on.

IMPORTANT: Validation NEVER silently fixes issues beyond trimming
whitespace. A failed result means the caller must re-prompt.
"""

import datetime as dt
import math
import re
from decimal import Decimal
from typing import Any, Optional

from cashi.config import LedgerSettings, get_settings
from cashi.models.ledger import (
    EXPENSE_CATEGORIES,
    ISO_DATE_PATTERN,
    EntryKind,
    ValidationIssue,
    ValidationResult,
    categories_for,
)


_ISO_DATE_RE = re.compile(ISO_DATE_PATTERN)


def parse_amount(value: Any) -> Optional[float]:
    """
    Parse an amount as a finite real number.

    Returns None for empty, non-numeric, infinite or NaN input.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        try:
            number = float(value)
        except (OverflowError, ValueError):
            return None
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


def parse_date(value: Any) -> Optional[str]:
    """
    Normalize a date input to YYYY-MM-DD.

    Accepts date/datetime objects or ISO strings; returns None for
    empty or unparseable input.
    """
    if value is None:
        return None
    if isinstance(value, dt.datetime):
        return value.date().isoformat()
    if isinstance(value, dt.date):
        return value.isoformat()
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not _ISO_DATE_RE.match(text):
        return None
    try:
        dt.date.fromisoformat(text)
    except ValueError:
        return None
    return text


def parse_kind(value: Any) -> Optional[EntryKind]:
    if isinstance(value, EntryKind):
        return value
    if isinstance(value, str):
        try:
            return EntryKind(value.strip().lower())
        except ValueError:
            return None
    return None


class LedgerValidator:
    """
    Validates raw entry and goal input through a two-stage pipeline.

    Stage 2 only runs when stage 1 found no errors.
    """

    def __init__(self, settings: Optional[LedgerSettings] = None):
        """
        Initialize validator.

        Args:
            settings: Ledger settings; read from the environment if None.
        """
        self._settings = settings or get_settings().ledger

    def _validate_entry_schema(
        self,
        kind: Any,
        description: Any,
        amount: Any,
        category: Any,
        date: Any,
    ) -> tuple[bool, list[ValidationIssue], dict]:
        """
        Stage 1 for entries.

        Returns: (is_valid, list_of_issues, cleaned_fields)
        """
        issues = []
        cleaned: dict = {}

        parsed_kind = parse_kind(kind)
        if parsed_kind is None:
            issues.append(ValidationIssue(
                field="kind",
                issue_type="invalid_value",
                message=f"Kind must be 'income' or 'expense', got {kind!r}",
                severity="error",
            ))
        else:
            cleaned["kind"] = parsed_kind

        text = description.strip() if isinstance(description, str) else ""
        if not text:
            issues.append(ValidationIssue(
                field="description",
                issue_type="missing",
                message="Description is required",
                severity="error",
                suggested_fix="Enter a short description",
            ))
        else:
            cleaned["description"] = text

        parsed_amount = parse_amount(amount)
        if parsed_amount is None:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="missing" if amount in (None, "") else "invalid_format",
                message=f"Amount must be a number, got {amount!r}",
                severity="error",
                suggested_fix="Enter the amount as digits, e.g. 12.50",
            ))
        elif parsed_amount <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be greater than zero",
                severity="error",
                suggested_fix="Record the amount without a sign; the kind sets its direction",
            ))
        else:
            cleaned["amount"] = parsed_amount

        if not isinstance(category, str) or not category.strip():
            issues.append(ValidationIssue(
                field="category",
                issue_type="missing",
                message="Category is required",
                severity="error",
            ))
        else:
            cleaned["category"] = category.strip()

        parsed_date = parse_date(date)
        if parsed_date is None:
            issues.append(ValidationIssue(
                field="date",
                issue_type="missing" if date in (None, "") else "invalid_format",
                message=f"Date must be a calendar day as YYYY-MM-DD, got {date!r}",
                severity="error",
            ))
        else:
            cleaned["date"] = parsed_date

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues, cleaned

    def _validate_entry_semantic(
        self,
        cleaned: dict,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 2 for entries.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        vocabulary = categories_for(cleaned["kind"])
        if cleaned["category"] not in vocabulary:
            issues.append(ValidationIssue(
                field="category",
                issue_type="unknown_category",
                message=(
                    f"'{cleaned['category']}' is not a known "
                    f"{cleaned['kind'].value} category"
                ),
                severity="error" if self._settings.enforce_categories else "warning",
                suggested_fix=f"Choose one of: {', '.join(vocabulary)}",
            ))

        max_future_date = dt.date.today() + dt.timedelta(
            days=self._settings.future_date_tolerance_days
        )
        if dt.date.fromisoformat(cleaned["date"]) > max_future_date:
            issues.append(ValidationIssue(
                field="date",
                issue_type="future_date",
                message=f"Date ({cleaned['date']}) is far in the future",
                severity="warning",
                suggested_fix="Please verify the date is correct",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def validate_entry(
        self,
        kind: Any,
        description: Any,
        amount: Any,
        category: Any,
        date: Any,
    ) -> ValidationResult:
        """
        Run full two-stage validation of entry input.

        Returns:
            ValidationResult; when valid, `cleaned` holds kind,
            description, amount, category and date ready for an Entry.
        """
        schema_valid, issues, cleaned = self._validate_entry_schema(
            kind, description, amount, category, date
        )

        semantic_valid = False
        if schema_valid:
            semantic_valid, semantic_issues = self._validate_entry_semantic(cleaned)
            issues.extend(semantic_issues)

        return self._result("entry", schema_valid, semantic_valid, issues, cleaned)

    def validate_goal(self, category: Any, amount: Any) -> ValidationResult:
        """
        Run full two-stage validation of goal input.

        A zero target is accepted; progress reporting guards against it.
        """
        issues = []
        cleaned: dict = {}

        if not isinstance(category, str) or not category.strip():
            issues.append(ValidationIssue(
                field="category",
                issue_type="missing",
                message="Category is required",
                severity="error",
            ))
        else:
            cleaned["category"] = category.strip()

        parsed_amount = parse_amount(amount)
        if parsed_amount is None:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="missing" if amount in (None, "") else "invalid_format",
                message=f"Goal amount must be a number, got {amount!r}",
                severity="error",
            ))
        elif parsed_amount < 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Goal amount cannot be negative",
                severity="error",
            ))
        else:
            cleaned["amount"] = parsed_amount

        schema_valid = not any(issue.severity == "error" for issue in issues)

        semantic_valid = False
        if schema_valid:
            semantic_issues = []
            if cleaned["category"] not in EXPENSE_CATEGORIES:
                semantic_issues.append(ValidationIssue(
                    field="category",
                    issue_type="unknown_category",
                    message=f"'{cleaned['category']}' is not an expense category",
                    severity="error" if self._settings.enforce_categories else "warning",
                    suggested_fix=f"Choose one of: {', '.join(EXPENSE_CATEGORIES)}",
                ))
            if cleaned["amount"] == 0:
                semantic_issues.append(ValidationIssue(
                    field="amount",
                    issue_type="zero_target",
                    message="A zero target makes progress meaningless",
                    severity="warning",
                ))
            semantic_valid = not any(i.severity == "error" for i in semantic_issues)
            issues.extend(semantic_issues)

        return self._result("goal", schema_valid, semantic_valid, issues, cleaned)

    def _result(
        self,
        entity_type: str,
        schema_valid: bool,
        semantic_valid: bool,
        issues: list[ValidationIssue],
        cleaned: dict,
    ) -> ValidationResult:
        is_valid = schema_valid and semantic_valid
        return ValidationResult(
            entity_type=entity_type,
            schema_valid=schema_valid,
            semantic_valid=semantic_valid,
            is_valid=is_valid,
            issues=issues,
            warnings=[issue.message for issue in issues if issue.severity == "warning"],
            cleaned=cleaned if is_valid else {},
        )
