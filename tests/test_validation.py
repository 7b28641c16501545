"""Tests for input parsing and the two-stage ledger validator."""

import pytest
from datetime import date, datetime
from decimal import Decimal

from cashi.config import LedgerSettings
from cashi.models.ledger import EntryKind
from cashi.validation import LedgerValidator, parse_amount, parse_date, parse_kind


@pytest.fixture
def validator():
    return LedgerValidator(LedgerSettings(enforce_categories=False))


@pytest.fixture
def strict_validator():
    return LedgerValidator(LedgerSettings(enforce_categories=True))


class TestParsers:
    """Tests for the raw input parsers."""

    @pytest.mark.parametrize("value,expected", [
        ("12.5", 12.5),
        (" 7 ", 7.0),
        (3, 3.0),
        (2.25, 2.25),
        (Decimal("1.10"), 1.1),
        ("-4", -4.0),
    ])
    def test_parse_amount_accepts_numbers(self, value, expected):
        assert parse_amount(value) == expected

    @pytest.mark.parametrize("value", ["", "   ", None, "abc", "12abc", "inf", "nan", True, [1], 10**400])
    def test_parse_amount_rejects_non_numbers(self, value):
        assert parse_amount(value) is None

    @pytest.mark.parametrize("value", [
        "2024-01-05",
        " 2024-01-05 ",
        date(2024, 1, 5),
        datetime(2024, 1, 5, 18, 30),
    ])
    def test_parse_date_accepts_iso_days(self, value):
        assert parse_date(value) == "2024-01-05"

    @pytest.mark.parametrize("value", ["", None, "2024-1-5", "2024-13-01", "2023-02-29", "05/01/2024", 20240105])
    def test_parse_date_rejects_everything_else(self, value):
        assert parse_date(value) is None

    def test_parse_kind(self):
        assert parse_kind("Income") == EntryKind.INCOME
        assert parse_kind(EntryKind.EXPENSE) == EntryKind.EXPENSE
        assert parse_kind("refund") is None
        assert parse_kind(None) is None


class TestEntryValidation:
    """Tests for entry validation."""

    def test_valid_entry(self, validator):
        result = validator.validate_entry("expense", " Lunch ", "12.50", "Food", "2024-01-05")
        assert result.is_valid is True
        assert result.schema_valid is True
        assert result.semantic_valid is True
        assert result.issues == []
        assert result.cleaned == {
            "kind": EntryKind.EXPENSE,
            "description": "Lunch",
            "amount": 12.5,
            "category": "Food",
            "date": "2024-01-05",
        }

    @pytest.mark.parametrize("field,args", [
        ("description", ("expense", "", "10", "Food", "2024-01-05")),
        ("amount", ("expense", "Lunch", "", "Food", "2024-01-05")),
        ("amount", ("expense", "Lunch", "ten", "Food", "2024-01-05")),
        ("date", ("expense", "Lunch", "10", "Food", "")),
        ("date", ("expense", "Lunch", "10", "Food", "2024-02-31")),
        ("kind", ("transfer", "Lunch", "10", "Food", "2024-01-05")),
        ("category", ("expense", "Lunch", "10", None, "2024-01-05")),
        ("category", ("expense", "Lunch", "10", "  ", "2024-01-05")),
    ])
    def test_missing_or_unparseable_fields_fail(self, validator, field, args):
        result = validator.validate_entry(*args)
        assert result.is_valid is False
        assert result.schema_valid is False
        assert result.cleaned == {}
        assert any(issue.field == field and issue.severity == "error" for issue in result.issues)

    def test_non_positive_amount_fails(self, validator):
        result = validator.validate_entry("expense", "Refund", "-3", "Food", "2024-01-05")
        assert result.is_valid is False
        assert result.issues[0].issue_type == "invalid_value"

    def test_unknown_category_is_a_warning_by_default(self, validator):
        result = validator.validate_entry("expense", "Gift", "10", "Salary", "2024-01-05")
        assert result.is_valid is True
        assert result.has_errors is False
        assert len(result.warnings) == 1
        assert result.issues[0].issue_type == "unknown_category"

    def test_unknown_category_fails_when_enforced(self, strict_validator):
        result = strict_validator.validate_entry("expense", "Gift", "10", "Salary", "2024-01-05")
        assert result.is_valid is False
        assert result.schema_valid is True
        assert result.semantic_valid is False

    def test_far_future_date_is_a_warning(self, validator):
        result = validator.validate_entry("income", "Pension", "10", "Other", "2999-01-01")
        assert result.is_valid is True
        assert any(issue.issue_type == "future_date" for issue in result.issues)

    def test_semantic_stage_skipped_after_schema_errors(self, validator):
        result = validator.validate_entry("expense", "", "10", "NotACategory", "2024-01-05")
        assert result.semantic_valid is False
        assert all(issue.issue_type != "unknown_category" for issue in result.issues)


class TestGoalValidation:
    """Tests for goal validation."""

    def test_valid_goal(self, validator):
        result = validator.validate_goal("Food", "200")
        assert result.is_valid is True
        assert result.cleaned == {"category": "Food", "amount": 200.0}

    @pytest.mark.parametrize("amount", ["", None, "lots", "-5"])
    def test_bad_goal_amount_fails(self, validator, amount):
        result = validator.validate_goal("Food", amount)
        assert result.is_valid is False
        assert result.cleaned == {}

    def test_zero_goal_amount_is_accepted_with_warning(self, validator):
        result = validator.validate_goal("Food", "0")
        assert result.is_valid is True
        assert result.cleaned["amount"] == 0.0
        assert any(issue.issue_type == "zero_target" for issue in result.issues)

    def test_income_category_goal(self, validator, strict_validator):
        assert validator.validate_goal("Salary", "10").is_valid is True
        assert strict_validator.validate_goal("Salary", "10").is_valid is False


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
