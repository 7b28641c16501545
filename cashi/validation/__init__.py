"""Input validation package."""

from cashi.validation.validator import (
    LedgerValidator,
    parse_amount,
    parse_date,
    parse_kind,
)

__all__ = ["LedgerValidator", "parse_amount", "parse_date", "parse_kind"]
