from __future__ import annotations

from datetime import date
from decimal import Decimal

from contracts.logic.formatting import (
    format_currency,
    format_long_date,
    format_plain_number,
    format_short_date,
    parse_date,
    title_from_key,
    to_decimal,
)


def test_currency() -> None:
    assert format_currency(1234.5) == "$1,234.50"
    assert format_currency("2,500") == "$2,500.00"
    assert format_currency(None) == "$0.00"
    assert format_currency("abc") == "$0.00"
    assert format_currency(-12.345) == "-$12.35"
    assert format_currency(Decimal("0.005")) == "$0.01"


def test_plain_number() -> None:
    assert format_plain_number(1234.5) == "1234.5"
    assert format_plain_number(1500.0) == "1500"
    assert format_plain_number(42) == "42"
    assert format_plain_number(None) == "0"
    assert format_plain_number(" 99 ") == "99"


def test_dates() -> None:
    assert parse_date("2024-01-15") == date(2024, 1, 15)
    assert parse_date("01/15/2024") == date(2024, 1, 15)
    assert parse_date("2024-01-15T12:00:00Z") == date(2024, 1, 15)
    assert parse_date("someday") is None
    assert format_long_date("2024-01-15") == "January 15, 2024"
    assert format_long_date(None) == "TBD"
    assert format_long_date("next spring") == "next spring"
    assert format_short_date(date(2024, 3, 5)) == "3/5/2024"
    assert format_short_date(None, default="") == ""


def test_to_decimal_and_titles() -> None:
    assert to_decimal("$1,200.00") == Decimal("1200.00")
    assert to_decimal(True) == Decimal(0)
    assert to_decimal("nan") == Decimal(0)
    assert title_from_key("PERMIT_NUMBER") == "Permit Number"
