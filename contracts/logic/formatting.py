"""
Display formatting shared by the template engine, the notifier and the
PDF renderer (US English conventions).

    format_long_date("2024-01-05")   -> "January 5, 2024"
    format_short_date("2024-01-05")  -> "1/5/2024"
    format_currency(1234.5)          -> "$1,234.50"
    format_plain_number(1234.5)      -> "1234.5"
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional

MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

MISSING_DATE = "TBD"

_DATE_FORMATS = ("%Y-%m-%d", "%m/%d/%Y", "%B %d, %Y", "%b %d, %Y", "%d.%m.%Y")


def parse_date(value: Any) -> Optional[date]:
    """Best-effort conversion of ISO strings, US dates and date objects."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def format_long_date(value: Any, default: str = MISSING_DATE) -> str:
    if value is None or value == "":
        return default
    d = parse_date(value)
    if d is None:
        # unparseable input is shown as given
        return str(value)
    return f"{MONTH_NAMES[d.month - 1]} {d.day}, {d.year}"


def format_short_date(value: Any, default: str = MISSING_DATE) -> str:
    d = parse_date(value)
    if d is None:
        return default if value in (None, "") else str(value)
    return f"{d.month}/{d.day}/{d.year}"


def to_decimal(value: Any) -> Decimal:
    """Numbers and numeric strings ("$1,200.00" included); anything else is 0."""
    if value is None or isinstance(value, bool):
        return Decimal(0)
    if isinstance(value, Decimal):
        return value
    text = str(value).strip().replace("$", "").replace(",", "")
    if not text:
        return Decimal(0)
    try:
        result = Decimal(text)
    except InvalidOperation:
        return Decimal(0)
    return result if result.is_finite() else Decimal(0)


def format_currency(value: Any) -> str:
    amount = to_decimal(value).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"


def format_plain_number(value: Any, default: str = "0") -> str:
    """Unformatted numeric string: no currency sign, no grouping, no padding."""
    if value is None or value == "" or isinstance(value, bool):
        return default
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else repr(value)
    if isinstance(value, (int, Decimal)):
        return str(value)
    return str(value).strip() or default


def title_from_key(key: str) -> str:
    """``PERMIT_NUMBER`` -> ``Permit Number``."""
    return " ".join(part.capitalize() for part in key.split("_") if part)
