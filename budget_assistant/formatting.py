"""Formatting utilities for currency, percentages and dates."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Optional, Union

Number = Union[Decimal, float, int]

CENT = Decimal('0.01')


def format_currency(amount: Number, include_sign: bool = True) -> str:
    """Format a currency amount with proper formatting.

    Decimals are rounded half-up to cents before display.

    Example:
        >>> format_currency(Decimal('1234.565'))
        '$1,234.57'
        >>> format_currency(-50, include_sign=False)
        '-50.00'
    """
    value = Decimal(str(amount)).quantize(CENT, rounding=ROUND_HALF_UP)
    formatted = f"{abs(value):,.2f}"
    prefix = "-" if value < 0 else ""
    return f"{prefix}${formatted}" if include_sign else f"{prefix}{formatted}"


def escape_dollar_for_markdown(amount: Number) -> str:
    """Currency string safe to embed in ``st.markdown`` text."""
    return format_currency(amount).replace("$", "\\$")


def format_percent(ratio: Number, digits: int = 0) -> str:
    """Render a ratio (``0.5``) as a percentage string (``'50%'``)."""
    return f"{float(ratio) * 100:.{digits}f}%"


def format_date(value: Optional[Any], fmt: str = "%d %b %Y") -> str:
    if value is None or value == '':
        return "-"
    if isinstance(value, (date, datetime)):
        return value.strftime(fmt)
    return str(value)
