"""
ERP Lens Core - Number Formatting
Tooltip and axis labels for reduced chart values
"""

from typing import Any

from .values import is_blank, to_number

_COMPACT_UNITS = ["", "K", "M", "B", "T"]


def _trim(text: str) -> str:
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text


def format_number(value: Any) -> str:
    """1234.567 -> '1,234.57'; text that is not numeric is returned as-is."""
    if is_blank(value):
        return ""
    number = to_number(value)
    if number is None:
        return str(value)
    return _trim(f"{number:,.2f}")


def format_compact_number(value: Any) -> str:
    """1234567 -> '1.2M', 950 -> '950'"""
    if is_blank(value):
        return ""
    number = to_number(value)
    if number is None:
        return str(value)

    magnitude = abs(number)
    unit = 0
    while magnitude >= 1000 and unit < len(_COMPACT_UNITS) - 1:
        magnitude /= 1000
        unit += 1
    magnitude = round(magnitude, 1)
    # 999,950 rounds to 1000K; carry into the next unit instead.
    if magnitude >= 1000 and unit < len(_COMPACT_UNITS) - 1:
        magnitude = round(magnitude / 1000, 1)
        unit += 1

    sign = "-" if number < 0 and magnitude > 0 else ""
    return f"{sign}{_trim(f'{magnitude:.1f}')}{_COMPACT_UNITS[unit]}"
