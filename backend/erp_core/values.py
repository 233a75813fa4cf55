"""
ERP Lens Core - Scalar Helpers
Blank detection, numeric coercion and text rendering of spreadsheet cell values
"""

import math
import re
from typing import Any, Optional

_NUMERIC_LITERAL = re.compile(r'^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$')


def is_blank(value: Any) -> bool:
    """None, empty/whitespace strings and NaN all count as an absent cell."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ''
    if isinstance(value, float):
        return math.isnan(value)
    return False


def as_text(value: Any) -> str:
    """Render a cell the way it was most likely typed (20250615.0 -> '20250615')."""
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def to_number(value: Any) -> Optional[float]:
    """Finite float for numeric cells and numeric-looking text, otherwise None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
        return number if math.isfinite(number) else None
    text = str(value).strip()
    if not _NUMERIC_LITERAL.match(text):
        return None
    number = float(text)
    return number if math.isfinite(number) else None


_LEADING_NUMBER = re.compile(r'^\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?')


def leading_number(value: Any) -> Optional[float]:
    """Like to_number, but reads the number a text cell starts with ('85%' -> 85.0, '12 pcs' -> 12.0)."""
    number = to_number(value)
    if number is not None or value is None or isinstance(value, (bool, int, float)):
        return number
    match = _LEADING_NUMBER.match(str(value))
    if not match:
        return None
    number = float(match.group(0))
    return number if math.isfinite(number) else None
