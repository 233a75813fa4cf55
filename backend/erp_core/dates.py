"""
ERP Lens Core - Date Normalizer
Compact ERP date codes, generic date strings and year repair helpers
"""

import re
import warnings
from datetime import date, datetime
from functools import lru_cache
from typing import Any, Optional

import pandas as pd

from .values import as_text, is_blank

EIGHT_DIGIT_DATE = re.compile(r'^\d{8}$')
SIX_DIGIT_YEAR_MONTH = re.compile(r'^(19|20)\d{2}(0[1-9]|1[0-2])$')
# Year first, separator delimited: 2025/06/15, 0025-6-1, 2025-06-15 10:30
YEAR_FIRST_DATE = re.compile(r'^(\d{1,4})[-/](\d{1,2})[-/](\d{1,2})(?!\d)')

# Candidate formats for the generic tier, tried in order before free-form parsing.
# US month-first precedes day-first, matching how browsers read ambiguous slashes.
DATE_FORMAT_CANDIDATES = [
    "ISO8601",
    "%Y/%m/%d %H:%M:%S",
    "%Y/%m/%d %H:%M",
    "%Y/%m/%d",
    "%Y.%m.%d",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %I:%M:%S %p",
    "%m/%d/%Y",
    "%d/%m/%Y %H:%M:%S",
    "%d/%m/%Y",
    "%d-%m-%Y %H:%M:%S",
    "%d-%m-%Y",
    "%Y %b %d %I:%M:%S %p",
    "%d %b %Y %H:%M:%S",
    "%d %b %Y",
    "%b %d, %Y",
    "%b %d %Y %H:%M:%S",
]

MS_PER_DAY = 86_400_000


def _to_epoch_ms(moment: Any) -> int:
    """Milliseconds since epoch; naive values are local time. Non-positive results collapse to 0."""
    if moment is None or moment is pd.NaT:
        return 0
    if isinstance(moment, pd.Timestamp):
        moment = moment.to_pydatetime()
    elif isinstance(moment, date) and not isinstance(moment, datetime):
        moment = datetime(moment.year, moment.month, moment.day)
    try:
        ms = round(moment.timestamp() * 1000)
    except (OverflowError, OSError, ValueError):
        return 0
    return ms if ms > 0 else 0


def _calendar_ms(year: int, month: int, day: int) -> int:
    try:
        return _to_epoch_ms(datetime(year, month, day))
    except ValueError:
        return 0


def _parse_generic(text: str) -> int:
    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        for fmt in DATE_FORMAT_CANDIDATES:
            try:
                parsed = pd.to_datetime(text, format=fmt, errors='coerce')
            except (ValueError, TypeError, OverflowError):
                continue
            if not pd.isna(parsed):
                return _to_epoch_ms(parsed)

        # Final fallback for free-form strings ("June 15 2025", "15-Jun-2025").
        try:
            parsed = pd.to_datetime(text, errors='coerce')
        except (ValueError, TypeError, OverflowError):
            return 0
    if pd.isna(parsed):
        return 0
    return _to_epoch_ms(parsed)


@lru_cache(maxsize=65536)
def _parse_text(text: str) -> int:
    if EIGHT_DIGIT_DATE.match(text):
        return _calendar_ms(int(text[:4]), int(text[4:6]), int(text[6:8]))
    if SIX_DIGIT_YEAR_MONTH.match(text):
        return _calendar_ms(int(text[:4]), int(text[4:6]), 1)
    return _parse_generic(text)


def parse_date(value: Any) -> int:
    """
    Parse a cell into epoch milliseconds, or 0 when it is not a valid date.
    Tiers: YYYYMMDD, YYYYMM (day 1), then generic string parsing.
    """
    if is_blank(value) or isinstance(value, bool):
        return 0
    if isinstance(value, (datetime, date)):
        return _to_epoch_ms(value)
    return _parse_text(as_text(value))


def is_generic_date(text: str) -> bool:
    """True when the generic tier can read the text as a date."""
    return _parse_generic(text) > 0


def _year_end(text: str) -> Optional[int]:
    """Index where the year part ends for the two year-first shapes, None otherwise."""
    if EIGHT_DIGIT_DATE.match(text):
        return 4
    match = YEAR_FIRST_DATE.match(text)
    if match and 1 <= int(match.group(2)) <= 12 and 1 <= int(match.group(3)) <= 31:
        return match.end(1)
    return None


def extract_year(value: Any) -> int:
    """Year of an 8-digit or year-first delimited date, 0 when the value has neither shape."""
    if is_blank(value):
        return 0
    text = as_text(value)
    end = _year_end(text)
    return int(text[:end]) if end else 0


def replace_year(value: Any, year: int) -> Optional[str]:
    """Rewrite only the year of a value extract_year understands; None for any other shape."""
    if is_blank(value):
        return None
    text = as_text(value)
    end = _year_end(text)
    if end is None:
        return None
    return f"{year:04d}{text[end:]}"


def format_local_date(ms: int) -> str:
    """YYYY-MM-DD in local time for a positive epoch timestamp."""
    return datetime.fromtimestamp(ms / 1000).strftime('%Y-%m-%d')


def year_of(ms: int) -> int:
    return datetime.fromtimestamp(ms / 1000).year
