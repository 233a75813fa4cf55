"""
ERP Lens Core - Column Type Classifier
Majority-vote typing of spreadsheet columns into string, number or date
"""

from functools import lru_cache
from typing import Any, Optional

from .dates import EIGHT_DIGIT_DATE, SIX_DIGIT_YEAR_MONTH, extract_year, is_generic_date
from .keywords import IDENTIFIER_KEYWORDS, contains_keyword
from .values import as_text, is_blank, to_number


class ColumnType:
    STRING = "string"
    NUMBER = "number"
    DATE = "date"


MAX_TYPE_SAMPLES = 100
DATE_SHARE_THRESHOLD = 0.8
NUMBER_SHARE_THRESHOLD = 0.9


@lru_cache(maxsize=65536)
def _looks_like_date(text: str) -> bool:
    if EIGHT_DIGIT_DATE.match(text) or SIX_DIGIT_YEAR_MONTH.match(text):
        return True
    # A separator is required so plain integers are never read as dates.
    if '-' not in text and '/' not in text:
        return False
    if to_number(text) is not None:
        return False
    # Year-first shapes count even when the year is a typo (0024/03/15).
    if extract_year(text) > 0:
        return True
    return is_generic_date(text)


def detect_column_type(rows: list[dict[str, Any]], column: Optional[str]) -> str:
    """Classify a column from its header and up to 100 non-blank values"""
    if column is None or str(column).strip() == '':
        return ColumnType.STRING
    if contains_keyword(column, IDENTIFIER_KEYWORDS):
        return ColumnType.STRING

    number_count = 0
    date_count = 0
    sample_count = 0

    for row in rows:
        if sample_count >= MAX_TYPE_SAMPLES:
            break
        value = row.get(column)
        if is_blank(value):
            continue

        sample_count += 1
        if to_number(value) is not None:
            number_count += 1
        if not isinstance(value, bool) and _looks_like_date(as_text(value)):
            date_count += 1

    if sample_count == 0:
        return ColumnType.STRING
    if date_count / sample_count > DATE_SHARE_THRESHOLD:
        return ColumnType.DATE
    if number_count / sample_count > NUMBER_SHARE_THRESHOLD:
        return ColumnType.NUMBER
    return ColumnType.STRING


def get_headers(rows: list[dict[str, Any]]) -> list[str]:
    """Schema of a dataset: the keys of its first row."""
    if not rows:
        return []
    return [str(h) for h in rows[0].keys()]


def classify_columns(rows: list[dict[str, Any]], sample_size: Optional[int] = None) -> dict[str, str]:
    """Type every header once over rows[:sample_size] so callers can reuse the result."""
    sample = rows if sample_size is None else rows[:sample_size]
    return {h: detect_column_type(sample, h) for h in get_headers(rows)}
