"""
ERP Lens Core - Dataset Statistics
Full-scope row count, date range and numeric summaries
"""

from typing import Any, Optional

import pandas as pd

from .column_types import ColumnType, classify_columns, get_headers
from .dates import format_local_date, parse_date
from .keywords import DATE_RANGE_KEYWORDS, contains_keyword
from .values import to_number

NUMERIC_SAMPLE_ROWS = 50


def find_date_range_column(headers: list[str]) -> Optional[str]:
    """First header that reads like a date; a cheap name check, no value sampling."""
    return next((h for h in headers if contains_keyword(h, DATE_RANGE_KEYWORDS)), None)


def _date_range(rows: list[dict[str, Any]], date_col: Optional[str]) -> dict[str, str]:
    date_range = {"column": "", "start": "", "end": ""}
    if not date_col:
        return date_range

    timestamps = [ts for ts in (parse_date(row.get(date_col)) for row in rows) if ts > 0]
    if timestamps:
        date_range["column"] = date_col
        date_range["start"] = format_local_date(min(timestamps))
        date_range["end"] = format_local_date(max(timestamps))
    return date_range


def _numeric_summary(rows: list[dict[str, Any]], col: str) -> dict[str, float]:
    values = pd.Series([to_number(row.get(col)) for row in rows], dtype="float64")
    total = float(values.sum())
    minimum = values.min()
    maximum = values.max()
    return {
        "sum": round(total, 2),
        # Rate over the whole population: blank cells stay in the denominator.
        "avg": round(total / len(rows), 2),
        "min": float(minimum) if pd.notna(minimum) else 0.0,
        "max": float(maximum) if pd.notna(maximum) else 0.0,
    }


def compute_dataset_statistics(
    rows: list[dict[str, Any]],
    column_types: Optional[dict[str, str]] = None,
) -> dict:
    """
    Summarize a dataset for reports and the reasoning context.
    column_types may be passed to reuse an earlier classification of rows[:50].
    """
    stats = {
        "row_count": len(rows),
        "date_range": {"column": "", "start": "", "end": ""},
        "numeric_stats": {},
    }
    if not rows:
        return stats

    headers = get_headers(rows)
    if column_types is None:
        column_types = classify_columns(rows, sample_size=NUMERIC_SAMPLE_ROWS)
    numeric_cols = [h for h in headers if column_types.get(h) == ColumnType.NUMBER]

    stats["date_range"] = _date_range(rows, find_date_range_column(headers))
    for col in numeric_cols:
        stats["numeric_stats"][col] = _numeric_summary(rows, col)

    return stats
