"""
ERP Lens Core - Aggregation Module
Reduction-mode selection, grouping, and chart ordering/truncation
"""

from typing import Any

import pandas as pd

from .column_types import ColumnType, detect_column_type
from .dates import parse_date
from .keywords import AVERAGE_MODE_KEYWORDS, COUNT_MODE_KEYWORDS, DATE_AXIS_KEYWORDS, contains_keyword
from .values import as_text, is_blank, leading_number, to_number

MAX_CHART_POINTS = 12
AXIS_TYPE_SAMPLE_ROWS = 20


class ReductionMode:
    SUM = "sum"
    COUNT = "count"
    AVERAGE = "average"


def detect_reduction_mode(rows: list[dict[str, Any]], value_column: str) -> str:
    """Pick sum/count/average from the value column's name, guarding against summing text"""
    value_column = str(value_column)
    if contains_keyword(value_column, AVERAGE_MODE_KEYWORDS):
        return ReductionMode.AVERAGE
    if contains_keyword(value_column, COUNT_MODE_KEYWORDS):
        return ReductionMode.COUNT

    first_value = next((row.get(value_column) for row in rows if not is_blank(row.get(value_column))), None)
    if isinstance(first_value, str) and to_number(first_value) is None:
        return ReductionMode.COUNT
    return ReductionMode.SUM


def is_date_axis(rows: list[dict[str, Any]], category_column: str) -> bool:
    if contains_keyword(category_column, DATE_AXIS_KEYWORDS):
        return True
    return detect_column_type(rows[:AXIS_TYPE_SAMPLE_ROWS], category_column) == ColumnType.DATE


def _chronological_key(point: dict[str, Any]) -> tuple:
    # Dated groups rank above undated ones; undated groups compare by their raw text.
    label = point["name"]
    ts = parse_date(label)
    return (1, ts) if ts > 0 else (0, label)


def _group(rows: list[dict[str, Any]], category_column: str, value_column: str, mode: str) -> pd.DataFrame:
    keys = []
    contributions = []
    for row in rows:
        category = row.get(category_column)
        if is_blank(category):
            continue
        keys.append(as_text(category))
        if mode == ReductionMode.COUNT:
            contributions.append(1.0)
        else:
            number = leading_number(row.get(value_column))
            contributions.append(number if number is not None else 0.0)

    frame = pd.DataFrame({"key": keys, "contribution": contributions})
    return frame.groupby("key", sort=False)["contribution"].agg(["sum", "count"])


def aggregate_rows(rows: list[dict[str, Any]], category_column: str, value_column: str) -> list[dict[str, Any]]:
    """
    Group rows by a category column and reduce a value column into at most 12 chart points.
    Date-like categories keep the 12 most recent periods in chronological order;
    other categories keep the 12 largest values, largest first.
    """
    if not rows or not category_column or not value_column:
        return []
    category_column = str(category_column)
    value_column = str(value_column)

    mode = detect_reduction_mode(rows, value_column)
    grouped = _group(rows, category_column, value_column, mode)
    if grouped.empty:
        return []

    if mode == ReductionMode.AVERAGE:
        values = grouped["sum"] / grouped["count"]
    else:
        values = grouped["sum"]

    points = [
        # Category written last so it wins when both keys name the same column.
        {value_column: float(value), category_column: name, "name": name, "value": float(value)}
        for name, value in values.items()
    ]

    if is_date_axis(rows, category_column):
        recent = sorted(points, key=_chronological_key, reverse=True)[:MAX_CHART_POINTS]
        return sorted(recent, key=_chronological_key)
    return sorted(points, key=lambda p: p["value"], reverse=True)[:MAX_CHART_POINTS]


def drill_down(rows: list[dict[str, Any]], column: str, value: Any) -> list[dict[str, Any]]:
    """Rows whose category text equals the selected value; the input is not modified."""
    if not rows or not column:
        return []
    target = as_text(value)
    return [row for row in rows if not is_blank(row.get(column)) and as_text(row.get(column)) == target]
