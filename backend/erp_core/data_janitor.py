"""
ERP Lens Core - Data Janitor Module
Year repair, delivery-date logic repair and difference-days recomputation
"""

import math
from datetime import datetime
from typing import Any, Optional

from .column_types import ColumnType, detect_column_type, get_headers
from .dates import MS_PER_DAY, extract_year, parse_date, replace_year, year_of
from .keywords import (
    COLUMN_ROLE_KEYWORDS,
    DATE_HEADER_KEYWORDS,
    DATE_ROLES,
    ROLE_ACTUAL,
    ROLE_DIFFERENCE,
    ROLE_DOCUMENT,
    ROLE_PREDICTED,
    contains_keyword,
)
from .values import is_blank

# Years below this are data-entry defects (0025 typed for 2025).
MIN_PLAUSIBLE_YEAR = 2000
DATE_CANDIDATE_SAMPLE_ROWS = 50


def find_column(
    headers: list[str],
    keywords,
    preferred: Optional[list[str]] = None,
    exclude: Optional[set[str]] = None,
) -> Optional[str]:
    """First header containing a keyword; headers in `preferred` are tried before the rest."""
    exclude = exclude or set()
    tiers = [preferred, headers] if preferred else [headers]
    for tier in tiers:
        for h in tier:
            if h in exclude:
                continue
            if contains_keyword(h, keywords):
                return h
    return None


def find_date_candidates(rows: list[dict[str, Any]], headers: list[str]) -> list[str]:
    """Headers named like dates, or whose sampled values classify as dates."""
    sample = rows[:DATE_CANDIDATE_SAMPLE_ROWS]
    candidates = []
    for h in headers:
        if not h:
            continue
        if contains_keyword(h, DATE_HEADER_KEYWORDS) or detect_column_type(sample, h) == ColumnType.DATE:
            candidates.append(h)
    return candidates


def discover_column_roles(headers: list[str], date_candidates: list[str]) -> dict[str, Optional[str]]:
    """Map each cleaner role to at most one header; a header serves one role only."""
    roles: dict[str, Optional[str]] = {}
    claimed: set[str] = set()
    for role, keywords in COLUMN_ROLE_KEYWORDS.items():
        preferred = date_candidates if role in DATE_ROLES else None
        found = find_column(headers, keywords, preferred=preferred, exclude=claimed)
        roles[role] = found
        if found:
            claimed.add(found)
    return roles


def _reference_year(row: dict[str, Any], doc_col: Optional[str], current_year: int) -> int:
    if doc_col and not is_blank(row.get(doc_col)):
        doc_year = extract_year(row[doc_col])
        if doc_year > MIN_PLAUSIBLE_YEAR:
            return doc_year
    return current_year


def _repair_years(row: dict[str, Any], date_cols: list[str], doc_col: Optional[str], current_year: int) -> list[str]:
    repaired = []
    for col in date_cols:
        value = row.get(col)
        if is_blank(value):
            continue
        year = extract_year(value)
        if not 0 < year < MIN_PLAUSIBLE_YEAR:
            continue
        fixed = replace_year(value, _reference_year(row, doc_col, current_year))
        if fixed is not None:
            row[col] = fixed
            repaired.append(col)
    return repaired


def _repair_predicted_order(row: dict[str, Any], doc_col: str, predicted_col: str) -> bool:
    doc_value = row.get(doc_col)
    predicted_value = row.get(predicted_col)
    if is_blank(doc_value) or is_blank(predicted_value):
        return False

    doc_ts = parse_date(doc_value)
    predicted_ts = parse_date(predicted_value)
    if not (doc_ts > 0 and predicted_ts > 0 and predicted_ts < doc_ts):
        return False

    doc_year = extract_year(doc_value) or year_of(doc_ts)
    fixed = replace_year(predicted_value, doc_year)
    if fixed is None or fixed == predicted_value:
        return False
    row[predicted_col] = fixed
    return True


def _recompute_difference(row: dict[str, Any], predicted_col: str, actual_col: str, diff_col: str) -> bool:
    predicted_value = row.get(predicted_col)
    actual_value = row.get(actual_col)
    if is_blank(predicted_value) or is_blank(actual_value):
        return False

    predicted_ts = parse_date(predicted_value)
    actual_ts = parse_date(actual_value)
    if predicted_ts <= 0 or actual_ts <= 0:
        return False

    diff_days = math.ceil((actual_ts - predicted_ts) / MS_PER_DAY)
    changed = row.get(diff_col) != diff_days
    row[diff_col] = diff_days
    return changed


def clean_dataset_with_report(
    rows: list[dict[str, Any]],
    current_year: Optional[int] = None,
    in_place: bool = False,
) -> tuple[list[dict[str, Any]], list[str]]:
    """
    Repair ERP date defects and return (rows, cleaning_actions).
    With in_place=False the input rows are copied first and left untouched.
    current_year is the fallback for implausible years that have no document date to borrow from;
    None means the wall-clock year.
    """
    if not rows:
        return (rows if in_place or rows is None else list(rows)), []
    if not in_place:
        rows = [dict(row) for row in rows]
    if current_year is None:
        current_year = datetime.now().year

    cleaning_actions = []
    headers = get_headers(rows)

    # 1. Column role discovery
    date_cols = find_date_candidates(rows, headers)
    roles = discover_column_roles(headers, date_cols)
    doc_col = roles[ROLE_DOCUMENT]
    predicted_col = roles[ROLE_PREDICTED]
    actual_col = roles[ROLE_ACTUAL]
    diff_col = roles[ROLE_DIFFERENCE]

    year_fixes: dict[str, int] = {}
    order_fixes = 0
    diff_updates = 0

    for row in rows:
        # 2. Year repair (0025 -> 2025)
        for col in _repair_years(row, date_cols, doc_col, current_year):
            year_fixes[col] = year_fixes.get(col, 0) + 1

        # 3. Predicted date can never precede the document date
        if doc_col and predicted_col and _repair_predicted_order(row, doc_col, predicted_col):
            order_fixes += 1

        # 4. Keep the derived difference consistent with the repaired dates
        if predicted_col and actual_col and diff_col and _recompute_difference(row, predicted_col, actual_col, diff_col):
            diff_updates += 1

    for col, count in year_fixes.items():
        cleaning_actions.append(f"Repaired implausible year in '{col}' for {count} rows")
    if order_fixes:
        cleaning_actions.append(
            f"Aligned '{predicted_col}' year with '{doc_col}' for {order_fixes} rows predicted before the document date"
        )
    if diff_updates:
        cleaning_actions.append(f"Recomputed '{diff_col}' for {diff_updates} rows")

    return rows, cleaning_actions


def clean_dataset_in_place(rows: list[dict[str, Any]], current_year: Optional[int] = None) -> list[dict[str, Any]]:
    """Mutating variant: repairs the caller's rows and returns the same list."""
    cleaned, _ = clean_dataset_with_report(rows, current_year=current_year, in_place=True)
    return cleaned


def clean_dataset(rows: list[dict[str, Any]], current_year: Optional[int] = None) -> list[dict[str, Any]]:
    """Copying variant: returns repaired copies and leaves the input untouched."""
    cleaned, _ = clean_dataset_with_report(rows, current_year=current_year, in_place=False)
    return cleaned
