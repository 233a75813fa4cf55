"""
ERP Lens Backend - Spreadsheet Ingestion
Excel/CSV uploads to row dictionaries, with header-row and best-sheet detection
"""

import io
import math
from datetime import date, datetime
from pathlib import Path
from typing import Any, BinaryIO, TextIO, Union

import numpy as np
import pandas as pd

EXCEL_EXTENSIONS = {".xlsx", ".xlsm"}
CSV_EXTENSIONS = {".csv"}
HEADER_SEARCH_ROWS = 25
SHEETS_TO_CHECK = 3


def read_csv_fast(source: Union[str, Path, TextIO, BinaryIO], **read_options) -> pd.DataFrame:
    """Read CSV using pyarrow when available, with safe fallback."""
    try:
        return pd.read_csv(source, engine="pyarrow", **read_options)
    except Exception:
        if hasattr(source, "seek"):
            source.seek(0)
        return pd.read_csv(source, low_memory=False, **read_options)


def _is_filled(cell: Any) -> bool:
    if cell is None:
        return False
    if isinstance(cell, float) and math.isnan(cell):
        return False
    return str(cell).strip() != ""


def detect_header_row(grid: pd.DataFrame, search_rows: int = HEADER_SEARCH_ROWS) -> tuple[int, int]:
    """(row index, filled cell count) of the fullest row among the first rows; the first such row wins."""
    best_index = 0
    best_filled = 0
    for i in range(min(len(grid), search_rows)):
        filled = sum(1 for cell in grid.iloc[i].tolist() if _is_filled(cell))
        if filled > best_filled:
            best_filled = filled
            best_index = i
    return best_index, best_filled


def _unique_headers(cells: list[Any]) -> list[str]:
    names = []
    for idx, cell in enumerate(cells):
        if not _is_filled(cell):
            names.append(f"Column {idx + 1}")
        elif isinstance(cell, float) and cell.is_integer():
            names.append(str(int(cell)))
        else:
            names.append(str(cell).strip())

    # Handle duplicate column names by appending _2, _3, etc.
    seen = {}
    unique_cols = []
    for col in names:
        if col in seen:
            seen[col] += 1
            unique_cols.append(f"{col}_{seen[col]}")
        else:
            seen[col] = 1
            unique_cols.append(col)
    return unique_cols


def _cell_to_scalar(value: Any) -> Any:
    if value is None or value is pd.NaT or value is pd.NA:
        return None
    if isinstance(value, (pd.Timestamp, datetime)):
        if pd.isna(value):
            return None
        if (value.hour, value.minute, value.second) == (0, 0, 0):
            return value.strftime("%Y-%m-%d")
        return value.strftime("%Y-%m-%d %H:%M:%S")
    if isinstance(value, date):
        return value.strftime("%Y-%m-%d")
    if isinstance(value, np.bool_):
        return bool(value)
    if isinstance(value, np.integer):
        return int(value)
    if isinstance(value, (float, np.floating)):
        return None if math.isnan(value) else float(value)
    return value


def frame_to_rows(df: pd.DataFrame) -> list[dict[str, Any]]:
    """DataFrame -> list of row dicts with plain Python scalars; NaN becomes None."""
    columns = [str(c) for c in df.columns]
    rows = []
    for record in df.itertuples(index=False, name=None):
        rows.append({col: _cell_to_scalar(v) for col, v in zip(columns, record)})
    return rows


def read_excel_rows(source: Union[str, Path, BinaryIO]) -> list[dict[str, Any]]:
    """
    Read the most data-rich of the first three sheets.
    A summary/title sheet in front of the real table loses on (data rows * columns).
    """
    sheets = pd.read_excel(source, sheet_name=None, header=None, dtype=object, engine="openpyxl")
    if not sheets:
        raise ValueError("Excel file has no sheets")

    best_sheet = None
    best_header = 0
    max_score = -1
    for sheet_name in list(sheets.keys())[:SHEETS_TO_CHECK]:
        grid = sheets[sheet_name]
        if grid.empty:
            continue
        header_index, filled = detect_header_row(grid)
        if filled == 0:
            continue
        score = max(0, len(grid) - header_index) * filled
        if score > max_score:
            max_score = score
            best_sheet = sheet_name
            best_header = header_index

    if best_sheet is None:
        best_sheet = next(iter(sheets))
        best_header = 0

    grid = sheets[best_sheet]
    if grid.empty:
        raise ValueError("No data found in the Excel sheet")

    body = grid.iloc[best_header + 1:].copy()
    body.columns = _unique_headers(grid.iloc[best_header].tolist())

    rows = [row for row in frame_to_rows(body) if any(_is_filled(v) for v in row.values())]
    if not rows:
        raise ValueError("No data found in the Excel sheet")
    return rows


def parse_upload(filename: str, content: bytes) -> list[dict[str, Any]]:
    """Dispatch an uploaded file to the matching reader."""
    if not content:
        raise ValueError(f"File '{filename}' is empty")

    suffix = Path(filename or "").suffix.lower()
    if suffix in EXCEL_EXTENSIONS:
        return read_excel_rows(io.BytesIO(content))
    if suffix in CSV_EXTENSIONS:
        try:
            # Cells stay text like the Excel path, so "00123" keeps its leading zeros.
            df = read_csv_fast(io.BytesIO(content), dtype=str)
        except pd.errors.EmptyDataError:
            raise ValueError(f"File '{filename}' is empty")
        rows = frame_to_rows(df)
        if not rows:
            raise ValueError(f"No data found in '{filename}'")
        return rows
    raise ValueError(f"Unsupported file type '{suffix or filename}'. Please upload .xlsx, .xlsm or .csv files.")


def merge_datasets(datasets: list[list[dict[str, Any]]]) -> list[dict[str, Any]]:
    """Concatenate several uploads that share (or roughly share) a schema."""
    merged = []
    for rows in datasets:
        merged.extend(rows)
    return merged
