"""
Excel parser for monthly attendance uploads.

Expected columns (case-insensitive, any of the aliases):
  Employee Name / employee / name / full_name
  Date / day / attendance date
  In-Time / in time / check in / time in
  Out-Time / out time / check out / time out

When no header row can be recognised the first four columns are taken in
that order, which matches the plain four-column template.
"""

from __future__ import annotations

import logging
from datetime import time
from typing import IO, Any

import numpy as np
import pandas as pd

from leave_analyzer.services.record_builder import RawRow

logger = logging.getLogger(__name__)

COLUMN_ALIASES: dict[str, list[str]] = {
    "employee_name": [
        "employee name", "employee_name", "employee", "name", "full_name",
        "full name", "emp name",
    ],
    "date_value": [
        "date", "day", "attendance date", "attendance_date", "work date",
    ],
    "in_time": [
        "in-time", "in time", "in_time", "intime", "check in", "check-in",
        "time in", "punch in",
    ],
    "out_time": [
        "out-time", "out time", "out_time", "outtime", "check out", "check-out",
        "time out", "punch out",
    ],
}

_CANONICAL_ORDER: tuple[str, ...] = ("employee_name", "date_value", "in_time", "out_time")

# Flat set of all known aliases, used for header row detection
_ALL_ALIASES: frozenset[str] = frozenset(
    alias for aliases in COLUMN_ALIASES.values() for alias in aliases
)


def _find_header_row(file: IO[bytes]) -> int | None:
    """
    Scan the first 20 rows looking for the one that contains the most
    column-alias matches.  Returns the 0-based row index, or None when no row
    looks like a header.
    """
    try:
        probe = pd.read_excel(file, engine="openpyxl", dtype=str, nrows=20, header=None)
    except Exception:
        return None
    finally:
        # Always reset so the caller can read the file again
        file.seek(0)

    best_row, best_score = 0, 0
    for row_idx, row in probe.iterrows():
        score = sum(
            1 for cell in row
            if isinstance(cell, str) and cell.lower().strip() in _ALL_ALIASES
        )
        if score > best_score:
            best_score = score
            best_row = int(row_idx)

    return best_row if best_score >= 2 else None


def _normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Rename DataFrame columns to canonical names using COLUMN_ALIASES."""
    lower_cols = {str(c).lower().strip(): c for c in df.columns}
    rename_map: dict[Any, str] = {}
    for canonical, aliases in COLUMN_ALIASES.items():
        for alias in aliases:
            if alias in lower_cols:
                rename_map[lower_cols[alias]] = canonical
                break
    return df.rename(columns=rename_map)


def _to_native(value: Any) -> Any:
    """Convert a pandas cell to a plain Python value, mapping blanks to None."""
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, time):
        return value
    if value is None or pd.isna(value):
        return None
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    if isinstance(value, np.generic):
        return value.item()
    return value


def parse_attendance_sheet(file: IO[bytes]) -> tuple[list[RawRow], list[str]]:
    """
    Read the first worksheet into raw rows.

    Returns ``(rows, errors)``; ``errors`` is non-empty only when the workbook
    itself cannot be used (unreadable file, too few columns).  Row-level
    problems are left to the record builder.
    """
    header_row = _find_header_row(file)

    try:
        # Unrecognised headers: the first row is still treated as a header
        df = pd.read_excel(file, engine="openpyxl", header=header_row or 0)
    except Exception as exc:
        return [], [f"Could not open file: {exc}"]

    # header_row is 0-based and the header itself takes one row
    data_row_offset = (header_row or 0) + 2

    if header_row is None:
        if df.shape[1] < 4:
            return [], ["Expected at least four columns: employee name, date, in-time, out-time"]
        df = df.iloc[:, :4]
        df.columns = list(_CANONICAL_ORDER)
    else:
        df = _normalize_columns(df)
        missing = [c for c in ("employee_name", "date_value") if c not in df.columns]
        if missing:
            return [], [f"Missing required columns: {', '.join(missing)}"]
        for optional in ("in_time", "out_time"):
            if optional not in df.columns:
                df[optional] = None

    rows: list[RawRow] = []
    for i, record in enumerate(
        df[list(_CANONICAL_ORDER)].itertuples(index=False), start=data_row_offset
    ):
        rows.append(
            RawRow(
                employee_name=_to_native(record.employee_name),
                date_value=_to_native(record.date_value),
                in_time=_to_native(record.in_time),
                out_time=_to_native(record.out_time),
                row_number=i,
            )
        )

    logger.info(
        "Sheet parsed: rows=%d, header_row=%s", len(rows),
        header_row if header_row is not None else "none (positional)",
    )
    return rows, []
