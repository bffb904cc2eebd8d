"""
Export — widget records serialization to CSV and Excel.

Single Responsibility: convert a widget's cached records to
downloadable byte formats.  No business logic, no resolution.
"""

from __future__ import annotations

import io
import re
from typing import Any, Iterable, List

import pandas as pd

from report_app.models.data_source import Record

_SHEET_INVALID = re.compile(r"[\[\]:*?/\\]")


def records_to_frame(records: Iterable[Any]) -> pd.DataFrame:
    """
    Build a DataFrame from heterogeneous records.

    Columns are the union of keys, in order of first appearance;
    scalar rows land in a ``value`` column.
    """
    rows: List[Record] = [r if isinstance(r, dict) else {"value": r} for r in records]
    columns: List[str] = []
    for row in rows:
        for key in row:
            if key not in columns:
                columns.append(key)
    return pd.DataFrame(rows, columns=columns)


def records_to_csv(records: Iterable[Any]) -> str:
    """Export records to a CSV string."""
    df = records_to_frame(records)
    if df.empty:
        return ""
    return df.to_csv(index=False)


def records_to_excel_bytes(records: Iterable[Any], sheet_name: str = "Data") -> bytes:
    """Export records to Excel bytes (xlsx)."""
    df = records_to_frame(records)
    if df.empty:
        return b""
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name=_SHEET_INVALID.sub("_", sheet_name)[:31] or "Data")
    return buffer.getvalue()
