"""
Record normalization — applied to resolved records before they reach
a widget or a select parameter.

Upstream sources (simulated queries, ad-hoc APIs) often return
numbers as strings and label rows with ``title`` or ``id`` instead of
``name``.  These helpers smooth that out at the boundary; nothing
downstream assumes a fixed record shape.
"""

from __future__ import annotations

import math
import re
from typing import Any, Dict, Iterable, List

from report_app.models.dashboard import ParameterOption
from report_app.models.data_source import Record

_INTEGER = re.compile(r"[+-]?\d+")
_DECIMAL = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")


def coerce_numeric(value: Any) -> Any:
    """
    Convert a string that reads cleanly as a finite number.

    ``"12"`` → ``12``, ``" 1.5 "`` → ``1.5``, ``"1e3"`` → ``1000.0``.
    Anything else (including non-strings and blank strings) is returned
    unchanged.
    """
    if not isinstance(value, str):
        return value
    text = value.strip()
    if not text:
        return value
    if _INTEGER.fullmatch(text):
        return int(text)
    if _DECIMAL.fullmatch(text):
        number = float(text)
        return number if math.isfinite(number) else value
    return value


def normalize_record(item: Any) -> Record:
    """Normalize one row; non-mapping rows are wrapped as ``{"value": item}``."""
    if not isinstance(item, dict):
        return {"value": item}

    record: Dict[str, Any] = {key: coerce_numeric(val) for key, val in item.items()}

    if record.get("name") is None:
        fallback = record.get("title") or record.get("id")
        if fallback:
            record["name"] = fallback

    return record


def normalize_records(items: Iterable[Any]) -> List[Record]:
    """Normalize a whole sequence; the input records are not mutated."""
    return [normalize_record(item) for item in items]


def records_to_options(records: Iterable[Any]) -> List[ParameterOption]:
    """
    Map raw records to ``(label, value)`` options.

    label: ``label`` → ``name`` → ``text`` → ``str(value)``
    value: ``value`` if present, else ``id``
    """
    options: List[ParameterOption] = []
    for item in records:
        if not isinstance(item, dict):
            item = {"value": item}
        value = item["value"] if "value" in item else item.get("id")
        label = (
            item.get("label")
            or item.get("name")
            or item.get("text")
            or ("" if item.get("value") is None else str(item["value"]))
        )
        options.append(ParameterOption(label=str(label), value=value))
    return options
