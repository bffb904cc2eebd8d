"""
DateRangeParameter — start/end pair.

Never stored under ``key`` itself.  Templates bind
``{{<key>_start}}`` and ``{{<key>_end}}``.
"""

from __future__ import annotations

from typing import Any, Dict, List, Tuple

from report_app.services.parameters.base import BaseParameterType
from report_app.services.parameters.types.date import as_iso

START_SUFFIX = "_start"
END_SUFFIX = "_end"


class DateRangeParameter(BaseParameterType):
    """Expands into ``<key>_start`` / ``<key>_end``."""

    @property
    def start_key(self) -> str:
        return f"{self.key}{START_SUFFIX}"

    @property
    def end_key(self) -> str:
        return f"{self.key}{END_SUFFIX}"

    def runtime_keys(self) -> List[str]:
        return [self.start_key, self.end_key]

    def seed_values(self) -> Dict[str, Any]:
        start, end = split_range(self.param.default_value)
        return {self.start_key: start, self.end_key: end}

    def assign(self, value: Any) -> Dict[str, Any]:
        start, end = split_range(value)
        return {self.start_key: start, self.end_key: end}


def split_range(value: Any) -> Tuple[Any, Any]:
    """
    Accepts ``{"start": .., "end": ..}``, a 2-item list/tuple, or a
    single value (used for both bounds).  ``None`` gives empty bounds.
    """
    if value is None:
        return "", ""
    if isinstance(value, dict):
        return (
            as_iso(value.get("start", "")) or "",
            as_iso(value.get("end", "")) or "",
        )
    if isinstance(value, (list, tuple)) and len(value) == 2:
        return as_iso(value[0]), as_iso(value[1])
    value = as_iso(value)
    return value, value
