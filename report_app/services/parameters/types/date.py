"""DateParameter — single date bound as an ISO string."""

from __future__ import annotations

from datetime import date
from typing import Any, Dict

from report_app.services.parameters.base import BaseParameterType


def as_iso(value: Any) -> Any:
    """``date`` / ``datetime`` → ISO string; anything else unchanged."""
    if isinstance(value, date):
        return value.isoformat()
    return value


class DateParameter(BaseParameterType):
    """Single date under ``key``."""

    def seed_values(self) -> Dict[str, Any]:
        default = self.param.default_value
        return {self.key: "" if default is None else as_iso(default)}

    def assign(self, value: Any) -> Dict[str, Any]:
        return {self.key: as_iso(value)}
