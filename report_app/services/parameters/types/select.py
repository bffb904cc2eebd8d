"""
SelectParameter — single choice from ``loaded_options``.

Options come from ``optionsDataSource`` and are refreshed by the
ParameterRegistry.  When no default is configured the first loaded
option is used, so widgets templating on this key get a meaningful
value once options have resolved.
"""

from __future__ import annotations

from typing import Any, Dict

from report_app.services.parameters.base import BaseParameterType


class SelectParameter(BaseParameterType):
    """Single scalar under ``key``; seeded from the default or first option."""

    def seed_values(self) -> Dict[str, Any]:
        default = self.param.default_value
        if default is None and self.param.loaded_options:
            default = self.param.loaded_options[0].value
        return {self.key: "" if default is None else default}
