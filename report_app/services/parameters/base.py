"""
Base parameter-type behavior.

Defines the contract every parameter type follows when it touches the
ParameterValueMap:

  - ``runtime_keys()``  → keys this parameter occupies in the map.
  - ``seed_values()``   → initial map entries derived from the default.
  - ``assign(value)``   → map entries produced by ``set_value(key, value)``.

Plain ``text`` / ``date`` / ``select`` parameters occupy their own key;
``date-range`` occupies ``<key>_start`` and ``<key>_end``.
"""

from __future__ import annotations

from abc import ABC
from typing import Any, Dict, List

from report_app.models.dashboard import Parameter


class BaseParameterType(ABC):
    """
    Wraps one ``Parameter`` definition.

    Subclasses override the three hooks when their runtime layout
    differs from a single scalar under ``key``.
    """

    def __init__(self, param: Parameter) -> None:
        self.param = param

    @property
    def key(self) -> str:
        return self.param.key

    def runtime_keys(self) -> List[str]:
        return [self.key]

    def seed_values(self) -> Dict[str, Any]:
        default = self.param.default_value
        return {self.key: "" if default is None else default}

    def assign(self, value: Any) -> Dict[str, Any]:
        return {self.key: value}

    def migrate(self, values: Dict[str, Any], new_key: str) -> Dict[str, Any]:
        """
        Return the entries this parameter owns in ``values`` re-keyed for
        ``new_key``.  Keys with no entry are not created.
        """
        renamed = type(self)(_with_key(self.param, new_key))
        out: Dict[str, Any] = {}
        for old, new in zip(self.runtime_keys(), renamed.runtime_keys()):
            if old in values:
                out[new] = values[old]
        return out


def _with_key(param: Parameter, key: str) -> Parameter:
    return Parameter(
        id=param.id,
        key=key,
        label=param.label,
        type=param.type,
        default_value=param.default_value,
    )
