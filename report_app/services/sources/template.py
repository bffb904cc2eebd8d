"""
Template interpolation — binds parameter values into ``{{key}}`` slots.

Pure functions, no side effects.  Anything that is not a well-formed
``{{identifier}}`` placeholder (unmatched braces, inner spaces, empty
names) is left verbatim.
"""

from __future__ import annotations

import re
from typing import Any, List, Mapping, Optional

_PLACEHOLDER = re.compile(r"\{\{(\w+)\}\}")


def format_value(value: Any) -> str:
    """
    Render one parameter value as it appears in a query, URL or body.

    Booleans are lowercase and integral floats drop their ``.0``, so
    ``True`` becomes ``"true"`` and ``2.0`` becomes ``"2"``.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def interpolate(template: Optional[str], values: Mapping[str, Any]) -> str:
    """
    Replace every ``{{name}}`` with ``format_value(values[name])``.

    Missing keys and ``None`` values become an empty string.

    >>> interpolate("{{a}}-{{b}}", {"a": "x"})
    'x-'
    >>> interpolate("flag={{f}}&n={{n}}", {"f": True, "n": 2.0})
    'flag=true&n=2'
    """
    if not template:
        return ""

    def _substitute(match: re.Match) -> str:
        return format_value(values.get(match.group(1)))

    return _PLACEHOLDER.sub(_substitute, template)


def find_placeholders(template: Optional[str]) -> List[str]:
    """Return placeholder names in order of first appearance."""
    if not template:
        return []
    seen: List[str] = []
    for name in _PLACEHOLDER.findall(template):
        if name not in seen:
            seen.append(name)
    return seen
