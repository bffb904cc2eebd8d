"""
Concrete parameter types.

``get_parameter_type(param)`` wraps a ``Parameter`` definition in the
class matching its ``type``.
"""

from typing import Dict, Type

from report_app.models.dashboard import (
    PARAM_DATE,
    PARAM_DATE_RANGE,
    PARAM_SELECT,
    PARAM_TEXT,
    Parameter,
)
from report_app.services.parameters.base import BaseParameterType
from report_app.services.parameters.types.date import DateParameter
from report_app.services.parameters.types.daterange import DateRangeParameter
from report_app.services.parameters.types.select import SelectParameter
from report_app.services.parameters.types.text import TextParameter

_TYPE_TO_CLASS: Dict[str, Type[BaseParameterType]] = {
    PARAM_TEXT: TextParameter,
    PARAM_DATE: DateParameter,
    PARAM_DATE_RANGE: DateRangeParameter,
    PARAM_SELECT: SelectParameter,
}


def get_parameter_type(param: Parameter) -> BaseParameterType:
    """Instantiate the behavior class for ``param.type``."""
    cls = _TYPE_TO_CLASS.get(param.type, TextParameter)
    return cls(param)


__all__ = [
    "DateParameter",
    "DateRangeParameter",
    "SelectParameter",
    "TextParameter",
    "get_parameter_type",
]
