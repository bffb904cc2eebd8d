"""
Parameters — global filters and the ParameterValueMap.

Usage::

    from report_app.services.parameters import ParameterRegistry
"""

from report_app.services.parameters.registry import ParameterRegistry
from report_app.services.parameters.types import get_parameter_type

__all__ = ["ParameterRegistry", "get_parameter_type"]
