"""TextParameter — free-text input bound as a single value."""

from __future__ import annotations

from report_app.services.parameters.base import BaseParameterType


class TextParameter(BaseParameterType):
    """Single scalar under ``key``; default falls back to ``""``."""
