"""
RefreshState — explicit container for refresh bookkeeping.

Holds the global ``is_refreshing`` flag, per-widget loading flags, the
last error seen per widget, and per-widget resolution tickets.  Only
the RefreshOrchestrator mutates it; the UI layer reads it.

Tickets: every widget resolution takes the next number from a
monotonically increasing counter.  A result is applied only while its
ticket is still the newest one issued for that widget, so a slow,
older resolution can never overwrite a newer one.
"""

from __future__ import annotations

import itertools
from typing import Dict, Optional


class RefreshState:
    """Mutable refresh flags for one dashboard session."""

    __slots__ = ("is_refreshing", "_loading", "_errors", "_tickets", "_counter")

    def __init__(self) -> None:
        self.is_refreshing = False
        self._loading: Dict[str, bool] = {}
        self._errors: Dict[str, str] = {}
        self._tickets: Dict[str, int] = {}
        self._counter = itertools.count(1)

    # ── Global flag ──────────────────────────────────────────

    def try_begin(self) -> bool:
        """
        Check-and-set the refreshing flag.

        Returns ``False`` if a refresh cycle is already running.
        Contains no ``await``, so it is atomic on the event loop.
        """
        if self.is_refreshing:
            return False
        self.is_refreshing = True
        return True

    def end(self) -> None:
        self.is_refreshing = False

    # ── Per-widget ───────────────────────────────────────────

    def start_widget(self, widget_id: str) -> int:
        """Mark a widget loading and issue its resolution ticket."""
        ticket = next(self._counter)
        self._tickets[widget_id] = ticket
        self._loading[widget_id] = True
        return ticket

    def is_current(self, widget_id: str, ticket: int) -> bool:
        return self._tickets.get(widget_id) == ticket

    def finish_widget(self, widget_id: str, ticket: int) -> None:
        """Clear the loading flag unless a newer resolution took over."""
        if self.is_current(widget_id, ticket):
            self._loading[widget_id] = False

    def record_error(self, widget_id: str, message: str) -> None:
        self._errors[widget_id] = message

    def clear_error(self, widget_id: str) -> None:
        self._errors.pop(widget_id, None)

    def is_loading(self, widget_id: str) -> bool:
        return self._loading.get(widget_id, False)

    def last_error(self, widget_id: str) -> Optional[str]:
        return self._errors.get(widget_id)

    def forget(self, widget_id: str) -> None:
        """Drop all bookkeeping for a removed widget."""
        self._loading.pop(widget_id, None)
        self._errors.pop(widget_id, None)
        self._tickets.pop(widget_id, None)

    def reset(self) -> None:
        """Drop per-widget bookkeeping (dashboard replaced)."""
        self._loading.clear()
        self._errors.clear()
        self._tickets.clear()

    # ── Read accessors ───────────────────────────────────────

    @property
    def loading(self) -> Dict[str, bool]:
        return dict(self._loading)

    @property
    def errors(self) -> Dict[str, str]:
        return dict(self._errors)

    def to_dict(self) -> Dict[str, object]:
        return {
            "isRefreshing": self.is_refreshing,
            "widgetLoading": self.loading,
            "widgetErrors": self.errors,
        }
