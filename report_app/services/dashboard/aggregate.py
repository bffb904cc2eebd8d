"""
DashboardAggregate — owns the ordered widgets and parameters.

Single Responsibility: synchronous, in-memory mutations of one
``Dashboard``.  Identity is by id: removing or reordering widgets never
touches another widget's id.

The aggregate knows nothing about parameter *values* (that is the
ParameterRegistry) or loading state (the RefreshOrchestrator).

Updates arrive in the persisted camelCase form (the same shape the UI
sends).  ``dataSource``, ``dataMapping`` and ``optionsDataSource`` are
merged one level deep, so a partial update such as
``{"dataSource": {"mode": "http"}}`` switches mode without discarding
the other source slots.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from report_app.core.errors import EntityNotFoundError
from report_app.models.dashboard import Dashboard, Parameter, Widget, new_id
from report_app.models.data_source import Record

logger = logging.getLogger(__name__)

_NESTED_WIDGET_KEYS = ("dataSource", "dataMapping")
_NESTED_PARAMETER_KEYS = ("optionsDataSource",)


class DashboardAggregate:
    """In-memory dashboard with id-stable widget/parameter operations."""

    def __init__(self, dashboard: Optional[Dashboard] = None) -> None:
        self._dashboard = dashboard or Dashboard()

    @property
    def dashboard(self) -> Dashboard:
        return self._dashboard

    @property
    def widgets(self) -> List[Widget]:
        return self._dashboard.widgets

    @property
    def parameters(self) -> List[Parameter]:
        return self._dashboard.parameters

    def set_title(self, title: str) -> None:
        self._dashboard.title = title

    # ── Widgets ──────────────────────────────────────────────

    def add_widget(self, data: Dict[str, Any]) -> Widget:
        """Append a widget with a freshly generated id."""
        widget = Widget.from_dict({**data, "id": new_id()})
        self._dashboard.widgets.append(widget)
        return widget

    def get_widget(self, widget_id: str) -> Widget:
        return self.widgets[self._widget_index(widget_id)]

    def has_widget(self, widget_id: str) -> bool:
        return any(w.id == widget_id for w in self.widgets)

    def update_widget(self, widget_id: str, updates: Dict[str, Any]) -> Widget:
        """Apply a partial update; the widget keeps its id and position."""
        idx = self._widget_index(widget_id)
        merged = _merge(self.widgets[idx].to_dict(), updates, _NESTED_WIDGET_KEYS)
        merged["id"] = widget_id
        widget = Widget.from_dict(merged)
        self.widgets[idx] = widget
        return widget

    def remove_widget(self, widget_id: str) -> Widget:
        return self.widgets.pop(self._widget_index(widget_id))

    def reorder_widgets(self, ordered_ids: Iterable[str]) -> None:
        """
        Put the listed widgets first, in the given order.

        Widgets not listed keep their relative order after them.
        """
        ordered_ids = list(dict.fromkeys(ordered_ids))
        by_id = {w.id: w for w in self.widgets}
        for wid in ordered_ids:
            if wid not in by_id:
                raise EntityNotFoundError("Widget", wid)
        listed = set(ordered_ids)
        self._dashboard.widgets = (
            [by_id[wid] for wid in ordered_ids]
            + [w for w in self.widgets if w.id not in listed]
        )

    def set_widget_data(self, widget_id: str, data: List[Record]) -> bool:
        """
        Replace a widget's cached data.

        Returns ``False`` (and does nothing) if the widget was removed
        while its data was being resolved.
        """
        for widget in self.widgets:
            if widget.id == widget_id:
                widget.data = data
                return True
        return False

    # ── Parameters ───────────────────────────────────────────

    def add_parameter(self, data: Dict[str, Any]) -> Parameter:
        """Append a parameter with a freshly generated id."""
        param = Parameter.from_dict({**data, "id": new_id()})
        self._dashboard.parameters.append(param)
        return param

    def get_parameter(self, param_id: str) -> Parameter:
        return self.parameters[self._parameter_index(param_id)]

    def find_parameter_by_key(self, key: str) -> Optional[Parameter]:
        return next((p for p in self.parameters if p.key == key), None)

    def update_parameter(
        self,
        param_id: str,
        updates: Dict[str, Any],
    ) -> Tuple[Parameter, Parameter]:
        """
        Apply a partial update.

        Returns ``(previous, updated)`` so callers can react to key or
        type changes.
        """
        idx = self._parameter_index(param_id)
        previous = self.parameters[idx]
        merged = _merge(previous.to_dict(), updates, _NESTED_PARAMETER_KEYS)
        merged["id"] = param_id
        updated = Parameter.from_dict(merged)
        self.parameters[idx] = updated
        return previous, updated

    def remove_parameter(self, param_id: str) -> Parameter:
        return self.parameters.pop(self._parameter_index(param_id))

    # ── Wholesale ────────────────────────────────────────────

    def replace(
        self,
        widgets: Optional[List[Dict[str, Any]]],
        parameters: Optional[List[Dict[str, Any]]],
    ) -> None:
        """
        Swap in a new set of widgets and parameters (e.g. a template).

        Every entity gets a fresh id; title and dashboard id are kept.
        """
        widgets = widgets if isinstance(widgets, list) else []
        parameters = parameters if isinstance(parameters, list) else []
        new_widgets = [Widget.from_dict({**w, "id": new_id()}) for w in widgets]
        new_parameters = [Parameter.from_dict({**p, "id": new_id()}) for p in parameters]
        self._dashboard.widgets = new_widgets
        self._dashboard.parameters = new_parameters
        logger.info(
            f"[Dashboard] Replaced content: {len(self.widgets)} widgets, "
            f"{len(self.parameters)} parameters"
        )

    def load(self, dashboard: Dashboard) -> None:
        """Adopt a complete dashboard as-is (ids preserved)."""
        self._dashboard = dashboard

    def to_dict(self) -> Dict[str, Any]:
        return self._dashboard.to_dict()

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "DashboardAggregate":
        return cls(Dashboard.from_dict(raw))

    # ── Internal ─────────────────────────────────────────────

    def _widget_index(self, widget_id: str) -> int:
        for idx, widget in enumerate(self.widgets):
            if widget.id == widget_id:
                return idx
        raise EntityNotFoundError("Widget", widget_id)

    def _parameter_index(self, param_id: str) -> int:
        for idx, param in enumerate(self.parameters):
            if param.id == param_id:
                return idx
        raise EntityNotFoundError("Parameter", param_id)


def _merge(
    current: Dict[str, Any],
    updates: Dict[str, Any],
    nested_keys: Tuple[str, ...],
) -> Dict[str, Any]:
    """Shallow merge, except ``nested_keys`` which merge one level deeper."""
    merged = dict(current)
    for key, value in updates.items():
        if key in nested_keys and isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = {**merged[key], **value}
        else:
            merged[key] = value
    return merged
