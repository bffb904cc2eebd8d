"""
ParameterRegistry — parameter definitions + their runtime values.

Single Responsibility: own the ParameterValueMap and keep it consistent
with the parameter definitions held by the DashboardAggregate.

  - ``set_value`` is the only way a UI writes a value; it never
    triggers a refresh.
  - Parameter lifecycle operations (add / update / remove) keep the map
    in step: renaming a key migrates its value exactly once, changing
    the type re-lays the value, removing drops it.
  - ``refresh_options`` re-resolves every ``select`` parameter's option
    list concurrently, isolating failures per parameter.

Usage::

    registry = ParameterRegistry(aggregate, resolver)
    registry.set_value("region", "east")
    await registry.refresh_options()
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

from report_app.models.dashboard import PARAM_DATE_RANGE, PARAM_SELECT, Parameter
from report_app.models.data_source import MODE_STATIC
from report_app.services.dashboard.aggregate import DashboardAggregate
from report_app.services.parameters.types import get_parameter_type
from report_app.services.sources.normalize import records_to_options
from report_app.services.sources.resolver import DataSourceResolver

logger = logging.getLogger(__name__)


class ParameterRegistry:
    """Holds the ParameterValueMap for one dashboard session."""

    def __init__(
        self,
        aggregate: DashboardAggregate,
        resolver: DataSourceResolver,
        values: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._aggregate = aggregate
        self._resolver = resolver
        self._values: Dict[str, Any] = dict(values or {})

    # ── Values ───────────────────────────────────────────────

    @property
    def values(self) -> Dict[str, Any]:
        """Read-only copy of the current ParameterValueMap."""
        return dict(self._values)

    def get_value(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def set_value(self, key: str, value: Any) -> None:
        """
        Overwrite the value for ``key``.  Always succeeds.

        Setting the base key of a ``date-range`` parameter writes its
        ``_start`` / ``_end`` entries instead.
        """
        param = self._aggregate.find_parameter_by_key(key)
        if param is not None and param.type == PARAM_DATE_RANGE:
            self._values.update(get_parameter_type(param).assign(value))
            return
        self._values[key] = value

    def replace_values(self, values: Dict[str, Any]) -> None:
        """Adopt a stored map wholesale (snapshot restore)."""
        self._values = dict(values)

    def reset_from_defaults(self) -> None:
        """Re-derive the whole map from the current parameters' defaults."""
        values: Dict[str, Any] = {}
        for param in self._aggregate.parameters:
            if param.default_value is None:
                continue
            values.update(get_parameter_type(param).seed_values())
        self._values = values

    # ── Lifecycle ────────────────────────────────────────────

    def add_parameter(self, data: Dict[str, Any]) -> Parameter:
        param = self._aggregate.add_parameter(data)
        _apply_static_options(param)
        self._values.update(get_parameter_type(param).seed_values())
        logger.info(f"[Parameters] Added '{param.key}' ({param.type})")
        return param

    def update_parameter(self, param_id: str, updates: Dict[str, Any]) -> Parameter:
        """
        Apply a partial update and keep the value map consistent.

        Key rename → entries migrated to the new key(s), old ones dropped.
        Type change → value re-laid for the new runtime keys.
        """
        previous, updated = self._aggregate.update_parameter(param_id, updates)

        if updated.type != PARAM_SELECT:
            updated.loaded_options = None
        elif "optionsDataSource" in updates:
            _apply_static_options(updated)

        if previous.key != updated.key or previous.type != updated.type:
            self._relayout(previous, updated)

        return updated

    def remove_parameter(self, param_id: str) -> Parameter:
        param = self._aggregate.remove_parameter(param_id)
        for key in get_parameter_type(param).runtime_keys():
            self._values.pop(key, None)
        return param

    # ── Options ──────────────────────────────────────────────

    async def refresh_options(self) -> Dict[str, bool]:
        """
        Re-resolve options for every ``select`` parameter with a source.

        Each parameter is independent: a failure is logged and that
        parameter keeps its previous ``loaded_options``.  Never raises.

        Returns:
            ``{param_id: succeeded}``
        """
        targets = [
            p for p in self._aggregate.parameters
            if p.type == PARAM_SELECT and p.options_data_source is not None
        ]
        if not targets:
            return {}

        values = self.values
        results = await asyncio.gather(
            *(self._refresh_one(p, values) for p in targets),
            return_exceptions=True,
        )

        outcome: Dict[str, bool] = {}
        for param, result in zip(targets, results):
            if isinstance(result, BaseException):
                logger.error(
                    f"[Parameters] Failed to load options for '{param.key}': {result}"
                )
                outcome[param.id] = False
            else:
                outcome[param.id] = True

        logger.info(
            f"[Parameters] Options refreshed: "
            f"{sum(outcome.values())}/{len(outcome)} ok"
        )
        return outcome

    async def _refresh_one(self, param: Parameter, values: Dict[str, Any]) -> None:
        records = await self._resolver.resolve(param.options_data_source, values)
        options = records_to_options(records)

        # The definition may have been edited or removed while resolving
        current = next((p for p in self._aggregate.parameters if p.id == param.id), None)
        if current is None or current.type != PARAM_SELECT:
            return
        current.loaded_options = options

        # Option-backed default: adopt the first option while nothing is chosen
        if current.default_value is None and options and self._values.get(current.key) in (None, ""):
            self._values[current.key] = options[0].value

    # ── Internal ─────────────────────────────────────────────

    def _relayout(self, previous: Parameter, updated: Parameter) -> None:
        old_type = get_parameter_type(previous)
        new_type = get_parameter_type(updated)
        old_keys = old_type.runtime_keys()

        if previous.type == updated.type:
            moved = old_type.migrate(self._values, updated.key)
            for key in old_keys:
                self._values.pop(key, None)
            self._values.update(moved)
            logger.info(
                f"[Parameters] Renamed '{previous.key}' → '{updated.key}'"
            )
            return

        # Type change: carry the first old value over when there is one
        carried = next((self._values[k] for k in old_keys if k in self._values), None)
        for key in old_keys:
            self._values.pop(key, None)
        if carried in (None, ""):
            self._values.update(new_type.seed_values())
        else:
            self._values.update(new_type.assign(carried))


def _apply_static_options(param: Parameter) -> None:
    """Static option sources need no I/O — populate options immediately."""
    source = param.options_data_source
    if param.type == PARAM_SELECT and source is not None and source.mode == MODE_STATIC:
        param.loaded_options = records_to_options(source.static_data)
