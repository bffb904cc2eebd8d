"""
RefreshOrchestrator — Thin coordinator for the refresh pipeline.

Single Responsibility: run refresh cycles over the dashboard.  All
heavy logic is delegated:

  Options   → ParameterRegistry.refresh_options()
  Resolve   → DataSourceResolver.resolve()
  Normalize → normalize_records()
  Storage   → DashboardAggregate.set_widget_data()

``refresh_all()`` flow::

    try_begin (single-flight) → for each widget, concurrently:
        mark loading → resolve → normalize → store   (failure → keep stale)
        finally: clear loading
    → wait for all → end

Callers that need both option lists and widget data up to date must
sequence them: ``refresh_options()`` first, then ``refresh_all()``.
``refresh_dashboard()`` does exactly that.

Usage::

    orchestrator = RefreshOrchestrator(aggregate, registry, resolver)
    summary = await orchestrator.refresh_dashboard()
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from report_app.models.data_source import DataSourceDescriptor, Record
from report_app.services.dashboard.aggregate import DashboardAggregate
from report_app.services.orchestrator.state import RefreshState
from report_app.services.parameters.registry import ParameterRegistry
from report_app.services.sources.normalize import normalize_records
from report_app.services.sources.resolver import DataSourceResolver

logger = logging.getLogger(__name__)


@dataclass
class RefreshSummary:
    """Outcome of one ``refresh_all`` cycle."""
    skipped: bool = False
    succeeded: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    elapsed_seconds: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "skipped": self.skipped,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "elapsedSeconds": round(self.elapsed_seconds, 3),
        }


class RefreshOrchestrator:
    """Coordinates option and widget refreshes for one dashboard session."""

    def __init__(
        self,
        aggregate: DashboardAggregate,
        registry: ParameterRegistry,
        resolver: DataSourceResolver,
        state: Optional[RefreshState] = None,
    ) -> None:
        self._aggregate = aggregate
        self._registry = registry
        self._resolver = resolver
        self.state = state or RefreshState()

    # ─────────────────────────────────────────────────────────
    #  PUBLIC API
    # ─────────────────────────────────────────────────────────

    @property
    def is_refreshing(self) -> bool:
        return self.state.is_refreshing

    def is_widget_loading(self, widget_id: str) -> bool:
        return self.state.is_loading(widget_id)

    async def refresh_options(self) -> Dict[str, bool]:
        """Re-resolve select-parameter options (independent of widgets)."""
        try:
            return await self._registry.refresh_options()
        except Exception as exc:
            logger.exception(f"[Orchestrator] Option refresh failed: {exc}")
            return {}

    async def refresh_all(self) -> RefreshSummary:
        """
        Refresh every widget's data concurrently.

        A call made while a cycle is running returns immediately with
        ``skipped=True``; nothing is queued.  Never raises.
        """
        if not self.state.try_begin():
            logger.info("[Orchestrator] Refresh already running — request dropped")
            return RefreshSummary(skipped=True)

        t0 = time.perf_counter()
        summary = RefreshSummary()
        try:
            widget_ids = [w.id for w in self._aggregate.widgets]
            values = self._registry.values
            outcomes = await asyncio.gather(
                *(self._refresh_widget(wid, values) for wid in widget_ids),
                return_exceptions=True,
            )
            for wid, ok in zip(widget_ids, outcomes):
                (summary.succeeded if ok is True else summary.failed).append(wid)
        except Exception as exc:
            logger.exception(f"[Orchestrator] Global refresh error: {exc}")
        finally:
            self.state.end()

        summary.elapsed_seconds = time.perf_counter() - t0
        _log_summary(summary)
        return summary

    async def refresh_widget(self, widget_id: str) -> bool:
        """
        Refresh a single widget (after editing its source).

        Not gated by the global flag; follows the same loading and
        failure-isolation rules.  Returns ``True`` on success.
        """
        try:
            return await self._refresh_widget(widget_id, self._registry.values)
        except Exception as exc:
            logger.exception(f"[Orchestrator] Widget {widget_id} refresh error: {exc}")
            return False

    async def refresh_dashboard(self) -> RefreshSummary:
        """First-load sequence: options first, then widget data."""
        await self.refresh_options()
        return await self.refresh_all()

    async def preview(
        self,
        descriptor: DataSourceDescriptor,
        normalize: bool = True,
    ) -> List[Record]:
        """
        Resolve an arbitrary descriptor against the current values.

        Touches no widget; errors propagate so the source editor can
        show them.
        """
        records = await self._resolver.resolve(descriptor, self._registry.values)
        return normalize_records(records) if normalize else records

    # ─────────────────────────────────────────────────────────
    #  INTERNAL HELPERS
    # ─────────────────────────────────────────────────────────

    async def _refresh_widget(self, widget_id: str, values: Dict[str, Any]) -> bool:
        """
        Resolve one widget; failures leave its previous data in place.

        The loading flag is cleared in ``finally`` whatever happens.
        """
        if not self._aggregate.has_widget(widget_id):
            return False

        ticket = self.state.start_widget(widget_id)
        try:
            descriptor = self._aggregate.get_widget(widget_id).data_source
            records = await self._resolver.resolve(descriptor, values)
            data = normalize_records(records)

            if not self.state.is_current(widget_id, ticket):
                logger.debug(f"[Orchestrator] Discarding stale result for {widget_id}")
                return False
            if not self._aggregate.set_widget_data(widget_id, data):
                return False

            self.state.clear_error(widget_id)
            return True
        except Exception as exc:
            logger.error(f"[Orchestrator] Failed to refresh widget {widget_id}: {exc}")
            if self.state.is_current(widget_id, ticket):
                self.state.record_error(widget_id, str(exc))
            return False
        finally:
            self.state.finish_widget(widget_id, ticket)


def _log_summary(summary: RefreshSummary) -> None:
    """Log a one-line summary of the completed cycle."""
    logger.info(
        f"[Orchestrator] Refreshed in {summary.elapsed_seconds:.2f}s — "
        f"{len(summary.succeeded)} ok, {len(summary.failed)} failed"
    )
