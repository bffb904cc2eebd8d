"""
ReportSession — the explicit state object for one dashboard.

Wires the DashboardAggregate, ParameterRegistry, RefreshOrchestrator,
editor UI state, global settings and the optional ReportAssistant
together.  Nothing here is a
module-level singleton: the API layer creates one session and hands it
to request handlers.

Full resets (``replace_dashboard``, ``load_dashboard``, ``restore``)
re-derive or adopt the ParameterValueMap and clear editor state; they
never merge with what was there before.

Persisted blob::

    {"currentDashboard": {...}, "settings": {...}, "parameterValues": {...}}
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from report_app.core.config import Settings
from report_app.models.dashboard import AIConfig, Dashboard, GlobalSettings, Widget
from report_app.services.assistant import ReportAssistant, build_assistant
from report_app.services.dashboard.aggregate import DashboardAggregate
from report_app.services.dashboard.templates import DashboardTemplate
from report_app.services.orchestrator import RefreshOrchestrator, RefreshSummary
from report_app.services.parameters import ParameterRegistry
from report_app.services.sources import (
    DataSourceResolver,
    HttpSourceClient,
    build_query_executor,
)

logger = logging.getLogger(__name__)


@dataclass
class EditorState:
    """Selection and panel flags read by the UI layer."""
    selected_widget_id: Optional[str] = None
    sidebar_open: bool = False
    filter_editor_open: bool = False
    template_gallery_open: bool = False

    def reset(self) -> None:
        self.selected_widget_id = None
        self.sidebar_open = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "selectedWidgetId": self.selected_widget_id,
            "sidebarOpen": self.sidebar_open,
            "filterEditorOpen": self.filter_editor_open,
            "templateGalleryOpen": self.template_gallery_open,
        }


class ReportSession:
    """One dashboard, its parameter values and its refresh machinery."""

    def __init__(
        self,
        resolver: DataSourceResolver,
        dashboard: Optional[Dashboard] = None,
        settings: Optional[Settings] = None,
        global_settings: Optional[GlobalSettings] = None,
        assistant: Optional[ReportAssistant] = None,
    ) -> None:
        self._settings = settings
        self.assistant = assistant
        self.resolver = resolver
        self.aggregate = DashboardAggregate(dashboard)
        self.registry = ParameterRegistry(self.aggregate, resolver)
        self.orchestrator = RefreshOrchestrator(self.aggregate, self.registry, resolver)
        self.editor = EditorState()
        self.global_settings = global_settings or GlobalSettings()
        self.registry.reset_from_defaults()

    @classmethod
    def from_settings(cls, settings: Settings) -> "ReportSession":
        """Build a session with the HTTP client, query executor and assistant from settings."""
        resolver = DataSourceResolver(
            http_client=HttpSourceClient(timeout=settings.HTTP_TIMEOUT),
            query_executor=build_query_executor(settings),
        )
        return cls(resolver, settings=settings, assistant=build_assistant(settings))

    @property
    def dashboard(self) -> Dashboard:
        return self.aggregate.dashboard

    # ── Dashboard lifecycle ──────────────────────────────────

    def replace_dashboard(
        self,
        widgets: Optional[List[Dict[str, Any]]],
        parameters: Optional[List[Dict[str, Any]]] = None,
        title: Optional[str] = None,
    ) -> None:
        """Swap in new content; values re-derived from defaults, editor cleared."""
        self.aggregate.replace(widgets, parameters)
        if title:
            self.aggregate.set_title(title)
        self._reset_runtime()

    def load_dashboard(self, dashboard: Dashboard) -> None:
        """Adopt a complete dashboard; values re-derived from defaults."""
        self.aggregate.load(dashboard)
        self._reset_runtime()

    async def apply_template(self, template: DashboardTemplate) -> RefreshSummary:
        """Replace with a template, then run the options → widgets sequence."""
        self.replace_dashboard(template.widgets, template.parameters, title=template.name)
        self.editor.template_gallery_open = False
        logger.info(f"[Session] Applied template '{template.template_id}'")
        return await self.orchestrator.refresh_dashboard()

    # ── Widgets / selection ──────────────────────────────────

    def select_widget(self, widget_id: Optional[str]) -> None:
        if widget_id is not None:
            self.aggregate.get_widget(widget_id)
        self.editor.selected_widget_id = widget_id
        self.editor.sidebar_open = widget_id is not None

    def remove_widget(self, widget_id: str) -> Widget:
        widget = self.aggregate.remove_widget(widget_id)
        self.orchestrator.state.forget(widget_id)
        if self.editor.selected_widget_id == widget_id:
            self.editor.reset()
        return widget

    # ── Settings ─────────────────────────────────────────────

    def update_settings(
        self,
        theme: Optional[str] = None,
        ai: Optional[Dict[str, Any]] = None,
    ) -> GlobalSettings:
        """Update theme / AI config; AI changes rebuild the query executor and assistant."""
        if theme:
            self.global_settings.theme = theme
        if ai is not None:
            merged = {**self.global_settings.ai.to_dict(), **ai}
            self.global_settings.ai = AIConfig.from_dict(merged)
            if self._settings is not None:
                self.resolver.set_query_executor(
                    build_query_executor(self._settings, self.global_settings.ai)
                )
                self.assistant = build_assistant(self._settings, self.global_settings.ai)
        return self.global_settings

    # ── Persistence ──────────────────────────────────────────

    def snapshot(self) -> Dict[str, Any]:
        return {
            "currentDashboard": self.aggregate.to_dict(),
            "settings": self.global_settings.to_dict(),
            "parameterValues": self.registry.values,
        }

    def restore(self, blob: Dict[str, Any]) -> None:
        """Rebuild dashboard, settings and the stored parameter values."""
        raw_dashboard = blob.get("currentDashboard")
        dashboard = Dashboard.from_dict(raw_dashboard) if raw_dashboard else Dashboard()
        self.aggregate.load(dashboard)
        self.orchestrator.state.reset()
        self.editor.reset()

        if "settings" in blob:
            settings = GlobalSettings.from_dict(blob.get("settings"))
            self.update_settings(theme=settings.theme, ai=settings.ai.to_dict())

        values = blob.get("parameterValues")
        if isinstance(values, dict):
            self.registry.replace_values(values)
        else:
            self.registry.reset_from_defaults()

    # ── Internal ─────────────────────────────────────────────

    def _reset_runtime(self) -> None:
        self.registry.reset_from_defaults()
        self.orchestrator.state.reset()
        self.editor.reset()
