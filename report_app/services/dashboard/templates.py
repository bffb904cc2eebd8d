"""
TemplateCatalog — YAML loader for dashboard blueprints.

Single Responsibility: parse ``dashboard_templates.yml`` into typed
dataclasses and answer paginated searches.  Applying a template is the
ReportSession's job.

Usage::

    from report_app.services.dashboard.templates import TemplateCatalog

    catalog = TemplateCatalog(settings.TEMPLATES_PATH)
    page = catalog.search("sales", page=1, page_size=6)
    tpl = catalog.get("sales-overview")            # DashboardTemplate | None
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 6


# ── Dataclass ────────────────────────────────────────────────────

@dataclass(frozen=True)
class DashboardTemplate:
    """
    Immutable blueprint for a whole dashboard.

    Parsed from one entry in the templates YAML.  ``widgets`` and
    ``parameters`` are kept in their persisted (camelCase) form so they
    can be handed straight to ``ReportSession.replace_dashboard``.
    """
    template_id: str
    name: str
    description: str = ""
    category: str = "general"
    widgets: List[Dict[str, Any]] = field(default_factory=list)
    parameters: List[Dict[str, Any]] = field(default_factory=list)

    def summary(self) -> Dict[str, Any]:
        return {
            "id": self.template_id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "widgetCount": len(self.widgets),
            "parameterCount": len(self.parameters),
        }


# ── Loader ───────────────────────────────────────────────────────

class TemplateCatalog:
    """
    Loads and caches dashboard templates from YAML.

    The YAML is read once on first access and cached in memory.
    Call ``reload()`` to re-read after manual edits.
    """

    def __init__(self, config_path: Path) -> None:
        self._config_path = Path(config_path)
        self._templates: Dict[str, DashboardTemplate] = {}
        self._loaded = False

    def get_all(self) -> List[DashboardTemplate]:
        self._ensure_loaded()
        return list(self._templates.values())

    def get(self, template_id: str) -> Optional[DashboardTemplate]:
        self._ensure_loaded()
        return self._templates.get(template_id)

    def search(
        self,
        query: str = "",
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> Dict[str, Any]:
        """
        Case-insensitive match on name and description, paginated.

        Returns::

            {"data": [summary, ...],
             "pagination": {"page", "pageSize", "total", "totalPages"}}
        """
        page = max(page, 1)
        page_size = max(page_size, 1)
        needle = (query or "").strip().lower()

        matches = [
            t for t in self.get_all()
            if not needle
            or needle in t.name.lower()
            or needle in t.description.lower()
        ]
        start = (page - 1) * page_size
        return {
            "data": [t.summary() for t in matches[start:start + page_size]],
            "pagination": {
                "page": page,
                "pageSize": page_size,
                "total": len(matches),
                "totalPages": math.ceil(len(matches) / page_size),
            },
        }

    def reload(self) -> None:
        """Force re-read of the YAML file."""
        self._loaded = False
        self._templates.clear()
        self._ensure_loaded()

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    # ── Internal ─────────────────────────────────────────────

    def _ensure_loaded(self) -> None:
        if self._loaded:
            return
        self._load()

    def _load(self) -> None:
        """Parse the YAML file into DashboardTemplate dataclasses."""
        if not self._config_path.exists():
            logger.warning(f"[Templates] Config file not found: {self._config_path}")
            self._loaded = True
            return

        try:
            raw = yaml.safe_load(self._config_path.read_text(encoding="utf-8"))
        except yaml.YAMLError as exc:
            logger.error(f"[Templates] YAML parse error: {exc}")
            self._loaded = True
            return

        if not raw or not isinstance(raw, dict):
            logger.info("[Templates] No templates configured in YAML")
            self._loaded = True
            return

        for template_id, definition in raw.items():
            if not isinstance(definition, dict):
                continue
            try:
                widgets = definition.get("widgets") or []
                parameters = definition.get("parameters") or []
                if not isinstance(widgets, list) or not isinstance(parameters, list):
                    raise TypeError("widgets and parameters must be lists")
                self._templates[str(template_id)] = DashboardTemplate(
                    template_id=str(template_id),
                    name=definition["name"],
                    description=definition.get("description", ""),
                    category=definition.get("category", "general"),
                    widgets=widgets,
                    parameters=parameters,
                )
            except (KeyError, ValueError, TypeError) as exc:
                logger.error(f"[Templates] Skipping invalid entry '{template_id}': {exc}")

        self._loaded = True
        logger.info(f"[Templates] Loaded {len(self._templates)} template(s)")
