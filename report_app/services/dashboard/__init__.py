"""
Dashboard package — the aggregate and its surroundings.

Modules:
  aggregate       — DashboardAggregate (widgets, parameters, title)
  templates       — TemplateCatalog (YAML blueprints, paginated search)
  snapshot_store  — SnapshotStore (JSON file persistence)
"""

from report_app.services.dashboard.aggregate import DashboardAggregate
from report_app.services.dashboard.snapshot_store import SnapshotStore
from report_app.services.dashboard.templates import DashboardTemplate, TemplateCatalog

__all__ = [
    "DashboardAggregate",
    "DashboardTemplate",
    "SnapshotStore",
    "TemplateCatalog",
]
