"""
Orchestrator package — refresh cycles over a dashboard.

Modules:
  state     — RefreshState (refreshing flag, loading flags, tickets)
  pipeline  — RefreshOrchestrator coordinator

Usage::

    from report_app.services.orchestrator import RefreshOrchestrator

    summary = await orchestrator.refresh_all()
"""

from report_app.services.orchestrator.pipeline import RefreshOrchestrator, RefreshSummary
from report_app.services.orchestrator.state import RefreshState

__all__ = [
    "RefreshOrchestrator",
    "RefreshState",
    "RefreshSummary",
]
