"""
Refresh API Endpoints — explicit refresh cycles.

  POST /api/v1/refresh/options   → re-resolve select options only
  POST /api/v1/refresh/widgets   → refresh every widget (single-flight)
  POST /api/v1/refresh/full      → options first, then widgets
  GET  /api/v1/refresh/state     → refreshing flag, per-widget loading/errors

A widgets refresh requested while one is already running returns
immediately with ``skipped: true``.
"""

from fastapi import APIRouter, Depends

from report_app.api.v1.dependencies import get_session
from report_app.services.session import ReportSession

router = APIRouter(prefix="/refresh", tags=["refresh"])


@router.post("/options")
async def refresh_options(session: ReportSession = Depends(get_session)):
    results = await session.orchestrator.refresh_options()
    return {
        "results": results,
        "parameters": [p.to_dict() for p in session.aggregate.parameters],
        "values": session.registry.values,
    }


@router.post("/widgets")
async def refresh_widgets(session: ReportSession = Depends(get_session)):
    summary = await session.orchestrator.refresh_all()
    return summary.to_dict()


@router.post("/full")
async def refresh_full(session: ReportSession = Depends(get_session)):
    """First-load sequence: options, then widget data."""
    summary = await session.orchestrator.refresh_dashboard()
    return summary.to_dict()


@router.get("/state")
async def refresh_state(session: ReportSession = Depends(get_session)):
    return session.orchestrator.state.to_dict()
