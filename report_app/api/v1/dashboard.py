"""
Dashboard API Endpoints — whole-dashboard lifecycle.

  GET  /api/v1/dashboard            → dashboard + values + refresh state
  PUT  /api/v1/dashboard/title      → rename
  PUT  /api/v1/dashboard/selection  → select a widget (opens the sidebar)
  POST /api/v1/dashboard/load       → adopt a complete dashboard (ids kept)
  POST /api/v1/dashboard/replace    → swap widgets/parameters (fresh ids)
  GET  /api/v1/dashboard/export     → persisted session blob
  POST /api/v1/dashboard/save       → write the blob to the snapshot store

``load`` and ``replace`` are full resets: parameter values are
re-derived from defaults and the selection is cleared.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from report_app.api.v1.dependencies import get_session, get_store
from report_app.models.dashboard import Dashboard
from report_app.services.dashboard import SnapshotStore
from report_app.services.session import ReportSession

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


# ── Pydantic request models ─────────────────────────────────────

class TitleRequest(BaseModel):
    title: str = Field(..., min_length=1)


class SelectionRequest(BaseModel):
    widget_id: Optional[str] = Field(
        None, description="Widget to select; null closes the sidebar.",
    )


class LoadRequest(BaseModel):
    """Body for POST /dashboard/load."""
    dashboard: Dict[str, Any] = Field(
        ..., description="Dashboard in its persisted (camelCase) form.",
    )
    refresh: bool = Field(
        False, description="Run options → widgets after loading.",
    )


class ReplaceRequest(BaseModel):
    """Body for POST /dashboard/replace."""
    widgets: List[Dict[str, Any]] = []
    parameters: List[Dict[str, Any]] = []
    title: Optional[str] = None
    refresh: bool = True


# ── Helpers ──────────────────────────────────────────────────────

def dashboard_view(session: ReportSession) -> Dict[str, Any]:
    """Everything a client needs to render the current dashboard."""
    return {
        "dashboard": session.aggregate.to_dict(),
        "parameterValues": session.registry.values,
        "state": session.orchestrator.state.to_dict(),
        "editor": session.editor.to_dict(),
    }


# ── Endpoints ────────────────────────────────────────────────────

@router.get("")
async def get_dashboard(session: ReportSession = Depends(get_session)):
    return dashboard_view(session)


@router.put("/title")
async def set_title(req: TitleRequest, session: ReportSession = Depends(get_session)):
    session.aggregate.set_title(req.title)
    return {"title": session.dashboard.title}


@router.put("/selection")
async def select_widget(
    req: SelectionRequest,
    session: ReportSession = Depends(get_session),
):
    session.select_widget(req.widget_id)
    return session.editor.to_dict()


@router.post("/load")
async def load_dashboard(req: LoadRequest, session: ReportSession = Depends(get_session)):
    """Adopt a complete dashboard, keeping its ids."""
    try:
        dashboard = Dashboard.from_dict(req.dashboard)
    except (ValueError, TypeError) as exc:
        raise HTTPException(status_code=422, detail=str(exc))

    session.load_dashboard(dashboard)
    if req.refresh:
        await session.orchestrator.refresh_dashboard()
    return dashboard_view(session)


@router.post("/replace")
async def replace_dashboard(
    req: ReplaceRequest,
    session: ReportSession = Depends(get_session),
):
    """Swap in new widgets and parameters (every entity gets a fresh id)."""
    try:
        session.replace_dashboard(req.widgets, req.parameters, title=req.title)
    except (ValueError, TypeError) as exc:
        raise HTTPException(status_code=422, detail=str(exc))

    if req.refresh:
        await session.orchestrator.refresh_dashboard()
    return dashboard_view(session)


@router.get("/export")
async def export_dashboard(session: ReportSession = Depends(get_session)):
    """The persisted blob: dashboard, settings and parameter values."""
    return session.snapshot()


@router.post("/save")
async def save_dashboard(
    session: ReportSession = Depends(get_session),
    store: SnapshotStore = Depends(get_store),
):
    try:
        store.save(session.snapshot())
    except OSError as exc:
        raise HTTPException(status_code=500, detail=f"Could not save snapshot: {exc}")
    return {"status": "saved", "path": str(store.path)}
