"""
Widget API Endpoints — per-widget editing, refresh and export.

  POST   /api/v1/widgets                  → add (fresh id)
  PATCH  /api/v1/widgets/{id}             → partial update
  DELETE /api/v1/widgets/{id}             → remove
  PUT    /api/v1/widgets/order            → reorder by id
  POST   /api/v1/widgets/{id}/refresh     → resolve this widget only
  GET    /api/v1/widgets/{id}/data        → cached data + loading/error
  GET    /api/v1/widgets/{id}/export      → CSV / XLSX download

Nested objects (``data_source``, ``data_mapping``) travel in their
persisted camelCase shape; they are merged one level deep on update.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from pydantic import BaseModel, Field

from report_app.api.v1.dependencies import get_session
from report_app.services.data.export import records_to_csv, records_to_excel_bytes
from report_app.services.session import ReportSession

router = APIRouter(prefix="/widgets", tags=["widgets"])

_XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

# Anything outside printable ASCII, plus quote and backslash
_UNSAFE_FILENAME = re.compile(r'[^\x20-\x7e]|["\\]')


# ── Pydantic request models ─────────────────────────────────────

class WidgetFields(BaseModel):
    """Editable widget fields; unset fields are left alone on update."""
    type: Optional[str] = Field(None, description="Chart type, e.g. 'bar', 'table'.")
    title: Optional[str] = None
    description: Optional[str] = None
    data: Optional[List[Dict[str, Any]]] = Field(
        None, description="Inline records; become a static source when no data_source is given.",
    )
    data_source: Optional[Dict[str, Any]] = Field(
        None, description="{mode, staticData, query, http}",
    )
    data_mapping: Optional[Dict[str, Any]] = Field(
        None, description="{nameKey, valueKey, yKey?, seriesName?}",
    )
    col_span: Optional[int] = Field(None, ge=1, le=12)
    height: Optional[int] = Field(None, gt=0)


class WidgetCreateRequest(WidgetFields):
    type: str = "bar"
    refresh: bool = Field(False, description="Resolve the new widget's data immediately.")


class WidgetUpdateRequest(WidgetFields):
    refresh: bool = Field(
        True, description="Re-resolve the widget when its data source changed.",
    )


class WidgetOrderRequest(BaseModel):
    widget_ids: List[str]


# ── Helpers ──────────────────────────────────────────────────────

def _extract_fields(req: WidgetFields) -> Dict[str, Any]:
    """
    Map the request body to the persisted camelCase widget shape,
    keeping only the fields the client actually sent.
    """
    sent = req.model_dump(exclude_unset=True)
    mapping = {
        "type": "type",
        "title": "title",
        "description": "description",
        "data": "data",
        "data_source": "dataSource",
        "data_mapping": "dataMapping",
        "col_span": "colSpan",
        "height": "height",
    }
    return {mapping[k]: v for k, v in sent.items() if k in mapping}


def _widget_status(session: ReportSession, widget_id: str) -> Dict[str, Any]:
    widget = session.aggregate.get_widget(widget_id)
    return {
        "widget_id": widget.id,
        "data": widget.data,
        "loading": session.orchestrator.is_widget_loading(widget.id),
        "error": session.orchestrator.state.last_error(widget.id),
    }


def _content_disposition(filename: str) -> str:
    """
    ``attachment`` header with an ASCII fallback ``filename`` and the
    exact UTF-8 name in ``filename*`` (RFC 5987).
    """
    fallback = _UNSAFE_FILENAME.sub("_", filename)
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename, safe='')}"


# ── Endpoints ────────────────────────────────────────────────────

@router.post("")
async def add_widget(req: WidgetCreateRequest, session: ReportSession = Depends(get_session)):
    fields = _extract_fields(req)
    fields.setdefault("type", req.type)
    try:
        widget = session.aggregate.add_widget(fields)
    except (ValueError, TypeError) as exc:
        raise HTTPException(status_code=422, detail=str(exc))

    if req.refresh:
        await session.orchestrator.refresh_widget(widget.id)
    return session.aggregate.get_widget(widget.id).to_dict()


@router.put("/order")
async def reorder_widgets(
    req: WidgetOrderRequest,
    session: ReportSession = Depends(get_session),
):
    session.aggregate.reorder_widgets(req.widget_ids)
    return {"widget_ids": [w.id for w in session.aggregate.widgets]}


@router.patch("/{widget_id}")
async def update_widget(
    widget_id: str,
    req: WidgetUpdateRequest,
    session: ReportSession = Depends(get_session),
):
    updates = _extract_fields(req)
    try:
        widget = session.aggregate.update_widget(widget_id, updates)
    except (ValueError, TypeError) as exc:
        raise HTTPException(status_code=422, detail=str(exc))

    if req.refresh and "dataSource" in updates:
        await session.orchestrator.refresh_widget(widget.id)
    return session.aggregate.get_widget(widget.id).to_dict()


@router.delete("/{widget_id}")
async def delete_widget(widget_id: str, session: ReportSession = Depends(get_session)):
    widget = session.remove_widget(widget_id)
    return {"status": "deleted", "widget_id": widget.id}


@router.post("/{widget_id}/refresh")
async def refresh_widget(widget_id: str, session: ReportSession = Depends(get_session)):
    """Re-resolve one widget; on failure its previous data is kept."""
    session.aggregate.get_widget(widget_id)
    success = await session.orchestrator.refresh_widget(widget_id)
    return {"success": success, **_widget_status(session, widget_id)}


@router.get("/{widget_id}/data")
async def get_widget_data(widget_id: str, session: ReportSession = Depends(get_session)):
    return _widget_status(session, widget_id)


@router.get("/{widget_id}/export")
async def export_widget(
    widget_id: str,
    format: str = Query("csv", pattern="^(csv|xlsx)$"),
    session: ReportSession = Depends(get_session),
):
    """Download the widget's cached data as CSV or Excel."""
    widget = session.aggregate.get_widget(widget_id)
    filename = f"{widget.title or widget.id}.{format}"
    headers = {"Content-Disposition": _content_disposition(filename)}

    if format == "xlsx":
        content = records_to_excel_bytes(widget.data, sheet_name=widget.title or "Data")
        return Response(content=content, media_type=_XLSX_MEDIA_TYPE, headers=headers)

    return Response(
        content=records_to_csv(widget.data),
        media_type="text/csv",
        headers=headers,
    )
