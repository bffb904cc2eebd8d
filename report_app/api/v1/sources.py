"""
Source API Endpoints — try a data source before saving it.

``POST /api/v1/sources/preview`` resolves an arbitrary descriptor
against the current parameter values.  No widget is touched.  Errors
are returned to the caller (422 for a malformed descriptor, 502 for a
failed fetch) so the source editor can display them.

Successful previews also list ``unbound``: the placeholders the source
would send whose current value is missing or empty.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from report_app.api.v1.dependencies import get_session
from report_app.models.data_source import DataSourceDescriptor
from report_app.services.session import ReportSession
from report_app.services.sources import unbound_placeholders

router = APIRouter(prefix="/sources", tags=["sources"])


class PreviewRequest(BaseModel):
    data_source: Dict[str, Any] = Field(
        ..., description="{mode, staticData, query, http}",
    )
    normalize: bool = Field(
        True, description="Apply numeric coercion and name fallback.",
    )


@router.post("/preview")
async def preview_source(req: PreviewRequest, session: ReportSession = Depends(get_session)):
    try:
        descriptor = DataSourceDescriptor.from_dict(req.data_source)
    except (ValueError, TypeError) as exc:
        raise HTTPException(status_code=422, detail=str(exc))

    unbound = unbound_placeholders(descriptor, session.registry.values)
    records = await session.orchestrator.preview(descriptor, normalize=req.normalize)
    return {
        "mode": descriptor.mode,
        "count": len(records),
        "data": records,
        "unbound": unbound,
    }
