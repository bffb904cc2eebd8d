"""
Parameter API Endpoints — definitions and runtime values.

  POST   /api/v1/parameters          → add (values seeded from default)
  PATCH  /api/v1/parameters/{id}     → partial update (rename migrates value)
  DELETE /api/v1/parameters/{id}     → remove (runtime keys dropped)
  GET    /api/v1/parameters/values   → current ParameterValueMap
  PUT    /api/v1/parameters/values   → set one or more values

Setting values never triggers a refresh; clients call
``POST /refresh/widgets`` when the user applies their filters.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from report_app.api.v1.dependencies import get_session
from report_app.services.session import ReportSession

router = APIRouter(prefix="/parameters", tags=["parameters"])


# ── Pydantic request models ─────────────────────────────────────

class ParameterFields(BaseModel):
    key: Optional[str] = Field(
        None, min_length=1, description="Placeholder name used as {{key}}.",
    )
    label: Optional[str] = None
    type: Optional[str] = Field(None, description="text | date | date-range | select")
    default_value: Optional[Any] = None
    width: Optional[int] = Field(None, gt=0)
    options_data_source: Optional[Dict[str, Any]] = Field(
        None, description="Descriptor for select options (camelCase form).",
    )


class ParameterCreateRequest(ParameterFields):
    key: str = Field(..., min_length=1)
    type: str = "text"


class ParameterValuesRequest(BaseModel):
    values: Dict[str, Any] = Field(
        ..., description="Key → value; a date-range base key accepts {start, end}.",
    )


# ── Helpers ──────────────────────────────────────────────────────

def _extract_fields(req: ParameterFields) -> Dict[str, Any]:
    """Map the request body to the persisted camelCase parameter shape."""
    sent = req.model_dump(exclude_unset=True)
    mapping = {
        "key": "key",
        "label": "label",
        "type": "type",
        "default_value": "defaultValue",
        "width": "width",
        "options_data_source": "optionsDataSource",
    }
    return {mapping[k]: v for k, v in sent.items() if k in mapping}


# ── Endpoints ────────────────────────────────────────────────────

@router.get("/values")
async def get_values(session: ReportSession = Depends(get_session)):
    return {"values": session.registry.values}


@router.put("/values")
async def set_values(
    req: ParameterValuesRequest,
    session: ReportSession = Depends(get_session),
):
    for key, value in req.values.items():
        session.registry.set_value(key, value)
    return {"values": session.registry.values}


@router.post("")
async def add_parameter(
    req: ParameterCreateRequest,
    session: ReportSession = Depends(get_session),
):
    fields = _extract_fields(req)
    fields.setdefault("type", req.type)
    try:
        param = session.registry.add_parameter(fields)
    except (ValueError, TypeError) as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    return {"parameter": param.to_dict(), "values": session.registry.values}


@router.patch("/{param_id}")
async def update_parameter(
    param_id: str,
    req: ParameterFields,
    session: ReportSession = Depends(get_session),
):
    try:
        param = session.registry.update_parameter(param_id, _extract_fields(req))
    except (ValueError, TypeError) as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    return {"parameter": param.to_dict(), "values": session.registry.values}


@router.delete("/{param_id}")
async def delete_parameter(param_id: str, session: ReportSession = Depends(get_session)):
    param = session.registry.remove_parameter(param_id)
    return {"status": "deleted", "parameter_id": param.id, "values": session.registry.values}
