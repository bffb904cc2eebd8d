"""
Assistant API Endpoints — natural-language editing backed by a chat model.

  POST /api/v1/assistant/query                  → SQL text for a query source
  POST /api/v1/assistant/widgets/{id}/analyze   → short insight on cached data
  POST /api/v1/assistant/widgets/{id}/modify    → apply an instruction to one widget
  POST /api/v1/assistant/dashboard/generate     → new dashboard from a prompt
  POST /api/v1/assistant/dashboard/modify       → apply an instruction to all widgets

Every endpoint answers 503 when no provider API key is configured and
502 when the model fails or returns something that is not a valid
dashboard.  Generated SQL is returned, never saved or executed.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from report_app.api.v1.dashboard import dashboard_view
from report_app.api.v1.dependencies import get_assistant, get_session
from report_app.core.errors import ChatModelError
from report_app.services.assistant import ReportAssistant
from report_app.services.session import ReportSession

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/assistant", tags=["assistant"])

_TITLE_FROM_PROMPT = 30


# ── Pydantic request models ─────────────────────────────────────

class QueryPromptRequest(BaseModel):
    prompt: str = Field(..., min_length=1, description="What the query should return.")
    schema_hint: Optional[str] = Field(
        None, description="Optional table/column description to ground the query.",
    )


class AnalyzeRequest(BaseModel):
    question: Optional[str] = Field(None, description="Optional focus for the insight.")


class InstructionRequest(BaseModel):
    instruction: str = Field(..., min_length=1)
    refresh: bool = Field(True, description="Re-resolve what the change touched.")


class DashboardPromptRequest(BaseModel):
    prompt: str = Field(..., min_length=1)
    refresh: bool = True


# ── Helpers ──────────────────────────────────────────────────────

def _title_from_prompt(prompt: str) -> str:
    prompt = prompt.strip()
    if len(prompt) <= _TITLE_FROM_PROMPT:
        return prompt
    return prompt[:_TITLE_FROM_PROMPT].rstrip() + "..."


async def _replace_and_refresh(
    session: ReportSession,
    widgets,
    parameters,
    title: Optional[str],
    refresh: bool,
) -> Dict[str, Any]:
    try:
        session.replace_dashboard(widgets, parameters, title=title)
    except (ValueError, TypeError) as exc:
        raise ChatModelError(f"Model returned an invalid dashboard: {exc}") from exc

    summary = await session.orchestrator.refresh_dashboard() if refresh else None
    return {"refresh": summary.to_dict() if summary else None, **dashboard_view(session)}


# ── Endpoints ────────────────────────────────────────────────────

@router.post("/query")
async def generate_query(
    req: QueryPromptRequest,
    assistant: ReportAssistant = Depends(get_assistant),
):
    query = await assistant.generate_query(req.prompt, schema=req.schema_hint)
    return {"query": query, "model": assistant.model}


@router.post("/widgets/{widget_id}/analyze")
async def analyze_widget(
    widget_id: str,
    req: Optional[AnalyzeRequest] = None,
    session: ReportSession = Depends(get_session),
    assistant: ReportAssistant = Depends(get_assistant),
):
    """Insight over the widget's cached data (refresh it first for fresh numbers)."""
    widget = session.aggregate.get_widget(widget_id)
    question = req.question if req is not None else None
    insight = await assistant.analyze_widget(widget, question=question)
    return {"widget_id": widget.id, "insight": insight, "model": assistant.model}


@router.post("/widgets/{widget_id}/modify")
async def modify_widget(
    widget_id: str,
    req: InstructionRequest,
    session: ReportSession = Depends(get_session),
    assistant: ReportAssistant = Depends(get_assistant),
):
    """Apply the model's edit in place; id and position are kept."""
    previous = session.aggregate.get_widget(widget_id)
    previous_source = previous.data_source.to_dict()
    updates = await assistant.modify_widget(previous, req.instruction)

    try:
        widget = session.aggregate.update_widget(widget_id, updates)
    except (ValueError, TypeError) as exc:
        raise ChatModelError(f"Model returned an invalid widget: {exc}") from exc

    if req.refresh and widget.data_source.to_dict() != previous_source:
        await session.orchestrator.refresh_widget(widget.id)
    logger.info(f"[Assistant] Modified widget {widget.id}")
    return session.aggregate.get_widget(widget.id).to_dict()


@router.post("/dashboard/generate")
async def generate_dashboard(
    req: DashboardPromptRequest,
    session: ReportSession = Depends(get_session),
    assistant: ReportAssistant = Depends(get_assistant),
):
    """Replace the dashboard with a generated one (a full reset, like a template)."""
    generated = await assistant.generate_dashboard(req.prompt)
    title = generated["title"] or _title_from_prompt(req.prompt)
    return await _replace_and_refresh(
        session, generated["widgets"], generated["parameters"], title, req.refresh,
    )


@router.post("/dashboard/modify")
async def modify_dashboard(
    req: InstructionRequest,
    session: ReportSession = Depends(get_session),
    assistant: ReportAssistant = Depends(get_assistant),
):
    """Apply an instruction to every widget and parameter; the title is kept."""
    current = session.aggregate.to_dict()
    modified = await assistant.modify_dashboard(
        current["widgets"], current["parameters"], req.instruction,
    )
    return await _replace_and_refresh(
        session, modified["widgets"], modified["parameters"], None, req.refresh,
    )
