"""
Settings API Endpoints — theme and chat-model provider (query simulation and assistant).

The provider API key is never accepted here; it is read from the
environment (``QUERY_SIMULATOR_API_KEY``) only.
"""

from __future__ import annotations

from typing import Literal, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from report_app.api.v1.dependencies import get_session
from report_app.services.session import ReportSession

router = APIRouter(prefix="/settings", tags=["settings"])


class AIConfigRequest(BaseModel):
    provider: Optional[str] = None
    model: Optional[str] = None
    base_url: Optional[str] = None


class SettingsRequest(BaseModel):
    theme: Optional[Literal["light", "dark"]] = None
    ai: Optional[AIConfigRequest] = None


def _settings_view(session: ReportSession):
    return {
        **session.global_settings.to_dict(),
        "query_executor": session.resolver.query_executor is not None,
        "assistant": session.assistant is not None,
    }


@router.get("")
async def get_settings(session: ReportSession = Depends(get_session)):
    return _settings_view(session)


@router.put("")
async def update_settings(req: SettingsRequest, session: ReportSession = Depends(get_session)):
    ai = None
    if req.ai is not None:
        sent = req.ai.model_dump(exclude_unset=True)
        ai = {("baseUrl" if k == "base_url" else k): v for k, v in sent.items()}
    session.update_settings(theme=req.theme, ai=ai)
    return _settings_view(session)
