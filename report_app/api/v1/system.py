"""System endpoints — health check and refresh status."""

from fastapi import APIRouter, Depends

from report_app import __version__
from report_app.api.v1.dependencies import get_session
from report_app.services.session import ReportSession

router = APIRouter(prefix="/system", tags=["system"])


@router.get("/health")
async def health_check(session: ReportSession = Depends(get_session)):
    """Basic liveness check."""
    return {
        "status": "ok",
        "version": __version__,
        "is_refreshing": session.orchestrator.is_refreshing,
        "query_executor": session.resolver.query_executor is not None,
        "assistant": session.assistant is not None,
        "widgets": len(session.aggregate.widgets),
        "parameters": len(session.aggregate.parameters),
    }
