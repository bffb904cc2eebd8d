"""
FastAPI dependencies — access to the per-app state objects.

Single Responsibility: provide reusable ``Depends()`` callables that
hand endpoints the ReportSession, its ReportAssistant, the
TemplateCatalog and the SnapshotStore created by the application factory.  Nothing is imported as a module
global, so tests can build an app around their own session.

Usage in endpoints::

    @router.get("")
    async def get_dashboard(session: ReportSession = Depends(get_session)):
        return session.aggregate.to_dict()
"""

from __future__ import annotations

from fastapi import HTTPException, Request

from report_app.services.dashboard import SnapshotStore, TemplateCatalog
from report_app.services.assistant import ReportAssistant
from report_app.services.session import ReportSession


def get_session(request: Request) -> ReportSession:
    """Dependency: the ReportSession attached to ``app.state``."""
    session = getattr(request.app.state, "session", None)
    if session is None:
        raise HTTPException(status_code=503, detail="Session not initialised")
    return session


def get_catalog(request: Request) -> TemplateCatalog:
    """Dependency: the template catalog attached to ``app.state``."""
    catalog = getattr(request.app.state, "catalog", None)
    if catalog is None:
        raise HTTPException(status_code=503, detail="Template catalog not configured")
    return catalog


def get_store(request: Request) -> SnapshotStore:
    """Dependency: the snapshot store attached to ``app.state``."""
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise HTTPException(status_code=503, detail="Snapshot store not configured")
    return store


def get_assistant(request: Request) -> ReportAssistant:
    """Dependency: the session's assistant; 503 when no API key is configured."""
    assistant = get_session(request).assistant
    if assistant is None:
        raise HTTPException(
            status_code=503,
            detail="AI assistant not configured, set QUERY_SIMULATOR_API_KEY",
        )
    return assistant
