"""
API v1 — Router aggregation.
"""

from fastapi import APIRouter

from report_app.api.v1.system import router as system_router
from report_app.api.v1.dashboard import router as dashboard_router
from report_app.api.v1.widgets import router as widgets_router
from report_app.api.v1.parameters import router as parameters_router
from report_app.api.v1.refresh import router as refresh_router
from report_app.api.v1.sources import router as sources_router
from report_app.api.v1.templates import router as templates_router
from report_app.api.v1.settings import router as settings_router
from report_app.api.v1.assistant import router as assistant_router

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(system_router)
api_router.include_router(dashboard_router)
api_router.include_router(widgets_router)
api_router.include_router(parameters_router)
api_router.include_router(refresh_router)
api_router.include_router(sources_router)
api_router.include_router(templates_router)
api_router.include_router(settings_router)
api_router.include_router(assistant_router)
