"""
Template API Endpoints — dashboard blueprint gallery.

  GET  /api/v1/templates                → paginated search
  GET  /api/v1/templates/{id}           → full definition
  POST /api/v1/templates/{id}/apply     → replace dashboard + refresh
  POST /api/v1/templates/reload         → re-read the YAML
"""

from fastapi import APIRouter, Depends, HTTPException, Query

from report_app.api.v1.dashboard import dashboard_view
from report_app.api.v1.dependencies import get_catalog, get_session
from report_app.services.dashboard import TemplateCatalog
from report_app.services.session import ReportSession

router = APIRouter(prefix="/templates", tags=["templates"])


@router.get("")
async def search_templates(
    q: str = Query("", description="Matches name or description."),
    page: int = Query(1, ge=1),
    page_size: int = Query(6, ge=1, le=50),
    catalog: TemplateCatalog = Depends(get_catalog),
):
    return catalog.search(q, page=page, page_size=page_size)


@router.post("/reload")
async def reload_templates(catalog: TemplateCatalog = Depends(get_catalog)):
    catalog.reload()
    return {"status": "reloaded", "total": len(catalog.get_all())}


@router.get("/{template_id}")
async def get_template(template_id: str, catalog: TemplateCatalog = Depends(get_catalog)):
    template = catalog.get(template_id)
    if template is None:
        raise HTTPException(status_code=404, detail=f"Template '{template_id}' not found")
    return {
        **template.summary(),
        "widgets": template.widgets,
        "parameters": template.parameters,
    }


@router.post("/{template_id}/apply")
async def apply_template(
    template_id: str,
    catalog: TemplateCatalog = Depends(get_catalog),
    session: ReportSession = Depends(get_session),
):
    """Replace the dashboard with the template, then run options → widgets."""
    template = catalog.get(template_id)
    if template is None:
        raise HTTPException(status_code=404, detail=f"Template '{template_id}' not found")

    try:
        summary = await session.apply_template(template)
    except (ValueError, TypeError) as exc:
        raise HTTPException(status_code=422, detail=f"Invalid template '{template_id}': {exc}")
    return {"refresh": summary.to_dict(), **dashboard_view(session)}
