"""
Report Dashboard — Application Runner.

Usage:
    python run.py          → FastAPI on API_HOST:API_PORT
"""

import uvicorn

from report_app.core.config import settings


def run_fastapi() -> None:
    """Start the FastAPI data engine."""
    print(f"🚀 FastAPI → http://localhost:{settings.API_PORT}")
    if settings.DEBUG:
        print(f"📄 Docs    → http://localhost:{settings.API_PORT}/api/docs")
    uvicorn.run(
        "report_app.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.DEBUG,
    )


if __name__ == "__main__":
    run_fastapi()
