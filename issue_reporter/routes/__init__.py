"""API route modules for FastAPI endpoints."""

from issue_reporter.routes.issues import router as issues_router
from issue_reporter.routes.uploads import router as uploads_router

__all__ = ["issues_router", "uploads_router"]
