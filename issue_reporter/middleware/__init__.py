"""HTTP middleware for the FastAPI application."""

from issue_reporter.middleware.timing import timing_middleware

__all__ = ["timing_middleware"]
