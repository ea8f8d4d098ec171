"""HTTP middleware for the FastAPI application."""

from issue_tracker.middleware.timing import timing_middleware

__all__ = ["timing_middleware"]
