"""Database configuration, models, and the issue collection."""

from issue_tracker.database.config import engine, Base, get_db
from issue_tracker.database import models
from issue_tracker.database.collection import IssueCollection, IssueStoreError, get_collection

__all__ = ["engine", "Base", "get_db", "models", "IssueCollection", "IssueStoreError", "get_collection"]
