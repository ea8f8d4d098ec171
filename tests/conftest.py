"""
Pytest fixtures for the issue tracker tests.

The application runs against a throwaway SQLite database; DATABASE_URL must
be set before the application modules create their engine.
"""

import os
import tempfile
from pathlib import Path

import pytest

DB_PATH = Path(tempfile.mkdtemp(prefix="issue-tracker-tests-")) / "issues.db"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{DB_PATH}"

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine, text  # noqa: E402

from issue_tracker.database.collection import get_collection  # noqa: E402
from main import app  # noqa: E402


@pytest.fixture
def client():
    """Test client with a clean issues table."""
    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.pop(get_collection, None)

    engine = create_engine(f"sqlite:///{DB_PATH}")
    with engine.begin() as conn:
        conn.execute(text("DELETE FROM issues"))
    engine.dispose()


@pytest.fixture
def create_issue(client):
    """Create an issue through the API and return the response body."""

    def _create(project="testproject", **fields):
        payload = {
            "issue_title": "Broken login",
            "issue_text": "The login button does nothing.",
            "created_by": "alice",
        }
        payload.update(fields)
        response = client.post(f"/api/issues/{project}", json=payload)
        assert response.status_code == 200
        return response.json()

    return _create
