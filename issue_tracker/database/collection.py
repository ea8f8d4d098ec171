"""Document-style access to the ``issues`` table.

Handlers talk to issues as plain dictionaries keyed by field name, the way a
document store hands them out. ``IssueCollection`` translates equality
filters into SQL where a typed column can answer them and evaluates the rest
against the loaded documents, so clients may filter on fields the table does
not model explicitly.
"""

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Awaitable, Optional, TypeVar

from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from issue_tracker.database.config import STORE_TIMEOUT_SECONDS, get_db
from issue_tracker.database.models import Issue

logger = logging.getLogger(__name__)

T = TypeVar("T")

ID_FIELD = "_id"

# Document fields stored in a typed column, with the type a filter value
# needs for the comparison to run in SQL
COLUMN_TYPES: dict[str, type] = {
    "project": str,
    "issue_title": str,
    "issue_text": str,
    "created_by": str,
    "assigned_to": str,
    "status_text": str,
    "created_on": datetime,
    "updated_on": datetime,
    "open": bool,
}


class IssueStoreError(Exception):
    """Raised when the issue store fails or does not answer in time."""

    pass


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes even for timezone-aware columns
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def to_document(issue: Issue) -> dict[str, Any]:
    """Flatten an ``Issue`` row into its document form."""
    document = dict(issue.extra or {})
    document.update(
        {
            ID_FIELD: issue.id,
            "project": issue.project,
            "issue_title": issue.issue_title,
            "issue_text": issue.issue_text,
            "created_by": issue.created_by,
            "assigned_to": issue.assigned_to,
            "status_text": issue.status_text,
            "created_on": _as_utc(issue.created_on),
            "updated_on": _as_utc(issue.updated_on),
            "open": issue.open,
        }
    )
    return document


def _values_equal(stored: Any, wanted: Any) -> bool:
    # True == 1 in Python, but a boolean flag must only match a boolean
    if isinstance(stored, bool) or isinstance(wanted, bool):
        return type(stored) is type(wanted) and stored == wanted
    return stored == wanted


def matches(document: dict[str, Any], query: dict[str, Any]) -> bool:
    """Return True if every key in ``query`` is present in ``document`` with an equal value."""
    return all(
        key in document and _values_equal(document[key], value)
        for key, value in query.items()
    )


class IssueCollection:
    """Issue store bound to one request's database session.

    Every operation is limited to ``timeout`` seconds. Database errors and
    timeouts surface as ``IssueStoreError``.
    """

    def __init__(self, session: AsyncSession, timeout: float = STORE_TIMEOUT_SECONDS):
        self.session = session
        self.timeout = timeout

    @staticmethod
    def is_valid_id(value: Any) -> bool:
        """Check that ``value`` is a well-formed issue identifier."""
        if not isinstance(value, str):
            return False
        try:
            uuid.UUID(value)
        except ValueError:
            return False
        return True

    @staticmethod
    def coerce_id(value: str) -> uuid.UUID:
        return uuid.UUID(value)

    async def find(self, query: dict[str, Any]) -> list[dict[str, Any]]:
        """Return all documents matching ``query``."""
        return await self._run(self._find(query))

    async def insert_one(self, document: dict[str, Any]) -> uuid.UUID:
        """Store ``document`` and return the identifier assigned to it."""
        return await self._run(self._insert_one(document))

    async def find_one_and_update(
        self, query: dict[str, Any], fields: dict[str, Any]
    ) -> Optional[dict[str, Any]]:
        """Merge ``fields`` into the first document matching ``query``.

        Returns the updated document, or None when nothing matched.
        """
        return await self._run(self._find_one_and_update(query, fields))

    async def delete_one(self, query: dict[str, Any]) -> int:
        """Delete the first document matching ``query`` and return how many were removed."""
        return await self._run(self._delete_one(query))

    async def _run(self, operation: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(operation, timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            await self._discard()
            raise IssueStoreError(f"Issue store did not answer within {self.timeout}s") from exc
        except SQLAlchemyError as exc:
            await self._discard()
            raise IssueStoreError(f"Issue store operation failed: {str(exc)}") from exc

    async def _discard(self) -> None:
        try:
            await self.session.rollback()
        except SQLAlchemyError:
            logger.warning("Rollback after failed issue store operation failed", exc_info=True)

    def _compile(self, query: dict[str, Any]):
        """Split ``query`` into a SELECT and the part SQL cannot answer exactly.

        String filters on client-defined fields narrow the SELECT through the
        JSON column but stay in the residual, since the JSON text extraction
        also matches non-string values with the same rendering.
        """
        stmt = select(Issue)
        residual = {}
        for key, value in query.items():
            if key == ID_FIELD and isinstance(value, uuid.UUID):
                stmt = stmt.where(Issue.id == value)
            elif key in COLUMN_TYPES and isinstance(value, COLUMN_TYPES[key]):
                stmt = stmt.where(getattr(Issue, key) == value)
            else:
                if (
                    key not in COLUMN_TYPES
                    and key != ID_FIELD
                    and isinstance(value, str)
                    and key.isidentifier()
                ):
                    # Only plain names are safe to embed in a JSON path
                    stmt = stmt.where(Issue.extra[key].as_string() == value)
                residual[key] = value
        return stmt, residual

    async def _select(self, query: dict[str, Any], for_update: bool = False) -> list[Issue]:
        stmt, residual = self._compile(query)
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.session.execute(stmt)
        return [
            issue for issue in result.scalars().all()
            if matches(to_document(issue), residual)
        ]

    async def _find(self, query: dict[str, Any]) -> list[dict[str, Any]]:
        return [to_document(issue) for issue in await self._select(query)]

    async def _insert_one(self, document: dict[str, Any]) -> uuid.UUID:
        issue = Issue(
            id=uuid.uuid4(),
            extra={key: value for key, value in document.items() if key not in COLUMN_TYPES},
            **{key: value for key, value in document.items() if key in COLUMN_TYPES},
        )
        self.session.add(issue)
        await self.session.commit()
        return issue.id

    async def _find_one_and_update(
        self, query: dict[str, Any], fields: dict[str, Any]
    ) -> Optional[dict[str, Any]]:
        issues = await self._select(query, for_update=True)
        if not issues:
            await self.session.rollback()
            return None

        issue = issues[0]
        extra = dict(issue.extra or {})
        for key, value in fields.items():
            if key in COLUMN_TYPES:
                setattr(issue, key, value)
            else:
                extra[key] = value
        # Reassign so the JSON column is flagged as modified
        issue.extra = extra

        await self.session.commit()
        return to_document(issue)

    async def _delete_one(self, query: dict[str, Any]) -> int:
        issues = await self._select(query, for_update=True)
        if not issues:
            await self.session.rollback()
            return 0

        await self.session.delete(issues[0])
        await self.session.commit()
        return 1


async def get_collection(db: AsyncSession = Depends(get_db)) -> IssueCollection:
    """Dependency providing the issue collection for the current request."""
    return IssueCollection(db)
