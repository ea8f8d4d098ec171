import json
import logging
from datetime import datetime, timezone
from typing import Any, Union

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from issue_tracker.database.collection import ID_FIELD, IssueCollection, IssueStoreError, get_collection
from issue_tracker.filters import (
    OPTIONAL_FIELDS,
    REQUIRED_FIELDS,
    as_text,
    build_list_filter,
    build_update_set,
    split_id,
)
from issue_tracker.schemas import ActionResult, FieldError, IssueResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/issues", tags=["issues"])


async def read_payload(request: Request) -> dict[str, Any]:
    """Read a JSON or form-encoded request body into a plain dict.

    Bodies that are missing, malformed or not an object read as empty.
    """
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(("application/x-www-form-urlencoded", "multipart/form-data")):
        form = await request.form()
        return dict(form)

    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return {}
    return payload if isinstance(payload, dict) else {}


def _now() -> datetime:
    return datetime.now(timezone.utc)


@router.get("/{project}", response_model=list[IssueResponse])
async def list_issues(
    project: str,
    request: Request,
    collection: IssueCollection = Depends(get_collection),
):
    """List the issues of a project, filtered by any query parameter."""
    query = build_list_filter(project, request.query_params, collection)
    if query is None:
        # An identifier that is not well-formed cannot match anything
        return []

    try:
        documents = await collection.find(query)
    except IssueStoreError:
        logger.exception("Failed to list issues", extra={"project": project})
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "could not retrieve issues"},
        )

    return [IssueResponse.from_document(document) for document in documents]


@router.post(
    "/{project}",
    response_model=Union[IssueResponse, FieldError],
    response_model_exclude_none=True,
)
async def create_issue(
    project: str,
    payload: dict[str, Any] = Depends(read_payload),
    collection: IssueCollection = Depends(get_collection),
):
    """Create new issue"""
    if not all(payload.get(field) for field in REQUIRED_FIELDS):
        return FieldError(error="required field(s) missing")

    now = _now()
    document = {
        "project": project,
        **{field: as_text(payload[field]) for field in REQUIRED_FIELDS},
        **{field: as_text(payload.get(field) or "") for field in OPTIONAL_FIELDS},
        "created_on": now,
        "updated_on": now,
        "open": True,
    }

    try:
        document[ID_FIELD] = await collection.insert_one(document)
    except IssueStoreError:
        logger.exception("Failed to create issue", extra={"project": project})
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "could not create issue"},
        )

    logger.info("Issue created", extra={"issue_id": str(document[ID_FIELD]), "project": project})
    return IssueResponse.from_document(document)


@router.put(
    "/{project}",
    response_model=Union[ActionResult, FieldError],
    response_model_exclude_none=True,
)
async def update_issue(
    project: str,
    payload: dict[str, Any] = Depends(read_payload),
    collection: IssueCollection = Depends(get_collection),
):
    """Update the fields of an issue identified by ``_id``.

    Every outcome, store failures included, is reported in the body with
    HTTP 200.
    """
    issue_id, fields = split_id(payload)

    if not issue_id:
        return FieldError(error="missing _id")

    if not collection.is_valid_id(issue_id):
        return FieldError(error="could not update", id=issue_id)

    update = build_update_set(fields)
    if not update:
        return FieldError(error="no update field(s) sent", id=issue_id)

    update["updated_on"] = _now()

    try:
        updated = await collection.find_one_and_update(
            {ID_FIELD: collection.coerce_id(issue_id), "project": project}, update
        )
    except IssueStoreError:
        logger.exception("Failed to update issue", extra={"issue_id": issue_id, "project": project})
        return FieldError(error="could not update", id=issue_id)

    if updated is None:
        return FieldError(error="could not update", id=issue_id)

    logger.info("Issue updated", extra={"issue_id": issue_id, "fields": sorted(update)})
    return ActionResult(result="successfully updated", id=issue_id)


@router.delete(
    "/{project}",
    response_model=Union[ActionResult, FieldError],
    response_model_exclude_none=True,
)
async def delete_issue(
    project: str,
    payload: dict[str, Any] = Depends(read_payload),
    collection: IssueCollection = Depends(get_collection),
):
    """Delete issue by ``_id``"""
    issue_id, _ = split_id(payload)

    if not issue_id:
        return FieldError(error="missing _id")

    if not collection.is_valid_id(issue_id):
        return FieldError(error="could not delete", id=issue_id)

    try:
        deleted = await collection.delete_one(
            {ID_FIELD: collection.coerce_id(issue_id), "project": project}
        )
    except IssueStoreError:
        logger.exception("Failed to delete issue", extra={"issue_id": issue_id, "project": project})
        return FieldError(error="could not delete", id=issue_id)

    if deleted == 0:
        return FieldError(error="could not delete", id=issue_id)

    logger.info("Issue deleted", extra={"issue_id": issue_id, "project": project})
    return ActionResult(result="successfully deleted", id=issue_id)
