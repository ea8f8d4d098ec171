"""Normalization of loosely typed request input.

Query strings and request bodies arrive as strings keyed by arbitrary field
names. These helpers turn them into the filters and update sets the issue
collection understands. Unknown field names are deliberately accepted and
used as plain equality filters or stored fields.
"""

import json
from typing import Any, Mapping, Optional, Protocol

from issue_tracker.database.collection import ID_FIELD

# Fields a client may never overwrite
IMMUTABLE_FIELDS = ("project", "created_on")

REQUIRED_FIELDS = ("issue_title", "issue_text", "created_by")
OPTIONAL_FIELDS = ("assigned_to", "status_text")


class IdentifierCodec(Protocol):
    """Store capability for checking and converting issue identifiers."""

    def is_valid_id(self, value: Any) -> bool: ...

    def coerce_id(self, value: Any) -> Any: ...


def parse_bool_flag(value: Any) -> Any:
    """Coerce a query/body flag to a boolean.

    Only the exact string ``"true"`` is true; every other string, typos
    included, is false. Values that are not strings are returned unchanged.
    """
    if isinstance(value, str):
        return value == "true"
    return value


def build_list_filter(
    project: str, params: Mapping[str, Any], ids: IdentifierCodec
) -> Optional[dict[str, Any]]:
    """Build the collection filter for listing issues of ``project``.

    Returns None when ``params`` carries an identifier that cannot match any
    issue, so the caller can answer with an empty list without a lookup.
    """
    query: dict[str, Any] = {}

    for key, value in params.items():
        # An empty value means "no filter" for that field
        if value == "":
            continue

        if key == ID_FIELD:
            if not ids.is_valid_id(value):
                return None
            query[ID_FIELD] = ids.coerce_id(value)
        elif key == "open":
            query["open"] = parse_bool_flag(value)
        else:
            query[key] = value

    # The path project always wins over a ?project= parameter
    query["project"] = project
    return query


def split_id(payload: Mapping[str, Any]) -> tuple[Any, dict[str, Any]]:
    """Separate the issue identifier from the other fields of a request body."""
    fields = {key: value for key, value in payload.items() if key != ID_FIELD}
    return payload.get(ID_FIELD), fields


def as_text(value: Any) -> str:
    """Render a JSON body value as the text stored in a string field.

    Booleans follow JSON spelling and objects/arrays are stored as JSON.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return str(value)


def build_update_set(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Select the fields an update should write.

    Empty strings mean "leave this field alone" and are dropped rather than
    clearing the field. Immutable fields are never written. Values for the
    issue's own fields are normalized to the types those fields hold:
    ``null`` clears an optional text field, is ignored for a required one,
    and ``open`` is true only for ``"true"`` or ``true``.
    """
    update = {}
    for key, value in fields.items():
        if value == "" or key in IMMUTABLE_FIELDS:
            continue

        if key in REQUIRED_FIELDS:
            if value is None:
                continue
            value = as_text(value)
        elif key in OPTIONAL_FIELDS:
            value = "" if value is None else as_text(value)
        elif key == "open":
            value = parse_bool_flag(value) is True

        update[key] = value
    return update
