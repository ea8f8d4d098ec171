from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class IssueResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    issue_title: str
    issue_text: str
    created_on: datetime
    updated_on: datetime
    created_by: str
    assigned_to: str = ""
    open: bool
    status_text: str = ""

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "IssueResponse":
        """Project a stored issue document onto the public issue shape."""
        return cls(
            id=str(document["_id"]),
            issue_title=document["issue_title"],
            issue_text=document["issue_text"],
            created_on=document["created_on"],
            updated_on=document["updated_on"],
            created_by=document["created_by"],
            assigned_to=document.get("assigned_to") or "",
            open=document["open"],
            status_text=document.get("status_text") or "",
        )


class ActionResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    result: str
    id: Any = Field(alias="_id")


class FieldError(BaseModel):
    """Validation or not-found outcome, returned with HTTP 200."""

    model_config = ConfigDict(populate_by_name=True)

    error: str
    id: Optional[Any] = Field(None, alias="_id")
