"""
TaskList Models — Pydantic definitions for the records exchanged with the hosted backend.

Task: the single persisted entity (validated at the transport boundary).
Identity / AuthSession: who is signed in, and the credential used to mint tokens.
SelectedFile: an image picked in the create form, not yet uploaded.
"""

from __future__ import annotations

import base64
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from tasklist.engine.errors import TaskListValidationError


# ---------------------------------------------------------------------------
# Task record
# ---------------------------------------------------------------------------

class Task(BaseModel):
    """
    A to-do item with an optional image.

    ``image_url`` is set once at creation and never changed afterwards;
    ``is_done`` is the only field mutated after creation.
    """

    model_config = ConfigDict(extra="ignore")

    id: int = Field(description="Generated by the remote store")
    name: str = Field(description="User-supplied task name")
    is_done: bool = Field(default=False, description="Completion flag")
    image_url: Optional[str] = Field(default=None, description="Public URL of the uploaded image")

    def to_row(self) -> Dict[str, Any]:
        """Plain dict for UI state vars."""
        return {
            "id": self.id,
            "name": self.name,
            "is_done": self.is_done,
            "image_url": self.image_url or "",
        }


def parse_tasks(payload: Any) -> List[Task]:
    """
    Validate a collection response into Task records.

    Raises:
        TaskListValidationError if the payload is not a list of task rows.
    """
    if not isinstance(payload, list):
        raise TaskListValidationError(
            "Expected a list of task rows",
            operation="list_tasks",
            payload_type=type(payload).__name__,
        )
    try:
        return [Task.model_validate(row) for row in payload]
    except ValidationError as e:
        raise TaskListValidationError(
            "Task row did not match the expected schema",
            operation="list_tasks",
            validation_errors=e.errors(include_url=False),
        ) from e


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------

class Identity(BaseModel):
    """The signed-in account."""
    user_id: str
    email: str = ""


class AuthSession(BaseModel):
    """
    Identity plus the refresh credential.

    Access tokens are not kept here; each outbound call mints a new one
    and the auth service rotates ``refresh_token`` when it does.
    """
    identity: Identity
    refresh_token: str


# ---------------------------------------------------------------------------
# File selection
# ---------------------------------------------------------------------------

class SelectedFile(BaseModel):
    """An image chosen in the create form, held in memory until submit."""
    filename: str
    content_type: str = "application/octet-stream"
    data: bytes = b""

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def is_empty(self) -> bool:
        return not self.data

    def preview_url(self) -> str:
        """Local data: URL for the preview image; derived without any network call."""
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.content_type};base64,{encoded}"
