"""
TaskList Error Hierarchy — Structured exceptions raised by the client and service layers.

Every error carries a free-form context dict that serializes to JSON, so the
view-model can write it to the diagnostic channel unchanged.

Hierarchy:
    TaskListError
    ├── TaskListConfigError        — Missing or invalid configuration
    ├── TaskListSessionError       — No identity / sign-in or token refresh failed
    ├── TaskListBackendError       — Collection or storage call failed
    │   └── TaskListUploadError    — Object upload failed
    ├── TaskListValidationError    — Record or file did not match expectations
    └── TaskListPreconditionError  — Required input (file, identity) missing
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional


class TaskListError(Exception):
    """
    Base error for all TaskList failures.
    All context is serializable to JSON.
    """

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.operation: Optional[str] = context.get("operation")
        self.user_id: Optional[str] = context.get("user_id")
        self.error_type: str = self.__class__.__name__
        self.context: Dict[str, Any] = context
        self.timestamp: str = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize error to a JSON-compatible dict for logging."""
        return {
            "error_type": self.error_type,
            "message": self.message,
            "operation": self.operation,
            "user_id": self.user_id,
            "timestamp": self.timestamp,
            "context": {
                k: str(v) for k, v in self.context.items()
                if k not in ("operation", "user_id")
            },
        }

    def to_json(self) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), default=str)

    def __repr__(self) -> str:
        parts = [f"{self.error_type}: {self.message}"]
        if self.operation:
            parts.append(f"operation={self.operation}")
        if self.user_id:
            parts.append(f"user_id={self.user_id}")
        return " | ".join(parts)


class TaskListConfigError(TaskListError):
    """Configuration error — missing backend URL/key or invalid tasklist.yaml."""
    pass


class TaskListSessionError(TaskListError):
    """No identity available, or the auth service refused a sign-in/refresh."""

    def __init__(self, message: str, **context: Any):
        self.status_code: Optional[int] = context.get("status_code")
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["status_code"] = self.status_code
        return d


class TaskListBackendError(TaskListError):
    """A call to the remote collection or object storage failed."""

    def __init__(self, message: str, **context: Any):
        self.status_code: Optional[int] = context.get("status_code")
        self.response_body: Optional[str] = context.get("response_body")
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["status_code"] = self.status_code
        return d


class TaskListUploadError(TaskListBackendError):
    """Binary object upload failed."""

    def __init__(self, message: str, **context: Any):
        self.object_key: Optional[str] = context.get("object_key")
        self.bucket: Optional[str] = context.get("bucket")
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["object_key"] = self.object_key
        d["bucket"] = self.bucket
        return d


class TaskListValidationError(TaskListError):
    """
    Input or response validation failed (Pydantic, MIME type, size).
    Includes field-level error details when available.
    """

    def __init__(self, message: str, **context: Any):
        self.validation_errors: Optional[list] = context.get("validation_errors")
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["validation_errors"] = self.validation_errors
        return d


class TaskListPreconditionError(TaskListError):
    """A required input is missing, so the operation was not attempted."""
    pass
