"""TaskList Engine — Config, errors, logging, auth session, backend client, task service."""

from tasklist.engine.client import TaskBackendClient  # noqa: F401
from tasklist.engine.service import TaskService, build_service  # noqa: F401
from tasklist.engine.session import AuthProvider  # noqa: F401

__all__ = [
    "TaskBackendClient",
    "TaskService",
    "build_service",
    "AuthProvider",
]
