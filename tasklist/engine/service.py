"""
TaskList Task Service — The four task operations plus image upload, over TaskBackendClient.

Handles:
- Loading the task list
- Creating a task: validate file → random key → upload → public URL → insert
- Toggling completion and deleting by id

Errors are raised to the caller (the view-model), which decides whether to
surface, ignore or log them.
"""

from __future__ import annotations

import logging
import mimetypes
import uuid
from pathlib import PurePosixPath
from typing import Any, Callable, List, Optional, Tuple

from tasklist.engine.client import TaskBackendClient
from tasklist.engine.config import AppConfig, UploadConfig
from tasklist.engine.errors import (
    TaskListPreconditionError,
    TaskListUploadError,
    TaskListValidationError,
)
from tasklist.engine.models import AuthSession, SelectedFile, Task
from tasklist.engine.session import AuthProvider, token_getter

logger = logging.getLogger("tasklist.engine.service")

ClientFactory = Callable[[], TaskBackendClient]


def new_object_key(filename: str = "") -> str:
    """Random unique object key; keeps the file's extension when it has one."""
    suffix = PurePosixPath(filename).suffix.lower()
    return f"{uuid.uuid4()}{suffix}"


def detect_content_type(filename: str) -> str:
    mime, _ = mimetypes.guess_type(filename)
    return mime or "application/octet-stream"


class TaskService:
    """
    Task operations for one signed-in identity.

    ``client_factory`` returns a fresh TaskBackendClient bound to that
    identity's token getter; each operation opens and closes its own client.
    """

    def __init__(self, client_factory: ClientFactory, upload: Optional[UploadConfig] = None):
        self._client_factory = client_factory
        self._upload = upload or UploadConfig()

    async def load_tasks(self) -> List[Task]:
        async with self._client_factory() as client:
            return await client.list_tasks()

    def validate_upload(self, file: SelectedFile) -> Tuple[bool, Optional[str]]:
        """
        Validate a file against the allowed image types and size limit.

        Returns (is_valid, error_message_or_None).
        """
        if file.is_empty:
            return False, f"File '{file.filename}' is empty"

        allowed = self._upload.allowed_types
        if allowed and file.content_type not in allowed:
            return False, (
                f"File type '{file.content_type}' not allowed. Allowed: {allowed}"
            )

        max_bytes = self._upload.max_upload_size_mb * 1024 * 1024
        if file.size > max_bytes:
            return False, (
                f"File size ({file.size / 1024 / 1024:.1f} MB) exceeds "
                f"limit ({self._upload.max_upload_size_mb} MB)"
            )
        return True, None

    async def create_task(self, name: str, file: Optional[SelectedFile]) -> str:
        """
        Upload the image and insert a task referencing its public URL.

        An upload failure is logged and creation carries on with the URL of
        the missing object, unless ``block_on_upload_failure`` is configured.

        Returns:
            The object key the image was stored under.

        Raises:
            TaskListPreconditionError if no file is given.
            TaskListValidationError if ``validate_files`` is on and the file
            fails the empty/type/size checks.
            TaskListUploadError if the upload fails and blocking is configured.
            TaskListBackendError if the insert fails.
        """
        if file is None:
            raise TaskListPreconditionError("No file selected", operation="create_task")

        if self._upload.validate_files:
            ok, error = self.validate_upload(file)
            if not ok:
                raise TaskListValidationError(error or "Invalid file", operation="create_task",
                                              filename=file.filename)

        key = new_object_key(file.filename)
        async with self._client_factory() as client:
            try:
                await client.upload_object(key, file.data, file.content_type)
            except TaskListUploadError as e:
                logger.error("Error uploading file: %s", e.message)
                if self._upload.block_on_upload_failure:
                    raise

            image_url = client.get_public_url(key)
            await client.insert_task(name, image_url)

        logger.info("Created task %r with image %s", name, key)
        return key

    async def set_done(self, task_id: int, is_done: bool) -> None:
        async with self._client_factory() as client:
            await client.update_task_done(task_id, is_done)

    async def delete_task(self, task_id: int) -> None:
        async with self._client_factory() as client:
            await client.delete_task(task_id)


def build_service(
    config: AppConfig,
    provider: AuthProvider,
    session: AuthSession,
    transport: Optional[Any] = None,
) -> TaskService:
    """TaskService whose clients sign every request with a fresh token for ``session``."""
    get_token = token_getter(provider, session)

    def _client() -> TaskBackendClient:
        return TaskBackendClient(config, get_token, transport=transport)

    return TaskService(_client, upload=config.upload)
