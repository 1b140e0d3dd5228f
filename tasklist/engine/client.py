"""
TaskList Backend Client — Typed async client for the hosted task collection and image bucket.

Pipeline (per call):
    1. BearerTokenAuth fetches a fresh access token (never cached)
    2. Build the REST request (collection or storage endpoint)
    3. Execute via httpx.AsyncClient
    4. Non-2xx → TaskListBackendError / TaskListUploadError
    5. Validate collection rows into Task records
    6. Log the call (stdlib logger + structured backend/storage entry)

No retries: a failed call raises once and the caller decides what to do.
"""

from __future__ import annotations

import logging
import time
from typing import Any, List, Optional
from urllib.parse import quote

import httpx

from tasklist.engine.config import AppConfig
from tasklist.engine.errors import TaskListBackendError, TaskListUploadError
from tasklist.engine.logging import log, log_backend_call
from tasklist.engine.models import Task, parse_tasks
from tasklist.engine.session import TokenGetter

logger = logging.getLogger("tasklist.engine.client")

REST_PREFIX = "/rest/v1"
STORAGE_PREFIX = "/storage/v1/object"


class BearerTokenAuth(httpx.Auth):
    """
    Request-signing hook: awaits the token getter before every request.

    Keeps credential handling out of the business calls; a failing getter
    raises TaskListSessionError straight out of the request.
    """

    def __init__(self, get_token: TokenGetter):
        self._get_token = get_token

    async def async_auth_flow(self, request: httpx.Request):
        token = await self._get_token()
        request.headers["Authorization"] = f"Bearer {token}"
        yield request


class TaskBackendClient:
    """
    Remote data/storage client for one signed-in identity.

    Use as an async context manager so the underlying connection pool is closed:

        async with TaskBackendClient(config, get_token) as client:
            tasks = await client.list_tasks()
    """

    def __init__(
        self,
        config: AppConfig,
        get_token: TokenGetter,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = config.backend.url
        self._table = config.backend.table
        self._bucket = config.backend.bucket
        self._http = httpx.AsyncClient(
            base_url=self._base_url,
            headers={"apikey": config.backend.anon_key},
            auth=BearerTokenAuth(get_token),
            timeout=httpx.Timeout(config.backend.timeout, connect=10.0),
            transport=transport,
        )

    async def __aenter__(self) -> "TaskBackendClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    @property
    def bucket(self) -> str:
        return self._bucket

    # -----------------------------------------------------------------------
    # Collection operations
    # -----------------------------------------------------------------------

    async def list_tasks(self) -> List[Task]:
        """All tasks visible to the current identity. Ordering is whatever the backend returns."""
        response = await self._call(
            "list_tasks", "GET", self._table_path(), params={"select": "*"},
        )
        try:
            payload = response.json()
        except ValueError as e:
            raise TaskListBackendError(
                "Collection returned a non-JSON body",
                operation="list_tasks",
                status_code=response.status_code,
                response_body=response.text[:500],
            ) from e
        return parse_tasks(payload)

    async def insert_task(self, name: str, image_url: Optional[str]) -> None:
        """Create one task. The backend assigns ``id`` and ``is_done=false``."""
        await self._call(
            "insert_task", "POST", self._table_path(),
            json={"name": name, "image_url": image_url},
            headers={"Prefer": "return=minimal"},
        )

    async def update_task_done(self, task_id: int, is_done: bool) -> None:
        """Set ``is_done`` on the task whose id equals ``task_id``."""
        await self._call(
            "update_task_done", "PATCH", self._table_path(),
            params={"id": f"eq.{task_id}"},
            json={"is_done": is_done},
            headers={"Prefer": "return=minimal"},
        )

    async def delete_task(self, task_id: int) -> None:
        """Remove the task whose id equals ``task_id``."""
        await self._call(
            "delete_task", "DELETE", self._table_path(),
            params={"id": f"eq.{task_id}"},
        )

    # -----------------------------------------------------------------------
    # Storage operations
    # -----------------------------------------------------------------------

    async def upload_object(self, key: str, data: bytes, content_type: str) -> None:
        """
        Upload binary content under ``key`` in the image bucket.

        Raises:
            TaskListUploadError on any failure.
        """
        try:
            await self._call(
                "upload_object", "POST", self._object_path(key),
                content=data,
                headers={"Content-Type": content_type, "x-upsert": "false"},
            )
        except TaskListBackendError as e:
            raise TaskListUploadError(
                f"Upload of '{key}' failed: {e.message}",
                operation="upload_object",
                status_code=e.status_code,
                response_body=e.response_body,
                object_key=key,
                bucket=self._bucket,
            ) from e

    def get_public_url(self, key: str) -> str:
        """Public URL for ``key``; derived locally, so it exists even if the upload failed."""
        return f"{self._base_url}{STORAGE_PREFIX}/public/{self._bucket}/{quote(key)}"

    # -----------------------------------------------------------------------
    # HTTP
    # -----------------------------------------------------------------------

    def _table_path(self) -> str:
        return f"{REST_PREFIX}/{self._table}"

    def _object_path(self, key: str) -> str:
        return f"{STORAGE_PREFIX}/{self._bucket}/{quote(key)}"

    async def _call(
        self,
        operation: str,
        method: str,
        path: str,
        **kwargs: Any,
    ) -> httpx.Response:
        start = time.monotonic()
        url = f"{self._base_url}{path}"
        try:
            response = await self._http.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            duration_ms = (time.monotonic() - start) * 1000
            log(log_backend_call(operation, method, url, 0, duration_ms, False, error=str(e)))
            logger.error("%s %s failed: %s", method, url, e)
            raise TaskListBackendError(
                f"{operation} failed: {e}",
                operation=operation,
                status_code=0,
            ) from e

        duration_ms = (time.monotonic() - start) * 1000
        success = response.is_success
        if not success:
            body = response.text[:500]
            log(log_backend_call(
                operation, method, url, response.status_code, duration_ms, False,
                error=body,
            ))
            logger.error("%s %s returned HTTP %d: %s", method, url, response.status_code, body)
            raise TaskListBackendError(
                f"{operation} failed with HTTP {response.status_code}",
                operation=operation,
                status_code=response.status_code,
                response_body=body,
            )

        log(log_backend_call(operation, method, url, response.status_code, duration_ms, True))
        logger.debug("%s %s → %d (%.1fms)", method, url, response.status_code, duration_ms)
        return response
