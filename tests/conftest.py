"""
TaskList Test Suite — Shared fixtures and configuration.

Run:  pytest tests/ -v

The hosted backend is replaced by FakeBackend, an in-memory auth service +
task collection + image bucket served through httpx.MockTransport.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Tuple

import httpx
import pytest
import pytest_asyncio

from tasklist.engine.config import AppConfig, BackendConfig
from tasklist.engine.models import SelectedFile

BACKEND_URL = "https://backend.test"
ANON_KEY = "anon-key-123"
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


# ---------------------------------------------------------------------------
# Environment setup: no real network, no leftover singletons
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _isolate_globals(monkeypatch):
    """Reset global singletons and backend env vars between tests."""
    import tasklist.engine.config as cfg_mod
    import tasklist.engine.logging as log_mod

    for name in (
        "TASKLIST_BACKEND_URL", "TASKLIST_BACKEND_KEY",
        "SUPABASE_URL", "SUPABASE_ANON_KEY",
        "TASKLIST_LOG_LEVEL", "TASKLIST_ENV", "TASKLIST_PASSWORD",
    ):
        monkeypatch.delenv(name, raising=False)

    cfg_mod._config = None
    yield
    cfg_mod._config = None
    log_mod.shutdown_logging()


class FakeBackend:
    """
    In-memory stand-in for the hosted backend.

    - /auth/v1/token     password + refresh_token grants, rotating refresh tokens
    - /auth/v1/logout    revokes the caller's refresh tokens
    - /rest/v1/tasks     GET/POST/PATCH/DELETE scoped to the token's user
    - /storage/v1/object/tasks_image/{key}   uploads

    ``fail`` maps an operation name (list, insert, update, delete, upload,
    refresh) to an HTTP status to return instead of succeeding.
    """

    def __init__(self):
        self.users: Dict[str, Tuple[str, str]] = {"me@example.com": ("secret", "user-1")}
        self.rows: List[Dict[str, Any]] = []
        self.objects: Dict[str, Tuple[bytes, str]] = {}
        self.requests: List[httpx.Request] = []
        self.fail: Dict[str, int] = {}
        self.refresh_grants = 0
        self._next_id = 1
        self._counter = 0
        self._refresh_tokens: Dict[str, str] = {}
        self._access_tokens: Dict[str, str] = {}

    # -- helpers for tests --------------------------------------------------

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def seed(self, name: str, is_done: bool = False, image_url: Optional[str] = None,
             user_id: str = "user-1") -> int:
        task_id = self._next_id
        self._next_id += 1
        self.rows.append({
            "id": task_id, "name": name, "is_done": is_done,
            "image_url": image_url, "user_id": user_id,
        })
        return task_id

    def rows_for(self, user_id: str = "user-1") -> List[Dict[str, Any]]:
        return [r for r in self.rows if r["user_id"] == user_id]

    def data_requests(self) -> List[httpx.Request]:
        """Requests to the collection and storage (not auth)."""
        return [r for r in self.requests if not r.url.path.startswith("/auth/")]

    # -- transport ------------------------------------------------------------

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if request.headers.get("apikey") != ANON_KEY:
            return httpx.Response(401, json={"message": "No API key found in request"})
        if path == "/auth/v1/token":
            return self._token(request)
        if path == "/auth/v1/logout":
            return self._logout(request)

        user_id = self._authorize(request)
        if user_id is None:
            return httpx.Response(401, json={"message": "JWT expired"})
        if path == "/rest/v1/tasks":
            return self._tasks(request, user_id)
        if path.startswith("/storage/v1/object/tasks_image/"):
            return self._upload(request, path.rsplit("/", 1)[-1])
        return httpx.Response(404, json={"message": "not found"})

    def _issue(self, user_id: str, email: str) -> Dict[str, Any]:
        self._counter += 1
        access = f"at-{self._counter}"
        refresh = f"rt-{self._counter}"
        self._access_tokens[access] = user_id
        self._refresh_tokens[refresh] = user_id
        return {
            "access_token": access,
            "refresh_token": refresh,
            "expires_in": 60,
            "token_type": "bearer",
            "user": {"id": user_id, "email": email},
        }

    def _email_for(self, user_id: str) -> str:
        for email, (_, uid) in self.users.items():
            if uid == user_id:
                return email
        return ""

    def _token(self, request: httpx.Request) -> httpx.Response:
        grant = request.url.params.get("grant_type")
        body = json.loads(request.content or b"{}")
        if grant == "password":
            known = self.users.get(body.get("email"))
            if not known or known[0] != body.get("password"):
                return httpx.Response(400, json={"error": "invalid_grant"})
            return httpx.Response(200, json=self._issue(known[1], body["email"]))
        if grant == "refresh_token":
            self.refresh_grants += 1
            if "refresh" in self.fail:
                return httpx.Response(self.fail["refresh"], json={"error": "invalid_grant"})
            user_id = self._refresh_tokens.pop(body.get("refresh_token"), None)
            if user_id is None:
                return httpx.Response(400, json={"error": "invalid_grant"})
            return httpx.Response(200, json=self._issue(user_id, self._email_for(user_id)))
        return httpx.Response(400, json={"error": "unsupported_grant_type"})

    def _logout(self, request: httpx.Request) -> httpx.Response:
        user_id = self._authorize(request)
        if user_id is None:
            return httpx.Response(401)
        self._refresh_tokens = {t: u for t, u in self._refresh_tokens.items() if u != user_id}
        return httpx.Response(204)

    def _authorize(self, request: httpx.Request) -> Optional[str]:
        header = request.headers.get("Authorization", "")
        if not header.startswith("Bearer "):
            return None
        return self._access_tokens.get(header[len("Bearer "):])

    def _tasks(self, request: httpx.Request, user_id: str) -> httpx.Response:
        method = request.method
        op = {"GET": "list", "POST": "insert", "PATCH": "update", "DELETE": "delete"}[method]
        if op in self.fail:
            return httpx.Response(self.fail[op], json={"message": f"{op} failed"})

        if method == "GET":
            return httpx.Response(200, json=self.rows_for(user_id))

        if method == "POST":
            body = json.loads(request.content)
            self.seed(body["name"], image_url=body.get("image_url"), user_id=user_id)
            return httpx.Response(201)

        task_id = int(request.url.params["id"].removeprefix("eq."))
        matching = [r for r in self.rows if r["id"] == task_id and r["user_id"] == user_id]
        if method == "PATCH":
            body = json.loads(request.content)
            for row in matching:
                row["is_done"] = body["is_done"]
            return httpx.Response(204)

        self.rows = [r for r in self.rows if r not in matching]
        return httpx.Response(204)

    def _upload(self, request: httpx.Request, key: str) -> httpx.Response:
        if "upload" in self.fail:
            return httpx.Response(self.fail["upload"], json={"message": "upload failed"})
        if key in self.objects:
            return httpx.Response(409, json={"message": "The resource already exists"})
        self.objects[key] = (request.content, request.headers.get("Content-Type", ""))
        return httpx.Response(200, json={"Key": f"tasks_image/{key}"})


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def app_config() -> AppConfig:
    """AppConfig pointing at the fake backend."""
    return AppConfig(backend=BackendConfig(url=BACKEND_URL, anon_key=ANON_KEY))


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def provider(app_config, backend):
    from tasklist.engine.session import AuthProvider

    return AuthProvider(app_config, transport=backend.transport)


@pytest_asyncio.fixture
async def session(provider):
    return await provider.sign_in("me@example.com", "secret")


@pytest.fixture
def service_factory(app_config, provider, backend):
    """ServiceFactory for TaskViewModel, wired to the fake backend."""
    from tasklist.engine.service import build_service

    def _factory(session):
        return build_service(app_config, provider, session, transport=backend.transport)

    return _factory


@pytest.fixture
def png_file() -> SelectedFile:
    return SelectedFile(filename="milk.png", content_type="image/png", data=PNG_BYTES)


@pytest.fixture
def project_root(tmp_path):
    """A project directory with a tasklist.yaml."""
    root = tmp_path / "project"
    root.mkdir()
    (root / "tasklist.yaml").write_text(
        "app:\n"
        "  name: TestTasks\n"
        "  environment: staging\n"
        "  backend:\n"
        "    url: https://from-file.test/\n"
        "    anon_key: file-key\n"
        "    bucket: pictures\n"
        "  ui:\n"
        "    title: My Tasks\n",
        encoding="utf-8",
    )
    return root
