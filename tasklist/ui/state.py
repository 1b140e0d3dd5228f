"""
TaskList UI — Reflex State for authentication and the task screen.

Provides:
- AuthState: sign-in/sign-out, identity vars, backend-only refresh credential
- TaskState: mirrors TaskViewModel and exposes its actions as event handlers
- restore_viewmodel / screen_values: the plain-dict bridge between the two
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

import reflex as rx

from tasklist.engine.config import get_config
from tasklist.engine.errors import TaskListSessionError
from tasklist.engine.models import AuthSession, Identity, SelectedFile, Task
from tasklist.engine.service import TaskService, build_service, detect_content_type
from tasklist.engine.session import AuthProvider
from tasklist.viewmodel import ServiceFactory, TaskViewModel

logger = logging.getLogger("tasklist.ui.state")

UPLOAD_ID = "task_image"

# TaskState vars restored into / written back from the view-model
SCREEN_VARS = ("tasks", "loading", "name", "preview_url", "selected_filename", "_selected_file")


class AuthState(rx.State):
    """
    Signed-in identity.

    The refresh credential lives in a backend-only var and is rotated on
    every outbound call.
    """

    is_authenticated: bool = False
    user_id: str = ""
    email: str = ""

    login_error: str = ""
    is_loading: bool = False

    _refresh_token: str = ""

    async def login(self, form_data: dict) -> rx.event.EventSpec | None:
        """Handle login form submission."""
        self.is_loading = True
        self.login_error = ""

        email = form_data.get("email", "").strip()
        password = form_data.get("password", "")

        if not email or not password:
            self.login_error = "Email and password are required"
            self.is_loading = False
            return None

        try:
            session = await _get_provider().sign_in(email, password)
        except TaskListSessionError as e:
            logger.warning("Sign-in failed for %s: %s", email, e.message)
            self.login_error = "Sign-in failed. Check your email and password."
            self.is_loading = False
            return None

        self.is_authenticated = True
        self.user_id = session.identity.user_id
        self.email = session.identity.email
        self._refresh_token = session.refresh_token
        self.is_loading = False
        return rx.redirect("/")

    async def logout(self) -> rx.event.EventSpec:
        """Handle logout."""
        session = self._auth_session()
        if session is not None:
            await _get_provider().sign_out(session)

        self.is_authenticated = False
        self.user_id = ""
        self.email = ""
        self._refresh_token = ""
        return rx.redirect("/login")

    def check_auth(self) -> rx.event.EventSpec | None:
        """Redirect to login if not authenticated."""
        if not self.is_authenticated:
            return rx.redirect("/login")
        return None

    def _auth_session(self) -> Optional[AuthSession]:
        return auth_session(self.is_authenticated, self.user_id, self.email, self._refresh_token)


class TaskState(AuthState):
    """State of the task screen; every handler runs through a TaskViewModel."""

    tasks: list[dict] = []
    loading: bool = True
    name: str = ""
    preview_url: str = ""
    selected_filename: str = ""

    _selected_file: dict = {}

    def set_name(self, value: str) -> None:
        self.name = value

    async def load_tasks(self):
        """Mount-time load; does nothing until an identity is present."""
        session = self._auth_session()
        if session is None:
            return
        self.loading = True
        yield
        vm = self._viewmodel()
        await vm.load(session)
        self._apply(vm, session)

    async def create_task(self, form_data: dict):
        """Create-form submit."""
        if form_data.get("name") is not None:
            self.name = str(form_data["name"])
        session = self._auth_session()
        vm = self._viewmodel()
        await vm.create(session)
        self._apply(vm, session)

    async def on_check_clicked(self, task_id: int, is_done: bool):
        session = self._auth_session()
        vm = self._viewmodel()
        await vm.toggle_done(session, int(task_id), bool(is_done))
        self._apply(vm, session)

    async def delete_task(self, task_id: int):
        session = self._auth_session()
        vm = self._viewmodel()
        await vm.delete(session, int(task_id))
        self._apply(vm, session)

    async def handle_files(self, files: list[rx.UploadFile]):
        """File picker change: keep the first file and show its preview."""
        vm = self._viewmodel()
        vm.select_files(await read_uploads(files))
        self._apply(vm, None)

    def _viewmodel(self) -> TaskViewModel:
        return restore_viewmodel({name: getattr(self, name) for name in SCREEN_VARS})

    def _apply(self, vm: TaskViewModel, session: Optional[AuthSession]) -> None:
        for name, value in screen_values(vm, session).items():
            setattr(self, name, value)


# ---------------------------------------------------------------------------
# State <-> view-model bridge
# ---------------------------------------------------------------------------

def auth_session(
    is_authenticated: bool,
    user_id: str,
    email: str,
    refresh_token: str,
) -> Optional[AuthSession]:
    """Session for the stored identity, or None when nobody is signed in."""
    if not is_authenticated or not refresh_token:
        return None
    return AuthSession(
        identity=Identity(user_id=user_id, email=email),
        refresh_token=refresh_token,
    )


def restore_viewmodel(
    values: Dict[str, Any],
    service_factory: Optional[ServiceFactory] = None,
) -> TaskViewModel:
    """Rebuild a TaskViewModel from TaskState var values."""
    vm = TaskViewModel(service_factory=service_factory or _service_for)
    vm.tasks = [Task.model_validate(dict(row)) for row in values.get("tasks") or []]
    vm.loading = bool(values.get("loading", True))
    vm.name = values.get("name") or ""
    vm.preview_url = values.get("preview_url") or ""
    picked = values.get("_selected_file") or {}
    vm.selected_file = SelectedFile(**picked) if picked else None
    return vm


def screen_values(vm: TaskViewModel, session: Optional[AuthSession]) -> Dict[str, Any]:
    """
    TaskState var values for ``vm``.

    With a session, the refresh credential it rotated to is included; the
    previous one is no longer accepted by the auth service.
    """
    values: Dict[str, Any] = {
        "tasks": vm.rows(),
        "loading": vm.loading,
        "name": vm.name,
        "preview_url": vm.preview_url,
        "selected_filename": "",
        "_selected_file": {},
    }
    if vm.selected_file is not None:
        values["selected_filename"] = vm.selected_file.filename
        values["_selected_file"] = vm.selected_file.model_dump()
    if session is not None:
        values["_refresh_token"] = session.refresh_token
    return values


async def read_uploads(files: Sequence[Any]) -> List[SelectedFile]:
    """The first picked upload as a SelectedFile; later ones are ignored."""
    if not files:
        return []
    first = files[0]
    filename = first.filename or "upload"
    return [SelectedFile(
        filename=filename,
        content_type=first.content_type or detect_content_type(filename),
        data=await first.read(),
    )]


# ---------------------------------------------------------------------------
# Auth provider singleton accessor
# ---------------------------------------------------------------------------

_provider_instance: Optional[AuthProvider] = None


def set_provider(provider: Any) -> None:
    """Set the global auth provider (tests and app startup)."""
    global _provider_instance
    _provider_instance = provider


def _get_provider() -> AuthProvider:
    global _provider_instance
    if _provider_instance is None:
        _provider_instance = AuthProvider(get_config())
    return _provider_instance


def _service_for(session: AuthSession) -> TaskService:
    return build_service(get_config(), _get_provider(), session)
