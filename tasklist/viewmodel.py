"""
TaskList View-Model — UI state for the task screen and the actions that change it.

States:
    uninitialized → loading → loaded → (mutation) → loading → loaded …

Every mutation ends in reload(): form fields, file selection and preview are
cleared and the list is fetched again. No partial or optimistic updates.
Failures are logged to the diagnostic channel and never surfaced.
"""

from __future__ import annotations

import enum
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from tasklist.engine.errors import (
    TaskListError,
    TaskListPreconditionError,
    TaskListValidationError,
)
from tasklist.engine.logging import log, log_task_event
from tasklist.engine.models import AuthSession, SelectedFile, Task
from tasklist.engine.service import TaskService

logger = logging.getLogger("tasklist.viewmodel")

ServiceFactory = Callable[[AuthSession], TaskService]


class Phase(str, enum.Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    LOADED = "loaded"


def _user_id(session: Optional[AuthSession]) -> Optional[str]:
    return session.identity.user_id if session else None


class TaskViewModel:
    """
    In-memory state of the task screen.

    ``service_factory`` builds a TaskService for the signed-in session; it is
    only called once a session exists, so no identity means no network call.
    """

    def __init__(self, service_factory: ServiceFactory):
        self._service_factory = service_factory
        self.tasks: List[Task] = []
        self.loading: bool = True
        self.phase: Phase = Phase.UNINITIALIZED
        self.name: str = ""
        self.selected_file: Optional[SelectedFile] = None
        self.preview_url: str = ""

    # -----------------------------------------------------------------------
    # Load
    # -----------------------------------------------------------------------

    async def load(self, session: Optional[AuthSession]) -> None:
        """Fetch the task list once an identity is available. On error the previous list is kept."""
        if session is None:
            logger.debug("No identity yet, skipping task load")
            return

        self.loading = True
        self.phase = Phase.LOADING
        try:
            tasks = await self._service_factory(session).load_tasks()
        except TaskListError as e:
            logger.error("Failed to load tasks: %s", e.message)
            log(log_task_event("load_failed", _user_id(session), error=e.to_dict()))
        else:
            self.tasks = tasks
            log(log_task_event("loaded", _user_id(session), count=len(tasks)))
        finally:
            self.loading = False
            self.phase = Phase.LOADED

    async def reload(self, session: Optional[AuthSession]) -> None:
        """Reset everything a page reload would clear, then load again."""
        self.name = ""
        self.selected_file = None
        self.preview_url = ""
        await self.load(session)

    # -----------------------------------------------------------------------
    # Mutations
    # -----------------------------------------------------------------------

    async def create(self, session: Optional[AuthSession]) -> None:
        """Upload the selected image and create a task named after the name field."""
        if self.selected_file is None:
            self._abort("create", session, "No file selected")
            return
        if session is None:
            self._abort("create", session, "User is not defined")
            return

        try:
            key = await self._service_factory(session).create_task(self.name, self.selected_file)
        except (TaskListPreconditionError, TaskListValidationError) as e:
            self._abort("create", session, e.message)
            return
        except TaskListError as e:
            self._failed("create", session, e)
        else:
            log(log_task_event("created", _user_id(session), name=self.name, object_key=key))

        await self.reload(session)

    async def toggle_done(self, session: Optional[AuthSession], task_id: int, is_done: bool) -> None:
        """Set the checkbox state of one task."""
        if session is None:
            self._abort("toggle", session, "User is not defined", task_id=task_id)
            return
        try:
            await self._service_factory(session).set_done(task_id, is_done)
        except TaskListError as e:
            self._failed("toggle", session, e, task_id=task_id)
        else:
            log(log_task_event("toggled", _user_id(session), task_id=task_id, is_done=is_done))

        await self.reload(session)

    async def delete(self, session: Optional[AuthSession], task_id: int) -> None:
        """Remove one task by id."""
        if session is None:
            self._abort("delete", session, "User is not defined", task_id=task_id)
            return
        try:
            await self._service_factory(session).delete_task(task_id)
        except TaskListError as e:
            self._failed("delete", session, e, task_id=task_id)
        else:
            log(log_task_event("deleted", _user_id(session), task_id=task_id))

        await self.reload(session)

    # -----------------------------------------------------------------------
    # Form
    # -----------------------------------------------------------------------

    def select_files(self, files: Sequence[SelectedFile]) -> None:
        """Keep the first picked file and show it immediately; an empty pick clears both."""
        if not files:
            self.selected_file = None
            self.preview_url = ""
            return
        self.selected_file = files[0]
        self.preview_url = self.selected_file.preview_url()

    def rows(self) -> List[Dict[str, Any]]:
        return [task.to_row() for task in self.tasks]

    # -----------------------------------------------------------------------
    # Diagnostics
    # -----------------------------------------------------------------------

    def _abort(
        self,
        action: str,
        session: Optional[AuthSession],
        reason: str,
        task_id: Optional[int] = None,
    ) -> None:
        logger.warning("%s aborted: %s", action, reason)
        log(log_task_event(f"{action}_aborted", _user_id(session), task_id=task_id, reason=reason))

    def _failed(
        self,
        action: str,
        session: Optional[AuthSession],
        error: TaskListError,
        task_id: Optional[int] = None,
    ) -> None:
        logger.error("%s failed: %r", action, error)
        log(log_task_event(f"{action}_failed", _user_id(session), task_id=task_id, error=error.to_dict()))
