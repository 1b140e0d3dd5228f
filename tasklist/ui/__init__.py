"""
TaskList UI — Reflex states, pages and layout.

Public API:
    States: AuthState, TaskState
    Pages:  tasks_page, login_page
"""

from tasklist.ui.state import AuthState, TaskState  # noqa: F401

__all__ = ["AuthState", "TaskState"]
