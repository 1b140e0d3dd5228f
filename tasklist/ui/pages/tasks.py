"""
TaskList — Tasks Page

Route: /
Purpose: List the signed-in user's tasks; toggle, delete and create them.
"""

import reflex as rx

from tasklist.engine.config import get_config
from tasklist.ui.components.layout import page_layout
from tasklist.ui.state import UPLOAD_ID, TaskState

ACCEPTED_IMAGES = {
    "image/jpeg": [".jpg", ".jpeg"],
    "image/png": [".png"],
    "image/gif": [".gif"],
}


def _thumbnail(src, alt: str) -> rx.Component:
    size = f"{get_config().ui.thumbnail_size}px"
    return rx.image(src=src, alt=alt, width=size, height=size, object_fit="cover")


def task_row(task: rx.Var) -> rx.Component:
    """Checkbox + name + delete + thumbnail."""
    return rx.hstack(
        rx.checkbox(
            checked=task["is_done"],
            on_change=lambda checked: TaskState.on_check_clicked(task["id"], checked),
        ),
        rx.text(task["name"]),
        rx.button(
            "Delete",
            size="1",
            variant="outline",
            on_click=TaskState.delete_task(task["id"]),
        ),
        rx.cond(
            task["image_url"] != "",
            _thumbnail(task["image_url"], "task"),
        ),
        align="center",
        spacing="3",
    )


def task_list() -> rx.Component:
    return rx.box(
        rx.cond(
            TaskState.loading,
            rx.text("Loading..."),
            rx.cond(
                TaskState.tasks.length() > 0,
                rx.vstack(rx.foreach(TaskState.tasks, task_row), spacing="2"),
                rx.text("No tasks found", color="gray"),
            ),
        ),
        on_mount=TaskState.load_tasks,
    )


def create_form() -> rx.Component:
    """Name field, image picker with live preview, and submit."""
    return rx.form(
        rx.vstack(
            rx.input(
                auto_focus=True,
                name="name",
                placeholder="Enter new task",
                value=TaskState.name,
                on_change=TaskState.set_name,
            ),
            rx.cond(
                TaskState.preview_url != "",
                _thumbnail(TaskState.preview_url, "preview"),
            ),
            rx.upload(
                rx.button(
                    rx.icon("cloud-upload", size=16),
                    "Upload files",
                    type="button",
                ),
                id=UPLOAD_ID,
                accept=ACCEPTED_IMAGES,
                multiple=True,
                on_drop=TaskState.handle_files(rx.upload_files(upload_id=UPLOAD_ID)),
                border="none",
                padding="0",
            ),
            rx.cond(
                TaskState.selected_filename != "",
                rx.text(TaskState.selected_filename, size="1", color="gray"),
            ),
            rx.button("Add", type="submit"),
            spacing="3",
            align="start",
        ),
        on_submit=TaskState.create_task,
        reset_on_submit=False,
        margin_top="24px",
    )


def tasks_content() -> rx.Component:
    return rx.box(
        rx.heading(get_config().ui.title, size="6", margin_bottom="16px"),
        task_list(),
        create_form(),
    )


def tasks_page() -> rx.Component:
    """Task list page."""
    return page_layout(tasks_content())
