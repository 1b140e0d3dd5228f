"""
TaskList — Layout component (user header + content).
"""

import reflex as rx

from tasklist.ui.state import AuthState


def page_layout(content: rx.Component) -> rx.Component:
    """Wrap content under the signed-in user header."""
    return rx.box(
        _header(),
        rx.divider(),
        rx.box(content, padding="4"),
        width="100%",
        on_mount=AuthState.check_auth,
    )


def _header() -> rx.Component:
    """User button: who is signed in, and sign-out."""
    return rx.hstack(
        rx.spacer(),
        rx.icon("circle-user", size=18),
        rx.text(AuthState.email, size="2", color="gray"),
        rx.button(
            "Sign out",
            size="1",
            variant="ghost",
            on_click=AuthState.logout,
        ),
        padding="3",
        width="100%",
        align="center",
    )
