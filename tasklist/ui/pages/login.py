"""
TaskList — Login Page

Route: /login
"""

import reflex as rx

from tasklist.ui.state import AuthState


def login_page() -> rx.Component:
    """Sign-in page."""
    return rx.center(
        rx.card(
            rx.vstack(
                rx.heading("Tasks", size="6", text_align="center"),
                rx.text("Sign in to see your tasks", color="gray", text_align="center"),
                rx.divider(),
                rx.form(
                    rx.vstack(
                        rx.text("Email", size="2", weight="bold"),
                        rx.input(
                            placeholder="you@example.com",
                            name="email",
                            type="email",
                            required=True,
                            size="3",
                        ),
                        rx.text("Password", size="2", weight="bold"),
                        rx.input(
                            placeholder="••••••••",
                            name="password",
                            type="password",
                            required=True,
                            size="3",
                        ),
                        rx.cond(
                            AuthState.login_error != "",
                            rx.callout(
                                AuthState.login_error,
                                icon="triangle_alert",
                                color_scheme="red",
                                size="1",
                            ),
                        ),
                        rx.button(
                            "Sign In",
                            type="submit",
                            size="3",
                            width="100%",
                            loading=AuthState.is_loading,
                        ),
                        spacing="3",
                        width="100%",
                    ),
                    on_submit=AuthState.login,
                    width="100%",
                ),
                spacing="4",
                width="100%",
                padding="6",
            ),
            width="400px",
        ),
        min_height="100vh",
    )
