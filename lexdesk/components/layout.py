"""
LexDesk — Layout component (sidebar + header + toast stack).
"""

import reflex as rx


def app_layout(content: rx.Component, toasts: rx.Var, on_dismiss) -> rx.Component:
    """Wrap page content in the sidebar layout with a toast stack."""
    return rx.hstack(
        _sidebar(),
        rx.box(
            _header(),
            rx.divider(),
            rx.box(content, padding="16px"),
            flex="1",
            overflow_y="auto",
            height="100vh",
        ),
        toast_stack(toasts, on_dismiss),
        spacing="0",
        width="100%",
        height="100vh",
    )


def _sidebar() -> rx.Component:
    return rx.box(
        rx.vstack(
            rx.heading("LexDesk", size="4", padding="4"),
            rx.divider(),
            _nav_item("Documents", "/documents", "folder"),
            _nav_item("Cases", "/cases", "briefcase"),
            _nav_item("Chat", "/chat", "message-square"),
            spacing="1",
            padding="3",
            width="100%",
        ),
        width="200px",
        min_width="200px",
        height="100vh",
        border_right="1px solid var(--gray-5)",
        background="var(--gray-2)",
    )


def _nav_item(label: str, href: str, icon: str) -> rx.Component:
    return rx.link(
        rx.hstack(
            rx.icon(icon, size=16),
            rx.text(label, size="2"),
            spacing="2",
            padding_x="3",
            padding_y="2",
            border_radius="6px",
            width="100%",
            _hover={"background": "var(--gray-4)"},
        ),
        href=href,
        width="100%",
        underline="none",
    )


def _header() -> rx.Component:
    return rx.hstack(
        rx.spacer(),
        rx.color_mode.button(size="1", variant="ghost"),
        padding="3",
        width="100%",
        align="center",
    )


_TOAST_COLORS = {"success": "green", "error": "red", "warning": "amber", "info": "blue"}


def toast_stack(toasts: rx.Var, on_dismiss) -> rx.Component:
    """Bottom-right stack of toasts; each one dismissable by id."""
    return rx.vstack(
        rx.foreach(
            toasts,
            lambda t: rx.callout(
                rx.hstack(
                    rx.text(t["description"], size="2"),
                    rx.icon_button(
                        rx.icon("x", size=12),
                        size="1",
                        variant="ghost",
                        on_click=on_dismiss(t["id"]),
                    ),
                    align="center",
                    spacing="2",
                ),
                color_scheme=rx.match(
                    t["kind"],
                    *[(k, v) for k, v in _TOAST_COLORS.items()],
                    "gray",
                ),
                size="1",
            ),
        ),
        position="fixed",
        bottom="16px",
        right="16px",
        spacing="2",
        z_index="1000",
    )
