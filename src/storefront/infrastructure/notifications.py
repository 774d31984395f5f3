"""NotificationChannel that prints feedback to the terminal."""

from __future__ import annotations

import click

from storefront.application.ports import NotificationChannel, NotificationKind

_COLOURS = {
    NotificationKind.SUCCESS: "green",
    NotificationKind.INFO: None,
    NotificationKind.WARNING: "yellow",
    NotificationKind.ERROR: "red",
}


class ClickNotificationChannel(NotificationChannel):

    def notify(self, kind: NotificationKind, message: str) -> None:
        click.secho(
            f"[{kind.value}] {message}",
            fg=_COLOURS[kind],
            err=kind is NotificationKind.ERROR,
        )
