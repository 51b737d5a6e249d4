"""Desktop notification popups."""

import logging
from enum import Enum

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

logger = logging.getLogger(__name__)


class Permission(str, Enum):
    """Result of a permission request, mirroring the browser API."""

    DEFAULT = "default"
    GRANTED = "granted"
    DENIED = "denied"


class DesktopNotifier:
    """Base notifier for hosts without popup support.

    ``request_permission`` always reports DENIED, so popups are skipped.
    """

    permission: Permission = Permission.DEFAULT

    async def request_permission(self) -> Permission:
        self.permission = Permission.DENIED
        return self.permission

    def show(self, title: str, body: str) -> None:
        raise NotImplementedError


class ConsoleNotifier(DesktopNotifier):
    """Shows popups as a highlighted panel on a rich console."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console(stderr=True)

    async def request_permission(self) -> Permission:
        self.permission = Permission.GRANTED if self.console.is_terminal else Permission.DENIED
        return self.permission

    def show(self, title: str, body: str) -> None:
        self.console.bell()
        self.console.print(Panel(Text(body), title=Text(title), border_style="blue"))


class RecordingNotifier(DesktopNotifier):
    """Keeps popups in memory; used for headless runs and tests."""

    def __init__(self, permission: Permission = Permission.GRANTED):
        self._grant = permission
        self.shown: list[tuple[str, str]] = []

    async def request_permission(self) -> Permission:
        self.permission = self._grant
        return self.permission

    def show(self, title: str, body: str) -> None:
        self.shown.append((title, body))
