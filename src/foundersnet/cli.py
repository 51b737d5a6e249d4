"""foundersnet CLI - Typer-based command line interface."""

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Annotated

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from foundersnet.client.http import NotificationAPIError
from foundersnet.client.session import Session
from foundersnet.config import ClientConfig, load_config
from foundersnet.delivery.feed import NotificationFeed
from foundersnet.delivery.normalizer import normalize_poll_response
from foundersnet.delivery.store import NotificationStore, Tab
from foundersnet.desktop import ConsoleNotifier
from foundersnet.models.notification import Notification
from foundersnet.models.settings import NotificationSettings
from foundersnet.presentation import TYPE_STYLES, format_relative, notification_table, tab_title
from foundersnet.storage import LocalStorage, load_settings, save_settings

app = typer.Typer(
    name="foundersnet",
    help="Hindustan Founders Network - real-time notification client",
    no_args_is_help=True,
)

console = Console()

ConfigOption = Annotated[
    Path | None, typer.Option("--config", "-c", help="Path to configuration file")
]
UsernameOption = Annotated[
    str | None, typer.Option("--username", "-u", envvar="FOUNDERSNET_USERNAME", help="Login name")
]
PasswordOption = Annotated[
    str | None,
    typer.Option("--password", "-p", envvar="FOUNDERSNET_PASSWORD", help="Login password"),
]


def _setup_logging() -> None:
    level = os.environ.get("FOUNDERSNET_LOG_LEVEL", "WARNING").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _load(config: Path | None) -> ClientConfig:
    try:
        return load_config(config)
    except (ValidationError, OSError) as e:
        console.print(f"[red]Error loading configuration:[/red] {escape(str(e))}")
        raise typer.Exit(1)


async def _sign_in(session: Session, username: str | None, password: str | None) -> None:
    if username and password:
        await session.login(username, password)
    else:
        await session.fetch_user()


def _run(coro):
    """Run a coroutine, turning API errors into a red message and exit code 1."""
    try:
        return asyncio.run(coro)
    except NotificationAPIError as e:
        console.print(f"[red]Error:[/red] {escape(e.message)}")
        raise typer.Exit(1)


@app.callback()
def main() -> None:
    """Hindustan Founders Network notification client."""
    _setup_logging()


@app.command("list")
def list_notifications(
    tab: Annotated[Tab, typer.Option("--tab", "-t", help="Feed tab to show")] = Tab.ALL,
    unread: Annotated[bool, typer.Option("--unread", help="Only unread notifications")] = False,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
    config: ConfigOption = None,
    username: UsernameOption = None,
    password: PasswordOption = None,
) -> None:
    """List notifications."""
    cfg = _load(config)

    async def _list() -> NotificationStore:
        async with Session(cfg) as session:
            await _sign_in(session, username, password)
            records = await session.notifications.list_notifications()
        store = NotificationStore()
        store.extend(normalize_poll_response(records))
        return store

    store = _run(_list())

    notifications = store.by_tab(tab)
    if unread:
        notifications = [n for n in notifications if not n.read]

    if json_output:
        print(json.dumps([n.model_dump(mode="json") for n in notifications], indent=2))
        return

    if not notifications:
        console.print("[dim]No notifications yet[/dim]")
        return

    console.print(notification_table(notifications, title=tab_title(store, tab)))
    console.print(f"\n  Unread: {store.unread_count}")


def _print_new(notification: Notification) -> None:
    style = TYPE_STYLES.get(notification.type, "white")
    console.print(
        f"[{style}]{notification.type.value:<10}[/{style}] "
        f"[bold]{escape(notification.actor.name)}[/bold] {escape(notification.text)} "
        f"[dim]{format_relative(notification.timestamp)} (id={notification.id})[/dim]"
    )


@app.command()
def watch(
    user_id: Annotated[
        str | None, typer.Option("--user-id", help="User ID for the socket handshake")
    ] = None,
    popups: Annotated[bool, typer.Option("--popups/--no-popups", help="Desktop popups")] = True,
    config: ConfigOption = None,
    username: UsernameOption = None,
    password: PasswordOption = None,
) -> None:
    """Follow notifications as they arrive (Ctrl-C to stop)."""
    cfg = _load(config)
    if user_id is not None:
        cfg = cfg.model_copy(update={"user_id": user_id})

    async def _watch() -> None:
        async with Session(cfg) as session:
            await _sign_in(session, username, password)
            feed = NotificationFeed(
                session,
                notifier=ConsoleNotifier() if popups else None,
                on_error=lambda message: console.print(f"[red]{message}[/red]"),
                on_new=_print_new,
            )
            async with feed:
                console.print(
                    f"[green]Watching notifications[/green] "
                    f"(channel: {feed.transport.state.value}, unread: {feed.store.unread_count})"
                )
                await asyncio.Event().wait()

    try:
        _run(_watch())
    except KeyboardInterrupt:
        console.print("\n[blue]Stopped[/blue]")


@app.command()
def read(
    notification_id: Annotated[str, typer.Argument(help="Notification ID")],
    config: ConfigOption = None,
    username: UsernameOption = None,
    password: PasswordOption = None,
) -> None:
    """Mark one notification as read."""
    cfg = _load(config)

    async def _read() -> None:
        async with Session(cfg) as session:
            await _sign_in(session, username, password)
            await session.notifications.mark_read(notification_id)

    _run(_read())
    console.print(f"[green]Marked[/green] notification {notification_id} as read")


@app.command("read-all")
def read_all(
    config: ConfigOption = None,
    username: UsernameOption = None,
    password: PasswordOption = None,
) -> None:
    """Mark every notification as read."""
    cfg = _load(config)

    async def _read_all() -> None:
        async with Session(cfg) as session:
            await _sign_in(session, username, password)
            await session.notifications.mark_all_read()

    _run(_read_all())
    console.print("[green]All notifications marked as read[/green]")


# Settings subcommands
settings_app = typer.Typer(help="Notification preferences")
app.add_typer(settings_app, name="settings")


@settings_app.command("show")
def settings_show(
    config: ConfigOption = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
) -> None:
    """Show notification preferences."""
    cfg = _load(config)
    settings = load_settings(LocalStorage(cfg.storage_path))

    if json_output:
        print(json.dumps(settings.model_dump(by_alias=True), indent=2))
        return

    for name, value in settings.model_dump(by_alias=True).items():
        state = "[green]on[/green]" if value else "[red]off[/red]"
        console.print(f"  {name:<22} {state}")


@settings_app.command("set")
def settings_set(
    key: Annotated[str, typer.Argument(help="Preference name, e.g. jobAlerts")],
    value: Annotated[bool, typer.Argument(help="true or false")],
    config: ConfigOption = None,
) -> None:
    """Change one notification preference."""
    cfg = _load(config)
    storage = LocalStorage(cfg.storage_path)
    current = load_settings(storage).model_dump(by_alias=True)

    if key not in current:
        console.print(f"[red]Error:[/red] Unknown preference: {key}")
        console.print(f"Available preferences: {', '.join(current)}")
        raise typer.Exit(1)

    current[key] = value
    save_settings(storage, NotificationSettings.model_validate(current))
    console.print(f"[green]Saved[/green] {key} = {str(value).lower()}")


@app.command("config")
def show_config(config: ConfigOption = None) -> None:
    """Print the effective configuration."""
    cfg = _load(config)
    print(json.dumps(cfg.model_dump(mode="json"), indent=2))


if __name__ == "__main__":
    app()
