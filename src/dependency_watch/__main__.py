"""CLI entry point for dependency-watch."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, TypeVar

import click

from . import __version__
from .config import DependencyWatchConfig, load_config
from .engine import WatchEngine
from .exceptions import ConfigError, CoordinateError
from .log import configure_logging
from .models import Coordinate
from .notifications import NotificationDispatcher
from .repository import MavenRepository, RepositoryClient
from .store import InMemoryNotificationStore, NotificationStore, YamlNotificationStore

T = TypeVar("T")


# ── Helpers ──────────────────────────────────────────────


def _create_repository(settings: DependencyWatchConfig) -> RepositoryClient:
    return MavenRepository(
        base_url=settings.repository.url,
        timeout_seconds=settings.repository.timeout_seconds,
    )


def _apply_overrides(
    settings: DependencyWatchConfig,
    interval: float | None,
    repo: str | None,
) -> DependencyWatchConfig:
    if interval is not None:
        if interval <= 0:
            raise click.BadParameter("must be positive", param_hint="--interval")
        settings.interval_seconds = interval
    if repo:
        settings.repository.url = repo
    return settings


def _run_engine(
    settings: DependencyWatchConfig,
    store: NotificationStore,
    body: Callable[[WatchEngine], Awaitable[T]],
) -> T:
    """Wire up collaborators, run ``body`` on an engine, always close them."""

    async def _main() -> T:
        repository = _create_repository(settings)
        notifier = NotificationDispatcher(settings.notifications)
        engine = WatchEngine(
            repository,
            store,
            notifier,
            settings.interval_seconds,
            tolerate_config_errors=settings.tolerate_config_errors,
            max_concurrent_checks=settings.max_concurrent_checks,
        )
        try:
            return await body(engine)
        finally:
            await repository.close()
            await notifier.close()

    return asyncio.run(_main())


# ── CLI Commands ─────────────────────────────────────────


@click.group()
@click.version_option(version=__version__, prog_name="dependency-watch")
@click.option("--config", "config_path", default=None, help="Settings file path")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging")
@click.option("--log-file", default=None, help="Also log to this file (rotated)")
@click.pass_context
def main(
    ctx: click.Context, config_path: str | None, verbose: bool, log_file: str | None
) -> None:
    """dependency-watch: get notified when artifact versions are published."""
    configure_logging(verbose=verbose, log_file=log_file)
    try:
        ctx.obj = load_config(config_path)
    except ConfigError as e:
        raise click.ClickException(str(e)) from e


@main.command("await")
@click.argument("coordinate")
@click.option("--interval", type=float, default=None, help="Seconds between checks")
@click.option("--repo", default=None, help="Repository base URL")
@click.option(
    "--data",
    "data_path",
    default=None,
    help="Notification store file (default: in-memory for this run)",
)
@click.pass_obj
def await_cmd(
    settings: DependencyWatchConfig,
    coordinate: str,
    interval: float | None,
    repo: str | None,
    data_path: str | None,
) -> None:
    """Wait for GROUP:ARTIFACT:VERSION to be published, notify, and exit."""
    try:
        target = Coordinate.parse(coordinate)
    except CoordinateError as e:
        raise click.BadParameter(str(e), param_hint="COORDINATE") from e

    settings = _apply_overrides(settings, interval, repo)
    store = YamlNotificationStore(data_path) if data_path else InMemoryNotificationStore()

    try:
        _run_engine(settings, store, lambda engine: engine.await_coordinate(target))
    except KeyboardInterrupt:
        click.echo("Stopped.", err=True)


@main.command()
@click.argument("watch_list", type=click.Path(dir_okay=False))
@click.option("--interval", type=float, default=None, help="Seconds between checks")
@click.option("--repo", default=None, help="Repository base URL")
@click.option("--data", "data_path", default=None, help="Notification store file")
@click.option("--once", is_flag=True, help="Run a single round and exit")
@click.option(
    "--tolerate-config-errors",
    is_flag=True,
    help="Skip rounds whose watch list cannot be read instead of exiting",
)
@click.pass_obj
def monitor(
    settings: DependencyWatchConfig,
    watch_list: str,
    interval: float | None,
    repo: str | None,
    data_path: str | None,
    once: bool,
    tolerate_config_errors: bool,
) -> None:
    """Watch every coordinate listed in WATCH_LIST, re-reading it each round."""
    settings = _apply_overrides(settings, interval, repo)
    if tolerate_config_errors:
        settings.tolerate_config_errors = True
    store = YamlNotificationStore(data_path or settings.store_file)

    try:
        _run_engine(
            settings,
            store,
            lambda engine: engine.monitor(watch_list, max_ticks=1 if once else None),
        )
    except ConfigError as e:
        raise click.ClickException(str(e)) from e
    except KeyboardInterrupt:
        click.echo("Stopped.", err=True)


@main.command()
@click.option("--data", "data_path", default=None, help="Notification store file")
@click.pass_obj
def history(settings: DependencyWatchConfig, data_path: str | None) -> None:
    """List every coordinate that has already been notified."""
    store = YamlNotificationStore(data_path or settings.store_file)
    notified = store.notified()
    if not notified:
        click.echo(f"Nothing notified yet ({store.path})", err=True)
        return
    for key in notified:
        click.echo(key)


if __name__ == "__main__":
    main()
