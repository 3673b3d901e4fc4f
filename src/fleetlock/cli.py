"""Fleetlock CLI: serialize actions across a fleet of hosts."""

from pathlib import Path
from typing import NoReturn

import typer
from rich.console import Console

from fleetlock import __version__

from .config import FleetlockConfig, load_config, write_config_template
from .constants import (
    DEFAULT_CONFIG_FILE,
    EXIT_CONFIG_ERROR,
    EXIT_FAILURE,
    EXIT_RESOURCE_NOT_FOUND,
    EXIT_RETRY_LATER,
)
from .core import LockCoordinator, lock_path_for
from .errors import (
    ActionError,
    ConfigurationError,
    CoordinationError,
    GuardError,
    LedgerError,
    LockAcquisitionTimeout,
    ResourceNotFound,
)
from .logging import configure_logging
from .models import GateOutcome
from .output import OutputContext, get_output_context, set_output_context
from .runtime import build_client, build_ledger, build_serializer


def _version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"fleetlock {__version__}")
        raise typer.Exit()


app = typer.Typer(
    name="fleetlock",
    help="Serialize actions across a fleet through a shared coordination store",
    no_args_is_help=True,
)

lock_app = typer.Typer(help="Inspect and manipulate individual locks")
reruns_app = typer.Typer(help="Inspect this agent's rerun ledger")

app.add_typer(lock_app, name="lock")
app.add_typer(reruns_app, name="reruns")

_config_path = Path(DEFAULT_CONFIG_FILE)


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    config: Path = typer.Option(
        Path(DEFAULT_CONFIG_FILE),
        "--config",
        "-c",
        help="Path to the fleetlock TOML config",
    ),
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase verbosity (-v, -vv)",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Suppress non-error output",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output in JSON format for automation",
    ),
    no_color: bool = typer.Option(
        False,
        "--no-color",
        help="Disable colored output",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug logging with source locations",
    ),
) -> None:
    """Fleetlock - fleet-wide serialized actions."""
    global _config_path
    _config_path = config
    configure_logging(verbosity=verbose, quiet=quiet, no_color=no_color, debug=debug)
    set_output_context(
        OutputContext(console=Console(no_color=no_color), json_mode=json_output)
    )


def _load() -> FleetlockConfig:
    ctx = get_output_context()
    try:
        return load_config(_config_path)
    except ConfigurationError as e:
        ctx.error(str(e))
        raise typer.Exit(EXIT_CONFIG_ERROR) from None


def _parse_matches(matches: list[str]) -> dict[str, str]:
    pattern = {}
    for item in matches:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise ConfigurationError(f"Expected key=value, got {item!r}")
        pattern[key.strip()] = value
    return pattern


def _fail(ctx: OutputContext, error: Exception) -> NoReturn:
    """Report a fleetlock error and exit with the matching code."""
    if isinstance(error, ConfigurationError):
        code = EXIT_CONFIG_ERROR
    elif isinstance(error, ResourceNotFound):
        code = EXIT_RESOURCE_NOT_FOUND
    else:
        code = EXIT_FAILURE
    ctx.error(str(error), exit_code=code)
    raise typer.Exit(code) from None


# ============================================================================
# fleetlock init
# ============================================================================


@app.command()
def init(
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing config"),
) -> None:
    """Write a config template."""
    ctx = get_output_context()
    if _config_path.exists() and not force:
        ctx.print(f"[yellow]Config already exists:[/yellow] {_config_path}")
        return
    path = write_config_template(_config_path)
    ctx.success(f"Created config template: {path}", path=str(path))


# ============================================================================
# fleetlock serialize / serialize-process
# ============================================================================


@app.command()
def serialize(
    name: str = typer.Argument(..., help="Name of the serialized action"),
    resource: str = typer.Option(..., "--resource", "-r", help="Target resource name"),
    action: str = typer.Option(..., "--action", "-a", help="Action to perform"),
    lock_name: str | None = typer.Option(None, "--lock-name", help="Explicit lock name"),
    owner: str | None = typer.Option(None, "--owner", help="Owner data (default: FQDN)"),
    timeout: float | None = typer.Option(None, "--timeout", "-t", help="Acquire timeout"),
    poll_interval: float | None = typer.Option(None, "--poll-interval", help="Seconds between attempts"),
    skip_coordination: bool = typer.Option(
        False, "--skip-coordination", help="Run without taking the lock"
    ),
) -> None:
    """Acquire the lock, run the action, release the lock."""
    ctx = get_output_context()
    config = _load()
    serializer = build_serializer(config)
    try:
        changed = serializer.serialize(
            name,
            resource,
            action,
            owner_data=owner or config.lock.effective_owner(),
            lock_name=lock_name,
            timeout=config.lock.acquire_timeout if timeout is None else timeout,
            poll_interval=poll_interval or config.lock.poll_interval,
            skip_coordination=skip_coordination or config.lock.skip_coordination,
        )
    except (
        ConfigurationError,
        ResourceNotFound,
        LockAcquisitionTimeout,
        ActionError,
        CoordinationError,
        LedgerError,
    ) as e:
        _fail(ctx, e)

    ctx.result(
        {"name": name, "resource": resource, "action": action, "changed": changed},
        f"[green]{resource} {action}:[/green] {'changed' if changed else 'unchanged'}",
    )


@app.command("serialize-process")
def serialize_process(
    name: str = typer.Argument(..., help="Name of the serialized action"),
    resource: str = typer.Option(..., "--resource", "-r", help="Target resource name"),
    action: str = typer.Option(..., "--action", "-a", help="Action to perform"),
    match: list[str] = typer.Option(
        [], "--match", "-m", help="Process matcher as key=value (command_string, user)"
    ),
    lock_name: str | None = typer.Option(None, "--lock-name", help="Explicit lock name"),
    owner: str | None = typer.Option(None, "--owner", help="Owner data (default: FQDN)"),
) -> None:
    """Run the action only if the process has not restarted since it was owed."""
    ctx = get_output_context()
    config = _load()
    serializer = build_serializer(config)
    try:
        result = serializer.serialize_on_process_state(
            name,
            resource,
            action,
            owner_data=owner or config.lock.effective_owner(),
            process_pattern=_parse_matches(match),
            lock_name=lock_name,
        )
    except (
        ConfigurationError,
        ResourceNotFound,
        ActionError,
        CoordinationError,
        GuardError,
        LedgerError,
    ) as e:
        _fail(ctx, e)

    data = result.model_dump(mode="json")
    if result.outcome is GateOutcome.ABORTED:
        ctx.result(data, f"[yellow]Lock {result.lock_path} not held; will retry later[/yellow]")
        raise typer.Exit(EXIT_RETRY_LATER)
    if result.outcome is GateOutcome.DEFERRED:
        ctx.result(data, f"[yellow]{resource} already restarted; skipping {action}[/yellow]")
    else:
        ctx.result(data, f"[green]{resource} {action}:[/green] ran")


# ============================================================================
# fleetlock lock ...
# ============================================================================


@lock_app.command("acquire")
def lock_acquire(
    name: str = typer.Argument(..., help="Lock name or absolute store path"),
    owner: str | None = typer.Option(None, "--owner", help="Owner data (default: FQDN)"),
    timeout: float | None = typer.Option(None, "--timeout", "-t", help="Acquire timeout"),
) -> None:
    """Take a lock and leave it held."""
    ctx = get_output_context()
    config = _load()
    owner_data = owner or config.lock.effective_owner()
    try:
        path = lock_path_for(config.lock.root, name)
        coordinator = LockCoordinator(build_client(config))
        held = coordinator.acquire(
            path,
            owner_data,
            config.lock.acquire_timeout if timeout is None else timeout,
            config.lock.poll_interval,
        )
    except (ConfigurationError, CoordinationError) as e:
        _fail(ctx, e)

    if not held:
        ctx.error(f"Lock {path} is held by someone else", path=path)
        raise typer.Exit(EXIT_FAILURE)
    ctx.success(f"Holding lock {path} as {owner_data}", path=path, owner=owner_data)


@lock_app.command("release")
def lock_release(
    name: str = typer.Argument(..., help="Lock name or absolute store path"),
    owner: str | None = typer.Option(None, "--owner", help="Owner data (default: FQDN)"),
) -> None:
    """Release a lock held by this owner."""
    ctx = get_output_context()
    config = _load()
    owner_data = owner or config.lock.effective_owner()
    try:
        path = lock_path_for(config.lock.root, name)
    except ConfigurationError as e:
        _fail(ctx, e)
    released = LockCoordinator(build_client(config)).release(path, owner_data)
    ctx.result(
        {"path": path, "released": released},
        f"Released {path}" if released else f"Nothing to release at {path}",
    )


@lock_app.command("show")
def lock_show(
    name: str = typer.Argument(..., help="Lock name or absolute store path"),
) -> None:
    """Show who holds a lock and since when."""
    ctx = get_output_context()
    config = _load()
    try:
        path = lock_path_for(config.lock.root, name)
        client = build_client(config)
        holder = client.get(path)
        created = client.creation_time(path)
    except (ConfigurationError, CoordinationError) as e:
        _fail(ctx, e)

    if holder is None:
        ctx.result({"path": path, "locked": False}, f"{path}: [green]unlocked[/green]")
        return
    ctx.result(
        {"path": path, "locked": True, "owner": holder, "created_at": created},
        f"{path}: held by [bold]{holder}[/bold] since {created}",
    )


# ============================================================================
# fleetlock reruns ...
# ============================================================================


@reruns_app.command("list")
def reruns_list() -> None:
    """List lock paths with an owed rerun."""
    ctx = get_output_context()
    config = _load()
    try:
        records = build_ledger(config).records()
    except LedgerError as e:
        _fail(ctx, e)

    if not records:
        ctx.result({"items": []}, "No reruns pending")
        return
    rows = [
        [path, str(record.fails), record.last_attempt.isoformat()]
        for path, record in sorted(records.items())
    ]
    ctx.table("Pending reruns", ["path", "fails", "last_attempt"], rows)


@reruns_app.command("clear")
def reruns_clear(
    name: str = typer.Argument(..., help="Lock name or absolute store path"),
) -> None:
    """Forget the rerun owed for a lock."""
    ctx = get_output_context()
    config = _load()
    try:
        path = lock_path_for(config.lock.root, name)
        cleared = build_ledger(config).clear(path)
    except (ConfigurationError, LedgerError) as e:
        _fail(ctx, e)
    ctx.result(
        {"path": path, "cleared": cleared},
        f"Cleared {path}" if cleared else f"No rerun recorded for {path}",
    )
