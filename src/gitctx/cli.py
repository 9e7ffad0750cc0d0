"""CLI interface for gitctx."""

from __future__ import annotations

import json
import logging
import sys
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Annotated, Any

import structlog
import typer

from gitctx import __version__
from gitctx.config import CONFIG_FILENAME, GitCtxConfig
from gitctx.exceptions import ConfigError, GitCtxError
from gitctx.models import Flag, StatusPolicy
from gitctx.output import ConsoleOutput
from gitctx.repository import RepositoryContext


def configure_logging(verbose: bool = False) -> None:
    """Configure structlog for CLI output on stderr."""
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.DEBUG if verbose else logging.WARNING
        ),
        context_class=dict,
        logger_factory=lambda *args: structlog.PrintLogger(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


configure_logging()

logger = structlog.get_logger()

app = typer.Typer(
    name="gitctx",
    help="Query and update git repositories through typed operations",
    no_args_is_help=True,
)


@dataclass
class CliState:
    config: GitCtxConfig = field(default_factory=GitCtxConfig)
    flags: list[Flag] = field(default_factory=list)

    def context(self) -> RepositoryContext:
        return RepositoryContext(ConsoleOutput(), *self.flags, config=self.config)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"gitctx version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help=f"Path to config file (default: ./{CONFIG_FILENAME} if present)",
            exists=True,
            dir_okay=False,
            resolve_path=True,
        ),
    ] = None,
    must: Annotated[
        bool, typer.Option("--must", help="Exit the process when git fails")
    ] = False,
    panic: Annotated[
        bool, typer.Option("--panic", help="Raise a fatal error when git fails")
    ] = False,
    warn: Annotated[
        bool, typer.Option("--warn", help="Print a warning when git fails")
    ] = False,
    verbose: Annotated[
        bool, typer.Option("--verbose", help="Echo every git command")
    ] = False,
    local_only: Annotated[
        bool, typer.Option("--local-only", help="Refuse clone and pull")
    ] = False,
    policy: Annotated[
        StatusPolicy | None,
        typer.Option("--policy", help="Status classification policy"),
    ] = None,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """gitctx - typed git repository queries."""
    configure_logging(verbose)

    config_path = config
    if config_path is None:
        default_config = Path.cwd() / CONFIG_FILENAME
        if default_config.exists():
            config_path = default_config

    try:
        loaded = GitCtxConfig.load(config_path) if config_path else GitCtxConfig()
    except ConfigError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e

    if policy is not None:
        loaded = loaded.model_copy(update={"status_policy": policy})

    selected = {
        Flag.MUST: must,
        Flag.PANIC: panic,
        Flag.WARN: warn,
        Flag.VERBOSE: verbose,
        Flag.LOCAL_ONLY: local_only,
    }
    ctx.obj = CliState(
        config=loaded,
        flags=[flag for flag, on in selected.items() if on],
    )


def _state(ctx: typer.Context) -> CliState:
    return ctx.obj if isinstance(ctx.obj, CliState) else CliState()


def _fail(e: Exception) -> typer.Exit:
    logger.debug("Command failed", error=str(e))
    typer.echo(f"Error: {e}", err=True)
    return typer.Exit(1)


def _plain(value: Any) -> Any:
    """Render a query result as a JSON-friendly value."""
    if value is None or isinstance(value, (bool, list)):
        return value
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


PathArg = Annotated[
    Path,
    typer.Argument(help="Directory inside the repository", file_okay=False),
]


@app.command()
def info(
    ctx: typer.Context,
    path: PathArg = Path("."),
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
) -> None:
    """Run every query against PATH and show results with timings."""
    repo = _state(ctx).context()

    queries: list[tuple[str, Callable[[Path], Any]]] = [
        ("IsGit", repo.is_git),
        ("RemoteOriginUrl", repo.remote_origin_url),
        ("SHA", repo.sha),
        ("CommitTime", repo.commit_time),
        ("Tags", repo.tags),
        ("MostRecentTag", repo.most_recent_tag),
        ("AbbrevRef", repo.abbrev_ref),
        ("Status", repo.status),
        ("TopLevel", repo.toplevel),
    ]

    report: dict[str, dict[str, Any]] = {}
    for name, query in queries:
        started = time.perf_counter()
        error: str | None = None
        value: Any = None
        try:
            value = query(path)
        except GitCtxError as e:
            error = str(e).splitlines()[0]
        elapsed = time.perf_counter() - started

        if json_output:
            report[name] = {
                "value": _plain(value),
                "error": error,
                "elapsed_ms": round(elapsed * 1000, 1),
            }
        else:
            shown = error if error else _plain(value)
            typer.echo(f"{name}: {shown} in {elapsed * 1000:.1f}ms")

    if json_output:
        typer.echo(json.dumps(report, indent=2))


@app.command()
def status(ctx: typer.Context, path: PathArg = Path(".")) -> None:
    """Classify the working copy at PATH."""
    try:
        result = _state(ctx).context().status(path)
    except GitCtxError as e:
        raise _fail(e) from e
    typer.echo(result.value)


@app.command()
def toplevel(ctx: typer.Context, path: PathArg = Path(".")) -> None:
    """Print the top-level directory without resolving symlinks."""
    try:
        typer.echo(str(_state(ctx).context().toplevel(path)))
    except GitCtxError as e:
        raise _fail(e) from e


@app.command()
def tags(ctx: typer.Context, path: PathArg = Path(".")) -> None:
    """List tags pointing at HEAD."""
    try:
        for tag in _state(ctx).context().tags(path):
            typer.echo(tag)
    except GitCtxError as e:
        raise _fail(e) from e


@app.command()
def clone(
    ctx: typer.Context,
    url: Annotated[str, typer.Argument(help="Repository URL")],
    target: Annotated[Path, typer.Argument(help="Directory to clone into")],
) -> None:
    """Clone URL into TARGET, creating it if needed."""
    try:
        _state(ctx).context().clone(target, url)
    except (GitCtxError, OSError) as e:
        raise _fail(e) from e


@app.command()
def checkout(
    ctx: typer.Context,
    ref: Annotated[str, typer.Argument(help="Branch, tag or commit")],
    path: PathArg = Path("."),
) -> None:
    """Check out REF in PATH."""
    try:
        _state(ctx).context().checkout(path, ref)
    except GitCtxError as e:
        raise _fail(e) from e


@app.command()
def pull(ctx: typer.Context, path: PathArg = Path(".")) -> None:
    """Pull in PATH."""
    try:
        _state(ctx).context().pull(path)
    except GitCtxError as e:
        raise _fail(e) from e
