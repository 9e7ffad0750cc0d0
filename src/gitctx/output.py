"""Output collaborators for informational, warning and error lines."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

import structlog
import typer

logger = structlog.get_logger()


class Output(Protocol):
    """Anything that can render the three message levels gitctx emits."""

    def info(self, message: str, *args: Any) -> None: ...

    def warning(self, message: str, *args: Any) -> None: ...

    def error(self, message: str, *args: Any) -> None: ...


def _format(message: str, args: tuple[Any, ...]) -> str:
    return message % args if args else message


class ConsoleOutput:
    """Styled terminal output via typer.

    Info goes to stdout, warnings and errors to stderr.

    Example:
        >>> out = ConsoleOutput(color=False)
        >>> out.info("cloning %s", "repo")
    """

    def __init__(self, color: bool | None = None) -> None:
        self.color = color

    def info(self, message: str, *args: Any) -> None:
        typer.echo(_format(message, args), color=self.color)

    def warning(self, message: str, *args: Any) -> None:
        typer.secho(
            _format(message, args),
            fg=typer.colors.YELLOW,
            err=True,
            color=self.color,
        )

    def error(self, message: str, *args: Any) -> None:
        typer.secho(
            _format(message, args),
            fg=typer.colors.RED,
            err=True,
            color=self.color,
        )


class LogOutput:
    """Routes messages to structlog instead of the terminal."""

    def __init__(self, **context: Any) -> None:
        self._log = logger.bind(**context)

    def info(self, message: str, *args: Any) -> None:
        self._log.info(_format(message, args))

    def warning(self, message: str, *args: Any) -> None:
        self._log.warning(_format(message, args))

    def error(self, message: str, *args: Any) -> None:
        self._log.error(_format(message, args))


@dataclass
class BufferedOutput:
    """Keeps every message in memory as (level, text) pairs."""

    messages: list[tuple[str, str]] = field(default_factory=list)

    def info(self, message: str, *args: Any) -> None:
        self.messages.append(("info", _format(message, args)))

    def warning(self, message: str, *args: Any) -> None:
        self.messages.append(("warning", _format(message, args)))

    def error(self, message: str, *args: Any) -> None:
        self.messages.append(("error", _format(message, args)))

    def lines(self, level: str) -> list[str]:
        """Messages recorded at one level."""
        return [text for lvl, text in self.messages if lvl == level]
