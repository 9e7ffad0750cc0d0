"""Subprocess command runner with logging and failure escalation."""

from __future__ import annotations

import os
import subprocess
import sys
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Protocol

import structlog

from gitctx.exceptions import CommandError, FatalCommandError
from gitctx.output import Output

logger = structlog.get_logger()

Terminate = Callable[[int], object]


class FailureMode(str, Enum):
    """What the runner does when a command fails, before returning."""

    SILENT = "silent"
    WARN = "warn"
    EXIT = "exit"
    PANIC = "panic"


@dataclass
class CommandResult:
    """Result of a command execution.

    Attributes:
        returncode: Exit code of the process.
        stdout: Captured standard output.
        stderr: Captured standard error.
        command: The command that was run.
        cwd: Working directory where command ran.
    """

    returncode: int
    stdout: str
    stderr: str
    command: list[str]
    cwd: Path | None

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def to_error(self) -> CommandError:
        """Build the CommandError describing this failed result."""
        detail = self.stderr.strip() or self.stdout.strip()
        msg = f"Command failed with exit code {self.returncode}: {' '.join(self.command)}"
        if detail:
            msg = f"{msg}\n{detail}"
        return CommandError(
            msg,
            command=self.command,
            returncode=self.returncode,
            cwd=self.cwd,
            stdout=self.stdout,
            stderr=self.stderr,
        )


class Runner(Protocol):
    """The process-execution surface RepositoryContext depends on."""

    def run(
        self,
        command: list[str],
        *,
        cwd: Path,
        mode: FailureMode = FailureMode.SILENT,
    ) -> CommandResult: ...


class CommandRunner:
    """Runs subprocess commands with consistent logging.

    Every git invocation made by gitctx goes through this class so that
    failures are escalated the same way everywhere.

    Example:
        >>> runner = CommandRunner(ConsoleOutput())
        >>> result = runner.run(["git", "rev-parse", "HEAD"], cwd=Path("."))
        >>> result.ok
        True
    """

    def __init__(
        self,
        output: Output,
        *,
        verbose: bool = False,
        terminate: Terminate = sys.exit,
        env: dict[str, str] | None = None,
    ) -> None:
        """Initialize the command runner.

        Args:
            output: Where warnings and fatal errors are rendered.
            verbose: If True, every command line is echoed as info.
            terminate: Called with exit code 1 under FailureMode.EXIT.
            env: Environment variables merged over the current environment.
        """
        self.output = output
        self.verbose = verbose
        self.terminate = terminate
        self.env = env

    def run(
        self,
        command: list[str],
        *,
        cwd: Path,
        mode: FailureMode = FailureMode.SILENT,
    ) -> CommandResult:
        """Run a command and capture stdout/stderr in memory.

        A non-zero exit is returned as a result, not raised, once the
        failure mode has been applied.

        Args:
            command: Command and arguments to run.
            cwd: Working directory for the command.
            mode: How to escalate a failure.

        Returns:
            CommandResult with exit code and captured output.

        Raises:
            CommandError: If the command cannot be started.
            FatalCommandError: If the command fails under FailureMode.PANIC.
        """
        log = logger.bind(command=command, cwd=str(cwd))
        log.debug("Running command")
        if self.verbose:
            self.output.info("%s$ %s", cwd, " ".join(command))

        full_env = os.environ.copy()
        if self.env:
            full_env.update(self.env)

        try:
            completed = subprocess.run(
                command,
                cwd=cwd,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                env=full_env,
                check=False,
            )
        except (FileNotFoundError, NotADirectoryError, PermissionError) as e:
            log.error("Command could not be started", error=str(e))
            msg = f"Could not run {' '.join(command)} in {cwd}: {e}"
            error = CommandError(msg, command=command, cwd=cwd)
            self.escalate(error, mode)
            raise error from e

        log.debug("Command completed", returncode=completed.returncode)
        result = CommandResult(
            returncode=completed.returncode,
            stdout=completed.stdout,
            stderr=completed.stderr,
            command=command,
            cwd=cwd,
        )
        if not result.ok:
            self.escalate(result.to_error(), mode)
        return result

    def escalate(self, error: CommandError, mode: FailureMode) -> None:
        escalate(error, mode, output=self.output, terminate=self.terminate)


def escalate(
    error: CommandError,
    mode: FailureMode,
    *,
    output: Output,
    terminate: Terminate = sys.exit,
) -> None:
    """Apply a failure mode to an error.

    Returns normally for SILENT and WARN so the caller can raise the
    ordinary error itself. EXIT returns only if terminate does.

    Raises:
        FatalCommandError: Under FailureMode.PANIC.
    """
    if mode == FailureMode.SILENT:
        return
    if mode == FailureMode.WARN:
        output.warning(str(error))
        return
    if mode == FailureMode.EXIT:
        output.error(str(error))
        terminate(1)
        return
    raise FatalCommandError(str(error), cause=error)
