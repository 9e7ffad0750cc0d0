"""Scripted command runner for testing."""

from __future__ import annotations

import threading
import time
from collections import Counter
from dataclasses import dataclass
from pathlib import Path

import structlog

from gitctx.infra.command import CommandResult, FailureMode, Terminate, escalate
from gitctx.output import BufferedOutput, Output

logger = structlog.get_logger()


@dataclass
class FakeResponse:
    """Canned outcome for one command line.

    Attributes:
        stdout: Text returned as standard output.
        stderr: Text returned as standard error.
        returncode: Exit code to return.
        delay: Seconds to sleep before answering.
    """

    stdout: str = ""
    stderr: str = ""
    returncode: int = 0
    delay: float = 0.0


class FakeCommandRunner:
    """A runner that answers from a table instead of spawning processes.

    Commands are matched on their full argument tuple. Unknown commands
    get the default response. Every call is recorded, and failures are
    escalated exactly like CommandRunner does.

    Example:
        >>> runner = FakeCommandRunner({
        ...     ("git", "rev-parse", "HEAD"): FakeResponse(stdout="abc123\\n"),
        ... })
        >>> runner.run(["git", "rev-parse", "HEAD"], cwd=Path(".")).stdout
        'abc123\\n'
    """

    def __init__(
        self,
        responses: dict[tuple[str, ...], FakeResponse] | None = None,
        *,
        default: FakeResponse | None = None,
        output: Output | None = None,
        terminate: Terminate | None = None,
    ) -> None:
        self.responses = dict(responses or {})
        self.default = default or FakeResponse()
        self.output = output or BufferedOutput()
        self.terminate = terminate or self._record_exit
        self.exit_codes: list[int] = []
        self.calls: list[tuple[tuple[str, ...], Path, FailureMode]] = []
        self.counts: Counter[tuple[str, ...]] = Counter()
        self._lock = threading.Lock()

    def _record_exit(self, code: int) -> None:
        self.exit_codes.append(code)

    def set(self, *command: str, **response: object) -> None:
        """Register a response for a command line."""
        self.responses[tuple(command)] = FakeResponse(**response)  # type: ignore[arg-type]

    def run(
        self,
        command: list[str],
        *,
        cwd: Path,
        mode: FailureMode = FailureMode.SILENT,
    ) -> CommandResult:
        key = tuple(command)
        with self._lock:
            self.calls.append((key, cwd, mode))
            self.counts[key] += 1
        response = self.responses.get(key, self.default)
        if response.delay:
            time.sleep(response.delay)
        logger.debug("Fake command", command=command, returncode=response.returncode)

        result = CommandResult(
            returncode=response.returncode,
            stdout=response.stdout,
            stderr=response.stderr,
            command=list(command),
            cwd=cwd,
        )
        if not result.ok:
            escalate(
                result.to_error(), mode, output=self.output, terminate=self.terminate
            )
        return result

    def commands(self) -> list[tuple[str, ...]]:
        """Command lines in the order they were run."""
        return [key for key, _, _ in self.calls]
