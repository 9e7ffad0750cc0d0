"""One-time detection of whether git wants curly braces escaped.

Some git builds (mostly on Windows) only accept ``@\\{0\\}`` while
others reject it. Detection needs a repository to run in, so it is
deferred until the first call that builds an ``@{...}`` expression and
then shared by every context in the process.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from pathlib import Path

import structlog

from gitctx.infra.command import FailureMode, Runner

logger = structlog.get_logger()

PROBE_REF = "@{0}"


def escape_braces(text: str) -> str:
    return text.replace("{", "\\{").replace("}", "\\}")


class EscapeMode:
    """Lock-guarded cell holding the escape decision.

    ``ensure`` runs the probe at most once; concurrent first callers
    block on the lock until the decision is recorded.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._probed = False
        self._escape = False

    @property
    def probed(self) -> bool:
        return self._probed

    @property
    def enabled(self) -> bool:
        return self._escape

    def ensure(
        self,
        path: Path,
        runner: Runner,
        *,
        git: str = "git",
        on_failure: Callable[[str], None],
    ) -> None:
        """Probe once, in ``path``, which brace form git accepts.

        Args:
            path: A directory inside a repository with at least one commit.
            runner: Runner used for the probe commands (always silent).
            git: Git executable.
            on_failure: Called with a message when both forms fail; it is
                expected not to return.
        """
        with self._lock:
            if self._probed:
                return

            log = logger.bind(path=str(path))
            plain = runner.run([git, "rev-parse", PROBE_REF], cwd=path, mode=FailureMode.SILENT)
            if plain.ok:
                escape = False
            else:
                escaped = runner.run(
                    [git, "rev-parse", escape_braces(PROBE_REF)],
                    cwd=path,
                    mode=FailureMode.SILENT,
                )
                if not escaped.ok:
                    msg = (
                        "Could not determine if git curly braces need to be escaped: "
                        f"git rev-parse {PROBE_REF} failed both with and without "
                        f"escaping in {path}"
                    )
                    log.error("Escape probe failed")
                    on_failure(msg)
                    return
                escape = True

            self._escape = escape
            self._probed = True
            log.debug("Escape probe complete", escape=escape)

    def escape(self, text: str) -> str:
        """Apply the recorded decision to a command argument."""
        return escape_braces(text) if self._escape else text


# Shared by every RepositoryContext unless one is given its own.
ESCAPE_MODE = EscapeMode()
