"""Typed façade over the git command line."""

from __future__ import annotations

import sys
from collections.abc import Iterable, Iterator
from datetime import UTC, datetime
from pathlib import Path

import structlog

from gitctx.config import GitCtxConfig
from gitctx.escape import ESCAPE_MODE, EscapeMode
from gitctx.exceptions import (
    CommandError,
    EscapeProbeError,
    LocalOnlyError,
    StatusUnknownError,
)
from gitctx.infra.command import (
    CommandResult,
    CommandRunner,
    FailureMode,
    Runner,
    Terminate,
)
from gitctx.models import Flag, Status
from gitctx.output import Output
from gitctx.paths import find_toplevel
from gitctx.status import ProbeOutcome, StatusClassifier, classifier_for

logger = structlog.get_logger()

NO_TAGS_MESSAGE = "No names found, cannot describe anything"


def failure_mode_for(flags: Iterable[Flag]) -> FailureMode:
    """Translate behavior flags into the runner's failure mode.

    Precedence is panic, then must, then warn; anything else is silent.
    """
    flags = set(flags)
    if Flag.PANIC in flags:
        return FailureMode.PANIC
    if Flag.MUST in flags:
        return FailureMode.EXIT
    if Flag.WARN in flags:
        return FailureMode.WARN
    return FailureMode.SILENT


def first_line(text: str) -> str:
    lines = text.splitlines()
    return lines[0].strip() if lines else ""


def split_lines(text: str) -> list[str]:
    return [line.strip() for line in text.splitlines() if line.strip()]


class RepositoryContext:
    """Repository queries and mutations as typed calls.

    A context holds an output handle and a fixed set of behavior flags.
    Every operation takes the directory to run in; nothing about a
    repository is remembered between calls.

    Example:
        >>> ctx = RepositoryContext(ConsoleOutput(), Flag.WARN)
        >>> ctx.is_git(".")
        True
        >>> ctx.status(".")
        <Status.CLEAN: 'clean'>
    """

    def __init__(
        self,
        output: Output,
        *flags: Flag,
        config: GitCtxConfig | None = None,
        runner: Runner | None = None,
        escape_mode: EscapeMode | None = None,
        terminate: Terminate = sys.exit,
    ) -> None:
        """Initialize the context.

        Args:
            output: Receives warnings and fatal errors.
            *flags: Behavior flags, added to any in ``config``.
            config: Settings; defaults to GitCtxConfig().
            runner: Process runner; defaults to a CommandRunner on ``output``.
            escape_mode: Escape decision cell; defaults to the process-wide one.
            terminate: Called with exit code 1 when a fatal failure must end
                the process.
        """
        self.output = output
        self.config = config or GitCtxConfig()
        self.flags = frozenset((*self.config.flags, *flags))
        self.mode = failure_mode_for(self.flags)
        self.terminate = terminate
        self.runner = runner or CommandRunner(
            output, verbose=Flag.VERBOSE in self.flags, terminate=terminate
        )
        self.escape_mode = escape_mode or ESCAPE_MODE
        self.classifier: StatusClassifier = classifier_for(
            self.config.status_policy,
            remote=self.config.remote,
            branch=self.config.default_branch,
        )

    @property
    def git(self) -> str:
        return self.config.git_binary

    def _run(
        self, path: str | Path, *args: str, mode: FailureMode | None = None
    ) -> CommandResult:
        return self.runner.run(
            [self.git, *args],
            cwd=Path(path),
            mode=self.mode if mode is None else mode,
        )

    def _exec(self, path: str | Path, *args: str) -> str:
        """Run git with the context's failure mode and return stdout.

        Raises:
            CommandError: If git exits non-zero.
        """
        result = self._run(path, *args)
        if not result.ok:
            raise result.to_error()
        return result.stdout

    def _require_remote_access(self, operation: str) -> None:
        if Flag.LOCAL_ONLY in self.flags:
            msg = f"Refusing to {operation}: context is local-only"
            self.output.warning(msg)
            raise LocalOnlyError(msg, operation=operation)

    def _escape_probe_failed(self, message: str) -> None:
        self.output.error(message)
        self.terminate(1)
        raise EscapeProbeError(message)

    def _escaped(self, path: str | Path, *args: str) -> list[str]:
        """Escape ``@{...}`` arguments, probing the git build first if needed."""
        self.escape_mode.ensure(
            Path(path),
            self.runner,
            git=self.git,
            on_failure=self._escape_probe_failed,
        )
        return [self.escape_mode.escape(arg) for arg in args]

    def is_git(self, path: str | Path) -> bool:
        """Whether ``path`` is inside a git working tree.

        Never raises and never escalates; a failing probe means False.
        """
        try:
            result = self._run(
                path, "rev-parse", "--is-inside-work-tree", mode=FailureMode.SILENT
            )
        except CommandError:
            return False
        return result.ok and first_line(result.stdout) == "true"

    def _probe_outcomes(self, path: str | Path) -> Iterator[ProbeOutcome]:
        for probe in self.classifier.probes:
            args = self._escaped(path, *probe.args) if probe.escaped else list(probe.args)
            mode = self.mode if probe.routed else FailureMode.SILENT
            result = self._run(path, *args, mode=mode)
            yield ProbeOutcome(
                name=probe.name,
                returncode=result.returncode,
                stdout=result.stdout,
                stderr=result.stderr,
            )

    def status(self, path: str | Path) -> Status:
        """Classify the working copy at ``path``.

        Raises:
            StatusUnknownError: If a probe failed to run; its ``status`` is
                Status.UNKNOWN.
        """
        log = logger.bind(path=str(path), policy=self.classifier.policy.value)
        classification = self.classifier.classify(self._probe_outcomes(path))

        if classification.status == Status.UNKNOWN:
            failed = classification.failed
            probe = failed.name if failed else ""
            detail = (failed.stderr.strip() or failed.stdout.strip()) if failed else ""
            msg = f"Could not determine status of {path}: probe '{probe}' failed"
            if detail:
                msg = f"{msg}\n{detail}"
            log.warning("Status unknown", probe=probe)
            raise StatusUnknownError(
                msg,
                probe=probe,
                returncode=failed.returncode if failed else None,
                cwd=Path(path),
                stdout=failed.stdout if failed else "",
                stderr=failed.stderr if failed else "",
            )

        log.debug("Status classified", status=classification.status.value)
        return classification.status

    def toplevel(self, path: str | Path) -> Path:
        """Working-tree root containing ``path``, without resolving symlinks.

        Raises:
            RepositoryNotFoundError: If no ancestor holds repository metadata.
        """
        return find_toplevel(path, self.config.metadata_dir)

    def sha(self, path: str | Path) -> str:
        """Full object name of HEAD."""
        return first_line(self._exec(path, "rev-parse", "HEAD"))

    def tags(self, path: str | Path) -> list[str]:
        """Tags pointing exactly at HEAD, in git's refname order."""
        return split_lines(self._exec(path, "tag", "--points-at", "HEAD"))

    def most_recent_tag(self, path: str | Path) -> str:
        """Most recent tag reachable from HEAD, or "" if the repo has none.

        The first attempt is silent. If it fails for any reason other than
        there being no tags at all, the command is run again under the
        context's failure mode so the real error is reported.
        """
        args = ("describe", "--abbrev=0", "--tags")
        result = self._run(path, *args, mode=FailureMode.SILENT)
        if result.ok:
            return first_line(result.stdout)
        if NO_TAGS_MESSAGE in result.stderr:
            return ""

        logger.debug("describe failed, re-running to report", path=str(path))
        return first_line(self._exec(path, *args))

    def remote_origin_url(self, path: str | Path) -> str:
        """URL configured for the remote (``origin`` by default)."""
        key = f"remote.{self.config.remote}.url"
        return first_line(self._exec(path, "config", "--get", key))

    def abbrev_ref(self, path: str | Path) -> str:
        """Short name of the checked-out branch ("HEAD" when detached)."""
        return first_line(self._exec(path, "rev-parse", "--abbrev-ref", "HEAD"))

    def commit_time(self, path: str | Path) -> datetime:
        """Committer time of HEAD, in UTC."""
        stamp = first_line(self._exec(path, "log", "-1", "--format=%ct", "HEAD"))
        return datetime.fromtimestamp(int(stamp), tz=UTC)

    def upstream(self, path: str | Path) -> str:
        """Short name of the upstream-tracking ref, e.g. ``origin/master``."""
        args = self._escaped(
            path, "rev-parse", "--abbrev-ref", "--symbolic-full-name", "@{upstream}"
        )
        return first_line(self._exec(path, *args))

    def clone(self, target_path: str | Path, url: str) -> None:
        """Clone ``url`` into ``target_path``, creating it if needed.

        Raises:
            OSError: If the directory cannot be created (unless the must
                flag ends the process first).
            CommandError: If the clone fails.
        """
        self._require_remote_access("clone")
        target = Path(target_path)
        log = logger.bind(target=str(target), url=url)
        log.info("Cloning repository")

        try:
            target.mkdir(parents=True, exist_ok=True)
        except OSError:
            if Flag.MUST in self.flags:
                self.output.error("Could not create: %s", target)
                self.terminate(1)
            raise

        self._exec(target, "clone", url, ".")
        log.info("Clone complete")

    def checkout(self, target_path: str | Path, ref: str) -> None:
        logger.info("Checking out", target=str(target_path), ref=ref)
        self._exec(target_path, "checkout", ref)

    def pull(self, target_path: str | Path) -> None:
        self._require_remote_access("pull")
        logger.info("Pulling", target=str(target_path))
        self._exec(target_path, "pull")
