"""Custom exceptions for gitctx."""

from pathlib import Path

from gitctx.models import Status


class GitCtxError(Exception):
    """Base exception for all gitctx errors."""

    pass


class CommandError(GitCtxError):
    """Raised when a git command exits non-zero or cannot be started."""

    def __init__(
        self,
        message: str,
        *,
        command: list[str] | None = None,
        returncode: int | None = None,
        cwd: Path | None = None,
        stdout: str = "",
        stderr: str = "",
    ) -> None:
        super().__init__(message)
        self.command = command or []
        self.returncode = returncode
        self.cwd = cwd
        self.stdout = stdout
        self.stderr = stderr


class FatalCommandError(GitCtxError):
    """Raised instead of returning an error when the panic flag is set."""

    def __init__(self, message: str, *, cause: CommandError) -> None:
        super().__init__(message)
        self.cause = cause


class StatusUnknownError(CommandError):
    """Raised when a status probe itself failed to run."""

    def __init__(self, message: str, *, probe: str = "", **kwargs) -> None:
        super().__init__(message, **kwargs)
        self.probe = probe
        self.status = Status.UNKNOWN


class EscapeProbeError(GitCtxError):
    """Raised when neither form of the brace-escape probe works."""

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        super().__init__(message)
        self.path = path


class RepositoryNotFoundError(GitCtxError):
    """Raised when no ancestor directory holds repository metadata."""

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        super().__init__(message)
        self.path = path


class LocalOnlyError(GitCtxError):
    """Raised when a remote operation is attempted under the local-only flag."""

    def __init__(self, message: str, *, operation: str = "") -> None:
        super().__init__(message)
        self.operation = operation


class ConfigError(GitCtxError):
    """Raised when configuration is invalid."""

    def __init__(
        self,
        message: str,
        *,
        config_path: Path | None = None,
        field: str = "",
    ) -> None:
        super().__init__(message)
        self.config_path = config_path
        self.field = field
