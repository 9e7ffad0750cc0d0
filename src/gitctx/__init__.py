"""gitctx - typed access to repository state through the git command line."""

from gitctx.config import GitCtxConfig
from gitctx.exceptions import (
    CommandError,
    ConfigError,
    EscapeProbeError,
    FatalCommandError,
    GitCtxError,
    LocalOnlyError,
    RepositoryNotFoundError,
    StatusUnknownError,
)
from gitctx.models import Flag, Status, StatusPolicy
from gitctx.output import BufferedOutput, ConsoleOutput, LogOutput
from gitctx.repository import RepositoryContext

__version__ = "0.1.0"

__all__ = (
    "BufferedOutput",
    "CommandError",
    "ConfigError",
    "ConsoleOutput",
    "EscapeProbeError",
    "FatalCommandError",
    "Flag",
    "GitCtxConfig",
    "GitCtxError",
    "LocalOnlyError",
    "LogOutput",
    "RepositoryContext",
    "RepositoryNotFoundError",
    "Status",
    "StatusPolicy",
    "StatusUnknownError",
    "__version__",
)
