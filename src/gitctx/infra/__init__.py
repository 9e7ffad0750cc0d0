"""Process execution for gitctx."""

from gitctx.infra.command import CommandResult, CommandRunner, FailureMode, Runner
from gitctx.infra.fake import FakeCommandRunner, FakeResponse

__all__ = (
    "CommandResult",
    "CommandRunner",
    "FailureMode",
    "FakeCommandRunner",
    "FakeResponse",
    "Runner",
)
