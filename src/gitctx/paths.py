"""Path normalization and top-level repository discovery."""

from __future__ import annotations

import os
from pathlib import Path

import structlog

from gitctx.exceptions import RepositoryNotFoundError

logger = structlog.get_logger()

METADATA_DIR = ".git"


def normalize_path(path: str | Path) -> Path:
    """Make a path absolute without following symlinks.

    ``..`` segments are collapsed lexically, so a symlinked directory keeps
    the name the caller used. ``~`` is an ordinary name. Separators are
    converted to the platform's own, and a drive prefix such as ``C:`` is
    kept as given.

    Example:
        >>> normalize_path("/srv/link/../repo")
        PosixPath('/srv/repo')
    """
    return Path(os.path.abspath(os.fspath(path)))


def find_toplevel(path: str | Path, metadata_dir: str = METADATA_DIR) -> Path:
    """Find the working-tree root that contains ``path``.

    Walks from ``path`` up to the filesystem root and returns the first
    directory with ``metadata_dir`` directly beneath it. Only the
    filesystem is inspected; ``git rev-parse --show-toplevel`` is not used
    because it resolves symlinks.

    Args:
        path: Any directory inside the working tree.
        metadata_dir: Name of the repository metadata entry (a directory,
            or a file for worktrees and submodules).

    Returns:
        The normalized top-level directory.

    Raises:
        RepositoryNotFoundError: If no ancestor holds ``metadata_dir``.
    """
    start = normalize_path(path)
    for candidate in (start, *start.parents):
        if (candidate / metadata_dir).exists():
            return normalize_path(candidate)

    logger.debug("No repository metadata found", path=str(start))
    msg = f"Could not find {metadata_dir} in any parent directory of {start}"
    raise RepositoryNotFoundError(msg, path=start)
