"""Enumerations shared across gitctx."""

from __future__ import annotations

from enum import Enum


class Status(str, Enum):
    """Point-in-time classification of a working copy."""

    UNKNOWN = "unknown"
    CLEAN = "clean"
    UNCOMMITTED = "uncommitted"
    DETACHED = "detached"
    UNPUSHED = "unpushed"
    NO_UPSTREAM = "no_upstream"
    NOT_MASTER = "not_master"


class Flag(str, Enum):
    """Behavior flags a RepositoryContext is created with.

    MUST, PANIC and WARN select how a failing command is escalated.
    VERBOSE echoes every command line. LOCAL_ONLY is consulted directly
    by operations that would contact a remote.
    """

    MUST = "must"
    PANIC = "panic"
    WARN = "warn"
    VERBOSE = "verbose"
    LOCAL_ONLY = "local_only"


class StatusPolicy(str, Enum):
    """Which probe sequence decides a Status."""

    REMOTE_CONTAINMENT = "remote_containment"
    UPSTREAM_TRACKING = "upstream_tracking"
