"""Working-copy status classification.

A classifier declares an ordered list of probes (git commands) and turns
the outcomes of those probes into a Status. Outcomes are consumed one at a
time and classification stops at the first deciding probe, so callers can
feed a lazy generator and later probes never run. Feeding a plain list of
canned outcomes makes classification testable without git.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from gitctx.models import Status, StatusPolicy


@dataclass(frozen=True)
class Probe:
    """One git command in a classification sequence.

    Attributes:
        name: Short identifier, used in error messages.
        args: Arguments after the git executable.
        routed: Failure goes through the context's failure mode instead of
            being silent.
        escaped: Arguments contain ``@{...}`` and need the escape probe.
    """

    name: str
    args: tuple[str, ...]
    routed: bool = False
    escaped: bool = False


@dataclass(frozen=True)
class ProbeOutcome:
    name: str
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


@dataclass(frozen=True)
class Classification:
    """A Status plus the probe that failed when the Status is UNKNOWN."""

    status: Status
    failed: ProbeOutcome | None = None


PORCELAIN = Probe("porcelain", ("status", "--porcelain"), routed=True)
HEAD_COMMIT = Probe("head", ("rev-parse", "--verify", "--quiet", "HEAD"))


def _take(outcomes: Iterator[ProbeOutcome], probe: Probe) -> ProbeOutcome:
    try:
        return next(outcomes)
    except StopIteration:
        msg = f"Missing outcome for probe '{probe.name}'"
        raise ValueError(msg) from None


def remote_branches(output: str) -> set[str]:
    """Parse ``git branch --remote`` output into branch names.

    Symbolic entries such as ``origin/HEAD -> origin/master`` contribute
    both names.
    """
    names: set[str] = set()
    for line in output.splitlines():
        for part in line.strip().split(" -> "):
            if part:
                names.add(part.strip())
    return names


class StatusClassifier:
    """Base class for status policies."""

    policy: StatusPolicy

    @property
    def probes(self) -> list[Probe]:
        raise NotImplementedError

    def classify(self, outcomes: Iterable[ProbeOutcome]) -> Classification:
        raise NotImplementedError


class RemoteContainmentClassifier(StatusClassifier):
    """Clean means HEAD is contained in ``<remote>/<branch>``.

    Order: uncommitted changes, then whether HEAD has any commit, then
    which remote-tracking branches contain HEAD. A detached HEAD is not
    a separate state here; it is judged by containment like any other.
    """

    policy = StatusPolicy.REMOTE_CONTAINMENT

    def __init__(self, remote: str = "origin", branch: str = "master") -> None:
        self.tracking_ref = f"{remote}/{branch}"
        self.contains = Probe(
            "contains", ("branch", "--remote", "--contains", "HEAD"), routed=True
        )

    @property
    def probes(self) -> list[Probe]:
        return [PORCELAIN, HEAD_COMMIT, self.contains]

    def classify(self, outcomes: Iterable[ProbeOutcome]) -> Classification:
        it = iter(outcomes)

        porcelain = _take(it, PORCELAIN)
        if not porcelain.ok:
            return Classification(Status.UNKNOWN, porcelain)
        if porcelain.stdout.strip():
            return Classification(Status.UNCOMMITTED)

        if not _take(it, HEAD_COMMIT).ok:
            return Classification(Status.NO_UPSTREAM)

        contains = _take(it, self.contains)
        if not contains.ok:
            return Classification(Status.UNKNOWN, contains)
        branches = remote_branches(contains.stdout)
        if not branches:
            return Classification(Status.NO_UPSTREAM)
        if self.tracking_ref not in branches:
            return Classification(Status.NOT_MASTER)
        return Classification(Status.CLEAN)


class UpstreamTrackingClassifier(StatusClassifier):
    """Clean means the checked-out branch has nothing its upstream lacks.

    Order: uncommitted changes, detached HEAD, whether HEAD has any
    commit, whether an upstream is configured, unpushed commits.
    """

    policy = StatusPolicy.UPSTREAM_TRACKING

    SYMBOLIC_HEAD = Probe("symbolic-head", ("symbolic-ref", "--quiet", "HEAD"))
    UPSTREAM = Probe(
        "upstream",
        ("rev-parse", "--abbrev-ref", "--symbolic-full-name", "@{upstream}"),
        escaped=True,
    )
    UNPUSHED = Probe(
        "unpushed", ("rev-list", "@{upstream}..HEAD"), routed=True, escaped=True
    )

    @property
    def probes(self) -> list[Probe]:
        return [PORCELAIN, self.SYMBOLIC_HEAD, HEAD_COMMIT, self.UPSTREAM, self.UNPUSHED]

    def classify(self, outcomes: Iterable[ProbeOutcome]) -> Classification:
        it = iter(outcomes)

        porcelain = _take(it, PORCELAIN)
        if not porcelain.ok:
            return Classification(Status.UNKNOWN, porcelain)
        if porcelain.stdout.strip():
            return Classification(Status.UNCOMMITTED)

        if not _take(it, self.SYMBOLIC_HEAD).ok:
            return Classification(Status.DETACHED)

        if not _take(it, HEAD_COMMIT).ok:
            return Classification(Status.NO_UPSTREAM)

        if not _take(it, self.UPSTREAM).ok:
            return Classification(Status.NO_UPSTREAM)

        unpushed = _take(it, self.UNPUSHED)
        if not unpushed.ok:
            return Classification(Status.UNKNOWN, unpushed)
        if unpushed.stdout.strip():
            return Classification(Status.UNPUSHED)
        return Classification(Status.CLEAN)


def classifier_for(
    policy: StatusPolicy, *, remote: str = "origin", branch: str = "master"
) -> StatusClassifier:
    if policy == StatusPolicy.UPSTREAM_TRACKING:
        return UpstreamTrackingClassifier()
    return RemoteContainmentClassifier(remote=remote, branch=branch)
