"""Unit tests for status classification over canned probe outcomes."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from gitctx.models import Status, StatusPolicy
from gitctx.status import (
    ProbeOutcome,
    RemoteContainmentClassifier,
    UpstreamTrackingClassifier,
    classifier_for,
    remote_branches,
)


def ok(name: str, stdout: str = "") -> ProbeOutcome:
    return ProbeOutcome(name=name, returncode=0, stdout=stdout)


def failed(name: str, stderr: str = "fatal: boom") -> ProbeOutcome:
    return ProbeOutcome(name=name, returncode=128, stderr=stderr)


class Tracked:
    """Yields canned outcomes and remembers how many were consumed."""

    def __init__(self, outcomes: list[ProbeOutcome]) -> None:
        self.outcomes = outcomes
        self.consumed = 0

    def __iter__(self) -> Iterator[ProbeOutcome]:
        for outcome in self.outcomes:
            self.consumed += 1
            yield outcome


class TestRemoteContainment:
    """Tests for the default policy."""

    @pytest.fixture
    def classifier(self) -> RemoteContainmentClassifier:
        return RemoteContainmentClassifier(remote="origin", branch="master")

    def test_probe_order(self, classifier: RemoteContainmentClassifier) -> None:
        assert [p.name for p in classifier.probes] == ["porcelain", "head", "contains"]
        assert [p.routed for p in classifier.probes] == [True, False, True]
        assert not any(p.escaped for p in classifier.probes)

    def test_clean(self, classifier: RemoteContainmentClassifier) -> None:
        result = classifier.classify(
            [ok("porcelain"), ok("head", "abc\n"), ok("contains", "  origin/master\n")]
        )
        assert result.status == Status.CLEAN
        assert result.failed is None

    def test_porcelain_failure_is_unknown(self, classifier: RemoteContainmentClassifier) -> None:
        outcomes = Tracked([failed("porcelain"), ok("head"), ok("contains")])
        result = classifier.classify(outcomes)
        assert result.status == Status.UNKNOWN
        assert result.failed is not None
        assert result.failed.name == "porcelain"
        assert outcomes.consumed == 1

    def test_uncommitted_stops_early(self, classifier: RemoteContainmentClassifier) -> None:
        outcomes = Tracked([ok("porcelain", "?? new.txt\n"), ok("head"), ok("contains")])
        assert classifier.classify(outcomes).status == Status.UNCOMMITTED
        assert outcomes.consumed == 1

    def test_no_commits_is_no_upstream(self, classifier: RemoteContainmentClassifier) -> None:
        outcomes = Tracked([ok("porcelain"), failed("head", ""), ok("contains")])
        assert classifier.classify(outcomes).status == Status.NO_UPSTREAM
        assert outcomes.consumed == 2

    def test_no_remote_branch_is_no_upstream(
        self, classifier: RemoteContainmentClassifier
    ) -> None:
        result = classifier.classify([ok("porcelain"), ok("head"), ok("contains", "")])
        assert result.status == Status.NO_UPSTREAM

    def test_other_branch_is_not_master(self, classifier: RemoteContainmentClassifier) -> None:
        result = classifier.classify(
            [ok("porcelain"), ok("head"), ok("contains", "  origin/newbranch\n")]
        )
        assert result.status == Status.NOT_MASTER

    def test_prefix_match_is_not_enough(self, classifier: RemoteContainmentClassifier) -> None:
        result = classifier.classify(
            [ok("porcelain"), ok("head"), ok("contains", "  origin/master-old\n")]
        )
        assert result.status == Status.NOT_MASTER

    def test_symbolic_remote_head_counts(self, classifier: RemoteContainmentClassifier) -> None:
        result = classifier.classify(
            [ok("porcelain"), ok("head"), ok("contains", "  origin/HEAD -> origin/master\n")]
        )
        assert result.status == Status.CLEAN

    def test_contains_failure_is_unknown(self, classifier: RemoteContainmentClassifier) -> None:
        result = classifier.classify([ok("porcelain"), ok("head"), failed("contains")])
        assert result.status == Status.UNKNOWN
        assert result.failed is not None
        assert result.failed.name == "contains"

    def test_custom_branch(self) -> None:
        classifier = RemoteContainmentClassifier(remote="upstream", branch="main")
        result = classifier.classify(
            [ok("porcelain"), ok("head"), ok("contains", "  upstream/main\n  origin/master\n")]
        )
        assert result.status == Status.CLEAN

    def test_missing_outcome_raises(self, classifier: RemoteContainmentClassifier) -> None:
        with pytest.raises(ValueError, match="head"):
            classifier.classify([ok("porcelain")])


class TestUpstreamTracking:
    """Tests for the upstream-tracking policy."""

    @pytest.fixture
    def classifier(self) -> UpstreamTrackingClassifier:
        return UpstreamTrackingClassifier()

    def test_probe_order(self, classifier: UpstreamTrackingClassifier) -> None:
        assert [p.name for p in classifier.probes] == [
            "porcelain",
            "symbolic-head",
            "head",
            "upstream",
            "unpushed",
        ]
        assert [p.escaped for p in classifier.probes] == [False, False, False, True, True]

    def test_clean(self, classifier: UpstreamTrackingClassifier) -> None:
        result = classifier.classify(
            [
                ok("porcelain"),
                ok("symbolic-head", "refs/heads/master\n"),
                ok("head"),
                ok("upstream", "origin/master\n"),
                ok("unpushed", ""),
            ]
        )
        assert result.status == Status.CLEAN

    def test_detached(self, classifier: UpstreamTrackingClassifier) -> None:
        outcomes = Tracked([ok("porcelain"), failed("symbolic-head", ""), ok("head")])
        assert classifier.classify(outcomes).status == Status.DETACHED
        assert outcomes.consumed == 2

    def test_unborn_branch_never_reaches_upstream(
        self, classifier: UpstreamTrackingClassifier
    ) -> None:
        outcomes = Tracked(
            [ok("porcelain"), ok("symbolic-head"), failed("head", ""), ok("upstream")]
        )
        assert classifier.classify(outcomes).status == Status.NO_UPSTREAM
        assert outcomes.consumed == 3

    def test_no_upstream(self, classifier: UpstreamTrackingClassifier) -> None:
        result = classifier.classify(
            [ok("porcelain"), ok("symbolic-head"), ok("head"), failed("upstream")]
        )
        assert result.status == Status.NO_UPSTREAM

    def test_unpushed(self, classifier: UpstreamTrackingClassifier) -> None:
        result = classifier.classify(
            [
                ok("porcelain"),
                ok("symbolic-head"),
                ok("head"),
                ok("upstream"),
                ok("unpushed", "0123abcd\n"),
            ]
        )
        assert result.status == Status.UNPUSHED

    def test_unpushed_failure_is_unknown(self, classifier: UpstreamTrackingClassifier) -> None:
        result = classifier.classify(
            [
                ok("porcelain"),
                ok("symbolic-head"),
                ok("head"),
                ok("upstream"),
                failed("unpushed"),
            ]
        )
        assert result.status == Status.UNKNOWN
        assert result.failed is not None
        assert result.failed.name == "unpushed"


def test_classifier_for_policy() -> None:
    assert isinstance(
        classifier_for(StatusPolicy.UPSTREAM_TRACKING), UpstreamTrackingClassifier
    )
    containment = classifier_for(
        StatusPolicy.REMOTE_CONTAINMENT, remote="upstream", branch="trunk"
    )
    assert isinstance(containment, RemoteContainmentClassifier)
    assert containment.tracking_ref == "upstream/trunk"


def test_remote_branches_parses_lines() -> None:
    output = "  origin/HEAD -> origin/master\n  origin/feature\n\n"
    assert remote_branches(output) == {"origin/HEAD", "origin/master", "origin/feature"}
    assert remote_branches("") == set()
