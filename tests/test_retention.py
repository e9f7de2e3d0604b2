"""Tests for the retention policy."""

import itertools
import re

import pytest

from condbuild.config import DEFAULT_KEEP_REGEX
from condbuild.domain.version import VersionRecord
from condbuild.retention import compute_deletions, is_protected


def versions(*tag_lists):
    """Newest first; ids count down so the newest has the highest id."""
    total = len(tag_lists)
    return [VersionRecord(id=total - i, tags=tuple(tags)) for i, tags in enumerate(tag_lists)]


class TestComputeDeletions:
    def test_keep_three_of_five_deletes_two_oldest(self):
        vs = versions(["pr5"], ["pr4"], ["pr3"], ["pr2"], ["pr1"])
        decision = compute_deletions(vs, 3, DEFAULT_KEEP_REGEX)
        assert decision.delete == frozenset({2, 1})
        assert decision.kept == [5, 4, 3]

    def test_keep_none_is_noop(self):
        vs = versions(["pr2"], ["pr1"])
        decision = compute_deletions(vs, None, DEFAULT_KEEP_REGEX)
        assert decision.delete == frozenset()
        assert decision.kept == []

    def test_keep_zero_deletes_all_unprotected(self):
        vs = versions(["pr2"], ["prod"], ["pr1"])
        decision = compute_deletions(vs, 0, DEFAULT_KEEP_REGEX)
        assert decision.delete == frozenset({3, 1})
        assert decision.protected == [2]

    def test_protected_versions_do_not_use_keep_slots(self):
        vs = versions(["prod"], ["v1.2.3"], ["pr3"], ["pr2"], ["pr1"])
        decision = compute_deletions(vs, 2, DEFAULT_KEEP_REGEX)
        assert decision.protected == [5, 4]
        assert decision.kept == [3, 2]
        assert decision.delete == frozenset({1})

    def test_old_protected_version_survives(self):
        vs = versions(["pr4"], ["pr3"], ["pr2"], ["test"])
        decision = compute_deletions(vs, 1, DEFAULT_KEEP_REGEX)
        assert 1 not in decision.delete
        assert decision.delete == frozenset({3, 2})

    def test_untagged_versions_are_candidates(self):
        vs = versions([], [], ["pr1"])
        decision = compute_deletions(vs, 1, DEFAULT_KEEP_REGEX)
        assert decision.delete == frozenset({2, 1})

    def test_any_matching_tag_protects(self):
        vs = versions(["pr9", "prod"], ["pr8"])
        decision = compute_deletions(vs, 0, DEFAULT_KEEP_REGEX)
        assert decision.delete == frozenset({1})

    def test_empty_pattern_protects_nothing(self):
        vs = versions(["prod"], ["test"])
        decision = compute_deletions(vs, 1, "")
        assert decision.delete == frozenset({1})

    def test_negative_keep_rejected(self):
        with pytest.raises(ValueError):
            compute_deletions([], -1)

    def test_no_versions(self):
        assert compute_deletions([], 3, DEFAULT_KEEP_REGEX).delete == frozenset()

    def test_protected_never_deleted_for_any_ordering(self):
        base = versions(["prod"], ["pr3"], ["v2"], ["pr2"], ["test"], ["pr1"])
        protected_ids = {v.id for v in base if is_protected(v, re.compile(DEFAULT_KEEP_REGEX))}
        for ordering in itertools.permutations(base):
            for keep in (0, 1, 3):
                decision = compute_deletions(ordering, keep, DEFAULT_KEEP_REGEX)
                assert not (decision.delete & protected_ids)


class TestDefaultKeepRegex:
    @pytest.mark.parametrize("tag", ["prod", "test", "v1", "v1.2", "v1.2.3", "v2.0.0-rc1"])
    def test_protected(self, tag):
        assert re.search(DEFAULT_KEEP_REGEX, tag)

    @pytest.mark.parametrize("tag", ["pr42", "production", "latest", "1.2.3", "demo"])
    def test_not_protected(self, tag):
        assert not re.search(DEFAULT_KEEP_REGEX, tag)
