# SPDX-License-Identifier: MIT
"""Tests for resolution policies and the conflict resolver."""

import pytest

from c14pipeline.deduplication import (
    Reason,
    ResolutionPolicy,
    SelectionRule,
    Verdict,
    apply,
    find_groups,
    resolve,
)
from c14pipeline.deduplication.resolver import age_conflict, select_candidate
from c14pipeline.exceptions import PolicyError


def _group(records):
    groups = find_groups(records).groups
    assert len(groups) == 1
    return groups[0]


class TestResolutionPolicy:
    """Test policy construction and validation."""

    def test_defaults(self):
        policy = ResolutionPolicy()
        assert policy.mark_only is True
        assert policy.selection_rule == SelectionRule.MOST_PRECISE
        assert policy.conflict_tolerance == 2.0
        assert policy.drop_irreconcilable is False
        assert policy.priority_of("radon") > policy.priority_of("p3k14c")

    def test_rule_from_string(self):
        assert ResolutionPolicy(selection_rule="first").selection_rule == SelectionRule.FIRST

    def test_unknown_rule_fails_fast(self):
        with pytest.raises(PolicyError, match="selection_rule"):
            ResolutionPolicy(selection_rule="newest")

    @pytest.mark.parametrize("tolerance", [-1, "wide", float("nan")])
    def test_invalid_tolerance(self, tolerance):
        with pytest.raises(PolicyError):
            ResolutionPolicy(conflict_tolerance=tolerance)

    @pytest.mark.parametrize("flag", ["mark_only", "drop_irreconcilable", "numeric_labnr"])
    @pytest.mark.parametrize("value", ["false", 1, None])
    def test_flags_must_be_bool(self, flag, value):
        with pytest.raises(PolicyError, match=flag):
            ResolutionPolicy(**{flag: value})

    def test_invalid_priority(self):
        with pytest.raises(PolicyError):
            ResolutionPolicy(source_priority_table={"radon": "high"})

    def test_priority_lookup_is_case_insensitive(self):
        policy = ResolutionPolicy(source_priority_table={"RADON": 3})
        assert policy.priority_of("radon") == 3.0
        assert policy.priority_of("Radon") == 3.0
        assert policy.priority_of("unknown-db") == 0.0
        assert policy.priority_of(None) == 0.0

    def test_from_preferences(self):
        policy = ResolutionPolicy.from_preferences(["calpal", "radon"], mark_only=False)
        assert policy.selection_rule == SelectionRule.SOURCE_PRIORITY
        assert policy.priority_of("calpal") > policy.priority_of("radon") > policy.priority_of("nerd")

    def test_from_settings(self):
        from c14pipeline.config import DedupSettings

        policy = ResolutionPolicy.from_settings(
            DedupSettings(mark_only=False, selection_rule="first"),
            conflict_tolerance=3,
            drop_irreconcilable=None,
        )
        assert policy.mark_only is False
        assert policy.selection_rule == SelectionRule.FIRST
        assert policy.conflict_tolerance == 3.0
        assert policy.drop_irreconcilable is False


class TestSelectCandidate:
    """Test the survivor selection rules and their tie-breaks."""

    def test_most_precise_picks_smallest_std(self, oxa_records):
        policy = ResolutionPolicy(mark_only=False)
        member, reason = select_candidate(_group(oxa_records), policy)
        assert member.position == 2
        assert reason == Reason.UNCERTAINTY

    def test_most_precise_tie_broken_by_source_priority(self, make_record):
        records = [
            make_record("KIA-1", 500, 20, "calpal"),
            make_record("KIA-1", 500, 20, "radon"),
        ]
        policy = ResolutionPolicy(source_priority_table={"radon": 2, "calpal": 1})
        member, reason = select_candidate(_group(records), policy)
        assert member.position == 1
        assert reason == Reason.SOURCE_PRIORITY

    def test_most_precise_total_tie_broken_by_position(self, make_record):
        """Identical age, std and priority should still yield exactly one survivor."""
        records = [make_record("KIA-1", 500, 20, "radon") for _ in range(4)]
        member, reason = select_candidate(_group(records), ResolutionPolicy())
        assert member.position == 0
        assert reason == Reason.INPUT_ORDER

    def test_most_precise_ignores_missing_std(self, make_record):
        """Members without std rank after scored members."""
        records = [
            make_record("KIA-1", 500, None, "radon"),
            make_record("KIA-1", 500, 50, "p3k14c"),
        ]
        member, reason = select_candidate(_group(records), ResolutionPolicy())
        assert member.position == 1
        assert reason == Reason.UNCERTAINTY

    def test_most_precise_falls_back_to_first(self, make_record):
        records = [
            make_record("KIA-1", 500, None, "p3k14c"),
            make_record("KIA-1", 500, float("nan"), "radon"),
        ]
        member, reason = select_candidate(_group(records), ResolutionPolicy())
        assert member.position == 0
        assert reason == Reason.FALLBACK_FIRST

    def test_negative_std_is_unusable(self, make_record):
        records = [
            make_record("KIA-1", 500, -5, "radon"),
            make_record("KIA-1", 500, 40, "radon"),
        ]
        member, _ = select_candidate(_group(records), ResolutionPolicy())
        assert member.position == 1

    def test_first(self, oxa_records):
        member, reason = select_candidate(_group(oxa_records), ResolutionPolicy(selection_rule="first"))
        assert member.position == 0
        assert reason == Reason.FIRST

    def test_source_priority(self, oxa_records):
        policy = ResolutionPolicy(
            selection_rule="source_priority",
            source_priority_table={"calpal": 10, "radon": 5, "euroevol": 1},
        )
        member, reason = select_candidate(_group(oxa_records), policy)
        assert member.position == 1
        assert reason == Reason.SOURCE_PRIORITY

    def test_source_priority_tie_falls_through_to_precision(self, make_record):
        records = [
            make_record("KIA-1", 500, 40, "radon"),
            make_record("KIA-1", 500, 25, "radon"),
            make_record("KIA-1", 500, 10, "calpal"),
        ]
        policy = ResolutionPolicy(
            selection_rule="source_priority",
            source_priority_table={"radon": 2, "calpal": 1},
        )
        member, reason = select_candidate(_group(records), policy)
        assert member.position == 1
        assert reason == Reason.UNCERTAINTY


class TestAgeConflict:
    """Test detection of irreconcilable groups."""

    def test_compatible_ages(self, oxa_records):
        conflict, spread = age_conflict(_group(oxa_records), tolerance=2.0)
        assert conflict is False
        # |500 - 480| / sqrt(20² + 15²) = 20 / 25
        assert spread == pytest.approx(0.8)

    def test_conflicting_ages(self, make_record):
        records = [make_record("KIA-1", 500, 30), make_record("KIA-1", 700, 40)]
        conflict, spread = age_conflict(_group(records), tolerance=2.0)
        assert conflict is True
        assert spread == pytest.approx(4.0)

    def test_tolerance_boundary_is_not_a_conflict(self, make_record):
        records = [make_record("KIA-1", 500, 30), make_record("KIA-1", 600, 40)]
        conflict, _ = age_conflict(_group(records), tolerance=2.0)
        assert conflict is False

    def test_missing_ages_skipped(self, make_record):
        records = [make_record("KIA-1", None, 30), make_record("KIA-1", 600, 40)]
        assert age_conflict(_group(records), tolerance=2.0) == (False, None)

    def test_missing_std_counts_as_zero(self, make_record):
        records = [make_record("KIA-1", 500, None), make_record("KIA-1", 501, None)]
        conflict, spread = age_conflict(_group(records), tolerance=2.0)
        assert conflict is True
        assert spread is None


class TestResolve:
    """Test verdicts."""

    def test_mark_only(self, oxa_records):
        resolution = resolve(_group(oxa_records), ResolutionPolicy(mark_only=True))
        assert resolution.verdict == Verdict.KEEP_ALL_MARKED
        assert resolution.survivor is None
        assert resolution.candidate == 2
        assert resolution.dropped == ()

    def test_keep_one(self, oxa_records):
        resolution = resolve(_group(oxa_records), ResolutionPolicy(mark_only=False))
        assert resolution.verdict == Verdict.KEEP_ONE
        assert resolution.survivor == 2
        assert resolution.dropped == (0, 1)

    def test_irreconcilable_resolved_by_default(self, make_record):
        records = [make_record("KIA-1", 500, 10), make_record("KIA-1", 900, 20)]
        resolution = resolve(_group(records), ResolutionPolicy(mark_only=False))
        assert resolution.irreconcilable is True
        assert resolution.verdict == Verdict.KEEP_ONE
        assert resolution.survivor == 0

    def test_irreconcilable_dropped_in_strict_mode(self, make_record):
        records = [make_record("KIA-1", 500, 10), make_record("KIA-1", 900, 20)]
        policy = ResolutionPolicy(mark_only=False, drop_irreconcilable=True)
        resolution = resolve(_group(records), policy)
        assert resolution.verdict == Verdict.KEEP_NONE
        assert resolution.survivor is None
        assert resolution.dropped == (0, 1)

    def test_strict_mode_keeps_reconcilable_groups(self, oxa_records):
        policy = ResolutionPolicy(mark_only=False, drop_irreconcilable=True)
        assert resolve(_group(oxa_records), policy).verdict == Verdict.KEEP_ONE

    def test_strict_mark_only_still_marks(self, make_record):
        records = [make_record("KIA-1", 500, 10), make_record("KIA-1", 900, 20)]
        policy = ResolutionPolicy(mark_only=True, drop_irreconcilable=True)
        resolution = resolve(_group(records), policy)
        assert resolution.verdict == Verdict.KEEP_ALL_MARKED
        assert resolution.irreconcilable is True

    def test_does_not_mutate_records(self, oxa_records):
        before = [r.to_dict() for r in oxa_records]
        resolve(_group(oxa_records), ResolutionPolicy(mark_only=False))
        assert [r.to_dict() for r in oxa_records] == before


class TestApply:
    def test_apply_keeps_order(self, oxa_records):
        group = _group(oxa_records)
        resolution = resolve(group, ResolutionPolicy(mark_only=False))
        kept = apply(oxa_records, [resolution])
        assert kept == [oxa_records[2], oxa_records[3]]

    def test_apply_without_resolutions(self, oxa_records):
        assert apply(oxa_records, []) == oxa_records
