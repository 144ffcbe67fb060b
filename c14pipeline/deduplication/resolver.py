"""
Resolution of duplicate groups.

``resolve`` decides per group which record survives, ``apply`` turns those
decisions into a filtered record list. Groups are disjoint, so resolving
one never depends on another.
"""

import math
from dataclasses import dataclass
from enum import Enum
from itertools import combinations
from typing import Optional, Sequence

from loguru import logger

from c14pipeline.date_list import Record
from c14pipeline.deduplication.grouping import DuplicateGroup, Member
from c14pipeline.deduplication.policy import ResolutionPolicy, SelectionRule


class Verdict(str, Enum):
    KEEP_ONE = "keep_one"
    KEEP_ALL_MARKED = "keep_all_marked"
    KEEP_NONE = "keep_none"


class Reason(str, Enum):
    """Rule level that singled out the candidate survivor."""

    UNCERTAINTY = "uncertainty"
    SOURCE_PRIORITY = "source_priority"
    INPUT_ORDER = "input_order"
    FIRST = "first"
    FALLBACK_FIRST = "fallback_first"


@dataclass(frozen=True)
class Resolution:
    """Outcome for one duplicate group."""
    key: str
    verdict: Verdict
    positions: tuple[int, ...]
    candidate: int                # record the selection rule prefers
    survivor: Optional[int]       # None unless verdict is KEEP_ONE
    reason: Reason
    irreconcilable: bool = False
    max_spread: Optional[float] = None   # largest age difference in combined sigmas

    @property
    def dropped(self) -> tuple[int, ...]:
        if self.verdict == Verdict.KEEP_ONE:
            return tuple(p for p in self.positions if p != self.survivor)
        if self.verdict == Verdict.KEEP_NONE:
            return self.positions
        return ()


def _usable_std(value) -> Optional[float]:
    if value is None:
        return None
    try:
        value = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(value) or math.isinf(value) or value < 0:
        return None
    return value


def _usable_age(value) -> Optional[float]:
    if value is None:
        return None
    try:
        value = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(value) or math.isinf(value):
        return None
    return value


def age_conflict(group: DuplicateGroup, tolerance: float) -> tuple[bool, Optional[float]]:
    """
    Check whether the ages in a group are compatible.

    Two ages conflict when ``|age_i - age_j| > tolerance * sqrt(std_i² + std_j²)``,
    missing standard deviations counting as 0. Pairs with a missing age are
    skipped.

    Returns:
        (irreconcilable, max_spread) where max_spread is the largest pairwise
        difference in combined sigmas, None if no pair had a usable sigma
    """
    conflict = False
    max_spread = None

    for a, b in combinations(group.members, 2):
        age_a, age_b = _usable_age(a.record.c14age), _usable_age(b.record.c14age)
        if age_a is None or age_b is None:
            continue
        std_a = _usable_std(a.record.c14std) or 0.0
        std_b = _usable_std(b.record.c14std) or 0.0
        diff = abs(age_a - age_b)
        combined = math.hypot(std_a, std_b)

        if diff > tolerance * combined:
            conflict = True
        if combined > 0:
            spread = diff / combined
            max_spread = spread if max_spread is None else max(max_spread, spread)

    return conflict, max_spread


def _sort_key(member: Member, rule: SelectionRule, policy: ResolutionPolicy) -> tuple:
    std = _usable_std(member.record.c14std)
    std = math.inf if std is None else std
    priority = -policy.priority_of(member.record.sourcedb)
    if rule == SelectionRule.SOURCE_PRIORITY:
        return (priority, std, member.position)
    return (std, priority, member.position)


_LEVELS = {
    SelectionRule.MOST_PRECISE: (Reason.UNCERTAINTY, Reason.SOURCE_PRIORITY, Reason.INPUT_ORDER),
    SelectionRule.SOURCE_PRIORITY: (Reason.SOURCE_PRIORITY, Reason.UNCERTAINTY, Reason.INPUT_ORDER),
}


def select_candidate(group: DuplicateGroup, policy: ResolutionPolicy) -> tuple[Member, Reason]:
    """
    Pick the member the policy's selection rule prefers.

    ``most_precise`` orders by (std asc, source priority desc, position asc),
    ``source_priority`` by (source priority desc, std asc, position asc).
    Position is unique, so there is always exactly one winner. A group where
    no member has a usable std cannot be scored by ``most_precise`` and falls
    back to ``first``.
    """
    rule = policy.selection_rule
    first = min(group.members, key=lambda m: m.position)

    if rule == SelectionRule.FIRST:
        return first, Reason.FIRST

    if rule == SelectionRule.MOST_PRECISE and all(
        _usable_std(m.record.c14std) is None for m in group.members
    ):
        return first, Reason.FALLBACK_FIRST

    ranked = sorted(group.members, key=lambda m: _sort_key(m, rule, policy))
    winner, runner_up = ranked[0], ranked[1]
    winner_key = _sort_key(winner, rule, policy)
    runner_key = _sort_key(runner_up, rule, policy)

    levels = _LEVELS[rule]
    for level, (w, r) in enumerate(zip(winner_key, runner_key)):
        if w != r:
            return winner, levels[level]

    # unreachable: positions are unique
    return winner, Reason.INPUT_ORDER


def resolve(group: DuplicateGroup, policy: ResolutionPolicy) -> Resolution:
    """
    Decide the fate of one duplicate group.

    Never raises for a non-empty group and never touches the records.
    """
    candidate, reason = select_candidate(group, policy)
    irreconcilable, max_spread = age_conflict(group, policy.conflict_tolerance)

    if policy.mark_only:
        verdict = Verdict.KEEP_ALL_MARKED
        survivor = None
    elif irreconcilable and policy.drop_irreconcilable:
        verdict = Verdict.KEEP_NONE
        survivor = None
    else:
        verdict = Verdict.KEEP_ONE
        survivor = candidate.position

    if irreconcilable:
        spread = f"{max_spread:.1f} sigma" if max_spread is not None else "no sigma"
        logger.warning(
            f"Lab number '{group.key}' has conflicting ages across {len(group)} records "
            f"(max spread {spread}, {verdict.value})"
        )
    logger.debug(
        f"Group '{group.key}': {verdict.value}, candidate #{candidate.position} ({reason.value})"
    )

    return Resolution(
        key=group.key,
        verdict=verdict,
        positions=group.positions,
        candidate=candidate.position,
        survivor=survivor,
        reason=reason,
        irreconcilable=irreconcilable,
        max_spread=max_spread,
    )


def dropped_positions(resolutions: Sequence[Resolution]) -> set[int]:
    """All input positions removed by a set of resolutions."""
    dropped = set()
    for resolution in resolutions:
        dropped.update(resolution.dropped)
    return dropped


def kept_positions(n_records: int, resolutions: Sequence[Resolution]) -> list[int]:
    """Input positions that survive, in input order."""
    dropped = dropped_positions(resolutions)
    return [i for i in range(n_records) if i not in dropped]


def apply(records: Sequence[Record], resolutions: Sequence[Resolution]) -> list[Record]:
    """
    Filter records according to resolutions.

    Keeps every record that is not dropped, in original relative order.
    """
    return [records[i] for i in kept_positions(len(records), resolutions)]
