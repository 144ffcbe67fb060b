"""
Duplicate detection and resolution for radiocarbon date lists.

The same sample frequently appears in several source databases. These
modules find records sharing a lab identifier and collapse each group to
zero or one survivor, or only report the groups (the default).

    normalize_labnr -> find_groups -> resolve -> apply / report
"""

from dataclasses import dataclass
from typing import Any, Optional

import pandas as pd
from loguru import logger

from c14pipeline.date_list import as_records
from c14pipeline.exceptions import PolicyError
from c14pipeline.deduplication.grouping import DuplicateGroup, GroupingResult, Member, find_groups
from c14pipeline.deduplication.policy import ResolutionPolicy, SelectionRule
from c14pipeline.deduplication.report import (
    GroupSummary,
    MemberSummary,
    mark_frame,
    report,
    summaries_to_frame,
)
from c14pipeline.deduplication.resolver import (
    Reason,
    Resolution,
    Verdict,
    apply,
    kept_positions,
    resolve,
)


@dataclass
class DedupResult:
    """Result of a ``remove_duplicates`` run."""
    data: Any                       # same type as the input
    groups: tuple[DuplicateGroup, ...]
    resolutions: list[Resolution]
    summaries: list[GroupSummary]
    n_input: int = 0
    n_output: int = 0

    @property
    def n_groups(self) -> int:
        return len(self.groups)

    @property
    def n_removed(self) -> int:
        return self.n_input - self.n_output

    @property
    def n_irreconcilable(self) -> int:
        return sum(1 for r in self.resolutions if r.irreconcilable)


def remove_duplicates(data, policy: Optional[ResolutionPolicy] = None) -> DedupResult:
    """
    Find and resolve duplicate radiocarbon dates.

    Args:
        data: Date list DataFrame or sequence of Records
        policy: Resolution policy; defaults to ``ResolutionPolicy()``, which
            only marks groups and removes nothing

    Returns:
        DedupResult whose ``data`` has the input's type. A DataFrame keeps its
        columns, dtypes and index labels; only rows are removed, in input order.

    Raises:
        PolicyError: if ``policy`` is not a valid ResolutionPolicy
        SchemaError: if a DataFrame has no ``labnr`` column
    """
    if policy is None:
        policy = ResolutionPolicy()
    elif not isinstance(policy, ResolutionPolicy):
        try:
            options = dict(policy)
        except (TypeError, ValueError):
            raise PolicyError(f"Invalid resolution policy: {policy!r}") from None
        try:
            policy = ResolutionPolicy(**options)
        except TypeError as e:
            raise PolicyError(f"Invalid resolution policy: {e}") from None

    records = as_records(data)

    grouping = find_groups(records, numeric=policy.numeric_labnr)
    resolutions = [resolve(group, policy) for group in grouping.groups]
    summaries = report(grouping.groups, resolutions)

    if isinstance(data, pd.DataFrame):
        resolved = data.iloc[kept_positions(len(data), resolutions)]
    else:
        resolved = apply(records, resolutions)

    result = DedupResult(
        data=resolved,
        groups=grouping.groups,
        resolutions=resolutions,
        summaries=summaries,
        n_input=len(records),
        n_output=len(resolved),
    )

    mode = "mark only" if policy.mark_only else policy.selection_rule.value
    logger.info(
        f"Duplicate check ({mode}): {result.n_input} dates, {result.n_groups} groups "
        f"covering {grouping.n_grouped} dates, {result.n_irreconcilable} irreconcilable, "
        f"{result.n_removed} removed"
    )

    return result


__all__ = [
    "remove_duplicates",
    "DedupResult",
    "ResolutionPolicy",
    "SelectionRule",
    "find_groups",
    "GroupingResult",
    "DuplicateGroup",
    "Member",
    "resolve",
    "apply",
    "Resolution",
    "Verdict",
    "Reason",
    "report",
    "GroupSummary",
    "MemberSummary",
    "summaries_to_frame",
    "mark_frame",
]
