"""
Read-only inspection view of duplicate groups.

Used on its own to review groups before removing anything, and as the audit
trail of a removal run.
"""

from dataclasses import asdict, dataclass
from itertools import combinations
from typing import Any, Optional, Sequence

import pandas as pd

from c14pipeline.deduplication.grouping import DuplicateGroup
from c14pipeline.deduplication.resolver import Reason, Resolution, Verdict
from c14pipeline.utils.geo import haversine_distance, is_valid_coordinates


@dataclass(frozen=True)
class MemberSummary:
    position: int
    labnr: Optional[str]
    c14age: Optional[float]
    c14std: Optional[float]
    sourcedb: Optional[str]
    site: Optional[str]
    kept: bool
    candidate: bool


@dataclass(frozen=True)
class GroupSummary:
    """Everything a reviewer needs to judge one duplicate group."""
    key: str
    members: tuple[MemberSummary, ...]
    verdict: Verdict
    survivor: Optional[int]
    candidate: int
    reason: Reason
    irreconcilable: bool
    max_spread: Optional[float]
    max_distance_km: Optional[float]

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["verdict"] = self.verdict.value
        data["reason"] = self.reason.value
        data["members"] = [asdict(m) for m in self.members]
        return data


def _max_distance_km(group: DuplicateGroup) -> Optional[float]:
    """Largest distance between the stated locations of group members."""
    points = []
    for member in group.members:
        lat, lon = member.record.get("lat"), member.record.get("lon")
        if is_valid_coordinates(lat, lon):
            points.append((float(lat), float(lon)))

    if len(points) < 2:
        return None
    return max(haversine_distance(a[0], a[1], b[0], b[1]) for a, b in combinations(points, 2))


def _summarize(group: DuplicateGroup, resolution: Resolution) -> GroupSummary:
    dropped = set(resolution.dropped)
    members = tuple(
        MemberSummary(
            position=m.position,
            labnr=m.record.labnr,
            c14age=m.record.c14age,
            c14std=m.record.c14std,
            sourcedb=m.record.sourcedb,
            site=m.record.get("site"),
            kept=m.position not in dropped,
            candidate=m.position == resolution.candidate,
        )
        for m in group.members
    )
    return GroupSummary(
        key=group.key,
        members=members,
        verdict=resolution.verdict,
        survivor=resolution.survivor,
        candidate=resolution.candidate,
        reason=resolution.reason,
        irreconcilable=resolution.irreconcilable,
        max_spread=resolution.max_spread,
        max_distance_km=_max_distance_km(group),
    )


def report(groups: Sequence[DuplicateGroup], resolutions: Sequence[Resolution]) -> list[GroupSummary]:
    """
    Summarize duplicate groups with their resolutions.

    Resolutions are matched to groups by key. Singletons never appear.
    """
    by_key = {r.key: r for r in resolutions}
    missing = [g.key for g in groups if g.key not in by_key]
    if missing:
        raise KeyError(f"No resolution for duplicate group(s): {', '.join(missing)}")
    return [_summarize(g, by_key[g.key]) for g in groups]


SUMMARY_COLUMNS = [
    "group", "key", "verdict", "reason", "irreconcilable", "max_spread",
    "position", "labnr", "c14age", "c14std", "sourcedb", "site", "kept", "candidate",
]


def summaries_to_frame(summaries: Sequence[GroupSummary]) -> pd.DataFrame:
    """Flatten summaries into one row per group member."""
    rows = []
    for index, summary in enumerate(summaries):
        for member in summary.members:
            rows.append({
                "group": index,
                "key": summary.key,
                "verdict": summary.verdict.value,
                "reason": summary.reason.value,
                "irreconcilable": summary.irreconcilable,
                "max_spread": summary.max_spread,
                **asdict(member),
            })
    return pd.DataFrame(rows, columns=SUMMARY_COLUMNS)


def mark_frame(df: pd.DataFrame, summaries: Sequence[GroupSummary]) -> pd.DataFrame:
    """
    Copy of a date list with a ``duplicate_group`` column.

    The column holds the index of the duplicate group a row belongs to, or
    NA for rows that are not duplicated. Positions refer to row order.
    """
    groups = pd.array([pd.NA] * len(df), dtype="Int64")
    for index, summary in enumerate(summaries):
        for member in summary.members:
            groups[member.position] = index

    out = df.copy()
    out["duplicate_group"] = groups
    return out
