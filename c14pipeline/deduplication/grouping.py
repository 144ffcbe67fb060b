"""
Partitioning of a date list into duplicate groups and singletons.
"""

from dataclasses import dataclass
from typing import Sequence

from c14pipeline.date_list import Record
from c14pipeline.normalizers import normalize_labnr


@dataclass(frozen=True)
class Member:
    """A record together with its position in the input."""
    position: int
    record: Record


@dataclass(frozen=True)
class DuplicateGroup:
    """Two or more records sharing a normalized lab identifier."""
    key: str
    members: tuple[Member, ...]

    @property
    def positions(self) -> tuple[int, ...]:
        return tuple(m.position for m in self.members)

    def __len__(self) -> int:
        return len(self.members)


@dataclass(frozen=True)
class GroupingResult:
    groups: tuple[DuplicateGroup, ...]
    singletons: tuple[Member, ...]

    @property
    def n_grouped(self) -> int:
        return sum(len(g) for g in self.groups)


def find_groups(records: Sequence[Record], numeric: bool = False) -> GroupingResult:
    """
    Group records by normalized lab identifier.

    Records without a usable identifier are always singletons. Groups keep
    their members in input order and are ordered by their first member.
    Membership depends on the key only; ages and sources play no part.

    Args:
        records: Records in input order
        numeric: Passed to ``normalize_labnr``

    Returns:
        GroupingResult whose groups and singletons together cover every
        input position exactly once
    """
    buckets: dict[str, list[Member]] = {}
    unkeyed: list[Member] = []

    for position, record in enumerate(records):
        member = Member(position, record)
        key = normalize_labnr(record.labnr, numeric=numeric)
        if not key:
            unkeyed.append(member)
        else:
            # dicts keep insertion order, so buckets follow first appearance
            buckets.setdefault(key, []).append(member)

    groups = []
    singletons = unkeyed
    for key, members in buckets.items():
        if len(members) > 1:
            groups.append(DuplicateGroup(key, tuple(members)))
        else:
            singletons.append(members[0])

    singletons.sort(key=lambda m: m.position)

    return GroupingResult(groups=tuple(groups), singletons=tuple(singletons))
