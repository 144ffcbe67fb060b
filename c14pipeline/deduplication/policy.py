"""
Duplicate resolution policy.

A ``ResolutionPolicy`` bundles every knob the resolver reads. It is validated
when it is built, so a bad policy fails before any grouping work starts.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Sequence

from c14pipeline.config import SOURCE_PRIORITY
from c14pipeline.exceptions import PolicyError


def preference_table(preferences: Sequence[str]) -> dict[str, float]:
    """Turn databases listed in order of preference into priority ranks."""
    preferences = list(preferences)
    return {source: float(len(preferences) - i) for i, source in enumerate(preferences)}


class SelectionRule(str, Enum):
    """How the surviving record of a duplicate group is chosen."""

    MOST_PRECISE = "most_precise"
    FIRST = "first"
    SOURCE_PRIORITY = "source_priority"


@dataclass(frozen=True)
class ResolutionPolicy:
    """
    Configuration for ``remove_duplicates``.

    Attributes:
        mark_only: Never remove anything, only report groups (the default)
        selection_rule: Rule used to pick the survivor of a group
        conflict_tolerance: Two ages in a group conflict when they differ by
            more than this many combined standard deviations
        drop_irreconcilable: Drop conflicting groups entirely instead of
            resolving them with ``selection_rule``
        source_priority_table: sourcedb -> rank, higher is preferred.
            Unknown databases rank 0.
        numeric_labnr: Lab-code-aware identifier normalization
            (see ``normalize_labnr``)
    """
    mark_only: bool = True
    selection_rule: SelectionRule = SelectionRule.MOST_PRECISE
    conflict_tolerance: float = 2.0
    drop_irreconcilable: bool = False
    source_priority_table: Mapping[str, float] = field(
        default_factory=lambda: dict(SOURCE_PRIORITY), hash=False
    )
    numeric_labnr: bool = False

    def __post_init__(self):
        for name in ("mark_only", "drop_irreconcilable", "numeric_labnr"):
            if not isinstance(getattr(self, name), bool):
                raise PolicyError(f"{name} must be True or False, got {getattr(self, name)!r}")

        try:
            rule = SelectionRule(self.selection_rule)
        except ValueError:
            valid = ", ".join(r.value for r in SelectionRule)
            raise PolicyError(
                f"Unknown selection_rule '{self.selection_rule}', expected one of {valid}"
            ) from None
        object.__setattr__(self, "selection_rule", rule)

        try:
            tolerance = float(self.conflict_tolerance)
        except (TypeError, ValueError):
            raise PolicyError(f"conflict_tolerance must be a number, got {self.conflict_tolerance!r}") from None
        if math.isnan(tolerance) or tolerance < 0:
            raise PolicyError(f"conflict_tolerance must be >= 0, got {self.conflict_tolerance!r}")
        object.__setattr__(self, "conflict_tolerance", tolerance)

        table = {}
        for source, rank in dict(self.source_priority_table or {}).items():
            try:
                table[str(source).lower()] = float(rank)
            except (TypeError, ValueError):
                raise PolicyError(f"Priority for source '{source}' is not a number: {rank!r}") from None
        object.__setattr__(self, "source_priority_table", table)

    def priority_of(self, sourcedb: str | None) -> float:
        """Rank of a source database, 0 when unknown or missing."""
        if not sourcedb:
            return 0.0
        return self.source_priority_table.get(str(sourcedb).lower(), 0.0)

    @classmethod
    def from_settings(cls, dedup_settings, **overrides) -> "ResolutionPolicy":
        """Build a policy from ``settings.dedup``, with keyword overrides."""
        values = {
            "mark_only": dedup_settings.mark_only,
            "selection_rule": dedup_settings.selection_rule,
            "conflict_tolerance": dedup_settings.conflict_tolerance,
            "drop_irreconcilable": dedup_settings.drop_irreconcilable,
            "numeric_labnr": dedup_settings.numeric_labnr,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    @classmethod
    def from_preferences(cls, preferences: Sequence[str], **kwargs) -> "ResolutionPolicy":
        """
        Build a source-priority policy from databases in order of preference.

        The first database listed is the most preferred. Databases not listed
        rank below all listed ones.
        """
        kwargs.setdefault("selection_rule", SelectionRule.SOURCE_PRIORITY)
        return cls(source_priority_table=preference_table(preferences), **kwargs)
