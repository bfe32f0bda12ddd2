"""
CIN Census Validation Report

Groups violations into one table per reporting level. Rows below the child
level can be enriched with the owning child's identifiers so a reviewer can
find the record without following identities by hand.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from ..models import Child, RuleLevel, Severity, Snapshot, Violation

# Child fields copied onto episode-and-below rows
ENRICHMENT_FIELDS = ("la_child_id", "upn", "birth_date")


@dataclass(frozen=True)
class ValidationReport:
    """
    Violations tabulated by level.

    Attributes:
        tables: Rows per level, in violation order
    """
    tables: dict[RuleLevel, tuple[dict[str, Any], ...]] = field(default_factory=dict)

    def rows(self, level: RuleLevel) -> tuple[dict[str, Any], ...]:
        """Rows reported at a level (empty if none)."""
        return self.tables.get(level, ())

    def codes(self, level: Optional[RuleLevel] = None) -> list[str]:
        """Distinct codes in first-seen order, for one level or all of them."""
        levels = [level] if level is not None else sorted(self.tables, key=lambda lv: lv.rank)
        seen: dict[str, None] = {}
        for lv in levels:
            for row in self.rows(lv):
                seen.setdefault(row["code"], None)
        return list(seen)

    @property
    def total(self) -> int:
        return sum(len(rows) for rows in self.tables.values())

    @property
    def error_count(self) -> int:
        return self._count(Severity.ERROR)

    @property
    def query_count(self) -> int:
        return self._count(Severity.QUERY)

    @property
    def is_clean(self) -> bool:
        """No errors (queries are advisory)."""
        return self.error_count == 0

    def _count(self, severity: Severity) -> int:
        return sum(
            1 for rows in self.tables.values() for row in rows
            if row["severity"] == severity.value
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary keyed by level name."""
        return {
            level.value: [dict(row) for row in rows]
            for level, rows in sorted(self.tables.items(), key=lambda item: item[0].rank)
        }


def _owning_child(snapshot: Snapshot, violation: Violation) -> Optional[Child]:
    """Follow a below-episode subject back through CINDetails to its Child."""
    if violation.subject_id is None:
        return None
    if violation.level == RuleLevel.EPISODE:
        return snapshot.child_of_episode(violation.subject_id)
    episode_id = violation.subject_keys.get("cin_details_id")
    if episode_id is None:
        return None
    return snapshot.child_of_episode(episode_id)


def build_report(
    violations: Iterable[Violation],
    snapshot: Snapshot,
    enrich: bool = True,
) -> ValidationReport:
    """
    Tabulate violations by level.

    Args:
        violations: Engine output
        snapshot: The snapshot the violations were found in
        enrich: Add child identifiers to episode-and-below rows

    Returns:
        ValidationReport with one table per level that has findings
    """
    tables: dict[RuleLevel, list[dict[str, Any]]] = {}
    for violation in violations:
        row: dict[str, Any] = {
            "code": violation.code,
            "severity": violation.severity.value,
            "message": violation.message,
            "subject_id": violation.subject_id,
        }
        row.update(violation.subject_keys)
        if enrich and violation.level.rank > RuleLevel.CHILD.rank:
            child = _owning_child(snapshot, violation)
            for name in ENRICHMENT_FIELDS:
                row[name] = getattr(child, name) if child is not None else None
        tables.setdefault(violation.level, []).append(row)
    return ValidationReport(tables={level: tuple(rows) for level, rows in tables.items()})
