"""
CIN Census Snapshot

The Snapshot is the typed, relational view of one census return. It is
built once by the shredder and read by the rule engine and the rebuilder.

Key properties:
- Every table is a tuple in document order (sibling order = read order)
- Parent-identity indexes are computed lazily and cached
- Frozen: corrections produce a new Snapshot via dataclasses.replace
"""
from __future__ import annotations

from collections import defaultdict
from dataclasses import asdict, dataclass, fields
from datetime import date
from functools import cached_property
from typing import Any, Callable, Hashable, Iterable, Optional, TypeVar

from .entities import (
    Assessment,
    AssessmentFactor,
    CINDetails,
    CINPlan,
    Child,
    ChildProtectionPlan,
    Disability,
    Header,
    Review,
    Section47,
)

T = TypeVar("T")


# =============================================================================
# Census Window
# =============================================================================

@dataclass(frozen=True)
class CensusWindow:
    """
    The inclusive date range a census return covers.

    Attributes:
        start: First day of the census year
        end: Last day of the census year (the reference date)
    """
    start: date
    end: date

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError(f"Census end {self.end} is before start {self.start}")

    @classmethod
    def for_year(cls, year: int) -> CensusWindow:
        """Window for the census year ending 31 March of `year`."""
        return cls(start=date(year - 1, 4, 1), end=date(year, 3, 31))

    def contains(self, d: Optional[date]) -> bool:
        """True if the date falls inside the window."""
        return d is not None and self.start <= d <= self.end

    def outside(self, d: Optional[date]) -> bool:
        """True if the date is present and falls outside the window."""
        return d is not None and (d < self.start or d > self.end)


# =============================================================================
# Snapshot
# =============================================================================

def group_by(rows: Iterable[T], key: Callable[[T], Hashable]) -> dict[Any, tuple[T, ...]]:
    """Group rows by key, keeping the input order within each group."""
    grouped: dict[Any, list[T]] = defaultdict(list)
    for row in rows:
        grouped[key(row)].append(row)
    return {k: tuple(v) for k, v in grouped.items()}


@dataclass(frozen=True)
class Snapshot:
    """
    Immutable relational snapshot of one census return.

    Attributes:
        header: Return-level metadata, None if the header was absent
        children .. reviews: Entity tables in document order
    """
    header: Optional[Header] = None
    children: tuple[Child, ...] = ()
    disabilities: tuple[Disability, ...] = ()
    cin_details: tuple[CINDetails, ...] = ()
    assessments: tuple[Assessment, ...] = ()
    assessment_factors: tuple[AssessmentFactor, ...] = ()
    section47s: tuple[Section47, ...] = ()
    cin_plans: tuple[CINPlan, ...] = ()
    protection_plans: tuple[ChildProtectionPlan, ...] = ()
    reviews: tuple[Review, ...] = ()

    # -------------------------------------------------------------------------
    # Identity lookups
    # -------------------------------------------------------------------------

    @cached_property
    def _children_by_id(self) -> dict[int, Child]:
        return {c.id: c for c in self.children}

    @cached_property
    def _episodes_by_id(self) -> dict[int, CINDetails]:
        return {e.id: e for e in self.cin_details}

    def child(self, child_id: int) -> Optional[Child]:
        """Look up a child by identity."""
        return self._children_by_id.get(child_id)

    def episode(self, cin_details_id: int) -> Optional[CINDetails]:
        """Look up a CIN episode by identity."""
        return self._episodes_by_id.get(cin_details_id)

    def child_of_episode(self, cin_details_id: int) -> Optional[Child]:
        """The child that owns an episode."""
        episode = self.episode(cin_details_id)
        return self.child(episode.child_id) if episode else None

    # -------------------------------------------------------------------------
    # Parent-identity indexes
    # -------------------------------------------------------------------------

    @cached_property
    def _disabilities_by_child(self) -> dict[int, tuple[Disability, ...]]:
        return group_by(self.disabilities, lambda d: d.child_id)

    @cached_property
    def _episodes_by_child(self) -> dict[int, tuple[CINDetails, ...]]:
        return group_by(self.cin_details, lambda e: e.child_id)

    @cached_property
    def _assessments_by_episode(self) -> dict[int, tuple[Assessment, ...]]:
        return group_by(self.assessments, lambda a: a.cin_details_id)

    @cached_property
    def _factors_by_assessment(self) -> dict[int, tuple[AssessmentFactor, ...]]:
        return group_by(self.assessment_factors, lambda f: f.assessment_id)

    @cached_property
    def _section47s_by_episode(self) -> dict[int, tuple[Section47, ...]]:
        return group_by(self.section47s, lambda s: s.cin_details_id)

    @cached_property
    def _cin_plans_by_episode(self) -> dict[int, tuple[CINPlan, ...]]:
        return group_by(self.cin_plans, lambda p: p.cin_details_id)

    @cached_property
    def _protection_plans_by_episode(self) -> dict[int, tuple[ChildProtectionPlan, ...]]:
        return group_by(self.protection_plans, lambda p: p.cin_details_id)

    @cached_property
    def _reviews_by_plan(self) -> dict[int, tuple[Review, ...]]:
        return group_by(self.reviews, lambda r: r.protection_plan_id)

    def disabilities_for(self, child_id: int) -> tuple[Disability, ...]:
        return self._disabilities_by_child.get(child_id, ())

    def episodes_for(self, child_id: int) -> tuple[CINDetails, ...]:
        return self._episodes_by_child.get(child_id, ())

    def assessments_for(self, cin_details_id: int) -> tuple[Assessment, ...]:
        return self._assessments_by_episode.get(cin_details_id, ())

    def factors_for(self, assessment_id: int) -> tuple[AssessmentFactor, ...]:
        return self._factors_by_assessment.get(assessment_id, ())

    def section47s_for(self, cin_details_id: int) -> tuple[Section47, ...]:
        return self._section47s_by_episode.get(cin_details_id, ())

    def cin_plans_for(self, cin_details_id: int) -> tuple[CINPlan, ...]:
        return self._cin_plans_by_episode.get(cin_details_id, ())

    def protection_plans_for(self, cin_details_id: int) -> tuple[ChildProtectionPlan, ...]:
        return self._protection_plans_by_episode.get(cin_details_id, ())

    def reviews_for(self, protection_plan_id: int) -> tuple[Review, ...]:
        return self._reviews_by_plan.get(protection_plan_id, ())

    # -------------------------------------------------------------------------
    # Comparison helpers
    # -------------------------------------------------------------------------

    def counts(self) -> dict[str, int]:
        """Row count per entity table."""
        return {
            f.name: len(getattr(self, f.name))
            for f in fields(self)
            if f.name != "header"
        }

    def content(self) -> dict[str, Any]:
        """
        Identity-free nested view of the return.

        Two snapshots whose documents differ only in synthetic identities
        (e.g. an input that omitted an always-present empty element) have
        equal content.
        """
        return {
            "header": _strip(self.header),
            "children": [self._child_content(c) for c in self.children],
        }

    def _child_content(self, child: Child) -> dict[str, Any]:
        return {
            "child": _strip(child),
            "disabilities": [d.code for d in self.disabilities_for(child.id)],
            "episodes": [self._episode_content(e) for e in self.episodes_for(child.id)],
        }

    def _episode_content(self, episode: CINDetails) -> dict[str, Any]:
        return {
            "episode": _strip(episode),
            "assessments": [
                {
                    "assessment": _strip(a),
                    "factors": [f.code for f in self.factors_for(a.id)],
                }
                for a in self.assessments_for(episode.id)
            ],
            "section47s": [_strip(s) for s in self.section47s_for(episode.id)],
            "cin_plans": [_strip(p) for p in self.cin_plans_for(episode.id)],
            "protection_plans": [
                {
                    "plan": _strip(p),
                    "reviews": [r.review_date for r in self.reviews_for(p.id)],
                }
                for p in self.protection_plans_for(episode.id)
            ],
        }


_IDENTITY_FIELDS = frozenset({
    "id", "child_id", "cin_details_id", "assessment_id", "protection_plan_id",
})


def _strip(entity: Any) -> Optional[dict[str, Any]]:
    """Entity fields minus synthetic identities."""
    if entity is None:
        return None
    return {k: v for k, v in asdict(entity).items() if k not in _IDENTITY_FIELDS}
