"""
CIN Census Rule Framework

A Rule is a code, a message, the level it reports against, and a pure
predicate over one subject of that level. The level decides which rows are
subjects (children, episodes, ...) and which natural-key fields identify
them in a Violation. Each subject is reported at most once per rule.

Comparisons follow the return's missing-value convention: any comparison
involving an absent value is false. The helpers below (before, after,
same, ...) encode that so predicates read like the rule text.
"""
from __future__ import annotations

import calendar as _calendar
from collections import Counter
from dataclasses import dataclass
from datetime import MAXYEAR, MINYEAR, date, timedelta
from functools import cached_property
from typing import Any, Callable, Iterable, Optional

from ...calendars import BaseCalendar, calendar_for
from ...models import (
    CensusConfig,
    CensusWindow,
    Child,
    RuleLevel,
    Severity,
    Snapshot,
    Violation,
)


# =============================================================================
# Missing-value comparisons
# =============================================================================

def before(a: Optional[date], b: Optional[date]) -> bool:
    """a < b, false if either is absent."""
    return a is not None and b is not None and a < b


def after(a: Optional[date], b: Optional[date]) -> bool:
    """a > b, false if either is absent."""
    return a is not None and b is not None and a > b


def on_or_before(a: Optional[date], b: Optional[date]) -> bool:
    return a is not None and b is not None and a <= b


def on_or_after(a: Optional[date], b: Optional[date]) -> bool:
    return a is not None and b is not None and a >= b


def same(a: Any, b: Any) -> bool:
    """a == b, false if either is absent."""
    return a is not None and b is not None and a == b


def differs(a: Any, b: Any) -> bool:
    """a != b, false if either is absent."""
    return a is not None and b is not None and a != b


def not_in(value: Any, allowed: Iterable[Any]) -> bool:
    """Present and not one of the allowed values."""
    return value is not None and value not in allowed


def missing_or_not_in(value: Any, allowed: Iterable[Any]) -> bool:
    return value is None or value not in allowed


# =============================================================================
# Date arithmetic
# =============================================================================

def add_months(d: date, months: int) -> Optional[date]:
    """
    Calendar month arithmetic, clamping to the last day of the month.

    Returns None when the result falls outside the representable years, so
    placeholder dates such as 9999-12-31 compare as absent.
    """
    month_index = d.month - 1 + months
    year = d.year + month_index // 12
    if not MINYEAR <= year <= MAXYEAR:
        return None
    month = month_index % 12 + 1
    day = min(d.day, _calendar.monthrange(year, month)[1])
    return date(year, month, day)


def add_years(d: date, years: int) -> Optional[date]:
    """Year arithmetic; 29 February becomes 28 February in non-leap years."""
    return add_months(d, 12 * years)


# =============================================================================
# Rule Context
# =============================================================================

@dataclass(frozen=True)
class RuleContext:
    """
    Everything a rule may read.

    Attributes:
        snapshot: The return being checked
        window: Census start/end
        calendar: Working-day calendar for thresholds
        assessment_threshold: Open assessments starting before this are overdue
        enquiry_threshold: Open enquiries starting before this are overdue
        previous_working_day: Last working day before the census start
    """
    snapshot: Snapshot
    window: CensusWindow
    calendar: BaseCalendar
    assessment_threshold: date
    enquiry_threshold: date
    previous_working_day: date

    @classmethod
    def build(cls, snapshot: Snapshot, config: CensusConfig) -> RuleContext:
        """Derive the threshold constants from a run configuration."""
        calendar = calendar_for(config.holidays)
        window = config.window
        return cls(
            snapshot=snapshot,
            window=window,
            calendar=calendar,
            assessment_threshold=calendar.working_day_threshold(
                window.end, config.assessment_working_days
            ),
            enquiry_threshold=calendar.working_day_threshold(
                window.end, config.enquiry_working_days
            ),
            previous_working_day=calendar.previous_working_day(
                window.start - timedelta(days=1)
            ),
        )

    @property
    def start(self) -> date:
        return self.window.start

    @property
    def end(self) -> date:
        return self.window.end

    def child_of(self, cin_details_id: int) -> Optional[Child]:
        return self.snapshot.child_of_episode(cin_details_id)

    # Whole-return aggregates shared by several rules

    @cached_property
    def la_child_id_counts(self) -> Counter:
        return Counter(c.la_child_id for c in self.snapshot.children if c.la_child_id is not None)

    @cached_property
    def upn_counts(self) -> Counter:
        return Counter(c.upn for c in self.snapshot.children if c.upn is not None)


# =============================================================================
# Rules
# =============================================================================

Predicate = Callable[[RuleContext, Any], bool]


def _subjects(level: RuleLevel, snapshot: Snapshot) -> Iterable[Any]:
    if level == RuleLevel.RETURN:
        return (None,)
    return {
        RuleLevel.CHILD: snapshot.children,
        RuleLevel.EPISODE: snapshot.cin_details,
        RuleLevel.ASSESSMENT: snapshot.assessments,
        RuleLevel.CIN_PLAN: snapshot.cin_plans,
        RuleLevel.SECTION47: snapshot.section47s,
        RuleLevel.PROTECTION_PLAN: snapshot.protection_plans,
    }[level]


# Natural key fields reported with each violation, by level
SUBJECT_KEYS: dict[RuleLevel, tuple[str, ...]] = {
    RuleLevel.RETURN: (),
    RuleLevel.CHILD: ("la_child_id", "upn", "birth_date", "gender"),
    RuleLevel.EPISODE: ("referral_date", "closure_date"),
    RuleLevel.ASSESSMENT: ("start_date", "cin_details_id"),
    RuleLevel.CIN_PLAN: ("start_date", "cin_details_id"),
    RuleLevel.SECTION47: ("start_date", "cin_details_id"),
    RuleLevel.PROTECTION_PLAN: ("start_date", "cin_details_id"),
}


@dataclass(frozen=True)
class Rule:
    """
    One validation rule.

    Attributes:
        code: Rule code; a trailing Q marks an advisory query
        message: Text reported with each violation
        level: Level the rule reports against
        check: Predicate called once per subject of that level
    """
    code: str
    message: str
    level: RuleLevel
    check: Predicate

    @property
    def severity(self) -> Severity:
        return Severity.for_code(self.code)

    def evaluate(self, context: RuleContext) -> list[Violation]:
        """Run the predicate over every subject; one violation per hit."""
        keys = SUBJECT_KEYS[self.level]
        violations = []
        for subject in _subjects(self.level, context.snapshot):
            if not self.check(context, subject):
                continue
            violations.append(Violation(
                code=self.code,
                severity=self.severity,
                level=self.level,
                message=self.message,
                subject_id=None if subject is None else subject.id,
                subject_keys={k: getattr(subject, k) for k in keys},
            ))
        return violations

    def __repr__(self) -> str:
        return f"Rule({self.code!r}, level={self.level.value})"
