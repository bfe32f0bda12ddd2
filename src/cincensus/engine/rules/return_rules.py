"""Return-level rules: whole-file checks reported once per return."""
from __future__ import annotations

from collections import Counter

from ...models import RuleLevel
from .base import Rule, RuleContext, differs


def _reference_date_incorrect(ctx: RuleContext, _: None) -> bool:
    """A missing header, or one without a reference date, also fails."""
    header = ctx.snapshot.header
    if header is None or header.reference_date is None:
        return True
    return differs(header.reference_date, ctx.end)


def _more_plans_than_conferences(ctx: RuleContext, _: None) -> bool:
    snapshot = ctx.snapshot
    plans = sum(1 for p in snapshot.protection_plans if ctx.window.contains(p.start_date))
    conferences = sum(1 for e in snapshot.cin_details if ctx.window.contains(e.initial_cpc_date))
    conferences += sum(1 for s in snapshot.section47s if ctx.window.contains(s.initial_cpc_date))
    return plans > conferences


def _gender_missing_over_threshold(ctx: RuleContext, _: None) -> bool:
    children = ctx.snapshot.children
    missing = sum(
        1 for c in children
        if (c.gender is None or c.gender == 0) and c.expected_birth_date is None
    )
    # more than 2%
    return missing * 50 > len(children)


def _few_disability_codes(ctx: RuleContext, _: None) -> bool:
    codes = {d.code for d in ctx.snapshot.disabilities if differs(d.code, "NONE")}
    return len(codes) <= 7


def _single_disability_per_child(ctx: RuleContext, _: None) -> bool:
    per_child = Counter(
        d.child_id for d in ctx.snapshot.disabilities if differs(d.code, "NONE")
    )
    return not any(count > 1 for count in per_child.values())


RETURN_RULES = (
    Rule("100", "Reference Date is incorrect",
         RuleLevel.RETURN, _reference_date_incorrect),
    Rule("2883", "There are more child protection plans starting than initial conferences taking place",
         RuleLevel.RETURN, _more_plans_than_conferences),
    Rule("2886Q", "Please check: Percentage of children with no gender recorded is more than 2% (excluding unborns)",
         RuleLevel.RETURN, _gender_missing_over_threshold),
    Rule("2887Q", "Please check: Less than 8 disability codes have been used in your return",
         RuleLevel.RETURN, _few_disability_codes),
    Rule("2888Q", "Please check: Only one disability code is recorded per child and multiple disabilities should be recorded where possible.",
         RuleLevel.RETURN, _single_disability_per_child),
)
