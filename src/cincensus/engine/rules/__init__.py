"""
CIN Census Rule Catalogue

One module per reporting level. ALL_RULES is the registry the engine runs,
ordered from the return level down to child protection plans.

Usage:
    from cincensus.engine.rules import ALL_RULES, rules_by_code

    rule = rules_by_code()["8510"]
"""
from __future__ import annotations

from .assessment_rules import ASSESSMENT_RULES
from .base import (
    SUBJECT_KEYS,
    Rule,
    RuleContext,
    add_months,
    add_years,
    after,
    before,
    differs,
    missing_or_not_in,
    not_in,
    on_or_after,
    on_or_before,
    same,
)
from .child_rules import CHILD_RULES
from .episode_rules import EPISODE_RULES
from .plan_rules import CIN_PLAN_RULES
from .protection_plan_rules import PROTECTION_PLAN_RULES
from .return_rules import RETURN_RULES
from .section47_rules import SECTION47_RULES

ALL_RULES: tuple[Rule, ...] = (
    RETURN_RULES
    + CHILD_RULES
    + EPISODE_RULES
    + ASSESSMENT_RULES
    + CIN_PLAN_RULES
    + SECTION47_RULES
    + PROTECTION_PLAN_RULES
)


def rules_by_code() -> dict[str, Rule]:
    """Index the registry by rule code."""
    return {rule.code: rule for rule in ALL_RULES}


__all__ = [
    "ALL_RULES",
    "RETURN_RULES",
    "CHILD_RULES",
    "EPISODE_RULES",
    "ASSESSMENT_RULES",
    "CIN_PLAN_RULES",
    "SECTION47_RULES",
    "PROTECTION_PLAN_RULES",
    "SUBJECT_KEYS",
    "Rule",
    "RuleContext",
    "rules_by_code",
    "add_months",
    "add_years",
    "after",
    "before",
    "differs",
    "missing_or_not_in",
    "not_in",
    "on_or_after",
    "on_or_before",
    "same",
]
