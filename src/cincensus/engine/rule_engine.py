"""
CIN Census Rule Engine

Runs the rule catalogue over a Snapshot and returns every finding.

Key properties:
- Rules are pure; the engine performs no I/O and never raises for bad data
- Output is sorted by (level rank, subject identity, rule code)
- Optional thread-pool evaluation over the shared immutable snapshot;
  results are merged in rule order before sorting, so the output does not
  depend on max_workers
"""
from __future__ import annotations

import logging
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Optional, Sequence

from ..models import CensusConfig, CensusWindow, Snapshot, Violation
from .rules import ALL_RULES, Rule, RuleContext

logger = logging.getLogger(__name__)


@dataclass
class RuleEngine:
    """
    Evaluates validation rules against a census snapshot.

    Usage:
        engine = RuleEngine(CensusConfig.for_year(2022))
        violations = engine.evaluate(snapshot)

        # Spread rules over four worker threads
        engine = RuleEngine(config, max_workers=4)
    """
    config: CensusConfig
    rules: Sequence[Rule] = field(default=ALL_RULES)
    max_workers: int = 1

    def __post_init__(self) -> None:
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {self.max_workers}")
        self.rules = tuple(self.rules)

    def context(self, snapshot: Snapshot) -> RuleContext:
        """Build the read-only context every rule receives."""
        return RuleContext.build(snapshot, self.config)

    def evaluate(self, snapshot: Snapshot) -> list[Violation]:
        """
        Run every rule and return the sorted findings.

        Args:
            snapshot: Shredded census return

        Returns:
            Violations sorted by level, subject and code (possibly empty)
        """
        context = self.context(snapshot)
        logger.debug(
            "Thresholds: assessment=%s enquiry=%s previous_working_day=%s",
            context.assessment_threshold,
            context.enquiry_threshold,
            context.previous_working_day,
        )

        if self.max_workers == 1:
            per_rule = [rule.evaluate(context) for rule in self.rules]
        else:
            # Warm the shared caches before the workers race for them
            _ = (context.la_child_id_counts, context.upn_counts)
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                per_rule = list(pool.map(lambda rule: rule.evaluate(context), self.rules))

        violations = [v for found in per_rule for v in found]
        violations.sort(key=Violation.sort_key)

        summary = summarize(violations)
        logger.info(
            "Evaluated %d rules over %d children: %d errors, %d queries",
            len(self.rules),
            len(snapshot.children),
            summary["errors"],
            summary["queries"],
        )
        return violations


def summarize(violations: Sequence[Violation]) -> dict[str, int]:
    """Count findings by severity."""
    queries = sum(1 for v in violations if v.is_query)
    return {
        "total": len(violations),
        "errors": len(violations) - queries,
        "queries": queries,
    }


def count_by_code(violations: Sequence[Violation]) -> Counter:
    """Number of findings per rule code."""
    return Counter(v.code for v in violations)


def evaluate(
    snapshot: Snapshot,
    window: CensusWindow,
    rules: Optional[Sequence[Rule]] = None,
) -> list[Violation]:
    """
    Evaluate a snapshot with default thresholds.

    Args:
        snapshot: Shredded census return
        window: Census start/end
        rules: Rules to run (default: the full catalogue)

    Returns:
        Sorted violations
    """
    engine = RuleEngine(
        config=CensusConfig(window=window),
        rules=ALL_RULES if rules is None else rules,
    )
    return engine.evaluate(snapshot)
