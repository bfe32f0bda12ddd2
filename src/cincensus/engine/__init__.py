"""
CIN Census Engine

Core services for loading, checking and exporting a census return.

Services:
- Shredder: Document -> Snapshot
- RuleEngine: Snapshot -> sorted Violations
- build_report: Violations -> per-level ValidationReport
- Rebuilder: Snapshot -> document

Usage:
    from cincensus.engine import Shredder, RuleEngine, Rebuilder, build_report

    snapshot = Shredder().shred_path("cin.xml")
    violations = RuleEngine(config).evaluate(snapshot)
    report = build_report(violations, snapshot)
    data = Rebuilder().render(snapshot).to_bytes()
"""
from __future__ import annotations

from .extraction import (
    ExtractionSpec,
    FieldSpec,
    coerce_value,
    extract_rows,
    resolve_wrapped_values,
)
from .intervals import any_overlap, starts_within
from .rebuilder import (
    RenderAmbiguity,
    RenderResult,
    Rebuilder,
    format_datetime,
    format_value,
    render,
)
from .report import ValidationReport, build_report
from .rule_engine import RuleEngine, count_by_code, evaluate, summarize
from .rules import ALL_RULES, Rule, RuleContext, rules_by_code
from .shredder import Shredder, shred
from .upn import checksum, is_valid_upn

__all__ = [
    # Shredder
    "Shredder",
    "shred",
    "ExtractionSpec",
    "FieldSpec",
    "coerce_value",
    "extract_rows",
    "resolve_wrapped_values",
    # Rules
    "ALL_RULES",
    "Rule",
    "RuleContext",
    "RuleEngine",
    "evaluate",
    "summarize",
    "count_by_code",
    "rules_by_code",
    "any_overlap",
    "starts_within",
    "checksum",
    "is_valid_upn",
    # Report
    "ValidationReport",
    "build_report",
    # Rebuilder
    "Rebuilder",
    "RenderResult",
    "RenderAmbiguity",
    "format_value",
    "format_datetime",
    "render",
]
