"""
cincensus - Children in Need Census Return Toolkit

cincensus loads a CIN census XML return into a typed, immutable snapshot,
checks it against the census validation rules, and writes it back out in
the schema's element order.

Key Features:
- Order-preserving shred of the return into relational tables
- Table-driven rule catalogue (errors and "please check" queries)
- Working-day thresholds with configurable local holidays
- Presence- and order-faithful rebuild; an unedited round trip is lossless
- YAML/JSON run configuration validated with pydantic

Quick Start:
    from cincensus import CensusConfig, CensusPipeline, RuleLevel

    pipeline = CensusPipeline(CensusConfig.for_year(2022, input_path="cin.xml"))
    snapshot, report = pipeline.run()

    for row in report.rows(RuleLevel.CHILD):
        print(row["code"], row["la_child_id"], row["message"])

    data = pipeline.export(snapshot)

Version: 0.1.0
"""
from __future__ import annotations

__version__ = "0.1.0"

# =============================================================================
# Core Models (Re-exported for convenience)
# =============================================================================
from .models import (
    Assessment,
    AssessmentFactor,
    CensusConfig,
    CensusWindow,
    CINDetails,
    CINPlan,
    Child,
    ChildProtectionPlan,
    Disability,
    FieldType,
    Header,
    Review,
    RuleLevel,
    Section47,
    Severity,
    Snapshot,
    Violation,
)

# =============================================================================
# Services
# =============================================================================
from .config import load_census_config, load_census_config_from_string
from .document import SourceDocument, write_document
from .engine import (
    ALL_RULES,
    Rebuilder,
    RenderResult,
    RuleEngine,
    Shredder,
    ValidationReport,
    build_report,
    evaluate,
    shred,
)
from .pipeline import CensusPipeline

# =============================================================================
# Exceptions
# =============================================================================
from .exceptions import (
    CinCensusError,
    ConfigLoadError,
    ConfigValidationError,
    ConfigVersionMismatch,
    ParseError,
    RenderAmbiguityError,
)

__all__ = [
    "__version__",
    # Models
    "FieldType",
    "RuleLevel",
    "Severity",
    "Header",
    "Child",
    "Disability",
    "CINDetails",
    "Assessment",
    "AssessmentFactor",
    "Section47",
    "CINPlan",
    "ChildProtectionPlan",
    "Review",
    "Snapshot",
    "CensusWindow",
    "CensusConfig",
    "Violation",
    # Services
    "SourceDocument",
    "write_document",
    "Shredder",
    "shred",
    "ALL_RULES",
    "RuleEngine",
    "evaluate",
    "ValidationReport",
    "build_report",
    "Rebuilder",
    "RenderResult",
    "CensusPipeline",
    "load_census_config",
    "load_census_config_from_string",
    # Exceptions
    "CinCensusError",
    "ParseError",
    "ConfigLoadError",
    "ConfigValidationError",
    "ConfigVersionMismatch",
    "RenderAmbiguityError",
]
