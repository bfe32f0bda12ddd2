"""
CIN Census Models

All domain models for the cincensus toolkit.

Exports all models organized by category for convenient imports:

    from cincensus.models import (
        # Enums
        FieldType, RuleLevel, Severity,
        # Entities
        Header, Child, Disability, CINDetails, Assessment, AssessmentFactor,
        Section47, CINPlan, ChildProtectionPlan, Review,
        # Snapshot
        Snapshot, CensusWindow,
        # Configuration
        CensusConfig,
        # Findings
        Violation,
    )
"""
from __future__ import annotations

# =============================================================================
# Enums
# =============================================================================
from .enums import (
    FieldType,
    RuleLevel,
    Severity,
)

# =============================================================================
# Entities
# =============================================================================
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

# =============================================================================
# Snapshot
# =============================================================================
from .snapshot import (
    CensusWindow,
    Snapshot,
    group_by,
)

# =============================================================================
# Configuration
# =============================================================================
from .config import (
    DEFAULT_ASSESSMENT_WORKING_DAYS,
    DEFAULT_ENQUIRY_WORKING_DAYS,
    CensusConfig,
)

# =============================================================================
# Findings
# =============================================================================
from .violation import Violation


__all__ = [
    # Enums
    "FieldType",
    "RuleLevel",
    "Severity",
    # Entities
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
    # Snapshot
    "CensusWindow",
    "Snapshot",
    "group_by",
    # Configuration
    "CensusConfig",
    "DEFAULT_ASSESSMENT_WORKING_DAYS",
    "DEFAULT_ENQUIRY_WORKING_DAYS",
    # Findings
    "Violation",
]
