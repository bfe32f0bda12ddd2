"""
CIN Census Enumerations

Enumeration types used throughout cincensus, organized by domain area.

All enums inherit from (str, Enum) for JSON serialization compatibility.
"""
from __future__ import annotations

from enum import Enum


# =============================================================================
# Field Types (extraction)
# =============================================================================

class FieldType(str, Enum):
    """Semantic type a source value is coerced to during extraction."""
    TEXT = "text"
    INTEGER = "integer"
    DATE = "date"
    BOOLEAN = "boolean"
    DATETIME = "datetime"


# =============================================================================
# Rule Severity
# =============================================================================

class Severity(str, Enum):
    """
    Severity of a validation finding.

    ERROR findings mark the return as non-compliant. QUERY findings are
    advisory ("Please check") and are conventionally coded with a trailing Q.
    """
    ERROR = "error"
    QUERY = "query"

    @classmethod
    def for_code(cls, code: str) -> Severity:
        """Derive severity from the rule code's advisory suffix."""
        return cls.QUERY if code.endswith("Q") else cls.ERROR


# =============================================================================
# Rule Applicability Level
# =============================================================================

class RuleLevel(str, Enum):
    """The entity level a rule reports against."""
    RETURN = "return"
    CHILD = "child"
    EPISODE = "episode"
    ASSESSMENT = "assessment"
    CIN_PLAN = "cin_plan"
    SECTION47 = "section47"
    PROTECTION_PLAN = "protection_plan"

    @property
    def rank(self) -> int:
        """Position of the level in report order."""
        return _LEVEL_ORDER.index(self)


_LEVEL_ORDER = [
    RuleLevel.RETURN,
    RuleLevel.CHILD,
    RuleLevel.EPISODE,
    RuleLevel.ASSESSMENT,
    RuleLevel.CIN_PLAN,
    RuleLevel.SECTION47,
    RuleLevel.PROTECTION_PLAN,
]
