"""
CIN Census Exception Hierarchy

Domain-specific exceptions for loading, checking and exporting a CIN census
return. All exceptions include error codes for tracking and logging.

Only a few conditions are raised: documents that cannot be parsed, and
configuration that cannot be loaded. Validation findings, coercion gaps and
render ambiguities are returned as data.

Exception codes follow the pattern: CC_<CATEGORY>_<SPECIFIC>
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class CinCensusError(Exception):
    """
    Base exception for all cincensus errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code (CC_*)
        details: Additional context about the error
        source: Input file or document name if applicable
    """
    message: str
    code: str = "CC_INTERNAL_ERROR"
    details: dict[str, Any] = field(default_factory=dict)
    source: Optional[str] = None

    def __post_init__(self) -> None:
        super().__init__(self.message)

    def __str__(self) -> str:
        parts = [f"[{self.code}] {self.message}"]
        if self.source:
            parts.append(f"(source: {self.source})")
        return " ".join(parts)

    def to_dict(self) -> dict[str, Any]:
        """Serialize exception for logging."""
        result: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        if self.source:
            result["source"] = self.source
        return result


# =============================================================================
# Document Errors
# =============================================================================

@dataclass
class ParseError(CinCensusError):
    """Input document is not well-formed or lacks the expected root."""
    code: str = "CC_PARSE_ERROR"


# =============================================================================
# Configuration Errors
# =============================================================================

@dataclass
class ConfigLoadError(CinCensusError):
    """Failed to read a census configuration file."""
    code: str = "CC_CONFIG_LOAD_ERROR"


@dataclass
class ConfigValidationError(CinCensusError):
    """Census configuration failed schema validation."""
    code: str = "CC_CONFIG_VALIDATION_ERROR"


@dataclass
class ConfigVersionMismatch(CinCensusError):
    """Configuration schema version doesn't match the supported version."""
    code: str = "CC_CONFIG_VERSION_MISMATCH"


# =============================================================================
# Export Errors
# =============================================================================

@dataclass
class RenderAmbiguityError(CinCensusError):
    """Sibling entities share an identity, so export order is undefined."""
    code: str = "CC_RENDER_AMBIGUITY"
