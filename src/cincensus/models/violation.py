"""
CIN Census Violation Model

A Violation is one finding from one rule against one subject (the return,
a child, an episode, an assessment, a plan or an enquiry).
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from .enums import RuleLevel, Severity


@dataclass(frozen=True)
class Violation:
    """
    A single rule finding.

    Attributes:
        code: Rule code (e.g. "8510", "8670Q")
        severity: ERROR or QUERY
        level: Level the rule reports against
        message: Rule description
        subject_id: Synthetic identity of the subject, None for return-level rules
        subject_keys: Natural key fields for the subject's level, in report order
    """
    code: str
    severity: Severity
    level: RuleLevel
    message: str
    subject_id: Optional[int] = None
    subject_keys: dict[str, Any] = field(default_factory=dict, hash=False)

    @property
    def is_query(self) -> bool:
        """Advisory finding raised for manual review."""
        return self.severity == Severity.QUERY

    def sort_key(self) -> tuple[int, int, str]:
        """Order by level, then subject identity, then code."""
        subject = -1 if self.subject_id is None else self.subject_id
        return (self.level.rank, subject, self.code)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        result: dict[str, Any] = {
            "code": self.code,
            "severity": self.severity.value,
            "level": self.level.value,
            "message": self.message,
            "subject_id": self.subject_id,
        }
        result.update(self.subject_keys)
        return result
