"""
CIN Census Configuration Schemas

Pydantic models for validating census run configuration YAML/JSON files.

These schemas define the structure of a run configuration. They map to the
frozen CensusConfig in cincensus.models.

Schema versioning:
- schema_version field tracks breaking changes
- Loaders should check version compatibility
"""
from __future__ import annotations

from datetime import date
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ..models import DEFAULT_ASSESSMENT_WORKING_DAYS, DEFAULT_ENQUIRY_WORKING_DAYS


# =============================================================================
# Schema Version
# =============================================================================

SCHEMA_VERSION = "1.0"


# =============================================================================
# Sections
# =============================================================================

class CensusWindowSchema(BaseModel):
    """Census start and end dates (inclusive)."""
    start: date = Field(..., description="First day of the census year")
    end: date = Field(..., description="Last day of the census year")

    @model_validator(mode="after")
    def validate_order(self) -> "CensusWindowSchema":
        """End must not precede start."""
        if self.end < self.start:
            raise ValueError(f"census end {self.end} is before start {self.start}")
        return self

    model_config = {"extra": "forbid"}


class ThresholdsSchema(BaseModel):
    """Working-day allowances behind the overdue checks."""
    assessment_working_days: int = Field(
        DEFAULT_ASSESSMENT_WORKING_DAYS, ge=0,
        description="Open assessments older than this are queried (8670Q)",
    )
    enquiry_working_days: int = Field(
        DEFAULT_ENQUIRY_WORKING_DAYS, ge=0,
        description="Open enquiries older than this are queried (8675Q)",
    )

    model_config = {"extra": "forbid"}


# =============================================================================
# Top-Level Schema
# =============================================================================

class CensusConfigSchema(BaseModel):
    """
    Top-level schema for a census run configuration file.

    Example:
        schema_version: "1.0"
        input_path: data/cin_2022.xml
        census:
          start: 2021-04-01
          end: 2022-03-31
        thresholds:
          assessment_working_days: 45
          enquiry_working_days: 15
        holidays:
          - 2021-12-27
    """
    schema_version: str = Field(SCHEMA_VERSION, description="Schema version for compatibility")
    input_path: Optional[str] = Field(None, description="Census return to load")
    census: CensusWindowSchema
    thresholds: ThresholdsSchema = Field(default_factory=ThresholdsSchema)
    holidays: list[date] = Field(
        default_factory=list,
        description="Extra non-working dates for threshold roll-back",
    )

    @field_validator("schema_version", mode="before")
    @classmethod
    def validate_schema_version(cls, v: Any) -> Any:
        """Unquoted YAML versions (1.0) arrive as numbers."""
        return str(v) if isinstance(v, (int, float)) else v

    @field_validator("holidays")
    @classmethod
    def validate_holidays(cls, v: list[date]) -> list[date]:
        """Drop repeats, keep calendar order."""
        return sorted(set(v))

    model_config = {
        "extra": "forbid",  # Reject unknown fields
    }


# =============================================================================
# Validation Helpers
# =============================================================================

def validate_census_config(data: dict[str, Any]) -> CensusConfigSchema:
    """
    Validate a configuration dictionary against the schema.

    Args:
        data: Dictionary loaded from YAML/JSON

    Returns:
        Validated CensusConfigSchema

    Raises:
        pydantic.ValidationError: If validation fails
    """
    return CensusConfigSchema.model_validate(data)


def check_schema_version(data: dict[str, Any]) -> bool:
    """
    Check if a configuration's schema version is compatible.

    Only the major version has to match.
    """
    config_version = str(data.get("schema_version", SCHEMA_VERSION))
    return config_version.split(".")[0] == SCHEMA_VERSION.split(".")[0]
