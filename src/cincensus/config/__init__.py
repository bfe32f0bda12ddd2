"""
CIN Census Configuration

Schema validation and loading for census run configuration.

A run configuration is a YAML or JSON file naming the return to load, the
census window it covers, the working-day thresholds for the overdue
queries and any local non-working days.

Usage:
    from cincensus.config import load_census_config

    config = load_census_config("config/cin_2022.yaml")
"""
from __future__ import annotations

from .loader import (
    CensusConfigLoader,
    load_census_config,
    load_census_config_from_string,
)
from .schema import (
    SCHEMA_VERSION,
    CensusConfigSchema,
    CensusWindowSchema,
    ThresholdsSchema,
    check_schema_version,
    validate_census_config,
)

__all__ = [
    # Version
    "SCHEMA_VERSION",
    # Loader
    "CensusConfigLoader",
    "load_census_config",
    "load_census_config_from_string",
    # Validation
    "validate_census_config",
    "check_schema_version",
    # Schemas
    "CensusConfigSchema",
    "CensusWindowSchema",
    "ThresholdsSchema",
]
