"""
CIN Census Configuration Loader

Loads and validates census run configuration from YAML or JSON files.

Converts the Pydantic schema model to the frozen CensusConfig.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import ValidationError

from ..exceptions import ConfigLoadError, ConfigValidationError, ConfigVersionMismatch
from ..models import CensusConfig, CensusWindow
from .schema import (
    SCHEMA_VERSION,
    CensusConfigSchema,
    check_schema_version,
    validate_census_config,
)


# =============================================================================
# Schema to Model Converter
# =============================================================================

def _convert_config(schema: CensusConfigSchema, base_dir: Optional[Path] = None) -> CensusConfig:
    """Convert CensusConfigSchema to CensusConfig; relative inputs resolve against base_dir."""
    input_path = None
    if schema.input_path:
        input_path = Path(schema.input_path)
        if base_dir is not None and not input_path.is_absolute():
            input_path = base_dir / input_path
    return CensusConfig(
        window=CensusWindow(start=schema.census.start, end=schema.census.end),
        input_path=input_path,
        assessment_working_days=schema.thresholds.assessment_working_days,
        enquiry_working_days=schema.thresholds.enquiry_working_days,
        holidays=frozenset(schema.holidays),
    )


def _validated(data: Any, source: Optional[str] = None, strict_version: bool = True) -> CensusConfigSchema:
    """Version check then schema validation, with domain errors."""
    if not isinstance(data, dict):
        raise ConfigValidationError(
            message="Census configuration must be a mapping",
            details={"type": type(data).__name__},
            source=source,
        )

    if strict_version and not check_schema_version(data):
        config_version = data.get("schema_version", "unknown")
        raise ConfigVersionMismatch(
            message=f"Schema version mismatch: config has {config_version}, expected {SCHEMA_VERSION}",
            details={
                "config_version": config_version,
                "expected_version": SCHEMA_VERSION,
            },
            source=source,
        )

    try:
        return validate_census_config(data)
    except ValidationError as e:
        raise ConfigValidationError(
            message=f"Census configuration validation failed: {e.error_count()} errors",
            details={"errors": e.errors(include_url=False)},
            source=source,
        ) from e


# =============================================================================
# Configuration Loader
# =============================================================================

class CensusConfigLoader:
    """
    Loads census run configuration from YAML or JSON files.

    Usage:
        loader = CensusConfigLoader()
        config = loader.load("config/cin_2022.yaml")
    """

    def __init__(self, strict_version: bool = True):
        """
        Initialize the loader.

        Args:
            strict_version: If True, reject configs with incompatible schema versions
        """
        self.strict_version = strict_version

    def load(self, path: Union[str, Path]) -> CensusConfig:
        """
        Load a configuration from a file.

        Args:
            path: Path to YAML or JSON file

        Returns:
            Loaded CensusConfig; a relative input_path resolves against the
            file's directory

        Raises:
            ConfigLoadError: If file cannot be read or parsed
            ConfigValidationError: If validation fails
            ConfigVersionMismatch: If schema version incompatible
        """
        path = Path(path)

        try:
            data = self._load_file(path)
        except (OSError, yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigLoadError(
                message=f"Failed to load census configuration: {e}",
                details={"path": str(path), "error": str(e)},
                source=str(path),
            ) from e

        schema = _validated(data, source=str(path), strict_version=self.strict_version)
        return _convert_config(schema, base_dir=path.parent)

    def _load_file(self, path: Path) -> Any:
        """Load data from YAML or JSON file."""
        with open(path, "r", encoding="utf-8") as f:
            if path.suffix.lower() == ".json":
                return json.load(f)
            # YAML is a superset of JSON, so it covers unknown suffixes too
            return yaml.safe_load(f)


# =============================================================================
# Convenience Functions
# =============================================================================

def load_census_config(path: Union[str, Path]) -> CensusConfig:
    """
    Load a census configuration from a file.

    Convenience function that creates a temporary loader.
    """
    return CensusConfigLoader().load(path)


def load_census_config_from_string(
    content: str,
    format: str = "yaml",
) -> CensusConfig:
    """
    Load a census configuration from a string.

    Args:
        content: YAML or JSON string
        format: "yaml" or "json"

    Returns:
        Loaded CensusConfig

    Raises:
        ConfigLoadError: If the string cannot be parsed
        ConfigValidationError / ConfigVersionMismatch: As for files
    """
    try:
        if format.lower() == "json":
            data = json.loads(content)
        else:
            data = yaml.safe_load(content)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise ConfigLoadError(
            message=f"Failed to parse census configuration: {e}",
            details={"format": format},
        ) from e

    return _convert_config(_validated(data))
