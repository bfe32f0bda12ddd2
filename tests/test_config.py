"""
Tests for census configuration loading.

Tests cover:
- YAML and JSON files, and strings
- Schema version checks
- Validation errors mapped to domain exceptions
- Relative input paths
"""
import json
from datetime import date
from pathlib import Path

import pytest

from cincensus.config import (
    SCHEMA_VERSION,
    CensusConfigLoader,
    CensusConfigSchema,
    check_schema_version,
    load_census_config,
    load_census_config_from_string,
)
from cincensus.exceptions import ConfigLoadError, ConfigValidationError, ConfigVersionMismatch
from cincensus.models import CensusWindow


YAML_CONFIG = """
schema_version: "1.0"
input_path: returns/cin_2022.xml
census:
  start: 2021-04-01
  end: 2022-03-31
thresholds:
  assessment_working_days: 40
holidays:
  - 2021-12-28
  - 2021-12-27
  - 2021-12-27
"""


@pytest.fixture
def yaml_path(tmp_path) -> Path:
    path = tmp_path / "cin_2022.yaml"
    path.write_text(YAML_CONFIG, encoding="utf-8")
    return path


class TestLoadFile:
    """Loading from disk."""

    def test_yaml(self, yaml_path, tmp_path) -> None:
        config = load_census_config(yaml_path)
        assert config.window == CensusWindow.for_year(2022)
        assert config.assessment_working_days == 40
        assert config.enquiry_working_days == 15
        assert config.holidays == frozenset({date(2021, 12, 27), date(2021, 12, 28)})

    def test_relative_input_resolves_against_config_directory(self, yaml_path, tmp_path) -> None:
        config = load_census_config(yaml_path)
        assert config.input_path == tmp_path / "returns" / "cin_2022.xml"

    def test_absolute_input_kept(self, tmp_path) -> None:
        target = tmp_path / "elsewhere.xml"
        path = tmp_path / "config.json"
        path.write_text(json.dumps({
            "census": {"start": "2021-04-01", "end": "2022-03-31"},
            "input_path": str(target),
        }), encoding="utf-8")
        assert load_census_config(path).input_path == target

    def test_json_defaults(self, tmp_path) -> None:
        path = tmp_path / "config.json"
        path.write_text(json.dumps({
            "schema_version": "1.0",
            "census": {"start": "2021-04-01", "end": "2022-03-31"},
        }), encoding="utf-8")
        config = load_census_config(path)
        assert config.input_path is None
        assert config.assessment_working_days == 45
        assert config.holidays == frozenset()

    def test_missing_file(self, tmp_path) -> None:
        with pytest.raises(ConfigLoadError) as excinfo:
            load_census_config(tmp_path / "absent.yaml")
        assert excinfo.value.code == "CC_CONFIG_LOAD_ERROR"

    def test_malformed_yaml(self, tmp_path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("census: [unclosed", encoding="utf-8")
        with pytest.raises(ConfigLoadError):
            load_census_config(path)

    def test_malformed_json(self, tmp_path) -> None:
        path = tmp_path / "bad.json"
        path.write_text("{", encoding="utf-8")
        with pytest.raises(ConfigLoadError):
            load_census_config(path)


class TestLoadString:
    """Loading from strings."""

    def test_yaml_string(self) -> None:
        config = load_census_config_from_string(YAML_CONFIG)
        assert config.input_path == Path("returns/cin_2022.xml")

    def test_json_string(self) -> None:
        content = json.dumps({"census": {"start": "2022-04-01", "end": "2023-03-31"}})
        config = load_census_config_from_string(content, format="json")
        assert config.window == CensusWindow.for_year(2023)

    def test_unquoted_version(self) -> None:
        config = load_census_config_from_string(
            "schema_version: 1.0\ncensus: {start: 2021-04-01, end: 2022-03-31}\n"
        )
        assert config.window.end == date(2022, 3, 31)


class TestValidation:
    """Schema and version failures."""

    def test_version_mismatch(self) -> None:
        with pytest.raises(ConfigVersionMismatch) as excinfo:
            load_census_config_from_string(
                'schema_version: "2.0"\ncensus: {start: 2021-04-01, end: 2022-03-31}\n'
            )
        assert excinfo.value.details["expected_version"] == SCHEMA_VERSION

    def test_lenient_loader_skips_version_check(self, tmp_path) -> None:
        path = tmp_path / "future.yaml"
        path.write_text('schema_version: "2.0"\ncensus: {start: 2021-04-01, end: 2022-03-31}\n')
        config = CensusConfigLoader(strict_version=False).load(path)
        assert config.window.start == date(2021, 4, 1)

    def test_minor_version_accepted(self) -> None:
        assert check_schema_version({"schema_version": "1.3"})
        assert check_schema_version({})
        assert not check_schema_version({"schema_version": "0.9"})

    def test_missing_census(self) -> None:
        with pytest.raises(ConfigValidationError) as excinfo:
            load_census_config_from_string('schema_version: "1.0"\n')
        assert excinfo.value.details["errors"][0]["loc"] == ("census",)

    def test_unknown_field_rejected(self) -> None:
        with pytest.raises(ConfigValidationError):
            load_census_config_from_string(
                "census: {start: 2021-04-01, end: 2022-03-31}\nrules: all\n"
            )

    def test_end_before_start(self) -> None:
        with pytest.raises(ConfigValidationError):
            load_census_config_from_string("census: {start: 2022-04-01, end: 2022-03-31}\n")

    def test_negative_threshold(self) -> None:
        with pytest.raises(ConfigValidationError):
            load_census_config_from_string(
                "census: {start: 2021-04-01, end: 2022-03-31}\n"
                "thresholds: {enquiry_working_days: -1}\n"
            )

    def test_not_a_mapping(self) -> None:
        with pytest.raises(ConfigValidationError):
            load_census_config_from_string("- just\n- a list\n")

    def test_schema_model_directly(self) -> None:
        schema = CensusConfigSchema.model_validate({
            "census": {"start": date(2021, 4, 1), "end": date(2022, 3, 31)},
            "holidays": [date(2022, 1, 3), date(2021, 12, 27)],
        })
        assert schema.holidays == [date(2021, 12, 27), date(2022, 1, 3)]
        assert schema.schema_version == SCHEMA_VERSION
