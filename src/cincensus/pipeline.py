"""
CIN Census Pipeline

Load once, then branch: the same immutable Snapshot feeds the rule engine
and the rebuilder.

Usage:
    pipeline = CensusPipeline(load_census_config("config/cin_2022.yaml"))
    snapshot, report = pipeline.run()
    data = pipeline.export(snapshot)
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

from .exceptions import ConfigValidationError
from .models import CensusConfig, Snapshot
from .engine import Rebuilder, RuleEngine, Shredder, ValidationReport, build_report

logger = logging.getLogger(__name__)


class CensusPipeline:
    """
    One census run.

    Args:
        config: Run configuration
        max_workers: Worker threads for rule evaluation (1 = sequential)
        strict_export: Refuse to export when sibling order is ambiguous
    """

    def __init__(
        self,
        config: CensusConfig,
        max_workers: int = 1,
        strict_export: bool = False,
    ) -> None:
        self.config = config
        self.shredder = Shredder()
        self.engine = RuleEngine(config, max_workers=max_workers)
        self.rebuilder = Rebuilder(strict=strict_export)

    def load(self, path: Optional[Union[str, Path]] = None) -> Snapshot:
        """
        Shred the return named by `path`, or by the configuration.

        Raises:
            ConfigValidationError: If neither names an input
            ParseError: If the document cannot be parsed
        """
        source = path if path is not None else self.config.input_path
        if source is None:
            raise ConfigValidationError(
                message="No input path given and none configured",
            )
        logger.info("Loading census return from %s", source)
        return self.shredder.shred_path(source)

    def validate(self, snapshot: Snapshot, enrich: bool = True) -> ValidationReport:
        """Run the rule catalogue and tabulate the findings."""
        violations = self.engine.evaluate(snapshot)
        report = build_report(violations, snapshot, enrich=enrich)
        logger.info(
            "Validation complete: %d errors, %d queries across %d codes",
            report.error_count,
            report.query_count,
            len(report.codes()),
        )
        return report

    def export(self, snapshot: Snapshot, pretty: bool = False) -> bytes:
        """Rebuild the return document."""
        result = self.rebuilder.render(snapshot)
        if result.ambiguities:
            logger.info("Exported with %d ambiguous sibling group(s)", len(result.ambiguities))
        data = result.to_bytes(pretty=pretty)
        logger.info("Exported %d bytes", len(data))
        return data

    def run(self, path: Optional[Union[str, Path]] = None) -> tuple[Snapshot, ValidationReport]:
        """Load, then validate."""
        snapshot = self.load(path)
        return snapshot, self.validate(snapshot)
