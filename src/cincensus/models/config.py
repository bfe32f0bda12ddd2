"""
CIN Census Run Configuration

The externally supplied constants for one run: where the return lives, the
census window it covers, and the working-day counts behind the overdue
checks.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Optional

from .snapshot import CensusWindow


# Working days allowed before an open assessment / enquiry is queried
DEFAULT_ASSESSMENT_WORKING_DAYS = 45
DEFAULT_ENQUIRY_WORKING_DAYS = 15


@dataclass(frozen=True)
class CensusConfig:
    """
    Configuration for a single census run.

    Attributes:
        window: Census start/end dates
        input_path: Location of the return to load
        assessment_working_days: Threshold for rule 8670Q
        enquiry_working_days: Threshold for rule 8675Q
        holidays: Extra non-working dates for threshold roll-back
    """
    window: CensusWindow
    input_path: Optional[Path] = None
    assessment_working_days: int = DEFAULT_ASSESSMENT_WORKING_DAYS
    enquiry_working_days: int = DEFAULT_ENQUIRY_WORKING_DAYS
    holidays: frozenset[date] = frozenset()

    @classmethod
    def for_year(cls, year: int, input_path: Optional[Path] = None) -> CensusConfig:
        """Default configuration for the census year ending in `year`."""
        return cls(window=CensusWindow.for_year(year), input_path=input_path)
