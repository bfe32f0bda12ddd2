"""
CIN Census Interval Overlap

Overlap checks between dated periods that share a parent (episodes of one
child, enquiries/assessments/plans of one episode).

A starts within B when A.start >= B.start and A.start < B.end. When B has
no end, the caller supplies the open end to use instead (usually the census
end, sometimes nothing at all), and whether that open end is inclusive.
An end equal to the other period's start is never an overlap.
"""
from __future__ import annotations

from datetime import date
from itertools import permutations
from typing import Callable, Iterable, Optional, TypeVar

T = TypeVar("T")


def starts_within(
    start: Optional[date],
    other_start: Optional[date],
    other_end: Optional[date],
    open_end: Optional[date] = None,
    inclusive_open_end: bool = False,
) -> bool:
    """
    Does a period starting on `start` begin inside another period?

    Args:
        start: Start of the period being tested
        other_start: Start of the other period
        other_end: End of the other period (None while open)
        open_end: End to assume when `other_end` is None; None means the
            open period cannot be overlapped
        inclusive_open_end: Compare against `open_end` with <= rather than <

    Returns:
        True when the test period starts inside the other one
    """
    if start is None or other_start is None or start < other_start:
        return False
    if other_end is not None:
        return start < other_end
    if open_end is None:
        return False
    return start <= open_end if inclusive_open_end else start < open_end


def any_overlap(
    periods: Iterable[T],
    overlaps: Callable[[T, T], bool],
) -> bool:
    """
    True if any ordered pair of distinct periods overlaps.

    Both orientations of every pair are tried, so `overlaps(a, b)` only
    needs to test whether a starts within b.
    """
    return any(overlaps(a, b) for a, b in permutations(tuple(periods), 2))
