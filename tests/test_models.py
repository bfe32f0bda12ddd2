"""
cincensus Model Tests

Tests for the snapshot, window, violation and exception models.
"""
from __future__ import annotations

from dataclasses import FrozenInstanceError, replace
from datetime import date

import pytest

from cincensus import (
    CensusConfig,
    CensusWindow,
    CinCensusError,
    ParseError,
    RuleLevel,
    Severity,
    Violation,
)

from tests.conftest import (
    make_assessment,
    make_child,
    make_disability,
    make_episode,
    make_factor,
    make_protection_plan,
    make_review,
    make_snapshot,
)


# =============================================================================
# Enums
# =============================================================================

class TestEnums:
    """Tests for severity and level enums."""

    def test_query_suffix_sets_severity(self) -> None:
        assert Severity.for_code("8670Q") == Severity.QUERY
        assert Severity.for_code("8510") == Severity.ERROR

    def test_level_rank_follows_report_order(self) -> None:
        ranks = [level.rank for level in RuleLevel]
        assert ranks == sorted(ranks)
        assert RuleLevel.RETURN.rank == 0
        assert RuleLevel.PROTECTION_PLAN.rank == 6


# =============================================================================
# Census Window
# =============================================================================

class TestCensusWindow:
    """Tests for CensusWindow."""

    def test_for_year(self) -> None:
        window = CensusWindow.for_year(2022)
        assert window.start == date(2021, 4, 1)
        assert window.end == date(2022, 3, 31)

    def test_contains_is_inclusive(self) -> None:
        window = CensusWindow.for_year(2022)
        assert window.contains(date(2021, 4, 1))
        assert window.contains(date(2022, 3, 31))
        assert not window.contains(date(2022, 4, 1))
        assert not window.contains(None)

    def test_outside_ignores_absent(self) -> None:
        window = CensusWindow.for_year(2022)
        assert window.outside(date(2021, 3, 31))
        assert not window.outside(date(2021, 12, 1))
        assert not window.outside(None)

    def test_end_before_start_raises(self) -> None:
        with pytest.raises(ValueError):
            CensusWindow(start=date(2022, 3, 31), end=date(2021, 4, 1))

    def test_config_for_year_defaults(self) -> None:
        config = CensusConfig.for_year(2022)
        assert config.assessment_working_days == 45
        assert config.enquiry_working_days == 15
        assert config.holidays == frozenset()


# =============================================================================
# Snapshot
# =============================================================================

class TestSnapshot:
    """Tests for Snapshot lookups and views."""

    @pytest.fixture
    def snapshot(self):
        return make_snapshot(
            children=[make_child(1), make_child(2)],
            disabilities=[make_disability(3, child_id=1, code="HAND")],
            cin_details=[make_episode(10, child_id=1), make_episode(11, child_id=1)],
            assessments=[make_assessment(20, cin_details_id=11)],
            assessment_factors=[make_factor(21, assessment_id=20, code="3A")],
            protection_plans=[make_protection_plan(50, cin_details_id=10)],
            reviews=[make_review(51), make_review(52, review_date=date(2021, 9, 1))],
        )

    def test_lookups(self, snapshot) -> None:
        assert snapshot.child(2).la_child_id == "DfEX0000002"
        assert snapshot.child(99) is None
        assert snapshot.child_of_episode(11).id == 1
        assert snapshot.child_of_episode(99) is None

    def test_indexes_keep_document_order(self, snapshot) -> None:
        assert [e.id for e in snapshot.episodes_for(1)] == [10, 11]
        assert snapshot.episodes_for(2) == ()
        assert [r.id for r in snapshot.reviews_for(50)] == [51, 52]
        assert [f.code for f in snapshot.factors_for(20)] == ["3A"]

    def test_counts(self, snapshot) -> None:
        counts = snapshot.counts()
        assert counts["children"] == 2
        assert counts["cin_details"] == 2
        assert counts["section47s"] == 0
        assert "header" not in counts

    def test_content_ignores_identities(self, snapshot) -> None:
        renumbered = replace(
            snapshot,
            children=(replace(snapshot.children[0], id=100), replace(snapshot.children[1], id=200)),
            disabilities=(replace(snapshot.disabilities[0], id=300, child_id=100),),
            cin_details=tuple(replace(e, child_id=100) for e in snapshot.cin_details),
        )
        assert renumbered != snapshot
        assert renumbered.content() == snapshot.content()

    def test_snapshot_is_frozen(self, snapshot) -> None:
        with pytest.raises(FrozenInstanceError):
            snapshot.children = ()

    def test_open_episode(self) -> None:
        assert make_episode().is_open
        assert not make_episode(closure_date=date(2022, 1, 1)).is_open


# =============================================================================
# Violation
# =============================================================================

class TestViolation:
    """Tests for Violation."""

    def test_sort_key_puts_return_level_first(self) -> None:
        child = Violation("8510", Severity.ERROR, RuleLevel.CHILD, "m", subject_id=5)
        whole = Violation("100", Severity.ERROR, RuleLevel.RETURN, "m")
        assert sorted([child, whole], key=Violation.sort_key) == [whole, child]

    def test_to_dict_flattens_subject_keys(self) -> None:
        violation = Violation(
            "8670Q", Severity.QUERY, RuleLevel.ASSESSMENT, "Please check",
            subject_id=20,
            subject_keys={"start_date": date(2021, 5, 11), "cin_details_id": 10},
        )
        data = violation.to_dict()
        assert data["severity"] == "query"
        assert data["level"] == "assessment"
        assert data["cin_details_id"] == 10
        assert violation.is_query


# =============================================================================
# Exceptions
# =============================================================================

class TestExceptions:
    """Tests for the exception hierarchy."""

    def test_parse_error_code_and_dict(self) -> None:
        error = ParseError(message="bad", details={"line": 1}, source="x.xml")
        assert isinstance(error, CinCensusError)
        assert error.code == "CC_PARSE_ERROR"
        assert "[CC_PARSE_ERROR] bad" in str(error)
        assert error.to_dict() == {
            "code": "CC_PARSE_ERROR",
            "message": "bad",
            "details": {"line": 1},
            "source": "x.xml",
        }
