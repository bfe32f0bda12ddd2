"""
CIN Census Shredder

Turns a census return document into an immutable Snapshot.

One ExtractionSpec per entity type drives a single generic routine.
Nested scalar lists (disabilities, assessment factors, review dates) use
the two-step wrapper join. Every non-root row must join to an existing
parent of the expected type; rows that do not are dropped and logged at
DEBUG. Data-quality judgment belongs to the rule engine, not here.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable, Optional, Union

from ..document import SourceDocument
from ..models import (
    Assessment,
    AssessmentFactor,
    CINDetails,
    CINPlan,
    Child,
    ChildProtectionPlan,
    Disability,
    FieldType,
    Header,
    Review,
    Section47,
    Snapshot,
)
from .extraction import ExtractionSpec, FieldSpec, extract_rows, resolve_wrapped_values

logger = logging.getLogger(__name__)

TEXT = FieldType.TEXT
INTEGER = FieldType.INTEGER
DATE = FieldType.DATE
BOOLEAN = FieldType.BOOLEAN
DATETIME = FieldType.DATETIME

_CHILD = "/Message/Children/Child"
_EPISODE = _CHILD + "/CINdetails"
_ASSESSMENT = _EPISODE + "/Assessments"
_PROTECTION_PLAN = _EPISODE + "/ChildProtectionPlans"


def _own(parent_field: str) -> tuple[FieldSpec, FieldSpec]:
    return (FieldSpec("id", "#id", INTEGER), FieldSpec(parent_field, "#parent", INTEGER))


def _wrapper(path: str, parent_location: str = "#parent") -> ExtractionSpec:
    return ExtractionSpec(path, (
        FieldSpec("wrapper_id", "#id", INTEGER),
        FieldSpec("parent_id", parent_location, INTEGER),
    ))


def _leaf(path: str, value_field: str, value_type: FieldType = TEXT) -> ExtractionSpec:
    return ExtractionSpec(path, (
        FieldSpec("id", "#id", INTEGER),
        FieldSpec("wrapper_id", "#parent", INTEGER),
        FieldSpec(value_field, ".", value_type),
    ))


# =============================================================================
# Extraction Specs
# =============================================================================

COLLECTION_SPEC = ExtractionSpec("/Message/Header/CollectionDetails", (
    FieldSpec("collection", "Collection"),
    FieldSpec("year", "Year", INTEGER),
    FieldSpec("reference_date", "ReferenceDate", DATE),
))

SOURCE_SPEC = ExtractionSpec("/Message/Header/Source", (
    FieldSpec("source_level", "SourceLevel"),
    FieldSpec("lea", "LEA"),
    FieldSpec("software_code", "SoftwareCode"),
    FieldSpec("release", "Release"),
    FieldSpec("serial_no", "SerialNo", INTEGER),
    FieldSpec("date_time", "DateTime", DATETIME),
    FieldSpec("cbds_level", "../Content/CBDSLevels/CBDSLevel"),
))

CHILD_SPEC = ExtractionSpec(_CHILD, (
    FieldSpec("id", "#id", INTEGER),
    FieldSpec("la_child_id", "ChildIdentifiers/LAchildID"),
    FieldSpec("upn", "ChildIdentifiers/UPN"),
    FieldSpec("former_upn", "ChildIdentifiers/FormerUPN"),
    FieldSpec("upn_unknown", "ChildIdentifiers/UPNunknown"),
    FieldSpec("birth_date", "ChildIdentifiers/PersonBirthDate", DATE),
    FieldSpec("expected_birth_date", "ChildIdentifiers/ExpectedPersonBirthDate", DATE),
    FieldSpec("gender", "ChildIdentifiers/GenderCurrent", INTEGER),
    FieldSpec("death_date", "ChildIdentifiers/PersonDeathDate", DATE),
    FieldSpec("ethnicity", "ChildCharacteristics/Ethnicity"),
))

# Disabilities sit under ChildCharacteristics; the wrapper reports the Child itself
DISABILITIES_SPEC = _wrapper(_CHILD + "/ChildCharacteristics/Disabilities", "../../#id")
DISABILITY_SPEC = _leaf(_CHILD + "/ChildCharacteristics/Disabilities/Disability", "code")

EPISODE_SPEC = ExtractionSpec(_EPISODE, _own("child_id") + (
    FieldSpec("referral_date", "CINreferralDate", DATE),
    FieldSpec("referral_source", "ReferralSource"),
    FieldSpec("primary_need_code", "PrimaryNeedCode"),
    FieldSpec("closure_date", "CINclosureDate", DATE),
    FieldSpec("closure_reason", "ReasonForClosure"),
    FieldSpec("initial_cpc_date", "DateOfInitialCPC", DATE),
    FieldSpec("referral_nfa", "ReferralNFA", BOOLEAN),
))

ASSESSMENT_SPEC = ExtractionSpec(_ASSESSMENT, _own("cin_details_id") + (
    FieldSpec("start_date", "AssessmentActualStartDate", DATE),
    FieldSpec("internal_review_date", "AssessmentInternalReviewDate", DATE),
    FieldSpec("authorisation_date", "AssessmentAuthorisationDate", DATE),
))

FACTORS_SPEC = _wrapper(_ASSESSMENT + "/FactorsIdentifiedAtAssessment")
FACTOR_SPEC = _leaf(_ASSESSMENT + "/FactorsIdentifiedAtAssessment/AssessmentFactors", "code")

SECTION47_SPEC = ExtractionSpec(_EPISODE + "/Section47", _own("cin_details_id") + (
    FieldSpec("start_date", "S47ActualStartDate", DATE),
    FieldSpec("initial_cpc_target", "InitialCPCtarget", DATE),
    FieldSpec("initial_cpc_date", "DateOfInitialCPC", DATE),
    FieldSpec("icpc_not_required", "ICPCnotRequired", BOOLEAN),
))

CIN_PLAN_SPEC = ExtractionSpec(_EPISODE + "/CINPlanDates", _own("cin_details_id") + (
    FieldSpec("start_date", "CINPlanStartDate", DATE),
    FieldSpec("end_date", "CINPlanEndDate", DATE),
))

PROTECTION_PLAN_SPEC = ExtractionSpec(_PROTECTION_PLAN, _own("cin_details_id") + (
    FieldSpec("start_date", "CPPstartDate", DATE),
    FieldSpec("end_date", "CPPendDate", DATE),
    FieldSpec("initial_category", "InitialCategoryOfAbuse"),
    FieldSpec("latest_category", "LatestCategoryOfAbuse"),
    FieldSpec("previous_plan_count", "NumberOfPreviousCPP", INTEGER),
))

REVIEWS_SPEC = _wrapper(_PROTECTION_PLAN + "/Reviews")
REVIEW_SPEC = _leaf(_PROTECTION_PLAN + "/Reviews/CPPreviewDate", "review_date", DATE)


# =============================================================================
# Shredder
# =============================================================================

class Shredder:
    """
    Builds a Snapshot from a SourceDocument.

    Usage:
        snapshot = Shredder().shred(SourceDocument.from_path("cin.xml"))
    """

    def shred(self, document: SourceDocument) -> Snapshot:
        """
        Extract every entity table and assemble the Snapshot.

        Args:
            document: Parsed census return

        Returns:
            Immutable Snapshot in document order
        """
        header = self._header(document)

        children = tuple(
            Child(**row) for row in extract_rows(document, CHILD_SPEC)
        )
        child_ids = {c.id for c in children}

        disabilities = self._wrapped(
            document, DISABILITIES_SPEC, DISABILITY_SPEC, "child_id", child_ids, Disability,
        )

        episodes = self._joined(
            extract_rows(document, EPISODE_SPEC), "child_id", child_ids, CINDetails,
        )
        episode_ids = {e.id for e in episodes}

        assessments = self._joined(
            extract_rows(document, ASSESSMENT_SPEC), "cin_details_id", episode_ids, Assessment,
        )
        assessment_ids = {a.id for a in assessments}

        factors = self._wrapped(
            document, FACTORS_SPEC, FACTOR_SPEC, "assessment_id", assessment_ids, AssessmentFactor,
        )
        section47s = self._joined(
            extract_rows(document, SECTION47_SPEC), "cin_details_id", episode_ids, Section47,
        )
        cin_plans = self._joined(
            extract_rows(document, CIN_PLAN_SPEC), "cin_details_id", episode_ids, CINPlan,
        )
        protection_plans = self._joined(
            extract_rows(document, PROTECTION_PLAN_SPEC), "cin_details_id", episode_ids,
            ChildProtectionPlan,
        )
        plan_ids = {p.id for p in protection_plans}

        reviews = self._wrapped(
            document, REVIEWS_SPEC, REVIEW_SPEC, "protection_plan_id", plan_ids, Review,
        )

        snapshot = Snapshot(
            header=header,
            children=children,
            disabilities=disabilities,
            cin_details=episodes,
            assessments=assessments,
            assessment_factors=factors,
            section47s=section47s,
            cin_plans=cin_plans,
            protection_plans=protection_plans,
            reviews=reviews,
        )
        logger.info(
            "Shredded %s: %s",
            document.source or "document",
            ", ".join(f"{name}={count}" for name, count in snapshot.counts().items()),
        )
        return snapshot

    def shred_bytes(self, data: Union[bytes, str], source: Optional[str] = None) -> Snapshot:
        """Parse and shred a document held in memory."""
        return self.shred(SourceDocument.from_bytes(data, source=source))

    def shred_path(self, path: Union[str, Path]) -> Snapshot:
        """Parse and shred a document on disk."""
        return self.shred(SourceDocument.from_path(path))

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _header(self, document: SourceDocument) -> Optional[Header]:
        """Cross product of the CollectionDetails and Source blocks."""
        rows = [
            {**collection, **source}
            for collection in extract_rows(document, COLLECTION_SPEC)
            for source in extract_rows(document, SOURCE_SPEC)
        ]
        if not rows:
            logger.debug("No header: CollectionDetails or Source block missing")
            return None
        if len(rows) > 1:
            logger.warning("Header blocks repeated (%d combinations); using the first", len(rows))
        return Header(**rows[0])

    def _wrapped(
        self,
        document: SourceDocument,
        wrapper_spec: ExtractionSpec,
        leaf_spec: ExtractionSpec,
        parent_field: str,
        parent_ids: set[int],
        entity: type,
    ) -> tuple[Any, ...]:
        joined = resolve_wrapped_values(
            extract_rows(document, wrapper_spec),
            extract_rows(document, leaf_spec),
        )
        for row in joined:
            row[parent_field] = row.pop("parent_id")
        return self._joined(joined, parent_field, parent_ids, entity)

    def _joined(
        self,
        rows: Iterable[dict[str, Any]],
        parent_field: str,
        parent_ids: set[int],
        entity: type,
    ) -> tuple[Any, ...]:
        """Keep rows whose parent identity resolves; drop the rest."""
        kept = []
        dropped = 0
        for row in rows:
            if row.get("id") is None or row.get(parent_field) not in parent_ids:
                dropped += 1
                continue
            kept.append(entity(**row))
        if dropped:
            logger.debug("Dropped %d orphan %s row(s)", dropped, entity.__name__)
        return tuple(kept)


def shred(document: SourceDocument) -> Snapshot:
    """Shred a parsed document with the default Shredder."""
    return Shredder().shred(document)
