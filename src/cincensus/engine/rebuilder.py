"""
CIN Census Rebuilder

Renders a Snapshot back into a census return document. For an unedited
snapshot the output is the structural inverse of the shredder.

Ordering:
- Children, episodes, assessments, CIN plans, enquiries, protection plans,
  reviews and disabilities by ascending identity
- Assessment factors by code

Presence:
- ChildIdentifiers, ChildCharacteristics, CollectionDetails and Source are
  always written; ReferralSource is written empty when absent
- Other optional scalars are omitted when absent
- Disabilities and Reviews wrappers only when non-empty
- FactorsIdentifiedAtAssessment when factors exist, or empty for an
  authorised assessment
- Content/CBDSLevels only for census years before 2022
"""
from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Iterable, Optional, Sequence

from ..document import ROOT_TAG, write_document
from ..exceptions import RenderAmbiguityError
from ..models import (
    Assessment,
    CINDetails,
    CINPlan,
    Child,
    ChildProtectionPlan,
    Header,
    Section47,
    Snapshot,
)

logger = logging.getLogger(__name__)

# Schema change: the Content block was dropped from 2022
CONTENT_BLOCK_LAST_YEAR = 2021


# =============================================================================
# Result Types
# =============================================================================

@dataclass(frozen=True)
class RenderAmbiguity:
    """
    Sibling entities sharing an identity, so their relative order is undefined.

    Attributes:
        entity: Entity type name (e.g. "CINDetails")
        parent_id: Identity of the shared parent, None under the root
        identity: The duplicated identity
        count: How many siblings carry it
    """
    entity: str
    parent_id: Optional[int]
    identity: int
    count: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "entity": self.entity,
            "parent_id": self.parent_id,
            "identity": self.identity,
            "count": self.count,
        }


@dataclass
class RenderResult:
    """
    A rebuilt document.

    Attributes:
        root: The <Message> element
        ambiguities: Sibling identity collisions found while rendering
    """
    root: ET.Element
    ambiguities: list[RenderAmbiguity] = field(default_factory=list)

    def to_bytes(self, pretty: bool = False) -> bytes:
        """Serialize with the XML declaration."""
        return write_document(self.root, pretty=pretty)


# =============================================================================
# Formatting
# =============================================================================

def format_value(value: Any) -> str:
    """Render a scalar the way the census schema expects."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return format_datetime(value)
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def format_datetime(value: datetime) -> str:
    """Seconds, milliseconds only when non-zero, then the literal .0Z suffix."""
    text = value.strftime("%Y-%m-%dT%H:%M:%S")
    millis = value.microsecond // 1000
    if millis:
        text += f".{millis:03d}"
    return text + ".0Z"


def _scalar(parent: ET.Element, tag: str, value: Any) -> None:
    """Append <tag>value</tag>; absent values are omitted."""
    if value is None:
        return
    ET.SubElement(parent, tag).text = format_value(value)


def _leaf(parent: ET.Element, tag: str, value: Any) -> None:
    """Append a list member; a blank member is kept as an empty element."""
    ET.SubElement(parent, tag).text = "" if value is None else format_value(value)


# =============================================================================
# Rebuilder
# =============================================================================

class Rebuilder:
    """
    Renders a Snapshot into an element tree.

    Usage:
        result = Rebuilder().render(snapshot)
        data = result.to_bytes()

        # Refuse to render when sibling order is undefined
        Rebuilder(strict=True).render(edited_snapshot)
    """

    def __init__(self, strict: bool = False) -> None:
        self.strict = strict

    def render(self, snapshot: Snapshot) -> RenderResult:
        """
        Build the <Message> tree for a snapshot.

        Raises:
            RenderAmbiguityError: In strict mode, if sibling identities collide
        """
        self._snapshot = snapshot
        self._ambiguities: list[RenderAmbiguity] = []

        root = ET.Element(ROOT_TAG)
        if snapshot.header is not None:
            root.append(self._header(snapshot.header))

        children = self._ordered(snapshot.children, "Child", None)
        if children:
            wrapper = ET.SubElement(root, "Children")
            for child in children:
                wrapper.append(self._child(child))

        result = RenderResult(root=root, ambiguities=self._ambiguities)
        if result.ambiguities and self.strict:
            raise RenderAmbiguityError(
                message=f"{len(result.ambiguities)} sibling identity collision(s)",
                details={"ambiguities": [a.to_dict() for a in result.ambiguities]},
            )
        return result

    # -------------------------------------------------------------------------
    # Ordering
    # -------------------------------------------------------------------------

    def _ordered(self, rows: Sequence[Any], entity: str, parent_id: Optional[int]) -> list[Any]:
        """Ascending identity; collisions are recorded and keep snapshot order."""
        seen: dict[int, int] = {}
        for row in rows:
            seen[row.id] = seen.get(row.id, 0) + 1
        for identity, count in seen.items():
            if count > 1:
                ambiguity = RenderAmbiguity(entity, parent_id, identity, count)
                logger.warning(
                    "Ambiguous order: %d %s siblings share identity %d (parent %s)",
                    count, entity, identity, parent_id,
                )
                self._ambiguities.append(ambiguity)
        return sorted(rows, key=lambda row: row.id)

    # -------------------------------------------------------------------------
    # Header
    # -------------------------------------------------------------------------

    def _header(self, header: Header) -> ET.Element:
        element = ET.Element("Header")

        collection = ET.SubElement(element, "CollectionDetails")
        _scalar(collection, "Collection", header.collection)
        _scalar(collection, "Year", header.year)
        _scalar(collection, "ReferenceDate", header.reference_date)

        source = ET.SubElement(element, "Source")
        _scalar(source, "SourceLevel", header.source_level)
        _scalar(source, "LEA", header.lea)
        _scalar(source, "SoftwareCode", header.software_code)
        _scalar(source, "Release", header.release)
        _scalar(source, "SerialNo", header.serial_no)
        _scalar(source, "DateTime", header.date_time)

        if header.year is not None and header.year <= CONTENT_BLOCK_LAST_YEAR:
            levels = ET.SubElement(ET.SubElement(element, "Content"), "CBDSLevels")
            _scalar(levels, "CBDSLevel", header.cbds_level)
        return element

    # -------------------------------------------------------------------------
    # Child
    # -------------------------------------------------------------------------

    def _child(self, child: Child) -> ET.Element:
        snapshot = self._snapshot
        element = ET.Element("Child")

        identifiers = ET.SubElement(element, "ChildIdentifiers")
        _scalar(identifiers, "LAchildID", child.la_child_id)
        _scalar(identifiers, "UPN", child.upn)
        _scalar(identifiers, "FormerUPN", child.former_upn)
        _scalar(identifiers, "UPNunknown", child.upn_unknown)
        _scalar(identifiers, "PersonBirthDate", child.birth_date)
        _scalar(identifiers, "ExpectedPersonBirthDate", child.expected_birth_date)
        _scalar(identifiers, "GenderCurrent", child.gender)
        _scalar(identifiers, "PersonDeathDate", child.death_date)

        characteristics = ET.SubElement(element, "ChildCharacteristics")
        _scalar(characteristics, "Ethnicity", child.ethnicity)
        disabilities = self._ordered(snapshot.disabilities_for(child.id), "Disability", child.id)
        if disabilities:
            wrapper = ET.SubElement(characteristics, "Disabilities")
            for disability in disabilities:
                _leaf(wrapper, "Disability", disability.code)

        for episode in self._ordered(snapshot.episodes_for(child.id), "CINDetails", child.id):
            element.append(self._episode(episode))
        return element

    # -------------------------------------------------------------------------
    # Episode and below
    # -------------------------------------------------------------------------

    def _episode(self, episode: CINDetails) -> ET.Element:
        snapshot = self._snapshot
        element = ET.Element("CINdetails")
        _scalar(element, "CINreferralDate", episode.referral_date)
        ET.SubElement(element, "ReferralSource").text = episode.referral_source or ""
        _scalar(element, "PrimaryNeedCode", episode.primary_need_code)
        _scalar(element, "CINclosureDate", episode.closure_date)
        _scalar(element, "ReasonForClosure", episode.closure_reason)
        _scalar(element, "DateOfInitialCPC", episode.initial_cpc_date)

        for assessment in self._ordered(snapshot.assessments_for(episode.id), "Assessment", episode.id):
            element.append(self._assessment(assessment))
        for plan in self._ordered(snapshot.cin_plans_for(episode.id), "CINPlan", episode.id):
            element.append(self._cin_plan(plan))
        for enquiry in self._ordered(snapshot.section47s_for(episode.id), "Section47", episode.id):
            element.append(self._section47(enquiry))

        _scalar(element, "ReferralNFA", episode.referral_nfa)

        protection_plans = self._ordered(
            snapshot.protection_plans_for(episode.id), "ChildProtectionPlan", episode.id,
        )
        for plan in protection_plans:
            element.append(self._protection_plan(plan))
        return element

    def _assessment(self, assessment: Assessment) -> ET.Element:
        element = ET.Element("Assessments")
        _scalar(element, "AssessmentActualStartDate", assessment.start_date)
        _scalar(element, "AssessmentInternalReviewDate", assessment.internal_review_date)
        _scalar(element, "AssessmentAuthorisationDate", assessment.authorisation_date)

        codes = sorted_factor_codes(f.code for f in self._snapshot.factors_for(assessment.id))
        if codes or assessment.is_authorised:
            wrapper = ET.SubElement(element, "FactorsIdentifiedAtAssessment")
            for code in codes:
                _leaf(wrapper, "AssessmentFactors", code)
        return element

    def _cin_plan(self, plan: CINPlan) -> ET.Element:
        element = ET.Element("CINPlanDates")
        _scalar(element, "CINPlanStartDate", plan.start_date)
        _scalar(element, "CINPlanEndDate", plan.end_date)
        return element

    def _section47(self, enquiry: Section47) -> ET.Element:
        element = ET.Element("Section47")
        _scalar(element, "S47ActualStartDate", enquiry.start_date)
        _scalar(element, "InitialCPCtarget", enquiry.initial_cpc_target)
        _scalar(element, "DateOfInitialCPC", enquiry.initial_cpc_date)
        _scalar(element, "ICPCnotRequired", enquiry.icpc_not_required)
        return element

    def _protection_plan(self, plan: ChildProtectionPlan) -> ET.Element:
        element = ET.Element("ChildProtectionPlans")
        _scalar(element, "CPPstartDate", plan.start_date)
        _scalar(element, "CPPendDate", plan.end_date)
        _scalar(element, "InitialCategoryOfAbuse", plan.initial_category)
        _scalar(element, "LatestCategoryOfAbuse", plan.latest_category)
        _scalar(element, "NumberOfPreviousCPP", plan.previous_plan_count)

        reviews = self._ordered(self._snapshot.reviews_for(plan.id), "Review", plan.id)
        if reviews:
            wrapper = ET.SubElement(element, "Reviews")
            for review in reviews:
                _leaf(wrapper, "CPPreviewDate", review.review_date)
        return element


def sorted_factor_codes(codes: Iterable[Optional[str]]) -> list[Optional[str]]:
    """Factor codes in export order; blank codes sort last."""
    return sorted(codes, key=lambda code: (code is None, code or ""))


def render(snapshot: Snapshot, pretty: bool = False) -> bytes:
    """Rebuild a snapshot straight to bytes with the default Rebuilder."""
    return Rebuilder().render(snapshot).to_bytes(pretty=pretty)
