"""
CIN Census Entity Models

One frozen dataclass per entity in the census return. Entities are pure
data: every non-root entity carries its own synthetic identity and the
identity of its containing entity, so the containment tree can be rebuilt
from flat tables.

Containment (root first):
- Header (single row)
- Child
  - Disability (via the ChildCharacteristics/Disabilities wrapper)
  - CINDetails (episode)
    - Assessment
      - AssessmentFactor (via the FactorsIdentifiedAtAssessment wrapper)
    - Section47
    - CINPlan
    - ChildProtectionPlan
      - Review (via the Reviews wrapper)
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional


# =============================================================================
# Header
# =============================================================================

@dataclass(frozen=True)
class Header:
    """
    Return-level metadata from the CollectionDetails and Source blocks.

    Attributes:
        collection: Collection name (e.g. "CIN")
        year: Census year (the year the census period ends)
        reference_date: Census reference date
        source_level / lea / software_code / release / serial_no: Source system fields
        date_time: Timestamp the file was produced
        cbds_level: Legacy content level (only for pre-2022 schemas)
    """
    collection: Optional[str] = None
    year: Optional[int] = None
    reference_date: Optional[date] = None
    source_level: Optional[str] = None
    lea: Optional[str] = None
    software_code: Optional[str] = None
    release: Optional[str] = None
    serial_no: Optional[int] = None
    date_time: Optional[datetime] = None
    cbds_level: Optional[str] = None


# =============================================================================
# Child
# =============================================================================

@dataclass(frozen=True)
class Child:
    """
    A child in the return (ChildIdentifiers + ChildCharacteristics).

    Attributes:
        id: Synthetic identity of the Child element
        la_child_id: Local authority child identifier
        upn: Unique pupil number
        former_upn: Previous unique pupil number
        upn_unknown: Reason code when the UPN is unknown (UN1-UN7)
        birth_date: Date of birth
        expected_birth_date: Expected date of birth for unborn children
        gender: Current gender code (0, 1, 2, 9)
        death_date: Date of death
        ethnicity: Ethnicity code
    """
    id: int
    la_child_id: Optional[str] = None
    upn: Optional[str] = None
    former_upn: Optional[str] = None
    upn_unknown: Optional[str] = None
    birth_date: Optional[date] = None
    expected_birth_date: Optional[date] = None
    gender: Optional[int] = None
    death_date: Optional[date] = None
    ethnicity: Optional[str] = None


@dataclass(frozen=True)
class Disability:
    """A disability code recorded against a child."""
    id: int
    child_id: int
    code: Optional[str] = None


# =============================================================================
# CIN Episode
# =============================================================================

@dataclass(frozen=True)
class CINDetails:
    """
    One CIN episode: a referral through to closure.

    Attributes:
        id: Synthetic identity of the CINdetails element
        child_id: Identity of the owning Child
        referral_date: CIN referral date
        referral_source: Source of referral code
        primary_need_code: Primary need code (N1-N9)
        closure_date: CIN closure date; None while the episode is open
        closure_reason: Reason for closure code (RC1-RC8)
        initial_cpc_date: Initial child protection conference held at episode level
        referral_nfa: Referral with no further action flag
    """
    id: int
    child_id: int
    referral_date: Optional[date] = None
    referral_source: Optional[str] = None
    primary_need_code: Optional[str] = None
    closure_date: Optional[date] = None
    closure_reason: Optional[str] = None
    initial_cpc_date: Optional[date] = None
    referral_nfa: Optional[bool] = None

    @property
    def is_open(self) -> bool:
        """An episode with no closure date is open."""
        return self.closure_date is None


# =============================================================================
# Assessment
# =============================================================================

@dataclass(frozen=True)
class Assessment:
    """An assessment within an episode."""
    id: int
    cin_details_id: int
    start_date: Optional[date] = None
    internal_review_date: Optional[date] = None
    authorisation_date: Optional[date] = None

    @property
    def is_authorised(self) -> bool:
        """A completed assessment has an authorisation date."""
        return self.authorisation_date is not None


@dataclass(frozen=True)
class AssessmentFactor:
    """A parental or child factor identified at assessment."""
    id: int
    assessment_id: int
    code: Optional[str] = None


# =============================================================================
# Section 47 Enquiry
# =============================================================================

@dataclass(frozen=True)
class Section47:
    """
    A Section 47 enquiry.

    Attributes:
        id: Synthetic identity of the Section47 element
        cin_details_id: Identity of the owning episode
        start_date: Enquiry start date
        initial_cpc_target: Target date for the initial conference
        initial_cpc_date: Date the initial conference was held
        icpc_not_required: Conference-not-required flag
    """
    id: int
    cin_details_id: int
    start_date: Optional[date] = None
    initial_cpc_target: Optional[date] = None
    initial_cpc_date: Optional[date] = None
    icpc_not_required: Optional[bool] = None


# =============================================================================
# Plans
# =============================================================================

@dataclass(frozen=True)
class CINPlan:
    """A CIN plan period."""
    id: int
    cin_details_id: int
    start_date: Optional[date] = None
    end_date: Optional[date] = None


@dataclass(frozen=True)
class ChildProtectionPlan:
    """
    A child protection plan.

    Attributes:
        id: Synthetic identity of the ChildProtectionPlans element
        cin_details_id: Identity of the owning episode
        start_date / end_date: Plan period
        initial_category: Initial category of abuse
        latest_category: Latest category of abuse
        previous_plan_count: Number of previous child protection plans
    """
    id: int
    cin_details_id: int
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    initial_category: Optional[str] = None
    latest_category: Optional[str] = None
    previous_plan_count: Optional[int] = None


@dataclass(frozen=True)
class Review:
    """A child protection plan review date."""
    id: int
    protection_plan_id: int
    review_date: Optional[date] = None
