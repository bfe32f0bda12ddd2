"""
Pytest configuration and fixtures for cincensus tests.

Provides helper factories for entities and snapshots, plus a small
canonical census return in the exact layout the rebuilder writes.
"""
import pytest
from datetime import date

from cincensus.engine import RuleContext, Shredder
from cincensus.models import (
    Assessment,
    AssessmentFactor,
    CensusConfig,
    CINDetails,
    CINPlan,
    Child,
    ChildProtectionPlan,
    Disability,
    Header,
    Review,
    Section47,
    Snapshot,
)


# =============================================================================
# Factory Helpers
# =============================================================================

def make_header(year: int = 2022, **overrides) -> Header:
    """Create a Header whose reference date is the census end."""
    values = dict(
        collection="CIN",
        year=year,
        reference_date=date(year, 3, 31),
        source_level="L",
        lea="201",
        software_code="Local Authority",
        release="ver 3.1.21",
        serial_no=1,
    )
    values.update(overrides)
    return Header(**values)


def make_child(id: int = 1, **overrides) -> Child:
    """Create a Child with valid identifiers and characteristics."""
    values = dict(
        la_child_id=f"DfEX{id:07d}",
        birth_date=date(2015, 6, 12),
        gender=1,
        ethnicity="WBRI",
    )
    values.update(overrides)
    return Child(id=id, **values)


def make_episode(id: int = 10, child_id: int = 1, **overrides) -> CINDetails:
    """Create an open CIN episode referred during the 2022 census year."""
    values = dict(
        referral_date=date(2021, 5, 10),
        referral_source="1A",
        primary_need_code="N4",
        referral_nfa=False,
    )
    values.update(overrides)
    return CINDetails(id=id, child_id=child_id, **values)


def make_assessment(id: int = 20, cin_details_id: int = 10, **overrides) -> Assessment:
    """Create an assessment that started the day after referral."""
    values = dict(start_date=date(2021, 5, 11))
    values.update(overrides)
    return Assessment(id=id, cin_details_id=cin_details_id, **values)


def make_factor(id: int, assessment_id: int = 20, code: str = "2B") -> AssessmentFactor:
    return AssessmentFactor(id=id, assessment_id=assessment_id, code=code)


def make_disability(id: int, child_id: int = 1, code: str = "NONE") -> Disability:
    return Disability(id=id, child_id=child_id, code=code)


def make_section47(id: int = 30, cin_details_id: int = 10, **overrides) -> Section47:
    values = dict(start_date=date(2021, 5, 12))
    values.update(overrides)
    return Section47(id=id, cin_details_id=cin_details_id, **values)


def make_cin_plan(id: int = 40, cin_details_id: int = 10, **overrides) -> CINPlan:
    values = dict(start_date=date(2021, 6, 25))
    values.update(overrides)
    return CINPlan(id=id, cin_details_id=cin_details_id, **values)


def make_protection_plan(id: int = 50, cin_details_id: int = 10, **overrides) -> ChildProtectionPlan:
    """Create an open child protection plan for neglect."""
    values = dict(
        start_date=date(2021, 6, 1),
        initial_category="NEG",
        latest_category="NEG",
        previous_plan_count=0,
    )
    values.update(overrides)
    return ChildProtectionPlan(id=id, cin_details_id=cin_details_id, **values)


def make_review(id: int, protection_plan_id: int = 50, review_date: date = None) -> Review:
    return Review(
        id=id,
        protection_plan_id=protection_plan_id,
        review_date=review_date or date(2021, 8, 20),
    )


def make_snapshot(
    children: list = None,
    header: Header = None,
    with_header: bool = True,
    **tables,
) -> Snapshot:
    """Create a Snapshot; any table not given is empty."""
    if header is None and with_header:
        header = make_header()
    return Snapshot(
        header=header,
        children=tuple(children if children is not None else [make_child()]),
        **{name: tuple(rows) for name, rows in tables.items()},
    )


def make_config(year: int = 2022, **overrides) -> CensusConfig:
    """Default configuration for a census year."""
    config = CensusConfig.for_year(year)
    if not overrides:
        return config
    values = dict(
        window=config.window,
        input_path=config.input_path,
        assessment_working_days=config.assessment_working_days,
        enquiry_working_days=config.enquiry_working_days,
        holidays=config.holidays,
    )
    values.update(overrides)
    return CensusConfig(**values)


def make_context(snapshot: Snapshot, year: int = 2022) -> RuleContext:
    """Rule context for a snapshot in a census year."""
    return RuleContext.build(snapshot, make_config(year))


def hits(rule, snapshot: Snapshot, year: int = 2022) -> list:
    """Subject identities a rule reports against."""
    return [v.subject_id for v in rule.evaluate(make_context(snapshot, year))]


# =============================================================================
# Sample Return
# =============================================================================

# Canonical layout: the rebuilder writes exactly these elements in this order.
# Evaluated against 2021-04-01..2022-03-31 it raises only 2887Q.
SAMPLE_XML = """<?xml version="1.0" encoding="UTF-8"?>
<Message>
  <Header>
    <CollectionDetails>
      <Collection>CIN</Collection>
      <Year>2022</Year>
      <ReferenceDate>2022-03-31</ReferenceDate>
    </CollectionDetails>
    <Source>
      <SourceLevel>L</SourceLevel>
      <LEA>201</LEA>
      <SoftwareCode>Local Authority</SoftwareCode>
      <Release>ver 3.1.21</Release>
      <SerialNo>1</SerialNo>
      <DateTime>2022-05-23T11:14:05.0Z</DateTime>
    </Source>
  </Header>
  <Children>
    <Child>
      <ChildIdentifiers>
        <LAchildID>DfEX0000001</LAchildID>
        <UPN>M201123456780</UPN>
        <PersonBirthDate>2015-06-12</PersonBirthDate>
        <GenderCurrent>1</GenderCurrent>
      </ChildIdentifiers>
      <ChildCharacteristics>
        <Ethnicity>WBRI</Ethnicity>
        <Disabilities>
          <Disability>NONE</Disability>
        </Disabilities>
      </ChildCharacteristics>
      <CINdetails>
        <CINreferralDate>2021-05-10</CINreferralDate>
        <ReferralSource>1A</ReferralSource>
        <PrimaryNeedCode>N4</PrimaryNeedCode>
        <CINclosureDate>2022-02-25</CINclosureDate>
        <ReasonForClosure>RC7</ReasonForClosure>
        <Assessments>
          <AssessmentActualStartDate>2021-05-11</AssessmentActualStartDate>
          <AssessmentAuthorisationDate>2021-06-20</AssessmentAuthorisationDate>
          <FactorsIdentifiedAtAssessment>
            <AssessmentFactors>2B</AssessmentFactors>
            <AssessmentFactors>3A</AssessmentFactors>
          </FactorsIdentifiedAtAssessment>
        </Assessments>
        <CINPlanDates>
          <CINPlanStartDate>2021-06-25</CINPlanStartDate>
          <CINPlanEndDate>2022-01-14</CINPlanEndDate>
        </CINPlanDates>
        <ReferralNFA>false</ReferralNFA>
      </CINdetails>
    </Child>
    <Child>
      <ChildIdentifiers>
        <LAchildID>DfEX0000002</LAchildID>
        <UPN>B201123456781</UPN>
        <PersonBirthDate>2012-11-03</PersonBirthDate>
        <GenderCurrent>2</GenderCurrent>
      </ChildIdentifiers>
      <ChildCharacteristics>
        <Ethnicity>APKN</Ethnicity>
        <Disabilities>
          <Disability>HAND</Disability>
          <Disability>VIS</Disability>
        </Disabilities>
      </ChildCharacteristics>
      <CINdetails>
        <CINreferralDate>2021-09-01</CINreferralDate>
        <ReferralSource>3A</ReferralSource>
        <PrimaryNeedCode>N1</PrimaryNeedCode>
        <Assessments>
          <AssessmentActualStartDate>2021-09-02</AssessmentActualStartDate>
          <AssessmentAuthorisationDate>2021-10-08</AssessmentAuthorisationDate>
          <FactorsIdentifiedAtAssessment>
            <AssessmentFactors>1A</AssessmentFactors>
            <AssessmentFactors>5A</AssessmentFactors>
          </FactorsIdentifiedAtAssessment>
        </Assessments>
        <Section47>
          <S47ActualStartDate>2021-09-03</S47ActualStartDate>
          <InitialCPCtarget>2021-09-24</InitialCPCtarget>
          <DateOfInitialCPC>2021-09-23</DateOfInitialCPC>
          <ICPCnotRequired>false</ICPCnotRequired>
        </Section47>
        <ReferralNFA>false</ReferralNFA>
        <ChildProtectionPlans>
          <CPPstartDate>2021-09-23</CPPstartDate>
          <InitialCategoryOfAbuse>NEG</InitialCategoryOfAbuse>
          <LatestCategoryOfAbuse>NEG</LatestCategoryOfAbuse>
          <NumberOfPreviousCPP>0</NumberOfPreviousCPP>
          <Reviews>
            <CPPreviewDate>2021-12-09</CPPreviewDate>
            <CPPreviewDate>2022-03-03</CPPreviewDate>
          </Reviews>
        </ChildProtectionPlans>
      </CINdetails>
    </Child>
  </Children>
</Message>
"""


@pytest.fixture
def sample_xml() -> bytes:
    return SAMPLE_XML.encode("utf-8")


@pytest.fixture
def sample_snapshot(sample_xml) -> Snapshot:
    return Shredder().shred_bytes(sample_xml, source="sample.xml")


@pytest.fixture
def sample_path(tmp_path, sample_xml):
    path = tmp_path / "cin_2022.xml"
    path.write_bytes(sample_xml)
    return path


@pytest.fixture
def config_2022() -> CensusConfig:
    return make_config(2022)
