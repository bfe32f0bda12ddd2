"""
Episode-level rules: checks on one CINdetails block and everything it holds.

Several rules here look across the modules of an episode (assessments,
enquiries, plans) but report against the episode itself.
"""
from __future__ import annotations

from datetime import date
from typing import Optional

from ...models import (
    Assessment,
    CINDetails,
    CINPlan,
    ChildProtectionPlan,
    RuleLevel,
    Section47,
)
from ..intervals import any_overlap, starts_within
from .base import Rule, RuleContext, after, before, differs, missing_or_not_in, not_in, same

PRIMARY_NEED_CODES = frozenset({"N1", "N2", "N3", "N4", "N5", "N6", "N7", "N8", "N9"})
REFERRAL_SOURCE_CODES = frozenset({
    "1A", "1B", "1C", "1D", "2A", "2B", "3A", "3B", "3C", "3D", "3E", "3F",
    "4", "5A", "5B", "5C", "6", "7", "8", "9", "10",
})
CLOSURE_REASON_CODES = frozenset({"RC1", "RC2", "RC3", "RC4", "RC5", "RC6", "RC7", "RC8"})

# Referral source became mandatory for referrals after this date
REFERRAL_SOURCE_FROM = date(2013, 3, 31)
# Forty weeks, in days
GESTATION_DAYS = 280


# =============================================================================
# Referral
# =============================================================================

def _referral_before_gestation(ctx: RuleContext, e: CINDetails) -> bool:
    child = ctx.child_of(e.id)
    if child is None:
        return False
    return any(
        born is not None and e.referral_date is not None
        and (born - e.referral_date).days > GESTATION_DAYS
        for born in (child.birth_date, child.expected_birth_date)
    )


def _referral_after_death(ctx: RuleContext, e: CINDetails) -> bool:
    child = ctx.child_of(e.id)
    return child is not None and before(child.death_date, e.referral_date)


def _referral_source_invalid(ctx: RuleContext, e: CINDetails) -> bool:
    return after(e.referral_date, REFERRAL_SOURCE_FROM) and missing_or_not_in(
        e.referral_source, REFERRAL_SOURCE_CODES
    )


def _nfa_before_collection(ctx: RuleContext, e: CINDetails) -> bool:
    return e.referral_nfa is True and before(e.referral_date, ctx.previous_working_day)


# =============================================================================
# Closure
# =============================================================================

def _activity_after_closure(ctx: RuleContext, e: CINDetails) -> bool:
    closed = e.closure_date
    if closed is None:
        return False
    snapshot = ctx.snapshot
    if before(closed, e.initial_cpc_date):
        return True
    if any(
        before(closed, a.start_date) or before(closed, a.authorisation_date)
        for a in snapshot.assessments_for(e.id)
    ):
        return True
    if any(
        before(closed, s.initial_cpc_date) or before(closed, s.start_date)
        for s in snapshot.section47s_for(e.id)
    ):
        return True
    if any(
        before(closed, p.start_date) or before(closed, p.end_date)
        for p in snapshot.cin_plans_for(e.id)
    ):
        return True
    return any(before(closed, p.end_date) for p in snapshot.protection_plans_for(e.id))


def _is_open_enquiry(s: Section47) -> bool:
    return s.initial_cpc_date is None and s.icpc_not_required is not True


def _closed_with_open_enquiry(ctx: RuleContext, e: CINDetails) -> bool:
    return e.closure_date is not None and any(
        _is_open_enquiry(s) for s in ctx.snapshot.section47s_for(e.id)
    )


def _closed_with_open_assessment(ctx: RuleContext, e: CINDetails) -> bool:
    return e.closure_date is not None and any(
        not a.is_authorised for a in ctx.snapshot.assessments_for(e.id)
    )


def _died_without_death_date(ctx: RuleContext, e: CINDetails) -> bool:
    child = ctx.child_of(e.id)
    return e.closure_reason == "RC2" and child is not None and child.death_date is None


def _activity_after_assessment_closure(ctx: RuleContext, e: CINDetails) -> bool:
    if e.closure_reason != "RC8":
        return False
    snapshot = ctx.snapshot
    return bool(
        snapshot.section47s_for(e.id)
        or snapshot.cin_plans_for(e.id)
        or snapshot.protection_plans_for(e.id)
        or e.initial_cpc_date is not None
    )


# =============================================================================
# No further action
# =============================================================================

def _activity_on_nfa(ctx: RuleContext, e: CINDetails) -> bool:
    if e.referral_nfa is not True:
        return False
    snapshot = ctx.snapshot
    return (
        any(
            a.start_date is not None or a.authorisation_date is not None
            for a in snapshot.assessments_for(e.id)
        )
        or any(
            s.initial_cpc_date is not None or s.start_date is not None
            for s in snapshot.section47s_for(e.id)
        )
        or e.initial_cpc_date is not None
    )


# =============================================================================
# Enquiries and assessments within the episode
# =============================================================================

def _several_open_enquiries(ctx: RuleContext, e: CINDetails) -> bool:
    return sum(1 for s in ctx.snapshot.section47s_for(e.id) if _is_open_enquiry(s)) > 1


def _enquiries_overlap(ctx: RuleContext, e: CINDetails) -> bool:
    def overlaps(a: Section47, b: Section47) -> bool:
        open_end = ctx.end if b.icpc_not_required is False else None
        return starts_within(a.start_date, b.start_date, b.initial_cpc_date, open_end)

    return any_overlap(ctx.snapshot.section47s_for(e.id), overlaps)


def _several_open_assessments(ctx: RuleContext, e: CINDetails) -> bool:
    return sum(1 for a in ctx.snapshot.assessments_for(e.id) if not a.is_authorised) > 1


def _assessments_overlap(ctx: RuleContext, e: CINDetails) -> bool:
    def overlaps(a: Assessment, b: Assessment) -> bool:
        return starts_within(a.start_date, b.start_date, b.authorisation_date, ctx.end)

    return any_overlap(ctx.snapshot.assessments_for(e.id), overlaps)


def _single_no_factor_assessment_without_rc8(ctx: RuleContext, e: CINDetails) -> bool:
    # One row per (assessment, factor), or per assessment without factors
    rows = 0
    factor_21 = 0
    for a in ctx.snapshot.assessments_for(e.id):
        factors = ctx.snapshot.factors_for(a.id)
        rows += max(1, len(factors))
        factor_21 += sum(1 for f in factors if f.code == "21")
    return rows == 1 and factor_21 > 0 and differs(e.closure_reason, "RC8")


def _enquiry_without_assessment(ctx: RuleContext, e: CINDetails) -> bool:
    # The assessment test is not tied to this episode: it holds only when the
    # whole return has no assessments.
    return bool(ctx.snapshot.section47s_for(e.id)) and not ctx.snapshot.assessments


def _conference_recorded_twice(ctx: RuleContext, e: CINDetails) -> bool:
    return any(
        same(e.initial_cpc_date, s.initial_cpc_date)
        for s in ctx.snapshot.section47s_for(e.id)
    )


# =============================================================================
# Plans within the episode
# =============================================================================

def _plan_within(
    start: Optional[date],
    other_start: Optional[date],
    other_end: Optional[date],
    ctx: RuleContext,
) -> bool:
    return starts_within(start, other_start, other_end, ctx.end, inclusive_open_end=True)


def _open_plans_concurrent(ctx: RuleContext, e: CINDetails) -> bool:
    snapshot = ctx.snapshot
    return any(p.end_date is None for p in snapshot.cin_plans_for(e.id)) and any(
        p.end_date is None for p in snapshot.protection_plans_for(e.id)
    )


def _review_during_cin_plan(ctx: RuleContext, e: CINDetails) -> bool:
    snapshot = ctx.snapshot
    review_dates = [
        r.review_date
        for cpp in snapshot.protection_plans_for(e.id)
        for r in snapshot.reviews_for(cpp.id)
    ]
    return any(
        after(reviewed, plan.start_date) and before(reviewed, plan.end_date)
        for plan in snapshot.cin_plans_for(e.id)
        for reviewed in review_dates
    )


def _several_open_cin_plans(ctx: RuleContext, e: CINDetails) -> bool:
    return sum(1 for p in ctx.snapshot.cin_plans_for(e.id) if p.end_date is None) > 1


def _cin_plans_overlap(ctx: RuleContext, e: CINDetails) -> bool:
    def overlaps(a: CINPlan, b: CINPlan) -> bool:
        return _plan_within(a.start_date, b.start_date, b.end_date, ctx)

    return any_overlap(ctx.snapshot.cin_plans_for(e.id), overlaps)


def _cin_plan_starts_in_protection_plan(ctx: RuleContext, e: CINDetails) -> bool:
    snapshot = ctx.snapshot
    return any(
        _plan_within(plan.start_date, cpp.start_date, cpp.end_date, ctx)
        for plan in snapshot.cin_plans_for(e.id)
        for cpp in snapshot.protection_plans_for(e.id)
    )


def _protection_plan_starts_in_cin_plan(ctx: RuleContext, e: CINDetails) -> bool:
    snapshot = ctx.snapshot
    return any(
        _plan_within(cpp.start_date, plan.start_date, plan.end_date, ctx)
        for plan in snapshot.cin_plans_for(e.id)
        for cpp in snapshot.protection_plans_for(e.id)
    )


def _several_open_protection_plans(ctx: RuleContext, e: CINDetails) -> bool:
    return sum(1 for p in ctx.snapshot.protection_plans_for(e.id) if p.end_date is None) > 1


def _protection_plans_overlap(ctx: RuleContext, e: CINDetails) -> bool:
    def overlaps(a: ChildProtectionPlan, b: ChildProtectionPlan) -> bool:
        return _plan_within(a.start_date, b.start_date, b.end_date, ctx)

    return any_overlap(ctx.snapshot.protection_plans_for(e.id), overlaps)


EPISODE = RuleLevel.EPISODE

EPISODE_RULES = (
    Rule("8606", "Child referral date is more than 40 weeks before DOB or expected DOB",
         EPISODE, _referral_before_gestation),
    Rule("8555", "Child cannot be referred after its recorded date of death",
         EPISODE, _referral_after_death),
    Rule("8610", "Primary Need code is missing for a referral which led to further action",
         EPISODE, lambda ctx, e: e.referral_nfa is False and e.primary_need_code is None),
    Rule("8650", "Primary Need Code invalid (see Primary Need table in CIN census code set)",
         EPISODE, lambda ctx, e: not_in(e.primary_need_code, PRIMARY_NEED_CODES)),
    Rule("8866", "Source of Referral is missing or an invalid code",
         EPISODE, _referral_source_invalid),
    Rule("8569", "A case with referral date before one working day prior to the collection start date must not be flagged as a no further action case",
         EPISODE, _nfa_before_collection),
    Rule("8620", "CIN Closure Date present and does not fall within the Census year",
         EPISODE, lambda ctx, e: ctx.window.outside(e.closure_date)),
    Rule("8630", "CIN Closure Date is before CIN Referral Date for the same CIN episode",
         EPISODE, lambda ctx, e: before(e.closure_date, e.referral_date)),
    Rule("8640", "CIN Reason for closure code invalid (see Reason for Closure table in CIN Census code set)",
         EPISODE, lambda ctx, e: not_in(e.closure_reason, CLOSURE_REASON_CODES)),
    Rule("8805", "A CIN case cannot have a CIN closure date without a Reason for Closure",
         EPISODE, lambda ctx, e: e.closure_date is not None and e.closure_reason is None),
    Rule("8565", "Activity shown after a case has been closed",
         EPISODE, _activity_after_closure),
    Rule("8868", "CIN episode is shown as closed, however Section 47 enquiry is not shown as completed by ICPC date or ICPC not required flag",
         EPISODE, _closed_with_open_enquiry),
    Rule("8867", "CIN episode is shown as closed, however Assessment is not shown as completed",
         EPISODE, _closed_with_open_assessment),
    Rule("8810", "A CIN case cannot have a Reason for Closure without a CIN Closure Date",
         EPISODE, lambda ctx, e: e.closure_date is None and e.closure_reason is not None),
    Rule("8825Q", "Reason for Closure code RC8 (case closed after assessment) has been returned but there is no assessment present for the episode.",
         EPISODE, lambda ctx, e: e.closure_reason == "RC8" and not ctx.snapshot.assessments_for(e.id)),
    Rule("8585Q", "Please check: CIN episode shows Died as the Closure Reason, however child has no recorded Date of Death",
         EPISODE, _died_without_death_date),
    Rule("2990", "Activity is recorded against a case marked as 'Case closed after assessment, no further action'",
         EPISODE, _activity_after_assessment_closure),
    Rule("8568", "RNFA flag is missing or invalid",
         EPISODE, lambda ctx, e: e.referral_nfa is None),
    Rule("8831", "Activity is recorded against a case marked as a referral with no further action",
         EPISODE, _activity_on_nfa),
    Rule("8839", "Within one CINDetails group there are 2 or more open S47 Assessments",
         EPISODE, _several_open_enquiries),
    Rule("8890", "A Section 47 enquiry is shown as starting when there is another Section 47 Enquiry ongoing",
         EPISODE, _enquiries_overlap),
    Rule("8896", "Within one CINDetails group there are 2 or more open Assessments groups",
         EPISODE, _several_open_assessments),
    Rule("8863", "An Assessment is shown as starting when there is another Assessment ongoing",
         EPISODE, _assessments_overlap),
    Rule("8873", "When there is only one assessment on the episode and the factors code \"21 No factors identified\" has been used for the completed assessment, the reason for closure 'RC8' must be used.",
         EPISODE, _single_no_factor_assessment_without_rc8),
    Rule("4000", "CIN Plan details provided for a referral with no further action",
         EPISODE, lambda ctx, e: e.referral_nfa is True and bool(ctx.snapshot.cin_plans_for(e.id))),
    Rule("4001", "A CIN Plan cannot run concurrently with a Child Protection Plan",
         EPISODE, _open_plans_concurrent),
    Rule("4003", "A CPP review date is shown as being held at the same time as an open CIN Plan",
         EPISODE, _review_during_cin_plan),
    Rule("4004", "This child is showing more than one open CIN Plan, i.e. with no End Date",
         EPISODE, _several_open_cin_plans),
    Rule("4014", "CIN Plan data contains overlapping dates",
         EPISODE, _cin_plans_overlap),
    Rule("4016", "A CIN Plan has been reported as open at the same time as a Child Protection Plan.",
         EPISODE, _cin_plan_starts_in_protection_plan),
    Rule("4017", "A CIN Plan has been reported as open at the same time as a Child Protection Plan.",
         EPISODE, _protection_plan_starts_in_cin_plan),
    Rule("2884", "An initial child protection conference is recorded at both the S47 and CIN Details level and it should only be recorded in one",
         EPISODE, _conference_recorded_twice),
    Rule("2991Q", "Please check: A Section 47 module is recorded and there is no assessment on the episode",
         EPISODE, _enquiry_without_assessment),
    Rule("8832", "Child Protection details provided for a referral with no further action",
         EPISODE, lambda ctx, e: e.referral_nfa is True and bool(ctx.snapshot.protection_plans_for(e.id))),
    Rule("8935", "This child is showing more than one open Child Protection plan, i.e. with no End Date",
         EPISODE, _several_open_protection_plans),
    Rule("8940", "Child Protection Plan data contains overlapping dates",
         EPISODE, _protection_plans_overlap),
)
