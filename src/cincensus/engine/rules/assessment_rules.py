"""Assessment-level rules: dates, completion and factors identified at assessment."""
from __future__ import annotations

from ...models import Assessment, RuleLevel
from .base import Rule, RuleContext, after, before, differs, on_or_after

FACTOR_CODES = frozenset({
    "1A", "1B", "1C", "2A", "2B", "2C", "3A", "3B", "3C", "4A", "4B", "4C",
    "5A", "5B", "5C", "6A", "6B", "6C", "7A", "8B", "8C", "8D", "8E", "8F",
    "9A", "10A", "11A", "12A", "13A", "14A", "15A", "16A", "17A", "18B", "18C",
    "19B", "19C", "20", "21", "22A", "23A", "24A",
})
DISABILITY_FACTORS = frozenset({"5A", "6A"})
NO_FACTORS = "21"


def _factor_codes(ctx: RuleContext, a: Assessment) -> list:
    return [f.code for f in ctx.snapshot.factors_for(a.id)]


def _start_before_referral(ctx: RuleContext, a: Assessment) -> bool:
    episode = ctx.snapshot.episode(a.cin_details_id)
    return episode is not None and before(a.start_date, episode.referral_date)


def _overdue(ctx: RuleContext, a: Assessment) -> bool:
    return not a.is_authorised and before(a.start_date, ctx.assessment_threshold)


def _completed_without_factors(ctx: RuleContext, a: Assessment) -> bool:
    return on_or_after(a.authorisation_date, ctx.start) and not any(
        code in FACTOR_CODES for code in _factor_codes(ctx, a)
    )


def _factors_before_completion(ctx: RuleContext, a: Assessment) -> bool:
    return not a.is_authorised and bool(ctx.snapshot.factors_for(a.id))


def _duplicate_factor(ctx: RuleContext, a: Assessment) -> bool:
    codes = [code for code in _factor_codes(ctx, a) if code is not None]
    return len(set(codes)) < len(codes)


def _disabled_child_without_disability_factor(ctx: RuleContext, a: Assessment) -> bool:
    if not on_or_after(a.authorisation_date, ctx.start):
        return False
    child = ctx.child_of(a.cin_details_id)
    if child is None:
        return False
    disabled = any(differs(d.code, "NONE") for d in ctx.snapshot.disabilities_for(child.id))
    return disabled and not any(code in DISABILITY_FACTORS for code in _factor_codes(ctx, a))


def _no_factors_combined(ctx: RuleContext, a: Assessment) -> bool:
    codes = _factor_codes(ctx, a)
    return NO_FACTORS in codes and any(differs(code, NO_FACTORS) for code in codes)


ASSESSMENT = RuleLevel.ASSESSMENT

ASSESSMENT_RULES = (
    Rule("1103", "The assessment start date cannot be before the referral date",
         ASSESSMENT, _start_before_referral),
    Rule("8608", "Assessment Start Date cannot be later than its End Date",
         ASSESSMENT, lambda ctx, a: after(a.start_date, a.authorisation_date)),
    Rule("8670Q", "Please check: Assessment started more than 45 working days before the end of the census year.  However, there is no Assessment end date.",
         ASSESSMENT, _overdue),
    Rule("8897", "Parental or child factors at assessment information is missing from a completed assessment",
         ASSESSMENT, _completed_without_factors),
    Rule("8614", "Parental or child factors at assessment should only be present for a completed assessment.",
         ASSESSMENT, _factors_before_completion),
    Rule("8696", "Assessment end date must fall within the census year",
         ASSESSMENT, lambda ctx, a: ctx.window.outside(a.authorisation_date)),
    Rule("8736", "For an Assessment that has not been completed, the start date must fall within the census year",
         ASSESSMENT, lambda ctx, a: not a.is_authorised and ctx.window.outside(a.start_date)),
    Rule("8898", "The assessment has more than one parental or child factors with the same code",
         ASSESSMENT, _duplicate_factor),
    Rule("8899Q", "Please check: A child identified as having a disability does not have a disability factor recorded at the end of assessment.",
         ASSESSMENT, _disabled_child_without_disability_factor),
    Rule("8869", "The assessment factors code \"21\" cannot be used in conjunction with any other assessment factors.",
         ASSESSMENT, _no_factors_combined),
    Rule("8617", "Code 8A has been returned. This code is not a valid code.",
         ASSESSMENT, lambda ctx, a: "8A" in _factor_codes(ctx, a)),
)
