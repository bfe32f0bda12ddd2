"""Section 47 enquiry rules: enquiry start, conference target and conference dates."""
from __future__ import annotations

from ...models import RuleLevel, Section47
from .base import Rule, RuleContext, after, before


def _before_referral(ctx: RuleContext, s: Section47, field: str) -> bool:
    episode = ctx.snapshot.episode(s.cin_details_id)
    return episode is not None and before(getattr(s, field), episode.referral_date)


def _start_missing_or_after_conference(ctx: RuleContext, s: Section47) -> bool:
    if s.initial_cpc_date is None:
        return False
    return s.start_date is None or after(s.start_date, s.initial_cpc_date)


def _awaiting_conference(s: Section47) -> bool:
    return s.initial_cpc_date is None and s.icpc_not_required is False


def _falls_on_weekend(ctx: RuleContext, d) -> bool:
    return d is not None and ctx.calendar.is_weekend(d)


SECTION47 = RuleLevel.SECTION47

SECTION47_RULES = (
    Rule("1104", "The date of the initial child protection conference cannot be before the referral date",
         SECTION47, lambda ctx, s: _before_referral(ctx, s, "initial_cpc_date")),
    Rule("8615", "Section 47 Enquiry Start Date must be present and cannot be later than the date of the initial Child Protection Conference",
         SECTION47, _start_missing_or_after_conference),
    Rule("2889", "The S47 start date cannot be before the referral date.",
         SECTION47, lambda ctx, s: _before_referral(ctx, s, "start_date")),
    Rule("8740", "For a Section 47 Enquiry that has not held the Initial Child Protection Conference by the end of the census year, the start date must fall within the census year",
         SECTION47, lambda ctx, s: _awaiting_conference(s) and ctx.window.outside(s.start_date)),
    Rule("8675Q", "Please check: S47 Enquiry started more than 15 working days before the end of the census year. However, there is no date of Initial Child Protection Conference.",
         SECTION47, lambda ctx, s: _awaiting_conference(s) and before(s.start_date, ctx.enquiry_threshold)),
    Rule("8870Q", "Please check: The Target Date for Initial Child Protection Conference should not be a weekend",
         SECTION47, lambda ctx, s: _falls_on_weekend(ctx, s.initial_cpc_target)),
    Rule("8715", "Date of Initial Child Protection Conference must fall within the census year",
         SECTION47, lambda ctx, s: ctx.window.outside(s.initial_cpc_date)),
    Rule("8875", "The Date of Initial Child Protection Conference cannot be a weekend",
         SECTION47, lambda ctx, s: _falls_on_weekend(ctx, s.initial_cpc_date)),
)
