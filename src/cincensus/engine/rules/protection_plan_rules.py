"""Child protection plan rules: categories of abuse, plan dates and reviews."""
from __future__ import annotations

from ...models import ChildProtectionPlan, RuleLevel
from .base import Rule, RuleContext, after, before, differs, missing_or_not_in, on_or_before, same

ABUSE_CATEGORIES = frozenset({"NEG", "PHY", "SAB", "EMO", "MUL"})


def _starts_after_death(ctx: RuleContext, p: ChildProtectionPlan) -> bool:
    child = ctx.child_of(p.cin_details_id)
    return child is not None and after(p.start_date, child.death_date)


def _ends_after_death(ctx: RuleContext, p: ChildProtectionPlan) -> bool:
    child = ctx.child_of(p.cin_details_id)
    if child is None or child.death_date is None:
        return False
    return p.end_date is None or p.end_date > child.death_date


def _review_not_after_start(ctx: RuleContext, p: ChildProtectionPlan) -> bool:
    return any(
        on_or_before(r.review_date, p.start_date) for r in ctx.snapshot.reviews_for(p.id)
    )


def _start_differs_from_conference(ctx: RuleContext, p: ChildProtectionPlan) -> bool:
    if not ctx.window.contains(p.start_date):
        return False
    episode = ctx.snapshot.episode(p.cin_details_id)
    if episode is None:
        return False
    if not (episode.initial_cpc_date is None or differs(episode.initial_cpc_date, p.start_date)):
        return False
    return not any(
        same(s.initial_cpc_date, p.start_date)
        for s in ctx.snapshot.section47s_for(episode.id)
    )


def _starts_before_referral(ctx: RuleContext, p: ChildProtectionPlan) -> bool:
    episode = ctx.snapshot.episode(p.cin_details_id)
    return episode is not None and before(p.start_date, episode.referral_date)


PROTECTION_PLAN = RuleLevel.PROTECTION_PLAN

PROTECTION_PLAN_RULES = (
    Rule("8905", "Initial Category of Abuse code missing or invalid (see Category of Abuse table in CIN Census code set)",
         PROTECTION_PLAN, lambda ctx, p: missing_or_not_in(p.initial_category, ABUSE_CATEGORIES)),
    Rule("8910", "Latest Category of Abuse code missing or invalid (see Category of Abuse table in CIN Census code set)",
         PROTECTION_PLAN, lambda ctx, p: missing_or_not_in(p.latest_category, ABUSE_CATEGORIES)),
    Rule("8720", "Child Protection Plan Start Date missing or out of data collection period",
         PROTECTION_PLAN, lambda ctx, p: p.start_date is None or p.start_date > ctx.end),
    Rule("8915", "Child Protection Plan shown as starting after the child’s Date of Death",
         PROTECTION_PLAN, _starts_after_death),
    Rule("8920", "Child Protection Plan cannot end after the child’s Date of Death",
         PROTECTION_PLAN, _ends_after_death),
    Rule("8925", "Child Protection Plan End Date earlier than Start Date",
         PROTECTION_PLAN, lambda ctx, p: before(p.end_date, p.start_date)),
    Rule("8930", "Child Protection Plan End Date must fall within the census year",
         PROTECTION_PLAN, lambda ctx, p: ctx.window.outside(p.end_date)),
    Rule("8840", "Child Protection Plan cannot start and end on the same day",
         PROTECTION_PLAN, lambda ctx, p: same(p.end_date, p.start_date)),
    Rule("8841", "The review date cannot be on the same day or before the Child protection Plan start date.",
         PROTECTION_PLAN, _review_not_after_start),
    Rule("2885", "Child protection plan shown as starting a different day to the initial child protection conference",
         PROTECTION_PLAN, _start_differs_from_conference),
    Rule("1105", "The child protection plan start date cannot be before the referral date",
         PROTECTION_PLAN, _starts_before_referral),
)
