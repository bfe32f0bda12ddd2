"""CIN plan rules: plan dates against the census year, the referral and the child's death."""
from __future__ import annotations

from ...models import CINPlan, RuleLevel
from .base import Rule, RuleContext, after, before, same


def _starts_after_death(ctx: RuleContext, p: CINPlan) -> bool:
    child = ctx.child_of(p.cin_details_id)
    return child is not None and after(p.start_date, child.death_date)


def _ends_after_death(ctx: RuleContext, p: CINPlan) -> bool:
    child = ctx.child_of(p.cin_details_id)
    if child is None or child.death_date is None:
        return False
    return p.end_date is None or p.end_date > child.death_date


def _starts_before_referral(ctx: RuleContext, p: CINPlan) -> bool:
    episode = ctx.snapshot.episode(p.cin_details_id)
    return episode is not None and before(p.start_date, episode.referral_date)


CIN_PLAN = RuleLevel.CIN_PLAN

CIN_PLAN_RULES = (
    Rule("4008", "CIN Plan shown as starting after the child’s Date of Death",
         CIN_PLAN, _starts_after_death),
    Rule("4009", "CIN Plan cannot end after the child’s Date of Death",
         CIN_PLAN, _ends_after_death),
    Rule("4010", "CIN Plan start date is missing or out of data collection period",
         CIN_PLAN, lambda ctx, p: p.start_date is None or p.start_date > ctx.end),
    Rule("4011", "CIN Plan End Date earlier than Start Date",
         CIN_PLAN, lambda ctx, p: before(p.end_date, p.start_date)),
    Rule("4012Q", "CIN Plan shown as starting and ending on the same day – please check",
         CIN_PLAN, lambda ctx, p: same(p.end_date, p.start_date)),
    Rule("4013", "CIN Plan end date must fall within the census year",
         CIN_PLAN, lambda ctx, p: ctx.window.outside(p.end_date)),
    Rule("4015", "The CIN Plan start date cannot be before the referral date",
         CIN_PLAN, _starts_before_referral),
)
