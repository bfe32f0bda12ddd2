"""Child-level rules: identifiers, characteristics and episode structure per child."""
from __future__ import annotations

from datetime import timedelta

from ...models import CINDetails, Child, RuleLevel
from ..intervals import any_overlap, starts_within
from ..upn import has_numeric_middle, has_recognised_la_code, has_valid_final, is_valid_upn
from .base import (
    Rule,
    RuleContext,
    add_months,
    add_years,
    after,
    before,
    differs,
    missing_or_not_in,
    not_in,
    on_or_before,
)

ETHNICITY_CODES = frozenset({
    "ABAN", "AIND", "AOTH", "APKN", "BAFR", "BCRB", "BOTH", "CHNE", "MOTH", "MWAS",
    "MWBA", "MWBC", "NOBT", "OOTH", "REFU", "WBRI", "WIRI", "WIRT", "WOTH", "WROM",
})
DISABILITY_CODES = frozenset({
    "AUT", "BEH", "COMM", "CON", "DDA", "HAND", "HEAR", "INC", "LD", "MOB", "PC", "VIS", "NONE",
})
GENDER_CODES = frozenset({0, 1, 2, 9})
# UN1 (child not yet born) and UN7 (NFA referral) do not excuse a missing UPN
UPN_UNKNOWN_EXCUSED = frozenset({"UN2", "UN3", "UN4", "UN5", "UN6"})


# =============================================================================
# Identifiers
# =============================================================================

def _duplicate_la_child_id(ctx: RuleContext, child: Child) -> bool:
    return child.la_child_id is not None and ctx.la_child_id_counts[child.la_child_id] > 1


def _duplicate_upn(ctx: RuleContext, child: Child) -> bool:
    return child.upn is not None and ctx.upn_counts[child.upn] > 1


def _upn_missing_over_five(ctx: RuleContext, child: Child) -> bool:
    if child.birth_date is None or child.upn is not None:
        return False
    if child.upn_unknown in UPN_UNKNOWN_EXCUSED:
        return False
    if not on_or_before(add_years(child.birth_date, 6), ctx.end):
        return False
    return any(e.referral_nfa is False for e in ctx.snapshot.episodes_for(child.id))


def _un7_with_further_action(ctx: RuleContext, child: Child) -> bool:
    return child.upn_unknown == "UN7" and any(
        e.referral_nfa is not True for e in ctx.snapshot.episodes_for(child.id)
    )


# =============================================================================
# Dates of birth and death
# =============================================================================

def _over_twenty_five(ctx: RuleContext, child: Child) -> bool:
    if child.birth_date is None:
        return False
    twenty_fifth = add_years(child.birth_date, 25)
    if not before(twenty_fifth, ctx.end):
        return False
    return any(
        e.closure_date is None or before(twenty_fifth, e.closure_date)
        for e in ctx.snapshot.episodes_for(child.id)
    )


def _birth_dates_not_exclusive(ctx: RuleContext, child: Child) -> bool:
    return (child.birth_date is None) == (child.expected_birth_date is None)


def _expected_birth_out_of_range(ctx: RuleContext, child: Child) -> bool:
    return (
        before(child.expected_birth_date, ctx.end - timedelta(days=30))
        or after(child.expected_birth_date, add_months(ctx.end, 9))
    )


def _death_before_birth(ctx: RuleContext, child: Child) -> bool:
    return before(child.death_date, child.birth_date) or (
        child.death_date is not None and child.birth_date is None
    )


# =============================================================================
# Disabilities
# =============================================================================

def _disability_missing_or_invalid(ctx: RuleContext, child: Child) -> bool:
    if child.birth_date is None:
        return False
    if not any(e.referral_nfa is False for e in ctx.snapshot.episodes_for(child.id)):
        return False
    disabilities = ctx.snapshot.disabilities_for(child.id)
    return not disabilities or any(not_in(d.code, DISABILITY_CODES) for d in disabilities)


def _none_with_other_disabilities(ctx: RuleContext, child: Child) -> bool:
    if child.birth_date is None:
        return False
    codes = [d.code for d in ctx.snapshot.disabilities_for(child.id)]
    return "NONE" in codes and any(differs(code, "NONE") for code in codes)


def _duplicate_disability(ctx: RuleContext, child: Child) -> bool:
    codes = [d.code for d in ctx.snapshot.disabilities_for(child.id) if d.code is not None]
    return len(set(codes)) < len(codes)


# =============================================================================
# Episode structure
# =============================================================================

def _is_open_further_action(episode: CINDetails) -> bool:
    return episode.closure_date is None and episode.referral_nfa is not True


def _several_open_episodes(ctx: RuleContext, child: Child) -> bool:
    episodes = ctx.snapshot.episodes_for(child.id)
    return sum(1 for e in episodes if _is_open_further_action(e)) > 1


def _open_episode_not_latest(ctx: RuleContext, child: Child) -> bool:
    episodes = ctx.snapshot.episodes_for(child.id)
    return any(
        after(b.referral_date, a.referral_date)
        for a in episodes
        if a.closure_date is None and a.referral_nfa is False
        for b in episodes
    )


def _episodes_overlap(ctx: RuleContext, child: Child) -> bool:
    def overlaps(a: CINDetails, b: CINDetails) -> bool:
        open_end = ctx.end if b.referral_nfa is False else None
        return starts_within(a.referral_date, b.referral_date, b.closure_date, open_end)

    return any_overlap(ctx.snapshot.episodes_for(child.id), overlaps)


CHILD_RULES = (
    Rule("8500", "LA Child ID missing",
         RuleLevel.CHILD, lambda ctx, c: c.la_child_id is None),
    Rule("8510", "More than one child record with the same LA Child ID",
         RuleLevel.CHILD, _duplicate_la_child_id),
    Rule("1510", "UPN invalid (wrong check letter at character 1)",
         RuleLevel.CHILD, lambda ctx, c: c.upn is not None and not is_valid_upn(c.upn)),
    # The check letter is computed on FormerUPN itself, not on UPN
    Rule("1560Q", "Please check:  Former UPN wrongly formatted",
         RuleLevel.CHILD, lambda ctx, c: c.former_upn is not None and not is_valid_upn(c.former_upn)),
    Rule("1520", "More than one record with the same UPN",
         RuleLevel.CHILD, _duplicate_upn),
    Rule("1530", "UPN invalid (characters 2-4 not a recognised LA code)",
         RuleLevel.CHILD, lambda ctx, c: c.upn is not None and not has_recognised_la_code(c.upn)),
    Rule("1540", "UPN invalid (characters 5-12 not all numeric)",
         RuleLevel.CHILD, lambda ctx, c: c.upn is not None and not has_numeric_middle(c.upn)),
    Rule("1550", "UPN invalid (character 13 not a recognised value)",
         RuleLevel.CHILD, lambda ctx, c: c.upn is not None and not has_valid_final(c.upn)),
    Rule("8520", "Date of Birth is after data collection period (must be on or before the end of the census period)",
         RuleLevel.CHILD, lambda ctx, c: after(c.birth_date, ctx.end)),
    Rule("8770Q", "Please check: UPN or reason UPN missing expected for a child who is more than 5 years old",
         RuleLevel.CHILD, _upn_missing_over_five),
    Rule("8772", "UPN unknown reason is UN7 (Referral with no further action) but at least one CIN details is a referral going on to further action",
         RuleLevel.CHILD, _un7_with_further_action),
    Rule("8775Q", "Please check:  Child is over 25 years old",
         RuleLevel.CHILD, _over_twenty_five),
    Rule("8525", "Either Date of Birth or Expected Date of Birth must be provided (but not both)",
         RuleLevel.CHILD, _birth_dates_not_exclusive),
    Rule("8530Q", "Please check:  Expected Date of Birth is outside the expected range for this census (March to December of the Census Year end)",
         RuleLevel.CHILD, _expected_birth_out_of_range),
    Rule("4180", "Gender is missing",
         RuleLevel.CHILD, lambda ctx, c: missing_or_not_in(c.gender, GENDER_CODES)),
    Rule("8750", "Gender must equal 0 for an unborn child",
         RuleLevel.CHILD, lambda ctx, c: c.expected_birth_date is not None and differs(c.gender, 0)),
    Rule("8535Q", "Please check: Child’s date of death should not be prior to the date of birth",
         RuleLevel.CHILD, _death_before_birth),
    Rule("8545Q", "Please check: Child’s date of death should be within the census year",
         RuleLevel.CHILD, lambda ctx, c: ctx.window.outside(c.death_date)),
    Rule("4220", "Ethnicity is missing or invalid (see Ethnicity table)",
         RuleLevel.CHILD, lambda ctx, c: missing_or_not_in(c.ethnicity, ETHNICITY_CODES)),
    Rule("8540", "Child’s disability is missing or invalid (see Disability table)",
         RuleLevel.CHILD, _disability_missing_or_invalid),
    Rule("8790", "Disability information includes both None and other values",
         RuleLevel.CHILD, _none_with_other_disabilities),
    Rule("8794", "Child has two or more disabilities with the same code",
         RuleLevel.CHILD, _duplicate_disability),
    Rule("8590", "Child does not have a recorded CIN episode.",
         RuleLevel.CHILD, lambda ctx, c: not ctx.snapshot.episodes_for(c.id)),
    Rule("8815", "More than one open CIN Details episode (a module with no CIN Closure Date) has been provided for this child and case is not a referral with no further action.",
         RuleLevel.CHILD, _several_open_episodes),
    Rule("8816", "An open CIN episode is shown and case is not a referral with no further action, but it is not the latest episode.",
         RuleLevel.CHILD, _open_episode_not_latest),
    Rule("8820", "The dates on the CIN episodes for this child overlap",
         RuleLevel.CHILD, _episodes_overlap),
)
