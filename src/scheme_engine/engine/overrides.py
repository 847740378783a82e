"""
Manual benefit overrides.

A sales manager may replace the computed benefit of a scheme with a fixed amount or
a fixed number of free units. Overrides only affect schemes that passed eligibility
and are still subject to ``max_benefit`` and to conflict resolution.
"""

from collections.abc import Sequence
from decimal import Decimal

from ..shared.models import (
    BenefitType,
    Candidate,
    CartLineItem,
    SchemeBase,
    SchemeOverride,
    SchemeType,
)
from ..shared.money import quantize_money
from .evaluators import free_good_for, total_quantity


def apply_override(
    scheme: SchemeBase,
    lines: Sequence[CartLineItem],
    candidate: Candidate | None,
    override: SchemeOverride,
) -> Candidate | None:
    """
    Replace a scheme's computed benefit with the override's value.

    Free-quantity schemes take ``free_quantity`` (capped at the purchased quantity for
    buy-X-get-Y); every other benefit type takes ``discount_amount``. A missing value
    counts as zero, which withdraws the benefit.

    Args:
        scheme: Eligible scheme the override targets
        lines: Cart lines the scheme is computed over
        candidate: Benefit computed by the evaluator (None if it granted nothing)
        override: Manual override

    Returns:
        Overridden candidate, or None if the override grants nothing
    """
    free_goods = ()
    if scheme.benefit_type == BenefitType.FREE_QTY:
        units = override.free_quantity or 0
        if scheme.scheme_type == SchemeType.BUY_X_GET_Y:
            # Never more free units than were bought
            units = min(units, total_quantity(lines))
        if units <= 0:
            return None
        good, monetary_value = free_good_for(scheme, lines, units)
        value = Decimal(units)
        free_goods = (good,)
    else:
        value = quantize_money(override.discount_amount or 0)
        if value <= 0:
            return None
        monetary_value = value

    if candidate is not None:
        consumed = candidate.consumed_line_ids
        rule = candidate.rule
    else:
        if scheme.scheme_type == SchemeType.DISPLAY:
            consumed = ()
        else:
            consumed = tuple(line.line_id for line in lines)
        rule = "manual override"

    return Candidate(
        scheme_id=scheme.id,
        scheme_name=scheme.name,
        scheme_code=scheme.code,
        scheme_type=scheme.scheme_type,
        kind=scheme.benefit_type,
        value=value,
        monetary_value=monetary_value,
        consumed_line_ids=consumed,
        free_goods=free_goods,
        rule=rule,
        description=f"[Overridden] {override.reason}",
        overridden=True,
        override_reason=override.reason,
    )
