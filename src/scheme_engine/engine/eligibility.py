"""
Eligibility filter.

Narrows the active scheme list to those an outlet may claim on a given cart. Every
failed rule excludes the scheme silently (the reason is kept as a diagnostic for
audit) and filtering never raises.
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from ..shared.models import (
    Applicability,
    CartLineItem,
    EvaluationContext,
    ExclusionReason,
    SchemeBase,
    SchemeDiagnostic,
    SchemeStatus,
    SchemeType,
)
from ..shared.money import sum_money
from .validation import configuration_problems

logger = logging.getLogger(__name__)

OUTLET_TYPE_SCOPES = frozenset({Applicability.DISTRIBUTOR, Applicability.RETAILER})
ATTRIBUTE_SCOPES = frozenset(
    {Applicability.SEGMENT, Applicability.AREA, Applicability.ZONE}
)


@dataclass(slots=True)
class EligibilityOutcome:
    """Schemes that passed every rule, plus the reasons the others did not."""

    eligible: list[SchemeBase] = field(default_factory=list)
    excluded: list[SchemeDiagnostic] = field(default_factory=list)


def lines_for_scheme(
    scheme: SchemeBase, cart: Sequence[CartLineItem]
) -> list[CartLineItem]:
    """Cart lines a scheme is computed over (bill-wise schemes use the whole cart)."""
    if scheme.scheme_type == SchemeType.BILL_WISE:
        return list(cart)
    return [line for line in cart if scheme.applies_to_product(line.product_id, line.sku)]


def subtotal(lines: Sequence[CartLineItem]) -> Decimal:
    return sum_money(line.line_total for line in lines)


def applicability_mismatch(
    scheme: SchemeBase, context: EvaluationContext
) -> str | None:
    """Return why the outlet is out of scope for the scheme, or None if it matches."""
    applicability = scheme.applicability

    if applicability == Applicability.ALL_OUTLETS:
        return None

    if applicability in OUTLET_TYPE_SCOPES:
        if applicability.value != context.outlet_type.value:
            return (
                f"scheme is for {applicability.value} outlets, "
                f"outlet is {context.outlet_type.value}"
            )
        return None

    # segment / area / zone: a missing attribute never matches
    attribute = context.attribute_for(applicability)
    if attribute is None:
        return f"outlet has no {applicability.value} attribute"
    if scheme.applicability_targets and attribute not in scheme.applicability_targets:
        return f"{applicability.value} '{attribute}' is not targeted"
    return None


def check_scheme(
    scheme: SchemeBase,
    cart: Sequence[CartLineItem],
    context: EvaluationContext,
    as_of: date,
    checker: Callable[[SchemeBase], tuple[str, ...]] = configuration_problems,
) -> SchemeDiagnostic | None:
    """
    Apply the eligibility rules to one scheme.

    Args:
        scheme: Scheme to check
        cart: Validated cart lines
        context: Outlet context including claim history
        as_of: Evaluation date
        checker: Configuration check (memoized by the calculator)

    Returns:
        A diagnostic describing the first failed rule, or None if eligible
    """

    def excluded(reason: ExclusionReason, detail: str) -> SchemeDiagnostic:
        return SchemeDiagnostic(
            scheme_id=scheme.id, exclusion_reason=reason, detail=detail
        )

    problems = checker(scheme)
    if problems:
        return excluded(ExclusionReason.CONFIGURATION_ERROR, "; ".join(problems))

    if scheme.status != SchemeStatus.ACTIVE:
        return excluded(
            ExclusionReason.INACTIVE_STATUS, f"status is {scheme.status.value}"
        )

    if not (scheme.start_date <= as_of <= scheme.end_date):
        return excluded(
            ExclusionReason.OUTSIDE_VALIDITY_WINDOW,
            f"{as_of} is outside {scheme.start_date}..{scheme.end_date}",
        )

    mismatch = applicability_mismatch(scheme, context)
    if mismatch:
        return excluded(ExclusionReason.APPLICABILITY_MISMATCH, mismatch)

    if scheme.eligible_skus and not any(
        scheme.applies_to_product(line.product_id, line.sku) for line in cart
    ):
        return excluded(ExclusionReason.NO_ELIGIBLE_SKU, "no cart line is eligible")

    matching_total = subtotal(lines_for_scheme(scheme, cart))
    if matching_total < scheme.min_order_value:
        return excluded(
            ExclusionReason.BELOW_MIN_ORDER_VALUE,
            f"subtotal {matching_total} is below {scheme.min_order_value}",
        )

    if scheme.outlet_claim_limit is not None:
        claimed = context.claim_history.get(scheme.id, 0)
        if claimed >= scheme.outlet_claim_limit:
            return excluded(
                ExclusionReason.CLAIM_LIMIT_EXHAUSTED,
                f"outlet has {claimed} of {scheme.outlet_claim_limit} claims",
            )

    return None


def filter_eligible(
    schemes: Sequence[SchemeBase],
    cart: Sequence[CartLineItem],
    context: EvaluationContext,
    as_of: date,
    checker: Callable[[SchemeBase], tuple[str, ...]] = configuration_problems,
) -> EligibilityOutcome:
    """
    Split schemes into eligible and excluded, preserving input order.

    A repeated scheme id is treated as a configuration error for every copy after
    the first.
    """
    outcome = EligibilityOutcome()
    seen_ids: set[str] = set()

    for scheme in schemes:
        if scheme.id in seen_ids:
            outcome.excluded.append(
                SchemeDiagnostic(
                    scheme_id=scheme.id,
                    exclusion_reason=ExclusionReason.CONFIGURATION_ERROR,
                    detail="duplicate scheme id",
                )
            )
            continue
        seen_ids.add(scheme.id)

        diagnostic = check_scheme(scheme, cart, context, as_of, checker)
        if diagnostic is None:
            outcome.eligible.append(scheme)
        else:
            if diagnostic.exclusion_reason == ExclusionReason.CONFIGURATION_ERROR:
                logger.warning(
                    f"Scheme {scheme.id} excluded as misconfigured: {diagnostic.detail}"
                )
            outcome.excluded.append(diagnostic)

    return outcome
