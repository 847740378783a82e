"""Fold accepted benefits into the final calculation result."""

import logging
from collections.abc import Mapping, Sequence
from datetime import date

from ..shared.models import (
    AppliedScheme,
    BenefitType,
    CartLineItem,
    FreeGood,
    SchemeCalculationResult,
    SchemeDiagnostic,
)
from ..shared.money import ZERO, quantize_money, sum_money
from .resolver import AcceptedBenefit

logger = logging.getLogger(__name__)


def merge_free_goods(accepted: Sequence[AcceptedBenefit]) -> list[FreeGood]:
    """Sum free units per product, keeping first-seen order."""
    merged: dict[str, FreeGood] = {}
    for benefit in accepted:
        for good in benefit.candidate.free_goods:
            if good.quantity <= 0:
                continue
            existing = merged.get(good.product_id)
            if existing is None:
                merged[good.product_id] = good.model_copy()
            else:
                merged[good.product_id] = existing.model_copy(
                    update={"quantity": existing.quantity + good.quantity}
                )
    return list(merged.values())


def to_applied_scheme(
    benefit: AcceptedBenefit, idempotency_key: str = ""
) -> AppliedScheme:
    candidate = benefit.candidate
    return AppliedScheme(
        scheme_id=candidate.scheme_id,
        scheme_name=candidate.scheme_name,
        scheme_code=candidate.scheme_code,
        scheme_type=candidate.scheme_type,
        benefit_type=candidate.kind,
        benefit_value=benefit.value,
        computed_value=candidate.value,
        monetary_value=benefit.monetary_value,
        capped=benefit.capped,
        free_goods=list(candidate.free_goods),
        affected_line_item_ids=list(candidate.consumed_line_ids),
        rule=candidate.rule,
        description=candidate.description,
        overridden=candidate.overridden,
        override_reason=candidate.override_reason,
        idempotency_key=idempotency_key,
    )


def aggregate(
    cart: Sequence[CartLineItem],
    accepted: Sequence[AcceptedBenefit],
    diagnostics: Sequence[SchemeDiagnostic],
    as_of: date,
    claim_keys: Mapping[str, str] | None = None,
    evaluation_key: str = "",
) -> SchemeCalculationResult:
    """
    Build the result for one cart.

    Discounts reduce the payable total; cashback, points and coupons are reported
    separately and free goods are issued on top of the order. If the summed discount
    exceeds the cart total it is clamped and the result is flagged as degraded.

    Args:
        cart: Validated cart lines
        accepted: Benefits accepted by the resolver, in acceptance order
        diagnostics: Reasons schemes were not applied
        as_of: Evaluation date actually used
        claim_keys: Idempotency key per applied scheme id
        evaluation_key: Content hash of the whole evaluation

    Returns:
        SchemeCalculationResult
    """
    claim_keys = claim_keys or {}
    original_total = sum_money(line.line_total for line in cart)

    def total_of(kind: BenefitType):
        return sum_money(b.value for b in accepted if b.candidate.kind == kind)

    discount = total_of(BenefitType.DISCOUNT)
    degraded = discount > original_total
    if degraded:
        logger.warning(
            f"Discount {discount} exceeds cart total {original_total}; clamping"
        )
        discount = original_total

    return SchemeCalculationResult(
        original_total=original_total,
        discounted_total=quantize_money(max(original_total - discount, ZERO)),
        total_discount=discount,
        total_cashback=total_of(BenefitType.CASHBACK),
        total_points=total_of(BenefitType.POINTS),
        total_coupon_value=total_of(BenefitType.COUPON),
        total_free_goods=merge_free_goods(accepted),
        applied_schemes=[
            to_applied_scheme(b, claim_keys.get(b.candidate.scheme_id, ""))
            for b in accepted
        ],
        diagnostics=list(diagnostics),
        degraded=degraded,
        as_of_date=as_of,
        evaluation_key=evaluation_key,
    )
