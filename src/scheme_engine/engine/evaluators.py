"""
Benefit evaluators, one per scheme type.

Each evaluator is a pure function ``(scheme, lines) -> Candidate | None`` over the
cart lines the scheme is computed on. ``None`` means the scheme grants nothing for
this cart (no slab matched, threshold not met, combo incomplete, ...).
"""

from collections.abc import Callable, Sequence
from decimal import Decimal

from ..shared.models import (
    BenefitType,
    BillWiseScheme,
    BuyXGetYScheme,
    Candidate,
    CartLineItem,
    ComboScheme,
    DisplayScheme,
    FreeGood,
    OpeningScheme,
    ProductScheme,
    SchemeBase,
    SchemeType,
    SlabConfig,
    SlabScheme,
    ValueWiseScheme,
    VolumeScheme,
)
from ..shared.money import ZERO, percent_of, quantize_money, sum_money

Evaluator = Callable[[SchemeBase, Sequence[CartLineItem]], Candidate | None]


# ================================
# HELPERS
# ================================


def total_quantity(lines: Sequence[CartLineItem]) -> int:
    return sum(line.quantity for line in lines)


def total_value(lines: Sequence[CartLineItem]) -> Decimal:
    return sum_money(line.line_total for line in lines)


def _line_ids(lines: Sequence[CartLineItem]) -> tuple[str, ...]:
    return tuple(line.line_id for line in lines)


def _find_slab(
    slabs: Sequence[SlabConfig], amount: Decimal | int
) -> tuple[int, SlabConfig] | None:
    for index, slab in enumerate(slabs):
        if slab.contains(amount):
            return index, slab
    return None


def free_good_for(
    scheme: SchemeBase, lines: Sequence[CartLineItem], units: int
) -> tuple[FreeGood, Decimal]:
    """
    Pick the product given away and value the free units at its cart price.

    The scheme's ``free_product_id`` wins; otherwise the first matching cart line is
    used. A free product that is not in the cart is valued at zero.
    """
    product_id = getattr(scheme, "free_product_id", None)
    product_name = getattr(scheme, "free_product_name", None)
    unit_price = ZERO

    if product_id:
        for line in lines:
            if line.product_id == product_id:
                unit_price = line.unit_price
                product_name = product_name or line.product_name
                break
    elif lines:
        first = lines[0]
        product_id = first.product_id
        product_name = product_name or first.product_name
        unit_price = first.unit_price

    good = FreeGood(
        product_id=product_id or "",
        product_name=product_name or product_id or "",
        quantity=units,
    )
    return good, quantize_money(unit_price * units)


def _candidate(
    scheme: SchemeBase,
    value: Decimal,
    monetary_value: Decimal,
    consumed: tuple[str, ...],
    rule: str,
    description: str,
    free_goods: tuple[FreeGood, ...] = (),
) -> Candidate | None:
    if value <= 0:
        return None
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
        description=description,
    )


def _percent_benefit(
    scheme: SchemeBase,
    percent: Decimal,
    lines: Sequence[CartLineItem],
    rule: str,
    description: str,
) -> Candidate | None:
    """A percentage of the lines' subtotal, paid out as the scheme's benefit type."""
    amount = percent_of(total_value(lines), percent)
    return _candidate(scheme, amount, amount, _line_ids(lines), rule, description)


def _slab_benefit(
    scheme: SchemeBase,
    index: int,
    slab: SlabConfig,
    lines: Sequence[CartLineItem],
    measured: str,
) -> Candidate | None:
    """Interpret a slab's benefit_value according to the scheme's benefit type."""
    rule = f"slab {index} ({slab.describe()})"
    value = slab.benefit_value
    kind = scheme.benefit_type

    if kind == BenefitType.DISCOUNT:
        return _percent_benefit(
            scheme, value, lines, rule, f"{value}% off on {measured}"
        )

    if kind == BenefitType.FREE_QTY:
        units = int(value)
        good, monetary = free_good_for(scheme, lines, units)
        return _candidate(
            scheme,
            Decimal(units),
            monetary,
            _line_ids(lines),
            rule,
            f"Get {units} free on {measured}",
            (good,),
        )

    if kind == BenefitType.POINTS:
        return _candidate(
            scheme, value, value, _line_ids(lines), rule, f"{value} points on {measured}"
        )

    amount = quantize_money(value)
    return _candidate(
        scheme,
        amount,
        amount,
        _line_ids(lines),
        rule,
        f"{kind.value} of {amount} on {measured}",
    )


def _value_threshold_benefit(
    scheme: ValueWiseScheme | BillWiseScheme, lines: Sequence[CartLineItem]
) -> Candidate | None:
    basis = total_value(lines)

    if scheme.slab_config:
        found = _find_slab(scheme.slab_config, basis)
        if found is None:
            return None
        index, slab = found
        return _slab_benefit(scheme, index, slab, lines, f"order value {basis}")

    if basis < scheme.min_order_value:
        return None
    return _percent_benefit(
        scheme,
        scheme.discount_percent,
        lines,
        f"order value >= {scheme.min_order_value}",
        f"{scheme.discount_percent}% off on orders >= {scheme.min_order_value}",
    )


# ================================
# EVALUATORS
# ================================


def evaluate_slab(
    scheme: SlabScheme, lines: Sequence[CartLineItem]
) -> Candidate | None:
    """Benefit of the single slab containing the matching quantity."""
    quantity = total_quantity(lines)
    found = _find_slab(scheme.slab_config, quantity)
    if found is None:
        return None
    index, slab = found
    return _slab_benefit(scheme, index, slab, lines, f"{quantity} units")


def evaluate_buy_x_get_y(
    scheme: BuyXGetYScheme, lines: Sequence[CartLineItem]
) -> Candidate | None:
    """
    Free units for every complete multiple of ``min_quantity``.

    Free units never exceed the purchased quantity of the triggering products.
    """
    quantity = total_quantity(lines)
    multiples = quantity // scheme.min_quantity
    if multiples == 0:
        return None

    units = min(multiples * scheme.free_quantity, quantity)
    good, monetary = free_good_for(scheme, lines, units)
    return _candidate(
        scheme,
        Decimal(units),
        monetary,
        _line_ids(lines),
        f"buy {scheme.min_quantity} get {scheme.free_quantity} x{multiples}",
        f"Buy {scheme.min_quantity} Get {scheme.free_quantity} Free "
        f"({multiples} sets applied)",
        (good,),
    )


def evaluate_combo(
    scheme: ComboScheme, lines: Sequence[CartLineItem]
) -> Candidate | None:
    """Percentage off the combo lines, only when every combo SKU is in the cart."""
    combo_lines = [line for line in lines if line.quantity >= 1]
    present = {line.product_id for line in combo_lines}
    present.update(line.sku for line in combo_lines if line.sku)
    if not scheme.eligible_skus <= present:
        return None

    return _percent_benefit(
        scheme,
        scheme.discount_percent,
        combo_lines,
        f"combo of {len(scheme.eligible_skus)} skus",
        f"Combo deal: {scheme.discount_percent}% off",
    )


def evaluate_value_wise(
    scheme: ValueWiseScheme, lines: Sequence[CartLineItem]
) -> Candidate | None:
    """Benefit keyed on the matching subtotal (value slabs or a single floor)."""
    return _value_threshold_benefit(scheme, lines)


def evaluate_bill_wise(
    scheme: BillWiseScheme, lines: Sequence[CartLineItem]
) -> Candidate | None:
    """Same as value-wise, computed over the entire cart."""
    return _value_threshold_benefit(scheme, lines)


def evaluate_display(
    scheme: DisplayScheme, lines: Sequence[CartLineItem]
) -> Candidate | None:
    # Fixed payout gated only by eligibility; consumes no cart lines
    if scheme.benefit_type == BenefitType.POINTS:
        value = scheme.benefit_amount
    else:
        value = quantize_money(scheme.benefit_amount)
    return _candidate(
        scheme,
        value,
        value,
        (),
        "display incentive",
        f"Display scheme: {value} {scheme.benefit_type.value}",
    )


def evaluate_volume(
    scheme: VolumeScheme, lines: Sequence[CartLineItem]
) -> Candidate | None:
    quantity = total_quantity(lines)
    min_quantity = scheme.min_quantity or 0
    if quantity < min_quantity:
        return None
    return _percent_benefit(
        scheme,
        scheme.discount_percent,
        lines,
        f"quantity >= {min_quantity}",
        f"{scheme.discount_percent}% off on {quantity}+ units",
    )


def evaluate_product(
    scheme: ProductScheme, lines: Sequence[CartLineItem]
) -> Candidate | None:
    return _percent_benefit(
        scheme,
        scheme.discount_percent,
        lines,
        "selected products",
        f"{scheme.discount_percent}% off on selected products",
    )


def evaluate_opening(
    scheme: OpeningScheme, lines: Sequence[CartLineItem]
) -> Candidate | None:
    return _percent_benefit(
        scheme,
        scheme.discount_percent,
        lines,
        "opening order",
        f"Opening scheme: {scheme.discount_percent}% off",
    )


EVALUATORS: dict[SchemeType, Evaluator] = {
    SchemeType.SLAB: evaluate_slab,
    SchemeType.BUY_X_GET_Y: evaluate_buy_x_get_y,
    SchemeType.COMBO: evaluate_combo,
    SchemeType.VALUE_WISE: evaluate_value_wise,
    SchemeType.BILL_WISE: evaluate_bill_wise,
    SchemeType.DISPLAY: evaluate_display,
    SchemeType.VOLUME: evaluate_volume,
    SchemeType.PRODUCT: evaluate_product,
    SchemeType.OPENING: evaluate_opening,
}


def evaluate(scheme: SchemeBase, lines: Sequence[CartLineItem]) -> Candidate | None:
    """
    Compute the candidate benefit of one eligible scheme.

    Args:
        scheme: A scheme that passed eligibility and configuration checks
        lines: Cart lines the scheme is computed over

    Returns:
        Candidate benefit, or None if the scheme grants nothing for these lines
    """
    return EVALUATORS[scheme.scheme_type](scheme, lines)
