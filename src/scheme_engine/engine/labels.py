"""Short offer labels for order-entry badges."""

from collections.abc import Iterable
from decimal import Decimal

from ..shared.models import BenefitType, SchemeBase, SchemeType


def _slab_phrase(benefit_type: BenefitType, value: Decimal) -> str:
    """Slab benefit_value read the way the slab evaluator pays it out."""
    if benefit_type == BenefitType.DISCOUNT:
        return f"{value}% off"
    if benefit_type == BenefitType.FREE_QTY:
        return f"{value} free"
    if benefit_type == BenefitType.POINTS:
        return f"{value} points"
    return f"{value} {benefit_type.value}"


def _percent_phrase(benefit_type: BenefitType, percent: Decimal | None) -> str:
    percent = percent or 0
    if benefit_type == BenefitType.DISCOUNT:
        return f"{percent}% off"
    return f"{percent}% {benefit_type.value}"


def describe_scheme(scheme: SchemeBase) -> str:
    """Return a one-line label such as ``Buy 5 Get 1 Free`` or ``10% off``."""
    scheme_type = scheme.scheme_type
    kind = scheme.benefit_type

    if scheme_type == SchemeType.BUY_X_GET_Y:
        return f"Buy {scheme.min_quantity or 0} Get {scheme.free_quantity or 0} Free"

    if scheme_type == SchemeType.SLAB:
        if not scheme.slab_config:
            return scheme.name
        first = scheme.slab_config[0]
        return f"{_slab_phrase(kind, first.benefit_value)} on {first.min_qty}+ units"

    if scheme_type in (SchemeType.VALUE_WISE, SchemeType.BILL_WISE):
        if scheme.slab_config:
            first = scheme.slab_config[0]
            return (
                f"{_slab_phrase(kind, first.benefit_value)} "
                f"on {first.min_qty}+ order value"
            )
        return (
            f"{_percent_phrase(kind, scheme.discount_percent)} "
            f"on {scheme.min_order_value}+"
        )

    if scheme_type == SchemeType.VOLUME:
        return (
            f"{_percent_phrase(kind, scheme.discount_percent)} "
            f"on {scheme.min_quantity or 0}+ qty"
        )

    if scheme_type == SchemeType.PRODUCT:
        return _percent_phrase(kind, scheme.discount_percent)

    if scheme_type == SchemeType.COMBO:
        return f"Combo: {_percent_phrase(kind, scheme.discount_percent)}"

    return scheme.name


def schemes_for_product(
    schemes: Iterable[SchemeBase], product_id: str, sku: str | None = None
) -> list[SchemeBase]:
    """Schemes whose SKU restriction covers the product (unrestricted schemes included)."""
    return [s for s in schemes if s.applies_to_product(product_id, sku)]
