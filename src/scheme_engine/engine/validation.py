"""
Configuration checks for scheme records.

A misconfigured scheme (overlapping slabs, inverted dates, negative percentages) is
excluded from evaluation and reported as a diagnostic; it never aborts the cart.
Benefit fields are frozen once claims exist, so results are memoized per scheme.
"""

from collections.abc import Callable, Sequence
from decimal import Decimal
from functools import lru_cache

from ..shared.exceptions import SchemeConfigurationError
from ..shared.models import (
    BenefitType,
    BuyXGetYScheme,
    ComboScheme,
    DisplayScheme,
    SchemeBase,
    SchemeType,
    SlabConfig,
)
from ..shared.money import HUNDRED

# Types whose benefit is a percentage of a subtotal when no slabs are configured
PERCENT_TYPES = frozenset(
    {
        SchemeType.COMBO,
        SchemeType.VALUE_WISE,
        SchemeType.BILL_WISE,
        SchemeType.VOLUME,
        SchemeType.PRODUCT,
        SchemeType.OPENING,
    }
)


def _check_percent(percent: Decimal | None, problems: list[str]) -> None:
    if percent is None:
        problems.append("discount_percent is required")
    elif percent < 0:
        problems.append(f"discount_percent cannot be negative ({percent})")
    elif percent > HUNDRED:
        problems.append(f"discount_percent cannot exceed 100 ({percent})")


def _check_slabs(
    slabs: Sequence[SlabConfig], benefit_type: BenefitType, problems: list[str]
) -> None:
    if not slabs:
        problems.append("slab_config is empty")
        return

    for index, slab in enumerate(slabs):
        if slab.min_qty < 0:
            problems.append(f"slab {index} has negative min_qty")
        if slab.max_qty is not None and slab.max_qty < slab.min_qty:
            problems.append(f"slab {index} has max_qty below min_qty")
        if slab.benefit_value < 0:
            problems.append(f"slab {index} has negative benefit_value")
        if benefit_type == BenefitType.DISCOUNT and slab.benefit_value > HUNDRED:
            problems.append(f"slab {index} discount exceeds 100%")
        if (
            benefit_type == BenefitType.FREE_QTY
            and slab.benefit_value != slab.benefit_value.to_integral_value()
        ):
            problems.append(f"slab {index} free quantity must be a whole number")

    for index in range(1, len(slabs)):
        previous, current = slabs[index - 1], slabs[index]
        if previous.max_qty is None:
            problems.append(f"slab {index - 1} is open-ended but is not the last slab")
        elif current.min_qty <= previous.max_qty:
            problems.append(
                f"slabs {index - 1} and {index} overlap or are not ascending "
                f"({previous.describe()} / {current.describe()})"
            )


def configuration_problems(scheme: SchemeBase) -> tuple[str, ...]:
    """
    List everything wrong with a scheme's configuration.

    Args:
        scheme: Parsed scheme record

    Returns:
        Tuple of problem descriptions (empty when the scheme is usable)
    """
    problems: list[str] = []
    scheme_type = scheme.scheme_type

    if scheme.end_date <= scheme.start_date:
        problems.append(
            f"end_date {scheme.end_date} must be after start_date {scheme.start_date}"
        )
    if scheme.min_order_value < 0:
        problems.append("min_order_value cannot be negative")
    if scheme.max_benefit is not None and scheme.max_benefit < 0:
        problems.append("max_benefit cannot be negative")
    if scheme.outlet_claim_limit is not None and scheme.outlet_claim_limit < 0:
        problems.append("outlet_claim_limit cannot be negative")

    if scheme_type == SchemeType.SLAB:
        _check_slabs(scheme.slab_config, scheme.benefit_type, problems)

    elif isinstance(scheme, BuyXGetYScheme):
        if scheme.min_quantity is None or scheme.min_quantity < 1:
            problems.append("min_quantity must be at least 1")
        if scheme.free_quantity is None or scheme.free_quantity < 1:
            problems.append("free_quantity must be at least 1")
        if scheme.benefit_type != BenefitType.FREE_QTY:
            problems.append("buy_x_get_y schemes must grant free_qty")

    elif isinstance(scheme, DisplayScheme):
        if scheme.benefit_amount is None or scheme.benefit_amount <= 0:
            problems.append("display schemes need a positive benefit_amount")
        if scheme.benefit_type not in (BenefitType.CASHBACK, BenefitType.POINTS):
            problems.append("display schemes must grant cashback or points")

    elif scheme_type in PERCENT_TYPES:
        slabs = getattr(scheme, "slab_config", ())
        if slabs:
            _check_slabs(slabs, scheme.benefit_type, problems)
        else:
            _check_percent(scheme.discount_percent, problems)
            if scheme.benefit_type == BenefitType.FREE_QTY:
                problems.append(f"{scheme_type.value} schemes cannot grant free_qty")

        if isinstance(scheme, ComboScheme) and not scheme.eligible_skus:
            problems.append("combo schemes need eligible_skus")
        if (
            scheme_type == SchemeType.VOLUME
            and scheme.min_quantity is not None
            and scheme.min_quantity < 0
        ):
            problems.append("min_quantity cannot be negative")

    return tuple(problems)


def make_configuration_checker(
    cache_size: int,
) -> Callable[[SchemeBase], tuple[str, ...]]:
    """Return ``configuration_problems``, memoized when ``cache_size`` > 0."""
    if cache_size <= 0:
        return configuration_problems
    return lru_cache(maxsize=cache_size)(configuration_problems)


def ensure_valid_configuration(scheme: SchemeBase) -> SchemeBase:
    """
    Reject a misconfigured scheme at authoring time.

    The calculator never calls this; it reports the same problems as diagnostics.

    Raises:
        SchemeConfigurationError: If the scheme has configuration problems
    """
    problems = configuration_problems(scheme)
    if problems:
        raise SchemeConfigurationError(scheme.id, list(problems))
    return scheme
