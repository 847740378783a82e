"""
Test the per-type benefit evaluators.

Evaluators are pure functions of (scheme, lines), so these tests call them directly
on parsed schemes and validated cart lines.
"""

from decimal import Decimal

import pytest

_hyp = pytest.importorskip("hypothesis")
from hypothesis import given
from hypothesis import strategies as st

from scheme_engine.engine.evaluators import (
    EVALUATORS,
    evaluate,
    evaluate_buy_x_get_y,
    evaluate_slab,
)
from scheme_engine.shared.models import (
    SCHEME_ADAPTER,
    BenefitType,
    CartLineItem,
    SchemeType,
)

from conftest import make_line, make_scheme


class TestRegistry:
    """Test evaluator dispatch."""

    def test_every_scheme_type_has_an_evaluator(self):
        assert set(EVALUATORS) == set(SchemeType)


class TestSlabEvaluator:
    """Test slab evaluation."""

    def test_twelve_units_hit_second_slab(self, build_scheme, build_cart):
        candidate = evaluate(build_scheme(), build_cart(("P1", 12, "100")))

        assert candidate.kind == BenefitType.DISCOUNT
        assert candidate.value == Decimal("120.00")
        assert candidate.rule.startswith("slab 1")
        assert candidate.consumed_line_ids == ("P1",)

    def test_slab_boundary(self, build_scheme, build_cart):
        scheme = build_scheme()
        at_max = evaluate(scheme, build_cart(("P1", 9, "100")))
        past_max = evaluate(scheme, build_cart(("P1", 10, "100")))

        assert at_max.rule.startswith("slab 0")
        assert at_max.value == Decimal("45.00")
        assert past_max.rule.startswith("slab 1")
        assert past_max.value == Decimal("100.00")

    def test_no_matching_slab(self, build_scheme, build_cart):
        scheme = build_scheme(
            slab_config=[{"min_qty": 10, "max_qty": 20, "benefit_value": 5}]
        )
        assert evaluate(scheme, build_cart(("P1", 9, "100"))) is None

    def test_free_qty_slab(self, build_scheme, build_cart):
        scheme = build_scheme(
            benefit_type="free_qty",
            slab_config=[{"min_qty": 10, "max_qty": None, "benefit_value": 2}],
        )
        candidate = evaluate(scheme, build_cart(("P1", 10, "50")))

        assert candidate.value == Decimal("2")
        assert candidate.monetary_value == Decimal("100.00")
        assert candidate.free_goods[0].product_id == "P1"
        assert candidate.free_goods[0].quantity == 2

    def test_cashback_slab_is_a_fixed_amount(self, build_scheme, build_cart):
        scheme = build_scheme(
            benefit_type="cashback",
            slab_config=[{"min_qty": 1, "max_qty": None, "benefit_value": 75}],
        )
        candidate = evaluate(scheme, build_cart(("P1", 3, "100")))
        assert candidate.kind == BenefitType.CASHBACK
        assert candidate.value == Decimal("75.00")


class TestBuyXGetYEvaluator:
    """Test buy-x-get-y evaluation."""

    def test_buy_five_get_one_on_twelve_units(self, bogo_scheme, build_cart):
        scheme = SCHEME_ADAPTER.validate_python(bogo_scheme)
        candidate = evaluate(scheme, build_cart(("P1", 12, "100")))

        assert candidate.kind == BenefitType.FREE_QTY
        assert candidate.free_goods[0].quantity == 2
        assert candidate.monetary_value == Decimal("200.00")
        assert "2 sets applied" in candidate.description

    def test_below_minimum_grants_nothing(self, bogo_scheme, build_cart):
        scheme = SCHEME_ADAPTER.validate_python(bogo_scheme)
        assert evaluate(scheme, build_cart(("P1", 4, "100"))) is None

    def test_named_free_product_not_in_cart_is_valued_at_zero(
        self, build_scheme, build_cart
    ):
        scheme = build_scheme(
            type="buy_x_get_y",
            benefit_type="free_qty",
            min_quantity=2,
            free_quantity=1,
            free_product_id="GIFT",
            free_product_name="Gift pack",
            slab_config=None,
        )
        candidate = evaluate(scheme, build_cart(("P1", 4, "100")))

        assert candidate.free_goods[0].product_id == "GIFT"
        assert candidate.free_goods[0].product_name == "Gift pack"
        assert candidate.free_goods[0].quantity == 2
        assert candidate.monetary_value == Decimal("0.00")

    @given(
        quantity=st.integers(min_value=0, max_value=500),
        min_quantity=st.integers(min_value=1, max_value=20),
        free_quantity=st.integers(min_value=1, max_value=50),
    )
    def test_never_gives_more_than_purchased(
        self, quantity, min_quantity, free_quantity
    ):
        scheme = SCHEME_ADAPTER.validate_python(
            make_scheme(
                type="buy_x_get_y",
                benefit_type="free_qty",
                min_quantity=min_quantity,
                free_quantity=free_quantity,
                slab_config=None,
            )
        )
        lines = [CartLineItem.model_validate(make_line("P1", quantity, "10"))]
        candidate = evaluate_buy_x_get_y(scheme, lines)

        if quantity < min_quantity:
            assert candidate is None
        else:
            assert 0 < candidate.free_goods[0].quantity <= quantity


class TestComboEvaluator:
    """Test combo evaluation."""

    def test_all_skus_present(self, build_scheme, build_cart):
        scheme = build_scheme(
            type="combo",
            discount_percent=10,
            eligible_skus=["P1", "P2"],
            slab_config=None,
        )
        lines = build_cart(("P1", 1, "100"), ("P2", 2, "50"))
        candidate = evaluate(scheme, lines)

        assert candidate.value == Decimal("20.00")
        assert candidate.consumed_line_ids == ("P1", "P2")

    def test_missing_sku_grants_nothing(self, build_scheme, build_cart):
        scheme = build_scheme(
            type="combo",
            discount_percent=10,
            eligible_skus=["P1", "P2"],
            slab_config=None,
        )
        assert evaluate(scheme, build_cart(("P1", 3, "100"))) is None

    def test_zero_quantity_line_does_not_complete_combo(
        self, build_scheme, build_cart
    ):
        scheme = build_scheme(
            type="combo",
            discount_percent=10,
            eligible_skus=["P1", "P2"],
            slab_config=None,
        )
        assert evaluate(scheme, build_cart(("P1", 1, "100"), ("P2", 0, "50"))) is None


class TestValueEvaluators:
    """Test value-wise and bill-wise evaluation."""

    def test_value_wise_floor(self, build_scheme, build_cart):
        scheme = build_scheme(
            type="value_wise",
            discount_percent=5,
            min_order_value=1000,
            slab_config=None,
        )
        candidate = evaluate(scheme, build_cart(("P1", 12, "100")))
        assert candidate.value == Decimal("60.00")
        assert evaluate(scheme, build_cart(("P1", 9, "100"))) is None

    def test_value_slabs_use_order_value(self, build_scheme, build_cart):
        scheme = build_scheme(
            type="value_wise",
            slab_config=[
                {"min_qty": 0, "max_qty": "999.99", "benefit_value": 2},
                {"min_qty": 1000, "max_qty": None, "benefit_value": 4},
            ],
        )
        assert evaluate(scheme, build_cart(("P1", 9, "100"))).value == Decimal("18.00")
        assert evaluate(scheme, build_cart(("P1", 10, "100"))).value == Decimal("40.00")

    def test_bill_wise_over_given_lines(self, build_scheme, build_cart):
        scheme = build_scheme(type="bill_wise", discount_percent=3, slab_config=None)
        lines = build_cart(("P1", 2, "100"), ("P2", 1, "300"))
        assert evaluate(scheme, lines).value == Decimal("15.00")


class TestOtherEvaluators:
    """Test display, volume, product and opening evaluation."""

    def test_display_consumes_no_lines(self, build_scheme, build_cart):
        scheme = build_scheme(
            type="display",
            benefit_type="points",
            benefit_amount=250,
            slab_config=None,
        )
        candidate = evaluate(scheme, build_cart(("P1", 1, "10")))

        assert candidate.kind == BenefitType.POINTS
        assert candidate.value == Decimal("250")
        assert candidate.consumed_line_ids == ()

    def test_volume_requires_min_quantity(self, build_scheme, build_cart):
        scheme = build_scheme(
            type="volume", discount_percent=5, min_quantity=10, slab_config=None
        )
        assert evaluate(scheme, build_cart(("P1", 9, "100"))) is None
        assert evaluate(scheme, build_cart(("P1", 10, "100"))).value == Decimal("50.00")

    @pytest.mark.parametrize("scheme_type", ["product", "opening"])
    def test_flat_percentage_types(self, scheme_type, build_scheme, build_cart):
        scheme = build_scheme(type=scheme_type, discount_percent=8, slab_config=None)
        assert evaluate(scheme, build_cart(("P1", 5, "20"))).value == Decimal("8.00")

    def test_evaluators_are_deterministic(self, build_scheme, build_cart):
        scheme = build_scheme()
        lines = build_cart(("P1", 12, "100"))
        assert evaluate_slab(scheme, lines) == evaluate_slab(scheme, lines)
