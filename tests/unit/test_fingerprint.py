"""Test content hashes used for idempotency and log correlation."""

from datetime import date
from decimal import Decimal

from scheme_engine.engine.fingerprint import (
    canonical,
    claim_idempotency_key,
    content_hash,
    evaluation_key,
)
from scheme_engine.shared.models import EvaluationContext, SchemeOverride

AS_OF = date(2024, 6, 15)


class TestCanonical:
    """Test the canonical representation."""

    def test_equal_amounts_share_representation(self):
        assert canonical(Decimal("10")) == canonical(Decimal("10.00")) == "10"

    def test_sets_are_sorted(self):
        assert canonical(frozenset({"b", "a", "c"})) == ["a", "b", "c"]

    def test_hash_ignores_dict_order(self):
        assert content_hash({"a": 1, "b": 2}) == content_hash({"b": 2, "a": 1})


class TestClaimIdempotencyKey:
    """Test per-claim keys."""

    def test_same_inputs_same_key(self, build_scheme, build_cart):
        scheme = build_scheme(eligible_skus=["P2", "P1"])
        first = claim_idempotency_key(
            build_cart(("P1", 12, "100")), scheme, "OUT-1", AS_OF
        )
        second = claim_idempotency_key(
            build_cart(("P1", 12, "100.00")),
            build_scheme(eligible_skus=["P1", "P2"]),
            "OUT-1",
            AS_OF,
        )
        assert first == second
        assert len(first) == 64

    def test_key_changes_with_each_input(self, build_scheme, build_cart):
        scheme = build_scheme()
        cart = build_cart(("P1", 12, "100"))
        base = claim_idempotency_key(cart, scheme, "OUT-1", AS_OF)

        assert base != claim_idempotency_key(
            build_cart(("P1", 13, "100")), scheme, "OUT-1", AS_OF
        )
        assert base != claim_idempotency_key(
            cart, build_scheme(id="OTHER"), "OUT-1", AS_OF
        )
        assert base != claim_idempotency_key(cart, scheme, "OUT-2", AS_OF)
        assert base != claim_idempotency_key(cart, scheme, "OUT-1", date(2024, 6, 16))

    def test_counters_and_status_do_not_change_the_key(self, build_scheme, build_cart):
        cart = build_cart(("P1", 12, "100"))
        scheme = build_scheme()
        after_claims = scheme.model_copy(
            update={
                "claims_generated": 1,
                "claims_approved": 1,
                "total_payout": Decimal("120.00"),
                "status": "closed",
                "name": "Renamed",
            }
        )

        assert claim_idempotency_key(
            cart, scheme, "OUT-1", AS_OF
        ) == claim_idempotency_key(cart, after_claims, "OUT-1", AS_OF)

    def test_benefit_fields_change_the_key(self, build_scheme, build_cart):
        cart = build_cart(("P1", 12, "100"))
        base = claim_idempotency_key(cart, build_scheme(), "OUT-1", AS_OF)

        assert base != claim_idempotency_key(
            cart, build_scheme(benefit_type="cashback"), "OUT-1", AS_OF
        )
        assert base != claim_idempotency_key(
            cart, build_scheme(max_benefit=50), "OUT-1", AS_OF
        )


class TestEvaluationKey:
    """Test whole-evaluation keys."""

    def test_scheme_order_does_not_matter(self, build_scheme, build_cart, context):
        ctx = EvaluationContext.model_validate(context)
        cart = build_cart(("P1", 12, "100"))
        a, b = build_scheme(id="A"), build_scheme(id="B")

        assert evaluation_key(cart, [a, b], ctx, AS_OF) == evaluation_key(
            cart, [b, a], ctx, AS_OF
        )

    def test_overrides_change_the_key(self, build_scheme, build_cart, context):
        ctx = EvaluationContext.model_validate(context)
        cart = build_cart(("P1", 12, "100"))
        schemes = [build_scheme()]
        override = SchemeOverride(scheme_id="SCH-1", discount_amount=5, reason="x")

        assert evaluation_key(cart, schemes, ctx, AS_OF) != evaluation_key(
            cart, schemes, ctx, AS_OF, {"SCH-1": override}
        )
