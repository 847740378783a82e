"""
Scheme calculator.

Runs one cart through the pipeline: caller input validation, eligibility, benefit
evaluation, manual overrides, conflict resolution and aggregation. The calculator
holds no per-call state, so a single instance can price several carts concurrently.
"""

import time
from collections.abc import Callable, Iterable, Mapping, Sequence
from datetime import date
from typing import Any

from pydantic import ValidationError

from ..config.models import EngineConfig
from ..shared.exceptions import (
    CallerContractError,
    CartValidationError,
    ContextValidationError,
)
from ..shared.logging_utils import get_structured_logger
from ..shared.metrics import MetricsCollector
from ..shared.models import (
    CartLineItem,
    EvaluationContext,
    ExclusionReason,
    SchemeBase,
    SchemeCalculationResult,
    SchemeDiagnostic,
    SchemeOverride,
    parse_scheme_records,
)
from .aggregator import aggregate
from .eligibility import filter_eligible, lines_for_scheme
from .evaluators import evaluate
from .fingerprint import claim_idempotency_key, evaluation_key
from .overrides import apply_override
from .resolver import resolve_candidates
from .validation import make_configuration_checker

SchemeInput = Mapping[str, Any] | SchemeBase


def _error_messages(error: ValidationError) -> list[str]:
    return [
        f"{'.'.join(str(p) for p in err['loc']) or 'value'}: {err['msg']}"
        for err in error.errors()
    ]


def coerce_cart(cart: Iterable[CartLineItem | Mapping[str, Any]]) -> list[CartLineItem]:
    """
    Validate cart lines.

    Raises:
        CartValidationError: If a line is malformed or two lines share a line id
    """
    if cart is None:
        raise CartValidationError("cart is required", field_name="cart")

    lines: list[CartLineItem] = []
    seen: set[str] = set()
    for index, item in enumerate(cart):
        if isinstance(item, CartLineItem):
            line = item
        else:
            try:
                line = CartLineItem.model_validate(item)
            except ValidationError as e:
                raise CartValidationError(
                    "invalid cart line",
                    line_index=index,
                    validation_errors=_error_messages(e),
                ) from e
        if line.line_id in seen:
            raise CartValidationError(
                "duplicate line id",
                line_index=index,
                field_name="line_id",
                invalid_value=line.line_id,
            )
        seen.add(line.line_id)
        lines.append(line)
    return lines


def coerce_context(
    context: EvaluationContext | Mapping[str, Any] | None,
) -> EvaluationContext:
    """
    Validate the evaluation context.

    Raises:
        ContextValidationError: If the context is missing or incomplete
    """
    if context is None:
        raise ContextValidationError("evaluation context is required")
    if isinstance(context, EvaluationContext):
        return context
    try:
        return EvaluationContext.model_validate(context)
    except ValidationError as e:
        raise ContextValidationError(
            "invalid evaluation context", validation_errors=_error_messages(e)
        ) from e


def coerce_overrides(
    overrides: Iterable[SchemeOverride | Mapping[str, Any]] | None,
) -> dict[str, SchemeOverride]:
    """Index overrides by scheme id, rejecting malformed or repeated entries."""
    indexed: dict[str, SchemeOverride] = {}
    for item in overrides or ():
        if isinstance(item, SchemeOverride):
            override = item
        else:
            try:
                override = SchemeOverride.model_validate(item)
            except ValidationError as e:
                raise CallerContractError(
                    "invalid scheme override", validation_errors=_error_messages(e)
                ) from e
        if override.scheme_id in indexed:
            raise CallerContractError(
                "more than one override for a scheme",
                field_name="scheme_id",
                invalid_value=override.scheme_id,
            )
        indexed[override.scheme_id] = override
    return indexed


class SchemeCalculator:
    """
    Evaluates promotional schemes against a cart.

    Args:
        config: Engine configuration (benefit priority, cache size, metrics)
        clock: Returns the evaluation date when the context has none
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        clock: Callable[[], date] | None = None,
    ):
        self.config = config or EngineConfig()
        self._clock = clock or date.today
        self._check_configuration = make_configuration_checker(
            self.config.validation_cache_size
        )
        self._metrics = MetricsCollector(enabled=self.config.metrics_enabled)

    def calculate(
        self,
        schemes: Iterable[SchemeInput],
        cart: Iterable[CartLineItem | Mapping[str, Any]],
        context: EvaluationContext | Mapping[str, Any],
        overrides: Iterable[SchemeOverride | Mapping[str, Any]] | None = None,
    ) -> SchemeCalculationResult:
        """
        Price a cart against the supplied schemes.

        Args:
            schemes: Scheme records (dicts or models); malformed ones become diagnostics
            cart: Cart line items
            context: Outlet context with claim history and optional as-of date
            overrides: Manual benefit overrides keyed by scheme id

        Returns:
            SchemeCalculationResult with totals, applied schemes and diagnostics

        Raises:
            CallerContractError: If the cart, context or overrides are invalid
        """
        started = time.perf_counter()
        try:
            lines = coerce_cart(cart)
            ctx = coerce_context(context)
            override_map = coerce_overrides(overrides)
        except CallerContractError as e:
            self._metrics.record_contract_violation(type(e).__name__)
            raise

        as_of = ctx.as_of_date or self._clock()
        parsed, diagnostics = parse_scheme_records(schemes)
        key = evaluation_key(lines, parsed, ctx, as_of, override_map)

        log = get_structured_logger(__name__)
        log.set_correlation_id(key)

        outcome = filter_eligible(
            parsed, lines, ctx, as_of, self._check_configuration
        )
        diagnostics.extend(outcome.excluded)

        candidates = []
        for scheme in outcome.eligible:
            scheme_lines = lines_for_scheme(scheme, lines)
            candidate = evaluate(scheme, scheme_lines)
            override = override_map.get(scheme.id)
            if override is not None:
                candidate = apply_override(scheme, scheme_lines, candidate, override)
                log.info(
                    "Scheme benefit overridden",
                    scheme_id=scheme.id,
                    reason=override.reason,
                    withdrawn=candidate is None,
                )
            if candidate is None:
                diagnostics.append(
                    SchemeDiagnostic(
                        scheme_id=scheme.id,
                        exclusion_reason=ExclusionReason.NO_BENEFIT,
                        detail="no slab or threshold matched this cart",
                    )
                )
                continue
            candidates.append(candidate)

        eligible_by_id = {scheme.id: scheme for scheme in outcome.eligible}
        resolution = resolve_candidates(
            candidates,
            {scheme_id: s.max_benefit for scheme_id, s in eligible_by_id.items()},
            self.config.benefit_priority,
        )
        diagnostics.extend(resolution.rejected)

        claim_keys = {
            b.candidate.scheme_id: claim_idempotency_key(
                lines, eligible_by_id[b.candidate.scheme_id], ctx.outlet_id, as_of
            )
            for b in resolution.accepted
        }
        result = aggregate(
            lines,
            resolution.accepted,
            diagnostics,
            as_of,
            claim_keys=claim_keys,
            evaluation_key=key,
        )

        self._record_metrics(result, time.perf_counter() - started)
        if result.degraded:
            log.warning(
                "Discount clamped to cart total",
                original_total=result.original_total,
                applied=[a.scheme_id for a in result.applied_schemes],
            )
        log.debug(
            "Schemes evaluated",
            outlet_id=ctx.outlet_id,
            as_of_date=as_of,
            considered=len(parsed),
            applied=len(result.applied_schemes),
            excluded=len(result.diagnostics),
            total_discount=result.total_discount,
            duration_ms=round((time.perf_counter() - started) * 1000, 3),
        )
        return result

    def _record_metrics(self, result: SchemeCalculationResult, duration: float):
        self._metrics.record_evaluation(duration)
        for diagnostic in result.diagnostics:
            self._metrics.record_exclusion(diagnostic.exclusion_reason.value)
        for applied in result.applied_schemes:
            self._metrics.record_applied(applied.benefit_type.value)
        if result.degraded:
            self._metrics.record_degraded()


def calculate_schemes(
    schemes: Sequence[SchemeInput],
    cart: Iterable[CartLineItem | Mapping[str, Any]],
    context: EvaluationContext | Mapping[str, Any],
    overrides: Iterable[SchemeOverride | Mapping[str, Any]] | None = None,
    config: EngineConfig | None = None,
) -> SchemeCalculationResult:
    """Convenience wrapper: evaluate with a fresh ``SchemeCalculator``."""
    return SchemeCalculator(config).calculate(schemes, cart, context, overrides)
