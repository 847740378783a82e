"""
Conflict resolution between candidate benefits.

Candidates are accepted in benefit-priority order. Two benefits of the same type
never apply to the same cart line; benefits of different types stack. ``max_benefit``
is enforced on each accepted monetary benefit after acceptance.
"""

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from decimal import Decimal

from ..config.models import rank_benefits
from ..shared.models import (
    MONETARY_BENEFITS,
    BenefitType,
    Candidate,
    ExclusionReason,
    SchemeDiagnostic,
)
from ..shared.money import quantize_money


@dataclass(slots=True)
class AcceptedBenefit:
    """A candidate that survived resolution, with its capped value."""

    candidate: Candidate
    value: Decimal
    monetary_value: Decimal
    capped: bool = False


@dataclass(slots=True)
class Resolution:
    accepted: list[AcceptedBenefit] = field(default_factory=list)
    rejected: list[SchemeDiagnostic] = field(default_factory=list)


def order_candidates(
    candidates: Iterable[Candidate],
    priority: Sequence[BenefitType] | None = None,
) -> list[Candidate]:
    """
    Sort candidates into acceptance order.

    Benefit type priority first, then larger monetary value, then scheme id so the
    order is total and independent of input order.
    """
    ranks = rank_benefits(priority)
    return sorted(
        candidates,
        key=lambda c: (ranks[c.kind], -c.monetary_value, -c.value, c.scheme_id),
    )


def apply_cap(candidate: Candidate, max_benefit: Decimal | None) -> AcceptedBenefit:
    """Clamp a monetary benefit to the scheme's ``max_benefit``."""
    if (
        max_benefit is None
        or candidate.kind not in MONETARY_BENEFITS
        or candidate.value <= max_benefit
    ):
        return AcceptedBenefit(candidate, candidate.value, candidate.monetary_value)

    capped = quantize_money(max_benefit)
    return AcceptedBenefit(candidate, capped, capped, capped=True)


def resolve_candidates(
    candidates: Iterable[Candidate],
    max_benefits: Mapping[str, Decimal | None] | None = None,
    priority: Sequence[BenefitType] | None = None,
) -> Resolution:
    """
    Pick the non-conflicting subset of candidates.

    Args:
        candidates: Candidate benefits from the evaluators (and overrides)
        max_benefits: Per-scheme cap keyed by scheme id
        priority: Benefit type acceptance order (defaults to free_qty first)

    Returns:
        Resolution with accepted benefits in acceptance order and a SUPERSEDED
        diagnostic for every rejected candidate
    """
    max_benefits = max_benefits or {}
    resolution = Resolution()
    # benefit type -> line id -> scheme already holding it
    taken: dict[BenefitType, dict[str, str]] = {}

    for candidate in order_candidates(candidates, priority):
        holders = taken.setdefault(candidate.kind, {})
        conflict = next(
            (line for line in candidate.consumed_line_ids if line in holders), None
        )
        if conflict is not None:
            resolution.rejected.append(
                SchemeDiagnostic(
                    scheme_id=candidate.scheme_id,
                    exclusion_reason=ExclusionReason.SUPERSEDED,
                    detail=(
                        f"line {conflict} already receives {candidate.kind.value} "
                        f"from scheme {holders[conflict]}"
                    ),
                )
            )
            continue

        for line in candidate.consumed_line_ids:
            holders[line] = candidate.scheme_id
        resolution.accepted.append(
            apply_cap(candidate, max_benefits.get(candidate.scheme_id))
        )

    return resolution
