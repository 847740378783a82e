"""Recompute scheme counters from a claim ledger."""

from collections.abc import Iterable, Mapping
from typing import Any

import pandas as pd

from ..shared.models import SchemeBase
from ..shared.money import ZERO, sum_money
from .records import ClaimRecord, ClaimStatus, SchemeCounters


def _as_row(claim: ClaimRecord | Mapping[str, Any]) -> dict[str, Any]:
    if isinstance(claim, ClaimRecord):
        return {
            "scheme_id": claim.scheme_id,
            "claim_status": claim.claim_status.value,
            "claim_amount": claim.claim_amount,
        }
    status = claim.get("claim_status") or ClaimStatus.PENDING.value
    return {
        "scheme_id": claim["scheme_id"],
        "claim_status": ClaimStatus(status).value,
        "claim_amount": sum_money([claim.get("claim_amount") or ZERO]),
    }


def summarize_claims(
    claims: Iterable[ClaimRecord | Mapping[str, Any]],
) -> dict[str, SchemeCounters]:
    """
    Count claims per scheme.

    Every claim counts toward ``claims_generated``; only approved claims count toward
    ``claims_approved`` and ``total_payout``.

    Args:
        claims: Claim records or claim rows as dictionaries

    Returns:
        Counters keyed by scheme id (schemes without claims are absent)
    """
    rows = [_as_row(claim) for claim in claims]
    if not rows:
        return {}

    df = pd.DataFrame(rows)
    df["approved"] = df["claim_status"] == ClaimStatus.APPROVED.value
    df["payout"] = [
        amount if approved else ZERO
        for amount, approved in zip(df["claim_amount"], df["approved"])
    ]

    grouped = df.groupby("scheme_id", sort=True).agg(
        claims_generated=("scheme_id", "size"),
        claims_approved=("approved", "sum"),
        total_payout=("payout", sum_money),
    )

    return {
        str(scheme_id): SchemeCounters(
            claims_generated=int(row["claims_generated"]),
            claims_approved=int(row["claims_approved"]),
            total_payout=row["total_payout"],
        )
        for scheme_id, row in grouped.iterrows()
    }


def apply_counters(scheme: SchemeBase, counters: SchemeCounters) -> SchemeBase:
    """Return a copy of the scheme carrying the given counters."""
    return scheme.model_copy(update=counters.model_dump())
