"""
Claim side of the scheme engine.

Turns applied schemes of a confirmed order into claim rows and keeps scheme counters
consistent with the claim ledger. Depends only on the engine's output models.
"""

from .records import ClaimRecord, ClaimStatus, SchemeCounters, build_claim_records
from .recorder import InMemoryClaimRecorder
from .stats import apply_counters, summarize_claims

__all__ = [
    "ClaimRecord",
    "ClaimStatus",
    "SchemeCounters",
    "build_claim_records",
    "InMemoryClaimRecorder",
    "apply_counters",
    "summarize_claims",
]
