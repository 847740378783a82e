"""
In-memory claim recorder.

Persists claim rows and keeps each scheme's counters in step with them. A batch is
applied all-or-nothing under a lock, and a claim whose idempotency key was already
recorded is not counted again, so retried order confirmations are harmless.
"""

import logging
from collections.abc import Iterable, Sequence
from threading import Lock

from ..shared.exceptions import ClaimRecordingError, DuplicateClaimError
from ..shared.models import SchemeBase
from .records import ClaimRecord, ClaimStatus, SchemeCounters
from .stats import apply_counters, summarize_claims

logger = logging.getLogger(__name__)


class InMemoryClaimRecorder:
    """
    Reference claim recorder backed by a list.

    Args:
        schemes: Schemes claims may be recorded against; their current counters
            are the starting point
    """

    def __init__(self, schemes: Iterable[SchemeBase]):
        self._schemes: dict[str, SchemeBase] = {s.id: s for s in schemes}
        self._baseline: dict[str, SchemeCounters] = {
            scheme_id: SchemeCounters(
                claims_generated=s.claims_generated,
                claims_approved=s.claims_approved,
                total_payout=s.total_payout,
            )
            for scheme_id, s in self._schemes.items()
        }
        self._claims: list[ClaimRecord] = []
        self._keys: set[str] = set()
        self._lock = Lock()

    @property
    def claims(self) -> list[ClaimRecord]:
        with self._lock:
            return list(self._claims)

    def scheme(self, scheme_id: str) -> SchemeBase:
        with self._lock:
            return self._schemes[scheme_id]

    def counters(self, scheme_id: str) -> SchemeCounters:
        scheme = self.scheme(scheme_id)
        return SchemeCounters(
            claims_generated=scheme.claims_generated,
            claims_approved=scheme.claims_approved,
            total_payout=scheme.total_payout,
        )

    def record(
        self, claims: Sequence[ClaimRecord], strict: bool = False
    ) -> list[ClaimRecord]:
        """
        Record a batch of claims and bump the affected schemes' counters.

        Args:
            claims: Claims built from one confirmed order
            strict: Raise instead of skipping claims that were already recorded

        Returns:
            Claims that were newly recorded (already-recorded ones are skipped)

        Raises:
            ClaimRecordingError: If a claim targets an unknown scheme; nothing is
                recorded from the batch
            DuplicateClaimError: If ``strict`` and a claim was already recorded
        """
        with self._lock:
            accepted: list[ClaimRecord] = []
            batch_keys: set[str] = set()
            for claim in claims:
                if claim.scheme_id not in self._schemes:
                    raise ClaimRecordingError("unknown scheme", claim.scheme_id)
                key = claim.idempotency_key
                if key in self._keys or key in batch_keys:
                    if strict:
                        raise DuplicateClaimError(key, claim.scheme_id)
                    logger.info(
                        f"Skipping already recorded claim for scheme {claim.scheme_id}"
                    )
                    continue
                batch_keys.add(key)
                accepted.append(claim)

            if accepted:
                self._commit(self._claims + accepted)
            return accepted

    def update_status(self, idempotency_key: str, status: ClaimStatus) -> ClaimRecord:
        """
        Approve or reject a recorded claim.

        Raises:
            ClaimRecordingError: If no claim has the given key
        """
        with self._lock:
            for index, claim in enumerate(self._claims):
                if claim.idempotency_key == idempotency_key:
                    updated = claim.model_copy(
                        update={"claim_status": ClaimStatus(status)}
                    )
                    ledger = list(self._claims)
                    ledger[index] = updated
                    self._commit(ledger)
                    return updated
        raise ClaimRecordingError(f"no claim with idempotency key {idempotency_key}")

    def _commit(self, ledger: list[ClaimRecord]) -> None:
        # Build every new scheme version before swapping anything in
        summary = summarize_claims(ledger)
        updated: dict[str, SchemeBase] = {}
        for scheme_id, counters in summary.items():
            base = self._baseline[scheme_id]
            updated[scheme_id] = apply_counters(
                self._schemes[scheme_id],
                SchemeCounters(
                    claims_generated=base.claims_generated + counters.claims_generated,
                    claims_approved=base.claims_approved + counters.claims_approved,
                    total_payout=base.total_payout + counters.total_payout,
                ),
            )

        self._schemes.update(updated)
        self._claims = ledger
        self._keys = {claim.idempotency_key for claim in ledger}
