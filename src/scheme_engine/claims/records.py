"""
Claim records handed to the claim recorder.

One claim row is produced per applied scheme of a confirmed order, carrying the
resolved benefit value and the line items it was granted on.
"""

from datetime import date
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from ..shared.models import (
    MONETARY_BENEFITS,
    BenefitType,
    EvaluationContext,
    FreeGood,
    OutletType,
    SchemeCalculationResult,
)
from ..shared.money import ZERO


class ClaimStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ClaimRecord(BaseModel):
    """A claim row as persisted by the claim recorder."""

    model_config = ConfigDict(frozen=True)

    scheme_id: str
    applicant_type: OutletType
    outlet_id: str
    order_id: str | None = None
    benefit_type: BenefitType
    benefit_value: Decimal = Field(..., description="Resolved value after capping")
    claim_amount: Decimal = Field(
        ZERO, ge=0, description="Payout owed for monetary benefits"
    )
    free_goods: tuple[FreeGood, ...] = ()
    affected_line_item_ids: tuple[str, ...] = ()
    claim_status: ClaimStatus = ClaimStatus.PENDING
    remarks: str | None = None
    idempotency_key: str = Field(..., min_length=1)
    as_of_date: date


class SchemeCounters(BaseModel):
    """Running counters kept on each scheme."""

    claims_generated: int = 0
    claims_approved: int = 0
    total_payout: Decimal = ZERO


def build_claim_records(
    result: SchemeCalculationResult,
    context: EvaluationContext,
    order_id: str | None = None,
) -> list[ClaimRecord]:
    """
    Convert a confirmed order's applied schemes into claim rows.

    Args:
        result: Calculation result for the confirmed cart
        context: Context the cart was evaluated with
        order_id: Order the claims belong to

    Returns:
        One pending claim per applied scheme, in acceptance order
    """
    claims = []
    for applied in result.applied_schemes:
        amount = (
            applied.benefit_value
            if applied.benefit_type in MONETARY_BENEFITS
            else ZERO
        )
        claims.append(
            ClaimRecord(
                scheme_id=applied.scheme_id,
                applicant_type=context.outlet_type,
                outlet_id=context.outlet_id,
                order_id=order_id,
                benefit_type=applied.benefit_type,
                benefit_value=applied.benefit_value,
                claim_amount=amount,
                free_goods=tuple(applied.free_goods),
                affected_line_item_ids=tuple(applied.affected_line_item_ids),
                remarks=applied.override_reason if applied.overridden else None,
                idempotency_key=applied.idempotency_key,
                as_of_date=result.as_of_date,
            )
        )
    return claims
