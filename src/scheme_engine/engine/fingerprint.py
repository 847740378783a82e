"""
Content hashes for evaluations and claims.

Equal inputs always hash to the same key, so a retried submission of the same cart
produces the same claim idempotency keys and the recorder can discard it.
"""

import hashlib
import json
from collections.abc import Mapping, Sequence
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel

from ..shared.models import CartLineItem, EvaluationContext, SchemeBase, SchemeOverride


def canonical(value: Any) -> Any:
    """Convert a value into a JSON-ready structure with a stable representation."""
    if isinstance(value, BaseModel):
        return {
            name: canonical(getattr(value, name))
            for name in type(value).model_fields
        }
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        # 10, 10.0 and 10.00 are the same amount
        return format(value.normalize(), "f")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Mapping):
        return {str(k): canonical(v) for k, v in value.items()}
    if isinstance(value, (set, frozenset)):
        items = [canonical(v) for v in value]
        return sorted(items, key=lambda item: json.dumps(item, sort_keys=True))
    if isinstance(value, (list, tuple)):
        return [canonical(v) for v in value]
    return value


def content_hash(payload: Any) -> str:
    encoded = json.dumps(canonical(payload), sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()


CLAIM_SCHEME_FIELDS = (
    "id",
    "type",
    "benefit_type",
    "slab_config",
    "discount_percent",
    "eligible_skus",
    "min_quantity",
    "free_quantity",
    "free_product_id",
    "benefit_amount",
    "min_order_value",
    "max_benefit",
)


def scheme_fingerprint(scheme: SchemeBase) -> dict[str, Any]:
    """The scheme fields that decide its benefit.

    Counters and status are left out: the recorder updates them after the first
    claim, and a retried confirmation must still produce the same key.
    """
    return {name: getattr(scheme, name, None) for name in CLAIM_SCHEME_FIELDS}


def claim_idempotency_key(
    cart: Sequence[CartLineItem],
    scheme: SchemeBase,
    outlet_id: str,
    as_of: date,
) -> str:
    """Key identifying one scheme's claim for one cart, outlet and date."""
    return content_hash(
        {
            "cart": list(cart),
            "scheme": scheme_fingerprint(scheme),
            "outlet_id": outlet_id,
            "as_of": as_of,
        }
    )


def evaluation_key(
    cart: Sequence[CartLineItem],
    schemes: Sequence[SchemeBase],
    context: EvaluationContext,
    as_of: date,
    overrides: Mapping[str, SchemeOverride] | None = None,
) -> str:
    """Key identifying a whole evaluation call; used as the log correlation id."""
    return content_hash(
        {
            "cart": list(cart),
            "schemes": sorted(schemes, key=lambda s: s.id),
            "context": context,
            "as_of": as_of,
            "overrides": dict(overrides or {}),
        }
    )
