"""
Core data models for the scheme calculation engine.

This module contains the scheme records the engine consumes (one pydantic model per
scheme type, combined into a tagged union on ``type``), the per-call inputs (cart
line items and evaluation context), and the result models handed to the UI and to
the claim recorder.
"""

from collections.abc import Iterable, Mapping
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_validator,
)

from .money import quantize_money

# ================================
# ENUMERATIONS
# ================================


class SchemeType(str, Enum):
    """Kinds of promotional schemes."""

    SLAB = "slab"
    BUY_X_GET_Y = "buy_x_get_y"
    COMBO = "combo"
    VALUE_WISE = "value_wise"
    BILL_WISE = "bill_wise"
    DISPLAY = "display"
    VOLUME = "volume"
    PRODUCT = "product"
    OPENING = "opening"


class SchemeStatus(str, Enum):
    """Scheme lifecycle states."""

    DRAFT = "draft"
    PENDING = "pending"
    ACTIVE = "active"
    CLOSED = "closed"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


class BenefitType(str, Enum):
    """What an outlet receives when a scheme applies."""

    DISCOUNT = "discount"
    FREE_QTY = "free_qty"
    CASHBACK = "cashback"
    POINTS = "points"
    COUPON = "coupon"


MONETARY_BENEFITS = frozenset(
    {BenefitType.DISCOUNT, BenefitType.CASHBACK, BenefitType.COUPON}
)


class Applicability(str, Enum):
    """Which outlets may claim a scheme."""

    ALL_OUTLETS = "all_outlets"
    DISTRIBUTOR = "distributor"
    RETAILER = "retailer"
    SEGMENT = "segment"
    AREA = "area"
    ZONE = "zone"


class OutletType(str, Enum):
    DISTRIBUTOR = "distributor"
    RETAILER = "retailer"


class ExclusionReason(str, Enum):
    """Why a scheme did not contribute to a result."""

    CONFIGURATION_ERROR = "configuration_error"
    INACTIVE_STATUS = "inactive_status"
    OUTSIDE_VALIDITY_WINDOW = "outside_validity_window"
    APPLICABILITY_MISMATCH = "applicability_mismatch"
    NO_ELIGIBLE_SKU = "no_eligible_sku"
    BELOW_MIN_ORDER_VALUE = "below_min_order_value"
    CLAIM_LIMIT_EXHAUSTED = "claim_limit_exhausted"
    NO_BENEFIT = "no_benefit"
    SUPERSEDED = "superseded"


# ================================
# SCHEME MODELS (ENGINE INPUT)
# ================================


class SlabConfig(BaseModel):
    """One quantity (or value) range mapped to a benefit."""

    model_config = ConfigDict(frozen=True)

    min_qty: Decimal = Field(..., description="Inclusive lower bound")
    max_qty: Decimal | None = Field(
        None, description="Inclusive upper bound (None = open-ended top slab)"
    )
    benefit_value: Decimal = Field(
        ..., description="Percent for discounts, units for free_qty, amount otherwise"
    )

    def contains(self, amount: Decimal | int) -> bool:
        """True if ``amount`` falls inside this slab."""
        if amount < self.min_qty:
            return False
        return self.max_qty is None or amount <= self.max_qty

    def describe(self) -> str:
        upper = "+" if self.max_qty is None else f"-{self.max_qty}"
        return f"{self.min_qty}{upper}"


class SchemeBase(BaseModel):
    """
    Fields shared by every scheme type.

    Structural types are validated here; semantic rules (date ordering, slab overlap,
    percent ranges) are checked by ``engine.validation`` so a bad scheme is reported
    as a diagnostic instead of aborting the whole evaluation.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Scheme primary key")
    code: str | None = Field(None, description="Short scheme code")
    name: str = Field(..., min_length=1, description="Display name")
    description: str | None = None
    status: SchemeStatus = Field(..., description="Lifecycle state")
    benefit_type: BenefitType = Field(BenefitType.DISCOUNT)
    applicability: Applicability = Field(Applicability.ALL_OUTLETS)
    applicability_targets: frozenset[str] = Field(
        default_factory=frozenset,
        description="Segment/area/zone values the scheme is restricted to",
    )
    eligible_skus: frozenset[str] = Field(
        default_factory=frozenset, description="Empty = every product qualifies"
    )
    start_date: date
    end_date: date
    min_order_value: Decimal = Field(Decimal("0"))
    max_benefit: Decimal | None = Field(
        None, description="Cap on monetary benefit per claim (None = uncapped)"
    )
    outlet_claim_limit: int | None = Field(
        None, description="Maximum claims per outlet (None = unlimited)"
    )

    # Counters owned by the claim recorder; the engine only reads them
    claims_generated: int = 0
    claims_approved: int = 0
    total_payout: Decimal = Decimal("0")

    @field_validator("eligible_skus", "applicability_targets", mode="before")
    @classmethod
    def none_to_empty_set(cls, v):
        """Treat missing SKU/target lists as empty."""
        if v is None:
            return frozenset()
        return v

    @field_validator("applicability", mode="before")
    @classmethod
    def default_applicability(cls, v):
        return v or Applicability.ALL_OUTLETS

    @field_validator("min_order_value", mode="before")
    @classmethod
    def none_to_zero(cls, v):
        return Decimal("0") if v is None else v

    @field_validator("max_benefit", mode="before")
    @classmethod
    def zero_means_uncapped(cls, v):
        """A max_benefit of 0 or absent means the scheme is uncapped."""
        if v is None or v == 0 or v == "":
            return None
        return v

    @field_validator("slab_config", mode="before", check_fields=False)
    @classmethod
    def none_to_no_slabs(cls, v):
        return () if v is None else v

    @property
    def scheme_type(self) -> SchemeType:
        return SchemeType(self.type)

    def applies_to_product(self, product_id: str, sku: str | None = None) -> bool:
        """True if the product is covered by ``eligible_skus``."""
        if not self.eligible_skus:
            return True
        return product_id in self.eligible_skus or (
            sku is not None and sku in self.eligible_skus
        )


class SlabScheme(SchemeBase):
    type: Literal["slab"] = "slab"
    slab_config: tuple[SlabConfig, ...] = ()
    free_product_id: str | None = None
    free_product_name: str | None = None


class BuyXGetYScheme(SchemeBase):
    type: Literal["buy_x_get_y"] = "buy_x_get_y"
    benefit_type: BenefitType = Field(BenefitType.FREE_QTY)
    min_quantity: int | None = None
    free_quantity: int | None = None
    free_product_id: str | None = None
    free_product_name: str | None = None


class ComboScheme(SchemeBase):
    type: Literal["combo"] = "combo"
    discount_percent: Decimal | None = None


class ValueWiseScheme(SchemeBase):
    type: Literal["value_wise"] = "value_wise"
    discount_percent: Decimal | None = None
    slab_config: tuple[SlabConfig, ...] = ()


class BillWiseScheme(SchemeBase):
    type: Literal["bill_wise"] = "bill_wise"
    discount_percent: Decimal | None = None
    slab_config: tuple[SlabConfig, ...] = ()


class DisplayScheme(SchemeBase):
    type: Literal["display"] = "display"
    benefit_type: BenefitType = Field(BenefitType.CASHBACK)
    benefit_amount: Decimal | None = Field(
        None, description="Fixed cashback amount or points per claim"
    )


class VolumeScheme(SchemeBase):
    type: Literal["volume"] = "volume"
    min_quantity: int | None = None
    discount_percent: Decimal | None = None


class ProductScheme(SchemeBase):
    type: Literal["product"] = "product"
    discount_percent: Decimal | None = None


class OpeningScheme(SchemeBase):
    type: Literal["opening"] = "opening"
    discount_percent: Decimal | None = None


Scheme = Annotated[
    Union[
        SlabScheme,
        BuyXGetYScheme,
        ComboScheme,
        ValueWiseScheme,
        BillWiseScheme,
        DisplayScheme,
        VolumeScheme,
        ProductScheme,
        OpeningScheme,
    ],
    Field(discriminator="type"),
]

SCHEME_ADAPTER: TypeAdapter[Scheme] = TypeAdapter(Scheme)


# ================================
# PER-CALL INPUTS
# ================================


class CartLineItem(BaseModel):
    """One line of the order being priced."""

    line_id: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("line_id", "lineId"),
        description="Stable id of the line (defaults to product id)",
    )
    product_id: str = Field(
        ..., min_length=1, validation_alias=AliasChoices("product_id", "productId")
    )
    product_name: str = Field(
        "", validation_alias=AliasChoices("product_name", "productName")
    )
    sku: str | None = None
    category: str | None = None
    quantity: int = Field(..., ge=0)
    unit_price: Decimal = Field(
        ..., ge=0, validation_alias=AliasChoices("unit_price", "unitPrice")
    )
    line_total: Decimal | None = Field(
        None, validation_alias=AliasChoices("line_total", "lineTotal", "total")
    )

    @model_validator(mode="before")
    @classmethod
    def default_line_id(cls, data: Any) -> Any:
        """Use the product id as line id when the caller does not supply one."""
        if isinstance(data, Mapping) and not (
            data.get("line_id") or data.get("lineId")
        ):
            data = dict(data)
            data["line_id"] = data.get("product_id") or data.get("productId")
        return data

    @model_validator(mode="after")
    def check_line_total(self) -> "CartLineItem":
        expected = quantize_money(self.unit_price * self.quantity)
        if self.line_total is None:
            self.line_total = expected
        elif quantize_money(self.line_total) != expected:
            raise ValueError(
                f"line_total {self.line_total} does not equal "
                f"quantity x unit_price ({expected})"
            )
        else:
            self.line_total = expected
        return self


class EvaluationContext(BaseModel):
    """Outlet-side inputs for one evaluation call."""

    outlet_type: OutletType = Field(
        ..., validation_alias=AliasChoices("outlet_type", "outletType")
    )
    outlet_id: str = Field(
        ..., min_length=1, validation_alias=AliasChoices("outlet_id", "outletId")
    )
    outlet_category: str | None = Field(
        None,
        validation_alias=AliasChoices("outlet_category", "outletCategory"),
        description="Segment the outlet belongs to",
    )
    area: str | None = None
    zone: str | None = None
    as_of_date: date | None = Field(
        None,
        validation_alias=AliasChoices("as_of_date", "asOfDate"),
        description="Evaluation date (defaults to today)",
    )
    claim_history: dict[str, int] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("claim_history", "claimHistory"),
        description="Prior claims by this outlet, keyed by scheme id",
    )

    @field_validator("claim_history")
    @classmethod
    def validate_claim_counts(cls, v: dict[str, int]) -> dict[str, int]:
        for scheme_id, count in v.items():
            if count < 0:
                raise ValueError(
                    f"claim_history count for scheme '{scheme_id}' cannot be negative"
                )
        return v

    def attribute_for(self, applicability: Applicability) -> str | None:
        """Return the outlet attribute a segment/area/zone scheme is keyed on."""
        if applicability == Applicability.SEGMENT:
            return self.outlet_category
        if applicability == Applicability.AREA:
            return self.area
        if applicability == Applicability.ZONE:
            return self.zone
        return None


class SchemeOverride(BaseModel):
    """A manual replacement for the benefit a scheme would otherwise grant."""

    model_config = ConfigDict(frozen=True)

    scheme_id: str = Field(..., min_length=1)
    discount_amount: Decimal | None = Field(None, ge=0)
    free_quantity: int | None = Field(None, ge=0)
    reason: str = Field(..., min_length=1, description="Why the benefit was changed")


# ================================
# ENGINE OUTPUT
# ================================


class FreeGood(BaseModel):
    model_config = ConfigDict(frozen=True)

    product_id: str
    product_name: str
    quantity: int = Field(..., ge=0)


class Candidate(BaseModel):
    """The benefit one scheme would grant if nothing else competed with it."""

    scheme_id: str
    scheme_name: str
    scheme_code: str | None = None
    scheme_type: SchemeType
    kind: BenefitType
    value: Decimal = Field(
        ..., description="Amount, points or free units depending on kind"
    )
    monetary_value: Decimal = Field(
        ..., description="Value in currency, used for ordering and capping"
    )
    consumed_line_ids: tuple[str, ...] = ()
    free_goods: tuple[FreeGood, ...] = ()
    rule: str = Field(..., description="Which slab or threshold produced the value")
    description: str = ""
    overridden: bool = False
    override_reason: str | None = None


class AppliedScheme(BaseModel):
    """An accepted benefit, in the shape the claim recorder consumes."""

    scheme_id: str
    scheme_name: str
    scheme_code: str | None = None
    scheme_type: SchemeType
    benefit_type: BenefitType
    benefit_value: Decimal = Field(..., description="Resolved value after capping")
    computed_value: Decimal = Field(..., description="Value before max_benefit cap")
    monetary_value: Decimal
    capped: bool = False
    free_goods: list[FreeGood] = Field(default_factory=list)
    affected_line_item_ids: list[str] = Field(default_factory=list)
    rule: str = ""
    description: str = ""
    overridden: bool = False
    override_reason: str | None = None
    idempotency_key: str = ""


class SchemeDiagnostic(BaseModel):
    """A scheme that was considered but did not contribute."""

    model_config = ConfigDict(frozen=True)

    scheme_id: str
    exclusion_reason: ExclusionReason
    detail: str = ""


class SchemeCalculationResult(BaseModel):
    """Totals breakdown returned for an order preview or confirmation."""

    original_total: Decimal
    discounted_total: Decimal
    total_discount: Decimal
    total_cashback: Decimal = Decimal("0.00")
    total_points: Decimal = Decimal("0.00")
    total_coupon_value: Decimal = Decimal("0.00")
    total_free_goods: list[FreeGood] = Field(default_factory=list)
    applied_schemes: list[AppliedScheme] = Field(default_factory=list)
    diagnostics: list[SchemeDiagnostic] = Field(default_factory=list)
    degraded: bool = False
    as_of_date: date
    evaluation_key: str = ""

    @model_validator(mode="after")
    def validate_totals(self) -> "SchemeCalculationResult":
        """Enforce discounted_total = original_total - total_discount."""
        if self.total_discount < 0 or self.total_discount > self.original_total:
            raise ValueError(
                f"total_discount {self.total_discount} outside "
                f"[0, {self.original_total}]"
            )
        if self.discounted_total != self.original_total - self.total_discount:
            raise ValueError("discounted_total must equal original_total - total_discount")
        return self


# ================================
# PARSING
# ================================


def parse_scheme_records(
    records: Iterable[Mapping[str, Any] | SchemeBase],
) -> tuple[list[SchemeBase], list[SchemeDiagnostic]]:
    """
    Convert raw scheme records into typed scheme models.

    Records that cannot be parsed are reported as configuration diagnostics rather
    than raised, so one malformed scheme never blocks the rest of the cart.

    Args:
        records: Scheme rows as dictionaries, or already-built scheme models

    Returns:
        Tuple of (parsed schemes, diagnostics for rejected records)
    """
    schemes: list[SchemeBase] = []
    diagnostics: list[SchemeDiagnostic] = []

    for index, record in enumerate(records):
        if isinstance(record, SchemeBase):
            schemes.append(record)
            continue

        try:
            schemes.append(SCHEME_ADAPTER.validate_python(record))
        except ValidationError as e:
            scheme_id = None
            if isinstance(record, Mapping):
                scheme_id = record.get("id")
            messages = [
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                for err in e.errors()
            ]
            diagnostics.append(
                SchemeDiagnostic(
                    scheme_id=str(scheme_id) if scheme_id else f"record[{index}]",
                    exclusion_reason=ExclusionReason.CONFIGURATION_ERROR,
                    detail="; ".join(messages),
                )
            )

    return schemes, diagnostics
