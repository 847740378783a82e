"""
Pytest configuration and fixtures for scheme engine tests.

Provides scheme record factories, sample carts and evaluation contexts.
"""

import sys
from datetime import date
from pathlib import Path

import pytest

# Ensure src/ is on sys.path for local test runs without installation
_SRC = Path(__file__).resolve().parents[1] / "src"
if _SRC.exists() and str(_SRC) not in sys.path:
    sys.path.insert(0, str(_SRC))

from scheme_engine.config.models import EngineConfig  # noqa: E402
from scheme_engine.engine.calculator import SchemeCalculator  # noqa: E402
from scheme_engine.shared.models import SCHEME_ADAPTER, CartLineItem  # noqa: E402

AS_OF = date(2024, 6, 15)


def make_scheme(**overrides) -> dict:
    """Raw active scheme record valid on AS_OF; keyword arguments replace fields."""
    record = {
        "id": "SCH-1",
        "code": "S1",
        "name": "Test scheme",
        "type": "slab",
        "status": "active",
        "benefit_type": "discount",
        "applicability": "all_outlets",
        "start_date": "2024-01-01",
        "end_date": "2024-12-31",
        "slab_config": [
            {"min_qty": 1, "max_qty": 9, "benefit_value": 5},
            {"min_qty": 10, "max_qty": 999, "benefit_value": 10},
        ],
    }
    record.update(overrides)
    return record


def make_line(product_id="P1", quantity=1, unit_price="100.00", **extra) -> dict:
    line = {
        "product_id": product_id,
        "product_name": f"Product {product_id}",
        "sku": f"SKU-{product_id}",
        "quantity": quantity,
        "unit_price": unit_price,
    }
    line.update(extra)
    return line


@pytest.fixture
def as_of() -> date:
    return AS_OF


@pytest.fixture
def context() -> dict:
    """Retailer context evaluated on AS_OF with no claim history."""
    return {
        "outlet_type": "retailer",
        "outlet_id": "OUT-1",
        "outlet_category": "premium",
        "area": "north",
        "zone": "Z1",
        "as_of_date": AS_OF.isoformat(),
        "claim_history": {},
    }


@pytest.fixture
def slab_scheme() -> dict:
    return make_scheme()


@pytest.fixture
def bogo_scheme() -> dict:
    return make_scheme(
        id="BXGY-1",
        name="Buy 5 Get 1",
        type="buy_x_get_y",
        benefit_type="free_qty",
        min_quantity=5,
        free_quantity=1,
        eligible_skus=["P1"],
        slab_config=None,
    )


@pytest.fixture
def twelve_units() -> list[dict]:
    return [make_line("P1", 12, "100.00")]


@pytest.fixture
def config() -> EngineConfig:
    return EngineConfig(metrics_enabled=False)


@pytest.fixture
def calculator(config) -> SchemeCalculator:
    return SchemeCalculator(config=config, clock=lambda: AS_OF)


@pytest.fixture
def scheme_factory():
    return make_scheme


@pytest.fixture
def line_factory():
    return make_line


@pytest.fixture
def build_scheme():
    """Factory returning parsed scheme models instead of raw records."""

    def _build(**overrides):
        return SCHEME_ADAPTER.validate_python(make_scheme(**overrides))

    return _build


@pytest.fixture
def build_cart():
    """Factory returning validated cart lines from (product_id, qty, price) tuples."""

    def _build(*items):
        return [
            CartLineItem.model_validate(make_line(pid, qty, price))
            for pid, qty, price in items
        ]

    return _build
