"""
Scheme evaluation pipeline.

Eligibility filter, benefit evaluators, conflict resolver and aggregator, wired
together by ``SchemeCalculator``. Nothing in this package writes claims or mutates
scheme counters.
"""

from .calculator import SchemeCalculator, calculate_schemes
from .eligibility import EligibilityOutcome, filter_eligible
from .evaluators import EVALUATORS, evaluate
from .labels import describe_scheme, schemes_for_product
from .resolver import order_candidates, resolve_candidates
from .validation import configuration_problems, ensure_valid_configuration

__all__ = [
    "SchemeCalculator",
    "calculate_schemes",
    "EligibilityOutcome",
    "filter_eligible",
    "EVALUATORS",
    "evaluate",
    "describe_scheme",
    "schemes_for_product",
    "order_candidates",
    "resolve_candidates",
    "configuration_problems",
    "ensure_valid_configuration",
]
