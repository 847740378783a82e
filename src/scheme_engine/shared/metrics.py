"""Prometheus metrics for scheme evaluations."""

from prometheus_client import REGISTRY, Counter, Histogram


def _get_or_create_metric(metric_class, name: str, doc: str, labelnames=None, **kwargs):
    """Get existing metric or create new one to avoid duplication errors in tests."""
    # Counters register under the name without the _total suffix
    candidates = {name, name.removesuffix("_total")}
    for collector in list(REGISTRY._collector_to_names.keys()):
        if getattr(collector, "_name", None) in candidates:
            return collector
    try:
        if labelnames is not None:
            kwargs["labelnames"] = labelnames
        return metric_class(name, doc, registry=REGISTRY, **kwargs)
    except ValueError as e:
        if "Duplicated timeseries" in str(e):
            for collector in list(REGISTRY._collector_to_names.keys()):
                if getattr(collector, "_name", None) in candidates:
                    return collector
        raise


evaluations_total = _get_or_create_metric(
    Counter,
    "scheme_evaluations_total",
    "Total number of cart evaluations completed",
)

evaluation_duration_seconds = _get_or_create_metric(
    Histogram,
    "scheme_evaluation_duration_seconds",
    "Time taken to evaluate all schemes against one cart",
    buckets=[0.0005, 0.001, 0.0025, 0.005, 0.01, 0.025, 0.05, 0.1, 0.5],
)

schemes_excluded_total = _get_or_create_metric(
    Counter,
    "schemes_excluded_total",
    "Schemes considered but not applied, by reason",
    ["reason"],
)

schemes_applied_total = _get_or_create_metric(
    Counter,
    "schemes_applied_total",
    "Schemes applied to a cart, by benefit type",
    ["benefit_type"],
)

degraded_results_total = _get_or_create_metric(
    Counter,
    "scheme_degraded_results_total",
    "Evaluations whose discount had to be clamped to the cart total",
)

contract_violations_total = _get_or_create_metric(
    Counter,
    "scheme_contract_violations_total",
    "Evaluations refused because of invalid caller input",
    ["error_type"],
)


class MetricsCollector:
    """Helper class for collecting and updating evaluation metrics."""

    def __init__(self, enabled: bool = True):
        self.enabled = enabled

    def record_evaluation(self, duration: float):
        """Record a completed evaluation."""
        if not self.enabled:
            return
        evaluations_total.inc()
        evaluation_duration_seconds.observe(duration)

    def record_exclusion(self, reason: str):
        if self.enabled:
            schemes_excluded_total.labels(reason=reason).inc()

    def record_applied(self, benefit_type: str):
        if self.enabled:
            schemes_applied_total.labels(benefit_type=benefit_type).inc()

    def record_degraded(self):
        if self.enabled:
            degraded_results_total.inc()

    def record_contract_violation(self, error_type: str):
        """Record an evaluation refused with a caller contract error."""
        if self.enabled:
            contract_violations_total.labels(error_type=error_type).inc()
