"""Threshold evaluation for completed metric records."""

from __future__ import annotations

from collections.abc import Sequence

from .metric_schema import METRIC_COUNT, METRIC_SCHEMA
from .models import Violation


class ThresholdSchemaMismatchError(ValueError):
    """Raised when metric or threshold vectors do not match the metric schema."""


def domain_evaluate_thresholds(metrics: Sequence[float], thresholds: Sequence[float]) -> tuple[Violation, ...]:
    """Return the metrics that reached or exceeded their thresholds.

    A metric equal to its threshold counts as a violation.

    Args:
        metrics: Observed metric values in schema order.
        thresholds: Threshold values in schema order.

    Returns:
        tuple[Violation, ...]: Violations in schema order, empty when none.

    Raises:
        ThresholdSchemaMismatchError: Raised when either vector length differs from the schema.
    """

    if len(metrics) != METRIC_COUNT or len(thresholds) != METRIC_COUNT:
        raise ThresholdSchemaMismatchError(
            f"expected {METRIC_COUNT} metrics and thresholds, got metrics={len(metrics)} thresholds={len(thresholds)}"
        )

    return tuple(
        Violation(
            name=metric_field.display_name,
            units=metric_field.units,
            observed_value=float(observed_value),
            threshold_value=float(threshold_value),
        )
        for metric_field, observed_value, threshold_value in zip(METRIC_SCHEMA, metrics, thresholds)
        if observed_value >= threshold_value
    )
