"""Regression tests for threshold evaluation."""

from __future__ import annotations

import pytest

from wpt_monitor.domain import METRIC_SCHEMA, ThresholdSchemaMismatchError, domain_evaluate_thresholds

_THRESHOLDS = (10.0, 2000.0, 200.0, 100.0, 400.0, 1800.0, 20.0, 5.0, 5.0)


def test_evaluate_returns_no_violation_when_all_metrics_below_thresholds() -> None:
    """Metrics strictly below every threshold produce no violations."""

    metrics = (5.0, 1000.0, 100.0, 50.0, 200.0, 900.0, 10.0, 2.0, 1.0)

    assert domain_evaluate_thresholds(metrics, _THRESHOLDS) == ()


def test_evaluate_treats_equal_value_as_violation() -> None:
    """A metric equal to its threshold is reported."""

    metrics = (5.0, 1000.0, 200.0, 50.0, 200.0, 900.0, 10.0, 2.0, 1.0)

    violations = domain_evaluate_thresholds(metrics, _THRESHOLDS)

    assert [violation.name for violation in violations] == ["Webpagetest Speed Index"]
    assert violations[0].observed_value == 200.0
    assert violations[0].threshold_value == 200.0


def test_evaluate_reports_violations_in_schema_order_with_units() -> None:
    """Violations follow metric-schema order and carry display names and units."""

    metrics = (50.0, 1000.0, 100.0, 50.0, 200.0, 5000.0, 10.0, 2.0, 9.0)

    violations = domain_evaluate_thresholds(metrics, _THRESHOLDS)

    assert [violation.name for violation in violations] == [
        "Number of Requests",
        "Fully Loaded",
        "Compression Savings",
    ]
    assert [violation.units for violation in violations] == ["", "ms", "bytes"]


def test_evaluate_flags_every_metric_when_thresholds_are_zero() -> None:
    """Zero thresholds flag every non-negative metric."""

    violations = domain_evaluate_thresholds((0.0,) * len(METRIC_SCHEMA), (0.0,) * len(METRIC_SCHEMA))

    assert len(violations) == len(METRIC_SCHEMA)


@pytest.mark.parametrize(
    ("metrics", "thresholds"),
    [
        ((1.0,) * 8, _THRESHOLDS),
        ((1.0,) * 9, _THRESHOLDS[:8]),
        ((1.0,) * 10, _THRESHOLDS + (1.0,)),
    ],
)
def test_evaluate_rejects_vectors_that_do_not_match_schema(metrics, thresholds) -> None:
    """Length mismatches raise a schema mismatch error."""

    with pytest.raises(ThresholdSchemaMismatchError):
        domain_evaluate_thresholds(metrics, thresholds)
