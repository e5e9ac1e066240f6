"""Typed domain models shared across runtime layers.

This module provides immutable data contracts for targets, outstanding jobs,
completed metric records, thresholds, and the tagged submit/poll results
returned by the testing-service adapter.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class HealthStatus:
    """Health response contract used by health-check surfaces.

    Attributes:
        status: Overall status text for service health.
        detail: Additional message suitable for operational diagnostics.
    """

    status: str
    detail: str


@dataclass(frozen=True)
class TargetSpec:
    """One logical measurement target requested by the caller.

    Attributes:
        target_key: Stable identifier of the logical target.
        target_url: URL submitted to the testing service.
    """

    target_key: str
    target_url: str

    @classmethod
    def from_url(cls, target_url: str, target_key: str | None = None) -> TargetSpec:
        """Build a target whose key defaults to the stripped URL."""

        normalized_url = target_url.strip()
        normalized_key = (target_key or "").strip() or normalized_url
        return cls(target_key=normalized_key, target_url=normalized_url)


@dataclass(frozen=True)
class PendingJob:
    """One outstanding asynchronous test tracked by target key.

    Attributes:
        target_key: Logical target identifier, unique among outstanding jobs.
        handle: Opaque polling reference returned by the testing service.
    """

    target_key: str
    handle: str


@dataclass(frozen=True)
class Violation:
    """One metric whose observed value reached or exceeded its threshold.

    Attributes:
        name: Human-readable metric name.
        units: Unit label, possibly empty.
        observed_value: Measured metric value.
        threshold_value: Configured limit for the metric.
    """

    name: str
    units: str
    observed_value: float
    threshold_value: float


@dataclass(frozen=True)
class ThresholdSet:
    """Ordered numeric limits aligned with the metric schema.

    Attributes:
        values: Threshold values in metric-schema order.
    """

    values: tuple[float, ...]


@dataclass(frozen=True)
class MetricRecord:
    """Immutable result of one completed job.

    Attributes:
        target_key: Logical target identifier.
        completed_at_utc: Result timestamp reported by the service.
        metrics: Metric values in schema order.
        report_link: Human-viewable report URL.
    """

    target_key: str
    completed_at_utc: datetime
    metrics: tuple[float, ...]
    report_link: str


@dataclass(frozen=True)
class SubmitAccepted:
    """Submission accepted by the testing service.

    Attributes:
        handle: Polling reference for the queued test.
        test_id: Service-side test identifier.
        report_link: Human-viewable report URL.
    """

    handle: str
    test_id: str
    report_link: str


@dataclass(frozen=True)
class SubmitRejected:
    """Submission refused by the testing service.

    Attributes:
        status_code: Numeric status reported by the service.
        message: Status text reported by the service.
    """

    status_code: int
    message: str


SubmitResult = SubmitAccepted | SubmitRejected


@dataclass(frozen=True)
class PollPending:
    """Test is queued or running.

    Attributes:
        status_code: Service status code in the 1xx range.
        status_text: Service status text.
    """

    status_code: int
    status_text: str


@dataclass(frozen=True)
class PollCompleted:
    """Test finished with a median first-view metric bundle.

    Attributes:
        metrics: Metric values in schema order.
        report_link: Human-viewable report URL.
        completed_at_utc: Completion timestamp.
    """

    metrics: tuple[float, ...]
    report_link: str
    completed_at_utc: datetime


@dataclass(frozen=True)
class PollMalformed:
    """Poll response that is neither pending nor a usable completion.

    Attributes:
        detail: Diagnostic description of the response.
    """

    detail: str


PollResult = PollPending | PollCompleted | PollMalformed
