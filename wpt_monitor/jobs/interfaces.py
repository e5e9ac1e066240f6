"""Typed result contracts for job-layer workflows."""

from dataclasses import dataclass, field

from wpt_monitor.domain import PendingJob, TargetSpec


@dataclass(frozen=True)
class RejectedTarget:
    """Target refused before any external call.

    Attributes:
        target: Requested target.
        reason: Rejection code (`invalid_url`, `already_outstanding`,
            `duplicate_in_request`, `capacity_exceeded`).
        detail: Human-readable explanation.
    """

    target: TargetSpec
    reason: str
    detail: str


@dataclass(frozen=True)
class SubmissionFailure:
    """Target whose submission call did not yield a polling handle.

    Attributes:
        target: Requested target.
        status_code: Service or HTTP status code, when known.
        message: Failure description.
    """

    target: TargetSpec
    status_code: int | None
    message: str


@dataclass(frozen=True)
class SubmissionOutcome:
    """Result of one submission request.

    Attributes:
        submitted_jobs: Jobs created and stored, in request order.
        rejected_targets: Targets refused without an external call.
        failed_submissions: Targets whose submission call failed.
        activation_id: Active poll activation after the request, when jobs were stored.
    """

    submitted_jobs: tuple[PendingJob, ...]
    rejected_targets: tuple[RejectedTarget, ...]
    failed_submissions: tuple[SubmissionFailure, ...]
    activation_id: str | None = None


@dataclass(frozen=True)
class PollCycleResult:
    """Result of one poll-cycle activation.

    Attributes:
        job_name: Workflow identifier.
        status: `success`, `aborted`, or `skipped`.
        completed_keys: Targets completed this cycle, in processing order.
        pending_keys: Targets observed still pending this cycle.
        alerted_keys: Targets for which the alert sink was invoked.
        deactivated: Whether the poll activation was removed at the end of the cycle.
        error_type: Exception type name when the cycle aborted.
        error_message: Exception message when the cycle aborted.
        timeline: Structured stage events recorded during the cycle.
    """

    job_name: str
    status: str
    completed_keys: tuple[str, ...] = ()
    pending_keys: tuple[str, ...] = ()
    alerted_keys: tuple[str, ...] = ()
    deactivated: bool = False
    error_type: str | None = None
    error_message: str | None = None
    timeline: list[dict[str, object]] = field(default_factory=list)
