"""Job-layer submitter turning requested targets into tracked jobs."""

from __future__ import annotations

import threading
from collections.abc import Sequence

import structlog

from wpt_monitor.adapters import WebPageTestAdapterError, WebPageTestAdapterPort
from wpt_monitor.db import DuplicateJobKeyError, JobStorePort
from wpt_monitor.domain import (
    PendingJob,
    SubmitRejected,
    TargetSpec,
    TargetValidationError,
    domain_target_require_valid,
)
from wpt_monitor.scheduling import PollSchedulerPort

from .interfaces import RejectedTarget, SubmissionFailure, SubmissionOutcome
from .poll_cycle import JOB_STATE_LOCK

logger = structlog.get_logger(__name__)


class JobSubmitter:
    """Submits measurement targets and records each accepted job in the job store.

    Targets are handled in request order. Invalid URLs, keys that are already
    outstanding or repeated, and targets beyond the free slot count are
    rejected before any external call. A failed submission call affects only
    its own target. A submission holds the job state lock, so a poll cycle in
    the same process never deactivates polling between storing a job and
    activating polling for it.
    """

    def __init__(
        self,
        job_store: JobStorePort,
        adapter: WebPageTestAdapterPort,
        poll_scheduler: PollSchedulerPort,
        cycle_lock: threading.Lock | None = None,
    ):
        if job_store is None:
            raise ValueError("job_store must not be None")
        if adapter is None:
            raise ValueError("adapter must not be None")
        if poll_scheduler is None:
            raise ValueError("poll_scheduler must not be None")
        self._job_store = job_store
        self._adapter = adapter
        self._poll_scheduler = poll_scheduler
        self._cycle_lock = cycle_lock if cycle_lock is not None else JOB_STATE_LOCK

    def job_submit(self, targets: Sequence[TargetSpec]) -> SubmissionOutcome:
        """Submit targets and activate polling when at least one job was stored.

        Args:
            targets: Requested targets in priority order.

        Returns:
            SubmissionOutcome: Stored jobs, rejected targets, and failed submissions.

        Raises:
            DuplicateJobKeyError: Raised when the store already tracks a key that passed the pre-check.
            RuntimeError: Raised when job store or scheduling persistence fails.
        """

        with self._cycle_lock:
            return self._job_submit_locked(targets)

    def _job_submit_locked(self, targets: Sequence[TargetSpec]) -> SubmissionOutcome:
        outstanding_keys = {job.target_key for job in self._job_store.db_job_list_all()}
        remaining_capacity = max(0, self._job_store.db_job_capacity() - len(outstanding_keys))

        submitted_jobs: list[PendingJob] = []
        rejected_targets: list[RejectedTarget] = []
        failed_submissions: list[SubmissionFailure] = []
        requested_keys: set[str] = set()
        attempted_count = 0
        activation_id: str | None = None

        try:
            for target in targets:
                try:
                    target_url = domain_target_require_valid(target.target_url)
                except TargetValidationError as error:
                    rejected_targets.append(self._job_reject(target, "invalid_url", str(error)))
                    continue

                target_key = target.target_key.strip() or target_url
                if target_key in outstanding_keys:
                    rejected_targets.append(
                        self._job_reject(target, "already_outstanding", f"job already outstanding for {target_key}")
                    )
                    continue
                if target_key in requested_keys:
                    rejected_targets.append(
                        self._job_reject(target, "duplicate_in_request", f"{target_key} requested more than once")
                    )
                    continue
                requested_keys.add(target_key)

                if attempted_count >= remaining_capacity:
                    rejected_targets.append(
                        self._job_reject(
                            target,
                            "capacity_exceeded",
                            f"all {self._job_store.db_job_capacity()} job slots are in use",
                        )
                    )
                    continue
                attempted_count += 1

                stored_job = self._job_submit_one(target, target_key, target_url, failed_submissions)
                if stored_job is not None:
                    submitted_jobs.append(stored_job)
        finally:
            if submitted_jobs:
                activation_id = self._poll_scheduler.scheduler_ensure_active()

        logger.info(
            "Submission request processed",
            submitted_count=len(submitted_jobs),
            rejected_count=len(rejected_targets),
            failed_count=len(failed_submissions),
            activation_id=activation_id,
        )
        return SubmissionOutcome(
            submitted_jobs=tuple(submitted_jobs),
            rejected_targets=tuple(rejected_targets),
            failed_submissions=tuple(failed_submissions),
            activation_id=activation_id,
        )

    def _job_submit_one(
        self,
        target: TargetSpec,
        target_key: str,
        target_url: str,
        failed_submissions: list[SubmissionFailure],
    ) -> PendingJob | None:
        """Issue one submission call and store the job on acceptance.

        Returns:
            PendingJob | None: Stored job, or None when the submission failed.

        Raises:
            DuplicateJobKeyError: Raised when the key became outstanding since the pre-check.
        """

        try:
            submit_result = self._adapter.adapter_submit_test(target_url)
        except WebPageTestAdapterError as error:
            failed_submissions.append(
                SubmissionFailure(target=target, status_code=error.status_code, message=str(error))
            )
            logger.warning(
                "Submission request failed",
                target_key=target_key,
                status_code=error.status_code,
                error=str(error),
            )
            return None

        if isinstance(submit_result, SubmitRejected):
            failed_submissions.append(
                SubmissionFailure(
                    target=target,
                    status_code=submit_result.status_code,
                    message=submit_result.message or "submission rejected by service",
                )
            )
            logger.warning(
                "Submission rejected by service",
                target_key=target_key,
                status_code=submit_result.status_code,
                status_text=submit_result.message,
            )
            return None

        job = PendingJob(target_key=target_key, handle=submit_result.handle)
        try:
            self._job_store.db_job_put(job)
        except DuplicateJobKeyError:
            logger.error("Job key already tracked after pre-check", target_key=target_key, handle=job.handle)
            raise

        logger.info("Job submitted", target_key=target_key, handle=job.handle, report_link=submit_result.report_link)
        return job

    def _job_reject(self, target: TargetSpec, reason: str, detail: str) -> RejectedTarget:
        logger.warning("Target rejected", target_key=target.target_key, reason=reason, detail=detail)
        return RejectedTarget(target=target, reason=reason, detail=detail)
