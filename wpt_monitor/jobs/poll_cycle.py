"""Job-layer poll cycle advancing every outstanding job by one step."""
# pylint: disable=too-many-instance-attributes

from __future__ import annotations

import threading
import traceback

import structlog

from wpt_monitor.adapters import WebPageTestAdapterPort
from wpt_monitor.db import JobStorePort, ResultSinkPort, ThresholdSourcePort
from wpt_monitor.domain import (
    METRIC_COUNT,
    MetricRecord,
    PendingJob,
    PollCompleted,
    PollMalformed,
    PollPending,
    ThresholdSchemaMismatchError,
    ThresholdSet,
    domain_build_cycle_event,
    domain_evaluate_thresholds,
)
from wpt_monitor.notifications import AlertSinkPort
from wpt_monitor.scheduling import PollSchedulerPort

from .errors import CycleAbortError
from .interfaces import PollCycleResult

logger = structlog.get_logger(__name__)

JOB_STATE_LOCK = threading.Lock()
"""Process-wide lock serializing poll cycles and submissions."""


class PollCycleRunner:
    """Runs one poll cycle over a snapshot of the job store.

    Per job: a pending poll leaves the job in place; a completed poll removes
    the job, appends its metric record, evaluates thresholds, and alerts on
    violations. A malformed response or any raised error aborts the rest of the
    cycle; jobs completed earlier in the cycle stay committed and the poll
    activation stays registered for the next interval. The activation is
    removed only when the cycle observed no pending job and the store is still
    empty afterwards.
    """

    _POLL_CYCLE_JOB_NAME = "poll_cycle"

    def __init__(
        self,
        job_store: JobStorePort,
        threshold_source: ThresholdSourcePort,
        adapter: WebPageTestAdapterPort,
        result_sink: ResultSinkPort,
        alert_sink: AlertSinkPort,
        poll_scheduler: PollSchedulerPort,
        cycle_lock: threading.Lock | None = None,
    ):
        """Initialize poll cycle runner dependencies.

        Args:
            job_store: Durable table of outstanding jobs.
            threshold_source: Provider of the threshold set for this cycle.
            adapter: Testing-service adapter used for polling.
            result_sink: Append-only result log and error channel.
            alert_sink: Fire-and-forget alert emitter.
            poll_scheduler: Poll activation lifecycle.
            cycle_lock: Lock shared with submissions; `JOB_STATE_LOCK` by default.

        Raises:
            ValueError: Raised when dependencies are missing.
        """

        if job_store is None:
            raise ValueError("job_store must not be None")
        if threshold_source is None:
            raise ValueError("threshold_source must not be None")
        if adapter is None:
            raise ValueError("adapter must not be None")
        if result_sink is None:
            raise ValueError("result_sink must not be None")
        if alert_sink is None:
            raise ValueError("alert_sink must not be None")
        if poll_scheduler is None:
            raise ValueError("poll_scheduler must not be None")

        self._job_store = job_store
        self._threshold_source = threshold_source
        self._adapter = adapter
        self._result_sink = result_sink
        self._alert_sink = alert_sink
        self._poll_scheduler = poll_scheduler
        self._cycle_lock = cycle_lock if cycle_lock is not None else JOB_STATE_LOCK

    def job_run_cycle(self) -> PollCycleResult:
        """Run one poll cycle unless a cycle or submission holds the job state lock.

        Returns:
            PollCycleResult: Cycle outcome with per-target progress and timeline.
        """

        if not self._cycle_lock.acquire(blocking=False):
            logger.warning("Job state busy, skipping overlapping poll cycle")
            return PollCycleResult(
                job_name=self._POLL_CYCLE_JOB_NAME,
                status="skipped",
                timeline=[domain_build_cycle_event(stage="cycle", status="skipped")],
            )
        try:
            return self._job_run_cycle_locked()
        finally:
            self._cycle_lock.release()

    def _job_run_cycle_locked(self) -> PollCycleResult:
        timeline: list[dict[str, object]] = [domain_build_cycle_event(stage="cycle", status="started")]
        completed_keys: list[str] = []
        pending_keys: list[str] = []
        alerted_keys: list[str] = []
        pending_observed = False
        current_target_key: str | None = None

        try:
            threshold_set = self._threshold_source.db_threshold_read()
            snapshot = self._job_store.db_job_list_all()
            timeline.append(
                domain_build_cycle_event(stage="snapshot", status="completed", details={"job_count": len(snapshot)})
            )
            if snapshot:
                self._job_require_threshold_schema(threshold_set)

            for job in snapshot:
                current_target_key = job.target_key
                poll_result = self._adapter.adapter_poll_test(job.handle)

                if isinstance(poll_result, PollPending):
                    pending_observed = True
                    pending_keys.append(job.target_key)
                    timeline.append(
                        domain_build_cycle_event(
                            stage="poll",
                            status="pending",
                            target_key=job.target_key,
                            details={"status_code": poll_result.status_code, "status_text": poll_result.status_text},
                        )
                    )
                    continue

                if isinstance(poll_result, PollMalformed):
                    raise CycleAbortError(
                        f"malformed poll response for target_key={job.target_key}: {poll_result.detail}",
                        target_key=job.target_key,
                    )

                if not isinstance(poll_result, PollCompleted):
                    raise CycleAbortError(
                        f"unexpected poll result type {type(poll_result).__name__}",
                        target_key=job.target_key,
                    )

                violation_count = self._job_process_completion(job, poll_result, threshold_set, timeline)
                completed_keys.append(job.target_key)
                if violation_count:
                    alerted_keys.append(job.target_key)
                timeline.append(
                    domain_build_cycle_event(
                        stage="poll",
                        status="completed",
                        target_key=job.target_key,
                        details={"violation_count": violation_count},
                    )
                )
            current_target_key = None
            deactivated = False if pending_observed else self._job_deactivate_if_idle(timeline)
        except Exception as error:  # pylint: disable=broad-exception-caught
            return self._job_handle_abort(
                error=error,
                target_key=current_target_key,
                timeline=timeline,
                completed_keys=completed_keys,
                pending_keys=pending_keys,
                alerted_keys=alerted_keys,
            )

        timeline.append(domain_build_cycle_event(stage="cycle", status="success"))
        logger.info(
            "Poll cycle finished",
            completed=completed_keys,
            pending=pending_keys,
            alerted=alerted_keys,
            deactivated=deactivated,
        )
        return PollCycleResult(
            job_name=self._POLL_CYCLE_JOB_NAME,
            status="success",
            completed_keys=tuple(completed_keys),
            pending_keys=tuple(pending_keys),
            alerted_keys=tuple(alerted_keys),
            deactivated=deactivated,
            timeline=timeline,
        )

    def _job_deactivate_if_idle(self, timeline: list[dict[str, object]]) -> bool:
        """Remove the activation unless a job was stored since the snapshot.

        Returns:
            bool: True when the activation was deactivated.
        """

        if not self._job_store.db_job_is_empty():
            logger.info("Jobs stored during poll cycle, keeping activation")
            timeline.append(domain_build_cycle_event(stage="schedule", status="kept"))
            return False

        removed_registration = self._poll_scheduler.scheduler_deactivate()
        timeline.append(
            domain_build_cycle_event(
                stage="schedule",
                status="deactivated",
                details={"registration_removed": removed_registration},
            )
        )
        return True

    def _job_process_completion(
        self,
        job: PendingJob,
        poll_result: PollCompleted,
        threshold_set: ThresholdSet,
        timeline: list[dict[str, object]],
    ) -> int:
        """Remove the completed job, log its record, and alert on violations.

        Returns:
            int: Number of threshold violations.
        """

        record = MetricRecord(
            target_key=job.target_key,
            completed_at_utc=poll_result.completed_at_utc,
            metrics=poll_result.metrics,
            report_link=poll_result.report_link,
        )
        self._job_store.db_job_remove_by_key(job.target_key)
        try:
            self._result_sink.db_result_append(record)
        except Exception:
            # The job is already removed; these are the only remaining copies of the record.
            record_details = {
                "completed_at_utc": record.completed_at_utc.isoformat(),
                "metrics": list(record.metrics),
                "report_link": record.report_link,
            }
            logger.error("Failed to append metric record", target_key=record.target_key, **record_details)
            timeline.append(
                domain_build_cycle_event(
                    stage="poll",
                    status="record_failed",
                    target_key=record.target_key,
                    details=record_details,
                )
            )
            raise

        violations = domain_evaluate_thresholds(record.metrics, threshold_set.values)
        if violations:
            logger.warning(
                "Threshold violations detected",
                target_key=job.target_key,
                violations=[violation.name for violation in violations],
            )
            self._alert_sink.notification_send_alert(job.target_key, record.report_link, violations)
        return len(violations)

    def _job_require_threshold_schema(self, threshold_set: ThresholdSet) -> None:
        if len(threshold_set.values) != METRIC_COUNT:
            raise ThresholdSchemaMismatchError(
                f"expected {METRIC_COUNT} configured thresholds, found {len(threshold_set.values)}"
            )

    def _job_handle_abort(
        self,
        error: Exception,
        target_key: str | None,
        timeline: list[dict[str, object]],
        completed_keys: list[str],
        pending_keys: list[str],
        alerted_keys: list[str],
    ) -> PollCycleResult:
        """Record an aborted cycle and leave the activation registered.

        Returns:
            PollCycleResult: Aborted cycle result.
        """

        error_type = type(error).__name__
        logger.error(
            "Poll cycle aborted",
            target_key=target_key,
            error_type=error_type,
            error=str(error),
            completed=completed_keys,
            exc_info=error,
        )
        timeline.append(
            domain_build_cycle_event(
                stage="cycle",
                status="aborted",
                target_key=target_key,
                details={
                    "error_type": error_type,
                    "error_message": str(error),
                    "traceback": traceback.format_exception(type(error), error, error.__traceback__),
                },
            )
        )

        try:
            self._result_sink.db_result_append_error(target_key, error_type, str(error))
        except Exception as sink_error:  # pylint: disable=broad-exception-caught
            logger.error("Failed to record poll cycle error row", target_key=target_key, error=str(sink_error))

        return PollCycleResult(
            job_name=self._POLL_CYCLE_JOB_NAME,
            status="aborted",
            completed_keys=tuple(completed_keys),
            pending_keys=tuple(pending_keys),
            alerted_keys=tuple(alerted_keys),
            deactivated=False,
            error_type=error_type,
            error_message=str(error),
            timeline=timeline,
        )
