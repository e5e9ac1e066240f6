"""Regression tests for poll cycle progress, completion, abort, and deactivation."""

from __future__ import annotations

import threading
from datetime import datetime, timezone

from wpt_monitor.adapters import WebPageTestTimeoutError
from wpt_monitor.domain import (
    MetricRecord,
    PendingJob,
    PollCompleted,
    PollMalformed,
    PollPending,
    SubmitAccepted,
    TargetSpec,
    ThresholdSet,
)
from wpt_monitor.jobs import JobSubmitter, PollCycleRunner

_THRESHOLDS = (10.0, 2000.0, 200.0, 100.0, 400.0, 1800.0, 20.0, 5.0, 5.0)
_PASSING_METRICS = (5.0, 1000.0, 100.0, 50.0, 200.0, 900.0, 10.0, 2.0, 1.0)
_COMPLETED_AT = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


class _JobStoreStub:
    """In-memory job store."""

    def __init__(self, jobs: list[PendingJob] | None = None, capacity: int = 10):
        self.jobs: list[PendingJob] = list(jobs or [])
        self.capacity = capacity

    def db_job_capacity(self) -> int:
        return self.capacity

    def db_job_put(self, job: PendingJob) -> None:
        self.jobs.append(job)

    def db_job_remove_by_key(self, target_key: str) -> bool:
        before = len(self.jobs)
        self.jobs = [job for job in self.jobs if job.target_key != target_key]
        return len(self.jobs) != before

    def db_job_list_all(self) -> list[PendingJob]:
        return list(self.jobs)

    def db_job_is_empty(self) -> bool:
        return not self.jobs


class _ThresholdSourceStub:
    def __init__(self, values: tuple[float, ...] = _THRESHOLDS):
        self.values = values

    def db_threshold_read(self) -> ThresholdSet:
        return ThresholdSet(values=self.values)


class _AdapterStub:
    """Adapter replaying scripted poll results per handle; the last result repeats."""

    def __init__(self, scripts: dict[str, list[object]]):
        self.scripts = scripts
        self.polled_handles: list[str] = []

    def adapter_source_name(self) -> str:
        return "stub"

    def adapter_submit_test(self, target_url: str):
        return SubmitAccepted(handle=f"handle:{target_url}", test_id="t", report_link=f"report:{target_url}")

    def adapter_poll_test(self, handle: str):
        self.polled_handles.append(handle)
        script = self.scripts[handle]
        outcome = script.pop(0) if len(script) > 1 else script[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class _ResultSinkStub:
    def __init__(self, fail_errors: bool = False, fail_records: bool = False):
        self.records: list[MetricRecord] = []
        self.errors: list[tuple[str | None, str, str]] = []
        self._fail_errors = fail_errors
        self._fail_records = fail_records

    def db_result_append(self, record: MetricRecord) -> None:
        if self._fail_records:
            raise RuntimeError("result log unavailable")
        self.records.append(record)

    def db_result_append_error(self, target_key: str | None, error_type: str, error_message: str) -> None:
        if self._fail_errors:
            raise RuntimeError("result log unavailable")
        self.errors.append((target_key, error_type, error_message))


class _AlertSinkStub:
    def __init__(self):
        self.alerts: list[tuple[str, str, tuple]] = []

    def notification_send_alert(self, target_key: str, report_link: str, violations) -> None:
        self.alerts.append((target_key, report_link, tuple(violations)))


class _PollSchedulerStub:
    """Poll scheduler tracking whether an activation is registered."""

    def __init__(self, active: bool = True):
        self.active = active
        self.deactivate_calls = 0
        self.ensure_active_calls = 0

    def scheduler_ensure_active(self) -> str:
        self.ensure_active_calls += 1
        self.active = True
        return "activation"

    def scheduler_deactivate(self) -> bool:
        self.deactivate_calls += 1
        was_active = self.active
        self.active = False
        return was_active

    def scheduler_current_activation_id(self) -> str | None:
        return "activation" if self.active else None


def _completed(metrics: tuple[float, ...] = _PASSING_METRICS, report_link: str = "https://wpt/result/x/"):
    return PollCompleted(metrics=metrics, report_link=report_link, completed_at_utc=_COMPLETED_AT)


def _pending() -> PollPending:
    return PollPending(status_code=101, status_text="Test Pending")


def _build_runner(job_store, adapter, thresholds=_THRESHOLDS, result_sink=None, cycle_lock=None, active=True):
    result_sink = result_sink or _ResultSinkStub()
    alert_sink = _AlertSinkStub()
    poll_scheduler = _PollSchedulerStub(active=active)
    runner = PollCycleRunner(
        job_store=job_store,
        threshold_source=_ThresholdSourceStub(thresholds),
        adapter=adapter,
        result_sink=result_sink,
        alert_sink=alert_sink,
        poll_scheduler=poll_scheduler,
        cycle_lock=cycle_lock or threading.Lock(),
    )
    return runner, result_sink, alert_sink, poll_scheduler


def test_cycle_keeps_pending_jobs_and_activation() -> None:
    """A pending job stays stored and keeps the activation registered."""

    job_store = _JobStoreStub([PendingJob(target_key="home", handle="h-home")])
    runner, result_sink, _, poll_scheduler = _build_runner(job_store, _AdapterStub({"h-home": [_pending()]}))

    cycle_result = runner.job_run_cycle()

    assert cycle_result.status == "success"
    assert cycle_result.pending_keys == ("home",)
    assert cycle_result.deactivated is False
    assert job_store.jobs == [PendingJob(target_key="home", handle="h-home")]
    assert result_sink.records == []
    assert poll_scheduler.deactivate_calls == 0


def test_cycles_converge_and_complete_each_job_exactly_once() -> None:
    """Jobs finishing after different numbers of cycles are each recorded once, then polling stops."""

    job_store = _JobStoreStub(
        [PendingJob(target_key="fast", handle="h-fast"), PendingJob(target_key="slow", handle="h-slow")]
    )
    adapter = _AdapterStub(
        {
            "h-fast": [_pending(), _completed(report_link="fast-report")],
            "h-slow": [_pending(), _pending(), _pending(), _completed(report_link="slow-report")],
        }
    )
    runner, result_sink, alert_sink, poll_scheduler = _build_runner(job_store, adapter)

    statuses = [runner.job_run_cycle() for _ in range(4)]

    assert [cycle_result.deactivated for cycle_result in statuses] == [False, False, False, True]
    assert [record.target_key for record in result_sink.records] == ["fast", "slow"]
    assert job_store.jobs == []
    assert alert_sink.alerts == []
    assert poll_scheduler.active is False
    assert poll_scheduler.deactivate_calls == 1
    assert adapter.polled_handles.count("h-fast") == 2
    assert adapter.polled_handles.count("h-slow") == 4


def test_cycle_with_empty_store_deactivates() -> None:
    """An empty job store removes the activation."""

    runner, _, _, poll_scheduler = _build_runner(_JobStoreStub(), _AdapterStub({}))

    cycle_result = runner.job_run_cycle()

    assert cycle_result.status == "success"
    assert cycle_result.deactivated is True
    assert poll_scheduler.active is False


def test_cycle_with_empty_store_deactivates_even_without_thresholds() -> None:
    """Unconfigured thresholds do not block deactivation of an idle activation."""

    runner, _, _, poll_scheduler = _build_runner(_JobStoreStub(), _AdapterStub({}), thresholds=())

    assert runner.job_run_cycle().status == "success"
    assert poll_scheduler.active is False


def test_malformed_response_aborts_cycle_without_deactivation() -> None:
    """A malformed poll aborts the cycle, keeps remaining jobs, and keeps polling."""

    job_store = _JobStoreStub(
        [
            PendingJob(target_key="done", handle="h-done"),
            PendingJob(target_key="broken", handle="h-broken"),
            PendingJob(target_key="later", handle="h-later"),
        ]
    )
    adapter = _AdapterStub(
        {
            "h-done": [_completed()],
            "h-broken": [PollMalformed(detail="poll response missing statusCode")],
            "h-later": [_completed()],
        }
    )
    runner, result_sink, _, poll_scheduler = _build_runner(job_store, adapter)

    cycle_result = runner.job_run_cycle()

    assert cycle_result.status == "aborted"
    assert cycle_result.error_type == "CycleAbortError"
    assert cycle_result.completed_keys == ("done",)
    assert [job.target_key for job in job_store.jobs] == ["broken", "later"]
    assert [record.target_key for record in result_sink.records] == ["done"]
    assert result_sink.errors[0][:2] == ("broken", "CycleAbortError")
    assert "h-later" not in adapter.polled_handles
    assert poll_scheduler.deactivate_calls == 0
    assert poll_scheduler.active is True


def test_transport_timeout_aborts_cycle_and_next_cycle_retries() -> None:
    """A timeout aborts the cycle; the job is retried on the next cycle."""

    job_store = _JobStoreStub([PendingJob(target_key="home", handle="h-home")])
    adapter = _AdapterStub({"h-home": [WebPageTestTimeoutError("WebPageTest request timed out"), _completed()]})
    runner, result_sink, _, poll_scheduler = _build_runner(job_store, adapter)

    first_result = runner.job_run_cycle()
    second_result = runner.job_run_cycle()

    assert first_result.status == "aborted"
    assert first_result.error_type == "WebPageTestTimeoutError"
    assert second_result.status == "success"
    assert second_result.completed_keys == ("home",)
    assert [record.target_key for record in result_sink.records] == ["home"]
    assert poll_scheduler.active is False


def test_threshold_mismatch_aborts_before_any_poll() -> None:
    """A wrong-length threshold set aborts the cycle before polling."""

    job_store = _JobStoreStub([PendingJob(target_key="home", handle="h-home")])
    adapter = _AdapterStub({"h-home": [_completed()]})
    runner, _, _, poll_scheduler = _build_runner(job_store, adapter, thresholds=(1.0, 2.0))

    cycle_result = runner.job_run_cycle()

    assert cycle_result.status == "aborted"
    assert cycle_result.error_type == "ThresholdSchemaMismatchError"
    assert adapter.polled_handles == []
    assert job_store.jobs == [PendingJob(target_key="home", handle="h-home")]
    assert poll_scheduler.active is True


def test_abort_survives_failing_error_sink() -> None:
    """A failure recording the error row does not escape the cycle."""

    job_store = _JobStoreStub([PendingJob(target_key="home", handle="h-home")])
    adapter = _AdapterStub({"h-home": [PollMalformed(detail="bad")]})
    runner, _, _, _ = _build_runner(job_store, adapter, result_sink=_ResultSinkStub(fail_errors=True))

    assert runner.job_run_cycle().status == "aborted"


def test_unexpected_error_aborts_cycle_and_records_error_row() -> None:
    """Errors outside the adapter and persistence families still abort and are recorded."""

    job_store = _JobStoreStub(
        [PendingJob(target_key="home", handle="h-home"), PendingJob(target_key="later", handle="h-later")]
    )
    adapter = _AdapterStub(
        {"h-home": [OverflowError("timestamp out of range for platform time_t")], "h-later": [_completed()]}
    )
    runner, result_sink, _, poll_scheduler = _build_runner(job_store, adapter)

    cycle_result = runner.job_run_cycle()

    assert cycle_result.status == "aborted"
    assert cycle_result.error_type == "OverflowError"
    assert result_sink.errors == [("home", "OverflowError", "timestamp out of range for platform time_t")]
    assert "h-later" not in adapter.polled_handles
    assert len(job_store.jobs) == 2
    assert poll_scheduler.active is True


def test_failed_record_append_keeps_metrics_in_timeline() -> None:
    """A record that cannot be appended after job removal stays visible in the abort timeline."""

    job_store = _JobStoreStub([PendingJob(target_key="home", handle="h-home")])
    adapter = _AdapterStub({"h-home": [_completed(report_link="https://wpt/r/9/")]})
    runner, result_sink, _, poll_scheduler = _build_runner(
        job_store, adapter, result_sink=_ResultSinkStub(fail_records=True)
    )

    cycle_result = runner.job_run_cycle()

    assert cycle_result.status == "aborted"
    assert job_store.jobs == []
    assert result_sink.errors == [("home", "RuntimeError", "result log unavailable")]
    record_events = [event for event in cycle_result.timeline if event["status"] == "record_failed"]
    assert len(record_events) == 1
    assert record_events[0]["target_key"] == "home"
    assert record_events[0]["details"] == {
        "completed_at_utc": _COMPLETED_AT.isoformat(),
        "metrics": list(_PASSING_METRICS),
        "report_link": "https://wpt/r/9/",
    }
    assert poll_scheduler.active is True


def test_job_stored_during_cycle_keeps_activation() -> None:
    """A job stored after the snapshot keeps the activation even when no polled job was pending."""

    job_store = _JobStoreStub([PendingJob(target_key="home", handle="h-home")])

    class _StoringAdapter(_AdapterStub):
        def adapter_poll_test(self, handle: str):
            job_store.db_job_put(PendingJob(target_key="late", handle="h-late"))
            return super().adapter_poll_test(handle)

    adapter = _StoringAdapter({"h-home": [_completed()]})
    runner, _, _, poll_scheduler = _build_runner(job_store, adapter)

    cycle_result = runner.job_run_cycle()

    assert cycle_result.status == "success"
    assert cycle_result.completed_keys == ("home",)
    assert cycle_result.deactivated is False
    assert job_store.jobs == [PendingJob(target_key="late", handle="h-late")]
    assert poll_scheduler.deactivate_calls == 0
    assert poll_scheduler.active is True


def test_submission_waits_for_running_cycle_and_keeps_polling_active() -> None:
    """A submission during a cycle runs after it, so the new job is never left without an activation."""

    cycle_lock = threading.Lock()
    poll_started = threading.Event()
    release_poll = threading.Event()
    job_store = _JobStoreStub([PendingJob(target_key="home", handle="h-home")])

    class _BlockingAdapter(_AdapterStub):
        def adapter_poll_test(self, handle: str):
            poll_started.set()
            release_poll.wait(timeout=5)
            return super().adapter_poll_test(handle)

    adapter = _BlockingAdapter({"h-home": [_completed()]})
    runner, _, _, poll_scheduler = _build_runner(job_store, adapter, cycle_lock=cycle_lock)
    submitter = JobSubmitter(
        job_store=job_store,
        adapter=adapter,
        poll_scheduler=poll_scheduler,
        cycle_lock=cycle_lock,
    )
    cycle_results = []
    submit_outcomes = []

    cycle_thread = threading.Thread(target=lambda: cycle_results.append(runner.job_run_cycle()))
    cycle_thread.start()
    assert poll_started.wait(timeout=5)

    submit_thread = threading.Thread(
        target=lambda: submit_outcomes.append(submitter.job_submit([TargetSpec.from_url("https://example.com")]))
    )
    submit_thread.start()
    submit_thread.join(timeout=0.2)
    assert submit_thread.is_alive()
    assert [job.target_key for job in job_store.jobs] == ["home"]

    release_poll.set()
    cycle_thread.join(timeout=5)
    submit_thread.join(timeout=5)

    assert cycle_results[0].status == "success"
    assert cycle_results[0].deactivated is True
    assert len(submit_outcomes[0].submitted_jobs) == 1
    assert [job.target_key for job in job_store.jobs] == ["https://example.com"]
    assert poll_scheduler.active is True


def test_overlapping_cycle_is_skipped() -> None:
    """A cycle started while another holds the lock does nothing."""

    cycle_lock = threading.Lock()
    job_store = _JobStoreStub([PendingJob(target_key="home", handle="h-home")])
    adapter = _AdapterStub({"h-home": [_completed()]})
    runner, result_sink, _, _ = _build_runner(job_store, adapter, cycle_lock=cycle_lock)

    cycle_lock.acquire()
    try:
        cycle_result = runner.job_run_cycle()
    finally:
        cycle_lock.release()

    assert cycle_result.status == "skipped"
    assert adapter.polled_handles == []
    assert result_sink.records == []
    assert runner.job_run_cycle().status == "success"


def test_end_to_end_passing_result_records_without_alert() -> None:
    """Submit, poll pending, then complete below thresholds: one record, no alert, polling stops."""

    job_store = _JobStoreStub(capacity=10)
    adapter = _AdapterStub({"handle:https://example.com": [_pending(), _completed(report_link="https://wpt/r/1/")]})
    runner, result_sink, alert_sink, poll_scheduler = _build_runner(job_store, adapter, active=False)
    submitter = JobSubmitter(job_store=job_store, adapter=adapter, poll_scheduler=poll_scheduler)

    outcome = submitter.job_submit([TargetSpec.from_url("https://example.com")])
    assert len(outcome.submitted_jobs) == 1
    assert poll_scheduler.active is True

    first_result = runner.job_run_cycle()
    second_result = runner.job_run_cycle()

    assert first_result.pending_keys == ("https://example.com",)
    assert second_result.completed_keys == ("https://example.com",)
    assert result_sink.records == [
        MetricRecord(
            target_key="https://example.com",
            completed_at_utc=_COMPLETED_AT,
            metrics=_PASSING_METRICS,
            report_link="https://wpt/r/1/",
        )
    ]
    assert alert_sink.alerts == []
    assert job_store.jobs == []
    assert poll_scheduler.active is False


def test_end_to_end_speed_index_violation_sends_one_alert() -> None:
    """A Speed Index above threshold produces exactly one alert listing that metric."""

    failing_metrics = (5.0, 1000.0, 250.0, 50.0, 200.0, 900.0, 10.0, 2.0, 1.0)
    job_store = _JobStoreStub(capacity=10)
    adapter = _AdapterStub({"handle:https://example.com": [_completed(metrics=failing_metrics, report_link="r")]})
    runner, result_sink, alert_sink, poll_scheduler = _build_runner(job_store, adapter, active=False)
    submitter = JobSubmitter(job_store=job_store, adapter=adapter, poll_scheduler=poll_scheduler)

    submitter.job_submit([TargetSpec.from_url("https://example.com")])
    cycle_result = runner.job_run_cycle()

    assert cycle_result.alerted_keys == ("https://example.com",)
    assert len(result_sink.records) == 1
    assert len(alert_sink.alerts) == 1
    target_key, report_link, violations = alert_sink.alerts[0]
    assert (target_key, report_link) == ("https://example.com", "r")
    assert [(violation.name, violation.observed_value, violation.threshold_value) for violation in violations] == [
        ("Webpagetest Speed Index", 250.0, 200.0)
    ]
    assert poll_scheduler.active is False
