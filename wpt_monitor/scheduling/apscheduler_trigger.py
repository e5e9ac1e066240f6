"""APScheduler-backed activation trigger and scheduler runtime."""

from __future__ import annotations

from typing import Final

import structlog
from apscheduler.jobstores.base import JobLookupError
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.jobstores.sqlalchemy import SQLAlchemyJobStore
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.base import STATE_PAUSED, STATE_STOPPED, BaseScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy import Engine

from .interfaces import ActivationTriggerPort

logger = structlog.get_logger(__name__)

ACTIVATION_JOBSTORE: Final[str] = "default"
RUNTIME_JOBSTORE: Final[str] = "runtime"
_REFRESH_JOB_ID: Final[str] = "activation-store-refresh"


def scheduling_create_scheduler(engine: Engine | None = None) -> BackgroundScheduler:
    """Create a background scheduler whose activations live in the application database.

    Args:
        engine: SQLAlchemy engine for the durable activation store; a memory store is used when None.

    Returns:
        BackgroundScheduler: Unstarted scheduler with `default` and `runtime` job stores.
    """

    activation_store = SQLAlchemyJobStore(engine=engine) if engine is not None else MemoryJobStore()
    return BackgroundScheduler(
        jobstores={ACTIVATION_JOBSTORE: activation_store, RUNTIME_JOBSTORE: MemoryJobStore()},
        job_defaults={"coalesce": True, "max_instances": 1},
        timezone="UTC",
    )


class APSchedulerActivationTrigger(ActivationTriggerPort):
    """Registers poll activations as APScheduler interval jobs.

    The scheduled callable is given as a `module:function` text reference so
    registrations can be stored durably and fired by another process. A
    stopped scheduler is started paused before use, which persists
    registrations without running them in the calling process.
    """

    def __init__(self, scheduler: BaseScheduler, callback_reference: str, interval_seconds: int):
        if scheduler is None:
            raise ValueError("scheduler must not be None")
        if ":" not in callback_reference:
            raise ValueError("callback_reference must have the form 'module:function'")
        if interval_seconds < 1:
            raise ValueError("interval_seconds must be >= 1")
        self._scheduler = scheduler
        self._callback_reference = callback_reference
        self._interval_seconds = interval_seconds

    def trigger_register(self, activation_id: str) -> None:
        self._trigger_ensure_started()
        self._scheduler.add_job(
            self._callback_reference,
            trigger=IntervalTrigger(seconds=self._interval_seconds),
            id=activation_id,
            name="poll-cycle",
            jobstore=ACTIVATION_JOBSTORE,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )

    def trigger_remove(self, activation_id: str) -> bool:
        self._trigger_ensure_started()
        try:
            self._scheduler.remove_job(activation_id, jobstore=ACTIVATION_JOBSTORE)
        except JobLookupError:
            return False
        return True

    def trigger_registered_ids(self) -> set[str]:
        self._trigger_ensure_started()
        return {job.id for job in self._scheduler.get_jobs(jobstore=ACTIVATION_JOBSTORE)}

    def _trigger_ensure_started(self) -> None:
        if self._scheduler.state == STATE_STOPPED:
            self._scheduler.start(paused=True)


class SchedulerRuntime:
    """Runs registered activations in the current process.

    APScheduler only recomputes its wake-up time when it processes jobs, so a
    memory-store refresh job makes it re-read the durable activation store
    and pick up registrations added by other processes.
    """

    def __init__(self, scheduler: BaseScheduler, refresh_seconds: float):
        if scheduler is None:
            raise ValueError("scheduler must not be None")
        if refresh_seconds <= 0:
            raise ValueError("refresh_seconds must be > 0")
        self._scheduler = scheduler
        self._refresh_seconds = refresh_seconds

    def runtime_start(self) -> None:
        """Start or resume the scheduler and install the store refresh job."""

        if self._scheduler.state == STATE_STOPPED:
            self._scheduler.start()
        elif self._scheduler.state == STATE_PAUSED:
            self._scheduler.resume()

        self._scheduler.add_job(
            self._scheduler.wakeup,
            trigger=IntervalTrigger(seconds=self._refresh_seconds),
            id=_REFRESH_JOB_ID,
            jobstore=RUNTIME_JOBSTORE,
            replace_existing=True,
        )
        logger.info(
            "Scheduler runtime started",
            registered_activations=len(self._scheduler.get_jobs(jobstore=ACTIVATION_JOBSTORE)),
        )

    def runtime_stop(self) -> None:
        """Shut the scheduler down without waiting for running cycles."""

        if self._scheduler.state != STATE_STOPPED:
            self._scheduler.shutdown(wait=False)
            logger.info("Scheduler runtime stopped")
