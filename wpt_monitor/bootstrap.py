"""Application bootstrap wiring for startup validation and dependency assembly."""

from functools import lru_cache
from typing import Final

from apscheduler.schedulers.background import BackgroundScheduler
from fastapi import FastAPI
from sqlalchemy import Engine

from wpt_monitor.adapters import WebPageTestAdapter
from wpt_monitor.api import create_api_application
from wpt_monitor.config import AppSettings, config_load_settings
from wpt_monitor.db import (
    SQLAlchemyDatabaseHealthService,
    SQLAlchemyJobStoreService,
    SQLAlchemyResultLogService,
    SQLAlchemySchedulerStateService,
    SQLAlchemyThresholdService,
    db_create_engine,
)
from wpt_monitor.jobs import JobSubmitter, PollCycleRunner
from wpt_monitor.notifications import SmtpAlertSink
from wpt_monitor.scheduling import (
    APSchedulerActivationTrigger,
    PollScheduler,
    SchedulerRuntime,
    scheduling_create_scheduler,
)

POLL_CYCLE_ENTRY_REFERENCE: Final[str] = "wpt_monitor.jobs.poll_entry:job_poll_cycle_entry"


@lru_cache(maxsize=None)
def bootstrap_get_engine(database_url: str) -> Engine:
    """Return the process-wide engine for a database URL."""

    return db_create_engine(database_url=database_url)


@lru_cache(maxsize=None)
def bootstrap_get_scheduler(database_url: str) -> BackgroundScheduler:
    """Return the process-wide scheduler whose activation store lives in the database.

    Poll cycles fired by this scheduler rebuild their dependencies through this
    module and must reach the same scheduler instance to deactivate themselves.
    """

    return scheduling_create_scheduler(engine=bootstrap_get_engine(database_url))


def bootstrap_create_poll_scheduler(settings: AppSettings) -> PollScheduler:
    """Build the poll activation lifecycle for configured owner and interval.

    Args:
        settings: Validated runtime settings.

    Returns:
        PollScheduler: Poll scheduler backed by persisted state and APScheduler.
    """

    engine = bootstrap_get_engine(settings.database_url)
    activation_trigger = APSchedulerActivationTrigger(
        scheduler=bootstrap_get_scheduler(settings.database_url),
        callback_reference=POLL_CYCLE_ENTRY_REFERENCE,
        interval_seconds=settings.poll_interval_seconds,
    )
    return PollScheduler(
        state_repository=SQLAlchemySchedulerStateService(engine=engine),
        activation_trigger=activation_trigger,
        owner_id=settings.scheduler_owner_id,
    )


def bootstrap_create_adapter(settings: AppSettings) -> WebPageTestAdapter:
    return WebPageTestAdapter(
        api_key=settings.wpt_api_key,
        base_url=settings.wpt_base_url,
        location=settings.wpt_location,
        request_timeout_seconds=settings.wpt_request_timeout_seconds,
    )


def bootstrap_create_alert_sink(settings: AppSettings) -> SmtpAlertSink:
    return SmtpAlertSink(
        host=settings.smtp_host,
        port=settings.smtp_port,
        sender=settings.alert_sender,
        recipients=settings.settings_alert_recipient_list(),
        username=settings.smtp_username,
        password=settings.smtp_password,
        use_tls=settings.smtp_use_tls,
    )


def bootstrap_create_job_submitter(settings: AppSettings | None = None) -> JobSubmitter:
    """Build job submitter for HTTP and CLI trigger surfaces.

    Args:
        settings: Optional preloaded settings; loaded from the environment when None.

    Returns:
        JobSubmitter: Fully wired job submitter instance.

    Raises:
        SettingsLoadError: Raised when startup configuration validation fails.
    """

    resolved_settings = settings or config_load_settings()
    engine = bootstrap_get_engine(resolved_settings.database_url)
    return JobSubmitter(
        job_store=SQLAlchemyJobStoreService(engine=engine, capacity=resolved_settings.max_outstanding_jobs),
        adapter=bootstrap_create_adapter(resolved_settings),
        poll_scheduler=bootstrap_create_poll_scheduler(resolved_settings),
    )


def bootstrap_create_poll_cycle_runner(settings: AppSettings | None = None) -> PollCycleRunner:
    """Build poll cycle runner for scheduled, HTTP, and CLI trigger surfaces.

    Args:
        settings: Optional preloaded settings; loaded from the environment when None.

    Returns:
        PollCycleRunner: Fully wired poll cycle runner instance.

    Raises:
        SettingsLoadError: Raised when startup configuration validation fails.
    """

    resolved_settings = settings or config_load_settings()
    engine = bootstrap_get_engine(resolved_settings.database_url)
    return PollCycleRunner(
        job_store=SQLAlchemyJobStoreService(engine=engine, capacity=resolved_settings.max_outstanding_jobs),
        threshold_source=SQLAlchemyThresholdService(engine=engine),
        adapter=bootstrap_create_adapter(resolved_settings),
        result_sink=SQLAlchemyResultLogService(engine=engine),
        alert_sink=bootstrap_create_alert_sink(resolved_settings),
        poll_scheduler=bootstrap_create_poll_scheduler(resolved_settings),
    )


def bootstrap_create_threshold_service(settings: AppSettings | None = None) -> SQLAlchemyThresholdService:
    resolved_settings = settings or config_load_settings()
    return SQLAlchemyThresholdService(engine=bootstrap_get_engine(resolved_settings.database_url))


def bootstrap_create_scheduler_runtime(settings: AppSettings | None = None) -> SchedulerRuntime:
    """Build the in-process runner for registered poll activations.

    Returns:
        SchedulerRuntime: Runtime wrapping the process-wide scheduler.

    Raises:
        SettingsLoadError: Raised when startup configuration validation fails.
    """

    resolved_settings = settings or config_load_settings()
    return SchedulerRuntime(
        scheduler=bootstrap_get_scheduler(resolved_settings.database_url),
        refresh_seconds=resolved_settings.scheduler_worker_refresh_seconds,
    )


def bootstrap_create_application() -> FastAPI:
    """Assemble the runtime application after validating startup configuration.

    Returns:
        FastAPI: Fully initialized FastAPI application instance.

    Raises:
        SettingsLoadError: Raised when startup configuration validation fails.
    """

    settings = config_load_settings()
    engine = bootstrap_get_engine(settings.database_url)
    return create_api_application(
        settings=settings,
        db_health_service=SQLAlchemyDatabaseHealthService(engine=engine),
        job_store=SQLAlchemyJobStoreService(engine=engine, capacity=settings.max_outstanding_jobs),
        job_submitter=bootstrap_create_job_submitter(settings),
        poll_cycle_runner=bootstrap_create_poll_cycle_runner(settings),
        threshold_repository=SQLAlchemyThresholdService(engine=engine),
        result_log=SQLAlchemyResultLogService(engine=engine),
        scheduler_runtime=bootstrap_create_scheduler_runtime(settings),
    )
