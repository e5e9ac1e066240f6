"""FastAPI application factory for the monitoring service."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from wpt_monitor.config import AppSettings
from wpt_monitor.db import DatabaseHealthPort, JobStorePort, ResultLogReaderPort, ThresholdRepositoryPort
from wpt_monitor.jobs import JobSubmitter, PollCycleRunner
from wpt_monitor.scheduling import SchedulerRuntime

from .routers import (
    api_create_health_router,
    api_create_jobs_router,
    api_create_results_router,
    api_create_submissions_router,
    api_create_thresholds_router,
)


def create_api_application(
    settings: AppSettings,
    db_health_service: DatabaseHealthPort,
    job_store: JobStorePort,
    job_submitter: JobSubmitter,
    poll_cycle_runner: PollCycleRunner,
    threshold_repository: ThresholdRepositoryPort,
    result_log: ResultLogReaderPort,
    scheduler_runtime: SchedulerRuntime | None = None,
) -> FastAPI:
    """Create the FastAPI application instance for the service.

    Args:
        settings: Validated application settings used for runtime metadata.
        db_health_service: Database health service used by health endpoints.
        job_store: Job store for outstanding-job listing.
        job_submitter: Job-layer submitter for submission requests.
        poll_cycle_runner: Job-layer runner for manual poll cycles.
        threshold_repository: Threshold read/replace service.
        result_log: Result log reader for result listings.
        scheduler_runtime: Optional scheduler runtime started and stopped with the application.

    Returns:
        FastAPI: Framework application instance with all routers mounted.
    """

    @asynccontextmanager
    async def api_lifespan(_: FastAPI) -> AsyncIterator[None]:
        if scheduler_runtime is not None:
            scheduler_runtime.runtime_start()
        try:
            yield
        finally:
            if scheduler_runtime is not None:
                scheduler_runtime.runtime_stop()

    application = FastAPI(title="WPT Monitor", lifespan=api_lifespan)

    @application.get("/", tags=["foundation"])
    def foundation_index() -> dict[str, str]:
        return {
            "service": "wpt-monitor",
            "status": "ready",
            "environment": settings.environment_name,
        }

    application.include_router(api_create_health_router(db_health_service=db_health_service))
    application.include_router(api_create_submissions_router(job_submitter=job_submitter))
    application.include_router(api_create_jobs_router(job_store=job_store, poll_cycle_runner=poll_cycle_runner))
    application.include_router(api_create_results_router(settings=settings, result_log=result_log))
    application.include_router(api_create_thresholds_router(threshold_repository=threshold_repository))

    return application
