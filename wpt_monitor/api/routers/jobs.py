"""Job API router for outstanding jobs and manual poll cycles."""

from __future__ import annotations

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from wpt_monitor.db import JobStorePort
from wpt_monitor.jobs import PollCycleResult, PollCycleRunner


def api_serialize_poll_cycle_result(cycle_result: PollCycleResult) -> dict[str, object]:
    return {
        "job_name": cycle_result.job_name,
        "status": cycle_result.status,
        "completed": list(cycle_result.completed_keys),
        "pending": list(cycle_result.pending_keys),
        "alerted": list(cycle_result.alerted_keys),
        "deactivated": cycle_result.deactivated,
        "error_type": cycle_result.error_type,
        "error_message": cycle_result.error_message,
        "timeline": cycle_result.timeline,
    }


def api_create_jobs_router(job_store: JobStorePort, poll_cycle_runner: PollCycleRunner) -> APIRouter:
    """Create job router with outstanding-job listing and manual cycle trigger.

    Args:
        job_store: DB-layer job store.
        poll_cycle_runner: Job-layer poll cycle runner.

    Returns:
        APIRouter: Router exposing `GET /jobs` and `POST /poll-cycles`.

    Raises:
        ValueError: Raised when dependencies are invalid.
    """

    if job_store is None:
        raise ValueError("job_store must not be None")
    if poll_cycle_runner is None:
        raise ValueError("poll_cycle_runner must not be None")

    router = APIRouter(tags=["jobs"])

    @router.get("/jobs")
    def api_job_list() -> JSONResponse:
        """Return outstanding jobs in slot order with slot usage."""

        jobs = job_store.db_job_list_all()
        payload = {
            "items": [{"target_key": job.target_key, "handle": job.handle} for job in jobs],
            "capacity": job_store.db_job_capacity(),
            "outstanding": len(jobs),
        }
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    @router.post("/poll-cycles")
    def api_poll_cycle_trigger() -> JSONResponse:
        """Run one poll cycle now.

        Returns:
            JSONResponse: 200 with cycle result, or 409 when a cycle is already running.
        """

        cycle_result = poll_cycle_runner.job_run_cycle()
        response_status = status.HTTP_409_CONFLICT if cycle_result.status == "skipped" else status.HTTP_200_OK
        return JSONResponse(content=api_serialize_poll_cycle_result(cycle_result), status_code=response_status)

    return router
