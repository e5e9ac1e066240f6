"""Submission API router for requesting new measurement jobs."""

from __future__ import annotations

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from wpt_monitor.db import DuplicateJobKeyError
from wpt_monitor.domain import TargetSpec
from wpt_monitor.jobs import JobSubmitter, SubmissionOutcome


class SubmissionTargetModel(BaseModel):
    """One requested target; the key defaults to the URL."""

    url: str
    key: str | None = None


class SubmissionRequestModel(BaseModel):
    """Ordered list of targets to submit."""

    targets: list[SubmissionTargetModel] = Field(min_length=1)


def api_serialize_submission_outcome(outcome: SubmissionOutcome) -> dict[str, object]:
    """Serialize a submission outcome for API output.

    Args:
        outcome: Submission outcome returned by the job submitter.

    Returns:
        dict[str, object]: JSON-compatible outcome payload.
    """

    return {
        "submitted": [{"target_key": job.target_key, "handle": job.handle} for job in outcome.submitted_jobs],
        "rejected": [
            {
                "target_key": rejected.target.target_key,
                "url": rejected.target.target_url,
                "reason": rejected.reason,
                "detail": rejected.detail,
            }
            for rejected in outcome.rejected_targets
        ],
        "failed": [
            {
                "target_key": failure.target.target_key,
                "url": failure.target.target_url,
                "status_code": failure.status_code,
                "message": failure.message,
            }
            for failure in outcome.failed_submissions
        ],
        "activation_id": outcome.activation_id,
    }


def api_create_submissions_router(job_submitter: JobSubmitter) -> APIRouter:
    """Create submission router.

    Args:
        job_submitter: Job-layer submitter.

    Returns:
        APIRouter: Router exposing `POST /submissions`.

    Raises:
        ValueError: Raised when job_submitter is invalid.
    """

    if job_submitter is None:
        raise ValueError("job_submitter must not be None")

    router = APIRouter(tags=["submissions"])

    @router.post("/submissions")
    def api_submission_create(request: SubmissionRequestModel) -> JSONResponse:
        """Submit targets in request order.

        Returns:
            JSONResponse: 200 with per-target outcome, or 409 when a key collided in the job store.
        """

        targets = [TargetSpec.from_url(target.url, target_key=target.key) for target in request.targets]
        try:
            outcome = job_submitter.job_submit(targets)
        except DuplicateJobKeyError as error:
            payload = {
                "status": "error",
                "code": "DUPLICATE_JOB_KEY",
                "message": str(error),
            }
            return JSONResponse(content=payload, status_code=status.HTTP_409_CONFLICT)

        return JSONResponse(content=api_serialize_submission_outcome(outcome), status_code=status.HTTP_200_OK)

    return router
