"""Threshold API router for reading and replacing the threshold set."""

from __future__ import annotations

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from wpt_monitor.db import ThresholdRepositoryPort
from wpt_monitor.domain import METRIC_COUNT, METRIC_SCHEMA, ThresholdSet


class ThresholdUpdateModel(BaseModel):
    """Threshold values in metric-schema order."""

    values: list[float]


def api_serialize_threshold_set(threshold_set: ThresholdSet) -> dict[str, object]:
    configured = len(threshold_set.values) == METRIC_COUNT
    return {
        "configured": configured,
        "items": [
            {
                "position": position,
                "source_field": metric_field.source_field,
                "metric_name": metric_field.display_name,
                "units": metric_field.units,
                "threshold_value": threshold_set.values[position] if configured else None,
            }
            for position, metric_field in enumerate(METRIC_SCHEMA)
        ],
    }


def api_create_thresholds_router(threshold_repository: ThresholdRepositoryPort) -> APIRouter:
    """Create threshold router.

    Args:
        threshold_repository: DB-layer threshold repository.

    Returns:
        APIRouter: Router exposing `GET /thresholds` and `PUT /thresholds`.

    Raises:
        ValueError: Raised when threshold_repository is invalid.
    """

    if threshold_repository is None:
        raise ValueError("threshold_repository must not be None")

    router = APIRouter(prefix="/thresholds", tags=["thresholds"])

    @router.get("")
    def api_threshold_read() -> JSONResponse:
        threshold_set = threshold_repository.db_threshold_read()
        return JSONResponse(content=api_serialize_threshold_set(threshold_set), status_code=status.HTTP_200_OK)

    @router.put("")
    def api_threshold_replace(request: ThresholdUpdateModel) -> JSONResponse:
        """Replace every threshold at once.

        Returns:
            JSONResponse: 200 with stored thresholds, or 400 when the value count is wrong.
        """

        try:
            threshold_set = threshold_repository.db_threshold_replace(request.values)
        except ValueError as error:
            payload = {
                "status": "error",
                "code": "THRESHOLD_COUNT_MISMATCH",
                "message": str(error),
            }
            return JSONResponse(content=payload, status_code=status.HTTP_400_BAD_REQUEST)
        return JSONResponse(content=api_serialize_threshold_set(threshold_set), status_code=status.HTTP_200_OK)

    return router
