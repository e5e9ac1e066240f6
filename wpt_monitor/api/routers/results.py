"""Result API router for the metric result log and cycle error rows."""

from __future__ import annotations

from fastapi import APIRouter, Query, status
from fastapi.responses import JSONResponse

from wpt_monitor.config import AppSettings
from wpt_monitor.db import CycleErrorRow, MetricResultRow, ResultLogReaderPort
from wpt_monitor.domain import METRIC_SCHEMA


def api_serialize_metric_result(result_row: MetricResultRow) -> dict[str, object]:
    """Serialize one metric result row with metrics keyed by source field.

    Args:
        result_row: Persisted metric result row.

    Returns:
        dict[str, object]: JSON-compatible result payload.
    """

    record = result_row.record
    return {
        "result_id": result_row.result_id,
        "target_key": record.target_key,
        "completed_at_utc": record.completed_at_utc.isoformat(),
        "metrics": {
            metric_field.source_field: value for metric_field, value in zip(METRIC_SCHEMA, record.metrics)
        },
        "report_link": record.report_link,
        "recorded_at_utc": result_row.recorded_at_utc.isoformat(),
    }


def api_serialize_cycle_error(error_row: CycleErrorRow) -> dict[str, object]:
    return {
        "error_id": error_row.error_id,
        "target_key": error_row.target_key,
        "error_type": error_row.error_type,
        "error_message": error_row.error_message,
        "recorded_at_utc": error_row.recorded_at_utc.isoformat(),
    }


def api_create_results_router(settings: AppSettings, result_log: ResultLogReaderPort) -> APIRouter:
    """Create result router with paginated result and error listings.

    Args:
        settings: Runtime settings used for pagination defaults.
        result_log: DB-layer result log reader.

    Returns:
        APIRouter: Router exposing `GET /results` and `GET /results/errors`.

    Raises:
        ValueError: Raised when dependencies are invalid.
    """

    if settings is None:
        raise ValueError("settings must not be None")
    if result_log is None:
        raise ValueError("result_log must not be None")

    router = APIRouter(prefix="/results", tags=["results"])

    @router.get("")
    def api_result_list(
        limit: int = Query(default=settings.api_default_limit, ge=1),
        offset: int = Query(default=0, ge=0),
        target_key: str | None = Query(default=None),
    ) -> JSONResponse:
        """Return metric results newest first.

        Args:
            limit: Max rows to return.
            offset: Rows to skip.
            target_key: Optional target filter.

        Returns:
            JSONResponse: Result list payload.

        Raises:
            RuntimeError: Raised when repository read fails.
        """

        normalized_target_key = target_key.strip() if target_key is not None else None
        applied_limit = min(limit, settings.api_max_limit)
        result_rows = result_log.db_result_list(
            limit=applied_limit,
            offset=offset,
            target_key=normalized_target_key or None,
        )
        payload = {
            "items": [api_serialize_metric_result(result_row) for result_row in result_rows],
            "page": {
                "limit": limit,
                "applied_limit": applied_limit,
                "offset": offset,
                "returned": len(result_rows),
            },
            "filters": {"target_key": normalized_target_key} if normalized_target_key else {},
        }
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    @router.get("/errors")
    def api_result_error_list(
        limit: int = Query(default=settings.api_default_limit, ge=1),
        offset: int = Query(default=0, ge=0),
    ) -> JSONResponse:
        """Return poll-cycle error rows newest first."""

        applied_limit = min(limit, settings.api_max_limit)
        error_rows = result_log.db_result_list_errors(limit=applied_limit, offset=offset)
        payload = {
            "items": [api_serialize_cycle_error(error_row) for error_row in error_rows],
            "page": {
                "limit": limit,
                "applied_limit": applied_limit,
                "offset": offset,
                "returned": len(error_rows),
            },
        }
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    return router
