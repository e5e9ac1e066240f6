"""Database service for the append-only metric result log and cycle error rows."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import DateTime, Engine, Integer, Text, bindparam, text
from sqlalchemy.exc import SQLAlchemyError

from wpt_monitor.domain import MetricRecord

from .interfaces import CycleErrorRow, MetricResultRow, ResultLogReaderPort, ResultSinkPort


class SQLAlchemyResultLogService(ResultSinkPort, ResultLogReaderPort):
    """SQLAlchemy-backed result log.

    Rows are only ever inserted; this service exposes no update or delete.
    """

    def __init__(self, engine: Engine):
        if engine is None:
            raise ValueError("engine must not be None")
        self._engine = engine

    def db_result_append(self, record: MetricRecord) -> None:
        """Append one completed metric record.

        Args:
            record: Immutable metric record.

        Raises:
            RuntimeError: Raised when persistence fails.
        """

        try:
            with self._engine.begin() as connection:
                connection.execute(
                    text(
                        "INSERT INTO metric_result ("
                        "target_key, completed_at_utc, metrics_json, report_link, recorded_at_utc"
                        ") VALUES ("
                        ":target_key, :completed_at_utc, :metrics_json, :report_link, :recorded_at_utc"
                        ")"
                    ).bindparams(
                        bindparam("completed_at_utc", type_=DateTime(timezone=True)),
                        bindparam("recorded_at_utc", type_=DateTime(timezone=True)),
                    ),
                    {
                        "target_key": record.target_key,
                        "completed_at_utc": record.completed_at_utc,
                        "metrics_json": json.dumps(list(record.metrics)),
                        "report_link": record.report_link,
                        "recorded_at_utc": datetime.now(timezone.utc),
                    },
                )
        except SQLAlchemyError as error:
            raise RuntimeError("failed to append metric result") from error

    def db_result_append_error(self, target_key: str | None, error_type: str, error_message: str) -> None:
        """Append one poll-cycle error row.

        Raises:
            RuntimeError: Raised when persistence fails.
        """

        try:
            with self._engine.begin() as connection:
                connection.execute(
                    text(
                        "INSERT INTO cycle_error (target_key, error_type, error_message, recorded_at_utc) "
                        "VALUES (:target_key, :error_type, :error_message, :recorded_at_utc)"
                    ).bindparams(bindparam("recorded_at_utc", type_=DateTime(timezone=True))),
                    {
                        "target_key": target_key,
                        "error_type": error_type,
                        "error_message": error_message,
                        "recorded_at_utc": datetime.now(timezone.utc),
                    },
                )
        except SQLAlchemyError as error:
            raise RuntimeError("failed to append cycle error") from error

    def db_result_list(self, limit: int, offset: int, target_key: str | None = None) -> list[MetricResultRow]:
        """List metric results newest first.

        Args:
            limit: Maximum number of rows.
            offset: Number of rows to skip.
            target_key: Optional target filter.

        Returns:
            list[MetricResultRow]: Ordered result rows.

        Raises:
            ValueError: Raised when limit or offset are invalid.
            RuntimeError: Raised when database read fails.
        """

        if limit < 1:
            raise ValueError("limit must be >= 1")
        if offset < 0:
            raise ValueError("offset must be >= 0")

        where_clause = "WHERE target_key = :target_key " if target_key is not None else ""
        parameters: dict[str, Any] = {"limit": limit, "offset": offset}
        if target_key is not None:
            parameters["target_key"] = target_key

        statement = text(
            "SELECT result_id, target_key, completed_at_utc, metrics_json, report_link, recorded_at_utc "
            "FROM metric_result "
            f"{where_clause}"
            "ORDER BY result_id DESC "
            "LIMIT :limit OFFSET :offset"
        ).columns(
            result_id=Integer,
            target_key=Text,
            completed_at_utc=DateTime(timezone=True),
            metrics_json=Text,
            report_link=Text,
            recorded_at_utc=DateTime(timezone=True),
        )
        try:
            with self._engine.connect() as connection:
                rows = connection.execute(statement, parameters).mappings().all()
        except SQLAlchemyError as error:
            raise RuntimeError("failed to list metric results") from error

        return [
            MetricResultRow(
                result_id=row["result_id"],
                record=MetricRecord(
                    target_key=row["target_key"],
                    completed_at_utc=row["completed_at_utc"],
                    metrics=tuple(float(value) for value in json.loads(row["metrics_json"])),
                    report_link=row["report_link"],
                ),
                recorded_at_utc=row["recorded_at_utc"],
            )
            for row in rows
        ]

    def db_result_list_errors(self, limit: int, offset: int) -> list[CycleErrorRow]:
        """List poll-cycle error rows newest first.

        Raises:
            ValueError: Raised when limit or offset are invalid.
            RuntimeError: Raised when database read fails.
        """

        if limit < 1:
            raise ValueError("limit must be >= 1")
        if offset < 0:
            raise ValueError("offset must be >= 0")

        statement = text(
            "SELECT error_id, target_key, error_type, error_message, recorded_at_utc "
            "FROM cycle_error "
            "ORDER BY error_id DESC "
            "LIMIT :limit OFFSET :offset"
        ).columns(
            error_id=Integer,
            target_key=Text,
            error_type=Text,
            error_message=Text,
            recorded_at_utc=DateTime(timezone=True),
        )
        try:
            with self._engine.connect() as connection:
                rows = connection.execute(statement, {"limit": limit, "offset": offset}).mappings().all()
        except SQLAlchemyError as error:
            raise RuntimeError("failed to list cycle errors") from error

        return [
            CycleErrorRow(
                error_id=row["error_id"],
                target_key=row["target_key"],
                error_type=row["error_type"],
                error_message=row["error_message"],
                recorded_at_utc=row["recorded_at_utc"],
            )
            for row in rows
        ]
