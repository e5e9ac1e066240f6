"""Database service for the configured metric threshold set."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import Engine, text
from sqlalchemy.exc import SQLAlchemyError

from wpt_monitor.domain import METRIC_COUNT, METRIC_SCHEMA, ThresholdSet

from .interfaces import ThresholdRepositoryPort


class SQLAlchemyThresholdService(ThresholdRepositoryPort):
    """SQLAlchemy-backed threshold table keyed by metric-schema position."""

    def __init__(self, engine: Engine):
        if engine is None:
            raise ValueError("engine must not be None")
        self._engine = engine

    def db_threshold_read(self) -> ThresholdSet:
        """Return thresholds ordered by schema position.

        Returns:
            ThresholdSet: Configured thresholds; empty when none are stored.

        Raises:
            RuntimeError: Raised when database read fails.
        """

        try:
            with self._engine.connect() as connection:
                values = connection.execute(
                    text("SELECT threshold_value FROM metric_threshold ORDER BY position")
                ).scalars().all()
        except SQLAlchemyError as error:
            raise RuntimeError("failed to read metric thresholds") from error
        return ThresholdSet(values=tuple(float(value) for value in values))

    def db_threshold_replace(self, values: Sequence[float]) -> ThresholdSet:
        """Replace the whole threshold set in one transaction.

        Args:
            values: Threshold values in metric-schema order.

        Returns:
            ThresholdSet: Stored threshold set.

        Raises:
            ValueError: Raised when the value count differs from the metric schema.
            RuntimeError: Raised when persistence fails.
        """

        if len(values) != METRIC_COUNT:
            raise ValueError(f"expected {METRIC_COUNT} threshold values, got {len(values)}")

        threshold_rows = [
            {"position": position, "metric_name": metric_field.display_name, "threshold_value": float(value)}
            for position, (metric_field, value) in enumerate(zip(METRIC_SCHEMA, values))
        ]
        try:
            with self._engine.begin() as connection:
                connection.execute(text("DELETE FROM metric_threshold"))
                connection.execute(
                    text(
                        "INSERT INTO metric_threshold (position, metric_name, threshold_value) "
                        "VALUES (:position, :metric_name, :threshold_value)"
                    ),
                    threshold_rows,
                )
        except SQLAlchemyError as error:
            raise RuntimeError("failed to replace metric thresholds") from error
        return ThresholdSet(values=tuple(row["threshold_value"] for row in threshold_rows))
