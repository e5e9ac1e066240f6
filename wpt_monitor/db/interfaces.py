"""Typed interfaces for database-layer services.

All SQL access must remain in the db package and its submodules.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from wpt_monitor.domain import HealthStatus, MetricRecord, PendingJob, ThresholdSet


class DuplicateJobKeyError(RuntimeError):
    """Raised when a job is put for a target key that is already outstanding."""


class JobStoreCapacityError(RuntimeError):
    """Raised when a job is put while every job slot is occupied."""


class DatabaseHealthPort(Protocol):
    """Port definition for database connectivity verification."""

    def db_connection_label(self) -> str:
        """Return a stable label for the active database connection target.

        Returns:
            str: Database target label for diagnostics.

        Raises:
            RuntimeError: Raised when connection metadata is unavailable.
        """

    def db_check_health(self) -> HealthStatus:
        """Check database connectivity and return deterministic health payload.

        Returns:
            HealthStatus: Database health status payload.

        Raises:
            ConnectionError: Raised when database cannot be reached.
        """


class JobStorePort(Protocol):
    """Port definition for the durable table of outstanding jobs."""

    def db_job_capacity(self) -> int:
        """Return the fixed number of job slots.

        Returns:
            int: Maximum number of outstanding jobs.
        """

    def db_job_put(self, job: PendingJob) -> None:
        """Insert one outstanding job into a free slot.

        Args:
            job: Job to track.

        Raises:
            DuplicateJobKeyError: Raised when the job key is already outstanding.
            JobStoreCapacityError: Raised when every slot is occupied.
        """

    def db_job_remove_by_key(self, target_key: str) -> bool:
        """Clear the slot holding the target key; absent keys are a no-op.

        Args:
            target_key: Logical target identifier.

        Returns:
            bool: True when a slot was cleared.
        """

    def db_job_list_all(self) -> list[PendingJob]:
        """Return a snapshot of outstanding jobs in slot order.

        Returns:
            list[PendingJob]: Outstanding jobs.
        """

    def db_job_is_empty(self) -> bool:
        """Return whether no job is outstanding.

        Returns:
            bool: True when every slot is empty.
        """


class SchedulerStatePort(Protocol):
    """Port definition for the persisted owner-to-activation mapping."""

    def db_scheduler_get_activation_id(self, owner_id: str) -> str | None:
        """Return the persisted activation id for an owner, or None when absent."""

    def db_scheduler_set_activation_id(self, owner_id: str, activation_id: str) -> None:
        """Persist the activation id for an owner, replacing any previous value."""

    def db_scheduler_clear_activation_id(self, owner_id: str) -> None:
        """Remove the persisted activation id for an owner; absent owners are a no-op."""


class ThresholdSourcePort(Protocol):
    """Port definition for reading the threshold set applied to a run."""

    def db_threshold_read(self) -> ThresholdSet:
        """Return the configured threshold set in metric-schema order.

        Returns:
            ThresholdSet: Ordered thresholds, possibly empty when unconfigured.
        """


@dataclass(frozen=True)
class MetricResultRow:
    """Persisted metric result row.

    Attributes:
        result_id: Row identifier.
        record: Completed metric record.
        recorded_at_utc: Persistence timestamp in UTC.
    """

    result_id: int
    record: MetricRecord
    recorded_at_utc: datetime


@dataclass(frozen=True)
class CycleErrorRow:
    """Persisted poll-cycle error row.

    Attributes:
        error_id: Row identifier.
        target_key: Target being processed when the error occurred, if any.
        error_type: Exception type name.
        error_message: Exception message.
        recorded_at_utc: Persistence timestamp in UTC.
    """

    error_id: int
    target_key: str | None
    error_type: str
    error_message: str
    recorded_at_utc: datetime


class ResultSinkPort(Protocol):
    """Port definition for the append-only result log and its error channel."""

    def db_result_append(self, record: MetricRecord) -> None:
        """Append one completed metric record.

        Args:
            record: Immutable metric record.
        """

    def db_result_append_error(self, target_key: str | None, error_type: str, error_message: str) -> None:
        """Append one operator-visible error row for an aborted poll cycle.

        Args:
            target_key: Target being processed when the cycle aborted, if any.
            error_type: Exception type name.
            error_message: Exception message.
        """


class ThresholdRepositoryPort(ThresholdSourcePort, Protocol):
    """Port definition for operator maintenance of the threshold set."""

    def db_threshold_replace(self, values: Sequence[float]) -> ThresholdSet:
        """Replace the whole threshold set.

        Args:
            values: Threshold values in metric-schema order.

        Returns:
            ThresholdSet: Stored threshold set.

        Raises:
            ValueError: Raised when the value count differs from the metric schema.
        """


class ResultLogReaderPort(Protocol):
    """Port definition for reading recent result and error rows."""

    def db_result_list(self, limit: int, offset: int, target_key: str | None = None) -> list[MetricResultRow]:
        """Return metric results newest first."""

    def db_result_list_errors(self, limit: int, offset: int) -> list[CycleErrorRow]:
        """Return poll-cycle error rows newest first."""
